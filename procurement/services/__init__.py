from .postgres import PostgresPool

__all__ = ["PostgresPool"]
