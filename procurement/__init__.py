"""Procurement ticket approval service."""
