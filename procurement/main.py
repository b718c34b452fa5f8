import logging
from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from procurement.api.routes import auth, ping, tickets, user
from procurement.auth.tokens import TokenService
from procurement.core.config import Settings, get_settings
from procurement.core.logging import configure_logging, init_tracer, shutdown_tracer
from procurement.services.postgres import PostgresPool
from procurement.tickets.repository import TicketRepository
from procurement.tickets.service import TicketService
from procurement.users.repository import UserRepository


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider
    postgres = PostgresPool(
        dsn=settings.postgres_dsn,
        min_size=settings.postgres_pool_min_size,
        max_size=settings.postgres_pool_max_size,
    )
    app.state.postgres = postgres
    app.state.user_repository = None
    app.state.token_service = None
    app.state.ticket_service = None
    try:
        await wire_services(app, settings, postgres)
    except (OSError, TimeoutError, asyncpg.PostgresError) as exc:
        # Routes answer 503 until the database is reachable on the next start.
        logger.error("Failed to initialise services: %s", exc)
    try:
        yield
    finally:
        await postgres.close()
        shutdown_tracer(tracer_provider)


async def wire_services(app: FastAPI, settings: Settings, postgres: PostgresPool) -> None:
    pool = await postgres.get_pool()
    user_repository = UserRepository(pool)
    ticket_repository = TicketRepository(pool)
    await user_repository.ensure_schema()
    await ticket_repository.ensure_schema()

    app.state.user_repository = user_repository
    app.state.token_service = TokenService(
        settings.signing_key(),
        user_repository,
        ttl=settings.jwt_ttl,
    )
    app.state.ticket_service = TicketService(ticket_repository, user_repository)
    logging.getLogger(__name__).info("Services ready (environment=%s)", settings.environment)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allowed_origins),
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.include_router(ping.router)
    app.include_router(auth.router)
    app.include_router(user.router)
    app.include_router(tickets.router)
    return app


app = create_app()
