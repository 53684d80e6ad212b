from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from academy.api import health
from academy.api.error_handling import register_exception_handlers
from academy.api.router import api_router
from academy.core.config import settings
from academy.core.logging import configure_logging
from academy.db.init_db import init_db, seed_admin
from academy.db.session import Database
from academy.services.refresh_token_service import sweep_expired

configure_logging(settings.LOG_LEVEL)


def _warn_on_shared_secret() -> None:
    if settings.JWT_SECRET == settings.JWT_REFRESH_SECRET:
        logger.warning('JWT_SECRET and JWT_REFRESH_SECRET are identical; refresh tokens share the access signing key')


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the application around an explicitly owned database handle.

    When ``database`` is omitted one is built from ``DATABASE_URL`` at startup
    and disposed at shutdown; a caller-supplied handle is left to the caller.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = database is None
        db = Database(settings.DATABASE_URL) if owned else database
        app.state.database = db
        _warn_on_shared_secret()
        init_db(db.engine)
        with db.session() as session:
            seed_admin(session)
            if settings.SWEEP_EXPIRED_ON_STARTUP:
                sweep_expired(session)
        try:
            yield
        finally:
            if owned:
                db.dispose()

    app = FastAPI(title=settings.PROJECT_NAME, debug=settings.DEBUG, lifespan=lifespan)
    if database is not None:
        app.state.database = database

    allow_origins = settings.CORS_ORIGINS
    allow_credentials = '*' not in allow_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_exception_handlers(app)
    app.include_router(health.router, tags=['health'])
    app.include_router(api_router)
    return app


app = create_app()
