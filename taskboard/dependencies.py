"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskboard.auth import AuthService, TokenIdentity
from taskboard.carousel import CarouselCatalog
from taskboard.config import Settings, get_settings
from taskboard.db import DbClient, InMemoryDbClient, PostgresDbClient
from taskboard.tasks import TaskService

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None

bearer_scheme = HTTPBearer(auto_error=False)


def get_db_client() -> DbClient:
    """
    Return a singleton DB client; its engine pool is shared across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        logger.warning("No DATABASE_URL configured, using in-memory store")
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )
    return _db_client


def get_auth_service(
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(
        db,
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        token_ttl=timedelta(seconds=settings.token_ttl_seconds),
        bcrypt_rounds=settings.bcrypt_rounds,
    )


def get_task_service(db: DbClient = Depends(get_db_client)) -> TaskService:
    return TaskService(db)


def get_carousel_catalog(db: DbClient = Depends(get_db_client)) -> CarouselCatalog:
    return CarouselCatalog(db)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> TokenIdentity:
    """Gate for protected routes: resolve the bearer token to the caller."""
    token = credentials.credentials if credentials else None
    return auth.validate_token(token)
