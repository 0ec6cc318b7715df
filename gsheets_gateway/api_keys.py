"""API key storage and the ``x-api-key`` request gate.

Keys live in a single ``api_keys`` table (SQLAlchemy Core). A request is let
through when its ``x-api-key`` header exactly matches the configured
``GATEWAY_API_KEY`` or any active stored key.
"""

from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone

from flask import current_app, request
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
EXEMPT_PATHS = frozenset({"/", "/api/health/live", "/api/health/ready"})

metadata = MetaData()

api_keys = Table(
    "api_keys",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("key", Text, nullable=False, unique=True),
    Column("is_active", Boolean, nullable=False, default=True, server_default="1"),
    Column("created_at", DateTime(timezone=True), nullable=False,
           default=lambda: datetime.now(timezone.utc)),
)


def init_key_store(database_url: str) -> Engine:
    """Create the engine and the ``api_keys`` table if it does not exist."""
    engine = create_engine(database_url, echo=False)
    metadata.create_all(engine)
    logger.info(f"API key store ready ({engine.url.get_backend_name()}).")
    return engine


def _mask(key: str) -> str:
    return f"{key[:6]}..." if key else "<empty>"


def add_api_key(engine: Engine, key: str) -> int:
    """Store ``key`` as active and return its row id."""
    if not key or not key.strip():
        raise ValueError("API key must not be blank.")
    with engine.begin() as conn:
        result = conn.execute(insert(api_keys).values(key=key, is_active=True))
        row_id = result.inserted_primary_key[0]
    logger.info(f"Stored API key {_mask(key)} with id {row_id}.")
    return row_id


def deactivate_api_key(engine: Engine, key: str) -> bool:
    """Mark ``key`` inactive. Returns False when no active row matched."""
    with engine.begin() as conn:
        result = conn.execute(
            update(api_keys)
            .where(api_keys.c.key == key, api_keys.c.is_active.is_(True))
            .values(is_active=False)
        )
        changed = result.rowcount
    if changed:
        logger.info(f"Deactivated API key {_mask(key)}.")
        return True
    logger.warning(f"No active API key matched {_mask(key)}.")
    return False


def list_api_keys(engine: Engine) -> list[dict]:
    with engine.connect() as conn:
        rows = conn.execute(select(api_keys).order_by(api_keys.c.id)).mappings().all()
    return [dict(row) for row in rows]


def is_valid_api_key(engine: Engine | None, candidate: str, configured_key: str = "") -> bool:
    """Exact, case-sensitive comparison against the configured and stored keys."""
    if not candidate:
        return False
    if configured_key and hmac.compare_digest(candidate.encode(), configured_key.encode()):
        return True
    if engine is None:
        return False
    with engine.connect() as conn:
        stored = conn.execute(
            select(api_keys.c.key).where(api_keys.c.is_active.is_(True))
        ).scalars().all()
    return any(hmac.compare_digest(candidate.encode(), key.encode()) for key in stored)


def _unauthorized(message: str):
    return message, 401, {"Content-Type": "text/plain"}


def require_api_key():
    """``before_request`` hook rejecting calls without a valid key."""
    if request.path in EXEMPT_PATHS:
        return None

    extracted = request.headers.get(API_KEY_HEADER)
    if extracted is None or not extracted.strip():
        logger.warning(f"API Key is missing from the headers ({request.method} {request.path}).")
        return _unauthorized("API Key is missing")

    engine = current_app.extensions.get("api_key_engine")
    if not is_valid_api_key(engine, extracted, current_app.config.get("GATEWAY_API_KEY", "")):
        logger.warning(f"Invalid API Key provided ({request.method} {request.path}).")
        return _unauthorized("Invalid API Key")
    return None
