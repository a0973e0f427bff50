# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Explicit startup sequence: open the store, wait for it, prepare it."""

from __future__ import annotations

import logging
import time
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from fiesta.config import AppConfig
from fiesta.core.utils import utcnow
from fiesta.errors import InfrastructureError, is_transient
from fiesta.infra.memory_store import MemoryStorage
from fiesta.infra.sql_store import SqlStorage, build_engine
from fiesta.infra.storage import Storage
from fiesta.services.settings_service import ensure_settings

logger = logging.getLogger(__name__)


def connect_with_retry(
    probe: Callable[[], None],
    *,
    attempts: int = 3,
    delay: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Call ``probe`` until it succeeds, backing off exponentially between tries.

    Only transient failures are retried. The last one is re-raised as
    InfrastructureError.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            probe()
            if attempt > 1:
                logger.info("Database reachable after %d attempts", attempt)
            return
        except (SQLAlchemyError, OSError) as e:
            if not is_transient(e):
                raise
            if attempt == attempts:
                logger.error("Database unreachable after %d attempts: %s", attempts, type(e).__name__)
                raise InfrastructureError() from e
            wait = delay * (2 ** (attempt - 1))
            logger.warning("Database connection attempt %d/%d failed; retrying in %.1fs", attempt, attempts, wait)
            sleep(wait)


def prepare_storage(storage: Storage) -> Storage:
    """Idempotent post-connect steps: schema, settings singleton, stale sessions."""
    if isinstance(storage, SqlStorage):
        storage.create_schema()
    ensure_settings(storage)
    pruned = storage.prune_expired_sessions(utcnow())
    if pruned:
        logger.info("Pruned %d expired sessions", pruned)
    return storage


def open_storage(config: AppConfig) -> Storage:
    if config.uses_memory_store:
        logger.info("Using in-memory store (data is lost on restart)")
        return prepare_storage(MemoryStorage())

    storage = SqlStorage(build_engine(config.database_url, production=config.is_production))
    try:
        connect_with_retry(storage.ping, attempts=config.db_connect_attempts, delay=config.db_connect_delay)
    except Exception:
        storage.close()
        raise
    return prepare_storage(storage)
