# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Any, Dict

from fiesta.core.defaults import default_settings
from fiesta.infra.storage import SETTINGS_ID, Row, Storage

logger = logging.getLogger(__name__)


def ensure_settings(storage: Storage) -> Row:
    """Return the singleton, inserting the baseline row if the store has none."""
    row = storage.get_settings()
    if row is None:
        logger.info("No settings row found; inserting defaults")
        row = storage.save_settings(default_settings())
    return row


def get_settings(storage: Storage) -> Row:
    return ensure_settings(storage)


def update_settings(storage: Storage, partial: Dict[str, Any]) -> Row:
    """Shallow-merge ``partial`` over the stored row (or the defaults) and persist.

    Nested objects in ``partial`` replace the stored ones wholesale. Concurrent
    updates are last-writer-wins.
    """
    base = storage.get_settings()
    if base is None:
        base = default_settings()
    merged = {**base, **partial, "id": SETTINGS_ID}
    return storage.save_settings(merged)
