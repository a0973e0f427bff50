# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Any, Dict, Optional

from fiesta.errors import NotFound
from fiesta.infra.storage import Row, Storage


def _found(row: Optional[Row], label: str) -> Row:
    if row is None:
        raise NotFound(f"{label} not found")
    return row


def get_event(storage: Storage, event_id: int) -> Row:
    return _found(storage.get_event(event_id), "Event")


def update_event(storage: Storage, event_id: int, fields: Dict[str, Any]) -> Row:
    return _found(storage.update_event(event_id, fields), "Event")


def delete_event(storage: Storage, event_id: int) -> None:
    if not storage.delete_event(event_id):
        raise NotFound("Event not found")


def get_article(storage: Storage, article_id: int) -> Row:
    return _found(storage.get_article(article_id), "Wiki article")


def update_article(storage: Storage, article_id: int, fields: Dict[str, Any]) -> Row:
    return _found(storage.update_article(article_id, fields), "Wiki article")


def delete_article(storage: Storage, article_id: int) -> None:
    if not storage.delete_article(article_id):
        raise NotFound("Wiki article not found")
