# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-memory store for development and tests (``DATABASE_URL=memory://``).

Mirrors the relational store's shapes and constraints. Everything lives in
the instance; nothing is shared between instances.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from fiesta.core.utils import canon_username, utcnow
from fiesta.errors import DuplicateUsername, SetupAlreadyComplete
from fiesta.infra.storage import SETTINGS_ID, Account, Row, SessionRecord, Storage

EVENT_DEFAULTS = {"presenter_image": None, "is_featured": False, "registration_link": None}
ARTICLE_DEFAULTS = {"is_featured": False}


class _Collection:
    """Id-keyed rows with an auto-increment counter."""

    def __init__(self, defaults: Row):
        self.rows: Dict[int, Row] = {}
        self.next_id = 1
        self.defaults = defaults

    def list(self, *, featured_only: bool) -> List[Row]:
        rows = [r for r in self.rows.values() if r.get("is_featured") or not featured_only]
        rows.sort(key=lambda r: (r["created_at"], r["id"]), reverse=True)
        return [dict(r) for r in rows]

    def get(self, row_id: int) -> Optional[Row]:
        row = self.rows.get(row_id)
        return dict(row) if row is not None else None

    def create(self, fields: Row) -> Row:
        row = {**self.defaults, **fields, "id": self.next_id, "created_at": utcnow()}
        self.rows[self.next_id] = row
        self.next_id += 1
        return dict(row)

    def update(self, row_id: int, fields: Row) -> Optional[Row]:
        row = self.rows.get(row_id)
        if row is None:
            return None
        updates = {k: v for k, v in fields.items() if k not in ("id", "created_at")}
        row.update(updates)
        return dict(row)

    def delete(self, row_id: int) -> bool:
        return self.rows.pop(row_id, None) is not None


class MemoryStorage(Storage):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: Dict[int, Account] = {}
        self._next_user_id = 1
        self._sessions: Dict[str, SessionRecord] = {}
        self._events = _Collection(EVENT_DEFAULTS)
        self._articles = _Collection(ARTICLE_DEFAULTS)
        self._settings: Optional[Row] = None
        self._setup_done = False

    # ------------------ users ------------------

    def list_users(self) -> List[Account]:
        with self._lock:
            return sorted(self._users.values(), key=lambda u: u.id, reverse=True)

    def get_user(self, user_id: int) -> Optional[Account]:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[Account]:
        with self._lock:
            for u in self._users.values():
                if u.username == username:
                    return u
            key = canon_username(username)
            for u in self._users.values():
                if canon_username(u.username) == key:
                    return u
            return None

    def create_user(self, username: str, password_hash: str, is_admin: bool = False) -> Account:
        with self._lock:
            key = canon_username(username)
            if any(canon_username(u.username) == key for u in self._users.values()):
                raise DuplicateUsername()
            account = Account(
                id=self._next_user_id,
                username=username,
                password_hash=password_hash,
                is_admin=bool(is_admin),
            )
            self._users[account.id] = account
            self._next_user_id += 1
            return account

    def create_first_admin(self, username: str, password_hash: str) -> Account:
        with self._lock:
            if self._setup_done or any(u.is_admin for u in self._users.values()):
                raise SetupAlreadyComplete()
            account = self.create_user(username, password_hash, is_admin=True)
            self._setup_done = True
            return account

    def update_user_password(self, user_id: int, password_hash: str) -> Optional[Account]:
        with self._lock:
            account = self._users.get(user_id)
            if account is None:
                return None
            account = replace(account, password_hash=password_hash)
            self._users[user_id] = account
            return account

    # ------------------ sessions ------------------

    def create_session(self, token: str, account_id: int, expires_at: datetime) -> SessionRecord:
        record = SessionRecord(token=token, account_id=account_id, expires_at=expires_at)
        with self._lock:
            self._sessions[token] = record
        return record

    def get_session(self, token: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._sessions.get(token)

    def delete_session(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def prune_expired_sessions(self, now: datetime) -> int:
        with self._lock:
            stale = [t for t, s in self._sessions.items() if s.expired(now)]
            for t in stale:
                del self._sessions[t]
            return len(stale)

    # ------------------ events ------------------

    def list_events(self, *, featured_only: bool = False) -> List[Row]:
        with self._lock:
            return self._events.list(featured_only=featured_only)

    def get_event(self, event_id: int) -> Optional[Row]:
        with self._lock:
            return self._events.get(event_id)

    def create_event(self, fields: Row) -> Row:
        with self._lock:
            return self._events.create(fields)

    def update_event(self, event_id: int, fields: Row) -> Optional[Row]:
        with self._lock:
            return self._events.update(event_id, fields)

    def delete_event(self, event_id: int) -> bool:
        with self._lock:
            return self._events.delete(event_id)

    # ------------------ wiki articles ------------------

    def list_articles(self, *, featured_only: bool = False) -> List[Row]:
        with self._lock:
            return self._articles.list(featured_only=featured_only)

    def get_article(self, article_id: int) -> Optional[Row]:
        with self._lock:
            return self._articles.get(article_id)

    def create_article(self, fields: Row) -> Row:
        with self._lock:
            return self._articles.create(fields)

    def update_article(self, article_id: int, fields: Row) -> Optional[Row]:
        with self._lock:
            return self._articles.update(article_id, fields)

    def delete_article(self, article_id: int) -> bool:
        with self._lock:
            return self._articles.delete(article_id)

    # ------------------ settings ------------------

    def get_settings(self) -> Optional[Row]:
        with self._lock:
            return copy.deepcopy(self._settings)

    def save_settings(self, row: Row) -> Row:
        with self._lock:
            self._settings = {**copy.deepcopy(row), "id": SETTINGS_ID}
            return copy.deepcopy(self._settings)
