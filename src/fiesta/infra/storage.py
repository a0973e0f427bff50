# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Storage interface shared by the in-memory and relational stores.

Route handlers and services only ever talk to ``Storage``. Content rows
(events, wiki articles, settings) travel as plain dicts with snake_case keys;
accounts and sessions as frozen dataclasses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

SETTINGS_ID = 1

Row = Dict[str, Any]


@dataclass(frozen=True)
class Account:
    id: int
    username: str
    password_hash: str
    is_admin: bool = False

    def public(self) -> Dict[str, Any]:
        """Projection safe to send to clients (never the hash)."""
        return {"id": self.id, "username": self.username, "isAdmin": self.is_admin}


@dataclass(frozen=True)
class SessionRecord:
    token: str
    account_id: int
    expires_at: datetime

    def expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class Storage(ABC):
    # --- users
    @abstractmethod
    def list_users(self) -> List[Account]: ...

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[Account]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[Account]:
        """Exact match first, then case-insensitive match."""

    @abstractmethod
    def create_user(self, username: str, password_hash: str, is_admin: bool = False) -> Account:
        """Raises DuplicateUsername if the name is taken (case-insensitively)."""

    @abstractmethod
    def create_first_admin(self, username: str, password_hash: str) -> Account:
        """Create the bootstrap admin atomically.

        Raises SetupAlreadyComplete if an admin exists or another setup
        committed first.
        """

    @abstractmethod
    def update_user_password(self, user_id: int, password_hash: str) -> Optional[Account]: ...

    # --- sessions
    @abstractmethod
    def create_session(self, token: str, account_id: int, expires_at: datetime) -> SessionRecord: ...

    @abstractmethod
    def get_session(self, token: str) -> Optional[SessionRecord]: ...

    @abstractmethod
    def delete_session(self, token: str) -> bool: ...

    @abstractmethod
    def prune_expired_sessions(self, now: datetime) -> int: ...

    # --- events
    @abstractmethod
    def list_events(self, *, featured_only: bool = False) -> List[Row]: ...

    @abstractmethod
    def get_event(self, event_id: int) -> Optional[Row]: ...

    @abstractmethod
    def create_event(self, fields: Row) -> Row: ...

    @abstractmethod
    def update_event(self, event_id: int, fields: Row) -> Optional[Row]: ...

    @abstractmethod
    def delete_event(self, event_id: int) -> bool: ...

    # --- wiki articles
    @abstractmethod
    def list_articles(self, *, featured_only: bool = False) -> List[Row]: ...

    @abstractmethod
    def get_article(self, article_id: int) -> Optional[Row]: ...

    @abstractmethod
    def create_article(self, fields: Row) -> Row: ...

    @abstractmethod
    def update_article(self, article_id: int, fields: Row) -> Optional[Row]: ...

    @abstractmethod
    def delete_article(self, article_id: int) -> bool: ...

    # --- settings singleton
    @abstractmethod
    def get_settings(self) -> Optional[Row]: ...

    @abstractmethod
    def save_settings(self, row: Row) -> Row:
        """Insert or replace the row with id SETTINGS_ID."""

    # --- lifecycle
    def ping(self) -> None:
        """Raise if the backing store is unreachable."""

    def close(self) -> None:
        pass
