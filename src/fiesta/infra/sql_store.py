# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Table, create_engine, delete, insert, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from fiesta.core.utils import canon_username, utcnow
from fiesta.errors import DuplicateUsername, SetupAlreadyComplete
from fiesta.infra.storage import SETTINGS_ID, Account, Row, SessionRecord, Storage
from fiesta.infra.tables import (
    SETTINGS_COLUMNS,
    events,
    metadata,
    sessions,
    settings,
    setup_lock,
    users,
    wiki_articles,
)

logger = logging.getLogger(__name__)


def build_engine(url: str, *, production: bool = False) -> Engine:
    """Create the process-wide engine (connection pool) for a database URL.

    Nothing connects here; the first connection happens in the startup probe.
    """
    u = make_url(url)
    kwargs: Dict[str, Any] = {}
    if u.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if not u.database or u.database == ":memory:":
            kwargs["poolclass"] = StaticPool
    else:
        connect_args: Dict[str, Any] = {}
        if u.get_backend_name() == "postgresql":
            connect_args["connect_timeout"] = 10
            if production and "sslmode" not in u.query:
                connect_args["sslmode"] = "require"
        kwargs.update(
            pool_size=10,
            pool_recycle=1800,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
    return create_engine(u, **kwargs)


def _account(row) -> Account:
    m = row._mapping
    return Account(
        id=int(m["id"]),
        username=str(m["username"]),
        password_hash=str(m["password"]),
        is_admin=bool(m["is_admin"]),
    )


def _session(row) -> SessionRecord:
    m = row._mapping
    return SessionRecord(token=m["token"], account_id=int(m["account_id"]), expires_at=m["expires_at"])


class SqlStorage(Storage):
    """Relational store over SQLAlchemy Core. Each call runs in its own transaction."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_schema(self) -> None:
        metadata.create_all(self.engine)
        logger.info("Database schema ready (%s)", self.engine.url.get_backend_name())

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def close(self) -> None:
        self.engine.dispose()

    # ------------------ users ------------------

    def list_users(self) -> List[Account]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(users).order_by(users.c.id.desc())).all()
        return [_account(r) for r in rows]

    def get_user(self, user_id: int) -> Optional[Account]:
        with self.engine.connect() as conn:
            row = conn.execute(select(users).where(users.c.id == user_id)).first()
        return _account(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[Account]:
        with self.engine.connect() as conn:
            row = conn.execute(select(users).where(users.c.username == username)).first()
            if row is None:
                row = conn.execute(
                    select(users).where(users.c.username_key == canon_username(username))
                ).first()
        return _account(row) if row else None

    def _insert_user(self, conn, username: str, password_hash: str, is_admin: bool) -> Account:
        taken = conn.execute(
            select(users.c.id).where(users.c.username_key == canon_username(username))
        ).first()
        if taken:
            raise DuplicateUsername()
        try:
            result = conn.execute(
                insert(users).values(
                    username=username,
                    username_key=canon_username(username),
                    password=password_hash,
                    is_admin=bool(is_admin),
                )
            )
        except IntegrityError as e:
            raise DuplicateUsername() from e
        new_id = result.inserted_primary_key[0]
        return Account(id=int(new_id), username=username, password_hash=password_hash, is_admin=bool(is_admin))

    def create_user(self, username: str, password_hash: str, is_admin: bool = False) -> Account:
        with self.engine.begin() as conn:
            return self._insert_user(conn, username, password_hash, is_admin)

    def create_first_admin(self, username: str, password_hash: str) -> Account:
        with self.engine.begin() as conn:
            admin = conn.execute(select(users.c.id).where(users.c.is_admin.is_(True)).limit(1)).first()
            if admin:
                raise SetupAlreadyComplete()
            try:
                conn.execute(insert(setup_lock).values(id=1, completed_at=utcnow()))
            except IntegrityError as e:
                raise SetupAlreadyComplete() from e
            return self._insert_user(conn, username, password_hash, True)

    def update_user_password(self, user_id: int, password_hash: str) -> Optional[Account]:
        with self.engine.begin() as conn:
            result = conn.execute(update(users).where(users.c.id == user_id).values(password=password_hash))
            if not result.rowcount:
                return None
            row = conn.execute(select(users).where(users.c.id == user_id)).first()
        return _account(row)

    # ------------------ sessions ------------------

    def create_session(self, token: str, account_id: int, expires_at: datetime) -> SessionRecord:
        with self.engine.begin() as conn:
            conn.execute(insert(sessions).values(token=token, account_id=account_id, expires_at=expires_at))
        return SessionRecord(token=token, account_id=account_id, expires_at=expires_at)

    def get_session(self, token: str) -> Optional[SessionRecord]:
        with self.engine.connect() as conn:
            row = conn.execute(select(sessions).where(sessions.c.token == token)).first()
        return _session(row) if row else None

    def delete_session(self, token: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(delete(sessions).where(sessions.c.token == token))
        return bool(result.rowcount)

    def prune_expired_sessions(self, now: datetime) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(delete(sessions).where(sessions.c.expires_at <= now))
        return int(result.rowcount or 0)

    # ------------------ content (events / wiki) ------------------

    def _list(self, table: Table, featured_only: bool) -> List[Row]:
        q = select(table).order_by(table.c.created_at.desc(), table.c.id.desc())
        if featured_only:
            q = q.where(table.c.is_featured.is_(True))
        with self.engine.connect() as conn:
            return [dict(r._mapping) for r in conn.execute(q)]

    def _get(self, table: Table, row_id: int) -> Optional[Row]:
        with self.engine.connect() as conn:
            row = conn.execute(select(table).where(table.c.id == row_id)).first()
        return dict(row._mapping) if row else None

    def _create(self, table: Table, fields: Row) -> Row:
        values = {k: v for k, v in fields.items() if k in table.c and k not in ("id", "created_at")}
        values["created_at"] = utcnow()
        with self.engine.begin() as conn:
            result = conn.execute(insert(table).values(**values))
            new_id = result.inserted_primary_key[0]
            row = conn.execute(select(table).where(table.c.id == new_id)).first()
        return dict(row._mapping)

    def _update(self, table: Table, row_id: int, fields: Row) -> Optional[Row]:
        values = {k: v for k, v in fields.items() if k in table.c and k not in ("id", "created_at")}
        with self.engine.begin() as conn:
            if values:
                result = conn.execute(update(table).where(table.c.id == row_id).values(**values))
                if not result.rowcount:
                    return None
            row = conn.execute(select(table).where(table.c.id == row_id)).first()
        return dict(row._mapping) if row else None

    def _delete(self, table: Table, row_id: int) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(delete(table).where(table.c.id == row_id))
        return bool(result.rowcount)

    def list_events(self, *, featured_only: bool = False) -> List[Row]:
        return self._list(events, featured_only)

    def get_event(self, event_id: int) -> Optional[Row]:
        return self._get(events, event_id)

    def create_event(self, fields: Row) -> Row:
        return self._create(events, fields)

    def update_event(self, event_id: int, fields: Row) -> Optional[Row]:
        return self._update(events, event_id, fields)

    def delete_event(self, event_id: int) -> bool:
        return self._delete(events, event_id)

    def list_articles(self, *, featured_only: bool = False) -> List[Row]:
        return self._list(wiki_articles, featured_only)

    def get_article(self, article_id: int) -> Optional[Row]:
        return self._get(wiki_articles, article_id)

    def create_article(self, fields: Row) -> Row:
        return self._create(wiki_articles, fields)

    def update_article(self, article_id: int, fields: Row) -> Optional[Row]:
        return self._update(wiki_articles, article_id, fields)

    def delete_article(self, article_id: int) -> bool:
        return self._delete(wiki_articles, article_id)

    # ------------------ settings ------------------

    def get_settings(self) -> Optional[Row]:
        with self.engine.connect() as conn:
            row = conn.execute(select(settings).where(settings.c.id == SETTINGS_ID)).first()
        return dict(row._mapping) if row else None

    def _write_settings(self, values: Row) -> Row:
        with self.engine.begin() as conn:
            result = conn.execute(update(settings).where(settings.c.id == SETTINGS_ID).values(**values))
            if not result.rowcount:
                conn.execute(insert(settings).values(id=SETTINGS_ID, **values))
            saved = conn.execute(select(settings).where(settings.c.id == SETTINGS_ID)).first()
        return dict(saved._mapping)

    def save_settings(self, row: Row) -> Row:
        values = {k: row[k] for k in SETTINGS_COLUMNS if k in row}
        try:
            return self._write_settings(values)
        except IntegrityError:
            # A concurrent writer inserted the singleton first; last write wins.
            return self._write_settings(values)
