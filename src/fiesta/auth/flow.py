# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Login / logout / whoami over the storage interface.

A request is either anonymous or acting as the account its session cookie
resolves to. Sessions live in the store; the cookie only carries the signed
token.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional, Tuple

from fiesta.auth.passwords import hash_password, verify_password
from fiesta.auth.session import new_session_token, sign_session, unsign_session
from fiesta.core.utils import is_utf8, utcnow
from fiesta.errors import InvalidCredentials
from fiesta.infra.storage import Account, SessionRecord, Storage

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("fiesta-unknown-user")


def authenticate(storage: Storage, username: str, password: str) -> Account:
    """Same error (and roughly the same cost) for unknown user and wrong password."""
    name = (username or "").strip()
    account = storage.get_user_by_username(name) if is_utf8(name) else None
    if account is None:
        verify_password(_dummy_hash(), password)
        raise InvalidCredentials()
    if not verify_password(account.password_hash, password):
        raise InvalidCredentials()
    return account


def login(
    storage: Storage,
    username: str,
    password: str,
    *,
    secret: str,
    max_age: int,
    now: Optional[datetime] = None,
) -> Tuple[Account, SessionRecord, str]:
    """Authenticate and open a session. Returns (account, session, cookie value)."""
    account = authenticate(storage, username, password)
    expires_at = (now or utcnow()) + timedelta(seconds=max_age)
    record = storage.create_session(new_session_token(), account.id, expires_at)
    logger.info("Login: '%s'", account.username)
    return account, record, sign_session(record.token, secret=secret)


def logout(storage: Storage, cookie_value: str, *, secret: str, max_age: int) -> None:
    """Destroy the session behind the cookie, if any. Safe to call repeatedly."""
    token = unsign_session(cookie_value, secret=secret, max_age=max_age)
    if token:
        storage.delete_session(token)


def whoami(
    storage: Storage,
    cookie_value: str,
    *,
    secret: str,
    max_age: int,
    now: Optional[datetime] = None,
) -> Optional[Account]:
    """Resolve a cookie to its account, or None for anonymous."""
    token = unsign_session(cookie_value, secret=secret, max_age=max_age)
    if not token:
        return None
    record = storage.get_session(token)
    if record is None:
        return None
    if record.expired(now or utcnow()):
        storage.delete_session(token)
        return None
    return storage.get_user(record.account_id)
