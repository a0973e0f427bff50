# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging

from fiesta.auth.passwords import hash_password, verify_password
from fiesta.core.utils import is_utf8
from fiesta.errors import InvalidCredentials, NotFound, ValidationError
from fiesta.infra.storage import Account, Storage

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 8


def validate_username(username: str) -> str:
    u = (username or "").strip()
    if len(u) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if not is_utf8(u):
        raise ValidationError("Username contains invalid characters")
    return u


def validate_password(password: str) -> str:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not is_utf8(password):
        raise ValidationError("Password contains invalid characters")
    return password


def create_account(storage: Storage, *, username: str, password: str, is_admin: bool = False) -> Account:
    """Administrative account creation (not the first-run path)."""
    u = validate_username(username)
    account = storage.create_user(u, hash_password(validate_password(password)), is_admin=is_admin)
    logger.info("Created account '%s' (admin=%s)", account.username, account.is_admin)
    return account


def change_password(storage: Storage, account: Account, *, current_password: str, new_password: str) -> Account:
    if not verify_password(account.password_hash, current_password):
        raise InvalidCredentials("Current password is incorrect")
    updated = storage.update_user_password(account.id, hash_password(validate_password(new_password)))
    if updated is None:
        raise NotFound("User not found")
    logger.info("Password changed for '%s'", updated.username)
    return updated
