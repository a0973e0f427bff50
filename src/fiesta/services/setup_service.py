# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""First-run bootstrap of the administrator account."""

from __future__ import annotations

import logging

from fiesta.auth.passwords import hash_password
from fiesta.errors import SetupAlreadyComplete
from fiesta.infra.storage import Account, Storage
from fiesta.services.user_service import validate_password, validate_username

logger = logging.getLogger(__name__)


def check_setup_complete(storage: Storage) -> bool:
    return any(u.is_admin for u in storage.list_users())


def run_setup(storage: Storage, *, username: str, password: str) -> Account:
    """Create the first admin. Any admin flag from the caller is irrelevant here.

    The completeness check runs before validation so a finished setup is
    reported the same way whatever the payload.
    """
    if check_setup_complete(storage):
        raise SetupAlreadyComplete()
    u = validate_username(username)
    hashed = hash_password(validate_password(password))
    account = storage.create_first_admin(u, hashed)
    logger.info("Setup complete: admin '%s' created", account.username)
    return account
