#!/usr/bin/env python3
"""Create an account, or reset its password if it already exists.

Works against the configured DATABASE_URL; useful to recover access when the
first-run setup has already been completed.
"""
from __future__ import annotations

import logging
from getpass import getpass

from fiesta.auth.passwords import hash_password
from fiesta.config import AppConfig
from fiesta.errors import FiestaError
from fiesta.infra.bootstrap import open_storage
from fiesta.services.user_service import create_account, validate_password


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    config = AppConfig.from_env()
    if config.uses_memory_store:
        raise SystemExit("DATABASE_URL points at the in-memory store; nothing would persist")

    username = input("Username: ").strip()
    admin_in = input("Admin? [Y/n]: ").strip().lower()
    is_admin = (admin_in != "n")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    storage = open_storage(config)
    try:
        existing = storage.get_user_by_username(username)
        if existing is not None:
            storage.update_user_password(existing.id, hash_password(validate_password(pw1)))
            print(f"OK -> password updated for '{existing.username}'")
        else:
            account = create_account(storage, username=username, password=pw1, is_admin=is_admin)
            print(f"OK -> created '{account.username}' (admin={account.is_admin})")
    except FiestaError as e:
        raise SystemExit(e.message)
    finally:
        storage.close()


if __name__ == "__main__":
    main()
