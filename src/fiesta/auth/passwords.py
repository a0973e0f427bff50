# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Credential hashing.

Stored form is ``<digest hex>.<salt hex>`` where the digest is a raw Argon2id
output. This is the only scheme the application understands; hashes produced
by any other scheme never verify.
"""

from __future__ import annotations

import hmac
import os

import argon2
from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw

from fiesta.core.utils import is_utf8

SEPARATOR = "."
SALT_BYTES = 16
HASH_BYTES = 32
TIME_COST = argon2.DEFAULT_TIME_COST
MEMORY_COST = argon2.DEFAULT_MEMORY_COST
PARALLELISM = argon2.DEFAULT_PARALLELISM


def _digest(plain: str, salt: bytes) -> bytes:
    return hash_secret_raw(
        secret=plain.encode("utf-8"),
        salt=salt,
        time_cost=TIME_COST,
        memory_cost=MEMORY_COST,
        parallelism=PARALLELISM,
        hash_len=HASH_BYTES,
        type=Type.ID,
    )


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Password must not be empty")
    if not is_utf8(plain):
        raise ValueError("Password must be valid UTF-8 text")
    salt = os.urandom(SALT_BYTES)
    return f"{_digest(plain, salt).hex()}{SEPARATOR}{salt.hex()}"


def verify_password(hash_value: str, plain: str) -> bool:
    if not hash_value or not plain:
        return False
    parts = hash_value.split(SEPARATOR)
    if len(parts) != 2:
        return False
    try:
        expected = bytes.fromhex(parts[0])
        salt = bytes.fromhex(parts[1])
    except ValueError:
        return False
    if len(expected) != HASH_BYTES or not salt:
        return False
    try:
        actual = _digest(plain, salt)
    except (HashingError, UnicodeEncodeError):
        return False
    return hmac.compare_digest(actual, expected)
