# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Password hashing/verification (argon2id, ``digest.salt`` hex form)
- Opaque session tokens carried in signed cookies (itsdangerous)
- The login/logout/whoami flow over the storage interface
"""
