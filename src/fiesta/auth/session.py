# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import secrets
from typing import Optional

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

SESSION_SALT = "fiesta.session.v1"


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


def _serializer(secret: str) -> URLSafeTimedSerializer:
    if not secret:
        raise RuntimeError("Missing secret key for session cookies")
    return URLSafeTimedSerializer(secret_key=secret, salt=SESSION_SALT)


def sign_session(token: str, *, secret: str) -> str:
    """Wrap an opaque session token into a tamper-evident cookie value."""
    return _serializer(secret).dumps({"t": token})


def unsign_session(value: str, *, secret: str, max_age: int) -> Optional[str]:
    if not value:
        return None
    try:
        data = _serializer(secret).loads(value, max_age=max_age)
    except (BadSignature, BadTimeSignature):
        return None
    token = (data or {}).get("t") if isinstance(data, dict) else None
    token = str(token or "").strip()
    return token or None
