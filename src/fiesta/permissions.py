# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional

from fastapi import Request

from fiesta.auth.flow import whoami
from fiesta.config import AppConfig
from fiesta.errors import Forbidden, Unauthorized
from fiesta.infra.storage import Account, Storage


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def load_user_from_request(request: Request) -> Optional[Account]:
    config = get_config(request)
    value = request.cookies.get(config.cookie_name, "")
    if not value:
        return None
    return whoami(
        get_storage(request),
        value,
        secret=config.secret_key,
        max_age=config.session_max_age,
    )


def current_user_optional(request: Request) -> Optional[Account]:
    """Identity resolved by the middleware for this request."""
    return getattr(request.state, "user", None)


def require_user(request: Request) -> Account:
    u = current_user_optional(request)
    if u is None:
        raise Unauthorized()
    return u


def require_admin(request: Request) -> Account:
    u = require_user(request)
    if not u.is_admin:
        raise Forbidden()
    return u


def cookie_settings(config: AppConfig) -> dict:
    return {"httponly": True, "samesite": "lax", "secure": config.cookie_secure}
