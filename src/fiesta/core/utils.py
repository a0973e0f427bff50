# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every store persists."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def canon_username(s: str) -> str:
    """Canonicalise usernames for uniqueness checks (trim + lower)."""
    return (s or "").strip().lower()


def is_utf8(s: str) -> bool:
    """False for strings holding lone surrogates, which valid JSON can carry."""
    try:
        s.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True
