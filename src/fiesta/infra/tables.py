# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SQLAlchemy table definitions (created idempotently at startup)."""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

from fiesta.core.utils import utcnow

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("id", Integer, primary_key=True),
    Column("username", String(255), unique=True, nullable=False),
    # canon_username(username), the case-insensitive uniqueness key
    Column("username_key", String(255), unique=True, nullable=False),
    Column("password", Text, nullable=False),
    Column("is_admin", Boolean, nullable=False, default=False),
)

sessions = Table(
    "sessions", metadata,
    Column("token", String(128), primary_key=True),
    Column("account_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("expires_at", DateTime, nullable=False, index=True),
)

# Single-row sentinel written in the same transaction as the bootstrap admin.
setup_lock = Table(
    "setup_lock", metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("completed_at", DateTime, nullable=False, default=utcnow),
)

events = Table(
    "events", metadata,
    Column("id", Integer, primary_key=True),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("date", Text, nullable=False),
    Column("time", Text, nullable=False),
    Column("location", Text, nullable=False),
    Column("category", Text, nullable=False),
    Column("image", Text, nullable=False),
    Column("presenter", Text, nullable=False),
    Column("presenter_image", Text),
    Column("is_featured", Boolean, nullable=False, default=False),
    Column("registration_link", Text),
    Column("created_at", DateTime, nullable=False, default=utcnow),
)

wiki_articles = Table(
    "wiki_articles", metadata,
    Column("id", Integer, primary_key=True),
    Column("title", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column("category", Text, nullable=False),
    Column("icon", Text, nullable=False),
    Column("is_featured", Boolean, nullable=False, default=False),
    Column("created_at", DateTime, nullable=False, default=utcnow),
)

settings = Table(
    "settings", metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("carnival_date", Text, nullable=False),
    Column("contact_email", Text, nullable=False),
    Column("contact_phone", Text, nullable=False),
    Column("social_facebook", Text, nullable=False),
    Column("social_twitter", Text, nullable=False),
    Column("social_instagram", Text, nullable=False),
    Column("social_youtube", Text, nullable=False),
    Column("contact_mail", Text, nullable=False),
    Column("social_links", JSON, nullable=False),
    Column("contact_info", JSON, nullable=False),
    Column("website_settings", JSON, nullable=False),
    Column("navbar_settings", JSON, nullable=False),
    Column("footer_settings", JSON, nullable=False),
    Column("countdown_settings", JSON, nullable=False),
)

SETTINGS_COLUMNS = [c.name for c in settings.columns if c.name != "id"]
