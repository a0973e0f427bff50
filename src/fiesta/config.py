# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

MEMORY_URL = "memory://"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class AppConfig:
    """Process-wide configuration, read once at startup."""

    database_url: str = "sqlite:///./fiesta.db"
    environment: str = "development"
    secret_key: str = ""
    cookie_name: str = "fiesta_session"
    session_max_age: int = 7 * 24 * 3600
    cookie_secure: bool = False
    static_dir: str = ""

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_starttls: bool = True
    smtp_timeout: float = 10.0
    mail_from: str = "Science Carnival <noreply@sciencecarnival.edu>"

    db_connect_attempts: int = 3
    db_connect_delay: float = 2.0
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def uses_memory_store(self) -> bool:
        return self.database_url.startswith(MEMORY_URL)

    @classmethod
    def from_env(cls) -> "AppConfig":
        load_dotenv()

        environment = os.getenv("FIESTA_ENV", "development").strip().lower() or "development"
        production = environment == "production"

        secret = os.getenv("SECRET_KEY") or os.getenv("FIESTA_SECRET_KEY") or ""
        if not secret:
            if production:
                raise RuntimeError("Missing SECRET_KEY (or FIESTA_SECRET_KEY) in environment")
            secret = secrets.token_hex(32)
            logger.warning("No SECRET_KEY set; using a random key (sessions end on restart)")

        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            environment=environment,
            secret_key=secret,
            cookie_name=os.getenv("FIESTA_COOKIE_NAME", cls.cookie_name),
            session_max_age=int(os.getenv("FIESTA_SESSION_MAX_AGE", str(cls.session_max_age))),
            cookie_secure=_env_flag("FIESTA_COOKIE_SECURE", "true" if production else "false"),
            static_dir=os.getenv("FIESTA_STATIC_DIR", ""),
            smtp_host=os.getenv("FIESTA_SMTP_HOST", ""),
            smtp_port=int(os.getenv("FIESTA_SMTP_PORT", str(cls.smtp_port))),
            smtp_user=os.getenv("FIESTA_SMTP_USER", ""),
            smtp_password=os.getenv("FIESTA_SMTP_PASSWORD", ""),
            smtp_starttls=_env_flag("FIESTA_SMTP_STARTTLS", "true"),
            smtp_timeout=float(os.getenv("FIESTA_SMTP_TIMEOUT", str(cls.smtp_timeout))),
            mail_from=os.getenv("FIESTA_MAIL_FROM", cls.mail_from),
            db_connect_attempts=max(1, int(os.getenv("FIESTA_DB_CONNECT_ATTEMPTS", str(cls.db_connect_attempts)))),
            db_connect_delay=float(os.getenv("FIESTA_DB_CONNECT_DELAY", str(cls.db_connect_delay))),
            log_level=os.getenv("FIESTA_LOG_LEVEL", cls.log_level).upper(),
        )
