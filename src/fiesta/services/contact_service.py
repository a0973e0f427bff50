# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Relay contact-form submissions to the site's inbox by e-mail."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape

from fiesta.config import AppConfig
from fiesta.core.schemas import ContactMessage

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

_ENV = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml", "html.j2"]),
)


def build_message(msg: ContactMessage, *, to_address: str, sender: str, site_title: str) -> EmailMessage:
    ctx: Dict[str, Any] = {**msg.model_dump(), "site_title": site_title}
    email = EmailMessage()
    email["From"] = sender
    email["To"] = to_address
    email["Reply-To"] = str(msg.email)
    email["Subject"] = f"Contact Form: {msg.subject}"
    email.set_content(_ENV.get_template("contact_email.txt.j2").render(**ctx))
    email.add_alternative(_ENV.get_template("contact_email.html.j2").render(**ctx), subtype="html")
    return email


def send_contact_message(
    msg: ContactMessage,
    *,
    to_address: str,
    config: AppConfig,
    site_title: str = "Science Carnival",
) -> bool:
    """Send the message; returns False when no SMTP server is configured.

    SMTP failures propagate (smtplib.SMTPException / OSError).
    """
    email = build_message(msg, to_address=to_address, sender=config.mail_from, site_title=site_title)
    if not config.smtp_host:
        logger.info("SMTP not configured; contact message from %s not delivered", msg.email)
        return False

    with smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=config.smtp_timeout) as smtp:
        if config.smtp_starttls:
            smtp.starttls()
        if config.smtp_user:
            smtp.login(config.smtp_user, config.smtp_password)
        smtp.send_message(email)
    logger.info("Contact message from %s relayed to %s", msg.email, to_address)
    return True
