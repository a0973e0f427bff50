# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Application error taxonomy.

Every error carries the HTTP status it maps to and a message that is safe to
show to the client. Store failures are classified separately by
``is_transient`` since they arrive as SQLAlchemy exceptions.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError


class FiestaError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or type(self).message
        super().__init__(self.message)


class ValidationError(FiestaError):
    status_code = 400
    message = "Invalid input"


class InvalidCredentials(FiestaError):
    status_code = 401
    message = "Invalid username or password"


class Unauthorized(FiestaError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(Unauthorized):
    status_code = 403
    message = "Forbidden"


class NotFound(FiestaError):
    status_code = 404
    message = "Not found"


class DuplicateUsername(FiestaError):
    status_code = 409
    message = "Username already exists"


class SetupAlreadyComplete(FiestaError):
    status_code = 400
    message = "Setup already completed"


class InfrastructureError(FiestaError):
    status_code = 503
    message = "Service temporarily unavailable, please try again later"


def is_transient(exc: BaseException) -> bool:
    """True for failures a client may retry (refused, timed out, DNS, dropped)."""
    if isinstance(exc, InfrastructureError):
        return True
    if isinstance(exc, (OperationalError, InterfaceError, PoolTimeoutError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, (ConnectionError, TimeoutError))
