# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception taxonomy for the WOPI protocol engine.

Components raise these typed failures; only the FastAPI exception handlers
in ``cool_wopi.interface.api_base`` translate them into wire responses.

Hierarchy:
    WopiError
        CollaboraNotAvailableError: upstream or configuration failure
            CollaboraJwtKeyError: signing secret absent or unusable
        AccessDeniedError: authentication, authorization or proof failure
        NotFoundError: referenced document is missing
        ConflictError: save timestamp does not match the stored document
        InvalidRequestError: malformed request parameters
"""

from __future__ import annotations

COOL_STATUS_DOC_CHANGED = 1010
"""COOLStatusCode answered on a save conflict."""


class WopiError(Exception):
    """Base class for all errors raised by cool_wopi."""


class CollaboraNotAvailableError(WopiError):
    """Collabora Online, or the configuration needed to reach it, is unusable.

    The message carries full diagnostic context for the server log. It is
    never sent to the client verbatim.
    """


class CollaboraJwtKeyError(CollaboraNotAvailableError):
    """The secret used to sign access tokens is missing or invalid."""


class AccessDeniedError(WopiError):
    """Request denied. The reason is safe to disclose to WOPI clients.

    Attributes:
        reason: Human readable denial reason.
        status_code: HTTP status to answer with (401 or 403).
    """

    def __init__(self, reason: str, status_code: int = 403):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class NotFoundError(WopiError):
    """A document referenced by the request does not exist."""


class ConflictError(WopiError):
    """The document changed since the editor loaded it."""

    status_code = 409
    cool_status_code = COOL_STATUS_DOC_CHANGED


class InvalidRequestError(WopiError):
    """Request parameters are malformed."""


__all__ = [
    "COOL_STATUS_DOC_CHANGED",
    "AccessDeniedError",
    "CollaboraJwtKeyError",
    "CollaboraNotAvailableError",
    "ConflictError",
    "InvalidRequestError",
    "NotFoundError",
    "WopiError",
]
