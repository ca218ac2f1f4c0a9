# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Typed access token claims.

Claim names are kept short on the wire:
    fid: document id
    uid: user id
    wri: write permission
    exp: expiry (Unix seconds, may be fractional)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

logger = logging.getLogger(__name__)


class AccessToken(BaseModel):
    """Validated payload of a decoded access token."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    fid: str
    uid: str
    wri: bool = False
    exp: float

    @field_validator("fid", "uid", mode="before")
    @classmethod
    def _ids_as_strings(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def document_id(self) -> str:
        return self.fid

    @property
    def user_id(self) -> str:
        return self.uid

    @property
    def can_write(self) -> bool:
        return self.wri

    @classmethod
    def from_claims(cls, claims: dict[str, Any] | None) -> AccessToken | None:
        """Build from decoded claims, or None if they do not match the schema."""
        if claims is None:
            return None
        try:
            return cls.model_validate(claims)
        except ValidationError as e:
            logger.warning(f"Access token payload rejected: {e.error_count()} invalid field(s)")
            return None

    def payload(self) -> dict[str, Any]:
        """Claims to sign, without ``exp`` (the transcoder injects it)."""
        return {"fid": self.fid, "uid": self.uid, "wri": self.wri}


__all__ = ["AccessToken"]
