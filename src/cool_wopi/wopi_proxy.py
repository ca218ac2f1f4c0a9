# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Main WopiProxy class: WOPI protocol implementation.

WopiProxy extends WopiServerBase with the WOPI operation handlers:

    CheckFileInfo  GET  /wopi/files/{id}
    GetFile        GET  /wopi/files/{id}/contents
    PutFile        POST /wopi/files/{id}/contents

plus the settings extension and the editor launch used by the host UI.

Every handler authenticates first: the ``access_token`` is decoded, its
document id must equal the one in the path, and both user and document
must exist. Failures are raised as typed exceptions (AccessDeniedError,
NotFoundError, ConflictError, CollaboraNotAvailableError); the interface
layer translates them into HTTP responses.

Usage:
    proxy = WopiProxy(
        config=WopiConfig(server_url="https://collabora.example.com", jwt_secret="..."),
        storage=my_storage,
        users=my_users,
        oracle=my_oracle,
    )
    app = proxy.api
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote, urlsplit

from .entities.settings import SettingsFileId
from .exceptions import (
    AccessDeniedError,
    CollaboraJwtKeyError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from .host import (
    AccessOracle,
    Document,
    DocumentStorage,
    InMemoryDocumentStorage,
    InMemoryUserDirectory,
    StaticAccessOracle,
    User,
    UserDirectory,
)
from .tokens import AccessToken
from .wopi_base import WopiServerBase
from .wopi_config import WopiConfig

logger = logging.getLogger(__name__)

SAVE_REASON_BASE = "Saved by Collabora Online"

READ_ONLY_MIMETYPES = frozenset(
    {
        "application/x-iwork-keynote-sffkey",
        "application/x-iwork-pages-sffpages",
        "application/x-iwork-numbers-sffnumbers",
    }
)
"""Formats Collabora Online can open but not save back."""

_OFFSET_NO_COLON = re.compile(r"([+-]\d{2})(\d{2})$")


def format_wopi_time(timestamp: float) -> str:
    """ISO-8601 UTC representation at second precision."""
    return datetime.fromtimestamp(math.floor(timestamp), tz=timezone.utc).isoformat()


def parse_wopi_time(value: str) -> float | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _OFFSET_NO_COLON.sub(r"\1:\2", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def save_reason(modified_by_user: bool, autosave: bool, exit_save: bool) -> str:
    """Revision log message for a save coming from the editor."""
    reasons = [
        label
        for flag, label in (
            (modified_by_user, "Modified by user"),
            (autosave, "Autosaved"),
            (exit_save, "Save on Exit"),
        )
        if flag
    ]
    if not reasons:
        return SAVE_REASON_BASE
    return f"{SAVE_REASON_BASE} ({', '.join(reasons)})"


@dataclass(frozen=True)
class WopiContext:
    """Authenticated state of one WOPI request."""

    token: AccessToken
    user: User
    document: Document


@dataclass(frozen=True)
class FileContent:
    """GetFile result."""

    content: bytes
    mimetype: str
    filename: str


class WopiProxy(WopiServerBase):
    """WOPI protocol service.

    Attributes:
        config: WopiConfig instance
        storage: DocumentStorage collaborator
        users: UserDirectory collaborator
        oracle: AccessOracle collaborator
    """

    def __init__(
        self,
        config: WopiConfig | None = None,
        *,
        storage: DocumentStorage | None = None,
        users: UserDirectory | None = None,
        oracle: AccessOracle | None = None,
        **kwargs: Any,
    ):
        """Initialize WopiProxy.

        Args:
            config: WopiConfig instance. If None, creates default.
            storage: Host document storage. Defaults to an empty in-memory one.
            users: Host user directory. Defaults to an empty in-memory one.
            oracle: Host permission oracle. Defaults to owner-only editing.
            **kwargs: Forwarded to WopiServerBase (key_source, time_func, ...).
        """
        super().__init__(config, **kwargs)
        self.storage = storage if storage is not None else InMemoryDocumentStorage(self._time)
        self.users = users if users is not None else InMemoryUserDirectory()
        self.oracle = oracle if oracle is not None else StaticAccessOracle()
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    async def start(self) -> None:
        """Initialize the database and begin accepting requests."""
        await self.init()
        self._active = True
        logger.info(f"WopiProxy '{self.config.instance_name}' started")

    async def stop(self) -> None:
        """Close the database connection."""
        self._active = False
        await self.close()
        logger.info(f"WopiProxy '{self.config.instance_name}' stopped")

    # -------------------------------------------------------------------------
    # Access tokens
    # -------------------------------------------------------------------------

    def issue_access_token(
        self, document_id: str, user_id: str, can_write: bool
    ) -> tuple[str, float]:
        """Sign a token for one document and user.

        Returns:
            (token, expire_timestamp)

        Raises:
            CollaboraJwtKeyError: No signing secret configured.
        """
        expire = self._time() + self.config.effective_token_ttl
        claims = {"fid": str(document_id), "uid": str(user_id), "wri": bool(can_write)}
        return self.transcoder.encode(claims, expire), expire

    def decode_access_token(self, access_token: str) -> AccessToken | None:
        """Verify a token and validate its claims. None when unusable."""
        return AccessToken.from_claims(self.transcoder.decode(access_token))

    async def authenticate(self, file_id: str, access_token: str | None) -> WopiContext:
        """Resolve token, user and document for a file request.

        Raises:
            AccessDeniedError: Missing, invalid or mismatched token, or unknown user.
            NotFoundError: Unknown document.
            CollaboraJwtKeyError: No signing secret configured.
        """
        if not access_token:
            raise AccessDeniedError("Missing access token.", status_code=401)
        token = self.decode_access_token(access_token)
        if token is None:
            raise AccessDeniedError("Authentication failed.")
        if token.document_id != file_id:
            raise AccessDeniedError("The access token does not match the requested file.")
        user = await self.users.load(token.user_id)
        if user is None:
            raise AccessDeniedError("User not found.")
        document = await self.storage.load(file_id)
        if document is None:
            raise NotFoundError(f"Document '{file_id}' not found.")
        return WopiContext(token=token, user=user, document=document)

    async def _require_write(self, ctx: WopiContext) -> None:
        if not await self.oracle.can_edit(ctx.user, ctx.document):
            logger.warning(
                f"Token and user permissions do not match. "
                f"user={ctx.user.id} document={ctx.document.id}"
            )
            raise AccessDeniedError("Token and user permissions do not match.")

    # -------------------------------------------------------------------------
    # WOPI protocol handlers
    # -------------------------------------------------------------------------

    async def check_file_info(self, file_id: str, access_token: str | None) -> dict[str, Any]:
        """WOPI CheckFileInfo: file metadata and the caller's capabilities."""
        ctx = await self.authenticate(file_id, access_token)
        can_write = ctx.token.can_write
        if can_write:
            await self._require_write(ctx)

        user, document = ctx.user, ctx.document
        extra_info: dict[str, Any] = {"mail": user.email}
        if user.avatar_url:
            extra_info["avatar"] = user.avatar_url

        return {
            "BaseFileName": document.filename,
            "Size": document.size,
            "LastModifiedTime": format_wopi_time(document.mtime),
            "OwnerId": document.owner_id,
            "UserId": user.id,
            "UserFriendlyName": user.display_name,
            "UserExtraInfo": extra_info,
            "UserCanWrite": can_write,
            "IsAdminUser": await self.oracle.is_admin(user),
            "IsAnonymousUser": user.is_anonymous,
        }

    async def get_file(self, file_id: str, access_token: str | None) -> FileContent:
        """WOPI GetFile: raw bytes with the recorded MIME type."""
        ctx = await self.authenticate(file_id, access_token)
        document = ctx.document
        return FileContent(document.content, document.mimetype, document.filename)

    async def put_file(
        self,
        file_id: str,
        access_token: str | None,
        content: bytes,
        wopi_timestamp: str | None = None,
        modified_by_user: bool = False,
        autosave: bool = False,
        exit_save: bool = False,
    ) -> dict[str, Any]:
        """WOPI PutFile: store a new revision.

        Args:
            file_id: Document id from the path.
            access_token: Token from the query string.
            content: New document bytes.
            wopi_timestamp: X-COOL-WOPI-Timestamp, the modification time the
                editor loaded. When given it must match the stored one to
                the second.
            modified_by_user: X-COOL-WOPI-IsModifiedByUser.
            autosave: X-COOL-WOPI-IsAutosave.
            exit_save: X-COOL-WOPI-IsExitSave.

        Returns:
            ``{"LastModifiedTime": ...}`` of the new revision.

        Raises:
            ConflictError: The document changed since the editor loaded it.
        """
        ctx = await self.authenticate(file_id, access_token)
        if not ctx.token.can_write:
            raise AccessDeniedError("The access token does not grant write access.")
        await self._require_write(ctx)

        document = ctx.document
        if wopi_timestamp:
            loaded = parse_wopi_time(wopi_timestamp)
            if loaded is None or math.floor(loaded) != math.floor(document.mtime):
                logger.info(
                    f"Save conflict on document '{file_id}': editor has {wopi_timestamp}, "
                    f"storage has {format_wopi_time(document.mtime)}"
                )
                raise ConflictError(f"Document '{file_id}' was modified in the meantime.")

        reason = save_reason(modified_by_user, autosave, exit_save)
        revision = await self.storage.save_revision(document.id, content, ctx.user.id, reason)
        logger.info(f"Document '{file_id}' saved by user '{ctx.user.id}': {reason}")
        return {"LastModifiedTime": format_wopi_time(revision.mtime)}

    # -------------------------------------------------------------------------
    # Settings extension
    # -------------------------------------------------------------------------

    def settings_file_uri(self, file_id: str) -> str:
        """URL Collabora Online uses to download a settings file."""
        return f"{self.config.wopi_base.rstrip('/')}/wopi/settings/file?fileId={quote(file_id, safe='/')}"

    async def authenticate_settings(self, access_token: str | None) -> tuple[AccessToken, User]:
        """Resolve token and user for a settings request.

        Raises:
            AccessDeniedError: Missing or bad token, key problem, unknown user.
        """
        if not access_token:
            raise AccessDeniedError("Missing access token.", status_code=401)
        try:
            token = self.decode_access_token(access_token)
        except CollaboraJwtKeyError as e:
            logger.warning(f"A token cannot be decoded: {e}")
            raise AccessDeniedError("Token verification is not possible right now.") from e
        if token is None:
            raise AccessDeniedError("Bad token")
        user = await self.users.load(token.user_id)
        if user is None:
            raise AccessDeniedError("User not found.")
        return token, user

    async def settings_info(
        self, access_token: str | None, settings_type: str | None
    ) -> dict[str, Any]:
        """List settings files of a type, grouped by category."""
        await self.authenticate_settings(access_token)
        if not settings_type:
            raise AccessDeniedError("Missing type.")
        stamps = await self.settings.list_type(settings_type)
        result: dict[str, Any] = {"kind": settings_type}
        for file_id, stamp in stamps.items():
            category = SettingsFileId.parse(file_id).category
            result.setdefault(category, []).append(
                {"stamp": stamp, "uri": self.settings_file_uri(file_id)}
            )
        return result

    async def settings_read(self, access_token: str | None, file_id: str) -> bytes:
        """Content of one settings file."""
        await self.authenticate_settings(access_token)
        SettingsFileId.parse(file_id)
        content = await self.settings.read(file_id)
        if content is None:
            raise NotFoundError(f"Settings file '{file_id}' not found.")
        return content

    async def settings_upload(
        self, access_token: str | None, file_id: str, content: bytes
    ) -> dict[str, Any]:
        """Store a settings file sent by Collabora Online."""
        _token, user = await self.authenticate_settings(access_token)
        parsed = SettingsFileId.parse(file_id)
        if parsed.type == "systemconfig" and not await self.oracle.is_admin(user):
            raise AccessDeniedError("Only administrators can change shared settings.")
        stamp = await self.settings.write(file_id, content)
        logger.debug(f"Settings upload '{file_id}' ({len(content)} bytes) by user '{user.id}'")
        return {
            "status": "success",
            "filename": parsed.filename,
            "details": {"stamp": stamp, "uri": self.settings_file_uri(file_id)},
        }

    # -------------------------------------------------------------------------
    # Editor launch
    # -------------------------------------------------------------------------

    async def launch_editor(
        self, document_id: str, user_id: str, edit: bool = False
    ) -> dict[str, Any]:
        """Build the editor URL and access token for embedding.

        Raises:
            NotFoundError: Unknown document.
            AccessDeniedError: Unknown user or missing permission.
            InvalidRequestError: The editor does not handle the document type,
                or its url scheme differs from ``wopi_base``.
            CollaboraNotAvailableError: Discovery cannot be loaded.
        """
        document = await self.storage.load(document_id)
        if document is None:
            raise NotFoundError(f"Document '{document_id}' not found.")
        user = await self.users.load(user_id)
        if user is None:
            raise AccessDeniedError("User not found.")
        if not await self.oracle.can_view(user, document):
            raise AccessDeniedError("The user cannot view this document.")
        if edit and not await self.oracle.can_edit(user, document):
            raise AccessDeniedError("The user cannot edit this document.")

        can_write = edit and document.mimetype not in READ_ONLY_MIMETYPES
        discovery = await self.discovery.get_discovery()
        action = "edit" if can_write else "view"
        urlsrc = discovery.get_client_url(document.mimetype, action)
        if urlsrc is None:
            urlsrc = discovery.get_client_url(document.mimetype)
        if urlsrc is None:
            raise InvalidRequestError(
                f"The Collabora Online editor is not available for '{document.mimetype}' files."
            )

        wopi_base = self.config.wopi_base.rstrip("/")
        host_scheme = urlsplit(wopi_base).scheme
        if urlsplit(urlsrc).scheme != host_scheme:
            logger.error(
                f"This host uses the '{host_scheme}' url scheme, "
                f"but the Collabora client url is '{urlsrc}'."
            )
            raise InvalidRequestError("Viewer error: Protocol mismatch.")

        token, expire = self.issue_access_token(document.id, user.id, can_write)
        wopi_src = f"{wopi_base}/wopi/files/{quote(document.id, safe='')}"
        separator = "" if urlsrc.endswith(("?", "&")) else ("&" if "?" in urlsrc else "?")
        return {
            "url": f"{urlsrc}{separator}WOPISrc={quote(wopi_src, safe='')}",
            "access_token": token,
            "access_token_ttl": int(expire * 1000),
            "can_write": can_write,
        }


__all__ = [
    "READ_ONLY_MIMETYPES",
    "FileContent",
    "WopiContext",
    "WopiProxy",
    "format_wopi_time",
    "parse_wopi_time",
    "save_reason",
]
