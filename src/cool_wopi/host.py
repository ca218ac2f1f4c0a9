# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Host-side collaborators of the WOPI engine.

The engine never touches the host's content or user model directly. It
works through three narrow async interfaces:

    DocumentStorage: load a document, persist a new revision
    UserDirectory: load a user
    AccessOracle: view/edit/admin decisions

In-memory implementations are provided for embedding, demos and tests.
A real host plugs in its own objects with the same methods.

Example:
    ::

        storage = InMemoryDocumentStorage()
        storage.add(Document(id="1", filename="a.odt", content=b"...",
                             mimetype="application/vnd.oasis.opendocument.text",
                             owner_id="u1", mtime=time.time()))
        users = InMemoryUserDirectory([User(id="u1", display_name="Ada")])
        oracle = StaticAccessOracle(editors={"u1"})
        proxy = WopiProxy(config, storage=storage, users=users, oracle=oracle)
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Protocol


@dataclass(frozen=True)
class Document:
    """A single revision of a host document.

    Attributes:
        id: Host document identifier.
        filename: File name shown to the user.
        content: Raw bytes.
        mimetype: Recorded MIME type.
        owner_id: Identifier of the owning user.
        mtime: Last modification time, Unix seconds.
        revision: Revision counter, starting at 1.
        revision_author_id: User who created this revision.
        revision_log: Reason recorded with this revision.
    """

    id: str
    filename: str
    content: bytes
    mimetype: str
    owner_id: str
    mtime: float
    revision: int = 1
    revision_author_id: str | None = None
    revision_log: str = ""

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class User:
    """A host user as seen by the WOPI engine."""

    id: str
    display_name: str
    email: str | None = None
    avatar_url: str | None = None
    is_anonymous: bool = False


class DocumentStorage(Protocol):
    async def load(self, document_id: str) -> Document | None: ...

    async def save_revision(
        self, document_id: str, content: bytes, author_id: str, message: str
    ) -> Document: ...


class UserDirectory(Protocol):
    async def load(self, user_id: str) -> User | None: ...


class AccessOracle(Protocol):
    async def can_view(self, user: User, document: Document) -> bool: ...

    async def can_edit(self, user: User, document: Document) -> bool: ...

    async def is_admin(self, user: User) -> bool: ...


class InMemoryDocumentStorage:
    """Dict-backed DocumentStorage keeping every revision."""

    def __init__(self, time_func: Callable[[], float] = time.time):
        self._time = time_func
        self._revisions: dict[str, list[Document]] = {}

    def add(self, document: Document) -> Document:
        self._revisions[document.id] = [document]
        return document

    async def load(self, document_id: str) -> Document | None:
        revisions = self._revisions.get(document_id)
        return revisions[-1] if revisions else None

    async def save_revision(
        self, document_id: str, content: bytes, author_id: str, message: str
    ) -> Document:
        """Append a revision keeping filename, mimetype and owner.

        Raises:
            KeyError: Unknown document.
        """
        current = self._revisions[document_id][-1]
        revision = replace(
            current,
            content=content,
            mtime=self._time(),
            revision=current.revision + 1,
            revision_author_id=author_id,
            revision_log=message,
        )
        self._revisions[document_id].append(revision)
        return revision

    def revisions(self, document_id: str) -> list[Document]:
        return list(self._revisions.get(document_id, []))


class InMemoryUserDirectory:
    """Dict-backed UserDirectory."""

    def __init__(self, users: Iterable[User] = ()):
        self._users = {user.id: user for user in users}

    def add(self, user: User) -> User:
        self._users[user.id] = user
        return user

    async def load(self, user_id: str) -> User | None:
        return self._users.get(user_id)


class StaticAccessOracle:
    """Permission sets fixed at construction.

    Owners can always edit their documents. When ``viewers`` is None every
    known user may view.
    """

    def __init__(
        self,
        editors: Iterable[str] = (),
        viewers: Iterable[str] | None = None,
        admins: Iterable[str] = (),
    ):
        self.editors = set(editors)
        self.viewers = None if viewers is None else set(viewers)
        self.admins = set(admins)

    async def can_view(self, user: User, document: Document) -> bool:
        if self.viewers is None:
            return True
        return user.id in self.viewers or await self.can_edit(user, document)

    async def can_edit(self, user: User, document: Document) -> bool:
        return user.id in self.editors or user.id == document.owner_id

    async def is_admin(self, user: User) -> bool:
        return user.id in self.admins


__all__ = [
    "AccessOracle",
    "Document",
    "DocumentStorage",
    "InMemoryDocumentStorage",
    "InMemoryUserDirectory",
    "StaticAccessOracle",
    "User",
    "UserDirectory",
]
