# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the async SQL layer."""

import asyncio
import sqlite3

import pytest

from cool_wopi.sql import Blob, SqlDb, SqliteAdapter, String, Table, get_adapter


class NotesTable(Table):
    name = "notes"
    pkey = "id"

    def configure(self) -> None:
        c = self.columns
        c.column("id", String)
        c.column("body", Blob, nullable=False)
        c.column("tag", String)


@pytest.fixture
async def db():
    db = SqlDb(":memory:")
    db.add_table(NotesTable)
    await db.connect()
    await db.check_structure()
    yield db
    await db.close()


class TestGetAdapter:
    """Tests for get_adapter."""

    def test_plain_path(self):
        adapter = get_adapter("/tmp/x.db")
        assert isinstance(adapter, SqliteAdapter)
        assert adapter.path == "/tmp/x.db"

    def test_sqlite_prefix(self):
        assert get_adapter("sqlite:/tmp/x.db").path == "/tmp/x.db"

    def test_postgres_rejected(self):
        with pytest.raises(ValueError, match="Only SQLite"):
            get_adapter("postgresql://localhost/db")


class TestSqlDb:
    """Tests for table registration, upsert and transactions."""

    def test_table_lookup(self):
        db = SqlDb(":memory:")
        db.add_table(NotesTable)
        assert isinstance(db.table("notes"), NotesTable)
        with pytest.raises(ValueError, match="not registered"):
            db.table("missing")

    def test_table_without_name(self):
        class Nameless(Table):
            def configure(self) -> None:
                pass

        with pytest.raises(ValueError, match="must define 'name'"):
            SqlDb(":memory:").add_table(Nameless)

    async def test_not_connected(self):
        db = SqlDb(":memory:")
        with pytest.raises(RuntimeError, match="not connected"):
            await db.fetch_one("SELECT 1")

    async def test_upsert_and_select_one(self, db):
        notes = db.table("notes")
        await notes.upsert({"id": "a", "body": b"one", "tag": "x"})
        row = await notes.select_one(where={"id": "a"})
        assert row == {"id": "a", "body": b"one", "tag": "x"}
        assert await notes.select_one(where={"id": "missing"}) is None

    async def test_upsert_replaces(self, db):
        notes = db.table("notes")
        await notes.upsert({"id": "a", "body": b"one"})
        await notes.upsert({"id": "a", "body": b"two"})
        rows = await db.fetch_all('SELECT body FROM "notes"')
        assert [r["body"] for r in rows] == [b"two"]

    async def test_not_null_column(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            await db.table("notes").upsert({"id": "a", "body": None})

    async def test_transaction_commits(self, db):
        notes = db.table("notes")
        async with db.transaction():
            await notes.upsert({"id": "a", "body": b"x"})
            await notes.upsert({"id": "b", "body": b"y"})
        assert len(await db.fetch_all('SELECT id FROM "notes"')) == 2

    async def test_transaction_rolls_back(self, db):
        notes = db.table("notes")
        with pytest.raises(RuntimeError):
            async with db.transaction():
                await notes.upsert({"id": "a", "body": b"x"})
                raise RuntimeError("boom")
        assert await db.fetch_all('SELECT id FROM "notes"') == []

    async def test_reads_inside_own_transaction(self, db):
        notes = db.table("notes")
        async with db.transaction():
            await notes.upsert({"id": "a", "body": b"x"})
            assert (await notes.select_one(where={"id": "a"}))["body"] == b"x"

    async def test_reader_waits_for_other_transaction(self, db):
        notes = db.table("notes")
        await notes.upsert({"id": "a", "body": b"old", "tag": "1"})
        async with db.transaction():
            await notes.upsert({"id": "a", "body": b"new", "tag": "1"})
            reader = asyncio.create_task(notes.select_one(where={"id": "a"}))
            await asyncio.sleep(0.05)
            assert not reader.done()
            await notes.upsert({"id": "a", "body": b"new", "tag": "2"})
        row = await reader
        assert (row["body"], row["tag"]) == (b"new", "2")
