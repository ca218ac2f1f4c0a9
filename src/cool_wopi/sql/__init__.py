# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Async SQL layer: SqlDb manager, Table base class and column types."""

from .adapters import DbAdapter, SqliteAdapter, get_adapter
from .sqldb import SqlDb
from .table import Blob, Column, Columns, String, Table

__all__ = [
    "Blob",
    "Column",
    "Columns",
    "DbAdapter",
    "SqlDb",
    "SqliteAdapter",
    "String",
    "Table",
    "get_adapter",
]
