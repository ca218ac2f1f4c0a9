# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Settings entity: storage of Collabora Online settings files."""

from .store import SETTINGS_TYPES, SettingsFileId, SettingsStore
from .table import SettingsContentTable, SettingsStampsTable

__all__ = [
    "SETTINGS_TYPES",
    "SettingsContentTable",
    "SettingsFileId",
    "SettingsStampsTable",
    "SettingsStore",
]
