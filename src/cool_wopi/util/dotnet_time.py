# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Conversion between Unix timestamps and .NET ticks.

Collabora Online sends ``X-WOPI-Timestamp`` as a .NET tick count: the number
of 100-nanosecond intervals elapsed since 0001-01-01T00:00:00Z.

Example:
    ::

        >>> ticks_to_seconds(621355968000000000)
        0.0
        >>> ticks_to_seconds(621355968015000000)
        1.5
"""

from __future__ import annotations

EPOCH_OFFSET = 621_355_968_000_000_000
"""Ticks between 0001-01-01 and 1970-01-01."""

TICKS_PER_SECOND = 10_000_000


def ticks_to_seconds(ticks: float) -> float:
    """Convert a .NET tick count to a Unix timestamp in seconds."""
    return (ticks - EPOCH_OFFSET) / TICKS_PER_SECOND


def seconds_to_ticks(seconds: float) -> float:
    """Convert a Unix timestamp in seconds to a .NET tick count."""
    return seconds * TICKS_PER_SECOND + EPOCH_OFFSET


__all__ = ["EPOCH_OFFSET", "TICKS_PER_SECOND", "seconds_to_ticks", "ticks_to_seconds"]
