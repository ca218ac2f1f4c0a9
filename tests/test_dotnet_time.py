# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for .NET tick conversion."""

from cool_wopi.util import EPOCH_OFFSET, TICKS_PER_SECOND, seconds_to_ticks, ticks_to_seconds


class TestTicksToSeconds:
    """Tests for ticks_to_seconds."""

    def test_unix_epoch(self):
        """The tick offset maps to Unix time zero."""
        assert ticks_to_seconds(EPOCH_OFFSET) == 0.0

    def test_fractional_second(self):
        """Ticks below one second give a fractional result."""
        assert ticks_to_seconds(EPOCH_OFFSET + 15_000_000) == 1.5

    def test_before_epoch_is_negative(self):
        assert ticks_to_seconds(EPOCH_OFFSET - TICKS_PER_SECOND) == -1.0

    def test_known_date(self):
        """2021-01-01T00:00:00Z."""
        assert ticks_to_seconds(637_450_560_000_000_000) == 1_609_459_200.0


class TestSecondsToTicks:
    """Tests for seconds_to_ticks."""

    def test_zero(self):
        assert seconds_to_ticks(0) == EPOCH_OFFSET

    def test_whole_seconds_round_trip(self):
        """Whole seconds convert back without loss."""
        ticks = EPOCH_OFFSET + 1_609_459_200 * TICKS_PER_SECOND
        assert seconds_to_ticks(1_609_459_200) == ticks
        assert ticks_to_seconds(ticks) == 1_609_459_200
