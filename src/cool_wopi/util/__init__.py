# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Small pure helpers shared across cool_wopi."""

from .dotnet_time import EPOCH_OFFSET, TICKS_PER_SECOND, seconds_to_ticks, ticks_to_seconds

__all__ = ["EPOCH_OFFSET", "TICKS_PER_SECOND", "seconds_to_ticks", "ticks_to_seconds"]
