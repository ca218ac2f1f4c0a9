# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Access token encoding and verification."""

from .access_token import AccessToken
from .key_source import ConfigKeySource, KeySource, StaticKeySource
from .transcoder import ALGORITHM, JwtTranscoder

__all__ = [
    "ALGORITHM",
    "AccessToken",
    "ConfigKeySource",
    "JwtTranscoder",
    "KeySource",
    "StaticKeySource",
]
