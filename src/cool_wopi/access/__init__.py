# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Inbound request verification: WOPI proof signatures and timestamps."""

from .keys import dump_capi_blob, load_proof_key
from .proof import (
    ALLOWED_PROOF_PAIRS,
    AccessResult,
    ProofRequest,
    ProofRole,
    WopiProofChecker,
    build_proof_subject,
    verify_signature,
)

__all__ = [
    "ALLOWED_PROOF_PAIRS",
    "AccessResult",
    "ProofRequest",
    "ProofRole",
    "WopiProofChecker",
    "build_proof_subject",
    "dump_capi_blob",
    "load_proof_key",
    "verify_signature",
]
