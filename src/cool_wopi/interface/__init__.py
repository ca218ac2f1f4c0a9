# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Interface layer for API and CLI.

Components:
    BaseEndpoint: Base class for all endpoint definitions.
    create_app: FastAPI application factory.
    register_api_endpoint: Register endpoint as FastAPI routes.
    register_cli_endpoint: Register endpoint as Click commands.

Note:
    Admin routes and commands are generated from endpoint method
    signatures. WOPI protocol routes are declared explicitly in
    api_base because their shape is fixed by the protocol.
"""

from .api_base import create_app
from .api_base import register_endpoint as register_api_endpoint
from .cli_base import register_endpoint as register_cli_endpoint
from .endpoint_base import POST, BaseEndpoint

__all__ = [
    "BaseEndpoint",
    "POST",
    "create_app",
    "register_api_endpoint",
    "register_cli_endpoint",
]
