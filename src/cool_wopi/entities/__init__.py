# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Entity packages.

Each subpackage may contain:
    table.py: Table classes registered on the proxy database
    endpoint.py: one BaseEndpoint subclass exposed as API routes and CLI commands
"""
