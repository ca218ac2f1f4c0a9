# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""ASGI application entry point for uvicorn.

Configuration is read from WOPI_* environment variables.

Example:
    Run with uvicorn::

        uvicorn cool_wopi.server:app --host 0.0.0.0 --port 8000

    Or via CLI::

        cool-wopi serve --port 8000

Note:
    The application lifespan calls proxy.start() on startup and
    proxy.stop() on shutdown.
"""

from .wopi_config import wopi_config_from_env
from .wopi_proxy import WopiProxy

_proxy = WopiProxy(config=wopi_config_from_env())
app = _proxy.api
