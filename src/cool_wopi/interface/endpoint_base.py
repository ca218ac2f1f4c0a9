# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class for endpoint introspection and command dispatch.

Admin operations (editor launch, discovery inspection, instance status)
are written once as async methods on an endpoint class. The API and CLI
layers introspect those methods to build FastAPI routes and click
commands.

Components:
    POST: Decorator to mark methods as HTTP POST.
    BaseEndpoint: Base class with introspection capabilities.

Example:
    Define an endpoint::

        from cool_wopi.interface.endpoint_base import BaseEndpoint, POST

        class DiscoveryEndpoint(BaseEndpoint):
            name = "discovery"

            async def client_url(self, mimetype: str, action: str = "edit") -> dict:
                \"\"\"Look up the editor URL for a mime type.\"\"\"
                ...

            @POST
            async def refresh(self) -> dict:
                \"\"\"Drop the cached discovery.\"\"\"
                ...
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, get_type_hints

from pydantic import create_model

if TYPE_CHECKING:
    from ..wopi_proxy import WopiProxy

_ENTITIES_PACKAGE = "cool_wopi.entities"


def POST(method: Callable) -> Callable:
    """Decorator to mark an endpoint method as POST.

    POST methods receive parameters via JSON request body
    instead of query parameters.
    """
    method._http_post = True  # type: ignore[attr-defined]
    return method


class BaseEndpoint:
    """Base class for all endpoints with introspection capabilities.

    Attributes:
        name: Endpoint name used in URL paths and CLI groups.
        proxy: WopiProxy providing configuration and collaborators.
    """

    name: str = ""

    def __init__(self, proxy: WopiProxy):
        """Initialize endpoint with proxy reference.

        Args:
            proxy: WopiProxy the operations run against.
        """
        self.proxy = proxy

    def get_methods(self) -> list[tuple[str, Callable]]:
        """Return all public async methods for API/CLI generation."""
        methods = []
        for method_name in dir(self):
            if method_name.startswith("_"):
                continue
            method = getattr(self, method_name)
            if callable(method) and inspect.iscoroutinefunction(method):
                methods.append((method_name, method))
        return methods

    def get_http_method(self, method_name: str) -> str:
        """Return "POST" if decorated with @POST, otherwise "GET"."""
        method = getattr(self, method_name)
        if getattr(method, "_http_post", False):
            return "POST"
        return "GET"

    def resolve_hints(self, method_name: str) -> dict[str, Any]:
        """Resolved annotations of a method (empty if unresolvable)."""
        try:
            return get_type_hints(getattr(self, method_name))
        except (NameError, TypeError):
            return {}

    def create_request_model(self, method_name: str) -> type:
        """Create Pydantic model from method signature.

        Used by the API layer to validate POST bodies.
        """
        method = getattr(self, method_name)
        sig = inspect.signature(method)
        hints = self.resolve_hints(method_name)

        fields: dict[str, Any] = {}
        for param_name, param in sig.parameters.items():
            annotation = hints.get(param_name, param.annotation)
            if annotation is inspect.Parameter.empty:
                annotation = Any
            default = ... if param.default is inspect.Parameter.empty else param.default
            fields[param_name] = (annotation, default)

        model_name = f"{method_name.title().replace('_', '')}Request"
        return create_model(model_name, **fields)

    @classmethod
    def discover(cls) -> list[type[BaseEndpoint]]:
        """Autodiscover endpoint classes from ``entities/*/endpoint.py``."""
        endpoints: list[type[BaseEndpoint]] = []
        package = importlib.import_module(_ENTITIES_PACKAGE)
        for _, name, is_pkg in pkgutil.iter_modules(package.__path__):
            if not is_pkg:
                continue
            try:
                module = importlib.import_module(f"{_ENTITIES_PACKAGE}.{name}.endpoint")
            except ModuleNotFoundError as e:
                if e.name != f"{_ENTITIES_PACKAGE}.{name}.endpoint":
                    raise
                continue
            endpoint_class = cls._get_class_from_module(module)
            if endpoint_class is not None:
                endpoints.append(endpoint_class)
        return endpoints

    @classmethod
    def _get_class_from_module(cls, module: Any) -> type[BaseEndpoint] | None:
        """Return the BaseEndpoint subclass defined in a module."""
        for attr_name in dir(module):
            obj = getattr(module, attr_name)
            if (
                isinstance(obj, type)
                and issubclass(obj, BaseEndpoint)
                and obj is not BaseEndpoint
                and obj.__module__ == module.__name__
                and obj.name
            ):
                return obj
        return None


__all__ = ["BaseEndpoint", "POST"]
