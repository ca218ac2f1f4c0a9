# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Click command generation from endpoint classes via introspection.

Each endpoint becomes a command group and each async method a command.
Parameters become ``--kebab-case`` options; bool parameters become flags.
The command starts the proxy (database connection), awaits the method
and prints the result as JSON.

Example:
    ::

        cool-wopi discovery client-url --mimetype text/plain --action view
        cool-wopi editor launch --document-id 42 --user-id 7 --edit
"""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click

from ..exceptions import WopiError

if TYPE_CHECKING:
    from .endpoint_base import BaseEndpoint


def _option_for(param: inspect.Parameter, annotation: Any) -> Callable:
    option_name = f"--{param.name.replace('_', '-')}"
    required = param.default is inspect.Parameter.empty
    if annotation is bool:
        return click.option(option_name, param.name, is_flag=True, default=not required and bool(param.default))
    kwargs: dict[str, Any] = {"type": {int: int, float: float}.get(annotation, str)}
    if required:
        kwargs["required"] = True
    else:
        kwargs["default"] = param.default
    return click.option(option_name, param.name, **kwargs)


def _run(endpoint: BaseEndpoint, method: Callable, kwargs: dict[str, Any]) -> Any:
    async def runner() -> Any:
        proxy = endpoint.proxy
        await proxy.start()
        try:
            return await method(**kwargs)
        finally:
            await proxy.stop()

    return asyncio.run(runner())


def register_endpoint(group: click.Group, endpoint: BaseEndpoint) -> click.Group:
    """Add a command group for an endpoint to a click group.

    Returns:
        The created subgroup.
    """

    @group.group(name=endpoint.name, help=(type(endpoint).__doc__ or "").split("\n")[0])
    def endpoint_group() -> None:
        pass

    for method_name, method in endpoint.get_methods():
        hints = endpoint.resolve_hints(method_name)

        def make_command(method: Callable = method) -> Callable:
            def command(**kwargs: Any) -> None:
                try:
                    result = _run(endpoint, method, kwargs)
                except WopiError as e:
                    raise click.ClickException(str(e)) from e
                click.echo(json.dumps(result, indent=2, default=str))

            return command

        command = make_command()
        for param in reversed(list(inspect.signature(method).parameters.values())):
            command = _option_for(param, hints.get(param.name, str))(command)

        endpoint_group.command(
            name=method_name.replace("_", "-"),
            help=(method.__doc__ or "").strip().split("\n")[0],
        )(command)

    return endpoint_group


__all__ = ["register_endpoint"]
