# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""FastAPI application: WOPI routes, settings routes and admin endpoints.

Components:
    create_app: FastAPI application factory.
    register_endpoint: Register endpoint methods as FastAPI routes.
    require_token: X-API-Token dependency for admin endpoints.
    require_wopi_proof: Proof/timestamp dependency for WOPI file routes.

Routes:
    GET  /health                          unauthenticated liveness probe
    GET  /wopi/files/{id}                 CheckFileInfo
    GET  /wopi/files/{id}/contents        GetFile
    POST /wopi/files/{id}/contents        PutFile
    GET  /wopi/settings?type=             settings listing
    GET  /wopi/settings/file?fileId=      settings file content
    POST /wopi/settings/upload?fileId=    settings file upload
    GET|POST /{endpoint}/{method}         introspected admin endpoints

Note:
    Error translation happens only here. Handlers below raise the
    exceptions from cool_wopi.exceptions and the registered exception
    handlers turn them into responses.
"""

from __future__ import annotations

import inspect
import logging
import secrets
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.security import APIKeyHeader

from ..access import ProofRequest
from ..exceptions import (
    AccessDeniedError,
    CollaboraNotAvailableError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from .endpoint_base import BaseEndpoint

if TYPE_CHECKING:
    from ..wopi_proxy import WopiProxy

logger = logging.getLogger(__name__)

API_TOKEN_HEADER_NAME = "X-API-Token"
api_key_scheme = APIKeyHeader(name=API_TOKEN_HEADER_NAME, auto_error=False)

UNAVAILABLE_MESSAGE = "Collabora Online is not available."


def _is_true(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


# =============================================================================
# Introspected endpoint routes
# =============================================================================


def register_endpoint(app: FastAPI | APIRouter, endpoint: BaseEndpoint, prefix: str = "") -> None:
    """Register all async methods of an endpoint as FastAPI routes.

    GET methods take query parameters, @POST methods a JSON body.

    Example:
        ::

            register_endpoint(app, EditorEndpoint(proxy))
            # Creates route: POST /editor/launch
    """
    base_path = prefix or f"/{endpoint.name}"
    for method_name, method in endpoint.get_methods():
        path = f"{base_path}/{method_name}"
        doc = method.__doc__ or f"{method_name} operation"
        if endpoint.get_http_method(method_name) == "POST":
            _register_body_route(app, path, endpoint, method_name, method, doc)
        else:
            _register_query_route(app, path, endpoint, method_name, method, doc)


def _register_query_route(
    app: FastAPI | APIRouter,
    path: str,
    endpoint: BaseEndpoint,
    method_name: str,
    method: Callable,
    doc: str,
) -> None:
    """Register GET route with query parameters."""
    hints = endpoint.resolve_hints(method_name)
    params = []
    for param_name, param in inspect.signature(method).parameters.items():
        annotation = hints.get(param_name, str)
        default = Query(...) if param.default is inspect.Parameter.empty else Query(param.default)
        params.append(
            inspect.Parameter(
                name=param_name,
                kind=inspect.Parameter.KEYWORD_ONLY,
                default=default,
                annotation=annotation,
            )
        )

    async def handler(**kwargs: Any) -> Any:
        return await method(**kwargs)

    handler.__signature__ = inspect.Signature(parameters=params)  # type: ignore[attr-defined]
    handler.__doc__ = doc
    app.get(path, summary=doc.split("\n")[0])(handler)


def _register_body_route(
    app: FastAPI | APIRouter,
    path: str,
    endpoint: BaseEndpoint,
    method_name: str,
    method: Callable,
    doc: str,
) -> None:
    """Register POST route with a JSON body validated by a generated model."""
    RequestModel = endpoint.create_request_model(method_name)

    async def handler(data: RequestModel) -> Any:  # type: ignore[valid-type]
        return await method(**data.model_dump())

    handler.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
        parameters=[
            inspect.Parameter(
                "data", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=RequestModel
            )
        ]
    )
    handler.__doc__ = doc
    app.post(path, summary=doc.split("\n")[0])(handler)


# =============================================================================
# Dependencies
# =============================================================================


async def require_token(
    request: Request,
    api_token: str | None = Depends(api_key_scheme),
) -> None:
    """Check X-API-Token against the configured token, if any.

    Raises:
        HTTPException: 401 if the token is missing or wrong.
    """
    expected = getattr(request.app.state, "api_token", None)
    if expected is None:
        return
    if api_token and secrets.compare_digest(api_token, expected):
        return
    raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid or missing API token")


async def require_wopi_proof(request: Request) -> None:
    """Reject WOPI requests whose proof or timestamp does not verify.

    Raises:
        AccessDeniedError: With the proof checker's reason.
    """
    svc: WopiProxy = request.app.state.svc
    result = await svc.proof_checker.check(ProofRequest.from_request(request))
    if not result.allowed:
        raise AccessDeniedError(result.reason)


auth_dependency = Depends(require_token)
proof_dependency = Depends(require_wopi_proof)


# =============================================================================
# Application factory
# =============================================================================


def create_app(
    svc: WopiProxy,
    api_token: str | None = None,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        svc: WopiProxy instance implementing the protocol.
        api_token: Optional token required on admin endpoints.
        lifespan: Optional lifespan context manager. If None, creates
            default that starts/stops the proxy service.

    Returns:
        Configured FastAPI application with all routes registered.
    """
    if lifespan is None:

        @asynccontextmanager
        async def default_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            """Default lifespan: start and stop the WopiProxy service."""
            logger.info("Starting cool-wopi service...")
            await svc.start()
            try:
                yield
            finally:
                logger.info("Stopping cool-wopi service...")
                await svc.stop()

        lifespan = default_lifespan

    app = FastAPI(title="cool-wopi", lifespan=lifespan)
    app.state.api_token = api_token
    app.state.svc = svc

    _register_exception_handlers(app)

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint for container orchestration."""
        return await svc.endpoint("instance").health()  # type: ignore[attr-defined]

    router = APIRouter(dependencies=[auth_dependency])
    for endpoint in svc.endpoints.values():
        register_endpoint(router, endpoint)
    app.include_router(router)

    _register_wopi_endpoints(app, svc)
    _register_settings_endpoints(app, svc)
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Translate cool_wopi exceptions into WOPI responses."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.error(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=422, content={"detail": exc.errors()})

    @app.exception_handler(AccessDeniedError)
    async def access_denied_handler(request: Request, exc: AccessDeniedError) -> Response:
        logger.warning(f"Access denied on {request.method} {request.url.path}: {exc.reason}")
        return PlainTextResponse(exc.reason, status_code=exc.status_code)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> Response:
        logger.info(f"Not found on {request.method} {request.url.path}: {exc}")
        return PlainTextResponse("File not found.", status_code=status.HTTP_404_NOT_FOUND)

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> Response:
        return JSONResponse(
            {"COOLStatusCode": exc.cool_status_code}, status_code=exc.status_code
        )

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> Response:
        return PlainTextResponse(str(exc), status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(CollaboraNotAvailableError)
    async def unavailable_handler(request: Request, exc: CollaboraNotAvailableError) -> Response:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
        return PlainTextResponse(
            UNAVAILABLE_MESSAGE, status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


# =============================================================================
# WOPI protocol routes
# =============================================================================


def _register_wopi_endpoints(app: FastAPI, svc: WopiProxy) -> None:
    """Register CheckFileInfo, GetFile and PutFile.

    Authentication uses access_token in the query string (not X-API-Token)
    and, when enabled, the WOPI proof headers.
    """
    router = APIRouter(prefix="/wopi/files", dependencies=[proof_dependency])

    @router.get("/{file_id}")
    async def wopi_check_file_info(
        file_id: str,
        access_token: str | None = Query(None),
    ) -> JSONResponse:
        """WOPI CheckFileInfo."""
        info = await svc.check_file_info(file_id, access_token)
        return JSONResponse(info)

    @router.get("/{file_id}/contents")
    async def wopi_get_file(
        file_id: str,
        access_token: str | None = Query(None),
    ) -> Response:
        """WOPI GetFile."""
        file = await svc.get_file(file_id, access_token)
        return Response(content=file.content, media_type=file.mimetype)

    @router.post("/{file_id}/contents")
    async def wopi_put_file(
        request: Request,
        file_id: str,
        access_token: str | None = Query(None),
        x_cool_wopi_timestamp: str | None = Header(None),
        x_cool_wopi_ismodifiedbyuser: str | None = Header(None),
        x_cool_wopi_isautosave: str | None = Header(None),
        x_cool_wopi_isexitsave: str | None = Header(None),
    ) -> JSONResponse:
        """WOPI PutFile."""
        content = await request.body()
        result = await svc.put_file(
            file_id,
            access_token,
            content,
            wopi_timestamp=x_cool_wopi_timestamp,
            modified_by_user=_is_true(x_cool_wopi_ismodifiedbyuser),
            autosave=_is_true(x_cool_wopi_isautosave),
            exit_save=_is_true(x_cool_wopi_isexitsave),
        )
        return JSONResponse(result)

    app.include_router(router)


def _register_settings_endpoints(app: FastAPI, svc: WopiProxy) -> None:
    """Register the WOPI settings extension routes."""
    router = APIRouter(prefix="/wopi/settings")

    @router.get("")
    async def wopi_settings_info(
        access_token: str | None = Query(None),
        settings_type: str | None = Query(None, alias="type"),
    ) -> JSONResponse:
        """List settings files of one type."""
        return JSONResponse(await svc.settings_info(access_token, settings_type))

    @router.get("/file")
    async def wopi_settings_file(
        file_id: str = Query(..., alias="fileId"),
        access_token: str | None = Query(None),
    ) -> Response:
        """Download one settings file."""
        content = await svc.settings_read(access_token, file_id)
        return Response(content=content, media_type="application/octet-stream")

    @router.post("/upload")
    async def wopi_settings_upload(
        request: Request,
        file_id: str = Query(..., alias="fileId"),
        access_token: str | None = Query(None),
    ) -> JSONResponse:
        """Store one settings file."""
        content = await request.body()
        return JSONResponse(await svc.settings_upload(access_token, file_id, content))

    app.include_router(router)


__all__ = [
    "API_TOKEN_HEADER_NAME",
    "create_app",
    "register_endpoint",
    "require_token",
    "require_wopi_proof",
]
