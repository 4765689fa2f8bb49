from __future__ import annotations

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from webxr_directory.core.config import Settings, settings as default_settings
from webxr_directory.core.errors import (
    GENERIC_ERROR_MESSAGE,
    ConfigurationError,
    DirectoryError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from webxr_directory.tools.tool_repository import ToolRepository
from webxr_directory.utils.tool_models import ToolQuery

logger = logging.getLogger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    exc: Optional[BaseException] = None,
    details: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"message": message}
    if details is not None:
        content["details"] = details

    app_settings: Settings = request.app.state.settings
    if exc is not None and app_settings.is_development:
        content["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )

    return JSONResponse(content, status_code=status_code)


def get_repository(request: Request) -> ToolRepository:
    return request.app.state.repository


async def _read_submission(request: Request) -> Dict[str, Any]:
    """Parse the submission body; empty or malformed bodies count as no fields."""
    try:
        body = await request.json()
    except ValueError:
        logger.info("Submission body on %s is not JSON; treating as empty", request.url.path)
        return {}
    return body if isinstance(body, dict) else {}


def create_app(
    app_settings: Optional[Settings] = None,
    *,
    repository: Optional[ToolRepository] = None,
) -> FastAPI:
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Check store configuration on startup and close the store on shutdown."""
        missing = app_settings.missing_airtable_settings()
        if missing:
            if app_settings.require_store_config:
                raise RuntimeError(
                    "Airtable configuration missing: " + ", ".join(missing)
                )
            logger.error(
                "FATAL: Airtable configuration missing (%s); tool requests will fail",
                ", ".join(missing),
            )
        else:
            logger.info(
                "Directory API serving table '%s' from base %s",
                app_settings.airtable_table_name,
                app_settings.airtable_base_id,
            )

        yield

        await app.state.repository.close()

    app = FastAPI(title="WebXR Directory API", version="0.1.0", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.repository = repository or ToolRepository(app_settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[app_settings.frontend_url],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error handling -------------------------------------------------
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(request, exc.status_code, exc.message, details=exc.details)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        logger.info("Tool %s not found", exc.record_id)
        return _error_response(request, exc.status_code, exc.message)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error("Configuration error on %s: %s", request.url.path, exc.message)
        return _error_response(request, exc.status_code, exc.message, exc)

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
        # Store details were logged where the call failed; the client gets the generic message
        return _error_response(request, exc.status_code, exc.message, exc)

    @app.exception_handler(DirectoryError)
    async def directory_error_handler(request: Request, exc: DirectoryError) -> JSONResponse:
        logger.error("Directory error on %s: %s", request.url.path, exc.message)
        return _error_response(request, exc.status_code, exc.message, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details: Dict[str, str] = {}
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()))
            details[location or "request"] = str(error.get("msg", "Invalid value"))
        return _error_response(
            request, status.HTTP_400_BAD_REQUEST, "Invalid request", details=details
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        # Wrong method on a known path counts as an unmatched route
        if exc.status_code in (
            status.HTTP_404_NOT_FOUND,
            status.HTTP_405_METHOD_NOT_ALLOWED,
        ):
            return _error_response(
                request, status.HTTP_404_NOT_FOUND, "Resource not found"
            )
        return _error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return _error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE, exc
        )

    # --- Routes ---------------------------------------------------------
    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "WebXR Directory API is running!"

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/tools")
    async def list_tools(
        search: Optional[str] = None,
        category: Optional[str] = None,
        sort_by: Optional[str] = Query(default=None, alias="sortBy"),
        sort_order: Optional[str] = Query(default=None, alias="sortOrder"),
        repository: ToolRepository = Depends(get_repository),
    ) -> List[Dict[str, Any]]:
        query = ToolQuery(
            search=search, category=category, sort_by=sort_by, sort_order=sort_order
        )
        tools = await repository.list_tools(query)
        return [tool.to_dict() for tool in tools]

    @app.get("/api/tools/{tool_id}")
    async def get_tool(
        tool_id: str,
        repository: ToolRepository = Depends(get_repository),
    ) -> Dict[str, Any]:
        tool = await repository.get_tool(tool_id)
        return tool.to_dict()

    @app.post("/api/tools/submit", status_code=status.HTTP_201_CREATED)
    async def submit_tool(
        request: Request,
        repository: ToolRepository = Depends(get_repository),
    ) -> Dict[str, Any]:
        payload = await _read_submission(request)
        tool = await repository.submit_tool(payload)
        return tool.to_dict()

    return app
