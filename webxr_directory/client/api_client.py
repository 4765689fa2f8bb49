from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import httpx

from webxr_directory.utils.tool_models import ToolQuery, ToolRecord

logger = logging.getLogger(__name__)


class ApiRequestFailed(Exception):
    """Raised when the directory API cannot satisfy a request."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SubmissionRejected(ApiRequestFailed):
    """Raised when the API refuses a submission with field-level details."""

    def __init__(self, message: str, details: Dict[str, str]) -> None:
        super().__init__(message, status_code=400)
        self.details = details


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class ToolsApiClient:
    """Thin wrapper around the directory's ``/api/tools`` routes."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def get_tools(self, query: Optional[ToolQuery] = None) -> List[ToolRecord]:
        """Fetch tools, optionally filtered and sorted."""

        params = query.to_params() if query else {}
        logger.debug("Fetching tools with params: %s", params)
        response = await self._send("GET", "/tools", params=params)
        if response.status_code >= 400:
            raise self._failure(response, "Failed to fetch tools.")

        body = self._decode(response, list)
        return [ToolRecord.from_dict(item) for item in body if isinstance(item, dict)]

    async def get_tool(self, tool_id: str) -> ToolRecord:
        if not tool_id:
            raise ValueError("Tool ID is required")

        response = await self._send("GET", f"/tools/{quote(tool_id, safe='')}")
        if response.status_code >= 400:
            raise self._failure(
                response,
                f"Failed to fetch tool {tool_id}. Status: {response.status_code}",
            )
        return ToolRecord.from_dict(self._decode(response, dict))

    async def submit_tool(self, payload: Mapping[str, Any]) -> ToolRecord:
        response = await self._send("POST", "/tools/submit", json=dict(payload))

        if response.status_code == 400:
            body = _error_body(response)
            details = body.get("details")
            message = body.get("message") or "Submission failed. Please check your input."
            if isinstance(details, dict):
                raise SubmissionRejected(
                    message, {str(key): str(value) for key, value in details.items()}
                )
            raise ApiRequestFailed(message, status_code=400)

        if response.status_code >= 400:
            raise self._failure(
                response, "An unexpected error occurred during submission."
            )
        return ToolRecord.from_dict(self._decode(response, dict))

    # --- Internals ------------------------------------------------------
    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Failed to call directory API %s %s: %s", method, path, exc)
            raise ApiRequestFailed(f"Could not reach the directory API: {exc}") from exc

    @staticmethod
    def _decode(response: httpx.Response, expected: type) -> Any:
        try:
            body = response.json()
        except ValueError as exc:
            logger.error(
                "Directory API %s %s returned a non-JSON body",
                response.request.method,
                response.request.url.path,
            )
            raise ApiRequestFailed(
                "The directory API returned an unreadable response.",
                status_code=response.status_code,
            ) from exc

        if not isinstance(body, expected):
            logger.error(
                "Directory API %s %s returned %s, expected %s",
                response.request.method,
                response.request.url.path,
                type(body).__name__,
                expected.__name__,
            )
            raise ApiRequestFailed(
                "The directory API returned an unexpected response.",
                status_code=response.status_code,
            )
        return body

    @staticmethod
    def _failure(response: httpx.Response, fallback: str) -> ApiRequestFailed:
        message = _error_body(response).get("message") or fallback
        logger.error(
            "Directory API %s %s returned %s: %s",
            response.request.method,
            response.request.url.path,
            response.status_code,
            message,
        )
        return ApiRequestFailed(str(message), status_code=response.status_code)
