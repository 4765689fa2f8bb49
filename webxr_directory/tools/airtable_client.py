from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


NOT_FOUND_ERROR_TYPES = {"NOT_FOUND", "MODEL_ID_NOT_FOUND"}


class AirtableAPIError(Exception):
    """Raised when Airtable answers with an error status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404 or self.error_type in NOT_FOUND_ERROR_TYPES


class RecordStore(Protocol):
    """Operations the directory needs from its tabular record store."""

    async def list_records(
        self,
        table: str,
        *,
        filter_by_formula: Optional[str] = None,
        sort: Sequence[Tuple[str, str]] = (),
        fields: Sequence[str] = (),
        page_size: int = 100,
    ) -> List[Dict[str, Any]]: ...

    async def get_record(self, table: str, record_id: str) -> Dict[str, Any]: ...

    async def create_records(
        self, table: str, records: Sequence[Dict[str, Any]]
    ) -> List[Dict[str, Any]]: ...

    async def close(self) -> None: ...


def _parse_error(response: httpx.Response) -> AirtableAPIError:
    error_type: Optional[str] = None
    message = response.text or response.reason_phrase

    try:
        body = response.json()
    except ValueError:
        body = None

    # Airtable sends either {"error": "NOT_FOUND"} or {"error": {"type", "message"}}
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str):
            error_type = error
            message = error
        elif isinstance(error, dict):
            error_type = error.get("type")
            message = error.get("message") or error_type or message

    return AirtableAPIError(
        f"Airtable returned {response.status_code}: {message}",
        status_code=response.status_code,
        error_type=error_type,
    )


class AirtableClient:
    """Thin wrapper around the Airtable REST API for a single base."""

    def __init__(
        self,
        *,
        api_key: str,
        base_id: str,
        api_url: str = "https://api.airtable.com/v0",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = f"{api_url.rstrip('/')}/{base_id}"
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def list_records(
        self,
        table: str,
        *,
        filter_by_formula: Optional[str] = None,
        sort: Sequence[Tuple[str, str]] = (),
        fields: Sequence[str] = (),
        page_size: int = 100,
    ) -> List[Dict[str, Any]]:
        """Fetch every page of records matching the formula."""

        params: List[Tuple[str, str]] = [("pageSize", str(page_size))]
        if filter_by_formula:
            params.append(("filterByFormula", filter_by_formula))
        for index, (field, direction) in enumerate(sort):
            params.append((f"sort[{index}][field]", field))
            params.append((f"sort[{index}][direction]", direction))
        for field in fields:
            params.append(("fields[]", field))

        records: List[Dict[str, Any]] = []
        offset: Optional[str] = None

        while True:
            page_params = list(params)
            if offset:
                page_params.append(("offset", offset))

            body = await self._request("GET", self._table_path(table), params=page_params)
            records.extend(
                record for record in body.get("records", []) if isinstance(record, dict)
            )

            offset = body.get("offset")
            if not offset:
                break

        return records

    async def get_record(self, table: str, record_id: str) -> Dict[str, Any]:
        path = f"{self._table_path(table)}/{quote(record_id, safe='')}"
        return await self._request("GET", path)

    async def create_records(
        self, table: str, records: Sequence[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        payload = {"records": [{"fields": fields} for fields in records]}
        body = await self._request("POST", self._table_path(table), json=payload)
        return [record for record in body.get("records", []) if isinstance(record, dict)]

    # --- Internals ------------------------------------------------------
    @staticmethod
    def _table_path(table: str) -> str:
        return f"/{quote(table, safe='')}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Failed to call Airtable %s %s: %s", method, path, exc)
            raise

        if response.status_code >= 400:
            error = _parse_error(response)
            logger.error(
                "Airtable %s %s returned %s: %s",
                method,
                path,
                response.status_code,
                response.text,
            )
            raise error

        return response.json()
