"""High-level helpers for working with the Airtable tools table."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

import httpx

from webxr_directory.core.config import Settings
from webxr_directory.core.errors import NotFoundError, UpstreamError
from webxr_directory.tools.airtable_client import (
    AirtableAPIError,
    AirtableClient,
    RecordStore,
)
from webxr_directory.utils.airtable_formula import (
    PAGE_SIZE,
    SELECTED_FIELDS,
    build_fields_payload,
    build_filter_formula,
    resolve_sort,
)
from webxr_directory.utils.tool_models import (
    ToolQuery,
    ToolRecord,
    parse_submission,
    record_to_tool,
)


logger = logging.getLogger(__name__)

STORE_FAILURES = (AirtableAPIError, httpx.HTTPError)


class ToolRepository:
    """Translates directory queries into Airtable calls and normalises rows."""

    def __init__(
        self,
        settings: Settings,
        *,
        store: Optional[RecordStore] = None,
    ) -> None:
        self._settings = settings
        self._store = store

    # --- Public API -----------------------------------------------------
    async def list_tools(self, query: ToolQuery) -> List[ToolRecord]:
        """Retrieve every tool matching the search and category filters."""

        table = self._require_table()
        formula = build_filter_formula(query.search, query.category)
        sort_field, sort_direction = resolve_sort(query.sort_by, query.sort_order)

        logger.info(
            "Fetching from Airtable: table=%s formula=%r sort_by=%s sort_order=%s",
            table,
            formula or "",
            sort_field,
            sort_direction,
        )

        try:
            records = await self._get_store().list_records(
                table,
                filter_by_formula=formula,
                sort=[(sort_field, sort_direction)],
                fields=SELECTED_FIELDS,
                page_size=PAGE_SIZE,
            )
        except STORE_FAILURES as exc:
            logger.exception("Error fetching tools from Airtable")
            raise UpstreamError(operation="list_tools") from exc

        return [record_to_tool(record) for record in records]

    async def get_tool(self, tool_id: str) -> ToolRecord:
        table = self._require_table()

        try:
            record = await self._get_store().get_record(table, tool_id)
        except AirtableAPIError as exc:
            if exc.is_not_found:
                raise NotFoundError(
                    f"Tool with ID '{tool_id}' not found", record_id=tool_id
                ) from exc
            logger.exception("Error fetching tool %s from Airtable", tool_id)
            raise UpstreamError(operation="get_tool") from exc
        except httpx.HTTPError as exc:
            logger.exception("Error fetching tool %s from Airtable", tool_id)
            raise UpstreamError(operation="get_tool") from exc

        return record_to_tool(record)

    async def submit_tool(self, payload: Mapping[str, Any]) -> ToolRecord:
        """Validate a submission and persist it as a single new row."""

        table = self._require_table()
        submission = parse_submission(payload)
        fields = build_fields_payload(submission)

        try:
            created = await self._get_store().create_records(table, [fields])
        except STORE_FAILURES as exc:
            logger.exception("Error creating tool in Airtable")
            raise UpstreamError(operation="submit_tool") from exc

        if not created:
            logger.error("Airtable create returned no records for %r", submission.name)
            raise UpstreamError(operation="submit_tool")

        tool = record_to_tool(created[0])
        logger.info("Created tool %s (%s)", tool.id, tool.name)
        return tool

    async def close(self) -> None:
        if self._store is not None:
            await self._store.close()

    # --- Internals ------------------------------------------------------
    def _require_table(self) -> str:
        self._settings.validate_airtable_config()
        assert self._settings.airtable_table_name is not None
        return self._settings.airtable_table_name

    def _get_store(self) -> RecordStore:
        if self._store is None:
            api_key = self._settings.airtable_api_key
            assert api_key is not None and self._settings.airtable_base_id is not None
            self._store = AirtableClient(
                api_key=api_key.get_secret_value(),
                base_id=self._settings.airtable_base_id,
                api_url=self._settings.airtable_api_url,
                timeout=self._settings.airtable_timeout,
            )
        return self._store
