"""Browsing session state: filters, fetched tools and detail lookups."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Set

from webxr_directory.client.api_client import ApiRequestFailed
from webxr_directory.client.debounce import Scheduler
from webxr_directory.client.filter_state import SEARCH_DEBOUNCE_MS, FilterState
from webxr_directory.utils.tool_models import ToolQuery, ToolRecord


logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/300x180.png?text=WebXR+Tool"


class ToolsApi(Protocol):
    async def get_tools(self, query: Optional[ToolQuery] = None) -> List[ToolRecord]: ...

    async def get_tool(self, tool_id: str) -> ToolRecord: ...


def thumbnail_for(tool: ToolRecord, *, failed: bool = False) -> str:
    """Image to show for a tool card; ``failed`` marks a thumbnail that did not load."""
    if failed or not tool.image_url:
        return PLACEHOLDER_IMAGE_URL
    return tool.image_url


class ToolBrowser:
    """Fetches the tool list whenever the canonical filter state changes.

    In-flight fetches are never cancelled. Whichever fetch completes last
    decides ``tools`` and ``error``.
    """

    def __init__(
        self,
        api: ToolsApi,
        *,
        scheduler: Optional[Scheduler] = None,
        debounce_ms: int = SEARCH_DEBOUNCE_MS,
    ) -> None:
        self._api = api
        self.tools: List[ToolRecord] = []
        self.loading = True
        self.error: Optional[str] = None
        self._tasks: Set["asyncio.Task[None]"] = set()
        self.filters = FilterState(
            on_change=self._schedule_fetch,
            scheduler=scheduler or asyncio.get_running_loop(),
            debounce_ms=debounce_ms,
        )

    def start(self) -> None:
        self.filters.start()

    async def fetch(self, query: ToolQuery) -> None:
        self.error = None
        try:
            self.tools = await self._api.get_tools(query)
        except ApiRequestFailed as exc:
            logger.warning("Fetching tools failed: %s", exc.message)
            self.error = exc.message or "Failed to fetch tools."
            self.tools = []
        finally:
            self.loading = False

    async def load_tool(self, tool_id: str) -> ToolRecord:
        return await self._api.get_tool(tool_id)

    async def wait_idle(self, poll_interval: float = 0.05) -> None:
        """Wait until the pending search has settled and every fetch has finished."""
        while self.filters.search_pending or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks))
            else:
                await asyncio.sleep(poll_interval)

    def close(self) -> None:
        self.filters.close()

    def _schedule_fetch(self, query: ToolQuery) -> None:
        self.loading = True
        task = asyncio.ensure_future(self.fetch(query))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
