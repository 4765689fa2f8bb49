"""Search, category and sort state for browsing the directory."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from webxr_directory.client.debounce import Debouncer, Scheduler
from webxr_directory.utils.tool_models import ToolQuery


logger = logging.getLogger(__name__)


CHECKBOX_CATEGORIES = sorted(
    [
        "Science", "History", "Geography", "Arts",
        "360 Video", "Simulation", "VR", "Exploration",
        "Space", "Social Studies", "Health / Medicine", "Technology",
        "Creativity / Design", "Documentary", "Interactive Story / Narrative", "Productivity",
    ]
)

SORT_OPTIONS: Dict[str, str] = {
    "title-asc": "Name (A-Z)",
    "title-desc": "Name (Z-A)",
    "rating-desc": "Rating (High-Low)",
    "rating-asc": "Rating (Low-High)",
}
DEFAULT_SORT = "title-asc"
SEARCH_DEBOUNCE_MS = 400


def split_sort_token(token: str) -> Tuple[str, str]:
    field, _, order = token.partition("-")
    return field or "title", order or "asc"


class FilterState:
    """Reduce interactive filter inputs to a canonical ``ToolQuery``.

    ``on_change`` receives the query once on ``start`` and then every time
    the settled search term, the selected categories or the sort selection
    change it. Raw keystrokes only move ``input_text``; the search term is
    applied after ``debounce_ms`` of quiet.
    """

    def __init__(
        self,
        *,
        on_change: Callable[[ToolQuery], None],
        scheduler: Scheduler,
        debounce_ms: int = SEARCH_DEBOUNCE_MS,
        sort_token: str = DEFAULT_SORT,
    ) -> None:
        self.input_text = ""
        self.search_term = ""
        self.selected_categories: Dict[str, bool] = {}
        self.sort_token = sort_token
        self._on_change = on_change
        self._debouncer = Debouncer(scheduler, debounce_ms / 1000, self._apply_search)
        self._last_query: Optional[ToolQuery] = None

    # --- Derived state --------------------------------------------------
    @property
    def sort_by(self) -> str:
        return split_sort_token(self.sort_token)[0]

    @property
    def sort_order(self) -> str:
        return split_sort_token(self.sort_token)[1]

    @property
    def active_categories(self) -> List[str]:
        return [name for name, selected in self.selected_categories.items() if selected]

    @property
    def category_param(self) -> Optional[str]:
        active = self.active_categories
        return ",".join(active) if active else None

    @property
    def query(self) -> ToolQuery:
        return ToolQuery(
            search=self.search_term or None,
            category=self.category_param,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
        )

    @property
    def search_pending(self) -> bool:
        return self._debouncer.pending

    # --- Inputs ---------------------------------------------------------
    def start(self) -> None:
        self._emit_if_changed()

    def set_input_text(self, text: str) -> None:
        self.input_text = text
        self._debouncer.trigger(text)

    def flush_search(self) -> None:
        self._debouncer.flush()

    def toggle_category(self, name: str, checked: bool) -> None:
        self.selected_categories[name] = checked
        self._emit_if_changed()

    def set_sort(self, token: str) -> None:
        self.sort_token = token
        self._emit_if_changed()

    def close(self) -> None:
        self._debouncer.cancel()

    # --- Internals ------------------------------------------------------
    def _apply_search(self, text: str) -> None:
        self.search_term = text
        self._emit_if_changed()

    def _emit_if_changed(self) -> None:
        query = self.query
        if query == self._last_query:
            return
        self._last_query = query
        logger.debug("Filter state changed: %s", query)
        self._on_change(query)
