from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pytest

from webxr_directory.core.config import Settings
from webxr_directory.tools.airtable_client import AirtableAPIError


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "airtable_api_key": "key-test",
        "airtable_base_id": "appTEST",
        "airtable_table_name": "Tools",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeStore:
    """In-memory stand-in for the Airtable client."""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None) -> None:
        self.records: Dict[str, Dict[str, Any]] = {
            record["id"]: record for record in records or []
        }
        self.list_calls: List[Dict[str, Any]] = []
        self.get_calls: List[str] = []
        self.create_calls: List[List[Dict[str, Any]]] = []
        self.fail_with: Optional[Exception] = None
        self.closed = False

    async def list_records(
        self,
        table: str,
        *,
        filter_by_formula: Optional[str] = None,
        sort: Sequence[Tuple[str, str]] = (),
        fields: Sequence[str] = (),
        page_size: int = 100,
    ) -> List[Dict[str, Any]]:
        self.list_calls.append(
            {
                "table": table,
                "filter_by_formula": filter_by_formula,
                "sort": list(sort),
                "fields": list(fields),
                "page_size": page_size,
            }
        )
        if self.fail_with:
            raise self.fail_with
        return list(self.records.values())

    async def get_record(self, table: str, record_id: str) -> Dict[str, Any]:
        self.get_calls.append(record_id)
        if self.fail_with:
            raise self.fail_with
        if record_id not in self.records:
            raise AirtableAPIError(
                "Airtable returned 404: NOT_FOUND", status_code=404, error_type="NOT_FOUND"
            )
        return self.records[record_id]

    async def create_records(
        self, table: str, records: Sequence[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        self.create_calls.append([dict(fields) for fields in records])
        if self.fail_with:
            raise self.fail_with
        created = []
        for fields in records:
            record_id = f"rec{len(self.records) + 1:014d}"
            record = {
                "id": record_id,
                "createdTime": "2024-01-01T00:00:00.000Z",
                "fields": dict(fields),
            }
            self.records[record_id] = record
            created.append(record)
        return created

    async def close(self) -> None:
        self.closed = True


class ManualScheduler:
    """Scheduler driven by hand so debounce timing is deterministic."""

    class Handle:
        def __init__(self, when: float, callback: Callable[..., Any], args: Tuple[Any, ...]) -> None:
            self.when = when
            self.callback = callback
            self.args = args
            self.cancelled = False

        def cancel(self) -> None:
            self.cancelled = True

    def __init__(self) -> None:
        self.now = 0.0
        self._handles: List["ManualScheduler.Handle"] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> "ManualScheduler.Handle":
        handle = ManualScheduler.Handle(self.now + delay, callback, args)
        self._handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [h for h in self._handles if not h.cancelled and h.when <= self.now + 1e-9]
        self._handles = [h for h in self._handles if h not in due and not h.cancelled]
        for handle in sorted(due, key=lambda h: h.when):
            handle.callback(*handle.args)

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)


def tool_record(record_id: str, **fields: Any) -> Dict[str, Any]:
    return {"id": record_id, "createdTime": "2024-01-01T00:00:00.000Z", "fields": fields}


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore(
        [
            tool_record(
                "recAAA",
                title="Mozilla Hubs",
                description="Social VR rooms in the browser",
                link="https://hubs.mozilla.com",
                tags=["VR", "Social Studies"],
                rating=4.5,
                thumbnail="https://example.com/hubs.png",
                author="Mozilla",
            ),
            tool_record("recBBB", title="Blank Canvas", rating=0),
        ]
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()
