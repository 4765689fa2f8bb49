from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from webxr_directory.tools.airtable_client import AirtableAPIError, AirtableClient


def _client(handler) -> AirtableClient:
    return AirtableClient(
        api_key="key-test",
        base_id="appTEST",
        api_url="https://api.airtable.test/v0",
        transport=httpx.MockTransport(handler),
    )


def test_list_records_follows_offsets_and_encodes_query() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if "offset" not in request.url.params:
            return httpx.Response(
                200, json={"records": [{"id": "rec1", "fields": {}}], "offset": "itrNEXT"}
            )
        return httpx.Response(200, json={"records": [{"id": "rec2", "fields": {}}]})

    client = _client(handler)
    records = asyncio.run(
        client.list_records(
            "WebXR Tools",
            filter_by_formula="OR(SEARCH('vr', {tags}))",
            sort=[("rating", "desc")],
            fields=["title", "rating"],
            page_size=100,
        )
    )

    assert [record["id"] for record in records] == ["rec1", "rec2"]
    assert len(seen) == 2
    first = seen[0]
    assert first.url.path == "/v0/appTEST/WebXR Tools"
    assert first.headers["Authorization"] == "Bearer key-test"
    assert first.url.params["filterByFormula"] == "OR(SEARCH('vr', {tags}))"
    assert first.url.params["sort[0][field]"] == "rating"
    assert first.url.params["sort[0][direction]"] == "desc"
    assert first.url.params.get_list("fields[]") == ["title", "rating"]
    assert first.url.params["pageSize"] == "100"
    assert seen[1].url.params["offset"] == "itrNEXT"


def test_list_records_without_formula_omits_parameter() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"records": []})

    asyncio.run(_client(handler).list_records("Tools"))

    assert "filterByFormula" not in seen[0].url.params


@pytest.mark.parametrize(
    "status, body",
    [
        (404, {"error": "NOT_FOUND"}),
        (404, {"error": {"type": "MODEL_ID_NOT_FOUND", "message": "Could not find record"}}),
    ],
)
def test_get_record_not_found_is_flagged(status, body) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body)

    with pytest.raises(AirtableAPIError) as excinfo:
        asyncio.run(_client(handler).get_record("Tools", "recMISSING"))

    assert excinfo.value.is_not_found is True
    assert excinfo.value.status_code == 404


def test_error_without_json_body_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad gateway")

    with pytest.raises(AirtableAPIError) as excinfo:
        asyncio.run(_client(handler).list_records("Tools"))

    assert excinfo.value.status_code == 502
    assert excinfo.value.is_not_found is False
    assert "Bad gateway" in str(excinfo.value)


def test_create_records_wraps_fields() -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"records": [{"id": "recNEW", "fields": captured["body"]["records"][0]["fields"]}]},
        )

    created = asyncio.run(_client(handler).create_records("Tools", [{"title": "Hubs"}]))

    assert captured["method"] == "POST"
    assert captured["body"] == {"records": [{"fields": {"title": "Hubs"}}]}
    assert created == [{"id": "recNEW", "fields": {"title": "Hubs"}}]


def test_transport_errors_propagate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(httpx.ConnectError):
        asyncio.run(_client(handler).get_record("Tools", "rec1"))
