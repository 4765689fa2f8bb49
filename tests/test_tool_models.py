import pytest

from webxr_directory.core.errors import ValidationError
from webxr_directory.utils.tool_models import (
    ToolQuery,
    ToolRecord,
    collect_submission_errors,
    is_valid_url,
    normalise_string_list,
    parse_submission,
    record_to_tool,
)


def test_normalise_string_list_trims_and_drops_empty():
    assert normalise_string_list([" VR ", "", " ", "History "]) == ["VR", "History"]
    assert normalise_string_list(None) == []


def test_record_to_tool_maps_store_fields():
    record = {
        "id": "recAAA",
        "createdTime": "2024-01-01T00:00:00.000Z",
        "fields": {
            "title": "Mozilla Hubs",
            "description": "Social VR rooms",
            "link": "https://hubs.mozilla.com",
            "tags": ["VR", "Social Studies"],
            "rating": 4.5,
            "thumbnail": "https://example.com/hubs.png",
            "author": "Mozilla",
            "Internal Notes": "dropped",
        },
    }

    tool = record_to_tool(record)

    assert tool.id == "recAAA"
    assert tool.name == "Mozilla Hubs"
    assert tool.description == "Social VR rooms"
    assert tool.short_description == "Social VR rooms"
    assert tool.url == "https://hubs.mozilla.com"
    assert tool.category == "VR, Social Studies"
    assert tool.rating == 4.5
    assert tool.image_url == "https://example.com/hubs.png"
    assert tool.author == "Mozilla"


def test_record_to_tool_handles_missing_fields():
    tool = record_to_tool({"id": "recEMPTY"})

    assert tool == ToolRecord(id="recEMPTY", name="Untitled Tool", description="")
    assert tool.to_dict() == {
        "id": "recEMPTY",
        "name": "Untitled Tool",
        "description": "",
        "shortDescription": "",
        "url": None,
        "category": None,
        "rating": None,
        "imageUrl": None,
        "author": None,
    }


@pytest.mark.parametrize(
    "raw, expected",
    [(0, 0), (3, 3), ("4.5", 4.5), ("great", None), (True, None), (None, None), (float("nan"), None)],
)
def test_record_to_tool_keeps_zero_rating_distinct_from_missing(raw, expected):
    tool = record_to_tool({"id": "rec1", "fields": {"rating": raw}})
    assert tool.rating == expected


def test_record_to_tool_reads_attachment_thumbnails():
    record = {
        "id": "rec1",
        "fields": {"thumbnail": [{"id": "att1", "url": "https://dl.airtable.com/a.png"}]},
    }
    assert record_to_tool(record).image_url == "https://dl.airtable.com/a.png"


def test_record_to_tool_ignores_non_mapping_fields():
    tool = record_to_tool({"id": "rec1", "fields": ["not", "a", "dict"]})
    assert tool.name == "Untitled Tool"


def test_tool_record_from_dict_reads_api_shape():
    tool = ToolRecord.from_dict(
        {
            "id": "recAAA",
            "name": "Hubs",
            "description": "Rooms",
            "shortDescription": "Rooms",
            "url": None,
            "category": ["VR", "Arts"],
            "rating": 0,
            "imageUrl": None,
        }
    )
    assert tool.category == "VR, Arts"
    assert tool.rating == 0
    assert tool.author is None


def test_tool_query_to_params_drops_empty_values():
    query = ToolQuery(search="", category="VR,Arts", sort_by="rating", sort_order=None)
    assert query.to_params() == {"category": "VR,Arts", "sortBy": "rating"}


def test_collect_submission_errors_reports_every_field():
    errors = collect_submission_errors({"Tool Name": "  ", "URL": "not a url"})

    assert errors == {
        "Tool Name": "Tool Name is required",
        "URL": "Invalid URL format",
        "Description": "Description is required",
        "Category": "Category is required",
    }


@pytest.mark.parametrize(
    "url", ["javascript:alert(1)", "ftp://files.example.com/tool", "mailto:xr@example.com"]
)
def test_collect_submission_errors_rejects_non_web_urls(url):
    errors = collect_submission_errors(
        {"Tool Name": "Hubs", "URL": url, "Description": "Rooms", "Category": "VR"}
    )
    assert errors == {"URL": "Invalid URL format"}


def test_is_valid_url_accepts_http_and_https():
    assert is_valid_url("https://hubs.mozilla.com")
    assert is_valid_url("http://localhost:3000/tools")


def test_collect_submission_errors_requires_url():
    errors = collect_submission_errors(
        {"Tool Name": "Hubs", "URL": " ", "Description": "Rooms", "Category": "VR"}
    )
    assert errors == {"URL": "Tool URL is required"}


def test_parse_submission_keeps_values_as_submitted():
    submission = parse_submission(
        {
            "Tool Name": "Hubs ",
            "URL": "https://hubs.mozilla.com",
            "Description": "Rooms",
            "Category": ["VR", " Arts "],
            "Image URL": "   ",
        }
    )

    assert submission.name == "Hubs "
    assert submission.category == "VR, Arts"
    assert submission.image_url is None


def test_parse_submission_raises_with_details():
    with pytest.raises(ValidationError) as excinfo:
        parse_submission({"Tool Name": "Hubs", "URL": "https://hubs.mozilla.com", "Description": 42})

    assert excinfo.value.message == "Validation failed"
    assert set(excinfo.value.details) == {"Description", "Category"}
