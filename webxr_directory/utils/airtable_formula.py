"""Utilities for translating between directory queries and Airtable formulas."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from webxr_directory.utils.tool_models import ToolSubmission, normalise_string_list


TITLE_FIELD = "title"
DESCRIPTION_FIELD = "description"
LINK_FIELD = "link"
TAGS_FIELD = "tags"
RATING_FIELD = "rating"
THUMBNAIL_FIELD = "thumbnail"
AUTHOR_FIELD = "author"

SELECTED_FIELDS = [
    TITLE_FIELD,
    DESCRIPTION_FIELD,
    LINK_FIELD,
    TAGS_FIELD,
    RATING_FIELD,
    THUMBNAIL_FIELD,
    AUTHOR_FIELD,
]
SEARCHABLE_FIELDS = [TITLE_FIELD, DESCRIPTION_FIELD, TAGS_FIELD]
SORTABLE_FIELDS = {TITLE_FIELD, RATING_FIELD}

DEFAULT_SORT_FIELD = TITLE_FIELD
SORT_ASCENDING = "asc"
SORT_DESCENDING = "desc"

PAGE_SIZE = 100


def escape_formula_string(value: str) -> str:
    """Make ``value`` safe to embed inside a single-quoted formula literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_search_formula(term: str, field: str, *, lowercase_field: bool = False) -> str:
    target = f"{{{field}}}"
    if lowercase_field:
        target = f"LOWER({target})"
    return f"SEARCH('{term}', {target})"


def build_or_formula(parts: Iterable[str]) -> str:
    return f"OR({', '.join(parts)})"


def build_and_formula(parts: Iterable[str]) -> str:
    return f"AND({', '.join(parts)})"


def parse_category_terms(category: Optional[str]) -> List[str]:
    if not category:
        return []
    return normalise_string_list(category.split(","))


def build_search_clause(search: Optional[str]) -> Optional[str]:
    if not search:
        return None
    # SEARCH is case-sensitive; compare the lower-cased term to lower-cased fields
    term = escape_formula_string(search.lower())
    return build_or_formula(
        build_search_formula(term, field, lowercase_field=True) for field in SEARCHABLE_FIELDS
    )


def build_category_clause(category: Optional[str]) -> Optional[str]:
    terms = parse_category_terms(category)
    if not terms:
        return None
    return build_or_formula(
        build_search_formula(escape_formula_string(term), TAGS_FIELD) for term in terms
    )


def build_filter_formula(search: Optional[str], category: Optional[str]) -> Optional[str]:
    clauses = [
        clause
        for clause in (build_search_clause(search), build_category_clause(category))
        if clause
    ]

    if not clauses:
        return None

    if len(clauses) == 1:
        return clauses[0]

    return build_and_formula(clauses)


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> Tuple[str, str]:
    field = sort_by if sort_by in SORTABLE_FIELDS else DEFAULT_SORT_FIELD
    direction = SORT_DESCENDING if sort_order == SORT_DESCENDING else SORT_ASCENDING
    return field, direction


def build_fields_payload(submission: ToolSubmission) -> Dict[str, str]:
    fields = {
        TITLE_FIELD: submission.name,
        LINK_FIELD: submission.url,
        DESCRIPTION_FIELD: submission.description,
        TAGS_FIELD: submission.category,
    }
    if submission.image_url:
        fields[THUMBNAIL_FIELD] = submission.image_url
    return fields
