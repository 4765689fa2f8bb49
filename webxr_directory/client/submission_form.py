from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from webxr_directory.client.api_client import ApiRequestFailed, SubmissionRejected
from webxr_directory.utils.tool_models import (
    CATEGORY_KEY,
    DESCRIPTION_KEY,
    IMAGE_URL_KEY,
    NAME_KEY,
    URL_KEY,
    ToolRecord,
    collect_submission_errors,
)

logger = logging.getLogger(__name__)

FORM_FIELDS = (NAME_KEY, URL_KEY, DESCRIPTION_KEY, CATEGORY_KEY, IMAGE_URL_KEY)
CORRECT_ERRORS_MESSAGE = "Please correct the errors highlighted below."
UNEXPECTED_SUBMISSION_ERROR = "An unexpected error occurred during submission."


class SubmitApi(Protocol):
    async def submit_tool(self, payload: Dict[str, Any]) -> ToolRecord: ...


def _blank_values() -> Dict[str, str]:
    return {field: "" for field in FORM_FIELDS}


class SubmissionForm:
    """State behind the "submit a tool" form."""

    def __init__(self) -> None:
        self.values = _blank_values()
        self.field_errors: Dict[str, str] = {}
        self.error: Optional[str] = None
        self.success: Optional[str] = None
        self.submitting = False

    def set_value(self, field: str, value: str) -> None:
        if field not in self.values:
            raise KeyError(f"Unknown form field: {field}")
        self.values[field] = value

        if self.field_errors.pop(field, None) is not None and not self.field_errors:
            self.error = None

    def validate(self) -> bool:
        self.field_errors = collect_submission_errors(self.values)
        self.error = CORRECT_ERRORS_MESSAGE if self.field_errors else None
        return not self.field_errors

    def payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            field: self.values[field] for field in FORM_FIELDS if field != IMAGE_URL_KEY
        }
        if self.values[IMAGE_URL_KEY].strip():
            payload[IMAGE_URL_KEY] = self.values[IMAGE_URL_KEY]
        return payload

    async def submit(self, api: SubmitApi) -> Optional[ToolRecord]:
        self.error = None
        self.success = None

        if not self.validate():
            return None

        self.submitting = True
        try:
            tool = await api.submit_tool(self.payload())
        except SubmissionRejected as exc:
            self.field_errors = dict(exc.details)
            self.error = exc.message
            return None
        except ApiRequestFailed as exc:
            logger.warning("Submission failed: %s", exc.message)
            self.error = exc.message or UNEXPECTED_SUBMISSION_ERROR
            return None
        finally:
            self.submitting = False

        self.success = f'Thank you! Tool "{tool.name}" submitted successfully.'
        self.values = _blank_values()
        self.field_errors = {}
        return tool
