"""
Tests for the error taxonomy and its HTTP mapping.
"""

import json

import pytest

from rules_service.core.exceptions import (
    InternalFailure,
    NotFoundOrDenied,
    TemplateNotFound,
    ValidationFailed,
    rules_service_error_handler,
)


class TestErrorDetail:
    def test_errors_are_omitted_when_empty(self):
        assert NotFoundOrDenied("gone").to_detail() == {
            "code": "not_found_or_denied",
            "message": "gone",
        }

    def test_validation_errors_are_listed(self):
        detail = ValidationFailed("Validation failed", ["Rule name is required"]).to_detail()

        assert detail["code"] == "validation_failed"
        assert detail["errors"] == ["Rule name is required"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc, status_code",
    [
        (ValidationFailed("bad"), 400),
        (NotFoundOrDenied("missing"), 404),
        (TemplateNotFound("missing"), 404),
        (InternalFailure("store down"), 500),
    ],
)
async def test_handler_maps_code_to_status(exc, status_code):
    response = await rules_service_error_handler(None, exc)

    assert response.status_code == status_code
    assert json.loads(response.body)["detail"]["code"] == exc.code.value
