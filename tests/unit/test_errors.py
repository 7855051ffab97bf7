"""Unit tests for the error hierarchy and error-body parsing."""

import httpx
import pytest

from opti_cms_client.errors import (
    ApiError,
    CmsClientError,
    ConfigurationError,
    ErrorKind,
    FieldError,
    RequestTimeoutError,
    error_from_response,
)


def _response(status: int, **kwargs: object) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("GET", "https://cms.example.com/x"), **kwargs)  # type: ignore[arg-type]


class TestErrorKinds:
    """Each error class carries a fixed kind tag."""

    def test_kinds(self) -> None:
        """Kinds discriminate the three variants."""
        assert ConfigurationError("x").kind is ErrorKind.CONFIGURATION
        assert ApiError(status=500).kind is ErrorKind.API
        assert RequestTimeoutError(100).kind is ErrorKind.TIMEOUT

    def test_hierarchy(self) -> None:
        """Timeouts are API errors; everything is a CmsClientError."""
        timeout = RequestTimeoutError(100)

        assert isinstance(timeout, ApiError)
        assert isinstance(timeout, CmsClientError)
        assert isinstance(ConfigurationError("x"), CmsClientError)

    def test_timeout_fields(self) -> None:
        """Timeouts use status 408 and code TIMEOUT."""
        timeout = RequestTimeoutError(250)

        assert timeout.status == 408
        assert timeout.code == "TIMEOUT"
        assert timeout.timeout_ms == 250
        assert "250 ms" in str(timeout)


class TestApiError:
    """Tests for ApiError defaults and serialization."""

    def test_generic_defaults(self) -> None:
        """Missing title and type are derived from the status."""
        err = ApiError(status=503)

        assert err.title == "Request failed with status 503"
        assert err.type == "about:blank"
        assert err.errors == []
        assert str(err) == "503 Request failed with status 503"

    def test_to_dict_omits_empty(self) -> None:
        """to_dict only includes optional fields that are set."""
        err = ApiError(
            status=422,
            title="Invalid",
            code="VALIDATION",
            errors=[FieldError(field="name", message="Required"), FieldError(message="Bad")],
        )

        assert err.to_dict() == {
            "kind": "api",
            "type": "about:blank",
            "title": "Invalid",
            "status": 422,
            "code": "VALIDATION",
            "errors": [{"field": "name", "message": "Required"}, {"message": "Bad"}],
        }


class TestErrorFromResponse:
    """Tests for error_from_response."""

    def test_structured_body(self) -> None:
        """All problem-details fields are carried over."""
        response = _response(
            400,
            json={
                "type": "https://errors.example.com/validation",
                "title": "Validation failed",
                "status": 400,
                "instance": "/content/abc",
                "details": "name is required",
                "code": "INVALID",
                "errors": [{"field": "name", "message": "Required"}],
            },
        )

        err = error_from_response(response)

        assert err.status == 400
        assert err.type == "https://errors.example.com/validation"
        assert err.title == "Validation failed"
        assert err.instance == "/content/abc"
        assert err.details == "name is required"
        assert err.code == "INVALID"
        assert err.errors == [FieldError(field="name", message="Required")]

    def test_partial_body_backfilled(self) -> None:
        """Absent fields fall back to status-derived defaults."""
        err = error_from_response(_response(404, json={"details": "gone"}))

        assert err.status == 404
        assert err.title == "Request failed with status 404"
        assert err.type == "about:blank"
        assert err.details == "gone"

    def test_legacy_message_used_as_title(self) -> None:
        """A bare message field becomes the title."""
        err = error_from_response(_response(500, json={"message": "boom", "code": "E1"}))

        assert err.title == "boom"
        assert err.code == "E1"

    @pytest.mark.parametrize(
        "content",
        [b"<html>Not Found</html>", b"", b"[1, 2]", b'"just text"'],
    )
    def test_unparseable_body_falls_back(self, content: bytes) -> None:
        """Anything that is not a valid problem object yields a generic error."""
        err = error_from_response(_response(404, content=content))

        assert err.status == 404
        assert err.title == "Request failed with status 404"
        assert err.errors == []

    def test_numeric_code_keeps_other_fields(self) -> None:
        """A non-string code is converted instead of discarding the body."""
        response = _response(404, json={"type": "urn:nf", "title": "Not Found", "status": 404, "code": 1001})

        err = error_from_response(response)

        assert err.title == "Not Found"
        assert err.type == "urn:nf"
        assert err.code == "1001"

    def test_object_details_kept_as_json(self) -> None:
        """Structured details are carried over as JSON text."""
        err = error_from_response(_response(404, json={"title": "Not Found", "details": {"reason": "gone"}}))

        assert err.title == "Not Found"
        assert err.details == '{"reason": "gone"}'

    def test_invalid_status_falls_back_to_http_status(self) -> None:
        """An unusable status is replaced by the HTTP status; the title survives."""
        err = error_from_response(_response(409, json={"title": "Conflict", "status": "nope"}))

        assert err.status == 409
        assert err.title == "Conflict"

    def test_malformed_field_errors_dropped(self) -> None:
        """Field errors without a message are skipped, valid ones kept."""
        err = error_from_response(
            _response(
                422,
                json={
                    "title": "Invalid",
                    "errors": [{"field": "x"}, {"field": "name", "message": "Required"}],
                },
            )
        )

        assert err.title == "Invalid"
        assert err.errors == [FieldError(field="name", message="Required")]
