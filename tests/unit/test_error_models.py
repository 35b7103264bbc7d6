"""
Unit tests for failure records.
"""

import pytest

from gmaps_scraper.core.error_models import ErrorComponent, ErrorRecord, ErrorSeverity, ErrorStage, ErrorType
from gmaps_scraper.core.exceptions import (
    EntryParseError,
    ExtractionError,
    NavigationError,
    PaginationError,
    RunCancelledError,
)


class TestClassification:
    @pytest.mark.parametrize("exc,expected", [
        (ExtractionError("x"), ErrorType.EXTRACTION_ERROR),
        (PaginationError("x"), ErrorType.PAGINATION_ERROR),
        (NavigationError("x"), ErrorType.NAVIGATION_ERROR),
        (RunCancelledError("x"), ErrorType.CANCELLED),
        (TimeoutError("x"), ErrorType.TIMEOUT),
        (RuntimeError("Timeout 30000ms exceeded"), ErrorType.TIMEOUT),
        (EntryParseError("x"), ErrorType.PARSE_ERROR),
        (ValueError("x"), ErrorType.UNKNOWN),
    ])
    def test_classify(self, exc, expected):
        record = ErrorRecord.from_exception(exc, component=ErrorComponent.PLACE, stage=ErrorStage.PROCESS)
        assert record.error_type == expected.value


class TestFromException:
    def test_fields(self):
        record = ErrorRecord.from_exception(
            NavigationError("navigation to https://x.example failed"),
            component=ErrorComponent.SEARCH,
            stage="Browser Actions",
            job_id="job-1",
            parent_id="parent-1",
            url="https://x.example",
            attempts=4,
        )

        assert record.component == "search"
        assert record.stage == "browser_actions"
        assert record.attempts == 4
        assert record.exception_type.endswith("NavigationError")
        assert record.stack_trace is None

    def test_unexpected_errors_keep_stack(self):
        try:
            raise KeyError("missing")
        except KeyError as e:
            record = ErrorRecord.from_exception(e, component=ErrorComponent.RUNNER, stage=ErrorStage.WRITE_RESULT)
        assert "KeyError" in record.stack_trace

    def test_warnings_skip_stack(self):
        record = ErrorRecord.from_exception(
            KeyError("x"), component=ErrorComponent.RUNNER, stage="x", severity=ErrorSeverity.WARNING,
        )
        assert record.stack_trace is None
