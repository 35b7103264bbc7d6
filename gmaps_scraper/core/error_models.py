"""
Pydantic models for structured job failure records.

A failure record is built whenever a job exhausts its retries. Records are
logged and collected in the run statistics so that a finished run can report
what went wrong without aborting on individual job failures.
"""

import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict


class ErrorComponent(str, Enum):
    """System components that can generate errors."""
    SEARCH = "search"
    PLACE = "place"
    EMAIL = "email"
    RUNNER = "runner"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Error severity levels matching logging standards."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorType(str, Enum):
    """
    Categorized error types for classification.

    Transient kinds are recovered by bounded retries; the rest surface as
    job failures.
    """
    # Transient page errors
    EXTRACTION_ERROR = "extraction_error"
    PAGINATION_ERROR = "pagination_error"

    # Browser / network
    NAVIGATION_ERROR = "navigation_error"
    TIMEOUT = "timeout"
    BROWSER_ERROR = "browser_error"

    # Payload
    PARSE_ERROR = "parse_error"

    # Run control
    CANCELLED = "cancelled"

    UNKNOWN = "unknown"


class ErrorStage:
    """
    Standardized stage names for failure records.
    """
    BROWSER_ACTIONS = "browser_actions"
    PROCESS = "process"
    WRITE_RESULT = "write_result"


class ErrorRecord(BaseModel):
    """
    Structured record of a terminal job failure.
    """
    component: ErrorComponent = Field(..., description="System component")
    stage: str = Field(..., min_length=1, max_length=100, description="Processing stage")
    error_type: ErrorType = Field(..., description="Error category")
    severity: ErrorSeverity = Field(default=ErrorSeverity.ERROR, description="Severity level")
    message: str = Field(..., min_length=1, description="Human-readable error message")

    job_id: Optional[str] = Field(None, description="Failed job id")
    parent_id: Optional[str] = Field(None, description="Parent job id")
    url: Optional[str] = Field(None, max_length=4096, description="Job target URL")
    attempts: int = Field(default=1, ge=0, description="Attempts made before giving up")
    exception_type: Optional[str] = Field(None, max_length=255, description="Exception class name")
    stack_trace: Optional[str] = Field(None, description="Stack trace for unexpected errors")

    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Error timestamp"
    )

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
    )

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        """Normalize stage names."""
        if not v or not v.strip():
            return "unknown"
        return v.strip().lower().replace(" ", "_")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        if not v or not v.strip():
            return "No error message provided"
        return v.strip()[:5000]

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        component: ErrorComponent,
        stage: str,
        job_id: Optional[str] = None,
        parent_id: Optional[str] = None,
        url: Optional[str] = None,
        attempts: int = 1,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        include_stack_trace: Optional[bool] = None,
    ) -> "ErrorRecord":
        """
        Create an ErrorRecord from an exception with automatic classification.

        Args:
            exc: The exception that ended the job
            component: Component (job kind) where the error occurred
            stage: Processing stage
            job_id: Failed job id
            parent_id: Parent job id
            url: Job target URL
            attempts: Number of attempts made
            severity: Error severity (default: ERROR)
            error_type: Explicit error type (auto-detected if None)
            include_stack_trace: Whether to include the stack trace (auto if None)

        Returns:
            ErrorRecord instance ready for logging

        Example:
            >>> try:
            ...     resp = await job.browser_actions(page)
            ... except NavigationError as e:
            ...     record = ErrorRecord.from_exception(
            ...         e,
            ...         component=ErrorComponent.PLACE,
            ...         stage=ErrorStage.BROWSER_ACTIONS,
            ...         url=job.url,
            ...     )
        """
        if error_type is None:
            error_type = cls._classify_exception(exc)

        message = str(exc) or f"{type(exc).__name__} occurred"
        exception_type = f"{type(exc).__module__}.{type(exc).__name__}"

        if include_stack_trace is None:
            include_stack_trace = cls._should_include_stack(exc, severity)

        stack_trace = None
        if include_stack_trace:
            stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            if len(stack_trace) > 10000:
                stack_trace = stack_trace[:10000] + "\n... (truncated)"

        return cls(
            component=component,
            stage=stage,
            error_type=error_type,
            severity=severity,
            message=message,
            job_id=job_id,
            parent_id=parent_id,
            url=url,
            attempts=attempts,
            exception_type=exception_type,
            stack_trace=stack_trace,
        )

    @staticmethod
    def _classify_exception(exc: BaseException) -> ErrorType:
        """
        Classify an exception into an ErrorType by class name and message.
        """
        exc_name = type(exc).__name__.lower()
        exc_msg = str(exc).lower()

        if "cancel" in exc_name:
            return ErrorType.CANCELLED
        if "extraction" in exc_name:
            return ErrorType.EXTRACTION_ERROR
        if "pagination" in exc_name:
            return ErrorType.PAGINATION_ERROR
        if "navigation" in exc_name:
            return ErrorType.NAVIGATION_ERROR
        if "timeout" in exc_name or "timeout" in exc_msg:
            return ErrorType.TIMEOUT
        if "parse" in exc_name:
            return ErrorType.PARSE_ERROR
        if "playwright" in exc_name or "browser" in exc_name or "target" in exc_name:
            return ErrorType.BROWSER_ERROR

        return ErrorType.UNKNOWN

    @staticmethod
    def _should_include_stack(exc: BaseException, severity: ErrorSeverity) -> bool:
        """
        Expected failures (extraction, pagination, timeouts) don't need stacks.
        """
        if severity == ErrorSeverity.CRITICAL:
            return True

        if severity in (ErrorSeverity.WARNING, ErrorSeverity.INFO, ErrorSeverity.DEBUG):
            return False

        expected_errors = (
            "ExtractionError",
            "PaginationError",
            "NavigationError",
            "EntryParseError",
            "RunCancelledError",
            "TimeoutError",
        )

        return type(exc).__name__ not in expected_errors
