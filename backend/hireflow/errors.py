"""
Error taxonomy for the ingestion and matching pipeline.

Every error carries a short machine-readable ``reason`` plus an optional
human-readable ``detail``; ``str(error)`` joins the two.
"""
from typing import Optional


class HireFlowError(Exception):
    """Base class for pipeline errors."""

    def __init__(self, reason: str, detail: Optional[str] = None):
        self.reason = reason
        self.detail = detail
        message = f"{reason}: {detail}" if detail else reason
        super().__init__(message)


class ExtractionError(HireFlowError):
    """Raised when text cannot be pulled out of an uploaded resume."""

    UNSUPPORTED_TYPE = "unsupported type"
    EMPTY_CONTENT = "empty content"
    UNREADABLE_SOURCE = "unreadable source"


class OracleError(HireFlowError):
    """Raised when the language-model oracle is missing or misbehaves."""

    NOT_CONFIGURED = "not configured"
    INVALID_JSON = "invalid json"
    EMPTY_RESPONSE = "empty response"
    UPSTREAM_FAILURE = "upstream failure"


class NotFoundError(HireFlowError):
    """Missing record, or a record the caller does not own."""

    def __init__(self, resource: str, detail: Optional[str] = None):
        self.resource = resource
        super().__init__(f"{resource} not found", detail)


class ValidationError(HireFlowError):
    """Malformed external input rejected before it reaches the pipeline."""

    def __init__(self, detail: str):
        super().__init__("invalid input", detail)
