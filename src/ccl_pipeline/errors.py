"""Error taxonomy for the rulebook pipeline.

Each error carries the HTTP status and short code the API layer reports.
Per-item failures inside a batch (one URL, one record) are logged and
skipped by the stage itself; everything raised out of a stage aborts the
whole call.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class PipelineError(Exception):
    status_code = 500
    code = "pipeline_error"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PipelineError):
    status_code = 400
    code = "validation_failed"


class NotFoundError(PipelineError):
    status_code = 404
    code = "not_found"


class PreconditionError(PipelineError):
    status_code = 400
    code = "precondition_failed"

    def __init__(self, message: str, *, missing: str) -> None:
        super().__init__(message, details={"missing": missing})
        self.missing = missing


class UpstreamProviderError(PipelineError):
    status_code = 502
    code = "upstream_provider_error"


class SearchProviderError(UpstreamProviderError):
    code = "search_provider_error"


class ModelProviderError(UpstreamProviderError):
    code = "model_provider_error"


class FetchError(PipelineError):
    status_code = 502
    code = "fetch_failed"

    def __init__(self, message: str, *, url: str, status: Optional[int] = None) -> None:
        details: Dict[str, Any] = {"url": url}
        if status is not None:
            details["status"] = status
        super().__init__(message, details=details)
        self.url = url
        self.status = status


class ParseError(PipelineError):
    status_code = 502
    code = "parse_failed"


class ExtractionParseError(ParseError):
    code = "extraction_parse_failed"


class DocumentTextError(PipelineError):
    status_code = 422
    code = "document_unreadable"


__all__ = [
    'PipelineError', 'ValidationError', 'NotFoundError', 'PreconditionError',
    'UpstreamProviderError', 'SearchProviderError', 'ModelProviderError',
    'FetchError', 'ParseError', 'ExtractionParseError', 'DocumentTextError',
]
