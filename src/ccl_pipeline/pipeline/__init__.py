"""Discovery → archival → extraction pipeline keyed by ``(season, year)``."""

from ccl_pipeline.pipeline.context import PipelineContext, normalize_key, find_records
from ccl_pipeline.pipeline.discovery import discover, DiscoveryResult
from ccl_pipeline.pipeline.archival import archive, resolve_document_link, RecordUpdate
from ccl_pipeline.pipeline.extraction import extract, ExtractionResult
from ccl_pipeline.pipeline.status import status, StatusReport

__all__ = [
    "PipelineContext",
    "normalize_key",
    "find_records",
    "discover",
    "DiscoveryResult",
    "archive",
    "resolve_document_link",
    "RecordUpdate",
    "extract",
    "ExtractionResult",
    "status",
    "StatusReport",
]
