"""Archival stage: copy each discovered rulebook into blob storage.

``archivedDocumentUrl`` is write-once. Records that already carry one are
reported back as ``alreadyExists`` and never re-uploaded, so the stage can be
called repeatedly and only makes forward progress. Any per-record problem
(unresolvable link, failed download, non-PDF body) is logged and leaves the
record for a later retry.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ccl_pipeline import errors
from ccl_pipeline.extraction.pdf_text import looks_like_pdf
from ccl_pipeline.ingest.schemas import Season, TournamentRecord
from ccl_pipeline.pipeline.context import PipelineContext, find_records, normalize_key
from ccl_pipeline.scraper.links import DOCS_HOST, DRIVE_HOST

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

_VIEWER_ID_RE = re.compile(r"/d/([^/?#]+)")
_QUERY_ID_RE = re.compile(r"[?&]id=([^&#]+)")
_DOCS_KIND_RE = re.compile(r"docs\.google\.com/(document|spreadsheets|presentation)/d/([^/?#]+)", re.IGNORECASE)


@dataclass
class RecordUpdate:
    id: str
    pdf_storage_url: str
    already_exists: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "pdfStorageUrl": self.pdf_storage_url}
        if self.already_exists:
            out["alreadyExists"] = True
        return out


def resolve_document_link(link: str) -> Optional[str]:
    """Turn a viewer link into a direct download URL.

    Returns ``None`` when the link is on a viewer host but carries no file id.
    Links on any other host are returned unchanged.
    """
    lowered = link.lower()
    if DRIVE_HOST in lowered:
        m = _VIEWER_ID_RE.search(link) or _QUERY_ID_RE.search(link)
        if not m:
            return None
        return f"https://drive.google.com/uc?export=download&id={m.group(1)}"
    if DOCS_HOST in lowered:
        m = _DOCS_KIND_RE.search(link)
        if not m:
            return None
        kind, file_id = m.group(1).lower(), m.group(2)
        if kind == "presentation":
            return f"https://docs.google.com/presentation/d/{file_id}/export/pdf"
        return f"https://docs.google.com/{kind}/d/{file_id}/export?format=pdf"
    return link


def blob_path(season: Season, year: int, record_id: str, timestamp_ms: Optional[int] = None) -> str:
    ts = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"ccl/{season.value}/{year}/{ts}_ccl_{season.value}_{year}_{record_id}.pdf"


def _archive_one(ctx: PipelineContext, record: TournamentRecord) -> Optional[RecordUpdate]:
    url = resolve_document_link(record.document_link)
    if url is None:
        logger.warning(f"[archive] record {record.id}: no file id in {record.document_link}, skipping")
        return None
    try:
        data = ctx.fetcher.get_bytes(url)
    except errors.FetchError as e:
        logger.warning(f"[archive] record {record.id}: download failed for {url}: {e}")
        return None
    if not looks_like_pdf(data):
        logger.warning(f"[archive] record {record.id}: {url} did not return a PDF (first bytes {data[:20]!r}), skipping")
        return None

    path = blob_path(record.season, record.year, record.id or "record")
    try:
        ctx.blobs.put(path, data, PDF_CONTENT_TYPE)
        durable_url = ctx.blobs.get_durable_url(path)
    except (OSError, errors.PipelineError) as e:
        logger.error(f"[archive] record {record.id}: blob upload to {path} failed: {e}")
        return None
    ctx.store.update(record.id, {"archivedDocumentUrl": durable_url})
    logger.info(f"[archive] record {record.id}: archived {url} as {durable_url}")
    return RecordUpdate(id=record.id or "", pdf_storage_url=durable_url)


def archive(ctx: PipelineContext, season: Any, year: Any) -> List[RecordUpdate]:
    s, y = normalize_key(season, year)
    records = find_records(ctx.store, s, y)
    if not records:
        raise errors.NotFoundError(f"No tournament info found for {s.value} {y}.")

    updated: List[RecordUpdate] = []
    for record in records:
        if record.archived_document_url:
            updated.append(RecordUpdate(id=record.id or "", pdf_storage_url=record.archived_document_url,
                                        already_exists=True))
            continue
        if not record.document_link:
            logger.info(f"[archive] record {record.id} has no document link, nothing to archive")
            continue
        result = _archive_one(ctx, record)
        if result is not None:
            updated.append(result)
    return updated
