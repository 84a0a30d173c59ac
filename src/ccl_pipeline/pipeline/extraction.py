"""Extraction stage: archived rulebook → text → one model call → ``extractedInfo``.

Unlike the other stages this one is re-runnable: each run replaces
the previous ``extractedInfo`` because model output is not deterministic.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from ccl_pipeline import errors
from ccl_pipeline.extraction.prompt import build_extraction_prompt, parse_tournament_info
from ccl_pipeline.ingest.schemas import Season, TournamentRecord
from ccl_pipeline.pipeline.context import PipelineContext, find_records, normalize_key

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    record_id: str
    tournament_info: Dict[str, Any]

    def to_response(self) -> Dict[str, Any]:
        return {
            "message": "Tournament info extracted and saved successfully",
            "id": self.record_id,
            "tournamentInfo": self.tournament_info,
        }


def select_archived_record(records: List[TournamentRecord], season: Season, year: int) -> TournamentRecord:
    """First record with an archived document; the stage gate for extraction and Q&A."""
    if not records:
        raise errors.NotFoundError(f"No tournament info found for {season.value} {year}.")
    for record in records:
        if record.archived_document_url:
            return record
    raise errors.PreconditionError(
        f"The rulebook for {season.value} {year} has not been archived yet; run archive first.",
        missing="archivedDocumentUrl",
    )


def load_rulebook_text(ctx: PipelineContext, record: TournamentRecord) -> str:
    data = ctx.fetcher.get_bytes(record.archived_document_url)
    return ctx.text_extractor.extract_text(data)


def extract(ctx: PipelineContext, season: Any, year: Any) -> ExtractionResult:
    s, y = normalize_key(season, year)
    record = select_archived_record(find_records(ctx.store, s, y), s, y)

    full_text = load_rulebook_text(ctx, record)
    prompt = build_extraction_prompt(full_text)
    logger.info(f"[extract] record {record.id}: prompting model with {len(full_text)} chars of rulebook text")
    try:
        response = ctx.llm.complete(prompt)
    except errors.PipelineError:
        raise
    except Exception as e:
        raise errors.ModelProviderError(f"Language model call failed: {e}") from e

    info = parse_tournament_info(response)
    ctx.store.update(record.id, {"extractedInfo": info})
    if record.extracted_info:
        logger.info(f"[extract] record {record.id}: replaced previous extraction")
    return ExtractionResult(record_id=record.id or "", tournament_info=info)
