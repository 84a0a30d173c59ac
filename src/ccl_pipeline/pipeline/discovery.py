"""Discovery stage: search → filter citations → classify page links → persist.

Idempotency is key-level: any existing record for ``(season, year)`` makes
discovery a no-op. The existence check and the inserts are separate store
calls, so two concurrent discoveries of a brand-new key can both insert.
That race is accepted: duplicates are harmless because archival and
extraction work per record. A uniqueness constraint on
``(season, year, source)`` in the store is the upgrade path if it matters.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ccl_pipeline import errors
from ccl_pipeline.ingest.schemas import CandidatePage, TournamentRecord
from ccl_pipeline.pipeline.context import PipelineContext, find_records, key_filter, normalize_key
from ccl_pipeline.scraper.links import classify_page, filter_sources
from ccl_pipeline.scraper.search import build_search_query

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    already_exists: bool
    records: List[TournamentRecord]
    answer: str = ""
    sources: List[str] = field(default_factory=list)
    candidates: List[CandidatePage] = field(default_factory=list)

    def to_response(self, season: str, year: int) -> Dict[str, Any]:
        saved = [r.to_api() for r in self.records]
        if self.already_exists:
            return {
                "exists": True,
                "message": f"Tournament info for {season} {year} already exists.",
                "answer": "",
                "sources": [],
                "scrapedData": [],
                "savedData": saved,
            }
        return {
            "exists": False,
            "message": "Search and save completed",
            "answer": self.answer,
            "sources": self.sources,
            "scrapedData": [c.to_dict() for c in self.candidates],
            "savedData": saved,
        }


def _dedupe(urls: List[str]) -> List[str]:
    seen = set()
    out = []
    for u in urls:
        if u not in seen:
            seen.add(u)
            out.append(u)
    return out


def discover(ctx: PipelineContext, season: Any, year: Any) -> DiscoveryResult:
    s, y = normalize_key(season, year)

    existing = find_records(ctx.store, s, y)
    if existing:
        logger.info(f"[discover] {s.value} {y}: {len(existing)} record(s) already exist, skipping")
        return DiscoveryResult(already_exists=True, records=existing)

    query = build_search_query(s.value, y, ctx.search_site)
    try:
        result = ctx.search.search(query)
    except errors.SearchProviderError:
        raise
    except Exception as e:
        raise errors.SearchProviderError(f"Search provider failed: {e}") from e

    sources = _dedupe(filter_sources(result.citations or [], s.value, y))
    logger.info(f"[discover] {len(sources)}/{len(result.citations or [])} citations kept for {s.value} {y}")

    candidates: List[CandidatePage] = []
    for url in sources:
        try:
            html = ctx.fetcher.get_text(url)
        except errors.FetchError as e:
            logger.warning(f"[discover] skipping {url}: {e}")
            continue
        try:
            page = classify_page(url, html)
        except Exception as e:
            logger.warning(f"[discover] skipping {url}: could not classify links: {e}")
            continue
        if page.is_empty():
            logger.info(f"[discover] no classified links on {url}")
            continue
        candidates.append(page)

    saved: List[TournamentRecord] = []
    for page in candidates:
        if ctx.store.find({**key_filter(s, y), "source": page.url}):
            logger.info(f"[discover] record for source {page.url} already stored")
            continue
        record = page.to_record(s, y)
        record.id = ctx.store.insert(record.to_document())
        logger.info(f"[discover] saved record {record.id} from {page.url}")
        saved.append(record)

    return DiscoveryResult(
        already_exists=False,
        records=saved,
        answer=result.answer or "",
        sources=sources,
        candidates=candidates,
    )
