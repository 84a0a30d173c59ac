"""Collaborators shared by every pipeline stage, plus record lookup helpers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Tuple

from ccl_pipeline import errors
from ccl_pipeline.ingest.schemas import Season, TournamentRecord


@dataclass
class PipelineContext:
    store: Any           # find / insert / update
    blobs: Any           # put / get_durable_url
    search: Any          # search(query) -> SearchResult
    fetcher: Any         # get_text(url) / get_bytes(url)
    llm: Any             # complete(prompt) -> str
    text_extractor: Any  # extract_text(bytes) -> str
    search_site: str = "chess.com"


def normalize_key(season: Any, year: Any) -> Tuple[Season, int]:
    if season is None or season == "" or year is None or year == "":
        raise errors.ValidationError("Season and year are required")
    if isinstance(season, Season):
        season = season.value
    try:
        s = Season(str(season).strip().lower())
    except ValueError:
        raise errors.ValidationError(f"Unknown season {season!r}; expected 'fall' or 'spring'")
    try:
        y = int(str(year).strip())
    except ValueError:
        raise errors.ValidationError(f"Year must be an integer, got {year!r}")
    if not 1900 <= y <= 9999:
        raise errors.ValidationError(f"Year {y} is out of range")
    return s, y


def key_filter(season: Season, year: int) -> dict:
    return {"season": season.value, "year": year}


def find_records(store: Any, season: Season, year: int) -> List[TournamentRecord]:
    return [TournamentRecord.model_validate(doc) for doc in store.find(key_filter(season, year))]
