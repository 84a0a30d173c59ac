"""Canonical schemas for tournament records and extracted rulebook data.

A ``TournamentRecord`` is the single unit of persisted pipeline state. Its
lifecycle stage is never stored: it is derived from which optional fields
are populated, so callers ask ``record.stage`` instead of null-checking
individual fields.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

BUCKETS = ("pdf", "instructions", "registration", "fairPlay", "platform")


class Season(str, Enum):
    FALL = "fall"
    SPRING = "spring"


class Stage(str, Enum):
    NONE = "none"
    DISCOVERED = "discovered"
    ARCHIVED = "archived"
    EXTRACTED = "extracted"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)


_STAGE_ORDER = [Stage.NONE, Stage.DISCOVERED, Stage.ARCHIVED, Stage.EXTRACTED]


class TournamentRecord(BaseModel):
    """Persisted state for one source page of a ``(season, year)`` key.

    Serialised with camelCase keys (``documentLink``, ``archivedDocumentUrl``
    ...) so stored documents and API payloads share one shape.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    season: Season
    year: int
    source: str = ""
    document_link: str = ""
    archived_document_url: str = ""
    instructions_link: str = ""
    registration_link: str = ""
    fair_play_link: str = ""
    platform_link: str = ""
    extracted_info: Optional[Dict[str, Any]] = None

    @property
    def stage(self) -> Stage:
        if self.archived_document_url and self.extracted_info:
            return Stage.EXTRACTED
        if self.archived_document_url:
            return Stage.ARCHIVED
        return Stage.DISCOVERED

    @property
    def key(self) -> tuple:
        return (self.season.value, self.year)

    def to_document(self) -> Dict[str, Any]:
        """Store representation (identity lives outside the document)."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"})

    def to_api(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, mode="json")
        data["stage"] = self.stage.value
        return data


@dataclass
class CandidatePage:
    """Links classified from one source page, prior to persistence."""
    url: str
    buckets: Dict[str, List[str]] = field(default_factory=lambda: {b: [] for b in BUCKETS})

    def add(self, bucket: str, href: str) -> None:
        links = self.buckets.setdefault(bucket, [])
        if href not in links:
            links.append(href)

    def first(self, bucket: str) -> str:
        links = self.buckets.get(bucket) or []
        return links[0] if links else ""

    def is_empty(self) -> bool:
        return not any(self.buckets.get(b) for b in BUCKETS)

    def to_record(self, season: Season, year: int) -> TournamentRecord:
        return TournamentRecord(
            season=season,
            year=year,
            source=self.url,
            document_link=self.first("pdf"),
            instructions_link=self.first("instructions"),
            registration_link=self.first("registration"),
            fair_play_link=self.first("fairPlay"),
            platform_link=self.first("platform"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, **{b: list(self.buckets.get(b) or []) for b in BUCKETS}}


# Extracted rulebook payload

class DatedEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str
    date: Optional[str] = None


class DivisionSchedule(BaseModel):
    model_config = ConfigDict(extra="allow")

    division: Union[int, str]
    playoff_rounds: List[DatedEvent]


class Requirements(BaseModel):
    model_config = ConfigDict(extra="allow")

    minimum_account_age: Union[int, float]
    minimum_games: Union[int, float]


class TournamentInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    logistics: List[DatedEvent]
    regular_season: List[DatedEvent]
    divisions: List[DivisionSchedule]
    requirements: Requirements


__all__ = [
    'BUCKETS', 'Season', 'Stage', 'TournamentRecord', 'CandidatePage',
    'DatedEvent', 'DivisionSchedule', 'Requirements', 'TournamentInfo',
]
