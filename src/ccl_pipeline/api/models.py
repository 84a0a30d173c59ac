from typing import Optional, Union
from pydantic import BaseModel, Field, field_validator

from ccl_pipeline.ingest.schemas import Season


class SeasonYearRequest(BaseModel):
    season: Season
    year: int = Field(ge=1900, le=9999)

    @field_validator('season', mode='before')
    @classmethod
    def _lower_season(cls, v: Union[str, Season]):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class RulebookQuestionRequest(SeasonYearRequest):
    question: str = Field(min_length=1, max_length=2000)
    k: Optional[int] = Field(default=None, ge=1, le=20)
