"""Single comprehensive extraction prompt and response parsing.

One model call returns the whole payload: logistics milestones, regular
season rounds, per-division playoff rounds and eligibility requirements.
Parsing is strict. Markdown fences are stripped, then the text must be a
JSON object of the ``TournamentInfo`` shape; nothing is repaired.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from ccl_pipeline.errors import ExtractionParseError
from ccl_pipeline.ingest.schemas import TournamentInfo

DATE_FORMAT = "YYYY-MM-DD HH:MM AM/PM PT"

LOGISTICS_MILESTONES = ("Registration Opens", "Registration Closes", "Schedule Release", "Roster Lock")
DIVISION_1_ROUNDS = ("Quarterfinals", "Semifinals", "3rd Place/Final")
DIVISION_2_PLUS_ROUNDS = ("Round 1", "Quarterfinal", "Semifinal", "Final/3rd Place")

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def _rounds_json(rounds) -> str:
    return ",\n                ".join(f'{{"title": "{r}", "date": "{DATE_FORMAT}"}}' for r in rounds)


def _schema_block() -> str:
    logistics = ",\n        ".join(f'{{"title": "{m}", "date": "{DATE_FORMAT}"}}' for m in LOGISTICS_MILESTONES)
    return f"""{{
    "logistics": [
        {logistics}
    ],
    "regular_season": [
        {{"title": "Regular Season Round 1", "date": "{DATE_FORMAT}"}}
    ],
    "divisions": [
        {{
            "division": 1,
            "playoff_rounds": [
                {_rounds_json(DIVISION_1_ROUNDS)}
            ]
        }},
        {{
            "division": "2+",
            "playoff_rounds": [
                {_rounds_json(DIVISION_2_PLUS_ROUNDS)}
            ]
        }}
    ],
    "requirements": {{
        "minimum_account_age": <numeric_value>,
        "minimum_games": <numeric_value>
    }}
}}"""


def build_extraction_prompt(full_text: str) -> str:
    return f"""You are a helpful assistant. Based on the following tournament rules document, extract all the required information and return it as a single JSON object.

The JSON object must have the following structure:
{_schema_block()}

Specific Instructions:
1. Dates should be formatted as "{DATE_FORMAT}".
2. For "logistics", find the dates for registration open, registration close, schedule release, and roster lock.
3. For "regular_season", list every event in the 'schedule' section in order, using the time of day for group A teams (PT).
4. For "divisions", extract the playoff schedules. If several schedules are listed, use the first one.
   - Division 1 rounds: {", ".join(DIVISION_1_ROUNDS)}.
   - Division 2+ rounds: {", ".join(DIVISION_2_PLUS_ROUNDS)}.
5. For "requirements":
   - "minimum_account_age": the minimum account age in days.
   - "minimum_games": the minimum number of rated blitz games that must be completed.
6. Return ONLY the JSON object.

Context:
{full_text}
"""


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").replace("```", "").strip()


def parse_tournament_info(text: str) -> Dict[str, Any]:
    cleaned = strip_code_fences(text)
    try:
        raw = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionParseError(f"Model response is not valid JSON: {e}",
                                   details={"response_preview": cleaned[:300]}) from e
    if not isinstance(raw, dict):
        raise ExtractionParseError("Model response is not a JSON object",
                                   details={"response_preview": cleaned[:300]})
    try:
        info = TournamentInfo.model_validate(raw)
    except PydanticValidationError as e:
        raise ExtractionParseError("Model response does not match the tournament info schema",
                                   details={"errors": e.errors(include_url=False, include_context=False)}) from e
    return info.model_dump(mode="json")


__all__ = [
    'DATE_FORMAT', 'LOGISTICS_MILESTONES', 'DIVISION_1_ROUNDS', 'DIVISION_2_PLUS_ROUNDS',
    'build_extraction_prompt', 'strip_code_fences', 'parse_tournament_info',
]
