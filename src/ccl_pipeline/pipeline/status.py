from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ccl_pipeline.ingest.schemas import Stage, TournamentRecord
from ccl_pipeline.pipeline.context import PipelineContext, find_records, normalize_key


@dataclass
class StatusReport:
    exists: bool
    stage: Stage
    record: Optional[TournamentRecord] = None
    records: List[TournamentRecord] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"exists": self.exists, "stage": self.stage.value}
        if self.record is not None:
            out["data"] = self.record.to_api()
            out["records"] = len(self.records)
        return out


def status(ctx: PipelineContext, season: Any, year: Any) -> StatusReport:
    """Report how far the key has progressed. Reads only.

    With several records for a key the most advanced one is reported
    (first one wins on ties).
    """
    s, y = normalize_key(season, year)
    records = find_records(ctx.store, s, y)
    if not records:
        return StatusReport(exists=False, stage=Stage.NONE)
    best = records[0]
    for record in records[1:]:
        if record.stage.rank > best.stage.rank:
            best = record
    return StatusReport(exists=True, stage=best.stage, record=best, records=records)
