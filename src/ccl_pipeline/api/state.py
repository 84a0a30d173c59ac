import logging
from typing import Any, Dict, Optional

logger = logging.getLogger("api")

# Pipeline collaborators (PipelineContext), built on startup by dependencies.build_context()
pipeline: Any = None

# Rulebook Q&A indexes (RulebookIndexRegistry)
rulebook_indexes: Any = None

# Metrics
REQUEST_COUNT: Any = None
REQUEST_LATENCY: Any = None
STAGE_RUNS: Any = None

# Last outcome per stage (for monitoring)
stage_stats: Dict[str, Dict[str, Any]] = {}


def record_stage(stage: str, outcome: str, key: Optional[str] = None) -> None:
    """Count a stage outcome in Prometheus and keep the last one for /api/stats/stages."""
    if STAGE_RUNS is not None:
        try:
            STAGE_RUNS.labels(stage, outcome).inc()
        except Exception as e:
            logger.debug(f"stage metric update failed: {e}")
    entry = stage_stats.setdefault(stage, {'runs': 0, 'last_outcome': None, 'last_key': None})
    entry['runs'] += 1
    entry['last_outcome'] = outcome
    entry['last_key'] = key
