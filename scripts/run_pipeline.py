"""
Run pipeline stages for one (season, year) without the HTTP layer.

Uses the same env configuration as the API (PERPLEXITY_API_KEY, OPENAI_API_KEY,
STORE_PATH, BLOB_ROOT ...) and prints each stage's response as JSON.

    python scripts/run_pipeline.py all --season spring --year 2026
"""
import os
import sys
import json
import argparse
import logging

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from ccl_pipeline import errors  # noqa: E402
from ccl_pipeline.api.dependencies import build_context  # noqa: E402
from ccl_pipeline.pipeline import discover, archive, extract, status  # noqa: E402

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("run_pipeline")

STAGES = ("discover", "archive", "extract", "status")


def run_stage(ctx, stage: str, season: str, year: int) -> dict:
    if stage == "discover":
        return discover(ctx, season, year).to_response(season, year)
    if stage == "archive":
        updated = archive(ctx, season, year)
        return {"message": "PDF processing completed", "updatedDocs": [u.to_dict() for u in updated]}
    if stage == "extract":
        return extract(ctx, season, year).to_response()
    return status(ctx, season, year).to_response()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run CCL tournament pipeline stages")
    parser.add_argument("stage", choices=STAGES + ("all",), help="Stage to run ('all' runs every stage in order)")
    parser.add_argument("--season", required=True, help="fall or spring")
    parser.add_argument("--year", required=True, type=int, help="Four-digit year")
    args = parser.parse_args(argv)

    ctx = build_context()
    season = args.season.lower()
    stages = STAGES if args.stage == "all" else (args.stage,)
    for stage in stages:
        try:
            out = run_stage(ctx, stage, season, args.year)
        except errors.PipelineError as e:
            logger.error(f"{stage} failed ({e.status_code}): {e.message}")
            print(json.dumps({"stage": stage, **e.to_dict()}, indent=2, ensure_ascii=False))
            return 1
        print(json.dumps({"stage": stage, **out}, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
