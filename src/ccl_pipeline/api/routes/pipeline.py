import logging
from flask import Blueprint, request, jsonify
from flasgger import swag_from

from ccl_pipeline import errors
from ccl_pipeline.api import state, dependencies, models
from ccl_pipeline.api.extensions import limiter
from ccl_pipeline.pipeline import discover, archive, extract, status

logger = logging.getLogger(__name__)
pipeline_bp = Blueprint('pipeline', __name__)

_SEASON_YEAR_SPEC = {
    'consumes': ['application/json'],
    'parameters': [{
        'name': 'body', 'in': 'body', 'required': True,
        'schema': {
            'type': 'object',
            'required': ['season', 'year'],
            'properties': {
                'season': {'type': 'string', 'enum': ['fall', 'spring'], 'example': 'spring'},
                'year': {'type': 'integer', 'example': 2026},
            }
        }
    }],
}


def _run_stage(stage: str, fn):
    """Shared guard/validation/error mapping for the three mutating stages."""
    auth = dependencies.require_api_key()
    if auth:
        return None, auth
    unavailable = dependencies.require_pipeline()
    if unavailable:
        return None, unavailable
    parsed, err = dependencies.parse_body(models.SeasonYearRequest, request.get_json(silent=True))
    if err:
        return None, err
    key = f"{parsed.season.value}:{parsed.year}"
    try:
        result = fn(state.pipeline, parsed.season, parsed.year)
    except errors.PipelineError as e:
        logger.warning(f"[{stage}] {key} failed: {e.code}: {e.message}")
        state.record_stage(stage, e.code, key)
        return None, dependencies.error_response(e)
    except Exception as e:
        state.record_stage(stage, "internal_error", key)
        return None, dependencies.unexpected_error_response(e, stage)
    state.record_stage(stage, "ok", key)
    return (parsed, result), None


@pipeline_bp.route("/api/discover", methods=["POST"])
@limiter.limit("10/minute")
@swag_from({**_SEASON_YEAR_SPEC, 'tags': ['pipeline'],
            'responses': {200: {'description': 'Records discovered or already present'},
                          400: {'description': 'Missing season/year'},
                          502: {'description': 'Search provider failure'}}})
def discover_tournament():
    out, err = _run_stage("discover", discover)
    if err:
        return err
    parsed, result = out
    return jsonify(result.to_response(parsed.season.value, parsed.year))


@pipeline_bp.route("/api/archive", methods=["POST"])
@limiter.limit("10/minute")
@swag_from({**_SEASON_YEAR_SPEC, 'tags': ['pipeline'],
            'responses': {200: {'description': 'Archive pass completed'},
                          404: {'description': 'No record for season/year'}}})
def archive_rulebook():
    out, err = _run_stage("archive", archive)
    if err:
        return err
    _, updated = out
    return jsonify({
        "message": "PDF processing completed",
        "updatedDocs": [u.to_dict() for u in updated],
    })


@pipeline_bp.route("/api/extract", methods=["POST"])
@limiter.limit("10/minute")
@swag_from({**_SEASON_YEAR_SPEC, 'tags': ['pipeline'],
            'responses': {200: {'description': 'Tournament info extracted'},
                          400: {'description': 'Missing params or rulebook not archived'},
                          404: {'description': 'No record for season/year'},
                          502: {'description': 'Archived rulebook could not be fetched, or model output could not be parsed'}}})
def extract_tournament_info():
    out, err = _run_stage("extract", extract)
    if err:
        return err
    _, result = out
    return jsonify(result.to_response())


@pipeline_bp.route("/api/status", methods=["GET"])
@swag_from({
    'tags': ['pipeline'],
    'parameters': [
        {'name': 'season', 'in': 'query', 'type': 'string', 'required': True},
        {'name': 'year', 'in': 'query', 'type': 'integer', 'required': True},
    ],
    'responses': {200: {'description': 'Stage of the season/year'}, 400: {'description': 'Missing params'}}
})
def tournament_status():
    unavailable = dependencies.require_pipeline()
    if unavailable:
        return unavailable
    parsed, err = dependencies.parse_body(models.SeasonYearRequest, request.args.to_dict())
    if err:
        return err
    try:
        report = status(state.pipeline, parsed.season, parsed.year)
    except errors.PipelineError as e:
        return dependencies.error_response(e)
    except Exception as e:
        return dependencies.unexpected_error_response(e, "status")
    return jsonify(report.to_response())
