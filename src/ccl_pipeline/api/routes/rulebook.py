from flask import Blueprint, request, jsonify

from ccl_pipeline import errors
from ccl_pipeline.api import state, dependencies, models, config
from ccl_pipeline.api.extensions import limiter
from ccl_pipeline.rag.pipeline import ask_rulebook

rulebook_bp = Blueprint('rulebook', __name__)


@rulebook_bp.route('/api/rulebook/ask', methods=['POST'])
@limiter.limit("30/minute")
def ask_question():
    """Answer a free-form question from the archived rulebook (retrieval + one model call)."""
    auth = dependencies.require_api_key()
    if auth:
        return auth
    unavailable = dependencies.require_pipeline()
    if unavailable:
        return unavailable
    parsed, err = dependencies.parse_body(models.RulebookQuestionRequest, request.get_json(silent=True))
    if err:
        return err
    k = min(parsed.k or config.RAG_TOP_K, config.RAG_MAX_TOP_K)
    try:
        result = ask_rulebook(state.pipeline, state.rulebook_indexes, parsed.season, parsed.year,
                              parsed.question, k)
    except errors.PipelineError as e:
        state.record_stage("ask", e.code, f"{parsed.season.value}:{parsed.year}")
        return dependencies.error_response(e)
    except Exception as e:
        return dependencies.unexpected_error_response(e, "rulebook ask")
    state.record_stage("ask", "ok", f"{parsed.season.value}:{parsed.year}")
    return jsonify(result)


@rulebook_bp.route('/api/rulebook/reset', methods=['POST'])
def reset_index():
    """Drop the cached index so the next question rebuilds it from the archived rulebook."""
    auth = dependencies.require_api_key()
    if auth:
        return auth
    parsed, err = dependencies.parse_body(models.SeasonYearRequest, request.get_json(silent=True))
    if err:
        return err
    if state.rulebook_indexes is None:
        return jsonify({"reset": False})
    removed = state.rulebook_indexes.invalidate((parsed.season.value, parsed.year))
    return jsonify({"reset": removed})
