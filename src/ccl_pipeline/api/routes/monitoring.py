import os
import platform
from flask import Blueprint, jsonify, Response

from ccl_pipeline.api import config, state

monitoring_bp = Blueprint('monitoring', __name__)


@monitoring_bp.route("/metrics", methods=["GET"])
def metrics():
    from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)


@monitoring_bp.route("/version", methods=["GET"])
def version():
    return jsonify({
        "version": config.APP_VERSION,
        "env": config.APP_ENV,
        "commit": os.getenv("GIT_COMMIT"),
        "python": platform.python_version(),
        "search_model": config.PERPLEXITY_MODEL,
        "llm_model": config.OPENAI_API_MODEL_NAME,
    })


@monitoring_bp.route("/api/version", methods=["GET"])
def api_version():
    return version()


@monitoring_bp.route("/api/health", methods=["GET"])
def health():
    if state.pipeline is None:
        return jsonify({"status": "error", "detail": "pipeline not configured"}), 500
    return jsonify({"status": "ok"}), 200


@monitoring_bp.route("/api/health/ready", methods=["GET"])
def health_ready():
    """Readiness probe - store and providers configured."""
    checks = {
        'pipeline_built': state.pipeline is not None,
        'search_key_set': bool(config.PERPLEXITY_API_KEY),
        'llm_key_set': bool(config.OPENAI_API_KEY),
    }
    all_ready = all(checks.values())
    return jsonify({
        "ready": all_ready,
        "checks": checks
    }), 200 if all_ready else 503


@monitoring_bp.route("/api/health/live", methods=["GET"])
def health_live():
    """Liveness probe - minimal check that service is running."""
    return jsonify({"alive": True}), 200


@monitoring_bp.route("/api/stats/stages", methods=["GET"])
def stage_stats():
    return jsonify({"stages": state.stage_stats})
