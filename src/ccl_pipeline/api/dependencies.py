import logging
from typing import Any, Dict, Optional, Tuple, Type

from flask import jsonify, request
from pydantic import BaseModel, ValidationError

from ccl_pipeline import errors
from ccl_pipeline.api import config, state
from ccl_pipeline.extraction.llm import OpenAIChatModel
from ccl_pipeline.extraction.pdf_text import PdfTextExtractor
from ccl_pipeline.ingest.store import JsonDocumentStore, LocalBlobStore
from ccl_pipeline.pipeline import PipelineContext
from ccl_pipeline.rag.pipeline import RulebookIndexRegistry
from ccl_pipeline.scraper.fetch import HttpFetcher
from ccl_pipeline.scraper.search import PerplexitySearchProvider

logger = logging.getLogger("api")


def build_context() -> PipelineContext:
    """Concrete collaborators from config. Provider keys are checked lazily, on first call."""
    return PipelineContext(
        store=JsonDocumentStore(config.STORE_PATH),
        blobs=LocalBlobStore(config.BLOB_ROOT, config.BLOB_PUBLIC_BASE_URL),
        search=PerplexitySearchProvider(
            api_key=config.PERPLEXITY_API_KEY,
            model=config.PERPLEXITY_MODEL,
            api_url=config.PERPLEXITY_API_URL,
            timeout=config.SEARCH_TIMEOUT,
        ),
        fetcher=HttpFetcher(timeout=config.FETCH_TIMEOUT),
        llm=OpenAIChatModel(
            api_key=config.OPENAI_API_KEY,
            model=config.OPENAI_API_MODEL_NAME,
            base_url=config.OPENAI_API_BASE or None,
            timeout=config.LLM_TIMEOUT,
        ),
        text_extractor=PdfTextExtractor(),
        search_site=config.SEARCH_SITE,
    )


def build_rulebook_registry() -> RulebookIndexRegistry:
    return RulebookIndexRegistry(
        chunk_size=config.RAG_CHUNK_SIZE,
        chunk_overlap=config.RAG_CHUNK_OVERLAP,
        cache_dir=config.RAG_CACHE_DIR or None,
    )


def load_pipeline():
    try:
        state.pipeline = build_context()
        state.rulebook_indexes = build_rulebook_registry()
        logger.info(f"[api] Pipeline ready (store={config.STORE_PATH}, blobs={config.BLOB_ROOT})")
    except Exception as e:
        logger.error(f"Failed to build pipeline: {e}")


def require_api_key():
    if config.API_KEY:
        key = request.headers.get("X-API-Key", "")
        if key != config.API_KEY:
            return jsonify({"error": "Unauthorized"}), 401
    return None


def require_pipeline():
    if state.pipeline is None:
        return jsonify({"error": "pipeline_unavailable", "message": "Pipeline is not configured"}), 503
    return None


def parse_body(model: Type[BaseModel], raw: Any) -> Tuple[Optional[BaseModel], Optional[Any]]:
    if not isinstance(raw, dict):
        return None, (jsonify({"error": "validation_failed", "message": "Season and year are required"}), 400)
    try:
        return model(**raw), None
    except ValidationError as ve:
        details = ve.errors(include_url=False, include_context=False)
        return None, (jsonify({"error": "validation_failed", "message": "Season and year are required",
                               "details": details}), 400)


def error_response(exc: errors.PipelineError):
    return jsonify(exc.to_dict()), exc.status_code


def unexpected_error_response(exc: Exception, where: str):
    logger.exception(f"[api] {where} failed: {exc}")
    body: Dict[str, Any] = {"error": "internal_error", "message": str(exc)}
    return jsonify(body), 500
