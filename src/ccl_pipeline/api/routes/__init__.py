from ccl_pipeline.api.routes.pipeline import pipeline_bp
from ccl_pipeline.api.routes.rulebook import rulebook_bp
from ccl_pipeline.api.routes.monitoring import monitoring_bp

__all__ = ['pipeline_bp', 'rulebook_bp', 'monitoring_bp']
