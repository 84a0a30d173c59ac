import os
import sys

# Add src directory to Python path so 'ccl_pipeline' package can be found
sys.path.append(os.path.join(os.getcwd(), 'src'))

wsgi_app = "ccl_pipeline.api.server:app"
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Stages block on outbound search/LLM calls; threads keep the worker responsive.
workers = int(os.environ.get('GUNICORN_WORKERS', '1'))
threads = int(os.environ.get('GUNICORN_THREADS', '4'))
worker_class = "gthread"
worker_tmp_dir = "/dev/shm"

preload_app = False
accesslog = "-"
errorlog = "-"
loglevel = "info"
# Extraction waits on the language model (LLM_TIMEOUT defaults to 120s)
timeout = int(os.environ.get('GUNICORN_TIMEOUT', '180'))
