import os
from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")

MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', '65536'))  # 64 KB, bodies are tiny
API_KEY = os.getenv("API_KEY", "")
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")
SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))
SENTRY_PROFILES_SAMPLE_RATE = float(os.getenv("SENTRY_PROFILES_SAMPLE_RATE", "0.0"))
APP_ENV = os.getenv("APP_ENV", "production")
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")

# Search provider
PERPLEXITY_API_KEY = os.getenv("PERPLEXITY_API_KEY", "")
PERPLEXITY_MODEL = os.getenv("PERPLEXITY_MODEL", "sonar-pro")
PERPLEXITY_API_URL = os.getenv("PERPLEXITY_API_URL", "https://api.perplexity.ai/chat/completions")
SEARCH_SITE = os.getenv("SEARCH_SITE", "chess.com")

# Language model
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_API_MODEL_NAME = os.getenv("OPENAI_API_MODEL_NAME", "gpt-4o")
OPENAI_API_BASE = os.getenv("OPENAI_API_BASE", "")

# Storage
STORE_PATH = os.getenv("STORE_PATH", os.path.join(PROJECT_ROOT, "data", "tournaments"))
BLOB_ROOT = os.getenv("BLOB_ROOT", os.path.join(PROJECT_ROOT, "data", "blobs"))
BLOB_PUBLIC_BASE_URL = os.getenv("BLOB_PUBLIC_BASE_URL", "")

# Outbound timeouts (seconds)
SEARCH_TIMEOUT = float(os.getenv("SEARCH_TIMEOUT", "60"))
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "15"))
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "120"))

# Rulebook Q&A
RAG_CHUNK_SIZE = int(os.getenv("RAG_CHUNK_SIZE", "800"))
RAG_CHUNK_OVERLAP = int(os.getenv("RAG_CHUNK_OVERLAP", "150"))
RAG_TOP_K = int(os.getenv("RAG_TOP_K", "5"))
RAG_MAX_TOP_K = int(os.getenv("RAG_MAX_TOP_K", "10"))
RAG_CACHE_DIR = os.getenv("RAG_CACHE_DIR", "")
