"""Web search through the Perplexity chat-completions API.

The pipeline only needs ``search(query) -> SearchResult(answer, citations)``;
any object with that method can stand in (tests use a canned fake).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests  # type: ignore[import-untyped]

from ccl_pipeline.errors import SearchProviderError

logger = logging.getLogger(__name__)

PERPLEXITY_API_URL = "https://api.perplexity.ai/chat/completions"


@dataclass
class SearchResult:
    answer: str
    citations: List[str] = field(default_factory=list)


def build_search_query(season: str, year, site: str = "chess.com") -> str:
    return f"Collegiate Chess League {season.capitalize()} {year} site:{site}"


class PerplexitySearchProvider:
    def __init__(self, api_key: str, model: str = "sonar-pro", api_url: str = PERPLEXITY_API_URL,
                 timeout: float = 60, session: Optional[requests.Session] = None) -> None:
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def search(self, query: str) -> SearchResult:
        if not self.api_key:
            raise SearchProviderError("PERPLEXITY_API_KEY is not configured")
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = {"model": self.model, "messages": [{"role": "user", "content": query}]}
        try:
            response = self.session.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SearchProviderError(f"Search request failed: {e}") from e
        if response.status_code != 200:
            raise SearchProviderError(f"Search provider returned HTTP {response.status_code}",
                                      details={"status": response.status_code})
        try:
            data = response.json()
        except ValueError as e:
            raise SearchProviderError("Search provider returned a non-JSON body") from e

        choices = data.get("choices") or []
        answer = ""
        if choices:
            answer = ((choices[0] or {}).get("message") or {}).get("content") or ""
        citations = data.get("citations")
        if citations is None:
            citations = [r.get("url") for r in (data.get("search_results") or []) if isinstance(r, dict)]
        citations = [c for c in citations if isinstance(c, str) and c]
        logger.info(f"[search] {len(citations)} citations for query {query!r}")
        return SearchResult(answer=answer, citations=citations)


__all__ = ['SearchResult', 'build_search_query', 'PerplexitySearchProvider', 'PERPLEXITY_API_URL']
