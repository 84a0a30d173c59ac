"""Rulebook question answering over an archived CCL rulebook.

Retrieval runs over a TF-IDF index of overlapping text chunks; the top
chunks become the context of a single model call.

Contract:
- RulebookIndex: explicit, long-lived context object (build / invalidate / rebuild / search)
- RulebookIndexRegistry: one index per (season, year), built on first use
- retrieve(index, question) -> List[chunk]
- augment(question, chunks) -> context
- generate(question, context, chunks, llm) -> response
"""
from __future__ import annotations

import logging
import os
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

import dill
import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer

from ccl_pipeline import errors
from ccl_pipeline.pipeline.context import PipelineContext, find_records, normalize_key
from ccl_pipeline.pipeline.extraction import load_rulebook_text, select_archived_record

logger = logging.getLogger(__name__)

SEPARATORS = ("\n\n", "\n", ". ", " ")

PROMPT_TEMPLATE = """Use the following pieces of context to answer the question at the end.
If you don't know the answer, just say that you don't know, don't try to make up an answer.
Pay special attention to section numbers and specific requirements mentioned in the context.

{context}

Question: {question}
Answer:"""


def split_text(text: str, chunk_size: int = 800, chunk_overlap: int = 150) -> List[str]:
    """Split into overlapping chunks, cutting at the coarsest separator available."""
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be smaller than chunk_size")
    text = text.strip()
    chunks: List[str] = []
    start = 0
    while start < len(text):
        end = min(start + chunk_size, len(text))
        if end < len(text):
            window = text[start:end]
            for sep in SEPARATORS:
                cut = window.rfind(sep)
                if cut > chunk_size // 2:
                    end = start + cut + len(sep)
                    break
        piece = text[start:end].strip()
        if piece:
            chunks.append(piece)
        if end >= len(text):
            break
        start = max(end - chunk_overlap, start + 1)
    return chunks


class RulebookIndex:
    def __init__(self, chunk_size: int = 800, chunk_overlap: int = 150, max_features: int = 20000) -> None:
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.max_features = max_features
        self.source: Optional[str] = None
        self.chunks: List[str] = []
        self._vectorizer: Optional[TfidfVectorizer] = None
        self._matrix: Any = None

    @property
    def is_ready(self) -> bool:
        return self._vectorizer is not None and self._matrix is not None

    def build(self, text: str, source: Optional[str] = None) -> "RulebookIndex":
        chunks = split_text(text, self.chunk_size, self.chunk_overlap)
        if not chunks:
            raise errors.DocumentTextError("Rulebook text is empty; nothing to index")
        vectorizer = TfidfVectorizer(max_features=self.max_features, ngram_range=(1, 2),
                                     sublinear_tf=True, stop_words="english")
        try:
            matrix = vectorizer.fit_transform(chunks)
        except ValueError as e:
            raise errors.DocumentTextError(f"Could not index rulebook text: {e}") from e
        self.chunks, self._vectorizer, self._matrix, self.source = chunks, vectorizer, matrix, source
        logger.info(f"[rag] indexed {len(chunks)} chunks from {source or 'text'}")
        return self

    def invalidate(self) -> None:
        self.chunks = []
        self._vectorizer = None
        self._matrix = None
        self.source = None

    def rebuild(self, text: str, source: Optional[str] = None) -> "RulebookIndex":
        self.invalidate()
        return self.build(text, source)

    def search(self, question: str, k: int = 5) -> List[Dict[str, Any]]:
        if not self.is_ready:
            raise RuntimeError("RulebookIndex has not been built")
        qv = self._vectorizer.transform([question])
        scores = (self._matrix @ qv.T).toarray().ravel()
        results = []
        for idx in np.argsort(-scores)[:k]:
            if scores[idx] > 0:
                results.append({
                    "chunk_id": int(idx),
                    "text": self.chunks[idx],
                    "score": float(scores[idx]),
                    "rank": len(results) + 1,
                })
        return results

    def save(self, path: str) -> str:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "wb") as f:
            dill.dump({
                "source": self.source,
                "chunks": self.chunks,
                "vectorizer": self._vectorizer,
                "matrix": self._matrix,
                "chunk_size": self.chunk_size,
                "chunk_overlap": self.chunk_overlap,
            }, f)
        return path

    @classmethod
    def load(cls, path: str) -> "RulebookIndex":
        with open(path, "rb") as f:
            data = dill.load(f)
        index = cls(chunk_size=data["chunk_size"], chunk_overlap=data["chunk_overlap"])
        index.source = data["source"]
        index.chunks = data["chunks"]
        index._vectorizer = data["vectorizer"]
        index._matrix = data["matrix"]
        return index


Key = Tuple[str, int]


class RulebookIndexRegistry:
    """Holds one ``RulebookIndex`` per ``(season, year)``.

    Created once by the application and passed to each query; an index is
    rebuilt when the archived document it was built from changes, or after
    ``invalidate``. Builds for one key never block queries for another key:
    ``_lock`` only guards the maps, each key has its own build lock.
    """

    def __init__(self, chunk_size: int = 800, chunk_overlap: int = 150, cache_dir: Optional[str] = None) -> None:
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.cache_dir = cache_dir
        self._indexes: Dict[Key, RulebookIndex] = {}
        self._key_locks: Dict[Key, threading.Lock] = {}
        self._lock = threading.Lock()

    def _cache_path(self, key: Key) -> Optional[str]:
        if not self.cache_dir:
            return None
        return os.path.join(self.cache_dir, f"rulebook_{key[0]}_{key[1]}.pkl")

    def _key_lock(self, key: Key) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def get(self, key: Key) -> Optional[RulebookIndex]:
        with self._lock:
            return self._indexes.get(key)

    def get_or_build(self, key: Key, source: str, load_text: Callable[[], str]) -> RulebookIndex:
        with self._key_lock(key):
            index = self.get(key)
            if index is not None and index.is_ready and index.source == source:
                return index
            cache_path = self._cache_path(key)
            if cache_path and os.path.exists(cache_path):
                try:
                    cached = RulebookIndex.load(cache_path)
                    if cached.source == source:
                        with self._lock:
                            self._indexes[key] = cached
                        logger.info(f"[rag] loaded cached index for {key} from {cache_path}")
                        return cached
                except Exception as e:
                    logger.warning(f"[rag] failed to load cached index {cache_path}: {e}")
            # fresh object: a query may still be searching the old one
            built = RulebookIndex(self.chunk_size, self.chunk_overlap).build(load_text(), source)
            with self._lock:
                self._indexes[key] = built
            if cache_path:
                built.save(cache_path)
            return built

    def invalidate(self, key: Key) -> bool:
        with self._key_lock(key):
            with self._lock:
                index = self._indexes.pop(key, None)
            cache_path = self._cache_path(key)
            removed_cache = False
            if cache_path and os.path.exists(cache_path):
                os.remove(cache_path)
                removed_cache = True
            return index is not None or removed_cache

    def clear(self) -> None:
        with self._lock:
            keys = list(self._indexes)
        for key in keys:
            self.invalidate(key)


def retrieve(index: RulebookIndex, question: str, k: int = 5) -> List[Dict[str, Any]]:
    return index.search(question, k)


def augment(question: str, chunks: List[Dict[str, Any]], max_context_length: int = 6000) -> str:
    """Concatenate retrieved chunks (best first) up to ``max_context_length`` characters."""
    parts: List[str] = []
    total = 0
    for chunk in chunks:
        text = chunk.get("text", "")
        if parts and total + len(text) > max_context_length:
            break
        parts.append(text)
        total += len(text)
    return "\n\n".join(parts)


def generate(question: str, context: str, chunks: List[Dict[str, Any]], llm: Any) -> Dict[str, Any]:
    if not chunks:
        return {
            "answer": "I don't know. No passage of the rulebook matches this question.",
            "context_used": "",
            "source_chunks": [],
        }
    try:
        answer = llm.complete(PROMPT_TEMPLATE.format(context=context, question=question))
    except errors.PipelineError:
        raise
    except Exception as e:
        raise errors.ModelProviderError(f"Language model call failed: {e}") from e
    return {
        "answer": answer.strip(),
        "context_used": context,
        "source_chunks": [{"chunk_id": c["chunk_id"], "score": c["score"]} for c in chunks],
    }


def ask_rulebook(ctx: PipelineContext, registry: RulebookIndexRegistry, season: Any, year: Any,
                 question: str, k: int = 5) -> Dict[str, Any]:
    s, y = normalize_key(season, year)
    if not question or not question.strip():
        raise errors.ValidationError("Question is required")
    record = select_archived_record(find_records(ctx.store, s, y), s, y)
    index = registry.get_or_build((s.value, y), record.archived_document_url,
                                  lambda: load_rulebook_text(ctx, record))
    chunks = retrieve(index, question, k)
    context = augment(question, chunks)
    response = generate(question, context, chunks, ctx.llm)
    response["question"] = question
    return response


__all__ = [
    'split_text', 'RulebookIndex', 'RulebookIndexRegistry',
    'retrieve', 'augment', 'generate', 'ask_rulebook',
]
