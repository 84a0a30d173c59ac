"""Document and blob storage backends.

Document store contract: ``find(filters) -> [doc]`` (each doc carries its
``id``), ``insert(doc) -> id``, ``update(id, fields)``.
Blob store contract: ``put(path, data, content_type)``,
``get_durable_url(path) -> str``.

File-based implementations are the default; in-memory ones back tests and
throwaway runs. Neither enforces uniqueness: deduplication is the caller's
existence query.
"""
from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ccl_pipeline.errors import NotFoundError

logger = logging.getLogger(__name__)


def _matches(doc: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    return all(doc.get(k) == v for k, v in filters.items())


class InMemoryDocumentStore:
    def __init__(self) -> None:
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def find(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with self._lock:
            return [{**doc, "id": doc_id} for doc_id, doc in self._docs.items() if _matches(doc, filters)]

    def insert(self, doc: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        with self._lock:
            self._docs[doc_id] = {k: v for k, v in doc.items() if k != "id"}
        return doc_id

    def update(self, doc_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            if doc_id not in self._docs:
                raise NotFoundError(f"No document with id {doc_id}")
            self._docs[doc_id].update(fields)

    def __len__(self) -> int:
        return len(self._docs)


class JsonDocumentStore:
    """One JSON file per document under ``root`` (swap for a hosted DB later)."""

    def __init__(self, root: str = 'data/tournaments') -> None:
        self.root = root
        os.makedirs(root, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, doc_id: str) -> str:
        return os.path.join(self.root, f"{doc_id}.json")

    def _read(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping corrupt document {path}: {e}")
            return None

    def _write(self, doc_id: str, doc: Dict[str, Any]) -> None:
        path = self._path(doc_id)
        tmp = os.path.join(self.root, f".tmp_{doc_id}.json")
        with open(tmp, 'w', encoding='utf-8') as f:
            json.dump(doc, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)

    def find(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        out = []
        for name in sorted(os.listdir(self.root)):
            if not name.endswith('.json') or name.startswith('.tmp_'):
                continue
            doc = self._read(os.path.join(self.root, name))
            if doc is not None and _matches(doc, filters):
                out.append({**doc, "id": name[:-len('.json')]})
        return out

    def insert(self, doc: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        with self._lock:
            self._write(doc_id, {k: v for k, v in doc.items() if k != "id"})
        return doc_id

    def update(self, doc_id: str, fields: Dict[str, Any]) -> None:
        path = self._path(doc_id)
        with self._lock:
            if not os.path.exists(path):
                raise NotFoundError(f"No document with id {doc_id}")
            doc = self._read(path) or {}
            doc.update(fields)
            self._write(doc_id, doc)


def _safe_relpath(path: str) -> str:
    parts = [p for p in path.replace('\\', '/').split('/') if p]
    if not parts or any(p in ('.', '..') for p in parts):
        raise ValueError(f"Invalid blob path: {path!r}")
    return '/'.join(parts)


class InMemoryBlobStore:
    def __init__(self, base_url: str = "memory://blobs") -> None:
        self.base_url = base_url.rstrip('/')
        self.blobs: Dict[str, Tuple[bytes, str]] = {}
        self.put_count = 0

    def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        self.blobs[_safe_relpath(path)] = (bytes(data), content_type)
        self.put_count += 1

    def get_durable_url(self, path: str) -> str:
        rel = _safe_relpath(path)
        if rel not in self.blobs:
            raise NotFoundError(f"No blob at {rel}")
        return f"{self.base_url}/{rel}"

    def read_url(self, url: str) -> Optional[bytes]:
        prefix = self.base_url + '/'
        if not url.startswith(prefix):
            return None
        entry = self.blobs.get(url[len(prefix):])
        return entry[0] if entry else None


class LocalBlobStore:
    """Blobs on the local filesystem.

    Durable URLs point at ``public_base_url`` when the root is served by a
    static host, otherwise at a ``file://`` URI the fetcher can read back.
    """

    def __init__(self, root: str = 'data/blobs', public_base_url: str = "") -> None:
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip('/')
        self.root.mkdir(parents=True, exist_ok=True)

    def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        target = self.root / _safe_relpath(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(f".tmp_{target.name}")
        tmp.write_bytes(data)
        os.replace(tmp, target)
        meta = {"content_type": content_type, "size": len(data)}
        target.with_name(target.name + ".meta.json").write_text(json.dumps(meta), encoding='utf-8')
        logger.info(f"[blob] wrote {len(data)} bytes to {target}")

    def get_durable_url(self, path: str) -> str:
        rel = _safe_relpath(path)
        target = self.root / rel
        if not target.exists():
            raise NotFoundError(f"No blob at {rel}")
        if self.public_base_url:
            return f"{self.public_base_url}/{rel}"
        return target.as_uri()


__all__ = [
    'InMemoryDocumentStore', 'JsonDocumentStore', 'InMemoryBlobStore', 'LocalBlobStore',
]
