"""
File and Memory Embedding Stores
================================

Keyed-blob stores for the embedding cache:
- JsonFileEmbeddingStore: one JSON file per entity type
- InMemoryEmbeddingStore: process-local dict, used in tests and offline runs
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from signal_engine.config import EntityType
from signal_engine.core import EmbeddingCacheException
from signal_engine.embeddings.application import IEmbeddingStore
from signal_engine.embeddings.domain import EmbeddingRecord
from signal_engine.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

CACHE_FORMAT_VERSION = 1

# entity_id -> content_hash -> entry; insertion order is recency order
_Entries = Dict[str, Dict[str, dict]]


class InMemoryEmbeddingStore(IEmbeddingStore):
    """Embedding store backed by a dict."""

    def __init__(self):
        self._records: Dict[Tuple[str, str, str], EmbeddingRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def get_many(
        self,
        entity_type: str,
        items: List[Tuple[str, str]],
        model: str
    ) -> Dict[str, List[float]]:
        found = {}
        for entity_id, content_hash in items:
            record = self._records.get((entity_type, entity_id, content_hash))
            if record is not None and record.model == model:
                found[entity_id] = record.vector
        return found

    async def put_many(self, records: List[EmbeddingRecord]) -> None:
        for record in records:
            self._records[(record.entity_type, record.entity_id, record.content_hash)] = record

    async def clear(self, entity_type: Optional[str] = None) -> None:
        if entity_type is None:
            self._records.clear()
            return
        for key in [k for k in self._records if k[0] == entity_type]:
            del self._records[key]


class JsonFileEmbeddingStore(IEmbeddingStore):
    """
    Embedding store persisted as `<entity_type>-embeddings.json` files.

    Each file carries a `version` and `model` header; a file written by a
    different format version or model is discarded on load. Writes go to a
    temp file that atomically replaces the original. Superseded versions per
    entity are pruned beyond `max_versions`.
    """

    def __init__(self, cache_dir: Path | str, model: str, max_versions: int = 5):
        self._dir = Path(cache_dir)
        self._model = model
        self._max_versions = max(max_versions, 1)
        self._entries: Dict[str, _Entries] = {}
        self._lock = asyncio.Lock()

    def path_for(self, entity_type: str) -> Path:
        return self._dir / f"{EntityType(entity_type).value}-embeddings.json"

    async def get_many(
        self,
        entity_type: str,
        items: List[Tuple[str, str]],
        model: str
    ) -> Dict[str, List[float]]:
        if model != self._model:
            return {}
        async with self._lock:
            entries = await self._load(entity_type)
        found = {}
        for entity_id, content_hash in items:
            entry = entries.get(entity_id, {}).get(content_hash)
            if entry is not None:
                found[entity_id] = entry["vector"]
        return found

    async def put_many(self, records: List[EmbeddingRecord]) -> None:
        by_type: Dict[str, List[EmbeddingRecord]] = {}
        for record in records:
            if record.model != self._model:
                raise EmbeddingCacheException(
                    f"Record model {record.model} does not match store model {self._model}"
                )
            by_type.setdefault(record.entity_type, []).append(record)

        async with self._lock:
            for entity_type, group in by_type.items():
                entries = await self._load(entity_type)
                for record in group:
                    versions = entries.setdefault(record.entity_id, {})
                    versions.pop(record.content_hash, None)
                    versions[record.content_hash] = {
                        "vector": record.vector,
                        "created_at": record.created_at.isoformat(),
                    }
                    while len(versions) > self._max_versions:
                        versions.pop(next(iter(versions)))
                await self._save(entity_type, entries)

    async def clear(self, entity_type: Optional[str] = None) -> None:
        types = [entity_type] if entity_type else [t.value for t in EntityType]
        async with self._lock:
            for t in types:
                self._entries[t] = {}
                path = self.path_for(t)
                try:
                    path.unlink(missing_ok=True)
                except OSError as e:
                    raise EmbeddingCacheException(f"Failed to clear {path}: {e}")

    async def _load(self, entity_type: str) -> _Entries:
        if entity_type in self._entries:
            return self._entries[entity_type]

        path = self.path_for(entity_type)
        entries: _Entries = {}
        if path.exists():
            try:
                payload = json.loads(await asyncio.to_thread(path.read_text, encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning(
                    "Embedding cache file unreadable, starting empty",
                    extra={"path": str(path), "error": str(e)}
                )
                payload = {}
            if payload.get("version") == CACHE_FORMAT_VERSION and payload.get("model") == self._model:
                entries = payload.get("entries", {})
            elif payload:
                logger.info(
                    "Discarding embedding cache written by another version or model",
                    extra={
                        "path": str(path),
                        "version": payload.get("version"),
                        "model": payload.get("model"),
                    }
                )

        self._entries[entity_type] = entries
        return entries

    async def _save(self, entity_type: str, entries: _Entries) -> None:
        payload = {
            "version": CACHE_FORMAT_VERSION,
            "model": self._model,
            "entity_type": entity_type,
            "entries": entries,
        }
        try:
            await asyncio.to_thread(self._write_atomic, self.path_for(entity_type), payload)
        except OSError as e:
            raise EmbeddingCacheException(f"Failed to write embedding cache: {e}")

    @staticmethod
    def _write_atomic(path: Path, payload: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
