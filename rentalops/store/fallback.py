"""Fallback backend: a single JSON array on local disk.

Every operation loads the whole collection, scans it linearly by ``id``,
and (for mutations) writes the whole collection back.  Writes go to a
temporary file that is atomically renamed over the target.

The file I/O is synchronous and runs on the calling thread, so coroutines on
one event loop never interleave inside a read-modify-write cycle.  The
per-file lock only matters for callers on other threads (a second event
loop, a threadpool, synchronous scripts) sharing the same path.  Separate
processes sharing the file are still last-writer-wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from rentalops.store.base import Backend, StoreResult

logger = logging.getLogger(__name__)

_locks: dict[Path, threading.Lock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.Lock()
        return lock


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class JsonFileBackend:
    """Record operations over one JSON file.

    Parameters
    ----------
    path:
        Location of the JSON array.  Parent directories are created on the
        first write.  A missing or unparsable file reads as empty.
    """

    backend = Backend.FALLBACK

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = _lock_for(self._path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            return []
        try:
            records = json.loads(self._path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Fallback store %s is not valid JSON; treating it as empty", self._path)
            return []
        if not isinstance(records, list):
            logger.warning("Fallback store %s does not hold a JSON array; treating it as empty", self._path)
            return []
        return records

    def _write(self, records: list[dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(records, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _failed(self, action: str, exc: OSError) -> StoreResult:
        logger.error("Fallback store %s failed on %s: %s", action, self._path, exc, exc_info=True)
        return StoreResult.failed(self.backend, f"Local storage error: {exc}")

    @staticmethod
    def _index_of(records: list[dict[str, Any]], record_id: str) -> int | None:
        for index, record in enumerate(records):
            if record.get("id") == record_id:
                return index
        return None

    async def list(self, filters: dict[str, Any] | None = None) -> StoreResult:
        try:
            with self._lock:
                records = self._read()
        except OSError as exc:
            return self._failed("list", exc)
        for column, value in (filters or {}).items():
            records = [r for r in records if r.get(column) == value]
        records.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return StoreResult.ok(self.backend, records)

    async def get(self, record_id: str) -> StoreResult:
        try:
            with self._lock:
                records = self._read()
        except OSError as exc:
            return self._failed("get", exc)
        index = self._index_of(records, record_id)
        if index is None:
            return StoreResult.not_found(self.backend)
        return StoreResult.ok(self.backend, records[index])

    async def create(self, record: dict[str, Any]) -> StoreResult:
        now = _now_iso()
        stored = {**record, "id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
        try:
            with self._lock:
                records = self._read()
                records.append(stored)
                self._write(records)
        except OSError as exc:
            return self._failed("create", exc)
        logger.info("Stored record %s in fallback store %s", stored["id"], self._path)
        return StoreResult.ok(self.backend, stored)

    async def update(self, record_id: str, changes: dict[str, Any]) -> StoreResult:
        changes = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
        try:
            with self._lock:
                records = self._read()
                index = self._index_of(records, record_id)
                if index is None:
                    return StoreResult.not_found(self.backend)
                records[index] = {**records[index], **changes, "updated_at": _now_iso()}
                self._write(records)
        except OSError as exc:
            return self._failed("update", exc)
        return StoreResult.ok(self.backend, records[index])

    async def delete(self, record_id: str) -> StoreResult:
        try:
            with self._lock:
                records = self._read()
                index = self._index_of(records, record_id)
                if index is None:
                    return StoreResult.not_found(self.backend)
                removed = records.pop(index)
                self._write(records)
        except OSError as exc:
            return self._failed("delete", exc)
        return StoreResult.ok(self.backend, removed)

    def is_writable(self) -> bool:
        """Whether the store directory exists (or can be created) and is writable."""
        directory = self._path.parent
        while not directory.exists() and directory != directory.parent:
            directory = directory.parent
        return os.access(directory, os.W_OK)
