"""Shared types for record backends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class Backend(str, Enum):
    """Which backend served an operation.  Values are reported to clients."""

    PRIMARY = "supabase"
    FALLBACK = "temporary"


class Outcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class StoreResult:
    """Explicit outcome of one backend operation.

    Backends never raise for expected failures; they return a result with
    ``outcome`` set and, for errors, a human-readable ``error``.
    """

    backend: Backend
    outcome: Outcome
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, backend: Backend, data: Any = None) -> StoreResult:
        return cls(backend, Outcome.OK, data=data)

    @classmethod
    def not_found(cls, backend: Backend) -> StoreResult:
        return cls(backend, Outcome.NOT_FOUND, error="Record not found")

    @classmethod
    def failed(cls, backend: Backend, error: str) -> StoreResult:
        return cls(backend, Outcome.ERROR, error=error)

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def is_not_found(self) -> bool:
        return self.outcome is Outcome.NOT_FOUND

    @property
    def source(self) -> str:
        return self.backend.value


class RecordBackend(Protocol):
    """Persistence interface shared by the primary and fallback backends."""

    backend: Backend

    async def list(self, filters: dict[str, Any] | None = None) -> StoreResult:
        """Return every matching record, newest first."""
        ...

    async def get(self, record_id: str) -> StoreResult: ...

    async def create(self, record: dict[str, Any]) -> StoreResult: ...

    async def update(self, record_id: str, changes: dict[str, Any]) -> StoreResult: ...

    async def delete(self, record_id: str) -> StoreResult: ...
