"""Error contracts raised by chainhash tables and their configuration."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ErrorEnvelope:
    """Machine-readable summary of a library failure."""

    error: str
    detail: str
    hint: str | None = None
    table: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "detail": self.detail}
        if self.hint:
            payload["hint"] = self.hint
        if self.table:
            payload["table"] = dict(self.table)
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, sort_keys=True)


class TableError(Exception):
    """Base exception carrying a hint and the table sizing at the point of failure."""

    kind = "Table"

    def __init__(
        self, message: str, *, hint: str | None = None, table: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.hint = hint
        self.table = dict(table or {})

    def envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope(error=self.kind, detail=str(self), hint=self.hint, table=self.table)


class InvalidConfigurationError(TableError, ValueError):
    """Raised for constructor arguments or config values outside their domain."""

    kind = "InvalidConfiguration"


class NullKeyUnsupportedError(TableError, TypeError):
    """Raised when a ``None`` key reaches a table built without null-key support."""

    kind = "NullKeyUnsupported"


class AllocationFailureError(TableError, MemoryError):
    """Raised when a resize cannot allocate its new bucket list."""

    kind = "AllocationFailure"


class InvariantError(TableError):
    """Raised when internal consistency checks fail."""

    kind = "Invariant"


__all__ = [
    "ErrorEnvelope",
    "TableError",
    "InvalidConfigurationError",
    "NullKeyUnsupportedError",
    "AllocationFailureError",
    "InvariantError",
]
