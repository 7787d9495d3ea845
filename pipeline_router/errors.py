from __future__ import annotations

from dataclasses import dataclass
from typing import Any

REASON_CODES: frozenset[str] = frozenset(
    {
        "invalid_edge",
        "unknown_node",
        "duplicate_node",
        "malformed_network",
        "search_deadline_exceeded",
    }
)


@dataclass
class RouterError(ValueError):
    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class InvalidEdgeError(RouterError):
    """Edge attributes that can never produce a meaningful cost."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("invalid_edge", message, details)


class NetworkValidationError(RouterError):
    def __init__(
        self,
        message: str,
        *,
        reason_code: str = "malformed_network",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(normalize_reason_code(reason_code), message, details)


class SearchTimeoutError(RouterError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("search_deadline_exceeded", message, details)


def normalize_reason_code(reason_code: str, *, default: str = "malformed_network") -> str:
    code = str(reason_code or "").strip()
    if code in REASON_CODES:
        return code
    return default
