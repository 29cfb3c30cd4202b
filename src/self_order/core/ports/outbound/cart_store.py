from __future__ import annotations

from typing import Any, Protocol


class CartStore(Protocol):
    """Device-scoped durable storage for the customer cart."""

    def load(self) -> dict[str, Any] | None: ...

    def save(self, state: dict[str, Any]) -> None: ...
