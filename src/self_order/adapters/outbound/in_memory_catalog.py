from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Sequence

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import (
    OrderError,
    StockConflict,
    StockShortage,
    ValidationError,
)
from self_order.core.domain.model.order import MenuItem
from self_order.core.ports.outbound.catalog import (
    InventoryGateway,
    MenuCatalog,
    Reservation,
)


@dataclass
class InMemoryCatalog(MenuCatalog, InventoryGateway):
    items: Dict[str, MenuItem] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    @classmethod
    def of(cls, items: Iterable[MenuItem]) -> "InMemoryCatalog":
        return cls(items={m.menu_id: m for m in items})

    def get_menu_item(self, menu_id: str) -> Result[MenuItem, OrderError]:
        with self._lock:
            item = self.items.get(menu_id)
        if item is None:
            return Failure(ValidationError(f"unknown menu item: {menu_id}"))
        return Success(item)

    def reserve(self, reservations: Sequence[Reservation]) -> Result[None, OrderError]:
        with self._lock:
            # validate first (no partial reservation)
            shortages = []
            for r in reservations:
                item = self.items.get(r.menu_id)
                available = _available(item)
                if available < r.quantity:
                    shortages.append(StockShortage(r.menu_id, r.quantity, available))
            if shortages:
                return Failure(
                    StockConflict(
                        message="insufficient stock", stock_errors=tuple(shortages)
                    )
                )

            # commit reservation
            for r in reservations:
                item = self.items[r.menu_id]
                self.items[r.menu_id] = replace(
                    item, stock_quantity=item.stock_quantity - r.quantity
                )
        return Success(None)

    def release(self, reservations: Sequence[Reservation]) -> Result[None, OrderError]:
        with self._lock:
            for r in reservations:
                item = self.items.get(r.menu_id)
                if item is None:
                    # dropped from the menu since it was reserved
                    continue
                self.items[r.menu_id] = replace(
                    item, stock_quantity=item.stock_quantity + r.quantity
                )
        return Success(None)


def _available(item: MenuItem | None) -> int:
    if item is None or not item.is_available:
        return 0
    return max(0, item.stock_quantity)
