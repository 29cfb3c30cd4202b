from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import MenuItem, OrderItem


@dataclass(frozen=True)
class Reservation:
    menu_id: str
    quantity: int


def reservations_for(items: Iterable[OrderItem]) -> tuple[Reservation, ...]:
    # lines with different notes/add-ons draw on the same stock
    wanted: Counter[str] = Counter()
    for it in items:
        wanted[it.menu_id] += it.quantity
    return tuple(Reservation(mid, qty) for mid, qty in wanted.items())


class MenuCatalog(Protocol):
    """Menu lookup. Stock figures here are informational only."""

    def get_menu_item(self, menu_id: str) -> Result[MenuItem, OrderError]: ...


class InventoryGateway(Protocol):
    def reserve(self, reservations: Sequence[Reservation]) -> Result[None, OrderError]:
        """Reserve every line or none; a shortage fails with StockConflict
        listing all conflicting menu ids."""
        ...

    def release(self, reservations: Sequence[Reservation]) -> Result[None, OrderError]:
        """Give back stock held by an order that will never be served."""
        ...
