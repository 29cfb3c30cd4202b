from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import (
    Breakdown,
    OrderId,
    PaymentMethod,
    PaymentStatus,
)


@dataclass(frozen=True)
class PlaceOrderLine:
    menu_id: str
    quantity: int
    notes: str = ""
    add_on_ids: Sequence[str] = ()


@dataclass(frozen=True)
class PlaceOrderCommand:
    session_token: str
    lines: Sequence[PlaceOrderLine]
    payment_method: PaymentMethod
    notes: str = ""
    email: str | None = None


@dataclass(frozen=True)
class OrderReceipt:
    order_id: OrderId
    order_number: str
    breakdown: Breakdown
    payment_status: PaymentStatus
    redirect_url: str | None = None


class PlaceOrderUseCase(Protocol):
    def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[OrderReceipt, OrderError]: ...
