from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import ItemStatus, PaymentStatus, Station
from self_order.core.ports.inbound.get_order import OrderItemView, OrderView


@dataclass(frozen=True)
class UpdateItemStatusCommand:
    order_id: str
    order_item_ids: Sequence[int]
    status: ItemStatus
    station: Station


@dataclass(frozen=True)
class ItemStatusResult:
    items: Sequence[OrderItemView]
    order: OrderView


@dataclass(frozen=True)
class PaymentCallbackCommand:
    order_id: str
    status: PaymentStatus
    transaction_id: str | None = None


class StationItemsUseCase(Protocol):
    def update_item_status(
        self, command: UpdateItemStatusCommand
    ) -> Result[ItemStatusResult, OrderError]: ...


class CashierUseCase(Protocol):
    def validate_payment(self, order_id: str) -> Result[OrderView, OrderError]: ...

    def complete(self, order_id: str) -> Result[OrderView, OrderError]: ...

    def reopen(self, order_id: str) -> Result[OrderView, OrderError]: ...


class PaymentCallbackUseCase(Protocol):
    def handle_callback(
        self, command: PaymentCallbackCommand
    ) -> Result[OrderView, OrderError]: ...
