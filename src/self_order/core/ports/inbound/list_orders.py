from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import OrderStatus, PaymentStatus
from self_order.core.ports.inbound.get_order import OrderView


@dataclass(frozen=True)
class ListOrdersQuery:
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    exclude_completed: bool = False


@dataclass(frozen=True)
class SessionHistoryView:
    orders: Sequence[OrderView]
    total_orders: int
    total_spent: int


class ListOrdersUseCase(Protocol):
    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderView], OrderError]: ...

    def session_history(
        self, session_token: str
    ) -> Result[SessionHistoryView, OrderError]: ...
