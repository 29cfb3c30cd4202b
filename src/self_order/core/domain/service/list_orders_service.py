from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result

from self_order.core.domain.model.errors import OrderError, ValidationError
from self_order.core.domain.model.order import Order, OrderStatus, PaymentStatus
from self_order.core.ports.inbound.get_order import OrderView, to_order_view
from self_order.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
    SessionHistoryView,
)
from self_order.core.ports.outbound.orders import OrderRepository


@dataclass(frozen=True)
class ListOrdersDeps:
    orders: OrderRepository


@dataclass(frozen=True)
class ListOrdersService(ListOrdersUseCase):
    deps: ListOrdersDeps

    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderView], OrderError]:
        return self.deps.orders.list().map(
            lambda orders: tuple(
                to_order_view(o) for o in orders if _matches(o, query)
            )
        )

    def session_history(
        self, session_token: str
    ) -> Result[SessionHistoryView, OrderError]:
        if not session_token.strip():
            return Failure(ValidationError(message="session_token is required"))
        return self.deps.orders.list(session_token=session_token).map(_to_history)


def _matches(order: Order, query: ListOrdersQuery) -> bool:
    status = order.status
    if query.exclude_completed and status == OrderStatus.COMPLETED:
        return False
    if query.status is not None and status != query.status:
        return False
    if query.payment_status is not None and order.payment_status != query.payment_status:
        return False
    return True


def _to_history(orders: Sequence[Order]) -> SessionHistoryView:
    views = tuple(to_order_view(o) for o in orders)
    spent = sum(o.total_amount for o in orders if o.payment_status == PaymentStatus.PAID)
    return SessionHistoryView(orders=views, total_orders=len(views), total_spent=spent)
