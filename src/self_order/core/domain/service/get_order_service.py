from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import OrderError, ValidationError
from self_order.core.domain.model.order import OrderId
from self_order.core.ports.inbound.get_order import (
    GetOrderQuery,
    GetOrderUseCase,
    OrderView,
    to_order_view,
)
from self_order.core.ports.outbound.orders import OrderRepository


@dataclass(frozen=True)
class GetOrderDeps:
    orders: OrderRepository


@dataclass(frozen=True)
class GetOrderService(GetOrderUseCase):
    deps: GetOrderDeps

    def get_order(self, query: GetOrderQuery) -> Result[OrderView, OrderError]:
        return parse_order_id(query.order_id).bind(self.deps.orders.get).map(
            to_order_view
        )


def parse_order_id(raw: str) -> Result[OrderId, OrderError]:
    try:
        return Success(OrderId(UUID(raw)))
    except ValueError:
        return Failure(ValidationError(message="order_id must be a valid UUID"))
