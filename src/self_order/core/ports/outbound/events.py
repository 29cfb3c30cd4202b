from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import OrderId, OrderStatus, PaymentStatus


@dataclass(frozen=True)
class OrderPlaced:
    order_id: OrderId
    order_number: str
    table_number: str
    total: int


@dataclass(frozen=True)
class OrderStatusChanged:
    order_id: OrderId
    order_number: str
    previous: OrderStatus
    current: OrderStatus
    payment_status: PaymentStatus
    actor: str


OrderEvent = Union[OrderPlaced, OrderStatusChanged]


class EventPublisher(Protocol):
    def publish(self, event: OrderEvent) -> Result[None, OrderError]: ...
