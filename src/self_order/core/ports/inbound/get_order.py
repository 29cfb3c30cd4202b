from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import (
    ItemStatus,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Station,
)


@dataclass(frozen=True)
class GetOrderQuery:
    order_id: str  # UUID string


@dataclass(frozen=True)
class OrderItemView:
    order_item_id: int
    menu_id: str
    name: str
    category: Station
    quantity: int
    price: int
    subtotal: int
    status: ItemStatus
    notes: str = ""


@dataclass(frozen=True)
class OrderView:
    order_id: str
    order_number: str
    table_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    items: Sequence[OrderItemView]
    subtotal: int
    service_charge: int
    tax: int
    total: int
    service_charge_rate: Decimal
    tax_rate: Decimal
    created_at: datetime
    notes: str = ""
    paid_at: datetime | None = None
    completed_at: datetime | None = None


class GetOrderUseCase(Protocol):
    def get_order(self, query: GetOrderQuery) -> Result[OrderView, OrderError]: ...


def to_item_view(item: OrderItem) -> OrderItemView:
    return OrderItemView(
        order_item_id=item.order_item_id,
        menu_id=item.menu_id,
        name=item.name,
        category=item.category,
        quantity=item.quantity,
        price=item.price,
        subtotal=item.subtotal,
        status=item.status,
        notes=item.notes,
    )


def to_order_view(order: Order) -> OrderView:
    b = order.breakdown
    return OrderView(
        order_id=str(order.order_id.value),
        order_number=order.order_number,
        table_number=order.table_number,
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        items=tuple(to_item_view(it) for it in order.items),
        subtotal=b.subtotal,
        service_charge=b.service_charge,
        tax=b.tax,
        total=b.total,
        service_charge_rate=b.rates.service_charge_rate,
        tax_rate=b.rates.tax_rate,
        created_at=order.created_at,
        notes=order.notes,
        paid_at=order.paid_at,
        completed_at=order.completed_at,
    )
