from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, Tuple
from uuid import UUID, uuid4


class OrderStatus(str, Enum):
    UNPAID = "unpaid"
    PENDING = "pending"
    READY = "ready"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"


class ItemStatus(str, Enum):
    PENDING = "Pending"
    DONE = "Done"


class Station(str, Enum):
    """Preparation unit; also the category an order item belongs to."""

    KITCHEN = "kitchen"
    BAR = "bar"
    PASTRY = "pastry"


class PaymentMethod(str, Enum):
    CASH = "cash"
    NON_CASH = "non_cash"


@dataclass(frozen=True)
class OrderId:
    value: UUID

    @staticmethod
    def new() -> "OrderId":
        return OrderId(uuid4())


@dataclass(frozen=True)
class RateConfig:
    service_charge_rate: Decimal = Decimal("0.07")
    tax_rate: Decimal = Decimal("0.10")

    @staticmethod
    def of(
        service_charge_rate: Decimal | float | str, tax_rate: Decimal | float | str
    ) -> "RateConfig":
        return RateConfig(
            Decimal(str(service_charge_rate)), Decimal(str(tax_rate))
        )


DEFAULT_RATES = RateConfig()


@dataclass(frozen=True)
class Breakdown:
    subtotal: int
    service_charge: int
    tax_base: int
    tax: int
    total: int
    rates: RateConfig


@dataclass(frozen=True)
class AddOn:
    id: str
    price: int


@dataclass(frozen=True)
class OrderItem:
    order_item_id: int
    menu_id: str
    name: str
    category: Station
    quantity: int
    unit_price: int
    add_ons: Tuple[AddOn, ...] = ()
    notes: str = ""
    status: ItemStatus = ItemStatus.PENDING

    @property
    def price(self) -> int:
        return self.unit_price + sum(a.price for a in self.add_ons)

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


@dataclass(frozen=True)
class Order:
    """Placed order.

    Only ``payment_status``, ``completed_at`` and item statuses change after
    creation; every change goes through ``core.domain.service.lifecycle``.
    The order-level status is never stored, see ``status``.
    """

    order_id: OrderId
    order_number: str
    session_token: str
    table_number: str
    payment_method: PaymentMethod
    items: Tuple[OrderItem, ...]
    breakdown: Breakdown
    created_at: datetime
    notes: str = ""
    email: str | None = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    paid_at: datetime | None = None
    completed_at: datetime | None = None
    transaction_id: str | None = None

    @property
    def status(self) -> OrderStatus:
        return derive_order_status(
            self.items, self.payment_status, completed=self.completed_at is not None
        )

    @property
    def subtotal(self) -> int:
        return self.breakdown.subtotal

    @property
    def service_charge_amount(self) -> int:
        return self.breakdown.service_charge

    @property
    def tax_amount(self) -> int:
        return self.breakdown.tax

    @property
    def total_amount(self) -> int:
        return self.breakdown.total

    def find_item(self, order_item_id: int) -> OrderItem | None:
        for it in self.items:
            if it.order_item_id == order_item_id:
                return it
        return None

    def items_for(self, station: Station) -> Tuple[OrderItem, ...]:
        return tuple(it for it in self.items if it.category == station)

    def with_items(self, items: Iterable[OrderItem]) -> "Order":
        return replace(self, items=tuple(items))


@dataclass(frozen=True)
class TableSession:
    token: str
    table_number: str
    expires_at: datetime


@dataclass(frozen=True)
class MenuItem:
    menu_id: str
    name: str
    category: Station
    price: int
    is_available: bool = True
    stock_quantity: int = 0
    add_ons: dict[str, int] = field(default_factory=dict)


def derive_order_status(
    items: Iterable[OrderItem],
    payment_status: PaymentStatus,
    completed: bool = False,
) -> OrderStatus:
    """Order-level status as a pure function of payment and item statuses.

    ``ready`` holds exactly when the order is paid and every item is Done, so
    flipping an item back to Pending demotes the order to ``pending``.
    ``completed`` only counts when the order would otherwise be ``ready``.
    """
    if payment_status == PaymentStatus.FAILED:
        return OrderStatus.FAILED
    if payment_status != PaymentStatus.PAID:
        return OrderStatus.UNPAID
    if not all(it.status == ItemStatus.DONE for it in items):
        return OrderStatus.PENDING
    if completed:
        return OrderStatus.COMPLETED
    return OrderStatus.READY


def now_utc() -> datetime:
    return datetime.now(timezone.utc)
