from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from self_order.core.domain.model.cart import MAX_NOTES_LENGTH
from self_order.core.domain.model.errors import StockShortage
from self_order.core.domain.model.order import (
    Breakdown,
    ItemStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RateConfig,
    Station,
    TableSession,
)
from self_order.core.ports.inbound.get_order import OrderItemView, OrderView
from self_order.core.ports.inbound.station_orders import StationOrderView


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- requests --------------------------------------------------------------


class PlaceOrderLineIn(CamelModel):
    menu_id: str = Field(min_length=1, examples=["nasi-goreng"])
    quantity: int = Field(gt=0, examples=[2])
    notes: str = Field("", max_length=MAX_NOTES_LENGTH)
    add_on_ids: list[str] = Field(default_factory=list)


class PlaceOrderRequest(CamelModel):
    session_token: str = Field(min_length=1)
    items: list[PlaceOrderLineIn] = Field(min_length=1)
    notes: str | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    email: str | None = None


class ItemStatusIn(CamelModel):
    status: ItemStatus


class BatchItemStatusIn(CamelModel):
    item_ids: list[int] = Field(min_length=1)
    status: ItemStatus


class PaymentCallbackIn(CamelModel):
    order_id: str = Field(min_length=1)
    status: PaymentStatus
    transaction_id: str | None = None


class BindSessionIn(CamelModel):
    qr_value: str = Field(min_length=1, examples=["table:12"])


# ---- responses -------------------------------------------------------------


class BreakdownOut(CamelModel):
    subtotal: int
    service_charge: int
    tax_base: int
    tax: int
    total: int
    service_charge_rate: Decimal
    tax_rate: Decimal

    @classmethod
    def of(cls, b: Breakdown) -> "BreakdownOut":
        return cls(
            subtotal=b.subtotal,
            service_charge=b.service_charge,
            tax_base=b.tax_base,
            tax=b.tax,
            total=b.total,
            service_charge_rate=b.rates.service_charge_rate,
            tax_rate=b.rates.tax_rate,
        )

    def to_breakdown(self) -> Breakdown:
        return Breakdown(
            subtotal=self.subtotal,
            service_charge=self.service_charge,
            tax_base=self.tax_base,
            tax=self.tax,
            total=self.total,
            rates=RateConfig(self.service_charge_rate, self.tax_rate),
        )


class OrderReceiptResponse(CamelModel):
    order_id: str
    order_number: str
    totals: BreakdownOut
    payment_status: PaymentStatus
    redirect_url: str | None = None


class OrderItemOut(CamelModel):
    order_item_id: int
    menu_id: str
    name: str
    category: Station
    quantity: int
    price: int
    subtotal: int
    status: ItemStatus
    notes: str = ""

    @classmethod
    def of(cls, v: OrderItemView) -> "OrderItemOut":
        return cls(
            order_item_id=v.order_item_id,
            menu_id=v.menu_id,
            name=v.name,
            category=v.category,
            quantity=v.quantity,
            price=v.price,
            subtotal=v.subtotal,
            status=v.status,
            notes=v.notes,
        )

    def to_view(self) -> OrderItemView:
        return OrderItemView(
            order_item_id=self.order_item_id,
            menu_id=self.menu_id,
            name=self.name,
            category=self.category,
            quantity=self.quantity,
            price=self.price,
            subtotal=self.subtotal,
            status=self.status,
            notes=self.notes,
        )


class OrderDetailsResponse(CamelModel):
    order_id: str
    order_number: str
    table_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    items: list[OrderItemOut]
    subtotal: int
    service_charge_amount: int
    tax_amount: int
    total_amount: int
    service_charge_rate: Decimal
    tax_rate: Decimal
    notes: str = ""
    created_at: datetime
    paid_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def of(cls, v: OrderView) -> "OrderDetailsResponse":
        return cls(
            order_id=v.order_id,
            order_number=v.order_number,
            table_number=v.table_number,
            status=v.status,
            payment_status=v.payment_status,
            payment_method=v.payment_method,
            items=[OrderItemOut.of(it) for it in v.items],
            subtotal=v.subtotal,
            service_charge_amount=v.service_charge,
            tax_amount=v.tax,
            total_amount=v.total,
            service_charge_rate=v.service_charge_rate,
            tax_rate=v.tax_rate,
            notes=v.notes,
            created_at=v.created_at,
            paid_at=v.paid_at,
            completed_at=v.completed_at,
        )

    def to_view(self) -> OrderView:
        return OrderView(
            order_id=self.order_id,
            order_number=self.order_number,
            table_number=self.table_number,
            status=self.status,
            payment_status=self.payment_status,
            payment_method=self.payment_method,
            items=tuple(it.to_view() for it in self.items),
            subtotal=self.subtotal,
            service_charge=self.service_charge_amount,
            tax=self.tax_amount,
            total=self.total_amount,
            service_charge_rate=self.service_charge_rate,
            tax_rate=self.tax_rate,
            created_at=self.created_at,
            notes=self.notes,
            paid_at=self.paid_at,
            completed_at=self.completed_at,
        )


class OrderListResponse(CamelModel):
    items: list[OrderDetailsResponse]


class SessionResponse(CamelModel):
    session_token: str
    table_number: str
    expires_at: datetime

    @classmethod
    def of(cls, session: TableSession) -> "SessionResponse":
        return cls(
            session_token=session.token,
            table_number=session.table_number,
            expires_at=session.expires_at,
        )


class SessionHistoryResponse(CamelModel):
    orders: list[OrderDetailsResponse]
    total_orders: int
    total_spent: int


class ItemStatusResponse(CamelModel):
    items: list[OrderItemOut]
    order_status: OrderStatus
    order: OrderDetailsResponse


class StationOrderOut(CamelModel):
    order_id: str
    order_number: str
    table_number: str
    status: OrderStatus
    created_at: datetime
    items: list[OrderItemOut]

    @classmethod
    def of(cls, v: StationOrderView) -> "StationOrderOut":
        return cls(
            order_id=v.order_id,
            order_number=v.order_number,
            table_number=v.table_number,
            status=v.status,
            created_at=v.created_at,
            items=[OrderItemOut.of(it) for it in v.items],
        )

    def to_view(self) -> StationOrderView:
        return StationOrderView(
            order_id=self.order_id,
            order_number=self.order_number,
            table_number=self.table_number,
            status=self.status,
            created_at=self.created_at,
            items=tuple(it.to_view() for it in self.items),
        )


class StationOrdersResponse(CamelModel):
    station: Station
    orders: list[StationOrderOut]


class RatesResponse(CamelModel):
    service_charge_rate: Decimal
    tax_rate: Decimal
    service_charge_percentage: str
    tax_percentage: str

    @classmethod
    def of(cls, rates: RateConfig) -> "RatesResponse":
        return cls(
            service_charge_rate=rates.service_charge_rate,
            tax_rate=rates.tax_rate,
            service_charge_percentage=_percent(rates.service_charge_rate),
            tax_percentage=_percent(rates.tax_rate),
        )


class StockErrorOut(CamelModel):
    menu_id: str
    requested: int
    available: int

    @classmethod
    def of(cls, s: StockShortage) -> "StockErrorOut":
        return cls(menu_id=s.menu_id, requested=s.requested, available=s.available)

    def to_shortage(self) -> StockShortage:
        return StockShortage(self.menu_id, self.requested, self.available)


class ErrorResponse(CamelModel):
    type: str
    message: str
    details: list[dict[str, Any]] | None = None
    stock_errors: list[StockErrorOut] | None = None
    station: str | None = None
    category: str | None = None


def _percent(rate: Decimal) -> str:
    return f"{(rate * 100).normalize():f}%"
