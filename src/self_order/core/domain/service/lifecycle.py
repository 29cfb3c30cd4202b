"""Order and item status transitions.

Every function takes the current authoritative ``Order`` and returns either
the next ``Order`` or the reason the transition was refused. Nothing here
mutates state or raises for business conditions.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import (
    CategoryNotOwned,
    OrderError,
    PreconditionFailed,
    StaleWrite,
    ValidationError,
)
from self_order.core.domain.model.order import (
    ItemStatus,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Station,
    derive_order_status,
    now_utc,
)

__all__ = [
    "complete",
    "confirm_payment",
    "derive_order_status",
    "fail_payment",
    "reopen",
    "set_item_status",
    "set_items_status",
    "validate_cash_payment",
]

# ``ready`` stays editable so a station can undo a Done item.
_ITEM_EDITABLE = {OrderStatus.PENDING, OrderStatus.READY}
_TERMINAL = {OrderStatus.COMPLETED, OrderStatus.FAILED}


def set_item_status(
    order: Order, order_item_id: int, status: ItemStatus, station: Station
) -> Result[Order, OrderError]:
    return set_items_status(order, (order_item_id,), status, station)


def set_items_status(
    order: Order,
    order_item_ids: Iterable[int],
    status: ItemStatus,
    station: Station,
) -> Result[Order, OrderError]:
    """All-or-nothing status change for items owned by ``station``."""
    ids = tuple(order_item_ids)
    if not ids:
        return Failure(ValidationError("at least one item id is required"))

    for item_id in ids:
        item = order.find_item(item_id)
        if item is None:
            return Failure(
                StaleWrite(f"item {item_id} is not part of order {order.order_number}")
            )
        if item.category != station:
            return Failure(
                CategoryNotOwned(
                    message=f"item {item_id} belongs to another station",
                    station=station.value,
                    category=item.category.value,
                )
            )

    current = order.status
    if current in _TERMINAL:
        return Failure(
            StaleWrite(f"order {order.order_number} is already {current.value}")
        )
    if current not in _ITEM_EDITABLE:
        return Failure(
            PreconditionFailed(
                message=f"order {order.order_number} is {current.value}",
                reason="order_not_pending",
            )
        )

    wanted = set(ids)
    return Success(
        order.with_items(
            replace(it, status=status) if it.order_item_id in wanted else it
            for it in order.items
        )
    )


def confirm_payment(
    order: Order, at: datetime | None = None, transaction_id: str | None = None
) -> Result[Order, OrderError]:
    """Pending -> Paid. A repeated confirmation of a paid order is a no-op."""
    if order.payment_status == PaymentStatus.PAID:
        return Success(order)
    if order.payment_status != PaymentStatus.PENDING:
        return Failure(
            PreconditionFailed(
                message=f"payment is {order.payment_status.value}",
                reason="payment_not_pending",
            )
        )
    return Success(
        replace(
            order,
            payment_status=PaymentStatus.PAID,
            paid_at=at or now_utc(),
            transaction_id=transaction_id or order.transaction_id,
        )
    )


def validate_cash_payment(
    order: Order, at: datetime | None = None
) -> Result[Order, OrderError]:
    """Cashier confirmation of a cash order; never applied twice."""
    if order.payment_method != PaymentMethod.CASH:
        return Failure(
            PreconditionFailed(
                message="only cash orders are validated by the cashier",
                reason="not_cash_order",
            )
        )
    if order.payment_status != PaymentStatus.PENDING:
        return Failure(
            PreconditionFailed(
                message=f"payment is already {order.payment_status.value}",
                reason="payment_not_pending",
            )
        )
    return confirm_payment(order, at=at)


def fail_payment(order: Order) -> Result[Order, OrderError]:
    if order.payment_status == PaymentStatus.FAILED:
        return Success(order)
    if order.payment_status != PaymentStatus.PENDING:
        return Failure(
            PreconditionFailed(
                message=f"payment is {order.payment_status.value}",
                reason="payment_not_pending",
            )
        )
    return Success(replace(order, payment_status=PaymentStatus.FAILED))


def complete(order: Order, at: datetime | None = None) -> Result[Order, OrderError]:
    if order.payment_status != PaymentStatus.PAID:
        return Failure(
            PreconditionFailed(
                message=f"payment is {order.payment_status.value}",
                reason="payment_not_paid",
            )
        )
    current = order.status
    if current != OrderStatus.READY:
        return Failure(
            PreconditionFailed(
                message=f"order {order.order_number} is {current.value}",
                reason="order_not_ready",
            )
        )
    return Success(replace(order, completed_at=at or now_utc()))


def reopen(order: Order) -> Result[Order, OrderError]:
    """Administrative undo.

    completed -> ready, and a payment-failed order back to unpaid so it can
    be settled again. This is the only backward payment move.
    """
    current = order.status
    if current == OrderStatus.COMPLETED:
        return Success(replace(order, completed_at=None))
    if current == OrderStatus.FAILED:
        return Success(replace(order, payment_status=PaymentStatus.PENDING))
    return Failure(
        PreconditionFailed(
            message=f"order {order.order_number} is {current.value}",
            reason="order_not_reopenable",
        )
    )
