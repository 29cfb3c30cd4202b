from datetime import datetime, timezone
from itertools import product

import pytest
from returns.result import Failure, Success

from self_order.core.domain.model.errors import (
    CategoryNotOwned,
    PreconditionFailed,
    StaleWrite,
    ValidationError,
)
from self_order.core.domain.model.order import (
    DEFAULT_RATES,
    ItemStatus,
    Order,
    OrderId,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Station,
    derive_order_status,
)
from self_order.core.domain.service import lifecycle, pricing

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _order(
    statuses=(ItemStatus.PENDING, ItemStatus.PENDING),
    payment=PaymentStatus.PAID,
    method=PaymentMethod.CASH,
    completed=False,
) -> Order:
    categories = (Station.KITCHEN, Station.BAR, Station.PASTRY)
    items = tuple(
        OrderItem(
            order_item_id=i + 1,
            menu_id=f"m-{i}",
            name=f"item {i}",
            category=categories[i % 3],
            quantity=1,
            unit_price=10000,
            status=s,
        )
        for i, s in enumerate(statuses)
    )
    return Order(
        order_id=OrderId.new(),
        order_number="ORD-0001",
        session_token="tok",
        table_number="7",
        payment_method=method,
        items=items,
        breakdown=pricing.breakdown(items, DEFAULT_RATES),
        created_at=T0,
        payment_status=payment,
        completed_at=T0 if completed else None,
    )


@pytest.mark.parametrize("statuses", list(product(ItemStatus, repeat=3)))
def test_ready_iff_every_item_done(statuses) -> None:
    order = _order(statuses)

    assert (order.status == OrderStatus.READY) == all(s == ItemStatus.DONE for s in statuses)


def test_last_item_done_makes_order_ready() -> None:
    order = _order((ItemStatus.DONE, ItemStatus.PENDING))
    assert order.status == OrderStatus.PENDING

    updated = lifecycle.set_item_status(order, 2, ItemStatus.DONE, Station.BAR).unwrap()

    assert updated.status == OrderStatus.READY


def test_undo_after_ready_demotes_to_pending() -> None:
    order = _order((ItemStatus.DONE, ItemStatus.DONE))
    assert order.status == OrderStatus.READY

    updated = lifecycle.set_item_status(order, 1, ItemStatus.PENDING, Station.KITCHEN).unwrap()

    assert updated.status == OrderStatus.PENDING


def test_unpaid_and_failed_are_derived_from_payment() -> None:
    done = (ItemStatus.DONE, ItemStatus.DONE)

    assert _order(done, payment=PaymentStatus.PENDING).status == OrderStatus.UNPAID
    assert _order(done, payment=PaymentStatus.FAILED).status == OrderStatus.FAILED
    assert derive_order_status((), PaymentStatus.PAID) == OrderStatus.READY


@pytest.mark.parametrize(
    "payment,completed",
    [
        (PaymentStatus.PENDING, False),
        (PaymentStatus.PAID, False),
        (PaymentStatus.PAID, True),
        (PaymentStatus.FAILED, False),
    ],
)
def test_station_cannot_touch_other_category(payment, completed) -> None:
    done = (ItemStatus.DONE, ItemStatus.DONE)
    order = _order(done if completed else (ItemStatus.PENDING, ItemStatus.PENDING),
                   payment=payment, completed=completed)

    result = lifecycle.set_item_status(order, 1, ItemStatus.DONE, Station.BAR)

    assert isinstance(result, Failure)
    assert isinstance(result.failure(), CategoryNotOwned)


def test_item_changes_rejected_while_unpaid() -> None:
    order = _order(payment=PaymentStatus.PENDING)

    result = lifecycle.set_item_status(order, 1, ItemStatus.DONE, Station.KITCHEN)

    assert isinstance(result.failure(), PreconditionFailed)
    assert result.failure().reason == "order_not_pending"


def test_item_changes_on_completed_order_are_stale() -> None:
    order = _order((ItemStatus.DONE, ItemStatus.DONE), completed=True)

    result = lifecycle.set_item_status(order, 1, ItemStatus.PENDING, Station.KITCHEN)

    assert isinstance(result.failure(), StaleWrite)


def test_unknown_item_is_stale_and_empty_batch_invalid() -> None:
    order = _order()

    assert isinstance(
        lifecycle.set_item_status(order, 99, ItemStatus.DONE, Station.KITCHEN).failure(),
        StaleWrite,
    )
    assert isinstance(
        lifecycle.set_items_status(order, (), ItemStatus.DONE, Station.KITCHEN).failure(),
        ValidationError,
    )


def test_batch_is_all_or_nothing() -> None:
    order = _order((ItemStatus.PENDING, ItemStatus.PENDING, ItemStatus.PENDING, ItemStatus.PENDING))

    # items 1 and 4 are kitchen, item 2 is bar
    mixed = lifecycle.set_items_status(order, (1, 2, 4), ItemStatus.DONE, Station.KITCHEN)
    ok = lifecycle.set_items_status(order, (1, 4), ItemStatus.DONE, Station.KITCHEN).unwrap()

    assert isinstance(mixed, Failure)
    assert [it.status for it in order.items] == [ItemStatus.PENDING] * 4
    assert ok.find_item(1).status == ItemStatus.DONE
    assert ok.find_item(4).status == ItemStatus.DONE


@pytest.mark.parametrize(
    "statuses,payment",
    [
        ((ItemStatus.DONE, ItemStatus.DONE), PaymentStatus.PENDING),
        ((ItemStatus.DONE, ItemStatus.DONE), PaymentStatus.FAILED),
        ((ItemStatus.DONE, ItemStatus.PENDING), PaymentStatus.PAID),
        ((ItemStatus.PENDING, ItemStatus.PENDING), PaymentStatus.PENDING),
    ],
)
def test_complete_requires_ready_and_paid(statuses, payment) -> None:
    order = _order(statuses, payment=payment)

    result = lifecycle.complete(order)

    assert isinstance(result, Failure)
    assert isinstance(result.failure(), PreconditionFailed)
    assert order.completed_at is None


def test_complete_unpaid_names_payment_reason() -> None:
    order = _order((ItemStatus.DONE, ItemStatus.DONE), payment=PaymentStatus.PENDING)

    assert lifecycle.complete(order).failure().reason == "payment_not_paid"


def test_complete_ready_paid_order() -> None:
    order = _order((ItemStatus.DONE, ItemStatus.DONE))

    done = lifecycle.complete(order, at=T0).unwrap()

    assert done.status == OrderStatus.COMPLETED
    assert done.completed_at == T0


def test_cash_validation_moves_pending_to_paid_once() -> None:
    order = _order(payment=PaymentStatus.PENDING)

    paid = lifecycle.validate_cash_payment(order, at=T0).unwrap()
    again = lifecycle.validate_cash_payment(paid)

    assert paid.payment_status == PaymentStatus.PAID
    assert paid.paid_at == T0
    assert paid.status == OrderStatus.PENDING
    assert isinstance(again.failure(), PreconditionFailed)


def test_cashier_cannot_validate_non_cash_orders() -> None:
    order = _order(payment=PaymentStatus.PENDING, method=PaymentMethod.NON_CASH)

    assert lifecycle.validate_cash_payment(order).failure().reason == "not_cash_order"


def test_payment_only_moves_forward() -> None:
    paid = _order(payment=PaymentStatus.PAID)
    failed = _order(payment=PaymentStatus.FAILED)

    assert isinstance(lifecycle.fail_payment(paid), Failure)
    assert isinstance(lifecycle.confirm_payment(failed), Failure)
    assert lifecycle.confirm_payment(paid).unwrap() is paid
    assert lifecycle.fail_payment(failed).unwrap() is failed


def test_reopen_completed_goes_back_to_ready() -> None:
    order = _order((ItemStatus.DONE, ItemStatus.DONE), completed=True)

    reopened = lifecycle.reopen(order).unwrap()

    assert reopened.status == OrderStatus.READY
    assert reopened.completed_at is None


def test_reopen_failed_goes_back_to_unpaid() -> None:
    order = _order(payment=PaymentStatus.FAILED)

    reopened = lifecycle.reopen(order).unwrap()

    assert reopened.status == OrderStatus.UNPAID
    assert reopened.payment_status == PaymentStatus.PENDING


def test_reopen_active_order_is_refused() -> None:
    assert isinstance(lifecycle.reopen(_order()), Failure)
    assert isinstance(lifecycle.reopen(_order(payment=PaymentStatus.PENDING)), Failure)


def test_transitions_never_mutate_input() -> None:
    order = _order((ItemStatus.DONE, ItemStatus.PENDING))
    before = order

    lifecycle.set_item_status(order, 2, ItemStatus.DONE, Station.BAR)

    assert isinstance(lifecycle.set_item_status(order, 2, ItemStatus.DONE, Station.BAR), Success)
    assert order == before
    assert order.find_item(2).status == ItemStatus.PENDING
