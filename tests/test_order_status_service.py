import logging

from returns.result import Failure

from self_order.adapters.outbound.logging_events import LoggingEventPublisher
from self_order.bootstrap import UseCases, build_usecases
from self_order.core.domain.model.errors import (
    OrderNotFound,
    PreconditionFailed,
    StockConflict,
    ValidationError,
)
from self_order.core.domain.model.order import (
    ItemStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Station,
)
from self_order.core.ports.inbound.get_order import GetOrderQuery
from self_order.core.ports.inbound.order_status import (
    PaymentCallbackCommand,
    UpdateItemStatusCommand,
)
from self_order.core.ports.inbound.place_order import PlaceOrderCommand, PlaceOrderLine
from self_order.core.ports.inbound.station_orders import StationOrdersQuery


def _paid_order(uc: UseCases) -> str:
    token = uc.sessions.bind("table:9").unwrap().token
    receipt = uc.place_order.place_order(
        PlaceOrderCommand(
            session_token=token,
            lines=(PlaceOrderLine("nasi-goreng", 1), PlaceOrderLine("croissant", 1)),
            payment_method=PaymentMethod.CASH,
        )
    ).unwrap()
    order_id = str(receipt.order_id.value)
    uc.cashier.validate_payment(order_id).unwrap()
    return order_id


def _items(uc: UseCases, order_id: str, station: Station) -> tuple[int, ...]:
    views = uc.station_orders.station_orders(
        StationOrdersQuery(station, statuses=tuple(OrderStatus))
    ).unwrap()
    return tuple(
        it.order_item_id for v in views if v.order_id == order_id for it in v.items
    )


def _set(uc: UseCases, order_id: str, station: Station, status=ItemStatus.DONE):
    return uc.station_items.update_item_status(
        UpdateItemStatusCommand(order_id, _items(uc, order_id, station), status, station)
    )


def test_status_changes_are_logged_as_events(caplog) -> None:
    uc = build_usecases()
    order_id = _paid_order(uc)

    with caplog.at_level(logging.INFO):
        _set(uc, order_id, Station.KITCHEN)
        ready = _set(uc, order_id, Station.PASTRY).unwrap()

    assert ready.order.status == OrderStatus.READY
    assert "pending -> ready by station:pastry" in caplog.text


def test_publish_failure_does_not_undo_transition(caplog) -> None:
    uc = build_usecases(events=LoggingEventPublisher(fail=True))
    token = uc.sessions.bind("table:1").unwrap().token
    # the placement event is lost but the order is kept
    uc.place_order.place_order(
        PlaceOrderCommand(token, (PlaceOrderLine("es-teh", 1),), PaymentMethod.CASH)
    )
    (order,) = uc.list_orders.session_history(token).unwrap().orders

    with caplog.at_level(logging.WARNING):
        paid = uc.cashier.validate_payment(order.order_id)

    assert paid.unwrap().payment_status == PaymentStatus.PAID
    assert "status event not published" in caplog.text


def test_unknown_and_malformed_order_ids() -> None:
    uc = build_usecases()

    missing = uc.cashier.complete("00000000-0000-0000-0000-000000000000")
    malformed = uc.payment_callback.handle_callback(
        PaymentCallbackCommand("not-a-uuid", PaymentStatus.PAID)
    )

    assert isinstance(missing.failure(), OrderNotFound)
    assert isinstance(malformed.failure(), ValidationError)


def test_pending_callback_changes_nothing() -> None:
    uc = build_usecases()
    token = uc.sessions.bind("table:2").unwrap().token
    receipt = uc.place_order.place_order(
        PlaceOrderCommand(
            token, (PlaceOrderLine("es-teh", 1),), PaymentMethod.NON_CASH, email="a@b.c"
        )
    ).unwrap()

    view = uc.payment_callback.handle_callback(
        PaymentCallbackCommand(str(receipt.order_id.value), PaymentStatus.PENDING)
    ).unwrap()

    assert view.status == OrderStatus.UNPAID


def test_refused_transition_leaves_order_untouched() -> None:
    uc = build_usecases()
    order_id = _paid_order(uc)

    result = uc.cashier.complete(order_id)

    assert isinstance(result, Failure)
    history = uc.station_orders.station_orders(StationOrdersQuery(Station.KITCHEN)).unwrap()
    assert [v.status for v in history] == [OrderStatus.PENDING]


def test_station_views_hide_unpaid_and_other_categories() -> None:
    uc = build_usecases()
    token = uc.sessions.bind("table:4").unwrap().token
    uc.place_order.place_order(
        PlaceOrderCommand(token, (PlaceOrderLine("es-teh", 1),), PaymentMethod.CASH)
    )
    order_id = _paid_order(uc)

    bar = uc.station_orders.station_orders(StationOrdersQuery(Station.BAR)).unwrap()
    kitchen = uc.station_orders.station_orders(StationOrdersQuery(Station.KITCHEN)).unwrap()

    assert bar == ()
    assert [v.order_id for v in kitchen] == [order_id]
    assert {it.category for v in kitchen for it in v.items} == {Station.KITCHEN}


def _card_order(uc: UseCases, *lines: PlaceOrderLine) -> str:
    token = uc.sessions.bind("table:6").unwrap().token
    receipt = uc.place_order.place_order(
        PlaceOrderCommand(token, lines, PaymentMethod.NON_CASH, email="g@example.com")
    ).unwrap()
    return str(receipt.order_id.value)


def test_failed_callback_gives_stock_back_and_reopen_takes_it_again() -> None:
    uc = build_usecases()
    order_id = _card_order(uc, PlaceOrderLine("croissant", 4))
    assert uc.catalog.items["croissant"].stock_quantity == 8

    failed = uc.payment_callback.handle_callback(
        PaymentCallbackCommand(order_id, PaymentStatus.FAILED)
    ).unwrap()
    assert failed.status == OrderStatus.FAILED
    assert uc.catalog.items["croissant"].stock_quantity == 12

    reopened = uc.cashier.reopen(order_id).unwrap()
    assert reopened.status == OrderStatus.UNPAID
    assert uc.catalog.items["croissant"].stock_quantity == 8


def test_reopen_is_refused_once_the_stock_is_gone() -> None:
    uc = build_usecases()
    order_id = _card_order(uc, PlaceOrderLine("croissant", 12))
    uc.payment_callback.handle_callback(
        PaymentCallbackCommand(order_id, PaymentStatus.FAILED)
    ).unwrap()
    _card_order(uc, PlaceOrderLine("croissant", 10))

    result = uc.cashier.reopen(order_id)

    assert isinstance(result.failure(), StockConflict)
    assert uc.get_order.get_order(GetOrderQuery(order_id)).unwrap().status == OrderStatus.FAILED
    assert uc.catalog.items["croissant"].stock_quantity == 2


def test_processor_callback_cannot_settle_a_cash_order() -> None:
    uc = build_usecases()
    token = uc.sessions.bind("table:5").unwrap().token
    receipt = uc.place_order.place_order(
        PlaceOrderCommand(token, (PlaceOrderLine("es-teh", 1),), PaymentMethod.CASH)
    ).unwrap()
    order_id = str(receipt.order_id.value)

    result = uc.payment_callback.handle_callback(
        PaymentCallbackCommand(order_id, PaymentStatus.PAID, transaction_id="tx-9")
    )

    assert isinstance(result.failure(), PreconditionFailed)
    assert result.failure().reason == "not_non_cash_order"
    assert uc.get_order.get_order(GetOrderQuery(order_id)).unwrap().status == OrderStatus.UNPAID
