import asyncio

import httpx
from returns.result import Failure, Success

from self_order.adapters.outbound.cart_stores import InMemoryCartStore
from self_order.adapters.outbound.http_order_api import HttpOrderApi
from self_order.bootstrap import UseCases, build_app, build_usecases
from self_order.core.domain.model.cart import Cart
from self_order.core.domain.model.errors import (
    CategoryNotOwned,
    StockConflict,
    TransientNetworkError,
    ValidationError,
)
from self_order.core.domain.model.order import (
    DEFAULT_RATES,
    ItemStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Station,
)
from self_order.core.domain.service.checkout_service import (
    CheckoutService,
    conflicting_lines,
)
from self_order.core.domain.service.synchronizer import CashierBoard, StationBoard
from self_order.core.ports.inbound.get_order import GetOrderQuery
from self_order.core.ports.inbound.order_status import PaymentCallbackCommand


def _make_backend() -> tuple[UseCases, httpx.AsyncClient]:
    uc = build_usecases()
    transport = httpx.ASGITransport(app=build_app(uc))
    return uc, httpx.AsyncClient(transport=transport, base_url="http://test")


def _bound_cart(uc: UseCases) -> Cart:
    session = uc.sessions.bind("table:12").unwrap()
    cart = Cart(InMemoryCartStore())
    cart.bind_session(session.token, session.table_number)
    return cart


def _fill(cart: Cart) -> None:
    cart.add_line("nasi-goreng", "Nasi Goreng", 35000, quantity=2, category=Station.KITCHEN)
    cart.add_line("es-teh", "Es Teh", 8000, category=Station.BAR)


def test_cash_checkout_clears_cart() -> None:
    uc, client = _make_backend()
    cart = _bound_cart(uc)
    _fill(cart)

    async def scenario():
        async with client:
            checkout = CheckoutService(cart, HttpOrderApi(client))
            rates = await checkout.load_rates()
            return rates, await checkout.checkout(PaymentMethod.CASH, notes="window seat")

    rates, result = asyncio.run(scenario())

    assert isinstance(result, Success)
    receipt = result.unwrap()
    assert receipt.breakdown.total == 91806
    assert receipt.payment_status == PaymentStatus.PENDING
    assert rates == DEFAULT_RATES
    assert cart.rates_loaded
    assert cart.is_empty()


def test_stock_conflict_keeps_cart_and_names_lines() -> None:
    uc, client = _make_backend()
    cart = _bound_cart(uc)
    cart.add_line("croissant", "Croissant", 25000, quantity=20)
    cart.add_line("es-teh", "Es Teh", 8000)

    async def scenario():
        async with client:
            return await CheckoutService(cart, HttpOrderApi(client)).checkout(PaymentMethod.CASH)

    result = asyncio.run(scenario())

    err = result.failure()
    assert isinstance(err, StockConflict)
    assert [(s.menu_id, s.requested, s.available) for s in err.stock_errors] == [
        ("croissant", 20, 12)
    ]
    assert cart.item_count() == 21
    assert [ln.item_id for ln in conflicting_lines(cart, err)] == ["croissant"]


def test_non_cash_cart_is_cleared_only_after_payment() -> None:
    uc, client = _make_backend()
    cart = _bound_cart(uc)
    _fill(cart)

    async def scenario():
        async with client:
            checkout = CheckoutService(cart, HttpOrderApi(client))
            receipt = (
                await checkout.checkout(PaymentMethod.NON_CASH, email="guest@example.com")
            ).unwrap()
            order_id = str(receipt.order_id.value)

            still_pending = await checkout.finish_payment(order_id)
            assert not cart.is_empty()

            uc.payment_callback.handle_callback(
                PaymentCallbackCommand(order_id, PaymentStatus.PAID, "tx-9")
            )
            return receipt, still_pending, await checkout.finish_payment(order_id)

    receipt, pending, paid = asyncio.run(scenario())

    assert receipt.redirect_url
    assert pending.unwrap().status == OrderStatus.UNPAID
    assert paid.unwrap().status == OrderStatus.PENDING
    assert cart.is_empty()


def test_checkout_preconditions_are_checked_locally() -> None:
    uc, client = _make_backend()
    unbound = Cart(InMemoryCartStore())
    empty = _bound_cart(uc)
    filled = _bound_cart(uc)
    _fill(filled)

    async def scenario():
        async with client:
            api = HttpOrderApi(client)
            return (
                await CheckoutService(unbound, api).checkout(PaymentMethod.CASH),
                await CheckoutService(empty, api).checkout(PaymentMethod.CASH),
                await CheckoutService(filled, api).checkout(PaymentMethod.NON_CASH),
            )

    results = asyncio.run(scenario())

    assert all(isinstance(r.failure(), ValidationError) for r in results)
    assert uc.list_orders.session_history(filled.session_token).unwrap().total_orders == 0


def test_rates_fall_back_to_defaults_when_unreachable() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    cart = Cart(InMemoryCartStore())

    async def scenario():
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(refuse), base_url="http://test"
        ) as client:
            api = HttpOrderApi(client)
            rates = await CheckoutService(cart, api).load_rates()
            return rates, await api.get_order("00000000-0000-0000-0000-000000000000")

    rates, got = asyncio.run(scenario())

    assert rates == DEFAULT_RATES
    assert not cart.rates_loaded
    assert isinstance(got.failure(), TransientNetworkError)


def test_station_and_cashier_boards_over_http() -> None:
    uc, client = _make_backend()
    cart = _bound_cart(uc)
    _fill(cart)

    async def scenario():
        async with client:
            api = HttpOrderApi(client, staff_role="cashier")
            receipt = (await CheckoutService(cart, api).checkout(PaymentMethod.CASH)).unwrap()
            order_id = str(receipt.order_id.value)

            cashier = CashierBoard(api, interval=1.0, timeout=5.0)
            kitchen = StationBoard(api, Station.KITCHEN, interval=1.0, timeout=5.0)
            bar = StationBoard(api, Station.BAR, interval=1.0, timeout=5.0)

            await cashier.refresh()
            assert (await cashier.validate_payment(order_id)).unwrap().status == OrderStatus.PENDING

            await kitchen.refresh()
            await bar.refresh()
            (kitchen_order,) = kitchen.orders()
            (bar_order,) = bar.orders()
            bar_item = bar_order.items[0].order_item_id

            # kitchen may not touch the bar's item
            wrong = await kitchen.set_item_status(order_id, bar_item, ItemStatus.DONE)
            assert isinstance(wrong, Failure)
            assert isinstance(wrong.failure(), CategoryNotOwned)
            assert (wrong.failure().station, wrong.failure().category) == ("kitchen", "bar")

            await kitchen.toggle_item(order_id, kitchen_order.items[0].order_item_id)
            await bar.toggle_item(order_id, bar_item)

            await cashier.refresh()
            assert [o.order_id for o in cashier.ready_orders()] == [order_id]
            await cashier.complete(order_id)
            await kitchen.refresh()
            return order_id, cashier, kitchen

    order_id, cashier, kitchen = asyncio.run(scenario())

    assert cashier.orders() == ()
    assert kitchen.orders() == ()
    order = uc.get_order.get_order(GetOrderQuery(order_id)).unwrap()
    assert order.status == OrderStatus.COMPLETED
