from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Tuple

from returns.pipeline import flow
from returns.pointfree import bind, map_
from returns.result import Failure, Result, Success

from self_order.core.domain.model.cart import MAX_NOTES_LENGTH
from self_order.core.domain.model.errors import OrderError, ValidationError
from self_order.core.domain.model.order import (
    AddOn,
    Order,
    OrderId,
    OrderItem,
    PaymentMethod,
    PaymentStatus,
    TableSession,
    now_utc,
)
from self_order.core.domain.service import lifecycle, pricing
from self_order.core.domain.service.order_status_service import stock_aware
from self_order.core.ports.inbound.place_order import (
    OrderReceipt,
    PlaceOrderCommand,
    PlaceOrderLine,
    PlaceOrderUseCase,
)
from self_order.core.ports.outbound.catalog import (
    InventoryGateway,
    MenuCatalog,
    reservations_for,
)
from self_order.core.ports.outbound.events import EventPublisher, OrderPlaced
from self_order.core.ports.outbound.orders import OrderRepository
from self_order.core.ports.outbound.payment import PaymentProcessor
from self_order.core.ports.outbound.rates import RateProvider
from self_order.core.ports.outbound.sessions import SessionGateway

logger = logging.getLogger(__name__)

MAX_ORDER_NOTES_LENGTH = 500


@dataclass(frozen=True)
class PlaceOrderDeps:
    sessions: SessionGateway
    catalog: MenuCatalog
    inventory: InventoryGateway
    orders: OrderRepository
    rates: RateProvider
    payment: PaymentProcessor
    events: EventPublisher


@dataclass(frozen=True)
class PlaceOrderContext:
    command: PlaceOrderCommand
    session: TableSession | None = None
    items: Tuple[OrderItem, ...] = ()
    order: Order | None = None
    redirect_url: str | None = None


@dataclass(frozen=True)
class PlaceOrderService(PlaceOrderUseCase):
    """Server-side cart-to-order conversion.

    Prices come from the menu catalog, never from the request, and stock is
    reserved here at conversion time so concurrent checkouts of a limited
    item are decided in one place. A conversion either stores the order with
    its stock held or leaves nothing behind; the placement event is sent only
    after that and never undoes it.
    """

    deps: PlaceOrderDeps

    def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[OrderReceipt, OrderError]:
        result = flow(
            command,
            _validate_command,
            bind(self._resolve_session),
            bind(self._price_lines),
            bind(self._reserve_stock),
            bind(self._build_order),
            bind(self._persist),
            bind(self._initiate_payment),
            map_(self._publish),
            map_(_to_receipt),
        )
        if isinstance(result, Failure):
            logger.info(
                "order rejected: %s",
                result.failure(),
                extra={"error_type": type(result.failure()).__name__},
            )
        return result

    def _resolve_session(
        self, cmd: PlaceOrderCommand
    ) -> Result[PlaceOrderContext, OrderError]:
        return self.deps.sessions.resolve(cmd.session_token).map(
            lambda session: PlaceOrderContext(command=cmd, session=session)
        )

    def _price_lines(
        self, ctx: PlaceOrderContext
    ) -> Result[PlaceOrderContext, OrderError]:
        lines = ctx.command.lines
        ids = self.deps.orders.next_item_ids(len(lines))
        items = []
        for i, (ln, item_id) in enumerate(zip(lines, ids)):
            priced = self._price_line(i, ln, item_id)
            if isinstance(priced, Failure):
                return priced
            items.append(priced.unwrap())
        return Success(replace(ctx, items=tuple(items)))

    def _price_line(
        self, index: int, line: PlaceOrderLine, order_item_id: int
    ) -> Result[OrderItem, OrderError]:
        found = self.deps.catalog.get_menu_item(line.menu_id)
        if isinstance(found, Failure):
            return found
        menu = found.unwrap()

        add_ons = []
        for add_on_id in line.add_on_ids:
            if add_on_id not in menu.add_ons:
                return Failure(
                    ValidationError(
                        f"lines[{index}].add_on_ids: unknown add-on {add_on_id}"
                    )
                )
            add_ons.append(AddOn(add_on_id, menu.add_ons[add_on_id]))

        return Success(
            OrderItem(
                order_item_id=order_item_id,
                menu_id=menu.menu_id,
                name=menu.name,
                category=menu.category,
                quantity=line.quantity,
                unit_price=menu.price,
                add_ons=tuple(add_ons),
                notes=line.notes,
            )
        )

    def _reserve_stock(
        self, ctx: PlaceOrderContext
    ) -> Result[PlaceOrderContext, OrderError]:
        reservations = reservations_for(ctx.items)
        return self.deps.inventory.reserve(reservations).map(lambda _: ctx)

    def _build_order(
        self, ctx: PlaceOrderContext
    ) -> Result[PlaceOrderContext, OrderError]:
        cmd = ctx.command
        assert ctx.session is not None
        order = Order(
            order_id=OrderId.new(),
            order_number=self.deps.orders.next_order_number(),
            session_token=ctx.session.token,
            table_number=ctx.session.table_number,
            payment_method=cmd.payment_method,
            items=ctx.items,
            breakdown=pricing.breakdown(ctx.items, self.deps.rates.current()),
            created_at=now_utc(),
            notes=cmd.notes,
            email=cmd.email,
        )
        return Success(replace(ctx, order=order))

    def _persist(self, ctx: PlaceOrderContext) -> Result[PlaceOrderContext, OrderError]:
        assert ctx.order is not None
        saved = self.deps.orders.save(ctx.order)
        if isinstance(saved, Failure):
            self.deps.inventory.release(reservations_for(ctx.items))
        return saved.map(lambda _: ctx)

    def _initiate_payment(
        self, ctx: PlaceOrderContext
    ) -> Result[PlaceOrderContext, OrderError]:
        order = ctx.order
        assert order is not None
        if order.payment_method == PaymentMethod.CASH:
            # waits in ``unpaid`` for the cashier
            return Success(ctx)

        started = self.deps.payment.initiate(
            order.order_id, order.payment_method, order.total_amount
        )
        if isinstance(started, Failure):
            # the failed order stays for the record, its stock goes back
            self.deps.orders.update(order.order_id, self._failing)
            return started

        initiation = started.unwrap()
        if initiation.immediate_result == PaymentStatus.PAID:
            settled = self.deps.orders.update(order.order_id, lifecycle.confirm_payment)
        elif initiation.immediate_result == PaymentStatus.FAILED:
            settled = self.deps.orders.update(order.order_id, self._failing)
        else:
            settled = Success(order)
        return settled.map(
            lambda current: replace(
                ctx, order=current, redirect_url=initiation.redirect_url
            )
        )

    def _publish(self, ctx: PlaceOrderContext) -> PlaceOrderContext:
        order = ctx.order
        assert order is not None
        event = OrderPlaced(
            order_id=order.order_id,
            order_number=order.order_number,
            table_number=order.table_number,
            total=order.total_amount,
        )
        published = self.deps.events.publish(event)
        if isinstance(published, Failure):
            # the order is already stored; stations and cashiers poll for it
            logger.warning(
                "placement event not published: %s",
                published.failure(),
                extra={"order_id": str(order.order_id.value)},
            )
        return ctx

    def _failing(self, order: Order) -> Result[Order, OrderError]:
        return stock_aware(lifecycle.fail_payment, self.deps.inventory)(order)


# ---- pure helpers ----------------------------------------------------------


def _validate_command(
    cmd: PlaceOrderCommand,
) -> Result[PlaceOrderCommand, OrderError]:
    if not cmd.session_token.strip():
        return Failure(ValidationError("session_token is required"))
    if not cmd.lines:
        return Failure(ValidationError("at least one line item is required"))
    if cmd.payment_method == PaymentMethod.NON_CASH and not (cmd.email or "").strip():
        return Failure(ValidationError("email is required for non-cash payments"))
    if len(cmd.notes) > MAX_ORDER_NOTES_LENGTH:
        return Failure(
            ValidationError(f"notes must be at most {MAX_ORDER_NOTES_LENGTH} characters")
        )

    for i, ln in enumerate(cmd.lines):
        if not ln.menu_id.strip():
            return Failure(ValidationError(f"lines[{i}].menu_id is required"))
        if ln.quantity <= 0:
            return Failure(ValidationError(f"lines[{i}].quantity must be > 0"))
        if len(ln.notes) > MAX_NOTES_LENGTH:
            return Failure(
                ValidationError(
                    f"lines[{i}].notes must be at most {MAX_NOTES_LENGTH} characters"
                )
            )

    return Success(cmd)


def _to_receipt(ctx: PlaceOrderContext) -> OrderReceipt:
    order = ctx.order
    assert order is not None
    return OrderReceipt(
        order_id=order.order_id,
        order_number=order.order_number,
        breakdown=order.breakdown,
        payment_status=order.payment_status,
        redirect_url=ctx.redirect_url,
    )
