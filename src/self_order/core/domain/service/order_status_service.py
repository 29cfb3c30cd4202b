from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import OrderError, PreconditionFailed
from self_order.core.domain.model.order import (
    Order,
    OrderId,
    PaymentMethod,
    PaymentStatus,
)
from self_order.core.domain.service import lifecycle
from self_order.core.domain.service.get_order_service import parse_order_id
from self_order.core.ports.inbound.get_order import (
    OrderView,
    to_item_view,
    to_order_view,
)
from self_order.core.ports.inbound.order_status import (
    CashierUseCase,
    ItemStatusResult,
    PaymentCallbackCommand,
    PaymentCallbackUseCase,
    StationItemsUseCase,
    UpdateItemStatusCommand,
)
from self_order.core.ports.outbound.catalog import InventoryGateway, reservations_for
from self_order.core.ports.outbound.events import EventPublisher, OrderStatusChanged
from self_order.core.ports.outbound.orders import OrderRepository

logger = logging.getLogger(__name__)

Transition = Callable[[Order], Result[Order, OrderError]]


def stock_aware(transition: Transition, inventory: InventoryGateway) -> Transition:
    """Keep reserved stock in step with payment.

    A payment failure gives the order's stock back; reopening a failed order
    takes it again, and is refused with StockConflict when it is gone.
    """

    def change(order: Order) -> Result[Order, OrderError]:
        result = transition(order)
        if isinstance(result, Failure):
            return result
        updated = result.unwrap()
        was_failed = order.payment_status == PaymentStatus.FAILED
        is_failed = updated.payment_status == PaymentStatus.FAILED
        if is_failed and not was_failed:
            return inventory.release(reservations_for(updated.items)).map(
                lambda _: updated
            )
        if was_failed and not is_failed:
            return inventory.reserve(reservations_for(updated.items)).map(
                lambda _: updated
            )
        return result

    return change


@dataclass(frozen=True)
class OrderStatusDeps:
    orders: OrderRepository
    events: EventPublisher
    inventory: InventoryGateway


@dataclass(frozen=True)
class _TransitionRunner:
    deps: OrderStatusDeps

    def run(
        self, raw_order_id: str, transition: Transition, actor: str
    ) -> Result[Order, OrderError]:
        parsed = parse_order_id(raw_order_id)
        if isinstance(parsed, Failure):
            return parsed
        return self._apply(parsed.unwrap(), transition, actor)

    def _apply(
        self, order_id: OrderId, transition: Transition, actor: str
    ) -> Result[Order, OrderError]:
        before: list[Order] = []

        def change(current: Order) -> Result[Order, OrderError]:
            before.append(current)
            return transition(current)

        result = self.deps.orders.update(
            order_id, stock_aware(change, self.deps.inventory)
        )
        if isinstance(result, Failure):
            logger.info(
                "transition refused: %s",
                result.failure(),
                extra={"order_id": str(order_id.value), "actor": actor},
            )
            return result

        updated = result.unwrap()
        previous = before[-1].status if before else updated.status
        if previous != updated.status:
            logger.info(
                "order %s: %s -> %s",
                updated.order_number,
                previous.value,
                updated.status.value,
                extra={"order_id": str(order_id.value), "actor": actor},
            )
            published = self.deps.events.publish(
                OrderStatusChanged(
                    order_id=updated.order_id,
                    order_number=updated.order_number,
                    previous=previous,
                    current=updated.status,
                    payment_status=updated.payment_status,
                    actor=actor,
                )
            )
            if isinstance(published, Failure):
                # the transition is already stored; a lost notification is
                # picked up by the next poll
                logger.warning("status event not published: %s", published.failure())
        return Success(updated)


@dataclass(frozen=True)
class StationItemsService(StationItemsUseCase):
    deps: OrderStatusDeps

    def update_item_status(
        self, command: UpdateItemStatusCommand
    ) -> Result[ItemStatusResult, OrderError]:
        ids = tuple(command.order_item_ids)

        def transition(order: Order) -> Result[Order, OrderError]:
            return lifecycle.set_items_status(
                order, ids, command.status, command.station
            )

        runner = _TransitionRunner(self.deps)
        return runner.run(
            command.order_id, transition, actor=f"station:{command.station.value}"
        ).map(lambda order: _item_result(order, ids))


@dataclass(frozen=True)
class CashierService(CashierUseCase):
    deps: OrderStatusDeps

    def validate_payment(self, order_id: str) -> Result[OrderView, OrderError]:
        return self._run(order_id, lifecycle.validate_cash_payment)

    def complete(self, order_id: str) -> Result[OrderView, OrderError]:
        return self._run(order_id, lifecycle.complete)

    def reopen(self, order_id: str) -> Result[OrderView, OrderError]:
        return self._run(order_id, lifecycle.reopen)

    def _run(self, order_id: str, transition: Transition) -> Result[OrderView, OrderError]:
        return (
            _TransitionRunner(self.deps)
            .run(order_id, transition, actor="cashier")
            .map(to_order_view)
        )


@dataclass(frozen=True)
class PaymentCallbackService(PaymentCallbackUseCase):
    deps: OrderStatusDeps

    def handle_callback(
        self, command: PaymentCallbackCommand
    ) -> Result[OrderView, OrderError]:
        def transition(order: Order) -> Result[Order, OrderError]:
            if order.payment_method == PaymentMethod.CASH:
                return Failure(
                    PreconditionFailed(
                        message="cash orders are settled by the cashier",
                        reason="not_non_cash_order",
                    )
                )
            if command.status == PaymentStatus.PAID:
                return lifecycle.confirm_payment(
                    order, transaction_id=command.transaction_id
                )
            if command.status == PaymentStatus.FAILED:
                return lifecycle.fail_payment(order)
            # a Pending callback carries no news
            return Success(order)

        return (
            _TransitionRunner(self.deps)
            .run(command.order_id, transition, actor="payment_processor")
            .map(to_order_view)
        )


def _item_result(order: Order, ids: tuple[int, ...]) -> ItemStatusResult:
    wanted = set(ids)
    return ItemStatusResult(
        items=tuple(to_item_view(it) for it in order.items if it.order_item_id in wanted),
        order=to_order_view(order),
    )
