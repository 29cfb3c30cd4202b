from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from returns.result import Failure, Result, Success

from self_order.core.domain.model.cart import Cart, LineItem
from self_order.core.domain.model.errors import (
    OrderError,
    StockConflict,
    ValidationError,
)
from self_order.core.domain.model.order import PaymentMethod, PaymentStatus, RateConfig
from self_order.core.ports.inbound.get_order import OrderView
from self_order.core.ports.inbound.place_order import (
    OrderReceipt,
    PlaceOrderCommand,
    PlaceOrderLine,
)
from self_order.core.ports.outbound.order_api import OrderApi

logger = logging.getLogger(__name__)


@dataclass
class CheckoutService:
    """Customer-side conversion of the cart into an order.

    Stock is not checked here; the server decides at conversion time and a
    ``StockConflict`` names the lines to adjust. The cart survives every
    failure.
    """

    cart: Cart
    api: OrderApi

    async def load_rates(self) -> RateConfig:
        if self.cart.rates_loaded:
            return self.cart.rates
        got = await self.api.get_rates()
        if isinstance(got, Success):
            self.cart.set_rates(got.unwrap())
        else:
            logger.warning("rates unavailable, using defaults: %s", got.failure())
        return self.cart.rates

    async def checkout(
        self,
        payment_method: PaymentMethod,
        email: str | None = None,
        notes: str = "",
    ) -> Result[OrderReceipt, OrderError]:
        checked = _check_cart(self.cart, payment_method, email)
        if isinstance(checked, Failure):
            return checked

        command = PlaceOrderCommand(
            session_token=self.cart.session_token or "",
            payment_method=payment_method,
            notes=notes,
            email=email if payment_method == PaymentMethod.NON_CASH else None,
            lines=tuple(
                PlaceOrderLine(
                    menu_id=ln.item_id,
                    quantity=ln.quantity,
                    notes=ln.notes,
                    add_on_ids=tuple(a.id for a in ln.add_ons),
                )
                for ln in self.cart.lines
            ),
        )
        result = await self.api.place_order(command)

        if isinstance(result, Success):
            receipt = result.unwrap()
            logger.info(
                "order %s placed (%s)", receipt.order_number, payment_method.value
            )
            if payment_method == PaymentMethod.CASH:
                self.cart.clear()
        return result

    async def finish_payment(self, order_id: str) -> Result[OrderView, OrderError]:
        """Called when the customer returns from the payment processor."""
        got = await self.api.get_order(order_id)
        if isinstance(got, Success) and got.unwrap().payment_status == PaymentStatus.PAID:
            self.cart.clear()
        return got


def conflicting_lines(cart: Cart, conflict: StockConflict) -> Tuple[LineItem, ...]:
    """Cart lines the customer has to adjust after a stock conflict."""
    ids = {s.menu_id for s in conflict.stock_errors}
    return tuple(ln for ln in cart.lines if ln.item_id in ids)


def _check_cart(
    cart: Cart, payment_method: PaymentMethod, email: str | None
) -> Result[Cart, OrderError]:
    if not cart.session_token:
        return Failure(ValidationError("no active session; scan the table code again"))
    if cart.is_empty():
        return Failure(ValidationError("cart is empty"))
    if payment_method == PaymentMethod.NON_CASH and not (email or "").strip():
        return Failure(ValidationError("email is required for non-cash payments"))
    return Success(cart)
