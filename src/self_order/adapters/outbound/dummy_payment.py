from __future__ import annotations

from dataclasses import dataclass

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import OrderError, PaymentDeclined
from self_order.core.domain.model.order import OrderId, PaymentMethod, PaymentStatus
from self_order.core.ports.outbound.payment import PaymentInitiation, PaymentProcessor


@dataclass
class DummyPaymentProcessor(PaymentProcessor):
    checkout_base_url: str = "https://pay.example.test/checkout"
    max_amount: int = 100_000_000
    down: bool = False
    # settle on the spot instead of redirecting (card-present terminals)
    immediate: PaymentStatus | None = None

    def initiate(
        self, order_id: OrderId, method: PaymentMethod, amount: int
    ) -> Result[PaymentInitiation, OrderError]:
        if self.down:
            return Failure(
                PaymentDeclined(message="payment processor unavailable", reason="unavailable")
            )
        if amount > self.max_amount:
            return Failure(
                PaymentDeclined(message="amount too large", reason="limit_exceeded")
            )
        if self.immediate is not None:
            return Success(PaymentInitiation(immediate_result=self.immediate))
        return Success(
            PaymentInitiation(
                redirect_url=f"{self.checkout_base_url}/{order_id.value}?method={method.value}"
            )
        )
