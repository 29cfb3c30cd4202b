from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import OrderId, PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class PaymentInitiation:
    redirect_url: str | None = None
    immediate_result: PaymentStatus | None = None


class PaymentProcessor(Protocol):
    def initiate(
        self, order_id: OrderId, method: PaymentMethod, amount: int
    ) -> Result[PaymentInitiation, OrderError]: ...
