from __future__ import annotations

from typing import Callable, Protocol, Sequence

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import Order, OrderId

OrderChange = Callable[[Order], Result[Order, OrderError]]


class OrderRepository(Protocol):
    def next_order_number(self) -> str: ...

    def next_item_ids(self, count: int) -> Sequence[int]: ...

    def save(self, order: Order) -> Result[OrderId, OrderError]: ...

    def get(self, order_id: OrderId) -> Result[Order, OrderError]: ...

    def update(self, order_id: OrderId, change: OrderChange) -> Result[Order, OrderError]:
        """Apply ``change`` to the stored order as one serialized step.

        ``change`` sees the latest stored version; its Failure leaves the
        stored order untouched.
        """
        ...

    def list(self, session_token: str | None = None) -> Result[Sequence[Order], OrderError]:
        """All orders, oldest first."""
        ...
