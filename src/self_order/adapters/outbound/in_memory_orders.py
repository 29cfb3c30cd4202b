from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Dict, Sequence

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import (
    OrderError,
    OrderNotFound,
    PersistenceError,
)
from self_order.core.domain.model.order import Order, OrderId
from self_order.core.ports.outbound.orders import OrderChange, OrderRepository


@dataclass
class InMemoryOrderRepository(OrderRepository):
    number_prefix: str = "ORD"
    _store: Dict[str, Order] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock)
    _numbers: itertools.count = field(default_factory=lambda: itertools.count(1))
    _item_ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def next_order_number(self) -> str:
        with self._lock:
            return f"{self.number_prefix}-{next(self._numbers):04d}"

    def next_item_ids(self, count: int) -> Sequence[int]:
        with self._lock:
            return tuple(next(self._item_ids) for _ in range(count))

    def save(self, order: Order) -> Result[OrderId, OrderError]:
        key = str(order.order_id.value)
        with self._lock:
            if key in self._store:
                return Failure(PersistenceError(message="order_id already exists"))
            self._store[key] = order
        return Success(order.order_id)

    def get(self, order_id: OrderId) -> Result[Order, OrderError]:
        key = str(order_id.value)
        with self._lock:
            order = self._store.get(key)
        if order is None:
            return Failure(OrderNotFound(message="order not found", order_id=key))
        return Success(order)

    def update(self, order_id: OrderId, change: OrderChange) -> Result[Order, OrderError]:
        key = str(order_id.value)
        with self._lock:
            current = self._store.get(key)
            if current is None:
                return Failure(OrderNotFound(message="order not found", order_id=key))
            result = change(current)
            if isinstance(result, Success):
                self._store[key] = result.unwrap()
            return result

    def list(self, session_token: str | None = None) -> Result[Sequence[Order], OrderError]:
        with self._lock:
            orders = list(self._store.values())  # insertion order
        if session_token is not None:
            orders = [o for o in orders if o.session_token == session_token]
        return Success(tuple(sorted(orders, key=lambda o: o.created_at)))
