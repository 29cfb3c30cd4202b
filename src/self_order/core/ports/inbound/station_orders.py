from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import OrderStatus, Station
from self_order.core.ports.inbound.get_order import OrderItemView

ACTIVE_STATUSES = (OrderStatus.PENDING, OrderStatus.READY)


@dataclass(frozen=True)
class StationOrdersQuery:
    station: Station
    statuses: Sequence[OrderStatus] = ACTIVE_STATUSES


@dataclass(frozen=True)
class StationOrderView:
    """One order as a station sees it: only that station's items."""

    order_id: str
    order_number: str
    table_number: str
    status: OrderStatus
    created_at: datetime
    items: Sequence[OrderItemView]


class StationOrdersUseCase(Protocol):
    def station_orders(
        self, query: StationOrdersQuery
    ) -> Result[Sequence[StationOrderView], OrderError]: ...
