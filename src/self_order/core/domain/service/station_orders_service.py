from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result

from self_order.core.domain.model.errors import OrderError, ValidationError
from self_order.core.domain.model.order import Order, OrderStatus
from self_order.core.ports.inbound.get_order import to_item_view
from self_order.core.ports.inbound.station_orders import (
    StationOrdersQuery,
    StationOrdersUseCase,
    StationOrderView,
)
from self_order.core.ports.outbound.orders import OrderRepository

# unpaid orders stay hidden from stations until payment is confirmed
_VISIBLE_TO_STATIONS = {OrderStatus.PENDING, OrderStatus.READY, OrderStatus.COMPLETED}


@dataclass(frozen=True)
class StationOrdersDeps:
    orders: OrderRepository


@dataclass(frozen=True)
class StationOrdersService(StationOrdersUseCase):
    deps: StationOrdersDeps

    def station_orders(
        self, query: StationOrdersQuery
    ) -> Result[Sequence[StationOrderView], OrderError]:
        if not query.statuses:
            return Failure(ValidationError(message="at least one status is required"))
        wanted = set(query.statuses) & _VISIBLE_TO_STATIONS
        return self.deps.orders.list().map(
            lambda orders: tuple(
                view
                for view in (_to_station_view(o, query) for o in orders if o.status in wanted)
                if view.items
            )
        )


def _to_station_view(order: Order, query: StationOrdersQuery) -> StationOrderView:
    return StationOrderView(
        order_id=str(order.order_id.value),
        order_number=order.order_number,
        table_number=order.table_number,
        status=order.status,
        created_at=order.created_at,
        items=tuple(to_item_view(it) for it in order.items_for(query.station)),
    )
