from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import ItemStatus, RateConfig, Station
from self_order.core.ports.inbound.get_order import OrderView
from self_order.core.ports.inbound.list_orders import ListOrdersQuery
from self_order.core.ports.inbound.order_status import ItemStatusResult
from self_order.core.ports.inbound.place_order import OrderReceipt, PlaceOrderCommand
from self_order.core.ports.inbound.station_orders import StationOrderView


class OrderApi(Protocol):
    """The order service as seen from a customer, station or cashier device.

    Every call is a suspension point; transport failures come back as
    ``TransientNetworkError``.
    """

    async def get_rates(self) -> Result[RateConfig, OrderError]: ...

    async def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[OrderReceipt, OrderError]: ...

    async def get_order(self, order_id: str) -> Result[OrderView, OrderError]: ...

    async def station_orders(
        self, station: Station
    ) -> Result[Sequence[StationOrderView], OrderError]: ...

    async def update_item_status(
        self, order_id: str, order_item_id: int, status: ItemStatus, station: Station
    ) -> Result[ItemStatusResult, OrderError]: ...

    async def cashier_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderView], OrderError]: ...

    async def validate_payment(self, order_id: str) -> Result[OrderView, OrderError]: ...

    async def complete(self, order_id: str) -> Result[OrderView, OrderError]: ...
