"""Pull-based view synchronization for station and cashier surfaces.

Each surface keeps a local cache of the orders it cares about. A poll
replaces the cache wholesale with the server's answer. An operator action is
applied to the cache at once, then sent; the server's reply replaces the
optimistic value, and a failure puts back the pre-mutation snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import (
    Awaitable,
    Callable,
    Dict,
    Generic,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
)

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import (
    OrderError,
    PreconditionFailed,
    StaleWrite,
    TransientNetworkError,
)
from self_order.core.domain.model.order import (
    ItemStatus,
    OrderStatus,
    PaymentStatus,
    Station,
    derive_order_status,
)
from self_order.core.ports.inbound.get_order import OrderView
from self_order.core.ports.inbound.list_orders import ListOrdersQuery
from self_order.core.ports.inbound.station_orders import (
    ACTIVE_STATUSES,
    StationOrderView,
)
from self_order.core.ports.outbound.order_api import OrderApi

logger = logging.getLogger(__name__)

V = TypeVar("V")

Fetch = Callable[[], Awaitable[Result[Sequence[V], OrderError]]]
Send = Callable[[], Awaitable[Result[Optional[V], OrderError]]]

# failures that mean our picture of the order is out of date
_RECONCILE_ON = (StaleWrite, PreconditionFailed)


class Synchronizer(Protocol[V]):
    def snapshot(self) -> Tuple[V, ...]: ...

    async def refresh(self) -> Result[Tuple[V, ...], OrderError]: ...

    async def mutate(
        self, key: str, optimistic: Callable[[V], V], send: Send
    ) -> Result[Optional[V], OrderError]: ...


class PollingSynchronizer(Generic[V]):
    def __init__(
        self,
        fetch: Fetch,
        key_of: Callable[[V], str],
        interval: float,
        timeout: float,
        name: str = "surface",
        on_snapshot: Callable[[Tuple[V, ...]], None] | None = None,
    ) -> None:
        self._fetch = fetch
        self._key_of = key_of
        self.interval = interval
        self.timeout = timeout
        self.name = name
        self._on_snapshot = on_snapshot
        self._views: Dict[str, V] = {}
        # bumped whenever a full server snapshot lands
        self._generation = 0
        self._mutations = asyncio.Lock()
        self.last_error: OrderError | None = None

    def snapshot(self) -> Tuple[V, ...]:
        return tuple(self._views.values())

    def get(self, key: str) -> V | None:
        return self._views.get(key)

    async def refresh(self) -> Result[Tuple[V, ...], OrderError]:
        result = await self._call(self._fetch)
        if isinstance(result, Failure):
            self.last_error = result.failure()
            logger.warning("%s: poll failed: %s", self.name, self.last_error)
            return result

        self.last_error = None
        self._views = {self._key_of(v): v for v in result.unwrap()}
        self._generation += 1
        self._notify()
        return Success(self.snapshot())

    async def mutate(
        self, key: str, optimistic: Callable[[V], V], send: Send
    ) -> Result[Optional[V], OrderError]:
        """Apply ``optimistic`` locally, then ``send``; commit or roll back.

        ``send`` returns the fresh server view, or ``None`` when the order
        has left this surface's filter.
        """
        async with self._mutations:
            before = self._views.get(key)
            if before is None:
                return Failure(StaleWrite(f"{key} is no longer on {self.name}"))

            generation = self._generation
            self._views[key] = optimistic(before)
            self._notify()

            result = await self._call(send)
            if isinstance(result, Success):
                self._commit(key, result.unwrap())
                return result

            err = result.failure()
            self.last_error = err
            self._rollback(key, before, generation)
            logger.info("%s: mutation on %s rolled back: %s", self.name, key, err)

        if isinstance(err, _RECONCILE_ON):
            await self.refresh()
        return result

    async def run(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            await self.refresh()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    # ---- internals -----------------------------------------------------------

    def _commit(self, key: str, fresh: V | None) -> None:
        if key not in self._views:
            # a newer poll already dropped the order (e.g. completed elsewhere)
            return
        if fresh is None:
            del self._views[key]
        else:
            self._views[key] = fresh
        self._notify()

    def _rollback(self, key: str, before: V, generation: int) -> None:
        if self._generation != generation:
            # a newer server snapshot replaced the optimistic value already
            return
        if key in self._views:
            self._views[key] = before
            self._notify()

    async def _call(self, fn: Callable[[], Awaitable[Result]]) -> Result:
        try:
            return await asyncio.wait_for(fn(), timeout=self.timeout)
        except asyncio.TimeoutError:
            return Failure(
                TransientNetworkError(f"{self.name}: no response within {self.timeout}s")
            )

    def _notify(self) -> None:
        if self._on_snapshot is not None:
            self._on_snapshot(self.snapshot())


class StationBoard:
    """A kitchen, bar or pastry station's live list of work."""

    def __init__(
        self,
        api: OrderApi,
        station: Station,
        interval: float,
        timeout: float,
        on_snapshot: Callable[[Tuple[StationOrderView, ...]], None] | None = None,
    ) -> None:
        self.api = api
        self.station = station
        self.sync: PollingSynchronizer[StationOrderView] = PollingSynchronizer(
            fetch=lambda: api.station_orders(station),
            key_of=lambda v: v.order_id,
            interval=interval,
            timeout=timeout,
            name=f"station:{station.value}",
            on_snapshot=on_snapshot,
        )

    def orders(self) -> Tuple[StationOrderView, ...]:
        return self.sync.snapshot()

    async def refresh(self) -> Result[Tuple[StationOrderView, ...], OrderError]:
        return await self.sync.refresh()

    async def set_item_status(
        self, order_id: str, order_item_id: int, status: ItemStatus
    ) -> Result[Optional[StationOrderView], OrderError]:
        def optimistic(view: StationOrderView) -> StationOrderView:
            return replace(
                view,
                items=tuple(
                    replace(it, status=status) if it.order_item_id == order_item_id else it
                    for it in view.items
                ),
            )

        async def send() -> Result[Optional[StationOrderView], OrderError]:
            sent = await self.api.update_item_status(
                order_id, order_item_id, status, self.station
            )
            return sent.map(lambda r: self._station_view(r.order))

        return await self.sync.mutate(order_id, optimistic, send)

    async def toggle_item(
        self, order_id: str, order_item_id: int
    ) -> Result[Optional[StationOrderView], OrderError]:
        view = self.sync.get(order_id)
        item = None
        if view is not None:
            item = next((it for it in view.items if it.order_item_id == order_item_id), None)
        if item is None:
            return Failure(StaleWrite(f"item {order_item_id} is not on this station"))
        wanted = ItemStatus.PENDING if item.status == ItemStatus.DONE else ItemStatus.DONE
        return await self.set_item_status(order_id, order_item_id, wanted)

    def _station_view(self, order: OrderView) -> StationOrderView | None:
        if order.status not in ACTIVE_STATUSES:
            return None
        return StationOrderView(
            order_id=order.order_id,
            order_number=order.order_number,
            table_number=order.table_number,
            status=order.status,
            created_at=order.created_at,
            items=tuple(it for it in order.items if it.category == self.station),
        )


class CashierBoard:
    """The cashier's list of open orders."""

    def __init__(
        self,
        api: OrderApi,
        interval: float,
        timeout: float,
        on_snapshot: Callable[[Tuple[OrderView, ...]], None] | None = None,
    ) -> None:
        self.api = api
        self.query = ListOrdersQuery(exclude_completed=True)
        self.sync: PollingSynchronizer[OrderView] = PollingSynchronizer(
            fetch=lambda: api.cashier_orders(self.query),
            key_of=lambda v: v.order_id,
            interval=interval,
            timeout=timeout,
            name="cashier",
            on_snapshot=on_snapshot,
        )

    def orders(self) -> Tuple[OrderView, ...]:
        return self.sync.snapshot()

    def ready_orders(self) -> Tuple[OrderView, ...]:
        return tuple(o for o in self.orders() if o.status == OrderStatus.READY)

    async def refresh(self) -> Result[Tuple[OrderView, ...], OrderError]:
        return await self.sync.refresh()

    async def validate_payment(
        self, order_id: str
    ) -> Result[Optional[OrderView], OrderError]:
        def optimistic(view: OrderView) -> OrderView:
            return replace(
                view,
                payment_status=PaymentStatus.PAID,
                status=derive_order_status(view.items, PaymentStatus.PAID),
            )

        async def send() -> Result[Optional[OrderView], OrderError]:
            sent = await self.api.validate_payment(order_id)
            return sent.map(self._keep)

        return await self.sync.mutate(order_id, optimistic, send)

    async def complete(self, order_id: str) -> Result[Optional[OrderView], OrderError]:
        def optimistic(view: OrderView) -> OrderView:
            return replace(view, status=OrderStatus.COMPLETED)

        async def send() -> Result[Optional[OrderView], OrderError]:
            sent = await self.api.complete(order_id)
            return sent.map(self._keep)

        return await self.sync.mutate(order_id, optimistic, send)

    def _keep(self, view: OrderView) -> OrderView | None:
        if self.query.exclude_completed and view.status == OrderStatus.COMPLETED:
            return None
        return view
