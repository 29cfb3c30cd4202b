from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Tuple

import httpx
from returns.result import Success

from self_order.adapters.outbound.cart_stores import InMemoryCartStore
from self_order.adapters.outbound.http_order_api import HttpOrderApi
from self_order.bootstrap import configure_logging
from self_order.config import settings
from self_order.core.domain.model.cart import Cart
from self_order.core.domain.model.order import AddOn, RateConfig, Station
from self_order.core.domain.service.synchronizer import StationBoard
from self_order.core.ports.inbound.station_orders import StationOrderView
from self_order.core.ports.outbound.order_api import OrderApi

logger = logging.getLogger(__name__)


def run_quote(raw: str) -> int:
    """
    raw: JSON string.
    Example:
      {"service_charge_rate": "0.07", "tax_rate": "0.10",
       "items": [{"item_id": "nasi-goreng", "name": "Nasi Goreng",
                  "unit_price": 35000, "quantity": 2,
                  "add_ons": [{"id": "egg", "price": 5000}]}]}
    """
    try:
        payload = json.loads(raw)
        cart = _parse_cart(payload)
    except (ValueError, KeyError, TypeError) as e:
        print(f"invalid_input: {e}")
        return 2

    b = cart.get_breakdown()
    print(
        "[ok]",
        {
            "items": cart.item_count(),
            "subtotal": b.subtotal,
            "service_charge": b.service_charge,
            "tax_base": b.tax_base,
            "tax": b.tax,
            "total": b.total,
            "service_charge_rate": str(b.rates.service_charge_rate),
            "tax_rate": str(b.rates.tax_rate),
        },
    )
    return 0


def _parse_cart(payload: dict[str, Any]) -> Cart:
    rates = RateConfig.of(
        payload.get("service_charge_rate", settings.service_charge_rate),
        payload.get("tax_rate", settings.tax_rate),
    )
    cart = Cart(InMemoryCartStore(), rates=rates)
    for x in payload.get("items", []):
        added = cart.add_line(
            item_id=str(x["item_id"]),
            name=str(x.get("name", x["item_id"])),
            unit_price=int(x["unit_price"]),
            quantity=int(x.get("quantity", 1)),
            add_ons=[AddOn(str(a["id"]), int(a["price"])) for a in x.get("add_ons", [])],
            notes=str(x.get("notes", "")),
        )
        if not isinstance(added, Success):
            raise ValueError(str(added.failure()))
    return cart


def format_board(station: Station, orders: Tuple[StationOrderView, ...]) -> str:
    lines = [f"== {station.value}: {len(orders)} order(s)"]
    for o in orders:
        lines.append(f"{o.order_number} table {o.table_number} [{o.status.value}]")
        for it in o.items:
            mark = "x" if it.status.value == "Done" else " "
            note = f" ({it.notes})" if it.notes else ""
            lines.append(f"  [{mark}] #{it.order_item_id} {it.quantity}x {it.name}{note}")
    return "\n".join(lines)


async def watch_station(
    api: OrderApi,
    station: Station,
    interval: float,
    timeout: float,
    once: bool = False,
) -> int:
    board = StationBoard(
        api,
        station,
        interval=interval,
        timeout=timeout,
        on_snapshot=lambda orders: print(format_board(station, orders)),
    )
    if once:
        result = await board.refresh()
        return 0 if isinstance(result, Success) else 1

    stop = asyncio.Event()
    await board.sync.run(stop)
    return 0


def quote_main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    if not argv:
        print("usage: self-order-quote '<cart json>'")
        return 2
    return run_quote(argv[0])


def watch_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="self-order-watch")
    parser.add_argument("station", choices=[s.value for s in Station])
    parser.add_argument("--base-url", default=settings.api_base_url)
    parser.add_argument(
        "--interval", type=float, default=settings.station_poll_interval_seconds
    )
    parser.add_argument("--once", action="store_true")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)

    async def _run() -> int:
        async with httpx.AsyncClient(
            base_url=args.base_url, timeout=settings.request_timeout_seconds
        ) as client:
            return await watch_station(
                HttpOrderApi(client),
                Station(args.station),
                interval=args.interval,
                timeout=settings.request_timeout_seconds,
                once=args.once,
            )

    try:
        return asyncio.run(_run())
    except KeyboardInterrupt:
        logger.info("watcher stopped")
        return 0
