import asyncio
import json
from datetime import datetime, timezone

from returns.result import Success

from self_order.adapters.inbound.cli import format_board, quote_main, run_quote, watch_station
from self_order.core.domain.model.order import ItemStatus, OrderStatus, Station
from self_order.core.ports.inbound.get_order import OrderItemView
from self_order.core.ports.inbound.station_orders import StationOrderView


def _board_order() -> StationOrderView:
    return StationOrderView(
        order_id="o-1",
        order_number="ORD-0007",
        table_number="4",
        status=OrderStatus.PENDING,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        items=(
            OrderItemView(1, "es-teh", "Es Teh", Station.BAR, 2, 8000, 16000, ItemStatus.DONE),
            OrderItemView(2, "kopi-susu", "Kopi Susu", Station.BAR, 1, 22000, 22000,
                          ItemStatus.PENDING, notes="less sugar"),
        ),
    )


class _StaticApi:
    async def station_orders(self, station):
        return Success((_board_order(),))


def test_quote_prints_breakdown(capsys) -> None:
    raw = json.dumps(
        {
            "items": [
                {"item_id": "nasi-goreng", "unit_price": 35000, "quantity": 2},
                {"item_id": "es-teh", "unit_price": 8000},
            ]
        }
    )

    code = run_quote(raw)

    out = capsys.readouterr().out
    assert code == 0
    assert "'total': 91806" in out
    assert "'items': 3" in out


def test_quote_with_custom_rates_and_add_ons(capsys) -> None:
    raw = json.dumps(
        {
            "service_charge_rate": "0",
            "tax_rate": "0.11",
            "items": [
                {"item_id": "kopi", "unit_price": 20000,
                 "add_ons": [{"id": "extra-shot", "price": 6000}]},
            ],
        }
    )

    assert run_quote(raw) == 0
    assert "'total': 28860" in capsys.readouterr().out


def test_quote_rejects_bad_input(capsys) -> None:
    assert run_quote("{not json") == 2
    assert run_quote(json.dumps({"items": [{"item_id": "x", "unit_price": 1, "quantity": 0}]})) == 2
    assert quote_main([]) == 2
    assert "invalid_input" in capsys.readouterr().out


def test_format_board_marks_done_items() -> None:
    text = format_board(Station.BAR, (_board_order(),))

    assert text.splitlines() == [
        "== bar: 1 order(s)",
        "ORD-0007 table 4 [pending]",
        "  [x] #1 2x Es Teh",
        "  [ ] #2 1x Kopi Susu (less sugar)",
    ]


def test_watch_once_prints_snapshot(capsys) -> None:
    code = asyncio.run(
        watch_station(_StaticApi(), Station.BAR, interval=1.0, timeout=1.0, once=True)
    )

    assert code == 0
    assert "ORD-0007" in capsys.readouterr().out
