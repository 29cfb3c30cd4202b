from decimal import Decimal

from self_order.core.domain.model.order import AddOn, RateConfig
from self_order.core.domain.model.cart import LineItem
from self_order.core.domain.service import pricing


def _line(price: int, qty: int, add_ons=()) -> LineItem:
    return LineItem(
        line_id=f"l-{price}-{qty}",
        item_id=f"m-{price}",
        name="x",
        unit_price=price,
        quantity=qty,
        add_ons=tuple(add_ons),
    )


def test_breakdown_matches_worked_example() -> None:
    items = [_line(35000, 2), _line(8000, 1)]

    b = pricing.breakdown(items, RateConfig.of("0.07", "0.10"))

    assert b.subtotal == 78000
    assert b.service_charge == 5460
    assert b.tax_base == 83460
    assert b.tax == 8346
    assert b.total == 91806
    assert b.total == b.subtotal + b.service_charge + b.tax


def test_tax_is_compounded_on_service_charge() -> None:
    items = [_line(12345, 3)]
    rates = RateConfig.of("0.07", "0.10")

    b = pricing.breakdown(items, rates)

    assert b.tax == pricing.round_half_up((b.subtotal + b.service_charge) * rates.tax_rate)
    assert b.tax != pricing.round_half_up(b.subtotal * rates.tax_rate)


def test_breakdown_is_deterministic() -> None:
    items = [_line(999, 7), _line(15001, 1, [AddOn("egg", 4999)])]
    rates = RateConfig.of(Decimal("0.075"), Decimal("0.11"))

    assert pricing.breakdown(items, rates) == pricing.breakdown(items, rates)


def test_add_ons_count_per_unit() -> None:
    line = _line(20000, 3, [AddOn("egg", 5000), AddOn("cheese", 2500)])

    assert pricing.line_total(line) == (20000 + 5000 + 2500) * 3


def test_round_half_up_on_exact_halves() -> None:
    assert pricing.service_charge(50, Decimal("0.01")) == 1  # 0.5 -> 1
    assert pricing.service_charge(150, Decimal("0.01")) == 2  # 1.5 -> 2
    assert pricing.service_charge(250, Decimal("0.01")) == 3  # 2.5 -> 3, not banker's 2
    assert pricing.tax(149, Decimal("0.01")) == 1


def test_empty_items_price_to_zero() -> None:
    b = pricing.breakdown([], RateConfig())

    assert (b.subtotal, b.service_charge, b.tax, b.total) == (0, 0, 0, 0)


def test_breakdown_records_rates_used() -> None:
    rates = RateConfig.of("0.05", "0.11")

    assert pricing.breakdown([_line(1000, 1)], rates).rates == rates
