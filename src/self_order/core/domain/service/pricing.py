"""Integer-currency pricing: subtotal, service charge, compounded tax."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Protocol, Sequence

from self_order.core.domain.model.order import AddOn, Breakdown, RateConfig


class Chargeable(Protocol):
    unit_price: int
    quantity: int
    add_ons: Sequence[AddOn]


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def line_total(item: Chargeable) -> int:
    add_on_total = sum(a.price for a in item.add_ons)
    return (item.unit_price + add_on_total) * item.quantity


def subtotal(items: Iterable[Chargeable]) -> int:
    return sum(line_total(it) for it in items)


def service_charge(amount: int, rate: Decimal) -> int:
    return round_half_up(Decimal(amount) * rate)


def tax_base(amount: int, charge: int) -> int:
    return amount + charge


def tax(base: int, rate: Decimal) -> int:
    return round_half_up(Decimal(base) * rate)


def total(base: int, tax_amount: int) -> int:
    return base + tax_amount


def breakdown(items: Iterable[Chargeable], rates: RateConfig) -> Breakdown:
    sub = subtotal(items)
    charge = service_charge(sub, rates.service_charge_rate)
    base = tax_base(sub, charge)
    tax_amount = tax(base, rates.tax_rate)
    return Breakdown(
        subtotal=sub,
        service_charge=charge,
        tax_base=base,
        tax=tax_amount,
        total=total(base, tax_amount),
        rates=rates,
    )
