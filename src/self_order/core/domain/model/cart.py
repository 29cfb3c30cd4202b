from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Sequence, Tuple
from uuid import uuid4

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import ValidationError
from self_order.core.domain.model.order import (
    DEFAULT_RATES,
    AddOn,
    Breakdown,
    RateConfig,
    Station,
)
from self_order.core.domain.service import pricing
from self_order.core.ports.outbound.cart_store import CartStore

MAX_NOTES_LENGTH = 200


@dataclass(frozen=True)
class LineItem:
    line_id: str
    item_id: str
    name: str
    unit_price: int
    quantity: int = 1
    notes: str = ""
    add_ons: Tuple[AddOn, ...] = ()
    category: Station | None = None

    def signature(self) -> tuple[str, tuple[str, ...]]:
        return self.item_id, tuple(sorted(a.id for a in self.add_ons))


class Cart:
    """Customer-editable pre-order state for one device.

    Every mutation is written through to the injected ``CartStore``. Lines
    never hold a quantity below 1; unknown line ids are ignored.
    """

    def __init__(self, store: CartStore, rates: RateConfig | None = None) -> None:
        self._store = store
        self._rates = rates
        self._lines: list[LineItem] = []
        self.session_token: str | None = None
        self.table_number: str | None = None
        state = store.load()
        if state:
            self._restore(state)

    # ---- session -----------------------------------------------------------

    def bind_session(self, token: str, table_number: str) -> None:
        self.session_token = token
        self.table_number = table_number
        self._persist()

    def unbind_session(self) -> None:
        self.session_token = None
        self.table_number = None
        self._lines = []
        self._persist()

    # ---- lines -------------------------------------------------------------

    @property
    def lines(self) -> Tuple[LineItem, ...]:
        return tuple(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def add_line(
        self,
        item_id: str,
        name: str,
        unit_price: int,
        quantity: int = 1,
        add_ons: Sequence[AddOn] = (),
        notes: str = "",
        category: Station | None = None,
    ) -> Result[LineItem, ValidationError]:
        if quantity < 1:
            raise ValueError("quantity must be >= 1")
        if unit_price < 0:
            raise ValueError("unit_price must be >= 0")
        if len(notes) > MAX_NOTES_LENGTH:
            return Failure(_notes_too_long())

        candidate = LineItem(
            line_id=uuid4().hex,
            item_id=item_id,
            name=name,
            unit_price=unit_price,
            quantity=quantity,
            notes=notes,
            add_ons=tuple(add_ons),
            category=category,
        )
        for i, ln in enumerate(self._lines):
            if ln.signature() == candidate.signature():
                merged = replace(ln, quantity=ln.quantity + quantity)
                self._lines[i] = merged
                self._persist()
                return Success(merged)

        self._lines.append(candidate)
        self._persist()
        return Success(candidate)

    def remove_line(self, line_id: str) -> None:
        kept = [ln for ln in self._lines if ln.line_id != line_id]
        if len(kept) != len(self._lines):
            self._lines = kept
            self._persist()

    def set_quantity(self, line_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_line(line_id)
            return
        self._update(line_id, lambda ln: replace(ln, quantity=quantity))

    def set_notes(
        self, line_id: str, text: str
    ) -> Result[LineItem | None, ValidationError]:
        if len(text) > MAX_NOTES_LENGTH:
            return Failure(_notes_too_long())
        return Success(self._update(line_id, lambda ln: replace(ln, notes=text)))

    def clear(self) -> None:
        self._lines = []
        self._persist()

    def item_count(self) -> int:
        return sum(ln.quantity for ln in self._lines)

    def quantity_of(self, item_id: str) -> int:
        return sum(ln.quantity for ln in self._lines if ln.item_id == item_id)

    # ---- pricing -----------------------------------------------------------

    @property
    def rates(self) -> RateConfig:
        return self._rates or DEFAULT_RATES

    @property
    def rates_loaded(self) -> bool:
        return self._rates is not None

    def set_rates(self, rates: RateConfig) -> None:
        self._rates = rates

    def get_breakdown(self) -> Breakdown:
        return pricing.breakdown(self._lines, self.rates)

    # ---- persistence -------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_token": self.session_token,
            "table_number": self.table_number,
            "items": [_line_to_dict(ln) for ln in self._lines],
        }

    def _restore(self, state: dict[str, Any]) -> None:
        self.session_token = state.get("session_token")
        self.table_number = state.get("table_number")
        self._lines = [_line_from_dict(x) for x in state.get("items", [])]

    def _persist(self) -> None:
        self._store.save(self.to_dict())

    def _update(self, line_id: str, change) -> LineItem | None:
        for i, ln in enumerate(self._lines):
            if ln.line_id == line_id:
                self._lines[i] = change(ln)
                self._persist()
                return self._lines[i]
        return None


def _notes_too_long() -> ValidationError:
    return ValidationError(f"notes must be at most {MAX_NOTES_LENGTH} characters")


def _line_to_dict(ln: LineItem) -> dict[str, Any]:
    return {
        "line_id": ln.line_id,
        "item_id": ln.item_id,
        "name": ln.name,
        "unit_price": ln.unit_price,
        "quantity": ln.quantity,
        "notes": ln.notes,
        "add_ons": [{"id": a.id, "price": a.price} for a in ln.add_ons],
        "category": ln.category.value if ln.category else None,
    }


def _line_from_dict(obj: dict[str, Any]) -> LineItem:
    add_ons: Iterable[dict[str, Any]] = obj.get("add_ons") or []
    category = obj.get("category")
    return LineItem(
        line_id=str(obj["line_id"]),
        item_id=str(obj["item_id"]),
        name=str(obj.get("name", "")),
        unit_price=int(obj["unit_price"]),
        quantity=max(1, int(obj.get("quantity", 1))),
        notes=str(obj.get("notes") or ""),
        add_ons=tuple(AddOn(str(a["id"]), int(a["price"])) for a in add_ons),
        category=Station(category) if category else None,
    )
