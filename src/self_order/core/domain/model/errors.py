from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class OrderError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


@dataclass(frozen=True)
class ValidationError(OrderError):
    pass


@dataclass(frozen=True)
class InvalidSession(ValidationError):
    def __str__(self) -> str:  # pragma: no cover
        return f"invalid_session: {self.message}"


@dataclass(frozen=True)
class StockShortage:
    menu_id: str
    requested: int
    available: int


@dataclass(frozen=True)
class StockConflict(OrderError):
    stock_errors: tuple[StockShortage, ...] = field(default_factory=tuple)

    def __str__(self) -> str:  # pragma: no cover
        ids = ", ".join(s.menu_id for s in self.stock_errors)
        return f"stock_conflict: [{ids}] ({self.message})"


@dataclass(frozen=True)
class PreconditionFailed(OrderError):
    reason: str = "precondition_failed"

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.reason}: {self.message}"


@dataclass(frozen=True)
class CategoryNotOwned(OrderError):
    station: str = ""
    category: str = ""

    def __str__(self) -> str:  # pragma: no cover
        return (
            f"category_not_owned: station={self.station} "
            f"category={self.category} ({self.message})"
        )


@dataclass(frozen=True)
class Forbidden(OrderError):
    pass


@dataclass(frozen=True)
class StaleWrite(OrderError):
    pass


@dataclass(frozen=True)
class PaymentDeclined(OrderError):
    reason: str = "declined"

    def __str__(self) -> str:  # pragma: no cover
        return f"payment_declined: {self.reason} ({self.message})"


@dataclass(frozen=True)
class PersistenceError(OrderError):
    pass


@dataclass(frozen=True)
class OrderNotFound(PersistenceError):
    order_id: str = ""

    def __str__(self) -> str:  # pragma: no cover
        return f"order_not_found: {self.order_id} ({self.message})"


@dataclass(frozen=True)
class PublishError(OrderError):
    pass


@dataclass(frozen=True)
class TransientNetworkError(OrderError):
    pass
