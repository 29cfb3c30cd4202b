from __future__ import annotations

from typing import Protocol

from returns.result import Result

from self_order.core.domain.model.errors import OrderError
from self_order.core.domain.model.order import TableSession


class SessionGateway(Protocol):
    def resolve(self, token: str) -> Result[TableSession, OrderError]: ...

    def bind(self, qr_value: str) -> Result[TableSession, OrderError]: ...
