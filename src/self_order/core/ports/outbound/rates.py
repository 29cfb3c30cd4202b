from __future__ import annotations

from typing import Protocol

from self_order.core.domain.model.order import RateConfig


class RateProvider(Protocol):
    def current(self) -> RateConfig: ...
