from __future__ import annotations

from dataclasses import dataclass

from self_order.core.domain.model.order import DEFAULT_RATES, RateConfig
from self_order.core.ports.outbound.rates import RateProvider


@dataclass
class StaticRateProvider(RateProvider):
    rates: RateConfig = DEFAULT_RATES

    def current(self) -> RateConfig:
        return self.rates
