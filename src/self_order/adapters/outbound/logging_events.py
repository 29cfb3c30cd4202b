from __future__ import annotations

import logging
from dataclasses import dataclass

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import OrderError, PublishError
from self_order.core.ports.outbound.events import (
    EventPublisher,
    OrderEvent,
    OrderPlaced,
)

logger = logging.getLogger(__name__)


@dataclass
class LoggingEventPublisher(EventPublisher):
    fail: bool = False

    def publish(self, event: OrderEvent) -> Result[None, OrderError]:
        if self.fail:
            return Failure(PublishError(message="publisher is down"))
        if isinstance(event, OrderPlaced):
            logger.info(
                "[event] order_placed: %s table=%s total=%d",
                event.order_number,
                event.table_number,
                event.total,
                extra={"order_id": str(event.order_id.value)},
            )
        else:
            logger.info(
                "[event] order_status_changed: %s %s -> %s by %s",
                event.order_number,
                event.previous.value,
                event.current.value,
                event.actor,
                extra={"order_id": str(event.order_id.value)},
            )
        return Success(None)
