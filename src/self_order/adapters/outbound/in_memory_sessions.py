from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Dict

from returns.result import Failure, Result, Success

from self_order.core.domain.model.errors import InvalidSession, OrderError
from self_order.core.domain.model.order import TableSession, now_utc
from self_order.core.ports.outbound.sessions import SessionGateway

QR_PREFIX = "table:"


@dataclass
class InMemorySessionRegistry(SessionGateway):
    """Stand-in for the table/session service; QR values look like ``table:12``."""

    ttl: timedelta = timedelta(hours=3)
    token_factory: Callable[[], str] = lambda: secrets.token_urlsafe(16)
    _sessions: Dict[str, TableSession] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def bind(self, qr_value: str) -> Result[TableSession, OrderError]:
        if not qr_value.startswith(QR_PREFIX) or not qr_value[len(QR_PREFIX):].strip():
            return Failure(InvalidSession("unrecognised table code"))
        session = TableSession(
            token=self.token_factory(),
            table_number=qr_value[len(QR_PREFIX):].strip(),
            expires_at=now_utc() + self.ttl,
        )
        with self._lock:
            self._sessions[session.token] = session
        return Success(session)

    def resolve(self, token: str) -> Result[TableSession, OrderError]:
        with self._lock:
            session = self._sessions.get(token)
        if session is None:
            return Failure(InvalidSession("session not found; scan the table code again"))
        if session.expires_at <= now_utc():
            return Failure(InvalidSession("session expired; scan the table code again"))
        return Success(session)
