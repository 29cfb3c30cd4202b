from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence
from uuid import UUID

import httpx
from pydantic import ValidationError as SchemaError
from returns.result import Failure, Result, Success

from self_order.adapters.inbound.web.schemas import (
    ErrorResponse,
    ItemStatusResponse,
    OrderDetailsResponse,
    OrderListResponse,
    OrderReceiptResponse,
    RatesResponse,
    StationOrdersResponse,
)
from self_order.core.domain.model.errors import (
    CategoryNotOwned,
    Forbidden,
    InvalidSession,
    OrderError,
    OrderNotFound,
    PaymentDeclined,
    PersistenceError,
    PreconditionFailed,
    StaleWrite,
    StockConflict,
    TransientNetworkError,
    ValidationError,
)
from self_order.core.domain.model.order import (
    ItemStatus,
    OrderId,
    RateConfig,
    Station,
)
from self_order.core.ports.inbound.get_order import OrderView
from self_order.core.ports.inbound.list_orders import ListOrdersQuery
from self_order.core.ports.inbound.order_status import ItemStatusResult
from self_order.core.ports.inbound.place_order import OrderReceipt, PlaceOrderCommand
from self_order.core.ports.inbound.station_orders import StationOrderView
from self_order.core.ports.outbound.order_api import OrderApi

logger = logging.getLogger(__name__)


@dataclass
class HttpOrderApi(OrderApi):
    """``OrderApi`` over the JSON HTTP surface.

    The caller owns ``client`` (base URL, timeout, transport).
    """

    client: httpx.AsyncClient
    staff_role: str | None = None

    async def get_rates(self) -> Result[RateConfig, OrderError]:
        got = await self._request("GET", "/settings/rates")
        return got.bind(lambda r: _parse(RatesResponse, r)).map(
            lambda body: RateConfig(body.service_charge_rate, body.tax_rate)
        )

    async def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[OrderReceipt, OrderError]:
        payload: dict[str, Any] = {
            "sessionToken": command.session_token,
            "paymentMethod": command.payment_method.value,
            "notes": command.notes or None,
            "items": [
                {
                    "menuId": ln.menu_id,
                    "quantity": ln.quantity,
                    "notes": ln.notes,
                    "addOnIds": list(ln.add_on_ids),
                }
                for ln in command.lines
            ],
        }
        if command.email:
            payload["email"] = command.email

        got = await self._request("POST", "/orders", json=payload)
        return got.bind(lambda r: _parse(OrderReceiptResponse, r)).map(_to_receipt)

    async def get_order(self, order_id: str) -> Result[OrderView, OrderError]:
        got = await self._request("GET", f"/orders/{order_id}")
        return got.bind(lambda r: _parse(OrderDetailsResponse, r)).map(
            lambda body: body.to_view()
        )

    async def station_orders(
        self, station: Station
    ) -> Result[Sequence[StationOrderView], OrderError]:
        got = await self._request("GET", f"/stations/{station.value}/orders")
        return got.bind(lambda r: _parse(StationOrdersResponse, r)).map(
            lambda body: tuple(o.to_view() for o in body.orders)
        )

    async def update_item_status(
        self, order_id: str, order_item_id: int, status: ItemStatus, station: Station
    ) -> Result[ItemStatusResult, OrderError]:
        got = await self._request(
            "PATCH",
            f"/orders/{order_id}/items/{order_item_id}/status",
            json={"status": status.value},
            headers={"X-Station": station.value},
        )
        return got.bind(lambda r: _parse(ItemStatusResponse, r)).map(
            lambda body: ItemStatusResult(
                items=tuple(it.to_view() for it in body.items),
                order=body.order.to_view(),
            )
        )

    async def cashier_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderView], OrderError]:
        params: dict[str, Any] = {}
        if query.status is not None:
            params["status"] = query.status.value
        if query.payment_status is not None:
            params["paymentStatus"] = query.payment_status.value
        if query.exclude_completed:
            params["excludeCompleted"] = "true"

        got = await self._request("GET", "/orders", params=params, headers=self._role())
        return got.bind(lambda r: _parse(OrderListResponse, r)).map(
            lambda body: tuple(o.to_view() for o in body.items)
        )

    async def validate_payment(self, order_id: str) -> Result[OrderView, OrderError]:
        return await self._cashier_patch(f"/orders/{order_id}/validate-payment")

    async def complete(self, order_id: str) -> Result[OrderView, OrderError]:
        return await self._cashier_patch(f"/orders/{order_id}/complete")

    # ---- plumbing ------------------------------------------------------------

    async def _cashier_patch(self, url: str) -> Result[OrderView, OrderError]:
        got = await self._request("PATCH", url, headers=self._role())
        return got.bind(lambda r: _parse(OrderDetailsResponse, r)).map(
            lambda body: body.to_view()
        )

    def _role(self) -> dict[str, str]:
        return {"X-Staff-Role": self.staff_role} if self.staff_role else {}

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Result[httpx.Response, OrderError]:
        try:
            resp = await self.client.request(
                method, url, json=json, params=params, headers=headers
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %r", method, url, exc)
            return Failure(
                TransientNetworkError(f"{method} {url}: {type(exc).__name__}")
            )

        if resp.is_success:
            return Success(resp)
        return Failure(_error_from_response(resp))


def _parse(model: Any, resp: httpx.Response) -> Result[Any, OrderError]:
    try:
        return Success(model.model_validate(resp.json()))
    except (ValueError, SchemaError) as exc:
        return Failure(PersistenceError(f"unexpected response body: {exc}"))


def _to_receipt(body: OrderReceiptResponse) -> OrderReceipt:
    return OrderReceipt(
        order_id=OrderId(UUID(body.order_id)),
        order_number=body.order_number,
        breakdown=body.totals.to_breakdown(),
        payment_status=body.payment_status,
        redirect_url=body.redirect_url,
    )


def _error_from_response(resp: httpx.Response) -> OrderError:
    try:
        body = ErrorResponse.model_validate(resp.json())
    except (ValueError, SchemaError):
        body = ErrorResponse(type="HTTPError", message=resp.text or resp.reason_phrase)

    status = resp.status_code
    message = body.message

    if status == 400:
        if body.type == "InvalidSession":
            return InvalidSession(message)
        return ValidationError(message)
    if status == 403:
        if body.type == "CategoryNotOwned":
            return CategoryNotOwned(
                message=message,
                station=body.station or "",
                category=body.category or "",
            )
        return Forbidden(message)
    if status == 404:
        return OrderNotFound(message=message)
    if status == 409:
        if body.stock_errors:
            return StockConflict(
                message=message,
                stock_errors=tuple(s.to_shortage() for s in body.stock_errors),
            )
        if body.type == "StaleWrite":
            return StaleWrite(message)
        return PreconditionFailed(message=message)
    if status == 402:
        return PaymentDeclined(message=message)
    if status in (502, 503, 504):
        return TransientNetworkError(message)
    return PersistenceError(message)
