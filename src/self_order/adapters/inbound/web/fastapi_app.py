from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import Depends, FastAPI, Header, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from returns.result import Success

from self_order.adapters.inbound.web.schemas import (
    BatchItemStatusIn,
    BindSessionIn,
    BreakdownOut,
    ErrorResponse,
    ItemStatusIn,
    ItemStatusResponse,
    OrderDetailsResponse,
    OrderItemOut,
    OrderListResponse,
    OrderReceiptResponse,
    PaymentCallbackIn,
    PlaceOrderRequest,
    RatesResponse,
    SessionHistoryResponse,
    SessionResponse,
    StationOrderOut,
    StationOrdersResponse,
    StockErrorOut,
)
from self_order.core.domain.model.errors import (
    CategoryNotOwned,
    Forbidden,
    OrderError,
    OrderNotFound,
    PaymentDeclined,
    PersistenceError,
    PreconditionFailed,
    PublishError,
    StaleWrite,
    StockConflict,
    TransientNetworkError,
    ValidationError,
)
from self_order.core.domain.model.order import (
    OrderStatus,
    PaymentStatus,
    Station,
)
from self_order.core.ports.inbound.get_order import GetOrderQuery, GetOrderUseCase
from self_order.core.ports.inbound.list_orders import ListOrdersQuery, ListOrdersUseCase
from self_order.core.ports.inbound.order_status import (
    CashierUseCase,
    PaymentCallbackCommand,
    PaymentCallbackUseCase,
    StationItemsUseCase,
    UpdateItemStatusCommand,
)
from self_order.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderLine,
    PlaceOrderUseCase,
)
from self_order.core.ports.inbound.station_orders import (
    ACTIVE_STATUSES,
    StationOrdersQuery,
    StationOrdersUseCase,
)
from self_order.core.ports.outbound.rates import RateProvider
from self_order.core.ports.outbound.sessions import SessionGateway

logger = logging.getLogger(__name__)

CASHIER = "cashier"
OWNER = "owner"


def _map_error_to_http(err: OrderError) -> tuple[int, ErrorResponse]:
    body = ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, ValidationError):
        return 400, body

    if isinstance(err, CategoryNotOwned):
        body.station = err.station
        body.category = err.category
        return 403, body

    if isinstance(err, Forbidden):
        return 403, body

    if isinstance(err, OrderNotFound):
        return 404, body

    if isinstance(err, StockConflict):
        body.stock_errors = [StockErrorOut.of(s) for s in err.stock_errors]
        return 409, body

    if isinstance(err, (PreconditionFailed, StaleWrite)):
        return 409, body

    if isinstance(err, PaymentDeclined):
        return 402, body

    if isinstance(err, (PublishError, TransientNetworkError)):
        return 503, body

    if isinstance(err, PersistenceError):
        return 500, body

    return 500, body


def require_role(*roles: str) -> Callable[..., str]:
    def dependency(
        staff_role: str | None = Header(None, alias="X-Staff-Role"),
    ) -> str:
        if staff_role not in roles:
            raise Forbidden(message=f"requires role: {', '.join(roles)}")
        return staff_role

    return dependency


def create_app(
    place_order_uc: PlaceOrderUseCase,
    get_order_uc: GetOrderUseCase,
    list_orders_uc: ListOrdersUseCase,
    station_orders_uc: StationOrdersUseCase,
    station_items_uc: StationItemsUseCase,
    cashier_uc: CashierUseCase,
    payment_callback_uc: PaymentCallbackUseCase,
    rates: RateProvider,
    sessions: SessionGateway,
) -> FastAPI:
    app = FastAPI(title="self_order")

    # --- exception handlers ------------------------------------------------

    @app.exception_handler(OrderError)
    async def handle_domain_error(_: Request, exc: OrderError) -> JSONResponse:
        status, body = _map_error_to_http(exc)
        return JSONResponse(
            status_code=status,
            content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = ErrorResponse(
            type="RequestValidationError",
            message="invalid request",
            details=jsonable_encoder(exc.errors()),
        )
        return JSONResponse(
            status_code=400,
            content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error")
        body = ErrorResponse(type=type(exc).__name__, message="internal server error")
        return JSONResponse(
            status_code=500,
            content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    # --- routes --------------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/settings/rates", response_model=RatesResponse)
    def get_rates() -> Any:
        return RatesResponse.of(rates.current())

    @app.post(
        "/sessions",
        response_model=SessionResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse}},
    )
    def bind_session(req: BindSessionIn) -> Any:
        result = sessions.bind(req.qr_value)

        if isinstance(result, Success):
            return SessionResponse.of(result.unwrap())

        raise result.failure()

    @app.get(
        "/sessions/{session_token}",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse}},
    )
    def resolve_session(session_token: str) -> Any:
        result = sessions.resolve(session_token)

        if isinstance(result, Success):
            return SessionResponse.of(result.unwrap())

        raise result.failure()

    @app.post(
        "/orders",
        response_model=OrderReceiptResponse,
        status_code=201,
        responses={
            400: {"model": ErrorResponse},
            402: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            503: {"model": ErrorResponse},
        },
    )
    def place_order(req: PlaceOrderRequest, response: Response) -> Any:
        cmd = PlaceOrderCommand(
            session_token=req.session_token,
            payment_method=req.payment_method,
            notes=req.notes or "",
            email=req.email,
            lines=tuple(
                PlaceOrderLine(
                    menu_id=ln.menu_id,
                    quantity=ln.quantity,
                    notes=ln.notes,
                    add_on_ids=tuple(ln.add_on_ids),
                )
                for ln in req.items
            ),
        )

        result = place_order_uc.place_order(cmd)

        if isinstance(result, Success):
            receipt = result.unwrap()
            order_id = str(receipt.order_id.value)
            response.headers["Location"] = f"/orders/{order_id}"
            return OrderReceiptResponse(
                order_id=order_id,
                order_number=receipt.order_number,
                totals=BreakdownOut.of(receipt.breakdown),
                payment_status=receipt.payment_status,
                redirect_url=receipt.redirect_url,
            )

        raise result.failure()

    @app.get(
        "/orders",
        response_model=OrderListResponse,
        responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    )
    def list_orders(
        status: OrderStatus | None = Query(None),
        payment_status: PaymentStatus | None = Query(None, alias="paymentStatus"),
        exclude_completed: bool = Query(False, alias="excludeCompleted"),
        _role: str = Depends(require_role(CASHIER, OWNER)),
    ) -> Any:
        result = list_orders_uc.list_orders(
            ListOrdersQuery(
                status=status,
                payment_status=payment_status,
                exclude_completed=exclude_completed,
            )
        )

        if isinstance(result, Success):
            return OrderListResponse(
                items=[OrderDetailsResponse.of(v) for v in result.unwrap()]
            )

        raise result.failure()

    @app.get(
        "/orders/{order_id}",
        response_model=OrderDetailsResponse,
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
        },
    )
    def get_order(order_id: str) -> Any:
        result = get_order_uc.get_order(GetOrderQuery(order_id=order_id))

        if isinstance(result, Success):
            return OrderDetailsResponse.of(result.unwrap())

        raise result.failure()

    @app.get(
        "/sessions/{session_token}/orders",
        response_model=SessionHistoryResponse,
        responses={400: {"model": ErrorResponse}},
    )
    def session_history(session_token: str) -> Any:
        result = list_orders_uc.session_history(session_token)

        if isinstance(result, Success):
            history = result.unwrap()
            return SessionHistoryResponse(
                orders=[OrderDetailsResponse.of(v) for v in history.orders],
                total_orders=history.total_orders,
                total_spent=history.total_spent,
            )

        raise result.failure()

    def _update_items(
        order_id: str, item_ids: list[int], status: Any, station: Station
    ) -> Any:
        result = station_items_uc.update_item_status(
            UpdateItemStatusCommand(
                order_id=order_id,
                order_item_ids=tuple(item_ids),
                status=status,
                station=station,
            )
        )

        if isinstance(result, Success):
            updated = result.unwrap()
            return ItemStatusResponse(
                items=[OrderItemOut.of(it) for it in updated.items],
                order_status=updated.order.status,
                order=OrderDetailsResponse.of(updated.order),
            )

        raise result.failure()

    item_status_responses = {
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }

    @app.patch(
        "/orders/{order_id}/items/{item_id}/status",
        response_model=ItemStatusResponse,
        responses=item_status_responses,
    )
    def update_item_status(
        order_id: str,
        item_id: int,
        req: ItemStatusIn,
        station: Station = Header(..., alias="X-Station"),
    ) -> Any:
        return _update_items(order_id, [item_id], req.status, station)

    @app.patch(
        "/orders/{order_id}/items/status",
        response_model=ItemStatusResponse,
        responses=item_status_responses,
    )
    def batch_update_item_status(
        order_id: str,
        req: BatchItemStatusIn,
        station: Station = Header(..., alias="X-Station"),
    ) -> Any:
        return _update_items(order_id, req.item_ids, req.status, station)

    cashier_responses = {
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }

    @app.patch(
        "/orders/{order_id}/validate-payment",
        response_model=OrderDetailsResponse,
        responses=cashier_responses,
    )
    def validate_payment(
        order_id: str, _role: str = Depends(require_role(CASHIER))
    ) -> Any:
        result = cashier_uc.validate_payment(order_id)
        if isinstance(result, Success):
            return OrderDetailsResponse.of(result.unwrap())
        raise result.failure()

    @app.patch(
        "/orders/{order_id}/complete",
        response_model=OrderDetailsResponse,
        responses=cashier_responses,
    )
    def complete_order(
        order_id: str, _role: str = Depends(require_role(CASHIER))
    ) -> Any:
        result = cashier_uc.complete(order_id)
        if isinstance(result, Success):
            return OrderDetailsResponse.of(result.unwrap())
        raise result.failure()

    @app.patch(
        "/orders/{order_id}/reopen",
        response_model=OrderDetailsResponse,
        responses=cashier_responses,
    )
    def reopen_order(
        order_id: str, _role: str = Depends(require_role(CASHIER, OWNER))
    ) -> Any:
        result = cashier_uc.reopen(order_id)
        if isinstance(result, Success):
            return OrderDetailsResponse.of(result.unwrap())
        raise result.failure()

    @app.post(
        "/payments/callback",
        response_model=OrderDetailsResponse,
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
        },
    )
    def payment_callback(req: PaymentCallbackIn) -> Any:
        result = payment_callback_uc.handle_callback(
            PaymentCallbackCommand(
                order_id=req.order_id,
                status=req.status,
                transaction_id=req.transaction_id,
            )
        )
        if isinstance(result, Success):
            return OrderDetailsResponse.of(result.unwrap())
        raise result.failure()

    @app.get(
        "/stations/{station}/orders",
        response_model=StationOrdersResponse,
        responses={400: {"model": ErrorResponse}},
    )
    def station_orders(
        station: Station,
        status: list[OrderStatus] | None = Query(None),
    ) -> Any:
        result = station_orders_uc.station_orders(
            StationOrdersQuery(
                station=station, statuses=tuple(status) if status else ACTIVE_STATUSES
            )
        )

        if isinstance(result, Success):
            return StationOrdersResponse(
                station=station,
                orders=[StationOrderOut.of(v) for v in result.unwrap()],
            )

        raise result.failure()

    return app
