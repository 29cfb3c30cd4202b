from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import FastAPI

from self_order.adapters.inbound.web.fastapi_app import create_app
from self_order.adapters.outbound.dummy_payment import DummyPaymentProcessor
from self_order.adapters.outbound.in_memory_catalog import InMemoryCatalog
from self_order.adapters.outbound.in_memory_orders import InMemoryOrderRepository
from self_order.adapters.outbound.in_memory_sessions import InMemorySessionRegistry
from self_order.adapters.outbound.logging_events import LoggingEventPublisher
from self_order.adapters.outbound.static_rates import StaticRateProvider
from self_order.config import Settings, settings as default_settings
from self_order.core.domain.model.order import MenuItem, RateConfig, Station
from self_order.core.domain.service.get_order_service import (
    GetOrderDeps,
    GetOrderService,
)
from self_order.core.domain.service.list_orders_service import (
    ListOrdersDeps,
    ListOrdersService,
)
from self_order.core.domain.service.order_status_service import (
    CashierService,
    OrderStatusDeps,
    PaymentCallbackService,
    StationItemsService,
)
from self_order.core.domain.service.place_order_service import (
    PlaceOrderDeps,
    PlaceOrderService,
)
from self_order.core.domain.service.station_orders_service import (
    StationOrdersDeps,
    StationOrdersService,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

DEMO_MENU = (
    MenuItem("nasi-goreng", "Nasi Goreng", Station.KITCHEN, 35000, stock_quantity=50,
             add_ons={"egg": 5000, "extra-chicken": 12000}),
    MenuItem("mie-ayam", "Mie Ayam", Station.KITCHEN, 28000, stock_quantity=30),
    MenuItem("es-teh", "Es Teh", Station.BAR, 8000, stock_quantity=100),
    MenuItem("kopi-susu", "Kopi Susu", Station.BAR, 22000, stock_quantity=40,
             add_ons={"extra-shot": 6000}),
    MenuItem("croissant", "Croissant", Station.PASTRY, 25000, stock_quantity=12),
)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


@dataclass(frozen=True)
class UseCases:
    place_order: PlaceOrderService
    get_order: GetOrderService
    list_orders: ListOrdersService
    station_orders: StationOrdersService
    station_items: StationItemsService
    cashier: CashierService
    payment_callback: PaymentCallbackService
    rates: StaticRateProvider
    sessions: InMemorySessionRegistry
    catalog: InMemoryCatalog


def build_usecases(
    cfg: Settings | None = None,
    menu: tuple[MenuItem, ...] = DEMO_MENU,
    payment: DummyPaymentProcessor | None = None,
    events: LoggingEventPublisher | None = None,
) -> UseCases:
    cfg = cfg or default_settings
    rates = StaticRateProvider(RateConfig.of(cfg.service_charge_rate, cfg.tax_rate))
    sessions = InMemorySessionRegistry()
    catalog = InMemoryCatalog.of(menu)
    orders = InMemoryOrderRepository(number_prefix=cfg.order_number_prefix)
    payment = payment or DummyPaymentProcessor()
    events = events or LoggingEventPublisher()

    place_order = PlaceOrderService(
        PlaceOrderDeps(
            sessions=sessions,
            catalog=catalog,
            inventory=catalog,
            orders=orders,
            rates=rates,
            payment=payment,
            events=events,
        )
    )
    status_deps = OrderStatusDeps(orders=orders, events=events, inventory=catalog)

    return UseCases(
        place_order=place_order,
        get_order=GetOrderService(GetOrderDeps(orders=orders)),
        list_orders=ListOrdersService(ListOrdersDeps(orders=orders)),
        station_orders=StationOrdersService(StationOrdersDeps(orders=orders)),
        station_items=StationItemsService(status_deps),
        cashier=CashierService(status_deps),
        payment_callback=PaymentCallbackService(status_deps),
        rates=rates,
        sessions=sessions,
        catalog=catalog,
    )


def build_app(usecases: UseCases | None = None) -> FastAPI:
    uc = usecases or build_usecases()
    return create_app(
        place_order_uc=uc.place_order,
        get_order_uc=uc.get_order,
        list_orders_uc=uc.list_orders,
        station_orders_uc=uc.station_orders,
        station_items_uc=uc.station_items,
        cashier_uc=uc.cashier,
        payment_callback_uc=uc.payment_callback,
        rates=uc.rates,
        sessions=uc.sessions,
    )


def create_asgi_app() -> FastAPI:
    configure_logging(default_settings.log_level)
    return build_app()
