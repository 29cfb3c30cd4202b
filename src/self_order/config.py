from __future__ import annotations

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    service_charge_rate: Decimal = Decimal("0.07")
    tax_rate: Decimal = Decimal("0.10")
    order_number_prefix: str = "ORD"

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # client surfaces
    api_base_url: str = "http://localhost:8000"
    station_poll_interval_seconds: float = 15.0
    cashier_poll_interval_seconds: float = 10.0
    request_timeout_seconds: float = 5.0
    cart_storage_path: str = "data/cart.json"

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="SELF_ORDER_", case_sensitive=False
    )


settings = Settings()
