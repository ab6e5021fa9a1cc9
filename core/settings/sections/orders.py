from decimal import Decimal
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class OrderSettings(BaseSettings):
    """
    Order lifecycle settings.
    Loaded from .env file with exact variable name matching.
    """

    number_prefix: str = Field(default="ORD", alias="ORDERS_NUMBER_PREFIX")
    sequence_backend: Literal["sql", "redis"] = Field(default="sql", alias="ORDERS_SEQUENCE_BACKEND")
    currency: str = Field(default="INR", alias="ORDERS_CURRENCY")

    # Pricing
    free_shipping_threshold: Decimal = Field(default=Decimal("500"), alias="ORDERS_FREE_SHIPPING_THRESHOLD")
    flat_shipping_charge: Decimal = Field(default=Decimal("50"), alias="ORDERS_FLAT_SHIPPING_CHARGE")

    # Time windows
    cancellation_window_hours: int = Field(default=24, alias="ORDERS_CANCELLATION_WINDOW_HOURS")
    auto_confirm_after_hours: int = Field(default=48, alias="ORDERS_AUTO_CONFIRM_AFTER_HOURS")

    # Inventory
    low_stock_threshold: int = Field(default=3, alias="ORDERS_LOW_STOCK_THRESHOLD")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }
