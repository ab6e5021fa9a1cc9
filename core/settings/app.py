# core/settings/app.py
from functools import lru_cache

# Sections
from core.settings.sections.orders import OrderSettings
from core.settings.sections.push import PushSettings
from core.settings.sections.redis import RedisSettings
from core.infrastructure.database.config import DatabaseSettings


class AppSettings:
    """
    Central application settings aggregator.
    Settings are loaded lazily inside __init__
    to prevent eager evaluation at import time.
    """

    def __init__(self):
        # Load each settings class ONLY when AppSettings is instantiated
        self.orders = OrderSettings()
        self.database = DatabaseSettings()
        self.push = PushSettings()
        self.redis = RedisSettings()


@lru_cache()
def get_app_settings() -> AppSettings:
    """Return cached global settings for the entire app."""
    return AppSettings()
