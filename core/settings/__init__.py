# Settings package
from core.settings.app import AppSettings, get_app_settings
from core.settings.sections.orders import OrderSettings
from core.settings.sections.push import PushSettings
from core.settings.sections.redis import RedisSettings

__all__ = ["get_app_settings", "AppSettings", "OrderSettings", "PushSettings", "RedisSettings"]
