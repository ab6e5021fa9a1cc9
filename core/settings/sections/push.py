from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class PushSettings(BaseSettings):
    """
    Push notification settings (Expo push service).
    Loaded from .env file with exact variable name matching.
    """

    enabled: bool = Field(default=False, alias="PUSH_ENABLED")
    endpoint: str = Field(default="https://exp.host/--/api/v2/push/send", alias="PUSH_ENDPOINT")
    access_token: Optional[str] = Field(default=None, alias="PUSH_ACCESS_TOKEN")
    timeout_seconds: float = Field(default=10.0, alias="PUSH_TIMEOUT_SECONDS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }
