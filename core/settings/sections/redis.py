from pydantic import Field
from pydantic_settings import BaseSettings


class RedisSettings(BaseSettings):
    """
    Redis settings, used only when ORDERS_SEQUENCE_BACKEND=redis.
    Loaded from .env file with exact variable name matching.
    """

    url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    namespace: str = Field(default="orders:sequence", alias="REDIS_SEQUENCE_NAMESPACE")
    key_ttl_days: int = Field(default=3, alias="REDIS_SEQUENCE_TTL_DAYS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }
