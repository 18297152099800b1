from functools import lru_cache
from typing import Any, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AdapterSettings(BaseSettings):
    """Environment-driven settings (prefix ``KAFKA_OUTBOUND_``)."""

    model_config = SettingsConfigDict(
        env_prefix="KAFKA_OUTBOUND_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    bootstrap_servers: str = "localhost:9092"
    client_id: Optional[str] = None
    acks: str = "all"
    linger_ms: int = 5
    enable_idempotence: bool = False
    compression_type: Optional[str] = None
    request_timeout_ms: int = 40_000

    # handler defaults
    sync: bool = False
    send_timeout_ms: Optional[int] = 10_000

    def to_producer_config(self) -> dict[str, Any]:
        """Keyword arguments for AIOKafkaProducer."""
        config: dict[str, Any] = {
            "bootstrap_servers": self.bootstrap_servers,
            "acks": self.acks if self.acks == "all" else int(self.acks),
            "linger_ms": self.linger_ms,
            "enable_idempotence": self.enable_idempotence,
            "request_timeout_ms": self.request_timeout_ms,
        }
        if self.client_id:
            config["client_id"] = self.client_id
        if self.compression_type:
            config["compression_type"] = self.compression_type
        return config


@lru_cache()
def get_settings() -> AdapterSettings:
    return AdapterSettings()
