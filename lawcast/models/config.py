from typing import Dict, Optional
from pydantic import BaseModel, Field, field_validator

from lawcast.models.cache import CacheConfig


class SourceConfig(BaseModel):
    """HTTP notice source settings"""

    url: str = Field(..., min_length=1, description="JSON endpoint listing notices")
    timeout_seconds: float = Field(30.0, ge=1.0, le=300.0)
    max_attempts: int = Field(3, ge=1, le=10)
    items_key: Optional[str] = Field(
        default=None, description="Key holding the notice list in an object response"
    )
    field_map: Dict[str, str] = Field(
        default_factory=dict,
        description="Maps Notice field names to source field names",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Source URL must start with http:// or https://")
        return v


class PollingConfig(BaseModel):
    """Poll schedule settings"""

    interval_minutes: int = Field(10, ge=1, le=1440)
    shutdown_grace_seconds: float = Field(30.0, ge=0.0, le=600.0)
    timezone: str = Field("Asia/Seoul", min_length=1)


class NotificationConfig(BaseModel):
    """Webhook message and delivery settings"""

    username: str = Field("LawCast", min_length=1, max_length=80)
    timeout_seconds: float = Field(10.0, ge=1.0, le=60.0)
    max_concurrent_deliveries: int = Field(10, ge=1, le=100)
    notice_color: int = Field(0x3B82F6, ge=0, le=0xFFFFFF)
    probe_color: int = Field(0x10B981, ge=0, le=0xFFFFFF)
    footer_text: str = Field("LawCast | National Assembly legislative notices")


class RegistryConfig(BaseModel):
    """Destination registry settings"""

    path: str = Field("data/destinations.json", min_length=1)


class ServerConfig(BaseModel):
    """Health and status server settings"""

    host: str = Field("0.0.0.0")
    port: int = Field(8000, ge=1, le=65535)
    recent_limit: int = Field(20, ge=1, le=1000)


class LoggingConfig(BaseModel):
    """Structured logging settings"""

    level: str = Field("INFO")
    json_output: bool = True

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return upper


class AppConfig(BaseModel):
    """Root configuration model"""

    source: SourceConfig
    polling: PollingConfig = Field(default_factory=PollingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    notification: NotificationConfig = Field(default_factory=NotificationConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
