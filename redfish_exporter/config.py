from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from datetime import timedelta
from typing import Optional
import logging
import re

logger = logging.getLogger(__name__)

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> timedelta:
    """
    Parse a Go-style duration string such as "60s", "1m30s" or "250ms".

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip()
    if text == "0":
        return timedelta(0)

    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if not text or position != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(seconds=seconds)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # Redfish connection (credentials are shared by every target)
    REDFISH_HOST: str = Field("http://localhost:5000", description="Default Redfish endpoint (not used for multi-target scrapes)")
    REDFISH_USERNAME: str = Field("admin", description="Redfish username")
    REDFISH_PASSWORD: str = Field("password", description="Redfish password")
    REDFISH_INSECURE: bool = Field(True, description="Skip TLS certificate verification")
    REDFISH_REQUEST_TIMEOUT: Optional[float] = Field(None, description="Timeout in seconds for a single Redfish HTTP call")

    # HTTP server
    LISTEN_ADDRESS: str = Field("localhost:9290", description="Address to listen on for web interface and telemetry")
    METRICS_PATH: str = Field("/metrics", description="Path under which to expose metrics")

    # Collection (accepted for compatibility, not enforced by the scrape path)
    SCRAPE_INTERVAL: timedelta = Field(timedelta(seconds=60), description="Expected scrape interval")
    TIMEOUT: timedelta = Field(timedelta(seconds=30), description="Expected scrape timeout")

    # Logging
    LOG_LEVEL: str = Field("INFO", description="Logging level")

    @field_validator("REDFISH_HOST", "REDFISH_USERNAME", "REDFISH_PASSWORD")
    @classmethod
    def _require_value(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            raise ValueError(f"{info.field_name} must be set")
        return value

    @field_validator("METRICS_PATH")
    @classmethod
    def _absolute_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("METRICS_PATH must start with '/'")
        return value

    @field_validator("SCRAPE_INTERVAL", "TIMEOUT", mode="before")
    @classmethod
    def _go_duration(cls, value, info: ValidationInfo):
        if not isinstance(value, str):
            return value
        try:
            return parse_duration(value)
        except ValueError:
            default = cls.model_fields[info.field_name].default
            logger.warning(f"Invalid duration {value!r} for {info.field_name}, using {default}")
            return default


settings = Settings()
