from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncSettings(BaseSettings):
    """
    Configuration for the sync agent.
    """

    # Tell pydantic-settings to load environment variables from .env if present.
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # ignore unknown env vars
    )

    # --- Local storage ---
    # Downloaded recordings land here, one file per recording.
    recordings_dir: str = "/var/spool/cptv/downloaded"

    # --- Device discovery (DNS-SD) ---
    service_type: str = "_cacophonator-management._tcp"
    service_domain: str = "local."
    discovery_timeout_sec: float = Field(default=10.0, gt=0)

    # --- Device HTTP API ---
    # Applies to every single request (connect + read) so a hung camera
    # cannot stall the cycle forever.
    http_timeout_sec: float = Field(default=30.0, gt=0)
    download_chunk_size: int = Field(default=65536, gt=0)

    # --- Cycle pacing (seconds) ---
    # 0 restarts discovery immediately after a cycle finishes.
    cycle_interval_sec: float = Field(default=0.0, ge=0)

    # --- Status LED ---
    led_trigger_file: str = "/sys/class/leds/led0/trigger"

    # --- Logging ---
    log_level: str = "INFO"
    debug: bool = False

    @property
    def browse_type(self) -> str:
        """Fully qualified DNS-SD type, e.g. '_foo._tcp.local.'"""
        domain = self.service_domain if self.service_domain.endswith(".") else self.service_domain + "."
        return f"{self.service_type.rstrip('.')}.{domain}"


# Convenience global settings object.
# This lets other modules do: from thermal_sync.config import settings
settings = SyncSettings()
