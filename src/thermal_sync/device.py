from __future__ import annotations

import ipaddress

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Cameras advertise host names like "cam-042.local."; the device name is the
# part before this suffix.
HOSTNAME_SUFFIX = ".local."


def is_safe_file_component(value: str) -> bool:
    """True if value can be used inside a single file name without leaving its folder."""
    return bool(value) and value not in (".", "..") and not any(c in value for c in ("/", "\\", "\x00"))


class Device(BaseModel):
    """
    One camera found during a discovery scan.

    Frozen so it can live in a set; identity is (name, address, port) and only
    matters for the cycle that discovered it.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)

    @field_validator("name")
    @classmethod
    def _name_is_file_safe(cls, v: str) -> str:
        # The name becomes part of every downloaded file name.
        if not is_safe_file_component(v):
            raise ValueError(f"device name {v!r} is not usable in a file name")
        return v

    @property
    def base_url(self) -> str:
        """http://host:port, bracketing IPv6 literals."""
        host = self.address
        try:
            if ipaddress.ip_address(host).version == 6:
                host = f"[{host}]"
        except ValueError:
            # A resolvable host name rather than an IP literal.
            pass
        return f"http://{host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.name} ({self.address}:{self.port})"


def device_name_from_advertisement(server: str | None, instance_name: str, service_type: str) -> str:
    """
    Derive the logical device name from a DNS-SD advertisement.

    The host name ("cam-042.local.") is preferred with its suffix stripped.
    Falls back to the instance label ("cam-042" from
    "cam-042._cacophonator-management._tcp.local.").
    """
    if server and server.endswith(HOSTNAME_SUFFIX) and len(server) > len(HOSTNAME_SUFFIX):
        return server[: -len(HOSTNAME_SUFFIX)]

    suffix = "." + service_type
    if instance_name.endswith(suffix):
        return instance_name[: -len(suffix)]
    return instance_name.rstrip(".")
