"""
DNS-SD device discovery.

One call to DeviceResolver.discover() is one bounded scan: browse for the
camera service type, resolve every advertisement that shows up inside the
window, then hand back a finished, immutable set of Devices.

Usage:
    resolver = DeviceResolver("_cacophonator-management._tcp.local.")
    devices = resolver.discover(timeout=10.0)
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from zeroconf import IPVersion, ServiceBrowser, ServiceStateChange, Zeroconf

from .device import Device, device_name_from_advertisement
from .errors import DiscoveryInitError

logger = logging.getLogger(__name__)

# Upper bound on a single advertisement's resolve round trip (milliseconds).
RESOLVE_TIMEOUT_MS = 3000


class DeviceResolver:
    """
    Runs bounded DNS-SD scans for one fixed service type.

    The zeroconf and browser factories are injectable so tests can drive the
    scan without touching the network.
    """

    def __init__(
        self,
        browse_type: str,
        *,
        zeroconf_factory: Callable[[], Zeroconf] = lambda: Zeroconf(ip_version=IPVersion.V4Only),
        browser_factory: Callable[..., ServiceBrowser] = ServiceBrowser,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.browse_type = browse_type
        self._zeroconf_factory = zeroconf_factory
        self._browser_factory = browser_factory
        self._sleep = sleep

    def discover(self, timeout: float) -> frozenset[Device]:
        """
        Scan for `timeout` seconds and return every device resolved in that window.

        Raises DiscoveryInitError if the zeroconf backend cannot be started.
        Finding nothing is not an error.
        """
        logger.info("Starting search for devices (%s, %.1fs)...", self.browse_type, timeout)

        try:
            zc = self._zeroconf_factory()
        except Exception as e:
            raise DiscoveryInitError(f"Failed to initialize resolver: {e}") from e

        found: dict[str, Device] = {}
        lock = threading.Lock()
        closed = threading.Event()
        deadline = time.monotonic() + timeout

        def on_service_state_change(
            zeroconf: Zeroconf,
            service_type: str,
            name: str,
            state_change: ServiceStateChange,
        ) -> None:
            if closed.is_set() or state_change not in (ServiceStateChange.Added, ServiceStateChange.Updated):
                return

            remaining_ms = int((deadline - time.monotonic()) * 1000)
            device = self._resolve(zeroconf, service_type, name, max(1, min(RESOLVE_TIMEOUT_MS, remaining_ms)))
            if device is None:
                return

            with lock:
                # Results arriving after the window closed are dropped.
                if closed.is_set():
                    return
                if name not in found:
                    logger.debug("Resolved %s -> %s", name, device)
                found[name] = device

        browser: Optional[ServiceBrowser] = None
        try:
            try:
                browser = self._browser_factory(zc, self.browse_type, handlers=[on_service_state_change])
            except Exception as e:
                raise DiscoveryInitError(f"Failed to browse {self.browse_type}: {e}") from e

            self._sleep(timeout)
        finally:
            with lock:
                closed.set()
            if browser is not None:
                # cancel() joins the browser thread, so no handler is still running after this.
                browser.cancel()
            zc.close()

        devices = frozenset(found.values())
        logger.info("Found %d devices", len(devices))
        return devices

    def _resolve(self, zeroconf: Zeroconf, service_type: str, name: str, timeout_ms: int) -> Optional[Device]:
        """Resolve one advertisement into a Device, or None if it is unusable."""
        try:
            info = zeroconf.get_service_info(service_type, name, timeout=timeout_ms)
        except Exception as e:
            logger.debug("Could not resolve %s: %s", name, e)
            return None

        if info is None:
            logger.debug("No service info for %s; skipping", name)
            return None

        addresses = info.parsed_addresses(IPVersion.V4Only)
        if not addresses:
            logger.debug("%s advertised no IPv4 address; skipping", name)
            return None

        try:
            return Device(
                name=device_name_from_advertisement(info.server, name, service_type),
                address=addresses[0],
                port=info.port,
            )
        except ValueError as e:
            # pydantic ValidationError is a ValueError (bad port, empty name...)
            logger.debug("Ignoring malformed advertisement %s: %s", name, e)
            return None
