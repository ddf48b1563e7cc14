from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import requests
from pydantic import BaseModel, Field

from .client import RecordingClient
from .config import SyncSettings
from .device import Device
from .discovery import DeviceResolver
from .errors import SyncError
from .indicator import IndicatorController, IndicatorState

logger = logging.getLogger(__name__)


class CyclePhase(str, Enum):
    DISCOVERING = "discovering"
    PROCESSING_DEVICES = "processing_devices"
    REPORTING = "reporting"


class CycleReport(BaseModel):
    """Summary of one discovery -> transfer cycle."""
    started_at: datetime
    finished_at: Optional[datetime] = None
    devices_found: int = 0
    recordings_transferred: int = 0
    failed_devices: list[str] = Field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


class SyncOrchestrator:
    """
    Runs discovery -> per-device transfer -> LED report, one cycle at a time.

    Devices are processed strictly one after another. A failing device is
    logged and skipped; only a discovery backend that won't start is fatal.
    """

    def __init__(
        self,
        cfg: SyncSettings,
        *,
        resolver: Optional[DeviceResolver] = None,
        indicator: Optional[IndicatorController] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.cfg = cfg
        self.resolver = resolver or DeviceResolver(cfg.browse_type)
        self.indicator = indicator or IndicatorController(cfg.led_trigger_file)
        self.session = session or requests.Session()
        self.recordings_dir = Path(cfg.recordings_dir)
        self.phase = CyclePhase.DISCOVERING
        self._sleep = sleep

    def prepare(self) -> None:
        """Create the output folder and start with the LED off."""
        self.recordings_dir.mkdir(parents=True, exist_ok=True)
        self.indicator.set_state(IndicatorState.IDLE)

    def client_for(self, device: Device) -> RecordingClient:
        return RecordingClient(
            device,
            self.session,
            timeout=self.cfg.http_timeout_sec,
            chunk_size=self.cfg.download_chunk_size,
            indicator=self.indicator,
        )

    def process_device(self, device: Device, report: CycleReport) -> None:
        """
        List once, then fetch-and-delete each recording in listing order.

        The first error stops this device's queue and propagates; recordings
        after it wait for the next cycle.
        """
        client = self.client_for(device)
        logger.info("Searching for recordings on '%s'", device.name)
        # Snapshot once; a repeated id is only transferred the first time.
        ids = list(dict.fromkeys(client.list_recordings()))
        logger.info("'%s' has %d recordings", device.name, len(ids))

        for recording_id in ids:
            logger.info("Getting recording '%s' from '%s'", recording_id, device.name)
            client.fetch_and_store(recording_id, self.recordings_dir)
            report.recordings_transferred += 1

    def run_cycle(self) -> CycleReport:
        report = CycleReport(started_at=datetime.now(timezone.utc))

        self.phase = CyclePhase.DISCOVERING
        devices = self.resolver.discover(self.cfg.discovery_timeout_sec)
        report.devices_found = len(devices)

        self.phase = CyclePhase.PROCESSING_DEVICES
        for device in sorted(devices, key=lambda d: (d.name, d.address, d.port)):
            try:
                self.process_device(device, report)
            except SyncError as e:
                logger.error("Error with getting recordings from '%s': %s", device.name, e)
                report.failed_devices.append(device.name)

        self.phase = CyclePhase.REPORTING
        self.indicator.set_state(IndicatorState.ACTIVE if devices else IndicatorState.IDLE)

        report.finished_at = datetime.now(timezone.utc)
        logger.info(
            "Cycle done: devices=%d transferred=%d failed=%d (%.1fs)",
            report.devices_found, report.recordings_transferred,
            len(report.failed_devices), report.duration_seconds,
        )
        return report

    def run_forever(self, max_cycles: Optional[int] = None) -> int:
        """
        Loop cycles until killed (or until max_cycles have run).

        Returns the number of cycles completed. DiscoveryInitError propagates.
        """
        cycles = 0
        try:
            self.prepare()
            while max_cycles is None or cycles < max_cycles:
                self.run_cycle()
                cycles += 1
                if self.cfg.cycle_interval_sec > 0 and (max_cycles is None or cycles < max_cycles):
                    self._sleep(self.cfg.cycle_interval_sec)
        finally:
            self.session.close()
        return cycles
