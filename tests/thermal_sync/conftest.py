"""
Test doubles for the three things the agent talks to: the camera HTTP API,
DNS-SD, and the LED sysfs trigger file.
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest
import requests

from thermal_sync.config import SyncSettings
from thermal_sync.device import Device
from thermal_sync.indicator import IndicatorController

LED_TRIGGERS = ["none", "timer", "heartbeat", "default-on"]


class FakeResponse:
    """Just enough of requests.Response for the client."""

    def __init__(self, status_code=200, *, body=b"", json_body=None, headers=None, fail_after_chunks=None):
        if json_body is not None:
            body = json.dumps(json_body).encode("utf-8")
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers or {})
        self.fail_after_chunks = fail_after_chunks
        self.closed = False

    def json(self):
        return json.loads(self.body.decode("utf-8"))

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            if self.fail_after_chunks is not None and i // chunk_size >= self.fail_after_chunks:
                raise requests.exceptions.ChunkedEncodingError("connection broken mid-body")
            yield self.body[i:i + chunk_size]

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakeSession:
    """
    Routes (METHOD, url) to a FakeResponse or an exception and records every call.
    Unrouted requests fail like an unreachable host.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], object] = {}
        self.calls: list[tuple[str, str]] = []
        self.timeouts: list[float] = []
        self.closed = False

    def route(self, method: str, url: str, result) -> None:
        self.routes[(method, url)] = result

    def _dispatch(self, method, url, timeout):
        self.calls.append((method, url))
        self.timeouts.append(timeout)
        result = self.routes.get((method, url))
        if result is None:
            raise requests.exceptions.ConnectionError(f"no route to {url}")
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, timeout=None, stream=False):
        return self._dispatch("GET", url, timeout)

    def delete(self, url, timeout=None):
        return self._dispatch("DELETE", url, timeout)

    def close(self):
        self.closed = True

    def calls_for(self, method: str) -> list[str]:
        return [u for m, u in self.calls if m == method]


class FakeCamera:
    """Registers a well-behaved camera with the given recordings on a FakeSession."""

    def __init__(self, session: FakeSession, device: Device, recordings: dict[str, bytes]):
        self.session = session
        self.device = device
        base = device.base_url
        session.route("GET", f"{base}/api/recordings", FakeResponse(json_body=list(recordings)))
        for rec_id, data in recordings.items():
            session.route(
                "GET", f"{base}/api/recording/{rec_id}",
                FakeResponse(body=data, headers={"Content-Length": str(len(data))}),
            )
            session.route("DELETE", f"{base}/api/recording/{rec_id}", FakeResponse())

    def url(self, path: str) -> str:
        return f"{self.device.base_url}{path}"


class SysfsLedController(IndicatorController):
    """
    IndicatorController against a file that behaves like a sysfs trigger:
    writing a name moves the brackets, and each write is counted.
    """

    def __init__(self, trigger_file: Path):
        super().__init__(trigger_file)
        self.writes: list[str] = []

    def _write_trigger(self, value: str) -> None:
        self.writes.append(value)
        write_sysfs_trigger(self.trigger_file, value)


def write_sysfs_trigger(path: Path, selected: str) -> None:
    path.write_text(" ".join(f"[{t}]" if t == selected else t for t in LED_TRIGGERS) + "\n")


class FakeResolver:
    """Returns pre-programmed device sets, one per discover() call."""

    def __init__(self, *results):
        self.results = list(results)
        self.timeouts: list[float] = []

    def discover(self, timeout):
        self.timeouts.append(timeout)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return frozenset(result)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def led(tmp_path) -> SysfsLedController:
    trigger = tmp_path / "trigger"
    write_sysfs_trigger(trigger, "none")
    return SysfsLedController(trigger)


@pytest.fixture
def device() -> Device:
    return Device(name="cam-01", address="192.168.1.20", port=80)


@pytest.fixture
def cfg(tmp_path) -> SyncSettings:
    return SyncSettings(
        recordings_dir=str(tmp_path / "downloaded"),
        led_trigger_file=str(tmp_path / "trigger"),
        discovery_timeout_sec=0.5,
        http_timeout_sec=5,
        download_chunk_size=4,
    )


@pytest.fixture
def dest(tmp_path) -> Path:
    folder = tmp_path / "downloaded"
    folder.mkdir()
    return folder
