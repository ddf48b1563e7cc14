"""
HTTP client for one camera's recording store.

Device API:
    GET    /api/recordings        -> 200, JSON array of recording ids
    GET    /api/recording/{id}    -> 200, raw recording bytes
    DELETE /api/recording/{id}    -> 200

A recording is only deleted from the camera after its bytes are fully on
local disk under its final name.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import requests

from .device import Device, is_safe_file_component
from .errors import ProtocolError, StorageError, TransportError
from .indicator import IndicatorController, IndicatorState

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"


def local_filename(device: Device, recording_id: str) -> str:
    """
    File name for a downloaded recording: "{device name}_{recording id}".

    Raises ProtocolError if either part can't safely be used in a file name.
    """
    if not is_safe_file_component(device.name):
        raise ProtocolError(f"Unusable device name {device.name!r}")
    if not is_safe_file_component(recording_id):
        raise ProtocolError(f"Unusable recording id {recording_id!r} from {device.name}")
    return f"{device.name}_{recording_id}"


class RecordingClient:
    """
    List / fetch / delete recordings on a single Device.

    Every request goes through the shared session with a per-call timeout.
    """

    def __init__(
        self,
        device: Device,
        session: requests.Session,
        *,
        timeout: float = 30.0,
        chunk_size: int = 65536,
        indicator: Optional[IndicatorController] = None,
    ):
        self.device = device
        self.session = session
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.indicator = indicator

    def _recording_url(self, recording_id: str) -> str:
        return f"{self.device.base_url}/api/recording/{quote(recording_id, safe='')}"

    def list_recordings(self) -> list[str]:
        """Snapshot of the device's pending recording ids, in device order."""
        url = f"{self.device.base_url}/api/recordings"
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        with resp:
            if resp.status_code != 200:
                raise ProtocolError(f"GET {url} returned {resp.status_code} when getting recordings list")
            try:
                ids = resp.json()
            except ValueError as e:
                raise ProtocolError(f"GET {url} returned invalid JSON: {e}") from e

        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise ProtocolError(f"GET {url} did not return a JSON array of strings")
        return ids

    def fetch_and_store(self, recording_id: str, destination: str | Path) -> Path:
        """
        Download one recording into `destination`, then delete it from the device.

        The body is streamed to "<name>.part" and renamed into place only once
        complete. On any failure the partial file is removed and the device copy
        is left alone.
        """
        if self.indicator is not None:
            self.indicator.set_state(IndicatorState.BUSY)

        final_path = Path(destination) / local_filename(self.device, recording_id)
        partial_path = final_path.with_name(final_path.name + PARTIAL_SUFFIX)
        url = self._recording_url(recording_id)

        try:
            resp = self.session.get(url, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        with resp:
            if resp.status_code != 200:
                raise ProtocolError(f"GET {url} returned {resp.status_code}")
            written = self._stream_to_file(resp, url, partial_path)

        # Content-Length counts encoded bytes; only comparable for identity bodies.
        expected = resp.headers.get("Content-Length")
        encoded = resp.headers.get("Content-Encoding", "identity") != "identity"
        if expected is not None and expected.isdigit() and not encoded and int(expected) != written:
            partial_path.unlink(missing_ok=True)
            raise ProtocolError(f"GET {url} ended after {written} of {expected} bytes")

        try:
            os.replace(partial_path, final_path)
        except OSError as e:
            partial_path.unlink(missing_ok=True)
            raise StorageError(f"Could not move {partial_path} into place: {e}") from e

        logger.info("Saved %s (%d bytes)", final_path, written)

        self.delete_recording(recording_id)
        return final_path

    def _stream_to_file(self, resp: requests.Response, url: str, partial_path: Path) -> int:
        """Write the response body to partial_path; returns bytes written."""
        written = 0
        try:
            with open(partial_path, "wb") as f:
                for chunk in resp.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        f.write(chunk)
                        written += len(chunk)
                f.flush()
                os.fsync(f.fileno())
        except requests.RequestException as e:
            partial_path.unlink(missing_ok=True)
            raise TransportError(f"GET {url} interrupted: {e}") from e
        except OSError as e:
            partial_path.unlink(missing_ok=True)
            raise StorageError(f"Could not write {partial_path}: {e}") from e
        return written

    def delete_recording(self, recording_id: str) -> None:
        url = self._recording_url(recording_id)
        try:
            resp = self.session.delete(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"DELETE {url} failed: {e}") from e

        with resp:
            if resp.status_code != 200:
                raise ProtocolError(f"DELETE {url} returned {resp.status_code}")
        logger.debug("Deleted %s from %s", recording_id, self.device.name)
