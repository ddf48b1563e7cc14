from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class IndicatorState(str, Enum):
    """Logical activity states the agent reports."""
    IDLE = "idle"        # last cycle found no devices
    BUSY = "busy"        # a recording transfer is in flight
    ACTIVE = "active"    # last cycle found devices, nothing in flight


class IndicatorSignal(str, Enum):
    """LED trigger names written to the sysfs trigger file."""
    NONE = "none"
    TIMER = "timer"
    DEFAULT_ON = "default-on"


SIGNAL_FOR_STATE: dict[IndicatorState, IndicatorSignal] = {
    IndicatorState.IDLE: IndicatorSignal.NONE,
    IndicatorState.BUSY: IndicatorSignal.TIMER,
    IndicatorState.ACTIVE: IndicatorSignal.DEFAULT_ON,
}


class IndicatorController:
    """
    Drives the status LED through its sysfs trigger file.

    The trigger file lists every available trigger with the selected one in
    brackets, e.g. "none [timer] heartbeat default-on". Writing a trigger name
    selects it.

    Re-selecting "timer" restarts the blink pattern, and doing that once per
    recording makes the LED look solid. So a write only happens when the
    requested trigger is not already the selected one.

    On boards without the LED the file is missing; every call is then a no-op.
    """

    def __init__(self, trigger_file: str | Path):
        self.trigger_file = Path(trigger_file)
        self._state: Optional[IndicatorState] = None
        self._missing_logged = False

    @property
    def state(self) -> Optional[IndicatorState]:
        """Last logical state requested (None before the first call)."""
        return self._state

    def current_signal(self) -> Optional[str]:
        """The bracketed trigger currently selected, or None if unreadable."""
        contents = self._read_trigger()
        if contents is None:
            return None
        start = contents.find("[")
        end = contents.find("]", start + 1)
        if start == -1 or end == -1:
            return None
        return contents[start + 1:end]

    def set_state(self, state: IndicatorState) -> bool:
        """
        Request a logical state. Returns True only if the trigger file was written.
        """
        state = IndicatorState(state)
        self._state = state
        signal = SIGNAL_FOR_STATE[state]

        contents = self._read_trigger()
        if contents is None:
            return False

        if f"[{signal.value}]" in contents:
            return False

        try:
            self._write_trigger(signal.value)
        except OSError as e:
            logger.warning("Failed to set LED trigger to %s: %s", signal.value, e)
            return False

        logger.debug("LED trigger set to %s (%s)", signal.value, state.value)
        return True

    def _read_trigger(self) -> Optional[str]:
        try:
            return self.trigger_file.read_text()
        except OSError as e:
            # Expected on anything that isn't the target board.
            if not self._missing_logged:
                logger.info("LED trigger file %s not readable (%s); skipping LED updates", self.trigger_file, e)
                self._missing_logged = True
            return None

    def _write_trigger(self, value: str) -> None:
        self.trigger_file.write_text(value)
