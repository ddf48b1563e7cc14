from thermal_sync.indicator import IndicatorController, IndicatorState

from conftest import write_sysfs_trigger


def test_states_map_to_led_triggers(led):
    led.set_state(IndicatorState.BUSY)
    assert led.current_signal() == "timer"

    led.set_state(IndicatorState.ACTIVE)
    assert led.current_signal() == "default-on"

    led.set_state(IndicatorState.IDLE)
    assert led.current_signal() == "none"

    assert led.writes == ["timer", "default-on", "none"]
    assert led.state is IndicatorState.IDLE


def test_same_state_twice_writes_once(led):
    assert led.set_state(IndicatorState.ACTIVE) is True
    assert led.set_state(IndicatorState.ACTIVE) is False
    assert led.writes == ["default-on"]


def test_busy_while_already_blinking_does_not_restart_timer(led):
    write_sysfs_trigger(led.trigger_file, "timer")

    for _ in range(5):
        led.set_state(IndicatorState.BUSY)

    assert led.writes == []
    assert led.current_signal() == "timer"


def test_missing_trigger_file_is_silent_noop(tmp_path, caplog):
    ctrl = IndicatorController(tmp_path / "no-such-led" / "trigger")

    with caplog.at_level("INFO", logger="thermal_sync.indicator"):
        assert ctrl.set_state(IndicatorState.BUSY) is False
        assert ctrl.set_state(IndicatorState.IDLE) is False

    # Still tracks the logical state; only logs once.
    assert ctrl.state is IndicatorState.IDLE
    assert ctrl.current_signal() is None
    assert len([r for r in caplog.records if "not readable" in r.message]) == 1


def test_plain_file_write_goes_through(tmp_path):
    trigger = tmp_path / "trigger"
    trigger.write_text("[none] timer default-on\n")
    ctrl = IndicatorController(trigger)

    assert ctrl.set_state("active") is True
    assert trigger.read_text() == "default-on"


def test_write_failure_is_logged_not_raised(led, monkeypatch, caplog):
    def boom(value):
        raise PermissionError("read-only")

    monkeypatch.setattr(led, "_write_trigger", boom)

    assert led.set_state(IndicatorState.BUSY) is False
    assert "Failed to set LED trigger" in caplog.text
