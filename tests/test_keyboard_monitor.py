import threading

import pytest

from extended_copy.exceptions import MonitorStateError, PermissionDeniedError
from extended_copy.services import KeyboardEventMonitor, KeyEventKind
from extended_copy.services.keyboard_monitor import MonitorStatus


@pytest.fixture
def monitor(keyboard_backend):
    return KeyboardEventMonitor("ctrl+shift+c", "ctrl+c", backend=keyboard_backend)


def drain(monitor):
    monitor.stop()
    return [event.kind for event in monitor.events()]


def test_classifies_registered_chords(monitor, keyboard_backend):
    monitor.start()
    keyboard_backend.press("ctrl+shift+c")
    keyboard_backend.press("ctrl+c")
    keyboard_backend.press("ctrl+v")

    assert drain(monitor) == [KeyEventKind.ACCUMULATE, KeyEventKind.NORMAL_COPY]


def test_start_requires_permission(keyboard_backend):
    monitor = KeyboardEventMonitor("ctrl+shift+c", "ctrl+c", permission_check=lambda: False, backend=keyboard_backend)
    with pytest.raises(PermissionDeniedError):
        monitor.start()
    assert keyboard_backend.hotkeys == {}
    assert monitor.status is MonitorStatus.NEW


def test_refused_hook_is_permission_denied():
    class RefusingBackend:
        def add_hotkey(self, *args, **kwargs):
            raise ImportError("You must be root to use this library on linux.")

        def remove_hotkey(self, handle):
            pass

    monitor = KeyboardEventMonitor("ctrl+shift+c", "ctrl+c", backend=RefusingBackend())
    with pytest.raises(PermissionDeniedError):
        monitor.start()


def test_pause_unhooks_and_resume_rehooks(monitor, keyboard_backend):
    monitor.start()
    monitor.pause()
    assert monitor.status is MonitorStatus.PAUSED
    assert keyboard_backend.hotkeys == {}
    keyboard_backend.press("ctrl+shift+c")

    monitor.resume()
    assert len(keyboard_backend.hotkeys) == 2
    keyboard_backend.press("ctrl+shift+c")

    assert drain(monitor) == [KeyEventKind.ACCUMULATE]


def test_stopped_monitor_cannot_restart(monitor, keyboard_backend):
    monitor.start()
    monitor.stop()
    assert keyboard_backend.hotkeys == {}
    with pytest.raises(MonitorStateError):
        monitor.start()


def test_event_stream_can_be_taken_once(monitor):
    monitor.events()
    with pytest.raises(MonitorStateError):
        monitor.events()


def test_stream_blocks_until_events_arrive(monitor, keyboard_backend):
    monitor.start()
    received = []

    def consume():
        for event in monitor.events():
            received.append(event.kind)

    consumer = threading.Thread(target=consume)
    consumer.start()
    keyboard_backend.press("ctrl+shift+c")
    keyboard_backend.press("ctrl+c")
    monitor.stop()
    consumer.join(timeout=2.0)

    assert not consumer.is_alive()
    assert received == [KeyEventKind.ACCUMULATE, KeyEventKind.NORMAL_COPY]


def test_trigger_copy_is_not_reported_as_normal_copy(monitor, keyboard_backend):
    monitor.start()
    monitor.trigger_copy()

    assert keyboard_backend.sent == ["ctrl+c"]
    assert keyboard_backend.restored == [[42]]
    assert drain(monitor) == []


def test_emit_and_context_manager(keyboard_backend):
    with KeyboardEventMonitor("ctrl+shift+c", "ctrl+c", backend=keyboard_backend) as monitor:
        assert monitor.status is MonitorStatus.RUNNING
        monitor.emit(KeyEventKind.OTHER)
    assert monitor.status is MonitorStatus.STOPPED
    assert [event.kind for event in monitor.events()] == [KeyEventKind.OTHER]


def test_failed_registration_leaves_no_hotkey_behind(keyboard_backend):
    class RejectingKeyboard(type(keyboard_backend)):
        def add_hotkey(self, hotkey, callback, suppress=False):
            if hotkey == "bad+key":
                raise ValueError(f"unknown key in {hotkey!r}")
            return super().add_hotkey(hotkey, callback, suppress)

    backend = RejectingKeyboard()
    monitor = KeyboardEventMonitor("ctrl+shift+c", "bad+key", backend=backend)

    with pytest.raises(MonitorStateError):
        monitor.start()
    assert backend.hotkeys == {}
    assert monitor.status is MonitorStatus.NEW

    monitor.copy_hotkey = "ctrl+c"
    monitor.start()
    assert len(backend.hotkeys) == 2
    backend.press("ctrl+shift+c")
    assert drain(monitor) == [KeyEventKind.ACCUMULATE]


def test_user_copy_right_after_trigger_copy_still_counts(monitor, keyboard_backend):
    monitor.start()
    monitor.trigger_copy()
    keyboard_backend.press("ctrl+c")

    assert drain(monitor) == [KeyEventKind.NORMAL_COPY]


def test_unanswered_trigger_copy_expires(monitor, keyboard_backend, monkeypatch):
    monitor.start()
    monkeypatch.setattr(keyboard_backend, "send", lambda hotkey: None)
    monkeypatch.setattr("extended_copy.services.keyboard_monitor.SYNTHETIC_COPY_WINDOW", 0)
    monitor.trigger_copy()
    keyboard_backend.press("ctrl+c")

    assert drain(monitor) == [KeyEventKind.NORMAL_COPY]
