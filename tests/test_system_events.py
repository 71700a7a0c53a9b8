import threading

from extended_copy.services import InactivityTimer, SystemEvent, SystemEventManager


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_manager(apps, clock=None, **kwargs):
    it = iter(apps)
    return SystemEventManager(
        app_provider=lambda: next(it, apps[-1]),
        clock=clock or FakeClock(),
        **kwargs,
    )


def test_app_switch_detected_once_per_change():
    manager = make_manager(["editor", "editor", "browser", "browser"])
    events = []
    manager.subscribe(events.append)
    manager._last_app = manager._read_app()

    assert manager.poll_once() == []
    assert manager.poll_once() == [SystemEvent.APP_SWITCHED]
    assert manager.poll_once() == []
    assert events == [SystemEvent.APP_SWITCHED]


def test_unknown_app_does_not_count_as_switch():
    manager = make_manager(["editor", None, "editor"])
    manager._last_app = manager._read_app()
    assert manager.poll_once() == []
    assert manager.poll_once() == []


def test_failing_app_provider_is_tolerated():
    def broken():
        raise RuntimeError("no display")

    manager = SystemEventManager(app_provider=broken, clock=FakeClock())
    assert manager.poll_once() == []


def test_wall_clock_jump_means_wake():
    clock = FakeClock()
    manager = make_manager(["editor"], clock=clock, poll_interval=0.5, wake_threshold=30.0)
    manager.poll_once()

    clock.now += 10
    assert manager.poll_once() == []

    clock.now += 3600
    assert manager.poll_once() == [SystemEvent.SYSTEM_WOKE]


def test_unsubscribe_stops_delivery():
    manager = make_manager(["a", "b"])
    events = []
    unsubscribe = manager.subscribe(events.append)
    unsubscribe()
    manager._last_app = "x"
    manager.poll_once()
    assert events == []


def test_inactivity_timer_fires_after_timeout():
    fired = threading.Event()
    timer = InactivityTimer(0.05, fired.set)
    timer.rearm()
    assert fired.wait(2.0)
    assert not timer.armed


def test_inactivity_timer_rearm_and_cancel():
    fired = threading.Event()
    timer = InactivityTimer(0.2, fired.set)
    timer.rearm()
    timer.rearm()
    assert timer.armed
    timer.cancel()
    assert not timer.armed
    assert not fired.wait(0.4)


def test_zero_timeout_disables_timer():
    timer = InactivityTimer(0, lambda: None)
    timer.rearm()
    assert not timer.enabled
    assert not timer.armed


def test_manager_emits_inactivity_timeout():
    manager = SystemEventManager(inactivity_timeout=0.05, app_provider=lambda: "editor", clock=FakeClock())
    received = threading.Event()
    events = []

    def on_event(event):
        events.append(event)
        received.set()

    manager.subscribe(on_event)
    manager.notify_activity()
    assert received.wait(2.0)
    assert events == [SystemEvent.INACTIVITY_TIMEOUT]


def test_start_and_stop_polling_thread():
    manager = SystemEventManager(poll_interval=0.01, app_provider=lambda: "editor")
    with manager:
        assert manager._poll_thread is not None
    assert manager._poll_thread is None
