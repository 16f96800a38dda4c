from __future__ import annotations

from threading import Thread
from typing import Any, Callable, Optional

from kivy.clock import Clock

Callback = Callable[[Any, Optional[BaseException]], None]


def run_inline(work: Callable[[], Any], callback: Callback) -> None:
    """Synchronous runner: headless use and tests."""
    try:
        result = work()
    except Exception as exc:
        callback(None, exc)
        return
    callback(result, None)


def run_in_background(work: Callable[[], Any], callback: Callback) -> None:
    """
    Run `work` on a daemon thread and hand `(result, error)` back to the Kivy
    main loop, where all widget and flow state is touched.
    """

    def _thread():
        try:
            result = work()
        except Exception as exc:
            err = exc
            Clock.schedule_once(lambda _dt: callback(None, err), 0)
            return
        Clock.schedule_once(lambda _dt: callback(result, None), 0)

    Thread(target=_thread, daemon=True).start()


class InlineScheduler:
    """Runs delayed callbacks immediately; intervals are left to the caller to drive."""

    def schedule_once(self, fn: Callable[[], Any], delay: float) -> None:
        fn()

    def schedule_interval(self, fn: Callable[[], Any], interval: float) -> Callable[[], None]:
        return lambda: None


class KivyScheduler:
    def schedule_once(self, fn: Callable[[], Any], delay: float) -> None:
        Clock.schedule_once(lambda _dt: fn(), delay)

    def schedule_interval(self, fn: Callable[[], Any], interval: float) -> Callable[[], None]:
        """Returns a cancel function. `fn` returning False also stops the interval."""
        event = Clock.schedule_interval(lambda _dt: fn(), interval)
        return event.cancel
