import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    """A pending callback. Fires at most once; cancel() before it fires to drop it."""

    def __init__(self, callback: Callable[..., Any], args: tuple, when: float):
        self.callback = callback
        self.args = args
        self.when = when
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def run(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self.callback(*self.args)


class Scheduler(ABC):
    """Cooperative timer source shared by everything that waits in a game.

    Every timer callback and every inbound event (through run()) is executed
    one at a time, so game state never needs its own locking.
    """

    @abstractmethod
    def now_ms(self) -> int:
        ...

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        ...

    def run(self, callback: Callable[..., Any], *args) -> Any:
        return callback(*args)


class ManualScheduler(Scheduler):
    """Virtual clock. Nothing fires until advance() or run_until_idle() is called.

    Used by tests and by the app in TESTING mode to keep timing deterministic.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    @property
    def time(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def now_ms(self) -> int:
        return int(round(self._now * 1000))

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        handle = TimerHandle(callback, args, self._now + max(0.0, delay))
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing everything due on the way in time order."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self._now = when
            handle.run()
        self._now = target

    def run_until_idle(self, limit: int = 100000) -> None:
        fired = 0
        while self._queue:
            when, _, handle = heapq.heappop(self._queue)
            self._now = max(self._now, when)
            handle.run()
            fired += 1
            if fired > limit:
                raise RuntimeError(f'scheduler still busy after {limit} callbacks')


class SocketIOScheduler(Scheduler):
    """Runs each timer as a Socket.IO background task.

    Background tasks may be real threads (threading async mode), so callbacks
    and run() share a re-entrant lock per arena.
    """

    def __init__(self, socketio, name: str = '-', heartbeat: int = 0):
        self._socketio = socketio
        self.name = name
        self.lock = threading.RLock()
        self._heartbeat = heartbeat

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        handle = TimerHandle(callback, args, time.time() + delay)
        logger.debug(f"[timer-set] arena={self.name} delay={delay}s deadline={handle.when:.3f}")
        self._socketio.start_background_task(self._worker, handle, delay)
        return handle

    def run(self, callback: Callable[..., Any], *args) -> Any:
        with self.lock:
            return callback(*args)

    def _worker(self, handle: TimerHandle, delay: float) -> None:
        if self._heartbeat > 0:
            slept = 0.0
            while slept < delay:
                step = min(self._heartbeat, delay - slept)
                self._socketio.sleep(step)
                slept += step
                logger.info(f"[timer-heartbeat] arena={self.name} remaining={max(0.0, delay - slept)}s")
        else:
            self._socketio.sleep(delay)
        with self.lock:
            if handle.cancelled:
                logger.debug(f"[timer-abort] arena={self.name} cancelled")
                return
            try:
                handle.run()
            except Exception:
                logger.exception(f"[timer-error] arena={self.name} callback={getattr(handle.callback, '__name__', handle.callback)}")


class GatedScheduler(Scheduler):
    """View over another scheduler whose callbacks become no-ops once closed.

    A game hands this to everything it owns; stopping the game closes the gate
    so timers still in flight cannot touch torn-down state.
    """

    def __init__(self, base: Scheduler):
        self._base = base
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def now_ms(self) -> int:
        return self._base.now_ms()

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        return self._base.call_later(delay, self._fire, callback, args)

    def run(self, callback: Callable[..., Any], *args) -> Any:
        return self._base.run(callback, *args)

    def _fire(self, callback: Callable[..., Any], args: tuple) -> None:
        if self._closed:
            return
        callback(*args)
