from typing import Callable, Iterable, Iterator, Optional

from .scheduler import Scheduler


def countdown_milestones(secs: int) -> list[int]:
    """Remaining-seconds marks announced during a countdown of ``secs``.

    The halfway point, 10 seconds when the halfway point is above 15, and the
    last three seconds. Marks outside (0, secs) are dropped, so a 3 second
    countdown announces only 2 and 1: a mark at or past the full duration
    would need a negative wait before it.
    """
    half = int(secs // 2)
    marks = {1, 2, 3, half}
    if half > 15:
        marks.add(10)
    return sorted(m for m in marks if 0 < m < secs)


class Countdown:
    """Waits ``secs`` seconds, calling ``on_milestone(remaining)`` at each mark on the way.

    Milestones must be ascending; they are announced highest first. With no
    milestones this is a single wait followed by ``on_complete()``.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        secs: float,
        on_milestone: Callable[[int], None],
        on_complete: Callable[[], None],
        milestones: Optional[Iterable[int]] = None,
    ):
        self._scheduler = scheduler
        self.secs = secs
        self._on_milestone = on_milestone
        self._on_complete = on_complete
        marks = countdown_milestones(secs) if milestones is None else list(milestones)
        self.milestones = marks
        self._remaining: Iterator[int] = iter(reversed(marks))
        self._last = secs

    def start(self) -> None:
        self._schedule_next()

    def _schedule_next(self) -> None:
        mark = next(self._remaining, None)
        if mark is None:
            self._scheduler.call_later(self._last, self._on_complete)
            return
        gap = self._last - mark
        self._last = mark
        self._scheduler.call_later(gap, self._fire, mark)

    def _fire(self, mark: int) -> None:
        self._on_milestone(mark)
        self._schedule_next()
