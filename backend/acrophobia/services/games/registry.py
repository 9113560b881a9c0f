import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import ArenaBusy, ArenaNotFound
from .game import AcroGame
from .messaging import MessageSink
from .options import GameOptions
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


@dataclass
class ArenaEntry:
    code: str
    game: AcroGame
    scheduler: Scheduler


class GameRegistry:
    """Which game runs in which arena. At most one game per arena.

    Entries are removed as soon as their game ends, whether it finished or was
    stopped, and ``on_teardown`` hooks are told about it.
    """

    def __init__(
        self,
        options: GameOptions,
        scheduler_factory: Callable[[str], Scheduler],
        sink_factory: Callable[[str], MessageSink],
        start_delay: float = 0,
    ):
        self.options = options
        self.scheduler_factory = scheduler_factory
        self._sink_factory = sink_factory
        self.start_delay = start_delay
        self._arenas: dict[str, ArenaEntry] = {}
        self._teardown_hooks: list[Callable[[str, AcroGame], None]] = []
        # Guards the arena table against concurrent requests and timer threads
        self._lock = threading.RLock()

    @staticmethod
    def normalize(code: str) -> str:
        return (code or '').strip().upper()

    def on_teardown(self, hook: Callable[[str, AcroGame], None]) -> None:
        self._teardown_hooks.append(hook)

    def codes(self) -> list:
        with self._lock:
            return sorted(self._arenas)

    def get(self, code: str) -> Optional[ArenaEntry]:
        return self._arenas.get(self.normalize(code))

    def require(self, code: str) -> ArenaEntry:
        entry = self.get(code)
        if entry is None:
            raise ArenaNotFound()
        return entry

    def create(self, code: str, options: Optional[GameOptions] = None) -> AcroGame:
        """Create a game in ``code`` and schedule its start after the start delay."""
        code = self.normalize(code)
        with self._lock:
            if code in self._arenas:
                raise ArenaBusy()
            scheduler = self.scheduler_factory(code)
            sink = self._sink_factory(code)
            game = AcroGame(options or self.options, sink, scheduler, on_end=self._game_ended, arena=code)
            self._arenas[code] = ArenaEntry(code=code, game=game, scheduler=scheduler)
        logger.info(f"[arena-create] arena={code} start_delay={self.start_delay}s")
        sink.say_public(f'Acrophobia starts in {self.start_delay:g} seconds!')
        prefix = game.options.input_prefix
        if prefix:
            sink.say_public(f'Copy this to your clipboard: [{prefix}].')
        scheduler.call_later(self.start_delay, game.start)
        return game

    def dispatch(self, code: str, method: str, *args) -> Any:
        """Call a game method for the arena inside its scheduler, so it never races a timer."""
        entry = self.require(code)
        return entry.scheduler.run(getattr(entry.game, method), *args)

    def stop(self, code: str) -> None:
        self.dispatch(code, 'stop')

    def stop_all(self) -> None:
        for code in self.codes():
            entry = self.get(code)
            if entry is not None:
                entry.scheduler.run(entry.game.stop)

    def _game_ended(self, game: AcroGame) -> None:
        with self._lock:
            entry = self._arenas.get(game.arena)
            if entry is None or entry.game is not game:
                return
            del self._arenas[game.arena]
        logger.info(f"[arena-teardown] arena={game.arena} completed={game.completed}")
        for hook in self._teardown_hooks:
            hook(game.arena, game)
