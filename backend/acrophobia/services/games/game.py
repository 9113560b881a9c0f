import logging
import random
from typing import Callable, Optional

from .errors import GameAborted, GameError
from .faceoff import FaceOff
from .messaging import MessageSink, Messenger
from .normal_round import NormalRound, RoundOutcome
from .options import GameOptions
from .scheduler import GatedScheduler, Scheduler
from .scoring import apply_points, round_summary

logger = logging.getLogger(__name__)


class AcroGame:
    """A whole game of Acrophobia in one arena.

    Standard rounds run until someone reaches the point cap, then the top two
    players go to the face-off. Players are known by name on the outside and by
    a stable integer id inside, so a rename keeps its score.

    Stopping is immediate and idempotent: input is ignored, nothing more is
    said, and any timer still pending does nothing when it fires.
    """

    def __init__(
        self,
        options: GameOptions,
        sink: MessageSink,
        scheduler: Scheduler,
        on_end: Optional[Callable[['AcroGame'], None]] = None,
        rng: Optional[random.Random] = None,
        arena: str = '-',
    ):
        self._opts = options
        self.arena = arena
        self._scheduler = GatedScheduler(scheduler)
        self._rng = rng or random.Random()
        self._on_end = on_end
        self.names: list = []
        self.user_ids: dict = {}
        self._say = Messenger(sink, self.names)
        self.scores: dict = {}
        self.history: list = []
        self.stage = 'lobby'
        self.running = False
        self.ended = False
        self.completed = False
        self.winner: Optional[int] = None
        self.error: Optional[GameError] = None
        self._active = None
        self._round_number = 0

    @property
    def options(self) -> GameOptions:
        return self._opts

    @property
    def active(self):
        """The standard round or face-off currently taking input, if any."""
        return self._active

    def start(self) -> bool:
        if self.running or self.ended:
            return False
        self.running = True
        self.stage = 'rounds'
        logger.info(f"[game-start] arena={self.arena}")
        self._play_to_cap(self._opts.min_letters)
        return True

    def stop(self) -> bool:
        if self.ended:
            return False
        logger.info(f"[game-stop] arena={self.arena}")
        self._end(completed=False, error=GameAborted())
        return True

    def user_input(self, name: str, text: str) -> None:
        if self.ended:
            return
        user_id = self._register(name)
        if self._active is not None:
            self._active.user_input(user_id, text)

    def change_user(self, old_name: str, new_name: str) -> bool:
        """Carry a player's id and score over to a new name.

        Refused (returns False) when the new name already belongs to a player
        of this game, including one who has left.
        """
        if new_name in self.user_ids:
            return False
        if old_name not in self.user_ids:
            return True
        user_id = self.user_ids.pop(old_name)
        self.user_ids[new_name] = user_id
        self.names[user_id] = new_name
        return True

    def delete_user(self, name: str) -> None:
        """Drop a departed player's score. No effect on a face-off already under way."""
        user_id = self.user_ids.get(name)
        if user_id is not None:
            self.scores.pop(user_id, None)

    def top_score(self) -> int:
        return max(self.scores.values(), default=0)

    def scoreboard(self) -> list:
        ranked = sorted(self.scores, key=lambda uid: self.scores[uid], reverse=True)
        return [(self.names[uid], self.scores[uid]) for uid in ranked]

    def to_dict(self) -> dict:
        acronym = None
        if isinstance(self._active, NormalRound):
            acronym = self._active.acronym
        return {
            'arena': self.arena,
            'stage': self.stage,
            'running': self.running,
            'ended': self.ended,
            'completed': self.completed,
            'players': list(self.names),
            'scores': {name: score for name, score in self.scoreboard()},
            'acronym': acronym,
            'history': list(self.history),
            'winner': self.names[self.winner] if self.winner is not None else None,
            'error': str(self.error) if self.error else None,
        }

    def _register(self, name: str) -> int:
        if name not in self.user_ids:
            self.user_ids[name] = len(self.names)
            self.names.append(name)
        return self.user_ids[name]

    def _play_to_cap(self, num_letters: int) -> None:
        self._round_number += 1
        normal_round = NormalRound(self._opts, num_letters, self._say, self._scheduler, rng=self._rng)
        self._active = normal_round
        normal_round.start(lambda outcome: self._round_finished(normal_round, num_letters, outcome))

    def _round_finished(self, normal_round: NormalRound, num_letters: int, outcome: RoundOutcome) -> None:
        self._active = None
        if not outcome.ok:
            self._abort(outcome.error)
            return
        apply_points(self.scores, outcome.points)
        self.history.append(round_summary(
            self._round_number,
            normal_round.acronym,
            outcome.results,
            outcome.points,
            names=dict(enumerate(self.names)),
        ))
        board = ''.join(f' [{name} {score}]' for name, score in self.scoreboard())
        self._say.say_public("Let's take a look at the scoreboard:")
        self._say.say_public(board.strip())
        self._scheduler.call_later(self._opts.secs_between_messages, self._next_round, num_letters)

    def _next_round(self, num_letters: int) -> None:
        if self.top_score() >= self._opts.point_cap:
            self._begin_face_off()
            return
        self._say.say_public('Get ready for the next round!')
        num_letters += 1
        if num_letters > self._opts.max_letters:
            num_letters = self._opts.min_letters
        self._scheduler.call_later(self._opts.secs_between_rounds, self._play_to_cap, num_letters)

    def _begin_face_off(self) -> None:
        ranked = sorted(self.scores, key=lambda uid: self.scores[uid], reverse=True)
        if len(ranked) < 2:
            self._complete(ranked[0] if ranked else None)
            return
        self.stage = 'face_off'
        face_off = FaceOff(self._opts, ranked[:2], self._say, self._scheduler, rng=self._rng)
        self._active = face_off
        face_off.start(self._complete)

    def _complete(self, winner: Optional[int]) -> None:
        self._active = None
        self.winner = winner
        if winner is None:
            self._end_game()
            return
        logger.info(f"[game-win] arena={self.arena} winner={self.names[winner]}")
        self._say.say_public(f'{self.names[winner]} has won the game! Congratulations!')
        self._scheduler.call_later(self._opts.secs_between_messages, self._end_game)

    def _end_game(self) -> None:
        self._say.say_public('Thanks for playing!')
        self._end(completed=True)

    def _abort(self, error: GameError) -> None:
        logger.info(f"[game-abort] arena={self.arena} reason={error}")
        self._say.say_public(f'Game aborted: {error}')
        self._end(completed=False, error=error)

    def _end(self, completed: bool, error: Optional[GameError] = None) -> None:
        if self.ended:
            return
        self.ended = True
        self.running = False
        self.completed = completed
        self.error = error
        self.stage = 'finished'
        self._scheduler.close()
        self._say.silence()
        if self._active is not None:
            self._active.cancel()
            self._active = None
        if self._on_end is not None:
            self._on_end(self)
