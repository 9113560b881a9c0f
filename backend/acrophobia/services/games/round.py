import enum
import logging
import random
import re
from typing import Optional

from .countdown import Countdown
from .scheduler import Scheduler
from .tally import ParticipantId, RoundResults, tally_results

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^A-Z0-9'\-]")
_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


class Phase(enum.Enum):
    IDLE = 'idle'
    SUBMISSIONS = 'submissions'
    VOTING = 'voting'


class VoteRejection(str, enum.Enum):
    SELF = 'self'
    INVALID = 'invalid'


class RoundListener:
    """Receives everything a Round announces. Override what you need."""

    def on_submissions_opened(self, acronym: str) -> None:
        pass

    def on_milestone(self, phase: Phase, seconds_left: int) -> None:
        pass

    def on_submissions_closed(self, order: list, phrases: dict) -> None:
        pass

    def on_submission_accepted(self, user_id: ParticipantId, first: bool) -> None:
        pass

    def on_submission_rejected(self, user_id: ParticipantId, acronym: str) -> None:
        pass

    def on_voting_opened(self, order: list, phrases: dict) -> None:
        pass

    def on_vote_accepted(self, user_id: ParticipantId, first: bool) -> None:
        pass

    def on_vote_rejected(self, user_id: ParticipantId, reason: VoteRejection) -> None:
        pass

    def on_voting_closed(self, results: RoundResults) -> None:
        pass


def make_acronym(char_pool: str, num_letters: int, rng: Optional[random.Random] = None) -> str:
    """Draw ``num_letters`` characters from the weighted pool."""
    rng = rng or random
    return ''.join(rng.choice(char_pool) for _ in range(num_letters)).upper()


def extract_acronym(phrase: str) -> str:
    """First character of every word, after dropping anything that isn't a letter, digit, ' or -."""
    words = _NON_WORD.sub(' ', phrase.upper()).split()
    return ''.join(word[0] for word in words)


def parse_vote(text: str) -> Optional[int]:
    match = _LEADING_INT.match(text or '')
    return int(match.group(1)) if match else None


class Round:
    """A single acronym: a timed submission window followed by a timed vote.

    Input is only accepted in the matching phase; anything else is ignored.
    The owner decides when each phase starts, and a Round never restarts
    itself. Submissions collected by one instance stay with it, so a new
    acronym means a new Round.
    """

    def __init__(
        self,
        num_letters: int,
        char_pool: str,
        scheduler: Scheduler,
        listener: Optional[RoundListener] = None,
        rng: Optional[random.Random] = None,
    ):
        self.num_letters = num_letters
        self._scheduler = scheduler
        self._listener = listener or RoundListener()
        self._rng = rng or random.Random()
        self.acronym = make_acronym(char_pool, num_letters, self._rng)
        self.phase = Phase.IDLE
        self.phrases: dict = {}
        self.submit_times: dict = {}
        self.order: list = []
        self.votes: dict = {}
        self.results: Optional[RoundResults] = None
        self._cancelled = False

    def start_submissions(self, secs: int) -> bool:
        if self.phase is not Phase.IDLE or self._cancelled:
            return False
        self.phase = Phase.SUBMISSIONS
        logger.debug(f"[round-submissions] acro={self.acronym} secs={secs}")
        self._listener.on_submissions_opened(self.acronym)
        Countdown(
            self._scheduler,
            secs,
            on_milestone=lambda left: self._milestone(Phase.SUBMISSIONS, left),
            on_complete=self._close_submissions,
        ).start()
        return True

    def start_voting(self, secs: int) -> bool:
        if self.phase is not Phase.IDLE or self._cancelled:
            return False
        self.phase = Phase.VOTING
        logger.debug(f"[round-voting] acro={self.acronym} secs={secs} entries={len(self.order)}")
        self._listener.on_voting_opened(list(self.order), dict(self.phrases))
        Countdown(
            self._scheduler,
            secs,
            on_milestone=lambda left: self._milestone(Phase.VOTING, left),
            on_complete=self._close_voting,
        ).start()
        return True

    def cancel(self) -> None:
        """Stop accepting input and ignore any timers still pending."""
        self._cancelled = True
        self.phase = Phase.IDLE

    def submit_input(self, user_id: ParticipantId, text: str) -> None:
        if self.phase is Phase.SUBMISSIONS:
            self.submit_phrase(user_id, text)
        elif self.phase is Phase.VOTING:
            self.submit_vote(user_id, text)

    def submit_phrase(self, user_id: ParticipantId, phrase: str) -> None:
        if self.phase is not Phase.SUBMISSIONS:
            return
        acro = extract_acronym(phrase)
        if acro != self.acronym:
            self._listener.on_submission_rejected(user_id, acro)
            return
        first = user_id not in self.phrases
        self.phrases[user_id] = phrase.strip()
        self.submit_times[user_id] = self._scheduler.now_ms()
        self._listener.on_submission_accepted(user_id, first)

    def submit_vote(self, user_id: ParticipantId, text: str) -> None:
        if self.phase is not Phase.VOTING:
            return
        choice = parse_vote(text)
        if choice is None or not 1 <= choice <= len(self.order):
            self._listener.on_vote_rejected(user_id, VoteRejection.INVALID)
            return
        target = self.order[choice - 1]
        if target == user_id:
            self._listener.on_vote_rejected(user_id, VoteRejection.SELF)
            return
        first = user_id not in self.votes
        self.votes[user_id] = target
        self._listener.on_vote_accepted(user_id, first)

    def tally(self) -> RoundResults:
        return tally_results(self.submit_times, self.votes)

    def _milestone(self, phase: Phase, left: int) -> None:
        if self.phase is phase and not self._cancelled:
            self._listener.on_milestone(phase, left)

    def _close_submissions(self) -> None:
        if self.phase is not Phase.SUBMISSIONS or self._cancelled:
            return
        self.phase = Phase.IDLE
        order = list(self.phrases)
        self._rng.shuffle(order)
        self.order = order
        logger.debug(f"[round-submissions-closed] acro={self.acronym} entries={len(order)}")
        self._listener.on_submissions_closed(list(order), dict(self.phrases))

    def _close_voting(self) -> None:
        if self.phase is not Phase.VOTING or self._cancelled:
            return
        self.phase = Phase.IDLE
        self.results = self.tally()
        logger.debug(f"[round-voting-closed] acro={self.acronym} winner={self.results.winner}")
        self._listener.on_voting_closed(self.results)
