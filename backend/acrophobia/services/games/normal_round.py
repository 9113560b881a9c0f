import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from .errors import GameError, InsufficientSubmissions, NoVotesCast
from .messaging import Messenger, milestone_text, plural
from .options import GameOptions
from .round import Phase, Round, RoundListener, VoteRejection
from .scheduler import Scheduler
from .scoring import assign_points
from .tally import RoundResults

logger = logging.getLogger(__name__)


@dataclass
class RoundOutcome:
    """What a standard round reports to its owner: points, or the reason it failed."""

    points: dict = field(default_factory=dict)
    results: Optional[RoundResults] = None
    error: Optional[GameError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class NormalRound(RoundListener):
    """Plays one standard round in the public arena and reports the points earned.

    Fails with InsufficientSubmissions when fewer than two phrases come in, and
    with NoVotesCast when the vote closes empty.
    """

    def __init__(
        self,
        options: GameOptions,
        num_letters: int,
        messenger: Messenger,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
    ):
        self._opts = options
        self.num_letters = num_letters
        self._say = messenger
        self._scheduler = scheduler
        self._done: Optional[Callable[[RoundOutcome], None]] = None
        self._phrases: dict = {}
        self.round = Round(num_letters, options.char_pool, scheduler, listener=self, rng=rng)

    @property
    def acronym(self) -> str:
        return self.round.acronym

    def start(self, done: Callable[[RoundOutcome], None]) -> None:
        self._done = done
        logger.info(f"[round-start] acro={self.acronym} letters={self.num_letters}")
        self.round.start_submissions(self._opts.secs_per_acro_round)

    def user_input(self, user_id: int, text: str) -> None:
        self.round.submit_input(user_id, text)

    def cancel(self) -> None:
        self.round.cancel()

    # Round events

    def on_submissions_opened(self, acronym: str) -> None:
        self._say.say_public(
            f"This round's acro is [ {acronym} ]. Submissions are open for "
            f"{self._opts.secs_per_acro_round} seconds!"
        )
        self._say.say_public(
            f"Submit a phrase to match this acro by typing: {self._opts.input_prefix}YOUR PHRASE HERE"
        )

    def on_milestone(self, phase: Phase, seconds_left: int) -> None:
        self._say.say_public(milestone_text(seconds_left))

    def on_submission_accepted(self, user_id: int, first: bool) -> None:
        self._say.say_public(f"{self._say.name(user_id)} {'' if first else 're-'}submitted.")
        self._say.say_private(user_id, 'Phrase accepted!')

    def on_submission_rejected(self, user_id: int, acronym: str) -> None:
        self._say.say_private(
            user_id,
            f"Your phrase has the acronym [{acronym}] which does not match this round's acro: [{self.acronym}].",
        )

    def on_submissions_closed(self, order: list, phrases: dict) -> None:
        self._say.say_public('Submissions are now closed!')
        self._phrases = phrases
        if len(order) < 2:
            self._finish(RoundOutcome(error=InsufficientSubmissions()))
            return
        self._scheduler.call_later(self._opts.secs_between_messages, self._open_voting, order)

    def on_vote_accepted(self, user_id: int, first: bool) -> None:
        self._say.say_public(f"{self._say.name(user_id)} {'' if first else 're-'}voted.")
        self._say.say_private(user_id, 'Vote accepted!')

    def on_vote_rejected(self, user_id: int, reason: VoteRejection) -> None:
        if reason is VoteRejection.SELF:
            self._say.say_private(user_id, "You can't vote for yourself. That's lame.")
        else:
            self._say.say_private(
                user_id,
                f"That's an invalid vote! Vote using the format: {self._opts.input_prefix}NUMBER "
                "(where NUMBER is the number of the phrase you're voting for).",
            )

    def on_voting_closed(self, results: RoundResults) -> None:
        if results.winner is None:
            self._finish(RoundOutcome(results=results, error=NoVotesCast()))
            return
        points = assign_points(
            results,
            self.num_letters,
            self._opts.points_fastest_with_vote,
            self._opts.points_vote_for_winner,
        )
        self._show_results(results, lambda: self._finish(RoundOutcome(points=points, results=results)))

    # Presentation

    def _open_voting(self, order: list) -> None:
        self._say.say_public("Here are this round's submissions:")
        for idx, user_id in enumerate(order):
            pad = ' ' if idx < 9 else ''
            self._say.say_public(f'{idx + 1}{pad} | {self._phrases[user_id]}')
        self._say.say_public(
            f"Voting is open for {self._opts.secs_per_vote_round} seconds. YOU MUST VOTE TO RECEIVE POINTS! "
            f"Submit votes by typing: {self._opts.input_prefix}NUMBER"
        )
        self.round.start_voting(self._opts.secs_per_vote_round)

    def _show_results(self, res: RoundResults, done: Callable[[], None]) -> None:
        self._say.say_public("Here's who submitted the answers, and how many votes they got!")
        by_votes = sorted(self._phrases, key=lambda uid: -res.acro_votes.get(uid, 0))
        for user_id in by_votes:
            votes = res.acro_votes.get(user_id, 0)
            self._say.say_public(
                f'[{self._say.name(user_id)} | {votes} {plural(votes, "vote")}] {self._phrases[user_id]}'
            )
        announcements = self._point_announcements(res)
        self._scheduler.call_later(self._opts.secs_after_results, self._announce_next, announcements, done)

    def _point_announcements(self, res: RoundResults) -> list:
        opts = self._opts
        names = self._say.name
        lines = []
        if res.tie:
            lines.append(
                'We have a tie! The winner will be chosen by which of these players answered '
                'the fastest: ' + ', '.join(names(uid) for uid in res.tie)
            )
        lines.append(
            f'{names(res.winner)} wins the round! A {self.num_letters} point bonus will be '
            'awarded to this player.'
        )
        if opts.points_fastest_with_vote and res.fastest_with_vote is not None:
            lines.append(
                f'{names(res.fastest_with_vote)} submitted the fastest answer to receive a vote, and earns '
                f'{opts.points_fastest_with_vote} {plural(opts.points_fastest_with_vote, "point")}.'
            )
        if opts.points_vote_for_winner and res.top_voters:
            lines.append(
                'The following users voted for the winning answer, and will each receive '
                f'{opts.points_vote_for_winner} {plural(opts.points_vote_for_winner, "point")}: '
                + ', '.join(names(uid) for uid in res.top_voters)
            )
        if res.non_voters:
            lines.append(
                'The following users did not vote, and forfeit their points for this round: '
                + ', '.join(names(uid) for uid in res.non_voters)
            )
        return lines

    def _announce_next(self, lines: list, done: Callable[[], None]) -> None:
        if not lines:
            done()
            return
        self._say.say_public(lines[0])
        self._scheduler.call_later(self._opts.secs_between_messages, self._announce_next, lines[1:], done)

    def _finish(self, outcome: RoundOutcome) -> None:
        done, self._done = self._done, None
        if outcome.error is not None:
            logger.info(f"[round-failed] acro={self.acronym} reason={outcome.error}")
        else:
            logger.info(f"[round-end] acro={self.acronym} points={outcome.points}")
        if done is not None:
            done(outcome)
