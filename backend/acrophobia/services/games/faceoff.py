import logging
import random
from collections import deque
from typing import Callable, Mapping, Optional

from .messaging import Messenger, milestone_text, plural
from .options import GameOptions
from .round import Phase, Round, RoundListener, VoteRejection
from .scheduler import Scheduler
from .scoring import apply_points
from .tally import ParticipantId, RoundResults

logger = logging.getLogger(__name__)

VoteDone = Callable[[dict, Optional[int]], None]


def resolve_face_off(
    scores: Mapping[ParticipantId, int],
    fastest_counts: Mapping[ParticipantId, int],
) -> Optional[ParticipantId]:
    """Winner of a face-off, or None for an unbreakable tie.

    Highest score wins. Between equal scores, whoever answered first in more
    rounds wins. Nothing breaks a tie beyond that.
    """
    ranked = sorted(scores, key=lambda uid: scores[uid], reverse=True)
    if not ranked:
        return None
    if len(ranked) == 1 or scores[ranked[0]] != scores[ranked[1]]:
        return ranked[0]
    leaders = [uid for uid in ranked if scores[uid] == scores[ranked[0]]]
    leaders.sort(key=lambda uid: fastest_counts.get(uid, 0), reverse=True)
    if fastest_counts.get(leaders[0], 0) != fastest_counts.get(leaders[1], 0):
        return leaders[0]
    return None


class FaceOffRound(RoundListener):
    """One face-off acronym. Submissions happen in private with the two players;
    voting happens later, in public, whenever the coordinator gets to it.
    """

    def __init__(
        self,
        options: GameOptions,
        num_letters: int,
        players: list,
        messenger: Messenger,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
    ):
        self._opts = options
        self.num_letters = num_letters
        self.players = list(players)
        self._say = messenger
        self._scheduler = scheduler
        self.round = Round(num_letters, options.char_pool, scheduler, listener=self, rng=rng)
        self.order: list = []
        self.phrases: dict = {}
        self._submissions_done: Optional[Callable[[], None]] = None
        self._vote_done: Optional[VoteDone] = None

    @property
    def acronym(self) -> str:
        return self.round.acronym

    def start_submissions(self, done: Callable[[], None]) -> None:
        self._submissions_done = done
        self.round.start_submissions(self._opts.secs_per_face_off_round)

    def start_voting(self, done: VoteDone) -> None:
        """Run the vote, or skip it when fewer than two phrases came in.

        ``done(points, fastest)`` gets the points per player and the player who
        answered first (None when neither did).
        """
        self._vote_done = done
        if not self.order:
            self._say.say_public(
                f'For the acro [ {self.acronym} ], neither player submitted an answer. '
                'No points will be awarded.'
            )
            self._scheduler.call_later(self._opts.secs_between_messages, self._finish_vote, {}, None)
        elif len(self.order) == 1:
            self._show_single_result(self.order[0])
        else:
            self._run_vote()

    def submit_phrase(self, user_id: int, text: str) -> None:
        self.round.submit_phrase(user_id, text)

    def submit_vote(self, user_id: int, text: str) -> None:
        self.round.submit_vote(user_id, text)

    def cancel(self) -> None:
        self.round.cancel()

    # Round events

    def on_submissions_opened(self, acronym: str) -> None:
        self._say.say_each(
            self.players,
            f"This round's acro is [ {acronym} ]. Submissions are open for "
            f'{self._opts.secs_per_face_off_round} seconds!',
        )
        self._say.say_each(
            self.players,
            f'Submit a phrase to match this acro by typing: {self._opts.input_prefix}YOUR PHRASE HERE',
        )

    def on_milestone(self, phase: Phase, seconds_left: int) -> None:
        if phase is Phase.SUBMISSIONS:
            self._say.say_each(self.players, milestone_text(seconds_left))
        else:
            self._say.say_public(milestone_text(seconds_left))

    def on_submission_accepted(self, user_id: int, first: bool) -> None:
        self._say.say_private(user_id, 'Phrase accepted!')

    def on_submission_rejected(self, user_id: int, acronym: str) -> None:
        self._say.say_private(
            user_id,
            f"Your phrase has the acronym [{acronym}] which does not match this round's acro: [{self.acronym}].",
        )

    def on_submissions_closed(self, order: list, phrases: dict) -> None:
        self._say.say_each(self.players, 'Submissions are now closed!')
        self.order = order
        self.phrases = phrases
        done, self._submissions_done = self._submissions_done, None
        if done is not None:
            done()

    def on_vote_accepted(self, user_id: int, first: bool) -> None:
        self._say.say_public(f"{self._say.name(user_id)} {'' if first else 're-'}voted.")
        self._say.say_private(user_id, 'Vote accepted!')

    def on_vote_rejected(self, user_id: int, reason: VoteRejection) -> None:
        self._say.say_private(
            user_id,
            f"That's an invalid vote! Vote using the format: {self._opts.input_prefix}NUMBER "
            "(where NUMBER is the number of the phrase you're voting for).",
        )

    def on_voting_closed(self, results: RoundResults) -> None:
        self._say.say_public("Here's who submitted the answers, and how many votes they got!")
        self._scheduler.call_later(self._opts.secs_between_messages, self._show_results, results)

    # Presentation

    def _run_vote(self) -> None:
        self._say.say_public(f'For the acro [ {self.acronym} ] our players submitted:')
        for idx, user_id in enumerate(self.order):
            self._say.say_public(f'{idx + 1}  | {self.phrases[user_id]}')
        self._say.say_public(
            f'Voting is open for {self._opts.secs_per_face_off_round} seconds. '
            f'Submit votes by typing: {self._opts.input_prefix}NUMBER'
        )
        self.round.start_voting(self._opts.secs_per_face_off_round)

    def _show_results(self, results: RoundResults) -> None:
        by_votes = sorted(self.phrases, key=lambda uid: -results.acro_votes.get(uid, 0))
        for user_id in by_votes:
            votes = results.acro_votes.get(user_id, 0)
            self._say.say_public(
                f'[{self._say.name(user_id)} | {votes} {plural(votes, "vote")}] {self.phrases[user_id]}'
            )
        self._scheduler.call_later(
            self._opts.secs_after_results,
            self._finish_vote,
            dict(results.acro_votes),
            results.fastest,
        )

    def _show_single_result(self, user_id: int) -> None:
        name = self._say.name(user_id)
        self._say.say_public(f'For the acro [ {self.acronym} ], {name} answered: "{self.phrases[user_id]}".')

        def award():
            self._say.say_public(
                f'Since {name} was the only player to answer, {self.num_letters} points will be '
                'awarded automatically.'
            )
            self._finish_vote({user_id: self.num_letters}, user_id)

        self._scheduler.call_later(self._opts.secs_between_messages, award)

    def _finish_vote(self, points: dict, fastest: Optional[int]) -> None:
        done, self._vote_done = self._vote_done, None
        if done is not None:
            done(points, fastest)


class FaceOff:
    """Runs the face-off between the top two players.

    Submission windows run back to back, one round at a time. Each finished
    round joins a FIFO for voting, and only one round is voted on at a time,
    so a bare number typed in the arena always refers to exactly one round.
    """

    def __init__(
        self,
        options: GameOptions,
        players: list,
        messenger: Messenger,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
    ):
        self._opts = options
        self.players = list(players)
        self._say = messenger
        self._scheduler = scheduler
        self.scores = {uid: 0 for uid in self.players}
        self.fastest_counts = {uid: 0 for uid in self.players}
        self.fastest_rounds: list = []
        self.rounds = [
            FaceOffRound(options, options.face_off_min_letters + i, self.players, messenger, scheduler, rng=rng)
            for i in range(options.face_off_rounds)
        ]
        self.acro_round: Optional[FaceOffRound] = None
        self.vote_round: Optional[FaceOffRound] = None
        self.vote_queue: deque = deque()
        self.completed_votes = 0
        self.voting_started = False
        self.winner: Optional[int] = None
        self._done: Optional[Callable[[Optional[int]], None]] = None

    def start(self, done: Callable[[Optional[int]], None]) -> None:
        """Play every round; ``done(winner)`` gets None on an unbreakable tie."""
        self._done = done
        p1, p2 = (self._say.name(uid) for uid in self.players[:2])
        logger.info(f"[faceoff-start] players={self.players} rounds={len(self.rounds)}")
        self._say.say_public(
            f"Our top player has reached the {self._opts.point_cap} point mark!  It's time for the "
            f'face-off round. {p1} and {p2}, please switch to your private messages to continue.'
        )
        self._scheduler.call_later(self._opts.secs_between_messages, self._instruct, p1, p2)

    def user_input(self, user_id: int, text: str) -> None:
        """Players' input goes to the round taking submissions, everyone else's to the round being voted on."""
        if user_id in self.scores:
            if self.acro_round is not None:
                self.acro_round.submit_phrase(user_id, text)
        elif self.vote_round is not None:
            self.vote_round.submit_vote(user_id, text)

    def cancel(self) -> None:
        for face_off_round in self.rounds:
            face_off_round.cancel()

    def _instruct(self, p1: str, p2: str) -> None:
        self._say.say_each(
            self.players,
            f"Welcome to the face-off! I'll be running {self._opts.face_off_rounds} speed-rounds sent "
            f'directly to you. Answer by saying {self._opts.input_prefix}ANSWER HERE. Get ready!',
        )
        self._say_gap_filler([
            f'At the end of each game, the top two players go head-to-head in '
            f'{self._opts.face_off_rounds} speed rounds.',
            f'{p1} and {p2} will have {self._opts.secs_per_face_off_round} seconds to answer each acro. '
            'Then everyone here will have the chance to vote for their favorites!',
            'Votes are the ONLY points that these players get in the face-off, so remember to get yours in!',
            "Once all the votes are tallied up, I'll announce our winner.  Get ready for the first round of voting!",
        ])
        self._scheduler.call_later(self._opts.secs_between_messages, self._play_round, 0)

    def _say_gap_filler(self, lines: list) -> None:
        # Stops as soon as the first vote opens
        if not lines or self.voting_started:
            return
        self._say.say_public(lines[0])
        self._scheduler.call_later(self._opts.secs_between_messages, self._say_gap_filler, lines[1:])

    def _play_round(self, idx: int) -> None:
        if idx >= len(self.rounds):
            self._say.say_each(self.players, "That's a wrap! Head back to the main channel for the results.")
            return
        face_off_round = self.rounds[idx]
        self.acro_round = face_off_round
        logger.debug(f"[faceoff-round] idx={idx} acro={face_off_round.acronym}")
        face_off_round.start_submissions(lambda: self._submissions_closed(idx, face_off_round))

    def _submissions_closed(self, idx: int, face_off_round: FaceOffRound) -> None:
        self._enqueue_vote(face_off_round)
        self._scheduler.call_later(self._opts.secs_between_face_off_rounds, self._play_round, idx + 1)

    def _enqueue_vote(self, face_off_round: FaceOffRound) -> None:
        self.vote_queue.append(face_off_round)
        if self.vote_round is None:
            self._start_next_vote()

    def _start_next_vote(self) -> None:
        face_off_round = self.vote_queue.popleft()
        self.vote_round = face_off_round
        self.voting_started = True
        face_off_round.start_voting(lambda points, fastest: self._vote_finished(points, fastest))

    def _vote_finished(self, points: dict, fastest: Optional[int]) -> None:
        apply_points(self.scores, points)
        self.fastest_rounds.append(fastest)
        if fastest is not None:
            self.fastest_counts[fastest] = self.fastest_counts.get(fastest, 0) + 1
        self.vote_round = None
        self.completed_votes += 1
        logger.debug(f"[faceoff-vote-done] completed={self.completed_votes} scores={self.scores}")
        if self.completed_votes == len(self.rounds):
            self._announce_scores()
        elif self.vote_queue:
            self._start_next_vote()

    def _announce_scores(self) -> None:
        ranked = sorted(self.scores, key=lambda uid: self.scores[uid], reverse=True)
        board = ''.join(f' [{self._say.name(uid)} {self.scores[uid]}]' for uid in ranked)
        self._say.say_public('Final results:' + board)
        if len(ranked) < 2 or self.scores[ranked[0]] != self.scores[ranked[1]]:
            self._scheduler.call_later(self._opts.secs_between_messages, self._finish, ranked[0] if ranked else None)
        else:
            self._scheduler.call_later(self._opts.secs_between_messages, self._announce_tie)

    def _announce_tie(self) -> None:
        self._say.say_public('We have a tie! The winner will be decided by who answered the fastest.')
        self._scheduler.call_later(self._opts.secs_between_messages, self._show_fastest_round, 0)

    def _show_fastest_round(self, idx: int) -> None:
        if idx >= len(self.fastest_rounds):
            winner = resolve_face_off(self.scores, self.fastest_counts)
            if winner is None:
                self._say.say_public("Well, that didn't help much!  Let's just call it a tie.")
                self._scheduler.call_later(self._opts.secs_between_messages, self._finish, None)
            else:
                self._finish(winner)
            return
        fastest = self.fastest_rounds[idx]
        if fastest is None:
            self._say.say_public(f'Round {idx + 1}: Neither player submitted.')
        else:
            self._say.say_public(f'Round {idx + 1}: {self._say.name(fastest)} answered first.')
        self._scheduler.call_later(self._opts.secs_between_messages / 2, self._show_fastest_round, idx + 1)

    def _finish(self, winner: Optional[int]) -> None:
        self.winner = winner
        logger.info(f"[faceoff-end] winner={winner} scores={self.scores} fastest={self.fastest_counts}")
        done, self._done = self._done, None
        if done is not None:
            done(winner)
