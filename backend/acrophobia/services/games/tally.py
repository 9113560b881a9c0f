from dataclasses import dataclass, field
from typing import Hashable, Mapping, Optional

ParticipantId = Hashable


@dataclass(frozen=True)
class RoundResults:
    """Outcome of a voting phase.

    winner: id with the most votes (earliest submission breaks ties), or None
        if nobody voted.
    tie: every id sharing the winner's vote count, only when there are two or more.
    fastest: earliest submitter overall, or None without submissions.
    fastest_with_vote: earliest submitter that received at least one vote.
    top_voters: ids that voted for the winner.
    non_voters: submitters that cast no vote.
    acro_votes: id -> number of votes received, for ids with at least one.
    """

    winner: Optional[ParticipantId] = None
    tie: Optional[list] = None
    fastest: Optional[ParticipantId] = None
    fastest_with_vote: Optional[ParticipantId] = None
    top_voters: list = field(default_factory=list)
    non_voters: list = field(default_factory=list)
    acro_votes: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'winner': self.winner,
            'tie': list(self.tie) if self.tie else None,
            'fastest': self.fastest,
            'fastest_with_vote': self.fastest_with_vote,
            'top_voters': list(self.top_voters),
            'non_voters': list(self.non_voters),
            'acro_votes': dict(self.acro_votes),
        }


def tally_results(
    submit_times: Mapping[ParticipantId, float],
    votes: Mapping[ParticipantId, ParticipantId],
) -> RoundResults:
    """Tally votes for a round.

    ``submit_times`` maps every submitter to the time their phrase was accepted,
    ``votes`` maps each voter to the submitter they voted for. Both are read in
    insertion order, which decides equal-timestamp races.
    """
    vote_counts: dict = {}
    voters_by_target: dict = {}
    for voter, target in votes.items():
        vote_counts[target] = vote_counts.get(target, 0) + 1
        voters_by_target.setdefault(target, []).append(voter)

    fastest = None
    fastest_with_vote = None
    non_voters = []
    for user_id, submitted_at in submit_times.items():
        if user_id not in votes:
            non_voters.append(user_id)
        if fastest is None or submitted_at < submit_times[fastest]:
            fastest = user_id
        if vote_counts.get(user_id) and (
            fastest_with_vote is None or submitted_at < submit_times[fastest_with_vote]
        ):
            fastest_with_vote = user_id

    never = float('inf')
    position = {uid: i for i, uid in enumerate(submit_times)}
    ranking = sorted(
        vote_counts,
        key=lambda uid: (-vote_counts[uid], submit_times.get(uid, never), position.get(uid, never)),
    )
    winner = ranking[0] if ranking else None
    tie = [uid for uid in ranking if vote_counts[uid] == vote_counts.get(winner)]

    return RoundResults(
        winner=winner,
        tie=tie if len(tie) > 1 else None,
        fastest=fastest,
        fastest_with_vote=fastest_with_vote,
        top_voters=list(voters_by_target.get(winner, [])) if winner is not None else [],
        non_voters=non_voters,
        acro_votes=vote_counts,
    )
