from typing import Mapping, MutableMapping, Optional

from .tally import ParticipantId, RoundResults


def assign_points(
    results: RoundResults,
    num_letters: int,
    points_fastest_with_vote: int,
    points_vote_for_winner: int,
) -> dict:
    """Points earned in a standard round.

    1 point per vote received; a bonus for the fastest answer that got a vote;
    the acronym length to the winner; a bonus to everyone who voted for the
    winner. Submitters who did not vote forfeit everything and end at 0.
    """
    points = dict(results.acro_votes)
    if results.fastest_with_vote is not None:
        points[results.fastest_with_vote] = points.get(results.fastest_with_vote, 0) + points_fastest_with_vote
    if results.winner is not None:
        points[results.winner] = points.get(results.winner, 0) + num_letters
    for voter in results.top_voters:
        points[voter] = points.get(voter, 0) + points_vote_for_winner
    # Forfeiture goes last so it overrides any bonus above
    for non_voter in results.non_voters:
        points[non_voter] = 0
    return points


def apply_points(scores: MutableMapping, points: Mapping) -> None:
    for user_id, value in points.items():
        if value:
            scores[user_id] = scores.get(user_id, 0) + value


def round_summary(
    round_number: int,
    acronym: str,
    results: Optional[RoundResults],
    points: Mapping[ParticipantId, int],
    names: Optional[Mapping[ParticipantId, str]] = None,
) -> dict:
    """History entry for a completed round, keyed by player name when ``names`` is given."""
    label = (lambda uid: names.get(uid, uid)) if names else (lambda uid: uid)
    return {
        'round': round_number,
        'acronym': acronym,
        'winner': label(results.winner) if results and results.winner is not None else None,
        'votes': {label(uid): n for uid, n in results.acro_votes.items()} if results else {},
        'points': {label(uid): n for uid, n in points.items()},
    }
