from acrophobia.services.games.errors import InsufficientSubmissions, NoVotesCast
from acrophobia.services.games.normal_round import NormalRound
from conftest import phrase


def _start(options, messenger, scheduler, rng, num_letters=3):
    outcomes = []
    normal = NormalRound(options, num_letters, messenger, scheduler, rng)
    normal.start(outcomes.append)
    return normal, outcomes


def _vote(normal, voter, target):
    normal.user_input(voter, str(normal.round.order.index(target) + 1))


def test_round_awards_points(options, messenger, scheduler, rng, sink):
    normal, outcomes = _start(options, messenger, scheduler, rng)
    assert sink.said("This round's acro is [ EEE ]. Submissions are open for 60 seconds!")

    scheduler.advance(1)
    normal.user_input(0, phrase(3))
    scheduler.advance(1)
    normal.user_input(1, phrase(3))
    scheduler.advance(1)
    normal.user_input(2, phrase(3))
    assert sink.private_for('alice') == ['Phrase accepted!']
    assert sink.said('bob submitted.')

    advance_to_voting = 60 - scheduler.time + options.secs_between_messages
    scheduler.advance(advance_to_voting)
    assert sink.said('Submissions are now closed!')
    assert sink.said('Voting is open for 30 seconds.')

    _vote(normal, 0, 1)
    _vote(normal, 2, 1)
    _vote(normal, 1, 0)
    scheduler.run_until_idle()

    assert len(outcomes) == 1
    outcome = outcomes[0]
    assert outcome.ok
    assert outcome.points == {0: 4, 1: 5, 2: 1}
    assert outcome.results.winner == 1
    assert sink.said('bob wins the round! A 3 point bonus will be awarded to this player.')
    assert sink.said('alice submitted the fastest answer to receive a vote, and earns 2 points.')
    assert sink.said('each receive 1 point: alice, carol')
    assert sink.said('[bob | 2 votes]')
    assert sink.said('[alice | 1 vote]')


def test_round_announces_tie_and_forfeits(options, messenger, scheduler, rng, sink):
    normal, outcomes = _start(options, messenger, scheduler, rng)
    for uid in (0, 1, 2):
        scheduler.advance(1)
        normal.user_input(uid, phrase(3))
    scheduler.advance(60 - scheduler.time + options.secs_between_messages)
    _vote(normal, 0, 1)
    _vote(normal, 1, 0)
    scheduler.run_until_idle()

    outcome = outcomes[0]
    assert outcome.results.tie == [0, 1]
    assert outcome.results.winner == 0
    assert outcome.points[2] == 0
    assert sink.said('We have a tie!')
    assert sink.said('did not vote, and forfeit their points for this round: carol')


def test_single_submission_fails_round(options, messenger, scheduler, rng, sink):
    normal, outcomes = _start(options, messenger, scheduler, rng)
    normal.user_input(0, phrase(3))
    scheduler.run_until_idle()
    assert len(outcomes) == 1
    assert isinstance(outcomes[0].error, InsufficientSubmissions)
    assert not outcomes[0].ok
    assert not sink.said('Voting is open')


def test_no_votes_fails_round(options, messenger, scheduler, rng, sink):
    normal, outcomes = _start(options, messenger, scheduler, rng)
    normal.user_input(0, phrase(3))
    normal.user_input(1, phrase(3))
    scheduler.run_until_idle()
    assert isinstance(outcomes[0].error, NoVotesCast)
    assert str(outcomes[0].error) == 'No one voted!'


def test_rejections_are_private(options, messenger, scheduler, rng, sink):
    normal, outcomes = _start(options, messenger, scheduler, rng)
    normal.user_input(0, 'Wrong words here')
    assert sink.private_for('alice') == [
        "Your phrase has the acronym [WWH] which does not match this round's acro: [EEE]."
    ]
    normal.user_input(0, phrase(3))
    normal.user_input(1, phrase(3))
    scheduler.advance(60 + options.secs_between_messages)
    own = normal.round.order.index(0) + 1
    normal.user_input(0, str(own))
    normal.user_input(0, '9')
    assert "You can't vote for yourself. That's lame." in sink.private_for('alice')
    assert sink.private_for('alice')[-1].startswith("That's an invalid vote!")


def test_cancel_stops_round(options, messenger, scheduler, rng, sink):
    normal, outcomes = _start(options, messenger, scheduler, rng)
    normal.user_input(0, phrase(3))
    normal.cancel()
    scheduler.run_until_idle()
    assert outcomes == []
    assert not sink.said('Submissions are now closed!')
