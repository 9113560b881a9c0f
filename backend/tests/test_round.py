import random

import pytest

from acrophobia.services.games.round import (
    Phase,
    Round,
    RoundListener,
    VoteRejection,
    extract_acronym,
    make_acronym,
    parse_vote,
)
from conftest import phrase


class RecordingListener(RoundListener):
    def __init__(self):
        self.events = []

    def on_submissions_opened(self, acronym):
        self.events.append(('opened', acronym))

    def on_milestone(self, phase, seconds_left):
        self.events.append(('milestone', phase, seconds_left))

    def on_submissions_closed(self, order, phrases):
        self.events.append(('submissions_closed', order))

    def on_submission_accepted(self, user_id, first):
        self.events.append(('accepted', user_id, first))

    def on_submission_rejected(self, user_id, acronym):
        self.events.append(('rejected', user_id, acronym))

    def on_voting_opened(self, order, phrases):
        self.events.append(('voting_opened', order))

    def on_vote_accepted(self, user_id, first):
        self.events.append(('vote', user_id, first))

    def on_vote_rejected(self, user_id, reason):
        self.events.append(('vote_rejected', user_id, reason))

    def on_voting_closed(self, results):
        self.events.append(('voting_closed', results))

    def named(self, kind):
        return [e for e in self.events if e[0] == kind]


@pytest.mark.parametrize('text, expected', [
    ('Every evening, everyone!', 'EEE'),
    ("don't-stop me now", 'DMN'),
    ('  lots   of   space ', 'LOS'),
    ('3 blind mice', '3BM'),
    ('...', ''),
    ('', ''),
])
def test_extract_acronym(text, expected):
    assert extract_acronym(text) == expected


@pytest.mark.parametrize('text, expected', [
    ('2', 2),
    (' 12 ', 12),
    ('3 is best', 3),
    ('-1', -1),
    ('two', None),
    ('', None),
    (None, None),
])
def test_parse_vote(text, expected):
    assert parse_vote(text) == expected


def test_make_acronym_draws_from_pool():
    rng = random.Random(7)
    acro = make_acronym('abc', 6, rng)
    assert len(acro) == 6
    assert set(acro) <= set('ABC')
    assert make_acronym('E', 4) == 'EEEE'


@pytest.fixture()
def listener():
    return RecordingListener()


@pytest.fixture()
def acro_round(scheduler, listener, rng):
    return Round(3, 'E', scheduler, listener, rng)


def test_round_full_flow(acro_round, scheduler, listener):
    assert acro_round.acronym == 'EEE'
    assert acro_round.start_submissions(60)
    assert listener.events[0] == ('opened', 'EEE')

    scheduler.advance(1)
    acro_round.submit_input('a', phrase(3))
    scheduler.advance(1)
    acro_round.submit_input('b', 'Eggs eat everything')
    scheduler.advance(1)
    acro_round.submit_input('c', 'Not the acronym')
    assert listener.named('accepted') == [('accepted', 'a', True), ('accepted', 'b', True)]
    assert listener.named('rejected') == [('rejected', 'c', 'NTA')]
    assert acro_round.submit_times == {'a': 1000, 'b': 2000}

    scheduler.advance(60)
    assert acro_round.phase is Phase.IDLE
    assert sorted(acro_round.order) == ['a', 'b']
    assert [m[2] for m in listener.named('milestone')] == [30, 10, 3, 2, 1]
    assert all(m[1] is Phase.SUBMISSIONS for m in listener.named('milestone'))

    assert acro_round.start_voting(30)
    a_idx = acro_round.order.index('a') + 1
    b_idx = acro_round.order.index('b') + 1
    acro_round.submit_input('a', str(b_idx))
    acro_round.submit_input('c', str(b_idx))
    acro_round.submit_input('b', str(a_idx))
    scheduler.advance(30)

    closed = listener.named('voting_closed')
    assert len(closed) == 1
    results = closed[0][1]
    assert results.winner == 'b'
    assert results.acro_votes == {'b': 2, 'a': 1}
    assert results.fastest == 'a'
    assert results.top_voters == ['a', 'c']
    assert acro_round.results is results


def test_resubmission_overwrites_in_place(acro_round, scheduler, listener):
    acro_round.start_submissions(60)
    acro_round.submit_phrase('a', phrase(3))
    scheduler.advance(1)
    acro_round.submit_phrase('b', phrase(3))
    scheduler.advance(1)
    acro_round.submit_phrase('a', 'Eels eat eels')
    assert list(acro_round.phrases) == ['a', 'b']
    assert acro_round.phrases['a'] == 'Eels eat eels'
    assert acro_round.submit_times['a'] == 2000
    assert listener.named('accepted')[-1] == ('accepted', 'a', False)


def test_vote_rejections(acro_round, scheduler, listener):
    acro_round.start_submissions(10)
    acro_round.submit_phrase('a', phrase(3))
    acro_round.submit_phrase('b', phrase(3))
    scheduler.advance(10)
    acro_round.start_voting(10)
    own = acro_round.order.index('a') + 1
    other = acro_round.order.index('b') + 1

    acro_round.submit_vote('a', str(own))
    acro_round.submit_vote('a', '0')
    acro_round.submit_vote('a', '3')
    acro_round.submit_vote('a', 'nope')
    assert [e[2] for e in listener.named('vote_rejected')] == [
        VoteRejection.SELF,
        VoteRejection.INVALID,
        VoteRejection.INVALID,
        VoteRejection.INVALID,
    ]
    assert acro_round.votes == {}

    acro_round.submit_vote('a', str(other))
    acro_round.submit_vote('a', str(other))
    assert listener.named('vote') == [('vote', 'a', True), ('vote', 'a', False)]
    assert acro_round.votes == {'a': 'b'}


def test_first_flag_for_falsy_ids(scheduler, listener, rng):
    r = Round(3, 'E', scheduler, listener, rng)
    r.start_submissions(10)
    r.submit_phrase(0, phrase(3))
    assert listener.named('accepted') == [('accepted', 0, True)]


def test_input_ignored_while_idle(acro_round, listener):
    acro_round.submit_input('a', phrase(3))
    acro_round.submit_vote('a', '1')
    assert acro_round.phrases == {}
    assert acro_round.votes == {}
    assert listener.events == []


def test_phases_do_not_restart(acro_round, scheduler):
    assert acro_round.start_submissions(10)
    assert not acro_round.start_submissions(10)
    assert not acro_round.start_voting(10)
    scheduler.advance(10)
    assert acro_round.start_voting(10)
    assert not acro_round.start_voting(10)


def test_votes_ignored_during_submissions(acro_round, listener):
    acro_round.start_submissions(10)
    acro_round.submit_phrase('a', phrase(3))
    acro_round.submit_vote('b', '1')
    assert acro_round.votes == {}
    assert listener.named('vote_rejected') == []


def test_cancel_silences_pending_timers(acro_round, scheduler, listener):
    acro_round.start_submissions(10)
    acro_round.submit_phrase('a', phrase(3))
    acro_round.cancel()
    scheduler.run_until_idle()
    assert listener.named('submissions_closed') == []
    assert listener.named('milestone') == []
    assert not acro_round.start_voting(10)
    acro_round.submit_input('b', phrase(3))
    assert 'b' not in acro_round.phrases


def test_single_submitter_still_closes(acro_round, scheduler, listener):
    acro_round.start_submissions(5)
    acro_round.submit_phrase('solo', phrase(3))
    scheduler.advance(5)
    assert listener.named('submissions_closed') == [('submissions_closed', ['solo'])]


def test_tally_with_no_votes(acro_round, scheduler):
    acro_round.start_submissions(5)
    acro_round.submit_phrase('a', phrase(3))
    scheduler.advance(5)
    acro_round.start_voting(5)
    scheduler.advance(5)
    assert acro_round.results.winner is None
    assert acro_round.results.non_voters == ['a']
