import sys
import os
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import condorcetlib.evaluate.sequential
from condorcetlib.election import Election
from condorcetlib.evaluate.core import StaticContext


def make_election(votes, n_seats, candidates=None, **options):
    if candidates is None:
        candidates = sorted(set(
            cand for ranking in votes for item in ranking
            for cand in ([item] if isinstance(item, str) else item)
        ))
    election = Election(vote_weight=True, stv_seats=n_seats, **options)
    election.add_candidates(candidates)
    for ranking, n_votes in votes.items():
        election.add_vote(
            [item if isinstance(item, str) else list(item) for item in ranking],
            weight=n_votes,
        )
    return election


def named_rounds(stats):
    return {
        round_i: {cand.name: total for cand, total in totals.items()}
        for round_i, totals in stats['rounds'].items()
    }


def test_surplus_and_elimination():
    election = make_election({
        tuple('AB'): 9,
        tuple('BC'): 4,
        tuple('CB'): 4,
        tuple('DC'): 3,
    }, 2)
    result = election.get_result('STV')
    assert result.to_names() == ['A', 'C']
    assert result.stats['quota'] == 7
    assert named_rounds(result.stats) == {
        1: {'A': 9, 'B': 4, 'C': 4, 'D': 3},
        2: {'B': 6, 'C': 4, 'D': 3},
        3: {'C': 7, 'B': 6},
    }
    assert list(result.stats['rounds'][1].values()) == [9, 4, 4, 3]


def test_shared_rank_split():
    election = make_election({
        (('A', 'B'), 'C'): 4,
        ('C', ): 3,
    }, 1, candidates=['A', 'B', 'C'])
    result = election.get_result('STV')
    assert named_rounds(result.stats) == {
        1: {'A': 2, 'B': 2, 'C': 3},
        2: {'A': 4, 'C': 3},
    }
    # B is eliminated as the later registered of the two lowest
    assert result.to_names() == ['A']


def test_exhausted_votes():
    election = make_election({
        ('A', ): 3,
        ('B', 'A'): 2,
        ('C', ): 2,
    }, 1, implicit_ranking='excluded')
    result = election.get_result('STV')
    rounds = named_rounds(result.stats)
    assert rounds[1] == {'A': 3, 'B': 2, 'C': 2}
    assert rounds[2] == {'A': 3, 'B': 2}
    assert sum(rounds[2].values()) == 5
    assert result.to_names() == ['A']


def test_implicit_last_transfers_to_unranked():
    election = make_election({
        ('A', ): 3,
        ('B', 'A'): 2,
        ('C', ): 2,
    }, 1)
    rounds = named_rounds(election.get_result_stats('STV'))
    assert rounds[1] == {'A': 3, 'B': 2, 'C': 2}
    # the C votes rank A and B jointly last and are split between them
    assert rounds[2] == {'A': 4, 'B': 3}


def test_first_round_keeps_total_weight():
    election = make_election({
        tuple('ABCD'): 20,
        tuple('BDEF'): 20,
        tuple('FAC'): 20,
        tuple('DCEF'): 20,
        tuple('CDB'): 19,
    }, 3)
    stats = election.get_result_stats('STV')
    assert sum(stats['rounds'][1].values()) == election.sum_votes_weight()


def test_rv_stv():
    # https://rangevoting.org/STVPRunger
    election = make_election({
        tuple('ABCD'): 20,
        tuple('BDEF'): 20,
        tuple('FAC'): 20,
        tuple('DCEF'): 20,
        tuple('CDB'): 19,
    }, 3, implicit_ranking='excluded')
    result = election.get_result('STV')
    assert result.stats['quota'] == 25
    assert result.to_names() == ['D', 'F', 'B']
    last_round = named_rounds(result.stats)[4]
    assert last_round == {
        'A': 20,
        'B': 20 + Fraction(266, 39),
        'F': 20 + Fraction(280, 39),
    }


def test_rv_irv_nightmare_12():
    # https://rangevoting.org/rangeVirv.html#nightmare
    election = make_election({
        tuple('ABCDE'): 50,
        tuple('BACDE'): 51,
        tuple('CDBEA'): 100,
        tuple('DECBA'): 53,
        tuple('EDCBA'): 49,
    }, 1)
    assert election.get_result('STV').to_names() == ['D']


def test_rv_irv_revfail():
    # https://rangevoting.org/IncentToExagg.html
    votes = {
        tuple('BCA'): 9,
        tuple('ABC'): 8,
        tuple('CAB'): 7,
    }
    reversed_votes = {
        tuple(reversed(ranking)): n_votes
        for ranking, n_votes in votes.items()
    }
    assert make_election(votes, 1).get_winner('STV').name == 'A'
    assert make_election(reversed_votes, 1).get_winner('STV').name == 'A'


def test_seats_left_unfilled():
    election = make_election({
        ('Orange', ): 4,
        ('Pear', 'Orange'): 2,
        ('Chocolate', 'Strawberry'): 8,
        ('Chocolate', 'Burger'): 4,
        ('Strawberry', ): 1,
        ('Burger', ): 1,
    }, 3, implicit_ranking='excluded')
    result = election.get_result('STV')
    # all continuing candidates drop out before reaching the quota
    assert result.to_names() == ['Chocolate', 'Orange']
    assert len(result.stats['rounds']) == 5


def test_explicit_seats():
    election = make_election({
        tuple('AB'): 9,
        tuple('BC'): 4,
        tuple('CB'): 4,
        tuple('DC'): 3,
    }, 2)
    context = StaticContext(
        election.candidates, election.get_votes(), election.config
    )
    stv = condorcetlib.evaluate.sequential.SingleTransferableVote(
        context, n_seats=1
    )
    assert stv.seats() == 1
    assert stv.get_result().to_names() == ['C']
    assert condorcetlib.evaluate.sequential.SingleTransferableVote(
        context
    ).seats() == 2


def test_custom_quota():
    election = make_election({
        tuple('AB'): 9,
        tuple('BC'): 4,
        tuple('CB'): 4,
        tuple('DC'): 3,
    }, 2)
    context = StaticContext(
        election.candidates, election.get_votes(), election.config
    )
    stv = condorcetlib.evaluate.sequential.SingleTransferableVote(
        context, quota_function='hare'
    )
    assert stv.get_stats()['quota'] == 10
    assert stv.name == 'STV'


def test_invalid_seats():
    context = StaticContext([], [])
    with pytest.raises(ValueError):
        condorcetlib.evaluate.sequential.SingleTransferableVote(
            context, n_seats=0
        )
