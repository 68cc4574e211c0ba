import sys
import os
import random
import itertools

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import condorcetlib.evaluate.condorcet
from condorcetlib.election import Election
from condorcetlib.evaluate.core import StaticContext, ComputationConflict, \
    CapacityExceeded, Tie
from condorcetlib.system import DEFAULT_REGISTRY


VOTES = {
    'schulze': {
        tuple('ACBED'): 5,
        tuple('ADECB'): 5,
        tuple('BEDAC'): 8,
        tuple('CABED'): 3,
        tuple('CAEBD'): 7,
        tuple('CBADE'): 2,
        tuple('DCEBA'): 7,
        tuple('EBADC'): 8,
    },
    'tennessee': {
        ('M', 'N', 'C', 'K'): 42,
        ('N', 'C', 'K', 'M'): 26,
        ('C', 'K', 'N', 'M'): 15,
        ('K', 'C', 'N', 'M'): 17,
    },
    'noncw1': {
        tuple('AECD'): 31,
        tuple('BAE'): 30,
        tuple('CDB'): 29,
        tuple('DAE'): 10,
    },
    'noncw_minimax': {
        tuple('ACB'): 47,
        tuple('CBA'): 43,
        (frozenset(['A', 'C']), 'B'): 4,
        ('B', frozenset(['A', 'C'])): 6,
    },
    'noncw_minimax_2': {
        tuple('ACBD'): 30,
        tuple('DBAC'): 15,
        tuple('DBCA'): 14,
        tuple('BCAD'): 6,
        ('D', 'C', frozenset(['A', 'B'])): 4,
        ('C', frozenset(['A', 'B'])): 16,
        tuple('BC'): 14,
        tuple('CA'): 3,
    },
    'cw_wiki': {
        tuple('AB'): 186,
        tuple('AC'): 405,
        tuple('BA'): 305,
        tuple('BC'): 272,
        tuple('CA'): 78,
        tuple('CB'): 105,
    },
    'cw_wiki_mj': {
        tuple('ABC'): 35,
        tuple('CBA'): 34,
        tuple('BCA'): 31,
    },
    'cw_wiki_borda': {
        tuple('ABC'): 3,
        tuple('BCA'): 2,
    },
    'cycle': {
        tuple('ABC'): 1,
        tuple('BCA'): 1,
        tuple('CAB'): 1,
    },
    'rbvote': {
        ('Abby', 'Cora', 'Erin', 'Dave', 'Brad'): 98,
        ('Brad', 'Abby', 'Erin', 'Cora', 'Dave'): 64,
        ('Brad', 'Abby', 'Erin', 'Dave', 'Cora'): 12,
        ('Brad', 'Erin', 'Abby', 'Cora', 'Dave'): 98,
        ('Brad', 'Erin', 'Abby', 'Dave', 'Cora'): 13,
        ('Brad', 'Erin', 'Dave', 'Abby', 'Cora'): 125,
        ('Cora', 'Abby', 'Erin', 'Dave', 'Brad'): 124,
        ('Cora', 'Erin', 'Abby', 'Dave', 'Brad'): 76,
        ('Dave', 'Abby', 'Brad', 'Erin', 'Cora'): 21,
        ('Dave', 'Brad', 'Abby', 'Erin', 'Cora'): 30,
        ('Dave', 'Brad', 'Erin', 'Cora', 'Abby'): 98,
        ('Dave', 'Cora', 'Abby', 'Brad', 'Erin'): 139,
        ('Dave', 'Cora', 'Brad', 'Abby', 'Erin'): 23,
    },
}

CONDORCET_WINNERS = {
    'tennessee': 'N',
    'noncw_minimax': 'A',
    'cw_wiki': 'B',
    'cw_wiki_mj': 'B',
    'cw_wiki_borda': 'A',
}

CONDORCET_LOSERS = {
    'tennessee': 'M',
    'noncw_minimax': 'B',
}

NONCONDORCET = ['Minimax Opposition', 'STV']

RESULTS = {
    'schulze': {
        'Schulze Winning': ['E', 'A', 'C', 'B', 'D'],
        'Schulze Margin': ['E', 'A', 'C', 'B', 'D'],
    },
    'tennessee': {
        'Copeland': ['N', 'C', 'K', 'M'],
        'Schulze Winning': ['N', 'C', 'K', 'M'],
        'Ranked Pairs Winning': ['N', 'C', 'K', 'M'],
        'Kemeny-Young': ['N', 'C', 'K', 'M'],
        'Minimax Winning': ['N', 'M', 'C', 'K'],
        'Minimax Margin': ['N', 'M', 'C', 'K'],
        'Minimax Opposition': ['N', 'M', 'C', 'K'],
    },
    'noncw1': {
        'Condorcet Basic': [],
        'Copeland': ['A', ['B', 'C', 'E'], 'D'],
        'Schulze Winning': ['A', 'E', 'C', 'D', 'B'],
        'Ranked Pairs Winning': ['A', 'E', 'C', 'D', 'B'],
        'Kemeny-Young': ['A', 'E', 'C', 'D', 'B'],
        'Minimax Winning': ['A', 'D', 'B', ['C', 'E']],
    },
    'noncw_minimax': {
        'Minimax Opposition': ['C', 'A', 'B'],
    },
    'noncw_minimax_2': {
        'Minimax Winning': ['A', 'D', 'C', 'B'],
        'Minimax Margin': ['B', 'C', 'D', 'A'],
        'Minimax Opposition': ['D', 'A', 'C', 'B'],
    },
    'rbvote': {
        'Copeland': [['Abby', 'Brad'], ['Dave', 'Erin'], 'Cora'],
    },
}

OPTIONS = {
    'noncw_minimax_2': {'implicit_ranking': 'excluded'},
}


def make_election(vote_set_name, **options):
    vote_set = VOTES[vote_set_name]
    options = {**OPTIONS.get(vote_set_name, {}), **options}
    names = sorted(set(
        cand
        for ranking in vote_set for item in ranking
        for cand in (item if isinstance(item, frozenset) else [item])
    ))
    election = Election(vote_weight=True, **options)
    election.add_candidates(names)
    for ranking, n_votes in vote_set.items():
        election.add_vote([
            sorted(item) if isinstance(item, frozenset) else item
            for item in ranking
        ], weight=n_votes)
    return election


@pytest.mark.parametrize(('vote_set_name', 'method_name'), list(
    itertools.product(VOTES.keys(), DEFAULT_REGISTRY.names())
))
def test_method_result(vote_set_name, method_name):
    election = make_election(vote_set_name)
    result = election.get_result(method_name)
    assert result.method == method_name
    assert list(result.keys()) == list(range(1, len(result) + 1))
    ranked = result.candidates()
    assert len(ranked) == len(set(ranked))
    assert set(ranked) <= set(election.candidates)
    if method_name not in ('Condorcet Basic', 'STV'):
        assert set(ranked) == set(election.candidates)
    winner = CONDORCET_WINNERS.get(vote_set_name)
    if winner is not None and method_name not in NONCONDORCET:
        assert result.winner == election.get_candidate(winner)
    expected = RESULTS.get(vote_set_name, {}).get(method_name)
    if expected is not None:
        assert result.to_names() == expected


@pytest.mark.parametrize('vote_set_name', list(VOTES.keys()))
def test_condorcet_winner(vote_set_name):
    election = make_election(vote_set_name)
    winner = election.get_winner()
    loser = election.get_loser()
    if vote_set_name in CONDORCET_WINNERS:
        assert winner.name == CONDORCET_WINNERS[vote_set_name]
    else:
        assert winner is None
        assert len(election.get_result('Condorcet Basic')) == 0
    if vote_set_name in CONDORCET_LOSERS:
        assert loser.name == CONDORCET_LOSERS[vote_set_name]
    stats = election.get_result_stats('Condorcet Basic')
    assert stats == {'winner': winner, 'loser': loser}


def test_copeland_stats():
    election = make_election('noncw1')
    stats = election.get_result_stats('Copeland')
    scores = {cand.name: score for cand, score in stats['scores'].items()}
    assert scores == {'A': 2, 'B': 0, 'C': 0, 'D': -2, 'E': 0}
    assert stats['comparison'][election.get_candidate('A')] == {
        'win': 3, 'null': 0, 'lose': 1
    }


def test_copeland_winner_matches_default_winner():
    election = make_election('tennessee')
    assert election.get_winner('Copeland') == election.get_winner()


def test_minimax_stats():
    election = make_election('tennessee')
    stats = election.get_result_stats('Minimax Winning')
    named = {
        variant: {cand.name: score for cand, score in scores.items()}
        for variant, scores in stats.items()
    }
    assert named == {
        'winning_votes': {'N': 0, 'C': 68, 'K': 83, 'M': 58},
        'margins': {'N': -16, 'C': 36, 'K': 66, 'M': 16},
        'pairwise_opposition': {'N': 42, 'C': 68, 'K': 83, 'M': 58},
    }
    # all variants report the same statistics
    assert election.get_result_stats('Minimax Margin') == stats


def test_schulze_stats():
    election = make_election('noncw1')
    stats = election.get_result_stats('Schulze Winning')
    beats = {cand.name: n for cand, n in stats['beats'].items()}
    assert beats == {'A': 4, 'E': 3, 'C': 2, 'D': 1, 'B': 0}
    cand = election.get_candidate
    assert stats['paths'][cand('A')][cand('B')] == 61
    assert stats['paths'][cand('B')][cand('A')] == 59


def test_ranked_pairs_stats():
    election = make_election('noncw1')
    stats = election.get_result_stats('Ranked Pairs Winning')
    affirmations = [
        (aff['winner'].name, aff['loser'].name, aff['strength'],
         aff['minority'], aff['locked'])
        for aff in stats['affirmations']
    ]
    assert affirmations == [
        ('A', 'E', 71, 0, True),
        ('A', 'C', 71, 29, True),
        ('E', 'C', 71, 29, True),
        ('D', 'B', 70, 30, True),
        ('A', 'D', 61, 39, True),
        ('E', 'D', 61, 39, True),
        ('C', 'D', 60, 10, True),
        ('C', 'B', 60, 30, True),
        ('B', 'A', 59, 41, False),
        ('B', 'E', 59, 41, False),
    ]


def test_ranked_pairs_tiebreak():
    election = make_election('noncw1')
    context = StaticContext(
        election.candidates, election.get_votes(), election.config
    )
    reverse_names = condorcetlib.evaluate.condorcet.RankedPairs(
        context, tiebreak=lambda winner, loser: -ord(winner.name)
    )
    affirmations = reverse_names.get_stats()['affirmations']
    assert [
        (aff['winner'].name, aff['loser'].name) for aff in affirmations[:3]
    ] == [('A', 'E'), ('E', 'C'), ('A', 'C')]


def test_kemeny_young_stats():
    election = make_election('tennessee')
    result = election.get_result('Kemeny-Young')
    stats = result.stats
    assert stats['best_score'] == 393
    assert len(stats['ranking_scores']) == 24
    assert stats['ranking_scores'][tuple(result.to_list())] == 393
    assert max(stats['ranking_scores'].values()) == 393
    assert result.warnings == ()


def test_kemeny_young_conflict():
    election = make_election('cycle')
    result = election.get_result('Kemeny-Young')
    assert result.to_names() == ['A', 'B', 'C']
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert isinstance(warning, ComputationConflict)
    assert isinstance(warning, UserWarning)
    assert warning.details == {'count': 3, 'score': 5}


def test_kemeny_young_ceiling():
    election = Election(kemeny_young_max_candidates=3)
    election.add_candidates('ABCD')
    election.add_vote(['A', 'B'])
    with pytest.raises(CapacityExceeded):
        election.get_result('Kemeny-Young')
    election.configure(kemeny_young_max_candidates=4)
    assert election.get_result('Kemeny-Young').to_names() == [
        'A', 'B', 'C', 'D'
    ]


def test_kemeny_young_permutations_memoized():
    perms = condorcetlib.evaluate.condorcet.permutations(4)
    assert condorcetlib.evaluate.condorcet.permutations(4) is perms
    assert len(perms) == 24
    assert perms[0] == (0, 1, 2, 3)
    assert list(perms) == sorted(perms)


def random_election(seed, n_candidates, n_votes):
    rng = random.Random(seed)
    names = [chr(ord('A') + i) for i in range(n_candidates)]
    election = Election(vote_weight=True)
    election.add_candidates(names)
    for i in range(n_votes):
        ranked = rng.sample(names, rng.randint(1, n_candidates))
        ranking = []
        for name in ranked:
            if ranking and rng.random() < .2:
                ranking[-1].append(name)
            else:
                ranking.append([name])
        election.add_vote(ranking, weight=rng.randint(1, 5))
    return election


SEEDS = list(range(12))


@pytest.mark.parametrize('seed', SEEDS)
def test_schulze_transitive(seed):
    election = random_election(seed, 5, 15)
    for method_name in ('Schulze Winning', 'Schulze Margin'):
        paths = election.get_result_stats(method_name)['paths']
        cands = election.candidates

        def beats(x, y):
            return paths[x][y] > paths[y][x]

        for x, y, z in itertools.permutations(cands, 3):
            if beats(x, y) and beats(y, z):
                assert beats(x, z)


@pytest.mark.parametrize('seed', SEEDS)
def test_ranked_pairs_consistent(seed):
    election = random_election(seed, 5, 15)
    for method_name in ('Ranked Pairs Winning', 'Ranked Pairs Margin'):
        result = election.get_result(method_name)
        rank_of = {}
        for rank, entry in result.items():
            for cand in (entry if isinstance(entry, Tie) else [entry]):
                rank_of[cand] = rank
        for aff in result.stats['affirmations']:
            if aff['locked']:
                assert rank_of[aff['winner']] < rank_of[aff['loser']]


@pytest.mark.parametrize('seed', SEEDS)
def test_kemeny_young_optimal(seed):
    election = random_election(seed, 5, 15)
    result = election.get_result('Kemeny-Young')
    pairwise = election.get_pairwise()
    best = result.stats['best_score']
    for ordering in itertools.permutations(election.candidates):
        score = sum(
            pairwise.win(upper, lower)
            for upper, lower in itertools.combinations(ordering, 2)
        )
        assert score <= best
    assert result.stats['ranking_scores'][tuple(result.to_list())] == best
    n_best = sum(
        1 for score in result.stats['ranking_scores'].values()
        if score == best
    )
    assert len(result.warnings) == (1 if n_best > 1 else 0)


@pytest.mark.parametrize('seed', SEEDS)
def test_condorcet_consistency(seed):
    election = random_election(seed, 4, 9)
    winner = election.get_winner()
    if winner is None:
        return
    for method_name in DEFAULT_REGISTRY.names():
        if method_name not in NONCONDORCET:
            assert election.get_result(method_name).winner == winner


def test_scorer_names():
    election = make_election('tennessee')
    context = StaticContext(election.candidates, election.get_votes())
    condorcet = condorcetlib.evaluate.condorcet
    assert condorcet.Minimax(context).name == 'Minimax Winning'
    assert condorcet.Schulze(context, 'margins').name == 'Schulze Margin'
    assert condorcet.RankedPairs(
        context, 'pairwise_opposition'
    ).name == 'Ranked Pairs Opposition'
    assert condorcet.Copeland(context, name='Custom').name == 'Custom'
    with pytest.raises(KeyError):
        condorcet.Minimax(context, 'unknown')


def test_static_context_unweighted():
    election = make_election('tennessee')
    context = StaticContext(election.candidates, election.get_votes())
    # every vote counts as one without the vote weight option
    assert context.pairwise.total_weight == 4
    result = condorcetlib.evaluate.condorcet.Copeland(context).get_result()
    assert result.to_names() == ['C', 'N', 'K', 'M']
