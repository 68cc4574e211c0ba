'''Condorcet resolution methods.

These methods work by examining the pairwise tally of the election (how much
vote weight prefers one candidate to another); see
:mod:`condorcetlib.pairwise`.

All of the methods in this module except Minimax Opposition reliably put
a Condorcet winner first when there is one.

Minimax, Schulze and Ranked Pairs come in variants that differ in how the
strength of a pairwise win is measured; the variant is selected by passing
a pairwise win scorer (see :mod:`condorcetlib.component.pairwin_scorer`) to
the constructor.
'''

import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import condorcetlib.component.pairwin_scorer
import condorcetlib.util
from condorcetlib.candidate import Candidate
from condorcetlib.evaluate.core import Method, Result, ElectionContext, \
    ComputationConflict, VotingSystemError
from condorcetlib.pairwise import Pairwise

logger = logging.getLogger(__name__)


TieBreaker = Callable[[Candidate, Candidate], Any]

VARIANT_LABELS = {
    'winning_votes': 'Winning',
    'margins': 'Margin',
    'pairwise_opposition': 'Opposition',
}


def condorcet_winner(pairwise: Pairwise) -> Optional[Candidate]:
    '''Return the candidate beating all others pairwise, None if there is none.
    '''
    n = len(pairwise)
    for i, cand in enumerate(pairwise.candidates):
        if all(
            pairwise.win_matrix[i][j] > pairwise.lose_matrix[i][j]
            for j in range(n) if j != i
        ):
            return cand
    return None


def condorcet_loser(pairwise: Pairwise) -> Optional[Candidate]:
    '''Return the candidate beaten by all others pairwise, None if none.'''
    n = len(pairwise)
    for i, cand in enumerate(pairwise.candidates):
        if all(
            pairwise.win_matrix[i][j] < pairwise.lose_matrix[i][j]
            for j in range(n) if j != i
        ):
            return cand
    return None


class CondorcetBasic(Method):
    '''Condorcet winner detection.

    Ranks the Condorcet winner (the candidate beating every other candidate
    pairwise) first and nobody else. If there is no Condorcet winner,
    the result is empty. The Condorcet loser is reported in the statistics.
    '''
    family = 'Condorcet Basic'

    def compute(self) -> Result:
        pairwise = self.context.pairwise
        winner = condorcet_winner(pairwise)
        loser = condorcet_loser(pairwise)
        return Result(
            self.name,
            [winner] if winner is not None else [],
            stats={'winner': winner, 'loser': loser},
        )


class Copeland(Method):
    '''Copeland Condorcet method.

    Scores every candidate by the number of pairwise wins minus the number of
    pairwise losses (pairwise ties score zero) and ranks them by the score,
    equal scores sharing the rank.
    '''
    family = 'Copeland'

    def compute(self) -> Result:
        comparison = self.context.pairwise.comparison()
        scores = self.scores(comparison)
        return Result(
            self.name,
            condorcetlib.util.group_by_score(scores),
            stats={
                'scores': scores,
                'comparison': {
                    cand: {key: counts[key] for key in ('win', 'null', 'lose')}
                    for cand, counts in comparison.items()
                },
            }
        )

    @staticmethod
    def scores(comparison: Dict[Candidate, Dict[str, int]]
               ) -> Dict[Candidate, int]:
        return {cand: counts['balance'] for cand, counts in comparison.items()}


class _ScoredMethod(Method):
    '''A method family parametrized by a pairwise win scorer.

    :param context: The election data to resolve.
    :param pairwin_scoring: A pairwise win scorer callable or the name of one
        from :mod:`condorcetlib.component.pairwin_scorer`.
    :param name: Name to report in results.
    '''
    def __init__(self,
                 context: ElectionContext,
                 pairwin_scoring: Union[str, Callable] = 'winning_votes',
                 name: Optional[str] = None,
                 ):
        self.pairwin_scoring = condorcetlib.component.pairwin_scorer.construct(
            pairwin_scoring
        )
        super().__init__(context, name=name)

    def default_name(self) -> str:
        scorer_name = self.pairwin_scoring.__name__
        return f'{self.family} {VARIANT_LABELS.get(scorer_name, scorer_name)}'


class Minimax(_ScoredMethod):
    '''Minimax Condorcet method.

    Also known as successive reversal or Simpson-Kramer method.
    Ranks the candidates by the size of their greatest pairwise defeat,
    smallest first; equal defeat sizes share the rank.

    The size of the defeat of candidate i by j is measured by the pairwise win
    scorer applied to the pair (j, i):

    -   ``winning_votes`` - the weight of votes preferring j if j wins the pair,
        zero otherwise (a candidate that never loses scores zero);
    -   ``margins`` - the margin of j over i (negative if i wins);
    -   ``pairwise_opposition`` - the weight of votes preferring j regardless
        of who wins the pair. This variant is not Condorcet-consistent.
    '''
    family = 'Minimax'

    def compute(self) -> Result:
        pairwise = self.context.pairwise
        all_scores = {
            scorer_name: self.scores(pairwise, scorer)
            for scorer_name, scorer in (
                condorcetlib.component.pairwin_scorer.PAIRWIN_SCORERS.items()
            )
        }
        scores = self.scores(pairwise, self.pairwin_scoring)
        return Result(
            self.name,
            condorcetlib.util.group_by_score(scores, descending=False),
            stats=all_scores,
        )

    @staticmethod
    def scores(pairwise: Pairwise,
               scorer: Callable[[Pairwise, int, int], Any],
               ) -> Dict[Candidate, Any]:
        '''Compute the greatest pairwise defeat of each candidate.'''
        n = len(pairwise)
        return {
            cand: max(scorer(pairwise, j, i) for j in range(n) if j != i)
            for i, cand in enumerate(pairwise.candidates)
        }


class Schulze(_ScoredMethod):
    '''Schulze (beatpath) Condorcet method.

    Also called Schwartz Sequential dropping or path voting. Finds the
    strongest paths between pairs of candidates in which each candidate
    pairwise beats the next, where the strength of a path is the strength of
    its weakest link. Candidate i beats j if the strongest path from i to j is
    stronger than the one from j to i; candidates are ranked by the number of
    candidates they beat in this way.

    The link strength is given by the pairwise win scorer; ``winning_votes``
    and ``margins`` are the usual variants.
    '''
    family = 'Schulze'

    def compute(self) -> Result:
        pairwise = self.context.pairwise
        paths = self.widest_paths(pairwise, self.pairwin_scoring)
        n = len(pairwise)
        beats = {
            cand: sum(
                1 for j in range(n) if j != i and paths[i][j] > paths[j][i]
            )
            for i, cand in enumerate(pairwise.candidates)
        }
        return Result(
            self.name,
            condorcetlib.util.group_by_score(beats),
            stats={
                'paths': {
                    cand: {
                        other: paths[i][j]
                        for j, other in enumerate(pairwise.candidates)
                        if j != i
                    }
                    for i, cand in enumerate(pairwise.candidates)
                },
                'beats': beats,
            },
        )

    @staticmethod
    def widest_paths(pairwise: Pairwise,
                     scorer: Callable[[Pairwise, int, int], Any],
                     ) -> List[List[Any]]:
        n = len(pairwise)
        paths = [[0] * n for i in range(n)]
        for i, j in pairwise.pairs():
            strength = scorer(pairwise, i, j)
            if strength > scorer(pairwise, j, i):
                paths[i][j] = strength
        for k in range(n):
            for i in range(n):
                if i == k:
                    continue
                for j in range(n):
                    if j != i and j != k:
                        paths[i][j] = max(
                            paths[i][j], min(paths[i][k], paths[k][j])
                        )
        return paths


class RankedPairs(_ScoredMethod):
    '''Tideman's ranked pairs Condorcet method.

    Ranks pairwise wins (affirmations) by their strength and sequentially
    locks them into a graph of who beats whom in descending order, discarding
    affirmations that would contradict previously locked ones (create
    a cycle). The candidates are then ranked by a layered topological sort of
    the graph; candidates on the same layer share the rank.

    Affirmations of equal strength are ordered by the weight of the votes
    opposing them, smaller first, then by the tiebreak key if given, then by
    the order of the candidates in the election.

    :param context: The election data to resolve.
    :param pairwin_scoring: A pairwise win scorer callable or name; gives the
        strength of the affirmations.
    :param tiebreak: A function of the winner and loser candidates of an
        affirmation returning a sort key, lower keys locked first.
    :param name: Name to report in results.
    '''
    family = 'Ranked Pairs'

    def __init__(self,
                 context: ElectionContext,
                 pairwin_scoring: Union[str, Callable] = 'winning_votes',
                 tiebreak: Optional[TieBreaker] = None,
                 name: Optional[str] = None,
                 ):
        self.tiebreak = tiebreak
        super().__init__(context, pairwin_scoring=pairwin_scoring, name=name)

    def compute(self) -> Result:
        pairwise = self.context.pairwise
        affirmations = self.affirmations(pairwise)
        locked = self._lock_pairs(affirmations, len(pairwise))
        layers = self._build_ranking(locked, len(pairwise))
        cands = pairwise.candidates
        return Result(
            self.name,
            [[cands[i] for i in layer] for layer in layers],
            stats={'affirmations': [
                {
                    'winner': cands[aff['winner']],
                    'loser': cands[aff['loser']],
                    'strength': aff['strength'],
                    'minority': aff['minority'],
                    'locked': aff['locked'],
                }
                for aff in affirmations
            ]},
        )

    def affirmations(self, pairwise: Pairwise) -> List[Dict[str, Any]]:
        '''List pairwise wins sorted in the order of locking.'''
        affirmations = [
            {
                'winner': i,
                'loser': j,
                'strength': self.pairwin_scoring(pairwise, i, j),
                'minority': pairwise.lose_matrix[i][j],
                'locked': False,
            }
            for i, j in pairwise.pairwise_wins()
        ]
        cands = pairwise.candidates
        if self.tiebreak is not None:
            affirmations.sort(key=lambda aff: self.tiebreak(
                cands[aff['winner']], cands[aff['loser']]
            ))
        affirmations.sort(key=lambda aff: (-aff['strength'], aff['minority']))
        return affirmations

    @classmethod
    def _lock_pairs(cls,
                    affirmations: List[Dict[str, Any]],
                    n: int,
                    ) -> List[Tuple[int, int]]:
        edges = [set() for i in range(n)]
        locked = []
        for aff in affirmations:
            winner, loser = aff['winner'], aff['loser']
            if cls._is_path(edges, loser, winner):
                logger.debug('skipping %s > %s: would create a cycle',
                             winner, loser)
            else:
                edges[winner].add(loser)
                aff['locked'] = True
                locked.append((winner, loser))
        logger.info('locked %d of %d affirmations',
                    len(locked), len(affirmations))
        return locked

    @staticmethod
    def _is_path(edges: List[set], source: int, sink: int) -> bool:
        visited = {source}
        stack = [source]
        while stack:
            node = stack.pop()
            if node == sink:
                return True
            for successor in edges[node]:
                if successor not in visited:
                    visited.add(successor)
                    stack.append(successor)
        return False

    @staticmethod
    def _build_ranking(locked: List[Tuple[int, int]],
                       n: int,
                       ) -> List[List[int]]:
        in_degree = [0] * n
        for winner, loser in locked:
            in_degree[loser] += 1
        remaining = set(range(n))
        layers = []
        while remaining:
            layer = [i for i in sorted(remaining) if in_degree[i] == 0]
            if not layer:
                raise VotingSystemError('cycle in ranked pairs lock graph')
            layers.append(layer)
            remaining.difference_update(layer)
            for winner, loser in locked:
                if winner in layer:
                    in_degree[loser] -= 1
        return layers


_PERMUTATIONS = {}


def permutations(n: int) -> Tuple[Tuple[int, ...], ...]:
    '''Return all permutations of n positions in lexicographic order.

    The table is computed once per n and kept in memory.
    '''
    try:
        return _PERMUTATIONS[n]
    except KeyError:
        logger.info('enumerating permutations of %d candidates', n)
        table = tuple(itertools.permutations(range(n)))
        _PERMUTATIONS[n] = table
        return table


class KemenyYoung(Method):
    '''Kemeny-Young Condorcet method.

    Kemeny-Young orders the candidates based on their pairwise comparison by
    constructing an objective function that measures the quality of any
    ordering, evaluating it for all permutations of the candidate set, and
    selecting the ordering with the maximum score.

    The objective function is given as the weight of satisfied pairwise
    orderings of candidates as given by the voters. If several orderings
    share the maximum score, the first of them (in lexicographic order of
    candidate positions) is chosen and a :class:`ComputationConflict` is
    recorded in the result.

    WARNING: Due to the enumeration of all candidate set permutations, this
    method is highly computationally expensive (``O(n!)`` in the number of
    candidates); the maximum number of candidates is therefore limited by the
    ``kemeny_young_max_candidates`` election option.
    '''
    family = 'Kemeny-Young'

    def candidate_ceiling(self) -> Optional[int]:
        return self.context.config.kemeny_young_max_candidates

    def compute(self) -> Result:
        pairwise = self.context.pairwise
        cands = pairwise.candidates
        ranking_scores = {}
        best_score = None
        best_variants = []
        for variant in permutations(len(pairwise)):
            score = self.score(variant, pairwise)
            ranking_scores[tuple(cands[i] for i in variant)] = score
            if best_score is None or score > best_score:
                best_score = score
                best_variants = [variant]
            elif score == best_score:
                best_variants.append(variant)
        warnings = []
        if len(best_variants) > 1:
            warnings.append(ComputationConflict(
                f'{len(best_variants)} rankings share the best score'
                f' {best_score}',
                count=len(best_variants),
                score=best_score,
            ))
        return Result(
            self.name,
            [cands[i] for i in best_variants[0]],
            stats={
                'best_score': best_score,
                'ranking_scores': ranking_scores,
            },
            warnings=warnings,
        )

    @staticmethod
    def score(variant: Tuple[int, ...], pairwise: Pairwise) -> Any:
        '''Compute the Kemeny-Young ordering score (objective function value).

        :param variant: The ordering of candidate positions to evaluate.
        :param pairwise: The pairwise tally.
        '''
        win = pairwise.win_matrix
        return sum(
            win[upper][lower]
            for i, upper in enumerate(variant)
                for lower in variant[i+1:]    # noqa: E131
        )
