'''The pairwise tally engine.

All Condorcet methods work with pairwise comparisons between candidates:
how much vote weight ranks one candidate before another, ranks them equally,
or ranks the other one first. :func:`build` computes these three counts for
every ordered pair of candidates from the votes and returns an immutable
:class:`Pairwise` object which the resolution methods read.

For any two distinct candidates ``a`` and ``b``, the matrix satisfies
``win(a, b) == lose(b, a)`` and ``null(a, b) == null(b, a)``. Under the
implicit-last ranking policy, ``win + null + lose`` equals the total weight
of the votes for every pair; under the excluded policy, it equals the weight
of the votes ranking both candidates.
'''

import logging
from typing import Dict, Iterable, List, Sequence, Tuple
from numbers import Number

from condorcetlib.candidate import Candidate
from condorcetlib.vote import Vote, InputInconsistency, IMPLICIT_LAST, \
    check_policy

logger = logging.getLogger(__name__)

Matrix = Tuple[Tuple[Number, ...], ...]


class Pairwise:
    '''Pairwise comparison counts between all candidates of an election.

    Use :func:`build` to construct it from votes. The matrices are indexed
    by candidate positions in :attr:`candidates`.

    :param candidates: Candidates in election order.
    :param win_matrix: ``win_matrix[i][j]`` is the vote weight ranking
        candidate i before candidate j.
    :param null_matrix: ``null_matrix[i][j]`` is the vote weight ranking
        candidates i and j equally.
    :param lose_matrix: ``lose_matrix[i][j]`` is the vote weight ranking
        candidate j before candidate i.
    :param total_weight: Total weight of the votes tallied.
    '''
    def __init__(self,
                 candidates: Sequence[Candidate],
                 win_matrix: List[List[Number]],
                 null_matrix: List[List[Number]],
                 lose_matrix: List[List[Number]],
                 total_weight: Number,
                 ):
        self.candidates = tuple(candidates)
        self.win_matrix = _freeze(win_matrix)
        self.null_matrix = _freeze(null_matrix)
        self.lose_matrix = _freeze(lose_matrix)
        self.total_weight = total_weight
        self._index = {cand: i for i, cand in enumerate(self.candidates)}

    def __len__(self) -> int:
        return len(self.candidates)

    def __contains__(self, candidate: Candidate) -> bool:
        return candidate in self._index

    def index(self, candidate: Candidate) -> int:
        '''Return the matrix position of a candidate.

        :raises InputInconsistency: If the candidate is not tallied.
        '''
        try:
            return self._index[candidate]
        except KeyError:
            raise InputInconsistency('unknown candidate', candidate)

    def win(self, cand1: Candidate, cand2: Candidate) -> Number:
        return self.win_matrix[self.index(cand1)][self.index(cand2)]

    def null(self, cand1: Candidate, cand2: Candidate) -> Number:
        return self.null_matrix[self.index(cand1)][self.index(cand2)]

    def lose(self, cand1: Candidate, cand2: Candidate) -> Number:
        return self.lose_matrix[self.index(cand1)][self.index(cand2)]

    def margin(self, cand1: Candidate, cand2: Candidate) -> Number:
        '''Win minus lose count; positive if cand1 beats cand2.'''
        i, j = self.index(cand1), self.index(cand2)
        return self.win_matrix[i][j] - self.lose_matrix[i][j]

    def beats(self, cand1: Candidate, cand2: Candidate) -> bool:
        '''Whether cand1 is ranked before cand2 by more weight than after.'''
        return self.margin(cand1, cand2) > 0

    def pairs(self) -> Iterable[Tuple[int, int]]:
        '''Iterate over all ordered pairs of distinct candidate positions.'''
        n = len(self.candidates)
        for i in range(n):
            for j in range(n):
                if i != j:
                    yield i, j

    def pairwise_wins(self) -> List[Tuple[int, int]]:
        '''Return position pairs (i, j) where i beats j pairwise.'''
        return [
            (i, j) for i, j in self.pairs()
            if self.win_matrix[i][j] > self.lose_matrix[i][j]
        ]

    def comparison(self) -> Dict[Candidate, Dict[str, Number]]:
        '''Summarize pairwise results for each candidate.

        :returns: A dictionary mapping each candidate to a dictionary with
            the number of pairwise ``win``s, ``null``s (ties) and ``lose``s,
            the ``balance`` (wins minus losses) and the ``worst_defeat``
            (largest lose count among the lost pairs, zero if none).
        '''
        summary = {}
        for i, cand in enumerate(self.candidates):
            counts = {'win': 0, 'null': 0, 'lose': 0, 'worst_defeat': 0}
            for j in range(len(self.candidates)):
                if i == j:
                    continue
                win, lose = self.win_matrix[i][j], self.lose_matrix[i][j]
                if win > lose:
                    counts['win'] += 1
                elif win == lose:
                    counts['null'] += 1
                else:
                    counts['lose'] += 1
                    counts['worst_defeat'] = max(counts['worst_defeat'], lose)
            counts['balance'] = counts['win'] - counts['lose']
            summary[cand] = counts
        return summary

    def to_dict(self) -> Dict[Candidate, Dict[str, Dict[Candidate, Number]]]:
        '''Export the counts as nested dictionaries.

        :returns: ``{candidate: {'win': {other: count}, 'null': {...},
            'lose': {...}}}`` for all candidates and all others.
        '''
        exported = {}
        for i, cand in enumerate(self.candidates):
            exported[cand] = {
                mode: {
                    other: matrix[i][j]
                    for j, other in enumerate(self.candidates) if i != j
                }
                for mode, matrix in (
                    ('win', self.win_matrix),
                    ('null', self.null_matrix),
                    ('lose', self.lose_matrix),
                )
            }
        return exported

    def invariant_violations(self) -> List[Tuple[Candidate, Candidate]]:
        '''Return candidate pairs for which the matrices are not symmetric.

        Checks ``win(a, b) == lose(b, a)`` and ``null(a, b) == null(b, a)``.
        '''
        return [
            (self.candidates[i], self.candidates[j])
            for i, j in self.pairs()
            if (self.win_matrix[i][j] != self.lose_matrix[j][i]
                or self.null_matrix[i][j] != self.null_matrix[j][i])
        ]


def build(candidates: Sequence[Candidate],
          votes: Iterable[Vote],
          implicit_ranking: str = IMPLICIT_LAST,
          weighted: bool = False,
          ) -> Pairwise:
    '''Tally pairwise comparisons from the votes.

    :param candidates: Candidates of the election, in order.
    :param votes: Votes to tally.
    :param implicit_ranking: What to do with candidates a vote does not rank;
        ``'implicit_last'`` ranks them jointly last, ``'excluded'`` leaves
        the pairs with them untouched by the vote.
    :param weighted: Whether to use vote weights; if False, every vote
        counts as one.
    :raises InputInconsistency: If a vote ranks a candidate not in the list.
    '''
    implicit_last = check_policy(implicit_ranking) == IMPLICIT_LAST
    index = {cand: i for i, cand in enumerate(candidates)}
    n = len(index)
    win = [[0] * n for i in range(n)]
    null = [[0] * n for i in range(n)]
    lose = [[0] * n for i in range(n)]
    total_weight = 0
    n_votes = 0
    for vote in votes:
        weight = vote.weight if weighted else 1
        groups = []
        present = set()
        for group in vote.ranking:
            try:
                positions = [index[cand] for cand in group]
            except KeyError as err:
                raise InputInconsistency(
                    'vote references unknown candidate', err.args[0]
                )
            groups.append(positions)
            present.update(positions)
        if implicit_last and len(present) < n:
            groups.append([i for i in range(n) if i not in present])
        for group_i, group in enumerate(groups):
            for upper in group:
                for tied in group:
                    if tied != upper:
                        null[upper][tied] += weight
                for lower_group in groups[group_i+1:]:
                    for lower in lower_group:
                        win[upper][lower] += weight
                        lose[lower][upper] += weight
        total_weight += weight
        n_votes += 1
    logger.info('tallied %d votes with total weight %s over %d candidates',
                n_votes, total_weight, n)
    return Pairwise(candidates, win, null, lose, total_weight)


def _freeze(matrix: List[List[Number]]) -> Matrix:
    return tuple(tuple(row) for row in matrix)
