'''Functions to score magnitudes of wins between pairs of candidates.

A pairwise win scorer takes the pairwise tally and two candidate positions
``i`` and ``j`` and returns the strength of the (potential) victory of
candidate i over candidate j. Methods that come in several variants - Minimax,
Schulze and Ranked Pairs - share one algorithm and take the scorer as
a parameter:

-   Schulze and Ranked Pairs use ``scorer(i, j)`` as the strength of the
    edge from i to j.
-   Minimax uses ``scorer(j, i)`` as the size of the defeat of i by j and
    ranks by the worst such defeat.
'''

from typing import Callable
from numbers import Number

import condorcetlib.component.core
from condorcetlib.pairwise import Pairwise


PairwinScorer = Callable[[Pairwise, int, int], Number]

PAIRWIN_SCORERS = {}


pairwin_scorer_mark, get, construct = \
    condorcetlib.component.core.register_functions(
        PAIRWIN_SCORERS, 'pairwise win scorer'
    )


@pairwin_scorer_mark
def winning_votes(pairwise: Pairwise, i: int, j: int) -> Number:
    '''Winning votes pairwise win scorer. Counts wins fully, zero otherwise.

    This is the most common pairwise win scorer. When the weight of votes
    ranking i before j is larger than the reverse, returns all that weight
    as the win strength.
    '''
    win = pairwise.win_matrix[i][j]
    return win if win > pairwise.lose_matrix[i][j] else 0


@pairwin_scorer_mark
def margins(pairwise: Pairwise, i: int, j: int) -> Number:
    '''Margins pairwise win scorer. Takes the difference from reverse option.

    Also called margin of victory or defeat strength. Negative for pairwise
    losses.
    '''
    return pairwise.win_matrix[i][j] - pairwise.lose_matrix[i][j]


@pairwin_scorer_mark
def pairwise_opposition(pairwise: Pairwise, i: int, j: int) -> Number:
    '''Pairwise opposition win scorer. Returns the win count unchanged.

    Disregards the weight of votes preferring the opposite ranking. Methods
    using it are generally not Condorcet-consistent.
    '''
    return pairwise.win_matrix[i][j]
