'''Various utility functions for other modules of condorcetlib.

There should normally be no need to use these functions directly.
'''

import itertools
import operator
from typing import Any, Dict, List, Tuple
from numbers import Number


def descending_dict(d: Dict[Any, Number]) -> Dict[Any, Number]:
    return dict(sorted(d.items(), key=operator.itemgetter(1), reverse=True))


def sorted_scores(scores: Dict[Any, Number],
                  descending: bool = True,
                  ) -> List[Tuple[Any, Number]]:
    '''Return score items sorted by value, keeping input order among equals.'''
    return list(sorted(
        scores.items(),
        key=operator.itemgetter(1),
        reverse=descending
    ))


def group_by_score(scores: Dict[Any, Number],
                   descending: bool = True,
                   ) -> List[List[Any]]:
    '''Group keys with equal scores into ranks.

    :param scores: Mapping of candidates to their scores.
    :param descending: Whether a higher score means a better rank.
    :returns: A list of ranks, best first, each a list of candidates with
        an equal score in their input order.
    '''
    return [
        [cand for cand, score in group]
        for _, group in itertools.groupby(
            sorted_scores(scores, descending=descending),
            key=operator.itemgetter(1)
        )
    ]
