'''Quota functions for transferable vote.

A quota function takes the total weight of votes and the number of seats to
fill and returns the vote weight required to secure a seat. The unrounded
quota functions return fractions to retain exact values.

All supported quota functions are assembled in the `QUOTAS` dictionary keyed
by their name. `get()` retrieves from this dictionary by string key;
`construct()` also accepts callables and passes them through.
'''

from fractions import Fraction
from numbers import Number

import condorcetlib.component.core


QUOTAS = {}


quota_mark, get, construct = condorcetlib.component.core.register_functions(
    QUOTAS, 'quota'
)


@quota_mark
def droop(votes: Number, seats: int) -> int:
    '''Droop quota, the most widely used one: ``floor(votes / (seats + 1)) + 1``.

    The smallest integer quota guaranteeing the number of candidates reaching
    it will not be higher than the number of seats.
    '''
    return int(Fraction(votes) / (seats + 1)) + 1


@quota_mark
def hare(votes: Number, seats: int) -> Fraction:
    '''Hare quota, the most basic one. Unrounded.'''
    return Fraction(votes) / seats


@quota_mark
def hagenbach_bischoff(votes: Number, seats: int) -> Fraction:
    '''Hagenbach-Bischoff quota, the unrounded Droop quota without the one.'''
    return Fraction(votes) / (seats + 1)
