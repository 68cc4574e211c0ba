'''Candidate objects.

A candidate has a stable identity, an opaque integer key allocated by the
election when it is registered, and a display name. All computations compare
candidates by identity; the name is only used for presentation and for
rejecting duplicate registrations.
'''

from __future__ import annotations

from typing import Any, Iterable, List


class Candidate:
    '''A candidate registered in an election.

    Instances are immutable. Equality and hashing are identity-based, so two
    candidates with equal names are still different candidates (the election
    refuses to register such a pair in the first place).

    :param name: Display name of the candidate.
    :param key: Opaque key allocated at registration. Only meaningful
        within the election that allocated it.
    '''
    __slots__ = ('_name', '_key')

    def __init__(self, name: str, key: int):
        object.__setattr__(self, '_name', name)
        object.__setattr__(self, '_key', key)

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> int:
        return self._key

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f'<Candidate({self._name},{self._key})>'


def names(candidates: Iterable[Candidate]) -> List[str]:
    '''Return display names of the given candidates, in order.'''
    return [cand.name for cand in candidates]
