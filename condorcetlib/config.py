'''Election configuration.

An :class:`ElectionConfig` holds the options that influence how votes are
tallied and how the resolution methods behave. It is immutable; use
:meth:`ElectionConfig.replace` to derive a modified copy.
'''

from typing import Any, Dict, Optional

from condorcetlib.vote import IMPLICIT_LAST, check_policy


DEFAULT_METHOD = 'Schulze Winning'
DEFAULT_STV_SEATS = 2
DEFAULT_KEMENY_YOUNG_MAX_CANDIDATES = 8


class ElectionConfig:
    '''Options of an election.

    :param implicit_ranking: Policy for candidates a vote does not rank:
        ``'implicit_last'`` ranks them jointly last, ``'excluded'`` makes
        the vote express no preference about them.
    :param vote_weight: Whether vote weights are taken into account. If
        False, every vote counts as one.
    :param stv_seats: Number of seats to fill by Single Transferable Vote.
    :param kemeny_young_max_candidates: Maximum number of candidates
        Kemeny-Young accepts; it enumerates all their permutations.
    :param max_candidates: Maximum number of candidates the election accepts,
        None for no limit.
    :param max_votes: Maximum number of votes the election accepts, None for
        no limit.
    :param default_method: Name of the method used when none is given.
    '''
    __slots__ = (
        '_implicit_ranking', '_vote_weight', '_stv_seats',
        '_kemeny_young_max_candidates', '_max_candidates', '_max_votes',
        '_default_method',
    )

    def __init__(self,
                 implicit_ranking: str = IMPLICIT_LAST,
                 vote_weight: bool = False,
                 stv_seats: int = DEFAULT_STV_SEATS,
                 kemeny_young_max_candidates: int = (
                     DEFAULT_KEMENY_YOUNG_MAX_CANDIDATES
                 ),
                 max_candidates: Optional[int] = None,
                 max_votes: Optional[int] = None,
                 default_method: str = DEFAULT_METHOD,
                 ):
        values = {
            'implicit_ranking': check_policy(implicit_ranking),
            'vote_weight': bool(vote_weight),
            'stv_seats': _positive('stv_seats', stv_seats),
            'kemeny_young_max_candidates': _positive(
                'kemeny_young_max_candidates', kemeny_young_max_candidates
            ),
            'max_candidates': _positive_or_none(
                'max_candidates', max_candidates
            ),
            'max_votes': _positive_or_none('max_votes', max_votes),
            'default_method': str(default_method),
        }
        for name, value in values.items():
            object.__setattr__(self, '_' + name, value)

    @property
    def implicit_ranking(self) -> str:
        return self._implicit_ranking

    @property
    def vote_weight(self) -> bool:
        return self._vote_weight

    @property
    def stv_seats(self) -> int:
        return self._stv_seats

    @property
    def kemeny_young_max_candidates(self) -> int:
        return self._kemeny_young_max_candidates

    @property
    def max_candidates(self) -> Optional[int]:
        return self._max_candidates

    @property
    def max_votes(self) -> Optional[int]:
        return self._max_votes

    @property
    def default_method(self) -> str:
        return self._default_method

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError('election configuration is immutable')

    def __delattr__(self, name: str) -> None:
        raise AttributeError('election configuration is immutable')

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ElectionConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash(tuple(self.to_dict().values()))

    def __repr__(self) -> str:
        args = ', '.join(f'{k}={v!r}' for k, v in self.to_dict().items())
        return f'ElectionConfig({args})'

    def to_dict(self) -> Dict[str, Any]:
        return {slot[1:]: getattr(self, slot) for slot in self.__slots__}

    def replace(self, **changes) -> 'ElectionConfig':
        '''Return a copy of the configuration with some options changed.

        :raises TypeError: If an unknown option is given.
        '''
        values = self.to_dict()
        unknown = set(changes) - set(values)
        if unknown:
            raise TypeError(f'unknown election options: {sorted(unknown)}')
        values.update(changes)
        return ElectionConfig(**values)


def _positive(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f'{name} must be a positive integer, got {value!r}')
    return value


def _positive_or_none(name: str, value: Any) -> Optional[int]:
    return None if value is None else _positive(name, value)
