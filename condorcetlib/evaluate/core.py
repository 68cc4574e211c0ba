'''General resolution method machinery.

Resolution methods (subclasses of :class:`Method`) compute a :class:`Result`
from an :class:`ElectionContext`, a read-only view of the election data:
its candidates, the pairwise tally, the votes and the configuration.
The result is cached and only recomputed when the election generation changes
(i.e. when votes were added, removed or modified).
'''

from __future__ import annotations

import abc
import collections.abc
import logging
import types
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, \
    Union, Collection

import condorcetlib.pairwise
from condorcetlib.candidate import Candidate
from condorcetlib.config import ElectionConfig
from condorcetlib.pairwise import Pairwise
from condorcetlib.vote import Vote

logger = logging.getLogger(__name__)


class VotingSystemError(Exception):
    '''A voting system with a valid setup ended up in an unresolvable state.'''
    pass


class CapacityExceeded(Exception):
    '''The election is too large or too small for the requested operation.

    Raised when a method is asked to resolve a number of candidates it does
    not support, or when the configured maximum number of candidates or votes
    of an election would be exceeded.

    :param what: What is counted (e.g. ``'candidates'``).
    :param count: The offending count.
    :param minimum: Minimum allowed count, if any.
    :param maximum: Maximum allowed count, if any.
    :param context: Name of the method or object imposing the limit.
    '''
    def __init__(self,
                 what: str,
                 count: int,
                 minimum: Optional[int] = None,
                 maximum: Optional[int] = None,
                 context: Optional[str] = None,
                 ):
        self.what = what
        self.count = count
        self.minimum = minimum
        self.maximum = maximum
        limits = []
        if minimum is not None:
            limits.append(f'at least {minimum}')
        if maximum is not None:
            limits.append(f'at most {maximum}')
        prefix = f'{context} ' if context else ''
        super().__init__(
            f'{prefix}requires {" and ".join(limits)} {what}, got {count}'
        )


class ComputationConflict(UserWarning):
    '''A method had to choose between several equally valid outcomes.

    Never raised; recorded in :attr:`Result.warnings` instead.

    :param message: Description of the conflict.
    :param details: Method-specific values describing the conflict.
    '''
    def __init__(self, message: str, **details):
        self.details = details
        super().__init__(message)


class Tie(frozenset):
    '''Candidates tied at a rank.

    This object, a subclass of ``frozenset``, is produced by methods that
    cannot distinguish between some candidates, for example Copeland when two
    candidates have an equal score.
    '''
    def __repr__(self) -> str:
        return 'Tie({' + ', '.join(sorted(str(cand) for cand in self)) + '})'

    @staticmethod
    def any(result: Iterable[Union[Candidate, Tie]]) -> bool:
        '''Return True if there is any tie in the list, False otherwise.'''
        return any(isinstance(item, Tie) for item in result)


RankEntry = Union[Candidate, Tie]


def rank_entry(entry: Union[Candidate, Collection[Candidate]]) -> RankEntry:
    '''Convert a candidate or a group of candidates to a rank entry.

    A group with a single member is unwrapped to the candidate itself.
    '''
    if isinstance(entry, Candidate):
        return entry
    members = frozenset(entry)
    if not members:
        raise VotingSystemError('empty rank in result')
    elif len(members) == 1:
        return next(iter(members))
    else:
        return Tie(members)


class Result(collections.abc.Mapping):
    '''A ranking computed by a resolution method.

    A read-only mapping of ranks (contiguous integers from 1) to a candidate
    or a :class:`Tie` of candidates sharing the rank. Two results are equal
    if their rankings are equal.

    :param method: Name of the method that computed the result.
    :param ranking: Ranks in order, best first, each a candidate or a
        collection of tied candidates.
    :param stats: Method-specific statistics.
    :param warnings: Non-fatal conflicts encountered during the computation.
    '''
    def __init__(self,
                 method: str,
                 ranking: Iterable[Union[Candidate, Collection[Candidate]]],
                 stats: Optional[Dict[str, Any]] = None,
                 warnings: Iterable[ComputationConflict] = (),
                 ):
        self.method = method
        self._ranking = {
            rank: rank_entry(entry)
            for rank, entry in enumerate(ranking, start=1)
        }
        self.stats = stats if stats is not None else {}
        self.warnings = tuple(warnings)

    def __getitem__(self, rank: int) -> RankEntry:
        return self._ranking[rank]

    def __iter__(self):
        return iter(self._ranking)

    def __len__(self) -> int:
        return len(self._ranking)

    def __repr__(self) -> str:
        return f'<Result({self.method}: {self.to_names()})>'

    @property
    def ranking(self) -> Mapping[int, RankEntry]:
        return types.MappingProxyType(self._ranking)

    @property
    def winner(self) -> Optional[RankEntry]:
        '''The first rank, None if the ranking is empty.'''
        return self._ranking.get(1)

    @property
    def loser(self) -> Optional[RankEntry]:
        '''The last rank, None if the ranking is empty.'''
        return self._ranking.get(len(self._ranking))

    def to_list(self) -> List[RankEntry]:
        return list(self._ranking.values())

    def to_names(self) -> List[Union[str, List[str]]]:
        '''Return the ranking with candidate names; ties as sorted name lists.'''
        return [
            sorted(cand.name for cand in entry) if isinstance(entry, Tie)
            else entry.name
            for entry in self._ranking.values()
        ]

    def candidates(self) -> List[Candidate]:
        '''Return all candidates in the ranking, in rank order.'''
        ranked = []
        for entry in self._ranking.values():
            if isinstance(entry, Tie):
                ranked.extend(sorted(entry, key=lambda cand: cand.key))
            else:
                ranked.append(entry)
        return ranked


class ElectionContext(metaclass=abc.ABCMeta):
    '''A read-only view of election data for resolution methods.'''

    @property
    @abc.abstractmethod
    def candidates(self) -> Tuple[Candidate, ...]:
        raise NotImplementedError

    @property
    def n_candidates(self) -> int:
        return len(self.candidates)

    @property
    @abc.abstractmethod
    def pairwise(self) -> Pairwise:
        '''The pairwise tally of the current votes.'''
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def config(self) -> ElectionConfig:
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def generation(self) -> int:
        '''A counter that changes whenever the votes change.'''
        raise NotImplementedError

    @abc.abstractmethod
    def votes(self) -> Iterable[Vote]:
        '''Iterate over the votes counted in the election.'''
        raise NotImplementedError

    def vote_weight(self, vote: Vote) -> int:
        '''Return the effective weight of a vote under the configuration.'''
        return vote.weight if self.config.vote_weight else 1


class StaticContext(ElectionContext):
    '''A fixed set of candidates and votes to run methods on directly.

    The pairwise tally is computed on first access; the generation never
    changes.

    :param candidates: Candidates in order.
    :param votes: Votes ranking the candidates.
    :param config: Election configuration; defaults apply if not given.
    '''
    def __init__(self,
                 candidates: Iterable[Candidate],
                 votes: Iterable[Vote],
                 config: Optional[ElectionConfig] = None,
                 ):
        self._candidates = tuple(candidates)
        self._votes = tuple(votes)
        self._config = config if config is not None else ElectionConfig()
        self._pairwise = None

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return self._candidates

    @property
    def pairwise(self) -> Pairwise:
        if self._pairwise is None:
            self._pairwise = condorcetlib.pairwise.build(
                self._candidates,
                self._votes,
                implicit_ranking=self._config.implicit_ranking,
                weighted=self._config.vote_weight,
            )
        return self._pairwise

    @property
    def config(self) -> ElectionConfig:
        return self._config

    @property
    def generation(self) -> int:
        return 0

    def votes(self) -> Iterable[Vote]:
        return iter(self._votes)


class Method(metaclass=abc.ABCMeta):
    '''A resolution method computing a ranking of the election candidates.

    Methods are constructed for an election context and compute their result
    lazily. The result is cached along with the context generation it was
    computed for, so repeated calls to :meth:`get_result` are cheap and
    always return an identical ranking until the votes change.

    :param context: The election data to resolve.
    :param name: Name to report in results. Defaults to the name derived
        from the method family and variant.
    :raises CapacityExceeded: If the number of candidates is outside the
        range supported by the method.
    '''
    family: Optional[str] = None
    min_candidates: int = 2
    max_candidates: Optional[int] = None

    def __init__(self, context: ElectionContext, name: Optional[str] = None):
        self.context = context
        self.name = name if name is not None else self.default_name()
        self._cache = None
        self.check_capacity()

    def __repr__(self) -> str:
        return f'<{type(self).__name__}({self.name})>'

    def default_name(self) -> str:
        return self.family if self.family else type(self).__name__

    def candidate_ceiling(self) -> Optional[int]:
        '''Maximum number of candidates the method can resolve.'''
        return self.max_candidates

    def check_capacity(self) -> None:
        n_candidates = self.context.n_candidates
        ceiling = self.candidate_ceiling()
        if (n_candidates < self.min_candidates
                or (ceiling is not None and n_candidates > ceiling)):
            raise CapacityExceeded(
                'candidates', n_candidates,
                minimum=self.min_candidates, maximum=ceiling,
                context=self.name
            )

    def get_result(self) -> Result:
        '''Return the result for the current state of the election.'''
        generation = self.context.generation
        if self._cache is None or self._cache[0] != generation:
            self.check_capacity()
            logger.debug('computing %s for generation %s',
                         self.name, generation)
            result = self.compute()
            for warning in result.warnings:
                logger.warning('%s: %s', self.name, warning)
            self._cache = (generation, result)
        return self._cache[1]

    def get_stats(self) -> Dict[str, Any]:
        '''Return the statistics attached to the current result.'''
        return self.get_result().stats

    def is_current(self) -> bool:
        '''Whether a result for the current election generation is cached.'''
        return (
            self._cache is not None
            and self._cache[0] == self.context.generation
        )

    @abc.abstractmethod
    def compute(self) -> Result:
        '''Compute the result from scratch.'''
        raise NotImplementedError
