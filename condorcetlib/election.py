'''Elections: candidates, votes and their results.

An :class:`Election` passes through three states:

-   ``'accepting_candidates'`` - candidates can be added and removed;
-   ``'accepting_votes'`` - entered by adding the first vote (or by
    :meth:`Election.close_candidates`); the candidate list is fixed from now
    on and votes can be added, removed or modified;
-   ``'results_computed'`` - entered by computing the pairwise tally or any
    result. Any change to the votes brings the election back to
    ``'accepting_votes'`` and makes all previously computed results stale.

Results are computed by resolution methods looked up by name in a method
registry (see :mod:`condorcetlib.system`); each method caches its result
until the votes change.
'''

import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, \
    Tuple, Union

import condorcetlib.pairwise
from condorcetlib.candidate import Candidate
from condorcetlib.config import ElectionConfig
from condorcetlib.evaluate.core import ElectionContext, StaticContext, \
    Method, Result, RankEntry, CapacityExceeded
from condorcetlib.pairwise import Pairwise
from condorcetlib.system import MethodRegistry, DEFAULT_REGISTRY
from condorcetlib.vote import Vote, InputInconsistency, RankingType, \
    clean_tags, format_ranking

logger = logging.getLogger(__name__)


ACCEPTING_CANDIDATES = 'accepting_candidates'
ACCEPTING_VOTES = 'accepting_votes'
RESULTS_COMPUTED = 'results_computed'

CONDORCET_BASIC = 'Condorcet Basic'

CandidateRef = Union[Candidate, str]
TagsType = Union[str, Iterable[str], None]


class StateViolation(Exception):
    '''An operation was requested in an election state that does not allow it.

    :param operation: Description of the refused operation.
    :param state: The current state of the election.
    :param reason: Additional explanation, if any.
    '''
    def __init__(self,
                 operation: str,
                 state: str,
                 reason: Optional[str] = None,
                 ):
        self.operation = operation
        self.state = state
        message = f'cannot {operation} in state {state!r}'
        if reason:
            message += f': {reason}'
        super().__init__(message)


class ElectionView(ElectionContext):
    '''The read-only face of an election passed to resolution methods.'''

    def __init__(self, election: 'Election'):
        self._election = election

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return self._election.candidates

    @property
    def pairwise(self) -> Pairwise:
        return self._election.get_pairwise()

    @property
    def config(self) -> ElectionConfig:
        return self._election.config

    @property
    def generation(self) -> int:
        return self._election.generation

    def votes(self) -> Iterable[Vote]:
        return self._election.iter_votes()


class Election:
    '''A single election: its candidates, votes and computed results.

    :param config: Election configuration. Defaults apply if not given.
    :param registry: Registry of resolution methods to look up method names
        in. Defaults to :data:`condorcetlib.system.DEFAULT_REGISTRY`.
    :param options: Individual configuration options overriding those of
        config; see :class:`condorcetlib.config.ElectionConfig`.
    '''
    def __init__(self,
                 config: Optional[ElectionConfig] = None,
                 registry: Optional[MethodRegistry] = None,
                 **options,
                 ):
        config = config if config is not None else ElectionConfig()
        self._config = config.replace(**options) if options else config
        self._registry = registry if registry is not None else DEFAULT_REGISTRY
        self._candidates = []
        self._next_key = 0
        self._votes = []
        self._state = ACCEPTING_CANDIDATES
        self._generation = 0
        self._pairwise = None
        self._methods = {}
        self._filtered_methods = {}
        self._view = ElectionView(self)

    def __repr__(self) -> str:
        return (
            f'<Election({len(self._candidates)} candidates,'
            f' {len(self._votes)} votes, {self._state})>'
        )

    @property
    def state(self) -> str:
        return self._state

    @property
    def generation(self) -> int:
        '''Number of changes to the votes (or configuration) so far.'''
        return self._generation

    @property
    def config(self) -> ElectionConfig:
        return self._config

    @property
    def registry(self) -> MethodRegistry:
        return self._registry

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return tuple(self._candidates)

    def configure(self, **options) -> ElectionConfig:
        '''Change configuration options; computed results become stale.

        :param options: Options to change; see
            :class:`condorcetlib.config.ElectionConfig`.
        '''
        self._config = self._config.replace(**options)
        self._methods.clear()
        self._invalidate('configuration changed')
        return self._config

    # Candidates

    def add_candidate(self, name: str) -> Candidate:
        '''Register a new candidate.

        :param name: Display name of the candidate, unique in the election.
        :raises StateViolation: If votes have already been added.
        :raises InputInconsistency: If the name is empty or taken.
        :raises CapacityExceeded: If the maximum number of candidates
            would be exceeded.
        '''
        self._require_state(ACCEPTING_CANDIDATES, 'add candidate')
        if not isinstance(name, str) or not name.strip():
            raise InputInconsistency('invalid candidate name', name)
        name = name.strip()
        if self._find_candidate(name) is not None:
            raise InputInconsistency('duplicate candidate name', name)
        maximum = self._config.max_candidates
        if maximum is not None and len(self._candidates) >= maximum:
            raise CapacityExceeded(
                'candidates', len(self._candidates) + 1,
                maximum=maximum, context='election'
            )
        candidate = Candidate(name, self._next_key)
        self._next_key += 1
        self._candidates.append(candidate)
        logger.debug('added candidate %r', candidate)
        return candidate

    def add_candidates(self, names: Iterable[str]) -> List[Candidate]:
        return [self.add_candidate(name) for name in names]

    def remove_candidate(self, candidate: CandidateRef) -> Candidate:
        '''Unregister a candidate.

        :param candidate: The candidate or its name.
        :raises StateViolation: If votes have already been added.
        :raises InputInconsistency: If the candidate is not registered.
        '''
        self._require_state(ACCEPTING_CANDIDATES, 'remove candidate')
        candidate = self.get_candidate(candidate)
        self._candidates.remove(candidate)
        logger.debug('removed candidate %r', candidate)
        return candidate

    def get_candidate(self, candidate: CandidateRef) -> Candidate:
        '''Return the registered candidate given by itself or by its name.

        :raises InputInconsistency: If there is no such candidate.
        '''
        if isinstance(candidate, Candidate):
            found = candidate if self.has_candidate(candidate) else None
        else:
            found = self._find_candidate(candidate)
        if found is None:
            raise InputInconsistency('unknown candidate', candidate)
        return found

    def has_candidate(self, candidate: CandidateRef) -> bool:
        if isinstance(candidate, Candidate):
            return any(cand is candidate for cand in self._candidates)
        return self._find_candidate(candidate) is not None

    def close_candidates(self) -> None:
        '''Fix the candidate list and start accepting votes.

        :raises StateViolation: If there are no candidates.
        '''
        if self._state != ACCEPTING_CANDIDATES:
            return
        if not self._candidates:
            raise StateViolation('accept votes', self._state, 'no candidates')
        self._state = ACCEPTING_VOTES
        logger.info('candidate list closed with %d candidates',
                    len(self._candidates))

    def _find_candidate(self, name: Any) -> Optional[Candidate]:
        if isinstance(name, str):
            name = name.strip()
        for cand in self._candidates:
            if cand.name == name:
                return cand
        return None

    # Votes

    def add_vote(self,
                 vote: Union[Vote, Iterable[Any]],
                 weight: int = 1,
                 tags: TagsType = None,
                 ) -> Vote:
        '''Register a vote.

        Closes the candidate list if it is still open.

        :param vote: A :class:`Vote` object or a ranking to create one from.
            Items of the ranking are candidates, candidate names or
            collections of those for candidates sharing a rank.
        :param weight: Weight of the vote if created from a ranking.
        :param tags: Tags of the vote if created from a ranking.
        :raises InputInconsistency: If the vote is malformed, ranks unknown
            candidates or is already registered.
        :raises StateViolation: If there are no candidates.
        :raises CapacityExceeded: If the maximum number of votes would be
            exceeded.
        '''
        if not self._candidates:
            raise StateViolation('add vote', self._state, 'no candidates')
        if not isinstance(vote, Vote):
            vote = Vote(self._resolve_ranking(vote), weight=weight, tags=tags)
        self.check_ranking(vote.ranking)
        if any(registered is vote for registered in self._votes):
            raise InputInconsistency('vote already registered', vote)
        maximum = self._config.max_votes
        if maximum is not None and len(self._votes) >= maximum:
            raise CapacityExceeded(
                'votes', len(self._votes) + 1,
                maximum=maximum, context='election'
            )
        self.close_candidates()
        vote.link(self)
        self._votes.append(vote)
        self._invalidate('vote added')
        return vote

    def add_votes(self, votes: Iterable[Union[Vote, Iterable[Any]]]
                  ) -> List[Vote]:
        return [self.add_vote(vote) for vote in votes]

    def remove_vote(self, vote: Vote) -> Vote:
        '''Unregister a vote.

        :raises InputInconsistency: If the vote is not registered.
        '''
        for i, registered in enumerate(self._votes):
            if registered is vote:
                del self._votes[i]
                vote.unlink(self)
                self._invalidate('vote removed')
                return vote
        raise InputInconsistency('vote not registered', vote)

    def remove_votes_by_tags(self,
                             tags: TagsType,
                             with_tags: bool = True,
                             ) -> List[Vote]:
        '''Unregister all votes having (or not having) any of the tags.

        :returns: The removed votes.
        '''
        removed = list(self.iter_votes(tags, with_tags=with_tags))
        for vote in removed:
            self.remove_vote(vote)
        return removed

    def iter_votes(self,
                   tags: TagsType = None,
                   with_tags: bool = True,
                   ) -> Iterator[Vote]:
        '''Iterate over the registered votes.

        :param tags: If given, filter votes by these tags.
        :param with_tags: If True, yield votes having any of the tags;
            if False, yield votes having none of them.
        '''
        predicate = _tag_predicate(tags, with_tags)
        return (vote for vote in list(self._votes) if predicate(vote))

    def get_votes(self,
                  tags: TagsType = None,
                  with_tags: bool = True,
                  ) -> List[Vote]:
        return list(self.iter_votes(tags, with_tags=with_tags))

    def count_votes(self,
                    tags: TagsType = None,
                    with_tags: bool = True,
                    ) -> int:
        return sum(1 for vote in self.iter_votes(tags, with_tags=with_tags))

    def sum_votes_weight(self,
                         tags: TagsType = None,
                         with_tags: bool = True,
                         ) -> int:
        '''Sum the weights of the votes; counts as if unweighted if disabled.'''
        return sum(
            self._view.vote_weight(vote)
            for vote in self.iter_votes(tags, with_tags=with_tags)
        )

    def check_ranking(self, ranking: RankingType) -> None:
        '''Check that the ranking only refers to candidates of this election.

        :raises InputInconsistency: If it does not.
        '''
        for group in ranking:
            for cand in group:
                if not self.has_candidate(cand):
                    raise InputInconsistency(
                        'vote references unknown candidate', cand
                    )

    def vote_changed(self, vote: Vote) -> None:
        '''Make results stale after a registered vote was modified.'''
        if any(registered is vote for registered in self._votes):
            logger.debug('vote changed: %s', format_ranking(vote.ranking))
            self._invalidate('vote modified')

    def _resolve_ranking(self, ranking: Iterable[Any]) -> List[Any]:
        if isinstance(ranking, (str, bytes)):
            raise InputInconsistency(
                'ranking must be a sequence of rank groups', ranking
            )
        resolved = []
        for item in ranking:
            if isinstance(item, (Candidate, str)):
                resolved.append(self.get_candidate(item))
            elif hasattr(item, '__iter__'):
                resolved.append([self.get_candidate(cand) for cand in item])
            else:
                raise InputInconsistency('not a candidate', item)
        return resolved

    # Results

    def get_pairwise(self) -> Pairwise:
        '''Return the pairwise tally of the current votes.

        :raises StateViolation: If there are no candidates or no votes.
        '''
        self._require_computable('compute pairwise')
        if self._pairwise is None:
            # Publish only the finished tally.
            self._pairwise = condorcetlib.pairwise.build(
                self._candidates,
                self._votes,
                implicit_ranking=self._config.implicit_ranking,
                weighted=self._config.vote_weight,
            )
        self._state = RESULTS_COMPUTED
        return self._pairwise

    def pairwise_comparison(self) -> Dict[Candidate, Dict[str, Any]]:
        '''Summarize pairwise wins, ties and losses of every candidate.'''
        return self.get_pairwise().comparison()

    def get_method(self,
                   method: Optional[str] = None,
                   tags: TagsType = None,
                   with_tags: bool = True,
                   ) -> Method:
        '''Return the resolution method object for this election.

        :param method: Name or alias of the method; the configured default
            method if not given.
        :param tags: If given, the method only counts the votes having (or,
            with ``with_tags=False``, not having) any of these tags.
        :param with_tags: Whether to count or skip the tagged votes.
        :raises UnknownMethod: If the method is not registered.
        :raises CapacityExceeded: If the method cannot resolve this number of
            candidates.
        '''
        if method is None:
            method = self._config.default_method
        entry = self._registry.get(method)
        if tags is None:
            if entry.name not in self._methods:
                self._methods[entry.name] = entry.build(self._view)
            return self._methods[entry.name]
        key = (entry.name, frozenset(clean_tags(tags)), bool(with_tags))
        if key not in self._filtered_methods:
            # Votes are fixed until the next invalidation drops the method.
            context = StaticContext(
                self._candidates,
                self.iter_votes(key[1], with_tags=key[2]),
                self._config,
            )
            logger.debug('resolving %s over votes filtered by tags %s',
                         entry.name, sorted(key[1]))
            self._filtered_methods[key] = entry.build(context)
        return self._filtered_methods[key]

    def get_result(self,
                   method: Optional[str] = None,
                   tags: TagsType = None,
                   with_tags: bool = True,
                   ) -> Result:
        '''Compute (or return the cached) result of a method.

        :param method: Name or alias of the method; the configured default
            method if not given.
        :param tags: If given, only count the votes filtered by these tags.
        :param with_tags: Whether to count the votes having any of the tags
            (True) or the votes having none of them (False).
        :raises StateViolation: If there are no candidates or no votes.
        :raises UnknownMethod: If the method is not registered.
        :raises CapacityExceeded: If the method cannot resolve this number of
            candidates.
        '''
        self._require_computable('compute results')
        result = self.get_method(method, tags, with_tags).get_result()
        self._state = RESULTS_COMPUTED
        return result

    def get_result_stats(self,
                         method: Optional[str] = None,
                         tags: TagsType = None,
                         with_tags: bool = True,
                         ) -> Dict[str, Any]:
        '''Return the statistics of a method's result.'''
        self._require_computable('compute results')
        stats = self.get_method(method, tags, with_tags).get_stats()
        self._state = RESULTS_COMPUTED
        return stats

    def get_winner(self,
                   method: Optional[str] = None,
                   tags: TagsType = None,
                   with_tags: bool = True,
                   ) -> Optional[RankEntry]:
        '''Return the winner: the Condorcet winner or a method's first rank.

        :param method: Name of the method; if not given, the Condorcet winner
            is returned (None if there is none).
        :param tags: If given, only count the votes filtered by these tags.
        :param with_tags: Whether to count or skip the tagged votes.
        '''
        return self.get_result(
            method if method is not None else CONDORCET_BASIC,
            tags, with_tags
        ).winner

    def get_loser(self,
                  method: Optional[str] = None,
                  tags: TagsType = None,
                  with_tags: bool = True,
                  ) -> Optional[RankEntry]:
        '''Return the loser: the Condorcet loser or a method's last rank.

        :param method: Name of the method; if not given, the Condorcet loser
            is returned (None if there is none).
        :param tags: If given, only count the votes filtered by these tags.
        :param with_tags: Whether to count or skip the tagged votes.
        '''
        if method is None:
            return self.get_result_stats(
                CONDORCET_BASIC, tags, with_tags
            )['loser']
        return self.get_result(method, tags, with_tags).loser

    # State handling

    def _require_state(self, state: str, operation: str) -> None:
        if self._state != state:
            raise StateViolation(operation, self._state)

    def _require_computable(self, operation: str) -> None:
        if not self._candidates:
            raise StateViolation(operation, self._state, 'no candidates')
        if not self._votes:
            raise StateViolation(operation, self._state, 'no votes')

    def _invalidate(self, reason: str) -> None:
        self._generation += 1
        self._pairwise = None
        self._filtered_methods.clear()
        if self._state == RESULTS_COMPUTED:
            self._state = ACCEPTING_VOTES
        logger.debug('%s, moving to generation %d', reason, self._generation)


def _tag_predicate(tags: TagsType, with_tags: bool) -> Callable[[Vote], bool]:
    if tags is None:
        return lambda vote: True
    tags = frozenset(clean_tags(tags))
    if with_tags:
        return lambda vote: vote.has_any_tag(tags)
    else:
        return lambda vote: not vote.has_any_tag(tags)
