'''Ranked votes (ballots) and their validation.

A vote ranks some of the candidates of an election. It is represented as
a tuple of *rank groups*, each a non-empty frozen set of candidates that the
voter ranked equally; earlier groups are preferred to later ones. Unranked
candidates are handled by the election's implicit ranking policy:

-   ``'implicit_last'`` - all candidates missing from the vote are considered
    to be tied together below all ranked candidates.
-   ``'excluded'`` - the vote expresses no preference between a missing
    candidate and any other candidate.

Votes carry a positive integer weight (only effective if the election has
vote weighting enabled), an arbitrary set of string tags, and an append-only
history of their rankings with strictly increasing timestamps.

If a vote is malformed or refers to candidates the election does not know,
:class:`InputInconsistency` is raised and nothing is changed.
'''

from __future__ import annotations

import math
import time
import weakref
from typing import Any, Iterable, List, Optional, Tuple, FrozenSet, Union

from condorcetlib.candidate import Candidate


IMPLICIT_LAST = 'implicit_last'
EXCLUDED = 'excluded'
IMPLICIT_RANKING_POLICIES = (IMPLICIT_LAST, EXCLUDED)

RankGroup = FrozenSet[Candidate]
RankingType = Tuple[RankGroup, ...]
RankingInputType = Iterable[Union[Candidate, Iterable[Candidate]]]


class InputInconsistency(Exception):
    '''A vote or candidate definition is inconsistent with the election.

    E.g. a vote ranking a candidate twice, an empty rank group, a candidate
    not registered in the election or a duplicate candidate name.

    :param message: Description of the inconsistency.
    :param offending: The offending value, if any.
    '''
    def __init__(self, message: str, offending: Any = None):
        self.offending = offending
        if offending is not None:
            message += f': {offending!r}'
        super().__init__(message)


def normalize_ranking(ranking: RankingInputType) -> RankingType:
    '''Convert a ranking to the canonical tuple of frozensets form.

    Each item of the input is either a single candidate or an iterable of
    candidates sharing the rank.

    :param ranking: Ranking to normalize.
    :raises InputInconsistency: If a rank group is empty, contains something
        that is not a candidate, or a candidate is ranked more than once.
    '''
    if isinstance(ranking, (str, bytes)):
        raise InputInconsistency('ranking must be a sequence of rank groups',
                                 ranking)
    groups = []
    seen = set()
    for item in ranking:
        if isinstance(item, Candidate):
            group = frozenset([item])
        elif isinstance(item, (str, bytes)) or not hasattr(item, '__iter__'):
            raise InputInconsistency('not a candidate', item)
        else:
            group = frozenset(item)
        if not group:
            raise InputInconsistency('empty rank group in ranking', ranking)
        for cand in group:
            if not isinstance(cand, Candidate):
                raise InputInconsistency('not a candidate', cand)
            if cand in seen:
                raise InputInconsistency('duplicated candidate', cand)
            seen.add(cand)
        groups.append(group)
    return tuple(groups)


def check_weight(weight: Any) -> int:
    '''Check that the vote weight is a positive integer and return it.'''
    if isinstance(weight, bool) or not isinstance(weight, int) or weight < 1:
        raise InputInconsistency('vote weight must be a positive integer',
                                 weight)
    return weight


def check_policy(policy: str) -> str:
    '''Check that the implicit ranking policy name is known.'''
    if policy not in IMPLICIT_RANKING_POLICIES:
        raise ValueError(
            f'unknown implicit ranking policy: {policy!r},'
            f' must be one of {IMPLICIT_RANKING_POLICIES}'
        )
    return policy


class Vote:
    '''A ranked vote (ballot).

    :param ranking: Ranking of candidates. Each item is a candidate or an
        iterable of candidates tied at that rank.
    :param weight: Vote weight, a positive integer. Only taken into account
        by elections that allow vote weighting.
    :param tags: Tags to attach to the vote. A string is split on commas.
    :param timestamp: Timestamp of the initial ranking. Defaults to the
        current time.
    :raises InputInconsistency: If the ranking or weight is malformed.
    '''
    def __init__(self,
                 ranking: RankingInputType,
                 weight: int = 1,
                 tags: Union[str, Iterable[str], None] = None,
                 timestamp: Optional[float] = None,
                 ):
        self._weight = check_weight(weight)
        self._tags = set()
        self._history = []
        self._elections = weakref.WeakSet()
        self._record_ranking(normalize_ranking(ranking), timestamp)
        if tags is not None:
            self.add_tags(tags)

    def __repr__(self) -> str:
        return f'<Vote({format_ranking(self.ranking)}^{self._weight})>'

    def __iter__(self):
        return iter(self.ranking)

    def __len__(self) -> int:
        return len(self.ranking)

    @property
    def ranking(self) -> RankingType:
        '''The current ranking, a tuple of frozensets of candidates.'''
        return self._history[-1][0]

    @property
    def weight(self) -> int:
        return self._weight

    @property
    def tags(self) -> FrozenSet[str]:
        return frozenset(self._tags)

    @property
    def history(self) -> List[Tuple[RankingType, float]]:
        '''All rankings this vote ever had with their timestamps, oldest first.

        The last entry is the current ranking.
        '''
        return list(self._history)

    @property
    def timestamp(self) -> float:
        '''Timestamp of the last ranking change.'''
        return self._history[-1][1]

    @property
    def created_timestamp(self) -> float:
        return self._history[0][1]

    def all_candidates(self) -> FrozenSet[Candidate]:
        '''Return all candidates ranked by this vote.'''
        return frozenset(cand for group in self.ranking for cand in group)

    def count_ranked(self) -> int:
        return sum(len(group) for group in self.ranking)

    def contextual_ranking(self,
                           candidates: Iterable[Candidate],
                           implicit_ranking: str = IMPLICIT_LAST,
                           ) -> RankingType:
        '''Return the ranking as seen by an election with given candidates.

        Candidates not in the list are dropped (together with rank groups
        left empty). Under the implicit-last policy, all listed candidates
        the vote does not rank are appended as a single tied rank group.

        :param candidates: Candidates of the election.
        :param implicit_ranking: Implicit ranking policy name.
        '''
        candidates = list(candidates)
        allowed = frozenset(candidates)
        contextual = []
        for group in self.ranking:
            kept = group & allowed
            if kept:
                contextual.append(kept)
        if check_policy(implicit_ranking) == IMPLICIT_LAST:
            ranked = self.all_candidates()
            missing = frozenset(
                cand for cand in candidates if cand not in ranked
            )
            if missing:
                contextual.append(missing)
        return tuple(contextual)

    def set_ranking(self,
                    ranking: RankingInputType,
                    timestamp: Optional[float] = None,
                    ) -> None:
        '''Replace the ranking, keeping the old one in the history.

        All elections the vote is registered in must accept the new ranking,
        otherwise nothing is changed. Those elections are then notified so
        that they discard their computed results.

        :param ranking: The new ranking.
        :param timestamp: Timestamp of the change; must be later than the
            current one. Defaults to the current time.
        :raises InputInconsistency: If the ranking is malformed or refers to
            candidates unknown to a linked election.
        '''
        new_ranking = normalize_ranking(ranking)
        for election in self._elections:
            election.check_ranking(new_ranking)
        self._record_ranking(new_ranking, timestamp)
        self._notify()

    def remove_candidate(self,
                         candidate: Union[Candidate, str],
                         timestamp: Optional[float] = None,
                         ) -> None:
        '''Remove a candidate from the ranking, keeping the old one in history.

        Rank groups left empty are dropped. The change goes through
        :meth:`set_ranking`, so linked elections are notified.

        :param candidate: The candidate or its name.
        :param timestamp: Timestamp of the change.
        :raises InputInconsistency: If the vote does not rank the candidate.
        '''
        removed = frozenset(
            cand for cand in self.all_candidates()
            if cand is candidate or cand.name == candidate
        )
        if not removed:
            raise InputInconsistency('candidate not ranked in vote', candidate)
        self.set_ranking(
            [group - removed for group in self.ranking if group - removed],
            timestamp
        )

    def set_weight(self, weight: int) -> None:
        '''Change the vote weight and notify the linked elections.'''
        self._weight = check_weight(weight)
        self._notify()

    def add_tags(self, tags: Union[str, Iterable[str]]) -> None:
        self._tags.update(clean_tags(tags))

    def remove_tags(self, tags: Union[str, Iterable[str]]) -> List[str]:
        '''Remove the given tags and return those that were actually present.'''
        removed = [tag for tag in clean_tags(tags) if tag in self._tags]
        self._tags.difference_update(removed)
        return removed

    def remove_all_tags(self) -> None:
        self._tags.clear()

    def has_any_tag(self, tags: Iterable[str]) -> bool:
        return not self._tags.isdisjoint(tags)

    def link(self, election: Any) -> None:
        '''Register an election to be notified about changes of this vote.'''
        self._elections.add(election)

    def unlink(self, election: Any) -> None:
        self._elections.discard(election)

    def is_linked(self, election: Any) -> bool:
        return election in self._elections

    def _record_ranking(self,
                        ranking: RankingType,
                        timestamp: Optional[float],
                        ) -> None:
        last = self._history[-1][1] if self._history else None
        if timestamp is None:
            timestamp = time.time()
            if last is not None and timestamp <= last:
                timestamp = math.nextafter(last, math.inf)
        elif last is not None and timestamp <= last:
            raise InputInconsistency(
                f'timestamp must be later than {last}', timestamp
            )
        self._history.append((ranking, timestamp))

    def _notify(self) -> None:
        for election in list(self._elections):
            election.vote_changed(self)


def clean_tags(tags: Union[str, Iterable[str]]) -> List[str]:
    '''Split a comma-separated string of tags and strip the tags.

    :raises InputInconsistency: If a tag is not a string.
    '''
    if isinstance(tags, str):
        tags = tags.split(',')
    cleaned = []
    for tag in tags:
        if not isinstance(tag, str):
            raise InputInconsistency('tag must be a string', tag)
        tag = tag.strip()
        if tag:
            cleaned.append(tag)
    return cleaned


def format_ranking(ranking: RankingType) -> str:
    '''Format a ranking as ``A > B = C > D`` for logs and reprs.'''
    return ' > '.join(
        ' = '.join(sorted(cand.name for cand in group))
        for group in ranking
    )
