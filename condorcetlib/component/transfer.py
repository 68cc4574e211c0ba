'''Objects to transfer votes between candidates for transferable vote.

Transfers of votes from eliminated and elected candidates to candidates staying
in the contest are an essential part of any transferable vote system,
such as :class:`condorcetlib.evaluate.sequential.SingleTransferableVote`.

The transferers work with *vote allocations*: dictionaries mapping each
continuing candidate to a dictionary of vote indices and the (possibly
fractional) values of those votes the candidate currently holds. Exhausted
votes (with no further continuing preference) are keyed by None.
A vote is always held by its highest ranked continuing candidate(s).
'''

import abc
from fractions import Fraction
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence
from numbers import Number

from condorcetlib.candidate import Candidate
from condorcetlib.vote import RankingType


RankedVoteAllocation = Dict[Optional[Candidate], Dict[int, Number]]


def ranked_first(ranking: RankingType,
                 allowed: Iterable[Candidate],
                 ) -> FrozenSet[Candidate]:
    '''Select the highest ranked candidate(s) of the vote among the allowed.

    :returns: The first rank group's intersection with the allowed candidates
        that is non-empty; an empty frozenset if there is none.
    '''
    allowed = frozenset(allowed)
    for group in ranking:
        allowed_group = group & allowed
        if allowed_group:
            return allowed_group
    return frozenset()    # exhausted ballot


def ranked_next(ranking: RankingType,
                cand: Candidate,
                allowed: Iterable[Candidate],
                ) -> FrozenSet[Candidate]:
    '''Select the candidate(s) the vote passes to when leaving cand.

    Scans the ranking from the rank group of cand (so that candidates sharing
    the rank with cand come first) and returns the first non-empty
    intersection with the allowed candidates.

    :param ranking: The ranking of the vote to examine.
    :param cand: The candidate the vote is leaving.
    :param allowed: Continuing candidates; cand should not be among them.
    :returns: Candidates to receive the vote. Empty if the vote is exhausted
        or does not rank cand at all. Will only have multiple members if the
        ranking contains a shared rank.
    '''
    for rank_i, group in enumerate(ranking):
        if cand in group:
            return ranked_first(ranking[rank_i:], allowed)
    return frozenset()


def allocation_totals(allocation: RankedVoteAllocation
                      ) -> Dict[Optional[Candidate], Number]:
    return {
        cand: sum(cand_votes.values())
        for cand, cand_votes in allocation.items()
    }


class VoteTransferer(metaclass=abc.ABCMeta):
    '''An abstract base class for vote transferers.

    Vote transferers allocate the votes by first preference, subtract quotas
    from elected candidates and redistribute votes of candidates leaving
    the contest.
    '''
    @abc.abstractmethod
    def initial_allocation(self,
                           rankings: Sequence[RankingType],
                           weights: Sequence[Number],
                           candidates: Sequence[Candidate],
                           ) -> RankedVoteAllocation:
        '''Allocate votes by first preference.

        :param rankings: Rankings of the votes; vote indices in the allocation
            refer to positions in this sequence.
        :param weights: Initial values of the votes.
        :param candidates: Candidates standing in the contest. Each gets an
            entry in the allocation even if it has no first preferences.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def subtract(self,
                 allocation: RankedVoteAllocation,
                 elected: Dict[Candidate, Number],
                 ) -> RankedVoteAllocation:
        '''Remove votes spent on the election of candidates.

        :param allocation: Current allocation of votes to candidates.
        :param elected: Elected candidates mapped to the quota with which
            they were elected; this amount is removed from their votes.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def transfer(self,
                 allocation: RankedVoteAllocation,
                 rankings: Sequence[RankingType],
                 candidates: List[Candidate],
                 ) -> RankedVoteAllocation:
        '''Transfer votes from eliminated or elected candidates.

        :param allocation: Current allocation of votes to candidates.
        :param rankings: Rankings of the votes, indexed as in the allocation.
        :param candidates: Candidates leaving the contest; they are removed
            from the allocation.
        '''
        raise NotImplementedError


class Gregory(VoteTransferer):
    '''Gregory (fractional) vote transferer.

    When a candidate is elected by quota, each vote allocated to them is
    multiplied by the fraction ``surplus / total`` (the surplus being the
    candidate's total minus the quota) and passed on to the next continuing
    preference, so a vote of weight ``w`` carries ``w * surplus / total``
    further. Votes of eliminated candidates are passed on at their current
    value.

    In case of shared ranks, the votes are evenly divided between the
    continuing candidates sharing the rank.

    The implementation produces exact fractional values.
    '''
    def initial_allocation(self,
                           rankings: Sequence[RankingType],
                           weights: Sequence[Number],
                           candidates: Sequence[Candidate],
                           ) -> RankedVoteAllocation:
        allocation = {cand: {} for cand in candidates}
        for vote_i, ranking in enumerate(rankings):
            targets = ranked_first(ranking, candidates)
            self._allot(allocation, vote_i, Fraction(weights[vote_i]), targets)
        return allocation

    def subtract(self,
                 allocation: RankedVoteAllocation,
                 elected: Dict[Candidate, Number],
                 ) -> RankedVoteAllocation:
        allocation = {cand: alloc.copy() for cand, alloc in allocation.items()}
        for cand, quota in elected.items():
            cand_alloc = allocation[cand]
            current_sum = sum(cand_alloc.values())
            if quota >= current_sum:
                # Everything was used up by the election.
                cand_alloc.clear()
            else:
                fraction = Fraction(current_sum - quota) / current_sum
                for vote_i in cand_alloc:
                    cand_alloc[vote_i] *= fraction
        return allocation

    def transfer(self,
                 allocation: RankedVoteAllocation,
                 rankings: Sequence[RankingType],
                 candidates: List[Candidate],
                 ) -> RankedVoteAllocation:
        allocation = {cand: alloc.copy() for cand, alloc in allocation.items()}
        to_remove = [cand for cand in allocation if cand in candidates]
        continuing = [
            cand for cand in allocation
            if cand is not None and cand not in candidates
        ]
        for cand in to_remove:
            for vote_i, value in allocation[cand].items():
                targets = ranked_next(rankings[vote_i], cand, continuing)
                self._allot(allocation, vote_i, value, targets)
            del allocation[cand]
        return allocation

    @staticmethod
    def _allot(allocation: RankedVoteAllocation,
               vote_i: int,
               value: Fraction,
               targets: FrozenSet[Candidate],
               ) -> None:
        if not value:
            return
        if targets:
            share = value / len(targets)
            for target in targets:
                target_alloc = allocation[target]
                target_alloc[vote_i] = target_alloc.get(vote_i, 0) + share
        else:
            # Put the ballot on the exhausted pile.
            exhausted = allocation.setdefault(None, {})
            exhausted[vote_i] = exhausted.get(vote_i, 0) + value
