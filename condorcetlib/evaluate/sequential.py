'''Methods that operate sequentially on ranked votes.

This hosts the Single Transferable Vote method
(:class:`SingleTransferableVote`), which, unlike the Condorcet methods, does
not read the pairwise tally but counts the votes themselves in rounds.
'''

import logging
from typing import Callable, Dict, List, Optional, Union
from numbers import Number

import condorcetlib.component.quota
import condorcetlib.component.transfer
import condorcetlib.util
from condorcetlib.candidate import Candidate
from condorcetlib.component.transfer import RankedVoteAllocation, \
    VoteTransferer, allocation_totals
from condorcetlib.evaluate.core import Method, Result, ElectionContext

logger = logging.getLogger(__name__)

QuotaFunction = Callable[[Number, int], Number]


class SingleTransferableVote(Method):
    '''Select candidates by electing, eliminating and transfering votes.

    First, each vote is allocated to its highest ranked candidate (a vote
    ranking several candidates first is split evenly among them). If any
    candidates have at least the quota of votes, they are elected in
    descending order of their votes (but never more than the number of seats
    remaining), and the votes over the quota are redistributed to the other
    candidates according to the next stated preference.

    If no candidate has the quota, the candidate with the fewest
    currently allocated votes is eliminated and their votes transferred
    according to their next stated preference. If several candidates have the
    fewest votes, the one registered last in the election is eliminated.
    Votes that have no further stated preferences are called exhausted and are
    removed from consideration.

    The count ends when all seats are filled or no candidates remain.
    The result ranks the elected candidates in the order of their election.
    The statistics hold the quota and the vote totals of each round.

    :param context: The election data to resolve.
    :param n_seats: Number of candidates to elect. Defaults to the
        ``stv_seats`` election option.
    :param quota_function: A callable producing the quota threshold from the
        total weight of votes and number of seats. The common quota functions
        can be referenced by string name from the
        :mod:`condorcetlib.component.quota` module.
    :param transferer: An instance determining how much of the votes to
        transfer and to whom, providing the
        :class:`condorcetlib.component.transfer.VoteTransferer` interface.
        Defaults to the Gregory fractional transfer.
    :param name: Name to report in results.
    '''
    family = 'STV'

    def __init__(self,
                 context: ElectionContext,
                 n_seats: Optional[int] = None,
                 quota_function: Union[str, QuotaFunction] = 'droop',
                 transferer: Optional[VoteTransferer] = None,
                 name: Optional[str] = None,
                 ):
        if n_seats is not None and n_seats < 1:
            raise ValueError(f'number of seats must be positive: {n_seats}')
        self.n_seats = n_seats
        self.quota_function = condorcetlib.component.quota.construct(
            quota_function
        )
        self.transferer = (
            transferer if transferer is not None
            else condorcetlib.component.transfer.Gregory()
        )
        super().__init__(context, name=name)

    def seats(self) -> int:
        if self.n_seats is not None:
            return self.n_seats
        return self.context.config.stv_seats

    def compute(self) -> Result:
        candidates = list(self.context.candidates)
        policy = self.context.config.implicit_ranking
        rankings = []
        weights = []
        for vote in self.context.votes():
            rankings.append(vote.contextual_ranking(candidates, policy))
            weights.append(self.context.vote_weight(vote))
        n_seats = self.seats()
        quota = self.quota_function(sum(weights), n_seats)
        logger.info('quota computed at %s for %d seats', quota, n_seats)
        allocation = self.transferer.initial_allocation(
            rankings, weights, candidates
        )
        elected = []
        rounds = {}
        round_i = 0
        while len(elected) < n_seats:
            totals = self._continuing_totals(allocation)
            if not totals:
                logger.info('no candidates remain, terminating')
                break
            round_i += 1
            logger.info('round %d vote totals: %s', round_i, totals)
            rounds[round_i] = condorcetlib.util.descending_dict(totals)
            leaving = self._elect_by_quota(
                totals, quota, n_seats - len(elected)
            )
            if leaving:
                logger.info('%s elected by quota', leaving)
                elected.extend(leaving)
                allocation = self.transferer.subtract(
                    allocation, {cand: quota for cand in leaving}
                )
            else:
                leaving = [self._select_eliminated(totals)]
                logger.info('eliminating %s', leaving[0])
            allocation = self.transferer.transfer(
                allocation, rankings, leaving
            )
            logger.debug('vote totals after transfer: %s',
                         allocation_totals(allocation))
        return Result(
            self.name,
            elected,
            stats={'quota': quota, 'rounds': rounds},
        )

    @staticmethod
    def _continuing_totals(allocation: RankedVoteAllocation
                           ) -> Dict[Candidate, Number]:
        return {
            cand: total
            for cand, total in allocation_totals(allocation).items()
            if cand is not None
        }

    @staticmethod
    def _elect_by_quota(totals: Dict[Candidate, Number],
                        quota: Number,
                        n_rem_seats: int,
                        ) -> List[Candidate]:
        reaching = [
            cand
            for cand, total in condorcetlib.util.sorted_scores(totals)
            if total >= quota
        ]
        return reaching[:n_rem_seats]

    @staticmethod
    def _select_eliminated(totals: Dict[Candidate, Number]) -> Candidate:
        lowest = min(totals.values())
        tied = [cand for cand, total in totals.items() if total == lowest]
        if len(tied) > 1:
            logger.info('tie for elimination between %s', tied)
        return tied[-1]
