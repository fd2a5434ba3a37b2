"""
Voting engine

- one vote per (proposal, member), recorded with a single upsert
- a proposal is decided only once every eligible voter has voted
- the eligible voters are all active members except the author
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, ValidationError
from app.models.proposal import Proposal, ProposalStatusType
from app.models.vote import Vote
from app.repositories.auth import MemberRepository
from app.repositories.proposal_repository import ProposalRepository
from app.repositories.vote_repository import VoteRepository
from app.services.proposal.lifecycle import (
    ProposalAction,
    check_action,
    check_system_transition,
    is_author,
)
from app.utils.transaction import transaction

logger = logging.getLogger(__name__)

VOTE_VALUES = frozenset({ProposalStatusType.ACCEPTED, ProposalStatusType.REJECTED})


def decide(accepted: int, rejected: int, population: int) -> ProposalStatusType | None:
    """
    Quorum decision for a proposal in discussion.

    Returns ACCEPTED or REJECTED once accepted + rejected equals the voting
    population and one side holds a strict majority, otherwise None.
    """
    if accepted + rejected != population:
        return None
    if accepted > population // 2:
        return ProposalStatusType.ACCEPTED
    if rejected > population // 2:
        return ProposalStatusType.REJECTED
    return None


def _percent(count: int, population: int) -> int:
    if population <= 0:
        return 0
    return count * 100 // population


@dataclass(frozen=True, slots=True)
class TallyResult:
    accepted: int
    rejected: int
    voting_population: int
    decision: ProposalStatusType | None


@dataclass(frozen=True, slots=True)
class VoteBreakdown:
    vote_count: int
    voting_population: int
    accepted: int
    rejected: int
    undecided: int
    percent_accepted: int
    percent_rejected: int
    percent_undecided: int


class VotingEngine:
    def __init__(
        self,
        db: Session,
        proposal_repo: ProposalRepository,
        vote_repo: VoteRepository,
        member_repo: MemberRepository,
    ):
        self.db = db
        self.proposal_repo = proposal_repo
        self.vote_repo = vote_repo
        self.member_repo = member_repo

    def _counts(self, proposal: Proposal) -> tuple[int, int, int]:
        counts = self.vote_repo.count_by_value(proposal.id)
        accepted = counts.get(ProposalStatusType.ACCEPTED, 0)
        rejected = counts.get(ProposalStatusType.REJECTED, 0)
        # every active member but the author, whether or not the author is still active
        population = self.member_repo.count_active(exclude_id=proposal.author_id)
        return accepted, rejected, population

    def cast_vote(
        self,
        proposal: Proposal,
        member_id: UUID,
        value: ProposalStatusType,
    ) -> tuple[Vote, TallyResult]:
        """
        Record or replace the member's vote, then tally
        - Discussion only, and never by the author
        - runs in one transaction together with any resulting status change
        - the proposal row is locked after the upsert, so concurrent casts tally in turn
        """
        # 1. guard: non-author, Discussion
        check_action(ProposalAction.CAST_VOTE, proposal.status, is_author(proposal, member_id))

        # 2. value
        if value not in VOTE_VALUES:
            raise ValidationError(
                message="Invalid vote",
                detail=f"Vote must be ACCEPTED or REJECTED, got {value.value}"
            )

        # 3. upsert + tally
        now = datetime.now(timezone.utc)
        with transaction(self.db):
            vote = self.vote_repo.upsert_vote(proposal.id, member_id, value, now)
            # re-read under a row lock: a concurrent tally may have closed voting
            current_status = self.proposal_repo.lock_status(proposal.id)
            check_action(ProposalAction.CAST_VOTE, current_status, is_author(proposal, member_id))
            result = self._apply_tally(proposal, now)

        self.db.refresh(proposal)
        logger.info(
            "member %s voted %s on proposal %s (%d accepted, %d rejected of %d)",
            member_id, value.value, proposal.number,
            result.accepted, result.rejected, result.voting_population
        )
        return vote, result

    def retract_vote(self, proposal: Proposal, member_id: UUID) -> None:
        """Delete the member's vote; the proposal is not re-tallied"""
        check_action(ProposalAction.RETRACT_VOTE, proposal.status, is_author(proposal, member_id))

        vote = self.vote_repo.get_user_vote(proposal.id, member_id)
        if not vote:
            raise NotFoundError(
                message="Vote not found",
                detail=f"Member {member_id} has no vote on BHAP {proposal.number}"
            )

        with transaction(self.db):
            self.vote_repo.delete_vote(vote)
        logger.info("member %s retracted vote on proposal %s", member_id, proposal.number)

    def tally(self, proposal: Proposal) -> TallyResult:
        """Current counts and the decision they would produce, without writing"""
        accepted, rejected, population = self._counts(proposal)
        return TallyResult(
            accepted=accepted,
            rejected=rejected,
            voting_population=population,
            decision=decide(accepted, rejected, population),
        )

    def _apply_tally(self, proposal: Proposal, now: datetime) -> TallyResult:
        result = self.tally(proposal)
        if result.decision is None:
            return result

        check_system_transition(ProposalStatusType.DISCUSSION, result.decision)
        updated = self.proposal_repo.transition_if_status(
            proposal.id,
            ProposalStatusType.DISCUSSION,
            result.decision,
            now,
        )
        if updated is None:
            # another tally already moved it on
            logger.info("proposal %s already left discussion", proposal.number)
        elif result.decision is ProposalStatusType.ACCEPTED:
            logger.info("marked BHAP %s as accepted", proposal.number)
        else:
            logger.info("marked BHAP %s as rejected", proposal.number)
        return result

    def breakdown(self, proposal: Proposal) -> VoteBreakdown:
        accepted, rejected, population = self._counts(proposal)
        undecided = max(population - accepted - rejected, 0)
        return VoteBreakdown(
            vote_count=accepted + rejected,
            voting_population=population,
            accepted=accepted,
            rejected=rejected,
            undecided=undecided,
            percent_accepted=_percent(accepted, population),
            percent_rejected=_percent(rejected, population),
            percent_undecided=_percent(undecided, population),
        )
