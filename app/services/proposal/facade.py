import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.dependencies.aggregate_repositories import ProposalAggregateRepositories
from app.exceptions import ConflictError, NotFoundError
from app.models.auth import Member
from app.models.proposal import Proposal, ProposalStatusType
from app.schemas.auth import MessageResponse
from app.schemas.proposal import (
    ProposalCreateRequest,
    ProposalDetailResponse,
    ProposalListResponse,
    ProposalResponse,
    ProposalSummaryResponse,
    ProposalUpdateRequest,
    VoteBreakdownResponse,
    VoteResponse,
)
from app.services.proposal.lifecycle import (
    ProposalAction,
    available_actions,
    check_action,
    is_author,
    is_editable,
    viewer_mode,
)
from app.services.proposal.sequencer import Sequencer
from app.services.proposal.voting import VotingEngine
from app.utils.transaction import transaction

logger = logging.getLogger(__name__)


class ProposalService:
    """
    Operations on BHAPs.

    Every mutating method takes an already loaded proposal plus the acting
    member, validates against the lifecycle rules before touching the
    database, and then performs the write in a single transaction.
    """

    def __init__(self, db: Session, repos: ProposalAggregateRepositories):
        self.db = db
        self.repos = repos
        self.sequencer = Sequencer(repos.sequence, repos.proposal)
        self.voting = VotingEngine(db, repos.proposal, repos.vote, repos.member)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def get_by_number(self, number: int) -> Proposal:
        proposal = self.repos.proposal.get_by_number(number)
        if not proposal:
            raise NotFoundError(
                message="BHAP not found",
                detail=f"BHAP with number {number} not found"
            )
        return proposal

    def get_by_draft_id(self, draft_id: str) -> Proposal:
        proposal = self.repos.proposal.get_by_draft_id(draft_id)
        if not proposal:
            raise NotFoundError(
                message="Draft not found",
                detail=f"Draft with id {draft_id} not found"
            )
        return proposal

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_draft(self, request: ProposalCreateRequest, author_id: UUID) -> ProposalResponse:
        """New proposals start as drafts with a draft token and no number"""
        now = datetime.now(timezone.utc)
        proposal = Proposal(
            draft_id=uuid.uuid4().hex,
            title=request.title,
            short_description=request.short_description,
            content=request.content,
            bhap_type=request.bhap_type,
            status=ProposalStatusType.DRAFT,
            author_id=author_id,
            created_at=now,
            last_modified=now,
        )
        with transaction(self.db):
            created = self.repos.proposal.create(proposal)

        self.db.refresh(created, ["author"])
        logger.info("member %s created draft %s", author_id, created.draft_id)
        return ProposalResponse.model_validate(created)

    def publish_to_discussion(self, proposal: Proposal, member_id: UUID) -> ProposalResponse:
        """
        Draft -> Discussion
        - author only
        - the permanent number is issued in the same transaction
        """
        # 1. guard
        check_action(ProposalAction.PUBLISH, proposal.status, is_author(proposal, member_id))

        # 2. number + conditional status write
        self._leave_draft(proposal, ProposalStatusType.DISCUSSION)
        logger.info("BHAP %s moved to discussion", proposal.number)
        return ProposalResponse.model_validate(proposal)

    def withdraw(self, proposal: Proposal, member_id: UUID) -> ProposalResponse:
        """
        Draft or Discussion -> Withdrawn
        - author only
        - a withdrawn draft still receives a permanent number
        """
        check_action(ProposalAction.WITHDRAW, proposal.status, is_author(proposal, member_id))

        if proposal.status is ProposalStatusType.DRAFT:
            self._leave_draft(proposal, ProposalStatusType.WITHDRAWN)
        else:
            now = datetime.now(timezone.utc)
            with transaction(self.db):
                updated = self.repos.proposal.transition_if_status(
                    proposal.id,
                    ProposalStatusType.DISCUSSION,
                    ProposalStatusType.WITHDRAWN,
                    now,
                )
                if updated is None:
                    raise ConflictError(
                        message="Proposal changed",
                        detail=f"BHAP {proposal.number} is no longer in discussion"
                    )
            self.db.refresh(proposal)

        logger.info("BHAP %s withdrawn by author", proposal.number)
        return ProposalResponse.model_validate(proposal)

    def edit(
        self,
        proposal: Proposal,
        request: ProposalUpdateRequest,
        member_id: UUID,
    ) -> ProposalResponse:
        """Author edits while the proposal is a draft or in discussion"""
        check_action(ProposalAction.EDIT, proposal.status, is_author(proposal, member_id))

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        with transaction(self.db):
            for field, value in changes.items():
                setattr(proposal, field, value)
            proposal.last_modified = datetime.now(timezone.utc)
            self.repos.proposal.update(proposal)

        self.db.refresh(proposal)
        return ProposalResponse.model_validate(proposal)

    def cast_vote(
        self,
        proposal: Proposal,
        member_id: UUID,
        value: ProposalStatusType,
    ) -> VoteResponse:
        vote, _ = self.voting.cast_vote(proposal, member_id, value)
        return VoteResponse(
            message="Vote recorded",
            vote_id=vote.id,
            proposal_number=proposal.number,
            value=vote.value,
            proposal_status=proposal.status,
            votes=self._breakdown(proposal),
        )

    def retract_vote(self, proposal: Proposal, member_id: UUID) -> MessageResponse:
        self.voting.retract_vote(proposal, member_id)
        return MessageResponse(message="Vote deleted")

    def _leave_draft(self, proposal: Proposal, to_status: ProposalStatusType) -> None:
        now = datetime.now(timezone.utc)
        try:
            with transaction(self.db):
                number = self.sequencer.next_id()
                updated = self.repos.proposal.transition_if_status(
                    proposal.id,
                    ProposalStatusType.DRAFT,
                    to_status,
                    now,
                    number=number,
                )
                if updated is None:
                    raise ConflictError(
                        message="Proposal changed",
                        detail=f"Draft {proposal.draft_id} is no longer a draft"
                    )
        except IntegrityError as e:
            logger.warning("number collision while publishing draft %s: %s", proposal.draft_id, e.orig)
            raise ConflictError(
                message="Number already assigned",
                detail="Another BHAP received the same number, please retry"
            ) from e
        self.db.refresh(proposal)

    # ------------------------------------------------------------------
    # Read projections
    # ------------------------------------------------------------------

    def _breakdown(self, proposal: Proposal) -> VoteBreakdownResponse:
        return VoteBreakdownResponse.model_validate(self.voting.breakdown(proposal))

    def list_grouped(self) -> ProposalListResponse:
        """
        All proposals grouped by status
        - the oldest discussion BHAP is featured and left out of `discussion`
        """
        proposals = self.repos.proposal.get_by_statuses(list(ProposalStatusType))
        groups: Dict[ProposalStatusType, List[ProposalSummaryResponse]] = {
            status: [] for status in ProposalStatusType
        }
        for proposal in proposals:
            groups[proposal.status].append(ProposalSummaryResponse.model_validate(proposal))

        discussion = groups[ProposalStatusType.DISCUSSION]
        featured = discussion.pop(0) if discussion else None
        return ProposalListResponse(
            featured=featured,
            discussion=discussion,
            accepted=groups[ProposalStatusType.ACCEPTED],
            rejected=groups[ProposalStatusType.REJECTED],
            withdrawn=groups[ProposalStatusType.WITHDRAWN],
            draft=groups[ProposalStatusType.DRAFT],
        )

    def get_detail(self, proposal: Proposal, viewer: Member | None) -> ProposalDetailResponse:
        logged_in = viewer is not None
        viewer_id = viewer.id if viewer else None
        viewer_is_author = is_author(proposal, viewer_id)

        my_vote = None
        if viewer_id is not None:
            vote = self.repos.vote.get_user_vote(proposal.id, viewer_id)
            my_vote = vote.value if vote else None
        has_voted = my_vote is not None

        return ProposalDetailResponse(
            proposal=ProposalResponse.model_validate(proposal),
            viewer_mode=viewer_mode(proposal.status, viewer_is_author, has_voted, logged_in),
            available_actions=available_actions(
                proposal.status, viewer_is_author, has_voted, logged_in
            ),
            is_editable=is_editable(proposal.status),
            my_vote=my_vote,
            votes=self._breakdown(proposal),
        )
