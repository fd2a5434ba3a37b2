from datetime import datetime
from typing import Iterable, List
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, joinedload

from app.models.proposal import Proposal, ProposalStatusType


class ProposalRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, proposal: Proposal) -> Proposal:
        """Insert a new proposal (caller owns the transaction)"""
        self.db.add(proposal)
        self.db.flush()
        return proposal

    def update(self, proposal: Proposal) -> Proposal:
        """Flush pending attribute changes on a loaded proposal"""
        self.db.flush()
        return proposal

    def lock_status(self, proposal_id: UUID) -> ProposalStatusType:
        """
        Current committed status, read with SELECT ... FOR UPDATE
        - holds the proposal row until the caller's transaction ends (no-op on SQLite)
        """
        stmt = (
            select(Proposal.status)
            .where(Proposal.id == proposal_id)
            .with_for_update()
        )
        return self.db.execute(stmt).scalar_one()

    def get_by_number(self, number: int) -> Proposal | None:
        """Lookup by permanent ID; drafts never match"""
        stmt = (
            select(Proposal)
            .where(Proposal.number == number)
            .options(joinedload(Proposal.author))
        )
        result = self.db.execute(stmt)
        return result.unique().scalar_one_or_none()

    def get_by_draft_id(self, draft_id: str) -> Proposal | None:
        stmt = (
            select(Proposal)
            .where(Proposal.draft_id == draft_id)
            .options(joinedload(Proposal.author))
        )
        result = self.db.execute(stmt)
        return result.unique().scalar_one_or_none()

    def get_by_statuses(self, statuses: Iterable[ProposalStatusType]) -> List[Proposal]:
        """
        Proposals in any of the given statuses.
        - numbered proposals ordered by number, drafts (no number) by creation time
        """
        stmt = (
            select(Proposal)
            .where(Proposal.status.in_(list(statuses)))
            .options(joinedload(Proposal.author))
            .order_by(Proposal.number.asc().nulls_last(), Proposal.created_at.asc())
        )
        result = self.db.execute(stmt)
        return list(result.unique().scalars().all())

    def get_max_number(self) -> int | None:
        stmt = select(func.max(Proposal.number))
        return self.db.execute(stmt).scalar_one_or_none()

    def transition_if_status(
        self,
        proposal_id: UUID,
        from_status: ProposalStatusType,
        to_status: ProposalStatusType,
        modified_at: datetime,
        number: int | None = None,
    ) -> Proposal | None:
        """
        Conditional status change
        - UPDATE ... WHERE id = :id AND status = :from_status
        - `number` is written in the same statement when a draft leaves DRAFT
        - returns None when another writer already moved the proposal on
        """
        values = {"status": to_status, "last_modified": modified_at}
        if number is not None:
            values["number"] = number
        stmt = (
            update(Proposal)
            .where(
                Proposal.id == proposal_id,
                Proposal.status == from_status
            )
            .values(**values)
            .returning(Proposal)
        )
        updated = self.db.execute(stmt).scalar_one_or_none()
        self.db.flush()
        return updated
