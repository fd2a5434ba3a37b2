import uuid
from datetime import datetime
from typing import Dict
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.auth import Member
from app.models.proposal import ProposalStatusType
from app.models.vote import Vote
from app.utils.upsert import dialect_insert


class VoteRepository:
    """Votes cast on proposals, at most one per (proposal, member)"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_vote(self, proposal_id: UUID, member_id: UUID) -> Vote | None:
        """The member's current vote on a proposal, if any"""
        stmt = (
            select(Vote)
            .where(
                Vote.proposal_id == proposal_id,
                Vote.member_id == member_id
            )
            .execution_options(populate_existing=True)
        )
        result = self.db.execute(stmt)
        return result.scalar_one_or_none()

    def upsert_vote(
        self,
        proposal_id: UUID,
        member_id: UUID,
        value: ProposalStatusType,
        now: datetime,
    ) -> Vote:
        """
        Create or replace the member's vote in one statement
        - INSERT ... ON CONFLICT (proposal_id, member_id) DO UPDATE SET value
        - concurrent casts by the same member cannot produce a second row
        """
        insert = dialect_insert(self.db)
        stmt = (
            insert(Vote)
            .values(
                id=uuid.uuid4(),
                proposal_id=proposal_id,
                member_id=member_id,
                value=value,
            )
            .on_conflict_do_update(
                index_elements=[Vote.proposal_id, Vote.member_id],
                set_={"value": value, "updated_at": now},
            )
        )
        self.db.execute(stmt)
        self.db.flush()
        return self.get_user_vote(proposal_id, member_id)

    def delete_vote(self, vote: Vote) -> None:
        self.db.delete(vote)
        self.db.flush()

    def count_by_value(self, proposal_id: UUID) -> Dict[ProposalStatusType, int]:
        """
        Number of votes per value for a proposal
        - votes of deactivated members are left out, matching the voting population
        """
        stmt = (
            select(Vote.value, func.count(Vote.id))
            .join(Member, Member.id == Vote.member_id)
            .where(
                Vote.proposal_id == proposal_id,
                Member.is_active.is_(True)
            )
            .group_by(Vote.value)
        )
        result = self.db.execute(stmt)
        return {value: count for value, count in result.all()}
