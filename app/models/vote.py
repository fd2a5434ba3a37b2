import uuid
from datetime import datetime
from sqlalchemy import (
    DateTime, ForeignKey, CheckConstraint,
    UniqueConstraint, Index, Uuid, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base
from app.models.proposal import ProposalStatusType, proposal_status_enum


class Vote(Base):
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("proposal_id", "member_id", name="uq_votes_proposal_member"),
        CheckConstraint("value IN ('ACCEPTED', 'REJECTED')", name="ck_votes_value"),
        Index("idx_votes_proposal_id", "proposal_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    proposal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("proposals.id", ondelete="CASCADE"),
        nullable=False,
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    # Outcome the voter wants: ACCEPTED or REJECTED
    value: Mapped[ProposalStatusType] = mapped_column(
        proposal_status_enum,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    proposal = relationship("Proposal", back_populates="votes")
    voter = relationship("Member", foreign_keys=[member_id])
