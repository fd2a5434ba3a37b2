import uuid
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import (
    Integer, String, Text, DateTime, ForeignKey, CheckConstraint,
    Enum, Index, Uuid, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class ProposalStatusType(PyEnum):
    DRAFT = "DRAFT"
    DISCUSSION = "DISCUSSION"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


# Shared by proposals.status and votes.value
proposal_status_enum = Enum(ProposalStatusType, name="proposal_status_type")


class ProposalType(PyEnum):
    # A BHAP describing the BHAP process itself
    META = "META"
    # A rule house members must follow; most BHAPs are of this type
    HOUSE_RULE = "HOUSE_RULE"


class Proposal(Base):
    __tablename__ = "proposals"
    __table_args__ = (
        CheckConstraint(
            "(status = 'DRAFT' AND number IS NULL) OR (status != 'DRAFT' AND number IS NOT NULL)",
            name="ck_proposals_draft_has_no_number"
        ),
        Index("idx_proposals_status", "status"),
        Index("idx_proposals_author_id", "author_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Permanent human-readable ID, assigned once when leaving DRAFT
    number: Mapped[int | None] = mapped_column(Integer, unique=True, nullable=True)
    draft_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    short_description: Mapped[str] = mapped_column(String, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    bhap_type: Mapped[ProposalType] = mapped_column(
        Enum(ProposalType, name="proposal_type"),
        nullable=False,
        default=ProposalType.HOUSE_RULE,
    )
    status: Mapped[ProposalStatusType] = mapped_column(
        proposal_status_enum,
        nullable=False,
        default=ProposalStatusType.DRAFT,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    last_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    # Relationships
    author = relationship("Member", back_populates="proposals")
    votes = relationship(
        "Vote", back_populates="proposal", cascade="all, delete-orphan"
    )


class ProposalSequence(Base):
    """Single-row counter backing permanent proposal numbers"""
    __tablename__ = "proposal_sequences"

    name: Mapped[str] = mapped_column(String, primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
