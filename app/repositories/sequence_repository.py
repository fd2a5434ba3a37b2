from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models.proposal import ProposalSequence
from app.utils.upsert import dialect_insert


class SequenceRepository:
    """Named integer counters, incremented atomically in the database"""

    def __init__(self, db: Session):
        self.db = db

    def increment(self, name: str) -> int | None:
        """
        UPDATE ... SET last_value = last_value + 1 RETURNING last_value
        - the row lock taken by the UPDATE serializes concurrent callers
        - None if the counter row does not exist yet
        """
        stmt = (
            update(ProposalSequence)
            .where(ProposalSequence.name == name)
            .values(last_value=ProposalSequence.last_value + 1)
            .returning(ProposalSequence.last_value)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.scalar_one_or_none()

    def ensure(self, name: str, start: int) -> None:
        """Create the counter row at `start` unless it already exists"""
        insert = dialect_insert(self.db)
        stmt = (
            insert(ProposalSequence)
            .values(name=name, last_value=start)
            .on_conflict_do_nothing(index_elements=[ProposalSequence.name])
        )
        self.db.execute(stmt)

    def current(self, name: str) -> int | None:
        stmt = select(ProposalSequence.last_value).where(ProposalSequence.name == name)
        return self.db.execute(stmt).scalar_one_or_none()
