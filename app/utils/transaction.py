from contextlib import contextmanager
from sqlalchemy.orm import Session


@contextmanager
def transaction(db: Session):
    """
    Unit-of-work context manager

    Usage:
        with transaction(self.db):
            self.repos.proposal.create(proposal)

    Rules:
        - commit() on normal exit
        - rollback() and re-raise on any exception
        - services never commit directly
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
