import logging

from app.repositories.proposal_repository import ProposalRepository
from app.repositories.sequence_repository import SequenceRepository

logger = logging.getLogger(__name__)

PROPOSAL_SEQUENCE = "proposal_number"


class Sequencer:
    """
    Issues permanent BHAP numbers.

    Each call is one atomic increment of a counter row, so two proposals
    leaving Draft at the same time always get different numbers. The row is
    created lazily, starting after the highest number already in use.
    Must run inside the caller's transaction so an aborted transition
    does not consume a number.
    """

    def __init__(self, sequence_repo: SequenceRepository, proposal_repo: ProposalRepository):
        self.sequence_repo = sequence_repo
        self.proposal_repo = proposal_repo

    def next_id(self) -> int:
        number = self.sequence_repo.increment(PROPOSAL_SEQUENCE)
        if number is not None:
            return number

        # first use: seed from existing proposals, then increment
        start = self.proposal_repo.get_max_number() or 0
        self.sequence_repo.ensure(PROPOSAL_SEQUENCE, start)
        number = self.sequence_repo.increment(PROPOSAL_SEQUENCE)
        if number is None:
            raise RuntimeError(f"sequence {PROPOSAL_SEQUENCE!r} could not be initialised")
        logger.info("initialised sequence %s at %d", PROPOSAL_SEQUENCE, start)
        return number
