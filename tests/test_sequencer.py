from types import SimpleNamespace

import pytest
from sqlalchemy import select

from app.exceptions import ConflictError, ForbiddenError, InvalidTransitionError
from app.models import Proposal, ProposalSequence
from app.models.proposal import ProposalStatusType as S
from app.repositories.proposal_repository import ProposalRepository
from app.repositories.sequence_repository import SequenceRepository
from app.schemas.proposal import ProposalUpdateRequest
from app.services.proposal.sequencer import PROPOSAL_SEQUENCE, Sequencer
from app.utils.upsert import dialect_insert


def test_first_number_is_one(db):
    sequencer = Sequencer(SequenceRepository(db), ProposalRepository(db))

    assert sequencer.next_id() == 1
    assert sequencer.next_id() == 2
    db.commit()
    assert SequenceRepository(db).current(PROPOSAL_SEQUENCE) == 2


def test_seeds_from_existing_numbers(db, members):
    (author,) = members(1)
    db.add(Proposal(
        number=41,
        draft_id="legacy",
        title="Imported",
        status=S.ACCEPTED,
        author_id=author.id,
    ))
    db.commit()

    sequencer = Sequencer(SequenceRepository(db), ProposalRepository(db))
    assert sequencer.next_id() == 42


def test_drafts_have_no_number(service, members, draft):
    (author,) = members(1)
    proposal = draft(author)

    assert proposal.status is S.DRAFT
    assert proposal.number is None


def test_two_publishes_get_distinct_numbers(service, members, draft):
    a, b = members(2)
    first = draft(a, "Quiet hours after 11")
    second = draft(b, "Dishes done by morning")

    service.publish_to_discussion(second, b.id)
    service.publish_to_discussion(first, a.id)

    assert {first.number, second.number} == {1, 2}
    assert second.number == 1


def test_withdrawn_draft_gets_a_number(service, members, draft):
    (author,) = members(1)
    proposal = draft(author)

    response = service.withdraw(proposal, author.id)

    assert response.status is S.WITHDRAWN
    assert response.number == 1


def test_number_is_permanent(service, members, in_discussion):
    (author,) = members(1)
    proposal = in_discussion(author)
    number = proposal.number

    service.edit(proposal, ProposalUpdateRequest(title="Shoes off, slippers fine"), author.id)
    service.withdraw(proposal, author.id)

    assert proposal.number == number
    assert service.get_by_number(number).status is S.WITHDRAWN


def test_publish_twice_fails(service, members, draft):
    (author,) = members(1)
    proposal = draft(author)
    service.publish_to_discussion(proposal, author.id)

    with pytest.raises(InvalidTransitionError):
        service.publish_to_discussion(proposal, author.id)


def test_non_author_cannot_publish(db, service, members, draft):
    author, other = members(2)
    proposal = draft(author)

    with pytest.raises(ForbiddenError):
        service.publish_to_discussion(proposal, other.id)
    assert db.execute(select(ProposalSequence)).first() is None


def test_stale_publish_is_a_conflict_and_consumes_no_number(db, service, members, draft):
    (author,) = members(1)
    proposal = draft(author)
    service.publish_to_discussion(proposal, author.id)
    other = draft(author, "Second")

    # a second writer already moved the draft on
    ProposalRepository(db).transition_if_status(
        other.id, S.DRAFT, S.WITHDRAWN, other.last_modified, number=2
    )
    db.commit()
    stale = Proposal(id=other.id, status=S.DRAFT, author_id=author.id, draft_id=other.draft_id)

    with pytest.raises(ConflictError):
        service.publish_to_discussion(stale, author.id)
    assert SequenceRepository(db).current(PROPOSAL_SEQUENCE) == 1


def test_counter_upsert_needs_a_supported_dialect():
    session = SimpleNamespace(get_bind=lambda: SimpleNamespace(dialect=SimpleNamespace(name="mysql")))

    with pytest.raises(ValueError, match="mysql"):
        dialect_insert(session)
