import pytest
from sqlalchemy import func, select

from app.exceptions import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from app.models import Vote
from app.models.proposal import Proposal, ProposalStatusType as S
from app.repositories.proposal_repository import ProposalRepository
from app.services.proposal.voting import decide


@pytest.mark.parametrize(
    "accepted,rejected,population,expected",
    [
        (1, 0, 2, None),        # partial participation
        (3, 0, 4, None),        # lopsided but still partial
        (1, 1, 2, None),        # full participation, no majority
        (2, 0, 2, S.ACCEPTED),
        (0, 2, 2, S.REJECTED),
        (2, 2, 4, None),
        (3, 1, 4, S.ACCEPTED),
        (1, 3, 4, S.REJECTED),
        (2, 1, 3, S.ACCEPTED),
        (0, 0, 0, None),
    ],
)
def test_decide(accepted, rejected, population, expected):
    assert decide(accepted, rejected, population) is expected


def test_voting_population_excludes_author(service, members, in_discussion):
    author, *_ = members(5)
    proposal = in_discussion(author)

    assert service.voting.tally(proposal).voting_population == 4


def _vote_rows(db, proposal, member=None):
    stmt = select(func.count(Vote.id)).where(Vote.proposal_id == proposal.id)
    if member is not None:
        stmt = stmt.where(Vote.member_id == member.id)
    return db.execute(stmt).scalar_one()


def test_three_members_split_vote_deadlocks(service, members, in_discussion):
    a, b, c = members(3)
    proposal = in_discussion(a)

    service.cast_vote(proposal, b.id, S.ACCEPTED)
    assert proposal.status is S.DISCUSSION

    response = service.cast_vote(proposal, c.id, S.REJECTED)
    assert response.proposal_status is S.DISCUSSION
    assert response.votes.accepted == 1
    assert response.votes.rejected == 1
    assert response.votes.undecided == 0


def test_three_members_unanimous_accepts(service, members, in_discussion):
    a, b, c = members(3)
    proposal = in_discussion(a)

    service.cast_vote(proposal, b.id, S.ACCEPTED)
    response = service.cast_vote(proposal, c.id, S.ACCEPTED)

    assert response.proposal_status is S.ACCEPTED
    assert service.get_by_number(proposal.number).status is S.ACCEPTED


def test_four_voters_two_two_stays_in_discussion(service, members, in_discussion):
    author, *voters = members(5)
    proposal = in_discussion(author)

    for voter, value in zip(voters, [S.ACCEPTED, S.ACCEPTED, S.REJECTED, S.REJECTED]):
        service.cast_vote(proposal, voter.id, value)

    assert proposal.status is S.DISCUSSION


def test_four_voters_three_one_accepts(service, members, in_discussion):
    author, *voters = members(5)
    proposal = in_discussion(author)

    for voter, value in zip(voters, [S.ACCEPTED, S.REJECTED, S.ACCEPTED, S.ACCEPTED]):
        service.cast_vote(proposal, voter.id, value)

    assert proposal.status is S.ACCEPTED


def test_four_voters_three_one_rejects(service, members, in_discussion):
    author, *voters = members(5)
    proposal = in_discussion(author)

    for voter, value in zip(voters, [S.REJECTED, S.REJECTED, S.ACCEPTED, S.REJECTED]):
        service.cast_vote(proposal, voter.id, value)

    assert proposal.status is S.REJECTED


def test_partial_participation_never_decides(service, members, in_discussion):
    author, *voters = members(5)
    proposal = in_discussion(author)

    for voter in voters[:3]:
        service.cast_vote(proposal, voter.id, S.ACCEPTED)

    assert proposal.status is S.DISCUSSION


def test_inactive_members_do_not_count(service, members, make_member, in_discussion):
    a, b = members(2)
    make_member(is_active=False)
    proposal = in_discussion(a)

    response = service.cast_vote(proposal, b.id, S.ACCEPTED)

    assert response.votes.voting_population == 1
    assert response.proposal_status is S.ACCEPTED


def test_author_cannot_vote(db, service, members, in_discussion):
    a, _, _ = members(3)
    proposal = in_discussion(a)

    with pytest.raises(ForbiddenError):
        service.cast_vote(proposal, a.id, S.ACCEPTED)
    assert _vote_rows(db, proposal, a) == 0


def test_cannot_vote_on_draft(service, members, draft):
    a, b = members(2)
    proposal = draft(a)

    with pytest.raises(InvalidTransitionError):
        service.cast_vote(proposal, b.id, S.ACCEPTED)


def test_vote_value_must_be_an_outcome(db, service, members, in_discussion):
    a, b, _ = members(3)
    proposal = in_discussion(a)

    with pytest.raises(ValidationError):
        service.cast_vote(proposal, b.id, S.WITHDRAWN)
    assert _vote_rows(db, proposal) == 0


def test_recasting_replaces_the_vote(db, service, members, in_discussion):
    a, b, _ = members(3)
    proposal = in_discussion(a)

    first = service.cast_vote(proposal, b.id, S.ACCEPTED)
    second = service.cast_vote(proposal, b.id, S.REJECTED)
    service.cast_vote(proposal, b.id, S.REJECTED)

    assert _vote_rows(db, proposal, b) == 1
    assert second.vote_id == first.vote_id
    assert second.value is S.REJECTED
    assert second.votes.accepted == 0
    assert second.votes.rejected == 1


def test_retract_vote(db, service, members, in_discussion):
    a, b, _ = members(3)
    proposal = in_discussion(a)
    service.cast_vote(proposal, b.id, S.ACCEPTED)

    service.retract_vote(proposal, b.id)

    assert _vote_rows(db, proposal, b) == 0


def test_retract_missing_vote_is_not_found(db, service, members, in_discussion):
    a, b, _ = members(3)
    proposal = in_discussion(a)

    with pytest.raises(NotFoundError):
        service.retract_vote(proposal, b.id)
    assert _vote_rows(db, proposal) == 0


def test_retract_after_decision_is_invalid(service, members, in_discussion):
    a, b = members(2)
    proposal = in_discussion(a)
    service.cast_vote(proposal, b.id, S.ACCEPTED)
    assert proposal.status is S.ACCEPTED

    with pytest.raises(InvalidTransitionError):
        service.retract_vote(proposal, b.id)


def test_retract_does_not_retally(service, members, deactivate, in_discussion):
    a, b, c = members(3)
    proposal = in_discussion(a)
    service.cast_vote(proposal, b.id, S.ACCEPTED)
    service.cast_vote(proposal, c.id, S.REJECTED)

    # c leaves; b's vote alone would now be a full, unanimous tally
    deactivate(c)
    service.retract_vote(proposal, c.id)

    assert service.get_by_number(proposal.number).status is S.DISCUSSION


def test_breakdown_percentages(service, members, in_discussion):
    author, *voters = members(4)
    proposal = in_discussion(author)
    service.cast_vote(proposal, voters[0].id, S.ACCEPTED)

    breakdown = service.voting.breakdown(proposal)

    assert breakdown.voting_population == 3
    assert breakdown.vote_count == 1
    assert breakdown.undecided == 2
    assert breakdown.percent_accepted == 33
    assert breakdown.percent_rejected == 0
    assert breakdown.percent_undecided == 66


def test_breakdown_with_no_voters(service, members, in_discussion):
    (author,) = members(1)
    proposal = in_discussion(author)

    breakdown = service.voting.breakdown(proposal)

    assert breakdown.voting_population == 0
    assert breakdown.percent_accepted == 0
    assert breakdown.percent_undecided == 0


def test_deactivated_author_does_not_shrink_population(service, members, deactivate, in_discussion):
    a, b, c = members(3)
    proposal = in_discussion(a)
    deactivate(a)

    response = service.cast_vote(proposal, b.id, S.ACCEPTED)

    # c has not voted yet
    assert response.votes.voting_population == 2
    assert response.proposal_status is S.DISCUSSION

    response = service.cast_vote(proposal, c.id, S.ACCEPTED)
    assert response.proposal_status is S.ACCEPTED


def test_deactivated_voter_is_dropped_from_the_tally(service, members, deactivate, in_discussion):
    a, b, c, d = members(4)
    proposal = in_discussion(a)
    service.cast_vote(proposal, b.id, S.REJECTED)
    deactivate(b)

    service.cast_vote(proposal, c.id, S.ACCEPTED)
    response = service.cast_vote(proposal, d.id, S.ACCEPTED)

    assert response.votes.voting_population == 2
    assert response.votes.rejected == 0
    assert response.proposal_status is S.ACCEPTED


def test_vote_after_concurrent_decision_is_rejected(db, service, members, in_discussion):
    a, b, c = members(3)
    proposal = in_discussion(a)
    # a copy of the proposal as loaded before the decision landed
    stale = Proposal(
        id=proposal.id, number=proposal.number, status=S.DISCUSSION, author_id=a.id
    )
    ProposalRepository(db).transition_if_status(
        proposal.id, S.DISCUSSION, S.REJECTED, proposal.last_modified
    )
    db.commit()

    with pytest.raises(InvalidTransitionError):
        service.cast_vote(stale, c.id, S.ACCEPTED)
    assert _vote_rows(db, proposal) == 0
