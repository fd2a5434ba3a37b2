import threading

import pytest
from sqlalchemy import func, select

from app.db import Base, build_engine, build_session_factory
from app.dependencies.aggregate_repositories import ProposalAggregateRepositories
from app.models import Vote
from app.models.proposal import ProposalStatusType as S
from app.repositories.auth import MemberRepository
from app.schemas.proposal import ProposalCreateRequest
from app.services.proposal.facade import ProposalService


@pytest.fixture
def session_factory(tmp_path):
    # file database: every thread checks out its own connection
    engine = build_engine(f"sqlite:///{tmp_path / 'bhap.db'}")
    Base.metadata.create_all(engine)
    yield build_session_factory(engine)
    engine.dispose()


def _service(session) -> ProposalService:
    return ProposalService(db=session, repos=ProposalAggregateRepositories(session))


def _seed_members(session_factory, count):
    with session_factory() as session:
        repo = MemberRepository(session)
        members = [
            repo.create(
                email=f"housemate{n}@bhap-house.org",
                first_name=f"Housemate{n}",
                last_name="Concurrent",
                password_hash="not-used",
            )
            for n in range(count)
        ]
        session.commit()
        return [member.id for member in members]


def _run_together(workers):
    """Start every worker at once; each calls barrier.wait() right before its write"""
    barrier = threading.Barrier(len(workers))
    errors = []

    def _run(work):
        try:
            work(barrier)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=_run, args=(work,)) for work in workers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return errors


def test_concurrent_publishes_get_distinct_numbers(session_factory):
    author_ids = _seed_members(session_factory, 2)
    with session_factory() as session:
        service = _service(session)
        draft_ids = [
            service.create_draft(ProposalCreateRequest(title=title), author_id).draft_id
            for author_id, title in zip(author_ids, ["Quiet hours after 11", "Dishes done by morning"])
        ]

    numbers = {}

    def _publisher(draft_id, author_id):
        def work(barrier):
            with session_factory() as session:
                service = _service(session)
                proposal = service.get_by_draft_id(draft_id)
                barrier.wait()
                numbers[draft_id] = service.publish_to_discussion(proposal, author_id).number
        return work

    errors = _run_together([
        _publisher(draft_id, author_id) for draft_id, author_id in zip(draft_ids, author_ids)
    ])

    assert errors == []
    assert sorted(numbers.values()) == [1, 2]


def test_concurrent_casts_by_one_voter_keep_one_row(session_factory):
    author_id, voter_id, _ = _seed_members(session_factory, 3)
    with session_factory() as session:
        service = _service(session)
        draft_id = service.create_draft(ProposalCreateRequest(title="Heating off in May"), author_id).draft_id
        number = service.publish_to_discussion(service.get_by_draft_id(draft_id), author_id).number

    def _caster(value):
        def work(barrier):
            with session_factory() as session:
                service = _service(session)
                proposal = service.get_by_number(number)
                barrier.wait()
                service.cast_vote(proposal, voter_id, value)
        return work

    errors = _run_together([
        _caster(S.ACCEPTED if n % 2 else S.REJECTED) for n in range(6)
    ])

    assert errors == []
    with session_factory() as session:
        proposal = _service(session).get_by_number(number)
        rows = session.execute(
            select(func.count(Vote.id)).where(Vote.proposal_id == proposal.id)
        ).scalar_one()
        assert rows == 1
        # one vote of two eligible voters never decides
        assert proposal.status is S.DISCUSSION
