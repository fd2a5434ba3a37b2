import os

# must be set before app.db creates its module-level engine
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-chars")
os.environ.setdefault("FRONTEND_BASE_URL", "http://bhap.test")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import Callable, List

import pytest
from fastapi.testclient import TestClient

from app.db import Base, build_engine, build_session_factory, get_db
from app.dependencies.aggregate_repositories import ProposalAggregateRepositories
from app.models import Member
from app.repositories.auth import MemberRepository
from app.services.proposal.facade import ProposalService
from app.schemas.proposal import ProposalCreateRequest
from app.utils.security import create_access_token, hash_password
from main import app

# hashed once per session
PASSWORD = "hunter22"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def _get_test_db():
        yield db

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_member(db) -> Callable[..., Member]:
    counter = {"n": 0}

    def _make(first_name: str | None = None, *, is_active: bool = True) -> Member:
        counter["n"] += 1
        n = counter["n"]
        member = MemberRepository(db).create(
            email=f"member{n}@bhap-house.org",
            first_name=first_name or f"Member{n}",
            last_name="Housemate",
            password_hash=PASSWORD_HASH,
        )
        member.is_active = is_active
        db.commit()
        return member

    return _make


@pytest.fixture
def members(make_member) -> Callable[[int], List[Member]]:
    """members(3) -> three active members; the first is usually the author"""
    def _members(count: int) -> List[Member]:
        return [make_member() for _ in range(count)]

    return _members


@pytest.fixture
def deactivate(db) -> Callable[[Member], None]:
    def _deactivate(member: Member) -> None:
        member.is_active = False
        db.commit()

    return _deactivate


@pytest.fixture
def service(db) -> ProposalService:
    return ProposalService(db=db, repos=ProposalAggregateRepositories(db))


@pytest.fixture
def draft(service) -> Callable:
    def _draft(author: Member, title: str = "No shoes indoors"):
        request = ProposalCreateRequest(
            title=title,
            short_description="Keep the carpets clean",
            content="Shoes come off at the door.",
        )
        response = service.create_draft(request, author_id=author.id)
        return service.get_by_draft_id(response.draft_id)

    return _draft


@pytest.fixture
def in_discussion(service, draft) -> Callable:
    def _in_discussion(author: Member, title: str = "No shoes indoors"):
        proposal = draft(author, title)
        service.publish_to_discussion(proposal, author.id)
        return proposal

    return _in_discussion


@pytest.fixture
def auth_headers() -> Callable[[Member], dict]:
    def _headers(member: Member) -> dict:
        token = create_access_token(subject=str(member.id), email=member.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def member_password() -> str:
    return PASSWORD
