from __future__ import annotations
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal
import httpx
import pytest
import pytest_asyncio
import structlog
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base, get_session
from app.deps import get_github_client
from app.errors import ExternalServiceError
from app.main import app
from app.models.competition import Competition
from app.models.user import User

# capture_logs only sees loggers that are not cached
structlog.configure(cache_logger_on_first_use=False)


class FakeGitHub:
    """Stands in for GitHubClient; records every call."""

    judge_team = "judge-repo1"

    def __init__(self):
        self.pulls: dict[tuple[str, int], dict] = {}
        self.calls: list[tuple] = []
        self.merge_error: ExternalServiceError | None = None
        self.membership_error: ExternalServiceError | None = None

    def add_pr(self, repo: str, number: int, author: str, labels: list[str]):
        self.pulls[(repo, number)] = {
            "number": number,
            "user": {"login": author},
            "labels": [{"name": name} for name in labels],
        }

    @property
    def merges(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "merge"]

    async def get_pull_request(self, repo: str, number: int) -> dict:
        self.calls.append(("get", repo, number))
        pr = self.pulls.get((repo, number))
        if pr is None:
            raise ExternalServiceError(f"GitHub GET /repos/{repo}/pulls/{number} returned 404: Not Found", upstream_status=404)
        return pr

    async def merge_pull_request(self, repo: str, number: int) -> dict:
        self.calls.append(("merge", repo, number))
        if self.merge_error:
            raise self.merge_error
        return {"merged": True}

    async def add_team_membership(self, username: str, team_slug: str | None = None) -> dict:
        self.calls.append(("membership", team_slug or self.judge_team, username))
        if self.membership_error:
            raise self.membership_error
        return {"state": "active"}


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def github():
    return FakeGitHub()


@pytest_asyncio.fixture
async def client(session_factory, github):
    async def _session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_github_client] = lambda: github
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    async def _make(username: str, xp: int = 0) -> User:
        async with session_factory() as s:
            user = User(username=username, xp=xp, total_earnings=Decimal("0"))
            s.add(user)
            await s.commit()
            return user
    return _make


@pytest.fixture
def make_competition(session_factory):
    async def _make(**fields) -> Competition:
        fields.setdefault("name", "Open Source Sprint")
        fields.setdefault("repository_link", "https://github.com/acme/widgets")
        async with session_factory() as s:
            ch = Competition(**fields)
            s.add(ch)
            await s.commit()
            return ch
    return _make


@pytest.fixture
def load(session_factory):
    """Fresh read of a row, bypassing any session that served a request."""
    async def _load(model, pk):
        async with session_factory() as s:
            return await s.get(model, pk)
    return _load
