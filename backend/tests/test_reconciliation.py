from decimal import Decimal
import httpx
import pytest
from structlog.testing import capture_logs
from app.main import app
from app.services import reconciliation
from app.errors import ExternalServiceError
from app.models.competition import Competition
from app.models.user import User

REPO = "acme/widgets"


async def _setup(make_competition, make_user):
    ch = await make_competition(
        reward_feature=Decimal("50"),
        reward_bug=Decimal("20"),
        reward_optimization=Decimal("30"),
        reward_security=Decimal("75"),
    )
    user = await make_user("octocat", xp=10)
    return ch, user


@pytest.mark.asyncio
async def test_feature_pr_credits_competition_and_author(client, github, make_competition, make_user, load):
    ch, user = await _setup(make_competition, make_user)
    github.add_pr(REPO, 7, "octocat", ["Feature"])

    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": 7})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "PR merged and user earnings updated"
    assert body["payout"] == 50
    assert body["classification"] == "feature"
    assert github.merges == [("merge", REPO, 7)]

    stored = await load(Competition, ch.id)
    assert stored.total_earnings == Decimal("50")
    assert (stored.features, stored.bugs, stored.optimisations) == (1, 0, 0)
    assert (await load(User, user.id)).total_earnings == Decimal("50")


@pytest.mark.asyncio
async def test_bug_label_wins_over_unknown_labels(client, github, make_competition, make_user, load):
    ch, _ = await _setup(make_competition, make_user)
    github.add_pr(REPO, 8, "octocat", ["bug", "enhancement"])

    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": 8})
    assert r.json()["classification"] == "bug"

    stored = await load(Competition, ch.id)
    assert stored.total_earnings == Decimal("20")
    assert stored.bugs == 1 and stored.features == 0


@pytest.mark.asyncio
async def test_security_pr_only_bumps_total(client, github, make_competition, make_user, load):
    ch, user = await _setup(make_competition, make_user)
    github.add_pr(REPO, 9, "octocat", ["security"])

    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": 9})
    assert r.json()["payout"] == 75

    stored = await load(Competition, ch.id)
    assert stored.total_earnings == Decimal("75")
    assert (stored.features, stored.bugs, stored.optimisations) == (0, 0, 0)
    assert (await load(User, user.id)).total_earnings == Decimal("75")


@pytest.mark.asyncio
async def test_unlabelled_pr_is_still_merged_once(client, github, make_competition, make_user, load):
    ch, user = await _setup(make_competition, make_user)
    github.add_pr(REPO, 10, "octocat", [])

    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": 10})
    assert r.status_code == 200
    assert r.json()["payout"] == 0
    assert r.json()["classification"] is None
    assert github.merges == [("merge", REPO, 10)]

    stored = await load(Competition, ch.id)
    assert stored.total_earnings == 0 and stored.features == 0
    assert (await load(User, user.id)).total_earnings == 0


@pytest.mark.asyncio
async def test_repeated_payouts_accumulate(client, github, make_competition, make_user, load):
    ch, user = await _setup(make_competition, make_user)
    github.add_pr(REPO, 1, "octocat", ["feature"])
    github.add_pr(REPO, 2, "octocat", ["optimization"])
    github.add_pr(REPO, 3, "octocat", ["FEATURE"])

    for n in (1, 2, 3):
        assert (await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": n})).status_code == 200

    stored = await load(Competition, ch.id)
    assert stored.features == 2
    assert stored.optimisations == 1
    assert stored.total_earnings == Decimal("130")
    assert (await load(User, user.id)).total_earnings == Decimal("130")
    assert len(github.merges) == 3


@pytest.mark.asyncio
async def test_unknown_author_is_not_merged(client, github, make_competition, make_user):
    ch, _ = await _setup(make_competition, make_user)
    github.add_pr(REPO, 11, "stranger", ["feature"])

    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": 11})
    assert r.status_code == 404
    assert r.json()["message"] == "User not found"
    assert github.merges == []


@pytest.mark.asyncio
async def test_pr_lookup_failure_surfaces_as_500(client, github, make_competition, make_user):
    ch, _ = await _setup(make_competition, make_user)

    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": 404})
    assert r.status_code == 500
    assert "404" in r.json()["message"]
    assert github.merges == []


@pytest.mark.asyncio
async def test_merge_failure_credits_nothing(client, github, make_competition, make_user, load):
    ch, user = await _setup(make_competition, make_user)
    github.add_pr(REPO, 12, "octocat", ["feature"])
    github.merge_error = ExternalServiceError("GitHub PUT returned 405: Pull Request is not mergeable", upstream_status=405)

    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": 12})
    assert r.status_code == 500
    assert "not mergeable" in r.json()["message"]

    stored = await load(Competition, ch.id)
    assert stored.total_earnings == 0 and stored.features == 0
    assert (await load(User, user.id)).total_earnings == 0


@pytest.mark.asyncio
async def test_competition_without_repository(client, github, make_competition):
    ch = await make_competition(repository_link=None)
    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": 1})
    assert r.status_code == 400
    assert r.json()["message"] == "Competition has no repository link"
    assert github.calls == []


@pytest.mark.asyncio
async def test_approve_pr_validates_body(client, make_competition):
    ch = await make_competition()
    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={"prNumber": "seven"})
    assert r.status_code == 400
    r = await client.post(f"/competitions/{ch.id}/approve-pr", json={})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_persist_failure_after_merge_is_logged(client, github, make_competition, make_user, load, monkeypatch):
    ch, user = await _setup(make_competition, make_user)
    github.add_pr(REPO, 13, "octocat", ["feature"])

    async def broken_apply(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(reconciliation, "apply_payout", broken_apply)

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        with capture_logs() as logs:
            r = await ac.post(
                f"/competitions/{ch.id}/approve-pr",
                json={"prNumber": 13},
                headers={"X-Request-ID": "req-13"},
            )

    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}
    assert github.merges == [("merge", REPO, 13)]

    failed = [e for e in logs if e["event"] == "reconcile_persist_failed"]
    assert len(failed) == 1
    assert failed[0]["competition_id"] == str(ch.id)
    assert failed[0]["username"] == "octocat"
    assert failed[0]["reward"] == "50.0000"
    unhandled = [e for e in logs if e["event"] == "unhandled_error"]
    assert unhandled and unhandled[0]["request_id"] == "req-13"

    stored = await load(Competition, ch.id)
    assert stored.total_earnings == 0 and stored.features == 0
    assert (await load(User, user.id)).total_earnings == 0
