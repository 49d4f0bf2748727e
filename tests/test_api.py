import pytest

from modboard.auth import get_current_user, hash_password
from modboard.db import get_session, init_db, make_engine, make_session_factory
from modboard.main import get_repository
from modboard.models import User

from factories import FakeRepository, as_user, make_answer, make_question


def _override(user, repo=None):
    from modboard.main import app

    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_repository] = lambda: repo or FakeRepository()
    return app


@pytest.mark.asyncio
async def test_health(api_client) -> None:
    resp = await api_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_content_api_requires_login(api_client, moderator_env) -> None:
    _override(None)
    resp = await api_client.get("/api/moderator/content")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_content_api_rejects_regular_user(api_client, moderator_env) -> None:
    _override(as_user("alice"))
    resp = await api_client.get("/api/moderator/content")
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_content_api_returns_ranked_page(api_client, moderator_env) -> None:
    repo = FakeRepository([make_question("q1", up=10)], [make_answer("a1", up=100)])
    _override(as_user("mod"), repo)
    resp = await api_client.get("/api/moderator/content", params={"type": "all", "sortBy": "highScore", "pageSize": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert [c["kind"] for c in body["content"]] == ["Answer", "Question"]
    assert body["totalItems"] == 2
    assert body["hasMore"] is False


@pytest.mark.asyncio
async def test_admin_counts_as_moderator(api_client, moderator_env) -> None:
    repo = FakeRepository([make_question("q1")], [make_answer("a1")])
    _override(as_user("root"), repo)
    resp = await api_client.get("/api/moderator/content", params={"type": "answer"})
    assert resp.status_code == 200
    assert [c["kind"] for c in resp.json()["content"]] == ["Answer"]
    assert not repo.called("find_questions")


@pytest.mark.asyncio
async def test_content_api_store_failure_is_empty_page(api_client, moderator_env) -> None:
    _override(as_user("mod"), FakeRepository(fail=True))
    resp = await api_client.get("/api/moderator/content")
    assert resp.status_code == 200
    assert resp.json() == {"content": [], "totalItems": 0, "hasMore": False}


@pytest.mark.asyncio
async def test_dashboard_redirects_non_moderators(api_client, moderator_env) -> None:
    _override(as_user("alice"))
    resp = await api_client.get("/moderator/dashboard")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/"


@pytest.mark.asyncio
async def test_dashboard_renders_content(api_client, moderator_env) -> None:
    repo = FakeRepository([make_question("q1", up=3, views=12)], [make_answer("a1", author=None)])
    _override(as_user("mod"), repo)
    resp = await api_client.get("/moderator/dashboard", params={"type": "all", "filter": "recent"})
    assert resp.status_code == 200
    assert "Moderator Dashboard" in resp.text
    assert "Question q1" in resp.text
    assert "Re: Parent question" in resp.text
    assert "Unknown" in resp.text


@pytest.mark.asyncio
async def test_dashboard_empty_state(api_client, moderator_env) -> None:
    _override(as_user("mod"), FakeRepository())
    resp = await api_client.get("/moderator/dashboard", params={"type": "question"})
    assert resp.status_code == 200
    assert "No questions found" in resp.text


@pytest.mark.asyncio
async def test_home_sends_anonymous_users_to_login(api_client) -> None:
    _override(None)
    resp = await api_client.get("/")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_login_page_renders(api_client) -> None:
    resp = await api_client.get("/login")
    assert resp.status_code == 200
    assert 'name="password"' in resp.text


@pytest.fixture
def login_sessions(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'login.db'}")
    init_db(engine)
    factory = make_session_factory(engine)
    db = factory()
    try:
        db.add(User(external_id="ext-mod", username="mod", name="Mod", password_hash=hash_password("s3cret")))
        db.commit()
    finally:
        db.close()

    def _session():
        session = factory()
        try:
            yield session
        finally:
            session.close()

    yield _session
    engine.dispose()


@pytest.mark.asyncio
async def test_login_opens_the_dashboard(api_client, moderator_env, login_sessions) -> None:
    from modboard.main import app

    app.dependency_overrides[get_session] = login_sessions
    app.dependency_overrides[get_repository] = lambda: FakeRepository([make_question("q1")], [])

    resp = await api_client.post("/login", data={"username": "mod", "password": "s3cret"})
    assert resp.status_code == 302
    assert resp.headers["location"] == "/moderator/dashboard"

    # the session cookie set by the login carries the user into the gate
    resp = await api_client.get("/moderator/dashboard")
    assert resp.status_code == 200
    assert "Question q1" in resp.text

    resp = await api_client.post("/logout")
    assert resp.status_code == 302
    resp = await api_client.get("/moderator/dashboard")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/"


@pytest.mark.asyncio
async def test_login_rejects_wrong_password(api_client, login_sessions) -> None:
    from modboard.main import app

    app.dependency_overrides[get_session] = login_sessions
    resp = await api_client.post("/login", data={"username": "mod", "password": "nope"})
    assert resp.status_code == 400
    assert "Invalid username or password" in resp.text


def test_role_lists(moderator_env) -> None:
    from modboard.auth import has_role, is_moderator

    assert has_role("mod", "moderator")
    assert not has_role("mod", "admin")
    assert has_role("root", "admin") and has_role("root", "moderator")
    assert not has_role("alice", "moderator")
    assert not is_moderator(None)
