from __future__ import annotations

import datetime
import os
import pathlib
from typing import TYPE_CHECKING

import pytest

# The configuration is decoded at import time, point it at the test config
# before anything from notekeeper is imported.
os.environ.setdefault(
    "NOTEKEEPER_CONFIG", str(pathlib.Path(__file__).parent / "app.toml")
)

from litestar.testing import TestClient  # noqa: E402

from notekeeper.asgi import create_app  # noqa: E402
from notekeeper.domain.auth.services import SessionRegistry, TokenIssuer  # noqa: E402
from notekeeper.domain.notes.services import NoteRepository  # noqa: E402
from notekeeper.domain.users.services import CredentialStore  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from litestar import Litestar

TEST_SECRET = "test-secret-" + "x" * 48
START = datetime.datetime(2025, 1, 1, 12, 0, tzinfo=datetime.UTC)


class FakeClock:
    """Settable clock injected wherever a store asks for the current time."""

    def __init__(self, now: datetime.datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += datetime.timedelta(**kwargs)


class FakeMonotonic:
    """Settable monotonic clock for the rate limiter."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def token_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def credential_store(clock: FakeClock) -> CredentialStore:
    return CredentialStore(clock=clock)


@pytest.fixture
def session_registry(clock: FakeClock) -> SessionRegistry:
    return SessionRegistry(clock=clock)


@pytest.fixture
def token_issuer(clock: FakeClock, token_secret: str) -> TokenIssuer:
    return TokenIssuer(
        secret=token_secret, issuer="notekeeper", audience="notekeeper", clock=clock
    )


@pytest.fixture
def note_repository(clock: FakeClock) -> NoteRepository:
    return NoteRepository(clock=clock)


@pytest.fixture
def workdir(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """Working directory holding a throwaway token secret."""
    secrets_dir = tmp_path / "secrets"
    secrets_dir.mkdir()
    (secrets_dir / "access_token_secret.txt").write_text(TEST_SECRET, "utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def app(workdir: pathlib.Path, clock: FakeClock) -> Litestar:
    return create_app(clock=clock)


@pytest.fixture
def client(app: Litestar) -> Iterator[TestClient[Litestar]]:
    with TestClient(app=app) as client:
        yield client


def _signup(client: TestClient[Litestar], username: str, password: str = "pw") -> None:
    response = client.post("/api/signup", json={"username": username, "password": password})
    assert response.status_code == 201, response.text


def _login(
    client: TestClient[Litestar], username: str, password: str = "pw"
) -> dict[str, str]:
    """Log in and return the headers of the new session."""
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    body = response.json()
    return {
        "Authorization": f"Bearer {body['token']}",
        "X-Session-ID": body["sessionId"],
    }


@pytest.fixture
def alice(client: TestClient[Litestar]) -> dict[str, str]:
    _signup(client, "alice")
    return _login(client, "alice")


@pytest.fixture
def bob(client: TestClient[Litestar]) -> dict[str, str]:
    _signup(client, "bob")
    return _login(client, "bob")


@pytest.fixture
def signup_user() -> Callable[..., None]:
    return _signup


@pytest.fixture
def login_user() -> Callable[..., dict[str, str]]:
    return _login
