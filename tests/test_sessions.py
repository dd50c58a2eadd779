from __future__ import annotations

import asyncio
import datetime
from typing import TYPE_CHECKING

import pytest

from notekeeper.db import models
from notekeeper.domain.auth.exceptions import ExpiredSessionError
from notekeeper.domain.auth.services import AuthGateway
from notekeeper.domain.auth.tasks import SessionSweeper
from notekeeper.lib.exceptions import ErrorKind, InvalidTokenError

if TYPE_CHECKING:
    from conftest import FakeClock

    from notekeeper.domain.auth.services import SessionRegistry, TokenIssuer
    from notekeeper.domain.users.services import CredentialStore


def make_user(user_id: str, clock: FakeClock) -> models.User:
    return models.User(
        id=user_id, username=user_id, hashed_password="x", created_at=clock.now
    )


@pytest.fixture
def gateway(
    credential_store: CredentialStore,
    session_registry: SessionRegistry,
    token_issuer: TokenIssuer,
) -> AuthGateway:
    return AuthGateway(
        credentials=credential_store, sessions=session_registry, tokens=token_issuer
    )


@pytest.mark.asyncio
async def test_open_and_touch(session_registry: SessionRegistry, clock: FakeClock) -> None:
    session = await session_registry.open(make_user("u1", clock))
    assert await session_registry.is_active(session.id)

    clock.advance(minutes=10)
    await session_registry.touch(session.id)

    stored = await session_registry.get(session.id)
    assert stored is not None
    assert stored.last_activity == clock.now
    assert stored.created_at == clock.now - datetime.timedelta(minutes=10)


@pytest.mark.asyncio
async def test_touch_ignores_unknown_ids(session_registry: SessionRegistry) -> None:
    assert not await session_registry.touch("missing")

    assert await session_registry.count() == 0


@pytest.mark.asyncio
async def test_touch_checks_ownership(
    session_registry: SessionRegistry, clock: FakeClock
) -> None:
    session = await session_registry.open(make_user("u1", clock))
    clock.advance(minutes=5)

    assert not await session_registry.touch(session.id, user_id="u2")
    assert await session_registry.touch(session.id, user_id="u1")

    stored = await session_registry.get(session.id)
    assert stored is not None
    assert stored.last_activity == clock.now


@pytest.mark.asyncio
async def test_revoke_is_terminal(session_registry: SessionRegistry, clock: FakeClock) -> None:
    session = await session_registry.open(make_user("u1", clock))

    assert await session_registry.revoke(session.id)
    assert not await session_registry.is_active(session.id)
    assert not await session_registry.revoke(session.id)


@pytest.mark.asyncio
async def test_revoke_checks_ownership(
    session_registry: SessionRegistry, clock: FakeClock
) -> None:
    session = await session_registry.open(make_user("u1", clock))

    assert not await session_registry.revoke(session.id, user_id="u2")
    assert await session_registry.is_active(session.id)
    assert await session_registry.revoke(session.id, user_id="u1")


@pytest.mark.asyncio
async def test_sweep_removes_idle_sessions(
    session_registry: SessionRegistry, clock: FakeClock
) -> None:
    idle = await session_registry.open(make_user("u1", clock))
    busy = await session_registry.open(make_user("u2", clock))

    clock.advance(hours=20)
    await session_registry.touch(busy.id)
    clock.advance(hours=5)

    assert await session_registry.sweep(datetime.timedelta(hours=24)) == 1
    assert not await session_registry.is_active(idle.id)
    assert await session_registry.is_active(busy.id)


@pytest.mark.asyncio
async def test_sweep_empty_registry(session_registry: SessionRegistry) -> None:
    assert await session_registry.sweep() == 0


@pytest.mark.asyncio
async def test_sweeper_runs_periodically(
    session_registry: SessionRegistry, clock: FakeClock
) -> None:
    await session_registry.open(make_user("u1", clock))
    clock.advance(days=2)

    sweeper = SessionSweeper(
        session_registry,
        interval=datetime.timedelta(milliseconds=10),
        max_idle=datetime.timedelta(hours=24),
    )
    await sweeper.start()
    assert sweeper.running

    for _ in range(100):
        if await session_registry.count() == 0:
            break
        await asyncio.sleep(0.01)

    await sweeper.stop()

    assert not sweeper.running
    assert await session_registry.count() == 0


@pytest.mark.asyncio
async def test_sweeper_stop_without_start(session_registry: SessionRegistry) -> None:
    sweeper = SessionSweeper(
        session_registry,
        interval=datetime.timedelta(hours=1),
        max_idle=datetime.timedelta(hours=24),
    )

    await sweeper.stop()
    assert await sweeper.sweep_once() == 0


@pytest.mark.asyncio
async def test_gateway_login_and_authenticate(gateway: AuthGateway) -> None:
    await gateway.signup(username="alice", password="pw")
    result = await gateway.login(username="alice", password="pw")

    user = await gateway.authenticate(result.token)

    assert user.id == result.user.id
    assert user.username == "alice"
    assert user.session_id == result.session_id


@pytest.mark.asyncio
async def test_authenticate_touches_supplied_session(
    gateway: AuthGateway, clock: FakeClock
) -> None:
    await gateway.signup(username="alice", password="pw")
    result = await gateway.login(username="alice", password="pw")

    clock.advance(hours=1)
    await gateway.authenticate(result.token, session_id=result.session_id)

    session = await gateway.sessions.get(result.session_id)
    assert session is not None
    assert session.last_activity == clock.now


@pytest.mark.asyncio
async def test_authenticate_ignores_foreign_session(
    gateway: AuthGateway, clock: FakeClock
) -> None:
    await gateway.signup(username="alice", password="pw")
    await gateway.signup(username="bob", password="pw")
    alice = await gateway.login(username="alice", password="pw")
    bob = await gateway.login(username="bob", password="pw")

    clock.advance(hours=1)
    await gateway.authenticate(alice.token, session_id=bob.session_id)

    session = await gateway.sessions.get(bob.session_id)
    assert session is not None
    assert session.last_activity == clock.now - datetime.timedelta(hours=1)


@pytest.mark.asyncio
async def test_logout_invalidates_token(gateway: AuthGateway) -> None:
    await gateway.signup(username="alice", password="pw")
    result = await gateway.login(username="alice", password="pw")

    await gateway.logout(result.session_id)
    # logging out twice is not an error
    await gateway.logout(result.session_id)

    with pytest.raises(ExpiredSessionError) as exc_info:
        await gateway.authenticate(result.token)

    assert exc_info.value.status_code == 403
    assert exc_info.value.kind is ErrorKind.EXPIRED_SESSION


@pytest.mark.asyncio
async def test_each_login_opens_its_own_session(gateway: AuthGateway) -> None:
    await gateway.signup(username="alice", password="pw")
    first = await gateway.login(username="alice", password="pw")
    second = await gateway.login(username="alice", password="pw")

    await gateway.logout(first.session_id)

    assert (await gateway.authenticate(second.token)).session_id == second.session_id
    with pytest.raises(ExpiredSessionError):
        await gateway.authenticate(first.token)


@pytest.mark.asyncio
async def test_inactive_user_token_is_rejected(gateway: AuthGateway) -> None:
    user = await gateway.signup(username="alice", password="pw")
    result = await gateway.login(username="alice", password="pw")

    await gateway.credentials.set_active(user.id, active=False)

    with pytest.raises(InvalidTokenError):
        await gateway.authenticate(result.token)


@pytest.mark.asyncio
async def test_gateway_stats(gateway: AuthGateway) -> None:
    await gateway.signup(username="alice", password="pw")
    await gateway.signup(username="bob", password="pw")
    await gateway.login(username="alice", password="pw")

    stats = await gateway.stats()

    assert stats.total_users == 2
    assert stats.active_users == 2
    assert stats.recent_users == 2
    assert stats.active_sessions == 1
