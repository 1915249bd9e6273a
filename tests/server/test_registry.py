import itertools

import anyio
import pytest

from opengov_mcp.exceptions import SessionIdCollisionError, SessionNotFoundError
from opengov_mcp.server.lowlevel import Server
from opengov_mcp.server.registry import SessionRegistry


def make_server() -> Server:
    return Server(name="test-server", version="0.0.1")


@pytest.mark.anyio
async def test_create_registers_session_with_unique_ids():
    registry = SessionRegistry()
    async with anyio.create_task_group() as tg:
        first = registry.create(make_server, tg)
        second = registry.create(make_server, tg)

        assert first.session_id != second.session_id
        assert len(registry) == 2
        assert registry.lookup(first.session_id) is first
        assert first.session_id in registry
        assert sorted(registry.session_ids()) == sorted([first.session_id, second.session_id])
        registry.close_all()


@pytest.mark.anyio
async def test_each_session_gets_its_own_server():
    registry = SessionRegistry()
    async with anyio.create_task_group() as tg:
        first = registry.create(make_server, tg)
        second = registry.create(make_server, tg)
        assert first.server is not second.server
        registry.close_all()


@pytest.mark.anyio
async def test_remove_is_idempotent():
    registry = SessionRegistry()
    async with anyio.create_task_group() as tg:
        session = registry.create(make_server, tg)

        assert registry.remove(session.session_id) is session
        assert registry.remove(session.session_id) is None
        assert registry.remove("never-registered") is None
        assert len(registry) == 0
        session.close()


@pytest.mark.anyio
async def test_lookup_after_remove_fails():
    registry = SessionRegistry()
    async with anyio.create_task_group() as tg:
        session = registry.create(make_server, tg)
        registry.remove(session.session_id)

        with pytest.raises(SessionNotFoundError) as exc_info:
            registry.lookup(session.session_id)
        assert exc_info.value.session_id == session.session_id
        session.close()


@pytest.mark.parametrize("session_id", [None, "", "unknown"])
def test_lookup_unknown_id(session_id):
    registry = SessionRegistry()
    with pytest.raises(SessionNotFoundError) as exc_info:
        registry.lookup(session_id)
    assert exc_info.value.error.code == -32000
    assert exc_info.value.error.message == "Session not found. Please establish SSE connection first (GET /mcp)"


@pytest.mark.anyio
async def test_id_collision_does_not_replace_live_session():
    registry = SessionRegistry(id_factory=lambda: "fixed")
    async with anyio.create_task_group() as tg:
        session = registry.create(make_server, tg)
        with pytest.raises(SessionIdCollisionError):
            registry.create(make_server, tg)

        assert registry.lookup("fixed") is session
        assert len(registry) == 1
        registry.close_all()


@pytest.mark.anyio
async def test_failed_server_construction_leaves_registry_unchanged():
    def broken_factory() -> Server:
        raise RuntimeError("cannot build server")

    registry = SessionRegistry()
    async with anyio.create_task_group() as tg:
        with pytest.raises(RuntimeError):
            registry.create(broken_factory, tg)
    assert len(registry) == 0


@pytest.mark.anyio
async def test_close_all_closes_channels_and_empties_registry():
    counter = itertools.count()
    registry = SessionRegistry(id_factory=lambda: f"s{next(counter)}")
    async with anyio.create_task_group() as tg:
        sessions = [registry.create(make_server, tg) for _ in range(3)]
        registry.close_all()

    assert len(registry) == 0
    assert all(session.closed for session in sessions)


@pytest.mark.anyio
async def test_endpoint_is_advertised_with_session_id():
    registry = SessionRegistry(id_factory=lambda: "abc123")
    async with anyio.create_task_group() as tg:
        session = registry.create(make_server, tg, endpoint="/messages")
        assert session.channel.endpoint_url == "/messages?sessionId=abc123"
        registry.close_all()


@pytest.mark.anyio
@pytest.mark.parametrize(
    "steps",
    [
        ["open", "open", "close 0", "close 1"],
        ["open", "close 0", "close 0", "open", "close 1"],
        ["open", "open", "open", "close 1", "open", "close 1", "close 0", "close 3"],
        ["open", "close 0", "open", "close 1", "open", "close 2", "close 2"],
        ["open", "open", "close 1", "close 1", "close 0", "open", "close 0"],
    ],
)
async def test_active_count_tracks_opens_minus_closes(steps: list[str]):
    """Every step closes a session by its open order; repeated closes must not change the count."""
    registry = SessionRegistry()
    sessions = []
    closed: set[int] = set()

    async with anyio.create_task_group() as tg:
        for step in steps:
            if step == "open":
                sessions.append(registry.create(make_server, tg))
            else:
                index = int(step.split()[1])
                registry.remove(sessions[index].session_id)
                sessions[index].close()
                closed.add(index)
            assert len(registry) == len(sessions) - len(closed)
        registry.close_all()

    assert len(registry) == 0
