import pytest

from opengov_mcp.exceptions import BackendError
from opengov_mcp.server.dispatch import LOGGER_NAME, ToolDispatcher, ToolFailure, ToolSuccess


class RecordingSink:
    def __init__(self):
        self.events: list[tuple[str, dict, str | None]] = []

    async def send_log_message(self, level, data, logger=None):
        self.events.append((level, data, logger))


@pytest.mark.anyio
async def test_successful_call_returns_serialized_result(make_backend):
    backend = make_backend(result={"rows": [1, 2, 3]})
    dispatcher = ToolDispatcher({"get_data"}, backend)
    sink = RecordingSink()

    outcome = await dispatcher.call("get_data", {"type": "catalog"}, sink)

    assert outcome == ToolSuccess(value={"rows": [1, 2, 3]}, text='{"rows":[1,2,3]}')
    assert backend.calls == [{"type": "catalog"}]


@pytest.mark.anyio
async def test_successful_call_emits_two_info_events_in_order(make_backend):
    backend = make_backend(result=["a", "b"])
    dispatcher = ToolDispatcher({"get_data"}, backend)
    sink = RecordingSink()

    outcome = await dispatcher.call("get_data", {"type": "tags"}, sink)

    assert [level for level, _, _ in sink.events] == ["info", "info"]
    handling, succeeded = (data for _, data, _ in sink.events)
    assert handling["message"] == "Handling tool call: get_data"
    assert handling["tool"] == "get_data"
    assert handling["arguments"] == {"type": "tags"}
    assert "timestamp" in handling
    assert succeeded["message"] == "Successfully executed tool: get_data"
    assert succeeded["resultSize"] == len(outcome.text)
    assert {logger for _, _, logger in sink.events} == {LOGGER_NAME}


@pytest.mark.anyio
async def test_unknown_tool_never_reaches_backend(make_backend):
    backend = make_backend(result="unused")
    dispatcher = ToolDispatcher({"get_data"}, backend)
    sink = RecordingSink()

    outcome = await dispatcher.call("does_not_exist", {}, sink)

    assert isinstance(outcome, ToolFailure)
    assert outcome.message == "Unknown tool: does_not_exist"
    assert backend.calls == []
    assert [level for level, _, _ in sink.events] == ["info", "error"]


@pytest.mark.anyio
async def test_backend_failure_is_captured(make_backend):
    backend = make_backend(error=BackendError("portal unavailable"))
    dispatcher = ToolDispatcher({"get_data"}, backend)
    sink = RecordingSink()

    outcome = await dispatcher.call("get_data", {"type": "catalog"}, sink)

    assert isinstance(outcome, ToolFailure)
    assert outcome.message == "portal unavailable"
    assert outcome.stack is not None and "BackendError" in outcome.stack

    level, data, _ = sink.events[-1]
    assert level == "error"
    assert data["message"] == "Error handling tool get_data: portal unavailable"
    assert data["error"] == "portal unavailable"
    assert data["arguments"] == {"type": "catalog"}
    assert "stack" in data


@pytest.mark.anyio
async def test_exception_without_message_uses_type_name(make_backend):
    dispatcher = ToolDispatcher({"get_data"}, make_backend(error=ValueError()))
    outcome = await dispatcher.call("get_data", {}, RecordingSink())
    assert outcome == ToolFailure(message="ValueError", stack=outcome.stack)


@pytest.mark.anyio
async def test_unserializable_result_is_a_failure(make_backend):
    dispatcher = ToolDispatcher({"get_data"}, make_backend(result={"when": object()}))
    outcome = await dispatcher.call("get_data", {}, RecordingSink())
    assert isinstance(outcome, ToolFailure)


@pytest.mark.anyio
async def test_missing_arguments_are_an_empty_bag(make_backend):
    backend = make_backend(result=None)
    dispatcher = ToolDispatcher({"get_data"}, backend)

    outcome = await dispatcher.call("get_data", None, RecordingSink())

    assert backend.calls == [{}]
    assert outcome == ToolSuccess(value=None, text="null")


@pytest.mark.anyio
async def test_result_text_is_compact_json(make_backend):
    backend = make_backend(result={"name": "Parks", "tags": ["a", "b"]})
    dispatcher = ToolDispatcher({"get_data"}, backend)
    sink = RecordingSink()

    outcome = await dispatcher.call("get_data", {"type": "catalog"}, sink)

    assert outcome.text == '{"name":"Parks","tags":["a","b"]}'
    assert sink.events[-1][1]["resultSize"] == len('{"name":"Parks","tags":["a","b"]}')
