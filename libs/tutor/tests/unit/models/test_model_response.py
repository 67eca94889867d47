from copy import deepcopy

from tutor.exceptions import StopAgentRun
from tutor.models.message import Message
from tutor.models.response import ModelResponse, ModelResponseEvent
from tutor.tools.decorator import tool
from tutor.tools.function import Function


def get_weather(city: str) -> str:
    """Get the weather for a city.

    Args:
        city: The city to get the weather for.
    """
    return f"It is sunny in {city}"


def _functions(*callables):
    functions = {}
    for c in callables:
        f = c if isinstance(c, Function) else Function.from_callable(c)
        functions[f.name] = f
    return functions


def test_response_without_tools(scripted_model, replies):
    model = scripted_model(replies.answers("Hello!", usage={"input_tokens": 3, "output_tokens": 2, "total_tokens": 5}))
    messages = [Message(role="user", content="Hi")]

    response = model.response(messages=messages)

    assert response.content == "Hello!"
    assert response.tool_executions == []
    assert messages[-1].role == "assistant"
    assert messages[-1].metrics.total_tokens == 5


def test_response_runs_tool_and_sends_result_back(scripted_model, replies):
    model = scripted_model(
        replies.calls_tool("get_weather", city="Paris"),
        replies.answers("It is sunny in Paris today."),
    )
    messages = [Message(role="user", content="Weather in Paris?")]

    response = model.response(messages=messages, functions=_functions(get_weather))

    assert response.content == "It is sunny in Paris today."
    assert [m.role for m in messages] == ["user", "assistant", "tool", "assistant"]
    tool_message = messages[2]
    assert tool_message.tool_call_id == "call_1"
    assert tool_message.content == "It is sunny in Paris"
    assert response.tool_executions[0]["tool_name"] == "get_weather"
    assert response.tool_executions[0]["tool_args"] == {"city": "Paris"}
    assert response.formatted_tool_calls == ["get_weather(city=Paris)"]
    # The second call sees the tool result
    assert model.calls[1][-1].role == "tool"


def test_unknown_tool_is_answered_with_error(scripted_model, replies):
    model = scripted_model(replies.calls_tool("does_not_exist"), replies.answers("Sorry."))
    messages = [Message(role="user", content="Hi")]

    response = model.response(messages=messages, functions=_functions(get_weather))

    assert response.content == "Sorry."
    error_message = messages[2]
    assert error_message.role == "tool"
    assert error_message.tool_call_error is True
    assert "does not exist" in error_message.content


def test_tool_error_is_reported_to_model(scripted_model, replies):
    def broken() -> str:
        """Always fails."""
        raise RuntimeError("boom")

    model = scripted_model(replies.calls_tool("broken"), replies.answers("The tool failed."))
    messages = [Message(role="user", content="Hi")]

    response = model.response(messages=messages, functions=_functions(broken))

    assert response.content == "The tool failed."
    assert messages[2].tool_call_error is True
    assert messages[2].content == "boom"
    assert response.tool_executions[0]["tool_call_error"] is True


def test_tool_call_limit_removes_tools(scripted_model, replies):
    model = scripted_model(
        replies.calls_tool("get_weather", city="Paris"),
        replies.answers("Final answer"),
        tool_call_limit=1,
    )
    seen_tools = []
    original_invoke = model.invoke

    def recording_invoke(messages, tools=None, tool_choice=None, response_format=None):
        seen_tools.append(tools)
        return original_invoke(messages, tools=tools, tool_choice=tool_choice, response_format=response_format)

    model.invoke = recording_invoke

    response = model.response(messages=[Message(role="user", content="Hi")], functions=_functions(get_weather))

    assert response.content == "Final answer"
    assert seen_tools[0] is not None
    assert seen_tools[1] is None


def test_stop_after_tool_call_returns_tool_result(scripted_model, replies):
    @tool(stop_after_tool_call=True)
    def finish(answer: str) -> str:
        """Finish with an answer."""
        return f"Answer: {answer}"

    model = scripted_model(replies.calls_tool("finish", answer="42"), replies.answers("never sent"))

    response = model.response(messages=[Message(role="user", content="Hi")], functions=_functions(finish))

    assert response.content == "Answer: 42"
    assert len(model.calls) == 1


def test_stop_agent_run_exception_stops_loop(scripted_model, replies):
    def hand_off() -> str:
        """Hand off the conversation."""
        raise StopAgentRun("stop", agent_message="Handed off to a human")

    model = scripted_model(replies.calls_tool("hand_off"), replies.answers("never sent"))

    response = model.response(messages=[Message(role="user", content="Hi")], functions=_functions(hand_off))

    assert response.content == "Handed off to a human"
    assert len(model.calls) == 1


def test_tool_call_limit_applies_within_one_batch(scripted_model, replies):
    pinged = []

    def ping(n: int) -> str:
        """Ping the server."""
        pinged.append(n)
        return "pong"

    model = scripted_model(
        ModelResponse(role="assistant", tool_calls=[replies.tool_call("ping", f"call_{n}", n=n) for n in range(3)]),
        replies.answers("Final answer"),
        tool_call_limit=1,
    )
    messages = [Message(role="user", content="Hi")]

    response = model.response(messages=messages, functions=_functions(ping))

    assert pinged == [0]
    assert response.content == "Final answer"
    assert len(response.tool_executions) == 1
    # Every tool call still gets an answer
    tool_messages = [m for m in messages if m.role == "tool"]
    assert [m.tool_call_id for m in tool_messages] == ["call_0", "call_1", "call_2"]
    assert [bool(m.tool_call_error) for m in tool_messages] == [False, True, True]
    assert "Tool call limit (1) reached" in tool_messages[1].content


def test_tool_calls_after_a_stop_are_answered(scripted_model, replies):
    ran = []

    def hand_off() -> str:
        """Hand off the conversation."""
        raise StopAgentRun("stop", agent_message="Handed off to a human")

    def other() -> str:
        """Do something else."""
        ran.append("other")
        return "done"

    model = scripted_model(
        ModelResponse(role="assistant", tool_calls=[replies.tool_call("hand_off", "a"), replies.tool_call("other", "b")]),
        replies.answers("never sent"),
    )
    messages = [Message(role="user", content="Hi")]

    response = model.response(messages=messages, functions=_functions(hand_off, other))

    assert response.content == "Handed off to a human"
    assert ran == []
    assert len(model.calls) == 1
    tool_messages = [m for m in messages if m.role == "tool"]
    assert [m.tool_call_id for m in tool_messages] == ["a", "b"]
    assert tool_messages[1].content == "Run stopped before this tool ran"
    assert tool_messages[1].tool_call_error is True


def test_deep_copy_resets_call_stack(scripted_model, replies):
    model = scripted_model(replies.calls_tool("get_weather", city="Paris"), replies.answers("Sunny"))
    model.response(messages=[Message(role="user", content="Hi")], functions=_functions(get_weather))

    copied = deepcopy(model)

    assert copied is not model
    assert copied.id == model.id
    assert copied._function_call_stack == []
    assert len(model._function_call_stack) == 1


def test_response_stream_yields_content_and_tool_events(scripted_model, replies):
    model = scripted_model(
        replies.calls_tool("get_weather", city="Rome"),
        replies.answers("Sunny in Rome."),
    )
    messages = [Message(role="user", content="Weather in Rome?")]

    chunks = list(model.response_stream(messages=messages, functions=_functions(get_weather)))

    events = [c.event for c in chunks]
    assert ModelResponseEvent.tool_call_started.value in events
    assert ModelResponseEvent.tool_call_completed.value in events
    completed = next(c for c in chunks if c.event == ModelResponseEvent.tool_call_completed.value)
    assert completed.tool_executions[0]["content"] == "It is sunny in Rome"
    content = "".join(c.content for c in chunks if c.content)
    assert content == "Sunny in Rome."
    assert messages[-1].content == "Sunny in Rome."


def test_build_tool_calls_merges_deltas():
    from tutor.models.base import Model

    tool_calls = Model.build_tool_calls(
        [
            {"index": 0, "id": "call_1", "type": "function", "function": {"name": "get_", "arguments": '{"ci'}},
            {"index": 0, "function": {"name": "weather", "arguments": 'ty": "Oslo"}'}},
        ]
    )

    assert tool_calls == [
        {"id": "call_1", "type": "function", "function": {"name": "get_weather", "arguments": '{"city": "Oslo"}'}}
    ]
