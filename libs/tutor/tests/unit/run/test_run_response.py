import json

from pydantic import BaseModel

from tutor.models.message import Message
from tutor.reasoning.step import NextAction, ReasoningStep
from tutor.run.response import RunEvent, RunResponse


class Answer(BaseModel):
    text: str
    score: int


def test_to_dict_skips_empty_fields():
    response = RunResponse(content="Hello", run_id="run-1", agent_id="tutor")

    data = response.to_dict()

    assert data["content"] == "Hello"
    assert data["event"] == RunEvent.run_response.value
    assert "tools" not in data
    assert "messages" not in data
    assert "member_responses" not in data


def test_to_dict_and_from_dict():
    response = RunResponse(
        content="The answer is 4",
        run_id="run-1",
        session_id="session-1",
        messages=[Message(role="user", content="2 + 2?"), Message(role="assistant", content="The answer is 4")],
        tools=[{"tool_name": "add", "tool_args": {"a": 2, "b": 2}, "content": "4"}],
        reasoning_steps=[ReasoningStep(title="Add", reasoning="2 + 2", next_action=NextAction.FINAL_ANSWER)],
        member_responses=[RunResponse(content="4", agent_id="calculator")],
        metrics={"total_tokens": 12},
    )

    restored = RunResponse.from_dict(response.to_dict())

    assert restored.content == "The answer is 4"
    assert [m.content for m in restored.messages] == ["2 + 2?", "The answer is 4"]
    assert restored.tools[0]["content"] == "4"
    assert restored.reasoning_steps[0].next_action == NextAction.FINAL_ANSWER
    assert restored.member_responses[0].agent_id == "calculator"
    assert restored.metrics == {"total_tokens": 12}


def test_structured_content_is_dumped():
    response = RunResponse(content=Answer(text="yes", score=3), content_type="Answer")

    assert response.to_dict()["content"] == {"text": "yes", "score": 3}
    assert json.loads(response.to_json())["content_type"] == "Answer"


def test_get_content_as_string():
    assert RunResponse(content="plain").get_content_as_string() == "plain"
    assert RunResponse().get_content_as_string() == ""
    assert RunResponse(content=Answer(text="yes", score=3)).get_content_as_string() == '{"text":"yes","score":3}'
    assert RunResponse(content={"a": 1}).get_content_as_string() == '{"a": 1}'
