import io
import uuid

import pytest
from pydantic import BaseModel
from rich.console import Console

from tutor.agent._tools import parse_tools
from tutor.agent.agent import Agent
from tutor.exceptions import StopAgentRun
from tutor.knowledge.knowledge import Knowledge
from tutor.memory.manager import MemoryManager
from tutor.memory.memory import Memory
from tutor.models.response import ModelResponse
from tutor.run.response import RunEvent
from tutor.tools.reasoning import ReasoningTools
from tutor.vectordb.in_memory import InMemoryVectorDb


class Lesson(BaseModel):
    topic: str
    difficulty: int


def add(a: int, b: int) -> int:
    """Add two numbers.

    Args:
        a: The first number.
        b: The second number.
    """
    return a + b


@pytest.fixture
def handbook(embedder):
    knowledge = Knowledge(name="handbook", vector_db=InMemoryVectorDb(name="handbook", embedder=embedder))
    knowledge.insert(text_content="A tool is a python function the agent can call.", name="tools")
    knowledge.insert(text_content="A team coordinates member agents.", name="teams")
    return knowledge


def test_set_agent_id_from_name():
    agent = Agent(name="Test Name")
    agent.set_id()
    assert agent.id == "test-name"


def test_set_agent_id_without_name_is_uuid():
    agent = Agent()
    agent.set_id()
    assert uuid.UUID(agent.id)


def test_explicit_id_is_kept():
    agent = Agent(name="Test Name", id="custom")
    agent.set_id()
    assert agent.id == "custom"


def test_model_string_is_resolved():
    agent = Agent(model="openai:gpt-4o-mini")
    model = agent.initialize_agent()
    assert model.id == "gpt-4o-mini"
    assert agent.model is model


def test_system_message_from_settings():
    agent = Agent(
        description="You are a patient tutor.",
        instructions=["Explain with examples", "Keep it short"],
        expected_output="A short paragraph.",
        additional_context="The student is a beginner.",
        markdown=True,
    )

    content = agent.get_system_message().content

    assert content.startswith("You are a patient tutor.")
    assert "<instructions>\n- Explain with examples\n- Keep it short\n- Use markdown to format your answers.\n</instructions>" in content
    assert "<expected_output>\nA short paragraph.\n</expected_output>" in content
    assert "The student is a beginner." in content


def test_single_instruction_is_not_a_list():
    agent = Agent(instructions="Be brief")
    assert agent.get_system_message().content == "<instructions>\nBe brief\n</instructions>"


def test_system_message_override_and_empty():
    assert Agent(system_message="Only this", description="ignored").get_system_message().content == "Only this"
    assert Agent().get_system_message() is None


def test_json_prompt_added_for_response_model(scripted_model):
    agent = Agent(model=scripted_model(), response_model=Lesson)
    content = agent.get_system_message().content
    assert '["topic", "difficulty"]' in content
    assert "Make sure it only contains valid JSON." in content


def test_run_returns_content_and_metrics(scripted_model, replies):
    model = scripted_model(replies.answers("Hello student!", usage={"input_tokens": 4, "output_tokens": 3, "total_tokens": 7}))
    agent = Agent(name="Greeter", model=model, instructions="Greet the student")

    response = agent.run("Hi")

    assert response.content == "Hello student!"
    assert response.event == RunEvent.run_completed.value
    assert response.agent_id == "greeter"
    assert response.model == "scripted-model"
    assert response.model_provider == "Scripted"
    assert [m.role for m in response.messages] == ["system", "user", "assistant"]
    assert response.metrics["total_tokens"] == 7
    assert response.session_id == agent.session_id


def test_run_with_tool(scripted_model, replies):
    model = scripted_model(replies.calls_tool("add", a=2, b=3), replies.answers("2 + 3 = 5"))
    agent = Agent(model=model, tools=[add])

    response = agent.run("What is 2 + 3?")

    assert response.content == "2 + 3 = 5"
    assert response.tools[0]["tool_name"] == "add"
    assert response.tools[0]["content"] == "5"
    assert response.formatted_tool_calls == ["add(a=2, b=3)"]
    # The tool result is sent back to the model
    assert model.calls[1][-1].role == "tool"


def test_tools_receive_session_state(scripted_model, replies):
    def add_item(session_state, item: str) -> str:
        """Add an item to the shopping list."""
        session_state["items"].append(item)
        return f"Added {item}"

    model = scripted_model(replies.calls_tool("add_item", item="milk"), replies.answers("Added milk"))
    agent = Agent(model=model, tools=[add_item], session_state={"items": []})

    agent.run("Add milk")

    assert agent.session_state["items"] == ["milk"]


def test_tool_call_limit_is_passed_to_model(scripted_model):
    agent = Agent(model=scripted_model(), tool_call_limit=2)
    assert agent.initialize_agent().tool_call_limit == 2


def test_response_model_is_parsed(scripted_model, replies):
    model = scripted_model(replies.answers('```json\n{"topic": "tools", "difficulty": 2}\n```'))
    agent = Agent(model=model, response_model=Lesson)

    response = agent.run("Plan a lesson")

    assert response.content == Lesson(topic="tools", difficulty=2)
    assert response.content_type == "Lesson"


def test_unparseable_response_is_left_as_string(scripted_model, replies):
    agent = Agent(model=scripted_model(replies.answers("not json")), response_model=Lesson)

    response = agent.run("Plan a lesson")

    assert response.content == "not json"
    assert response.content_type == "str"


def test_add_references_to_user_message(scripted_model, replies, handbook):
    model = scripted_model(replies.answers("A tool is a function."))
    agent = Agent(model=model, knowledge=handbook, add_references=True, search_knowledge=False, num_references=1)

    response = agent.run("What is a tool?")

    assert response.references[0]["query"] == "What is a tool?"
    assert response.references[0]["references"][0]["name"] == "tools"
    user_message = model.calls[0][-1]
    assert "<references>" in user_message.content
    assert "python function" in user_message.content
    # No search tool when the references are added up front
    assert response.tools is None


def test_search_knowledge_base_tool(scripted_model, replies, handbook):
    model = scripted_model(replies.calls_tool("search_knowledge_base", query="team members"), replies.answers("Teams coordinate."))
    agent = Agent(model=model, knowledge=handbook, num_references=1)

    response = agent.run("How do teams work?")

    assert "search_knowledge_base" in agent.get_system_message().content
    assert response.tools[0]["tool_name"] == "search_knowledge_base"
    assert "member agents" in response.tools[0]["content"]
    assert response.references[0]["query"] == "team members"


def test_history_is_added_to_messages(scripted_model, replies):
    model = scripted_model(replies.answers("Nice to meet you, Ava."), replies.answers("Your name is Ava."))
    agent = Agent(model=model, add_history_to_messages=True, num_history_runs=1)

    agent.run("My name is Ava", session_id="s1")
    response = agent.run("What is my name?", session_id="s1")

    second_call = model.calls[1]
    assert [(m.role, m.content) for m in second_call] == [
        ("user", "My name is Ava"),
        ("assistant", "Nice to meet you, Ava."),
        ("user", "What is my name?"),
    ]
    assert second_call[0].from_history is True
    assert response.content == "Your name is Ava."
    assert len(agent.memory.get_runs("s1")) == 2


def test_stream_events(scripted_model, replies):
    model = scripted_model(replies.calls_tool("add", a=1, b=1), replies.answers("The answer is 2"))
    agent = Agent(model=model, tools=[add])

    events = list(agent.run("1 + 1?", stream=True))

    names = [e.event for e in events]
    assert names[0] == RunEvent.run_started.value
    assert RunEvent.tool_call_started.value in names
    assert RunEvent.tool_call_completed.value in names
    assert names[-1] == RunEvent.run_completed.value
    completed_tool = next(e for e in events if e.event == RunEvent.tool_call_completed.value)
    assert completed_tool.formatted_tool_calls == ["add(a=1, b=1)"]
    streamed = "".join(e.content for e in events if e.event == RunEvent.run_response.value and e.content)
    assert streamed == "The answer is 2"
    assert events[-1].content == "The answer is 2"
    assert events[-1].tools[0]["content"] == "2"


def test_reasoning_steps_are_collected(scripted_model, replies):
    model = scripted_model(
        replies.calls_tool("think", title="Plan", thought="Split the problem"),
        replies.answers("Done"),
    )
    agent = Agent(model=model, reasoning=True)

    response = agent.run("Solve it")

    assert [step.title for step in response.reasoning_steps] == ["Plan"]
    assert response.reasoning_steps[0].reasoning == "Split the problem"
    # The think tool instructions are part of the system message
    assert "think" in model.calls[0][0].content


def test_agentic_memory_tool(scripted_model, replies):
    manager_model = scripted_model(replies.calls_tool("add_memory", memory="Ava likes cats"), replies.answers("ok"))
    memory = Memory(memory_manager=MemoryManager(model=manager_model))
    model = scripted_model(
        replies.calls_tool("update_user_memory", task="Remember that Ava likes cats"),
        replies.answers("I will remember that."),
    )
    agent = Agent(model=model, memory=memory, enable_agentic_memory=True)

    response = agent.run("I like cats", user_id="ava")

    assert response.content == "I will remember that."
    assert response.tools[0]["content"] == "Added memory: Ava likes cats"
    assert [m.memory for m in memory.get_user_memories(user_id="ava")] == ["Ava likes cats"]
    assert "<updating_user_memories>" in model.calls[0][0].content


def test_user_memories_are_created_and_added_to_context(scripted_model, replies):
    manager_model = scripted_model(
        replies.calls_tool("add_memory", memory="Ava is learning Python"),
        replies.answers("ok"),
    )
    memory = Memory(memory_manager=MemoryManager(model=manager_model))
    model = scripted_model(replies.answers("Welcome!"), replies.answers("You are learning Python."))
    agent = Agent(model=model, memory=memory, enable_user_memories=True, user_id="ava")

    agent.run("I'm learning Python")
    agent.run("What am I learning?")

    assert "have not had any interactions" in model.calls[0][0].content
    assert "- Ava is learning Python" in model.calls[1][0].content


def test_deep_copy_shares_knowledge(handbook):
    agent = Agent(name="Original", knowledge=handbook, instructions=["Be kind"])

    copy = agent.deep_copy(update={"name": "Copy"})

    assert copy.name == "Copy"
    assert copy.knowledge is handbook
    assert copy.instructions == ["Be kind"]
    assert copy.instructions is not agent.instructions


@pytest.mark.parametrize("stream", [False, True])
def test_print_response_runs_the_agent(scripted_model, replies, stream):
    model = scripted_model(replies.calls_tool("add", a=1, b=2), replies.answers("1 + 2 = 3"))
    agent = Agent(model=model, tools=[add], markdown=True)

    agent.print_response("What is 1 + 2?", stream=stream, console=Console(file=io.StringIO()))

    assert agent.run_response.content == "1 + 2 = 3"
    assert len(model.calls) == 2


def test_replayed_history_answers_every_tool_call(scripted_model, replies):
    def hand_off() -> str:
        """Hand the conversation to a human."""
        raise StopAgentRun("stop", agent_message="A human will take over")

    model = scripted_model(
        ModelResponse(role="assistant", tool_calls=[replies.tool_call("hand_off", "a"), replies.tool_call("add", "b", a=1, b=2)]),
        replies.answers("Hello again"),
    )
    agent = Agent(model=model, tools=[hand_off, add], add_history_to_messages=True)

    first = agent.run("Help", session_id="s1")
    agent.run("Are you there?", session_id="s1")

    assert first.content == "A human will take over"
    replayed = model.calls[1]
    call_ids = {tc["id"] for m in replayed if m.role == "assistant" for tc in m.tool_calls or []}
    answered = {m.tool_call_id for m in replayed if m.role == "tool"}
    assert call_ids == {"a", "b"}
    assert answered == call_ids


def test_shared_toolkit_is_bound_per_owner():
    toolkit = ReasoningTools()
    tutor, helper = Agent(name="Tutor"), Agent(name="Helper")
    tutor_state, helper_state = {}, {}

    tutor_functions = parse_tools([toolkit], owner=tutor, session_state=tutor_state)
    helper_functions = parse_tools([toolkit], owner=helper, session_state=helper_state)

    assert tutor_functions["think"]._agent is tutor
    assert tutor_functions["think"]._session_state is tutor_state
    assert helper_functions["think"]._agent is helper
    assert helper_functions["think"]._session_state is helper_state
    assert toolkit.get_functions()["think"]._agent is None
