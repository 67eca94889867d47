from tutor.reasoning.step import NextAction
from tutor.tools.reasoning import (
    CURRENT_RUN_KEY,
    REASONING_STEPS_KEY,
    ReasoningTools,
    format_reasoning_steps,
    get_reasoning_steps,
)


def test_default_registration():
    tools = ReasoningTools()
    assert list(tools.functions) == ["think", "analyze"]
    assert tools.instructions == ReasoningTools.DEFAULT_INSTRUCTIONS
    assert tools.add_instructions is False


def test_flags_and_few_shot():
    tools = ReasoningTools(enable_analyze=False, add_instructions=True, add_few_shot=True)
    assert list(tools.functions) == ["think"]
    assert tools.add_instructions is True
    assert ReasoningTools.FEW_SHOT_EXAMPLES in tools.instructions

    custom = ReasoningTools(instructions="Think hard.", add_few_shot=True, few_shot_examples="Example.")
    assert custom.instructions == "Think hard.\nExample."


def test_session_state_is_hidden_from_the_model():
    think = ReasoningTools().functions["think"]
    assert "session_state" not in think.parameters["properties"]
    assert think.parameters["required"] == ["title", "thought"]


def test_think_and_analyze_record_steps_per_run():
    tools = ReasoningTools()
    session_state = {CURRENT_RUN_KEY: "run-1"}

    tools.think(session_state, title="Plan", thought="Split the problem", action="Search")
    output = tools.analyze(session_state, title="Check", result="Found it", analysis="Looks right", next_action="final_answer")

    assert "Step 1:\nTitle: Plan" in output
    assert "Step 2:\nTitle: Check" in output
    assert "Next Action: final_answer" in output

    steps = get_reasoning_steps(session_state, "run-1")
    assert [s.title for s in steps] == ["Plan", "Check"]
    assert steps[0].next_action == NextAction.CONTINUE
    assert steps[1].next_action == NextAction.FINAL_ANSWER

    # A new run starts with a clean list
    session_state[CURRENT_RUN_KEY] = "run-2"
    tools.think(session_state, title="Other", thought="Different question")
    assert len(get_reasoning_steps(session_state, "run-2")) == 1
    assert len(session_state[REASONING_STEPS_KEY]["run-1"]) == 2


def test_unknown_next_action_defaults_to_continue():
    tools = ReasoningTools()
    session_state = {}
    tools.analyze(session_state, title="Check", result="r", analysis="a", next_action="jump")
    assert get_reasoning_steps(session_state)[0].next_action == NextAction.CONTINUE


def test_format_reasoning_steps_empty():
    assert format_reasoning_steps([]) == ""
    assert get_reasoning_steps(None) == []
