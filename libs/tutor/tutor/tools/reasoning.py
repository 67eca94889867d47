from textwrap import dedent
from typing import Any, Dict, List, Optional

from tutor.reasoning.step import NextAction, ReasoningStep
from tutor.tools.toolkit import Toolkit
from tutor.utils.log import log_debug, log_error

REASONING_STEPS_KEY = "reasoning_steps"
CURRENT_RUN_KEY = "current_run_id"


def add_reasoning_step(session_state: Dict[str, Any], step: ReasoningStep) -> List[ReasoningStep]:
    """Record a step for the current run and return every step recorded for that run so far."""
    run_id = session_state.get(CURRENT_RUN_KEY, "default")
    steps_by_run: Dict[str, List[Dict[str, Any]]] = session_state.setdefault(REASONING_STEPS_KEY, {})
    steps_by_run.setdefault(run_id, []).append(step.model_dump(mode="json"))
    return get_reasoning_steps(session_state, run_id)


def get_reasoning_steps(session_state: Optional[Dict[str, Any]], run_id: Optional[str] = None) -> List[ReasoningStep]:
    if not session_state:
        return []
    _run_id = run_id or session_state.get(CURRENT_RUN_KEY, "default")
    raw_steps = (session_state.get(REASONING_STEPS_KEY) or {}).get(_run_id, [])
    return [ReasoningStep.model_validate(s) for s in raw_steps]


def format_reasoning_steps(steps: List[ReasoningStep]) -> str:
    formatted = ""
    for i, step in enumerate(steps, 1):
        formatted += f"Step {i}:\nTitle: {step.title}\n"
        if step.reasoning:
            formatted += f"Reasoning: {step.reasoning}\n"
        if step.action:
            formatted += f"Action: {step.action}\n"
        if step.result:
            formatted += f"Result: {step.result}\n"
        if step.next_action:
            formatted += f"Next Action: {step.next_action.value}\n"
        formatted += f"Confidence: {step.confidence}\n\n"
    return formatted.strip()


class ReasoningTools(Toolkit):
    def __init__(
        self,
        enable_think: bool = True,
        enable_analyze: bool = True,
        all: bool = False,
        instructions: Optional[str] = None,
        add_instructions: bool = False,
        add_few_shot: bool = False,
        few_shot_examples: Optional[str] = None,
        **kwargs,
    ):
        """A toolkit that gives an agent a scratchpad to think and analyze before answering.

        Args:
            enable_think: Register the think tool
            enable_analyze: Register the analyze tool
            all: Register every tool regardless of the individual flags
            instructions: Custom instructions, replacing the default ones
            add_instructions: Add the instructions to the agent's system message
            add_few_shot: Append few-shot examples to the instructions
            few_shot_examples: Custom few-shot examples
        """
        if instructions is None:
            self.instructions = self.DEFAULT_INSTRUCTIONS
        else:
            self.instructions = instructions
        if add_few_shot:
            self.instructions += "\n" + (few_shot_examples or self.FEW_SHOT_EXAMPLES)

        tools: List[Any] = []
        if all or enable_think:
            tools.append(self.think)
        if all or enable_analyze:
            tools.append(self.analyze)

        super().__init__(
            name="reasoning_tools",
            instructions=self.instructions,
            add_instructions=add_instructions,
            tools=tools,
            **kwargs,
        )

    def think(
        self,
        session_state: Dict[str, Any],
        title: str,
        thought: str,
        action: Optional[str] = None,
        confidence: float = 0.8,
    ) -> str:
        """Use this tool as a scratchpad to reason about the question and work through it step-by-step.
        This tool will help you break down complex problems into logical steps and track the reasoning process.
        You can call it as many times as needed. These internal thoughts are never revealed to the user.

        Args:
            title: A concise title for this step
            thought: Your detailed thought for this step
            action: What you'll do based on this thought
            confidence: How confident you are about this thought (0.0 to 1.0)

        Returns:
            A list of previous thoughts and the new thought
        """
        try:
            log_debug(f"Thought about {title}")
            reasoning_step = ReasoningStep(
                title=title,
                reasoning=thought,
                action=action,
                next_action=NextAction.CONTINUE,
                confidence=confidence,
            )
            steps = add_reasoning_step(session_state, reasoning_step)
            return format_reasoning_steps(steps)
        except Exception as e:
            log_error(f"Error recording thought: {e}")
            return f"Error recording thought: {e}"

    def analyze(
        self,
        session_state: Dict[str, Any],
        title: str,
        result: str,
        analysis: str,
        next_action: str = "continue",
        confidence: float = 0.8,
    ) -> str:
        """Use this tool to analyze results from a reasoning step and determine next actions.

        Args:
            title: A concise title for this analysis step
            result: The outcome of the previous action
            analysis: Your analysis of the results
            next_action: What to do next ("continue", "validate", or "final_answer")
            confidence: How confident you are in this analysis (0.0 to 1.0)

        Returns:
            A list of previous thoughts and the new analysis
        """
        try:
            log_debug(f"Analysis step: {title}")
            next_action_enum = {
                "continue": NextAction.CONTINUE,
                "validate": NextAction.VALIDATE,
                "final_answer": NextAction.FINAL_ANSWER,
                "reset": NextAction.RESET,
            }.get(next_action.lower(), NextAction.CONTINUE)
            reasoning_step = ReasoningStep(
                title=title,
                result=result,
                reasoning=analysis,
                next_action=next_action_enum,
                confidence=confidence,
            )
            steps = add_reasoning_step(session_state, reasoning_step)
            return format_reasoning_steps(steps)
        except Exception as e:
            log_error(f"Error recording analysis: {e}")
            return f"Error recording analysis: {e}"

    DEFAULT_INSTRUCTIONS = dedent(
        """\
        You have access to the `think` and `analyze` tools to work through problems step-by-step and structure your thought process. You must ALWAYS `think` before making tool calls or generating a response.

        1. **Think** (scratchpad):
            - Purpose: Use the `think` tool as a scratchpad to break down complex problems, outline steps, and decide on immediate actions within your reasoning flow.
            - Usage: Call `think` before making tool calls or generating a response. Explain your reasoning and specify the intended action.

        2. **Analyze** (evaluation):
            - Purpose: Evaluate the result of a think step or a set of tool calls. Assess if the result is expected, sufficient, or requires further investigation.
            - Usage: Call `analyze` after a set of tool calls. Determine the `next_action` based on your analysis: `continue` (more reasoning needed), `validate` (seek external confirmation/validation if possible), or `final_answer` (ready to conclude).

        ## IMPORTANT GUIDELINES
        - **Always Think First:** You MUST use the `think` tool before making tool calls or generating a response.
        - **Iterate to Solve:** Use the `think` and `analyze` tools iteratively to build a clear reasoning path.
        - **Keep Thoughts Internal:** The reasoning steps are for your process only. Do not share the intermediate thoughts directly with the user.
        - **Conclude Clearly:** When your analysis determines the `next_action` is `final_answer`, provide a concise and accurate final answer to the user.\
        """
    )

    FEW_SHOT_EXAMPLES = dedent(
        """\
        Below is an example demonstrating how to use the think and analyze tools effectively.

        Example: Multi-step question

        *User Request:* What is the capital of France and what is its population?

        *Agent's Internal Process:*

        ```tool_call
        think(
          title="Plan the lookup",
          thought="The user asks two things. The capital of France is Paris. I should verify the current population of Paris.",
          action="Search for the population of Paris",
          confidence=0.95
        )
        ```

        *--(Agent calls a search tool and receives a population figure)--*

        ```tool_call
        analyze(
          title="Check the population figure",
          result="Population of Paris is about 2.1 million (city proper)",
          analysis="The figure answers the second part of the question and comes from a reliable source.",
          next_action="final_answer",
          confidence=0.9
        )
        ```

        *Agent's Final Answer to User:*
        The capital of France is Paris. Its city population is approximately 2.1 million.\
        """
    )
