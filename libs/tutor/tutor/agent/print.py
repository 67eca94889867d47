import json
from typing import Any, List, Optional, Set, Union

from pydantic import BaseModel
from rich.json import JSON
from rich.markdown import Markdown
from rich.text import Text

from tutor.reasoning.step import ReasoningStep
from tutor.run.response import RunResponse
from tutor.utils.log import log_warning
from tutor.utils.response import create_panel, escape_markdown_tags
from tutor.utils.timer import Timer


def build_message_panel(message: str) -> Any:
    return create_panel(content=Text(message, style="green"), title="Message", border_style="cyan")


def build_reasoning_panels(reasoning_steps: List[ReasoningStep], show_full_reasoning: bool = False) -> List[Any]:
    panels = []
    for i, step in enumerate(reasoning_steps, 1):
        step_content = Text.assemble()
        if step.title is not None:
            step_content.append(f"{step.title}\n", "bold")
        if step.action is not None:
            step_content.append(Text.from_markup(f"[bold]Action:[/bold] {step.action}\n", style="dim"))
        if step.result is not None:
            step_content.append(Text(step.result, style="dim"))

        if show_full_reasoning:
            if step.reasoning is not None:
                step_content.append(Text.from_markup(f"\n[bold]Reasoning:[/bold] {step.reasoning}", style="dim"))
            if step.confidence is not None:
                step_content.append(Text.from_markup(f"\n[bold]Confidence:[/bold] {step.confidence}", style="dim"))
        panels.append(create_panel(content=step_content, title=f"Reasoning step {i}", border_style="green"))
    return panels


def build_tool_calls_panel(formatted_tool_calls: List[str]) -> Any:
    tool_calls_content = Text()
    for formatted_tool_call in formatted_tool_calls:
        tool_calls_content.append(f"• {formatted_tool_call}\n")
    return create_panel(content=tool_calls_content.plain.rstrip(), title="Tool Calls", border_style="yellow")


def render_content(
    content: Any, markdown: bool = False, tags_to_include_in_markdown: Optional[Set[str]] = None
) -> Union[str, JSON, Markdown]:
    if isinstance(content, str):
        if markdown:
            return Markdown(escape_markdown_tags(content, tags_to_include_in_markdown))
        return content
    if isinstance(content, BaseModel):
        try:
            return JSON(content.model_dump_json(exclude_none=True), indent=2)
        except Exception as e:
            log_warning(f"Failed to convert response to JSON: {e}")
            return str(content)
    if content is None:
        return ""
    try:
        return JSON(json.dumps(content), indent=4)
    except Exception as e:
        log_warning(f"Failed to convert response to JSON: {e}")
        return str(content)


def build_panels(
    run_response: RunResponse,
    response_timer: Timer,
    show_tool_calls: bool = True,
    show_reasoning: bool = True,
    show_full_reasoning: bool = False,
    markdown: bool = False,
    tags_to_include_in_markdown: Optional[Set[str]] = None,
) -> List[Any]:
    panels: List[Any] = []

    if show_reasoning and run_response.reasoning_steps:
        panels.extend(build_reasoning_panels(run_response.reasoning_steps, show_full_reasoning))

    if run_response.reasoning_content:
        panels.append(
            create_panel(
                content=Text(run_response.reasoning_content),
                title=f"Thinking ({response_timer.elapsed:.1f}s)",
                border_style="green",
            )
        )

    if show_tool_calls and run_response.formatted_tool_calls:
        panels.append(build_tool_calls_panel(run_response.formatted_tool_calls))

    panels.append(
        create_panel(
            content=render_content(run_response.content, markdown, tags_to_include_in_markdown),
            title=f"Response ({response_timer.elapsed:.1f}s)",
            border_style="blue",
        )
    )
    return panels
