from typing import Any, Dict, List, Optional, Set

from rich.box import HEAVY
from rich.panel import Panel


def create_panel(content: Any, title: str, border_style: str = "blue") -> Panel:
    return Panel(content, title=title, title_align="left", border_style=border_style, box=HEAVY, expand=True, padding=(1, 1))


def escape_markdown_tags(content: str, tags: Optional[Set[str]] = None) -> str:
    """Escape special tags like <think> so that markdown rendering shows them."""
    escaped_content = content
    for tag in tags or set():
        escaped_content = escaped_content.replace(f"<{tag}>", f"&lt;{tag}&gt;")
        escaped_content = escaped_content.replace(f"</{tag}>", f"&lt;/{tag}&gt;")
    return escaped_content


def format_tool_calls(tool_calls: List[Dict[str, Any]]) -> List[str]:
    """Format tool executions as ``name(arg=value, ...)`` strings for display."""
    formatted_tool_calls = []
    for tool_call in tool_calls:
        tool_name = tool_call.get("tool_name")
        if tool_name is None:
            continue
        tool_args = tool_call.get("tool_args") or {}
        args_str = ", ".join(f"{k}={v}" for k, v in tool_args.items())
        formatted_tool_calls.append(f"{tool_name}({args_str})")
    return formatted_tool_calls
