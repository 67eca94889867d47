"""Helpers for the Streamlit chat app that do not need a Streamlit runtime."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

# Display name -> "provider:model_id" string accepted by get_model
MODEL_OPTIONS: Dict[str, str] = {
    "gpt-4o": "openai:gpt-4o",
    "gpt-4o-mini": "openai:gpt-4o-mini",
    "o3-mini": "openai:o3-mini",
    "llama3.1 (Ollama)": "ollama:llama3.1",
    "qwen2.5 (LM Studio)": "lmstudio:qwen2.5-7b-instruct",
}


def format_tool_calls(tools: Optional[List[Any]]) -> List[Dict[str, Any]]:
    """Normalize tool executions into {"name", "args", "result"} for display."""
    formatted: List[Dict[str, Any]] = []
    for tool in tools or []:
        if isinstance(tool, dict):
            name = tool.get("tool_name") or tool.get("name") or "Tool"
            args = tool.get("tool_args") or tool.get("args") or {}
            result = tool.get("content") or tool.get("result") or ""
        else:
            name = getattr(tool, "tool_name", None) or "Tool"
            args = getattr(tool, "tool_args", None) or {}
            result = getattr(tool, "content", None) or ""
        formatted.append({"name": name, "args": args, "result": result})
    return formatted


def get_chat_title(messages: List[Dict[str, Any]], max_length: int = 100) -> str:
    for msg in messages:
        if msg.get("role") == "user" and msg.get("content"):
            title = str(msg["content"])[:max_length]
            if len(str(msg["content"])) > max_length:
                title += "..."
            return title
    return "Chat History"


def format_chat_history_markdown(
    messages: List[Dict[str, Any]], title: Optional[str] = None, exported_at: Optional[datetime] = None
) -> str:
    """Render the chat history as a markdown document.

    Args:
        messages: Chat messages as {"role", "content", "tool_calls"} dicts
        title: Document title, defaults to the first user message
        exported_at: Export time, defaults to now
    """
    if not messages:
        return "# Chat History\n\n*No messages to export*"

    _title = title or get_chat_title(messages)
    _exported_at = exported_at or datetime.now()

    chat_text = f"# {_title}\n\n"
    chat_text += f"**Exported:** {_exported_at.strftime('%B %d, %Y at %I:%M %p')}\n\n"
    chat_text += "---\n\n"

    for msg in messages:
        role = msg.get("role", "")
        content = msg.get("content", "")
        if not content or str(content).strip().lower() == "none":
            continue

        role_display = "## User" if role == "user" else "## Assistant"
        chat_text += f"{role_display}\n\n{content}\n\n"
        tool_calls = format_tool_calls(msg.get("tool_calls"))
        for tool in tool_calls:
            chat_text += f"- Tool `{tool['name']}` called with `{json.dumps(tool['args'], default=str)}`\n"
        if tool_calls:
            chat_text += "\n"
        chat_text += "---\n\n"
    return chat_text
