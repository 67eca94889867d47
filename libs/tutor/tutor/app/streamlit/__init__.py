from tutor.app.streamlit.utils import MODEL_OPTIONS, format_chat_history_markdown, format_tool_calls

__all__ = [
    "MODEL_OPTIONS",
    "format_chat_history_markdown",
    "format_tool_calls",
]
