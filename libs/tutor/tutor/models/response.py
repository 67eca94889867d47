from dataclasses import dataclass, field
from enum import Enum
from time import time
from typing import Any, Dict, List, Optional

from tutor.utils.response import format_tool_calls


class ModelResponseEvent(str, Enum):
    """Events that can be sent by the model provider"""

    tool_call_started = "ToolCallStarted"
    tool_call_completed = "ToolCallCompleted"
    assistant_response = "AssistantResponse"


@dataclass
class ModelResponse:
    """Response from the model provider"""

    role: Optional[str] = None

    content: Optional[str] = None
    parsed: Optional[Any] = None
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    # Tool executions completed while producing this response
    tool_executions: List[Dict[str, Any]] = field(default_factory=list)
    formatted_tool_calls: List[str] = field(default_factory=list)
    event: str = ModelResponseEvent.assistant_response.value

    reasoning_content: Optional[str] = None

    # Provider usage, e.g. {"input_tokens": 10, "output_tokens": 20, "total_tokens": 30}
    response_usage: Optional[Dict[str, int]] = None

    created_at: int = field(default_factory=lambda: int(time()))

    def format_tool_calls(self) -> None:
        """Format tool calls for display in a readable format."""
        self.formatted_tool_calls = format_tool_calls(self.tool_executions)
