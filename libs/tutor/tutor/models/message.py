import json
from time import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tutor.utils.log import log_debug


class MessageMetrics(BaseModel):
    """Token and timing metrics recorded for a single assistant message."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    time_to_first_token: Optional[float] = None
    response_time: Optional[float] = None

    def __add__(self, other: "MessageMetrics") -> "MessageMetrics":
        return MessageMetrics(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
            response_time=(self.response_time or 0) + (other.response_time or 0),
        )


class Message(BaseModel):
    """Message sent to the Model"""

    # The role of the message author.
    # One of system, developer, user, assistant, or tool.
    role: str
    # The contents of the message.
    content: Optional[Any] = None
    # An optional name for the participant.
    name: Optional[str] = None
    # Tool call that this message is responding to.
    tool_call_id: Optional[str] = None
    # The tool calls generated by the model, such as function calls.
    tool_calls: Optional[List[Dict[str, Any]]] = None

    # Reasoning content returned by reasoning models
    reasoning_content: Optional[str] = None

    # --- Data not sent to the Model API ---
    # The name of the tool called
    tool_name: Optional[str] = None
    # Arguments passed to the tool
    tool_args: Optional[Any] = None
    # The error of the tool call
    tool_call_error: Optional[bool] = None
    # If True, the agent will stop executing after this tool call.
    stop_after_tool_call: bool = False
    # When True, the message will be sent to the Model API
    add_to_agent_memory: bool = True
    # This flag is enabled when a message is fetched from the agent's memory.
    from_history: bool = False
    # Metrics for the message.
    metrics: MessageMetrics = Field(default_factory=MessageMetrics)
    # The references added to the message for RAG
    references: Optional[Dict[str, Any]] = None
    # The Unix timestamp the message was created.
    created_at: int = Field(default_factory=lambda: int(time()))

    model_config = ConfigDict(extra="allow", populate_by_name=True, arbitrary_types_allowed=True)

    def get_content_string(self) -> str:
        """Returns the content as a string."""
        if isinstance(self.content, str):
            return self.content
        if isinstance(self.content, list):
            if len(self.content) > 0 and isinstance(self.content[0], dict) and "text" in self.content[0]:
                return self.content[0].get("text", "")
            return json.dumps(self.content)
        return ""

    def to_dict(self) -> Dict[str, Any]:
        """Returns the message as a dictionary in the provider wire format."""
        message_dict: Dict[str, Any] = {
            "role": self.role,
            "content": self.content,
            "name": self.name,
            "tool_call_id": self.tool_call_id,
            "tool_calls": self.tool_calls,
        }
        # Filter out None values
        message_dict = {k: v for k, v in message_dict.items() if v is not None}
        # The assistant message must always carry a content key, even when it only calls tools
        if self.role == "assistant" and "content" not in message_dict:
            message_dict["content"] = None
        return message_dict

    def log(self, metrics: bool = True, level: Optional[str] = None):
        """Log the message to the console"""
        _logger = log_debug
        header = f"{self.role.capitalize()}"
        _logger(f"=========== {header} ===========")

        if self.name:
            _logger(f"Name: {self.name}")
        if self.tool_call_id:
            _logger(f"Tool call Id: {self.tool_call_id}")
        if self.reasoning_content:
            _logger(f"<reasoning>\n{self.reasoning_content}\n</reasoning>")
        if self.content:
            if isinstance(self.content, str) or isinstance(self.content, list):
                _logger(self.content)
            elif isinstance(self.content, dict):
                _logger(json.dumps(self.content, indent=2))
        if self.tool_calls:
            tool_calls_list = ["Tool Calls:"]
            for tool_call in self.tool_calls:
                tool_id = tool_call.get("id")
                function_name = tool_call.get("function", {}).get("name")
                tool_calls_list.append(f"  - ID: '{tool_id}'" if tool_id else "  -")
                tool_calls_list.append(f"    Name: '{function_name}'")
                tool_call_arguments = tool_call.get("function", {}).get("arguments")
                if tool_call_arguments:
                    try:
                        arguments = ", ".join(f"{k}: {v}" for k, v in json.loads(tool_call_arguments).items())
                        tool_calls_list.append(f"    Arguments: '{arguments}'")
                    except json.JSONDecodeError:
                        tool_calls_list.append("    Arguments: 'Invalid JSON format'")
            _logger("\n".join(tool_calls_list))
        if metrics and self.role == "assistant" and self.metrics.total_tokens > 0:
            _logger(
                f"* Tokens: input={self.metrics.input_tokens}, output={self.metrics.output_tokens}, "
                f"total={self.metrics.total_tokens}"
            )
            if self.metrics.response_time is not None:
                _logger(f"* Time: {self.metrics.response_time:.4f}s")
