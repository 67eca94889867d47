import json
from dataclasses import dataclass, field
from enum import Enum
from time import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from tutor.models.message import Message
from tutor.reasoning.step import ReasoningStep
from tutor.utils.log import log_error


class RunEvent(str, Enum):
    """Events that can be sent by the run() functions"""

    run_started = "RunStarted"
    run_response = "RunResponse"
    run_completed = "RunCompleted"
    run_error = "RunError"
    tool_call_started = "ToolCallStarted"
    tool_call_completed = "ToolCallCompleted"
    reasoning_step = "ReasoningStep"
    updating_memory = "UpdatingMemory"


@dataclass
class RunResponse:
    """Response returned by Agent.run() and Team.run()"""

    content: Optional[Any] = None
    content_type: str = "str"
    reasoning_content: Optional[str] = None
    event: str = RunEvent.run_response.value

    run_id: Optional[str] = None
    agent_id: Optional[str] = None
    team_id: Optional[str] = None
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    model: Optional[str] = None
    model_provider: Optional[str] = None

    messages: Optional[List[Message]] = None
    # Tool executions: {"tool_call_id", "tool_name", "tool_args", "content", "tool_call_error", "metrics"}
    tools: Optional[List[Dict[str, Any]]] = None
    formatted_tool_calls: Optional[List[str]] = None
    reasoning_steps: Optional[List[ReasoningStep]] = None
    # Documents retrieved for the user message: {"query", "references", "time"}
    references: Optional[List[Dict[str, Any]]] = None
    # Responses of the members a team delegated to
    member_responses: List["RunResponse"] = field(default_factory=list)
    metrics: Optional[Dict[str, Any]] = None

    created_at: int = field(default_factory=lambda: int(time()))

    def to_dict(self) -> Dict[str, Any]:
        _dict: Dict[str, Any] = {
            "content": self.content.model_dump(exclude_none=True)
            if isinstance(self.content, BaseModel)
            else self.content,
            "content_type": self.content_type,
            "reasoning_content": self.reasoning_content,
            "event": self.event,
            "run_id": self.run_id,
            "agent_id": self.agent_id,
            "team_id": self.team_id,
            "session_id": self.session_id,
            "user_id": self.user_id,
            "model": self.model,
            "model_provider": self.model_provider,
            "tools": self.tools,
            "formatted_tool_calls": self.formatted_tool_calls,
            "references": self.references,
            "metrics": self.metrics,
            "created_at": self.created_at,
        }
        _dict = {k: v for k, v in _dict.items() if v is not None}
        if self.messages is not None:
            _dict["messages"] = [m.to_dict() for m in self.messages]
        if self.reasoning_steps is not None:
            _dict["reasoning_steps"] = [step.model_dump(mode="json", exclude_none=True) for step in self.reasoning_steps]
        if self.member_responses:
            _dict["member_responses"] = [r.to_dict() for r in self.member_responses]
        return _dict

    def to_json(self) -> str:
        try:
            _dict = self.to_dict()
        except Exception:
            log_error("Failed to convert response to json", exc_info=True)
            raise

        return json.dumps(_dict, indent=2, default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunResponse":
        data = dict(data)
        messages = data.pop("messages", None)
        messages = [Message.model_validate(message) for message in messages] if messages else None
        reasoning_steps = data.pop("reasoning_steps", None)
        reasoning_steps = [ReasoningStep.model_validate(s) for s in reasoning_steps] if reasoning_steps else None
        member_responses = [cls.from_dict(r) for r in data.pop("member_responses", None) or []]
        return cls(messages=messages, reasoning_steps=reasoning_steps, member_responses=member_responses, **data)

    def get_content_as_string(self, **kwargs) -> str:
        if isinstance(self.content, str):
            return self.content
        elif isinstance(self.content, BaseModel):
            return self.content.model_dump_json(exclude_none=True, **kwargs)
        elif self.content is None:
            return ""
        else:
            return json.dumps(self.content, **kwargs)
