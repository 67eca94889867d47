import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pytest

from tutor.knowledge.embedder.base import Embedder
from tutor.models.base import Model
from tutor.models.response import ModelResponse

VOCABULARY = ["agent", "tool", "memory", "knowledge", "team", "python", "model", "search", "weather", "cat"]


@dataclass
class ScriptedModel(Model):
    """Model that replays a fixed list of responses, one per invoke call."""

    id: str = "scripted-model"
    name: str = "ScriptedModel"
    provider: str = "Scripted"
    script: List[ModelResponse] = field(default_factory=list)
    calls: List[List[Any]] = field(default_factory=list)

    def _next(self, messages) -> ModelResponse:
        self.calls.append(list(messages))
        if not self.script:
            return ModelResponse(role="assistant", content="done")
        return self.script.pop(0)

    def invoke(self, messages, tools=None, tool_choice=None, response_format=None) -> ModelResponse:
        return self._next(messages)

    def invoke_stream(self, messages, tools=None, tool_choice=None, response_format=None) -> Iterator[ModelResponse]:
        response = self._next(messages)
        if response.content:
            for word in re.findall(r"\S+\s*", response.content):
                yield ModelResponse(role="assistant", content=word)
        if response.tool_calls:
            for index, tool_call in enumerate(response.tool_calls):
                yield ModelResponse(tool_calls=[dict(tool_call, index=index)])
        if response.response_usage:
            yield ModelResponse(response_usage=response.response_usage)


def tool_call(name: str, call_id: str = "call_1", **arguments) -> Dict[str, Any]:
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": json.dumps(arguments)}}


def calls_tool(name: str, call_id: str = "call_1", **arguments) -> ModelResponse:
    return ModelResponse(role="assistant", tool_calls=[tool_call(name, call_id, **arguments)])


def answers(content: str, usage: Optional[Dict[str, int]] = None) -> ModelResponse:
    return ModelResponse(role="assistant", content=content, response_usage=usage)


@dataclass
class KeywordEmbedder(Embedder):
    """Counts vocabulary words, so texts about the same topic land close to each other."""

    dimensions: Optional[int] = len(VOCABULARY)

    def get_embedding(self, text: str) -> List[float]:
        words = re.findall(r"[a-z]+", text.lower())
        vector = [float(sum(1 for w in words if w.startswith(term))) for term in VOCABULARY]
        if not any(vector):
            # Keep unrelated text searchable instead of a zero vector
            vector[-1] = 0.01
        return vector

    def get_embedding_and_usage(self, text: str) -> Tuple[List[float], Optional[Dict]]:
        return self.get_embedding(text), {"total_tokens": len(text.split())}


@pytest.fixture
def scripted_model():
    def _make(*responses: ModelResponse, **kwargs) -> ScriptedModel:
        return ScriptedModel(script=list(responses), **kwargs)

    return _make


@pytest.fixture
def embedder():
    return KeywordEmbedder()


class Replies:
    """Builders for scripted provider responses."""

    tool_call = staticmethod(tool_call)
    calls_tool = staticmethod(calls_tool)
    answers = staticmethod(answers)


@pytest.fixture
def replies():
    return Replies
