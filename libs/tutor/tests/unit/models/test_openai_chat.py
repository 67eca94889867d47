from copy import deepcopy
from unittest.mock import MagicMock

import httpx
import pytest
from openai import APIStatusError, RateLimitError
from openai.types.chat.chat_completion import ChatCompletion
from openai.types.chat.chat_completion_chunk import ChatCompletionChunk
from pydantic import BaseModel

from tutor.exceptions import ModelProviderError, ModelRateLimitError
from tutor.memory.memory import Memory
from tutor.models.message import Message
from tutor.models.openai import OpenAIChat, OpenAILike
from tutor.models.utils import get_default_model, get_model


class Answer(BaseModel):
    text: str


def _completion(content=None, tool_calls=None):
    return ChatCompletion.model_validate(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-4o-mini",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop" if tool_calls is None else "tool_calls",
                    "message": {"role": "assistant", "content": content, "tool_calls": tool_calls},
                }
            ],
            "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
        }
    )


def test_parse_provider_response_with_content():
    model = OpenAIChat(id="gpt-4o-mini")

    response = model.parse_provider_response(_completion(content="Hello"))

    assert response.role == "assistant"
    assert response.content == "Hello"
    assert response.response_usage == {"input_tokens": 10, "output_tokens": 5, "total_tokens": 15}


def test_parse_provider_response_with_tool_calls():
    model = OpenAIChat(id="gpt-4o-mini")
    tool_calls = [{"id": "call_1", "type": "function", "function": {"name": "add", "arguments": '{"a": 1, "b": 2}'}}]

    response = model.parse_provider_response(_completion(tool_calls=tool_calls))

    assert response.content is None
    assert response.tool_calls[0]["function"]["name"] == "add"
    assert response.tool_calls[0]["id"] == "call_1"


def test_parse_provider_response_delta():
    model = OpenAIChat(id="gpt-4o-mini")
    chunk = ChatCompletionChunk.model_validate(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion.chunk",
            "created": 0,
            "model": "gpt-4o-mini",
            "choices": [{"index": 0, "delta": {"content": "Hel"}, "finish_reason": None}],
        }
    )

    delta = model.parse_provider_response_delta(chunk)

    assert delta.content == "Hel"
    assert delta.response_usage is None


def test_invoke_uses_client():
    client = MagicMock()
    client.chat.completions.create.return_value = _completion(content="Hi there")
    model = OpenAIChat(id="gpt-4o-mini", client=client, temperature=0.2)

    response = model.invoke(messages=[Message(role="user", content="Hi")])

    assert response.content == "Hi there"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]
    assert kwargs["temperature"] == 0.2


def test_request_params_for_structured_outputs():
    model = OpenAIChat(id="gpt-4o", structured_outputs=True)
    params = model.get_request_params(response_format=Answer)
    assert params["response_format"]["type"] == "json_schema"
    assert params["response_format"]["json_schema"]["name"] == "Answer"

    json_mode = OpenAILike(id="llama3.1").get_request_params(response_format=Answer)
    assert json_mode["response_format"] == {"type": "json_object"}


def test_system_message_role_is_rewritten():
    model = OpenAIChat(id="o3-mini", system_message_role="developer")
    formatted = model._format_message(Message(role="system", content="Be brief"))
    assert formatted == {"role": "developer", "content": "Be brief"}


def test_get_model_from_string():
    model = get_model("openai:gpt-4o-mini")
    assert isinstance(model, OpenAIChat)
    assert model.id == "gpt-4o-mini"

    ollama = get_model("ollama:llama3.1")
    assert isinstance(ollama, OpenAILike)
    assert ollama.provider == "Ollama"
    assert ollama.base_url == "http://localhost:11434/v1"

    assert get_model(None) is None
    assert get_model(model) is model


def test_get_model_invalid_strings():
    with pytest.raises(ValueError):
        get_model("unknown:model")
    with pytest.raises(ValueError):
        get_model("openai:")


def test_get_default_model_from_env(monkeypatch):
    monkeypatch.setenv("TUTOR_DEFAULT_MODEL", "lmstudio:qwen2.5-7b-instruct")
    model = get_default_model()
    assert model.id == "qwen2.5-7b-instruct"
    assert model.provider == "LMStudio"


def _http_response(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))


def test_rate_limit_error_is_mapped():
    client = MagicMock()
    client.chat.completions.create.side_effect = RateLimitError("slow down", response=_http_response(429), body=None)
    model = OpenAIChat(id="gpt-4o-mini", client=client)

    with pytest.raises(ModelRateLimitError) as exc_info:
        model.invoke(messages=[Message(role="user", content="Hi")])

    assert exc_info.value.status_code == 429
    assert exc_info.value.model_id == "gpt-4o-mini"


def test_status_error_is_mapped():
    client = MagicMock()
    client.chat.completions.create.side_effect = APIStatusError("bad request", response=_http_response(400), body=None)
    model = OpenAIChat(id="gpt-4o-mini", client=client)

    with pytest.raises(ModelProviderError) as exc_info:
        model.invoke(messages=[Message(role="user", content="Hi")])

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "bad request"


def test_deep_copy_of_a_used_model_recreates_the_client():
    http_client = httpx.Client()
    model = OpenAIChat(id="gpt-4o-mini", api_key="sk-test", http_client=http_client)
    model.get_client()

    copied = deepcopy(model)

    assert copied.client is None
    assert copied.http_client is http_client
    assert copied.api_key == "sk-test"
    assert copied.get_client() is not model.client


def test_memory_accepts_a_used_model():
    model = OpenAIChat(id="gpt-4o-mini", api_key="sk-test")
    model.get_client()

    memory = Memory(model=model)

    assert memory.memory_manager.model is not model
    assert memory.memory_manager.model.id == "gpt-4o-mini"
