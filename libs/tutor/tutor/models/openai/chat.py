from dataclasses import dataclass
from os import getenv
from typing import Any, Dict, Iterator, List, Optional, Type, Union

import httpx
from pydantic import BaseModel

from tutor.exceptions import ModelProviderError, ModelRateLimitError
from tutor.models.base import Model
from tutor.models.message import Message
from tutor.models.response import ModelResponse
from tutor.utils.log import log_debug, log_error

try:
    from openai import APIConnectionError, APIStatusError, RateLimitError
    from openai import OpenAI as OpenAIClient
    from openai.types.chat.chat_completion import ChatCompletion
    from openai.types.chat.chat_completion_chunk import ChatCompletionChunk
except (ImportError, ModuleNotFoundError):
    raise ImportError("`openai` not installed. Please install using `pip install openai`")


@dataclass
class OpenAIChat(Model):
    """
    A class for interacting with OpenAI models through the Chat Completions API.

    For more information, see: https://platform.openai.com/docs/api-reference/chat/create
    """

    id: str = "gpt-4o"
    name: str = "OpenAIChat"
    provider: str = "OpenAI"
    supports_native_structured_outputs: bool = True

    # Request parameters
    frequency_penalty: Optional[float] = None
    max_tokens: Optional[int] = None
    presence_penalty: Optional[float] = None
    seed: Optional[int] = None
    stop: Optional[Union[str, List[str]]] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    user: Optional[str] = None
    request_params: Optional[Dict[str, Any]] = None

    # Client parameters
    api_key: Optional[str] = None
    organization: Optional[str] = None
    base_url: Optional[Union[str, httpx.URL]] = None
    timeout: Optional[float] = None
    max_retries: Optional[int] = None
    default_headers: Optional[Dict[str, str]] = None
    http_client: Optional[httpx.Client] = None
    client_params: Optional[Dict[str, Any]] = None

    # The OpenAI client, created on first use
    client: Optional[OpenAIClient] = None

    def _get_client_params(self) -> Dict[str, Any]:
        # Fetch API key from env if not already set
        if not self.api_key:
            self.api_key = getenv("OPENAI_API_KEY")
            if not self.api_key:
                log_error("OPENAI_API_KEY not set. Please set the OPENAI_API_KEY environment variable.")
        if self.base_url is None and getenv("OPENAI_BASE_URL"):
            self.base_url = getenv("OPENAI_BASE_URL")

        base_params = {
            "api_key": self.api_key,
            "organization": self.organization,
            "base_url": self.base_url,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "default_headers": self.default_headers,
        }
        # Create client_params dict with non-None values
        client_params = {k: v for k, v in base_params.items() if v is not None}
        # Add additional client params if provided
        if self.client_params:
            client_params.update(self.client_params)
        return client_params

    def get_client(self) -> OpenAIClient:
        """
        Returns an OpenAI client.

        Returns:
            OpenAIClient: An instance of the OpenAI client.
        """
        if self.client is not None:
            return self.client

        client_params: Dict[str, Any] = self._get_client_params()
        if self.http_client is not None:
            client_params["http_client"] = self.http_client
        self.client = OpenAIClient(**client_params)
        return self.client

    def get_request_params(
        self,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Union[str, Dict[str, Any]]] = None,
        response_format: Optional[Union[Dict, Type[BaseModel]]] = None,
    ) -> Dict[str, Any]:
        base_params: Dict[str, Any] = {
            "frequency_penalty": self.frequency_penalty,
            "max_tokens": self.max_tokens,
            "presence_penalty": self.presence_penalty,
            "seed": self.seed,
            "stop": self.stop,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "user": self.user,
        }
        request_params = {k: v for k, v in base_params.items() if v is not None}

        if response_format is not None:
            if isinstance(response_format, type) and issubclass(response_format, BaseModel):
                if self.supports_native_structured_outputs and self.structured_outputs:
                    request_params["response_format"] = {
                        "type": "json_schema",
                        "json_schema": {
                            "name": response_format.__name__,
                            "schema": response_format.model_json_schema(),
                        },
                    }
                else:
                    request_params["response_format"] = {"type": "json_object"}
            else:
                request_params["response_format"] = response_format

        if tools:
            request_params["tools"] = tools
            if tool_choice is not None:
                request_params["tool_choice"] = tool_choice

        if self.request_params:
            request_params.update(self.request_params)

        if request_params:
            log_debug(f"Calling {self.provider} with request parameters: {request_params}", log_level=2)
        return request_params

    def _format_message(self, message: Message) -> Dict[str, Any]:
        message_dict = message.to_dict()
        if message.role == "system" and self.system_message_role != "system":
            message_dict["role"] = self.system_message_role
        return message_dict

    def _handle_error(self, exc: Exception) -> None:
        if isinstance(exc, RateLimitError):
            log_error(f"Rate limit error from OpenAI API: {exc}")
            raise ModelRateLimitError(str(exc), model_name=self.name, model_id=self.id) from exc
        if isinstance(exc, APIStatusError):
            log_error(f"API status error from OpenAI API: {exc}")
            raise ModelProviderError(
                exc.message, status_code=exc.status_code, model_name=self.name, model_id=self.id
            ) from exc
        if isinstance(exc, APIConnectionError):
            log_error(f"API connection error from OpenAI API: {exc}")
            raise ModelProviderError(str(exc), model_name=self.name, model_id=self.id) from exc
        raise exc

    def invoke(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Union[str, Dict[str, Any]]] = None,
        response_format: Optional[Union[Dict, Type[BaseModel]]] = None,
    ) -> ModelResponse:
        try:
            response = self.get_client().chat.completions.create(
                model=self.id,
                messages=[self._format_message(m) for m in messages],  # type: ignore
                **self.get_request_params(tools=tools, tool_choice=tool_choice, response_format=response_format),
            )
        except (RateLimitError, APIStatusError, APIConnectionError) as e:
            self._handle_error(e)
        return self.parse_provider_response(response)

    def invoke_stream(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Union[str, Dict[str, Any]]] = None,
        response_format: Optional[Union[Dict, Type[BaseModel]]] = None,
    ) -> Iterator[ModelResponse]:
        try:
            stream = self.get_client().chat.completions.create(
                model=self.id,
                messages=[self._format_message(m) for m in messages],  # type: ignore
                stream=True,
                stream_options={"include_usage": True},
                **self.get_request_params(tools=tools, tool_choice=tool_choice, response_format=response_format),
            )
            for chunk in stream:
                yield self.parse_provider_response_delta(chunk)
        except (RateLimitError, APIStatusError, APIConnectionError) as e:
            self._handle_error(e)

    def parse_provider_response(self, response: ChatCompletion) -> ModelResponse:
        """Parse a chat completion into a ModelResponse."""
        model_response = ModelResponse()
        if not response.choices:
            return model_response

        response_message = response.choices[0].message
        model_response.role = response_message.role
        if response_message.content is not None:
            model_response.content = response_message.content
        if response_message.tool_calls:
            model_response.tool_calls = [t.model_dump() for t in response_message.tool_calls]

        reasoning_content = getattr(response_message, "reasoning_content", None)
        if reasoning_content:
            model_response.reasoning_content = reasoning_content

        if response.usage is not None:
            model_response.response_usage = {
                "input_tokens": response.usage.prompt_tokens or 0,
                "output_tokens": response.usage.completion_tokens or 0,
                "total_tokens": response.usage.total_tokens or 0,
            }
        return model_response

    def parse_provider_response_delta(self, response_delta: ChatCompletionChunk) -> ModelResponse:
        """Parse a streamed chunk into a ModelResponse delta."""
        model_response = ModelResponse()
        if response_delta.choices:
            delta = response_delta.choices[0].delta
            if delta.content is not None:
                model_response.content = delta.content
            if delta.tool_calls:
                model_response.tool_calls = [t.model_dump() for t in delta.tool_calls]
            reasoning_content = getattr(delta, "reasoning_content", None)
            if reasoning_content:
                model_response.reasoning_content = reasoning_content
        if response_delta.usage is not None:
            model_response.response_usage = {
                "input_tokens": response_delta.usage.prompt_tokens or 0,
                "output_tokens": response_delta.usage.completion_tokens or 0,
                "total_tokens": response_delta.usage.total_tokens or 0,
            }
        return model_response
