import json
from abc import ABC, abstractmethod
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Type, Union

from pydantic import BaseModel

from tutor.exceptions import AgentRunException, StopAgentRun
from tutor.models.message import Message, MessageMetrics
from tutor.models.response import ModelResponse, ModelResponseEvent
from tutor.tools.function import Function, FunctionCall
from tutor.utils.functions import get_function_call
from tutor.utils.log import log_debug, log_error, log_warning
from tutor.utils.timer import Timer


def format_function_call_result(result: Any) -> str:
    """Convert a tool result into the string content of a tool message."""
    if result is None:
        return ""
    if isinstance(result, str):
        return result
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    if isinstance(result, (dict, list)):
        try:
            return json.dumps(result)
        except (TypeError, ValueError):
            return str(result)
    if hasattr(result, "__iter__") and not isinstance(result, (bytes, bytearray)):
        return "".join(str(item) for item in result)
    return str(result)


@dataclass
class Model(ABC):
    # ID of the model to use.
    id: str
    # Name for this Model. This is not sent to the Model API.
    name: Optional[str] = None
    # Provider for this Model. This is not sent to the Model API.
    provider: Optional[str] = None

    # Maximum number of tool calls allowed for a single run.
    tool_call_limit: Optional[int] = None
    # Controls which (if any) tool is called by the model.
    # "none" means the model will not call a tool and instead generates a message.
    # "auto" means the model can pick between generating a message or calling a tool.
    tool_choice: Optional[Union[str, Dict[str, Any]]] = None

    # The role of the system message.
    system_message_role: str = "system"
    # The role of the user message.
    user_message_role: str = "user"

    # True if the Model supports structured outputs natively (e.g. OpenAI)
    supports_native_structured_outputs: bool = False
    # Whether to use the structured outputs with this Model.
    structured_outputs: bool = False

    # Function call stack, reset on every response.
    _function_call_stack: List[FunctionCall] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        if self.provider is None and self.name is not None:
            self.provider = f"{self.name} ({self.id})"

    def to_dict(self) -> Dict[str, Any]:
        fields = {"name", "id", "provider"}
        _dict = {field: getattr(self, field) for field in fields if getattr(self, field) is not None}
        return _dict

    def __deepcopy__(self, memo):
        """Copy the model settings. The provider client is recreated on first use, a given http_client is shared."""
        cls = self.__class__
        new_model = cls.__new__(cls)
        memo[id(self)] = new_model
        for k, v in self.__dict__.items():
            if k == "client":
                setattr(new_model, k, None)
            elif k == "http_client":
                setattr(new_model, k, v)
            elif k == "_function_call_stack":
                setattr(new_model, k, [])
            else:
                setattr(new_model, k, deepcopy(v, memo))
        return new_model

    def get_provider(self) -> str:
        return self.provider or self.name or self.__class__.__name__

    @abstractmethod
    def invoke(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Union[str, Dict[str, Any]]] = None,
        response_format: Optional[Union[Dict, Type[BaseModel]]] = None,
    ) -> ModelResponse:
        """Send the messages to the provider and return the parsed response."""
        pass

    @abstractmethod
    def invoke_stream(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Union[str, Dict[str, Any]]] = None,
        response_format: Optional[Union[Dict, Type[BaseModel]]] = None,
    ) -> Iterator[ModelResponse]:
        """Stream parsed response deltas from the provider.

        Tool call deltas use the OpenAI shape: ``{"index", "id", "type", "function": {"name", "arguments"}}``.
        """
        pass

    def _format_tools(self, functions: Optional[Dict[str, Function]]) -> Optional[List[Dict[str, Any]]]:
        if not functions:
            return None
        return [f.to_openai_tool() for f in functions.values()]

    def _tool_limit_reached(self) -> bool:
        return self.tool_call_limit is not None and len(self._function_call_stack) >= self.tool_call_limit

    def response(
        self,
        messages: List[Message],
        functions: Optional[Dict[str, Function]] = None,
        response_format: Optional[Union[Dict, Type[BaseModel]]] = None,
    ) -> ModelResponse:
        """Generate a response, running tool calls until the model answers without calling a tool."""
        log_debug(f"{self.get_provider()} Response Start", center=True, symbol="-")
        log_debug(f"Model: {self.id}", center=True, symbol="-")

        self._function_call_stack = []
        model_response = ModelResponse(role="assistant")
        _functions = functions

        while True:
            assistant_message = Message(role="assistant")
            response_timer = Timer()
            response_timer.start()
            provider_response = self.invoke(
                messages=messages,
                tools=self._format_tools(_functions),
                tool_choice=self.tool_choice if _functions else None,
                response_format=response_format,
            )
            response_timer.stop()

            self._populate_assistant_message(assistant_message, provider_response)
            assistant_message.metrics.response_time = response_timer.elapsed
            messages.append(assistant_message)
            assistant_message.log(metrics=True)

            if assistant_message.content is not None:
                model_response.content = assistant_message.get_content_string()
            if provider_response.parsed is not None:
                model_response.parsed = provider_response.parsed
            if assistant_message.reasoning_content is not None:
                model_response.reasoning_content = assistant_message.reasoning_content

            if not assistant_message.tool_calls:
                break

            function_calls_to_run = self.get_function_calls_to_run(assistant_message, messages, _functions)
            function_call_results: List[Message] = []
            stop_execution = self.run_function_calls(function_calls_to_run, function_call_results, model_response)
            messages.extend(function_call_results)

            show_results = [m for m in function_call_results if m.stop_after_tool_call or self._shows_result(m, _functions)]
            if stop_execution or any(m.stop_after_tool_call for m in function_call_results):
                if show_results:
                    model_response.content = "\n".join(m.get_content_string() for m in show_results)
                break

            if self._tool_limit_reached():
                log_warning(f"Tool call limit ({self.tool_call_limit}) reached, asking the model for a final answer")
                _functions = None

        log_debug(f"{self.get_provider()} Response End", center=True, symbol="-")
        return model_response

    def response_stream(
        self,
        messages: List[Message],
        functions: Optional[Dict[str, Function]] = None,
        response_format: Optional[Union[Dict, Type[BaseModel]]] = None,
    ) -> Iterator[ModelResponse]:
        """Stream a response. Content deltas are yielded as they arrive, tool calls as started/completed events."""
        log_debug(f"{self.get_provider()} Response Stream Start", center=True, symbol="-")

        self._function_call_stack = []
        _functions = functions

        while True:
            assistant_message = Message(role="assistant")
            content_buffer = ""
            reasoning_buffer = ""
            tool_call_deltas: List[Dict[str, Any]] = []

            response_timer = Timer()
            response_timer.start()
            for delta in self.invoke_stream(
                messages=messages,
                tools=self._format_tools(_functions),
                tool_choice=self.tool_choice if _functions else None,
                response_format=response_format,
            ):
                if delta.content is not None:
                    if assistant_message.metrics.time_to_first_token is None:
                        assistant_message.metrics.time_to_first_token = response_timer.elapsed
                    content_buffer += delta.content
                    yield ModelResponse(role="assistant", content=delta.content)
                if delta.reasoning_content is not None:
                    reasoning_buffer += delta.reasoning_content
                    yield ModelResponse(role="assistant", reasoning_content=delta.reasoning_content)
                if delta.tool_calls:
                    tool_call_deltas.extend(delta.tool_calls)
                if delta.response_usage:
                    self._add_usage(assistant_message, delta.response_usage)
            response_timer.stop()

            if content_buffer:
                assistant_message.content = content_buffer
            if reasoning_buffer:
                assistant_message.reasoning_content = reasoning_buffer
            if tool_call_deltas:
                assistant_message.tool_calls = self.build_tool_calls(tool_call_deltas)
            assistant_message.metrics.response_time = response_timer.elapsed
            messages.append(assistant_message)
            assistant_message.log(metrics=True)

            if not assistant_message.tool_calls:
                break

            function_calls_to_run = self.get_function_calls_to_run(assistant_message, messages, _functions)
            yield ModelResponse(
                event=ModelResponseEvent.tool_call_started.value,
                tool_executions=[
                    {"tool_call_id": fc.call_id, "tool_name": fc.function.name, "tool_args": fc.arguments}
                    for fc in function_calls_to_run
                ],
            )
            completed = ModelResponse(event=ModelResponseEvent.tool_call_completed.value)
            function_call_results: List[Message] = []
            stop_execution = self.run_function_calls(function_calls_to_run, function_call_results, completed)
            messages.extend(function_call_results)
            yield completed

            if stop_execution or any(m.stop_after_tool_call for m in function_call_results):
                for m in function_call_results:
                    if m.stop_after_tool_call or self._shows_result(m, _functions):
                        yield ModelResponse(role="assistant", content=m.get_content_string())
                break

            if self._tool_limit_reached():
                log_warning(f"Tool call limit ({self.tool_call_limit}) reached, asking the model for a final answer")
                _functions = None

        log_debug(f"{self.get_provider()} Response Stream End", center=True, symbol="-")

    @staticmethod
    def _shows_result(message: Message, functions: Optional[Dict[str, Function]]) -> bool:
        if functions is None or message.tool_name is None or message.tool_call_error:
            return False
        function = functions.get(message.tool_name)
        return function is not None and function.show_result

    @staticmethod
    def _add_usage(assistant_message: Message, usage: Dict[str, int]) -> None:
        assistant_message.metrics.input_tokens += usage.get("input_tokens", 0) or 0
        assistant_message.metrics.output_tokens += usage.get("output_tokens", 0) or 0
        assistant_message.metrics.total_tokens += usage.get("total_tokens", 0) or 0

    def _populate_assistant_message(self, assistant_message: Message, provider_response: ModelResponse) -> None:
        if provider_response.role is not None:
            assistant_message.role = provider_response.role
        if provider_response.content is not None:
            assistant_message.content = provider_response.content
        if provider_response.tool_calls:
            assistant_message.tool_calls = provider_response.tool_calls
        if provider_response.reasoning_content is not None:
            assistant_message.reasoning_content = provider_response.reasoning_content
        if provider_response.response_usage:
            self._add_usage(assistant_message, provider_response.response_usage)

    @staticmethod
    def build_tool_calls(tool_calls_data: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Merge streamed tool call deltas into complete tool calls, keyed by their index."""
        tool_calls: List[Dict[str, Any]] = []
        for _tool_call in tool_calls_data:
            _index = _tool_call.get("index") or 0
            _tool_call_id = _tool_call.get("id")
            _tool_call_type = _tool_call.get("type")
            _function = _tool_call.get("function") or {}
            _function_name = _function.get("name")
            _function_arguments = _function.get("arguments")

            while len(tool_calls) <= _index:
                tool_calls.append({})
            tool_call_entry = tool_calls[_index]
            if not tool_call_entry:
                tool_call_entry["id"] = _tool_call_id
                tool_call_entry["type"] = _tool_call_type or "function"
                tool_call_entry["function"] = {"name": _function_name or "", "arguments": _function_arguments or ""}
            else:
                if _function_name:
                    tool_call_entry["function"]["name"] += _function_name
                if _function_arguments:
                    tool_call_entry["function"]["arguments"] += _function_arguments
                if _tool_call_id:
                    tool_call_entry["id"] = _tool_call_id
        return [tc for tc in tool_calls if tc]

    def get_function_calls_to_run(
        self,
        assistant_message: Message,
        messages: List[Message],
        functions: Optional[Dict[str, Function]] = None,
    ) -> List[FunctionCall]:
        """Prepare function calls for the assistant message.

        Unknown tools or undecodable arguments are answered immediately with an error tool message.
        """
        function_calls_to_run: List[FunctionCall] = []
        for tool_call in assistant_message.tool_calls or []:
            _tool_call_id = tool_call.get("id")
            _function_def = tool_call.get("function") or {}
            _function_call = get_function_call(
                name=_function_def.get("name", ""),
                arguments=_function_def.get("arguments"),
                call_id=_tool_call_id,
                functions=functions,
            )
            if _function_call is None:
                messages.append(
                    Message(
                        role="tool",
                        tool_call_id=_tool_call_id,
                        tool_name=_function_def.get("name"),
                        content="Error: The requested tool does not exist or is not available.",
                        tool_call_error=True,
                    )
                )
                continue
            if _function_call.error is not None:
                messages.append(
                    Message(
                        role="tool",
                        tool_call_id=_tool_call_id,
                        tool_name=_function_call.function.name,
                        content=_function_call.error,
                        tool_call_error=True,
                    )
                )
                continue
            function_calls_to_run.append(_function_call)
        return function_calls_to_run

    def run_function_calls(
        self,
        function_calls: List[FunctionCall],
        function_call_results: List[Message],
        model_response: ModelResponse,
    ) -> bool:
        """Run the function calls, appending one tool message per call.

        Calls skipped because the run stopped or the tool call limit was reached are still answered,
        so every tool call of the assistant message has a tool message.

        Returns True when a tool asked to stop the run.
        """
        stop_execution = False
        for function_call in function_calls:
            if stop_execution or self._tool_limit_reached():
                if stop_execution:
                    skipped_content = "Run stopped before this tool ran"
                else:
                    skipped_content = f"Tool call limit ({self.tool_call_limit}) reached, this tool was not run"
                log_warning(f"Skipping tool {function_call.function.name}: {skipped_content}")
                function_call_results.append(
                    Message(
                        role="tool",
                        tool_call_id=function_call.call_id,
                        tool_name=function_call.function.name,
                        tool_args=function_call.arguments,
                        content=skipped_content,
                        tool_call_error=True,
                    )
                )
                continue

            function_call_timer = Timer()
            function_call_timer.start()
            function_call_success = False
            stop_after_tool_call = function_call.function.stop_after_tool_call
            try:
                function_call_success = function_call.execute()
                content = (
                    format_function_call_result(function_call.result)
                    if function_call_success
                    else (function_call.error or "Function call failed")
                )
            except AgentRunException as e:
                if e.user_message is not None or e.agent_message is not None:
                    content = str(e.agent_message or e.user_message)
                else:
                    content = str(e)
                if isinstance(e, StopAgentRun) or e.stop_execution:
                    stop_execution = True
                    stop_after_tool_call = True
                    function_call_success = True
            function_call_timer.stop()

            self._function_call_stack.append(function_call)
            tool_message = Message(
                role="tool",
                tool_call_id=function_call.call_id,
                tool_name=function_call.function.name,
                tool_args=function_call.arguments,
                content=content,
                tool_call_error=not function_call_success,
                stop_after_tool_call=stop_after_tool_call,
                metrics=MessageMetrics(response_time=function_call_timer.elapsed),
            )
            if not function_call_success:
                log_error(f"Tool {function_call.function.name} failed: {content}")
            function_call_results.append(tool_message)
            model_response.tool_executions.append(
                {
                    "tool_call_id": function_call.call_id,
                    "tool_name": function_call.function.name,
                    "tool_args": function_call.arguments,
                    "content": content,
                    "tool_call_error": not function_call_success,
                    "metrics": {"time": function_call_timer.elapsed},
                }
            )
        model_response.format_tool_calls()
        return stop_execution

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"
