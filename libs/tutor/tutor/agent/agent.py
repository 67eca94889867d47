from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import dataclass, field, fields
from datetime import datetime
from textwrap import dedent
from time import perf_counter
from typing import Any, Callable, Dict, Iterator, List, Literal, Optional, Tuple, Type, Union, overload
from uuid import uuid4

from pydantic import BaseModel

from tutor.agent._tools import (
    add_references,
    get_search_knowledge_base_function,
    get_tool_instructions,
    get_update_user_memory_function,
    parse_tools,
    search_knowledge,
)
from tutor.agent.print import build_message_panel, build_panels, build_tool_calls_panel, render_content
from tutor.knowledge.protocol import KnowledgeBase
from tutor.memory.memory import Memory
from tutor.models.base import Model
from tutor.models.message import Message
from tutor.models.response import ModelResponseEvent
from tutor.models.utils import get_default_model, get_model
from tutor.run.response import RunEvent, RunResponse
from tutor.tools.function import Function
from tutor.tools.reasoning import CURRENT_RUN_KEY, ReasoningTools, get_reasoning_steps
from tutor.tools.toolkit import Toolkit
from tutor.utils.log import (
    log_debug,
    log_warning,
    set_log_level_to_debug,
    set_log_level_to_info,
    use_debug_mode,
)
from tutor.utils.metrics import aggregate_metrics
from tutor.utils.response import create_panel, format_tool_calls
from tutor.utils.string import generate_id_from_name, parse_response_model_str
from tutor.utils.timer import Timer


@dataclass
class Agent:
    # --- Agent Model ---
    # Model to use for this Agent, a Model instance or a "provider:model_id" string
    model: Optional[Union[Model, str]] = None
    # Agent name
    name: Optional[str] = None
    # Agent ID, derived from the name when not set
    id: Optional[str] = None
    # Role of the agent when it is a team member
    role: Optional[str] = None

    # --- User settings ---
    # Default user for runs, memories are stored under this id
    user_id: Optional[str] = None

    # --- Session settings ---
    session_id: Optional[str] = None
    # State shared with tools that take a `session_state` parameter
    session_state: Optional[Dict[str, Any]] = None

    # --- Agent Memory ---
    memory: Optional[Memory] = None
    # Extract memories from the user message after each run
    enable_user_memories: bool = False
    # Give the agent an `update_user_memory` tool
    enable_agentic_memory: bool = False
    # List the user's memories in the system message. Defaults to True when a memory feature is enabled.
    add_memories_to_context: Optional[bool] = None

    # --- Agent History ---
    # Replay the previous runs of the session
    add_history_to_messages: bool = False
    num_history_runs: int = 3

    # --- Agent Knowledge ---
    knowledge: Optional[KnowledgeBase] = None
    # Filters passed to knowledge.search
    knowledge_filters: Optional[Dict[str, Any]] = None
    # Traditional RAG: add references from the knowledge base to the user message
    add_references: bool = False
    # Number of documents added to the user message or returned by the search tool
    num_references: int = 3
    # Agentic RAG: give the agent a `search_knowledge_base` tool
    search_knowledge: bool = True

    # --- Agent Tools ---
    tools: Optional[List[Union[Toolkit, Callable, Function, Dict]]] = None
    # Show tool calls in the printed response
    show_tool_calls: bool = True
    # Maximum number of tool calls allowed in a single run
    tool_call_limit: Optional[int] = None
    tool_choice: Optional[Union[str, Dict[str, Any]]] = None

    # --- Agent Reasoning ---
    # Attach the think and analyze tools
    reasoning: bool = False

    # --- System message settings ---
    # Provide the system message directly, the settings below are then ignored
    system_message: Optional[str] = None
    system_message_role: str = "system"
    description: Optional[str] = None
    instructions: Optional[Union[str, List[str]]] = None
    expected_output: Optional[str] = None
    additional_context: Optional[str] = None
    markdown: bool = False
    add_datetime_to_instructions: bool = False
    add_name_to_instructions: bool = False

    # --- User message settings ---
    user_message_role: str = "user"

    # --- Agent Response Settings ---
    response_model: Optional[Type[BaseModel]] = None
    # Parse the response into the response_model
    parse_response: bool = True
    # Use the provider's native structured outputs when available
    structured_outputs: bool = False

    # --- Debug ---
    debug_mode: bool = False

    # --- Run state ---
    run_id: Optional[str] = field(default=None, init=False)
    run_response: Optional[RunResponse] = field(default=None, init=False)
    _tool_instructions: List[str] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        if isinstance(self.model, str):
            self.model = get_model(self.model)
        if self.session_state is None:
            self.session_state = {}
        if self.session_id is None:
            self.session_id = str(uuid4())

    def set_id(self) -> None:
        if self.id is None:
            self.id = generate_id_from_name(self.name)

    def _set_debug(self) -> None:
        if use_debug_mode(self.debug_mode):
            self.debug_mode = True
            set_log_level_to_debug()
        else:
            set_log_level_to_info()

    def _set_default_model(self) -> Model:
        if self.model is None:
            log_debug("Setting default model")
            self.model = get_default_model()
        assert isinstance(self.model, Model)
        return self.model

    def _uses_memory(self) -> bool:
        return self.enable_user_memories or self.enable_agentic_memory

    def _initialize_memory(self, model: Model) -> None:
        if self.memory is None and (self._uses_memory() or self.add_history_to_messages):
            self.memory = Memory()
        if self.memory is not None and self._uses_memory() and self.memory.memory_manager is None:
            self.memory.set_model(model)

    def initialize_agent(self) -> Model:
        self._set_debug()
        self.set_id()
        model = self._set_default_model()
        if self.tool_call_limit is not None:
            model.tool_call_limit = self.tool_call_limit
        if self.tool_choice is not None:
            model.tool_choice = self.tool_choice
        if self.response_model is not None:
            model.structured_outputs = self.structured_outputs
        model.system_message_role = self.system_message_role
        self._initialize_memory(model)
        log_debug(f"Agent ID: {self.id}", center=True)
        return model

    # -*- Tools
    def get_tools(self, run_response: RunResponse, user_id: Optional[str] = None) -> List[Any]:
        agent_tools: List[Any] = list(self.tools or [])
        if self.reasoning and not any(isinstance(t, ReasoningTools) for t in agent_tools):
            agent_tools.append(ReasoningTools(add_instructions=True))
        if self.knowledge is not None and self.search_knowledge:
            agent_tools.append(get_search_knowledge_base_function(self, run_response))
        if self.enable_agentic_memory:
            agent_tools.append(get_update_user_memory_function(self, user_id=user_id))
        return agent_tools

    def get_functions(self, run_response: RunResponse, user_id: Optional[str] = None) -> Optional[Dict[str, Function]]:
        agent_tools = self.get_tools(run_response, user_id=user_id)
        self._tool_instructions = get_tool_instructions(agent_tools)
        if not agent_tools:
            return None
        return parse_tools(agent_tools, owner=self, session_state=self.session_state)

    # -*- Messages
    def get_system_message(self, user_id: Optional[str] = None) -> Optional[Message]:
        """Return the system message for the Agent.

        1. If the system_message is provided, use that.
        2. Otherwise build it from the description, instructions and the other settings.
        """
        if self.system_message is not None:
            return Message(role=self.system_message_role, content=self.system_message)

        instructions: List[str] = []
        if self.instructions is not None:
            if isinstance(self.instructions, str):
                instructions.append(self.instructions)
            else:
                instructions.extend(self.instructions)
        if self.markdown and self.response_model is None:
            instructions.append("Use markdown to format your answers.")
        if self.add_datetime_to_instructions:
            instructions.append(f"The current time is {datetime.now()}")

        system_message_lines: List[str] = []
        if self.description is not None:
            system_message_lines.append(f"{self.description}\n")
        if self.add_name_to_instructions and self.name is not None:
            system_message_lines.append(f"Your name is: {self.name}.\n")

        if len(instructions) > 0:
            system_message_lines.append("<instructions>")
            if len(instructions) > 1:
                system_message_lines.extend([f"- {instruction}" for instruction in instructions])
            else:
                system_message_lines.append(instructions[0])
            system_message_lines.append("</instructions>\n")

        for tool_instructions in self._tool_instructions:
            system_message_lines.append(f"{tool_instructions}\n")

        if self.expected_output is not None:
            system_message_lines.append(f"<expected_output>\n{self.expected_output.strip()}\n</expected_output>\n")

        if self.additional_context is not None:
            system_message_lines.append(f"{self.additional_context}\n")

        system_message_lines.extend(self._get_memory_lines(user_id))

        if self.knowledge is not None and self.search_knowledge:
            system_message_lines.append(
                "You have access to a knowledge base. Use the `search_knowledge_base` tool to search it "
                "for information relevant to the user's question before answering.\n"
            )

        if self.response_model is not None and not (
            isinstance(self.model, Model) and self.model.supports_native_structured_outputs and self.structured_outputs
        ):
            system_message_lines.append(self._get_json_output_prompt())

        if len(system_message_lines) == 0:
            return None
        return Message(role=self.system_message_role, content="\n".join(system_message_lines).strip())

    def _get_memory_lines(self, user_id: Optional[str]) -> List[str]:
        add_memories = self.add_memories_to_context
        if add_memories is None:
            add_memories = self._uses_memory()
        if self.memory is None or not add_memories:
            return []

        lines: List[str] = []
        user_memories = self.memory.get_user_memories(user_id=user_id)
        if user_memories:
            lines.append(
                "You have access to memories from previous interactions with the user that you can use:\n\n"
                "<memories_from_previous_interactions>"
            )
            lines.extend(f"- {user_memory.memory}" for user_memory in user_memories)
            lines.append(
                "</memories_from_previous_interactions>\n\n"
                "Note: this information is from previous interactions and may be updated in this conversation. "
                "You should always prefer information from this conversation over the past memories.\n"
            )
        else:
            lines.append(
                "You have the capability to retain memories from previous interactions with the user, "
                "but have not had any interactions with the user yet.\n"
            )

        if self.enable_agentic_memory:
            lines.append(
                dedent("""\
                <updating_user_memories>
                - You have access to the `update_user_memory` tool that you can use to add new memories, update existing memories, delete memories, or clear all memories.
                - If the user's message includes information that should be captured as a memory, use the `update_user_memory` tool to update your memory database.
                - Memories should include details that could personalize ongoing interactions with the user.
                - Use this tool to add new memories or update existing memories that you identify in the conversation.
                - If you use the `update_user_memory` tool, remember to pass on the response to the user.
                </updating_user_memories>
                """)
            )
        return lines

    def _get_json_output_prompt(self) -> str:
        assert self.response_model is not None
        json_schema = self.response_model.model_json_schema()
        response_model_properties = {
            name: {k: v for k, v in prop.items() if k != "title"}
            for name, prop in json_schema.get("properties", {}).items()
        }
        json_output_prompt = "Provide your output as a JSON containing the following fields:"
        json_output_prompt += "\n<json_fields>"
        json_output_prompt += f"\n{json.dumps(list(response_model_properties.keys()))}"
        json_output_prompt += "\n</json_fields>"
        json_output_prompt += "\n\nHere are the properties for each field:"
        json_output_prompt += "\n<json_field_properties>"
        json_output_prompt += f"\n{json.dumps(response_model_properties, indent=2)}"
        if "$defs" in json_schema:
            json_output_prompt += f"\n\nDefinitions:\n{json.dumps(json_schema['$defs'], indent=2)}"
        json_output_prompt += "\n</json_field_properties>"
        json_output_prompt += "\nStart your response with `{` and end it with `}`."
        json_output_prompt += "\nYour output will be passed to json.loads() to convert it to a Python object."
        json_output_prompt += "\nMake sure it only contains valid JSON."
        return json_output_prompt

    def get_user_message(self, message: str, run_response: Optional[RunResponse] = None) -> Message:
        """Return the user message, with references from the knowledge base when add_references is set."""
        if not self.add_references or self.knowledge is None:
            return Message(role=self.user_message_role, content=message)

        start = perf_counter()
        documents = search_knowledge(
            self.knowledge, query=message, num_documents=self.num_references, filters=self.knowledge_filters
        )
        if run_response is not None:
            add_references(run_response, message, documents, perf_counter() - start)
        if not documents:
            return Message(role=self.user_message_role, content=message)

        references = json.dumps([doc.to_dict() for doc in documents], indent=2)
        content = (
            f"{message}\n\n"
            "Use the following references from the knowledge base if it helps:\n"
            f"<references>\n{references}\n</references>"
        )
        return Message(role=self.user_message_role, content=content, references={"query": message})

    def get_messages_for_run(
        self, message: str, run_response: RunResponse, user_id: Optional[str] = None
    ) -> List[Message]:
        messages: List[Message] = []
        system_message = self.get_system_message(user_id=user_id)
        if system_message is not None:
            messages.append(system_message)

        if self.add_history_to_messages and self.memory is not None and self.session_id is not None:
            history = self.memory.get_messages_from_last_n_runs(
                session_id=self.session_id, last_n=self.num_history_runs, skip_role=self.system_message_role
            )
            if history:
                log_debug(f"Adding {len(history)} messages from history")
                history_copy = [m.model_copy(deep=True) for m in history]
                for m in history_copy:
                    m.from_history = True
                messages.extend(history_copy)

        messages.append(self.get_user_message(message, run_response))
        return messages

    # -*- Run
    @overload
    def run(
        self,
        message: str,
        *,
        stream: Literal[False] = False,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> RunResponse: ...

    @overload
    def run(
        self,
        message: str,
        *,
        stream: Literal[True] = True,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> Iterator[RunResponse]: ...

    def run(
        self,
        message: str,
        *,
        stream: bool = False,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> Union[RunResponse, Iterator[RunResponse]]:
        """Run the Agent and return the response, or an iterator of response events when streaming."""
        if stream:
            return self._run_stream(message, user_id=user_id, session_id=session_id)
        return self._run(message, user_id=user_id, session_id=session_id)

    def _start_run(
        self, user_id: Optional[str], session_id: Optional[str]
    ) -> Tuple[Model, RunResponse, Optional[str]]:
        model = self.initialize_agent()
        if session_id is not None:
            self.session_id = session_id
        _user_id = user_id or self.user_id

        self.run_id = str(uuid4())
        assert self.session_state is not None
        self.session_state[CURRENT_RUN_KEY] = self.run_id

        run_response = RunResponse(
            run_id=self.run_id,
            agent_id=self.id,
            session_id=self.session_id,
            user_id=_user_id,
            model=model.id,
            model_provider=model.get_provider(),
        )
        self.run_response = run_response
        log_debug(f"Agent Run Start: {self.run_id}", center=True)
        return model, run_response, _user_id

    def _get_response_format(self) -> Optional[Type[BaseModel]]:
        if self.response_model is not None and self.parse_response:
            return self.response_model
        return None

    def _run(self, message: str, user_id: Optional[str] = None, session_id: Optional[str] = None) -> RunResponse:
        model, run_response, _user_id = self._start_run(user_id, session_id)

        functions = self.get_functions(run_response, user_id=_user_id)
        messages = self.get_messages_for_run(message, run_response, user_id=_user_id)

        model_response = model.response(
            messages=messages, functions=functions, response_format=self._get_response_format()
        )

        run_response.content = model_response.content
        run_response.reasoning_content = model_response.reasoning_content
        if model_response.tool_executions:
            run_response.tools = model_response.tool_executions
            run_response.formatted_tool_calls = model_response.formatted_tool_calls
        self._parse_response_content(run_response, parsed=model_response.parsed)
        self._finish_run(message, messages, run_response, _user_id)
        run_response.event = RunEvent.run_completed.value
        return run_response

    def _run_stream(
        self, message: str, user_id: Optional[str] = None, session_id: Optional[str] = None
    ) -> Iterator[RunResponse]:
        model, run_response, _user_id = self._start_run(user_id, session_id)

        functions = self.get_functions(run_response, user_id=_user_id)
        messages = self.get_messages_for_run(message, run_response, user_id=_user_id)

        yield self._create_event(run_response, RunEvent.run_started)

        content = ""
        reasoning_content = ""
        tool_executions: List[Dict[str, Any]] = []
        for chunk in model.response_stream(
            messages=messages, functions=functions, response_format=self._get_response_format()
        ):
            if chunk.event == ModelResponseEvent.tool_call_started.value:
                yield self._create_event(run_response, RunEvent.tool_call_started, tools=chunk.tool_executions)
            elif chunk.event == ModelResponseEvent.tool_call_completed.value:
                tool_executions.extend(chunk.tool_executions)
                yield self._create_event(
                    run_response,
                    RunEvent.tool_call_completed,
                    tools=chunk.tool_executions,
                    formatted_tool_calls=format_tool_calls(chunk.tool_executions),
                )
            else:
                if chunk.content is not None:
                    content += chunk.content
                    yield self._create_event(run_response, RunEvent.run_response, content=chunk.content)
                if chunk.reasoning_content is not None:
                    reasoning_content += chunk.reasoning_content
                    yield self._create_event(
                        run_response, RunEvent.run_response, reasoning_content=chunk.reasoning_content
                    )

        run_response.content = content or None
        run_response.reasoning_content = reasoning_content or None
        if tool_executions:
            run_response.tools = tool_executions
            run_response.formatted_tool_calls = format_tool_calls(tool_executions)
        self._parse_response_content(run_response)
        self._finish_run(message, messages, run_response, _user_id)
        run_response.event = RunEvent.run_completed.value
        yield run_response

    def _create_event(self, run_response: RunResponse, event: RunEvent, **kwargs) -> RunResponse:
        return RunResponse(
            event=event.value,
            run_id=run_response.run_id,
            agent_id=run_response.agent_id,
            session_id=run_response.session_id,
            user_id=run_response.user_id,
            model=run_response.model,
            model_provider=run_response.model_provider,
            **kwargs,
        )

    def _parse_response_content(self, run_response: RunResponse, parsed: Optional[Any] = None) -> None:
        if self.response_model is None or not self.parse_response:
            return
        if isinstance(parsed, self.response_model):
            run_response.content = parsed
        elif isinstance(run_response.content, str):
            structured_output = parse_response_model_str(run_response.content, self.response_model)
            if structured_output is None:
                log_warning("Failed to convert response to response_model")
                return
            run_response.content = structured_output
        else:
            return
        run_response.content_type = self.response_model.__name__

    def _finish_run(
        self, message: str, messages: List[Message], run_response: RunResponse, user_id: Optional[str]
    ) -> None:
        run_response.messages = messages
        run_response.metrics = aggregate_metrics(messages)
        steps = get_reasoning_steps(self.session_state, run_response.run_id)
        if steps:
            run_response.reasoning_steps = steps

        if self.memory is not None:
            if self.session_id is not None:
                self.memory.add_run(self.session_id, run_response)
            if self.enable_user_memories:
                try:
                    self.memory.create_user_memories(
                        messages=[Message(role=self.user_message_role, content=message)], user_id=user_id
                    )
                except Exception as e:
                    log_warning(f"Error creating user memories: {e}")
        log_debug(f"Agent Run End: {run_response.run_id}", center=True)

    # -*- Printing
    def print_response(
        self,
        message: str,
        *,
        stream: bool = False,
        markdown: Optional[bool] = None,
        show_message: bool = True,
        show_reasoning: bool = True,
        show_full_reasoning: bool = False,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        console: Optional[Any] = None,
    ) -> None:
        from rich.console import Group
        from rich.live import Live
        from rich.status import Status

        _markdown = self.markdown if markdown is None else markdown
        tags_to_include_in_markdown = {"think", "thinking"}

        with Live(console=console) as live_log:
            status = Status("Thinking...", spinner="aesthetic", speed=0.4, refresh_per_second=10)
            live_log.update(status)
            response_timer = Timer()
            response_timer.start()

            panels: List[Any] = [status]
            if message and show_message:
                panels.append(build_message_panel(message))
                live_log.update(Group(*panels))

            if stream:
                content = ""
                formatted_tool_calls: List[str] = []
                final_response: Optional[RunResponse] = None
                for event in self.run(message, stream=True, user_id=user_id, session_id=session_id):
                    if event.event == RunEvent.run_completed.value:
                        final_response = event
                        continue
                    if event.event == RunEvent.tool_call_completed.value and event.formatted_tool_calls:
                        formatted_tool_calls.extend(event.formatted_tool_calls)
                    if isinstance(event.content, str):
                        content += event.content

                    stream_panels = list(panels)
                    if self.show_tool_calls and formatted_tool_calls:
                        stream_panels.append(build_tool_calls_panel(formatted_tool_calls))
                    if content:
                        stream_panels.append(
                            create_panel(
                                content=render_content(content, _markdown, tags_to_include_in_markdown),
                                title=f"Response ({response_timer.elapsed:.1f}s)",
                                border_style="blue",
                            )
                        )
                    live_log.update(Group(*stream_panels))
                response_timer.stop()
                run_response = final_response
            else:
                run_response = self.run(message, stream=False, user_id=user_id, session_id=session_id)
                response_timer.stop()

            if run_response is not None:
                panels.extend(
                    build_panels(
                        run_response,
                        response_timer=response_timer,
                        show_tool_calls=self.show_tool_calls,
                        show_reasoning=show_reasoning,
                        show_full_reasoning=show_full_reasoning,
                        markdown=_markdown,
                        tags_to_include_in_markdown=tags_to_include_in_markdown,
                    )
                )

            memory_manager = self.memory.memory_manager if self.memory is not None else None
            if memory_manager is not None and memory_manager.memories_updated:
                panels.append(create_panel(content="Memories updated", title="Memories", border_style="green"))
                memory_manager.memories_updated = False

            # Final update to remove the "Thinking..." status
            panels = [p for p in panels if not isinstance(p, Status)]
            live_log.update(Group(*panels))

    def cli_app(
        self,
        message: Optional[str] = None,
        user: str = "User",
        emoji: str = ":sunglasses:",
        stream: bool = False,
        markdown: bool = False,
        exit_on: Optional[List[str]] = None,
    ) -> None:
        from rich.prompt import Prompt

        if message:
            self.print_response(message, stream=stream, markdown=markdown)

        _exit_on = exit_on or ["exit", "quit", "bye"]
        while True:
            message = Prompt.ask(f"[bold] {emoji} {user} [/bold]")
            if message in _exit_on:
                break
            self.print_response(message, stream=stream, markdown=markdown)

    # -*- Copying
    def deep_copy(self, *, update: Optional[Dict[str, Any]] = None) -> "Agent":
        """Create a copy of this Agent. The knowledge, memory and tools are shared with the copy.

        Args:
            update: Optional dictionary of fields to override in the new Agent.
        """
        shared_fields = {"knowledge", "memory", "tools", "response_model"}
        fields_for_new_agent: Dict[str, Any] = {}
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name in shared_fields:
                fields_for_new_agent[f.name] = value
            else:
                try:
                    fields_for_new_agent[f.name] = deepcopy(value)
                except Exception as e:
                    log_warning(f"Failed to deepcopy field: {f.name} - {e}")
                    fields_for_new_agent[f.name] = value

        if update:
            fields_for_new_agent.update(update)
        new_agent = self.__class__(**fields_for_new_agent)
        log_debug(f"Created new {self.__class__.__name__}")
        return new_agent
