from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Literal, Optional, Tuple, Type, Union, overload
from uuid import uuid4

from pydantic import BaseModel

from tutor.agent._tools import get_tool_instructions, parse_tools
from tutor.agent.agent import Agent
from tutor.agent.print import build_message_panel, build_panels, build_tool_calls_panel, render_content
from tutor.models.base import Model
from tutor.models.message import Message
from tutor.models.response import ModelResponseEvent
from tutor.models.utils import get_default_model, get_model
from tutor.run.response import RunEvent, RunResponse
from tutor.team._tools import (
    get_forward_task_function,
    get_member_id,
    get_run_member_agents_function,
    get_set_team_context_function,
    get_transfer_task_function,
)
from tutor.team.context import TeamContext
from tutor.team.mode import TeamMode
from tutor.tools.function import Function
from tutor.tools.reasoning import CURRENT_RUN_KEY, ReasoningTools, get_reasoning_steps
from tutor.tools.toolkit import Toolkit
from tutor.utils.log import log_debug, log_warning, set_log_level_to_debug, set_log_level_to_info, use_debug_mode
from tutor.utils.metrics import aggregate_metrics
from tutor.utils.response import create_panel, format_tool_calls
from tutor.utils.string import generate_id_from_name, parse_response_model_str
from tutor.utils.timer import Timer


@dataclass
class Team:
    # Agents or sub-teams in this team
    members: List[Union[Agent, "Team"]]
    mode: Union[TeamMode, str] = TeamMode.coordinate

    # --- Leader model ---
    model: Optional[Union[Model, str]] = None
    name: Optional[str] = None
    id: Optional[str] = None
    # Role of the team when it is a member of another team
    role: Optional[str] = None

    user_id: Optional[str] = None
    session_id: Optional[str] = None
    session_state: Optional[Dict[str, Any]] = None

    # --- System message settings ---
    system_message: Optional[str] = None
    system_message_role: str = "system"
    description: Optional[str] = None
    instructions: Optional[Union[str, List[str]]] = None
    # Define the success criteria for the team
    success_criteria: Optional[str] = None
    expected_output: Optional[str] = None
    additional_context: Optional[str] = None
    markdown: bool = False
    add_datetime_to_instructions: bool = False
    # List the tools of each member in the system message
    add_member_tools_to_system_message: bool = True

    # --- Leader tools ---
    tools: Optional[List[Union[Toolkit, Callable, Function, Dict]]] = None
    show_tool_calls: bool = True
    tool_call_limit: Optional[int] = None
    tool_choice: Optional[Union[str, Dict[str, Any]]] = None
    # Attach the think and analyze tools to the leader
    reasoning: bool = False

    # --- Team context ---
    # Send the previous member interactions of this run to each member
    share_member_interactions: bool = False
    # Give the leader a `set_team_context` tool and send the context to the members
    enable_agentic_context: bool = False

    # --- Response settings ---
    response_model: Optional[Type[BaseModel]] = None
    parse_response: bool = True
    # Print the member responses in print_response
    show_members_responses: bool = False

    debug_mode: bool = False

    # --- Run state ---
    team_context: TeamContext = field(default_factory=TeamContext, init=False)
    run_id: Optional[str] = field(default=None, init=False)
    run_response: Optional[RunResponse] = field(default=None, init=False)

    def __post_init__(self):
        self.mode = TeamMode(self.mode)
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

    def _initialize_member(self, member: Union[Agent, "Team"]) -> None:
        if self.debug_mode:
            member.debug_mode = True
        member.set_id()
        if isinstance(member, Team):
            for sub_member in member.members:
                member._initialize_member(sub_member)

    def initialize_team(self) -> Model:
        self._set_debug()
        self.set_id()
        if self.model is None:
            log_debug("Setting default model")
            self.model = get_default_model()
        assert isinstance(self.model, Model)
        if self.tool_call_limit is not None:
            self.model.tool_call_limit = self.tool_call_limit
        if self.tool_choice is not None:
            self.model.tool_choice = self.tool_choice
        self.model.system_message_role = self.system_message_role
        for member in self.members:
            self._initialize_member(member)
        log_debug(f"Team ID: {self.id}", center=True)
        return self.model

    # -*- Tools
    def get_tools(self, message: str, run_response: RunResponse, user_id: Optional[str] = None) -> List[Any]:
        team_tools: List[Any] = list(self.tools or [])
        if self.reasoning and not any(isinstance(t, ReasoningTools) for t in team_tools):
            team_tools.append(ReasoningTools(add_instructions=True))
        if self.mode == TeamMode.coordinate:
            team_tools.append(get_transfer_task_function(self, run_response, user_id=user_id))
        elif self.mode == TeamMode.collaborate:
            team_tools.append(get_run_member_agents_function(self, run_response, user_id=user_id))
        elif self.mode == TeamMode.route:
            team_tools.append(get_forward_task_function(self, message, run_response, user_id=user_id))
        if self.enable_agentic_context:
            team_tools.append(get_set_team_context_function(self))
        return team_tools

    # -*- Messages
    def get_members_system_message_content(self, indent: int = 0) -> str:
        system_message_content = ""
        for idx, member in enumerate(self.members):
            member_id = get_member_id(member)
            if isinstance(member, Team):
                system_message_content += f"{indent * ' '} - Team: {member.name}\n"
                system_message_content += f"{indent * ' '} - ID: {member_id}\n"
                system_message_content += member.get_members_system_message_content(indent=indent + 2)
                continue

            system_message_content += f"{indent * ' '} - Agent {idx + 1}:\n"
            system_message_content += f"{indent * ' '}   - ID: {member_id}\n"
            if member.name is not None:
                system_message_content += f"{indent * ' '}   - Name: {member.name}\n"
            if member.role is not None:
                system_message_content += f"{indent * ' '}   - Role: {member.role}\n"
            if member.tools and self.add_member_tools_to_system_message:
                system_message_content += f"{indent * ' '}   - Member tools:\n"
                for _tool in member.tools:
                    if isinstance(_tool, Toolkit):
                        for _func in _tool.functions.values():
                            system_message_content += f"{indent * ' '}    - {_func.name}\n"
                    elif isinstance(_tool, Function):
                        system_message_content += f"{indent * ' '}    - {_tool.name}\n"
                    elif callable(_tool):
                        system_message_content += f"{indent * ' '}    - {_tool.__name__}\n"
                    elif isinstance(_tool, dict) and _tool.get("name") is not None:
                        system_message_content += f"{indent * ' '}    - {_tool['name']}\n"
        return system_message_content

    def _get_how_to_respond(self) -> str:
        if self.mode == TeamMode.coordinate:
            return (
                "- You can either respond directly or transfer tasks to members in your team with the highest likelihood of completing the user's request.\n"
                "- Carefully analyze the tools available to the members and their roles before transferring tasks.\n"
                "- You cannot use a member tool directly. You can only transfer tasks to members.\n"
                "- When you transfer a task to another member, make sure to include:\n"
                "  - member_id (str): The ID of the member to transfer the task to.\n"
                "  - task_description (str): A clear description of the task.\n"
                "  - expected_output (str): The expected output.\n"
                "- You can pass tasks to multiple members at once.\n"
                "- You must always analyze the responses from members before responding to the user.\n"
                "- After analyzing the responses from the members, if you feel the task has been completed, you can stop and respond to the user.\n"
                "- If you are not satisfied with the responses from the members, you should re-assign the task.\n"
            )
        if self.mode == TeamMode.collaborate:
            return (
                "- You can either respond directly or use the `run_member_agents` tool to run all members in your team to get a collaborative response.\n"
                "- To run the members in your team, call `run_member_agents` ONLY once. This will run all members in your team.\n"
                "- Analyze the responses from all members and evaluate whether the task has been completed.\n"
                "- If you feel the task has been completed, you can stop and respond to the user.\n"
            )
        return (
            "- You are a router that directs the user's request to the most appropriate member of your team.\n"
            "- Carefully analyze the tools available to the members and their roles before forwarding the request.\n"
            "- Forward the request with `forward_task_to_member` to the member most likely to answer it.\n"
            "- The member's response is returned to the user as is.\n"
            "- For simple greetings, thanks, or questions about the team itself, you should respond directly.\n"
        )

    def get_system_message(self) -> Optional[Message]:
        """Return the system message for the team leader."""
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

        system_message_content = "You are the leader of a team of AI Agents and possible Sub-Teams:\n"
        system_message_content += "<team_members>\n"
        system_message_content += self.get_members_system_message_content()
        system_message_content += "</team_members>\n"
        system_message_content += "\n<how_to_respond>\n"
        system_message_content += self._get_how_to_respond()
        system_message_content += "</how_to_respond>\n\n"

        if self.enable_agentic_context:
            system_message_content += "<shared_context>\n"
            system_message_content += (
                "You have access to a shared context that will be shared with all members of the team.\n"
                "Use the `set_team_context` tool to update the shared context.\n"
            )
            system_message_content += "</shared_context>\n\n"
            team_context_str = self.team_context.get_context_str()
            if team_context_str:
                system_message_content += f"{team_context_str}\n"

        if self.description is not None:
            system_message_content += f"<description>\n{self.description}\n</description>\n\n"

        if self.success_criteria is not None:
            system_message_content += (
                "Your task is successful when the following criteria is met:\n"
                f"<success_criteria>\n{self.success_criteria}\n</success_criteria>\n"
                "Stop the team run when the success_criteria is met.\n\n"
            )

        if len(instructions) > 0:
            system_message_content += "<instructions>\n"
            for _upi in instructions:
                system_message_content += f"- {_upi}\n"
            system_message_content += "</instructions>\n\n"

        for tool_instructions in get_tool_instructions(list(self.tools or [])):
            system_message_content += f"{tool_instructions}\n\n"
        if self.reasoning:
            system_message_content += f"{ReasoningTools.DEFAULT_INSTRUCTIONS}\n\n"

        if self.expected_output is not None:
            system_message_content += f"<expected_output>\n{self.expected_output.strip()}\n</expected_output>\n\n"

        if self.additional_context is not None:
            system_message_content += f"<additional_context>\n{self.additional_context.strip()}\n</additional_context>\n\n"

        if self.response_model is not None:
            system_message_content += (
                "Provide your output as a JSON object with the following fields:\n"
                f"{list(self.response_model.model_json_schema().get('properties', {}).keys())}\n"
                "Start your response with `{` and end it with `}`.\n"
            )

        return Message(role=self.system_message_role, content=system_message_content.strip())

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
        """Run the team leader on a message. Members run when the leader calls its member tools."""
        if stream:
            return self._run_stream(message, user_id=user_id, session_id=session_id)
        return self._run(message, user_id=user_id, session_id=session_id)

    def _start_run(
        self, message: str, user_id: Optional[str], session_id: Optional[str]
    ) -> Tuple[Model, RunResponse, Optional[Dict[str, Function]], List[Message]]:
        model = self.initialize_team()
        if session_id is not None:
            self.session_id = session_id
        _user_id = user_id or self.user_id

        self.run_id = str(uuid4())
        assert self.session_state is not None
        self.session_state[CURRENT_RUN_KEY] = self.run_id
        # Member interactions are scoped to a single run
        self.team_context.member_interactions = []

        run_response = RunResponse(
            run_id=self.run_id,
            team_id=self.id,
            session_id=self.session_id,
            user_id=_user_id,
            model=model.id,
            model_provider=model.get_provider(),
        )
        self.run_response = run_response
        log_debug(f"Team Run Start: {self.run_id}", center=True)

        team_tools = self.get_tools(message, run_response, user_id=_user_id)
        functions = parse_tools(team_tools, owner=self, session_state=self.session_state) if team_tools else None

        messages: List[Message] = []
        system_message = self.get_system_message()
        if system_message is not None:
            messages.append(system_message)
        messages.append(Message(role="user", content=message))
        return model, run_response, functions, messages

    def _get_response_format(self) -> Optional[Type[BaseModel]]:
        if self.response_model is not None and self.parse_response:
            return self.response_model
        return None

    def _run(self, message: str, user_id: Optional[str] = None, session_id: Optional[str] = None) -> RunResponse:
        model, run_response, functions, messages = self._start_run(message, user_id, session_id)

        model_response = model.response(
            messages=messages, functions=functions, response_format=self._get_response_format()
        )
        run_response.content = model_response.content
        run_response.reasoning_content = model_response.reasoning_content
        if model_response.tool_executions:
            run_response.tools = model_response.tool_executions
            run_response.formatted_tool_calls = model_response.formatted_tool_calls
        self._finish_run(messages, run_response)
        return run_response

    def _run_stream(
        self, message: str, user_id: Optional[str] = None, session_id: Optional[str] = None
    ) -> Iterator[RunResponse]:
        model, run_response, functions, messages = self._start_run(message, user_id, session_id)
        yield self._create_event(run_response, RunEvent.run_started)

        content = ""
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
            elif chunk.content is not None:
                content += chunk.content
                yield self._create_event(run_response, RunEvent.run_response, content=chunk.content)

        run_response.content = content or None
        if tool_executions:
            run_response.tools = tool_executions
            run_response.formatted_tool_calls = format_tool_calls(tool_executions)
        self._finish_run(messages, run_response)
        yield run_response

    def _create_event(self, run_response: RunResponse, event: RunEvent, **kwargs) -> RunResponse:
        return RunResponse(
            event=event.value,
            run_id=run_response.run_id,
            team_id=run_response.team_id,
            session_id=run_response.session_id,
            user_id=run_response.user_id,
            model=run_response.model,
            model_provider=run_response.model_provider,
            **kwargs,
        )

    def _finish_run(self, messages: List[Message], run_response: RunResponse) -> None:
        if self.mode == TeamMode.route and run_response.member_responses and self._forwarded(run_response):
            # A routed answer is the member's answer, content type included
            member_response = run_response.member_responses[-1]
            run_response.content = member_response.content
            run_response.content_type = member_response.content_type
        else:
            self._parse_response_content(run_response)

        run_response.messages = messages
        run_response.metrics = aggregate_metrics(messages)
        steps = get_reasoning_steps(self.session_state, run_response.run_id)
        if steps:
            run_response.reasoning_steps = steps
        run_response.event = RunEvent.run_completed.value
        log_debug(f"Team Run End: {run_response.run_id}", center=True)

    @staticmethod
    def _forwarded(run_response: RunResponse) -> bool:
        tools = run_response.tools or []
        return any(t.get("tool_name") == "forward_task_to_member" and not t.get("tool_call_error") for t in tools)

    def _parse_response_content(self, run_response: RunResponse) -> None:
        if self.response_model is None or not self.parse_response or not isinstance(run_response.content, str):
            return
        structured_output = parse_response_model_str(run_response.content, self.response_model)
        if structured_output is None:
            log_warning("Failed to convert response to response_model")
            return
        run_response.content = structured_output
        run_response.content_type = self.response_model.__name__

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

        with Live(console=console) as live_log:
            status = Status("Thinking...", spinner="aesthetic", speed=0.4, refresh_per_second=10)
            live_log.update(status)
            response_timer = Timer()
            response_timer.start()

            panels: List[Any] = [status]
            if message and show_message:
                panels.append(build_message_panel(message))
                live_log.update(Group(*panels))

            run_response: Optional[RunResponse] = None
            if stream:
                content = ""
                formatted_tool_calls: List[str] = []
                for event in self.run(message, stream=True, user_id=user_id, session_id=session_id):
                    if event.event == RunEvent.run_completed.value:
                        run_response = event
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
                                content=render_content(content, _markdown),
                                title=f"Response ({response_timer.elapsed:.1f}s)",
                                border_style="blue",
                            )
                        )
                    live_log.update(Group(*stream_panels))
            else:
                run_response = self.run(message, stream=False, user_id=user_id, session_id=session_id)
            response_timer.stop()

            if run_response is not None:
                if self.show_members_responses:
                    for member_response in run_response.member_responses:
                        member_name = member_response.agent_id or member_response.team_id or "Member"
                        if self.show_tool_calls and member_response.formatted_tool_calls:
                            panels.append(build_tool_calls_panel(member_response.formatted_tool_calls))
                        panels.append(
                            create_panel(
                                content=render_content(member_response.content, _markdown),
                                title=f"{member_name} Response",
                                border_style="magenta",
                            )
                        )
                panels.extend(
                    build_panels(
                        run_response,
                        response_timer=response_timer,
                        show_tool_calls=self.show_tool_calls,
                        show_reasoning=show_reasoning,
                        show_full_reasoning=show_full_reasoning,
                        markdown=_markdown,
                    )
                )

            panels = [p for p in panels if not isinstance(p, Status)]
            live_log.update(Group(*panels))
