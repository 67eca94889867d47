import json
from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Union

from pydantic import BaseModel

from tutor.agent.agent import Agent
from tutor.exceptions import StopAgentRun
from tutor.run.response import RunResponse
from tutor.tools.function import Function
from tutor.utils.log import log_debug

if TYPE_CHECKING:
    from tutor.team.team import Team


def get_member_id(member: Union[Agent, "Team"]) -> str:
    if member.id is None:
        member.set_id()
    assert member.id is not None
    return member.id


def find_member_by_id(team: "Team", member_id: str) -> Optional[Tuple[int, Union[Agent, "Team"]]]:
    """Find a member (agent or team) by its ID, searching sub-teams recursively.

    Returns:
        Optional[Tuple[int, Union[Agent, "Team"]]]: Tuple containing:
            - Index of the member in its immediate parent's members list
            - The matched member (Agent or Team)
    """
    from tutor.team.team import Team

    for i, member in enumerate(team.members):
        if get_member_id(member) == member_id:
            return i, member
        if isinstance(member, Team):
            result = find_member_by_id(member, member_id)
            if result is not None:
                return result
    return None


def get_member_name(member: Union[Agent, "Team"]) -> str:
    return member.name or member.id or "Unknown"


def format_member_task(team: "Team", task_description: str, expected_output: Optional[str] = None) -> str:
    member_task = task_description
    if expected_output:
        member_task += f"\n\n<expected_output>\n{expected_output}\n</expected_output>"
    if team.enable_agentic_context:
        team_context_str = team.team_context.get_context_str()
        if team_context_str:
            member_task += f"\n\n{team_context_str}"
    if team.share_member_interactions:
        interactions_str = team.team_context.get_member_interactions_str()
        if interactions_str:
            member_task += f"\n\n{interactions_str}"
    return member_task


def format_member_response(member_response: Optional[RunResponse]) -> str:
    if member_response is None:
        return "No response from the member agent."
    if member_response.content is None:
        if member_response.tools:
            return ",".join(str(tool.get("content", "")) for tool in member_response.tools)
        return "No response from the member agent."
    if isinstance(member_response.content, str):
        return member_response.content
    if isinstance(member_response.content, BaseModel):
        return member_response.content.model_dump_json(indent=2)
    return json.dumps(member_response.content, indent=2)


def run_member(
    team: "Team",
    member: Union[Agent, "Team"],
    task_description: str,
    expected_output: Optional[str],
    run_response: RunResponse,
    user_id: Optional[str] = None,
) -> RunResponse:
    """Run a member on a task, recording the interaction on the team."""
    member_task = format_member_task(team, task_description, expected_output)
    log_debug(f"Running member {get_member_name(member)}", center=True, symbol="-")
    member_response = member.run(member_task, stream=False, user_id=user_id, session_id=team.session_id)
    team.team_context.add_interaction(get_member_name(member), task_description, member_response)
    run_response.member_responses.append(member_response)
    return member_response


def _member_not_found(team: "Team", member_id: str) -> str:
    return (
        f"Member with ID {member_id} not found in the team or any subteams. "
        f"Please choose the correct member from the list of members:\n\n{team.get_members_system_message_content()}"
    )


def get_transfer_task_function(
    team: "Team", run_response: RunResponse, user_id: Optional[str] = None
) -> Function:
    def transfer_task_to_member(member_id: str, task_description: str, expected_output: Optional[str] = None) -> str:
        """Use this function to transfer a task to the selected team member.
        You must provide a clear and concise description of the task the member should achieve AND the expected output.

        Args:
            member_id (str): The ID of the member to transfer the task to.
            task_description (str): A clear and concise description of the task the member should achieve.
            expected_output (str): The expected output from the member (optional).
        Returns:
            str: The result of the delegated task.
        """
        result = find_member_by_id(team, member_id)
        if result is None:
            return _member_not_found(team, member_id)
        _, member = result
        member_response = run_member(team, member, task_description, expected_output, run_response, user_id)
        return format_member_response(member_response)

    return Function.from_callable(transfer_task_to_member)


def get_run_member_agents_function(
    team: "Team", run_response: RunResponse, user_id: Optional[str] = None
) -> Function:
    def run_member_agents(task_description: str, expected_output: Optional[str] = None) -> str:
        """Send the same task to every member of the team and return all of their responses.
        Call this function ONLY once per request.

        Args:
            task_description (str): A clear and concise description of the task to send to the members.
            expected_output (str): The expected output from the members (optional).
        Returns:
            str: The responses from all the members.
        """
        responses: List[str] = []
        for member in team.members:
            member_response = run_member(team, member, task_description, expected_output, run_response, user_id)
            responses.append(f"Agent {get_member_name(member)}: {format_member_response(member_response)}")
        return "\n\n".join(responses)

    return Function.from_callable(run_member_agents)


def get_forward_task_function(
    team: "Team", message: str, run_response: RunResponse, user_id: Optional[str] = None
) -> Function:
    def forward_task_to_member(member_id: str, expected_output: Optional[str] = None) -> Any:
        """Use this function to forward the request to the selected team member.
        The member's answer is returned to the user as is.

        Args:
            member_id (str): The ID of the member to forward the request to.
            expected_output (str): The expected output from the member (optional).
        Returns:
            str: The result of the forwarded request.
        """
        result = find_member_by_id(team, member_id)
        if result is None:
            return _member_not_found(team, member_id)
        _, member = result
        member_response = run_member(team, member, message, expected_output, run_response, user_id)
        # The member answer ends the leader's run
        raise StopAgentRun(
            f"Forwarded to {member_id}", agent_message=format_member_response(member_response)
        )

    return Function.from_callable(forward_task_to_member)


def get_set_team_context_function(team: "Team") -> Function:
    def set_team_context(state: Union[str, dict]) -> str:
        """Set the team's shared context. It is passed to every member with their task.

        Args:
            state (str or dict): The new context. A dict is merged into the current context, a string replaces it.
        Returns:
            str: A confirmation with the current context.
        """
        team.team_context.set_text(state)
        return f"Current team context: {team.team_context.text}"

    return Function.from_callable(set_team_context)
