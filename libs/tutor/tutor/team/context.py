import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from tutor.run.response import RunResponse
from tutor.utils.log import log_debug


@dataclass
class TeamMemberInteraction:
    member_name: str
    task: str
    response: RunResponse

    def to_dict(self) -> Dict[str, Any]:
        return {
            "member_name": self.member_name,
            "task": self.task,
            "response": self.response.to_dict(),
        }


@dataclass
class TeamContext:
    # List of team member interactions, represented as a request and a response
    member_interactions: List[TeamMemberInteraction] = field(default_factory=list)
    # Shared context the leader maintains with `set_team_context`
    text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "member_interactions": [interaction.to_dict() for interaction in self.member_interactions],
            "text": self.text,
        }

    def add_interaction(self, member_name: str, task: str, run_response: RunResponse) -> None:
        self.member_interactions.append(TeamMemberInteraction(member_name=member_name, task=task, response=run_response))
        log_debug(f"Updated team context with member name: {member_name}")

    def set_text(self, text: Union[dict, str]) -> None:
        if isinstance(text, dict):
            if self.text is not None:
                try:
                    current_context = json.loads(self.text)
                except json.JSONDecodeError:
                    current_context = {}
                if not isinstance(current_context, dict):
                    current_context = {}
            else:
                current_context = {}
            current_context.update(text)
            self.text = json.dumps(current_context)
        else:
            # A string replaces the current context
            self.text = text

    def get_context_str(self) -> str:
        if self.text:
            return f"<team_context>\n{self.text}\n</team_context>\n"
        return ""

    def get_member_interactions_str(self) -> str:
        if not self.member_interactions:
            return ""
        interactions_str = "<member_interactions>\n"
        for interaction in self.member_interactions:
            response_content = interaction.response.get_content_as_string() or ",".join(
                str(tool.get("content", "")) for tool in interaction.response.tools or []
            )
            interactions_str += f"Member: {interaction.member_name}\n"
            interactions_str += f"Task: {interaction.task}\n"
            interactions_str += f"Response: {response_content}\n"
            interactions_str += "\n"
        interactions_str += "</member_interactions>\n"
        return interactions_str

    def clear(self) -> None:
        self.member_interactions = []
        self.text = None
