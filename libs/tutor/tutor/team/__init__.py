from tutor.team.context import TeamContext, TeamMemberInteraction
from tutor.team.mode import TeamMode
from tutor.team.team import Team

__all__ = [
    "Team",
    "TeamContext",
    "TeamMemberInteraction",
    "TeamMode",
]
