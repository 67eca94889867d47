from enum import Enum


class TeamMode(str, Enum):
    """How the team leader works with its members."""

    # The leader delegates sub-tasks to chosen members and synthesises their answers
    coordinate = "coordinate"
    # Every member gets the same task and the leader synthesises the discussion
    collaborate = "collaborate"
    # The leader forwards the request to one member whose answer is returned unchanged
    route = "route"
