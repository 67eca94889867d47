"""
Python Functions as Tools

Any Python function with type hints and a docstring can be a tool. The
signature becomes the JSON schema the model sees, the docstring its description.

Run: python cookbook/03_tools/python_functions.py
"""

import json
from typing import Any, Dict

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.tools import tool

load_dotenv()

COURSES = {
    "python-101": {"title": "Python for Beginners", "hours": 12, "level": "beginner"},
    "agents-201": {"title": "Building AI Agents", "hours": 8, "level": "intermediate"},
}


def list_courses() -> str:
    """List the ids and titles of every course in the catalogue.

    Returns:
        str: JSON list of {"id", "title"} objects.
    """
    return json.dumps([{"id": course_id, "title": c["title"]} for course_id, c in COURSES.items()])


@tool(show_result=True)
def get_course(course_id: str) -> str:
    """Get the details of a single course.

    Args:
        course_id: The id of the course, e.g. "python-101".
    """
    course = COURSES.get(course_id)
    if course is None:
        return f"No course with id {course_id}"
    return json.dumps(course)


def enroll(session_state: Dict[str, Any], course_id: str) -> str:
    """Enroll the learner in a course.

    Args:
        course_id: The id of the course to enroll in.
    """
    # session_state is filled in by the agent and never shown to the model
    session_state.setdefault("enrolled", []).append(course_id)
    return f"Enrolled in {course_id}. Current courses: {session_state['enrolled']}"


agent = Agent(
    model="openai:gpt-4o-mini",
    tools=[list_courses, get_course, enroll],
    instructions="Help the learner pick a course and enroll them.",
    show_tool_calls=True,
    markdown=True,
)

if __name__ == "__main__":
    agent.print_response("Which courses do you have? Enroll me in the one about agents.", stream=True)
    print(f"Session state: {agent.session_state}")
