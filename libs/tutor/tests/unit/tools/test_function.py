from typing import Any, Dict, List, Optional

import pytest

from tutor.tools.decorator import tool
from tutor.tools.function import Function, FunctionCall
from tutor.tools.toolkit import Toolkit
from tutor.utils.functions import get_function_call


def enroll(session_state: Dict[str, Any], course: str, level: Optional[str] = None) -> str:
    """Enroll the student in a course.

    Args:
        course (str): Name of the course.
        level: Optional level, e.g. "beginner".

    Returns:
        str: A confirmation.
    """
    session_state.setdefault("courses", []).append(course)
    return f"Enrolled in {course}"


def test_from_callable_builds_schema():
    function = Function.from_callable(enroll)

    assert function.name == "enroll"
    assert function.description == "Enroll the student in a course."
    properties = function.parameters["properties"]
    # Injected parameters are hidden from the model
    assert "session_state" not in properties
    assert properties["course"]["type"] == "string"
    assert properties["course"]["description"] == "Name of the course."
    assert properties["level"]["description"] == 'Optional level, e.g. "beginner".'
    assert function.parameters["required"] == ["course"]


def test_strict_requires_every_parameter():
    function = Function.from_callable(enroll, strict=True)
    assert function.parameters["required"] == ["course", "level"]
    assert function.parameters["additionalProperties"] is False


def test_to_openai_tool():
    function = Function.from_callable(enroll)
    openai_tool = function.to_openai_tool()
    assert openai_tool["type"] == "function"
    assert openai_tool["function"]["name"] == "enroll"
    assert "entrypoint" not in openai_tool["function"]


def test_function_call_injects_session_state():
    function = Function.from_callable(enroll)
    session_state: Dict[str, Any] = {}
    function._session_state = session_state

    function_call = FunctionCall(function=function, arguments={"course": "Python 101"})

    assert function_call.execute() is True
    assert function_call.result == "Enrolled in Python 101"
    assert session_state["courses"] == ["Python 101"]


def test_function_call_with_bad_arguments_sets_error():
    function_call = FunctionCall(function=Function.from_callable(enroll), arguments={"unknown": 1})

    assert function_call.execute() is False
    assert "Invalid arguments for enroll" in function_call.error


def test_get_call_str_trims_long_arguments():
    function_call = FunctionCall(function=Function.from_callable(enroll), arguments={"course": "x" * 200})
    assert function_call.get_call_str() == "enroll(course=...)"


def test_get_function_call_parses_arguments():
    functions = {"enroll": Function.from_callable(enroll)}

    function_call = get_function_call("enroll", '{"course": " Python ", "level": "None"}', "call_9", functions)

    assert function_call.call_id == "call_9"
    assert function_call.arguments == {"course": "Python", "level": None}
    assert get_function_call("missing", "{}", functions=functions) is None


def test_get_function_call_with_invalid_json():
    functions = {"enroll": Function.from_callable(enroll)}
    function_call = get_function_call("enroll", "{not json", functions=functions)
    assert function_call.error.startswith("Error while decoding function arguments")


def test_tool_decorator():
    @tool
    def plain(x: int) -> int:
        """Double a number."""
        return x * 2

    @tool(name="renamed", description="Custom description", show_result=True, stop_after_tool_call=True)
    def configured(x: int) -> int:
        return x

    assert isinstance(plain, Function)
    assert plain.name == "plain"
    assert plain.description == "Double a number."
    assert configured.name == "renamed"
    assert configured.description == "Custom description"
    assert configured.show_result is True
    assert configured.stop_after_tool_call is True


def test_tool_decorator_rejects_unknown_arguments():
    with pytest.raises(ValueError):
        tool(cache_results=True)


class CourseTools(Toolkit):
    def __init__(self, **kwargs):
        super().__init__(name="course_tools", tools=[self.list_courses, self.drop_course], **kwargs)

    def list_courses(self) -> List[str]:
        """List the available courses."""
        return ["Python 101", "Agents 201"]

    def drop_course(self, course: str) -> str:
        """Drop a course."""
        return f"Dropped {course}"


def test_toolkit_registers_methods():
    toolkit = CourseTools()
    assert list(toolkit.functions.keys()) == ["list_courses", "drop_course"]
    assert toolkit.functions["list_courses"].entrypoint() == ["Python 101", "Agents 201"]


def test_toolkit_include_and_exclude():
    assert list(CourseTools(include_tools=["drop_course"]).functions) == ["drop_course"]
    assert list(CourseTools(exclude_tools=["drop_course"]).functions) == ["list_courses"]
    with pytest.raises(ValueError):
        CourseTools(include_tools=["missing"])


def test_toolkit_result_flags():
    toolkit = CourseTools(show_result_tools=["list_courses"], stop_after_tool_call_tools=["drop_course"])
    assert toolkit.functions["list_courses"].show_result is True
    assert toolkit.functions["drop_course"].stop_after_tool_call is True
