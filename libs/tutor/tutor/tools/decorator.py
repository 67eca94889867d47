from typing import Any, Callable, Optional, TypeVar, Union, overload

from tutor.tools.function import Function

F = TypeVar("F", bound=Callable[..., Any])


@overload
def tool() -> Callable[[F], Function]: ...


@overload
def tool(
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    strict: bool = False,
    show_result: bool = False,
    stop_after_tool_call: bool = False,
) -> Callable[[F], Function]: ...


@overload
def tool(func: F) -> Function: ...


def tool(*args, **kwargs) -> Union[Function, Callable[[F], Function]]:
    """Decorator to convert a function into a Function that can be used by an agent.

    Args:
        name: Optional[str] - Override for the function name
        description: Optional[str] - Override for the function description
        strict: bool - Require every parameter in the schema
        show_result: bool - If True, shows the result after function call
        stop_after_tool_call: bool - If True, the agent will stop after the function call.

    Returns:
        Union[Function, Callable[[F], Function]]: Decorated function or decorator

    Examples:
        @tool
        def my_function():
            pass

        @tool(name="custom_name", description="Custom description")
        def another_function():
            pass
    """
    valid_kwargs = frozenset({"name", "description", "strict", "show_result", "stop_after_tool_call"})
    invalid_kwargs = set(kwargs.keys()) - valid_kwargs
    if invalid_kwargs:
        raise ValueError(
            f"Invalid tool configuration arguments: {invalid_kwargs}. Valid arguments are: {sorted(valid_kwargs)}"
        )

    def decorator(func: F) -> Function:
        function = Function.from_callable(func, name=kwargs.get("name"), strict=kwargs.get("strict", False))
        if kwargs.get("description") is not None:
            function.description = kwargs["description"]
        function.show_result = kwargs.get("show_result", False)
        function.stop_after_tool_call = kwargs.get("stop_after_tool_call", False)
        return function

    # Handle both @tool and @tool() cases
    if len(args) == 1 and callable(args[0]) and not kwargs:
        return decorator(args[0])

    return decorator
