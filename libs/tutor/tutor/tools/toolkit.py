from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional

from tutor.tools.function import Function
from tutor.utils.log import log_debug, log_warning


def _tool_name(tool: Any) -> str:
    if isinstance(tool, Function):
        return tool.name
    return tool.__name__


class Toolkit:
    def __init__(
        self,
        name: str = "toolkit",
        tools: Optional[List[Callable]] = None,
        instructions: Optional[str] = None,
        add_instructions: bool = False,
        include_tools: Optional[List[str]] = None,
        exclude_tools: Optional[List[str]] = None,
        show_result_tools: Optional[List[str]] = None,
        stop_after_tool_call_tools: Optional[List[str]] = None,
    ):
        """Initialize a new Toolkit.

        Args:
            name: A descriptive name for the toolkit
            tools: List of callables to register as functions
            instructions: Instructions for the toolkit, added to the system message
            add_instructions: Whether to add the instructions to the system message
            include_tools: Only register the tools with these names
            exclude_tools: Register every tool except the ones with these names
            show_result_tools: Names of tools whose result is shown to the user as is
            stop_after_tool_call_tools: Names of tools that end the run once called
        """
        self.name: str = name
        self.tools: List[Callable] = tools or []
        self.functions: Dict[str, Function] = OrderedDict()
        self.instructions: Optional[str] = instructions
        self.add_instructions: bool = add_instructions

        self.include_tools = include_tools
        self.exclude_tools = exclude_tools
        self.show_result_tools = show_result_tools or []
        self.stop_after_tool_call_tools = stop_after_tool_call_tools or []

        self._check_tools_filters()
        if self.tools:
            self._register_tools()

    def _check_tools_filters(self) -> None:
        available_tool_names = [_tool_name(tool) for tool in self.tools]
        if self.include_tools is not None:
            missing_includes = set(self.include_tools) - set(available_tool_names)
            if missing_includes:
                raise ValueError(f"Included tool(s) not present in the toolkit: {missing_includes}")
        if self.exclude_tools is not None:
            missing_excludes = set(self.exclude_tools) - set(available_tool_names)
            if missing_excludes:
                raise ValueError(f"Excluded tool(s) not present in the toolkit: {missing_excludes}")

    def _register_tools(self) -> None:
        for tool in self.tools:
            self.register(tool)

    def register(self, function: Callable[..., Any], name: Optional[str] = None) -> None:
        """Register a function with the toolkit.

        Args:
            function: The callable to register
            name: Optional custom name for the function
        """
        tool_name = name or _tool_name(function)
        if self.include_tools is not None and tool_name not in self.include_tools:
            return
        if self.exclude_tools is not None and tool_name in self.exclude_tools:
            return

        if isinstance(function, Function):
            f = function
        else:
            f = Function.from_callable(function, name=tool_name)
        f.show_result = tool_name in self.show_result_tools or f.show_result
        f.stop_after_tool_call = tool_name in self.stop_after_tool_call_tools or f.stop_after_tool_call
        self.functions[f.name] = f
        log_debug(f"Function: {f.name} registered with {self.name}")

    def get_functions(self) -> Dict[str, Function]:
        if not self.functions:
            log_warning(f"Toolkit {self.name} has no functions registered")
        return self.functions

    def __repr__(self):
        return f"<{self.__class__.__name__} name={self.name} functions={list(self.functions.keys())}>"

    def __str__(self):
        return self.__repr__()
