import inspect
import re
from typing import Any, Callable, Dict, List, Optional, get_type_hints

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from tutor.exceptions import AgentRunException
from tutor.utils.log import log_debug, log_exception, log_warning

# Parameters filled in by the agent at call time, never shown to the model
INJECTED_PARAMETERS = ("agent", "team", "session_state")


def _parse_docstring(docstring: Optional[str]) -> tuple:
    """Split a docstring into its description and a map of parameter descriptions.

    Understands Google style ``Args:`` sections and reST ``:param name:`` lines.
    """
    if not docstring:
        return None, {}

    doc = inspect.cleandoc(docstring)
    param_docs: Dict[str, str] = {}

    for match in re.finditer(r"^:param\s+(\w+):\s*(.+)$", doc, flags=re.MULTILINE):
        param_docs[match.group(1)] = match.group(2).strip()

    lines = doc.splitlines()
    description_lines: List[str] = []
    in_args = False
    current: Optional[str] = None
    for line in lines:
        stripped = line.strip()
        if stripped in ("Args:", "Arguments:", "Parameters:"):
            in_args = True
            continue
        if stripped in ("Returns:", "Raises:", "Example:", "Examples:") or stripped.startswith(":return"):
            in_args = False
            current = None
            if not description_lines or description_lines[-1] != "":
                description_lines.append("")
            continue
        if in_args:
            arg_match = re.match(r"^(\w+)\s*(\([^)]*\))?\s*:\s*(.*)$", stripped)
            if arg_match and not line.startswith(" " * 8):
                current = arg_match.group(1)
                param_docs[current] = arg_match.group(3).strip()
            elif current and stripped:
                param_docs[current] = f"{param_docs[current]} {stripped}".strip()
            continue
        if stripped.startswith(":param"):
            continue
        description_lines.append(line)

    description = "\n".join(description_lines).split("\n\n")[0].strip() or None
    return description, param_docs


class Function(BaseModel):
    """Model for storing functions that can be called by an agent."""

    # The name of the function to be called.
    # Must be a-z, A-Z, 0-9, or contain underscores and dashes, with a maximum length of 64.
    name: str
    # A description of what the function does, used by the model to choose when and how to call the function.
    description: Optional[str] = None
    # The parameters the functions accepts, described as a JSON Schema object.
    parameters: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []},
        description="JSON Schema object describing function parameters",
    )
    strict: Optional[bool] = None

    # The function to be called.
    entrypoint: Optional[Callable] = None
    # If True, the entrypoint processing is skipped and the Function is used as is.
    skip_entrypoint_processing: bool = False
    # If True, the result of the function call is shown to the user as is.
    show_result: bool = False
    # If True, the agent will stop after the function call.
    stop_after_tool_call: bool = False

    # The agent or team that owns this function, injected at run time
    _agent: Optional[Any] = None
    # The session state of the current run, injected at run time
    _session_state: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, include={"name", "description", "parameters", "strict"})

    def to_openai_tool(self) -> Dict[str, Any]:
        return {"type": "function", "function": self.to_dict()}

    @classmethod
    def from_callable(cls, c: Callable, name: Optional[str] = None, strict: bool = False) -> "Function":
        function_name = name or c.__name__
        description, param_docs = _parse_docstring(inspect.getdoc(c))
        parameters = cls._build_parameters(c, param_docs, strict=strict)
        return cls(
            name=function_name,
            description=description,
            parameters=parameters,
            entrypoint=c,
        )

    @staticmethod
    def _build_parameters(c: Callable, param_docs: Dict[str, str], strict: bool = False) -> Dict[str, Any]:
        sig = inspect.signature(c)
        try:
            type_hints = get_type_hints(c)
        except Exception as e:
            log_warning(f"Could not resolve type hints for {getattr(c, '__name__', c)}: {e}")
            type_hints = {}

        fields: Dict[str, Any] = {}
        for param_name, param in sig.parameters.items():
            if param_name in ("self", "cls") or param_name in INJECTED_PARAMETERS:
                continue
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            annotation = type_hints.get(param_name, Any)
            default = ... if param.default is inspect.Parameter.empty else param.default
            fields[param_name] = (annotation, Field(default, description=param_docs.get(param_name)))

        schema = create_model(f"{getattr(c, '__name__', 'function')}_args", **fields).model_json_schema()
        properties = schema.get("properties", {})
        for prop in properties.values():
            prop.pop("title", None)
            if prop.get("description") is None:
                prop.pop("description", None)

        parameters: Dict[str, Any] = {"type": "object", "properties": properties}
        if "$defs" in schema:
            parameters["$defs"] = schema["$defs"]
        if strict:
            parameters["required"] = list(properties.keys())
            parameters["additionalProperties"] = False
        else:
            parameters["required"] = schema.get("required", [])
        return parameters

    def process_entrypoint(self, strict: bool = False) -> None:
        """Fill in description and parameters from the entrypoint when they were not given."""
        if self.skip_entrypoint_processing or self.entrypoint is None:
            return
        description, param_docs = _parse_docstring(inspect.getdoc(self.entrypoint))
        if self.description is None:
            self.description = description
        self.parameters = self._build_parameters(self.entrypoint, param_docs, strict=strict)

    def get_injected_arguments(self) -> Dict[str, Any]:
        if self.entrypoint is None:
            return {}
        injected: Dict[str, Any] = {}
        sig_params = inspect.signature(self.entrypoint).parameters
        if "agent" in sig_params:
            injected["agent"] = self._agent
        if "team" in sig_params:
            injected["team"] = self._agent
        if "session_state" in sig_params:
            injected["session_state"] = self._session_state if self._session_state is not None else {}
        return injected


class FunctionCall(BaseModel):
    """Model for Function Calls"""

    # The function to be called.
    function: Function
    # The arguments to call the function with.
    arguments: Optional[Dict[str, Any]] = None
    # The result of the function call.
    result: Optional[Any] = None
    # The ID of the function call.
    call_id: Optional[str] = None
    # Error while parsing arguments or running the function.
    error: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def get_call_str(self) -> str:
        """Returns a string representation of the function call."""
        if self.arguments is None:
            return f"{self.function.name}()"

        trimmed_arguments = {}
        for k, v in self.arguments.items():
            if isinstance(v, str) and len(v) > 100:
                trimmed_arguments[k] = "..."
            else:
                trimmed_arguments[k] = v
        call_str = f"{self.function.name}({', '.join([f'{k}={v}' for k, v in trimmed_arguments.items()])})"
        return call_str

    def execute(self) -> bool:
        """Runs the function call.

        Returns True when the function ran successfully. Errors are stored on ``self.error``;
        AgentRunException and its subclasses propagate so the model loop can retry or stop.
        """
        if self.function.entrypoint is None:
            self.error = f"Function {self.function.name} has no entrypoint"
            return False

        log_debug(f"Running: {self.get_call_str()}")
        entrypoint_args = self.get_injected_arguments()
        try:
            self.result = self.function.entrypoint(**entrypoint_args, **(self.arguments or {}))
            return True
        except AgentRunException:
            raise
        except ValidationError as e:
            self.error = f"Invalid arguments for {self.function.name}: {e}"
        except TypeError as e:
            self.error = f"Invalid arguments for {self.function.name}: {e}"
        except Exception as e:
            log_exception(f"Could not run function {self.get_call_str()}")
            self.error = str(e)
        return False

    def get_injected_arguments(self) -> Dict[str, Any]:
        return self.function.get_injected_arguments()
