from tutor.tools.decorator import tool
from tutor.tools.function import Function, FunctionCall
from tutor.tools.toolkit import Toolkit

__all__ = [
    "tool",
    "Function",
    "FunctionCall",
    "Toolkit",
]
