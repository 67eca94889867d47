from tutor.agent.agent import Agent
from tutor.knowledge.document import Document
from tutor.memory.memory import Memory
from tutor.run.response import RunEvent, RunResponse
from tutor.tools.function import Function, FunctionCall
from tutor.tools.toolkit import Toolkit

__all__ = [
    "Agent",
    "Document",
    "Function",
    "FunctionCall",
    "Memory",
    "RunEvent",
    "RunResponse",
    "Toolkit",
]
