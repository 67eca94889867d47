import json
from time import perf_counter
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

from tutor.knowledge.document import Document
from tutor.run.response import RunResponse
from tutor.tools.function import Function
from tutor.tools.toolkit import Toolkit
from tutor.utils.log import log_debug, log_warning

if TYPE_CHECKING:
    from tutor.agent.agent import Agent


def search_knowledge(
    knowledge: Any, query: str, num_documents: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
) -> List[Document]:
    """Search any KnowledgeBase, passing max_results and filters only when given."""
    kwargs: Dict[str, Any] = {}
    if num_documents is not None:
        kwargs["max_results"] = num_documents
    if filters:
        kwargs["filters"] = filters
    return knowledge.search(query=query, **kwargs)


def add_references(run_response: RunResponse, query: str, documents: List[Document], elapsed: float) -> None:
    if run_response.references is None:
        run_response.references = []
    run_response.references.append(
        {"query": query, "references": [doc.to_dict() for doc in documents], "time": round(elapsed, 4)}
    )


def get_search_knowledge_base_function(agent: "Agent", run_response: RunResponse) -> Function:
    def search_knowledge_base(query: str) -> str:
        """Use this function to search the knowledge base for information about a query.

        Args:
            query: The query to search for.

        Returns:
            str: A string containing the response from the knowledge base.
        """
        start = perf_counter()
        documents = search_knowledge(
            agent.knowledge, query=query, num_documents=agent.num_references, filters=agent.knowledge_filters
        )
        add_references(run_response, query, documents, perf_counter() - start)
        if not documents:
            return "No documents found"
        return json.dumps([doc.to_dict() for doc in documents], indent=2)

    return Function.from_callable(search_knowledge_base)


def get_update_user_memory_function(agent: "Agent", user_id: Optional[str] = None) -> Function:
    def update_user_memory(task: str) -> str:
        """Use this function to submit a task to modify the Agent's memory.
        Describe the task in detail and be specific.
        The task can include adding a memory, updating a memory, deleting a memory, or clearing all memories.

        Args:
            task: The task to update the memory. Be specific and describe the task in detail.

        Returns:
            str: A string indicating the status of the update.
        """
        if agent.memory is None:
            return "Memory is not enabled for this agent"
        log_debug(f"Updating memory: {task}")
        return agent.memory.update_memory_task(task=task, user_id=user_id)

    return Function.from_callable(update_user_memory)


def parse_tools(
    tools: List[Union[Toolkit, Callable, Function, Dict]],
    owner: Any,
    session_state: Optional[Dict[str, Any]],
    strict: bool = False,
) -> Dict[str, Function]:
    """Flatten toolkits, callables and functions into a name -> Function map bound to the owner."""
    functions: Dict[str, Function] = {}
    for tool in tools:
        if isinstance(tool, Toolkit):
            for name, func in tool.get_functions().items():
                if name in functions:
                    log_warning(f"Function {name} already added, skipping")
                    continue
                functions[name] = func
        elif isinstance(tool, Function):
            if tool.name not in functions:
                if tool.entrypoint is not None and not tool.parameters.get("properties"):
                    tool.process_entrypoint(strict=strict)
                functions[tool.name] = tool
        elif callable(tool):
            func = Function.from_callable(tool, strict=strict)
            if func.name not in functions:
                functions[func.name] = func
        else:
            log_warning(f"Could not parse tool: {tool}")

    # Toolkits and Functions can be shared between agents, so each owner binds its own copy
    bound: Dict[str, Function] = {}
    for name, func in functions.items():
        bound_func = func.model_copy()
        bound_func._agent = owner
        bound_func._session_state = session_state
        bound[name] = bound_func
        log_debug(f"Added tool {name}", log_level=2)
    return bound


def get_tool_instructions(tools: List[Any]) -> List[str]:
    return [
        tool.instructions
        for tool in tools
        if isinstance(tool, Toolkit) and tool.add_instructions and tool.instructions is not None
    ]
