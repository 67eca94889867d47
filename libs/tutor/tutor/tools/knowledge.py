import json
from textwrap import dedent
from typing import Any, Dict, List, Optional

from tutor.knowledge.document import Document
from tutor.knowledge.protocol import KnowledgeBase
from tutor.reasoning.step import NextAction, ReasoningStep
from tutor.tools.reasoning import add_reasoning_step, format_reasoning_steps
from tutor.tools.toolkit import Toolkit
from tutor.utils.log import log_debug, log_error


class KnowledgeTools(Toolkit):
    def __init__(
        self,
        knowledge: KnowledgeBase,
        enable_think: bool = True,
        enable_search: bool = True,
        enable_analyze: bool = True,
        all: bool = False,
        instructions: Optional[str] = None,
        add_instructions: bool = True,
        add_few_shot: bool = False,
        few_shot_examples: Optional[str] = None,
        **kwargs,
    ):
        if knowledge is None:
            raise ValueError("knowledge must be provided when using KnowledgeTools")

        self.knowledge: KnowledgeBase = knowledge

        if instructions is None:
            self.instructions = self.DEFAULT_INSTRUCTIONS
        else:
            self.instructions = instructions
        if add_few_shot:
            self.instructions += "\n" + (few_shot_examples or self.FEW_SHOT_EXAMPLES)

        tools: List[Any] = []
        if all or enable_think:
            tools.append(self.think)
        if all or enable_search:
            tools.append(self.search_knowledge)
        if all or enable_analyze:
            tools.append(self.analyze)

        super().__init__(
            name="knowledge_tools",
            tools=tools,
            instructions=self.instructions,
            add_instructions=add_instructions,
            **kwargs,
        )

    def think(self, session_state: Dict[str, Any], thought: str) -> str:
        """Use this tool as a scratchpad to reason about the question, refine your approach, brainstorm search terms, or revise your plan.

        Call `Think` whenever you need to figure out what to do next, analyze the user's question, or plan your approach.
        You should use this tool as frequently as needed.

        Args:
            thought: Your thought process and reasoning.

        Returns:
            The formatted history of thoughts for this run.
        """
        try:
            log_debug(f"Thought: {thought}")
            steps = add_reasoning_step(
                session_state, ReasoningStep(title="Think", reasoning=thought, next_action=NextAction.CONTINUE)
            )
            return format_reasoning_steps(steps)
        except Exception as e:
            log_error(f"Error recording thought: {e}")
            return f"Error recording thought: {e}"

    def search_knowledge(self, session_state: Dict[str, Any], query: str) -> str:
        """Use this tool to search the knowledge base for relevant information.
        After thinking through the question, use this tool as many times as needed to search for relevant information.

        Args:
            query: The query to search the knowledge base for.

        Returns:
            A string containing the response from the knowledge base.
        """
        try:
            log_debug(f"Searching knowledge base: {query}")
            relevant_docs: List[Document] = self.knowledge.search(query=query)
            if len(relevant_docs) == 0:
                return "No documents found"
            return json.dumps([doc.to_dict() for doc in relevant_docs])
        except Exception as e:
            log_error(f"Error searching knowledge base: {e}")
            return f"Error searching knowledge base: {e}"

    def analyze(self, session_state: Dict[str, Any], analysis: str) -> str:
        """Use this tool to evaluate whether the returned documents are correct and sufficient.
        If not, go back to "Think" or "Search" with refined queries.

        Args:
            analysis: A thought to think about and log.

        Returns:
            The formatted history of thoughts for this run.
        """
        try:
            log_debug(f"Analysis: {analysis}")
            steps = add_reasoning_step(
                session_state, ReasoningStep(title="Analyze", reasoning=analysis, next_action=NextAction.VALIDATE)
            )
            return format_reasoning_steps(steps)
        except Exception as e:
            log_error(f"Error recording analysis: {e}")
            return f"Error recording analysis: {e}"

    DEFAULT_INSTRUCTIONS = dedent(
        """\
        You have access to the Think, Search, and Analyze tools that will help you search your knowledge for relevant information. Use these tools as frequently as needed to find the most relevant information.

        ## How to use the Think, Search, and Analyze tools:
        1. **Think**
        - Purpose: A scratchpad for planning, brainstorming keywords, and refining your approach. You never reveal your "Think" content to the user.
        - Usage: Call `think` whenever you need to figure out what to do next, analyze the user's question, or plan your approach.

        2. **Search**
        - Purpose: Executes a query against the knowledge base.
        - Usage: Call `search_knowledge` with a clear query string whenever you want to retrieve information from your knowledge base.

        3. **Analyze**
        - Purpose: Evaluate whether the returned documents are correct and sufficient. If not, go back to "Think" or "Search" with refined queries.
        - Usage: Call `analyze` after getting search results to verify the quality and correctness of that information.

        **Important Guidelines**:
        - Do not include your internal chain-of-thought in direct user responses.
        - Use "Think" to reason internally. These notes are never exposed to the user.
        - When you provide a final answer to the user, be clear, concise, and based on the search results.\
        """
    )

    FEW_SHOT_EXAMPLES = dedent(
        """\
        You can refer to the example below as guidance for how to use each tool.
        ### Example: Single Search

        User: What is the recommended water intake per day?

        Think: The user is asking about daily water intake. I will search for "daily water intake recommendation".
        Search: query="daily water intake recommendation"
        Analyze: The result gives a clear recommendation with a source. This is sufficient.

        Final Answer: Most guidelines recommend around 2 to 3 litres of water per day for adults.\
        """
    )
