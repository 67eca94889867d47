from dataclasses import dataclass, field
from datetime import datetime
from textwrap import dedent
from typing import Any, Dict, List, Optional
from uuid import uuid4

from tutor.knowledge.embedder.base import Embedder
from tutor.memory.db.base import MemoryDb
from tutor.memory.schema import MemoryRow, UserMemory
from tutor.models.base import Model
from tutor.models.message import Message
from tutor.tools.function import Function
from tutor.utils.log import log_debug, log_error, log_warning


@dataclass
class MemoryManager:
    """Asks a model which user memories to add, update or delete and applies its tool calls to a MemoryDb."""

    # Model used for memory management
    model: Optional[Model] = None
    # Replaces the default system message
    system_message: Optional[str] = None
    # Appended to the default system message
    additional_instructions: Optional[str] = None

    # Whether memories were created, updated or deleted in the last run
    memories_updated: bool = False
    # Human readable log of the changes made in the last run
    changes: List[str] = field(default_factory=list)

    def get_model(self) -> Model:
        if self.model is None:
            from tutor.models.utils import get_default_model

            self.model = get_default_model()
        return self.model

    def get_system_message(
        self,
        existing_memories: Optional[List[Dict[str, Any]]] = None,
        enable_delete_memory: bool = True,
        enable_clear_memory: bool = True,
    ) -> Message:
        if self.system_message is not None:
            return Message(role="system", content=self.system_message)

        system_prompt_lines = [
            dedent("""\
            You are a MemoryManager that is responsible for managing key information about the user.
            You will be provided with a criteria for memories to capture in the <memories_to_capture> section and a list of existing memories in the <existing_memories> section.

            ## When to add or update memories
            - Your first task is to decide if a memory needs to be added, updated, or deleted based on the user's message OR if no changes are needed.
            - If the user's message meets the criteria in the <memories_to_capture> section and that information is not already captured in the <existing_memories> section, you should capture it as a memory.
            - If the user's message does not meet the criteria in the <memories_to_capture> section, no memory updates are needed.
            - If the existing memories in the <existing_memories> section capture all relevant information, no memory updates are needed.

            ## How to add or update memories
            - If you decide to add a new memory, create memories that captures key information, as if you were storing it for future reference.
            - Memories should be a brief, third-person statements that encapsulate the most important aspect of the user's input, without adding any extraneous information.
              - Example: If the user's message is 'I'm going to the gym', a memory could be `John Doe goes to the gym regularly`.
            - Don't make a single memory too long or complex, create multiple memories if needed to capture all the information.
            - Don't repeat the same information in multiple memories. Rather update existing memories if needed.
            - When updating a memory, append the existing memory with new information rather than completely overwriting it.
            - When a user's preferences change, update the relevant memories to reflect the new preferences but also capture what the user's preferences used to be and what has changed.

            <memories_to_capture>
            Memories should include details that could personalize ongoing interactions with the user, such as:
              - Personal facts: name, age, occupation, location, interests, preferences, etc.
              - Significant life events or experiences shared by the user
              - Important context about the user's current situation, challenges or goals
              - What the user likes or dislikes, their opinions, beliefs, values, etc.
              - Any other details that provide valuable insights into the user's personality, perspective or needs
            </memories_to_capture>

            ## Updating memories
            You will also be provided with a list of existing memories in the <existing_memories> section. You can:
              - Decide to make no changes.
              - Decide to add a new memory, using the `add_memory` tool.
              - Decide to update an existing memory, using the `update_memory` tool.\
            """)
        ]
        if enable_delete_memory:
            system_prompt_lines.append("  - Decide to delete an existing memory, using the `delete_memory` tool.")
        if enable_clear_memory:
            system_prompt_lines.append("  - Decide to clear all memories, using the `clear_memory` tool.")
        system_prompt_lines.append(
            "You can call multiple tools in a single response if needed.\n"
            "Only add or update memories if it is necessary to capture key information provided by the user."
        )

        if existing_memories:
            system_prompt_lines.append("\n<existing_memories>")
            for existing_memory in existing_memories:
                system_prompt_lines.append(f"ID: {existing_memory['memory_id']}")
                system_prompt_lines.append(f"Memory: {existing_memory['memory']}")
                system_prompt_lines.append("")
            system_prompt_lines.append("</existing_memories>")

        if self.additional_instructions:
            system_prompt_lines.append(self.additional_instructions)

        return Message(role="system", content="\n".join(system_prompt_lines))

    def _record(self, change: str) -> None:
        self.memories_updated = True
        self.changes.append(change)
        log_debug(change)

    def _get_db_tools(
        self,
        user_id: str,
        db: MemoryDb,
        input_string: str,
        embedder: Optional[Embedder] = None,
        enable_delete_memory: bool = True,
        enable_clear_memory: bool = True,
    ) -> Dict[str, Function]:
        manager = self

        def upsert(memory_id: str, user_memory: UserMemory) -> None:
            embedding = None
            if embedder is not None and user_memory.memory:
                embedding = embedder.get_embedding(user_memory.memory) or None
            db.upsert_memory(
                MemoryRow(id=memory_id, user_id=user_id, memory=user_memory.to_dict(), embedding=embedding)
            )

        def owns(memory_id: str) -> bool:
            # Only memories of the current user can be changed
            return any(row.id == memory_id for row in db.read_memories(user_id=user_id))

        def add_memory(memory: str, topics: Optional[List[str]] = None) -> str:
            """Use this function to add a memory to the database.

            Args:
                memory: The memory to be added.
                topics: The topics of the memory (e.g. ["name", "hobbies", "location"]).

            Returns:
                A message indicating if the memory was added successfully or not.
            """
            try:
                memory_id = str(uuid4())
                user_memory = UserMemory(
                    memory_id=memory_id, memory=memory, topics=topics, input=input_string, last_updated=datetime.now()
                )
                upsert(memory_id, user_memory)
                manager._record(f"Added memory: {memory}")
                return "Memory added successfully"
            except Exception as e:
                log_warning(f"Error storing memory in db: {e}")
                return f"Error adding memory: {e}"

        def update_memory(memory_id: str, memory: str, topics: Optional[List[str]] = None) -> str:
            """Use this function to update an existing memory in the database.

            Args:
                memory_id: The id of the memory to be updated.
                memory: The updated memory.
                topics: The topics of the memory (e.g. ["name", "hobbies", "location"]).

            Returns:
                A message indicating if the memory was updated successfully or not.
            """
            try:
                if not owns(memory_id):
                    return f"Memory {memory_id} does not exist"
                user_memory = UserMemory(
                    memory_id=memory_id, memory=memory, topics=topics, input=input_string, last_updated=datetime.now()
                )
                upsert(memory_id, user_memory)
                manager._record(f"Updated memory {memory_id}: {memory}")
                return "Memory updated successfully"
            except Exception as e:
                log_warning(f"Error updating memory in db: {e}")
                return f"Error updating memory: {e}"

        def delete_memory(memory_id: str) -> str:
            """Use this function to delete a single memory from the database.

            Args:
                memory_id: The id of the memory to be deleted.

            Returns:
                A message indicating if the memory was deleted successfully or not.
            """
            try:
                if not owns(memory_id):
                    return f"Memory {memory_id} does not exist"
                db.delete_memory(memory_id=memory_id)
                manager._record(f"Deleted memory {memory_id}")
                return "Memory deleted successfully"
            except Exception as e:
                log_warning(f"Error deleting memory in db: {e}")
                return f"Error deleting memory: {e}"

        def clear_memory() -> str:
            """Use this function to remove all (or clear all) memories from the database.

            Returns:
                A message indicating if the memory was cleared successfully or not.
            """
            for row in db.read_memories(user_id=user_id):
                db.delete_memory(memory_id=row.id)
            manager._record("Cleared all memories")
            return "Memory cleared successfully"

        tools = [add_memory, update_memory]
        if enable_delete_memory:
            tools.append(delete_memory)
        if enable_clear_memory:
            tools.append(clear_memory)
        return {t.__name__: Function.from_callable(t) for t in tools}

    def _run(
        self,
        messages: List[Message],
        existing_memories: List[Dict[str, Any]],
        user_id: str,
        db: MemoryDb,
        input_string: str,
        delete_memories: bool,
        clear_memories: bool,
        embedder: Optional[Embedder] = None,
    ) -> str:
        self.memories_updated = False
        self.changes = []

        model = self.get_model()
        messages_for_model: List[Message] = [
            self.get_system_message(
                existing_memories=existing_memories,
                enable_delete_memory=delete_memories,
                enable_clear_memory=clear_memories,
            ),
            *messages,
        ]
        functions = self._get_db_tools(
            user_id=user_id,
            db=db,
            embedder=embedder,
            input_string=input_string,
            enable_delete_memory=delete_memories,
            enable_clear_memory=clear_memories,
        )
        try:
            response = model.response(messages=messages_for_model, functions=functions)
        except Exception as e:
            log_error(f"Error managing memories: {e}")
            raise

        if self.changes:
            return "\n".join(self.changes)
        return response.content or "No changes to memories"

    def create_or_update_memories(
        self,
        messages: List[Message],
        existing_memories: List[Dict[str, Any]],
        user_id: str,
        db: MemoryDb,
        embedder: Optional[Embedder] = None,
        delete_memories: bool = True,
        clear_memories: bool = True,
    ) -> str:
        """Extract memories from the conversation. Returns a summary of what changed."""
        log_debug("MemoryManager Start", center=True)
        input_string = ", ".join(m.get_content_string() for m in messages if m.role == "user" and m.content)
        response = self._run(
            messages=messages,
            existing_memories=existing_memories,
            user_id=user_id,
            db=db,
            embedder=embedder,
            input_string=input_string,
            delete_memories=delete_memories,
            clear_memories=clear_memories,
        )
        log_debug("MemoryManager End", center=True)
        return response

    def run_memory_task(
        self,
        task: str,
        existing_memories: List[Dict[str, Any]],
        user_id: str,
        db: MemoryDb,
        embedder: Optional[Embedder] = None,
        delete_memories: bool = True,
        clear_memories: bool = True,
    ) -> str:
        """Carry out an explicit memory task, e.g. "Remember that the user prefers Python"."""
        log_debug("MemoryManager Task Start", center=True)
        response = self._run(
            messages=[Message(role="user", content=task)],
            existing_memories=existing_memories,
            user_id=user_id,
            db=db,
            embedder=embedder,
            input_string=task,
            delete_memories=delete_memories,
            clear_memories=clear_memories,
        )
        log_debug("MemoryManager Task End", center=True)
        return response
