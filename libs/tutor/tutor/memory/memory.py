from copy import deepcopy
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from tutor.knowledge.embedder.base import Embedder
from tutor.memory.db.base import MemoryDb
from tutor.memory.db.in_memory import InMemoryMemoryDb
from tutor.memory.manager import MemoryManager
from tutor.memory.schema import MemoryRow, UserMemory
from tutor.models.base import Model
from tutor.models.message import Message
from tutor.run.response import RunResponse
from tutor.utils.log import log_debug, log_warning, set_log_level_to_debug, set_log_level_to_info, use_debug_mode

DEFAULT_USER_ID = "default"


class Memory:
    """User memories keyed by user id, plus the run history of each session."""

    def __init__(
        self,
        model: Optional[Model] = None,
        memory_manager: Optional[MemoryManager] = None,
        db: Optional[MemoryDb] = None,
        embedder: Optional[Embedder] = None,
        memories: Optional[Dict[str, Dict[str, UserMemory]]] = None,
        runs: Optional[Dict[str, List[RunResponse]]] = None,
        delete_memories: bool = True,
        clear_memories: bool = True,
        debug_mode: bool = False,
    ):
        self.memories: Dict[str, Dict[str, UserMemory]] = memories or {}
        self.runs: Dict[str, List[RunResponse]] = runs or {}
        self.db: MemoryDb = db if db is not None else InMemoryMemoryDb()
        self.embedder = embedder
        self.delete_memories = delete_memories
        self.clear_memories = clear_memories
        self.debug_mode = debug_mode

        if model is not None and isinstance(model, str):
            raise ValueError("Model must be a Model object, not a string")
        self.model = model
        self.memory_manager = memory_manager
        if self.model is not None:
            self.set_model(self.model)

        # Memories passed in directly are written through to the db
        for user_id, user_memories in self.memories.items():
            for memory_id, memory in user_memories.items():
                memory.memory_id = memory_id
                self._upsert_db_memory(user_id, memory)

    def set_model(self, model: Model) -> None:
        if self.model is None:
            self.model = deepcopy(model)
        if self.memory_manager is None:
            self.memory_manager = MemoryManager(model=deepcopy(model))
        elif self.memory_manager.model is None:
            self.memory_manager.model = deepcopy(model)

    def set_log_level(self) -> None:
        if use_debug_mode(self.debug_mode):
            self.debug_mode = True
            set_log_level_to_debug()
        else:
            set_log_level_to_info()

    def refresh_from_db(self, user_id: Optional[str] = None) -> None:
        rows = self.db.read_memories(user_id=user_id)
        if user_id is None:
            self.memories = {}
        else:
            self.memories[user_id] = {}
        for row in rows:
            if row.user_id is None:
                continue
            try:
                user_memory = UserMemory.from_dict(row.memory)
            except Exception as e:
                log_warning(f"Error converting memory row (id: {row.id}) to UserMemory: {e}")
                continue
            user_memory.memory_id = row.id
            self.memories.setdefault(row.user_id, {})[row.id] = user_memory

    def to_dict(self) -> Dict[str, Any]:
        return {
            "memories": {
                user_id: {memory_id: memory.to_dict() for memory_id, memory in user_memories.items()}
                for user_id, user_memories in self.memories.items()
            },
            "runs": {session_id: [run.to_dict() for run in runs] for session_id, runs in self.runs.items()},
        }

    # -*- User memories
    def get_user_memories(self, user_id: Optional[str] = None, refresh_from_db: bool = True) -> List[UserMemory]:
        """Get the user memories for a given user id, oldest first"""
        user_id = user_id or DEFAULT_USER_ID
        if refresh_from_db:
            self.refresh_from_db(user_id=user_id)
        user_memories = list(self.memories.get(user_id, {}).values())
        user_memories.sort(key=lambda m: m.last_updated or datetime.min)
        return user_memories

    def get_user_memory(
        self, memory_id: str, user_id: Optional[str] = None, refresh_from_db: bool = True
    ) -> Optional[UserMemory]:
        user_id = user_id or DEFAULT_USER_ID
        if refresh_from_db:
            self.refresh_from_db(user_id=user_id)
        return self.memories.get(user_id, {}).get(memory_id)

    def add_user_memory(self, memory: Union[str, UserMemory], user_id: Optional[str] = None) -> str:
        """Add a user memory for a given user id

        Args:
            memory: The memory to add, either as a string or UserMemory object
            user_id: The user id to add the memory to. Defaults to the "default" user.

        Returns:
            str: The id of the memory
        """
        if isinstance(memory, str):
            memory = UserMemory(memory=memory)
        if memory.memory_id is None:
            memory.memory_id = str(uuid4())
        if not memory.last_updated:
            memory.last_updated = datetime.now()
        user_id = user_id or DEFAULT_USER_ID

        self.memories.setdefault(user_id, {})[memory.memory_id] = memory
        self._upsert_db_memory(user_id, memory)
        return memory.memory_id

    def replace_user_memory(
        self, memory_id: str, memory: Union[str, UserMemory], user_id: Optional[str] = None
    ) -> Optional[str]:
        """Replace an existing memory. Returns None when the memory does not exist."""
        user_id = user_id or DEFAULT_USER_ID
        self.refresh_from_db(user_id=user_id)
        if memory_id not in self.memories.get(user_id, {}):
            log_warning(f"Memory {memory_id} not found for user {user_id}")
            return None

        if isinstance(memory, str):
            memory = UserMemory(memory=memory)
        memory.memory_id = memory_id
        memory.last_updated = datetime.now()
        self.memories[user_id][memory_id] = memory
        self._upsert_db_memory(user_id, memory)
        return memory_id

    def delete_user_memory(self, memory_id: str, user_id: Optional[str] = None) -> bool:
        user_id = user_id or DEFAULT_USER_ID
        self.refresh_from_db(user_id=user_id)
        if memory_id not in self.memories.get(user_id, {}):
            log_warning(f"Memory {memory_id} not found for user {user_id}")
            return False
        del self.memories[user_id][memory_id]
        self.db.delete_memory(memory_id=memory_id)
        return True

    def clear(self) -> None:
        """Clears every memory and every run."""
        self.db.clear()
        self.memories = {}
        self.runs = {}

    def search_user_memories(
        self,
        query: Optional[str] = None,
        limit: Optional[int] = None,
        retrieval_method: Literal["last_n", "first_n", "semantic"] = "last_n",
        user_id: Optional[str] = None,
    ) -> List[UserMemory]:
        """Search the user's memories.

        Args:
            query: The search query, only used by the semantic method
            limit: Maximum number of memories to return
            retrieval_method: "last_n" returns the most recent memories, "first_n" the oldest,
                "semantic" the closest to the query when an embedder is configured
            user_id: The user to search memories for
        """
        user_id = user_id or DEFAULT_USER_ID
        memories = self.get_user_memories(user_id=user_id)

        if retrieval_method == "semantic":
            if self.embedder is None or not query:
                log_warning("Semantic search requested without an embedder or query, falling back to last_n")
                retrieval_method = "last_n"
            else:
                rows = self.db.search_memories_semantic(
                    query_embedding=self.embedder.get_embedding(query), user_id=user_id, limit=limit
                )
                return [self.memories[user_id][row.id] for row in rows if row.id in self.memories.get(user_id, {})]

        if retrieval_method == "first_n":
            return memories[:limit] if limit else memories
        # last_n: most recent first
        memories = list(reversed(memories))
        return memories[:limit] if limit else memories

    def _existing_memories(self, user_id: str) -> List[Dict[str, Any]]:
        self.refresh_from_db(user_id=user_id)
        return [
            {"memory_id": memory_id, "memory": memory.memory}
            for memory_id, memory in self.memories.get(user_id, {}).items()
        ]

    def create_user_memories(
        self,
        message: Optional[str] = None,
        messages: Optional[List[Message]] = None,
        user_id: Optional[str] = None,
    ) -> str:
        """Creates memories from one message or a list of messages and adds them to the memory db."""
        self.set_log_level()
        if not messages and not message:
            raise ValueError("You must provide either a message or a list of messages")
        if message:
            messages = [Message(role="user", content=message)]
        if not messages or not isinstance(messages, list):
            raise ValueError("Invalid messages list")
        if self.memory_manager is None:
            raise ValueError("Memory manager not initialized, provide a model")

        user_id = user_id or DEFAULT_USER_ID
        response = self.memory_manager.create_or_update_memories(
            messages=messages,
            existing_memories=self._existing_memories(user_id),
            user_id=user_id,
            db=self.db,
            embedder=self.embedder,
            delete_memories=self.delete_memories,
            clear_memories=self.clear_memories,
        )
        self.refresh_from_db(user_id=user_id)
        return response

    def update_memory_task(self, task: str, user_id: Optional[str] = None) -> str:
        """Updates the memory with a task"""
        self.set_log_level()
        if self.memory_manager is None:
            raise ValueError("Memory manager not initialized, provide a model")

        user_id = user_id or DEFAULT_USER_ID
        response = self.memory_manager.run_memory_task(
            task=task,
            existing_memories=self._existing_memories(user_id),
            user_id=user_id,
            db=self.db,
            embedder=self.embedder,
            delete_memories=self.delete_memories,
            clear_memories=self.clear_memories,
        )
        self.refresh_from_db(user_id=user_id)
        return response

    def _upsert_db_memory(self, user_id: str, memory: UserMemory) -> None:
        assert memory.memory_id is not None
        embedding = None
        if self.embedder is not None and memory.memory:
            embedding = self.embedder.get_embedding(memory.memory) or None
        self.db.upsert_memory(
            MemoryRow(id=memory.memory_id, user_id=user_id, memory=memory.to_dict(), embedding=embedding)
        )

    # -*- Run history
    def add_run(self, session_id: str, run: RunResponse) -> None:
        """Adds a RunResponse to the runs of the session."""
        self.runs.setdefault(session_id, []).append(run)
        log_debug("Added RunResponse to Memory")

    def get_runs(self, session_id: str) -> List[RunResponse]:
        return self.runs.get(session_id, [])

    def get_messages_from_last_n_runs(
        self,
        session_id: str,
        last_n: Optional[int] = None,
        skip_role: Optional[str] = None,
        skip_history_messages: bool = True,
    ) -> List[Message]:
        """Returns the messages from the last_n runs of a session.

        Args:
            session_id: The session id to get the messages from.
            last_n: The number of runs to return from the end of the conversation. Defaults to all runs.
            skip_role: Skip messages with this role.
            skip_history_messages: Skip messages that were tagged as history in previous runs.
        """
        session_runs = self.runs.get(session_id, [])
        runs_to_process = session_runs[-last_n:] if last_n is not None else session_runs
        messages_from_history: List[Message] = []
        system_message = None
        for run_response in runs_to_process:
            if not (run_response and run_response.messages):
                continue

            for message in run_response.messages:
                if skip_role and message.role == skip_role:
                    continue
                if message.from_history and skip_history_messages:
                    continue
                if message.role == "system":
                    # Only add the system message once
                    if system_message is None:
                        system_message = message
                        messages_from_history.append(system_message)
                else:
                    messages_from_history.append(message)

        log_debug(f"Getting messages from previous runs: {len(messages_from_history)}")
        return messages_from_history

    def get_messages_for_session(self, session_id: str) -> List[Message]:
        """Returns alternating user and assistant messages, one pair per run."""
        final_messages: List[Message] = []
        for run_response in self.runs.get(session_id, []):
            if not run_response.messages:
                continue
            user_message = next(
                (m for m in run_response.messages if m.role == "user" and not m.from_history), None
            )
            assistant_message = next(
                (m for m in reversed(run_response.messages) if m.role == "assistant" and not m.from_history), None
            )
            if user_message and assistant_message:
                final_messages.extend([user_message, assistant_message])
        return final_messages
