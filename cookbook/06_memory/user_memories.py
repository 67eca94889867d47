"""
User Memories

With enable_user_memories=True the agent extracts facts about the user after
every run and stores them in a memory db. The memories are added to the system
message of later runs, even in a new session.

Run: python cookbook/06_memory/user_memories.py
"""

from dotenv import load_dotenv
from rich.pretty import pprint
from tutor.agent import Agent
from tutor.memory import Memory
from tutor.memory.db.sqlite import SqliteMemoryDb

load_dotenv()

memory_db = SqliteMemoryDb(table_name="user_memories", db_file="tmp/memory.db")
memory = Memory(db=memory_db)

# Start from a clean table every time the example runs
memory.clear()

user_id = "ava@example.com"

agent = Agent(
    model="openai:gpt-4o-mini",
    memory=memory,
    enable_user_memories=True,
    user_id=user_id,
    markdown=True,
)

if __name__ == "__main__":
    agent.print_response("Hi, I'm Ava. I'm learning Python and I prefer short examples.", stream=True)
    pprint([m.memory for m in memory.get_user_memories(user_id=user_id)])

    # A new session still knows the user
    agent.print_response("Explain list comprehensions to me.", session_id="second-session", stream=True)
