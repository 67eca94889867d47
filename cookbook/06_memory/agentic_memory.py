"""
Agentic Memory

With enable_agentic_memory=True the agent gets an `update_user_memory` tool
and decides itself when a memory should be added, changed or deleted.

Run: python cookbook/06_memory/agentic_memory.py
"""

from dotenv import load_dotenv
from rich.pretty import pprint
from tutor.agent import Agent
from tutor.memory import Memory
from tutor.memory.db.sqlite import SqliteMemoryDb

load_dotenv()

memory = Memory(db=SqliteMemoryDb(table_name="agentic_memories", db_file="tmp/memory.db"))
memory.clear()

user_id = "sam@example.com"

agent = Agent(
    model="openai:gpt-4o-mini",
    memory=memory,
    enable_agentic_memory=True,
    user_id=user_id,
    show_tool_calls=True,
    markdown=True,
)

if __name__ == "__main__":
    agent.print_response("My name is Sam and I teach chemistry at a high school.", stream=True)
    agent.print_response("I moved on, I now teach physics. Please update what you know.", stream=True)
    pprint([m.memory for m in memory.get_user_memories(user_id=user_id)])
