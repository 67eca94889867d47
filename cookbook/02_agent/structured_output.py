"""
Structured Output

Give the agent a pydantic model and the response content comes back as an
instance of that model instead of a string.

Run: python cookbook/02_agent/structured_output.py
"""

from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from rich.pretty import pprint
from tutor.agent import Agent, RunResponse
from tutor.models.openai import OpenAIChat

load_dotenv()


class LessonPlan(BaseModel):
    topic: str = Field(..., description="The topic of the lesson")
    objectives: List[str] = Field(..., description="What the learner will be able to do afterwards")
    duration_minutes: int = Field(..., description="Estimated length of the lesson")


# The JSON shape is described in the system message
json_mode_agent = Agent(
    model=OpenAIChat(id="gpt-4o-mini"),
    description="You design short lessons.",
    response_model=LessonPlan,
)

# The provider enforces the schema
structured_output_agent = Agent(
    model=OpenAIChat(id="gpt-4o-mini"),
    description="You design short lessons.",
    response_model=LessonPlan,
    structured_outputs=True,
)

if __name__ == "__main__":
    response: RunResponse = json_mode_agent.run("A lesson about Python decorators")
    pprint(response.content)

    structured_output_agent.print_response("A lesson about recursion")
