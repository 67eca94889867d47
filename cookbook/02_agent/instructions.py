"""
Agent Instructions

The system message is built from the description, instructions, expected
output and additional context. Set debug_mode=True to see it in the logs.

Run: python cookbook/02_agent/instructions.py
"""

from textwrap import dedent

from dotenv import load_dotenv
from tutor.agent import Agent

load_dotenv()

agent = Agent(
    name="Study Buddy",
    model="openai:gpt-4o-mini",
    description="You are a patient study buddy for people learning Python.",
    instructions=[
        "Explain one idea at a time.",
        "Always finish with a short exercise the reader can try.",
    ],
    expected_output=dedent("""\
        ## {Concept}
        {Explanation in under 120 words}

        ### Try it
        {One small exercise}
        """),
    add_datetime_to_instructions=True,
    markdown=True,
    debug_mode=True,
)

if __name__ == "__main__":
    agent.print_response("What is a list comprehension?", stream=True)
