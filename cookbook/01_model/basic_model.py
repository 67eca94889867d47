"""
Talking to a Model

A Model is a thin client for a provider API. It turns a list of messages into
a response and, when given tools, runs the tool calls the model asks for.

Run: python cookbook/01_model/basic_model.py
"""

from dotenv import load_dotenv
from rich.pretty import pprint
from tutor.models.message import Message
from tutor.models.openai import OpenAIChat
from tutor.models.utils import get_model

load_dotenv()

# ============================================================================
# A model instance
# ============================================================================
model = OpenAIChat(id="gpt-4o-mini", temperature=0.2)

messages = [
    Message(role="system", content="You answer in one short sentence."),
    Message(role="user", content="What does a language model do?"),
]

# ============================================================================
# A model from a "provider:model_id" string
# ============================================================================
local_model = get_model("ollama:llama3.1")

if __name__ == "__main__":
    response = model.response(messages=messages)
    print(response.content)

    # The assistant message was appended to the conversation, with its metrics
    pprint(messages[-1].metrics)

    # Streaming yields the content as it arrives
    for chunk in model.response_stream(
        messages=[Message(role="user", content="Count from one to five, in words.")]
    ):
        if chunk.content:
            print(chunk.content, end="", flush=True)
    print()

    print(f"A local model client was created for: {local_model.id}")
