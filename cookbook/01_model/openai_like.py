"""
OpenAI-compatible Endpoints

Any server that speaks the Chat Completions API (Ollama, LM Studio, vLLM,
hosted gateways) can be used through OpenAILike.

Run: python cookbook/01_model/openai_like.py
"""

from os import getenv

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.models.openai import OpenAILike

load_dotenv()

agent = Agent(
    model=OpenAILike(
        id=getenv("LOCAL_MODEL_ID", "llama3.1"),
        base_url=getenv("OPENAI_BASE_URL", "http://localhost:11434/v1"),
    ),
    markdown=True,
)

if __name__ == "__main__":
    agent.print_response("Explain what an API endpoint is to a ten year old.", stream=True)
