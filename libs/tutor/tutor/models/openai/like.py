from dataclasses import dataclass
from typing import Optional

from tutor.models.openai.chat import OpenAIChat


@dataclass
class OpenAILike(OpenAIChat):
    """An OpenAI-compatible endpoint, e.g. Ollama (``http://localhost:11434/v1``) or LM Studio."""

    id: str = "not-provided"
    name: str = "OpenAILike"
    provider: str = "OpenAILike"
    api_key: Optional[str] = "not-provided"
    supports_native_structured_outputs: bool = False
