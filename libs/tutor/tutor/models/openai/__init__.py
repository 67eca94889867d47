from tutor.models.openai.chat import OpenAIChat
from tutor.models.openai.like import OpenAILike

__all__ = ["OpenAIChat", "OpenAILike"]
