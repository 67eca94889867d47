from os import getenv
from typing import Optional, Union

from tutor.models.base import Model

DEFAULT_MODEL_ID = "openai:gpt-4o"


def _get_model_class(model_id: str, model_provider: str) -> Model:
    provider = model_provider.lower()

    if provider == "openai":
        from tutor.models.openai import OpenAIChat

        return OpenAIChat(id=model_id)

    elif provider == "ollama":
        from tutor.models.openai import OpenAILike

        return OpenAILike(id=model_id, name="Ollama", provider="Ollama", base_url="http://localhost:11434/v1")

    elif provider == "lmstudio":
        from tutor.models.openai import OpenAILike

        return OpenAILike(id=model_id, name="LMStudio", provider="LMStudio", base_url="http://localhost:1234/v1")

    elif provider in ("openai-like", "openai_like"):
        from tutor.models.openai import OpenAILike

        return OpenAILike(id=model_id, base_url=getenv("OPENAI_BASE_URL"))

    else:
        raise ValueError(f"Model provider '{model_provider}' is not supported.")


def _parse_model_string(model_string: str) -> Model:
    if not model_string or not isinstance(model_string, str):
        raise ValueError(f"Model string must be a non-empty string, got: {model_string}")

    if ":" not in model_string:
        # A bare model id uses the default provider
        return _get_model_class(model_string.strip(), "openai")

    parts = model_string.split(":", 1)
    model_provider, model_id = parts
    model_provider = model_provider.strip()
    model_id = model_id.strip()
    if not model_provider or not model_id:
        raise ValueError(f"Invalid model string format: '{model_string}'. Expected '<provider>:<model_id>'")

    return _get_model_class(model_id, model_provider)


def get_model(model: Union[Model, str, None]) -> Optional[Model]:
    if model is None:
        return None
    elif isinstance(model, Model):
        return model
    elif isinstance(model, str):
        return _parse_model_string(model)
    else:
        raise ValueError("Model must be a Model instance, string, or None")


def get_default_model() -> Model:
    """The model used when an agent or team is created without one. Overridden with TUTOR_DEFAULT_MODEL."""
    model = get_model(getenv("TUTOR_DEFAULT_MODEL", DEFAULT_MODEL_ID))
    assert model is not None
    return model
