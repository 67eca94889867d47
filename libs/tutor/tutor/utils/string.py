import json
import re
from typing import Optional, Type
from uuid import UUID, uuid4

from pydantic import BaseModel, ValidationError

from tutor.utils.log import log_debug, log_warning


def is_valid_uuid(uuid_str: str) -> bool:
    """
    Check if a string is a valid UUID

    Args:
        uuid_str: String to check

    Returns:
        bool: True if string is a valid UUID, False otherwise
    """
    try:
        UUID(str(uuid_str))
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def url_safe_string(input_string: str) -> str:
    # Replace spaces with dashes
    safe_string = input_string.replace(" ", "-")
    # Convert camelCase to kebab-case
    safe_string = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", safe_string).lower()
    # Convert snake_case to kebab-case
    safe_string = safe_string.replace("_", "-")
    # Remove special characters, keeping alphanumeric, dashes, and dots
    safe_string = re.sub(r"[^\w\-.]", "", safe_string)
    # Ensure no consecutive dashes
    safe_string = re.sub(r"-+", "-", safe_string)
    return safe_string.strip("-")


def generate_id_from_name(name: Optional[str] = None) -> str:
    """Slug of the name when one is given, a random uuid4 otherwise."""
    if name:
        slug = url_safe_string(name)
        if slug:
            return slug
    return str(uuid4())


def _extract_json_block(content: str) -> str:
    if "```json" in content:
        content = content.split("```json")[-1]
        content = content.split("```")[0]
    elif "```" in content:
        parts = content.split("```")
        if len(parts) >= 3:
            content = parts[1]
    return content.strip()


def parse_response_model_str(content: str, response_model: Type[BaseModel]) -> Optional[BaseModel]:
    """Parse model output into the response model.

    Tries the raw content, then the content of a markdown code block, then the outermost {...} span.
    """
    log_debug(f"Parsing response model: {content}", log_level=2)
    try:
        return response_model.model_validate_json(content)
    except (ValidationError, json.JSONDecodeError):
        pass

    candidate = _extract_json_block(content)
    # Remove control characters that break json decoding
    candidate = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", candidate)
    try:
        return response_model.model_validate_json(candidate)
    except (ValidationError, json.JSONDecodeError) as e:
        log_warning(f"Failed to parse cleaned JSON: {e}")

    start = candidate.find("{")
    end = candidate.rfind("}") + 1
    if start == -1 or end <= start:
        log_warning("Unable to locate JSON object boundaries for fallback parsing.")
        return None
    try:
        return response_model.model_validate(json.loads(candidate[start:end]))
    except (ValidationError, json.JSONDecodeError) as e:
        log_warning(f"Failed to parse after trimming: {e}")
    return None
