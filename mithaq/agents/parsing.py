"""
Oracle output interpretation.

Turns completion text into a validated pydantic model. Anything that does
not parse or validate raises AgentException(invalid_response).
"""

import json
import logging
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from mithaq.shared.result import AgentError, AgentException

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def extract_json(text: str) -> Any:
    """Pull the JSON document out of a completion, tolerating markdown fences."""
    content = text
    if "```json" in content:
        content = content.split("```json", 1)[1].split("```", 1)[0]
    elif "```" in content:
        content = content.split("```", 1)[1].split("```", 1)[0]
    content = content.strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass

    # Prose around a bare object: take the outermost braces
    start, end = content.find("{"), content.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(content[start:end + 1])
        except json.JSONDecodeError:
            pass

    raise AgentException(AgentError.invalid_response("completion is not JSON"))


def parse_structured(text: str, model: Type[M], **extra: Any) -> M:
    """
    Validate the completion's JSON object against model.

    extra: fields supplied by the caller rather than the oracle (ids,
    echoed inputs); they override anything the oracle sent.
    """
    data = extract_json(text)
    if not isinstance(data, dict):
        raise AgentException(AgentError.invalid_response("expected a JSON object"))
    data.update(extra)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Oracle output failed {model.__name__} validation: {e.error_count()} error(s)")
        raise AgentException(AgentError.invalid_response(f"{model.__name__} validation failed"))
