# revparty/utils/schema_validator.py

from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .parse_utils import ParseError, parse_json_as

M = TypeVar("M", bound=BaseModel)


class SchemaValidationError(Exception):
    """Raised when generated data does not match the expected shape."""


def validate_llm_array(text: str, model: Type[M], logger=None) -> List[M]:
    """
    Parse an LLM response that must be a JSON array of `model` items.

    A non-JSON or non-array response yields an empty list. Items that fail
    validation are dropped individually.
    """
    result = parse_json_as(text, List[Dict[str, Any]], lenient=True)
    if isinstance(result, ParseError):
        if logger:
            logger.warning(f"LLM response is not a JSON array ({result.reason}); treating as empty.")
        return []

    items: List[M] = []
    for i, raw in enumerate(result.value):
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            if logger:
                logger.warning(f"Dropping item {i}: {e.error_count()} validation error(s) for {model.__name__}")
            continue

    return items


def validate_scenes(layout: Any, logger=None) -> List[Dict[str, Any]]:
    """Validates the layout generator output before refinement."""
    sections = layout.get("sections") if isinstance(layout, dict) else layout
    if sections is None:
        sections = []

    if not isinstance(sections, list):
        msg = f"Layout sections must be a list, got {type(sections).__name__}."
        if logger:
            logger.error(msg)
        raise SchemaValidationError(msg)

    bad = [i for i, s in enumerate(sections) if not isinstance(s, dict)]
    if bad:
        msg = f"Scenes at indexes {bad} are not JSON objects."
        if logger:
            logger.error(msg)
        raise SchemaValidationError(msg)

    if logger:
        logger.info(f"Layout validated: {len(sections)} scenes.")

    return sections
