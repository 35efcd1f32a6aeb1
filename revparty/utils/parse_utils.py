# revparty/utils/parse_utils.py
import re
import json
from dataclasses import dataclass
from typing import Any, Generic, Optional, Tuple, TypeVar, Union

from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class ParseOk(Generic[T]):
    value: T


@dataclass(frozen=True)
class ParseError:
    reason: str


ParseResult = Union[ParseOk[T], ParseError]


def extract_json_from_text(text: str) -> Tuple[Optional[Any], Optional[str]]:
    """
    Try to find JSON object/list in a longer LLM response.
    Returns (parsed_json, error_message)
    """
    if not text:
        return None, "empty text"
    # 1. Try direct parse
    try:
        return json.loads(text), None
    except ValueError:
        pass

    # 2. find substring starting at first { or [
    starts = [m.start() for m in re.finditer(r'[\{\[]', text)]
    for s in starts:
        for e in range(len(text)-1, s, -1):
            if text[e] not in "}]":
                continue
            candidate = text[s:e+1]
            try:
                return json.loads(candidate), None
            except ValueError:
                continue
    return None, "no JSON found"


def parse_json_as(text: Optional[str], target: Any, lenient: bool = False) -> ParseResult:
    """
    Parse external JSON and validate it against `target` (a pydantic model or
    typing construct). Never raises; callers decide how to treat ParseError.

    lenient=True digs JSON out of surrounding prose (LLM output).
    """
    if text is None or (isinstance(text, str) and not text.strip()):
        return ParseError("empty input")

    if lenient:
        raw, err = extract_json_from_text(text)
        if err:
            return ParseError(err)
    else:
        try:
            raw = json.loads(text)
        except (TypeError, ValueError) as e:
            return ParseError(f"invalid JSON: {e}")

    try:
        return ParseOk(TypeAdapter(target).validate_python(raw))
    except ValidationError as e:
        return ParseError(f"schema mismatch: {e.error_count()} error(s)")
