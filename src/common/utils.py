"""
Shared helpers for model output handling.
Lenient JSON extraction from free-form completions and prompt placeholder filling.
"""

import json
import re
from typing import Any, Mapping, Optional

from common.logging import get_logger

logger = get_logger(__name__)

_FENCE_JSON = re.compile(r"```json\s*")
_FENCE = re.compile(r"```\s*")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def _json_span(text: str) -> str:
    """
    Narrow text to the outermost object or array, whichever opens first.
    """
    first_brace = text.find("{")
    first_bracket = text.find("[")

    if first_brace >= 0 and (first_bracket < 0 or first_brace < first_bracket):
        start, end = first_brace, text.rfind("}")
    elif first_bracket >= 0:
        start, end = first_bracket, text.rfind("]")
    else:
        return text

    if end > start:
        return text[start : end + 1]
    return text


def clean_and_parse_json(text: Optional[str]) -> Any:
    """
    Parse JSON out of a model completion.

    Handles Markdown code fences, prose before or after the payload, trailing
    commas and single-quoted strings.

    Args:
        text (str): Raw completion text.

    Returns:
        The decoded object or array, or an empty dict if nothing parses.
    """
    if not text:
        return {}

    clean = _FENCE.sub("", _FENCE_JSON.sub("", text)).strip()
    clean = _json_span(clean)

    try:
        return json.loads(clean)
    except json.JSONDecodeError:
        pass

    repaired = _TRAILING_COMMA.sub(r"\1", clean).replace("'", '"')
    try:
        return json.loads(repaired)
    except json.JSONDecodeError as e:
        logger.error(
            "Failed to parse JSON from completion",
            extra={"error": str(e), "text_preview": text[:500]},
        )
        return {}


def fill_template(template: str, variables: Optional[Mapping[str, Any]] = None) -> str:
    """
    Replace every `{name}` placeholder that has a supplied value.

    Placeholders without a value are left untouched.
    """
    prompt = template
    for key, value in (variables or {}).items():
        prompt = prompt.replace("{" + str(key) + "}", str(value))
    return prompt
