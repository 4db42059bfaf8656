import json
import re
from typing import Any, Dict, List

from careeros.models.results import JsonResult, Malformed, Parsed

# ```json ... ``` or a bare ``` ... ``` fence; the first fence wins
FENCED_BLOCK = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)\s*```")
LEADING_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def locate_json(raw: str) -> JsonResult:
    """Find and decode the JSON object a model response is expected to carry.

    Looks for a fenced block first, then tries the whole text, then the
    outermost ``{...}`` slice. Anything that does not decode to an object is
    ``Malformed``.
    """
    if raw is None or not str(raw).strip():
        return Malformed(raw_text=raw or "", error="empty response")

    text = str(raw).strip()
    candidates: List[str] = []
    match = FENCED_BLOCK.search(text)
    if match:
        candidates.append(match.group(1))
    candidates.append(text)
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        candidates.append(text[start:end + 1])

    error = "no JSON object found"
    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError as e:
            error = f"invalid JSON: {e.msg} at line {e.lineno} column {e.colno}"
            continue
        if isinstance(value, dict):
            return Parsed(value)
        error = f"expected a JSON object, got {type(value).__name__}"
    return Malformed(raw_text=text, error=error)


def locate_json_array(raw: str) -> JsonResult:
    """Same as ``locate_json`` but accepts a top-level array."""
    if raw is None or not str(raw).strip():
        return Malformed(raw_text=raw or "", error="empty response")

    text = str(raw).strip()
    candidates: List[str] = []
    match = FENCED_BLOCK.search(text)
    if match:
        candidates.append(match.group(1))
    candidates.append(text)
    start, end = text.find("["), text.rfind("]")
    if 0 <= start < end:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, list):
            return Parsed(value)
    # models sometimes wrap the list in an object
    wrapped = locate_json(text)
    if isinstance(wrapped, Parsed):
        for value in wrapped.value.values():
            if isinstance(value, list):
                return Parsed(value)
    return Malformed(raw_text=text, error="no JSON array found")


def safe_json(s: str, fallback: Dict[str, Any]) -> Dict[str, Any]:
    result = locate_json(s)
    if isinstance(result, Parsed):
        return result.value
    return fallback


def clamp_score(value: Any, low: int = 0, high: int = 100) -> int:
    """Coerce a model-supplied number into an int within [low, high]; junk becomes ``low``.

    Strings keep their leading number, so ``"85%"`` and ``"90/100"`` read as 85 and 90.
    """
    if isinstance(value, str):
        match = LEADING_NUMBER.search(value)
        value = match.group(0) if match else None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return low
    if number != number:  # NaN
        return low
    return int(round(max(low, min(high, number))))


def as_text(x: Any) -> str:
    if x is None:
        return ""
    if isinstance(x, list):
        return " ".join([str(t).strip() for t in x if str(t).strip()])
    return str(x).strip()


def as_list(x: Any) -> List[str]:
    if x is None:
        return []
    if isinstance(x, str):
        # split on commas/semicolons; normalize tokens
        parts = [p.strip() for p in x.replace(";", ",").split(",")]
        return [p for p in parts if p]
    if isinstance(x, list):
        return [str(t).strip() for t in x if t is not None and str(t).strip()]
    return []
