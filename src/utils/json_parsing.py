"""Lenient JSON extraction from generative model output.

Models are told to answer with bare JSON but routinely wrap it in prose or
```json fences. extract_json_object() isolates the outermost {...} span and
parses it strictly. It never raises: callers branch on JSONExtraction.ok.

Steps:
1. Trim whitespace
2. Strip code fence markers (any language tag)
3. Slice from the first "{" to the last "}"
4. json.loads() the slice; the value must be an object
"""

import json
import re
from typing import Any, Callable, Optional

from src.models.models import JSONExtraction
from src.utils.logger import logger


# Fence lines carry an optional language tag (```json, ```JSON, ```js ...).
# A closing fence may also trail the last line. Backticks inside JSON strings stay.
_FENCE_PATTERN = re.compile(r"^[ \t]*```[\w+-]*[ \t]*$|```[ \t]*$", re.MULTILINE)


def safe_execute_sync(
    func: Callable[[], Any],
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
) -> Any:
    """Run func() and log (instead of raise) any exception.

    Args:
        func: Callable to execute (no args).
        operation_name: Description for logging.
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception.

    Returns:
        Result of func if successful, default_return otherwise.
    """
    try:
        return func()
    except Exception as e:
        getattr(logger, log_level, logger.warning)(f"{operation_name}: {e}")
        return default_return


def strip_code_fences(text: str) -> str:
    """Remove fence marker lines and a trailing closing fence, keeping the fenced content."""
    return _FENCE_PATTERN.sub("", text)


def slice_json_object(text: str) -> Optional[str]:
    """Return text from the first '{' to the last '}' inclusive, or None."""
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    if end <= start:
        return None
    return text[start : end + 1]


def extract_json_object(text: Optional[str]) -> JSONExtraction:
    """Extract and parse the single JSON object embedded in text.

    Args:
        text: Raw model output (may include prose, code fences, or nothing).

    Returns:
        JSONExtraction.success(dict) when an object parses, otherwise
        JSONExtraction.failure(reason) describing the step that failed.
    """
    if not text or not text.strip():
        return JSONExtraction.failure("empty response")

    cleaned = strip_code_fences(text.strip()).strip()

    candidate = slice_json_object(cleaned)
    if candidate is None:
        return JSONExtraction.failure("no JSON object found")

    sentinel = object()
    parsed = safe_execute_sync(
        lambda: json.loads(candidate),
        "Strict JSON parse of extracted span",
        log_level="debug",
        default_return=sentinel,
    )
    if parsed is sentinel:
        return JSONExtraction.failure("malformed JSON")
    if not isinstance(parsed, dict):
        return JSONExtraction.failure(f"top-level JSON value is {type(parsed).__name__}, not an object")

    return JSONExtraction.success(parsed)
