"""Rendering of Python values into JavaScript source text.

All builder operations that embed a caller-supplied literal into the generated
script go through these helpers, so a selector, URL or header value can never
terminate its string literal and inject code.
"""

import json
from typing import Any

# Literal emitted for "no value" (distinct from an empty object literal)
JS_NULL = "null"


def js_string(value: Any) -> str:
    """Render ``value`` as a quoted JavaScript string literal.

    JSON string syntax is a subset of JavaScript string syntax. ``ensure_ascii``
    escapes U+2028/U+2029, which would otherwise end a line in older engines.
    """
    return json.dumps(str(value), ensure_ascii=True)


def js_value(value: Any) -> str:
    """Render structured data (dicts, lists, scalars) as a JavaScript literal.

    ``None`` becomes ``null``.
    """
    if value is None:
        return JS_NULL
    return json.dumps(value, ensure_ascii=True)


def js_int(value: Any, name: str, minimum: int = 0) -> str:
    """Validate an integer argument and render it.

    Args:
        value: Candidate integer
        name: Argument name, used in the error message
        minimum: Smallest accepted value

    Raises:
        ValueError: If ``value`` is not an int or is below ``minimum``
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return str(int(value))
