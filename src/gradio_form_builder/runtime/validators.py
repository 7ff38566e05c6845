"""Value validators used by runtime controls.

A validator takes the current value of a control and returns ``None`` when
the value is acceptable, or a dict mapping an error key to details. Every
validator except ``required`` and ``required_true`` accepts empty values, so
optional fields can be left blank.
"""

import re
from typing import Any, Callable, Optional, Union

ValidationErrors = dict[str, Any]
ValidatorFn = Callable[[Any], Optional[ValidationErrors]]

EMAIL_REGEX = re.compile(
    r"^(?=.{1,254}$)(?=.{1,64}@)"
    r"[a-zA-Z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-zA-Z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


def is_empty(value: Any) -> bool:
    """None, empty text and empty sequences count as 'no value'."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def required(value: Any) -> Optional[ValidationErrors]:
    return {"required": True} if is_empty(value) else None


def required_true(value: Any) -> Optional[ValidationErrors]:
    return None if value is True else {"required": True}


def email(value: Any) -> Optional[ValidationErrors]:
    if is_empty(value):
        return None
    return None if EMAIL_REGEX.match(str(value)) else {"email": True}


def min_value(bound: Union[int, float]) -> ValidatorFn:
    def validate(value: Any) -> Optional[ValidationErrors]:
        if is_empty(value):
            return None
        number = _as_number(value)
        if number is None or number >= bound:
            return None
        return {"min": {"min": bound, "actual": value}}

    return validate


def max_value(bound: Union[int, float]) -> ValidatorFn:
    def validate(value: Any) -> Optional[ValidationErrors]:
        if is_empty(value):
            return None
        number = _as_number(value)
        if number is None or number <= bound:
            return None
        return {"max": {"max": bound, "actual": value}}

    return validate


def min_length(length: int) -> ValidatorFn:
    def validate(value: Any) -> Optional[ValidationErrors]:
        if is_empty(value) or not hasattr(value, "__len__"):
            return None
        if len(value) >= length:
            return None
        return {
            "minlength": {"required_length": length, "actual_length": len(value)}
        }

    return validate


def max_length(length: int) -> ValidatorFn:
    def validate(value: Any) -> Optional[ValidationErrors]:
        if is_empty(value) or not hasattr(value, "__len__"):
            return None
        if len(value) <= length:
            return None
        return {
            "maxlength": {"required_length": length, "actual_length": len(value)}
        }

    return validate


GLOBAL_FLAGS_REGEX = re.compile(r"^(?:\(\?[aiLmsux]+\))*")


def anchor_pattern(pattern: str) -> str:
    """Anchors a pattern at both ends unless it already is.

    Leading inline flags such as ``(?i)`` stay in front of the anchors, since
    Python only accepts global flags at the start of an expression.
    """
    flags = GLOBAL_FLAGS_REGEX.match(pattern).group(0)
    body = pattern[len(flags):]
    anchored = body if body.startswith("^") else f"^{body}"
    anchored = anchored if anchored.endswith("$") else f"{anchored}$"
    return f"{flags}{anchored}"


def compile_pattern(expr: str) -> "re.Pattern[str]":
    """Compiles ``expr`` exactly the way the ``pattern`` validator does.

    Raises:
        re.error: If ``expr`` is not a valid regular expression.
    """
    return re.compile(anchor_pattern(expr))


def pattern(expr: str) -> ValidatorFn:
    """Builds a validator requiring the whole value to match ``expr``.

    Raises:
        re.error: If ``expr`` is not a valid regular expression.
    """
    anchored = anchor_pattern(expr)
    regex = compile_pattern(expr)

    def validate(value: Any) -> Optional[ValidationErrors]:
        if is_empty(value):
            return None
        if isinstance(value, bool):
            text = "true" if value else "false"
        else:
            text = str(value)
        if regex.search(text):
            return None
        return {
            "pattern": {"required_pattern": anchored, "actual_value": value}
        }

    return validate
