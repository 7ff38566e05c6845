"""Enumeration definitions for the form builder.

These enums pin the string values that appear in schema documents and in
command results so that every layer agrees on them.
"""

from enum import Enum


class ControlType(str, Enum):
    """Input widgets a control can be rendered as.

    Attributes:
        TEXT: Single line of free text.
        EMAIL: Text that must look like an e-mail address.
        NUMBER: Numeric input.
        TEXTAREA: Multi-line free text.
        SELECT: Dropdown over the control's options.
        CHECKBOX: Boolean toggle.
        RADIO: Single choice over the control's options.
        DATE: Calendar date (ISO string).
    """

    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DATE = "date"


class VisibilityMode(str, Enum):
    """How the results of several visibility conditions are combined.

    Attributes:
        ALL: Every condition must hold (logical AND).
        ANY: At least one condition must hold (logical OR).
    """

    ALL = "all"
    ANY = "any"


class VisibilityOperator(str, Enum):
    """Comparison operators understood by the visibility evaluator.

    Attributes:
        EQUALS: Strict equality with the expected value.
        NOT_EQUALS: Strict inequality with the expected value.
        GREATER_THAN: Numeric comparison, both sides must be numbers.
        LESS_THAN: Numeric comparison, both sides must be numbers.
        INCLUDES: Substring of text or member of a sequence.
        CONTAINS: Alias of INCLUDES.
        IS_CHECKED: The dependency value is exactly ``True``.
    """

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    INCLUDES = "includes"
    CONTAINS = "contains"
    IS_CHECKED = "isChecked"


class CommandStatus(str, Enum):
    """Outcome of a store command.

    Attributes:
        APPLIED: A new schema snapshot was published.
        REJECTED: The command was a no-op; the previous snapshot is kept.
    """

    APPLIED = "applied"
    REJECTED = "rejected"


class ControlStatus(str, Enum):
    """Validation status of a runtime value holder.

    Attributes:
        VALID: Enabled and every validator passes.
        INVALID: Enabled and at least one validator reports an error.
        DISABLED: Hidden; excluded from the value and from validation.
    """

    VALID = "VALID"
    INVALID = "INVALID"
    DISABLED = "DISABLED"
