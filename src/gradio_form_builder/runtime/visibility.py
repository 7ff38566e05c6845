"""Conditional visibility of controls and groups.

Visibility is recomputed from scratch against a snapshot of the enabled
runtime values. Hidden controls are disabled (so they drop out of the
submitted value and out of validation) and visible ones are enabled again.
Toggling is always silent: it never notifies value listeners, so it cannot
start another recomputation by itself.
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from ..models.enums import VisibilityMode, VisibilityOperator
from ..models.schema import FieldControl, FieldGroup, VisibilityCondition, is_group
from ..models.tree import iter_controls
from ..observability.logging import get_logger
from ..observability.metrics import RuntimeMetrics
from .controls import ValueControl, ValueGroup

logger = get_logger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class VisibilityResult(BaseModel):
    """What is currently shown.

    Attributes:
        visible_control_keys: Keys of visible controls.
        visible_group_ids: Ids of visible groups; always contains the root.
    """

    visible_control_keys: set[str] = Field(
        default_factory=set, description="Keys of visible controls."
    )
    visible_group_ids: set[str] = Field(
        default_factory=set, description="Ids of visible groups."
    )


def read_value(snapshot: Any, key: str) -> Any:
    """Finds ``key`` anywhere in a nested value snapshot.

    Direct members win over nested ones; nested groups are searched in
    order and the first hit is returned.

    Returns:
        The value, or ``MISSING`` when no enabled control has that key.
    """
    if not isinstance(snapshot, Mapping):
        return MISSING
    if key in snapshot:
        return snapshot[key]
    for child in snapshot.values():
        if isinstance(child, Mapping):
            found = read_value(child, key)
            if found is not MISSING:
                return found
    return MISSING


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(actual: Any, expected: Any) -> bool:
    """Equality that never treats booleans and numbers as the same."""
    if actual is MISSING or expected is MISSING:
        return False
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    if type(actual) is not type(expected):
        return False
    return actual == expected


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def evaluate_condition(condition: VisibilityCondition, snapshot: Any) -> bool:
    """Evaluates one condition; anything it cannot compare is False."""
    actual = read_value(snapshot, condition.depends_on_key)
    if actual is MISSING:
        return False
    expected = condition.value

    try:
        operator = VisibilityOperator(condition.operator)
    except ValueError:
        return False

    if operator == VisibilityOperator.EQUALS:
        return strict_equals(actual, expected)
    if operator == VisibilityOperator.NOT_EQUALS:
        return not strict_equals(actual, expected)
    if operator == VisibilityOperator.GREATER_THAN:
        return _is_number(actual) and _is_number(expected) and actual > expected
    if operator == VisibilityOperator.LESS_THAN:
        return _is_number(actual) and _is_number(expected) and actual < expected
    if operator in (VisibilityOperator.INCLUDES, VisibilityOperator.CONTAINS):
        if isinstance(actual, str):
            return _as_text(expected) in actual
        if isinstance(actual, (list, tuple)):
            return any(strict_equals(item, expected) for item in actual)
        return False
    if operator == VisibilityOperator.IS_CHECKED:
        return actual is True
    return False


def is_control_visible(control: FieldControl, snapshot: Any) -> bool:
    rule = control.visibility
    if rule is None:
        return True
    if not rule.conditions:
        return rule.visible_by_default

    results = [evaluate_condition(c, snapshot) for c in rule.conditions]
    if rule.mode == VisibilityMode.ANY:
        return any(results)
    return all(results)


def compute_visibility(root: FieldGroup, snapshot: Any) -> VisibilityResult:
    """Works out which controls and groups are visible.

    The root is always visible. A nested group is visible when at least one
    of its children is; empty groups are therefore hidden.
    """
    result = VisibilityResult(visible_group_ids={root.id})

    def walk(group: FieldGroup) -> bool:
        any_visible = False
        for child in group.children:
            if is_group(child):
                if walk(child):
                    result.visible_group_ids.add(child.id)
                    any_visible = True
            elif is_control_visible(child, snapshot):
                result.visible_control_keys.add(child.key)
                any_visible = True
        return any_visible

    walk(root)
    return result


def apply_visibility(
    group: FieldGroup, form: ValueGroup, visible_keys: set[str]
) -> int:
    """Enables visible leaves and disables hidden ones, silently.

    Returns:
        How many leaves changed their enabled state.
    """
    toggled = 0
    for child in group.children:
        if is_group(child):
            nested = form.get(child.id)
            if isinstance(nested, ValueGroup):
                toggled += apply_visibility(child, nested, visible_keys)
            continue

        control = form.get(child.key)
        if not isinstance(control, ValueControl):
            continue

        should_enable = child.key in visible_keys
        if should_enable and control.disabled:
            control.enable(emit_event=False)
            toggled += 1
        elif not should_enable and control.enabled:
            control.disable(emit_event=False)
            toggled += 1
    return toggled


def evaluate_visibility(
    root: FieldGroup,
    form: ValueGroup,
    *,
    settle: bool = True,
    metrics: Optional[RuntimeMetrics] = None,
) -> VisibilityResult:
    """Recomputes visibility from the form's current value and applies it.

    With ``settle`` the pass is repeated while it keeps toggling leaves, so
    chains of dependent conditions reach a stable state within one edit.
    The number of passes is bounded by the number of controls plus one.
    """
    limit = sum(1 for _ in iter_controls(root)) + 1
    passes = 0
    while True:
        result = compute_visibility(root, form.value)
        toggled = apply_visibility(root, form, result.visible_control_keys)
        passes += 1
        if metrics is not None:
            metrics.record_visibility_pass(toggled)
        if not settle or toggled == 0 or passes >= limit:
            break

    logger.debug(
        "Visibility evaluated",
        extra={
            "extra_fields": {
                "passes": passes,
                "visible_controls": len(result.visible_control_keys),
            }
        },
    )
    return result
