"""Compiles a form schema into a live value-holder tree."""

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from ..models.enums import ControlType
from ..models.schema import FieldControl, FieldGroup, FormSchema, is_group
from ..observability.logging import get_logger
from ..observability.metrics import RuntimeMetrics
from . import validators as v
from .controls import ValueControl, ValueGroup, ValueHolder

logger = get_logger(__name__)


@dataclass(frozen=True)
class RuntimeBuildResult:
    form: ValueGroup
    controls_by_key: dict[str, FieldControl] = field(default_factory=dict)


def build(
    schema: FormSchema, metrics: Optional[RuntimeMetrics] = None
) -> RuntimeBuildResult:
    """Builds a fresh runtime tree for ``schema``.

    Groups become ``ValueGroup``s named by group id, controls become
    ``ValueControl`` leaves named by control key. The function keeps no
    state, so calling it again simply produces an unrelated new tree.

    Args:
        schema: The schema to compile.
        metrics: Optional counters to record the build in.

    Returns:
        The root group and a key → control definition lookup.
    """
    controls_by_key: dict[str, FieldControl] = {}
    form = _build_group(schema.root, controls_by_key)
    if metrics is not None:
        metrics.inc("runtime.build")
    logger.debug(
        f"Built runtime for schema {schema.id}",
        extra={"extra_fields": {"controls": len(controls_by_key)}},
    )
    return RuntimeBuildResult(form=form, controls_by_key=controls_by_key)


def _build_group(
    group: FieldGroup, controls_by_key: dict[str, FieldControl]
) -> ValueGroup:
    controls: dict[str, ValueHolder] = {}

    for child in group.children:
        if is_group(child):
            controls[child.id] = _build_group(child, controls_by_key)
            continue

        if child.key in controls_by_key:
            logger.warning(
                f"Duplicate control key '{child.key}'; the later control wins",
                extra={"extra_fields": {"node_id": child.id}},
            )
        controls[child.key] = build_control(child)
        controls_by_key[child.key] = child

    return ValueGroup(controls)


def initial_value(definition: FieldControl) -> Any:
    if definition.default_value is not None:
        return definition.default_value
    return False if definition.type == ControlType.CHECKBOX else None


def build_control(definition: FieldControl) -> ValueControl:
    return ValueControl(
        definition.key, initial_value(definition), validators=build_validators(definition)
    )


def build_validators(definition: FieldControl) -> list[v.ValidatorFn]:
    """Translates a control definition into validator functions."""
    checks: list[v.ValidatorFn] = []

    if definition.required:
        checks.append(
            v.required_true if definition.type == ControlType.CHECKBOX else v.required
        )

    if definition.type == ControlType.EMAIL:
        checks.append(v.email)

    rules = definition.validators
    if rules is None:
        return checks

    if rules.min is not None:
        checks.append(v.min_value(rules.min))
    if rules.max is not None:
        checks.append(v.max_value(rules.max))
    if rules.min_length is not None:
        checks.append(v.min_length(rules.min_length))
    if rules.max_length is not None:
        checks.append(v.max_length(rules.max_length))
    if rules.pattern and rules.pattern.strip():
        try:
            checks.append(v.pattern(rules.pattern))
        except re.error as e:
            logger.warning(
                f"Skipping invalid pattern on '{definition.key}': {e}",
                extra={"extra_fields": {"node_id": definition.id}},
            )

    return checks
