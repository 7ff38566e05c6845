"""Checks an editor runs before it issues store commands.

The store trusts its callers: it neither enforces unique control keys nor
compiles regular expressions. These checks are that caller-side gate. Each
check returns structured ``AuthoringIssue``s instead of raising, so the
editor can show them next to the offending input.
"""

import re
from collections import defaultdict
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..models.base import Severity
from ..models.enums import VisibilityOperator
from ..models.schema import FieldGroup, FieldNode, FormSchema, is_group
from ..models.tree import contains_node, find_group, find_node, iter_controls, iter_nodes
from ..runtime.validators import compile_pattern
from ..store.state import CommandError, CommandResult
from ..store.store import FormSchemaStore

_KNOWN_OPERATORS = {op.value for op in VisibilityOperator}


class AuthoringIssue(BaseModel):
    """
    Structured description of something the editor must not submit.
    """

    code: str = Field(..., description="Machine-readable issue code.")
    detail: str = Field(..., description="Human-readable explanation.")
    node_id: Optional[str] = Field(
        default=None, description="Node the issue belongs to."
    )
    field: Optional[str] = Field(
        default=None, description="Inspector field the issue belongs to."
    )
    severity: Severity = Field(
        default="error", description="Errors block the command; warnings do not."
    )


def has_errors(issues: list[AuthoringIssue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


def find_duplicate_keys(root: FieldGroup) -> dict[str, list[str]]:
    """Maps every key used by more than one control to those controls' ids."""
    owners: dict[str, list[str]] = defaultdict(list)
    for control in iter_controls(root):
        owners[control.key].append(control.id)
    return {key: ids for key, ids in owners.items() if len(ids) > 1}


def check_key(root: FieldGroup, key: str, node_id: str) -> Optional[AuthoringIssue]:
    """Rejects empty keys and keys already used by another control."""
    if not key or not key.strip():
        return AuthoringIssue(
            code="key.empty",
            detail="Key must not be empty",
            node_id=node_id,
            field="key",
        )
    for control in iter_controls(root):
        if control.key == key and control.id != node_id:
            return AuthoringIssue(
                code="key.duplicate",
                detail=f"Key '{key}' is already used by {control.id}",
                node_id=node_id,
                field="key",
            )
    return None


def check_pattern(pattern: Optional[str], node_id: Optional[str] = None) -> Optional[AuthoringIssue]:
    """Flags a pattern that is not a valid regular expression."""
    if pattern is None or not pattern.strip():
        return None
    try:
        compile_pattern(pattern)
    except re.error as e:
        return AuthoringIssue(
            code="pattern.invalid",
            detail=f"Invalid pattern '{pattern}': {e}",
            node_id=node_id,
            field="validators.pattern",
        )
    return None


def _bound(validators: Any, name: str) -> Any:
    if validators is None:
        return None
    if isinstance(validators, dict):
        alias = {"min_length": "minLength", "max_length": "maxLength"}.get(name, name)
        return validators.get(name, validators.get(alias))
    return getattr(validators, name, None)


def check_bounds(validators: Any, node_id: Optional[str] = None) -> list[AuthoringIssue]:
    """Flags lower bounds that exceed their upper bounds."""
    issues: list[AuthoringIssue] = []
    for low, high in (("min", "max"), ("min_length", "max_length")):
        lo, hi = _bound(validators, low), _bound(validators, high)
        if lo is not None and hi is not None and lo > hi:
            issues.append(
                AuthoringIssue(
                    code="bounds.inverted",
                    detail=f"{low} ({lo}) is greater than {high} ({hi})",
                    node_id=node_id,
                    field=f"validators.{low}",
                )
            )
    return issues


def check_patch(schema: FormSchema, patch: dict[str, Any]) -> list[AuthoringIssue]:
    """Inspects an update patch before it is sent to the store."""
    node_id = patch.get("id")
    issues: list[AuthoringIssue] = []

    node = find_node(schema.root, node_id)
    if node is None:
        return [
            AuthoringIssue(code="node.not_found", detail=f"Node not found: {node_id}")
        ]

    if "key" in patch and not is_group(node):
        issue = check_key(schema.root, patch["key"], node_id)
        if issue:
            issues.append(issue)

    validators = patch.get("validators")
    if validators is not None:
        pattern = _bound(validators, "pattern")
        issue = check_pattern(pattern, node_id)
        if issue:
            issues.append(issue)
        issues.extend(check_bounds(validators, node_id))

    return issues


def check_new_node(schema: FormSchema, node: FieldNode) -> list[AuthoringIssue]:
    """Inspects a node (and its subtree) about to be added."""
    issues: list[AuthoringIssue] = []
    taken = {c.key for c in iter_controls(schema.root)}
    for control in iter_controls(node):
        if control.key in taken:
            issues.append(
                AuthoringIssue(
                    code="key.duplicate",
                    detail=f"Key '{control.key}' is already in use",
                    node_id=control.id,
                    field="key",
                )
            )
        taken.add(control.key)
        if control.validators is not None:
            issue = check_pattern(control.validators.pattern, control.id)
            if issue:
                issues.append(issue)
    return issues


def check_remove(root: FieldGroup, node_id: str) -> Optional[AuthoringIssue]:
    if node_id == root.id:
        return AuthoringIssue(
            code="node.root", detail="The root group cannot be removed", node_id=node_id
        )
    if find_node(root, node_id) is None:
        return AuthoringIssue(code="node.not_found", detail=f"Node not found: {node_id}")
    return None


def check_move(
    root: FieldGroup, node_id: str, target_group_id: str
) -> Optional[AuthoringIssue]:
    """Refuses moving the root, and moving a group into its own subtree."""
    if node_id == root.id:
        return AuthoringIssue(
            code="node.root", detail="The root group cannot be moved", node_id=node_id
        )
    node = find_node(root, node_id)
    if node is None:
        return AuthoringIssue(code="node.not_found", detail=f"Node not found: {node_id}")
    if find_group(root, target_group_id) is None:
        return AuthoringIssue(
            code="group.not_found",
            detail=f"Group not found: {target_group_id}",
            node_id=node_id,
        )
    if contains_node(node, target_group_id):
        return AuthoringIssue(
            code="move.cycle",
            detail=f"Cannot move {node_id} into its own subtree",
            node_id=node_id,
        )
    return None


def validate_schema(schema: FormSchema) -> list[AuthoringIssue]:
    """Audits a whole schema, e.g. right after an import."""
    issues: list[AuthoringIssue] = []

    seen_ids: set[str] = set()
    for node in iter_nodes(schema.root):
        if node.id in seen_ids:
            issues.append(
                AuthoringIssue(
                    code="node.duplicate",
                    detail=f"Node id '{node.id}' appears more than once",
                    node_id=node.id,
                )
            )
        seen_ids.add(node.id)

    for key, ids in find_duplicate_keys(schema.root).items():
        for node_id in ids[1:]:
            issues.append(
                AuthoringIssue(
                    code="key.duplicate",
                    detail=f"Key '{key}' is shared by {', '.join(ids)}",
                    node_id=node_id,
                    field="key",
                )
            )

    keys = {c.key for c in iter_controls(schema.root)}
    for control in iter_controls(schema.root):
        if not control.key.strip():
            issues.append(
                AuthoringIssue(
                    code="key.empty",
                    detail="Key must not be empty",
                    node_id=control.id,
                    field="key",
                )
            )
        if control.validators is not None:
            issue = check_pattern(control.validators.pattern, control.id)
            if issue:
                issues.append(issue)
            issues.extend(check_bounds(control.validators, control.id))
        if control.visibility is None:
            continue
        for condition in control.visibility.conditions:
            if condition.operator not in _KNOWN_OPERATORS:
                issues.append(
                    AuthoringIssue(
                        code="condition.operator",
                        detail=f"Unknown operator '{condition.operator}'",
                        node_id=control.id,
                        field="visibility.conditions",
                    )
                )
            if condition.depends_on_key not in keys:
                issues.append(
                    AuthoringIssue(
                        code="condition.unknown_key",
                        detail=f"No control has key '{condition.depends_on_key}'",
                        node_id=control.id,
                        field="visibility.conditions",
                        severity="warning",
                    )
                )

    return issues


class AuthoringGate:
    """Runs the checks and only then forwards commands to the store."""

    def __init__(self, store: FormSchemaStore) -> None:
        self.store = store

    def _blocked(self, command: str, issues: list[AuthoringIssue]) -> CommandResult:
        first = next((i for i in issues if i.severity == "error"), None)
        if first is None:
            first = AuthoringIssue(
                code="authoring.blocked", detail=f"{command} was blocked"
            )
        return CommandResult(
            command=command,
            status="rejected",
            message=first.detail,
            revision=self.store.last_updated,
            error=CommandError(code=first.code, detail=first.detail),
        )

    def update(self, patch: dict[str, Any]) -> tuple[CommandResult, list[AuthoringIssue]]:
        schema = self.store.schema
        if schema is None:
            return self.store.update(patch), []
        issues = check_patch(schema, patch)
        if has_errors(issues):
            return self._blocked("update", issues), issues
        return self.store.update(patch), issues

    def add(
        self, parent_group_id: str, node: FieldNode, index: Optional[int] = None
    ) -> tuple[CommandResult, list[AuthoringIssue]]:
        schema = self.store.schema
        issues = check_new_node(schema, node) if schema is not None else []
        if has_errors(issues):
            return self._blocked("add", issues), issues
        return self.store.add(parent_group_id, node, index), issues

    def remove(self, node_id: str) -> tuple[CommandResult, list[AuthoringIssue]]:
        schema = self.store.schema
        issue = check_remove(schema.root, node_id) if schema is not None else None
        if issue is not None:
            return self._blocked("remove", [issue]), [issue]
        return self.store.remove(node_id), []

    def move(
        self, node_id: str, target_group_id: str, index: Optional[int] = None
    ) -> tuple[CommandResult, list[AuthoringIssue]]:
        schema = self.store.schema
        issue = (
            check_move(schema.root, node_id, target_group_id)
            if schema is not None
            else None
        )
        if issue is not None:
            return self._blocked("move", [issue]), [issue]
        return self.store.move(node_id, target_group_id, index), []
