"""Data models describing a form schema.

A schema is a tree: a root ``FieldGroup`` whose children are further groups
or ``FieldControl`` leaves. Nodes are told apart by their ``type`` field,
which is ``"group"`` for groups and one of ``ControlType`` for controls.
"""

import uuid
from typing import Annotated, Any, Optional, TypeVar, Union

from pydantic import AliasChoices, Discriminator, Field, Tag

from gradio_form_builder.models.base import GroupType, SchemaModel
from gradio_form_builder.models.enums import ControlType, VisibilityMode

Scalar = Union[bool, int, float, str]

T = TypeVar("T")


class FieldOption(SchemaModel):
    """One choice of a select or radio control.

    Attributes:
        label: Text shown to the user.
        value: Value stored when the option is picked.
    """

    label: str = Field(..., description="Text shown to the user.")
    value: Scalar = Field(..., description="Value stored when picked.")


class FieldValidators(SchemaModel):
    """Optional, independently applicable value rules of a control.

    Attributes:
        min: Lower numeric bound (inclusive).
        max: Upper numeric bound (inclusive).
        min_length: Minimum length of text or sequence values.
        max_length: Maximum length of text or sequence values.
        pattern: Regular expression the whole value must match.
    """

    min: Optional[Union[int, float]] = Field(
        default=None, description="Lower numeric bound (inclusive)."
    )
    max: Optional[Union[int, float]] = Field(
        default=None, description="Upper numeric bound (inclusive)."
    )
    min_length: Optional[int] = Field(
        default=None, ge=0, description="Minimum value length."
    )
    max_length: Optional[int] = Field(
        default=None, ge=0, description="Maximum value length."
    )
    pattern: Optional[str] = Field(
        default=None, description="Regular expression the value must match."
    )


class VisibilityCondition(SchemaModel):
    """A single test against the current value of another control.

    Attributes:
        depends_on_key: Key of the control whose value is inspected.
        operator: One of ``VisibilityOperator``. Kept as a plain string so
            that documents with an unknown operator still load; such a
            condition simply never holds.
        value: Expected value. Unused by ``isChecked``.
    """

    depends_on_key: str = Field(
        ...,
        alias="dependsOnKey",
        validation_alias=AliasChoices(
            "dependsOnKey", "depends_on_key", "fieldKey"
        ),
        description="Key of the control whose value is inspected.",
    )
    operator: str = Field(..., description="Comparison operator.")
    value: Optional[Scalar] = Field(
        default=None, description="Expected value."
    )


class VisibilityRule(SchemaModel):
    """Decides whether a control is shown.

    Attributes:
        visible_by_default: Used only when there are no conditions.
        mode: How condition results are combined.
        conditions: Ordered list of conditions.
    """

    visible_by_default: bool = Field(
        default=True, description="Visibility when there are no conditions."
    )
    mode: VisibilityMode = Field(
        default=VisibilityMode.ALL,
        description="How condition results are combined.",
    )
    conditions: list[VisibilityCondition] = Field(
        default_factory=list, description="Ordered list of conditions."
    )


class FieldControl(SchemaModel):
    """A leaf of the schema tree that captures one value.

    Attributes:
        id: Structural identifier, unique across the whole tree.
        type: The widget kind.
        key: Name of the value in the runtime tree and the submission.
        label: Human-readable caption.
        placeholder: Optional hint text.
        default_value: Initial value of the runtime leaf.
        required: Whether an empty (or, for checkboxes, unchecked) value is
            an error.
        validators: Additional value rules.
        options: Choices for select and radio controls.
        visibility: Conditional visibility rule.
    """

    id: str = Field(..., min_length=1, description="Structural identifier.")
    type: ControlType = Field(..., description="The widget kind.")
    key: str = Field(..., description="Runtime value name.")
    label: str = Field(..., description="Human-readable caption.")
    placeholder: Optional[str] = Field(default=None, description="Hint text.")
    default_value: Optional[Scalar] = Field(
        default=None, description="Initial runtime value."
    )
    required: Optional[bool] = Field(
        default=None, description="Whether a value must be provided."
    )
    validators: Optional[FieldValidators] = Field(
        default=None, description="Additional value rules."
    )
    options: Optional[list[FieldOption]] = Field(
        default=None, description="Choices for select and radio controls."
    )
    visibility: Optional[VisibilityRule] = Field(
        default=None, description="Conditional visibility rule."
    )


class FieldGroup(SchemaModel):
    """An ordered container of groups and controls.

    Attributes:
        id: Structural identifier, also the name of the nested value object.
        type: Always ``"group"``.
        label: Human-readable caption.
        children: Child nodes in display order.
    """

    id: str = Field(..., min_length=1, description="Structural identifier.")
    type: GroupType = Field(default="group", description="Node discriminant.")
    label: str = Field(..., description="Human-readable caption.")
    children: list["FieldNode"] = Field(
        default_factory=list, description="Child nodes in display order."
    )


def _node_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return "group" if kind == "group" else "control"


FieldNode = Annotated[
    Union[
        Annotated[FieldGroup, Tag("group")],
        Annotated[FieldControl, Tag("control")],
    ],
    Discriminator(_node_tag),
]

FieldGroup.model_rebuild()


class FormSchema(SchemaModel):
    """Root aggregate of a form description.

    Attributes:
        id: Stable identifier of the form.
        name: Display name.
        version: Free-form version stamp.
        root: The root group; never removed or moved.
    """

    id: str = Field(..., min_length=1, description="Stable identifier.")
    name: str = Field(default="Untitled form", description="Display name.")
    version: str = Field(default="1.0.0", description="Version stamp.")
    root: FieldGroup = Field(..., description="The root group.")


def is_group(node: Any) -> bool:
    """Returns True when ``node`` carries the group discriminant."""
    return _node_tag(node) == "group"


def generate_id(prefix: str = "field") -> str:
    """Creates a new node identifier.

    Args:
        prefix: Human-readable prefix; blank prefixes fall back to ``field``.

    Returns:
        A string of the form ``<prefix>-<uuid4>``.
    """
    safe_prefix = prefix.strip() or "field"
    return f"{safe_prefix}-{uuid.uuid4()}"


def deep_clone(value: T) -> T:
    """Returns a fully independent copy of a schema value."""
    return value.model_copy(deep=True)
