"""Commands accepted by the schema store and their pure handlers.

Each handler takes the current ``SchemaState``, the command and the builder
configuration and returns a ``Reduction``: either a brand-new state built
from a deep clone of the old schema, or a rejection that leaves the old
state in place. Handlers never raise for bad input.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..config import BuilderConfig
from ..models.enums import ControlType
from ..models.schema import (
    FieldControl,
    FieldGroup,
    FieldNode,
    FormSchema,
    deep_clone,
    generate_id,
    is_group,
)
from ..models.tree import (
    contains_node,
    find_group,
    find_node,
    insert_into_group,
    iter_nodes,
    remove_from_group,
    replace_node,
)
from .state import SchemaState


class LoadDefault(BaseModel):
    command: Literal["load_default"] = "load_default"


class LoadSchema(BaseModel):
    command: Literal["load"] = "load"
    form: FormSchema = Field(..., description="Schema replacing the current one.")


class SelectNode(BaseModel):
    command: Literal["select"] = "select"
    node_id: Optional[str] = Field(
        default=None, description="Node to select; None clears the selection."
    )


class UpdateNode(BaseModel):
    command: Literal["update"] = "update"
    patch: dict[str, Any] = Field(
        ..., description="Partial node carrying the id of the node to patch."
    )


class AddNode(BaseModel):
    command: Literal["add"] = "add"
    parent_group_id: str = Field(..., description="Group receiving the node.")
    node: FieldNode = Field(..., description="Node to insert (cloned).")
    index: Optional[int] = Field(
        default=None, description="Position in the group; None appends."
    )


class RemoveNode(BaseModel):
    command: Literal["remove"] = "remove"
    node_id: str = Field(..., description="Node to delete with its subtree.")


class MoveNode(BaseModel):
    command: Literal["move"] = "move"
    node_id: str = Field(..., description="Node to move.")
    target_group_id: str = Field(..., description="Group receiving the node.")
    index: Optional[int] = Field(
        default=None,
        description=(
            "Position in the target group, counted after the node has been "
            "taken out of its old place; None appends."
        ),
    )


StoreCommand = Annotated[
    Union[LoadDefault, LoadSchema, SelectNode, UpdateNode, AddNode, RemoveNode, MoveNode],
    Field(discriminator="command"),
]


@dataclass(frozen=True)
class Reduction:
    state: Optional[SchemaState]
    message: str
    code: Optional[str] = None

    @classmethod
    def rejected(cls, code: str, message: str) -> "Reduction":
        return cls(state=None, message=message, code=code)


CommandHandler = Callable[[SchemaState, Any, BuilderConfig], Reduction]

_NODE_ADAPTER: TypeAdapter = TypeAdapter(FieldNode)


def _patch_aliases() -> dict[str, str]:
    aliases: dict[str, str] = {}
    for model in (FieldGroup, FieldControl):
        for name, info in model.model_fields.items():
            alias = info.alias or name
            aliases[name] = alias
            aliases[alias] = alias
    return aliases


_PATCH_ALIASES = _patch_aliases()


def merge_patch(node: FieldNode, patch: dict[str, Any]) -> FieldNode:
    """Shallow-merges ``patch`` onto ``node`` and validates the result.

    Raises:
        ValidationError: If the merged data is not a valid node.
    """
    data = node.model_dump(by_alias=True, exclude_none=True)
    for key, value in patch.items():
        data[_PATCH_ALIASES.get(key, key)] = value
    return _NODE_ADAPTER.validate_python(data)


def build_default_schema(config: BuilderConfig) -> FormSchema:
    """The starter schema: one root group holding a name and an email."""
    return FormSchema(
        id=generate_id("form"),
        name=config.default_form_name,
        version=config.schema_version,
        root=FieldGroup(
            id=generate_id("group"),
            label="Root Group",
            children=[
                FieldControl(
                    id=generate_id("field"),
                    type=ControlType.TEXT,
                    key="name",
                    label="Full Name",
                    placeholder="Enter your name",
                    required=True,
                ),
                FieldControl(
                    id=generate_id("field"),
                    type=ControlType.EMAIL,
                    key="email",
                    label="Email Address",
                    placeholder="Enter your email",
                    required=True,
                ),
            ],
        ),
    )


def _advance(state: SchemaState, schema: FormSchema, **changes: Any) -> SchemaState:
    return state.model_copy(
        update={
            "current_schema": schema,
            "revision": state.revision + 1,
            "updated_at": datetime.now(timezone.utc),
            **changes,
        }
    )


def _missing_schema() -> Reduction:
    return Reduction.rejected("schema.missing", "No schema is loaded")


def _node_ids(node: FieldNode) -> set[str]:
    return {n.id for n in iter_nodes(node)}


def _id_clash(
    state: SchemaState, incoming: list[str], existing: set[str]
) -> Optional[Reduction]:
    """Rejects ids that repeat, are already in the tree or were removed."""
    repeated = {i for i in incoming if incoming.count(i) > 1}
    taken = repeated | (set(incoming) & existing)
    if taken:
        return Reduction.rejected(
            "node.duplicate", f"Ids already in use: {sorted(taken)}"
        )
    retired = set(incoming) & state.retired_ids
    if retired:
        return Reduction.rejected(
            "node.retired",
            f"Ids of removed nodes cannot be reused: {sorted(retired)}",
        )
    return None


def handle_load_default(
    state: SchemaState, command: LoadDefault, config: BuilderConfig
) -> Reduction:
    schema = build_default_schema(config)
    new_state = _advance(
        state,
        schema,
        selected_node_id=schema.root.id,
        retired_ids=frozenset(),
    )
    return Reduction(new_state, f"Loaded default schema '{schema.name}'")


def handle_load(
    state: SchemaState, command: LoadSchema, config: BuilderConfig
) -> Reduction:
    schema = deep_clone(command.form)
    new_state = _advance(
        state,
        schema,
        selected_node_id=schema.root.id,
        retired_ids=frozenset(),
    )
    return Reduction(new_state, f"Loaded schema '{schema.name}'")


def handle_select(
    state: SchemaState, command: SelectNode, config: BuilderConfig
) -> Reduction:
    schema = state.current_schema
    if schema is None:
        return _missing_schema()

    if command.node_id and find_node(schema.root, command.node_id) is None:
        return Reduction.rejected(
            "node.not_found", f"Node not found: {command.node_id}"
        )

    new_state = state.model_copy(update={"selected_node_id": command.node_id})
    return Reduction(new_state, f"Selected {command.node_id or 'nothing'}")


def handle_update(
    state: SchemaState, command: UpdateNode, config: BuilderConfig
) -> Reduction:
    schema = state.current_schema
    if schema is None:
        return _missing_schema()

    node_id = command.patch.get("id")
    if not node_id:
        return Reduction.rejected(
            "patch.invalid", "Patch must carry the id of the node to update"
        )

    target = find_node(schema.root, node_id)
    if target is None:
        return Reduction.rejected("node.not_found", f"Node not found: {node_id}")

    try:
        patched = merge_patch(target, command.patch)
    except ValidationError as e:
        return Reduction.rejected("patch.invalid", str(e))

    if node_id == schema.root.id and not is_group(patched):
        return Reduction.rejected("node.root", "The root must stay a group")

    before = _node_ids(target)
    after = [n.id for n in iter_nodes(patched)]
    clash = _id_clash(state, after, _node_ids(schema.root) - before)
    if clash is not None:
        return clash

    dropped = before - set(after)
    selected = state.selected_node_id
    if selected in dropped:
        selected = None

    working = deep_clone(schema)
    root = replace_node(working.root, node_id, lambda _: patched)
    return Reduction(
        _advance(
            state,
            working.model_copy(update={"root": root}),
            selected_node_id=selected,
            retired_ids=state.retired_ids | dropped,
        ),
        f"Updated {node_id}",
    )


def handle_add(
    state: SchemaState, command: AddNode, config: BuilderConfig
) -> Reduction:
    schema = state.current_schema
    if schema is None:
        return _missing_schema()

    if find_group(schema.root, command.parent_group_id) is None:
        return Reduction.rejected(
            "group.not_found", f"Group not found: {command.parent_group_id}"
        )

    clash = _id_clash(
        state, [n.id for n in iter_nodes(command.node)], _node_ids(schema.root)
    )
    if clash is not None:
        return clash

    working = deep_clone(schema)
    root, added = insert_into_group(
        working.root,
        command.parent_group_id,
        deep_clone(command.node),
        command.index,
    )
    if not added:
        return Reduction.rejected(
            "group.not_found", f"Group not found: {command.parent_group_id}"
        )

    return Reduction(
        _advance(state, working.model_copy(update={"root": root})),
        f"Added {command.node.id} to {command.parent_group_id}",
    )


def handle_remove(
    state: SchemaState, command: RemoveNode, config: BuilderConfig
) -> Reduction:
    schema = state.current_schema
    if schema is None:
        return _missing_schema()

    if command.node_id == schema.root.id:
        return Reduction.rejected("node.root", "The root group cannot be removed")

    working = deep_clone(schema)
    root, removed = remove_from_group(working.root, command.node_id)
    if removed is None:
        return Reduction.rejected(
            "node.not_found", f"Node not found: {command.node_id}"
        )

    gone = {n.id for n in iter_nodes(removed)}
    selected = state.selected_node_id
    if selected in gone:
        selected = None

    return Reduction(
        _advance(
            state,
            working.model_copy(update={"root": root}),
            selected_node_id=selected,
            retired_ids=state.retired_ids | gone,
        ),
        f"Removed {command.node_id}",
    )


def handle_move(
    state: SchemaState, command: MoveNode, config: BuilderConfig
) -> Reduction:
    schema = state.current_schema
    if schema is None:
        return _missing_schema()

    if command.node_id == schema.root.id:
        return Reduction.rejected("node.root", "The root group cannot be moved")

    node = find_node(schema.root, command.node_id)
    if node is None:
        return Reduction.rejected(
            "node.not_found", f"Node not found: {command.node_id}"
        )

    if find_group(schema.root, command.target_group_id) is None:
        return Reduction.rejected(
            "group.not_found", f"Group not found: {command.target_group_id}"
        )

    if contains_node(node, command.target_group_id):
        return Reduction.rejected(
            "move.cycle",
            f"{command.target_group_id} is inside {command.node_id}",
        )

    working = deep_clone(schema)
    without, removed = remove_from_group(working.root, command.node_id)
    if removed is None:
        return Reduction.rejected(
            "node.not_found", f"Node not found: {command.node_id}"
        )

    root, added = insert_into_group(
        without, command.target_group_id, removed, command.index
    )
    if not added:
        return Reduction.rejected(
            "group.not_found", f"Group not found: {command.target_group_id}"
        )

    return Reduction(
        _advance(state, working.model_copy(update={"root": root})),
        f"Moved {command.node_id} to {command.target_group_id}",
    )


COMMAND_HANDLERS: dict[str, CommandHandler] = {
    "load_default": handle_load_default,
    "load": handle_load,
    "select": handle_select,
    "update": handle_update,
    "add": handle_add,
    "remove": handle_remove,
    "move": handle_move,
}
