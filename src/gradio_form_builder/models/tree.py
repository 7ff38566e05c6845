"""Pure helpers that read and rebuild schema trees.

None of these functions mutate their arguments. Rebuilding functions return
new group values in which only the ancestors of the edited node are
replaced; the caller is expected to hand in a deep clone when the result
must not share any references with the previous tree.
"""

from typing import Callable, Iterator, Optional

from .schema import FieldControl, FieldGroup, FieldNode, is_group


def iter_nodes(node: FieldNode) -> Iterator[FieldNode]:
    """Yields ``node`` and every descendant in depth-first pre-order."""
    yield node
    if is_group(node):
        for child in node.children:
            yield from iter_nodes(child)


def iter_controls(node: FieldNode) -> Iterator[FieldControl]:
    """Yields every control below (or equal to) ``node`` in display order."""
    for candidate in iter_nodes(node):
        if not is_group(candidate):
            yield candidate


def find_node(
    node: Optional[FieldNode], node_id: Optional[str]
) -> Optional[FieldNode]:
    """Locates a node by id.

    Args:
        node: Subtree to search. ``None`` is allowed and yields ``None``.
        node_id: Identifier to look for. ``None`` yields ``None``.

    Returns:
        The matching node, or None if it is not part of the subtree.
    """
    if node is None or not node_id:
        return None
    for candidate in iter_nodes(node):
        if candidate.id == node_id:
            return candidate
    return None


def find_group(group: FieldGroup, group_id: str) -> Optional[FieldGroup]:
    node = find_node(group, group_id)
    if node is not None and is_group(node):
        return node
    return None


def find_parent(group: FieldGroup, node_id: str) -> Optional[FieldGroup]:
    """Returns the group that directly contains ``node_id``."""
    for child in group.children:
        if child.id == node_id:
            return group
        if is_group(child):
            parent = find_parent(child, node_id)
            if parent is not None:
                return parent
    return None


def contains_node(node: FieldNode, node_id: str) -> bool:
    """True if ``node_id`` is ``node`` itself or one of its descendants."""
    return find_node(node, node_id) is not None


def replace_node(
    node: FieldNode,
    node_id: str,
    replace: Callable[[FieldNode], FieldNode],
) -> FieldNode:
    """Rebuilds the path to ``node_id`` with ``replace`` applied to it.

    Nodes outside that path are returned as they are.
    """
    if node.id == node_id:
        return replace(node)

    if not is_group(node):
        return node

    children = [replace_node(child, node_id, replace) for child in node.children]
    if all(new is old for new, old in zip(children, node.children)):
        return node
    return node.model_copy(update={"children": children})


def insert_into_group(
    group: FieldGroup,
    parent_group_id: str,
    node: FieldNode,
    index: Optional[int] = None,
) -> tuple[FieldGroup, bool]:
    """Inserts ``node`` into the children of ``parent_group_id``.

    Args:
        group: Subtree to search for the parent group.
        parent_group_id: Id of the group receiving the node.
        node: The node to insert. It is inserted as given.
        index: Target position, clamped to ``[0, len(children)]``.
            ``None`` appends.

    Returns:
        A tuple of the (possibly new) group and whether the node was added.
    """
    if group.id == parent_group_id:
        children = list(group.children)
        position = len(children) if index is None else index
        position = max(0, min(position, len(children)))
        children.insert(position, node)
        return group.model_copy(update={"children": children}), True

    children: list[FieldNode] = []
    added = False
    for child in group.children:
        if not added and is_group(child):
            child, added = insert_into_group(child, parent_group_id, node, index)
        children.append(child)

    if not added:
        return group, False
    return group.model_copy(update={"children": children}), True


def remove_from_group(
    group: FieldGroup, node_id: str
) -> tuple[FieldGroup, Optional[FieldNode]]:
    """Removes ``node_id`` (with its subtree) from below ``group``.

    ``group`` itself is never removed, so passing the root id is a no-op.

    Returns:
        A tuple of the (possibly new) group and the removed node, or
        ``(group, None)`` when the node was not found.
    """
    children: list[FieldNode] = []
    removed: Optional[FieldNode] = None

    for child in group.children:
        if removed is None and child.id == node_id:
            removed = child
            continue
        if removed is None and is_group(child):
            child, removed = remove_from_group(child, node_id)
        children.append(child)

    if removed is None:
        return group, None
    return group.model_copy(update={"children": children}), removed
