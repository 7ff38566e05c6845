import pytest

from gradio_form_builder.models.schema import FieldControl, FieldGroup
from gradio_form_builder.models.tree import (
    contains_node,
    find_group,
    find_node,
    find_parent,
    insert_into_group,
    iter_controls,
    iter_nodes,
    remove_from_group,
    replace_node,
)


@pytest.fixture
def root():
    return FieldGroup(
        id="root",
        label="Root",
        children=[
            FieldControl(id="f-name", type="text", key="name", label="Name"),
            FieldGroup(
                id="g-address",
                label="Address",
                children=[
                    FieldControl(id="f-city", type="text", key="city", label="City"),
                    FieldGroup(id="g-empty", label="Empty"),
                ],
            ),
            FieldControl(id="f-email", type="email", key="email", label="Email"),
        ],
    )


def test_iteration_is_depth_first(root):
    assert [n.id for n in iter_nodes(root)] == [
        "root",
        "f-name",
        "g-address",
        "f-city",
        "g-empty",
        "f-email",
    ]
    assert [c.key for c in iter_controls(root)] == ["name", "city", "email"]


def test_find_helpers(root):
    assert find_node(root, "f-city").key == "city"
    assert find_node(root, "missing") is None
    assert find_node(root, None) is None
    assert find_node(None, "root") is None
    assert find_group(root, "g-empty").id == "g-empty"
    assert find_group(root, "f-city") is None
    assert find_parent(root, "f-city").id == "g-address"
    assert find_parent(root, "root") is None
    assert contains_node(find_node(root, "g-address"), "g-empty")
    assert not contains_node(find_node(root, "g-address"), "f-name")


def test_replace_node_only_rebuilds_the_path(root):
    new_root = replace_node(
        root, "f-city", lambda n: n.model_copy(update={"label": "Town"})
    )
    assert find_node(new_root, "f-city").label == "Town"
    assert find_node(root, "f-city").label == "City"
    assert new_root.children[0] is root.children[0]
    assert new_root.children[2] is root.children[2]


def test_replace_missing_node_returns_same_tree(root):
    assert replace_node(root, "missing", lambda n: n) is root


@pytest.mark.parametrize("index, expected", [(None, 3), (0, 0), (1, 1), (99, 3), (-5, 0)])
def test_insert_clamps_index(root, index, expected):
    node = FieldControl(id="f-new", type="text", key="new", label="New")
    new_root, added = insert_into_group(root, "root", node, index)
    assert added
    assert [c.id for c in new_root.children].index("f-new") == expected
    assert len(root.children) == 3


def test_insert_into_nested_group(root):
    node = FieldControl(id="f-zip", type="text", key="zip", label="Zip")
    new_root, added = insert_into_group(root, "g-empty", node)
    assert added
    assert [c.id for c in find_group(new_root, "g-empty").children] == ["f-zip"]


def test_insert_into_missing_group(root):
    node = FieldControl(id="f-zip", type="text", key="zip", label="Zip")
    new_root, added = insert_into_group(root, "nope", node)
    assert not added
    assert new_root is root


def test_remove_takes_the_subtree(root):
    new_root, removed = remove_from_group(root, "g-address")
    assert removed.id == "g-address"
    assert find_node(new_root, "f-city") is None
    assert find_node(root, "f-city") is not None


def test_remove_missing_or_root_is_noop(root):
    assert remove_from_group(root, "missing") == (root, None)
    assert remove_from_group(root, "root") == (root, None)
