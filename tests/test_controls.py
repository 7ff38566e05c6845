from gradio_form_builder.models.enums import ControlStatus
from gradio_form_builder.runtime import validators as v
from gradio_form_builder.runtime.controls import ValueControl, ValueGroup


def make_form():
    return ValueGroup(
        {
            "name": ValueControl("name", None, [v.required]),
            "address": ValueGroup({"city": ValueControl("city", "Oslo")}),
        }
    )


def test_leaf_changes_bubble_to_the_root():
    form = make_form()
    seen = []
    form.subscribe(seen.append)
    form.get(["address", "city"]).set_value("Bergen")
    assert seen == [{"name": None, "address": {"city": "Bergen"}}]


def test_silent_changes_do_not_notify():
    form = make_form()
    seen = []
    form.subscribe(seen.append)
    form.get("name").set_value("Ann", emit_event=False)
    form.get("name").disable(emit_event=False)
    assert seen == []


def test_disabled_leaves_drop_out_of_value_and_validation():
    form = make_form()
    name = form.get("name")
    assert form.status == ControlStatus.INVALID
    name.disable()
    assert name.status == ControlStatus.DISABLED
    assert name.errors is None
    assert form.value == {"address": {"city": "Oslo"}}
    assert form.raw_value == {"name": None, "address": {"city": "Oslo"}}
    assert form.status == ControlStatus.VALID


def test_group_with_all_children_disabled_is_disabled():
    form = make_form()
    form.get(["address", "city"]).disable()
    assert form.get("address").disabled
    assert "address" not in form.value


def test_get_does_not_split_on_dots():
    form = ValueGroup({"a.b": ValueControl("a.b", 1)})
    assert form.get("a.b").value == 1
    assert form.get(["a", "b"]) is None


def test_patch_value_notifies_once():
    form = make_form()
    seen = []
    form.subscribe(seen.append)
    form.patch_value({"name": "Ann", "address": {"city": "Bergen"}, "missing": 1})
    assert len(seen) == 1
    assert form.value == {"name": "Ann", "address": {"city": "Bergen"}}


def test_find_leaf_and_errors_by_key():
    form = make_form()
    assert form.find_leaf("city").value == "Oslo"
    assert form.find_leaf("nope") is None
    assert form.errors_by_key() == {"name": {"required": True}}
    form.mark_all_as_touched()
    assert all(leaf.touched for leaf in form.iter_leaves())


def test_unsubscribe():
    leaf = ValueControl("a")
    seen = []
    unsubscribe = leaf.subscribe(seen.append)
    leaf.set_value(1)
    unsubscribe()
    leaf.set_value(2)
    assert seen == [1]
