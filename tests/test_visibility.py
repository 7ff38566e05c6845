import pytest

from gradio_form_builder.models.schema import (
    FieldControl,
    FieldGroup,
    FormSchema,
    VisibilityCondition,
)
from gradio_form_builder.observability.metrics import RuntimeMetrics
from gradio_form_builder.runtime.compiler import build
from gradio_form_builder.runtime.visibility import (
    MISSING,
    compute_visibility,
    evaluate_condition,
    evaluate_visibility,
    is_control_visible,
    read_value,
    strict_equals,
)


def cond(operator, value=None, key="x"):
    return VisibilityCondition(depends_on_key=key, operator=operator, value=value)


def control_with(conditions, mode="all", visible_by_default=True, key="target"):
    return FieldControl(
        id=f"f-{key}",
        type="text",
        key=key,
        label=key,
        visibility={
            "mode": mode,
            "visibleByDefault": visible_by_default,
            "conditions": conditions,
        },
    )


class TestConditions:
    @pytest.mark.parametrize(
        "operator, expected, actual, result",
        [
            ("equals", "yes", "yes", True),
            ("equals", "yes", "no", False),
            ("equals", 1, True, False),
            ("equals", True, 1, False),
            ("equals", 1, 1.0, True),
            ("equals", "1", 1, False),
            ("notEquals", "yes", "no", True),
            ("notEquals", "yes", "yes", False),
            ("greaterThan", 10, 11, True),
            ("greaterThan", 10, 10, False),
            ("greaterThan", 10, "11", False),
            ("lessThan", 10, 9.5, True),
            ("lessThan", 10, None, False),
            ("includes", "@corp", "ann@corp.com", True),
            ("contains", "x", "abc", False),
            ("includes", "b", ["a", "b"], True),
            ("includes", 1, [True], False),
            ("includes", 5, 12345, False),
            ("includes", True, "it is true", True),
            ("isChecked", None, True, True),
            ("isChecked", None, "true", False),
            ("isChecked", None, 1, False),
        ],
    )
    def test_operators(self, operator, expected, actual, result):
        assert evaluate_condition(cond(operator, expected), {"x": actual}) is result

    def test_unknown_operator_is_false(self):
        assert evaluate_condition(cond("startsWith", "a"), {"x": "abc"}) is False

    def test_missing_dependency(self):
        assert evaluate_condition(cond("equals", None), {}) is False
        assert evaluate_condition(cond("isChecked"), {}) is False
        assert evaluate_condition(cond("notEquals", "x"), {}) is False
        assert evaluate_condition(cond("notEquals", "x"), {"g": {"y": 1}}) is False

    def test_control_on_unknown_key_stays_hidden(self):
        schema = FormSchema(
            id="form",
            root=FieldGroup(
                id="root",
                label="Root",
                children=[
                    FieldControl(
                        id="f-b",
                        type="text",
                        key="b",
                        label="B",
                        visibility={
                            "conditions": [
                                {"dependsOnKey": "ghost", "operator": "notEquals", "value": "x"}
                            ]
                        },
                    )
                ],
            ),
        )
        result = build(schema)
        visibility = evaluate_visibility(schema.root, result.form)
        assert visibility.visible_control_keys == set()
        assert "b" not in result.form.value

    def test_strict_equals(self):
        assert strict_equals(False, False)
        assert not strict_equals(0, False)
        assert not strict_equals(MISSING, MISSING)


class TestReadValue:
    def test_direct_member_wins(self):
        snapshot = {"g1": {"x": 1}, "x": 2}
        assert read_value(snapshot, "x") == 2

    def test_nested_first_match(self):
        snapshot = {"g1": {"y": 1}, "g2": {"x": 3}, "g3": {"x": 4}}
        assert read_value(snapshot, "x") == 3

    def test_missing(self):
        assert read_value({"g1": {}}, "x") is MISSING
        assert read_value(None, "x") is MISSING


class TestRules:
    def test_no_rule_is_visible(self):
        control = FieldControl(id="f", type="text", key="a", label="A")
        assert is_control_visible(control, {})

    def test_visible_by_default_without_conditions(self):
        assert is_control_visible(control_with([], visible_by_default=True), {})
        assert not is_control_visible(control_with([], visible_by_default=False), {})

    def test_visible_by_default_is_ignored_with_conditions(self):
        control = control_with([cond("equals", "a")], visible_by_default=False)
        assert is_control_visible(control, {"x": "a"})

    def test_all_and_any(self):
        conditions = [cond("equals", "a", key="x"), cond("equals", "b", key="y")]
        both = {"x": "a", "y": "b"}
        one = {"x": "a", "y": "z"}
        assert is_control_visible(control_with(conditions, mode="all"), both)
        assert not is_control_visible(control_with(conditions, mode="all"), one)
        assert is_control_visible(control_with(conditions, mode="any"), one)
        assert not is_control_visible(control_with(conditions, mode="any"), {})


def chained_schema() -> FormSchema:
    # a -> b -> c: b shows when a is checked, c shows when b is checked.
    return FormSchema(
        id="form",
        root=FieldGroup(
            id="root",
            label="Root",
            children=[
                FieldControl(id="f-a", type="checkbox", key="a", label="A"),
                FieldControl(
                    id="f-b",
                    type="checkbox",
                    key="b",
                    label="B",
                    default_value=True,
                    visibility={"conditions": [{"dependsOnKey": "a", "operator": "isChecked"}]},
                ),
                FieldGroup(
                    id="g-more",
                    label="More",
                    children=[
                        FieldControl(
                            id="f-c",
                            type="text",
                            key="c",
                            label="C",
                            required=True,
                            visibility={
                                "conditions": [{"dependsOnKey": "b", "operator": "isChecked"}]
                            },
                        )
                    ],
                ),
            ],
        ),
    )


class TestEvaluation:
    def test_root_always_visible_and_empty_groups_hidden(self):
        root = FieldGroup(id="root", label="Root", children=[FieldGroup(id="g", label="G")])
        result = compute_visibility(root, {})
        assert result.visible_group_ids == {"root"}

    def test_chain_settles_in_one_evaluation(self):
        schema = chained_schema()
        form = build(schema).form
        result = evaluate_visibility(schema.root, form)
        assert result.visible_control_keys == {"a"}
        assert result.visible_group_ids == {"root"}
        assert form.get("b").disabled
        assert form.get(["g-more", "c"]).disabled
        assert form.value == {"a": False}
        assert form.valid

        form.get("a").set_value(True, emit_event=False)
        result = evaluate_visibility(schema.root, form)
        assert result.visible_control_keys == {"a", "b", "c"}
        assert result.visible_group_ids == {"root", "g-more"}
        assert not form.valid

    def test_without_settling_one_pass_only(self):
        schema = chained_schema()
        form = build(schema).form
        result = evaluate_visibility(schema.root, form, settle=False)
        # c still sees b's value from before b was hidden.
        assert result.visible_control_keys == {"a", "c"}

    def test_toggling_is_silent(self):
        schema = chained_schema()
        form = build(schema).form
        seen = []
        form.subscribe(seen.append)
        evaluate_visibility(schema.root, form)
        assert seen == []

    def test_metrics(self):
        schema = chained_schema()
        form = build(schema).form
        metrics = RuntimeMetrics()
        evaluate_visibility(schema.root, form, metrics=metrics)
        assert metrics.get("visibility.pass") == 3
        assert metrics.get("visibility.toggled") == 2
