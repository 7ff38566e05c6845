"""Example of conditional visibility.

This example demonstrates how:
1. A control can depend on the value of another control.
2. Hidden controls drop out of the submitted value and out of validation.
3. Checking the dependency reveals the control and makes it required.
"""

from gradio_form_builder.models.schema import FieldControl, FieldGroup, FormSchema
from gradio_form_builder.runtime.session import FormRuntimeSession
from gradio_form_builder.store.store import FormSchemaStore


def run_example():
    schema = FormSchema(
        id="form-newsletter",
        name="Newsletter",
        root=FieldGroup(
            id="root",
            label="Root",
            children=[
                FieldControl(
                    id="f-email", type="email", key="email", label="Email", required=True
                ),
                FieldControl(
                    id="f-subscribe", type="checkbox", key="subscribe", label="Subscribe"
                ),
                FieldControl(
                    id="f-channel",
                    type="radio",
                    key="channel",
                    label="How often?",
                    required=True,
                    options=[
                        {"label": "Weekly", "value": "weekly"},
                        {"label": "Monthly", "value": "monthly"},
                    ],
                    visibility={
                        "conditions": [
                            {"dependsOnKey": "subscribe", "operator": "isChecked"}
                        ]
                    },
                ),
            ],
        ),
    )

    store = FormSchemaStore()
    store.load(schema)
    session = FormRuntimeSession(store)

    session.set_value("email", "reader@example.com")
    print(f"Visible: {sorted(session.visible_control_keys)}")
    print(f"Submit without subscribing: {session.submit().value}")

    # Checking the box reveals the channel control
    session.set_value("subscribe", True)
    print(f"\nVisible: {sorted(session.visible_control_keys)}")
    print(f"Errors: {session.submit().errors}")

    session.set_value("channel", "weekly")
    submission = session.submit()
    print(f"Valid? {submission.valid} -> {submission.value}")


if __name__ == "__main__":
    run_example()
