"""Basic example of the form builder runtime.

This example demonstrates how to:
1. Create a schema store and let a runtime session load the starter form.
2. Submit the empty form and inspect the validation errors.
3. Fill in the values and submit again.
"""

from gradio_form_builder.runtime.session import FormRuntimeSession
from gradio_form_builder.store.store import FormSchemaStore


def run_example():
    # 1. The session loads the default schema when the store is empty
    store = FormSchemaStore()
    session = FormRuntimeSession(store)
    print(f"Loaded schema: {session.schema.name}")
    print(f"Controls: {sorted(session.controls_by_key)}")

    # 2. Nothing filled in yet
    submission = session.submit()
    print(f"\nEmpty submit valid? {submission.valid}")
    print(f"Errors: {submission.errors}")

    # 3. A bad email, then a good one
    session.set_value("name", "Ada Lovelace")
    session.set_value("email", "ada")
    print(f"\nWith bad email: {session.submit().errors}")

    session.set_value("email", "ada@example.com")
    submission = session.submit()
    print(f"Valid? {submission.valid}")
    print(submission.submitted_json)


if __name__ == "__main__":
    run_example()
