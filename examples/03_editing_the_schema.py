"""Example of editing a schema through the store and the authoring gate.

This example demonstrates how:
1. Nodes are added, updated, moved and removed through store commands.
2. Every command returns a result that says whether it was applied.
3. The authoring gate refuses duplicate keys and malformed patterns.
4. The store refuses to move a group into its own subtree.
"""

from gradio_form_builder.authoring.checks import AuthoringGate
from gradio_form_builder.exchange.document import export_schema_json
from gradio_form_builder.models.schema import FieldControl, FieldGroup, generate_id
from gradio_form_builder.store.store import FormSchemaStore


def show(label, result):
    status = "applied" if result.applied else f"rejected ({result.error.code})"
    print(f"{label}: {status} - {result.message}")


def run_example():
    store = FormSchemaStore()
    store.load_default()
    gate = AuthoringGate(store)
    root_id = store.schema.root.id

    # 1. Add an address group with a city control
    address = FieldGroup(id=generate_id("group"), label="Address")
    city = FieldControl(id=generate_id("field"), type="text", key="city", label="City")
    show("Add group", store.add(root_id, address))
    show("Add city", store.add(address.id, city))

    # 2. Give the city a pattern
    result, _ = gate.update({"id": city.id, "validators": {"pattern": "[A-Za-z ]+"}})
    show("Set pattern", result)

    # 3. Rejected edits
    result, issues = gate.update({"id": city.id, "key": "email"})
    show("Rename key to 'email'", result)
    result, issues = gate.update({"id": city.id, "validators": {"pattern": "[a-"}})
    show("Malformed pattern", result)

    inner = FieldGroup(id=generate_id("group"), label="Inner")
    store.add(address.id, inner)
    show("Move group into its child", store.move(address.id, inner.id))

    # 4. Structural edits
    show("Move city to root", store.move(city.id, root_id, 0))
    show("Remove inner group", store.remove(inner.id))

    print(f"\nRevision: {store.last_updated}")
    print(export_schema_json(store.schema))


if __name__ == "__main__":
    run_example()
