import json
from pathlib import Path

from gradio_form_builder.authoring.checks import AuthoringIssue
from gradio_form_builder.models.schema import FormSchema
from gradio_form_builder.store.state import CommandResult


OUTPUT_DIR = Path("docs/schemas")
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


MODELS = {
    "form_schema.schema.json": FormSchema,
    "command_result.schema.json": CommandResult,
    "authoring_issue.schema.json": AuthoringIssue,
}


def main() -> None:
    for filename, model in MODELS.items():
        schema = model.model_json_schema(by_alias=True)
        (OUTPUT_DIR / filename).write_text(
            json.dumps(schema, indent=2),
            encoding="utf-8",
        )


if __name__ == "__main__":
    main()
