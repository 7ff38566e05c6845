import jsonschema

from gradio_form_builder.authoring.checks import AuthoringIssue
from gradio_form_builder.config import BuilderConfig
from gradio_form_builder.exchange.document import DOCUMENT_CONTRACT, export_schema
from gradio_form_builder.models.schema import FormSchema
from gradio_form_builder.store.commands import build_default_schema
from gradio_form_builder.store.state import CommandResult


MODELS = [FormSchema, CommandResult, AuthoringIssue]


def test_all_schemas_are_valid_jsonschema():
    for model in MODELS:
        schema = model.model_json_schema(by_alias=True)
        # Will raise if invalid
        jsonschema.Draft202012Validator.check_schema(schema)
    jsonschema.Draft202012Validator.check_schema(DOCUMENT_CONTRACT)


def test_exported_default_schema_matches_both_schemas():
    document = export_schema(build_default_schema(BuilderConfig()))
    jsonschema.validate(document, DOCUMENT_CONTRACT)
    jsonschema.validate(document, FormSchema.model_json_schema(by_alias=True))
