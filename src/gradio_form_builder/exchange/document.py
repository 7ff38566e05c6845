"""Reading and writing schema documents.

A document is the JSON (or YAML) rendition of ``FormSchema`` with camelCase
keys. Import is all-or-nothing: a document either becomes a complete schema
or raises ``SchemaImportError`` and nothing is loaded.
"""

import json
from pathlib import Path
from typing import Any, Optional, Union

import jsonschema
import yaml
from pydantic import ValidationError

from ..models.schema import FormSchema
from ..observability.logging import get_logger
from ..store.state import CommandResult
from ..store.store import FormSchemaStore

logger = get_logger(__name__)

DOCUMENT_CONTRACT: dict[str, Any] = {
    "type": "object",
    "description": "Minimal structure every schema document must have.",
    "required": ["id", "root"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "version": {"type": "string"},
        "root": {
            "type": "object",
            "required": ["id", "type"],
            "properties": {
                "id": {"type": "string"},
                "type": {"const": "group"},
                "children": {"type": "array"},
            },
        },
    },
}


class SchemaImportError(ValueError):
    """Raised when a document cannot be turned into a schema.

    Attributes:
        detail: Human-readable reason.
        path: Dotted location of the problem inside the document, if known.
    """

    def __init__(self, detail: str, path: Optional[str] = None) -> None:
        self.detail = detail
        self.path = path
        super().__init__(f"{detail} (at {path})" if path else detail)


def export_schema(schema: FormSchema) -> dict[str, Any]:
    """Returns the document form of ``schema`` (camelCase, no null fields)."""
    return schema.model_dump(mode="json", by_alias=True, exclude_none=True)


def export_schema_json(schema: FormSchema, indent: Optional[int] = 2) -> str:
    return json.dumps(export_schema(schema), indent=indent, ensure_ascii=False)


def parse_schema_document(data: Any) -> FormSchema:
    """Validates a decoded document and builds the schema.

    Raises:
        SchemaImportError: If the document breaks the minimal contract or
            is otherwise not a valid schema.
    """
    try:
        jsonschema.validate(instance=data, schema=DOCUMENT_CONTRACT)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) or None
        raise SchemaImportError(e.message, path) from e

    try:
        return FormSchema.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        path = ".".join(str(p) for p in first["loc"]) or None
        raise SchemaImportError(first["msg"], path) from e


def import_schema_json(text: str) -> FormSchema:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaImportError(f"Invalid JSON: {e.msg}") from e
    return parse_schema_document(data)


def load_schema_file(path: Union[str, Path]) -> FormSchema:
    """Loads a schema from a ``.json``, ``.yaml`` or ``.yml`` file."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaImportError(f"Cannot read {file_path}: {e}") from e

    if file_path.suffix.lower() in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise SchemaImportError(f"Invalid YAML: {e}") from e
        return parse_schema_document(data)

    return import_schema_json(text)


def save_schema_file(schema: FormSchema, path: Union[str, Path]) -> Path:
    """Writes ``schema`` as JSON, or YAML when the suffix asks for it."""
    file_path = Path(path)
    if file_path.suffix.lower() in (".yaml", ".yml"):
        text = yaml.safe_dump(export_schema(schema), sort_keys=False, allow_unicode=True)
    else:
        text = export_schema_json(schema)
    file_path.write_text(text, encoding="utf-8")
    return file_path


def import_into_store(store: FormSchemaStore, text: str) -> CommandResult:
    """Parses ``text`` and loads it into ``store``.

    Raises:
        SchemaImportError: If the document is invalid; the store keeps its
            current schema.
    """
    try:
        schema = import_schema_json(text)
    except SchemaImportError as e:
        logger.warning(
            f"Schema import rejected: {e}",
            extra={"extra_fields": {"event": "schema.import_rejected", "path": e.path}},
        )
        raise
    return store.load(schema)
