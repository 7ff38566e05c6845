"""Command line tool for authoring and trying out form schemas."""

import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import typer
from typing_extensions import Annotated

from gradio_form_builder.authoring.checks import has_errors, validate_schema
from gradio_form_builder.config import load_config
from gradio_form_builder.exchange.document import (
    SchemaImportError,
    export_schema_json,
    load_schema_file,
    save_schema_file,
)
from gradio_form_builder.models.schema import FieldNode, FormSchema, is_group
from gradio_form_builder.observability.logging import setup_logging
from gradio_form_builder.runtime.session import FormRuntimeSession
from gradio_form_builder.store.commands import build_default_schema
from gradio_form_builder.store.store import FormSchemaStore


app = typer.Typer(help="Gradio Form Builder CLI")
schema_app = typer.Typer(help="Create and inspect schema documents")
form_app = typer.Typer(help="Fill in and preview forms")

app.add_typer(schema_app, name="schema")
app.add_typer(form_app, name="form")


@app.callback()
def main(
    log_level: Annotated[
        Optional[str], typer.Option(help="Log level (DEBUG, INFO, ...)")
    ] = None,
):
    """Configures JSON logging on stderr for every command."""
    config = load_config()
    setup_logging(level=log_level or config.log_level, stream=sys.stderr)


def _load_or_exit(file_path: Path) -> FormSchema:
    if not file_path.exists():
        typer.echo(f"Error: File not found: {file_path}", err=True)
        raise typer.Exit(code=1)
    try:
        return load_schema_file(file_path)
    except SchemaImportError as e:
        typer.echo(f"Invalid schema: {e.detail}", err=True)
        if e.path:
            typer.echo(f"Path: {e.path}", err=True)
        raise typer.Exit(code=1)


def _parse_assignment(raw: str) -> tuple[str, Any]:
    key, sep, text = raw.partition("=")
    if not sep or not key.strip():
        raise typer.BadParameter(f"Expected key=value, got '{raw}'")
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        value = text
    return key.strip(), value


def _tree_lines(node: FieldNode, depth: int = 0) -> list[str]:
    indent = "  " * depth
    if is_group(node):
        lines = [f"{indent}{node.label} [{node.id}]"]
        for child in node.children:
            lines.extend(_tree_lines(child, depth + 1))
        return lines

    marker = " *" if node.required else ""
    line = f"{indent}{node.key} ({node.type}){marker} [{node.id}]"
    if node.visibility is not None and node.visibility.conditions:
        deps = ", ".join(
            f"{c.depends_on_key} {c.operator}" for c in node.visibility.conditions
        )
        line += f" if {node.visibility.mode}: {deps}"
    return [line]


@schema_app.command("default")
def schema_default(
    output: Annotated[
        Optional[Path],
        typer.Option(help="Write to this file (.json, .yaml or .yml)"),
    ] = None,
):
    """Prints or saves the starter contact form schema."""
    schema = build_default_schema(load_config())
    if output is None:
        typer.echo(export_schema_json(schema))
        return
    save_schema_file(schema, output)
    typer.echo(f"Default schema written to {output}")


@schema_app.command("validate")
def schema_validate(
    file_path: Annotated[Path, typer.Argument(help="Path to schema document")],
):
    """Validates a schema document and audits it for authoring problems."""
    schema = _load_or_exit(file_path)
    issues = validate_schema(schema)
    for issue in issues:
        where = f" ({issue.node_id})" if issue.node_id else ""
        typer.echo(
            f"[{issue.severity}] {issue.code}{where}: {issue.detail}", err=True
        )

    if has_errors(issues):
        raise typer.Exit(code=1)
    typer.echo(f"Schema file {file_path} is valid.")


@schema_app.command("tree")
def schema_tree(
    file_path: Annotated[Path, typer.Argument(help="Path to schema document")],
):
    """Prints the node tree of a schema document."""
    schema = _load_or_exit(file_path)
    typer.echo(f"{schema.name} v{schema.version} ({schema.id})")
    for line in _tree_lines(schema.root, 1):
        typer.echo(line)


@schema_app.command("json-schema")
def schema_json_schema():
    """Prints the JSON Schema that describes schema documents."""
    typer.echo(
        json.dumps(FormSchema.model_json_schema(by_alias=True), indent=2)
    )


@form_app.command("submit")
def form_submit(
    file_path: Annotated[Path, typer.Argument(help="Path to schema document")],
    values: Annotated[
        Optional[List[str]],
        typer.Option(
            "--set", help="key=value; the value is parsed as JSON when it can be"
        ),
    ] = None,
):
    """Fills in a form from the command line and submits it."""
    schema = _load_or_exit(file_path)
    store = FormSchemaStore(config=load_config())
    store.load(schema)
    session = FormRuntimeSession(store)

    for raw in values or []:
        key, value = _parse_assignment(raw)
        if not session.set_value(key, value):
            typer.echo(f"Error: No control with key '{key}'", err=True)
            raise typer.Exit(code=1)

    submission = session.submit()
    typer.echo(submission.summary_json())
    if not submission.valid:
        raise typer.Exit(code=1)


@form_app.command("preview")
def form_preview(
    file_path: Annotated[
        Optional[Path],
        typer.Argument(help="Schema document; the starter form when omitted"),
    ] = None,
):
    """Serves a live preview of the form in the browser."""
    from gradio_form_builder.ui.layout import launch_preview

    store = FormSchemaStore(config=load_config())
    if file_path is not None:
        store.load(_load_or_exit(file_path))
    session = FormRuntimeSession(store)
    launch_preview(session)


if __name__ == "__main__":
    app()
