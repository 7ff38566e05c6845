import json
import logging
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from gradio_form_builder.cli import app
from gradio_form_builder.exchange.document import load_schema_file, save_schema_file
from gradio_form_builder.models.schema import FieldControl, FieldGroup, FormSchema

runner = CliRunner()


def newsletter_schema() -> FormSchema:
    return FormSchema(
        id="form-newsletter",
        name="Newsletter",
        root=FieldGroup(
            id="root",
            label="Root",
            children=[
                FieldControl(id="f-email", type="email", key="email", label="Email", required=True),
                FieldControl(id="f-subscribe", type="checkbox", key="subscribe", label="Subscribe"),
                FieldGroup(
                    id="g-prefs",
                    label="Preferences",
                    children=[
                        FieldControl(
                            id="f-channel",
                            type="text",
                            key="channel",
                            label="Channel",
                            required=True,
                            visibility={
                                "conditions": [
                                    {"dependsOnKey": "subscribe", "operator": "isChecked"}
                                ]
                            },
                        )
                    ],
                ),
            ],
        ),
    )


class TestCLI:
    @pytest.fixture(autouse=True)
    def reset_logging(self):
        yield
        logger = logging.getLogger("gradio_form_builder")
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

    @pytest.fixture
    def schema_file(self, tmp_path):
        return save_schema_file(newsletter_schema(), tmp_path / "newsletter.json")

    def test_schema_default_prints_json(self):
        result = runner.invoke(app, ["--log-level", "WARNING", "schema", "default"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        keys = [c["key"] for c in data["root"]["children"]]
        assert keys == ["name", "email"]

    def test_schema_default_to_yaml_file(self, tmp_path):
        target = tmp_path / "default.yaml"
        result = runner.invoke(app, ["schema", "default", "--output", str(target)])
        assert result.exit_code == 0
        assert "Default schema written" in result.output
        assert load_schema_file(target).root.label == "Root Group"

    def test_schema_validate(self, schema_file):
        result = runner.invoke(app, ["schema", "validate", str(schema_file)])
        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_schema_validate_reports_issues(self, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text(
            "id: f\n"
            "root:\n"
            "  id: r\n"
            "  type: group\n"
            "  label: R\n"
            "  children:\n"
            "    - {id: a, type: text, key: dup, label: A}\n"
            "    - {id: b, type: text, key: dup, label: B}\n"
        )
        result = runner.invoke(app, ["schema", "validate", str(bad)])
        assert result.exit_code == 1
        assert "key.duplicate" in result.output

    def test_schema_validate_rejects_broken_document(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"id": "f", "root": {"id": "r", "type": "text"}}))
        result = runner.invoke(app, ["schema", "validate", str(bad)])
        assert result.exit_code == 1
        assert "Invalid schema" in result.output
        assert "root.type" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["schema", "tree", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_schema_tree(self, schema_file):
        result = runner.invoke(app, ["--log-level", "WARNING", "schema", "tree", str(schema_file)])
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "Newsletter v1.0.0 (form-newsletter)"
        assert lines[1] == "  Root [root]"
        assert "    email (email) * [f-email]" in lines
        assert "    Preferences [g-prefs]" in lines
        assert "      channel (text) * [f-channel] if all: subscribe isChecked" in lines

    def test_schema_json_schema(self):
        result = runner.invoke(app, ["--log-level", "WARNING", "schema", "json-schema"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert "root" in data["properties"]

    def test_form_submit_valid(self, schema_file):
        result = runner.invoke(
            app,
            [
                "--log-level",
                "WARNING",
                "form",
                "submit",
                str(schema_file),
                "--set",
                "email=a@b.co",
                "--set",
                "subscribe=true",
                "--set",
                "channel=weekly",
            ],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["valid"] is True
        assert data["value"] == {
            "email": "a@b.co",
            "subscribe": True,
            "g-prefs": {"channel": "weekly"},
        }

    def test_form_submit_invalid(self, schema_file):
        result = runner.invoke(
            app,
            ["--log-level", "WARNING", "form", "submit", str(schema_file), "--set", "subscribe=true"],
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["valid"] is False
        assert data["errors"] == {
            "email": {"required": True},
            "channel": {"required": True},
        }

    def test_form_submit_unknown_key(self, schema_file):
        result = runner.invoke(app, ["form", "submit", str(schema_file), "--set", "ghost=1"])
        assert result.exit_code == 1
        assert "No control with key 'ghost'" in result.output

    def test_form_submit_bad_assignment(self, schema_file):
        result = runner.invoke(app, ["form", "submit", str(schema_file), "--set", "novalue"])
        assert result.exit_code != 0

    def test_form_preview_launches(self, schema_file):
        with patch("gradio_form_builder.ui.layout.launch_preview") as mock_launch:
            result = runner.invoke(app, ["form", "preview", str(schema_file)])
        assert result.exit_code == 0
        session = mock_launch.call_args[0][0]
        assert session.schema.id == "form-newsletter"
