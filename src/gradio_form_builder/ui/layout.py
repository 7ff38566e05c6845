"""Gradio preview of a compiled form.

``PreviewController`` holds the event logic so it can be exercised without
a browser; ``create_ui`` renders the schema tree and wires the events.
"""

from functools import partial
from typing import Any, Optional

import gradio as gr

from ..models.enums import ControlType
from ..models.schema import FieldControl, FieldGroup, is_group
from ..runtime.session import FormRuntimeSession, Submission
from .binder import FormBinder


def coerce_input(definition: FieldControl, value: Any) -> Any:
    """Turns a widget value into the runtime value the control expects."""
    if definition.type == ControlType.NUMBER:
        if value is None or value == "":
            return None
        number = float(value)
        return int(number) if number.is_integer() else number
    if definition.type == ControlType.CHECKBOX:
        return bool(value)
    return value


def format_errors_markdown(submission: Optional[Submission]) -> str:
    if submission is None:
        return ""
    if submission.valid:
        return "Form is valid."

    lines: list[str] = ["### Errors"]
    for key in sorted(submission.errors):
        codes = ", ".join(sorted(submission.errors[key]))
        lines.append(f"- **{key}**: {codes}")
    return "\n".join(lines)


class PreviewController:
    """Event handlers of the preview page."""

    def __init__(self, session: FormRuntimeSession, binder: FormBinder):
        self.session = session
        self.binder = binder

    def on_input(self, key: str, value: Any) -> list[Any]:
        """Stores a new widget value and returns visibility updates."""
        definition = self.session.controls_by_key.get(key)
        if definition is not None:
            self.session.set_value(key, coerce_input(definition, value))
        return self.binder.get_updates(self.session)

    def on_submit(self) -> tuple[str, str]:
        """Submits the form; returns the JSON payload and an error summary."""
        submission = self.session.submit()
        return submission.submitted_json, format_errors_markdown(submission)

    def on_reset(self) -> list[Any]:
        """Rebuilds the runtime from the current schema."""
        self.session.rebuild()
        return self.binder.get_updates(self.session, include_values=True)


def create_component(definition: FieldControl, value: Any, visible: bool = True) -> Any:
    """Creates the gradio input matching a control type."""
    label = f"{definition.label} *" if definition.required else definition.label
    placeholder = definition.placeholder or None
    choices = [(o.label, o.value) for o in definition.options or []]

    if definition.type == ControlType.NUMBER:
        return gr.Number(label=label, value=value, visible=visible)
    if definition.type == ControlType.TEXTAREA:
        return gr.Textbox(
            label=label, value=value, placeholder=placeholder, lines=4, visible=visible
        )
    if definition.type == ControlType.CHECKBOX:
        return gr.Checkbox(label=label, value=bool(value), visible=visible)
    if definition.type == ControlType.SELECT:
        return gr.Dropdown(label=label, choices=choices, value=value, visible=visible)
    if definition.type == ControlType.RADIO:
        return gr.Radio(label=label, choices=choices, value=value, visible=visible)
    if definition.type == ControlType.DATE:
        return gr.Textbox(
            label=label,
            value=value,
            placeholder=placeholder or "YYYY-MM-DD",
            visible=visible,
        )
    return gr.Textbox(
        label=label, value=value, placeholder=placeholder, visible=visible
    )


def _render_group(
    group: FieldGroup, session: FormRuntimeSession, binder: FormBinder
) -> None:
    for child in group.children:
        if is_group(child):
            with gr.Group(visible=child.id in session.visible_group_ids) as box:
                gr.Markdown(f"#### {child.label}")
                _render_group(child, session, binder)
            binder.bind_group(child.id, box)
            continue

        leaf = session.form.find_leaf(child.key)
        component = create_component(
            child, leaf.value if leaf else None, visible=session.is_visible(child.key)
        )
        binder.bind_control(child.key, component)


def create_ui(session: FormRuntimeSession, title: Optional[str] = None) -> gr.Blocks:
    """Constructs the preview page for the session's current schema.

    Args:
        session: A runtime session with a loaded schema.
        title: Page title. Defaults to the schema name.

    Returns:
        A gr.Blocks object ready to launch.
    """
    schema = session.schema
    if schema is None:
        raise RuntimeError("No schema is loaded")

    binder = FormBinder()
    controller = PreviewController(session, binder)

    with gr.Blocks(title=title or schema.name) as demo:
        gr.Markdown(f"## {schema.name}\n_version {schema.version}_")
        _render_group(schema.root, session, binder)

        with gr.Row():
            submit_btn = gr.Button("Submit", variant="primary")
            reset_btn = gr.Button("Reset", variant="secondary")

        errors_md = gr.Markdown("")
        payload = gr.Code(label="Submission", language="json")

        outputs = binder.get_bound_components()
        for kind, key, component, _ in binder.bindings:
            if kind != "control":
                continue
            component.input(
                fn=partial(controller.on_input, key),
                inputs=[component],
                outputs=outputs,
            )

        submit_btn.click(fn=controller.on_submit, inputs=[], outputs=[payload, errors_md])
        reset_btn.click(fn=controller.on_reset, inputs=[], outputs=outputs)

    return demo


def launch_preview(session: FormRuntimeSession) -> None:
    config = session.config
    demo = create_ui(session)
    demo.launch(server_name=config.server_name, server_port=config.server_port)

