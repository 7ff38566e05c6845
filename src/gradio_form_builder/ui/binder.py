"""Binding of gradio components to the runtime session.

Every rendered control and group is registered here so that, after each
edit, one list of ``gr.update`` calls (in registration order) can push the
current visibility back into the page.
"""

from typing import Any, Callable, Literal, Optional

import gradio as gr

from ..runtime.session import FormRuntimeSession

BindingKind = Literal["control", "group"]


class FormBinder:
    """Manages bindings between gradio components and the form runtime."""

    def __init__(self):
        # List of (kind, key or group id, component, update_fn)
        self.bindings: list[
            tuple[BindingKind, str, gr.components.Component, Optional[Callable]]
        ] = []

    def bind_control(
        self,
        key: str,
        component: Any,
        update_fn: Optional[Callable[[Any], Any]] = None,
    ):
        """Binds an input component to a control key.

        Args:
            key: The control key in the runtime tree.
            component: The gradio component rendering the control.
            update_fn: Optional transform from runtime value to component
                value, used when values are pushed.
        """
        self.bindings.append(("control", key, component, update_fn))

    def bind_group(self, group_id: str, component: Any):
        """Binds a layout block to a group id so it can be hidden."""
        self.bindings.append(("group", group_id, component, None))

    def get_updates(
        self, session: FormRuntimeSession, *, include_values: bool = False
    ) -> list[Any]:
        """Generates one gr.update() per binding.

        Args:
            session: The live runtime session.
            include_values: Also push the runtime value of every control,
                e.g. after a reset.

        Returns:
            A list of gr.update() results in the order components were bound.
        """
        updates = []
        for kind, name, _, update_fn in self.bindings:
            if kind == "group":
                updates.append(gr.update(visible=name in session.visible_group_ids))
                continue

            if not include_values:
                updates.append(gr.update(visible=session.is_visible(name)))
                continue

            leaf = session.form.find_leaf(name) if session.form else None
            value = leaf.value if leaf is not None else None
            if update_fn:
                value = update_fn(value)
            updates.append(gr.update(value=value, visible=session.is_visible(name)))
        return updates

    def get_bound_components(self) -> list[Any]:
        """Returns the bound gradio components in registration order."""
        return [b[2] for b in self.bindings]
