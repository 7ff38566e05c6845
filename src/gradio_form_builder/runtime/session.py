"""Keeps a live runtime in step with the schema store.

The session rebuilds the value tree whenever the store publishes a
different schema, evaluates visibility straight away, and evaluates it
again after every value change. All of this happens inside the store or
value-holder notification, so by the time a setter returns the visible set
and the enabled state of every leaf agree.
"""

import json
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, Field

from ..config import BuilderConfig
from ..models.schema import FieldControl, FormSchema
from ..observability.logging import get_logger
from ..observability.metrics import RuntimeMetrics
from ..store.state import SchemaState
from ..store.store import FormSchemaStore
from .compiler import RuntimeBuildResult, build
from .controls import ValueGroup
from .validators import ValidationErrors
from .visibility import VisibilityResult, evaluate_visibility

logger = get_logger(__name__)


class Submission(BaseModel):
    """The result of submitting the form.

    Attributes:
        value: Enabled values nested by group id and keyed by control key.
        valid: Whether every enabled control passes its validators.
        errors: Validator output per control key.
        submitted_json: ``value`` serialised as indented JSON.
    """

    value: dict[str, Any] = Field(default_factory=dict)
    valid: bool = Field(...)
    errors: dict[str, ValidationErrors] = Field(default_factory=dict)
    submitted_json: str = Field(...)

    def summary_json(self) -> str:
        """Value, validity and errors as one indented JSON document."""
        return json.dumps(
            {"value": self.value, "valid": self.valid, "errors": self.errors},
            indent=2,
            default=str,
        )


class FormRuntimeSession:
    """Live form for whichever schema the store currently holds."""

    def __init__(
        self,
        store: FormSchemaStore,
        *,
        config: Optional[BuilderConfig] = None,
        metrics: Optional[RuntimeMetrics] = None,
    ) -> None:
        self._store = store
        self._config = config or store.config
        self._metrics = metrics if metrics is not None else store.metrics
        self._schema: Optional[FormSchema] = None
        self._runtime: Optional[RuntimeBuildResult] = None
        self._visibility = VisibilityResult()
        self._unsubscribe_form: Optional[Callable[[], None]] = None
        self.submission: Optional[Submission] = None

        self._unsubscribe_store = store.subscribe(self._on_state)
        if store.schema is None:
            store.load_default()
        else:
            self._on_state(store.state)

    # -------------------- projections --------------------

    @property
    def config(self) -> BuilderConfig:
        return self._config

    @property
    def schema(self) -> Optional[FormSchema]:
        return self._schema

    @property
    def form(self) -> Optional[ValueGroup]:
        return self._runtime.form if self._runtime else None

    @property
    def controls_by_key(self) -> dict[str, FieldControl]:
        return self._runtime.controls_by_key if self._runtime else {}

    @property
    def visibility(self) -> VisibilityResult:
        return self._visibility

    @property
    def visible_control_keys(self) -> set[str]:
        return self._visibility.visible_control_keys

    @property
    def visible_group_ids(self) -> set[str]:
        return self._visibility.visible_group_ids

    @property
    def submitted(self) -> bool:
        return self.submission is not None

    def is_visible(self, key: str) -> bool:
        return key in self._visibility.visible_control_keys

    # -------------------- wiring --------------------

    def _on_state(self, state: SchemaState) -> None:
        schema = state.current_schema
        if schema is None or schema is self._schema:
            return
        self._load(schema)

    def rebuild(self) -> None:
        """Discards entered values and compiles the current schema again."""
        if self._schema is not None:
            self._load(self._schema)

    def _load(self, schema: FormSchema) -> None:
        if self._unsubscribe_form is not None:
            self._unsubscribe_form()

        self._schema = schema
        self._runtime = build(schema, metrics=self._metrics)
        self.submission = None
        self._evaluate()
        self._unsubscribe_form = self._runtime.form.subscribe(self._on_value)

    def _on_value(self, value: Any) -> None:
        self._evaluate()

    def _evaluate(self) -> None:
        if self._schema is None or self._runtime is None:
            return
        self._visibility = evaluate_visibility(
            self._schema.root,
            self._runtime.form,
            settle=self._config.settle_visibility,
            metrics=self._metrics,
        )

    # -------------------- input --------------------

    def set_value(self, key: str, value: Any) -> bool:
        """Sets the value of the first control named ``key``.

        Returns:
            False when no control has that key.
        """
        form = self.form
        leaf = form.find_leaf(key) if form is not None else None
        if leaf is None:
            return False
        leaf.set_value(value)
        return True

    def patch_values(self, values: Mapping[str, Any]) -> None:
        """Applies a nested value mapping and re-evaluates once."""
        if self.form is not None:
            self.form.patch_value(values)

    def submit(self) -> Submission:
        """Marks every control touched and captures the submission."""
        form = self.form
        if form is None:
            raise RuntimeError("No schema is loaded")

        form.mark_all_as_touched()
        value = form.value
        errors = form.errors_by_key()
        self.submission = Submission(
            value=value,
            valid=not errors,
            errors=errors,
            submitted_json=json.dumps(value, indent=2, default=str),
        )
        self._metrics.record_submit(self.submission.valid)
        logger.info(
            "Form submitted",
            extra={
                "extra_fields": {
                    "event": "form.submit",
                    "valid": self.submission.valid,
                    "error_keys": sorted(errors),
                }
            },
        )
        return self.submission

    def close(self) -> None:
        if self._unsubscribe_form is not None:
            self._unsubscribe_form()
            self._unsubscribe_form = None
        self._unsubscribe_store()
