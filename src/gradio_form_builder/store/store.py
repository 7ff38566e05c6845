"""The observable owner of the canonical form schema."""

from typing import Any, Callable, Optional

from ..config import BuilderConfig
from ..models.enums import CommandStatus
from ..models.schema import FieldNode, FormSchema
from ..models.tree import find_node
from ..observability.logging import get_logger
from ..observability.metrics import RuntimeMetrics
from .commands import (
    COMMAND_HANDLERS,
    AddNode,
    CommandHandler,
    LoadDefault,
    LoadSchema,
    MoveNode,
    RemoveNode,
    SelectNode,
    UpdateNode,
)
from .state import CommandError, CommandResult, SchemaState

logger = get_logger(__name__)

StateListener = Callable[[SchemaState], None]


class FormSchemaStore:
    """Single owner of the schema being edited.

    The store keeps one immutable ``SchemaState``. Commands are turned into
    a new state by pure handlers; when a handler accepts the command the new
    state replaces the old one and every subscriber is called with it.
    Rejected commands leave the state untouched and notify nobody.
    """

    def __init__(
        self,
        *,
        config: Optional[BuilderConfig] = None,
        metrics: Optional[RuntimeMetrics] = None,
        handlers: Optional[dict[str, CommandHandler]] = None,
    ) -> None:
        self._config = config or BuilderConfig()
        self._metrics = metrics if metrics is not None else RuntimeMetrics()
        self._handlers = dict(handlers or COMMAND_HANDLERS)
        self._state = SchemaState()
        self._listeners: list[StateListener] = []

    # -------------------- projections --------------------

    @property
    def state(self) -> SchemaState:
        return self._state

    @property
    def schema(self) -> Optional[FormSchema]:
        return self._state.current_schema

    @property
    def selected_node_id(self) -> Optional[str]:
        return self._state.selected_node_id

    @property
    def selected_node(self) -> Optional[FieldNode]:
        schema = self._state.current_schema
        if schema is None:
            return None
        return find_node(schema.root, self._state.selected_node_id)

    @property
    def last_updated(self) -> int:
        return self._state.revision

    @property
    def metrics(self) -> RuntimeMetrics:
        return self._metrics

    @property
    def config(self) -> BuilderConfig:
        return self._config

    # -------------------- subscription --------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Registers a callback invoked with every new state.

        Args:
            listener: Callable receiving the new SchemaState.

        Returns:
            A function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.exception(f"Error in schema store listener: {str(e)}")

    # -------------------- dispatch --------------------

    def dispatch(self, command: Any) -> CommandResult:
        """Applies one command.

        Args:
            command: One of the command models from ``store.commands``.

        Returns:
            A CommandResult describing whether a new snapshot was published.
        """
        handler = self._handlers.get(command.command)
        if handler is None:
            return self._reject(
                command.command,
                "command.unknown",
                f"No handler for command: {command.command}",
            )

        reduction = handler(self._state, command, self._config)
        if reduction.state is None:
            return self._reject(
                command.command, reduction.code or "command.rejected", reduction.message
            )

        self._state = reduction.state
        self._metrics.record_command(True)
        logger.info(
            reduction.message,
            extra={
                "extra_fields": {
                    "event": "store.applied",
                    "command": command.command,
                    "revision": self._state.revision,
                }
            },
        )
        self._notify()
        return CommandResult(
            command=command.command,
            status=CommandStatus.APPLIED,
            message=reduction.message,
            revision=self._state.revision,
        )

    def _reject(self, command: str, code: str, detail: str) -> CommandResult:
        self._metrics.record_command(False, code)
        logger.info(
            f"Command {command} rejected: {detail}",
            extra={
                "extra_fields": {
                    "event": "store.rejected",
                    "command": command,
                    "code": code,
                }
            },
        )
        return CommandResult(
            command=command,
            status=CommandStatus.REJECTED,
            message=detail,
            revision=self._state.revision,
            error=CommandError(code=code, detail=detail),
        )

    # -------------------- commands --------------------

    def load_default(self) -> CommandResult:
        return self.dispatch(LoadDefault())

    def load(self, schema: FormSchema) -> CommandResult:
        return self.dispatch(LoadSchema(form=schema))

    def select(self, node_id: Optional[str]) -> CommandResult:
        return self.dispatch(SelectNode(node_id=node_id))

    def update(self, patch: dict[str, Any]) -> CommandResult:
        return self.dispatch(UpdateNode(patch=patch))

    def add(
        self, parent_group_id: str, node: FieldNode, index: Optional[int] = None
    ) -> CommandResult:
        return self.dispatch(
            AddNode(parent_group_id=parent_group_id, node=node, index=index)
        )

    def remove(self, node_id: str) -> CommandResult:
        return self.dispatch(RemoveNode(node_id=node_id))

    def move(
        self, node_id: str, target_group_id: str, index: Optional[int] = None
    ) -> CommandResult:
        return self.dispatch(
            MoveNode(node_id=node_id, target_group_id=target_group_id, index=index)
        )
