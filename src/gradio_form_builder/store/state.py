"""State held by the schema store and the results of its commands."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.enums import CommandStatus
from ..models.schema import FormSchema


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SchemaState(BaseModel):
    """
    One immutable snapshot of everything the store owns.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    current_schema: Optional[FormSchema] = Field(
        default=None, description="The authoritative schema, if loaded."
    )
    selected_node_id: Optional[str] = Field(
        default=None, description="Id of the node selected in the editor."
    )
    revision: int = Field(
        default=0,
        ge=0,
        description="Incremented on every schema mutation.",
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        description="When the schema was last mutated.",
    )
    retired_ids: frozenset[str] = Field(
        default_factory=frozenset,
        description="Ids removed from the current schema; never reused.",
    )


class CommandError(BaseModel):
    """Why a command was not applied.

    Attributes:
        code: Machine-readable reason (e.g., 'node.not_found').
        detail: Human-readable explanation.
    """

    code: str = Field(..., description="Machine-readable reason.")
    detail: str = Field(..., description="Human-readable explanation.")


class CommandResult(BaseModel):
    """The outcome of dispatching one command to the store.

    Attributes:
        command: Name of the command.
        status: APPLIED or REJECTED.
        message: Summary suitable for a toast.
        revision: Store revision after the command.
        timestamp: When the command finished.
        error: Set when the command was rejected.
    """

    model_config = ConfigDict(use_enum_values=True)

    command: str = Field(..., description="Name of the command.")
    status: CommandStatus = Field(..., description="APPLIED or REJECTED.")
    message: str = Field(default="", description="Summary for the user.")
    revision: int = Field(..., description="Store revision afterwards.")
    timestamp: datetime = Field(
        default_factory=_utcnow, description="When the command finished."
    )
    error: Optional[CommandError] = Field(
        default=None, description="Set when the command was rejected."
    )

    @property
    def applied(self) -> bool:
        return self.status == CommandStatus.APPLIED
