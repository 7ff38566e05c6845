from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SchemaModel(BaseModel):
    """
    Base class for every node of a form schema.

    Schema values are immutable: a change always produces a new model.
    Unknown fields are rejected, enum members are stored as their values
    and the JSON document uses camelCase keys while Python code keeps
    snake_case attribute names. Both spellings are accepted on input.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )


NodeId = str
ControlKey = str

GroupType = Literal["group"]
Severity = Literal["error", "warning"]
