"""Runtime configuration for the form builder.

Values come from ``FORM_BUILDER_*`` environment variables; anything not set
falls back to the defaults declared on ``BuilderConfig``.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "FORM_BUILDER_"


class BuilderConfig(BaseModel):
    """
    Static configuration shared by the store, the runtime and the outer
    surfaces.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    default_form_name: str = Field(
        default="Contact Form",
        description="Name given to the starter schema.",
    )
    schema_version: str = Field(
        default="1.0.0",
        description="Version stamp written into new schemas.",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level used by setup_logging.",
    )
    settle_visibility: bool = Field(
        default=True,
        description=(
            "Repeat the visibility pass within one edit until no control "
            "changes its enabled state."
        ),
    )
    server_name: str = Field(
        default="127.0.0.1", description="Host the preview UI binds to."
    )
    server_port: int = Field(
        default=7860, ge=1, le=65535, description="Port of the preview UI."
    )


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_config(environ: Optional[Mapping[str, str]] = None) -> BuilderConfig:
    """Builds a configuration from environment variables.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.

    Returns:
        A frozen BuilderConfig.
    """
    env = os.environ if environ is None else environ
    values: dict = {}

    for name, field in BuilderConfig.model_fields.items():
        raw = env.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        if field.annotation is bool:
            values[name] = _as_bool(raw)
        else:
            values[name] = raw

    if "log_level" not in values and env.get("LOG_LEVEL"):
        values["log_level"] = env["LOG_LEVEL"]

    if "log_level" in values:
        values["log_level"] = str(values["log_level"]).upper()

    return BuilderConfig(**values)
