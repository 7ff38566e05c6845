"""In-process counters for store commands, runtime builds and submissions.

One ``RuntimeMetrics`` is owned by a store and shared with the sessions and
visibility passes that follow it.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RuntimeMetrics(BaseModel):
    model_config = ConfigDict(extra="forbid")

    counters: dict[str, int] = Field(
        default_factory=dict,
        description="Named counters for store and runtime outcomes.",
    )

    def inc(self, key: str, n: int = 1) -> None:
        self.counters[key] = int(self.counters.get(key, 0)) + n

    def get(self, key: str) -> int:
        return int(self.counters.get(key, 0))

    def record_command(self, applied: bool, code: Optional[str] = None) -> None:
        """Counts a store command; rejections are also counted per code."""
        if applied:
            self.inc("store.applied")
            return
        self.inc("store.rejected")
        if code:
            self.inc(f"store.rejected.{code}")

    def record_visibility_pass(self, toggled: int) -> None:
        self.inc("visibility.pass")
        self.inc("visibility.toggled", toggled)

    def record_submit(self, valid: bool) -> None:
        self.inc("form.submit")
        if not valid:
            self.inc("form.submit.invalid")

    def rejection_rate(self) -> float:
        """Share of store commands that were rejected, 0.0 when none ran."""
        total = self.get("store.applied") + self.get("store.rejected")
        if total == 0:
            return 0.0
        return self.get("store.rejected") / total
