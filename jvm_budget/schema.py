"""Data contracts for memory budgets and budget outcomes."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    TypeAdapter,
    computed_field,
    model_validator,
)

MIN_HEAP_MB = 16
MIN_OVERHEAD_MB = 32
MIN_METASPACE_MB = 64
DEFAULT_OVERHEAD_SIZE_MB = 64
DEFAULT_METASPACE_SIZE_MB = 128


class ConfiguredSetting(StrEnum):
    """Named overrides a caller can supply."""

    OVERHEAD_SIZE = "overhead_size"
    METASPACE_SIZE = "metaspace_size"


class ErrorKind(StrEnum):
    """Kinds of fatal budget calculation errors."""

    INVALID_ARGUMENT = "invalid_argument"
    INSUFFICIENT_MEMORY = "insufficient_memory"


class BudgetConfig(BaseModel):
    """Per-attempt base sizes for the reserved regions, before scaling and clamping."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    overhead_size_mb: StrictInt = DEFAULT_OVERHEAD_SIZE_MB
    metaspace_size_mb: StrictInt = DEFAULT_METASPACE_SIZE_MB


class ClampedConfiguration(BaseModel):
    """Advisory raised when a scaled override was raised to its floor."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    setting: ConfiguredSetting
    configured_mb: int
    attempt: int = Field(ge=1)
    scaled_mb: int
    floor_mb: int

    @property
    def message(self) -> str:
        """Human-readable advisory text."""
        return (
            f"{self.setting} of {self.configured_mb}m scaled by attempt {self.attempt} "
            f"gives {self.scaled_mb}m, below the {self.floor_mb}m minimum; "
            f"using {self.floor_mb}m."
        )


class MemoryBudget(BaseModel):
    """Validated JVM memory budget for one task attempt."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    allocated_mb: int = Field(gt=0)
    attempt: int = Field(default=1, ge=1)
    overhead_mb: int = Field(ge=MIN_OVERHEAD_MB)
    metaspace_mb: int = Field(ge=MIN_METASPACE_MB)
    heap_mb: int = Field(ge=MIN_HEAP_MB)
    advisories: tuple[ClampedConfiguration, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def jvm_flags(self) -> str:
        """Flags pinning the heap and capping metaspace, for unquoted shell interpolation."""
        return (
            f"-XX:MaxMetaspaceSize={self.metaspace_mb}m "
            f"-Xms{self.heap_mb}m -Xmx{self.heap_mb}m"
        )

    @model_validator(mode="before")
    @classmethod
    def drop_derived_flags(cls, data: object) -> object:
        """Ignore a serialized jvm_flags value; it is always re-derived from the sizes."""
        if isinstance(data, dict) and "jvm_flags" in data:
            return {key: value for key, value in data.items() if key != "jvm_flags"}
        return data

    @model_validator(mode="after")
    def validate_regions_sum(self) -> MemoryBudget:
        """Validate that the three regions add up to the allocation exactly."""
        if self.overhead_mb + self.metaspace_mb + self.heap_mb != self.allocated_mb:
            raise ValueError("overhead_mb + metaspace_mb + heap_mb must equal allocated_mb")
        return self


class BudgetSuccess(BaseModel):
    """Successful budget calculation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["ok"] = "ok"
    budget: MemoryBudget


class BudgetFailure(BaseModel):
    """Fatal budget calculation error with diagnostics."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["error"] = "error"
    kind: ErrorKind
    message: str = Field(min_length=1)
    minimum_required_mb: int | None = None
    allocated_mb: int | None = None
    overhead_mb: int | None = None
    metaspace_mb: int | None = None


BudgetOutcome = Annotated[BudgetSuccess | BudgetFailure, Field(discriminator="status")]
BUDGET_OUTCOME_ADAPTER: TypeAdapter[BudgetSuccess | BudgetFailure] = TypeAdapter(BudgetOutcome)
