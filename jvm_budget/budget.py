"""JVM memory budget calculators.

Two calculators derive JVM sizes from the memory granted to a pipeline task:

* ``calculate_heap_mb`` reserves one fixed overhead and gives the rest to the heap.
* ``calculate_memory_budget`` splits the grant into misc overhead, metaspace and heap.
  The overhead and metaspace scale linearly with the attempt number so a retried task
  with a larger grant also gets larger fixed-cost regions. Both are clamped up to a
  floor after scaling.

Every function here is pure: no I/O, no module state. Advisories are returned on the
budget and optionally pushed to a caller-owned sink.
"""

from __future__ import annotations

from jvm_budget.errors import BudgetError, InsufficientMemoryError, InvalidArgumentError
from jvm_budget.observability import AdvisorySink
from jvm_budget.schema import (
    MIN_HEAP_MB,
    MIN_METASPACE_MB,
    MIN_OVERHEAD_MB,
    BudgetConfig,
    BudgetFailure,
    BudgetOutcome,
    BudgetSuccess,
    ClampedConfiguration,
    ConfiguredSetting,
    ErrorKind,
    MemoryBudget,
)

FIXED_OVERHEAD_MB = 128
# Overhead used by the heap-only calculator before it was raised to 128m.
LEGACY_FIXED_OVERHEAD_MB = 64


def _require_positive_int(value: object, *, name: str) -> int:
    """Validate a strictly positive integer argument."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}.")
    if value <= 0:
        raise InvalidArgumentError(f"Invalid {name} '{value}'. Expected a positive integer.")
    return value


def _require_non_negative_int(value: object, *, name: str) -> int:
    """Validate a zero or positive integer argument."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}.")
    if value < 0:
        raise InvalidArgumentError(f"Invalid {name} '{value}'. Expected a non-negative integer.")
    return value


def calculate_heap_mb(allocated_mb: int, *, fixed_overhead_mb: int = FIXED_OVERHEAD_MB) -> int:
    """Return the heap size left after reserving a fixed overhead from the allocation."""
    allocated_mb = _require_positive_int(allocated_mb, name="allocated_mb")
    fixed_overhead_mb = _require_non_negative_int(fixed_overhead_mb, name="fixed_overhead_mb")
    heap_mb = allocated_mb - fixed_overhead_mb
    if heap_mb < MIN_HEAP_MB:
        minimum_required_mb = fixed_overhead_mb + MIN_HEAP_MB
        raise InsufficientMemoryError(
            f"Task memory of {allocated_mb}m is too small: at least {minimum_required_mb}m "
            f"is required ({fixed_overhead_mb}m overhead + {MIN_HEAP_MB}m minimum heap).",
            minimum_required_mb=minimum_required_mb,
            allocated_mb=allocated_mb,
            overhead_mb=fixed_overhead_mb,
        )
    return heap_mb


def heap_only_flags(heap_mb: int) -> str:
    """Render pinned heap flags for the heap-only calculator."""
    return f"-Xms{heap_mb}m -Xmx{heap_mb}m"


def _scale_and_clamp(
    setting: ConfiguredSetting,
    configured_mb: int,
    *,
    attempt: int,
    floor_mb: int,
    advisories: list[ClampedConfiguration],
) -> int:
    """Scale a base size by attempt, then raise it to the floor if it fell short."""
    scaled_mb = configured_mb * attempt
    if scaled_mb >= floor_mb:
        return scaled_mb
    advisories.append(
        ClampedConfiguration(
            setting=setting,
            configured_mb=configured_mb,
            attempt=attempt,
            scaled_mb=scaled_mb,
            floor_mb=floor_mb,
        )
    )
    return floor_mb


def calculate_memory_budget(
    allocated_mb: int,
    attempt: int = 1,
    config: BudgetConfig | None = None,
    *,
    sink: AdvisorySink | None = None,
) -> MemoryBudget:
    """Split a task's memory grant into overhead, metaspace and a pinned heap.

    Raises ``InvalidArgumentError`` for a non-positive allocation or attempt, and
    ``InsufficientMemoryError`` when the heap would fall below ``MIN_HEAP_MB``.
    """
    allocated_mb = _require_positive_int(allocated_mb, name="allocated_mb")
    attempt = _require_positive_int(attempt, name="attempt")
    config = config or BudgetConfig()

    advisories: list[ClampedConfiguration] = []
    overhead_mb = _scale_and_clamp(
        ConfiguredSetting.OVERHEAD_SIZE,
        config.overhead_size_mb,
        attempt=attempt,
        floor_mb=MIN_OVERHEAD_MB,
        advisories=advisories,
    )
    metaspace_mb = _scale_and_clamp(
        ConfiguredSetting.METASPACE_SIZE,
        config.metaspace_size_mb,
        attempt=attempt,
        floor_mb=MIN_METASPACE_MB,
        advisories=advisories,
    )
    if sink is not None:
        for advisory in advisories:
            sink(advisory)

    heap_mb = allocated_mb - overhead_mb - metaspace_mb
    if heap_mb < MIN_HEAP_MB:
        minimum_required_mb = overhead_mb + metaspace_mb + MIN_HEAP_MB
        raise InsufficientMemoryError(
            f"Task memory of {allocated_mb}m is too small for attempt {attempt}: "
            f"at least {minimum_required_mb}m is required ({overhead_mb}m overhead + "
            f"{metaspace_mb}m metaspace + {MIN_HEAP_MB}m minimum heap).",
            minimum_required_mb=minimum_required_mb,
            allocated_mb=allocated_mb,
            overhead_mb=overhead_mb,
            metaspace_mb=metaspace_mb,
        )

    return MemoryBudget(
        allocated_mb=allocated_mb,
        attempt=attempt,
        overhead_mb=overhead_mb,
        metaspace_mb=metaspace_mb,
        heap_mb=heap_mb,
        advisories=tuple(advisories),
    )


def failure_from_error(error: BudgetError) -> BudgetFailure:
    """Convert a fatal calculator error into a structured failure result."""
    if isinstance(error, InsufficientMemoryError):
        return BudgetFailure(
            kind=ErrorKind.INSUFFICIENT_MEMORY,
            message=str(error),
            minimum_required_mb=error.minimum_required_mb,
            allocated_mb=error.allocated_mb,
            overhead_mb=error.overhead_mb,
            metaspace_mb=error.metaspace_mb,
        )
    return BudgetFailure(kind=ErrorKind.INVALID_ARGUMENT, message=str(error))


def evaluate_memory_budget(
    allocated_mb: int,
    attempt: int = 1,
    config: BudgetConfig | None = None,
    *,
    sink: AdvisorySink | None = None,
) -> BudgetOutcome:
    """Run ``calculate_memory_budget`` and return a success or a tagged failure."""
    try:
        budget = calculate_memory_budget(allocated_mb, attempt, config, sink=sink)
    except BudgetError as error:
        return failure_from_error(error)
    return BudgetSuccess(budget=budget)
