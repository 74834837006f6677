"""Tests for the heap-only and three-region budget calculators."""

from __future__ import annotations

import pytest
from jvm_budget.budget import (
    FIXED_OVERHEAD_MB,
    LEGACY_FIXED_OVERHEAD_MB,
    calculate_heap_mb,
    calculate_memory_budget,
    evaluate_memory_budget,
    heap_only_flags,
)
from jvm_budget.errors import InsufficientMemoryError, InvalidArgumentError
from jvm_budget.observability import CollectingSink
from jvm_budget.schema import (
    MIN_HEAP_MB,
    MIN_METASPACE_MB,
    MIN_OVERHEAD_MB,
    BudgetConfig,
    BudgetFailure,
    BudgetSuccess,
    ConfiguredSetting,
    ErrorKind,
)


@pytest.mark.unit
def test_heap_only_uses_current_overhead_by_default() -> None:
    assert FIXED_OVERHEAD_MB == 128
    assert calculate_heap_mb(200) == 72


@pytest.mark.unit
def test_heap_only_legacy_overhead_is_selectable() -> None:
    assert calculate_heap_mb(200, fixed_overhead_mb=LEGACY_FIXED_OVERHEAD_MB) == 136


@pytest.mark.unit
def test_heap_only_accepts_exact_minimum() -> None:
    assert calculate_heap_mb(144) == MIN_HEAP_MB


@pytest.mark.unit
def test_heap_only_fails_below_minimum_heap() -> None:
    with pytest.raises(InsufficientMemoryError) as excinfo:
        calculate_heap_mb(140)

    assert excinfo.value.minimum_required_mb == 144
    assert excinfo.value.allocated_mb == 140
    assert "144m" in str(excinfo.value)


@pytest.mark.unit
@pytest.mark.parametrize("allocated_mb", [0, -512])
def test_heap_only_rejects_non_positive_allocation(allocated_mb: int) -> None:
    with pytest.raises(InvalidArgumentError):
        calculate_heap_mb(allocated_mb)


@pytest.mark.unit
def test_heap_only_flags_pin_heap() -> None:
    assert heap_only_flags(72) == "-Xms72m -Xmx72m"


@pytest.mark.unit
def test_first_attempt_with_defaults() -> None:
    budget = calculate_memory_budget(512, 1)

    assert budget.heap_mb == 320
    assert budget.metaspace_mb == 128
    assert budget.overhead_mb == 64
    assert budget.jvm_flags == "-XX:MaxMetaspaceSize=128m -Xms320m -Xmx320m"
    assert budget.advisories == ()


@pytest.mark.unit
def test_second_attempt_scales_reserved_regions() -> None:
    budget = calculate_memory_budget(512, 2)

    assert budget.overhead_mb == 128
    assert budget.metaspace_mb == 256
    assert budget.heap_mb == 128
    assert budget.attempt == 2


@pytest.mark.unit
def test_third_attempt_on_small_grant_fails_with_minimum() -> None:
    with pytest.raises(InsufficientMemoryError) as excinfo:
        calculate_memory_budget(256, 3)

    error = excinfo.value
    assert error.minimum_required_mb == 192 + 384 + 16
    assert error.allocated_mb == 256
    assert error.overhead_mb == 192
    assert error.metaspace_mb == 384


@pytest.mark.unit
def test_zero_overhead_is_clamped_with_advisory() -> None:
    sink = CollectingSink()
    budget = calculate_memory_budget(1000, 1, BudgetConfig(overhead_size_mb=0), sink=sink)

    assert budget.overhead_mb == MIN_OVERHEAD_MB
    assert budget.metaspace_mb == 128
    assert budget.heap_mb == 1000 - 32 - 128
    assert len(budget.advisories) == 1
    advisory = budget.advisories[0]
    assert advisory.setting is ConfiguredSetting.OVERHEAD_SIZE
    assert advisory.scaled_mb == 0
    assert advisory.floor_mb == MIN_OVERHEAD_MB
    assert sink.advisories == [advisory]
    assert "overhead_size" in sink.warnings[0]


@pytest.mark.unit
def test_clamp_applies_after_scaling() -> None:
    budget = calculate_memory_budget(2048, 3, BudgetConfig(overhead_size_mb=0))

    assert budget.overhead_mb == 32
    assert budget.metaspace_mb == 384


@pytest.mark.unit
def test_small_base_size_clears_floor_once_scaled() -> None:
    budget = calculate_memory_budget(2048, 2, BudgetConfig(metaspace_size_mb=40))

    assert budget.metaspace_mb == 80
    assert budget.advisories == ()


@pytest.mark.unit
def test_negative_metaspace_is_clamped() -> None:
    budget = calculate_memory_budget(2048, 2, BudgetConfig(metaspace_size_mb=-10))

    assert budget.metaspace_mb == MIN_METASPACE_MB
    assert budget.advisories[0].setting is ConfiguredSetting.METASPACE_SIZE
    assert budget.advisories[0].scaled_mb == -20


@pytest.mark.unit
@pytest.mark.parametrize(("allocated_mb", "attempt"), [(0, 1), (512, 0), (512, -1), (-1, 1)])
def test_rejects_non_positive_inputs(allocated_mb: int, attempt: int) -> None:
    with pytest.raises(InvalidArgumentError):
        calculate_memory_budget(allocated_mb, attempt)


@pytest.mark.unit
@pytest.mark.parametrize("attempt", [True, 1.5, "2"])
def test_rejects_non_integer_attempt(attempt: object) -> None:
    with pytest.raises(InvalidArgumentError):
        calculate_memory_budget(512, attempt)  # type: ignore[arg-type]


@pytest.mark.unit
@pytest.mark.parametrize("allocated_mb", [213, 256, 512, 1000, 4096, 65536])
def test_regions_sum_to_allocation(allocated_mb: int) -> None:
    budget = calculate_memory_budget(allocated_mb, 1)

    assert budget.heap_mb + budget.metaspace_mb + budget.overhead_mb == allocated_mb
    assert budget.heap_mb >= MIN_HEAP_MB
    assert budget.metaspace_mb >= MIN_METASPACE_MB
    assert budget.overhead_mb >= MIN_OVERHEAD_MB


@pytest.mark.unit
def test_heap_strictly_decreases_with_attempt_until_failure() -> None:
    heaps: list[int] = []
    attempt = 1
    while True:
        try:
            heaps.append(calculate_memory_budget(4096, attempt).heap_mb)
        except InsufficientMemoryError:
            break
        attempt += 1

    assert len(heaps) > 1
    assert all(later < earlier for earlier, later in zip(heaps, heaps[1:]))
    assert heaps[-1] >= MIN_HEAP_MB


@pytest.mark.unit
def test_flags_have_no_surrounding_whitespace() -> None:
    flags = calculate_memory_budget(3000, 2).jvm_flags

    assert flags == flags.strip()
    assert flags.split(" ") == ["-XX:MaxMetaspaceSize=256m", "-Xms2616m", "-Xmx2616m"]


@pytest.mark.unit
def test_evaluate_returns_success() -> None:
    outcome = evaluate_memory_budget(512, 1)

    assert isinstance(outcome, BudgetSuccess)
    assert outcome.status == "ok"
    assert outcome.budget.heap_mb == 320


@pytest.mark.unit
def test_evaluate_tags_insufficient_memory() -> None:
    outcome = evaluate_memory_budget(256, 3)

    assert isinstance(outcome, BudgetFailure)
    assert outcome.kind is ErrorKind.INSUFFICIENT_MEMORY
    assert outcome.minimum_required_mb == 592
    assert outcome.overhead_mb == 192
    assert outcome.metaspace_mb == 384


@pytest.mark.unit
def test_evaluate_tags_invalid_argument() -> None:
    outcome = evaluate_memory_budget(512, 0)

    assert isinstance(outcome, BudgetFailure)
    assert outcome.kind is ErrorKind.INVALID_ARGUMENT
    assert outcome.minimum_required_mb is None


@pytest.mark.unit
@pytest.mark.parametrize("fixed_overhead_mb", [-50, True, 1.5])
def test_heap_only_rejects_invalid_fixed_overhead(fixed_overhead_mb: object) -> None:
    with pytest.raises(InvalidArgumentError, match="fixed_overhead_mb"):
        calculate_heap_mb(100, fixed_overhead_mb=fixed_overhead_mb)  # type: ignore[arg-type]


@pytest.mark.unit
def test_heap_only_accepts_zero_fixed_overhead() -> None:
    assert calculate_heap_mb(100, fixed_overhead_mb=0) == 100


@pytest.mark.unit
def test_advisories_reach_sink_before_insufficient_memory() -> None:
    sink = CollectingSink()

    with pytest.raises(InsufficientMemoryError):
        calculate_memory_budget(100, 1, BudgetConfig(overhead_size_mb=0), sink=sink)

    assert [advisory.setting for advisory in sink.advisories] == [
        ConfiguredSetting.OVERHEAD_SIZE
    ]
