"""Error taxonomy for memory budget calculation."""

from __future__ import annotations


class BudgetError(Exception):
    """Base class for fatal budget calculation errors."""


class InvalidArgumentError(BudgetError, ValueError):
    """Raised when calculator input violates the caller contract."""


class InsufficientMemoryError(BudgetError, RuntimeError):
    """Raised when the allocation cannot hold the reserved regions plus a minimum heap."""

    def __init__(
        self,
        message: str,
        *,
        minimum_required_mb: int,
        allocated_mb: int,
        overhead_mb: int,
        metaspace_mb: int = 0,
    ) -> None:
        super().__init__(message)
        self.minimum_required_mb = minimum_required_mb
        self.allocated_mb = allocated_mb
        self.overhead_mb = overhead_mb
        self.metaspace_mb = metaspace_mb
