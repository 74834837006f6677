"""Advisory diagnostics channel for budget calculation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from jvm_budget.schema import ClampedConfiguration


class AdvisorySink(Protocol):
    """Receiver for non-fatal advisories raised during a calculation."""

    def __call__(self, advisory: ClampedConfiguration) -> None:
        """Record one advisory."""


@dataclass(slots=True)
class CollectingSink:
    """Sink that keeps advisories in arrival order."""

    advisories: list[ClampedConfiguration] = field(default_factory=list)

    def __call__(self, advisory: ClampedConfiguration) -> None:
        self.advisories.append(advisory)

    @property
    def warnings(self) -> list[str]:
        """Advisory messages as plain text."""
        return [advisory.message for advisory in self.advisories]
