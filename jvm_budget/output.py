"""Budget rendering for shell interpolation, reports and JSON artifacts."""

from __future__ import annotations

from jvm_budget.schema import BUDGET_OUTCOME_ADAPTER, BudgetFailure, BudgetOutcome, MemoryBudget


def render_shell_flags(budget: MemoryBudget) -> str:
    """Render the flag line, one line with no quoting."""
    return budget.jvm_flags


def render_outcome_json(outcome: BudgetOutcome) -> str:
    """Render a budget outcome as indented JSON."""
    return BUDGET_OUTCOME_ADAPTER.dump_json(outcome, indent=2).decode("utf-8")


def render_markdown_report(outcome: BudgetOutcome) -> str:
    """Render a minimal markdown report from a budget outcome."""
    if isinstance(outcome, BudgetFailure):
        lines = ["# Memory budget", "", f"Status: `{outcome.status}` ({outcome.kind})", ""]
        lines.append(outcome.message)
        if outcome.minimum_required_mb is not None:
            lines.append("")
            lines.append(f"Minimum required allocation: {outcome.minimum_required_mb}m")
        return "\n".join(lines)

    budget = outcome.budget
    lines = [f"# Memory budget (attempt {budget.attempt})", "", f"Status: `{outcome.status}`", ""]
    lines.append("## Regions")
    lines.append(f"- Allocated: {budget.allocated_mb}m")
    lines.append(f"- Heap: {budget.heap_mb}m")
    lines.append(f"- Metaspace: {budget.metaspace_mb}m")
    lines.append(f"- Overhead: {budget.overhead_mb}m")
    lines.append("")
    lines.append("## JVM flags")
    lines.append(f"`{budget.jvm_flags}`")
    lines.append("")
    lines.append("## Advisories")
    if not budget.advisories:
        lines.append("- None.")
        return "\n".join(lines)

    for advisory in budget.advisories:
        lines.append(f"- {advisory.message}")
    return "\n".join(lines)
