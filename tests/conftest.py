"""Shared pytest fixtures and test-run configuration."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from jvm_budget.config import METASPACE_SIZE_ENV_VAR, OVERHEAD_SIZE_ENV_VAR


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom pytest options for integration test execution."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked as integration (spawn the CLI as a subprocess).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly enabled."""
    run_integration = config.getoption("--run-integration")
    env_enabled = os.getenv("RUN_INTEGRATION_TESTS") == "1"
    if run_integration or env_enabled:
        return

    skip_marker = pytest.mark.skip(
        reason=(
            "Integration tests are disabled by default. "
            "Use --run-integration or set RUN_INTEGRATION_TESTS=1."
        )
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture
def clean_budget_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run in an empty directory with budget env vars unset and restored afterwards."""
    for env_var in (OVERHEAD_SIZE_ENV_VAR, METASPACE_SIZE_ENV_VAR):
        # setenv first so monkeypatch also removes values a .env file loads later.
        monkeypatch.setenv(env_var, "0")
        monkeypatch.delenv(env_var)
    monkeypatch.chdir(tmp_path)
    return tmp_path
