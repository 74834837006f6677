"""Resolution of named budget overrides from callers, pipeline params and environment.

Unlike the calculators, ``config_from_env`` and ``resolve_budget_config`` touch process
state: they load ``.env`` from the working directory into ``os.environ`` (existing
variables win). Resolve once per invocation and pass the resulting ``BudgetConfig`` on.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from jvm_budget.errors import InvalidArgumentError
from jvm_budget.schema import BudgetConfig, ConfiguredSetting

OVERHEAD_SIZE_ENV_VAR = "JVM_BUDGET_OVERHEAD_SIZE"
METASPACE_SIZE_ENV_VAR = "JVM_BUDGET_METASPACE_SIZE"
SETTING_ENV_VARS = {
    ConfiguredSetting.OVERHEAD_SIZE: OVERHEAD_SIZE_ENV_VAR,
    ConfiguredSetting.METASPACE_SIZE: METASPACE_SIZE_ENV_VAR,
}


def _parse_size(value: object, *, source: str) -> int:
    """Parse one override value into whole megabytes."""
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{source} must be an integer number of MB, got {value!r}.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise InvalidArgumentError(
                f"{source} must be an integer number of MB, got '{value}'."
            ) from error
    raise InvalidArgumentError(f"{source} must be an integer number of MB, got {value!r}.")


def _apply_sizes(base: BudgetConfig, sizes: dict[str, int], *, source: str) -> BudgetConfig:
    """Return a validated copy of ``base`` with the given sizes replaced."""
    try:
        return BudgetConfig.model_validate({**base.model_dump(), **sizes})
    except ValidationError as error:
        raise InvalidArgumentError(f"Invalid {source} override: {error}") from error


def _lookup_sizes(lookup: Mapping[str, object], *, source: str) -> dict[str, int]:
    """Read the named overrides present in a mapping, skipping blank values."""
    sizes: dict[str, int] = {}
    for setting in ConfiguredSetting:
        value = lookup.get(setting.value)
        if value is None or value == "":
            continue
        sizes[f"{setting.value}_mb"] = _parse_size(value, source=f"{source} '{setting.value}'")
    return sizes


def config_from_lookup(
    lookup: Mapping[str, object],
    *,
    defaults: BudgetConfig | None = None,
) -> BudgetConfig:
    """Build a config from a params-style mapping keyed by overhead_size/metaspace_size."""
    base = defaults or BudgetConfig()
    return _apply_sizes(base, _lookup_sizes(lookup, source="Parameter"), source="parameter")


def config_from_env(*, defaults: BudgetConfig | None = None) -> BudgetConfig:
    """Build a config from JVM_BUDGET_* environment variables, loading .env if present."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    base = defaults or BudgetConfig()
    sizes: dict[str, int] = {}
    for setting, env_var in SETTING_ENV_VARS.items():
        value = os.getenv(env_var)
        if value is None or value.strip() == "":
            continue
        sizes[f"{setting.value}_mb"] = _parse_size(value, source=env_var)
    return _apply_sizes(base, sizes, source="environment")


def resolve_budget_config(
    *,
    overhead_size: int | None = None,
    metaspace_size: int | None = None,
    lookup: Mapping[str, object] | None = None,
) -> BudgetConfig:
    """Resolve overrides once: explicit value > lookup mapping > environment > default."""
    config = config_from_env()
    if lookup is not None:
        config = config_from_lookup(lookup, defaults=config)
    explicit = {
        ConfiguredSetting.OVERHEAD_SIZE: overhead_size,
        ConfiguredSetting.METASPACE_SIZE: metaspace_size,
    }
    sizes = {
        f"{setting.value}_mb": _parse_size(value, source=f"Argument '{setting.value}'")
        for setting, value in explicit.items()
        if value is not None
    }
    return _apply_sizes(config, sizes, source="argument")
