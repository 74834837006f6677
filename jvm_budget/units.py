"""Memory quantity parsing helpers."""

from __future__ import annotations

import re

from jvm_budget.errors import InvalidArgumentError

MEMORY_QUANTITY_PATTERN = re.compile(
    r"^(?P<amount>\d+(?:\.\d+)?)\s*\.?\s*(?P<unit>[kmgt]?b)?$", re.IGNORECASE
)
BYTES_PER_MB = 1024 * 1024
UNIT_BYTES = {
    "b": 1,
    "kb": 1024,
    "mb": BYTES_PER_MB,
    "gb": 1024 * BYTES_PER_MB,
    "tb": 1024 * 1024 * BYTES_PER_MB,
}


def parse_memory_mb(value: int | str) -> int:
    """Parse a memory quantity into whole megabytes, flooring partial megabytes.

    Plain integers and unit-less strings are taken as megabytes. Strings may carry a
    B/KB/MB/GB/TB unit, optionally separated by whitespace or a dot ("2 GB", "2.GB").
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid memory quantity '{value}'.")
    if isinstance(value, int):
        megabytes = value
    elif not isinstance(value, str):
        raise InvalidArgumentError(f"Invalid memory quantity {value!r}.")
    else:
        match = MEMORY_QUANTITY_PATTERN.fullmatch(value.strip())
        if match is None:
            raise InvalidArgumentError(
                f"Invalid memory quantity '{value}'. Expected e.g. '512', '512 MB' or '2.GB'."
            )
        unit = (match.group("unit") or "mb").lower()
        amount = match.group("amount")
        if "." in amount:
            whole, fraction = amount.split(".")
            scale = 10 ** len(fraction)
            total_bytes = (int(whole) * scale + int(fraction)) * UNIT_BYTES[unit] // scale
        else:
            total_bytes = int(amount) * UNIT_BYTES[unit]
        megabytes = total_bytes // BYTES_PER_MB

    if megabytes <= 0:
        raise InvalidArgumentError(
            f"Invalid memory quantity '{value}'. Expected at least one whole megabyte."
        )
    return megabytes
