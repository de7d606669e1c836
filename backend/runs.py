"""Run-length helpers shared by plans and performed-set ledgers.

A planned set config stores ``count`` identical sets in one row and a
finished exercise is written back the same way, so both directions go
through these two functions.
"""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def encode_runs(
    items: Iterable[T], key: Callable[[T], object] | None = None
) -> list[tuple[int, T]]:
    """Collapse consecutive equal ``items`` into ``(count, item)`` pairs.

    ``key`` selects what is compared; by default items are compared
    directly. The first item of each run is kept as its representative.
    """

    runs: list[tuple[int, T]] = []
    current = None
    count = 0
    marker = None
    for item in items:
        value = key(item) if key else item
        if count and value == marker:
            count += 1
            continue
        if count:
            runs.append((count, current))
        current = item
        marker = value
        count = 1
    if count:
        runs.append((count, current))
    return runs


def decode_runs(runs: Iterable[tuple[int, T]]) -> list[T]:
    """Expand ``(count, item)`` pairs back into a flat list."""

    expanded: list[T] = []
    for count, item in runs:
        if count < 0:
            raise ValueError("Run count cannot be negative")
        expanded.extend([item] * count)
    return expanded
