"""Round-robin partitioning of domains across sessions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def partition_domains(domains: Sequence[T], max_sessions: int) -> list[list[T]]:
    """Split ``domains`` into at most ``max_sessions`` ordered partitions.

    Item ``i`` goes to partition ``i % k`` with ``k = min(max_sessions, len(domains))``,
    so partition sizes differ by at most one and the split is deterministic.

        >>> partition_domains(["a", "b", "c", "d", "e"], 3)
        [['a', 'd'], ['b', 'e'], ['c']]

    Raises:
        ValueError: If max_sessions is less than 1
    """
    if max_sessions < 1:
        raise ValueError(f"max_sessions must be >= 1, got {max_sessions}")

    count = min(max_sessions, len(domains))
    partitions: list[list[T]] = [[] for _ in range(count)]

    for index, domain in enumerate(domains):
        partitions[index % count].append(domain)

    return partitions


def interleave_partitions(partitions: Sequence[Sequence[T]]) -> list[T]:
    """Inverse of partition_domains: take one item from each partition in turn."""
    merged: list[T] = []
    longest = max((len(p) for p in partitions), default=0)

    for row in range(longest):
        for partition in partitions:
            if row < len(partition):
                merged.append(partition[row])

    return merged
