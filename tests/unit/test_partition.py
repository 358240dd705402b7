from __future__ import annotations

import pytest

from domainscout.core.orchestrator import interleave_partitions, partition_domains

SEVEN_DOMAINS = [f"d{i}.com" for i in range(1, 8)]


def test_round_robin_split_sizes() -> None:
    partitions = partition_domains(SEVEN_DOMAINS, 3)

    assert [len(p) for p in partitions] == [3, 2, 2]
    assert partitions[0] == ["d1.com", "d4.com", "d7.com"]
    assert partitions[1] == ["d2.com", "d5.com"]
    assert partitions[2] == ["d3.com", "d6.com"]


def test_partitions_cover_input_exactly_once() -> None:
    partitions = partition_domains(SEVEN_DOMAINS, 4)

    flat = [d for p in partitions for d in p]
    assert sorted(flat) == sorted(SEVEN_DOMAINS)
    assert interleave_partitions(partitions) == SEVEN_DOMAINS


def test_fewer_domains_than_sessions() -> None:
    partitions = partition_domains(["a.com", "b.com"], 5)

    assert partitions == [["a.com"], ["b.com"]]


def test_empty_input_yields_no_partitions() -> None:
    assert partition_domains([], 3) == []


def test_single_session_keeps_order() -> None:
    assert partition_domains(SEVEN_DOMAINS, 1) == [SEVEN_DOMAINS]


@pytest.mark.parametrize("max_sessions", [0, -1])
def test_invalid_session_count_rejected(max_sessions: int) -> None:
    with pytest.raises(ValueError):
        partition_domains(["a.com"], max_sessions)


def test_partition_is_deterministic() -> None:
    assert partition_domains(SEVEN_DOMAINS, 3) == partition_domains(list(SEVEN_DOMAINS), 3)
