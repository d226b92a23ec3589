"""Tests for round-robin task allocation."""

import pytest

from src.models.ingestion import ValidatedRow
from src.services.task_allocator import allocate, distribution_summary, select_roster
from src.utils.errors import InsufficientAgentsError
from tests.utils.assertions import assert_round_robin_counts
from tests.utils.factories import create_agents


def _rows(count: int) -> list[ValidatedRow]:
    return [
        ValidatedRow(first_name=f"Contact{i}", phone=str(9000 + i), source_row=i + 2)
        for i in range(count)
    ]


@pytest.mark.unit
def test_allocate_twelve_rows_over_five_agents():
    """Test 12 rows: agents 0 and 1 get 3, agents 2-4 get 2."""
    roster = create_agents(5)

    assignments = allocate(_rows(12), roster)

    by_agent = {}
    for position, a in enumerate(assignments):
        by_agent.setdefault(a.roster_index, []).append(position)
    assert by_agent == {
        0: [0, 5, 10],
        1: [1, 6, 11],
        2: [2, 7],
        3: [3, 8],
        4: [4, 9],
    }
    assert distribution_summary(assignments, roster) == {
        "agent-0": 3, "agent-1": 3, "agent-2": 2, "agent-3": 2, "agent-4": 2,
    }


@pytest.mark.unit
@pytest.mark.parametrize("count", [0, 1, 4, 5, 6, 23, 100, 101])
def test_allocate_is_even(count):
    """Test every agent gets floor or ceil of N/5 and the total is N."""
    roster = create_agents(5)

    assignments = allocate(_rows(count), roster)

    assert len(assignments) == count
    if count:
        assert_round_robin_counts([a.agent_id for a in assignments], count, 5)
    assert sum(distribution_summary(assignments, roster).values()) == count


@pytest.mark.unit
def test_allocate_is_deterministic():
    roster = create_agents(5)
    rows = _rows(17)

    first = [(a.row.source_row, a.agent_id) for a in allocate(rows, roster)]
    second = [(a.row.source_row, a.agent_id) for a in allocate(rows, roster)]

    assert first == second


@pytest.mark.unit
def test_allocate_keeps_row_order():
    assignments = allocate(_rows(7), create_agents(5))
    assert [a.row.source_row for a in assignments] == list(range(2, 9))


@pytest.mark.unit
def test_allocate_uses_configured_roster_size():
    """Test the modulo follows the roster length."""
    roster = select_roster(create_agents(4), 3)

    assignments = allocate(_rows(7), roster)

    assert [a.roster_index for a in assignments] == [0, 1, 2, 0, 1, 2, 0]


@pytest.mark.unit
def test_select_roster_truncates_to_size():
    agents = create_agents(8)

    roster = select_roster(agents, 5)

    assert [a.agent_id for a in roster] == ["agent-0", "agent-1", "agent-2", "agent-3", "agent-4"]


@pytest.mark.unit
def test_select_roster_insufficient_agents():
    with pytest.raises(InsufficientAgentsError) as exc_info:
        select_roster(create_agents(4), 5)

    assert exc_info.value.message == "Not enough agents in system. Found 4, require 5."
    assert exc_info.value.status_code == 400


@pytest.mark.unit
def test_allocate_empty_roster():
    with pytest.raises(InsufficientAgentsError):
        allocate(_rows(1), [])
