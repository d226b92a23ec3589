"""Assignment allocator - round-robin distribution of validated rows over the agent roster."""

from collections import Counter
from typing import Sequence

from src.models.agent import Agent
from src.models.ingestion import Assignment, ValidatedRow
from src.utils.errors import InsufficientAgentsError


def select_roster(agents: Sequence[Agent], roster_size: int) -> list[Agent]:
    """Take the first `roster_size` agents (callers pass them oldest first).

    Raises InsufficientAgentsError when fewer agents are available.
    """
    if roster_size < 1:
        raise ValueError("roster_size must be >= 1")
    if len(agents) < roster_size:
        raise InsufficientAgentsError(found=len(agents), required=roster_size)
    return list(agents[:roster_size])


def allocate(rows: Sequence[ValidatedRow], roster: Sequence[Agent]) -> list[Assignment]:
    """Assign row i to roster[i % len(roster)].

    Deterministic for a given row order and roster order; per-agent counts
    differ by at most one.
    """
    if not roster:
        raise InsufficientAgentsError(found=0, required=1)

    size = len(roster)
    return [
        Assignment(row=row, agent_id=roster[i % size].agent_id, roster_index=i % size)
        for i, row in enumerate(rows)
    ]


def distribution_summary(assignments: Sequence[Assignment], roster: Sequence[Agent]) -> dict[str, int]:
    """Tasks per agent ID, including roster agents that received none."""
    counts = Counter(a.agent_id for a in assignments)
    return {agent.agent_id: counts.get(agent.agent_id, 0) for agent in roster}
