"""Read path: tasks for an agent, joined with batch provenance."""

from src.models.task import AgentTaskView
from src.services.agent_directory import get_agent
from src.services.supabase_client import get_tasks_for_agent
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


async def tasks_for_agent(agent_id: str) -> list[AgentTaskView]:
    """Tasks owned by an agent, newest first.

    Unknown agents raise AgentNotFoundError; an agent without tasks gets [].
    """
    agent = await get_agent(agent_id)
    rows = await get_tasks_for_agent(agent.agent_id)
    tasks = [AgentTaskView(**row) for row in rows]
    logger.info("Tasks fetched for agent", agent_id=mask_user_id(agent.agent_id), count=len(tasks))
    return tasks
