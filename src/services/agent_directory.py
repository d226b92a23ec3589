"""Agent directory - register agents and read the assignment roster."""

import base64
import hashlib
import secrets

from ulid import ULID

from src.models.agent import Agent, AgentCreate
from src.services.supabase_client import (
    get_agent_by_email,
    get_agent_by_id,
    get_oldest_agents,
    insert_agent,
    list_agents_by_name,
)
from src.services.task_allocator import select_roster
from src.utils.errors import AgentNotFoundError, DuplicateAgentError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1


def generate_agent_id() -> str:
    """Generate a text-based agent ID (ULID format)."""
    return str(ULID())


def hash_password(password: str) -> str:
    """Salted scrypt hash, encoded as scrypt$<salt>$<digest>."""
    salt = secrets.token_bytes(16)
    digest = hashlib.scrypt(password.encode("utf-8"), salt=salt, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return "scrypt${}${}".format(
        base64.b64encode(salt).decode("ascii"),
        base64.b64encode(digest).decode("ascii"),
    )


async def register_agent(data: AgentCreate) -> Agent:
    """Create an agent after checking e-mail uniqueness."""
    existing = await get_agent_by_email(data.email)
    if existing:
        logger.info("Agent registration rejected: duplicate e-mail", agent_id=mask_user_id(existing.get("agent_id", "")))
        raise DuplicateAgentError()

    record = await insert_agent({
        "agent_id": generate_agent_id(),
        "name": data.name,
        "email": data.email,
        "phone": data.phone,
        "password_hash": hash_password(data.password),
    })
    agent = Agent(**record)
    logger.info("Agent registered", agent_id=mask_user_id(agent.agent_id))
    return agent


async def list_agents() -> list[dict]:
    """All agents (id, name, email) ordered by name."""
    rows = await list_agents_by_name()
    return [{"id": row["agent_id"], "name": row["name"], "email": row["email"]} for row in rows]


async def get_agent(agent_id: str) -> Agent:
    """Resolve an agent or raise AgentNotFoundError."""
    record = await get_agent_by_id(agent_id) if agent_id else None
    if not record:
        raise AgentNotFoundError()
    return Agent(**record)


async def snapshot_roster(roster_size: int) -> list[Agent]:
    """Oldest `roster_size` agents, read once per upload.

    Raises InsufficientAgentsError when fewer agents exist.
    """
    records = await get_oldest_agents(roster_size)
    roster = select_roster([Agent(**record) for record in records], roster_size)
    logger.info(
        "Roster snapshot taken",
        roster_size=roster_size,
        agent_ids=[mask_user_id(agent.agent_id) for agent in roster],
    )
    return roster
