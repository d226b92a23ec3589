"""Agents endpoint: list agents (GET) and register a new agent (POST)."""

from http.server import BaseHTTPRequestHandler

from pydantic import ValidationError

from src.models.agent import AgentCreate
from src.services.agent_directory import list_agents, register_agent
from src.services.caller_identity import resolve_caller
from src.utils.errors import DistributorError
from src.utils.http import (
    INTERNAL_ERROR_MESSAGE,
    correlation_id_from,
    read_json_body,
    run_async,
    send_error,
    send_json,
)
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)


def _validation_messages(error: ValidationError) -> list[dict]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


class handler(BaseHTTPRequestHandler):
    """Serverless function handler for /api/agents."""

    def do_GET(self):
        """List all agents ordered by name."""
        with correlation_context(correlation_id_from(self)):
            try:
                resolve_caller(self.headers)
                agents = run_async(list_agents())
                send_json(self, 200, {"success": True, "agents": agents})
            except DistributorError as e:
                if not e.is_client_error:
                    logger.error("Agent listing failed", error=str(e), exc_info=True)
                send_error(self, e)
            except Exception as e:
                logger.error("Error listing agents", error=str(e), exc_info=True)
                send_json(self, 500, {"success": False, "message": INTERNAL_ERROR_MESSAGE})

    def do_POST(self):
        """Register a new agent."""
        with correlation_context(correlation_id_from(self)):
            try:
                resolve_caller(self.headers)

                body = read_json_body(self)
                if body is None:
                    send_json(self, 400, {"success": False, "message": "Invalid input data.", "errors": []})
                    return

                try:
                    data = AgentCreate(**body)
                except ValidationError as e:
                    send_json(self, 400, {
                        "success": False,
                        "message": "Invalid input data.",
                        "errors": _validation_messages(e),
                    })
                    return

                agent = run_async(register_agent(data))
                send_json(self, 201, {
                    "success": True,
                    "message": "Agent created successfully.",
                    "agent": agent.to_response(),
                })

            except DistributorError as e:
                if not e.is_client_error:
                    logger.error("Agent registration failed", error=str(e), exc_info=True)
                send_error(self, e)
            except Exception as e:
                logger.error("Error registering agent", error=str(e), exc_info=True)
                send_json(self, 500, {"success": False, "message": INTERNAL_ERROR_MESSAGE})
