"""Agent task list endpoint: tasks assigned to one agent with batch provenance."""

from http.server import BaseHTTPRequestHandler

from src.services.caller_identity import resolve_caller
from src.services.task_queries import tasks_for_agent
from src.utils.errors import DistributorError
from src.utils.http import (
    INTERNAL_ERROR_MESSAGE,
    correlation_id_from,
    query_param,
    run_async,
    send_error,
    send_json,
)
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)


class handler(BaseHTTPRequestHandler):
    """Serverless function handler for GET /api/lists/agent?id=<agent_id>."""

    def do_GET(self):
        with correlation_context(correlation_id_from(self)):
            try:
                resolve_caller(self.headers)

                agent_id = (query_param(self, "id") or "").strip()
                if not agent_id:
                    send_json(self, 400, {"success": False, "message": "Agent id is required."})
                    return

                tasks = run_async(tasks_for_agent(agent_id))
                send_json(self, 200, {
                    "success": True,
                    "count": len(tasks),
                    "tasks": [task.to_response() for task in tasks],
                })

            except DistributorError as e:
                if not e.is_client_error:
                    logger.error("Agent task lookup failed", error=str(e), exc_info=True)
                send_error(self, e)
            except Exception as e:
                logger.error("Error in agent task lookup", error=str(e), exc_info=True)
                send_json(self, 500, {"success": False, "message": INTERNAL_ERROR_MESSAGE})
