# =============================================================================
# core/catalog.py  —  Tool Catalog
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Declares every tool the server exposes: its name, the description the LLM
#   reads to decide WHEN to call it, and its parameters.
#
# The descriptions matter: a client model only knows what a tool is for from
# this text.  Parameter names are camelCase because that is what MCP clients
# already send for this server.
#
# This module is pure data.  The dispatcher refuses to start if its dispatch
# table does not cover exactly these names.
# =============================================================================

from core.config import MAX_RESULTS_LIMIT, MIN_RESULTS
from core.models import ParameterSpec, ToolDescriptor

RETRIEVE_KNOWLEDGE = "retrieve_knowledge"
RETRIEVE_AND_GENERATE = "retrieve_and_generate"
CREATE_SESSION = "create_session"
LIST_SESSIONS = "list_sessions"


TOOL_CATALOG: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name=RETRIEVE_KNOWLEDGE,
        description="Retrieve relevant information from AWS Bedrock Knowledge Base",
        parameters=(
            ParameterSpec(
                "query", "string",
                "The search query to retrieve relevant information",
                required=True,
            ),
            ParameterSpec(
                "sessionId", "string",
                "Optional session ID to maintain context across requests",
            ),
            ParameterSpec(
                "maxResults", "integer",
                f"Maximum number of results to return ({MIN_RESULTS}-{MAX_RESULTS_LIMIT})",
                minimum=MIN_RESULTS,
                maximum=MAX_RESULTS_LIMIT,
            ),
        ),
    ),
    ToolDescriptor(
        name=RETRIEVE_AND_GENERATE,
        description=(
            "Retrieve information and generate a response using AWS Bedrock "
            "Knowledge Base"
        ),
        parameters=(
            ParameterSpec(
                "query", "string",
                "The question or prompt to generate a response for",
                required=True,
            ),
            ParameterSpec(
                "sessionId", "string",
                "Optional session ID to maintain conversation context",
            ),
            ParameterSpec(
                "systemPrompt", "string",
                "Optional system prompt to customize the response generation",
            ),
        ),
    ),
    ToolDescriptor(
        name=CREATE_SESSION,
        description="Create a new session for maintaining conversation context",
        parameters=(
            ParameterSpec("sessionName", "string", "Optional name for the session"),
        ),
    ),
    ToolDescriptor(
        name=LIST_SESSIONS,
        description="List all active sessions",
    ),
)


def list_capabilities() -> tuple[ToolDescriptor, ...]:
    """Return the fixed, ordered tool catalog."""
    return TOOL_CATALOG


def get_descriptor(name: str) -> ToolDescriptor | None:
    for descriptor in TOOL_CATALOG:
        if descriptor.name == name:
            return descriptor
    return None
