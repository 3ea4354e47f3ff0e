# =============================================================================
# agent/kb_agent.py  —  Google ADK Agent wired to the Knowledge Base server
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Builds an example MCP client: a Google ADK agent whose only tools are the
#   ones tools/mcp_server.py exposes.  ADK starts the server as a subprocess
#   and talks to it over stdio.
#
#   ┌───────────────────────┐  stdio / MCP   ┌────────────────────────┐
#   │  ADK Agent (LiteLlm)  │ ─────────────▶ │  tools/mcp_server.py   │
#   └───────────────────────┘                │  → core/dispatcher.py  │
#                                            │  → Bedrock KB          │
#                                            └────────────────────────┘
#
# MODEL:
#   Any LiteLlm model string works.  KB_AGENT_MODEL overrides the default;
#   the matching provider key (OPENROUTER_API_KEY, ...) is read by LiteLlm.
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import KB_ASSISTANT_PROMPT

DEFAULT_MODEL = "openrouter/openai/gpt-4o"

# Forwarded to the server subprocess so it sees the same AWS / KB settings.
_SERVER_ENV_KEYS = (
    "KNOWLEDGE_BASE_ID",
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "AWS_PROFILE",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "MODEL_ARN",
    "MAX_RESULTS",
    "RERANKING_MODEL_ARN",
    "PATH",
    "HOME",
)


def server_parameters() -> StdioServerParameters:
    """How ADK should launch the MCP server: ``python -m tools.mcp_server``."""
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    env = {k: os.environ[k] for k in _SERVER_ENV_KEYS if k in os.environ}
    return StdioServerParameters(
        command=sys.executable,
        args=["-m", "tools.mcp_server"],
        cwd=project_root,
        env=env,
    )


def create_agent(model: str | None = None) -> Agent:
    """Create the knowledge base assistant agent.

    Args:
        model: LiteLlm model string.  Defaults to $KB_AGENT_MODEL, then
            DEFAULT_MODEL.
    """
    mcp_tools = MCPToolset(connection_params=server_parameters())

    return Agent(
        name="kb_assistant",
        model=LiteLlm(model=model or os.environ.get("KB_AGENT_MODEL", DEFAULT_MODEL)),
        instruction=KB_ASSISTANT_PROMPT,
        tools=[mcp_tools],
    )
