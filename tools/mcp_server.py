# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Publishes every entry of the tool catalog (core/catalog.py) as a FastMCP
#   tool.  Each tool is a thin wrapper: it logs the call, hands the raw
#   arguments to core.dispatcher.Dispatcher, and converts the outcome into
#   MCP terms.
#
# HOW IT WORKS (the flow):
#   1. An MCP client (e.g. the ADK agent in agent/) lists the tools
#   2. It calls one by name, e.g. "retrieve_and_generate"
#   3. FastMCP routes the call to the matching CatalogTool below
#   4. CatalogTool.run → Dispatcher.call → Bedrock → shaped dict
#   5. The client receives the dict as indented JSON text
#
# WHY NOT @mcp.tool() DECORATORS?
#   The catalog already declares names, descriptions and JSON schemas, and
#   the dispatcher validates against those same declarations.  Registering
#   tools straight from the catalog means the advertised schema and the
#   validation rules are one and the same.
#
# ERRORS:
#   The dispatcher only ever raises InvalidParams, MethodNotFound or
#   InternalError.  They are re-raised as ToolError, whose text keeps the
#   kind and JSON-RPC code:  "InvalidParams (-32602): Query is required ..."
#   Unknown tool names never reach a CatalogTool, so UnknownToolMiddleware
#   hands them to the dispatcher for the same MethodNotFound treatment.
#
# RUNNING THIS SERVER:
#     a) Run standalone:  python -m tools.mcp_server   (or: kb-mcp-server)
#     b) Spawned by the ADK agent via stdio transport (see agent/kb_agent.py)
# =============================================================================

import json
import logging
import sys
from typing import Any, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import Middleware, MiddlewareContext
from fastmcp.tools.tool import Tool, ToolResult
from pydantic import Field

from core.config import KnowledgeBaseConfig, load_config
from core.dispatcher import Dispatcher
from core.errors import ConfigError, DispatchError
from core.gateway import BedrockKnowledgeBaseGateway
from core.models import ToolDescriptor

# =============================================================================
# Logging Setup
# =============================================================================
# Logs go to STDERR: STDOUT is the MCP transport, and anything else written
# there corrupts the JSON-RPC stream.
#
# ANSI colours:  CYAN = incoming call,  YELLOW = status,  GREEN = response.
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "bedrock-kb-retrieval-mcp-server"
SERVER_INSTRUCTIONS = (
    "Query an AWS Bedrock Knowledge Base. Use retrieve_knowledge for raw "
    "passages, retrieve_and_generate for a cited answer, and create_session "
    "before a multi-turn conversation so follow-ups keep their context."
)


def _log_request(tool_name: str, params: dict) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logger.info(
        f"{_GREEN}  ← {tool_name} response: "
        f"{json.dumps(result, separators=(',', ':'), default=str)}{_RESET}"
    )
    return result


# =============================================================================
# CatalogTool — one FastMCP tool per catalog descriptor
# =============================================================================
class CatalogTool(Tool):
    """A FastMCP tool whose schema comes from a ToolDescriptor."""

    dispatcher: Any = Field(exclude=True, repr=False)

    @classmethod
    def from_descriptor(cls, descriptor: ToolDescriptor, dispatcher: Dispatcher) -> "CatalogTool":
        return cls(
            name=descriptor.name,
            description=descriptor.description,
            parameters=descriptor.input_schema(),
            dispatcher=dispatcher,
        )

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        _log_request(self.name, arguments or {})
        try:
            envelope = await self.dispatcher.call(self.name, arguments)
        except DispatchError as exc:
            _log_status(f"{exc.kind}: {exc.message}")
            raise ToolError(str(exc)) from exc
        _log_response(self.name, envelope.payload)
        return ToolResult(content=envelope.text, structured_content=envelope.payload)


# =============================================================================
# UnknownToolMiddleware — names outside the catalog go to the dispatcher
# =============================================================================
# FastMCP's own lookup would answer an unknown name with a bare
# "Unknown tool: x".  Sending it through Dispatcher.call instead yields the
# typed "MethodNotFound (-32601): Unknown tool: x" like every other failure.
# =============================================================================
class UnknownToolMiddleware(Middleware):
    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher
        self.known = {d.name for d in dispatcher.list_capabilities()}

    async def on_call_tool(self, context: MiddlewareContext, call_next):
        name = context.message.name
        if name in self.known:
            return await call_next(context)

        _log_request(name, context.message.arguments or {})
        try:
            await self.dispatcher.call(name, context.message.arguments)
        except DispatchError as exc:
            _log_status(f"{exc.kind}: {exc.message}")
            raise ToolError(str(exc)) from exc
        # Only reachable if the dispatcher routes a name the catalog lacks
        raise ToolError(f"Tool {name} is not published by this server")


# =============================================================================
# Server construction
# =============================================================================
def build_dispatcher(config: KnowledgeBaseConfig, client: Any = None) -> Dispatcher:
    """Wire a Dispatcher to a Bedrock gateway for ``config``."""
    return Dispatcher(BedrockKnowledgeBaseGateway(config, client=client))


def create_server(dispatcher: Dispatcher) -> FastMCP:
    """Create a FastMCP server exposing every tool the dispatcher can route."""
    server = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS)
    server.add_middleware(UnknownToolMiddleware(dispatcher))
    for descriptor in dispatcher.list_capabilities():
        server.add_tool(CatalogTool.from_descriptor(descriptor, dispatcher))
    return server


def _log_startup(config: KnowledgeBaseConfig) -> None:
    logger.info("Starting Bedrock Knowledge Base Retrieval MCP Server")
    logger.info(f"   Region: {config.region}")
    logger.info(f"   Knowledge Base ID: {config.knowledge_base_id}")
    logger.info(f"   Max Results: {config.max_results}")
    if config.model_arn:
        logger.info(f"   Model ARN: {config.model_arn}")
    if config.reranking_model_arn:
        logger.info(f"   Reranking Model ARN: {config.reranking_model_arn}")


# =============================================================================
# Server entry point
# =============================================================================
def main(environ: Optional[dict[str, str]] = None) -> None:
    load_dotenv()
    try:
        config = load_config(environ)
    except ConfigError as exc:
        logger.error(f"Failed to start server: {exc}")
        sys.exit(1)

    _log_startup(config)
    server = create_server(build_dispatcher(config))
    logger.info("Server ready and waiting for connections...")
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down")


if __name__ == "__main__":
    main()
