# =============================================================================
# main.py  —  Interactive Knowledge Base Assistant
# =============================================================================
#
# HOW TO RUN:
#   pip install -e ".[agent]"
#   python main.py
#
# WHAT HAPPENS:
#   1. Creates the Google ADK agent (agent/kb_agent.py)
#   2. ADK spawns the MCP server (tools/mcp_server.py) over stdio
#   3. Each question goes to the agent, which picks knowledge base tools
#   4. Every tool round trip is echoed as a one-line trace: what was asked,
#      how many passages or citations came back, and which session was used
#   5. The agent's final answer is printed under the trace
#
# The MCP server itself does not need this file: `python -m tools.mcp_server`
# serves any MCP client.
# =============================================================================

import asyncio
import json
from typing import Any, Optional

from dotenv import load_dotenv

# Must run before the agent is built: LiteLlm and the server subprocess both
# read their settings from the environment.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.kb_agent import create_agent
from core.catalog import (
    CREATE_SESSION,
    LIST_SESSIONS,
    RETRIEVE_AND_GENERATE,
    RETRIEVE_KNOWLEDGE,
)

APP_NAME = "kb_assistant"
USER_ID = "demo_user"
EXIT_WORDS = {"quit", "exit", "q"}
RULE = "-" * 70


# =============================================================================
# Tool trace formatting
# =============================================================================
def tool_payload(response: Any) -> Optional[dict]:
    """Pull the server's JSON payload out of an MCP tool response.

    ADK hands back the CallToolResult as a dict.  Structured content is used
    when present, otherwise the first text block is parsed as JSON.
    """
    if not isinstance(response, dict):
        return None
    structured = response.get("structuredContent")
    if isinstance(structured, dict):
        return structured
    for block in response.get("content") or []:
        text = block.get("text") if isinstance(block, dict) else None
        if text:
            try:
                payload = json.loads(text)
            except ValueError:
                return None
            return payload if isinstance(payload, dict) else None
    return None


def _error_text(response: Any) -> Optional[str]:
    if not isinstance(response, dict) or not response.get("isError"):
        return None
    for block in response.get("content") or []:
        if isinstance(block, dict) and block.get("text"):
            return block["text"]
    return "tool failed"


def summarize_tool_result(tool_name: str, response: Any) -> str:
    """One line describing what a knowledge base tool returned."""
    error = _error_text(response)
    if error:
        return f"⚠️  {tool_name} failed: {error}"

    payload = tool_payload(response)
    if payload is None:
        return f"{tool_name} returned no readable payload"

    if tool_name == RETRIEVE_KNOWLEDGE:
        results = payload.get("results") or []
        sources = sorted({r.get("source", "Unknown") for r in results})
        line = f"📚 {payload.get('totalResults', len(results))} passage(s)"
        return f"{line} from {', '.join(sources)}" if sources else line

    if tool_name == RETRIEVE_AND_GENERATE:
        citations = payload.get("citations") or []
        sources = sorted(
            {s.get("source", "Unknown") for c in citations for s in c.get("sources") or []}
        )
        line = f"📝 answer with {len(citations)} citation(s)"
        if sources:
            line += f" from {', '.join(sources)}"
        if payload.get("sessionId"):
            line += f" [bedrock session {payload['sessionId']}]"
        return line

    if tool_name == CREATE_SESSION:
        return f"🆕 session {payload.get('sessionId')}"

    if tool_name == LIST_SESSIONS:
        active = sum(1 for s in payload.get("sessions") or [] if s.get("active"))
        return f"🗂  {payload.get('totalSessions', 0)} session(s), {active} active"

    return f"{tool_name} returned {sorted(payload)}"


def _print_event(event) -> Optional[str]:
    """Echo tool traffic for one ADK event; return any text it carries."""
    text = None
    if not (event.content and event.content.parts):
        return text
    for part in event.content.parts:
        call = getattr(part, "function_call", None)
        if call:
            args = ", ".join(f"{k}={v!r}" for k, v in (call.args or {}).items())
            print(f"  → {call.name}({args})")
        reply = getattr(part, "function_response", None)
        if reply:
            print(f"  ← {summarize_tool_result(reply.name, reply.response)}")
        if getattr(part, "text", None):
            text = part.text
    return text


# =============================================================================
# REPL
# =============================================================================
async def ask(runner: Runner, session_id: str, question: str) -> Optional[str]:
    """Send one question and return the agent's last text reply."""
    message = types.Content(role="user", parts=[types.Part(text=question)])
    answer = None
    async for event in runner.run_async(user_id=USER_ID, session_id=session_id, new_message=message):
        answer = _print_event(event) or answer
    return answer


async def run_agent():
    print("=" * 70)
    print("  BEDROCK KNOWLEDGE BASE ASSISTANT")
    print("=" * 70)
    session_service = InMemorySessionService()
    runner = Runner(agent=create_agent(), app_name=APP_NAME, session_service=session_service)
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)
    print("Ask about your knowledge base ('quit' to exit).")

    while True:
        try:
            question = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if question.lower() in EXIT_WORDS:
            break
        if not question:
            continue

        print(RULE)
        answer = await ask(runner, session.id, question)
        print(RULE)
        print(f"\n🤖 {answer}" if answer else "\n⚠️  The agent produced no answer.")


if __name__ == "__main__":
    asyncio.run(run_agent())
