# =============================================================================
# core/dispatcher.py  —  Tool Dispatcher (validation, routing, sessions)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Receives a call as (tool name, argument bag) and runs it end to end:
#
#     1. Route:     unknown name                  → MethodNotFound
#     2. Validate:  check args against the catalog → typed *Args dataclass
#                   (or InvalidParams)
#     3. Resolve:   session handle → continuation token (generate only)
#     4. Invoke:    the Bedrock gateway
#     5. Update:    store the new continuation token
#     6. Shape:     build the output dict, wrap it in a ResultEnvelope
#
#   Anything that goes wrong after step 2 and is not already a typed
#   DispatchError becomes InternalError.  Nothing else ever escapes call().
#
# STATE:
#   Each Dispatcher owns its SessionRegistry (or is handed one), so several
#   independent servers can live in the same process, e.g. one per test.
# =============================================================================

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from core.catalog import (
    CREATE_SESSION,
    LIST_SESSIONS,
    RETRIEVE_AND_GENERATE,
    RETRIEVE_KNOWLEDGE,
    list_capabilities,
)
from core.errors import DispatchError, InternalError, InvalidParams, MethodNotFound
from core.models import ResultEnvelope, ToolDescriptor
from core.sessions import SessionRegistry

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE = "Unknown"
SESSION_CREATED_MESSAGE = "Session created successfully"


# =============================================================================
# Typed, already-validated arguments (one per tool)
# =============================================================================
@dataclass(frozen=True)
class RetrieveKnowledgeArgs:
    query: str
    session_id: Optional[str] = None
    max_results: Optional[int] = None


@dataclass(frozen=True)
class RetrieveAndGenerateArgs:
    query: str
    session_id: Optional[str] = None
    system_prompt: Optional[str] = None


@dataclass(frozen=True)
class CreateSessionArgs:
    session_name: Optional[str] = None


@dataclass(frozen=True)
class ListSessionsArgs:
    pass


# Wire (camelCase) argument name → dataclass field name
_FIELD_NAMES = {
    "query": "query",
    "sessionId": "session_id",
    "maxResults": "max_results",
    "systemPrompt": "system_prompt",
    "sessionName": "session_name",
}


def validate_arguments(descriptor: ToolDescriptor, arguments: Any) -> dict[str, Any]:
    """Check ``arguments`` against the descriptor's parameter specs.

    Returns the declared arguments keyed by dataclass field name.  Undeclared
    keys are dropped; ``None`` for an optional argument counts as absent.

    Raises:
        InvalidParams: missing required argument, wrong type, or out of bounds.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise InvalidParams("Arguments must be an object")

    checked: dict[str, Any] = {}
    for spec in descriptor.parameters:
        value = arguments.get(spec.name)

        if spec.required:
            if spec.type == "string" and (not isinstance(value, str) or not value):
                label = spec.name[:1].upper() + spec.name[1:]
                raise InvalidParams(f"{label} is required and must be a string")
            if value is None:
                raise InvalidParams(f"{spec.name} is required")
        elif value is None:
            continue

        if spec.type == "string":
            if not isinstance(value, str):
                raise InvalidParams(f"{spec.name} must be a string")
        elif spec.type == "integer":
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidParams(f"{spec.name} must be an integer")
            if (spec.minimum is not None and value < spec.minimum) or (
                spec.maximum is not None and value > spec.maximum
            ):
                raise InvalidParams(
                    f"{spec.name} must be between {spec.minimum} and {spec.maximum}, "
                    f"got {value}"
                )

        checked[_FIELD_NAMES.get(spec.name, spec.name)] = value
    return checked


Handler = Callable[[Any], Awaitable[dict[str, Any]]]


# =============================================================================
# Dispatcher
# =============================================================================
class Dispatcher:
    """Routes tool calls to the knowledge base and keeps session continuity.

    Args:
        gateway: Object with ``async retrieve(query, continuation=None,
            max_results=None)`` and ``async generate(query, continuation=None,
            system_prompt=None)``; normally a BedrockKnowledgeBaseGateway.
        sessions: Registry to use.  A fresh one is created if omitted.
    """

    def __init__(self, gateway: Any, sessions: Optional[SessionRegistry] = None):
        self.gateway = gateway
        self.sessions = sessions if sessions is not None else SessionRegistry()
        self._descriptors = {d.name: d for d in list_capabilities()}
        self._routes: dict[str, tuple[type, Handler]] = {
            RETRIEVE_KNOWLEDGE: (RetrieveKnowledgeArgs, self._retrieve_knowledge),
            RETRIEVE_AND_GENERATE: (RetrieveAndGenerateArgs, self._retrieve_and_generate),
            CREATE_SESSION: (CreateSessionArgs, self._create_session),
            LIST_SESSIONS: (ListSessionsArgs, self._list_sessions),
        }
        if set(self._routes) != set(self._descriptors):
            raise ValueError(
                "Tool catalog and dispatch table disagree: "
                f"catalog={sorted(self._descriptors)} routes={sorted(self._routes)}"
            )

    def list_capabilities(self) -> tuple[ToolDescriptor, ...]:
        return list_capabilities()

    async def call(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ResultEnvelope:
        """Validate, run and shape one tool call.

        Raises:
            MethodNotFound: ``name`` is not in the catalog.
            InvalidParams: the arguments failed validation.
            InternalError: the backend or the shaping step failed.
        """
        try:
            route = self._routes.get(name)
            if route is None:
                raise MethodNotFound(name)
            args_type, handler = route
            args = args_type(**validate_arguments(self._descriptors[name], arguments))
            payload = await handler(args)
            return ResultEnvelope(payload)
        except DispatchError:
            raise
        except Exception as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            raise InternalError(name, str(exc) or type(exc).__name__) from exc

    # -------------------------------------------------------------------------
    # retrieve_knowledge: stateless; sessionId goes to Bedrock as a raw token
    # -------------------------------------------------------------------------
    async def _retrieve_knowledge(self, args: RetrieveKnowledgeArgs) -> dict[str, Any]:
        results = await self.gateway.retrieve(
            args.query,
            continuation=args.session_id,
            max_results=args.max_results,
        )
        logger.info("Retrieved %d results for %r", len(results), args.query)
        return {
            "query": args.query,
            "results": [
                {
                    "rank": rank,
                    "content": result.text,
                    "score": result.score,
                    "source": result.location or UNKNOWN_SOURCE,
                    "metadata": result.metadata,
                }
                for rank, result in enumerate(results, start=1)
            ],
            "totalResults": len(results),
        }

    # -------------------------------------------------------------------------
    # retrieve_and_generate: the only tool that reads and writes sessions
    # -------------------------------------------------------------------------
    async def _retrieve_and_generate(self, args: RetrieveAndGenerateArgs) -> dict[str, Any]:
        handle = args.session_id
        continuation = None
        if handle:
            # Known handle → its stored token (may be None right after
            # create_session).  Unknown handle → passed through unchanged.
            continuation = self.sessions.resolve(handle) if handle in self.sessions else handle

        result = await self.gateway.generate(
            args.query,
            continuation=continuation,
            system_prompt=args.system_prompt,
        )

        if result.session_id:
            if handle:
                self.sessions.update(handle, result.session_id)
            else:
                # The generated handle is not part of the response; callers
                # that want to resume must use create_session first.
                generated = self.sessions.new_handle()
                self.sessions.update(generated, result.session_id)
                logger.info("Stored continuation under generated handle %s", generated)

        return {
            "query": args.query,
            "response": result.text,
            "sessionId": result.session_id,
            "citations": [
                {
                    "id": index,
                    "text": citation.text,
                    "span": {"start": citation.start, "end": citation.end},
                    "sources": [
                        {
                            "content": ref.text,
                            "source": ref.location or UNKNOWN_SOURCE,
                            "metadata": ref.metadata,
                        }
                        for ref in citation.references
                    ],
                }
                for index, citation in enumerate(result.citations, start=1)
            ],
        }

    # -------------------------------------------------------------------------
    # Session bookkeeping
    # -------------------------------------------------------------------------
    async def _create_session(self, args: CreateSessionArgs) -> dict[str, Any]:
        handle = args.session_name or self.sessions.new_handle()
        if handle in self.sessions:
            logger.warning("Session %s already exists; resetting its continuation", handle)
        self.sessions.create(handle)
        return {"sessionId": handle, "message": SESSION_CREATED_MESSAGE}

    async def _list_sessions(self, args: ListSessionsArgs) -> dict[str, Any]:
        sessions = [
            {
                "sessionId": entry.handle,
                "bedrockSessionId": entry.token,
                "active": entry.active,
            }
            for entry in self.sessions.list()
        ]
        return {"sessions": sessions, "totalSessions": len(sessions)}
