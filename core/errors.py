# =============================================================================
# core/errors.py  —  Error Taxonomy
# =============================================================================
#
# Only three error kinds ever leave the dispatcher: InvalidParams,
# MethodNotFound and InternalError.  They carry the standard JSON-RPC codes so
# the MCP layer can report them without knowing anything about the core.
#
# BackendError is the gateway's failure type.  The dispatcher folds it (and
# anything else unexpected) into InternalError.
#
# ConfigError is raised at startup only and never reaches a tool call.
# =============================================================================

from typing import Any

# JSON-RPC 2.0 reserved codes (the same values MCP uses)
INVALID_PARAMS = -32602
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603


class ConfigError(Exception):
    """Required setting missing or out of bounds.  Fatal at startup."""


class BackendError(Exception):
    """The knowledge base call failed (auth, throttling, network, ...)."""


class DispatchError(Exception):
    """Base class for the typed errors surfaced at the tool boundary."""

    code: int = INTERNAL_ERROR
    kind: str = "DispatchError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "kind": self.kind, "message": self.message}

    def __str__(self) -> str:
        return f"{self.kind} ({self.code}): {self.message}"


class InvalidParams(DispatchError):
    code = INVALID_PARAMS
    kind = "InvalidParams"


class MethodNotFound(DispatchError):
    code = METHOD_NOT_FOUND
    kind = "MethodNotFound"

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class InternalError(DispatchError):
    code = INTERNAL_ERROR
    kind = "InternalError"

    def __init__(self, tool_name: str, original: str):
        super().__init__(f"Error executing tool {tool_name}: {original}")
        self.tool_name = tool_name
        self.original = original
