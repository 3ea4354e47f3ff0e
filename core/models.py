# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the *shape* of every piece of information that
# flows between the Bedrock gateway, the session registry, the dispatcher and
# the MCP layer.  They carry almost no behavior.
#
# IMMUTABILITY:
#   Results coming back from the knowledge base are frozen.  The dispatcher
#   reads them to build the tool output, but never edits them in place.
# =============================================================================

import json
from dataclasses import dataclass, field
from typing import Any, Optional


# -----------------------------------------------------------------------------
# RetrievalResult — one ranked chunk returned by a Retrieve call
# -----------------------------------------------------------------------------
# Rank is NOT stored here: it is the 1-based position in the list the
# backend returned, and the dispatcher derives it when shaping output.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class RetrievalResult:
    """A single retrieved chunk, normalized from the Bedrock response."""

    text: str = ""                     # Chunk content
    score: float = 0.0                 # Relevance score (backend-defined range)
    location: Optional[str] = None     # "s3://bucket/doc.pdf", a URL, or None
    metadata: dict[str, Any] = field(default_factory=dict)


# -----------------------------------------------------------------------------
# Reference / Citation / GenerationResult — RetrieveAndGenerate output
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Reference:
    """A retrieved reference backing one span of generated text."""

    text: str = ""
    location: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Citation:
    """Links a span of the generated text to the references supporting it."""

    text: str = ""
    start: int = 0
    end: int = 0
    references: tuple[Reference, ...] = ()


@dataclass(frozen=True)
class GenerationResult:
    """Generated answer plus citations and the backend's continuation token."""

    text: str = ""
    citations: tuple[Citation, ...] = ()
    session_id: Optional[str] = None   # Continuation token; None if not issued


# -----------------------------------------------------------------------------
# SessionEntry — one row of the session registry listing
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SessionEntry:
    handle: str
    token: Optional[str] = None

    @property
    def active(self) -> bool:
        return bool(self.token)


# -----------------------------------------------------------------------------
# ParameterSpec / ToolDescriptor — the static tool catalog
# -----------------------------------------------------------------------------
# The descriptor is the single source for both the advertised JSON schema and
# the dispatcher's input validation, so the two cannot drift apart.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ParameterSpec:
    """One declared tool argument."""

    name: str
    type: str                          # "string" or "integer"
    description: str
    required: bool = False
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        return schema


@dataclass(frozen=True)
class ToolDescriptor:
    """A callable operation: its dispatch name, description and parameters."""

    name: str
    description: str
    parameters: tuple[ParameterSpec, ...] = ()

    def input_schema(self) -> dict[str, Any]:
        """Render the parameters as a JSON-schema object for MCP tools/list."""
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {p.name: p.to_schema() for p in self.parameters},
        }
        required = [p.name for p in self.parameters if p.required]
        if required:
            schema["required"] = required
        return schema


# -----------------------------------------------------------------------------
# ResultEnvelope — the uniform success shape handed to the protocol layer
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ResultEnvelope:
    """Successful tool output.

    ``payload`` is the shaped dict; ``text`` is the same payload rendered as
    indented JSON, which is what MCP clients see as the text content.
    """

    payload: dict[str, Any]

    @property
    def text(self) -> str:
        return json.dumps(self.payload, indent=2, default=str)

    def to_content(self) -> list[dict[str, str]]:
        return [{"type": "text", "text": self.text}]
