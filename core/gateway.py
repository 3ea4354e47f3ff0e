# =============================================================================
# core/gateway.py  —  Bedrock Knowledge Base Gateway
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Translates the two logical operations the dispatcher needs into calls on
#   the Bedrock Agent Runtime API:
#
#     retrieve(query, ...)  →  Retrieve             → list[RetrievalResult]
#     generate(query, ...)  →  RetrieveAndGenerate  → GenerationResult
#
#   and normalizes the responses so nothing above this layer has to deal
#   with missing keys.
#
# HOW IT TALKS TO AWS:
#   boto3 clients are blocking.  Each call is pushed onto a worker thread with
#   asyncio.to_thread, so the event loop keeps serving unrelated MCP calls
#   while one request waits on the network.
#
# FAILURES:
#   No retries, no extra timeout on top of botocore's defaults.  Any botocore
#   failure becomes a BackendError with a fixed prefix plus the original
#   message, and is raised immediately.
#
#   The client is injectable so tests can hand in a fake.
# =============================================================================

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.config import KnowledgeBaseConfig
from core.errors import BackendError
from core.models import Citation, GenerationResult, Reference, RetrievalResult

logger = logging.getLogger(__name__)

RETRIEVE_ERROR_PREFIX = "Failed to retrieve from knowledge base: "
GENERATE_ERROR_PREFIX = "Failed to retrieve and generate from knowledge base: "

# Bedrock reports where a chunk came from in one of several shapes depending
# on the data source type.  Checked in this order; first hit wins.
_LOCATION_KEYS: tuple[tuple[str, str], ...] = (
    ("s3Location", "uri"),
    ("webLocation", "url"),
    ("confluenceLocation", "url"),
    ("salesforceLocation", "url"),
    ("sharePointLocation", "url"),
    ("kendraDocumentLocation", "uri"),
    ("customDocumentLocation", "id"),
)


def extract_location(location: Optional[dict[str, Any]]) -> Optional[str]:
    """Flatten a Bedrock location object to a single locator string."""
    if not location:
        return None
    for container, key in _LOCATION_KEYS:
        value = (location.get(container) or {}).get(key)
        if value:
            return value
    return None


def _to_retrieval_result(raw: dict[str, Any]) -> RetrievalResult:
    score = raw.get("score")
    return RetrievalResult(
        text=(raw.get("content") or {}).get("text") or "",
        score=float(score) if score is not None else 0.0,
        location=extract_location(raw.get("location")),
        metadata=dict(raw.get("metadata") or {}),
    )


def _to_reference(raw: dict[str, Any]) -> Reference:
    return Reference(
        text=(raw.get("content") or {}).get("text") or "",
        location=extract_location(raw.get("location")),
        metadata=dict(raw.get("metadata") or {}),
    )


def _to_citation(raw: dict[str, Any]) -> Citation:
    part = (raw.get("generatedResponsePart") or {}).get("textResponsePart") or {}
    span = part.get("span") or {}
    return Citation(
        text=part.get("text") or "",
        start=span.get("start") or 0,
        end=span.get("end") or 0,
        references=tuple(_to_reference(r) for r in raw.get("retrievedReferences") or []),
    )


class BedrockKnowledgeBaseGateway:
    """Async adapter around a ``bedrock-agent-runtime`` boto3 client."""

    def __init__(self, config: KnowledgeBaseConfig, client: Any = None):
        self.config = config
        if client is None:
            client = boto3.client("bedrock-agent-runtime", region_name=config.region)
        self._client = client

    # -------------------------------------------------------------------------
    # Request builders
    # -------------------------------------------------------------------------
    def _vector_search_configuration(self, max_results: Optional[int] = None) -> dict[str, Any]:
        vector: dict[str, Any] = {
            "numberOfResults": max_results or self.config.max_results,
        }
        if self.config.reranking_model_arn:
            vector["rerankingConfiguration"] = {
                "type": "BEDROCK_RERANKING_MODEL",
                "bedrockRerankingConfiguration": {
                    "modelConfiguration": {
                        "modelArn": self.config.reranking_model_arn,
                    },
                },
            }
        return vector

    def build_retrieve_request(
        self,
        query: str,
        continuation: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "knowledgeBaseId": self.config.knowledge_base_id,
            "retrievalQuery": {"text": query},
            "retrievalConfiguration": {
                "vectorSearchConfiguration": self._vector_search_configuration(max_results),
            },
        }
        if continuation:
            request["nextToken"] = continuation
        return request

    def build_generate_request(
        self,
        query: str,
        continuation: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> dict[str, Any]:
        kb_config: dict[str, Any] = {
            "knowledgeBaseId": self.config.knowledge_base_id,
            "retrievalConfiguration": {
                "vectorSearchConfiguration": self._vector_search_configuration(),
            },
        }
        # boto3 rejects explicit None values, so optional keys are only set
        # when they carry something.
        if self.config.model_arn:
            kb_config["modelArn"] = self.config.model_arn
        if system_prompt:
            kb_config["generationConfiguration"] = {
                "promptTemplate": {"textPromptTemplate": system_prompt},
            }

        request: dict[str, Any] = {
            "input": {"text": query},
            "retrieveAndGenerateConfiguration": {
                "type": "KNOWLEDGE_BASE",
                "knowledgeBaseConfiguration": kb_config,
            },
        }
        if continuation:
            request["sessionId"] = continuation
        return request

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------
    async def retrieve(
        self,
        query: str,
        continuation: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> list[RetrievalResult]:
        """Run a Retrieve call and return results in backend order."""
        request = self.build_retrieve_request(query, continuation, max_results)
        logger.debug("Retrieve request: %s", request)
        try:
            response = await asyncio.to_thread(self._client.retrieve, **request)
        except (ClientError, BotoCoreError) as exc:
            raise BackendError(f"{RETRIEVE_ERROR_PREFIX}{exc}") from exc

        return [_to_retrieval_result(r) for r in response.get("retrievalResults") or []]

    async def generate(
        self,
        query: str,
        continuation: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> GenerationResult:
        """Run a RetrieveAndGenerate call and normalize the answer."""
        request = self.build_generate_request(query, continuation, system_prompt)
        logger.debug("RetrieveAndGenerate request: %s", request)
        try:
            response = await asyncio.to_thread(self._client.retrieve_and_generate, **request)
        except (ClientError, BotoCoreError) as exc:
            raise BackendError(f"{GENERATE_ERROR_PREFIX}{exc}") from exc

        return GenerationResult(
            text=(response.get("output") or {}).get("text") or "",
            citations=tuple(_to_citation(c) for c in response.get("citations") or []),
            session_id=response.get("sessionId") or None,
        )
