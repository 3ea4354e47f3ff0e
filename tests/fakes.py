"""Test doubles for the Bedrock client and the knowledge base gateway."""

from __future__ import annotations

from typing import Any

from core.models import GenerationResult, RetrievalResult


class FakeGateway:
    """Records every call and replays queued results or exceptions."""

    def __init__(self) -> None:
        self.retrieve_calls: list[dict[str, Any]] = []
        self.generate_calls: list[dict[str, Any]] = []
        self.retrieve_results: list[RetrievalResult] = []
        self.generate_results: list[GenerationResult] = []
        self.error: Exception | None = None

    async def retrieve(
        self,
        query: str,
        continuation: str | None = None,
        max_results: int | None = None,
    ) -> list[RetrievalResult]:
        self.retrieve_calls.append(
            {"query": query, "continuation": continuation, "max_results": max_results}
        )
        if self.error is not None:
            raise self.error
        return list(self.retrieve_results)

    async def generate(
        self,
        query: str,
        continuation: str | None = None,
        system_prompt: str | None = None,
    ) -> GenerationResult:
        self.generate_calls.append(
            {"query": query, "continuation": continuation, "system_prompt": system_prompt}
        )
        if self.error is not None:
            raise self.error
        if self.generate_results:
            return self.generate_results.pop(0)
        return GenerationResult(text="")


class FakeBedrockClient:
    """Stands in for ``boto3.client("bedrock-agent-runtime")``."""

    def __init__(
        self,
        retrieve_response: dict[str, Any] | None = None,
        generate_response: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.retrieve_response = retrieve_response or {}
        self.generate_response = generate_response or {}
        self.error = error
        self.requests: list[tuple[str, dict[str, Any]]] = []

    def retrieve(self, **kwargs: Any) -> dict[str, Any]:
        self.requests.append(("retrieve", kwargs))
        if self.error is not None:
            raise self.error
        return self.retrieve_response

    def retrieve_and_generate(self, **kwargs: Any) -> dict[str, Any]:
        self.requests.append(("retrieve_and_generate", kwargs))
        if self.error is not None:
            raise self.error
        return self.generate_response
