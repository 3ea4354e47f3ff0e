# =============================================================================
# core/config.py  —  Server Configuration
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads the environment (optionally populated from a .env file by the
#   entry point) and turns it into a validated, frozen KnowledgeBaseConfig.
#
# ENVIRONMENT VARIABLES:
#   KNOWLEDGE_BASE_ID    (required)  Bedrock Knowledge Base ID
#   AWS_REGION           (optional)  falls back to AWS_DEFAULT_REGION, then
#                                    "us-east-1"
#   MODEL_ARN            (optional)  model used by RetrieveAndGenerate
#   MAX_RESULTS          (optional)  1-100, default 10
#   RERANKING_MODEL_ARN  (optional)  Bedrock reranking model
#
# Any problem here is a ConfigError: the process refuses to serve calls.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from core.errors import ConfigError

DEFAULT_REGION = "us-east-1"
DEFAULT_MAX_RESULTS = 10
MIN_RESULTS = 1
MAX_RESULTS_LIMIT = 100


@dataclass(frozen=True)
class KnowledgeBaseConfig:
    """Validated settings shared by the gateway and the entry point."""

    knowledge_base_id: str
    region: str = DEFAULT_REGION
    model_arn: Optional[str] = None
    max_results: int = DEFAULT_MAX_RESULTS
    reranking_model_arn: Optional[str] = None

    def __post_init__(self):
        if not self.knowledge_base_id:
            raise ConfigError("knowledge_base_id: must be a non-empty string")
        if isinstance(self.max_results, bool) or not isinstance(self.max_results, int):
            raise ConfigError("max_results: must be an integer")
        if not MIN_RESULTS <= self.max_results <= MAX_RESULTS_LIMIT:
            raise ConfigError(
                f"max_results: must be between {MIN_RESULTS} and {MAX_RESULTS_LIMIT}, "
                f"got {self.max_results}"
            )


def _optional(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key, "").strip()
    return value or None


def load_config(environ: Optional[Mapping[str, str]] = None) -> KnowledgeBaseConfig:
    """Build a KnowledgeBaseConfig from environment variables.

    Args:
        environ: Mapping to read from.  Defaults to ``os.environ``.

    Raises:
        ConfigError: KNOWLEDGE_BASE_ID is missing, or MAX_RESULTS is not an
            integer in 1-100.
    """
    if environ is None:
        environ = os.environ

    knowledge_base_id = _optional(environ, "KNOWLEDGE_BASE_ID")
    if knowledge_base_id is None:
        raise ConfigError(
            "Missing required environment variables: KNOWLEDGE_BASE_ID\n\n"
            "Required environment variables:\n"
            "  KNOWLEDGE_BASE_ID - AWS Bedrock Knowledge Base ID\n\n"
            "Optional environment variables:\n"
            "  AWS_REGION - AWS region (default: us-east-1)\n"
            "  MODEL_ARN - Model ARN for RetrieveAndGenerate operations\n"
            "  MAX_RESULTS - Maximum number of results (default: 10)\n"
            "  RERANKING_MODEL_ARN - Reranking model ARN for improved relevance"
        )

    raw_max = _optional(environ, "MAX_RESULTS")
    max_results = DEFAULT_MAX_RESULTS
    if raw_max is not None:
        try:
            max_results = int(raw_max)
        except ValueError:
            raise ConfigError(f"max_results: expected an integer, got {raw_max!r}") from None

    region = (
        _optional(environ, "AWS_REGION")
        or _optional(environ, "AWS_DEFAULT_REGION")
        or DEFAULT_REGION
    )

    return KnowledgeBaseConfig(
        knowledge_base_id=knowledge_base_id,
        region=region,
        model_arn=_optional(environ, "MODEL_ARN"),
        max_results=max_results,
        reranking_model_arn=_optional(environ, "RERANKING_MODEL_ARN"),
    )
