import asyncio

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from core.config import KnowledgeBaseConfig
from core.errors import BackendError
from core.gateway import BedrockKnowledgeBaseGateway, extract_location
from fakes import FakeBedrockClient

RERANK_ARN = "arn:aws:bedrock:us-east-1::foundation-model/amazon.rerank-v1:0"
MODEL_ARN = "arn:aws:bedrock:us-east-1::foundation-model/anthropic.claude-3-haiku"


def make_gateway(client: FakeBedrockClient, **overrides) -> BedrockKnowledgeBaseGateway:
    config = KnowledgeBaseConfig(knowledge_base_id="test-kb-id", **overrides)
    return BedrockKnowledgeBaseGateway(config, client=client)


def throttling_error(operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": "ThrottlingException", "Message": "Rate exceeded"}},
        operation,
    )


class TestRetrieve:
    def test_request_shape(self) -> None:
        client = FakeBedrockClient()
        asyncio.run(make_gateway(client).retrieve("test query"))

        [(operation, request)] = client.requests
        assert operation == "retrieve"
        assert request == {
            "knowledgeBaseId": "test-kb-id",
            "retrievalQuery": {"text": "test query"},
            "retrievalConfiguration": {
                "vectorSearchConfiguration": {"numberOfResults": 10},
            },
        }

    def test_reranking_continuation_and_override(self) -> None:
        client = FakeBedrockClient()
        gateway = make_gateway(client, reranking_model_arn=RERANK_ARN)

        asyncio.run(gateway.retrieve("q", continuation="next-page", max_results=3))

        request = client.requests[0][1]
        vector = request["retrievalConfiguration"]["vectorSearchConfiguration"]
        assert vector["numberOfResults"] == 3
        assert vector["rerankingConfiguration"] == {
            "type": "BEDROCK_RERANKING_MODEL",
            "bedrockRerankingConfiguration": {
                "modelConfiguration": {"modelArn": RERANK_ARN},
            },
        }
        assert request["nextToken"] == "next-page"

    def test_normalizes_results(self) -> None:
        client = FakeBedrockClient(
            retrieve_response={
                "retrievalResults": [
                    {
                        "content": {"text": "Test content 1"},
                        "score": 0.95,
                        "location": {"type": "S3", "s3Location": {"uri": "s3://bucket/doc1.pdf"}},
                        "metadata": {"source": "document1"},
                    },
                    {"content": {}},
                ]
            }
        )

        results = asyncio.run(make_gateway(client).retrieve("q"))

        assert len(results) == 2
        assert results[0].text == "Test content 1"
        assert results[0].score == 0.95
        assert results[0].location == "s3://bucket/doc1.pdf"
        assert results[0].metadata == {"source": "document1"}
        assert results[1].text == ""
        assert results[1].score == 0.0
        assert results[1].location is None
        assert results[1].metadata == {}

    def test_missing_result_list(self) -> None:
        assert asyncio.run(make_gateway(FakeBedrockClient()).retrieve("q")) == []

    def test_client_error_is_wrapped(self) -> None:
        client = FakeBedrockClient(error=throttling_error("Retrieve"))

        with pytest.raises(BackendError) as exc_info:
            asyncio.run(make_gateway(client).retrieve("q"))

        message = str(exc_info.value)
        assert message.startswith("Failed to retrieve from knowledge base: ")
        assert "ThrottlingException" in message
        assert len(client.requests) == 1

    def test_connection_error_is_wrapped(self) -> None:
        client = FakeBedrockClient(error=EndpointConnectionError(endpoint_url="https://bedrock"))
        with pytest.raises(BackendError, match="Could not connect"):
            asyncio.run(make_gateway(client).retrieve("q"))


class TestGenerate:
    def test_minimal_request_omits_optional_keys(self) -> None:
        client = FakeBedrockClient()
        asyncio.run(make_gateway(client).generate("question"))

        [(operation, request)] = client.requests
        assert operation == "retrieve_and_generate"
        assert "sessionId" not in request
        kb_config = request["retrieveAndGenerateConfiguration"]["knowledgeBaseConfiguration"]
        assert request["retrieveAndGenerateConfiguration"]["type"] == "KNOWLEDGE_BASE"
        assert request["input"] == {"text": "question"}
        assert kb_config["knowledgeBaseId"] == "test-kb-id"
        assert "modelArn" not in kb_config
        assert "generationConfiguration" not in kb_config

    def test_full_request(self) -> None:
        client = FakeBedrockClient()
        gateway = make_gateway(client, model_arn=MODEL_ARN, reranking_model_arn=RERANK_ARN, max_results=7)

        asyncio.run(gateway.generate("q", continuation="tok-1", system_prompt="Answer tersely"))

        request = client.requests[0][1]
        kb_config = request["retrieveAndGenerateConfiguration"]["knowledgeBaseConfiguration"]
        assert request["sessionId"] == "tok-1"
        assert kb_config["modelArn"] == MODEL_ARN
        assert kb_config["generationConfiguration"] == {
            "promptTemplate": {"textPromptTemplate": "Answer tersely"},
        }
        vector = kb_config["retrievalConfiguration"]["vectorSearchConfiguration"]
        assert vector["numberOfResults"] == 7
        assert vector["rerankingConfiguration"]["type"] == "BEDROCK_RERANKING_MODEL"

    def test_normalizes_response(self) -> None:
        client = FakeBedrockClient(
            generate_response={
                "output": {"text": "Generated response"},
                "sessionId": "session-123",
                "citations": [
                    {
                        "generatedResponsePart": {
                            "textResponsePart": {"text": "citation text", "span": {"start": 0, "end": 13}},
                        },
                        "retrievedReferences": [
                            {
                                "content": {"text": "Reference content"},
                                "location": {"type": "WEB", "webLocation": {"url": "https://example.com/a"}},
                                "metadata": {"type": "reference"},
                            }
                        ],
                    },
                    {},
                ],
            }
        )

        result = asyncio.run(make_gateway(client).generate("q"))

        assert result.text == "Generated response"
        assert result.session_id == "session-123"
        first, second = result.citations
        assert (first.text, first.start, first.end) == ("citation text", 0, 13)
        assert first.references[0].text == "Reference content"
        assert first.references[0].location == "https://example.com/a"
        assert (second.text, second.start, second.end, second.references) == ("", 0, 0, ())

    def test_empty_response(self) -> None:
        result = asyncio.run(make_gateway(FakeBedrockClient()).generate("q"))
        assert result.text == ""
        assert result.citations == ()
        assert result.session_id is None

    def test_client_error_is_wrapped(self) -> None:
        client = FakeBedrockClient(error=throttling_error("RetrieveAndGenerate"))

        with pytest.raises(BackendError) as exc_info:
            asyncio.run(make_gateway(client).generate("q"))

        assert str(exc_info.value).startswith("Failed to retrieve and generate from knowledge base: ")
        assert "ThrottlingException" in str(exc_info.value)


class TestExtractLocation:
    @pytest.mark.parametrize(
        "location, expected",
        [
            (None, None),
            ({}, None),
            ({"type": "S3", "s3Location": {"uri": "s3://b/k"}}, "s3://b/k"),
            ({"type": "CONFLUENCE", "confluenceLocation": {"url": "https://wiki/x"}}, "https://wiki/x"),
            ({"type": "CUSTOM", "customDocumentLocation": {"id": "doc-7"}}, "doc-7"),
            ({"type": "S3"}, None),
        ],
    )
    def test_locations(self, location, expected) -> None:
        assert extract_location(location) == expected
