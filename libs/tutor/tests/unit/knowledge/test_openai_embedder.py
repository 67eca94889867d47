from unittest.mock import MagicMock

from openai.types.create_embedding_response import CreateEmbeddingResponse

from tutor.knowledge.document import Document
from tutor.knowledge.embedder.openai import OpenAIEmbedder


def _embedding_response(vector):
    return CreateEmbeddingResponse.model_validate(
        {
            "object": "list",
            "model": "text-embedding-3-small",
            "data": [{"object": "embedding", "index": 0, "embedding": vector}],
            "usage": {"prompt_tokens": 3, "total_tokens": 3},
        }
    )


def test_dimensions_follow_model():
    assert OpenAIEmbedder().dimensions == 1536
    assert OpenAIEmbedder(id="text-embedding-3-large").dimensions == 3072
    assert OpenAIEmbedder(dimensions=256).dimensions == 256


def test_get_embedding_and_usage():
    client = MagicMock()
    client.embeddings.create.return_value = _embedding_response([0.1, 0.2])
    embedder = OpenAIEmbedder(openai_client=client, dimensions=2)

    embedding, usage = embedder.get_embedding_and_usage("hello")

    assert embedding == [0.1, 0.2]
    assert usage == {"prompt_tokens": 3, "total_tokens": 3}
    client.embeddings.create.assert_called_once_with(
        input="hello", model="text-embedding-3-small", encoding_format="float", dimensions=2
    )


def test_errors_return_empty_embedding():
    client = MagicMock()
    client.embeddings.create.side_effect = RuntimeError("network down")
    embedder = OpenAIEmbedder(openai_client=client)

    assert embedder.get_embedding("hello") == []
    assert embedder.get_embedding_and_usage("hello") == ([], None)


def test_document_embed():
    client = MagicMock()
    client.embeddings.create.return_value = _embedding_response([1.0, 0.0])
    document = Document(content="hello", embedder=OpenAIEmbedder(openai_client=client))

    document.embed()

    assert document.embedding == [1.0, 0.0]
    assert document.usage["total_tokens"] == 3
