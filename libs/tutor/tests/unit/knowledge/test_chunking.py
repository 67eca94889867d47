import pytest

from tutor.knowledge.chunking.fixed import FixedSizeChunking
from tutor.knowledge.chunking.recursive import RecursiveChunking
from tutor.knowledge.chunking.strategy import ChunkingStrategyFactory, ChunkingStrategyType
from tutor.knowledge.document import Document


def test_fixed_size_chunking_splits_on_whitespace():
    document = Document(id="doc", name="doc", content="one two three four five six seven eight", meta_data={"a": 1})

    chunks = FixedSizeChunking(chunk_size=10).chunk(document)

    assert len(chunks) > 1
    assert all(len(c.content) <= 10 for c in chunks)
    # No word is cut in half
    words = " ".join(c.content for c in chunks).split()
    assert words == document.content.split()
    assert [c.id for c in chunks] == [f"doc_{i}" for i in range(1, len(chunks) + 1)]
    assert chunks[0].meta_data["a"] == 1
    assert chunks[0].meta_data["chunk"] == 1
    assert chunks[0].meta_data["chunk_size"] == len(chunks[0].content)


def test_fixed_size_chunking_with_overlap():
    chunks = FixedSizeChunking(chunk_size=20, overlap=5).chunk(Document(name="n", content="abcdefghij " * 6))
    assert len(chunks) >= 3
    assert chunks[0].content[-4:].strip() in chunks[1].content


@pytest.mark.parametrize("chunk_size, overlap", [(0, 0), (10, -1), (10, 10)])
def test_invalid_parameters(chunk_size, overlap):
    with pytest.raises(ValueError):
        FixedSizeChunking(chunk_size=chunk_size, overlap=overlap)
    with pytest.raises(ValueError):
        RecursiveChunking(chunk_size=chunk_size, overlap=overlap)


def test_recursive_chunking_keeps_short_documents():
    document = Document(name="short", content="Short text.")
    assert RecursiveChunking(chunk_size=100).chunk(document) == [document]


def test_recursive_chunking_breaks_at_newlines():
    content = "First line of text.\nSecond line of text.\nThird line of text."
    chunks = RecursiveChunking(chunk_size=25).chunk(Document(name="lines", content=content))

    assert [c.content for c in chunks] == ["First line of text.", "Second line of text.", "Third line of text."]
    assert chunks[2].id == "lines_3"


def test_chunk_ids_fall_back_to_content_hash():
    chunks = FixedSizeChunking(chunk_size=5).chunk(Document(content="Hello world"))
    assert chunks[0].id.startswith("chunk_")
    assert chunks[0].id.endswith("_1")


def test_clean_text():
    strategy = FixedSizeChunking()
    assert strategy.clean_text("a\r\n\n\n\nb   c \n d") == "a\n\nb c\nd"


def test_strategy_factory():
    strategy = ChunkingStrategyFactory.create_strategy(ChunkingStrategyType.from_string("RecursiveChunker"), chunk_size=50)
    assert isinstance(strategy, RecursiveChunking)
    assert strategy.chunk_size == 50
    with pytest.raises(ValueError):
        ChunkingStrategyType.from_string("SemanticChunker")
