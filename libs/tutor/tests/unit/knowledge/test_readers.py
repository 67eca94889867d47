from io import BytesIO
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx

from tutor.knowledge.chunking.fixed import FixedSizeChunking
from tutor.knowledge.reader import TextReader, UrlReader


def test_text_reader_reads_file(tmp_path: Path):
    file_path = tmp_path / "agents.md"
    file_path.write_text("# Agents\nAgents use tools.", encoding="utf-8")

    documents = TextReader().read(file_path)

    assert len(documents) == 1
    assert documents[0].name == "agents"
    assert documents[0].content == "# Agents\nAgents use tools."
    assert documents[0].meta_data["source"] == str(file_path)


def test_text_reader_missing_file_returns_empty(tmp_path: Path):
    assert TextReader().read(tmp_path / "missing.txt") == []


def test_text_reader_reads_uploaded_bytes():
    upload = BytesIO("uploaded content".encode("utf-8"))
    upload.name = "notes.txt"

    documents = TextReader().read(upload)

    assert documents[0].name == "notes"
    assert documents[0].content == "uploaded content"


def test_text_reader_chunks_with_strategy():
    reader = TextReader(chunking_strategy=FixedSizeChunking(chunk_size=10))
    documents = reader.read_text("alpha beta gamma delta epsilon", name="greek")
    assert len(documents) > 1
    assert all(doc.name == "greek" for doc in documents)


def test_text_reader_without_chunking():
    reader = TextReader(chunk=False)
    documents = reader.read_text("alpha " * 2000, name="long")
    assert len(documents) == 1
    assert reader.read_text("") == []


def _response(text: str, content_type: str) -> MagicMock:
    response = MagicMock()
    response.text = text
    response.headers = {"content-type": content_type}
    return response


def test_url_reader_extracts_main_content():
    html = (
        "<html><head><script>var x = 1;</script></head><body><nav>Menu</nav>"
        "<main><h1>Classes</h1><p>Classes bundle data and behaviour.</p></main>"
        "<footer>Footer</footer></body></html>"
    )
    with patch("tutor.knowledge.reader.url_reader.httpx.get", return_value=_response(html, "text/html")):
        documents = UrlReader().read("https://docs.example.com/tutorial/classes")

    assert len(documents) == 1
    assert documents[0].name == "classes"
    assert documents[0].content == "Classes Classes bundle data and behaviour."
    assert documents[0].meta_data["url"] == "https://docs.example.com/tutorial/classes"


def test_url_reader_plain_text():
    with patch("tutor.knowledge.reader.url_reader.httpx.get", return_value=_response("plain words", "text/plain")):
        documents = UrlReader().read("https://example.com/", name="home")
    assert documents[0].name == "home"
    assert documents[0].content == "plain words"


def test_url_reader_http_error_returns_empty():
    with patch("tutor.knowledge.reader.url_reader.httpx.get", side_effect=httpx.ConnectError("offline")):
        assert UrlReader().read("https://example.com/page") == []
