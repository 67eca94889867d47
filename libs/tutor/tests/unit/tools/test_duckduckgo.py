import json
from unittest.mock import MagicMock, patch

import pytest

from tutor.tools.duckduckgo import DuckDuckGoTools


@pytest.fixture
def mock_ddgs():
    with patch("tutor.tools.duckduckgo.DDGS") as mock_ddgs_cls:
        instance = MagicMock()
        mock_ddgs_cls.return_value.__enter__.return_value = instance
        yield mock_ddgs_cls, instance


def test_registers_search_and_news():
    assert list(DuckDuckGoTools().functions) == ["duckduckgo_search", "duckduckgo_news"]
    assert list(DuckDuckGoTools(enable_news=False).functions) == ["duckduckgo_search"]


def test_search_applies_modifier_and_fixed_max_results(mock_ddgs):
    mock_ddgs_cls, instance = mock_ddgs
    instance.text.return_value = [{"title": "Python", "href": "https://python.org", "body": "Python"}]

    tools = DuckDuckGoTools(modifier="site:python.org", fixed_max_results=2, proxy="http://proxy")
    result = tools.duckduckgo_search("classes", max_results=10)

    assert json.loads(result)[0]["title"] == "Python"
    instance.text.assert_called_once_with(query="site:python.org classes", max_results=2, backend="auto")
    mock_ddgs_cls.assert_called_once_with(proxy="http://proxy", timeout=10, verify=True)


def test_news(mock_ddgs):
    _, instance = mock_ddgs
    instance.news.return_value = []

    result = DuckDuckGoTools().duckduckgo_news("agents", max_results=3)

    assert json.loads(result) == []
    instance.news.assert_called_once_with(query="agents", max_results=3, backend="auto")
