from tutor.knowledge.reader.base import Reader
from tutor.knowledge.reader.text_reader import TextReader
from tutor.knowledge.reader.url_reader import UrlReader

__all__ = ["Reader", "TextReader", "UrlReader"]
