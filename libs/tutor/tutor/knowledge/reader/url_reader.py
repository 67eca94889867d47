from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

import httpx

from tutor.knowledge.document import Document
from tutor.knowledge.reader.base import Reader
from tutor.utils.log import log_debug, log_error, log_info

try:
    from bs4 import BeautifulSoup, Tag  # noqa: F401
except ImportError:
    raise ImportError("The `bs4` package is not installed. Please install it via `pip install beautifulsoup4`.")


@dataclass
class UrlReader(Reader):
    """Reader for web pages and plain text URLs"""

    timeout: float = 10.0
    user_agent: str = "Mozilla/5.0 (compatible; CookbookTutor/1.0)"

    def _extract_main_content(self, soup: BeautifulSoup) -> str:
        """Extract the main content from a BeautifulSoup object."""
        for tag in soup(["script", "style", "nav", "footer", "header", "noscript"]):
            tag.decompose()

        def match(tag: Tag) -> bool:
            if tag.name in ["article", "main"]:
                return True
            if any(cls in ["content", "main-content", "post-content"] for cls in tag.get("class", []) or []):
                return True
            return False

        element = soup.find(match)
        if element:
            return element.get_text(strip=True, separator=" ")
        return soup.get_text(strip=True, separator=" ")

    def fetch(self, url: str) -> httpx.Response:
        log_debug(f"Fetching: {url}")
        response = httpx.get(
            url, timeout=self.timeout, follow_redirects=True, headers={"User-Agent": self.user_agent}
        )
        response.raise_for_status()
        return response

    def read(self, url: str, name: Optional[str] = None) -> List[Document]:
        if not url:
            raise ValueError("No url provided")

        log_info(f"Reading: {url}")
        try:
            response = self.fetch(url)
        except httpx.HTTPStatusError as e:
            log_error(f"HTTP error reading {url}: {e.response.status_code}")
            return []
        except httpx.HTTPError as e:
            log_error(f"Error reading {url}: {e}")
            return []

        content_type = response.headers.get("content-type", "")
        if "html" in content_type or response.text.lstrip().startswith("<"):
            soup = BeautifulSoup(response.text, "html.parser")
            content = self._extract_main_content(soup)
        else:
            content = response.text

        if not content:
            log_error(f"No content found at {url}")
            return []

        document_name = name or urlparse(url).path.strip("/").split("/")[-1] or urlparse(url).netloc
        documents = [Document(name=document_name, id=document_name, meta_data={"url": url}, content=content)]
        return self.chunk_documents(documents)
