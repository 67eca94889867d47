from pathlib import Path
from typing import IO, Any, List, Optional, Union

from tutor.knowledge.document import Document
from tutor.knowledge.reader.base import Reader
from tutor.utils.log import log_debug, log_error, log_info

SUPPORTED_SUFFIXES = (".txt", ".md", ".markdown", ".rst")


class TextReader(Reader):
    """Reader for plain text and markdown files"""

    def read(self, file: Union[Path, IO[Any]], name: Optional[str] = None) -> List[Document]:
        try:
            if isinstance(file, Path):
                if not file.exists():
                    raise FileNotFoundError(f"Could not find file: {file}")
                if file.suffix.lower() not in SUPPORTED_SUFFIXES:
                    log_debug(f"Reading {file.suffix} file as plain text")
                log_info(f"Reading: {file}")
                file_name = name or file.stem
                file_contents = file.read_text(encoding="utf-8")
            else:
                file_name = name or Path(getattr(file, "name", "text")).stem
                log_info(f"Reading uploaded file: {file_name}")
                file.seek(0)
                raw = file.read()
                file_contents = raw.decode("utf-8") if isinstance(raw, bytes) else raw

            documents = [
                Document(
                    name=file_name,
                    id=file_name,
                    meta_data={"source": str(file) if isinstance(file, Path) else file_name},
                    content=file_contents,
                )
            ]
            return self.chunk_documents(documents)
        except Exception as e:
            log_error(f"Error reading: {file}: {e}")
            return []

    def read_text(self, text: str, name: Optional[str] = None) -> List[Document]:
        """Wrap raw text in a document, chunking it when enabled."""
        if not text:
            return []
        documents = [Document(name=name, id=name, content=text)]
        return self.chunk_documents(documents)
