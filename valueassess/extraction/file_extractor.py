"""Reads uploaded documents into capped text excerpts for the prompts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Union

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from valueassess.models.product import MAX_DOCUMENT_CHARS, DocumentText, truncate_document_text

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = frozenset({".txt", ".md", ".csv", ".json", ".html", ".htm", ".xml", ".yaml", ".yml"})


class FileExtractor:
    """Extracts text from PDF and text-like files.

    Unsupported types yield a placeholder instead of failing the batch.
    """

    def __init__(self, max_characters: int = MAX_DOCUMENT_CHARS) -> None:
        self.max_characters = max_characters

    def extract(self, paths: Iterable[Union[str, Path]]) -> list[DocumentText]:
        return [self.extract_file(Path(path)) for path in paths]

    def extract_file(self, path: Path) -> DocumentText:
        suffix = path.suffix.lower()
        if suffix == ".pdf":
            text = self._read_pdf(path)
        elif suffix in TEXT_SUFFIXES:
            text = path.read_text(encoding="utf-8", errors="replace")
        else:
            logger.warning(f"Unsupported file type for {path.name}: {suffix or '(none)'}")
            text = f"[Unsupported file type: {suffix or 'unknown'}]"
        return DocumentText(filename=path.name, text=self.truncate(text))

    def truncate(self, text: str) -> str:
        return truncate_document_text(text, self.max_characters)

    def _read_pdf(self, path: Path) -> str:
        try:
            reader = PdfReader(str(path))
            pages = [page.extract_text() or "" for page in reader.pages]
        except PyPdfError as e:
            logger.error(f"PDF extraction failed for {path.name}: {e}")
            return ""
        return "\n".join(pages)
