"""Source tree discovery for per-language documentation directories."""

from __future__ import annotations

import os
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterator, List

from .config import LLMSConfig
from .logging import get_logger
from .markdown import extract_title, strip_frontmatter, title_from_slug
from .models import Document

_EXCLUDED_DIRS = {
    "llms",
    "assets",
    ".vitepress",
    "node_modules",
    "__pycache__",
}

_EXCLUDED_FILES = {
    "index.md",
}

_SOURCE_SUFFIX = ".md"


class DirectoryNotFoundError(FileNotFoundError):
    """Raised when the document tree for a language does not exist."""

    def __init__(self, language: str, path: Path) -> None:
        super().__init__(f"Document directory not found for language {language!r}: {path}")
        self.language = language
        self.path = path


def document_id_for(relative_path: str) -> str:
    """Derive a stable document id from a path relative to the language root.

    Path segments are joined with ``--``; characters outside ``[a-z0-9-]``
    become single dashes.
    """
    without_ext = relative_path[: -len(_SOURCE_SUFFIX)] if relative_path.endswith(_SOURCE_SUFFIX) else relative_path
    joined = "--".join(part for part in without_ext.split("/") if part).lower()
    cleaned = re.sub(r"[^a-z0-9-]", "-", joined)
    cleaned = re.sub(r"-{3,}", "--", cleaned)
    return cleaned.strip("-")


def category_for(relative_path: str, default: str) -> str:
    parts = relative_path.split("/")
    if len(parts) < 2:
        return default
    return document_id_for(parts[0]) or default


class SourceTreeReader:
    """Walks ``<docs_dir>/<language>`` and returns the documents it holds."""

    def __init__(self, config: LLMSConfig) -> None:
        self.config = config
        self.logger = get_logger("source_tree")

    def language_root(self, language: str) -> Path:
        return self.config.paths.docs_dir / language

    def discover(self, language: str) -> List[Document]:
        """Return every document under the language root, sorted by id."""
        root = self.language_root(language)
        if not root.is_dir():
            raise DirectoryNotFoundError(language, root)

        documents: List[Document] = []
        seen: dict[str, str] = {}
        for path in _iter_sources(root):
            rel_path = path.relative_to(root).as_posix()
            try:
                stat_result = path.stat()
            except OSError as exc:
                self.logger.warning("Skipping unreadable source %s: %s", rel_path, exc)
                continue
            if not os.access(path, os.R_OK):
                self.logger.warning("Skipping unreadable source %s: permission denied", rel_path)
                continue

            category = category_for(rel_path, self.config.default_category)
            doc_id = document_id_for(rel_path)
            if "/" not in rel_path:
                doc_id = f"{category}--{doc_id}"
            if doc_id in seen:
                self.logger.warning(
                    "Skipping %s: document id %s already used by %s", rel_path, doc_id, seen[doc_id]
                )
                continue
            seen[doc_id] = rel_path

            documents.append(
                Document(
                    id=doc_id,
                    language=language,
                    category=category,
                    source_path=rel_path,
                    size_bytes=stat_result.st_size,
                    modified_at=datetime.fromtimestamp(stat_result.st_mtime, tz=UTC),
                )
            )

        documents.sort(key=lambda document: document.id)
        self.logger.debug("Discovered %d documents for %s", len(documents), language)
        return documents

    def source_file(self, document: Document) -> Path:
        return self.language_root(document.language) / document.source_path

    def read_source(self, document: Document) -> str:
        """Return the document's Markdown with any frontmatter removed."""
        text = self.source_file(document).read_text(encoding="utf-8")
        return strip_frontmatter(text)

    def title_for(self, document: Document, text: str | None = None) -> str:
        fallback = title_from_slug(document.slug.replace("--", "-"))
        if text is None:
            try:
                text = self.read_source(document)
            except (OSError, UnicodeDecodeError):
                return fallback
        return extract_title(text, fallback)


def _iter_sources(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            name for name in dirnames if name not in _EXCLUDED_DIRS and not name.startswith(".")
        )
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES or not filename.endswith(_SOURCE_SUFFIX):
                continue
            yield current_dir / filename


__all__ = ["DirectoryNotFoundError", "SourceTreeReader", "category_for", "document_id_for"]
