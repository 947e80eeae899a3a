"""Filesystem documentation cache.

Layout under the configured cache root::

    <root>/packages/<encoded-key>/
        llms.txt         raw index text
        meta.json        {name, sourceUrl, fetchedAt}
        docs/<filename>  one file per fetched document

The parsed index is never stored; it is derived from ``llms.txt`` on demand,
so there is no persisted schema to migrate.

Read paths treat unparsable ``meta.json`` as a cache miss. Write paths let
``OSError`` propagate: a cache that cannot be written is fatal for the
operation that tried. The store is not safe for concurrent writer processes.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from contextlib import suppress
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from erudita.keys import decode_key, encode_key
from erudita.models.cache import CachedPackageMeta
from erudita.parser import FALLBACK_FILENAME, parse_index

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from erudita.models.docs import IndexDocument

log = structlog.get_logger()

PACKAGES_DIR = "packages"
INDEX_FILE = "llms.txt"
META_FILE = "meta.json"
DOCS_DIR = "docs"


def sanitize_filename(filename: str) -> str:
    """Flatten a document filename into a single safe path component."""
    safe = filename.replace("/", "_").replace("\\", "_")
    if safe in ("", ".", ".."):
        return FALLBACK_FILENAME
    return safe


def _write_atomic(path: Path, content: str) -> None:
    """Write via a temp file in the same directory, then rename over ``path``."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        with suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


class CacheStore:
    """Package-keyed documentation store rooted at an explicit directory."""

    def __init__(self, root: Path, *, clear_docs_on_write: bool = True) -> None:
        self.root = root
        self._clear_docs_on_write = clear_docs_on_write

    @property
    def packages_dir(self) -> Path:
        return self.root / PACKAGES_DIR

    def package_dir(self, key: str) -> Path:
        return self.packages_dir / encode_key(key)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def is_cached(self, key: str) -> bool:
        """Directory presence only; nothing is parsed."""
        return self.package_dir(key).is_dir()

    def get_meta(self, key: str) -> CachedPackageMeta | None:
        """Read ``meta.json``. Returns ``None`` when missing or unparsable."""
        meta_path = self.package_dir(key) / META_FILE
        if not meta_path.is_file():
            return None
        try:
            return CachedPackageMeta.model_validate_json(meta_path.read_text(encoding="utf-8"))
        except (ValidationError, UnicodeDecodeError):
            log.warning("cache_meta_invalid", key=key, path=str(meta_path))
            return None

    def get_index_text(self, key: str) -> str | None:
        index_path = self.package_dir(key) / INDEX_FILE
        if not index_path.is_file():
            return None
        return index_path.read_text(encoding="utf-8")

    def get_index(self, key: str) -> IndexDocument | None:
        """Parse the stored index text on demand."""
        content = self.get_index_text(key)
        if content is None:
            return None
        return parse_index(content)

    def get_document(self, key: str, filename: str) -> str | None:
        doc_path = self.package_dir(key) / DOCS_DIR / sanitize_filename(filename)
        if not doc_path.is_file():
            return None
        return doc_path.read_text(encoding="utf-8")

    def list_documents(self, key: str) -> list[str]:
        """Filenames in the package's documents directory, sorted."""
        docs_dir = self.package_dir(key) / DOCS_DIR
        if not docs_dir.is_dir():
            return []
        return sorted(p.name for p in docs_dir.iterdir() if p.is_file())

    def list_packages(self) -> list[CachedPackageMeta]:
        """Metadata of every cached package, skipping unreadable entries."""
        if not self.packages_dir.is_dir():
            return []

        result: list[CachedPackageMeta] = []
        for entry in sorted(self.packages_dir.iterdir()):
            if not entry.is_dir():
                continue
            meta = self.get_meta(decode_key(entry.name))
            if meta is not None:
                result.append(meta)
        return result

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def cache(
        self,
        key: str,
        source_url: str,
        raw_index: str,
        documents: Mapping[str, str],
    ) -> CachedPackageMeta:
        """Create or overwrite the cache entry for ``key``.

        With ``clear_docs_on_write`` (the default) documents from a previous
        fetch are removed first, so the entry mirrors exactly this fetch.
        """
        package_dir = self.package_dir(key)
        docs_dir = package_dir / DOCS_DIR

        if self._clear_docs_on_write and docs_dir.is_dir():
            shutil.rmtree(docs_dir)
        docs_dir.mkdir(parents=True, exist_ok=True)

        (package_dir / INDEX_FILE).write_text(raw_index, encoding="utf-8")

        for filename, content in documents.items():
            (docs_dir / sanitize_filename(filename)).write_text(content, encoding="utf-8")

        meta = CachedPackageMeta(name=key, source_url=source_url, fetched_at=datetime.now(UTC))
        _write_atomic(package_dir / META_FILE, meta.model_dump_json(by_alias=True, indent=2))

        log.info("cache_write_complete", key=key, documents=len(documents))
        return meta

    def remove(self, key: str) -> bool:
        """Delete one package. Returns whether anything was removed."""
        package_dir = self.package_dir(key)
        if not package_dir.exists():
            return False
        shutil.rmtree(package_dir)
        log.info("cache_package_removed", key=key)
        return True

    def clear_all(self) -> None:
        """Delete the entire cache root."""
        if self.root.exists():
            shutil.rmtree(self.root)
            log.info("cache_cleared", root=str(self.root))
