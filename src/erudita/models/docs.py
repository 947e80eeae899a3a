from __future__ import annotations

from pydantic import BaseModel


class IndexEntry(BaseModel):
    """One linked document declared in an llms.txt index."""

    title: str  # "<section> - <label>" or just "<label>"
    url: str  # As written in the index; may be relative
    description: str | None = None


class IndexDocument(BaseModel):
    """Parsed llms.txt index. Never persisted, always derived from raw text."""

    title: str = ""
    description: str | None = None
    entries: list[IndexEntry] = []

    @property
    def is_empty(self) -> bool:
        return not self.title and not self.entries
