"""llms.txt index parser.

Single-pass, line-oriented algorithm that turns raw index markdown into an
IndexDocument. Only a narrow subset of markdown is recognised:

  # Title                      → document title (first one wins)
  > quoted text                → description (first blockquote only)
  ## Section                   → section label for the entries that follow
  - [Label](url): description  → entry (also "*" bullets)
  [Label](url)                 → entry without bullet

Every other line is ignored. The parser never raises on odd input: a
document with no title and no entries is returned as-is and rejected by the
caller (see pipeline.py).

The URL helpers below are also pure; the same resolution rules are used for
path filtering and for building document fetch URLs.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from erudita.models.docs import IndexDocument, IndexEntry

FALLBACK_FILENAME = "doc.md"

_BULLET_LINK_RE = re.compile(r"^[-*]\s*\[([^\]]+)\]\(([^)]+)\)(?::\s*(.+))?$")
_PLAIN_LINK_RE = re.compile(r"^\[([^\]]+)\]\(([^)]+)\)$")


def parse_index(content: str) -> IndexDocument:
    """Parse raw llms.txt text into an IndexDocument."""
    title = ""
    description: str | None = None
    entries: list[IndexEntry] = []

    section = ""
    quote_lines: list[str] = []
    in_quote = False

    for line in content.splitlines():
        stripped = line.strip()

        # Rule 1: blockquote accumulation, closed by a blank line
        if stripped.startswith(">"):
            in_quote = True
            quote_lines.append(stripped[1:].strip())
            continue

        if in_quote and not stripped:
            if description is None and quote_lines:
                description = " ".join(quote_lines)
            in_quote = False
            quote_lines = []
            continue

        # Rule 2: title
        if stripped.startswith("# "):
            if not title:
                title = stripped[2:].strip()
            continue

        # Rule 3: section label
        if stripped.startswith("## "):
            section = stripped[3:].strip()
            continue

        # Rule 4: entries
        match = _BULLET_LINK_RE.match(stripped)
        if match:
            label, url, entry_description = match.groups()
            entries.append(
                IndexEntry(
                    title=_entry_title(section, label),
                    url=url.strip(),
                    description=entry_description.strip() if entry_description else None,
                )
            )
            continue

        match = _PLAIN_LINK_RE.match(stripped)
        if match:
            label, url = match.groups()
            entries.append(IndexEntry(title=_entry_title(section, label), url=url.strip()))

    # Blockquote running to end of input
    if in_quote and description is None and quote_lines:
        description = " ".join(quote_lines)

    return IndexDocument(title=title, description=description, entries=entries)


def _entry_title(section: str, label: str) -> str:
    return f"{section} - {label}" if section else label


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------


def resolve_url(index_url: str, entry_url: str) -> str | None:
    """Resolve an entry URL (absolute, path-absolute or relative) against the index URL.

    Returns None when the entry URL is malformed (e.g. an unclosed IPv6 host).
    """
    try:
        return urljoin(index_url, entry_url)
    except ValueError:
        return None


def extract_doc_urls(document: IndexDocument, index_url: str) -> list[str | None]:
    """Return the resolved fetch URL of every entry, in entry order.

    Unresolvable entries keep their position as None.
    """
    return [resolve_url(index_url, entry.url) for entry in document.entries]


def filename_from_url(url: str) -> str:
    """Final path segment of ``url``, or ``doc.md`` when the path has none."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return FALLBACK_FILENAME
    name = path.rsplit("/", 1)[-1]
    if name in ("", ".", ".."):
        return FALLBACK_FILENAME
    return name


def filter_entries_by_path(
    entries: list[IndexEntry],
    path_prefix: str,
    index_url: str,
) -> list[IndexEntry]:
    """Keep entries whose resolved path is ``path_prefix`` or lies beneath it.

    Matching is segment-exact: ``/docs/section-extra/a.md`` does not match
    ``/docs/section``. Entries resolving to a different host than the index
    are dropped; third-party docs never belong to a first-party path.
    """
    prefix = path_prefix.rstrip("/")
    if not prefix:
        return list(entries)

    index_host = (urlsplit(index_url).hostname or "").lower()
    kept: list[IndexEntry] = []
    for entry in entries:
        resolved_url = resolve_url(index_url, entry.url)
        if resolved_url is None:
            continue
        resolved = urlsplit(resolved_url)
        if (resolved.hostname or "").lower() != index_host:
            continue
        path = resolved.path
        if path == prefix or path.startswith(prefix + "/"):
            kept.append(entry)
    return kept
