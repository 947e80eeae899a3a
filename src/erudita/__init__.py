"""Erudita: llms.txt documentation for npm packages, cached and linked.

Package documentation is resolved through the npm registry, fetched from the
package website's ``llms.txt`` index, stored in a local cache and linked into
projects under ``.erudita/``. The same cache backs the ``erudita`` CLI and the
MCP tools served by :mod:`erudita.server`.
"""

from __future__ import annotations

import warnings
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("erudita")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    warnings.warn(
        "Package metadata for 'erudita' not found; using fallback version '0.0.0+unknown'.",
        RuntimeWarning,
        stacklevel=2,
    )
    __version__ = "0.0.0+unknown"
