"""Project-side view of the cache.

A project declares the packages it wants in ``erudita.json`` and receives one
entry per package under ``.erudita/``: either a symlink into the cache or an
independent directory copy. Links only reference cache directories; nothing
here writes inside the cache.
"""

from __future__ import annotations

import json
import shutil
from typing import TYPE_CHECKING, Literal

import structlog
from pydantic import ValidationError

from erudita.errors import ErrorCode, EruditaError
from erudita.keys import decode_key, encode_key
from erudita.models.project import ProjectConfig

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from erudita.cache import CacheStore

log = structlog.get_logger()

PROJECT_CONFIG_FILE = "erudita.json"
PROJECT_LINK_DIR = ".erudita"
PACKAGE_MANIFEST_FILE = "package.json"

LinkMode = Literal["link", "copy"]
DepsFilter = Literal["dev", "prod", "all"]


# ---------------------------------------------------------------------------
# erudita.json
# ---------------------------------------------------------------------------


def read_project_config(project_dir: Path) -> ProjectConfig | None:
    """Read ``erudita.json``. Missing or malformed files yield ``None``."""
    config_path = project_dir / PROJECT_CONFIG_FILE
    if not config_path.is_file():
        return None
    try:
        return ProjectConfig.model_validate_json(config_path.read_text(encoding="utf-8"))
    except (ValidationError, UnicodeDecodeError):
        log.warning("project_config_invalid", path=str(config_path))
        return None


def load_project_config(project_dir: Path) -> ProjectConfig:
    """Existing config, or an empty one."""
    return read_project_config(project_dir) or ProjectConfig()


def write_project_config(project_dir: Path, config: ProjectConfig) -> None:
    config_path = project_dir / PROJECT_CONFIG_FILE
    config_path.write_text(config.model_dump_json(indent=2) + "\n", encoding="utf-8")


# ---------------------------------------------------------------------------
# package.json
# ---------------------------------------------------------------------------


def read_manifest_dependencies(project_dir: Path, which: DepsFilter) -> list[str]:
    """Dependency names declared in ``package.json``.

    ``all`` is the de-duplicated union of ``dependencies`` then
    ``devDependencies``. Missing or malformed manifests yield ``[]``.
    """
    manifest_path = project_dir / PACKAGE_MANIFEST_FILE
    if not manifest_path.is_file():
        return []
    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (ValueError, UnicodeDecodeError):
        log.warning("package_manifest_invalid", path=str(manifest_path))
        return []
    if not isinstance(manifest, dict):
        return []

    def _names(section: str) -> list[str]:
        deps = manifest.get(section)
        return list(deps) if isinstance(deps, dict) else []

    if which == "prod":
        return _names("dependencies")
    if which == "dev":
        return _names("devDependencies")
    return list(dict.fromkeys([*_names("dependencies"), *_names("devDependencies")]))


# ---------------------------------------------------------------------------
# .erudita/ links
# ---------------------------------------------------------------------------


def _remove_entry(path: Path) -> None:
    """Remove a link-dir entry, telling symlinks apart from real directories."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def _entry_exists(path: Path) -> bool:
    # is_symlink() also catches dangling links, which exists() reports as absent
    return path.is_symlink() or path.exists()


class ProjectLinks:
    """Manages ``<project>/.erudita/`` entries pointing into a CacheStore."""

    def __init__(self, project_dir: Path, cache: CacheStore) -> None:
        self.project_dir = project_dir
        self.cache = cache

    @property
    def link_dir(self) -> Path:
        return self.project_dir / PROJECT_LINK_DIR

    def link_path(self, key: str) -> Path:
        return self.link_dir / encode_key(key)

    def create_link(self, key: str, mode: LinkMode = "link") -> Path:
        """Create (or replace) the project entry for ``key``.

        ``link`` creates a symlink to the cache directory; ``copy`` snapshots
        it. Any existing entry is replaced whatever its previous mode.
        """
        target = self.cache.package_dir(key)
        if not target.is_dir():
            raise EruditaError(
                code=ErrorCode.PACKAGE_NOT_CACHED,
                message=f"Package '{key}' is not cached.",
                suggestion=f"Run: erudita fetch {key}",
                recoverable=True,
            )

        self.link_dir.mkdir(parents=True, exist_ok=True)
        path = self.link_path(key)
        if _entry_exists(path):
            _remove_entry(path)

        if mode == "copy":
            shutil.copytree(target, path)
        else:
            # Absolute target; a relative one would resolve against .erudita/
            path.symlink_to(target.resolve(), target_is_directory=True)

        log.info("link_created", key=key, mode=mode, path=str(path))
        return path

    def remove_link(self, key: str) -> bool:
        path = self.link_path(key)
        if not _entry_exists(path):
            return False
        _remove_entry(path)
        log.info("link_removed", key=key)
        return True

    def linked_keys(self) -> list[str]:
        if not self.link_dir.is_dir():
            return []
        return sorted(decode_key(entry.name) for entry in self.link_dir.iterdir())

    def prune_links(self, keep_keys: Iterable[str]) -> list[str]:
        """Remove every entry whose decoded key is not in ``keep_keys``.

        Returns the removed keys.
        """
        if not self.link_dir.is_dir():
            return []

        keep = set(keep_keys)
        removed: list[str] = []
        for entry in sorted(self.link_dir.iterdir()):
            key = decode_key(entry.name)
            if key in keep:
                continue
            _remove_entry(entry)
            removed.append(key)

        if removed:
            log.info("links_pruned", removed=removed)
        return removed
