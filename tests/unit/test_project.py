"""Unit tests for erudita.project: erudita.json, package.json and .erudita/ links."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from erudita.cache import CacheStore
from erudita.errors import ErrorCode, EruditaError
from erudita.models.project import PackageRef, ProjectConfig
from erudita.project import (
    PROJECT_CONFIG_FILE,
    ProjectLinks,
    load_project_config,
    read_manifest_dependencies,
    read_project_config,
    write_project_config,
)


@pytest.fixture()
def links(project_dir: Path, cache_store: CacheStore) -> ProjectLinks:
    cache_store.cache("vue", "https://vuejs.org", "# Vue\n", {"intro.md": "intro"})
    cache_store.cache("@vue/router", "https://router.vuejs.org", "# Router\n", {})
    return ProjectLinks(project_dir, cache_store)


# ---------------------------------------------------------------------------
# erudita.json
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_missing_config(self, project_dir: Path) -> None:
        assert read_project_config(project_dir) is None
        assert load_project_config(project_dir) == ProjectConfig()

    def test_round_trip(self, project_dir: Path) -> None:
        config = ProjectConfig(packages={"vue": PackageRef(url="https://vuejs.org")})
        write_project_config(project_dir, config)
        assert read_project_config(project_dir) == config

    def test_on_disk_shape(self, project_dir: Path) -> None:
        write_project_config(
            project_dir, ProjectConfig(packages={"vue": PackageRef(url="https://vuejs.org")})
        )
        raw = json.loads((project_dir / PROJECT_CONFIG_FILE).read_text())
        assert raw == {"packages": {"vue": {"url": "https://vuejs.org"}}}

    def test_malformed_config_is_none(self, project_dir: Path) -> None:
        (project_dir / PROJECT_CONFIG_FILE).write_text("{broken")
        assert read_project_config(project_dir) is None
        assert load_project_config(project_dir).packages == {}


# ---------------------------------------------------------------------------
# package.json
# ---------------------------------------------------------------------------


class TestManifestDependencies:
    @pytest.fixture()
    def manifest(self, project_dir: Path) -> Path:
        path = project_dir / "package.json"
        path.write_text(
            json.dumps(
                {
                    "dependencies": {"vue": "^3.4.0", "pinia": "^2.0.0"},
                    "devDependencies": {"vitest": "^1.0.0", "vue": "^3.4.0"},
                }
            )
        )
        return path

    def test_prod(self, project_dir: Path, manifest: Path) -> None:
        assert read_manifest_dependencies(project_dir, "prod") == ["vue", "pinia"]

    def test_dev(self, project_dir: Path, manifest: Path) -> None:
        assert read_manifest_dependencies(project_dir, "dev") == ["vitest", "vue"]

    def test_all_deduplicated(self, project_dir: Path, manifest: Path) -> None:
        assert read_manifest_dependencies(project_dir, "all") == ["vue", "pinia", "vitest"]

    def test_missing_manifest(self, project_dir: Path) -> None:
        assert read_manifest_dependencies(project_dir, "all") == []

    def test_malformed_manifest(self, project_dir: Path) -> None:
        (project_dir / "package.json").write_text("[1, 2")
        assert read_manifest_dependencies(project_dir, "all") == []


# ---------------------------------------------------------------------------
# .erudita/ links
# ---------------------------------------------------------------------------


class TestProjectLinks:
    def test_symlink_points_into_cache(self, links: ProjectLinks, cache_store: CacheStore) -> None:
        path = links.create_link("vue", "link")
        assert path.is_symlink()
        assert path.resolve() == cache_store.package_dir("vue").resolve()
        assert (path / "docs" / "intro.md").read_text() == "intro"

    def test_copy_is_independent(self, links: ProjectLinks, cache_store: CacheStore) -> None:
        path = links.create_link("vue", "copy")
        assert path.is_dir() and not path.is_symlink()
        cache_store.remove("vue")
        assert (path / "docs" / "intro.md").read_text() == "intro"

    def test_link_replaced_by_copy(self, links: ProjectLinks) -> None:
        links.create_link("vue", "link")
        path = links.create_link("vue", "copy")
        assert path.is_dir() and not path.is_symlink()
        assert links.linked_keys() == ["vue"]

    def test_copy_replaced_by_link(self, links: ProjectLinks) -> None:
        links.create_link("vue", "copy")
        path = links.create_link("vue", "link")
        assert path.is_symlink()
        assert links.linked_keys() == ["vue"]

    def test_uncached_package_raises(self, links: ProjectLinks) -> None:
        with pytest.raises(EruditaError) as exc_info:
            links.create_link("react")
        assert exc_info.value.code == ErrorCode.PACKAGE_NOT_CACHED

    def test_scoped_key_decoded(self, links: ProjectLinks) -> None:
        links.create_link("@vue/router")
        assert links.linked_keys() == ["@vue/router"]

    def test_remove_link(self, links: ProjectLinks) -> None:
        links.create_link("vue")
        assert links.remove_link("vue") is True
        assert links.linked_keys() == []
        assert links.remove_link("vue") is False

    def test_remove_link_keeps_cache(self, links: ProjectLinks, cache_store: CacheStore) -> None:
        links.create_link("vue", "link")
        links.remove_link("vue")
        assert cache_store.is_cached("vue")

    def test_link_replaced_after_recache(
        self, links: ProjectLinks, cache_store: CacheStore
    ) -> None:
        links.create_link("vue", "link")
        cache_store.remove("vue")
        cache_store.cache("vue", "https://vuejs.org", "# Vue\n", {})
        assert links.create_link("vue", "link").is_symlink()

    def test_symlink_with_relative_cache_root(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        store = CacheStore(Path("rel-cache"))
        store.cache("vue", "https://vuejs.org", "# Vue\n", {"intro.md": "intro"})
        project = Path("proj")
        project.mkdir()

        path = ProjectLinks(project, store).create_link("vue", "link")

        assert path.readlink().is_absolute()
        assert path.resolve() == (tmp_path / "rel-cache" / "packages" / "vue").resolve()
        assert (path / "docs" / "intro.md").read_text() == "intro"

    def test_prune_links(self, links: ProjectLinks) -> None:
        links.create_link("vue")
        links.create_link("@vue/router", "copy")
        removed = links.prune_links(["vue"])
        assert removed == ["@vue/router"]
        assert links.linked_keys() == ["vue"]

    def test_prune_without_link_dir(self, links: ProjectLinks) -> None:
        assert links.prune_links([]) == []
