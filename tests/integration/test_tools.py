"""Integration tests for MCP tool handlers.

Tests the full path through each handler: input validation → business logic
→ output serialisation. Uses a real AppState over a tmp_path cache with the
network mocked by respx.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from erudita.errors import ErrorCode, EruditaError
from erudita.tools.get_documentation import handle as get_docs_handle
from erudita.tools.list_documentation import handle as list_docs_handle
from erudita.tools.update_documentation import handle as update_docs_handle

if TYPE_CHECKING:
    import respx

    from erudita.state import AppState


class TestUpdateDocumentationHandler:
    async def test_fetches_and_caches(
        self, app_state: AppState, vue_site: respx.MockRouter
    ) -> None:
        result = await update_docs_handle("vue", None, app_state)
        assert result == {
            "success": True,
            "message": "Documentation updated for vue (2 docs, 1 failed)",
        }
        assert app_state.cache.is_cached("vue")

    async def test_versioned_key(self, app_state: AppState, vue_site: respx.MockRouter) -> None:
        result = await update_docs_handle("vue", "3.4.0", app_state)
        assert result["success"] is True
        assert app_state.cache.is_cached("vue@3.4.0")
        assert not app_state.cache.is_cached("vue")

    async def test_cached_package_keeps_origin(
        self, app_state: AppState, vue_site: respx.MockRouter
    ) -> None:
        await update_docs_handle("vue", None, app_state)
        registry_calls = vue_site["registry_vue"].call_count
        await update_docs_handle("vue", None, app_state)
        assert vue_site["registry_vue"].call_count == registry_calls
        assert vue_site["vue_index"].call_count == 2

    async def test_unresolvable_package(
        self, app_state: AppState, vue_site: respx.MockRouter
    ) -> None:
        result = await update_docs_handle("nope", None, app_state)
        assert result == {
            "success": False,
            "message": "Could not find a documentation website for nope",
        }

    async def test_index_missing(self, app_state: AppState, vue_site: respx.MockRouter) -> None:
        # pinia resolves to github.com/vuejs/pinia, which serves no llms.txt
        result = await update_docs_handle("pinia", None, app_state)
        assert result["success"] is False
        assert result["message"].startswith("Failed to update documentation for pinia:")
        assert "Could not find llms.txt" in result["message"]
        assert not app_state.cache.is_cached("pinia")

    @pytest.mark.parametrize("name", ["", "   ", "x" * 215])
    async def test_invalid_name(self, app_state: AppState, name: str) -> None:
        with pytest.raises(EruditaError) as exc_info:
            await update_docs_handle(name, None, app_state)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT
        assert exc_info.value.recoverable is False


class TestListDocumentationHandler:
    async def test_empty_cache(self, app_state: AppState) -> None:
        assert await list_docs_handle(app_state) == {"docs": []}

    async def test_lists_cached_packages(
        self, app_state: AppState, vue_site: respx.MockRouter
    ) -> None:
        await update_docs_handle("vue", None, app_state)
        await update_docs_handle("vue", "3.4.0", app_state)

        result = await list_docs_handle(app_state)
        docs = {(d["name"], d["version"]): d for d in result["docs"]}
        assert set(docs) == {("vue", "latest"), ("vue", "3.4.0")}

        latest = docs[("vue", "latest")]
        assert set(latest) == {"name", "version", "lastUpdated", "paths"}
        assert latest["paths"] == ["introduction.md", "quick-start.md"]
        assert "T" in latest["lastUpdated"]


class TestGetDocumentationHandler:
    @pytest.fixture()
    async def cached(self, app_state: AppState, vue_site: respx.MockRouter) -> AppState:
        await update_docs_handle("vue", None, app_state)
        return app_state

    async def test_without_path_returns_index(self, cached: AppState, sample_index: str) -> None:
        assert await get_docs_handle("vue", None, None, cached) == {"content": sample_index}

    async def test_document_by_path(self, cached: AppState) -> None:
        result = await get_docs_handle("vue", None, "introduction.md", cached)
        assert result == {"content": "# Introduction\n"}

    async def test_llms_txt_path_returns_index(self, cached: AppState, sample_index: str) -> None:
        result = await get_docs_handle("vue", None, "llms.txt", cached)
        assert result["content"] == sample_index

    async def test_missing_path(self, cached: AppState) -> None:
        with pytest.raises(EruditaError) as exc_info:
            await get_docs_handle("vue", None, "reactivity.md", cached)
        assert exc_info.value.code == ErrorCode.DOCUMENT_NOT_FOUND
        assert "introduction.md" in exc_info.value.suggestion

    async def test_not_cached(self, app_state: AppState) -> None:
        with pytest.raises(EruditaError) as exc_info:
            await get_docs_handle("react", None, None, app_state)
        assert exc_info.value.code == ErrorCode.PACKAGE_NOT_CACHED
        assert exc_info.value.recoverable is True

    async def test_not_cached_suggests_close_match(self, cached: AppState) -> None:
        with pytest.raises(EruditaError) as exc_info:
            await get_docs_handle("vuee", None, None, cached)
        assert "Did you mean 'vue'?" in exc_info.value.suggestion

    async def test_never_touches_network(
        self, cached: AppState, vue_site: respx.MockRouter
    ) -> None:
        calls = len(vue_site.calls)
        await get_docs_handle("vue", None, "quick-start.md", cached)
        assert len(vue_site.calls) == calls

    async def test_empty_name(self, app_state: AppState) -> None:
        with pytest.raises(EruditaError) as exc_info:
            await get_docs_handle(" ", None, None, app_state)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT
