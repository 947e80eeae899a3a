"""Integration test fixtures.

``vue_site`` mocks the package registry and a documentation site with respx.
Anything not explicitly routed answers 404, so unresolvable packages and
missing documents behave like they would against real servers. Settings,
cache and AppState fixtures come from tests/conftest.py.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import respx

if TYPE_CHECKING:
    from collections.abc import Iterator

    from erudita.config import Settings


@pytest.fixture()
def vue_site(settings: Settings, sample_index: str) -> Iterator[respx.MockRouter]:
    registry = settings.registry.url
    with respx.mock(assert_all_called=False) as router:
        router.get(f"{registry}/vue", name="registry_vue").mock(
            return_value=httpx.Response(200, json={"name": "vue", "homepage": "https://vuejs.org/"})
        )
        router.get(f"{registry}/pinia").mock(
            return_value=httpx.Response(
                200,
                json={
                    "name": "pinia",
                    "repository": {"type": "git", "url": "git+https://github.com/vuejs/pinia.git"},
                },
            )
        )
        router.get("https://vuejs.org/llms.txt", name="vue_index").mock(
            return_value=httpx.Response(200, text=sample_index)
        )
        router.get("https://vuejs.org/guide/introduction.md").mock(
            return_value=httpx.Response(200, text="# Introduction\n")
        )
        router.get("https://vuejs.org/guide/quick-start.md").mock(
            return_value=httpx.Response(200, text="# Quick Start\n")
        )
        # api/reactivity.md is deliberately unrouted: one failed document per fetch
        router.route().mock(return_value=httpx.Response(404))
        yield router
