"""Package → documentation origin resolution.

Queries the package registry for ``homepage`` / ``repository.url`` and turns
the first usable one into a normalised ``https://`` origin. Every failure
(registry unreachable, non-2xx, unusable metadata) is reported as ``None``;
callers treat that as "no resolvable origin" and move on.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import quote, urlsplit

import httpx
import structlog
from pydantic import ValidationError

from erudita.models.registry import RegistryPackageMeta

if TYPE_CHECKING:
    from erudita.config import RegistrySettings

log = structlog.get_logger()

_SSH_REPO_RE = re.compile(r"^[\w.-]+@([^:/]+):(.+)$")


def normalise_url(url: str) -> str | None:
    """Validate an http(s) URL, upgrade it to https and drop one trailing slash.

    Returns None for anything that is not a well-formed http(s) URL.
    """
    normalised = url.strip()
    if normalised.startswith("http://"):
        normalised = "https://" + normalised[len("http://") :]
    if not normalised.startswith("https://"):
        return None
    if normalised.endswith("/"):
        normalised = normalised[:-1]

    try:
        parts = urlsplit(normalised)
    except ValueError:
        return None
    if not parts.hostname:
        return None
    return normalised


def repo_url_to_website(repo_url: str) -> str | None:
    """Convert a VCS repository URL into a browsable website URL.

      git+https://github.com/user/repo.git → https://github.com/user/repo
      git://github.com/user/repo.git       → https://github.com/user/repo
      git@github.com:user/repo.git         → https://github.com/user/repo
    """
    url = repo_url.strip()

    if url.startswith("git+"):
        url = url[len("git+") :]

    if url.startswith("git://"):
        url = "https://" + url[len("git://") :]

    ssh = _SSH_REPO_RE.match(url)
    if ssh and "://" not in url:
        host, path = ssh.groups()
        url = f"https://{host}/{path.lstrip('/')}"

    # "ssh://git@host/path" style
    if url.startswith("ssh://"):
        parts = urlsplit(url)
        url = f"https://{parts.hostname}{parts.path}" if parts.hostname else url

    if url.endswith(".git"):
        url = url[: -len(".git")]

    return normalise_url(url)


def extract_website_url(meta: RegistryPackageMeta) -> str | None:
    """Prefer ``homepage``; fall back to the repository URL."""
    if meta.homepage:
        website = normalise_url(meta.homepage)
        if website is not None:
            return website

    if meta.repository is not None and meta.repository.url:
        return repo_url_to_website(meta.repository.url)

    return None


async def fetch_registry_meta(
    client: httpx.AsyncClient,
    name: str,
    settings: RegistrySettings,
) -> RegistryPackageMeta | None:
    """Fetch registry metadata for a bare package name. None on any failure."""
    url = f"{settings.url.rstrip('/')}/{quote(name, safe='')}"
    try:
        response = await client.get(url, headers={"Accept": "application/json"})
    except httpx.HTTPError as exc:
        log.warning("registry_lookup_failed", package=name, url=url, error=str(exc))
        return None

    if not response.is_success:
        log.info("registry_lookup_miss", package=name, status_code=response.status_code)
        return None

    try:
        return RegistryPackageMeta.model_validate_json(response.content)
    except ValidationError:
        log.warning("registry_metadata_invalid", package=name, url=url)
        return None


async def resolve_package_url(
    client: httpx.AsyncClient,
    name: str,
    settings: RegistrySettings,
) -> str | None:
    """Resolve a bare package name to its documentation origin."""
    meta = await fetch_registry_meta(client, name, settings)
    if meta is None:
        return None

    website = extract_website_url(meta)
    if website is None:
        log.info("origin_not_found", package=name)
        return None

    log.info("origin_resolved", package=name, url=website)
    return website
