from __future__ import annotations

from pydantic import BaseModel, field_validator


class RegistryRepository(BaseModel):
    type: str | None = None
    url: str | None = None


class RegistryPackageMeta(BaseModel):
    """Subset of a package registry document used for origin resolution."""

    name: str | None = None
    homepage: str | None = None
    repository: RegistryRepository | None = None

    @field_validator("repository", mode="before")
    @classmethod
    def coerce_shorthand(cls, v: object) -> object:
        # Registries accept "repository": "<url>" as shorthand for {"url": ...}
        if isinstance(v, str):
            return {"url": v}
        return v
