from __future__ import annotations

from pydantic import BaseModel


class PackageRef(BaseModel):
    url: str


class ProjectConfig(BaseModel):
    """Contents of ``erudita.json``: the packages a project wants linked."""

    packages: dict[str, PackageRef] = {}
