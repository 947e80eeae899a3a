from __future__ import annotations

from erudita.models.cache import CachedPackageMeta
from erudita.models.docs import IndexDocument, IndexEntry
from erudita.models.project import PackageRef, ProjectConfig
from erudita.models.registry import RegistryPackageMeta, RegistryRepository
from erudita.models.tools import (
    DocumentationInfo,
    GetDocumentationInput,
    GetDocumentationOutput,
    ListDocumentationOutput,
    UpdateDocumentationInput,
    UpdateDocumentationOutput,
)

__all__ = [
    # docs
    "IndexEntry",
    "IndexDocument",
    # cache
    "CachedPackageMeta",
    # project
    "PackageRef",
    "ProjectConfig",
    # registry
    "RegistryPackageMeta",
    "RegistryRepository",
    # tools
    "DocumentationInfo",
    "ListDocumentationOutput",
    "UpdateDocumentationInput",
    "UpdateDocumentationOutput",
    "GetDocumentationInput",
    "GetDocumentationOutput",
]
