from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _ToolModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentationInfo(_ToolModel):
    name: str
    version: str  # "latest" for unversioned keys
    last_updated: str  # ISO 8601
    paths: list[str]


class ListDocumentationOutput(_ToolModel):
    docs: list[DocumentationInfo]


class UpdateDocumentationInput(_ToolModel):
    package_name: str = Field(min_length=1, max_length=214)
    version: str | None = Field(default=None, max_length=256)

    @field_validator("package_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("packageName must not be empty")
        return v


class UpdateDocumentationOutput(_ToolModel):
    success: bool
    message: str


class GetDocumentationInput(UpdateDocumentationInput):
    path: str | None = Field(default=None, max_length=1024)


class GetDocumentationOutput(_ToolModel):
    content: str
