from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CachedPackageMeta(BaseModel):
    """Contents of ``meta.json`` in a cached package directory.

    Serialised with camelCase keys: ``{name, sourceUrl, fetchedAt}``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str  # Full package key, version included
    source_url: str  # Origin the index was fetched from
    fetched_at: datetime
