from typing import Optional

from pydantic import Field, BaseModel
from pydantic_settings import BaseSettings


class CacheSettings(BaseModel):
    """Settings for the resolved type spec cache."""

    backend: str = Field(
        default="memory",
        description=(
            'The backend used to keep resolved modules between calls. Options are "memory", '
            '"sqlite" or "duckdb".'
        ),
    )
    path: Optional[str] = Field(
        default=None,
        description=(
            "The file path for the sqlite/duckdb cache backend. "
            'If None, an in-memory database is used. Ignored by the "memory" backend.'
        ),
    )


class TypeSpecSettings(BaseSettings):
    """Top-level settings for resolving a type spec document."""

    spec_path: Optional[str] = Field(
        default=None,
        description="Path to the combined reflection JSON emitted by the documentation extractor.",
    )
    cache: CacheSettings = Field(
        default_factory=CacheSettings,
        description="A `CacheSettings` object with cache-specific configurations.",
    )
