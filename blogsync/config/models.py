"""Configuration models."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class NotionConfig(BaseModel):
    """Notion source configuration."""

    database_id: str = Field("", description="Notion database ID")
    token_env: Optional[str] = Field("NOTION_TOKEN", description="Environment variable for integration token")
    token: Optional[str] = Field(None, description="Integration token (prefer token_env)")
    timeout_seconds: float = Field(30.0, description="Request timeout", gt=0)
    max_retries: int = Field(3, description="Retries on transient API errors", ge=0, le=10)
    published_only: bool = Field(False, description="Only fetch pages with Status = Published")


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = Field("openai", description="LLM provider (openai, mock)")
    model: str = Field("gpt-4o-mini", description="Chat model name")
    api_key_env: Optional[str] = Field("OPENAI_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    base_url: Optional[str] = Field(None, description="Base URL for API (e.g., for Ollama)")
    temperature: float = Field(0.3, ge=0.0, le=2.0)


class EmbeddingConfig(BaseModel):
    """Local embedding model configuration."""

    model: str = Field("sentence-transformers/all-MiniLM-L6-v2", description="Feature-extraction model")
    dimensions: int = Field(384, description="Vector dimensionality enforced by the schema", ge=1)
    max_content_chars: int = Field(40_000, description="Body length sent to the LLM", ge=1)


class AssetConfig(BaseModel):
    """Embedded asset handling."""

    allowed_hosts: List[str] = Field(
        default_factory=lambda: ["prod-files-secure.s3", "amazonaws.com", "notion.so"],
        description="Host fragments whose images are downloaded and stored locally",
    )
    local_prefix: str = Field("db://image/", description="Prefix of local asset references")
    timeout_seconds: float = Field(30.0, gt=0)

    @field_validator("local_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """Local references must look like a URI scheme."""
        if "://" not in v:
            raise ValueError(f"local_prefix must contain a scheme, got {v!r}")
        return v


class StoreConfig(BaseModel):
    """Persisted store configuration."""

    existing_path: Optional[str] = Field(None, description="Snapshot to load before diffing")


class ExportConfig(BaseModel):
    """Snapshot export configuration."""

    output_path: str = Field("./db/blog.db.gz", description="Where the new snapshot is written")


class PipelineConfig(BaseModel):
    """Pipeline behaviour."""

    atomic_update: bool = Field(True, description="Wrap the update phase in a single transaction")


class ConfigModel(BaseModel):
    """Main configuration model."""

    notion: NotionConfig = Field(default_factory=NotionConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    assets: AssetConfig = Field(default_factory=AssetConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
