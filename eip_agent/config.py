"""Application configuration loaded from environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Centralised settings — no hardcoded values anywhere else."""

    # Google AI (chat + embeddings). A request's previewToken overrides the key
    # for that request only.
    google_api_key: str = Field(..., env="GOOGLE_API_KEY")
    chat_model: str = Field("gemini-2.5-flash", env="CHAT_MODEL")
    chat_temperature: float = Field(0.8, ge=0.7, le=0.8, env="CHAT_TEMPERATURE")
    embedding_model: str = Field("models/gemini-embedding-001", env="EMBEDDING_MODEL")

    # Vector index (Chroma). With CHROMA_API_KEY set the hosted Chroma Cloud is
    # used, tenant/database acting as the index environment; otherwise a
    # self-hosted Chroma server at CHROMA_HOST:CHROMA_PORT.
    chroma_host: str = Field("localhost", env="CHROMA_HOST")
    chroma_port: int = Field(8000, env="CHROMA_PORT")
    chroma_api_key: Optional[str] = Field(None, env="CHROMA_API_KEY")
    chroma_tenant: Optional[str] = Field(None, env="CHROMA_TENANT")
    chroma_database: Optional[str] = Field(None, env="CHROMA_DATABASE")
    chroma_collection: str = Field("eips", env="CHROMA_COLLECTION")
    retrieval_top_k: int = Field(5, ge=1, env="RETRIEVAL_TOP_K")

    # Session store
    redis_url: str = Field("redis://localhost:6379/0", env="REDIS_URL")

    # Security
    auth_secret: str = Field(..., env="AUTH_SECRET")
    auth_algorithm: str = Field("HS256", env="AUTH_ALGORITHM")
    allowed_origins: str = Field("http://localhost:3000", env="ALLOWED_ORIGINS")

    # App
    app_env: str = Field("development", env="APP_ENV")
    log_level: str = Field("INFO", env="LOG_LEVEL")

    # Derived
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()


settings = get_settings()
