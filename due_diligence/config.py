# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# Values load in this priority order (highest first):
#   1. Environment variables (e.g., `LLM_PROVIDER=anthropic`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   from due_diligence.config import settings
#   print(settings.llm_model)
# =============================================================================

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults target local development: an in-process ChromaDB index and an
    OpenAI-compatible generation endpoint. API keys have no defaults.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Investment Due-Diligence Agent"
    app_version: str = "0.1.0"
    debug: bool = True
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    # -------------------------------------------------------------------------
    # API Keys — External Services
    # -------------------------------------------------------------------------
    # ANTHROPIC_API_KEY: Claude (when LLM_PROVIDER=anthropic)
    # OPENAI_API_KEY: embeddings, and generation for openai_compatible
    # -------------------------------------------------------------------------
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # -------------------------------------------------------------------------
    # LLM Configuration — Multi-Provider
    # -------------------------------------------------------------------------
    #   - "anthropic": Claude via native Anthropic SDK
    #   - "openai_compatible": any OpenAI-style API (OpenAI, DeepSeek, Qwen...)
    #
    # Agents pass their own temperature / max_tokens per call; these are the
    # fallbacks for callers that don't.
    # -------------------------------------------------------------------------
    llm_provider: str = "openai_compatible"
    llm_base_url: str | None = None
    llm_api_key: str | None = None  # Overrides provider-specific key if set
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 2000

    # Optional "type/model[@base_url]" for the decision agent only, e.g.
    # "anthropic/claude-sonnet-4-6". Unset → same provider as the leaves.
    decision_provider_id: str | None = None

    # -------------------------------------------------------------------------
    # Embedding Configuration
    # -------------------------------------------------------------------------
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1024
    embedding_base_url: str | None = None
    embedding_batch_size: int = 100

    # -------------------------------------------------------------------------
    # Vector Store — ChromaDB
    # -------------------------------------------------------------------------
    # CHROMA_URL unset → in-process client (development, tests).
    # -------------------------------------------------------------------------
    chroma_url: str | None = None
    chroma_collection: str = "investment_due_diligence"

    # -------------------------------------------------------------------------
    # Chunking & Retrieval
    # -------------------------------------------------------------------------
    chunk_size: int = 512
    chunk_overlap: int = 50
    retrieval_top_k: int = 5

    # -------------------------------------------------------------------------
    # Guardrails
    # -------------------------------------------------------------------------
    max_upload_size_mb: float = 10

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------
    # JSON file of substring-match regression scenarios (see services/evals.py)
    # -------------------------------------------------------------------------
    eval_scenarios_path: str = "data/evals.json"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Create and cache the process-wide Settings instance."""
    return Settings()


# ---------------------------------------------------------------------------
# Module-level convenience instance
# ---------------------------------------------------------------------------
settings = get_settings()
