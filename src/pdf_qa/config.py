"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from pdf_qa.errors import ConfigurationError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key, used for both chat and embeddings")
    llm_model_name: str = Field(default="gpt-4o-mini", description="Chat model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible chat endpoint. Leave empty to "
            "use OpenAI cloud, e.g. 'http://localhost:8000/v1' for a local vLLM."
        ),
    )
    llm_temperature: float = 0.0
    assistant_persona: str = Field(
        default="documentation QA expert",
        description="Role the answering model is told to play",
    )

    # Embedding
    embedding_provider: Literal["openai", "huggingface"] = "openai"
    embedding_model: str = "text-embedding-3-small"

    # Vector store
    vector_store_backend: Literal["pinecone", "chroma"] = "pinecone"
    pinecone_api_key: str = ""
    pinecone_index_name: str = ""
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "pdf_qa"
    chroma_dimension: int = Field(default=1536, description="Dimension declared on newly created Chroma collections")

    # Ingestion
    manual_pdfs: list[str] = Field(default_factory=list, description="PDF files indexed in addition to the folder")
    pdf_folder: str = "./pdf_docs"
    chunking_strategy: Literal["window", "recursive"] = "window"
    chunk_size: int = 1000
    chunk_overlap: int = 200
    ingest_max_concurrency: int = 5

    # Retrieval
    retrieval_top_k: int = 10
    retrieval_score_threshold: float = Field(
        default=0.25,
        description=(
            "Cosine similarity below which a match is treated as irrelevant; when "
            "no match clears it the fixed refusal is returned without an LLM call. "
            "Tune per embedding model: unrelated text typically scores 0.0-0.2 with "
            "OpenAI text-embedding-3 models."
        ),
    )

    # External calls
    external_timeout_seconds: float = 60.0
    external_max_attempts: int = 3
    external_backoff_seconds: float = 1.0

    # Serving
    server_host: str = "0.0.0.0"
    server_port: int = 3000
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    session_ttl_seconds: float = 3600.0
    max_sessions: int = 1000

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def validate_required(self) -> None:
        """Raise :class:`ConfigurationError` listing every missing credential.

        Called by the ingestion CLI and the server at start-up so that a
        missing key fails immediately instead of on the first request.
        """
        missing: list[str] = []
        needs_openai_key = self.embedding_provider == "openai" or not self.llm_base_url
        if needs_openai_key and not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if self.vector_store_backend == "pinecone":
            if not self.pinecone_api_key:
                missing.append("PINECONE_API_KEY")
            if not self.pinecone_index_name:
                missing.append("PINECONE_INDEX_NAME")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}. "
                "Set them in the environment or in a .env file."
            )


# Singleton — import `settings` wherever needed.
settings = Settings()
