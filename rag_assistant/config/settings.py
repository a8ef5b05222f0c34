
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    log_level: str = "INFO"
    product_name: str = "EstoqueUni"

    # Offline mode: deterministic embeddings + in-memory vector store
    offline_mode: bool = False

    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str | None = None
    qdrant_collection: str = "product_docs"
    vector_size: int = 768
    vector_store_timeout: float = 30.0
    vector_upsert_batch_size: int = 100

    llm_base_url: str = "http://localhost:11434/v1"
    llm_api_key: str = "ollama"
    llm_model: str = "qwen2.5:7b"
    llm_max_tokens: int = 2048
    llm_temperature: float = 0.7
    llm_timeout: float = 120.0
    llm_acknowledge_system_prompt: bool = True

    embedding_model: str = "nomic-embed-text"
    embedding_batch_size: int = 10
    embedding_batch_delay: float = 1.0
    offline_embedding_size: int = 32

    docs_path: str = "./docs"
    docs_extensions: list[str] = [".md"]
    docs_watch: bool = True
    chunk_max_words: int = 500

    rag_top_k: int = 5
    rag_vector_weight: float = 0.7
    rag_keyword_weight: float = 0.3
    rag_vector_threshold: float | None = 0.7
    rag_recency_days: int = 30

    context_max_tokens: int = 4000
    history_max_tokens: int = 8000
    history_reserve_tokens: int = 500

    # "passthrough" | "overlap" | "llm"
    verifier_mode: str = "overlap"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @model_validator(mode="after")
    def _check_weights(self) -> "Settings":
        if self.rag_vector_weight < 0 or self.rag_keyword_weight < 0:
            raise ValueError("Retrieval weights must be non-negative")
        if self.rag_vector_weight + self.rag_keyword_weight > 1.0 + 1e-9:
            raise ValueError(
                "rag_vector_weight + rag_keyword_weight must not exceed 1.0 "
                f"(got {self.rag_vector_weight} + {self.rag_keyword_weight})"
            )
        return self


settings = Settings()
