# WORKFLOW: Core configuration management for the Shipment Compliance API.
# Used by: All modules throughout the application
# Configuration includes:
# - Reference data location and the jurisdictions loaded at startup
# - Embedding model settings (sentence-transformers) and semantic fallback depth
# - LLM settings (Ollama, model name, timeout, output budget)
# - Matching thresholds for the HS code resolver
# - Shipment evaluation concurrency and per-item timeout
# - API settings (CORS, prefix, host/port) and logging
#
# Loaded at startup and used by all services for consistent configuration.

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Reference data
    reference_data_dir: str = "./data"
    jurisdictions: list[str] = ["india", "usa"]
    reference_schema_path: str = "./schema/reference_corpus.schema.json"

    # LLM
    ollama_url: str = "http://localhost:11434"
    llm_model: str = "llama2:7b"
    llm_timeout_seconds: float = 20.0
    llm_max_tokens: int = 100

    # Embeddings
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    vector_dimension: int = 384
    model_cache_dir: str = "./.cache/huggingface"
    semantic_top_k: int = 5
    embedding_retry_seconds: float = 300.0

    # HS code resolution
    min_contained_key_length: int = 5

    # Shipment evaluation
    max_concurrent_items: int = 8
    item_timeout_seconds: float = 60.0

    # API
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Shipment Compliance API"
    version: str = "1.0.0"

    # Environment
    environment: str = "development"
    debug: bool = True

    # Logging
    log_level: str = "INFO"

    # CORS
    allowed_origins: list[str] = ["*"]
    allowed_methods: list[str] = ["*"]
    allowed_headers: list[str] = ["*"]

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8001

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
