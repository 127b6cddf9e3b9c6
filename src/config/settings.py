import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY")
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "text-embedding-ada-002")
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "gpt-3.5-turbo")

    # Vector store
    VECTOR_STORE_BACKEND: str = os.getenv("VECTOR_STORE_BACKEND", "local")
    VECTOR_STORE_PATH: str = os.getenv("VECTOR_STORE_PATH", "data/vector_store")
    GCS_INDEX_PREFIX: str = os.getenv("GCS_INDEX_PREFIX", "vector_store")

    # Ingestion and retrieval
    CHUNK_MAX_WORDS: int = int(os.getenv("CHUNK_MAX_WORDS", 500))
    DEFAULT_TOP_K: int = int(os.getenv("DEFAULT_TOP_K", 3))
    EMBEDDING_CONCURRENCY: int = int(os.getenv("EMBEDDING_CONCURRENCY", 1))
    KNOWLEDGE_BASE_DIR: str = os.getenv("KNOWLEDGE_BASE_DIR", "knowledge_base")

    # Call sessions
    SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", 3600))
    SESSION_MAX_ENTRIES: int = int(os.getenv("SESSION_MAX_ENTRIES", 1000))

    TENANTS_CONFIG_PATH: str = os.getenv("TENANTS_CONFIG_PATH")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
