"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Runtime
APP_ENV: str = os.getenv("APP_ENV", "production").strip().lower() or "production"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
PUBLIC_BASE_URL: str = (
    os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").strip().rstrip("/")
    or "http://localhost:8000"
)

# OpenAI (agent LLM + query embeddings)
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)
# Must match the model the Pinecone index was built with
OPENAI_EMBED_MODEL: str = (
    os.getenv("OPENAI_EMBED_MODEL", "text-embedding-3-small").strip()
    or "text-embedding-3-small"
)

# Pinecone (from env). Empty namespace means the index's default namespace.
PINECONE_API_KEY: str = os.getenv("PINECONE_API_KEY", "").strip()
PINECONE_INDEX_NAME: str = (
    os.getenv("PINECONE_INDEX_NAME", "pottery-knowledge").strip() or "pottery-knowledge"
)
PINECONE_NAMESPACE: str = os.getenv("PINECONE_NAMESPACE", "").strip()

# Retrieval
SEARCH_TOP_K: int = 5
SIMILARITY_THRESHOLD: float = 0.6
KEYWORD_TOP_K: int = 3

# Agent memory (SQLite, relative to the working directory unless absolute)
MEMORY_DB_PATH: str = os.getenv("MEMORY_DB_PATH", "data/memory.db").strip() or "data/memory.db"
MEMORY_LAST_MESSAGES: int = 10
DEFAULT_RESOURCE_ID: str = "telex-user"

# Agent loop
MAX_AGENTIC_ROUNDS: int = 6
AGENT_MAX_TOKENS: int = 1024

# API timeouts (seconds)
OPENAI_API_TIMEOUT: float = 60.0
WEBHOOK_TIMEOUT: float = 30.0

# A2A tasks kept in memory for tasks/get and tasks/cancel; oldest finished ones are evicted first
TASK_STORE_MAX_TASKS: int = int(os.getenv("TASK_STORE_MAX_TASKS", "1000"))
