"""
Vector store client: Pinecone connection and OpenAI embeddings.

Responsibility: Connect to Pinecone, embed texts with the OpenAI embeddings API,
query and upsert vectors with metadata. No ranking or fallback logic here.
"""

import logging
from functools import lru_cache
from typing import Any

from pottery_agent.core.config import (
    OPENAI_API_KEY,
    OPENAI_API_TIMEOUT,
    OPENAI_EMBED_MODEL,
    PINECONE_API_KEY,
    PINECONE_INDEX_NAME,
    PINECONE_NAMESPACE,
)
from pottery_agent.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_openai_client() -> Any:
    """Return a shared OpenAI client. Raises ServiceUnavailableError when OPENAI_API_KEY is not set."""
    if not OPENAI_API_KEY:
        raise ServiceUnavailableError("OPENAI_API_KEY must be set in .env")

    from openai import OpenAI

    return OpenAI(api_key=OPENAI_API_KEY, timeout=OPENAI_API_TIMEOUT)


@lru_cache(maxsize=1)
def get_pinecone_index() -> Any:
    """Connect to Pinecone and return a handle to the configured index."""
    if not PINECONE_API_KEY:
        raise ServiceUnavailableError("PINECONE_API_KEY must be set in .env")

    from pinecone import Pinecone

    pc = Pinecone(api_key=PINECONE_API_KEY)
    index = pc.Index(PINECONE_INDEX_NAME)
    logger.info("Pinecone connection established index=%s", PINECONE_INDEX_NAME)
    return index


def embed_texts(texts: list[str]) -> list[list[float]]:
    """Embed texts with the OpenAI embeddings API, one vector per input in input order."""
    if not texts:
        return []
    client = get_openai_client()
    response = client.embeddings.create(model=OPENAI_EMBED_MODEL, input=texts)
    data = sorted(response.data, key=lambda d: getattr(d, "index", 0))
    vectors = [list(d.embedding) for d in data]
    logger.info("[vector_store:embed_texts] OUT vectors=%d dim=%d", len(vectors), len(vectors[0]) if vectors else 0)
    return vectors


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from a Pinecone response object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def query_index(
    vector: list[float], top_k: int, namespace: str | None = None
) -> list[dict[str, Any]]:
    """
    Nearest-neighbour query. Returns [{id, score, metadata}] in Pinecone's order.
    """
    index = get_pinecone_index()
    ns = PINECONE_NAMESPACE if namespace is None else namespace
    response = index.query(
        vector=vector,
        top_k=top_k,
        include_metadata=True,
        namespace=ns,
    )
    matches = _field(response, "matches") or []
    out = []
    for m in matches:
        out.append({
            "id": _field(m, "id"),
            "score": _field(m, "score"),
            "metadata": dict(_field(m, "metadata") or {}),
        })
    logger.info("[vector_store:query_index] OUT matches=%d namespace=%r", len(out), ns)
    return out


def upsert_records(records: list[dict[str, Any]], namespace: str | None = None) -> int:
    """
    Upsert [{id, values, metadata}] into the index. Returns number of vectors written.
    """
    if not records:
        return 0
    index = get_pinecone_index()
    ns = PINECONE_NAMESPACE if namespace is None else namespace
    index.upsert(vectors=records, namespace=ns)
    logger.info("Upserted %d vectors into %s (namespace=%r)", len(records), PINECONE_INDEX_NAME, ns)
    return len(records)


def describe_index() -> dict[str, Any]:
    """Return index stats: name, total vectors, dimension and namespace names."""
    index = get_pinecone_index()
    stats = index.describe_index_stats()
    total = _field(stats, "total_vector_count")
    if total is None:
        total = _field(stats, "total_record_count", 0)
    namespaces = _field(stats, "namespaces") or {}
    return {
        "index_name": PINECONE_INDEX_NAME,
        "total_vectors": total or 0,
        "dimension": _field(stats, "dimension"),
        "namespaces": sorted(namespaces.keys()) if isinstance(namespaces, dict) else [],
    }
