"""
Retrieval: semantic search, similarity filtering, and keyword fallback.

Responsibility: Query Pinecone, keep hits above the similarity threshold, and fall
back to the built-in knowledge snippets when the vector path is unavailable.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pottery_agent.core.config import SEARCH_TOP_K, SIMILARITY_THRESHOLD
from pottery_agent.services.knowledge_base import keyword_search
from pottery_agent.services.vector_store import embed_texts, query_index

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No relevant information found in the pottery knowledge base."

SOURCE_PINECONE = "pinecone"
SOURCE_KEYWORD = "keyword"

# Metadata keys in priority order; the index was built from mixed sources
_TOPIC_KEYS = ("title", "topic")
_CONTENT_KEYS = ("description", "lede", "content", "text")


@dataclass
class RetrievalResult:
    query: str
    matches: list[dict[str, Any]] = field(default_factory=list)
    source: str = SOURCE_PINECONE

    def to_dict(self) -> dict[str, Any]:
        return {"query": self.query, "source": self.source, "matches": self.matches}


def _first_present(metadata: dict, keys: tuple[str, ...], default: str) -> str:
    for key in keys:
        value = metadata.get(key)
        if value:
            return str(value)
    return default


def search_pinecone(query: str, top_k: int = SEARCH_TOP_K) -> list[dict]:
    """
    Embed query, search Pinecone, return candidates as {id, topic, content, score}.
    """
    logger.info("[retrieval:search_pinecone] IN  query=%r top_k=%d", query, top_k)
    vectors = embed_texts([query])
    if not vectors:
        logger.warning("[retrieval:search_pinecone] embed_texts returned empty")
        return []
    hits = query_index(vectors[0], top_k=top_k)
    candidates = []
    for h in hits:
        meta = h.get("metadata") or {}
        candidates.append({
            "id": h.get("id"),
            "topic": _first_present(meta, _TOPIC_KEYS, "General Information"),
            "content": _first_present(meta, _CONTENT_KEYS, "No content"),
            "score": h.get("score"),
        })
    logger.info("[retrieval:search_pinecone] OUT candidates=%d first_scores=%s",
                len(candidates), [c["score"] for c in candidates[:5]])
    return candidates


def filter_by_threshold(matches: list[dict], threshold: float = SIMILARITY_THRESHOLD) -> list[dict]:
    """Keep matches whose score is strictly above the threshold."""
    return [m for m in matches if m.get("score") is not None and m["score"] > threshold]


def retrieve_context(query: str, top_k: int = SEARCH_TOP_K) -> RetrievalResult:
    """
    Pipeline: semantic search (Pinecone) → threshold filter; keyword fallback if the vector path fails.
    """
    q = (query or "").strip()
    logger.info("[retrieval:retrieve_context] IN  query=%r", q)
    if not q:
        return RetrievalResult(query=q, matches=[], source=SOURCE_PINECONE)
    try:
        candidates = search_pinecone(q, top_k=top_k)
    except Exception as e:
        logger.warning("[retrieval:retrieve_context] vector search unavailable, using keyword fallback: %s", e)
        return RetrievalResult(query=q, matches=keyword_search(q), source=SOURCE_KEYWORD)
    matches = filter_by_threshold(candidates)
    logger.info("[retrieval:retrieve_context] OUT candidates=%d above_threshold=%d",
                len(candidates), len(matches))
    return RetrievalResult(query=q, matches=matches, source=SOURCE_PINECONE)


def format_results(matches: list[dict]) -> str:
    """Render matches as numbered, scored blocks for the LLM."""
    if not matches:
        return NO_RESULTS_MESSAGE
    blocks = []
    for i, m in enumerate(matches, 1):
        score = (m.get("score") or 0.0) * 100
        blocks.append(f"[Result {i}] ({score:.1f}%) {m.get('topic', '')}:\n{m.get('content', '')}")
    return "\n\n".join(blocks)
