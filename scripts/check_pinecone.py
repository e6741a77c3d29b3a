#!/usr/bin/env python3
"""
Check the Pinecone + OpenAI setup used by the pottery agent.

Prints which keys are set, the index stats, and the top matches for a test query
(similarity, topic and content preview). Exits 1 on missing keys
or any error.

Run from project root:

    python scripts/check_pinecone.py
    python scripts/check_pinecone.py --query "How do I center clay?" --top-k 5
"""

import argparse
import sys
from pathlib import Path

# Project root on path so "pottery_agent" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from pottery_agent.core.config import (
    OPENAI_API_KEY,
    PINECONE_API_KEY,
    PINECONE_INDEX_NAME,
    PINECONE_NAMESPACE,
    SIMILARITY_THRESHOLD,
)
from pottery_agent.services.retrieval_service import search_pinecone
from pottery_agent.services.vector_store import describe_index

DEFAULT_QUERY = "What are the different types of clay used in pottery?"


def main() -> int:
    parser = argparse.ArgumentParser(description="Verify Pinecone connection and run a test query.")
    parser.add_argument("--query", default=DEFAULT_QUERY, help="Test query to search for.")
    parser.add_argument("--top-k", type=int, default=3, help="Number of matches to show.")
    args = parser.parse_args()

    print("Configuration:")
    print(f"  OPENAI_API_KEY:      {'set' if OPENAI_API_KEY else 'MISSING'}")
    print(f"  PINECONE_API_KEY:    {'set' if PINECONE_API_KEY else 'MISSING'}")
    print(f"  PINECONE_INDEX_NAME: {PINECONE_INDEX_NAME}")
    print(f"  PINECONE_NAMESPACE:  {PINECONE_NAMESPACE or '(default)'}")
    if not OPENAI_API_KEY or not PINECONE_API_KEY:
        print("Missing required API keys in .env (OPENAI_API_KEY, PINECONE_API_KEY).")
        return 1

    try:
        stats = describe_index()
        print(f"\nIndex {stats['index_name']}:")
        print(f"  total vectors: {stats['total_vectors']}")
        print(f"  dimension:     {stats['dimension'] or 'N/A'}")
        print(f"  namespaces:    {', '.join(stats['namespaces']) or 'none'}")

        print(f"\nSearching: {args.query!r}")
        matches = search_pinecone(args.query, top_k=args.top_k)
    except Exception as e:
        print(f"\nError: {e}")
        message = str(e)
        if "not found" in message.lower():
            print("Check that PINECONE_INDEX_NAME matches your actual index name.")
        elif "401" in message or "403" in message or "Unauthorized" in message:
            print("Check that your API keys are correct.")
        return 1

    if not matches:
        print("No results. The index may be empty, the namespace wrong, or the embedding model mismatched.")
        return 0
    for i, m in enumerate(matches, 1):
        score = (m["score"] or 0.0) * 100
        flag = "" if (m["score"] or 0.0) > SIMILARITY_THRESHOLD else "  (below threshold)"
        content = m["content"]
        preview = content[:150] + ("..." if len(content) > 150 else "")
        print(f"[{i}] similarity {score:.1f}%{flag}")
        print(f"    topic:   {m['topic']}")
        print(f"    content: {preview}")
    print("\nPinecone connection OK.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
