#!/usr/bin/env python3
"""
Seed the Pinecone index with the built-in pottery snippets.

Embeds the eight curated snippets with the configured OpenAI embedding model and
upserts them (id = snippet id, metadata = title/topic/description/keywords).
Useful for a fresh index or a demo namespace; re-running overwrites the same ids.

Run from project root:

    python scripts/seed_knowledge.py
    python scripts/seed_knowledge.py --namespace demo
"""

import argparse
import sys
from pathlib import Path

# Project root on path so "pottery_agent" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from pottery_agent.core.config import PINECONE_INDEX_NAME, PINECONE_NAMESPACE
from pottery_agent.services.knowledge_base import SNIPPETS
from pottery_agent.services.vector_store import embed_texts, upsert_records


def build_records() -> list[dict]:
    texts = [f"{s.topic}\n{s.content}" for s in SNIPPETS]
    vectors = embed_texts(texts)
    return [
        {
            "id": s.id,
            "values": vec,
            "metadata": {
                "title": s.topic,
                "topic": s.topic,
                "description": s.content,
                "keywords": list(s.keywords),
            },
        }
        for s, vec in zip(SNIPPETS, vectors)
    ]


def main() -> None:
    parser = argparse.ArgumentParser(description="Upsert built-in pottery snippets into Pinecone.")
    parser.add_argument(
        "--namespace",
        default=None,
        help="Target namespace (default: PINECONE_NAMESPACE from .env).",
    )
    args = parser.parse_args()
    namespace = PINECONE_NAMESPACE if args.namespace is None else args.namespace

    records = build_records()
    written = upsert_records(records, namespace=namespace)
    for r in records:
        print(f"  upserted: {r['id']}")
    print(f"Done. Upserted {written} snippets into {PINECONE_INDEX_NAME} (namespace={namespace or '(default)'}).")


if __name__ == "__main__":
    main()
