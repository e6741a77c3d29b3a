"""
LangGraph pottery workflow: categorize → search knowledge → format response.

Deterministic pipeline, no LLM: the answer is the formatted retrieval results plus
a category and related topics.
"""

import logging
import re
from typing import TypedDict

from langgraph.graph import END, StateGraph

from pottery_agent.services.retrieval_service import filter_by_threshold, format_results, search_pinecone

logger = logging.getLogger(__name__)

NO_RESULTS = "No results found"
SEARCH_ERROR = "Error searching knowledge base"

# First matching rule wins
CATEGORY_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("materials", ("clay", "material")),
    ("glazing", ("glaze", "glazing")),
    ("firing", ("fire", "firing", "kiln")),
    ("techniques", ("wheel", "throw")),
    ("hand-building", ("hand", "coil", "slab")),
    ("troubleshooting", ("crack", "problem", "fix")),
    ("tools", ("tool",)),
]

RELATED_TOPICS: dict[str, list[str]] = {
    "materials": ["Clay preparation", "Clay storage", "Clay wedging"],
    "glazing": ["Glaze application", "Glaze firing", "Glaze defects"],
    "firing": ["Bisque firing", "Glaze firing", "Kiln types"],
    "techniques": ["Centering", "Pulling walls", "Trimming"],
    "hand-building": ["Pinch pots", "Coil building", "Slab construction"],
    "troubleshooting": ["Cracking", "Warping", "Glaze defects"],
    "tools": ["Essential tools", "Wheel maintenance", "Kiln care"],
    "general": ["Getting started", "Basic techniques", "Common questions"],
}

_RESULT_MARKER = re.compile(r"\[Result \d+\]")


class WorkflowState(TypedDict, total=False):
    question: str
    category: str
    keywords: list
    results: str
    answer: str
    related_topics: list
    sources: int


def categorize(question: str) -> str:
    q = (question or "").lower()
    for category, needles in CATEGORY_RULES:
        if any(n in q for n in needles):
            return category
    return "general"


def question_keywords(question: str, limit: int = 5) -> list[str]:
    return [w for w in (question or "").lower().split() if len(w) > 3][:limit]


def _categorize_query(state: WorkflowState) -> dict:
    """Node 1: Categorize the question and pull out a few keywords."""
    question = state.get("question") or ""
    category = categorize(question)
    keywords = question_keywords(question)
    logger.info("[graph:categorize_query] OUT category=%s keywords=%s", category, keywords)
    return {"category": category, "keywords": keywords}


def _search_knowledge(state: WorkflowState) -> dict:
    """Node 2: Search Pinecone. No keyword fallback here; failures become SEARCH_ERROR."""
    question = state.get("question") or ""
    try:
        matches = filter_by_threshold(search_pinecone(question))
    except Exception:
        logger.exception("[graph:search_knowledge] search failed")
        return {"results": SEARCH_ERROR}
    results = format_results(matches) if matches else NO_RESULTS
    logger.info("[graph:search_knowledge] OUT matches=%d", len(matches))
    return {"results": results}


def _format_response(state: WorkflowState) -> dict:
    """Node 3: Build the markdown answer with category, related topics and source count."""
    question = state.get("question") or ""
    results = state.get("results") or NO_RESULTS
    category = state.get("category") or categorize(question)
    related = RELATED_TOPICS.get(category, RELATED_TOPICS["general"])
    sources = len(_RESULT_MARKER.findall(results))
    topics_block = "\n".join(f"- {t}" for t in related)
    answer = (
        f"**Question:** {question}\n\n"
        f"**Category:** {category[:1].upper() + category[1:]}\n\n"
        f"**Answer:**\n{results}\n\n"
        f"**Related Topics:**\n{topics_block}\n\n"
        f"**Sources:** {sources} results from pottery knowledge base"
    )
    logger.info("[graph:format_response] OUT category=%s sources=%d", category, sources)
    return {"answer": answer, "related_topics": list(related), "sources": sources}


def build_graph():
    """
    Build and compile the workflow graph.
    categorize_query → search_knowledge → format_response → END.
    """
    graph = StateGraph(WorkflowState)

    graph.add_node("categorize_query", _categorize_query)
    graph.add_node("search_knowledge", _search_knowledge)
    graph.add_node("format_response", _format_response)

    graph.set_entry_point("categorize_query")
    graph.add_edge("categorize_query", "search_knowledge")
    graph.add_edge("search_knowledge", "format_response")
    graph.add_edge("format_response", END)

    return graph.compile()


def run_workflow(question: str) -> dict:
    """
    Run the workflow synchronously. Returns answer, category, related_topics, sources.
    """
    if not question or not str(question).strip():
        raise ValueError("question is required")
    q = str(question).strip()
    logger.info("[run_workflow] START question=%r", q)
    final = build_graph().invoke({"question": q})
    return {
        "answer": final.get("answer", ""),
        "category": final.get("category", "general"),
        "related_topics": final.get("related_topics", []),
        "sources": final.get("sources", 0),
    }
