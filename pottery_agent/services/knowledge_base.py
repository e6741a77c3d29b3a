"""
Built-in pottery knowledge: eight curated snippets and keyword scoring over them.

Responsibility: Answer retrieval when Pinecone or the embeddings API is unavailable.
Scoring is plain substring/keyword matching; no embeddings involved.
"""

import logging
from dataclasses import dataclass

from pottery_agent.core.config import KEYWORD_TOP_K
from pottery_agent.services.text_processing import extract_keywords

logger = logging.getLogger(__name__)

# Points per query keyword: listed snippet keyword vs. substring of topic/content
KEYWORD_HIT = 2
TEXT_HIT = 1


@dataclass(frozen=True)
class KnowledgeSnippet:
    id: str
    topic: str
    content: str
    keywords: tuple[str, ...]


SNIPPETS: tuple[KnowledgeSnippet, ...] = (
    KnowledgeSnippet(
        id="clay-bodies",
        topic="Clay Types",
        content=(
            "The three main clay bodies are earthenware, stoneware and porcelain. Earthenware "
            "fires at low temperatures (cone 06-04), stays porous and is often red or buff. "
            "Stoneware fires to cone 5-10, becomes dense and durable, and suits functional ware. "
            "Porcelain is fine, white and translucent when thin, fires around cone 10 and is "
            "the least forgiving to throw."
        ),
        keywords=("clay", "clays", "earthenware", "stoneware", "porcelain", "body", "bodies", "types"),
    ),
    KnowledgeSnippet(
        id="clay-preparation",
        topic="Clay Preparation and Wedging",
        content=(
            "Wedge clay before use to remove air pockets and even out moisture. Ram's head and "
            "spiral wedging are the common methods. Trapped air can cause pieces to blow up in "
            "the kiln. Store clay wrapped in plastic; reclaim dry scraps by slaking them in water "
            "and drying the slurry on plaster."
        ),
        keywords=("wedging", "wedge", "preparation", "prepare", "reclaim", "storage", "storing", "bubbles"),
    ),
    KnowledgeSnippet(
        id="wheel-throwing",
        topic="Wheel Throwing",
        content=(
            "Wheel throwing starts with centering: brace your elbows, keep the clay wet and press "
            "inward and down until it runs true. Then open the form, pull the walls up in several "
            "passes with even pressure, and compress the rim. Trim the foot when the piece reaches "
            "leather-hard."
        ),
        keywords=("wheel", "throwing", "throw", "centering", "center", "pulling", "walls", "trimming", "beginner"),
    ),
    KnowledgeSnippet(
        id="hand-building",
        topic="Hand-Building Techniques",
        content=(
            "Hand-building needs no wheel. Pinch pots are shaped between thumb and fingers; coil "
            "building stacks rolled ropes of clay and blends the joins; slab construction cuts "
            "rolled sheets and joins them. Always score and slip surfaces before joining pieces."
        ),
        keywords=("hand-building", "handbuilding", "pinch", "coil", "coils", "slab", "slabs", "score", "slip"),
    ),
    KnowledgeSnippet(
        id="glazing",
        topic="Glazing",
        content=(
            "Glazes are glassy coatings applied to bisqueware by dipping, brushing, pouring or "
            "spraying. Keep the foot free of glaze so it does not fuse to the kiln shelf. Match "
            "the glaze cone to the clay body, and test combinations on tiles before glazing "
            "finished work."
        ),
        keywords=("glaze", "glazes", "glazing", "dipping", "brushing", "underglaze", "coating", "finish"),
    ),
    KnowledgeSnippet(
        id="firing",
        topic="Bisque and Glaze Firing",
        content=(
            "Bisque firing (about cone 06-04) turns dry greenware into porous ceramic that still "
            "absorbs glaze. Glaze firing then melts the glaze and matures the clay, at cone 06 for "
            "low fire up to cone 10 for high fire. Heat slowly through water smoking and quartz "
            "inversion to avoid cracking."
        ),
        keywords=("firing", "fire", "bisque", "greenware", "cone", "temperature", "kiln"),
    ),
    KnowledgeSnippet(
        id="tools-and-kilns",
        topic="Tools, Equipment and Kilns",
        content=(
            "A beginner kit includes a wire cutter, needle tool, wooden ribs, metal kidney, "
            "sponge, loop and ribbon trimming tools. Electric kilns are the most common for "
            "studios and give oxidation firings; gas kilns allow reduction. Vacuum kiln elements "
            "and keep shelves coated with kiln wash."
        ),
        keywords=("tool", "tools", "equipment", "kiln", "kilns", "electric", "ribs", "sponge", "beginner"),
    ),
    KnowledgeSnippet(
        id="troubleshooting",
        topic="Troubleshooting Cracks and Warping",
        content=(
            "Cracks usually come from uneven drying, thick bases or poorly joined seams. Dry work "
            "slowly under plastic, compress bases and rims, and keep wall thickness even. S-cracks "
            "in thrown bottoms come from uncompressed clay. Warping comes from uneven walls or "
            "over-firing; crawling and crazing are glaze fit problems."
        ),
        keywords=("crack", "cracks", "cracking", "warping", "warp", "problem", "fixing", "crazing", "crawling"),
    ),
)


def _score(snippet: KnowledgeSnippet, keywords: list[str]) -> int:
    haystack = f"{snippet.topic} {snippet.content}".lower()
    score = 0
    for kw in keywords:
        if kw in snippet.keywords:
            score += KEYWORD_HIT
        if kw in haystack:
            score += TEXT_HIT
    return score


def keyword_search(query: str, top_k: int = KEYWORD_TOP_K) -> list[dict]:
    """
    Score the built-in snippets against the query's keywords and return the best matches.

    Each match is {id, topic, content, score} with score normalized to [0, 1].
    """
    keywords = extract_keywords(query)
    logger.info("[knowledge_base:keyword_search] IN  query=%r keywords=%s", query, keywords)
    if not keywords:
        return []
    max_score = (KEYWORD_HIT + TEXT_HIT) * len(keywords)
    scored: list[tuple[int, int, KnowledgeSnippet]] = []
    for position, snippet in enumerate(SNIPPETS):
        raw = _score(snippet, keywords)
        if raw > 0:
            scored.append((raw, position, snippet))
    scored.sort(key=lambda x: (-x[0], x[1]))
    matches = [
        {
            "id": snippet.id,
            "topic": snippet.topic,
            "content": snippet.content,
            "score": raw / max_score,
        }
        for raw, _, snippet in scored[:top_k]
    ]
    logger.info("[knowledge_base:keyword_search] OUT matches=%s", [m["id"] for m in matches])
    return matches
