"""
Unit tests for the built-in knowledge snippets and keyword scoring.
"""

from pottery_agent.services.knowledge_base import SNIPPETS, keyword_search
from pottery_agent.services.text_processing import extract_keywords


def test_eight_snippets_with_unique_ids() -> None:
    assert len(SNIPPETS) == 8
    assert len({s.id for s in SNIPPETS}) == 8
    for s in SNIPPETS:
        assert s.topic and s.content and s.keywords


def test_empty_query_returns_no_matches() -> None:
    assert keyword_search("") == []
    assert keyword_search("how do I do it") == []


def test_unrelated_query_returns_no_matches() -> None:
    assert keyword_search("quantum chromodynamics") == []


def test_clay_question_hits_clay_bodies_first() -> None:
    matches = keyword_search("What is stoneware clay?")
    assert matches[0]["id"] == "clay-bodies"
    assert matches[0]["topic"] == "Clay Types"
    assert matches[0]["score"] == 1.0


def test_firing_question_ranks_firing_snippet_first() -> None:
    matches = keyword_search("kiln firing temperature")
    assert matches[0]["id"] == "firing"


def test_results_sorted_bounded_and_limited() -> None:
    matches = keyword_search("clay kiln glaze wheel", top_k=3)
    assert 0 < len(matches) <= 3
    scores = [m["score"] for m in matches]
    assert scores == sorted(scores, reverse=True)
    assert all(0 < s <= 1 for s in scores)
    assert set(matches[0]) == {"id", "topic", "content", "score"}


def test_top_k_one() -> None:
    assert len(keyword_search("glaze crawling", top_k=1)) == 1


def test_every_snippet_keyword_can_match_a_query() -> None:
    for s in SNIPPETS:
        for kw in s.keywords:
            assert extract_keywords(kw) == [kw], (s.id, kw)


def test_fixing_question_hits_troubleshooting() -> None:
    assert keyword_search("fixing warping", top_k=1)[0]["id"] == "troubleshooting"
