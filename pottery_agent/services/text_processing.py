"""
Text processing for prompts and retrieval: HTML stripping, cleaning, keyword extraction.

Chat platforms (e.g. Telex) deliver user text as HTML fragments; the agent and
the keyword fallback both work on plain, normalized text.
"""

import re
import unicodedata
from itertools import groupby

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s\s+")
_WORD_RE = re.compile(r"[a-z0-9][a-z0-9'\-]*")

STOP_WORDS: frozenset[str] = frozenset({
    "about", "after", "also", "been", "best", "could", "does", "doing", "from",
    "have", "into", "just", "make", "more", "most", "much", "need", "should",
    "some", "than", "that", "their", "them", "then", "there", "these", "they",
    "this", "very", "want", "what", "when", "where", "which", "while", "will",
    "with", "would", "your",
})


def strip_html(html: str | None) -> str:
    """Replace tags with spaces, decode &nbsp;, collapse whitespace."""
    if not html:
        return ""
    text = _TAG_RE.sub(" ", html)
    text = text.replace("&nbsp;", " ")
    text = _WS_RE.sub(" ", text)
    return text.strip()


def clean_text(text: str) -> str:
    """
    Normalize message text before it reaches the LLM or memory.

    NFKC-normalizes, strips each line, collapses repeated identical lines (chat
    clients often echo the same text in several parts) and runs of blank lines.
    """
    if not text or not text.strip():
        return ""
    lines = [line.strip() for line in unicodedata.normalize("NFKC", text).splitlines()]
    kept: list[str] = []
    for line, _ in groupby(lines):
        if line or (kept and kept[-1]):
            kept.append(line)
    return "\n".join(kept).strip()


def extract_keywords(text: str, limit: int | None = None) -> list[str]:
    """
    Lowercased content words (> 3 chars, not stop words), first occurrence order, no duplicates.
    """
    if not text or not text.strip():
        return []
    words = _WORD_RE.findall(unicodedata.normalize("NFKC", text).lower())
    keywords: list[str] = []
    for word in words:
        word = word.strip("'-")
        if len(word) <= 3 or word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
        if limit is not None and len(keywords) >= limit:
            break
    return keywords
