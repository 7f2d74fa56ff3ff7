"""Text processing utilities: stop words, term extraction and keyword derivation."""

from __future__ import annotations

import logging
import re
from typing import FrozenSet, Iterable, List

import jieba

jieba.setLogLevel(logging.ERROR)


ENGLISH_STOP_WORDS: FrozenSet[str] = frozenset({
    # Articles
    "a", "an", "the",
    # Conjunctions
    "and", "or", "but", "nor", "yet", "so",
    # Prepositions
    "in", "on", "at", "to", "for", "of", "with", "by", "from", "about", "into",
    "through", "during", "before", "after", "above", "below", "between",
    "under", "over",
    # Pronouns
    "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us",
    "them", "my", "your", "his", "its", "our", "their", "this", "that",
    "these", "those",
    # Common verbs
    "is", "am", "are", "was", "were", "be", "been", "being", "have", "has",
    "had", "having", "do", "does", "did", "doing", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "need", "dare", "ought",
    "used",
    # Question words
    "what", "which", "who", "whom", "whose", "when", "where", "why", "how",
    # Common adverbs and others
    "not", "no", "too", "very", "just", "only", "quite", "now", "then", "once",
    "here", "there", "all", "any", "each", "few", "more", "most", "other",
    "some", "such", "both", "either", "neither", "many", "much", "another",
    "own", "same", "than", "up", "down", "out", "off", "again", "further",
    "also", "back", "well", "even", "still", "way", "because", "however", "if",
    "unless", "until", "while", "although", "though", "since", "as",
})

JAPANESE_STOP_WORDS: FrozenSet[str] = frozenset({
    # Particles
    "の", "に", "は", "を", "た", "が", "で", "て", "と", "し", "れ", "さ",
    "ある", "いる", "も", "する", "から", "な", "こと", "として", "い", "や",
    "など", "なる", "へ", "か", "だ",
    # Demonstratives
    "これ", "それ", "あれ", "この", "その", "あの",
    # Copula forms
    "です", "ます", "でした", "ました",
    # Goal phrasing
    "理解", "理解する",
})

ALL_STOP_WORDS: FrozenSet[str] = ENGLISH_STOP_WORDS | JAPANESE_STOP_WORDS


# Hiragana, katakana, CJK ideographs and Hangul: scripts written without spaces
_CJK_CLASS = "\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff\uac00-\ud7af"
_TOKEN_RE = re.compile(rf"[{_CJK_CLASS}]+|[^\W_{_CJK_CLASS}]+")
_CJK_RE = re.compile(rf"^[{_CJK_CLASS}]+$")

# camelCase / PascalCase / ACRONYMWord / letter-digit boundaries
_COMPOUND_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+|[^\W\d_]+")

_WS_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", (text or "")).strip()


def is_cjk(token: str) -> bool:
    return bool(_CJK_RE.match(token))


def split_compound(word: str) -> List[str]:
    """Split an identifier on camelCase and letter/digit boundaries.

    "TypeScript" -> ["Type", "Script"], "HTTPServer" -> ["HTTP", "Server"],
    "utf8" -> ["utf", "8"]. Words without internal boundaries come back whole.
    """
    parts = _COMPOUND_RE.findall(word)
    return parts or [word]


def _dedupe(tokens: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for t in tokens:
        if t and t not in seen:
            seen.add(t)
            out.append(t)
    return out


def extract_keywords(text: str, min_length: int = 2) -> List[str]:
    """Derive expected keywords from a free-form goal.

    Latin words are split on non-word and compound boundaries and lowercased;
    runs of CJK text have no detectable word boundaries and are kept whole.
    Duplicates and stop words are dropped, first occurrence order is kept.
    When nothing survives, the normalized goal itself is the only keyword.
    """
    keywords: List[str] = []
    for token in _TOKEN_RE.findall(text or ""):
        if is_cjk(token):
            candidates = [token]
        elif token.isascii():
            candidates = [p.lower() for p in split_compound(token)]
        else:
            candidates = [token.lower()]
        for cand in candidates:
            if len(cand) < min_length or cand in ALL_STOP_WORDS:
                continue
            keywords.append(cand)

    keywords = _dedupe(keywords)
    if keywords:
        return keywords

    fallback = normalize_whitespace(re.sub(rf"[^\w\s{_CJK_CLASS}]", "", (text or "").lower()))
    return [fallback] if fallback else []


def tokenize_terms(text: str, drop_stop_words: bool = True) -> List[str]:
    """Split text into distinct lowercase lexical terms for overlap scoring.

    CJK runs are segmented with jieba; if stop-word removal would leave no
    terms at all, the unfiltered terms are returned instead.
    """
    terms: List[str] = []
    for token in _TOKEN_RE.findall((text or "").lower()):
        if is_cjk(token):
            pieces = [p.strip() for p in jieba.cut_for_search(token)]
            terms.extend(p for p in pieces if p)
        else:
            terms.append(token)

    terms = _dedupe(terms)
    if not drop_stop_words:
        return terms
    filtered = [t for t in terms if t not in ALL_STOP_WORDS]
    return filtered or terms
