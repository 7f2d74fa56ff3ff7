"""
Tests for keyword extraction, compound splitting and lexical tokenization.
"""

from gistdex.utils.text import (
    ALL_STOP_WORDS,
    extract_keywords,
    is_cjk,
    normalize_whitespace,
    split_compound,
    tokenize_terms,
)


def test_extract_keywords_splits_compound_identifiers():
    assert extract_keywords("TypeScript configuration and setup") == [
        "type", "script", "configuration", "setup",
    ]


def test_extract_keywords_dedupes_in_order():
    assert extract_keywords("cache cache CACHE invalidation") == ["cache", "invalidation"]


def test_extract_keywords_drops_stop_words():
    keywords = extract_keywords("how to configure the vector store")
    assert "the" not in keywords
    assert "to" not in keywords
    assert keywords == ["configure", "vector", "store"]


def test_extract_keywords_keeps_unsegmented_cjk_runs():
    keywords = extract_keywords("VitePressの設定方法")
    assert "vite" in keywords
    assert "press" in keywords
    assert any(is_cjk(k) for k in keywords)


def test_extract_keywords_falls_back_to_whole_goal():
    assert extract_keywords("the and of") == ["the and of"]
    assert extract_keywords("   ") == []


def test_split_compound():
    assert split_compound("TypeScript") == ["Type", "Script"]
    assert split_compound("HTTPServer") == ["HTTP", "Server"]
    assert split_compound("utf8") == ["utf", "8"]
    assert split_compound("plain") == ["plain"]


def test_tokenize_terms_lowercases_and_dedupes():
    assert tokenize_terms("Vector vector DATABASE") == ["vector", "database"]


def test_tokenize_terms_keeps_stop_words_when_nothing_else_remains():
    assert tokenize_terms("the and") == ["the", "and"]
    assert tokenize_terms("the vector") == ["vector"]


def test_tokenize_terms_segments_chinese_with_jieba():
    terms = tokenize_terms("向量数据库配置")
    assert terms
    assert all(is_cjk(t) for t in terms)


def test_normalize_whitespace():
    assert normalize_whitespace("  a \n\t b  ") == "a b"
    assert normalize_whitespace(None) == ""


def test_stop_word_sets_cover_both_languages():
    assert "the" in ALL_STOP_WORDS
    assert "の" in ALL_STOP_WORDS
