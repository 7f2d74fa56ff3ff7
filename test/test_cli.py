"""
Tests for the command line entry point.
"""

import json

import pytest

from gistdex import cli
from gistdex.core.exceptions import ConfigurationError, EmbeddingError, StoreUnavailableError
from gistdex.embedding.hashing import HashEmbedder

ROWS = [
    {"id": "vec", "content": "vector database configuration guide", "metadata": {"lang": "en"}},
    {"id": "pasta", "content": "cooking pasta recipe", "metadata": {"lang": "it"}},
    {"content": "   "},
]


@pytest.fixture
def corpus(tmp_path, monkeypatch):
    monkeypatch.setenv("GISTDEX_EMBEDDING_BACKEND", "hash")
    monkeypatch.setenv("GISTDEX_VECTOR_STORE", "memory")
    path = tmp_path / "corpus.jsonl"
    path.write_text("\n".join(json.dumps(row) for row in ROWS) + "\n", encoding="utf-8")
    return str(path)


def test_search_prints_ranked_results(corpus, capsys):
    assert cli.main(["--corpus", corpus, "search", "vector database", "-k", "1"]) == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "vec" in out
    assert "pasta" not in out


def test_search_json_and_analysis(corpus, capsys):
    assert cli.main(["--corpus", corpus, "--json", "search", "vector database", "--hybrid"]) == cli.EXIT_OK
    rows = json.loads(capsys.readouterr().out)
    # blank content lines are skipped on load
    assert [r["id"] for r in rows][0] == "vec"
    assert len(rows) == 2

    assert cli.main(["--corpus", corpus, "search", "vector database", "--analyze"]) == cli.EXIT_OK
    assert "Score Distribution" in capsys.readouterr().out


def test_search_without_matches(corpus, capsys):
    code = cli.main(["--corpus", corpus, "search", "vector", "--filter", "lang=de"])
    assert code == cli.EXIT_OK
    assert "No results found for: vector" in capsys.readouterr().out


def test_plan_command(corpus, capsys):
    code = cli.main(["--corpus", corpus, "plan", "vector database", "--refine", "keywords"])
    assert code == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "Stage 0:" in out
    assert "Best score:" in out


def test_missing_corpus_is_a_config_error(tmp_path, capsys):
    code = cli.main(["--corpus", str(tmp_path / "missing.jsonl"), "search", "q"])
    assert code == cli.EXIT_CONFIG_ERROR
    assert "Corpus file not found" in capsys.readouterr().err


def test_unavailable_backend(monkeypatch, capsys):
    async def unavailable(*args, **kwargs):
        raise StoreUnavailableError("connection refused")

    monkeypatch.setattr(cli.SearchSession, "open", staticmethod(unavailable))
    assert cli.main(["search", "anything"]) == cli.EXIT_BACKEND_ERROR
    assert "Retrieval backend unavailable" in capsys.readouterr().err


def test_parse_filter():
    assert cli.parse_filter(None) is None
    assert cli.parse_filter(["lang=en", "boundary.level=2", "draft=false"]) == {
        "lang": "en",
        "boundary.level": 2,
        "draft": False,
    }
    with pytest.raises(ConfigurationError):
        cli.parse_filter(["novalue"])


def test_plan_reports_backend_outage(monkeypatch, capsys):
    monkeypatch.setenv("GISTDEX_EMBEDDING_BACKEND", "hash")
    monkeypatch.setenv("GISTDEX_VECTOR_STORE", "memory")

    async def unreachable(self, text):
        raise EmbeddingError("Failed to connect to embedding service")

    monkeypatch.setattr(HashEmbedder, "embed", unreachable)
    assert cli.main(["plan", "TypeScript setup"]) == cli.EXIT_BACKEND_ERROR
    captured = capsys.readouterr()
    assert "Retrieval backend unavailable" in captured.err
    assert "No results found" not in captured.out


def test_plan_on_empty_corpus_is_not_an_error(monkeypatch, capsys):
    monkeypatch.setenv("GISTDEX_EMBEDDING_BACKEND", "hash")
    monkeypatch.setenv("GISTDEX_VECTOR_STORE", "memory")
    assert cli.main(["plan", "TypeScript setup"]) == cli.EXIT_OK
    assert "No results found for: TypeScript setup" in capsys.readouterr().out


def test_zero_k_is_rejected(corpus, capsys):
    assert cli.main(["--corpus", corpus, "search", "vector", "-k", "0"]) == cli.EXIT_CONFIG_ERROR
    assert "k must be a positive integer" in capsys.readouterr().err
