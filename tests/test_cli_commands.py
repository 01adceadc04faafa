"""
Unit Tests for CLI Commands

Tests the CLI entry points without network or API calls. The pipeline
factory is patched to use MockEmbeddings and a mocked chat model.

PATTERNS:
---------
1. Mock the expensive collaborators
2. Test CLI argument parsing
3. Verify exit codes
4. Test error handling
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from langchain_core.messages import AIMessage

from rag_pipeline.cli import commands
from rag_pipeline.embeddings import MockEmbeddings
from rag_pipeline.pipeline import RAGPipeline


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def quiet_env(monkeypatch):
    """Keep .env files, tracing and remote stores out of CLI tests."""
    monkeypatch.setattr(commands, "load_dotenv", lambda: None)
    monkeypatch.delenv("RAG_TRACING_ENABLED", raising=False)
    monkeypatch.delenv("RAG_VECTOR_STORE", raising=False)
    monkeypatch.delenv("RAG_TOP_K", raising=False)
    monkeypatch.delenv("RAG_STRATEGY", raising=False)
    monkeypatch.delenv("RAG_SCORE_THRESHOLD", raising=False)


@pytest.fixture
def chat_model():
    model = MagicMock()
    model.ainvoke = AsyncMock(return_value=AIMessage(content="Dogs are loyal."))
    return model


@pytest.fixture
def fake_pipeline(chat_model):
    def create(config):
        return RAGPipeline(config, embeddings=MockEmbeddings(), chat_model=chat_model)

    with patch.object(commands, "_create_pipeline", side_effect=create) as factory:
        yield factory


# ---------------------------------------------------------------------------
# ARGUMENT PARSING
# ---------------------------------------------------------------------------


class TestParser:
    def test_ask_with_text(self):
        args = commands.build_parser().parse_args(["ask", "--text", "hello", "q1", "q2"])

        assert args.command == "ask"
        assert args.text == "hello"
        assert args.questions == ["q1", "q2"]
        assert args.selector == "p"
        assert args.format == "txt"

    def test_source_required(self):
        with pytest.raises(SystemExit):
            commands.build_parser().parse_args(["ask", "question"])

    def test_sources_mutually_exclusive(self):
        with pytest.raises(SystemExit):
            commands.build_parser().parse_args(
                ["search", "--text", "a", "--url", "https://b.c", "query"]
            )

    def test_k_must_be_positive(self):
        with pytest.raises(SystemExit):
            commands.build_parser().parse_args(["search", "--text", "a", "-k", "0", "query"])

    def test_loader_config_from_flags(self):
        parser = commands.build_parser()

        web = commands._loader_config(
            parser.parse_args(["ask", "--url", "https://x.y", "--selector", "article", "q"])
        )
        file = commands._loader_config(
            parser.parse_args(["ask", "--file", "doc.pdf", "--format", "pdf", "q"])
        )

        assert web.kind == "web" and web.selector == "article"
        assert file.kind == "file" and file.format == "pdf"

    def test_score_threshold_flag_reaches_options(self):
        args = commands.build_parser().parse_args(
            ["search", "--text", "a", "--strategy", "threshold", "--score-threshold", "0.4", "q"]
        )

        options = commands._retrieval_options(args, commands.PipelineConfig())

        assert options.strategy == "threshold"
        assert options.score_threshold == 0.4


# ---------------------------------------------------------------------------
# COMMANDS
# ---------------------------------------------------------------------------


class TestAsk:
    def test_answers_each_question(self, fake_pipeline, chat_model, capsys):
        code = commands.main(
            ["ask", "--text", "Dogs are loyal pets. Cats are independent.", "Who is loyal?", "Who is not?"]
        )

        assert code == 0
        assert chat_model.ainvoke.await_count == 2
        out = capsys.readouterr().out
        assert "Q: Who is loyal?" in out
        assert "A: Dogs are loyal." in out

    def test_missing_file_exits_1(self, fake_pipeline, tmp_path, capsys):
        code = commands.main(["ask", "--file", str(tmp_path / "missing.txt"), "question"])

        assert code == 1
        assert "File not found" in capsys.readouterr().err

    def test_generation_failure_exits_1(self, fake_pipeline, chat_model):
        chat_model.ainvoke.side_effect = RuntimeError("quota exceeded")

        assert commands.main(["ask", "--text", "Dogs are loyal.", "question"]) == 1

    def test_threshold_without_cutoff_exits_1(self, fake_pipeline, capsys):
        code = commands.main(
            ["ask", "--text", "Dogs are loyal.", "--strategy", "threshold", "dogs?"]
        )

        assert code == 1
        assert "requires a score threshold" in capsys.readouterr().err

    def test_threshold_from_env_without_cutoff_exits_1(self, fake_pipeline, monkeypatch):
        monkeypatch.setenv("RAG_STRATEGY", "threshold")

        assert commands.main(["ask", "--text", "Dogs are loyal.", "dogs?"]) == 1

    def test_threshold_with_cutoff_answers(self, fake_pipeline, capsys):
        code = commands.main(
            [
                "ask", "--text", "Dogs are loyal.",
                "--strategy", "threshold", "--score-threshold", "-1.0",
                "dogs?",
            ]
        )

        assert code == 0
        assert "A: Dogs are loyal." in capsys.readouterr().out

    def test_threshold_cutoff_from_env(self, fake_pipeline, monkeypatch):
        monkeypatch.setenv("RAG_STRATEGY", "threshold")
        monkeypatch.setenv("RAG_SCORE_THRESHOLD", "-1.0")

        assert commands.main(["ask", "--text", "Dogs are loyal.", "dogs?"]) == 0


class TestSearch:
    def test_prints_results_per_query(self, fake_pipeline, chat_model, capsys):
        code = commands.main(
            ["search", "--text", "Dogs are loyal pets.", "-k", "1", "loyal", "pets"]
        )

        assert code == 0
        chat_model.ainvoke.assert_not_awaited()
        out = capsys.readouterr().out
        assert "Query: loyal" in out
        assert "[text-input] Dogs are loyal pets." in out
        assert "2 queries, 2 results" in out

    def test_unknown_strategy_reported_per_query(self, fake_pipeline, capsys):
        code = commands.main(
            ["search", "--text", "Dogs are loyal.", "--strategy", "keyword", "loyal"]
        )

        assert code == 1
        assert "[ERROR] Unknown strategy: keyword" in capsys.readouterr().out

    def test_repeated_query_printed_twice(self, fake_pipeline, capsys):
        code = commands.main(["search", "--text", "Dogs are loyal pets.", "loyal", "loyal"])

        assert code == 0
        out = capsys.readouterr().out
        assert out.count("Query: loyal") == 2
        assert out.count("[text-input] Dogs are loyal pets.") == 2
        assert "2 queries, 2 results" in out


class TestExitCodes:
    def test_keyboard_interrupt_returns_130(self):
        with patch.object(commands, "_ask", side_effect=KeyboardInterrupt()):
            assert commands.main(["ask", "--text", "x", "q"]) == 130
