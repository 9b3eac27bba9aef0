"""Tests for subreg.runner.provider (reply parsing, retry logic, LiteLLMEngine)."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from subreg.config import EngineConfig
from subreg.errors import ExecutionError
from subreg.registry.models import Specification
from subreg.runner.provider import (
    EngineSettings,
    LiteLLMEngine,
    _acompletion_with_retry,
    _chunk_content,
    parse_reply,
)


# ---------------------------------------------------------------------------
# parse_reply
# ---------------------------------------------------------------------------


class TestParseReply:
    def test_no_marker(self) -> None:
        out = parse_reply("Fixed the flaky test.\n\nNothing else to report.")
        assert out.summary == "Fixed the flaky test.\n\nNothing else to report."
        assert out.files_changed == []
        assert out.transcript == ["Fixed the flaky test.", "Nothing else to report."]

    def test_files_after_marker(self) -> None:
        text = (
            "Updated the parser.\n"
            "FILES CHANGED:\n"
            "- src/parser.py\n"
            "* `tests/test_parser.py`\n"
            "1. docs/usage.md\n"
            "\n"
            "Notes: run the full suite before merging."
        )
        out = parse_reply(text)
        assert out.summary == "Updated the parser."
        assert out.files_changed == ["src/parser.py", "tests/test_parser.py", "docs/usage.md"]
        assert out.transcript[-1] == "Notes: run the full suite before merging."

    def test_marker_case_insensitive_with_blank_line(self) -> None:
        out = parse_reply("Done.\nFiles changed:\n\n- a.py\n")
        assert out.files_changed == ["a.py"]

    def test_none_entries_skipped(self) -> None:
        out = parse_reply("Report only.\nFILES CHANGED:\n- None\n")
        assert out.summary == "Report only."
        assert out.files_changed == []

    def test_list_stops_at_prose(self) -> None:
        out = parse_reply("Done.\nFILES CHANGED:\n- a.py\nThat is all.\n- not-a-file\n")
        assert out.files_changed == ["a.py"]


# ---------------------------------------------------------------------------
# _acompletion_with_retry — retry logic
# ---------------------------------------------------------------------------


class TestRetryLogic:
    async def test_success_on_first_try(self) -> None:
        mock_acompletion = AsyncMock(return_value="ok")
        with patch("litellm.acompletion", mock_acompletion):
            result = await _acompletion_with_retry(model="test", messages=[])
            assert result == "ok"
            assert mock_acompletion.call_count == 1

    async def test_retries_on_connection_error(self) -> None:
        mock_acompletion = AsyncMock(side_effect=[ConnectionError("conn failed"), "ok"])
        with patch("litellm.acompletion", mock_acompletion):
            result = await _acompletion_with_retry(model="test", messages=[])
            assert result == "ok"
            assert mock_acompletion.call_count == 2

    async def test_gives_up_after_3_attempts(self) -> None:
        mock_acompletion = AsyncMock(
            side_effect=[
                OSError("fail 1"),
                OSError("fail 2"),
                OSError("fail 3"),
            ]
        )
        with patch("litellm.acompletion", mock_acompletion):
            with pytest.raises(OSError, match="fail 3"):
                await _acompletion_with_retry(model="test", messages=[])
            assert mock_acompletion.call_count == 3

    async def test_does_not_retry_on_value_error(self) -> None:
        mock_acompletion = AsyncMock(side_effect=ValueError("bad input"))
        with patch("litellm.acompletion", mock_acompletion):
            with pytest.raises(ValueError, match="bad input"):
                await _acompletion_with_retry(model="test", messages=[])
            assert mock_acompletion.call_count == 1


# ---------------------------------------------------------------------------
# LiteLLMEngine
# ---------------------------------------------------------------------------


class _FakeDelta:
    def __init__(self, content: str | None = None) -> None:
        self.content = content


class _FakeChoice:
    def __init__(self, delta: _FakeDelta | None) -> None:
        self.delta = delta


class _FakeChunk:
    def __init__(self, choices: list[_FakeChoice] | None = None) -> None:
        self.choices = choices


def _text_chunk(text: str | None) -> _FakeChunk:
    return _FakeChunk([_FakeChoice(_FakeDelta(text))])


async def _stream(chunks: list[_FakeChunk]):
    for chunk in chunks:
        yield chunk


SPEC = Specification(id="docs", system_prompt="You write docs.")


class TestChunkContent:
    def test_text(self) -> None:
        assert _chunk_content(_text_chunk("hi")) == "hi"

    def test_no_choices(self) -> None:
        assert _chunk_content(_FakeChunk(None)) is None
        assert _chunk_content(_FakeChunk([])) is None

    def test_no_delta(self) -> None:
        assert _chunk_content(_FakeChunk([_FakeChoice(None)])) is None


class TestLiteLLMEngine:
    def test_from_config(self) -> None:
        engine = LiteLLMEngine.from_config(
            EngineConfig(model="openai/gpt-4o", temperature=0.2, max_tokens=1024)
        )
        assert engine.settings == EngineSettings(
            model="openai/gpt-4o", temperature=0.2, max_tokens=1024
        )

    async def test_run_streams_and_parses(self) -> None:
        chunks = [
            _text_chunk("Wrote the "),
            _text_chunk("guide.\nFILES CHANGED:\n"),
            _FakeChunk([]),
            _text_chunk(None),
            _text_chunk("- docs/guide.md\n"),
        ]
        mock_acompletion = AsyncMock(return_value=_stream(chunks))
        engine = LiteLLMEngine(EngineSettings(model="test/model", temperature=0.0))
        with patch("litellm.acompletion", mock_acompletion):
            out = await engine.run("PROMPT", SPEC, "/work")

        assert out.summary == "Wrote the guide."
        assert out.files_changed == ["docs/guide.md"]

        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["model"] == "test/model"
        assert kwargs["stream"] is True
        assert kwargs["temperature"] == 0.0
        assert "max_tokens" not in kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "Working directory: /work"},
            {"role": "user", "content": "PROMPT"},
        ]

    async def test_empty_reply_raises(self) -> None:
        mock_acompletion = AsyncMock(return_value=_stream([_text_chunk("  \n")]))
        engine = LiteLLMEngine(EngineSettings(model="test/model"))
        with patch("litellm.acompletion", mock_acompletion):
            with pytest.raises(ExecutionError, match="No result received from subagent docs"):
                await engine.run("PROMPT", SPEC, "/work")
