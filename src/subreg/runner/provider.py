"""LiteLLM-backed execution engine.

litellm handles provider detection from the model string prefix
("anthropic/claude-...", "openai/gpt-...", "gemini/...") and reads API
keys from environment variables. The engine streams one completion for
the assembled prompt and turns the reply into an :class:`EngineOutput`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from subreg.errors import ExecutionError
from subreg.registry.models import Specification
from subreg.runner.engine import EngineOutput

if TYPE_CHECKING:
    from litellm import CustomStreamWrapper, ModelResponse

    from subreg.config import EngineConfig

logger = logging.getLogger(__name__)

FILES_CHANGED_MARKER = re.compile(r"^\s*FILES CHANGED:\s*$", re.IGNORECASE | re.MULTILINE)
_BULLET = re.compile(r"^\s*(?:[-*]|\d+[.)])\s+")


@dataclass
class EngineSettings:
    model: str
    temperature: float | None = None
    max_tokens: int | None = None


def parse_reply(text: str) -> EngineOutput:
    """Split a model reply into summary, transcript and changed files.

    Everything before a ``FILES CHANGED:`` line is the summary; the list
    items directly after it are the changed paths.
    """
    transcript = [line for line in text.splitlines() if line.strip()]

    match = FILES_CHANGED_MARKER.search(text)
    if not match:
        return EngineOutput(summary=text.strip(), transcript=transcript)

    files: list[str] = []
    for line in text[match.end() :].splitlines():
        if not line.strip():
            if files:
                break
            continue
        if not _BULLET.match(line):
            break
        path = _BULLET.sub("", line).strip().strip("`")
        if path and path.lower() not in ("none", "n/a"):
            files.append(path)

    return EngineOutput(
        summary=text[: match.start()].strip(),
        transcript=transcript,
        files_changed=files,
    )


class LiteLLMEngine:
    """Execution engine that runs a subagent as a single streamed completion."""

    def __init__(self, settings: EngineSettings) -> None:
        self._settings = settings

    @classmethod
    def from_config(cls, config: EngineConfig) -> LiteLLMEngine:
        return cls(
            EngineSettings(
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
            )
        )

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    async def run(self, prompt: str, spec: Specification, cwd: str) -> EngineOutput:
        kwargs: dict[str, Any] = {
            "model": self._settings.model,
            "messages": [
                {"role": "system", "content": f"Working directory: {cwd}"},
                {"role": "user", "content": prompt},
            ],
            "stream": True,
        }
        if self._settings.temperature is not None:
            kwargs["temperature"] = self._settings.temperature
        if self._settings.max_tokens is not None:
            kwargs["max_tokens"] = self._settings.max_tokens

        logger.debug("Streaming %s for subagent %s", self._settings.model, spec.id)
        response = await _acompletion_with_retry(**kwargs)

        parts: list[str] = []
        async for chunk in response:  # type: ignore[union-attr]
            content = _chunk_content(chunk)
            if content:
                parts.append(content)

        text = "".join(parts)
        if not text.strip():
            raise ExecutionError(f"No result received from subagent {spec.id}")
        return parse_reply(text)


@retry(
    retry=retry_if_exception_type((ConnectionError, TimeoutError, OSError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=30),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _acompletion_with_retry(**kwargs: Any) -> CustomStreamWrapper | ModelResponse:
    """Call litellm.acompletion with retry on transient errors."""
    import litellm

    return await litellm.acompletion(**kwargs)


def _chunk_content(chunk: Any) -> str | None:
    """Text delta of a streamed chunk (OpenAI ChatCompletionChunk shape)."""
    choices = getattr(chunk, "choices", None)
    if not choices:
        return None
    delta = getattr(choices[0], "delta", None)
    return getattr(delta, "content", None) if delta is not None else None
