"""Subagent runner — hand a specification to an execution engine.

The engine is anything that can turn a prompt plus a specification into a
result; the registry never depends on a concrete one. The runner owns
everything around the call: prompt construction within the context
budget, the timeout, timing, and feeding the outcome back into telemetry.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from subreg.errors import SubagentNotFoundError
from subreg.registry import SubagentRegistry
from subreg.registry.models import Specification

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4  # rough estimate
DEFAULT_CONTEXT_TOKENS = 2000
TRUNCATION_MARKER = "\n...(truncated)"


@dataclass
class EngineOutput:
    """What an engine reports back for one run."""

    summary: str = ""
    transcript: list[str] = field(default_factory=list)
    files_changed: list[str] = field(default_factory=list)


@runtime_checkable
class ExecutionEngine(Protocol):
    """Protocol for task execution backends."""

    async def run(self, prompt: str, spec: Specification, cwd: str) -> EngineOutput:
        """Run one task to completion. Raise on failure."""
        ...


@dataclass
class TaskResult:
    """Structured result of one subagent invocation."""

    subagent_id: str
    goal: str
    summary: str
    transcript: list[str] = field(default_factory=list)
    files_changed: list[str] = field(default_factory=list)
    start_time: str = ""  # ISO 8601
    end_time: str = ""  # ISO 8601
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "transcript": self.transcript,
            "files_changed": self.files_changed,
            "metadata": {
                "subagent_id": self.subagent_id,
                "goal": self.goal,
                "start_time": self.start_time,
                "end_time": self.end_time,
                "duration_ms": self.duration_ms,
            },
        }


@dataclass
class ToolCheck:
    valid: bool = True
    missing: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def build_prompt(
    spec: Specification,
    goal: str,
    context: str | None = None,
    default_context_tokens: int = DEFAULT_CONTEXT_TOKENS,
) -> str:
    """Assemble the engine prompt: role, optional context, then the goal.

    Context is cut to the specification's ``max_system_tokens`` budget
    (``default_context_tokens`` when none is declared).
    """
    prompt = spec.system_prompt + "\n\n"

    if context:
        budget = spec.context_budget
        max_tokens = (
            budget.max_system_tokens
            if budget and budget.max_system_tokens
            else default_context_tokens
        )
        max_chars = max_tokens * CHARS_PER_TOKEN
        if len(context) > max_chars:
            context = context[:max_chars] + TRUNCATION_MARKER
        prompt += f"CONVERSATION CONTEXT:\n{context}\n\n"

    prompt += (
        "Main agent: spawn a subagent with this system role and have it complete the goal:\n"
        f"GOAL: {goal}\n\n"
        "When complete, provide:\n"
        "1. A concise summary of what you accomplished\n"
        "2. A list of files you modified (if any), under a line reading 'FILES CHANGED:'\n"
        "3. Any important notes for the main agent"
    )
    return prompt


def validate_tool_requirements(spec: Specification) -> ToolCheck:
    """Check that every CLI tool the specification needs is on PATH.

    Tools with an install hint only produce a warning.
    """
    check = ToolCheck()
    if spec.tool_requirements is None:
        return check

    for tool in spec.tool_requirements.cli_allowlist:
        if shutil.which(tool.name) is not None:
            continue
        if tool.install_hint:
            check.warnings.append(f"{tool.name} not found. Install: {tool.install_hint}")
        else:
            check.missing.append(tool.name)

    check.valid = not check.missing
    return check


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, timezone.utc).isoformat()


async def run_subagent(
    registry: SubagentRegistry,
    id_or_alias: str,
    goal: str,
    engine: ExecutionEngine,
    *,
    context: str | None = None,
    cwd: str | None = None,
    timeout_s: float | None = None,
    default_context_tokens: int = DEFAULT_CONTEXT_TOKENS,
) -> TaskResult:
    """Run a registered subagent and record the outcome.

    Telemetry is updated on success and on failure; failures (including
    timeouts) are re-raised to the caller, which owns any retry policy.

    Raises:
        SubagentNotFoundError: if ``id_or_alias`` is not registered.
    """
    spec = registry.get_manifest(id_or_alias)
    if spec is None:
        raise SubagentNotFoundError(id_or_alias, registry.names())

    cwd = cwd or os.getcwd()
    prompt = build_prompt(spec, goal, context, default_context_tokens)

    check = validate_tool_requirements(spec)
    for warning in check.warnings:
        logger.warning("%s: %s", spec.id, warning)
    if check.missing:
        logger.warning("%s: missing CLI tools: %s", spec.id, ", ".join(check.missing))

    logger.info("Running subagent '%s': %s", spec.id, goal[:100])
    start_wall = time.time()
    start = time.perf_counter()
    try:
        if timeout_s:
            output = await asyncio.wait_for(engine.run(prompt, spec, cwd), timeout_s)
        else:
            output = await engine.run(prompt, spec, cwd)
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        registry.update_telemetry(spec.id, False, latency_ms)
        logger.error(
            "Subagent '%s' failed after %.0f ms: %s", spec.id, latency_ms, e, exc_info=True
        )
        raise

    latency_ms = (time.perf_counter() - start) * 1000
    registry.update_telemetry(spec.id, True, latency_ms)

    return TaskResult(
        subagent_id=spec.id,
        goal=goal,
        summary=output.summary or "Task completed",
        transcript=output.transcript,
        files_changed=[p for p in output.files_changed if p],
        start_time=_iso(start_wall),
        end_time=_iso(time.time()),
        duration_ms=latency_ms,
    )
