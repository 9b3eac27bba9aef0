"""Runner — invoke subagents through an execution engine."""

from subreg.runner.engine import (
    EngineOutput,
    ExecutionEngine,
    TaskResult,
    ToolCheck,
    build_prompt,
    run_subagent,
    validate_tool_requirements,
)
from subreg.runner.provider import EngineSettings, LiteLLMEngine, parse_reply

__all__ = [
    "EngineOutput",
    "ExecutionEngine",
    "TaskResult",
    "ToolCheck",
    "build_prompt",
    "run_subagent",
    "validate_tool_requirements",
    "EngineSettings",
    "LiteLLMEngine",
    "parse_reply",
]
