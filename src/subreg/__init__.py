"""subreg — capsule-based discovery registry for specialized subagents."""

__version__ = "0.1.0"
