"""Exception types raised outside the registry's lookup paths.

Registry lookups never raise: unknown ids and aliases come back as
``None``. These are for the loaders and the runner.
"""

from __future__ import annotations


class SubregError(Exception):
    """Base class for subreg errors."""


class CatalogError(SubregError):
    """A catalog entry or agent definition file could not be loaded."""


class SubagentNotFoundError(SubregError):
    """An invocation named an agent that is not registered."""

    def __init__(self, id_or_alias: str, available: list[str] | None = None) -> None:
        self.id_or_alias = id_or_alias
        self.available = available or []
        message = f"Unknown subagent: {id_or_alias}"
        if self.available:
            message += f". Available: {', '.join(self.available)}"
        super().__init__(message)


class ExecutionError(SubregError):
    """The execution engine finished without producing a result."""
