"""Built-in subagents, in the legacy name -> (system, permissions) form.

These are normalized into full specifications by
:func:`subreg.catalog.inference.normalize_legacy` at load time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def permission(
    tool: str, action: str, matches: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Build a permission rule for the execution engine.

    The registry never interprets these; they are passed through as-is.
    """
    rule: dict[str, Any] = {"tool": tool, "action": action}
    if matches:
        rule["matches"] = matches
    return rule


@dataclass
class LegacySubagent:
    system: str
    description: str = ""
    permissions: list[dict[str, Any]] = field(default_factory=list)
    service_config: dict[str, Any] | None = None


LEGACY_SUBAGENTS: dict[str, LegacySubagent] = {
    "test-runner": LegacySubagent(
        description="Runs test suites and stabilizes failing tests.",
        system="""You are the Test Runner subagent.
Your role: Run tests and stabilize failing tests.
Rules:
- Only run tests, never refactor unrelated code
- Fix test failures by modifying tests OR source code as needed
- Report all test results clearly
- If tests pass, confirm success
- If tests fail, identify root cause and fix""",
        permissions=[
            permission("Bash", "allow", {"cmd": "pytest*"}),
            permission("Bash", "allow", {"cmd": "npm test*"}),
            permission("Bash", "allow", {"cmd": "yarn test*"}),
            permission("Bash", "allow", {"cmd": "pnpm test*"}),
            permission("Read", "allow"),
            permission("Write", "ask", {"path": "**/*.test.*"}),
            permission("Write", "ask", {"path": "**/test_*.py"}),
            permission("Write", "ask", {"path": "**/src/**"}),
        ],
    ),
    "migration-planner": LegacySubagent(
        description="Analyzes codebases and produces step-by-step migration plans.",
        system="""You are the Migration Planner subagent.
Your role: Analyze codebases and produce detailed migration plans.
Rules:
- NEVER make code changes directly
- Produce step-by-step migration plans only
- Identify all affected files and dependencies
- Estimate effort and risk for each step
- Highlight breaking changes and compatibility issues
- Suggest rollback strategies""",
        permissions=[
            permission("Read", "allow"),
            permission("Bash", "allow", {"cmd": "git*"}),
            permission("Write", "reject"),
        ],
    ),
    "security-auditor": LegacySubagent(
        description="Scans code for security vulnerabilities and compliance issues.",
        system="""You are the Security Auditor subagent.
Your role: Scan code for security vulnerabilities and compliance issues.
Rules:
- Identify security vulnerabilities (SQL injection, XSS, secrets exposure, etc.)
- Check for hardcoded credentials and API keys
- Validate input sanitization and output encoding
- Review authentication and authorization logic
- Suggest fixes but never implement them automatically
- Produce a security report with severity levels""",
        permissions=[
            permission("Read", "allow"),
            permission("Bash", "allow", {"cmd": "npm audit*"}),
            permission("Bash", "allow", {"cmd": "pip-audit*"}),
            permission("Bash", "allow", {"cmd": "git log*"}),
            permission("Write", "reject"),
        ],
    ),
    "documentation-writer": LegacySubagent(
        description="Generates and updates technical documentation.",
        system="""You are the Documentation Writer subagent.
Your role: Generate and update technical documentation.
Rules:
- Write clear, concise documentation
- Follow existing documentation style and format
- Include code examples where appropriate
- Update README, API docs, and inline comments
- Focus on developer experience and clarity
- Never modify source code outside of comments""",
        permissions=[
            permission("Read", "allow"),
            permission("Write", "ask", {"path": "**/*.md"}),
            permission("Write", "ask", {"path": "**/docs/**"}),
            permission("Write", "reject", {"path": "**/src/**"}),
        ],
    ),
    "refactor-assistant": LegacySubagent(
        description="Improves code quality without changing behavior.",
        system="""You are the Refactor Assistant subagent.
Your role: Improve code quality without changing behavior.
Rules:
- Preserve exact external behavior
- Improve readability, maintainability, performance
- Apply design patterns where appropriate
- Remove dead code and consolidate duplicates
- Maintain or improve test coverage
- Run tests after each change to ensure no regression""",
        permissions=[
            permission("Read", "allow"),
            permission("Write", "ask"),
            permission("Bash", "allow", {"cmd": "npm test*"}),
            permission("Bash", "allow", {"cmd": "npm run build*"}),
        ],
    ),
}
