"""
Activation Failure Report - Structured record of a failed scenario.

Written when an expected log marker never shows up. The JSON form is
machine-parseable; the markdown form is for reading in CI artifacts.
Credentials never enter the report: parameters are recorded by name.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from system_tests.reporters.log_extractor import LogExtractor


@dataclass
class ActivationFailureReport:
    """Everything known about a scenario when its marker went missing."""

    # Test identification
    test_id: str  # Full pytest node ID
    test_name: str
    test_start: datetime
    test_end: datetime

    # What was awaited
    target: str  # activation id or action name
    marker: str
    waited_seconds: float = 0.0

    # Log evidence
    logs: list[str] = field(default_factory=list)
    failure_lines: list[str] = field(default_factory=list)

    # Optional: invocation data
    action: str | None = None
    activation_id: str | None = None
    param_names: list[str] | None = None
    result: dict[str, Any] | None = None

    assertion_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "test_id": self.test_id,
            "test_name": self.test_name,
            "test_start": self.test_start.isoformat(),
            "test_end": self.test_end.isoformat(),
            "duration_seconds": (self.test_end - self.test_start).total_seconds(),
            "summary": self._generate_summary(),
            "target": self.target,
            "marker": self.marker,
            "waited_seconds": self.waited_seconds,
            "failure_lines": self.failure_lines,
            "logs": self.logs,
            "invocation": {
                "action": self.action,
                "activation_id": self.activation_id,
                "param_names": self.param_names,
                "result": self.result,
            } if self.action else None,
            "assertion_error": self.assertion_error,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

    def save(self, directory: Path | str = "test-results/debug-reports") -> Path:
        """Save report to a JSON file and return the path."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        safe_name = self.test_name.replace("/", "_").replace("::", "_")
        timestamp = self.test_start.strftime("%Y%m%d_%H%M%S")
        filepath = directory / f"{safe_name}_{timestamp}.json"
        filepath.write_text(self.to_json())

        filepath.with_suffix(".md").write_text(self.to_markdown())

        return filepath

    def _generate_summary(self) -> str:
        parts = [f"'{self.marker}' not found in {self.target} after {self.waited_seconds:.0f}s"]

        if not self.logs:
            parts.append("no log lines")
        else:
            parts.append(f"{len(self.logs)} log line(s)")

        if self.failure_lines:
            parts.append(f"first failure: {self.failure_lines[0][:100]}")

        return " | ".join(parts)

    def to_markdown(self) -> str:
        """Generate markdown report for human review."""
        duration = (self.test_end - self.test_start).total_seconds()

        md = f"""# Activation Failure Report

## Test: `{self.test_name}`

**ID:** `{self.test_id}`
**Duration:** {duration:.2f}s
**Summary:** {self._generate_summary()}

---
"""

        if self.assertion_error:
            md += f"\n## Assertion Failed\n\n```\n{self.assertion_error}\n```\n"

        if self.action:
            md += "\n## Invocation\n\n"
            md += f"**Action:** `{self.action}`\n\n"
            if self.activation_id:
                md += f"**Activation:** `{self.activation_id}`\n\n"
            if self.param_names:
                md += f"**Parameters:** {', '.join(self.param_names)}\n\n"
            if self.result:
                md += f"```json\n{json.dumps(self.result, indent=2)}\n```\n"

        snippets = LogExtractor().extract_error_snippets(self.logs, self.target)
        if snippets:
            md += "\n## Failure Context\n\n"
            for snippet in snippets[:3]:
                md += f"```\n{snippet.to_string()}\n```\n\n"

        if self.logs:
            md += "\n## Logs\n\n```\n"
            md += LogExtractor().summarize_logs(self.logs)
            md += "\n```\n"

        return md
