"""
Log Extractor - Pull the interesting part out of activation logs.

Activation logs interleave stdout and stderr of the action. When a
marker is missing, the lines around the first failure usually explain
why; this module finds them and condenses long logs for the report.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass
class LogSnippet:
    """A snippet of logs with context around a failure line."""

    source: str
    error_line: str
    context_before: list[str]
    context_after: list[str]
    line_number: int

    def to_string(self, include_line_numbers: bool = True) -> str:
        """Format snippet as a string."""
        lines = []

        start_num = max(1, self.line_number - len(self.context_before))

        for i, line in enumerate(self.context_before):
            num = start_num + i
            if include_line_numbers:
                lines.append(f"  {num:4d} │ {line}")
            else:
                lines.append(f"       │ {line}")

        if include_line_numbers:
            lines.append(f"→ {self.line_number:4d} │ {self.error_line}")
        else:
            lines.append(f"    →  │ {self.error_line}")

        for i, line in enumerate(self.context_after):
            num = self.line_number + 1 + i
            if include_line_numbers:
                lines.append(f"  {num:4d} │ {line}")
            else:
                lines.append(f"       │ {line}")

        return "\n".join(lines)


class LogExtractor:
    """Extract relevant snippets from activation logs."""

    def __init__(self, context_lines: int = 3):
        self.context_lines = context_lines

    def extract_error_snippets(
        self,
        logs: list[str],
        source: str,
        error_patterns: list[re.Pattern] | None = None,
    ) -> list[LogSnippet]:
        """
        Extract snippets around error lines.

        Args:
            logs: List of log lines
            source: Activation id or action name for the snippet
            error_patterns: Compiled regex patterns to match errors

        Returns:
            List of LogSnippet objects with context
        """
        if error_patterns is None:
            error_patterns = [
                re.compile(r"\berror\b", re.IGNORECASE),
                re.compile(r"stderr", re.IGNORECASE),
                re.compile(r"\bfailed\b", re.IGNORECASE),
            ]

        snippets = []

        for i, line in enumerate(logs):
            if any(p.search(line) for p in error_patterns):
                start = max(0, i - self.context_lines)
                end = min(len(logs), i + self.context_lines + 1)

                snippets.append(LogSnippet(
                    source=source,
                    error_line=line,
                    context_before=logs[start:i],
                    context_after=logs[i + 1:end],
                    line_number=i + 1,  # 1-based
                ))

        return snippets

    def summarize_logs(
        self,
        logs: list[str],
        max_lines: int = 50,
    ) -> str:
        """
        Condense logs, keeping failures first and the most recent lines last.
        """
        errors = []
        important = []
        other = []

        error_pattern = re.compile(r"error|stderr|failed|exception", re.IGNORECASE)
        important_pattern = re.compile(
            r"complete|result document id|thumbnail|docid|invoked",
            re.IGNORECASE,
        )

        for line in logs:
            if error_pattern.search(line):
                errors.append(line)
            elif important_pattern.search(line):
                important.append(line)
            else:
                other.append(line)

        summary_lines = list(errors[:max_lines])

        remaining = max_lines - len(summary_lines)
        if remaining > 0:
            summary_lines.extend(important[:remaining])

        remaining = max_lines - len(summary_lines)
        if remaining > 0:
            # Most recent lines
            summary_lines.extend(other[-remaining:])

        return "\n".join(summary_lines)
