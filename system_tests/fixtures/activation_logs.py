"""
Activation Log Watcher - Wait for the action to report completion.

The platform writes activation logs asynchronously, so a blocking invoke
can return before its logs are queryable, and a trigger-fired activation
shows up some time after the document write. This module polls for an
expected marker with a bound and, on a miss, gathers every log line so
the failure can be diagnosed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from whisk_catalog.services.wsk import WskCli


@dataclass
class MarkerSearch:
    """Outcome of waiting for a log marker."""

    target: str  # activation id or action name
    marker: str
    line: str | None
    started: datetime
    finished: datetime
    logs: list[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.line is not None

    @property
    def waited_seconds(self) -> float:
        return (self.finished - self.started).total_seconds()


class ActivationLogWatcher:
    """
    Poll activation logs for expected markers.

    Usage:
        watcher = ActivationLogWatcher(wsk, timeout=60)

        search = watcher.wait_for_activation(activation_id, "Thumbnail complete")
        if not search.found:
            pytest.fail(...)  # search.logs holds everything the activation wrote
    """

    def __init__(
        self,
        wsk: "WskCli",
        timeout: float = 60.0,
        failure_patterns: list[str] | None = None,
    ):
        self.wsk = wsk
        self.timeout = timeout
        self._failure_patterns = [
            re.compile(p, re.IGNORECASE) for p in (failure_patterns or [])
        ]

    def wait_for_activation(
        self,
        activation_id: str,
        marker: str,
        timeout: float | None = None,
    ) -> MarkerSearch:
        """Wait for ``marker`` in one activation's logs."""
        timeout = timeout or self.timeout
        started = datetime.now(UTC)

        line = self.wsk.logs_for_activation_contain_get(activation_id, marker, timeout)

        logs: list[str] = []
        if line is None:
            result = self.wsk.get_logs_for_activation(activation_id)
            logs = [l for l in result.stdout.splitlines() if l.strip()]

        return MarkerSearch(
            target=activation_id,
            marker=marker,
            line=line,
            started=started,
            finished=datetime.now(UTC),
            logs=logs,
        )

    def wait_for_action(
        self,
        action: str,
        marker: str,
        since: int = 0,
        timeout: float | None = None,
    ) -> MarkerSearch:
        """Wait for ``marker`` in any activation of ``action``."""
        timeout = timeout or self.timeout
        started = datetime.now(UTC)

        line = self.wsk.first_logs_for_action_contain_get(action, marker, since, timeout)

        logs: list[str] = []
        if line is None:
            logs = self.wsk.get_logs_for_action(action, since)

        return MarkerSearch(
            target=action,
            marker=marker,
            line=line,
            started=started,
            finished=datetime.now(UTC),
            logs=logs,
        )

    def failure_lines(self, logs: list[str]) -> list[str]:
        """Log lines that match any configured failure pattern."""
        return [
            line for line in logs
            if any(p.search(line) for p in self._failure_patterns)
        ]
