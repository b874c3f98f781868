"""
Platform Health Checker - Verify the platform and document store answer.

Runs before any scenario so a missing CLI, a bad auth key or an
unreachable Cloudant account fails fast with a readable status table
instead of surfacing as a timeout inside the first test.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from whisk_catalog.core.config import LIVE_TRIGGER_SETTLE_SECONDS
from whisk_catalog.core.exceptions import HarnessError

if TYPE_CHECKING:
    from whisk_catalog.core.config import Settings
    from whisk_catalog.services.cloudant import CloudantClient, Credential
    from whisk_catalog.services.wsk import WskCli


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    name: str
    healthy: bool
    message: str
    details: dict | None = None


class PlatformHealthChecker:
    """
    Verify the external collaborators are reachable.

    Checks:
    1. The CLI runs and the auth key is accepted (namespace list)
    2. The action source exists under the whisk home
    3. Each Cloudant account answers on its root URL
    4. The trigger settle time is long enough for a live feed
    """

    def __init__(
        self,
        wsk: "WskCli",
        cloudant: "CloudantClient",
        credentials: dict[str, "Credential"],
        action_file=None,
        settings: "Settings | None" = None,
    ):
        self.wsk = wsk
        self.cloudant = cloudant
        self.credentials = credentials
        self.action_file = action_file
        self.settings = settings

    def check_all(self) -> list[HealthCheckResult]:
        """Run all health checks and return results."""
        results = [self._check_cli()]

        if self.action_file is not None:
            results.append(self._check_action_file())

        for name, credential in self.credentials.items():
            results.append(self._check_cloudant(name, credential))

        if self.settings is not None:
            results.append(self._check_trigger_settle())

        return results

    def assert_healthy(self) -> None:
        """Assert that all checks pass, raise if any fail."""
        results = self.check_all()
        failures = [r for r in results if not r.healthy]

        if failures:
            messages = "\n".join(
                f"  ❌ {r.name}: {r.message}" for r in failures
            )
            raise AssertionError(
                f"Platform health check failed:\n{messages}\n\n"
                f"Check WSK_AUTH / .wskprops, WHISK_HOME and the "
                f"cloudant property files."
            )

    def wait_for_healthy(
        self,
        timeout: float = 30.0,
        poll_interval: float = 2.0,
    ) -> None:
        """Wait for the platform to become healthy."""
        start = time.time()

        while (time.time() - start) < timeout:
            try:
                self.assert_healthy()
                return
            except AssertionError:
                time.sleep(poll_interval)

        # Final check with full error
        self.assert_healthy()

    def _check_cli(self) -> HealthCheckResult:
        try:
            result = self.wsk.namespaces()
        except HarnessError as e:
            return HealthCheckResult(
                name="wsk:cli",
                healthy=False,
                message=e.message,
                details=e.details,
            )

        if not result.ok:
            return HealthCheckResult(
                name="wsk:cli",
                healthy=False,
                message=f"namespace list exited {result.exit_code}: {result.stderr.strip()[:200]}",
            )

        return HealthCheckResult(
            name="wsk:cli",
            healthy=True,
            message="CLI authenticated",
        )

    def _check_action_file(self) -> HealthCheckResult:
        if self.action_file.is_file():
            return HealthCheckResult(
                name="whisk:action-source",
                healthy=True,
                message=str(self.action_file),
            )
        return HealthCheckResult(
            name="whisk:action-source",
            healthy=False,
            message=f"Action source not found: {self.action_file}",
        )

    def _check_cloudant(self, name: str, credential: "Credential") -> HealthCheckResult:
        try:
            info = self.cloudant.server_info(credential)
        except HarnessError as e:
            return HealthCheckResult(
                name=f"cloudant:{name}",
                healthy=False,
                message=e.message,
                details=e.details,
            )

        return HealthCheckResult(
            name=f"cloudant:{name}",
            healthy=True,
            message=f"Cloudant responding at {credential.host}",
            details=info,
        )

    def _check_trigger_settle(self) -> HealthCheckResult:
        settle = self.settings.trigger_settle_seconds
        if settle < LIVE_TRIGGER_SETTLE_SECONDS:
            return HealthCheckResult(
                name="whisk:trigger-settle",
                healthy=False,
                message=(
                    f"TRIGGER_SETTLE_SECONDS={settle:g} is below "
                    f"{LIVE_TRIGGER_SETTLE_SECONDS:g}s; feed triggers may miss changes"
                ),
            )
        return HealthCheckResult(
            name="whisk:trigger-settle",
            healthy=True,
            message=f"{settle:g}s after trigger creation",
        )

    def print_status(self) -> None:
        """Print current platform status to stdout."""
        results = self.check_all()

        print("\n" + "=" * 60)
        print("PLATFORM HEALTH STATUS")
        print("=" * 60)

        for result in results:
            icon = "✅" if result.healthy else "❌"
            print(f"  {icon} {result.name}: {result.message}")

        print("=" * 60 + "\n")
