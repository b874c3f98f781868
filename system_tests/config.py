"""
System Test Configuration.

Scenario constants for the thumbnail suite: input images, log markers,
the feed package and where failure reports go. Connection settings live
in whisk_catalog.core.config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class SuiteConfig:
    """Configuration for the thumbnail system tests."""

    # Input images, relative to the whisk home
    direct_image: str = "tests/dat/images/VeilNebula.png"
    package_image: str = "tests/dat/images/EarthHeart.png"

    # Feed provider the trigger scenario binds
    cloudant_package: str = "/whisk.system/cloudant"
    cloudant_feed: str = "changes"

    # Log markers written by the thumbnail action
    thumbnail_marker: str = "Thumbnail complete"
    result_marker: str = "Result document id = "

    # Failure reports
    write_reports: bool = True
    report_dir: str = "test-results/debug-reports"

    # Extra markers that indicate the action failed outright
    failure_patterns: list[str] = field(
        default_factory=lambda: [
            r"Error:",
            r"Traceback \(most recent call last\)",
            r"ImageMagick",
            r"\bfailed\b",
        ]
    )

    @classmethod
    def from_env(cls) -> "SuiteConfig":
        """Load config from environment variables."""
        return cls(
            write_reports=os.getenv("SYSTEM_TEST_REPORTS", "1") == "1",
            report_dir=os.getenv("SYSTEM_TEST_REPORT_DIR", "test-results/debug-reports"),
        )


# Global default config instance
_config: SuiteConfig | None = None


def get_config() -> SuiteConfig:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = SuiteConfig.from_env()
    return _config
