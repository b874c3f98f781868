"""
System Test Configuration - pytest fixtures for the live thumbnail suite.

These tests run against a real platform and a real Cloudant account:
1. The platform CLI and both Cloudant accounts are checked before any test
2. Each test class gets a fresh pair of databases (thumbnail + image)
3. Every scenario creates uniquely named platform resources and always
   sanitizes them, even on failure
4. A missing log marker produces a failure report with the activation logs

Run with: pytest system_tests/ -n auto --dist loadscope
"""

from __future__ import annotations

from datetime import datetime, UTC
from pathlib import Path
from typing import Callable, Generator

import pytest

from system_tests.config import SuiteConfig, get_config
from system_tests.fixtures.activation_logs import ActivationLogWatcher, MarkerSearch
from system_tests.fixtures.databases import DatabaseLifecycle
from system_tests.fixtures.platform_health import PlatformHealthChecker
from system_tests.reporters.activation_report import ActivationFailureReport
from whisk_catalog.core.config import Settings, get_settings
from whisk_catalog.core.exceptions import HarnessError, PropertyFileError
from whisk_catalog.core.logging import setup_logging
from whisk_catalog.services.cloudant import CloudantClient, Credential
from whisk_catalog.services.thumbnail import ThumbnailContext
from whisk_catalog.services.wsk import WskCli


# =============================================================================
# CONFIGURATION
# =============================================================================


@pytest.fixture(scope="session")
def settings() -> Settings:
    """Connection settings from environment / .env."""
    return get_settings()


@pytest.fixture(scope="session")
def suite_config() -> SuiteConfig:
    """Scenario constants from environment."""
    return get_config()


def _load_credential(settings: Settings, relative: str) -> Credential:
    path = settings.get_file_relative_to_whisk_home(relative)
    try:
        return Credential.from_property_file(path)
    except PropertyFileError as e:
        pytest.fail(
            f"{e.message}\n\n"
            f"Set WHISK_HOME to a checkout that contains {relative}, or point "
            f"THUMBNAIL_PROPERTIES / IMAGE_PROPERTIES at the property files."
        )


@pytest.fixture(scope="session")
def thumbnail_cred(settings: Settings) -> Credential:
    """Credential of the database that receives thumbnails."""
    return _load_credential(settings, settings.thumbnail_properties)


@pytest.fixture(scope="session")
def image_cred(settings: Settings) -> Credential:
    """Credential of the database that holds source images."""
    return _load_credential(settings, settings.image_properties)


# =============================================================================
# CLIENTS
# =============================================================================


@pytest.fixture(scope="session")
def wsk(settings: Settings) -> WskCli:
    """Platform CLI wrapper."""
    return WskCli(settings)


@pytest.fixture(scope="session")
def cloudant(settings: Settings) -> Generator[CloudantClient, None, None]:
    """Document store client."""
    with CloudantClient(settings) as client:
        yield client


# =============================================================================
# PLATFORM HEALTH (Session-scoped)
# =============================================================================


@pytest.fixture(scope="session")
def platform_health(
    settings: Settings,
    wsk: WskCli,
    cloudant: CloudantClient,
    thumbnail_cred: Credential,
    image_cred: Credential,
) -> PlatformHealthChecker:
    return PlatformHealthChecker(
        wsk,
        cloudant,
        {"thumbnail": thumbnail_cred, "image": image_cred},
        action_file=settings.get_file_relative_to_whisk_home(settings.thumbnail_action_file),
        settings=settings,
    )


@pytest.fixture(scope="session", autouse=True)
def verify_platform_healthy(
    platform_health: PlatformHealthChecker,
    settings: Settings,
):
    """
    Verify the platform answers before running any tests.

    This runs once at the start of the test session.
    """
    print("\n" + "=" * 60)
    print("THUMBNAIL CATALOG SYSTEM TESTS")
    print("=" * 60)
    print(f"  Whisk home: {settings.whisk_home}")
    print(f"  CLI: {settings.wsk_cli}")
    print("=" * 60)

    try:
        platform_health.wait_for_healthy(timeout=30)
        print("\n✅ Platform healthy, starting system tests...\n")
    except AssertionError as e:
        platform_health.print_status()
        pytest.fail(str(e))


# =============================================================================
# DATABASES (Class-scoped)
# =============================================================================


@pytest.fixture(scope="class")
def databases(
    cloudant: CloudantClient,
    thumbnail_cred: Credential,
    image_cred: Credential,
) -> Generator[DatabaseLifecycle, None, None]:
    """
    Create the thumbnail and image databases once per test class.

    A failed creation fails every test of the class; teardown always
    drops both databases afterwards.
    """
    lifecycle = DatabaseLifecycle(
        cloudant,
        {"thumbnail": thumbnail_cred, "image": image_cred},
    )
    try:
        lifecycle.setup_databases()
    except HarnessError as e:
        pytest.fail(f"Database setup failed: {e.message}")

    yield lifecycle

    failed = lifecycle.teardown_databases()
    if failed:
        print(f"\n  Note: could not drop database(s): {', '.join(failed)}")


# =============================================================================
# SCENARIO CONTEXT
# =============================================================================


@pytest.fixture
def thumbnail_context(
    settings: Settings,
    suite_config: SuiteConfig,
    wsk: WskCli,
    cloudant: CloudantClient,
    thumbnail_cred: Credential,
    image_cred: Credential,
) -> ThumbnailContext:
    """Everything a thumbnail scenario needs, passed explicitly."""
    return ThumbnailContext(
        settings=settings,
        wsk=wsk,
        cloudant=cloudant,
        thumbnail_cred=thumbnail_cred,
        image_cred=image_cred,
        cloudant_package=suite_config.cloudant_package,
        cloudant_feed=suite_config.cloudant_feed,
    )


@pytest.fixture
def log_watcher(
    settings: Settings,
    suite_config: SuiteConfig,
    wsk: WskCli,
) -> ActivationLogWatcher:
    """Poll activation logs for the action's markers."""
    return ActivationLogWatcher(
        wsk,
        timeout=settings.activation_log_wait,
        failure_patterns=suite_config.failure_patterns,
    )


@pytest.fixture
def report_marker_miss(
    request: pytest.FixtureRequest,
    suite_config: SuiteConfig,
    log_watcher: ActivationLogWatcher,
) -> Callable[..., Path | None]:
    """
    Write a failure report for a marker that never appeared.

    Usage:
        search = log_watcher.wait_for_activation(aid, "Thumbnail complete")
        if not search.found:
            path = report_marker_miss(search, failure="Missing keyword", action=name)
            pytest.fail(f"Missing keyword ... (report: {path})")
    """
    test_start = datetime.now(UTC)

    def _report(
        search: MarkerSearch, failure: str | None = None, **invocation
    ) -> Path | None:
        for line in search.logs:
            print(f"LOG: {line}")

        if not suite_config.write_reports:
            return None

        report = ActivationFailureReport(
            test_id=request.node.nodeid,
            test_name=request.node.name,
            test_start=test_start,
            test_end=datetime.now(UTC),
            target=search.target,
            marker=search.marker,
            waited_seconds=search.waited_seconds,
            logs=search.logs,
            failure_lines=log_watcher.failure_lines(search.logs),
            assertion_error=failure,
            **invocation,
        )
        return report.save(suite_config.report_dir)

    return _report


# =============================================================================
# PYTEST HOOKS
# =============================================================================


def pytest_configure(config):
    """Configure logging and register markers."""
    setup_logging()
    config.addinivalue_line(
        "markers",
        "workflow: End-to-end scenario against the live platform",
    )
    config.addinivalue_line(
        "markers",
        "smoke: Quick sanity check of the platform and document store",
    )
    config.addinivalue_line(
        "markers",
        "slow: Test that takes more than 10 seconds",
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        if "/smoke/" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)

        if "/workflows/" in str(item.fspath):
            item.add_marker(pytest.mark.workflow)
