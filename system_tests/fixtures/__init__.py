"""
System test fixtures package.
"""

from system_tests.fixtures.activation_logs import ActivationLogWatcher, MarkerSearch
from system_tests.fixtures.databases import DatabaseLifecycle
from system_tests.fixtures.platform_health import PlatformHealthChecker
from system_tests.fixtures.thumbnail_check import verify_thumbnail

__all__ = [
    "ActivationLogWatcher",
    "MarkerSearch",
    "DatabaseLifecycle",
    "PlatformHealthChecker",
    "verify_thumbnail",
]
