"""
System test reporters package.
"""

from system_tests.reporters.activation_report import ActivationFailureReport
from system_tests.reporters.log_extractor import LogExtractor

__all__ = [
    "ActivationFailureReport",
    "LogExtractor",
]
