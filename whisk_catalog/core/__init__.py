"""Core infrastructure: settings, logging, exceptions, property files."""

from .config import Settings, get_settings
from .exceptions import (
    CliError,
    ConfigurationError,
    DatabaseSetupError,
    DocumentStoreError,
    HarnessError,
    ImageFileError,
    InvocationError,
    PropertyFileError,
    TriggerRegistrationError,
)
from .logging import get_logger, setup_logging
from .properties import load_properties, parse_properties

__all__ = [
    "Settings",
    "get_settings",
    "CliError",
    "ConfigurationError",
    "DatabaseSetupError",
    "DocumentStoreError",
    "HarnessError",
    "ImageFileError",
    "InvocationError",
    "PropertyFileError",
    "TriggerRegistrationError",
    "get_logger",
    "setup_logging",
    "load_properties",
    "parse_properties",
]
