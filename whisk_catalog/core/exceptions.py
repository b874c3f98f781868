"""Harness exceptions with structured error details."""

from __future__ import annotations

from typing import Any


class HarnessError(Exception):
    """Base harness exception with a structured error payload."""

    error_code: str = "HARNESS_ERROR"
    message: str = "An unexpected harness error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


class ConfigurationError(HarnessError):
    """Harness is not configured for the target platform."""

    error_code = "CONFIGURATION_ERROR"
    message = "Harness configuration is incomplete"


class PropertyFileError(HarnessError):
    """Property file is missing or incomplete."""

    error_code = "PROPERTY_FILE_ERROR"
    message = "Could not load property file"


class ImageFileError(HarnessError):
    """Input image cannot be used."""

    error_code = "IMAGE_FILE_ERROR"
    message = "Image file is missing or empty"


class DocumentStoreError(HarnessError):
    """Document store request failed."""

    error_code = "DOCUMENT_STORE_ERROR"
    message = "Document store request failed"


class DatabaseSetupError(DocumentStoreError):
    """Database lifecycle operation failed."""

    error_code = "DATABASE_SETUP_ERROR"
    message = "Database lifecycle operation failed"


class CliError(HarnessError):
    """Platform CLI exited unexpectedly."""

    error_code = "CLI_ERROR"
    message = "Platform CLI command failed"


class InvocationError(HarnessError):
    """Blocking invocation output could not be interpreted."""

    error_code = "INVOCATION_ERROR"
    message = "Action invocation did not return the expected result"


class TriggerRegistrationError(HarnessError):
    """Feed trigger could not be created."""

    error_code = "TRIGGER_REGISTRATION_ERROR"
    message = "Could not create trigger and invoke feed"
