"""
Database Lifecycle - Create and drop the thumbnail and image databases.

One pair of databases backs a whole test class: the image database holds
source documents, the thumbnail database receives the action's output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from whisk_catalog.core.exceptions import DatabaseSetupError, DocumentStoreError
from whisk_catalog.core.logging import get_logger

if TYPE_CHECKING:
    from whisk_catalog.services.cloudant import CloudantClient, Credential


logger = get_logger("system_tests.databases")


@dataclass
class DatabaseLifecycle:
    """
    Set up and tear down a named set of databases.

    Usage:
        lifecycle = DatabaseLifecycle(cloudant, {"thumbnail": t, "image": i})
        lifecycle.setup_databases()
        try:
            ...
        finally:
            lifecycle.teardown_databases()
    """

    cloudant: "CloudantClient"
    credentials: dict[str, "Credential"]
    created: list[str] = field(default_factory=list)

    def setup_databases(self) -> None:
        """
        Create every database. Not idempotent: an existing database fails.

        If one creation fails, the databases already created are dropped
        again before the error propagates.
        """
        for name, credential in self.credentials.items():
            try:
                self.cloudant.set_up(credential)
            except DocumentStoreError as e:
                logger.error("Setup of %s database failed: %s", name, e.message)
                self.teardown_databases()
                raise DatabaseSetupError(
                    message=f"Could not set up {name} database {credential.dbname}: {e.message}",
                    details=e.details,
                ) from e
            self.created.append(name)

    def teardown_databases(self) -> list[str]:
        """Delete every created database. Returns names that failed."""
        failed = []
        for name in list(self.created):
            credential = self.credentials[name]
            try:
                self.cloudant.unset_up(credential)
            except DocumentStoreError as e:
                logger.warning("Teardown of %s database failed: %s", name, e.message)
                failed.append(name)
            self.created.remove(name)
        return failed

    def document(self, name: str, doc_id: str) -> dict[str, Any]:
        """Fetch ``doc_id`` from the database registered as ``name``."""
        return self.cloudant.get_document(self.credentials[name], doc_id)
