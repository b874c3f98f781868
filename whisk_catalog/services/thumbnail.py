"""
Thumbnail action collaborators.

ThumbnailContext carries everything a scenario needs (settings, CLI,
document store client and both credentials) so tests pass it around
explicitly instead of reaching for module globals.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from whisk_catalog.core.config import Settings
from whisk_catalog.core.exceptions import (
    DocumentStoreError,
    InvocationError,
    TriggerRegistrationError,
)
from whisk_catalog.core.logging import activation_id_var, get_logger
from whisk_catalog.services.cloudant import CloudantClient, Credential
from whisk_catalog.services.images import (
    ImageDecodeResult,
    create_image_doc,
    read_dimensions,
    write_file_base64,
)
from whisk_catalog.services.wsk import SUCCESS_EXIT, Item, WskCli


logger = get_logger("services.thumbnail")

CLOUDANT_PACKAGE = "/whisk.system/cloudant"
CLOUDANT_FEED = "changes"


@dataclass
class ThumbnailInvocation:
    """A finished blocking invocation of the thumbnail action."""

    activation_id: str
    result_doc_id: str
    result: dict[str, Any]


@dataclass
class ThumbnailCheck:
    """Source and generated image sizes."""

    source: ImageDecodeResult
    thumbnail: ImageDecodeResult

    @property
    def decoded(self) -> bool:
        return self.source.ok and self.thumbnail.ok

    @property
    def dimensions_valid(self) -> bool:
        return self.source.has_positive_dimensions and self.thumbnail.has_positive_dimensions

    @property
    def is_smaller(self) -> bool:
        return (
            self.decoded
            and self.thumbnail.width < self.source.width
            and self.thumbnail.height < self.source.height
        )

    def describe(self) -> str:
        return (
            f"{self.source.width} X {self.source.height}  ->  "
            f"{self.thumbnail.width} X {self.thumbnail.height}"
        )


def extract_result_doc_id(result_json: str) -> str:
    """Pull ``result.id`` out of a blocking invocation result."""
    try:
        response = json.loads(result_json)
    except ValueError as exc:
        raise InvocationError(message="Invocation result is not JSON") from exc

    result = response.get("result") if isinstance(response, dict) else None
    doc_id = result.get("id") if isinstance(result, dict) else None
    if not isinstance(doc_id, str) or not doc_id:
        raise InvocationError(
            message="Invocation result has no result.id",
            details={"result": response},
        )
    return doc_id


@dataclass
class ThumbnailContext:
    """Explicit configuration for the thumbnail scenarios."""

    settings: Settings
    wsk: WskCli
    cloudant: CloudantClient
    thumbnail_cred: Credential
    image_cred: Credential
    cloudant_package: str = CLOUDANT_PACKAGE
    cloudant_feed: str = CLOUDANT_FEED
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @property
    def action_file(self) -> Path:
        return self.settings.get_file_relative_to_whisk_home(
            self.settings.thumbnail_action_file
        )

    # -- documents ----------------------------------------------------------

    def write_image_to_database(self, path: str | Path) -> str:
        """Store ``path`` base64-encoded in the image database; return its id."""
        start = time.monotonic()
        response = self.cloudant.create_document(self.image_cred, create_image_doc(path))
        if "id" not in response:
            raise DocumentStoreError(
                message="Failed to create document.",
                details={"response": response},
            )
        image_id = response["id"]
        logger.info(
            "Image of size %d written in %.3f seconds.  docId = %s",
            Path(path).stat().st_size,
            time.monotonic() - start,
            image_id,
        )
        return image_id

    def fetch_thumbnail(self, doc_id: str, out_path: str | Path) -> Path:
        """Write the decoded ``thumbnail`` field of ``doc_id`` to ``out_path``."""
        document = self.cloudant.get_document(self.thumbnail_cred, doc_id)
        encoded = document.get("thumbnail")
        if not isinstance(encoded, str):
            raise DocumentStoreError(
                message=f"Thumbnail document {doc_id} has no thumbnail field",
                details={"keys": sorted(document)},
            )
        return write_file_base64(out_path, encoded)

    # -- platform -----------------------------------------------------------

    def register_trigger_with_package(
        self,
        credential: Credential,
        package: str,
        trigger: str,
        include_doc: bool,
    ) -> str:
        """
        Bind the cloudant package and create a change-feed trigger on it.

        Blocks for ``trigger_settle_seconds`` afterwards; the feed is not
        reliably armed before that.
        """
        self.wsk.sanitize(Item.PACKAGE, package)

        instance_params = {
            "host": credential.host,
            "username": credential.user,
            "password": credential.password,
            "includeDoc": "true" if include_doc else "false",
        }
        self.wsk.bind_package(SUCCESS_EXIT, self.cloudant_package, package, instance_params)

        result = self.wsk.create_trigger(
            trigger,
            feed=f"{package}/{self.cloudant_feed}",
            params={"dbname": credential.dbname},
            expected_exit=None,
        )
        if "ok" not in result.stdout:
            raise TriggerRegistrationError(
                message=f"could not create trigger {trigger} and invoke feed",
                details={
                    "exit_code": result.exit_code,
                    "stdout": result.stdout[-2000:],
                    "stderr": result.stderr[-2000:],
                },
            )
        logger.info("Invoked feed to create trigger and got: %s", result.stdout.strip())

        logger.info("Sleeping %s seconds...", self.settings.trigger_settle_seconds)
        self.sleep(self.settings.trigger_settle_seconds)
        return result.stdout

    def invocation_params(self, image_doc_id: str) -> dict[str, str]:
        return {
            "thumbnailCred": self.thumbnail_cred.serialize(),
            "imageCred": self.image_cred.serialize(),
            "imageDocId": image_doc_id,
        }

    def flattened_params(self) -> dict[str, str]:
        """Credentials as flat keys; bound parameters cannot nest objects."""
        return {
            "imageUser": self.image_cred.user,
            "imagePassword": self.image_cred.password,
            "imageDbname": self.image_cred.dbname,
            "thumbnailUser": self.thumbnail_cred.user,
            "thumbnailPassword": self.thumbnail_cred.password,
            "thumbnailDbname": self.thumbnail_cred.dbname,
        }

    def invoke_thumbnail(self, action: str, image_doc_id: str) -> ThumbnailInvocation:
        activation_id, result_json = self.wsk.invoke_blocking(
            action, self.invocation_params(image_doc_id)
        )
        activation_id_var.set(activation_id)
        logger.info("Id:     %s", activation_id)
        logger.info("Result: %s", result_json)
        doc_id = extract_result_doc_id(result_json)
        logger.info("Doc Id: %s", doc_id)
        return ThumbnailInvocation(
            activation_id=activation_id,
            result_doc_id=doc_id,
            result=json.loads(result_json),
        )

    # -- images -------------------------------------------------------------

    @staticmethod
    def compare(source: str | Path, thumbnail: str | Path) -> ThumbnailCheck:
        check = ThumbnailCheck(
            source=read_dimensions(source),
            thumbnail=read_dimensions(thumbnail),
        )
        if check.decoded:
            logger.info("Size check:  %s", check.describe())
        return check
