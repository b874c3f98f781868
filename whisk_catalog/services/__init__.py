"""Clients for the platform CLI, the document store and image files."""

from whisk_catalog.services.cloudant import CloudantClient, Credential
from whisk_catalog.services.images import ImageDecodeResult, read_dimensions
from whisk_catalog.services.resources import Resource, provisioned, unique_suffix
from whisk_catalog.services.thumbnail import ThumbnailCheck, ThumbnailContext
from whisk_catalog.services.wsk import Item, RunResult, WskCli

__all__ = [
    "CloudantClient",
    "Credential",
    "ImageDecodeResult",
    "read_dimensions",
    "Resource",
    "provisioned",
    "unique_suffix",
    "ThumbnailCheck",
    "ThumbnailContext",
    "Item",
    "RunResult",
    "WskCli",
]
