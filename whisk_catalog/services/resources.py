"""Unique resource names and scoped platform resources."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from whisk_catalog.core.logging import get_logger
from whisk_catalog.services.wsk import Item, WskCli


logger = get_logger("services.resources")


def unique_suffix(now_ms: int | None = None) -> int:
    """Current epoch milliseconds mod 1000."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return now_ms % 1000


@dataclass(frozen=True)
class Resource:
    """A named platform entity."""

    item: Item
    name: str


@contextmanager
def provisioned(wsk: WskCli, *resources: Resource) -> Iterator[tuple[Resource, ...]]:
    """
    Sanitize ``resources`` on entry and again on every exit path.

    Cleanup runs in the order given, so list dependents first
    (rule before action before trigger before package).
    """
    for resource in resources:
        wsk.sanitize(resource.item, resource.name)
    try:
        yield resources
    finally:
        for resource in resources:
            wsk.sanitize(resource.item, resource.name)
        logger.debug("Released %d resource(s)", len(resources))


@dataclass(frozen=True)
class CloudantScenarioNames:
    """Names used by one trigger-driven run."""

    suffix: int

    @property
    def trigger(self) -> str:
        return f"thumbnail_cloudant_trigger{self.suffix}"

    @property
    def action(self) -> str:
        return f"thumbnail_cloudant_action{self.suffix}"

    @property
    def rule(self) -> str:
        return f"thumbnail_cloudant_rule{self.suffix}"

    @property
    def package(self) -> str:
        return f"thumbnail_cloudant{self.suffix}"

    def resources(self) -> tuple[Resource, ...]:
        """Teardown order: rule, action, trigger, package."""
        return (
            Resource(Item.RULE, self.rule),
            Resource(Item.ACTION, self.action),
            Resource(Item.TRIGGER, self.trigger),
            Resource(Item.PACKAGE, self.package),
        )
