"""
Thumbnail Check - Invoke the action on one image and verify the result.

Shared by the direct and package scenarios: write the source image,
invoke blockingly, wait for the completion marker, then fetch the
thumbnail document and compare image sizes.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import pytest

from whisk_catalog.core.exceptions import HarnessError

if TYPE_CHECKING:
    from system_tests.config import SuiteConfig
    from system_tests.fixtures.activation_logs import ActivationLogWatcher, MarkerSearch
    from whisk_catalog.services.thumbnail import ThumbnailContext


def verify_thumbnail(
    ctx: "ThumbnailContext",
    log_watcher: "ActivationLogWatcher",
    report_marker_miss: Callable[..., Path | None],
    suite_config: "SuiteConfig",
    action: str,
    in_file: Path,
) -> None:
    """Invoke ``action`` on ``in_file`` and check the thumbnail it produced."""
    try:
        image_id = ctx.write_image_to_database(in_file)
        invocation = ctx.invoke_thumbnail(action, image_id)
    except HarnessError as e:
        pytest.fail(f"{e.message} {e.details or ''}")

    expected = suite_config.thumbnail_marker
    search: "MarkerSearch" = log_watcher.wait_for_activation(invocation.activation_id, expected)
    if not search.found:
        failure = f"Missing keyword {expected} in activation {invocation.activation_id}"
        path = report_marker_miss(
            search,
            failure=failure,
            action=action,
            activation_id=invocation.activation_id,
            param_names=sorted(ctx.invocation_params(image_id)),
            result=invocation.result,
        )
        pytest.fail(f"{failure} (report: {path})")
    print(f"Found {expected} in activation {invocation.activation_id}")
    print(f"Log: {search.line}\n")

    with tempfile.TemporaryDirectory() as tmp:
        out_file = Path(tmp) / f"thumbnail-{in_file.name}.png"
        try:
            ctx.fetch_thumbnail(invocation.result_doc_id, out_file)
        except HarnessError as e:
            pytest.fail(e.message)

        check = ctx.compare(in_file, out_file)

    if not check.decoded:
        pytest.fail(
            "Failed to read in original or thumbnail image: "
            f"{check.source.error or check.thumbnail.error}"
        )
    print(f"Size check:  {check.describe()}")
    assert check.dimensions_valid, f"Illegal dimensions: {check.describe()}"
    assert check.is_smaller, f"Thumbnail not smaller: {check.describe()}"
