"""Tests for the shared invoke-and-verify step of the thumbnail scenarios."""

from __future__ import annotations

from datetime import datetime, UTC
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from system_tests.config import SuiteConfig
from system_tests.fixtures.activation_logs import MarkerSearch
from system_tests.fixtures.thumbnail_check import verify_thumbnail
from whisk_catalog.core.exceptions import InvocationError
from whisk_catalog.services.images import ImageDecodeResult
from whisk_catalog.services.thumbnail import ThumbnailCheck, ThumbnailInvocation


AID = "0123456789abcdef0123456789abcdef"
SOURCE = Path("VeilNebula.png")


def _search(line: str | None, logs: list[str] | None = None) -> MarkerSearch:
    now = datetime.now(UTC)
    return MarkerSearch(
        target=AID,
        marker="Thumbnail complete",
        line=line,
        started=now,
        finished=now,
        logs=logs or [],
    )


def _check(source=(200, 100), thumbnail=(50, 25), thumbnail_error=None) -> ThumbnailCheck:
    thumb = (
        ImageDecodeResult(path=Path("t.png"), ok=False, error=thumbnail_error)
        if thumbnail_error
        else ImageDecodeResult(path=Path("t.png"), ok=True, width=thumbnail[0], height=thumbnail[1])
    )
    return ThumbnailCheck(
        source=ImageDecodeResult(path=SOURCE, ok=True, width=source[0], height=source[1]),
        thumbnail=thumb,
    )


@pytest.fixture
def ctx():
    mock = MagicMock()
    mock.write_image_to_database.return_value = "img1"
    mock.invoke_thumbnail.return_value = ThumbnailInvocation(
        activation_id=AID, result_doc_id="thumb1", result={"result": {"id": "thumb1"}}
    )
    mock.invocation_params.return_value = {
        "thumbnailCred": "{}", "imageCred": "{}", "imageDocId": "img1",
    }
    mock.compare.return_value = _check()
    return mock


@pytest.fixture
def watcher():
    mock = MagicMock()
    mock.wait_for_activation.return_value = _search("Thumbnail complete")
    return mock


@pytest.fixture
def report():
    return MagicMock(return_value=Path("report.json"))


def _run(ctx, watcher, report):
    verify_thumbnail(ctx, watcher, report, SuiteConfig(), "thumb", SOURCE)


class TestVerifyThumbnail:
    def test_smaller_thumbnail_passes(self, ctx, watcher, report):
        _run(ctx, watcher, report)

        ctx.invoke_thumbnail.assert_called_once_with("thumb", "img1")
        doc_id, out_file = ctx.fetch_thumbnail.call_args.args
        assert doc_id == "thumb1"
        assert out_file.name == "thumbnail-VeilNebula.png.png"
        report.assert_not_called()

    def test_missing_marker_reports_and_fails(self, ctx, watcher, report):
        watcher.wait_for_activation.return_value = _search(None, logs=["Error: no image"])

        with pytest.raises(pytest.fail.Exception, match="Missing keyword Thumbnail complete"):
            _run(ctx, watcher, report)

        kwargs = report.call_args.kwargs
        assert kwargs["failure"].startswith("Missing keyword Thumbnail complete")
        assert kwargs["activation_id"] == AID
        assert kwargs["param_names"] == ["imageCred", "imageDocId", "thumbnailCred"]
        ctx.fetch_thumbnail.assert_not_called()

    def test_undecodable_thumbnail_fails_explicitly(self, ctx, watcher, report):
        ctx.compare.return_value = _check(thumbnail_error="cannot identify image file")

        with pytest.raises(
            pytest.fail.Exception,
            match="Failed to read in original or thumbnail image: cannot identify image file",
        ):
            _run(ctx, watcher, report)

    def test_thumbnail_not_smaller(self, ctx, watcher, report):
        ctx.compare.return_value = _check(thumbnail=(50, 100))

        with pytest.raises(AssertionError, match="Thumbnail not smaller: 200 X 100  ->  50 X 100"):
            _run(ctx, watcher, report)

    def test_zero_dimensions_rejected(self, ctx, watcher, report):
        ctx.compare.return_value = _check(thumbnail=(0, 0))

        with pytest.raises(AssertionError, match="Illegal dimensions"):
            _run(ctx, watcher, report)

    def test_invocation_error_fails(self, ctx, watcher, report):
        ctx.invoke_thumbnail.side_effect = InvocationError(message="Invocation result has no result.id")

        with pytest.raises(pytest.fail.Exception, match="no result.id"):
            _run(ctx, watcher, report)

        watcher.wait_for_activation.assert_not_called()
