"""Tests for the crop workflow."""

import asyncio
import io
import zipfile

import numpy as np
import pytest

from tilecraft.config.settings import CropSettings, TilecraftConfig
from tilecraft.errors import InvalidLayout
from tilecraft.geometry.models import AspectRatio
from tilecraft.processing.models import ItemStatus
from tilecraft.workflows.crop import CropWorkflow, resolve_ratio

from tests.fixtures.image_fixtures import create_gradient


class TestResolveRatio:
    """Tests for resolve_ratio."""

    def test_preset(self):
        """Test preset labels resolve to the preset."""
        ratio = resolve_ratio("16:9")
        assert ratio.label == "16:9"
        assert ratio.ratio == pytest.approx(16 / 9)

    def test_custom(self):
        """Test ad-hoc ratios."""
        assert resolve_ratio("5:4").ratio == pytest.approx(1.25)
        assert resolve_ratio(2.0).ratio == 2.0

    def test_passthrough(self):
        """Test AspectRatio values are returned unchanged."""
        ratio = AspectRatio("x", 3.0)
        assert resolve_ratio(ratio) is ratio

    def test_invalid(self):
        """Test malformed ratios."""
        with pytest.raises(InvalidLayout):
            resolve_ratio("wide")


class TestCropWorkflow:
    """Tests for CropWorkflow processing."""

    @pytest.fixture
    def workflow(self):
        return CropWorkflow()

    def test_default_ratio(self, workflow):
        """Test the configured default ratio."""
        assert workflow.ratio.label == "1:1"
        assert CropWorkflow(TilecraftConfig(crop=CropSettings(default_ratio="4:3"))).ratio.label == "4:3"

    def test_new_items_have_zero_pan(self, workflow):
        """Test pan defaults."""
        item = workflow.add_image(create_gradient(200, 100), "photo.jpg")
        assert workflow.pan_of(item) == (0.0, 0.0)

    def test_process_all(self, workflow):
        """Test every image is cropped to the ratio."""
        workflow.add_image(create_gradient(200, 100), "a.png")
        workflow.add_image(create_gradient(90, 160), "b.png")

        report = asyncio.run(workflow.process_all())

        assert report.completed == 2
        shapes = [item.result_image.shape for item in workflow.items()]
        assert shapes == [(100, 100, 3), (90, 90, 3)]

    def test_completed_items_reprocessed(self, workflow):
        """Test each run recrops every item."""
        workflow.add_image(create_gradient(200, 100), "a.png")
        asyncio.run(workflow.process_all())

        report = asyncio.run(workflow.process_all())

        assert report.processed == 1
        assert report.skipped == 0

    def test_set_pan_resets_item(self, workflow):
        """Test a pan change sends the item back to PENDING."""
        item = workflow.add_image(create_gradient(200, 100), "a.png")
        asyncio.run(workflow.process_all())
        centered = workflow.get(item.id).result_image

        panned = workflow.set_pan(item.id, 20, 0)
        assert panned.status is ItemStatus.PENDING
        assert panned.result_image is None
        assert workflow.pan_of(panned) == (20.0, 0.0)

        asyncio.run(workflow.process_all())
        assert not np.array_equal(workflow.get(item.id).result_image, centered)

    def test_pan_moves_crop_right(self, workflow):
        """Test a positive pan samples further right in the source."""
        item = workflow.add_image(create_gradient(200, 100), "a.png")
        base = workflow.crop_rect(workflow.get(item.id))

        workflow.set_pan(item.id, 10, 0)
        moved = workflow.crop_rect(workflow.get(item.id))

        assert moved.sx > base.sx
        assert moved.sy == pytest.approx(base.sy)

    def test_set_pan_ignored_while_processing(self, workflow):
        """Test in-flight items keep their pan."""
        item = workflow.add_image(create_gradient(200, 100), "a.png")
        workflow.batch.update(item.id, status=ItemStatus.PROCESSING)

        workflow.set_pan(item.id, 30, 30)

        assert workflow.pan_of(workflow.get(item.id)) == (0.0, 0.0)

    def test_set_ratio_resets_all(self, workflow):
        """Test a ratio change resets status and pan of every item."""
        a = workflow.add_image(create_gradient(200, 100), "a.png")
        b = workflow.add_image(create_gradient(200, 100), "b.png")
        workflow.set_pan(a.id, 15, 5)
        asyncio.run(workflow.process_all())

        workflow.set_ratio("16:9")

        for item_id in (a.id, b.id):
            item = workflow.get(item_id)
            assert item.status is ItemStatus.PENDING
            assert item.result_image is None
            assert workflow.pan_of(item) == (0.0, 0.0)

        asyncio.run(workflow.process_all())
        assert workflow.get(a.id).result_image.shape == (100, 177, 3)

    def test_drag(self, workflow):
        """Test pointer drags convert to pan at 0.2% per pixel."""
        item = workflow.add_image(create_gradient(200, 100), "a.png")
        workflow.set_pan(item.id, 5, 5)

        assert workflow.begin_drag(item.id) == (5.0, 5.0)
        workflow.drag(item.id, 10, 10)
        workflow.drag(item.id, 50, -25)
        workflow.end_drag(item.id)

        assert workflow.pan_of(workflow.get(item.id)) == pytest.approx((15.0, 0.0))

    def test_drag_without_begin(self, workflow):
        """Test dragging starts from the current pan when begin_drag was skipped."""
        item = workflow.add_image(create_gradient(200, 100), "a.png")
        workflow.drag(item.id, 100, 0)
        assert workflow.pan_of(workflow.get(item.id)) == pytest.approx((20.0, 0.0))

    def test_begin_drag_while_processing(self, workflow):
        """Test items being processed cannot be dragged."""
        item = workflow.add_image(create_gradient(200, 100), "a.png")
        workflow.batch.update(item.id, status=ItemStatus.PROCESSING)
        assert workflow.begin_drag(item.id) is None

    def test_remove_and_clear_drop_drag_state(self, workflow):
        """Test removed items leave no drag origin behind."""
        a = workflow.add_image(create_gradient(200, 100), "a.png")
        b = workflow.add_image(create_gradient(200, 100), "b.png")
        workflow.begin_drag(a.id)
        workflow.begin_drag(b.id)

        assert workflow.remove(a.id)
        assert a.id not in workflow._drag_origin
        assert b.id in workflow._drag_origin

        workflow.clear()
        assert workflow._drag_origin == {}

    def test_preview(self, workflow):
        """Test previews do not change the item."""
        item = workflow.add_image(create_gradient(200, 100), "a.png")

        preview = workflow.preview(item.id)

        assert preview.shape == (100, 100, 3)
        assert workflow.get(item.id).status is ItemStatus.PENDING
        assert workflow.preview("missing") is None

    def test_export_names(self, workflow):
        """Test export names carry the ratio label."""
        workflow.add_image(create_gradient(200, 100), "holiday.jpg")
        workflow.add_image(create_gradient(200, 100), "holiday.jpg")
        workflow.set_ratio("16:9")
        asyncio.run(workflow.process_all())

        with zipfile.ZipFile(io.BytesIO(workflow.export_archive())) as zf:
            assert zf.namelist() == ["holiday_16x9.png", "holiday_16x9_2.png"]
