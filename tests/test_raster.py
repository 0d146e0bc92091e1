"""Tests for the rasterization stage."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from conftest import SlowSurface
from reportgen.config import mm_to_pt
from reportgen.exceptions import RasterizationError
from reportgen.pipeline.stage_normalize import normalize
from reportgen.pipeline.stage_raster import FITZ_LOCK, Rasterizer, RenderSurface, render_surface
from reportgen.pipeline.stage_template import render


class TrackingSurface(RenderSurface):
    """Surface that remembers every instance it creates."""

    instances: list = []

    def __init__(self, width_pt, max_height_pt):
        super().__init__(width_pt, max_height_pt)
        TrackingSurface.instances.append(self)


class ExplodingSurface(TrackingSurface):
    def capture(self, html, scale):
        raise MemoryError("out of memory")


class BlankSurface(TrackingSurface):
    def capture(self, html, scale):
        return b"x", 1, 1


@pytest.fixture(autouse=True)
def reset_surfaces():
    TrackingSurface.instances = []
    SlowSurface.reset()
    yield


class TestRenderSurface:
    def test_context_manager_closes(self):
        with render_surface(100.0, 100.0) as surface:
            assert not surface.closed
        assert surface.closed

    def test_closes_on_error(self):
        with pytest.raises(RuntimeError):
            with render_surface(100.0, 100.0) as surface:
                raise RuntimeError("boom")
        assert surface.closed

    def test_closed_surface_refuses_capture(self):
        surface = RenderSurface(100.0, 100.0)
        surface.close()
        with pytest.raises(RasterizationError):
            surface.capture("<p>x</p>", 2.0)

    def test_writer_closed_when_draw_fails(self):
        story = MagicMock()
        story.place.return_value = (False, (0.0, 0.0, 100.0, 40.0))
        story.draw.side_effect = RuntimeError("draw failed")
        writer = MagicMock()

        with patch("reportgen.pipeline.stage_raster.fitz.Story", return_value=story), patch(
            "reportgen.pipeline.stage_raster.fitz.DocumentWriter", return_value=writer
        ):
            with pytest.raises(RasterizationError):
                Rasterizer(scale=2.0).rasterize_sync("<p>x</p>")

        writer.close.assert_called_once()


class TestRasterizer:
    """Tests for Rasterizer."""

    def test_scale_must_be_at_least_two(self):
        with pytest.raises(ValueError):
            Rasterizer(scale=1.5)

    def test_captures_html(self):
        rasterizer = Rasterizer(scale=2.0, page_width_mm=210.0, max_height_mm=500.0)
        image = rasterizer.rasterize_sync("<html><body><p>Hello</p></body></html>")

        assert image.png_bytes.startswith(b"\x89PNG")
        assert image.width_pixels == pytest.approx(2 * mm_to_pt(210.0), abs=1)
        assert image.height_pixels > 0
        assert image.scale == 2.0

    async def test_captures_document(self, sample_record):
        rasterizer = Rasterizer(scale=2.0, page_width_mm=210.0, max_height_mm=5000.0)
        image = await rasterizer.rasterize(render(normalize(sample_record)))

        # A full service report is taller than one A4 page
        assert image.scaled_height_mm > 297.0

    def test_overflowing_surface_raises(self):
        rasterizer = Rasterizer(scale=2.0, max_height_mm=10.0)
        with pytest.raises(RasterizationError):
            rasterizer.rasterize_sync("<p>line</p>" * 200)

    def test_failures_are_wrapped(self):
        rasterizer = Rasterizer(scale=2.0)
        with patch("reportgen.pipeline.stage_raster.fitz.Story", side_effect=RuntimeError("boom")):
            with pytest.raises(RasterizationError) as exc_info:
                rasterizer.rasterize_sync("<p>x</p>")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_surface_released_on_failure(self):
        rasterizer = Rasterizer(scale=2.0, surface_class=ExplodingSurface)
        with pytest.raises(RasterizationError):
            rasterizer.rasterize_sync("<p>x</p>")

        assert len(TrackingSurface.instances) == 1
        assert TrackingSurface.instances[0].closed

    def test_surface_released_on_success(self):
        rasterizer = Rasterizer(scale=2.0, surface_class=TrackingSurface)
        rasterizer.rasterize_sync("<p>x</p>")
        assert TrackingSurface.instances[0].closed

    def test_tiny_png_is_rejected(self):
        rasterizer = Rasterizer(scale=2.0, surface_class=BlankSurface)
        with pytest.raises(RasterizationError):
            rasterizer.rasterize_sync("<p>x</p>")

    def test_none_source_raises(self):
        with pytest.raises(TypeError):
            Rasterizer(scale=2.0).rasterize_sync(None)

    def test_height_follows_content(self):
        rasterizer = Rasterizer(scale=2.0, page_width_mm=210.0, max_height_mm=2000.0)
        short = rasterizer.rasterize_sync("<p>line</p>")
        tall = rasterizer.rasterize_sync("<p>line</p>" * 60)

        assert short.height_pixels < tall.height_pixels
        assert tall.height_pixels < 2 * mm_to_pt(2000.0)

    def test_capture_holds_fitz_lock(self):
        held = []

        class LockCheckingSurface(RenderSurface):
            def capture(self, html, scale):
                held.append(FITZ_LOCK.locked())
                return super().capture(html, scale)

        Rasterizer(scale=2.0, surface_class=LockCheckingSurface).rasterize_sync("<p>x</p>")
        assert held == [True]
        assert not FITZ_LOCK.locked()

    async def test_captures_never_overlap_across_rasterizers(self):
        first = Rasterizer(scale=2.0, surface_class=SlowSurface)
        second = Rasterizer(scale=2.0, surface_class=SlowSurface)

        images = await asyncio.gather(
            first.rasterize("<p>first</p>"), second.rasterize("<p>second</p>")
        )

        assert all(image.png_bytes.startswith(b"\x89PNG") for image in images)
        assert SlowSurface.peak == 1
