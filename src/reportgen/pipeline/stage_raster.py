"""Raster Stage - Capture a rendered document as one full-height bitmap.

Layout and capture both go through PyMuPDF:
1. fitz.Story lays the HTML out at the paper width on a tall off-screen surface
2. the placed story is drawn onto a single page cut to the filled height
3. the page is captured with get_pixmap at the oversampling factor

The surface (story, in-memory PDF buffer, intermediate document) is a scoped
resource: it is released when the capture ends, whether or not it succeeded.
"""

import asyncio
import io
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Union

import fitz  # PyMuPDF

from reportgen.config import mm_to_pt, settings
from reportgen.exceptions import RasterizationError
from reportgen.models import RasterImage, RenderedDocument
from reportgen.pipeline.stage_html import to_html

logger = logging.getLogger(__name__)

# A valid PNG of any visible content is larger than this
MIN_PNG_BYTES = 100

# PyMuPDF is not thread-safe: every fitz call made off the event loop holds this
FITZ_LOCK = threading.Lock()


class RenderSurface:
    """Off-screen layout surface of fixed width.

    One surface serves one capture. ``close`` is idempotent.
    """

    def __init__(self, width_pt: float, max_height_pt: float):
        self.width_pt = width_pt
        self.max_height_pt = max_height_pt
        self.closed = False
        self._buffer = io.BytesIO()
        self._doc: Optional[fitz.Document] = None

    def capture(self, html: str, scale: float) -> tuple[bytes, int, int]:
        """Lay out and capture HTML.

        Returns:
            Tuple of (png_bytes, width_pixels, height_pixels)
        """
        if self.closed:
            raise RasterizationError("Render surface already released")

        story = fitz.Story(html=html)
        more, filled = story.place(fitz.Rect(0, 0, self.width_pt, self.max_height_pt))
        if more:
            raise RasterizationError(
                "Document is taller than the render surface",
                {"max_height_pt": self.max_height_pt},
            )

        # Cut the page to the content, keeping the full paper width
        height_pt = max(fitz.Rect(filled).y1, 1.0)
        writer = fitz.DocumentWriter(self._buffer)
        try:
            device = writer.begin_page(fitz.Rect(0, 0, self.width_pt, height_pt))
            story.draw(device)
            writer.end_page()
        finally:
            writer.close()

        self._doc = fitz.open(stream=self._buffer.getvalue(), filetype="pdf")
        pixmap = self._doc[0].get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        return pixmap.tobytes("png"), pixmap.width, pixmap.height

    def close(self) -> None:
        if self._doc is not None:
            self._doc.close()
            self._doc = None
        self._buffer.close()
        self.closed = True


@contextmanager
def render_surface(
    width_pt: float,
    max_height_pt: float,
    surface_class: type[RenderSurface] = RenderSurface,
) -> Iterator[RenderSurface]:
    """Acquire a render surface and always release it."""
    surface = surface_class(width_pt, max_height_pt)
    try:
        yield surface
    finally:
        surface.close()


class Rasterizer:
    """Captures rendered documents at a fixed width and oversampling factor.

    Does not retry: every failure is raised as RasterizationError for the
    caller to route to the printable fallback.
    """

    def __init__(
        self,
        scale: float = None,
        page_width_mm: float = None,
        max_height_mm: float = None,
        surface_class: type[RenderSurface] = RenderSurface,
    ):
        """Initialize rasterizer.

        Args:
            scale: Oversampling factor (default from settings, at least 2)
            page_width_mm: Logical layout width (default from settings)
            max_height_mm: Height of the layout surface (default from settings)
            surface_class: Surface implementation, replaceable in tests
        """
        self.scale = scale or settings.raster_scale
        if self.scale < 2:
            raise ValueError(f"Oversampling factor must be at least 2, got {self.scale}")
        self.page_width_mm = page_width_mm or settings.page_width_mm
        self.max_height_mm = max_height_mm or settings.surface_max_height_mm
        self.surface_class = surface_class

    def rasterize_sync(self, source: Union[RenderedDocument, str]) -> RasterImage:
        """Capture a document or pre-rendered HTML, blocking."""
        if source is None:
            raise TypeError("source must not be None")
        html = source if isinstance(source, str) else to_html(source)

        try:
            with FITZ_LOCK, render_surface(
                mm_to_pt(self.page_width_mm),
                mm_to_pt(self.max_height_mm),
                self.surface_class,
            ) as surface:
                png_bytes, width, height = surface.capture(html, self.scale)
        except RasterizationError:
            raise
        except Exception as exc:
            raise RasterizationError(
                f"Failed to rasterize document: {exc}", {"error": type(exc).__name__}
            ) from exc

        if len(png_bytes) < MIN_PNG_BYTES or width <= 0 or height <= 0:
            raise RasterizationError(
                "Rasterizer produced an empty image",
                {"png_bytes": len(png_bytes), "width": width, "height": height},
            )

        logger.debug("Rasterized %dx%d px (%d bytes)", width, height, len(png_bytes))
        return RasterImage(
            png_bytes=png_bytes,
            width_pixels=width,
            height_pixels=height,
            scale=self.scale,
            page_width_mm=self.page_width_mm,
        )

    async def rasterize(self, source: Union[RenderedDocument, str]) -> RasterImage:
        """Capture a document without blocking the event loop."""
        return await asyncio.to_thread(self.rasterize_sync, source)
