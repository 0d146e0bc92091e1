"""Paginate Stage - Slice a full-height raster into pages and assemble a PDF.

The raster is fitted to the page width, then cut into bands of
``slice_height_mm``. One band is placed at the top of each page.

Page count follows the remaining-height loop of the paper-form exporter:
the first page is always emitted, then a page is added while the remaining
height is ``>= 0``. An image whose fitted height is an exact multiple ``k``
of the band height therefore yields ``k + 1`` pages, the last one blank,
unless ``drop_trailing_blank_page`` is set.
"""

import io
import logging
import math
import re
from datetime import date
from typing import Callable, Optional

import fitz  # PyMuPDF
from PIL import Image

from reportgen.config import mm_to_pt, settings
from reportgen.exceptions import AssemblyError
from reportgen.models import PageSlice, PaginatedArtifact, RasterImage, ReportKind
from reportgen.pipeline.stage_raster import FITZ_LOCK

logger = logging.getLogger(__name__)

UNSAFE_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|\s]+')


def plan_pages(
    scaled_height_mm: float,
    slice_height_mm: float,
    drop_trailing_blank_page: bool = False,
) -> list[PageSlice]:
    """Compute the page bands for an image of the given fitted height.

    Raises:
        AssemblyError: if either height is not positive
    """
    if scaled_height_mm <= 0 or slice_height_mm <= 0:
        raise AssemblyError(
            "Cannot paginate an image without height",
            {"scaled_height_mm": scaled_height_mm, "slice_height_mm": slice_height_mm},
        )

    pages = [PageSlice(index=0, offset_mm=0.0, height_mm=slice_height_mm)]
    height_left = scaled_height_mm - slice_height_mm
    while height_left >= 0:
        if drop_trailing_blank_page and math.isclose(height_left, 0.0, abs_tol=1e-6):
            break
        pages.append(
            PageSlice(
                index=len(pages),
                offset_mm=len(pages) * slice_height_mm,
                height_mm=slice_height_mm,
            )
        )
        height_left -= slice_height_mm
    return pages


def sanitize_identifier(identifier: str) -> str:
    """Replace characters that are unsafe in file names with '-'."""
    cleaned = UNSAFE_FILENAME_CHARS.sub("-", str(identifier).strip()).strip("-")
    return cleaned or "Unknown"


def build_filename(
    kind: ReportKind,
    identifier: str,
    today: Optional[date] = None,
    prefix: str = None,
) -> str:
    """Deterministic artifact name from the report identifier and date.

    Examples:
        ASCOMP_Report_ASCOMP-12345_2024-03-01.pdf
        ASCOMP_Site_Report_PVR-DEL-01_2024-03-01.pdf
    """
    prefix = prefix or settings.filename_prefix
    today = today or date.today()
    label = "Site_Report" if kind == ReportKind.SITE else "Report"
    return f"{prefix}_{label}_{sanitize_identifier(identifier)}_{today.isoformat()}.pdf"


def _band_png(source: Image.Image, top_px: int, band_px: int) -> bytes:
    """Cut one band, padding with white below the end of the image."""
    band = Image.new("RGB", (source.width, band_px), "white")
    bottom = min(top_px + band_px, source.height)
    if top_px < bottom:
        band.paste(source.crop((0, top_px, source.width, bottom)), (0, 0))
    buffer = io.BytesIO()
    band.save(buffer, format="PNG")
    return buffer.getvalue()


class Paginator:
    """Slices rasters into fixed-size pages."""

    def __init__(
        self,
        slice_height_mm: float = None,
        drop_trailing_blank_page: bool = None,
        today: Callable[[], date] = date.today,
    ):
        self.slice_height_mm = slice_height_mm or settings.slice_height_mm
        if drop_trailing_blank_page is None:
            drop_trailing_blank_page = settings.drop_trailing_blank_page
        self.drop_trailing_blank_page = drop_trailing_blank_page
        self.today = today

    def paginate(
        self,
        image: RasterImage,
        page_width_mm: float = None,
        page_height_mm: float = None,
        kind: ReportKind = ReportKind.SERVICE,
        identifier: str = "Unknown",
    ) -> PaginatedArtifact:
        """Assemble a multi-page PDF from a full-height raster.

        Args:
            image: Full-height raster of the document
            page_width_mm: Paper width (default from settings)
            page_height_mm: Paper height (default from settings)
            kind: Report kind, selects the filename pattern
            identifier: Report number or site code for the filename

        Returns:
            PaginatedArtifact with PDF bytes and page bands

        Raises:
            AssemblyError: on a zero-size image or any slicing/encoding failure
        """
        page_width_mm = page_width_mm or settings.page_width_mm
        page_height_mm = page_height_mm or settings.page_height_mm

        if image is None or image.width_pixels <= 0 or image.height_pixels <= 0:
            raise AssemblyError("Cannot paginate a zero-size image")

        slice_height_mm = min(self.slice_height_mm, page_height_mm)
        scaled_height_mm = image.height_pixels * page_width_mm / image.width_pixels
        pages = plan_pages(scaled_height_mm, slice_height_mm, self.drop_trailing_blank_page)

        try:
            pdf_bytes = self._assemble(image, pages, page_width_mm, page_height_mm)
        except AssemblyError:
            raise
        except Exception as exc:
            raise AssemblyError(
                f"Failed to assemble pages: {exc}", {"pages": len(pages)}
            ) from exc

        filename = build_filename(kind, identifier, today=self.today())
        logger.debug(
            "Paginated %.1f mm into %d pages of %.0f mm", scaled_height_mm, len(pages), slice_height_mm
        )
        return PaginatedArtifact(
            filename=filename,
            pdf_bytes=pdf_bytes,
            pages=pages,
            page_width_mm=page_width_mm,
            page_height_mm=page_height_mm,
        )

    def _assemble(
        self,
        image: RasterImage,
        pages: list[PageSlice],
        page_width_mm: float,
        page_height_mm: float,
    ) -> bytes:
        px_per_mm = image.width_pixels / page_width_mm
        page_width_pt = mm_to_pt(page_width_mm)
        page_height_pt = mm_to_pt(page_height_mm)

        with Image.open(io.BytesIO(image.png_bytes)) as raw:
            source = raw.convert("RGB")

        bands = []
        for page_slice in pages:
            top_px = round(page_slice.offset_mm * px_per_mm)
            band_px = max(round(page_slice.height_mm * px_per_mm), 1)
            bands.append((page_slice, _band_png(source, top_px, band_px)))

        with FITZ_LOCK:
            doc = fitz.open()
            try:
                for page_slice, band in bands:
                    page = doc.new_page(width=page_width_pt, height=page_height_pt)
                    rect = fitz.Rect(0, 0, page_width_pt, mm_to_pt(page_slice.height_mm))
                    page.insert_image(rect, stream=band)
                return doc.tobytes(garbage=3, deflate=True)
            finally:
                doc.close()
