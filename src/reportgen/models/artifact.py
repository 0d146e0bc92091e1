"""Raster and paginated output models."""

from pydantic import Field

from .base import BaseViewModel


class RasterImage(BaseViewModel):
    """
    Single full-height bitmap of a rendered document.

    Not yet paginated. Transient: released once the paginator consumes it.
    """

    png_bytes: bytes = Field(..., repr=False)
    width_pixels: int = Field(..., ge=0)
    height_pixels: int = Field(..., ge=0)
    scale: float = Field(default=2.0, gt=0)
    page_width_mm: float = Field(default=210.0, gt=0)

    @property
    def scaled_height_mm(self) -> float:
        """Image height once its width is fitted to the page width."""
        if self.width_pixels <= 0:
            return 0.0
        return self.height_pixels * self.page_width_mm / self.width_pixels


class PageSlice(BaseViewModel):
    """One page band of the raster."""

    index: int = Field(..., ge=0)
    offset_mm: float = Field(..., ge=0, description="Top of the band within the raster")
    height_mm: float = Field(..., gt=0)


class PaginatedArtifact(BaseViewModel):
    """Multi-page output file assembled from raster bands."""

    filename: str
    pdf_bytes: bytes = Field(..., repr=False)
    pages: list[PageSlice] = Field(default_factory=list)
    page_width_mm: float
    page_height_mm: float

    @property
    def page_count(self) -> int:
        return len(self.pages)
