"""Tests for pagination and assembly."""

from datetime import date
from unittest.mock import patch

import fitz
import pytest

from conftest import make_raster
from reportgen.config import mm_to_pt
from reportgen.exceptions import AssemblyError
from reportgen.models import RasterImage, ReportKind
from reportgen.pipeline.stage_raster import FITZ_LOCK
from reportgen.pipeline.stage_paginate import (
    Paginator,
    build_filename,
    plan_pages,
    sanitize_identifier,
)


class TestPlanPages:
    """Tests for the page count loop."""

    def test_exact_multiple_emits_extra_page(self):
        pages = plan_pages(590.0, 295.0)

        assert len(pages) == 3
        assert [p.offset_mm for p in pages] == [0.0, 295.0, 590.0]

    def test_single_exact_page_emits_two(self):
        assert len(plan_pages(295.0, 295.0)) == 2

    def test_partial_page_rounds_up(self):
        assert len(plan_pages(400.0, 295.0)) == 2
        assert len(plan_pages(100.0, 295.0)) == 1
        assert len(plan_pages(900.0, 295.0)) == 4

    def test_drop_trailing_blank_page(self):
        assert len(plan_pages(590.0, 295.0, drop_trailing_blank_page=True)) == 2
        assert len(plan_pages(295.0, 295.0, drop_trailing_blank_page=True)) == 1
        assert len(plan_pages(400.0, 295.0, drop_trailing_blank_page=True)) == 2

    def test_zero_height_raises(self):
        with pytest.raises(AssemblyError):
            plan_pages(0.0, 295.0)


class TestPaginator:
    """Tests for PDF assembly from a raster."""

    @pytest.fixture
    def paginator(self, export_date):
        return Paginator(slice_height_mm=295.0, drop_trailing_blank_page=False, today=lambda: export_date)

    def test_assembles_pages(self, paginator):
        # 210 px wide on a 210 mm page: 1 px per mm
        artifact = paginator.paginate(make_raster(210, 590), 210.0, 297.0, identifier="ASCOMP-12345")

        assert artifact.page_count == 3
        assert artifact.filename == "ASCOMP_Report_ASCOMP-12345_2024-03-01.pdf"

        doc = fitz.open(stream=artifact.pdf_bytes, filetype="pdf")
        try:
            assert doc.page_count == 3
            assert doc[0].rect.width == pytest.approx(mm_to_pt(210.0), abs=0.1)
            assert doc[0].rect.height == pytest.approx(mm_to_pt(297.0), abs=0.1)
            assert len(doc[0].get_images()) == 1
        finally:
            doc.close()

    def test_assembly_holds_fitz_lock(self, paginator):
        held = []
        real_open = fitz.open

        def checking_open(*args, **kwargs):
            held.append(FITZ_LOCK.locked())
            return real_open(*args, **kwargs)

        with patch("reportgen.pipeline.stage_paginate.fitz.open", side_effect=checking_open):
            paginator.paginate(make_raster(210, 300), 210.0, 297.0)

        assert held == [True]
        assert not FITZ_LOCK.locked()

    def test_non_multiple_height(self, paginator):
        artifact = paginator.paginate(make_raster(420, 800), 210.0, 297.0)
        # 800 px at 2 px per mm is 400 mm
        assert artifact.page_count == 2

    def test_drop_trailing_blank_page(self, export_date):
        paginator = Paginator(slice_height_mm=295.0, drop_trailing_blank_page=True, today=lambda: export_date)
        assert paginator.paginate(make_raster(210, 590), 210.0, 297.0).page_count == 2

    def test_site_filename(self, paginator):
        artifact = paginator.paginate(
            make_raster(210, 100), 210.0, 297.0, kind=ReportKind.SITE, identifier="PVR-DEL-01"
        )
        assert artifact.filename == "ASCOMP_Site_Report_PVR-DEL-01_2024-03-01.pdf"

    def test_zero_size_image_raises(self, paginator):
        image = RasterImage(png_bytes=b"", width_pixels=0, height_pixels=0)
        with pytest.raises(AssemblyError):
            paginator.paginate(image, 210.0, 297.0)

    def test_undecodable_image_raises(self, paginator):
        image = RasterImage(png_bytes=b"not a png", width_pixels=10, height_pixels=10)
        with pytest.raises(AssemblyError) as exc_info:
            paginator.paginate(image, 210.0, 297.0)
        assert exc_info.value.__cause__ is not None


class TestFilename:
    def test_service_report(self):
        name = build_filename(ReportKind.SERVICE, "ASCOMP-12345", today=date(2024, 3, 1))
        assert name == "ASCOMP_Report_ASCOMP-12345_2024-03-01.pdf"

    def test_custom_prefix(self):
        name = build_filename(ReportKind.SERVICE, "R1", today=date(2024, 3, 1), prefix="ACME")
        assert name == "ACME_Report_R1_2024-03-01.pdf"

    def test_unsafe_characters(self):
        assert sanitize_identifier('AS/CO:MP 12*3') == "AS-CO-MP-12-3"
        assert sanitize_identifier("   ") == "Unknown"
