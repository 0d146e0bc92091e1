"""Tests for the printable fallback stage."""

from unittest.mock import patch

import pytest

from conftest import RecordingPrintFacility
from reportgen.pipeline.stage_fallback import BrowserPrintFacility, render_printable
from reportgen.pipeline.stage_normalize import normalize


class TestBrowserPrintFacility:
    def test_opens_written_file(self, tmp_path):
        with patch(
            "reportgen.pipeline.stage_fallback.webbrowser.open", return_value=True
        ) as opened:
            path = BrowserPrintFacility(tmp_path).print_document("<p>report</p>", "Report")

        assert path.exists()
        assert path.read_text(encoding="utf-8") == "<p>report</p>"
        opened.assert_called_once_with(path.as_uri())

    def test_no_browser_raises_and_removes_file(self, tmp_path):
        with patch("reportgen.pipeline.stage_fallback.webbrowser.open", return_value=False):
            with pytest.raises(OSError):
                BrowserPrintFacility(tmp_path).print_document("<p>report</p>", "Report")

        assert list(tmp_path.iterdir()) == []


class TestRenderPrintable:
    def test_hands_printable_html_to_facility(self, sample_record):
        facility = RecordingPrintFacility()
        html = render_printable(normalize(sample_record), facility)

        printed_html, title = facility.printed[0]
        assert printed_html == html
        assert "window.print()" in html
        assert "ASCOMP-12345" in title

    def test_none_source_raises(self):
        with pytest.raises(TypeError):
            render_printable(None, RecordingPrintFacility())
