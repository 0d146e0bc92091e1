"""Pytest configuration and fixtures."""

import io
import threading
import time
from datetime import date

import pytest
from PIL import Image

from reportgen.exceptions import RasterizationError
from reportgen.models import ExportChoice, RasterImage
from reportgen.pipeline.stage_raster import RenderSurface


def make_raster(width: int, height: int, page_width_mm: float = 210.0) -> RasterImage:
    """Build a real PNG raster of the given pixel size."""
    image = Image.new("RGB", (max(width, 1), max(height, 1)), "white")
    # A dark stripe so bands are distinguishable
    for x in range(image.width):
        image.putpixel((x, 0), (0, 0, 0))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return RasterImage(
        png_bytes=buffer.getvalue(),
        width_pixels=width,
        height_pixels=height,
        scale=2.0,
        page_width_mm=page_width_mm,
    )


class StubRasterizer:
    """Records the HTML it is given and returns a fixed-size raster.

    ``failures`` lists the exceptions to raise on successive calls before
    succeeding.
    """

    def __init__(self, width: int = 420, height: int = 1000, failures=None):
        self.width = width
        self.height = height
        self.failures = list(failures or [])
        self.calls: list[str] = []

    async def rasterize(self, source):
        self.calls.append(source)
        if self.failures:
            raise self.failures.pop(0)
        return make_raster(self.width, self.height)


class FailingRasterizer(StubRasterizer):
    """Rasterizer that fails on every call."""

    async def rasterize(self, source):
        self.calls.append(source)
        raise RasterizationError("render surface exhausted")


class ScriptedPrompt:
    """Answers with the given choices in order, repeating the last one."""

    def __init__(self, *choices: ExportChoice):
        self.choices = list(choices)
        self.errors = []

    def choose(self, error):
        self.errors.append(error)
        if len(self.choices) > 1:
            return self.choices.pop(0)
        return self.choices[0]


class RecordingPrintFacility:
    def __init__(self):
        self.printed: list[tuple[str, str]] = []

    def print_document(self, html: str, title: str) -> None:
        self.printed.append((html, title))


class MemorySaveTarget:
    def __init__(self):
        self.files: dict[str, bytes] = {}

    def save(self, filename: str, data: bytes) -> str:
        self.files[filename] = data
        return f"memory://{filename}"


class SlowSurface(RenderSurface):
    """Real render surface that records how many captures overlap."""

    guard = threading.Lock()
    active = 0
    peak = 0

    @classmethod
    def reset(cls):
        cls.active = 0
        cls.peak = 0

    def capture(self, html, scale):
        with SlowSurface.guard:
            SlowSurface.active += 1
            SlowSurface.peak = max(SlowSurface.peak, SlowSurface.active)
        try:
            time.sleep(0.05)
            return super().capture(html, scale)
        finally:
            with SlowSurface.guard:
                SlowSurface.active -= 1


class RecordingNotifier:
    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, level: str = "info") -> None:
        self.messages.append((message, level))


@pytest.fixture
def export_date():
    return date(2024, 3, 1)


@pytest.fixture
def print_facility():
    return RecordingPrintFacility()


@pytest.fixture
def save_target():
    return MemorySaveTarget()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def output_dir(tmp_path):
    """Create a temporary output directory."""
    out_dir = tmp_path / "exports"
    out_dir.mkdir()
    return out_dir


@pytest.fixture
def sample_record():
    """A service report in the current schema."""
    return {
        "reportNumber": "ASCOMP-12345",
        "reportType": "Second",
        "date": "2024-03-01T09:30:00.000Z",
        "siteName": "PVR Select Citywalk",
        "siteAddress": "Saket, New Delhi",
        "siteIncharge": {"name": "R. Mehta", "phone": "9810000000"},
        "engineer": {"name": "A. Kumar", "phone": "9999999999", "email": "fse@example.com"},
        "brand": "Christie",
        "projectorModel": "CP2220",
        "projectorSerial": "SN-778",
        "softwareVersion": "4.3.1",
        "projectorRunningHours": 12000,
        "lampModel": "CDXL-30SD",
        "lampRunningHours": 900,
        "currentLampHours": 0,
        "replacementRequired": True,
        "inspectionSections": {
            "opticals": [
                {"description": "Reflector", "status": "Cleaned", "result": "OK"},
                {"description": "UV filter", "status": "Replaced", "result": "OK"},
            ],
            "lightEngineTestPatterns": [
                {"color": "White", "status": "Checked", "yesNoOk": "Yes"},
            ],
        },
        "voltageParameters": {"pVsN": 230, "pVsE": 232, "nVsE": 2},
        "imageEvaluation": {"focusBoresight": "Yes", "pixelDefects": False},
        "observations": ["Lamp hours near end of life", {"description": "Dust on fold mirror"}],
        "recommendedParts": [
            {"partName": "Lamp", "partNumber": "003-100", "quantity": 1, "notes": "Urgent"}
        ],
        "measuredColorCoordinates": [{"testPattern": "White 2K", "fl": 14.5, "x": 0.314, "y": 0.351}],
        "screenInfo": {
            "scope": {"height": 5.2, "width": 12.4, "gain": 1.2},
            "flat": {"height": 5.2, "width": 9.6, "gain": 1.2},
            "screenMake": "Harkness",
            "throwDistance": 18,
        },
        "airPollutionLevel": {"hcho": 0.02, "tvoc": 0.1, "pm25": 35, "overall": "Good"},
        "environmentalConditions": {"temperature": 22, "humidity": 45},
        "systemStatus": {"leStatus": "Removed", "acStatus": "Working"},
        "finalStatus": {"photosBefore": "1,3,5", "photosAfter": "2,4,6"},
    }


@pytest.fixture
def sample_site():
    return {
        "name": "PVR Select Citywalk",
        "siteCode": "PVR-DEL-01",
        "region": "North",
        "address": {"state": "Delhi", "city": "New Delhi", "street": "Saket"},
        "contactPerson": {"name": "R. Mehta", "phone": "9810000000", "email": "site@example.com"},
        "totalProjectors": 8,
        "activeProjectors": 6,
        "auditoriums": [
            {"name": "Audi 1", "projectorCount": 2, "status": "Active"},
            {"name": "Audi 2", "projectorCount": 2},
        ],
    }
