"""Canonical default collections.

These mirror the printed defaults of the paper service-report form. They are
substituted when a record carries no usable collection, so tables keep the
row counts of the printed template.
"""

from reportgen.models import ChecklistItem, ColorMeasurement, RecommendedPart


def _items(*rows: tuple[str, str, str]) -> list[ChecklistItem]:
    return [ChecklistItem(description=d, status=s, result=r) for d, s, r in rows]


# (key, printed label, canonical rows), in template order
CHECKLIST_LAYOUT: list[tuple[str, str, list[ChecklistItem]]] = [
    (
        "opticals",
        "OPTICALS",
        _items(
            ("Reflector", "-", "OK"),
            ("UV filter", "-", "OK"),
            ("Integrator Rod", "-", "OK"),
            ("Cold Mirror", "-", "OK"),
            ("Fold Mirror", "-", "OK"),
        ),
    ),
    (
        "electronics",
        "ELECTRONICS",
        _items(
            ("Touch Panel", "-", "OK"),
            ("EVB Board", "-", "OK"),
            ("IMCB Board/s", "-", "OK"),
            ("PIB Board", "-", "OK"),
            ("ICP Board", "-", "OK"),
            ("IMB/S Board", "-", "OK"),
        ),
    ),
    (
        "serialNumberVerified",
        "Serial Number verified",
        _items(("Chassis label vs Touch Panel", "-", "OK")),
    ),
    (
        "disposableConsumables",
        "Disposable Consumables",
        _items(("Air Intake, LAD and RAD", "Replaced", "OK")),
    ),
    (
        "coolant",
        "Coolant",
        _items(("Level and Color", "-", "OK")),
    ),
    (
        "lightEngineTestPatterns",
        "Light Engine Test Pattern",
        _items(
            ("White", "-", "OK"),
            ("Red", "-", "OK"),
            ("Green", "-", "OK"),
            ("Blue", "-", "OK"),
            ("Black", "-", "OK"),
        ),
    ),
    (
        "mechanical",
        "MECHANICAL",
        _items(
            ("AC blower and Vane Switch", "-", "OK"),
            ("Extractor Vane Switch", "-", "OK"),
            ("Exhaust CFM", "7.5 M/S", "OK"),
            ("Light Engine 4 fans with LAD fan", "-", "OK"),
            ("Card Cage Top and Bottom fans", "-", "OK"),
            ("Radiator fan and Pump", "-", "OK"),
            ("Connector and hose for the Pump", "-", "OK"),
            ("Security and lamp house lock switch", "-", "OK"),
            ("Lamp LOC Mechanism X, Y and Z movement", "-", "OK"),
        ),
    ),
]

# (key, printed label, legacy keys, default)
IMAGE_EVALUATION_LAYOUT: list[tuple[str, str, tuple[str, ...], str]] = [
    ("focusBoresight", "Focus/boresight", (), "Yes"),
    ("integratorPosition", "Integrator Position", (), "Yes"),
    ("spotOnScreen", "Any Spot on the Screen after PPM", ("spotOnScreenAfterIPM",), "No"),
    (
        "screenCropping",
        "Check Screen Cropping - FLAT and SCOPE",
        ("croppingScreenEdges6x31AndScope",),
        "Yes",
    ),
    ("convergenceChecked", "Convergence Checked", (), "Yes"),
    (
        "channelsChecked",
        "Channels Checked - Scope, Flat, Alternative",
        ("channelsCheckedScopeFlatAlternative",),
        "Yes",
    ),
    ("pixelDefects", "Pixel defects", (), "No"),
    ("imageVibration", "Excessive image vibration", ("excessiveImageVibration",), "No"),
    ("liteLoc", "LiteLOC", ("liteLOC",), "No"),
    ("screenUniformity", "Screen Uniformity", (), "Yes"),
]

DEFAULT_OBSERVATIONS: list[str] = ["ok", "-", "-", "-", "-", "-"]

DEFAULT_PART_ROWS = 6


def default_parts() -> list[RecommendedPart]:
    return [RecommendedPart() for _ in range(DEFAULT_PART_ROWS)]


MEASURED_COLOR_PATTERNS: list[str] = [
    "White 2K",
    "White 4K",
    "Red 2K",
    "Red 4K",
    "Green 2K",
    "Green 4K",
    "Blue 2K",
    "Blue 4K",
]

CIE_COLOR_PATTERNS: list[str] = ["BW Step-10 2K", "BW Step-10 4K"]


def default_colors(patterns: list[str]) -> list[ColorMeasurement]:
    return [ColorMeasurement(test_pattern=p) for p in patterns]


DEFAULT_RECOMMENDATIONS: list[str] = [
    "Schedule regular maintenance every 3 months",
    "Monitor projector utilization rates",
    "Review RMA cases for pattern analysis",
    "Update contact information as needed",
    "Consider preventive maintenance for high-usage projectors",
]
