"""Normalized view models.

Every field here is guaranteed present once the normalizer has run. Values are
display text: numbers keep their textual form (``0`` stays ``"0"``), unmeasured
values are ``"-"``.
"""

from pydantic import Field

from .base import BaseViewModel


class ChecklistItem(BaseViewModel):
    """One inspected item inside a checklist group."""

    description: str = ""
    status: str = "-"
    result: str = "OK"


class ChecklistGroup(BaseViewModel):
    """A named, fixed-size ordered list of inspected items."""

    key: str = Field(..., description="Stable identifier, e.g. 'opticals'")
    label: str = Field(..., description="Label printed on the first row of the group")
    items: list[ChecklistItem] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.items)


class RecommendedPart(BaseViewModel):
    """A spare part the engineer recommends replacing."""

    part_name: str = "-"
    part_number: str = "-"
    quantity: str = "-"
    notes: str = "-"


class EvaluationRow(BaseViewModel):
    """One yes/no row of the image evaluation block."""

    key: str
    label: str
    value: str


class ColorMeasurement(BaseViewModel):
    """Measured color coordinates for one test pattern."""

    test_pattern: str = "-"
    fl: str = "-"
    x: str = "-"
    y: str = "-"


class ScreenGeometry(BaseViewModel):
    """Height, width and gain for one screen format."""

    label: str
    height: str = "-"
    width: str = "-"
    gain: str = "-"


class ScreenInfo(BaseViewModel):
    """Screen information in metres."""

    scope: ScreenGeometry = Field(default_factory=lambda: ScreenGeometry(label="SCOPE"))
    flat: ScreenGeometry = Field(default_factory=lambda: ScreenGeometry(label="FLAT"))
    screen_make: str = "-"
    throw_distance: str = "-"


class VoltageParameters(BaseViewModel):
    """Mains voltage measurements."""

    p_vs_n: str = "-"
    p_vs_e: str = "-"
    n_vs_e: str = "-"


class AirQuality(BaseViewModel):
    """Air pollution level and room conditions."""

    overall: str = "-"
    hcho: str = "-"
    tvoc: str = "-"
    pm1: str = "-"
    pm25: str = "-"
    pm10: str = "-"
    temperature: str = "-"
    humidity: str = "-"


class NormalizedView(BaseViewModel):
    """
    Fully resolved service report.

    Same logical shape as the incoming record, but every field is present.
    Built fresh for each export and never persisted.
    """

    # Identification
    report_number: str
    report_type: str
    report_date: str

    # Site and personnel
    site_name: str
    site_address: str
    site_incharge_name: str
    site_incharge_phone: str
    engineer_name: str
    engineer_phone: str
    engineer_email: str

    # Projector and lamp
    brand: str
    projector_model: str
    projector_serial: str
    software_version: str
    projector_running_hours: str
    lamp_model: str
    lamp_running_hours: str
    current_lamp_hours: str
    replacement_required: bool = False

    # Checklist, in template order
    checklist: list[ChecklistGroup]

    # Technical blocks
    voltage: VoltageParameters
    image_evaluation: list[EvaluationRow]
    content_server: str
    fl_before: str
    fl_after: str
    placement_environment: str
    observations: list[str]
    recommended_parts: list[RecommendedPart]
    measured_color: list[ColorMeasurement]
    cie_color: list[ColorMeasurement]
    screen: ScreenInfo
    air_quality: AirQuality

    # Status / footer
    le_status: str
    ac_status: str
    photos_before: str
    photos_after: str

    def group(self, key: str) -> ChecklistGroup:
        """Return the checklist group with the given key."""
        for group in self.checklist:
            if group.key == key:
                return group
        raise KeyError(key)


class Auditorium(BaseViewModel):
    """One auditorium at a site."""

    name: str
    projector_count: int = 0
    status: str = "Active"


class SiteView(BaseViewModel):
    """Fully resolved site record plus its analytics summary."""

    site_name: str
    site_code: str
    region: str
    state: str
    city: str
    address: str
    contact_person: str
    contact_phone: str
    contact_email: str

    total_projectors: int = 0
    active_projectors: int = 0
    auditoriums: list[Auditorium] = Field(default_factory=list)

    rma_cases: int = 0
    avg_resolution_days: float = 0.0
    rma_cost: float = 0.0
    service_visits: int = 0
    last_service_date: str = "N/A"

    recommendations: list[str] = Field(default_factory=list)

    @property
    def utilization_percent(self) -> float:
        """Active projectors as a share of all projectors."""
        if self.total_projectors <= 0:
            return 0.0
        return self.active_projectors / self.total_projectors * 100

    @property
    def projectors_per_auditorium(self) -> float:
        if not self.auditoriums:
            return 0.0
        return self.total_projectors / len(self.auditoriums)
