"""Normalization Stage - Resolve a loosely-typed record into a complete view.

Report records have drifted across several schema versions: the engineer may
live under ``engineer.name``, ``engineerName`` or ``fse.name``, checklists
under ``inspectionSections`` or ``sections``, and any substructure may be
missing. Each logical field is described by an ordered tuple of accessor
functions; the first one that yields a present value wins, otherwise a
field-specific literal default is used.

Presence rule:
- None is absent
- a string that is empty (or only whitespace) is absent
- numeric zero and False are present and preserved

This stage is pure and never raises for malformed input. Only a ``None``
record is rejected, as a programmer error.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional

from reportgen.config import settings
from reportgen.models import (
    AirQuality,
    Auditorium,
    ChecklistGroup,
    ChecklistItem,
    ColorMeasurement,
    EvaluationRow,
    NormalizedView,
    RecommendedPart,
    ScreenGeometry,
    ScreenInfo,
    SiteView,
    VoltageParameters,
)
from reportgen.pipeline.defaults import (
    CHECKLIST_LAYOUT,
    CIE_COLOR_PATTERNS,
    DEFAULT_OBSERVATIONS,
    DEFAULT_RECOMMENDATIONS,
    IMAGE_EVALUATION_LAYOUT,
    MEASURED_COLOR_PATTERNS,
    default_colors,
    default_parts,
)

logger = logging.getLogger(__name__)

Accessor = Callable[[Any], Any]

SCALAR_TYPES = (str, int, float, bool, date)


def path(*keys: str) -> Accessor:
    """Build an accessor that walks ``keys`` through nested mappings.

    Any missing key or non-mapping intermediate yields None.
    """

    def access(record: Any) -> Any:
        current = record
        for key in keys:
            if not isinstance(current, Mapping):
                return None
            current = current.get(key)
            if current is None:
                return None
        return current

    access.__name__ = ".".join(keys)
    return access


def is_present(value: Any) -> bool:
    """Check the presence rule. Empty strings are absent; zero is not."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def first_present(
    record: Any,
    accessors: Iterable[Accessor],
    accept: Callable[[Any], bool] = is_present,
) -> Optional[Any]:
    """Return the first accessor result accepted by ``accept``, else None."""
    for accessor in accessors:
        value = accessor(record)
        if is_present(value) and accept(value):
            return value
    return None


def is_scalar(value: Any) -> bool:
    return isinstance(value, SCALAR_TYPES)


def to_text(value: Any) -> str:
    """Render a scalar value as display text."""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value).strip()


@dataclass(frozen=True)
class FieldChain:
    """Ordered candidate accessors plus a literal default for one text field."""

    accessors: tuple[Accessor, ...]
    default: str = "-"

    def resolve(self, record: Any) -> str:
        value = first_present(record, self.accessors, accept=is_scalar)
        if value is None:
            return self.default
        return to_text(value)


def chain(*candidates: tuple[str, ...], default: str = "-") -> FieldChain:
    """Shorthand: ``chain(("engineer", "name"), ("engineerName",), default=...)``."""
    return FieldChain(tuple(path(*keys) for keys in candidates), default)


# Scalar fields of the service report, current-schema path first
SERVICE_FIELDS: dict[str, FieldChain] = {
    "report_number": chain(("reportNumber",), ("report_number",), ("reportNo",), default="Unknown"),
    "report_type": chain(("reportType",), ("type",), default="First"),
    "site_name": chain(
        ("siteName",), ("site", "name"), ("cinemaName",), default="Site Name Not Available"
    ),
    "site_address": chain(("siteAddress",), ("site", "address"), ("address",)),
    "site_incharge_name": chain(
        ("siteIncharge", "name"),
        ("siteInchargeName",),
        ("contactPerson", "name"),
        ("contactName",),
        default="Site Contact Not Available",
    ),
    "site_incharge_phone": chain(
        ("siteIncharge", "phone"),
        ("siteIncharge", "contact"),
        ("siteInchargePhone",),
        ("contactPerson", "phone"),
        ("contactPhone",),
        ("contactDetails",),
        default="Phone Not Available",
    ),
    "engineer_name": chain(
        ("engineer", "name"),
        ("engineerName",),
        ("technician", "name"),
        ("technicianName",),
        ("fse", "name"),
        ("fseName",),
        default="Engineer Name Not Available",
    ),
    "engineer_phone": chain(
        ("engineer", "phone"), ("engineerPhone",), ("technician", "phone"), ("fse", "phone")
    ),
    "engineer_email": chain(
        ("engineer", "email"), ("engineerEmail",), ("technician", "email"), ("fse", "email")
    ),
    "brand": chain(("brand",), ("projector", "brand"), default="Brand Not Available"),
    "projector_model": chain(
        ("projectorModel",),
        ("projector", "model"),
        ("projectorModelSerialAndHours",),
        default="Model Not Available",
    ),
    "projector_serial": chain(
        ("projectorSerial",),
        ("projector", "serialNumber"),
        ("serialNumber",),
        default="Serial Not Available",
    ),
    "software_version": chain(
        ("softwareVersion",), ("projector", "softwareVersion"), default="Version Not Available"
    ),
    "projector_running_hours": chain(
        ("projectorRunningHours",), ("projector", "runningHours"), ("projectorHours",)
    ),
    "lamp_model": chain(
        ("lampModel",), ("lampInfo", "makeAndModel"), default="Lamp Model Not Available"
    ),
    "lamp_running_hours": chain(("lampRunningHours",), ("lampInfo", "runningHours")),
    "current_lamp_hours": chain(
        ("currentLampHours",), ("lampInfo", "currentLampRunningHours")
    ),
    "content_server": chain(
        ("contentPlayingServer",),
        ("contentFunctionality", "serverContentPlaying"),
        ("contentPlayerModel",),
    ),
    "fl_before": chain(
        ("lampPowerMeasurements", "flBeforePM"),
        ("contentFunctionality", "lampPowerTestBefore"),
        ("flMeasurements",),
    ),
    "fl_after": chain(
        ("lampPowerMeasurements", "flAfterPM"),
        ("contentFunctionality", "lampPowerTestAfter"),
    ),
    "placement_environment": chain(
        ("environmentStatus", "projectorPlacement"),
        ("contentFunctionality", "projectorPlacementEnvironment"),
        ("projectorPlacement",),
        ("projectorPlacementRoomAndEnvironment",),
        default="ok",
    ),
    "le_status": chain(
        ("systemStatus", "leStatus"), ("finalStatus", "leStatusDuringPM"), ("leStatusDuringPM",)
    ),
    "ac_status": chain(("systemStatus", "acStatus"), ("finalStatus", "acStatus"), ("acStatus",)),
    "photos_before": chain(("finalStatus", "photosBefore"), ("photosBefore",)),
    "photos_after": chain(("finalStatus", "photosAfter"), ("photosAfter",)),
}

VOLTAGE_FIELDS: dict[str, FieldChain] = {
    "p_vs_n": chain(("voltageParameters", "pVsN"), ("voltage", "pVsN")),
    "p_vs_e": chain(("voltageParameters", "pVsE"), ("voltage", "pVsE")),
    "n_vs_e": chain(("voltageParameters", "nVsE"), ("voltage", "nVsE")),
}

AIR_QUALITY_FIELDS: dict[str, FieldChain] = {
    "overall": chain(
        ("airPollutionLevel", "overall"),
        ("airPollutionLevels", "overall"),
        ("airPollutionLevel", "airPollutionLevel"),
    ),
    "hcho": chain(("airPollutionLevel", "hcho"), ("airPollutionLevels", "hcho")),
    "tvoc": chain(("airPollutionLevel", "tvoc"), ("airPollutionLevels", "tvoc")),
    "pm1": chain(("airPollutionLevel", "pm1"), ("airPollutionLevels", "pm1")),
    "pm25": chain(("airPollutionLevel", "pm25"), ("airPollutionLevels", "pm25")),
    "pm10": chain(("airPollutionLevel", "pm10"), ("airPollutionLevels", "pm10")),
    "temperature": chain(
        ("environmentalConditions", "temperature"), ("airPollutionLevel", "temperature")
    ),
    "humidity": chain(("environmentalConditions", "humidity"), ("airPollutionLevel", "humidity")),
}

SCREEN_ROOTS = (("screenInfo",), ("screenInformation",))

ITEM_DESCRIPTION = (path("description"), path("color"), path("partName"), path("name"))
ITEM_STATUS = (path("status"),)
ITEM_RESULT = (path("result"), path("yesNoOk"))


def _nested(roots: Iterable[tuple[str, ...]], *keys: str) -> tuple[Accessor, ...]:
    return tuple(path(*root, *keys) for root in roots)


def _as_rows(value: Any) -> Optional[list[Any]]:
    """Coerce a collection candidate into a list of rows.

    Accepts a list, a single item mapping, or a legacy mapping of named item
    mappings. Anything else is treated as absent.
    """
    if isinstance(value, list):
        return value or None
    if isinstance(value, Mapping) and value:
        if any(key in value for key in ("description", "status", "result", "color")):
            return [value]
        nested = [v for v in value.values() if isinstance(v, Mapping)]
        return nested or None
    return None


def resolve_rows(record: Any, accessors: Iterable[Accessor]) -> Optional[list[Any]]:
    """First accessor whose value is a usable non-empty collection."""
    for accessor in accessors:
        rows = _as_rows(accessor(record))
        if rows:
            return rows
    return None


def _item_text(item: Any, accessors: tuple[Accessor, ...], default: str) -> str:
    value = first_present(item, accessors, accept=is_scalar)
    return default if value is None else to_text(value)


def _fit_checklist(rows: Optional[list[Any]], canonical: list[ChecklistItem]) -> list[ChecklistItem]:
    """Fit input rows onto the canonical row list, row by row."""
    rows = rows or []
    fitted = []
    for index, default in enumerate(canonical):
        raw = rows[index] if index < len(rows) else None
        if isinstance(raw, str) and is_present(raw):
            raw = {"description": raw}
        fitted.append(
            ChecklistItem(
                description=_item_text(raw, ITEM_DESCRIPTION, default.description),
                status=_item_text(raw, ITEM_STATUS, default.status),
                result=_item_text(raw, ITEM_RESULT, default.result),
            )
        )
    if len(rows) > len(canonical):
        logger.debug("Dropping %d extra checklist rows", len(rows) - len(canonical))
    return fitted


def _checklist(record: Any) -> list[ChecklistGroup]:
    groups = []
    for key, label, canonical in CHECKLIST_LAYOUT:
        rows = resolve_rows(
            record,
            (path("inspectionSections", key), path("sections", key), path(key)),
        )
        groups.append(ChecklistGroup(key=key, label=label, items=_fit_checklist(rows, canonical)))
    return groups


def _image_evaluation(record: Any) -> list[EvaluationRow]:
    rows = []
    for key, label, legacy_keys, default in IMAGE_EVALUATION_LAYOUT:
        field = FieldChain(
            tuple(path("imageEvaluation", k) for k in (key, *legacy_keys)), default
        )
        rows.append(EvaluationRow(key=key, label=label, value=field.resolve(record)))
    return rows


def _observations(record: Any, minimum_rows: int) -> list[str]:
    rows = resolve_rows(record, (path("observations"), path("remarks", "observations")))
    if rows is None:
        texts = list(DEFAULT_OBSERVATIONS)
    else:
        texts = []
        for row in rows:
            if is_scalar(row) and is_present(row):
                texts.append(to_text(row))
            else:
                texts.append(_item_text(row, (path("description"), path("text")), "-"))
    while len(texts) < minimum_rows:
        texts.append("-")
    return texts


def _recommended_parts(record: Any) -> list[RecommendedPart]:
    rows = resolve_rows(record, (path("recommendedParts"), path("partsRecommended")))
    if rows is None:
        return default_parts()
    return [
        RecommendedPart(
            part_name=_item_text(row, (path("partName"), path("name")), "-"),
            part_number=_item_text(row, (path("partNumber"), path("number")), "-"),
            quantity=_item_text(row, (path("quantity"), path("qty")), "-"),
            notes=_item_text(row, (path("notes"), path("remarks")), "-"),
        )
        for row in rows
    ]


def _colors(record: Any, accessors: tuple[Accessor, ...], patterns: list[str]) -> list[ColorMeasurement]:
    rows = resolve_rows(record, accessors)
    if rows is None:
        return default_colors(patterns)
    measurements = []
    for index, row in enumerate(rows):
        pattern = patterns[index] if index < len(patterns) else "-"
        measurements.append(
            ColorMeasurement(
                test_pattern=_item_text(row, (path("testPattern"), path("pattern")), pattern),
                fl=_item_text(row, (path("fl"), path("fL")), "-"),
                x=_item_text(row, (path("x"),), "-"),
                y=_item_text(row, (path("y"),), "-"),
            )
        )
    return measurements


def _screen(record: Any) -> ScreenInfo:
    def geometry(key: str, label: str) -> ScreenGeometry:
        return ScreenGeometry(
            label=label,
            height=FieldChain(_nested(SCREEN_ROOTS, key, "height")).resolve(record),
            width=FieldChain(_nested(SCREEN_ROOTS, key, "width")).resolve(record),
            gain=FieldChain(_nested(SCREEN_ROOTS, key, "gain")).resolve(record),
        )

    return ScreenInfo(
        scope=geometry("scope", "SCOPE"),
        flat=geometry("flat", "FLAT"),
        screen_make=FieldChain(_nested(SCREEN_ROOTS, "screenMake")).resolve(record),
        throw_distance=FieldChain(_nested(SCREEN_ROOTS, "throwDistance")).resolve(record),
    )


def _report_date(record: Any) -> str:
    value = first_present(
        record, (path("date"), path("reportDate"), path("createdAt")), accept=is_scalar
    )
    if value is None:
        return "-"
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = to_text(value)
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return text


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ("true", "yes", "y", "1")


def _replacement_required(record: Any) -> bool:
    value = first_present(
        record,
        (path("replacementRequired"), path("lampInfo", "replacementRequired")),
        accept=is_scalar,
    )
    return False if value is None else _as_bool(value)


def _ensure_record(record: Any, what: str) -> Mapping:
    if record is None:
        raise TypeError(f"{what} must not be None")
    if not isinstance(record, Mapping):
        logger.warning("Ignoring %s of unsupported type %s", what, type(record).__name__)
        return {}
    return record


def normalize(record: Any, observation_rows: Optional[int] = None) -> NormalizedView:
    """Resolve a service report record into a complete NormalizedView.

    Args:
        record: Loosely-typed report mapping (any schema version, any subset)
        observation_rows: Minimum numbered observation rows (default from settings)

    Returns:
        NormalizedView with every field populated

    Raises:
        TypeError: if record is None
    """
    record = _ensure_record(record, "record")
    minimum_rows = observation_rows or settings.observation_rows

    scalars = {name: field.resolve(record) for name, field in SERVICE_FIELDS.items()}

    view = NormalizedView(
        **scalars,
        report_date=_report_date(record),
        replacement_required=_replacement_required(record),
        checklist=_checklist(record),
        voltage=VoltageParameters(
            **{name: field.resolve(record) for name, field in VOLTAGE_FIELDS.items()}
        ),
        image_evaluation=_image_evaluation(record),
        observations=_observations(record, minimum_rows),
        recommended_parts=_recommended_parts(record),
        measured_color=_colors(
            record,
            (path("measuredColorCoordinates"), path("mcgd")),
            MEASURED_COLOR_PATTERNS,
        ),
        cie_color=_colors(
            record,
            (path("cieColorAccuracy"), path("cieXyzColorAccuracy")),
            CIE_COLOR_PATTERNS,
        ),
        screen=_screen(record),
        air_quality=AirQuality(
            **{name: field.resolve(record) for name, field in AIR_QUALITY_FIELDS.items()}
        ),
    )
    logger.debug("Normalized report %s", view.report_number)
    return view


# Site report ----------------------------------------------------------------

SITE_FIELDS: dict[str, FieldChain] = {
    "site_name": chain(("name",), ("siteName",), default="Site Name Not Available"),
    "site_code": chain(("siteCode",), ("code",), default="SITE"),
    "region": chain(("region",), ("address", "region"), default="N/A"),
    "state": chain(("state",), ("address", "state"), default="N/A"),
    "city": chain(("city",), ("address", "city"), default="N/A"),
    "address": chain(
        ("address",), ("address", "street"), ("siteAddress",), default="Address Not Available"
    ),
    "contact_person": chain(
        ("contactPerson",), ("contactPerson", "name"), ("contact", "name"), default="Contact Person"
    ),
    "contact_phone": chain(
        ("contactPhone",), ("contactPerson", "phone"), ("contact", "phone"), default="N/A"
    ),
    "contact_email": chain(
        ("contactEmail",), ("contactPerson", "email"), ("contact", "email"), default="N/A"
    ),
}


def _as_number(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = float(value) if isinstance(value, (int, float)) else float(str(value).strip())
    except (ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def _number(record: Any, *candidates: tuple[str, ...]) -> float:
    value = first_present(record, tuple(path(*keys) for keys in candidates), accept=is_scalar)
    return _as_number(value)


def _auditoriums(site: Mapping) -> list[Auditorium]:
    rows = resolve_rows(site, (path("auditoriums"),)) or []
    auditoriums = []
    for index, row in enumerate(rows):
        name = _item_text(row, (path("name"), path("audiNumber")), f"Audi {index + 1}")
        count = first_present(row, (path("projectorCount"),), accept=is_scalar)
        auditoriums.append(
            Auditorium(
                name=name,
                projector_count=int(_as_number(count)),
                status=_item_text(row, (path("status"),), "Active"),
            )
        )
    return auditoriums


def normalize_site(site: Any, analytics: Any = None) -> SiteView:
    """Resolve a site record and its analytics summary into a SiteView.

    Raises:
        TypeError: if site is None
    """
    site = _ensure_record(site, "site")
    analytics = analytics if isinstance(analytics, Mapping) else {}

    recommendations = [
        to_text(r)
        for r in resolve_rows(analytics, (path("recommendations"),)) or []
        if is_scalar(r) and is_present(r)
    ]
    view = SiteView(
        **{name: field.resolve(site) for name, field in SITE_FIELDS.items()},
        total_projectors=int(_number(site, ("totalProjectors",), ("projectorCount",))),
        active_projectors=int(_number(site, ("activeProjectors",))),
        auditoriums=_auditoriums(site),
        rma_cases=int(_number(analytics, ("rmaAnalysis", "totalCases"))),
        avg_resolution_days=_number(analytics, ("rmaAnalysis", "avgResolutionTime")),
        rma_cost=_number(analytics, ("rmaAnalysis", "totalCost")),
        service_visits=int(_number(analytics, ("serviceAnalysis", "totalVisits"))),
        last_service_date=FieldChain(
            (path("serviceAnalysis", "lastVisit"),), default="N/A"
        ).resolve(analytics),
        recommendations=recommendations or list(DEFAULT_RECOMMENDATIONS),
    )
    logger.debug("Normalized site %s", view.site_code)
    return view
