"""Template Stage - Lay out a service report as a document tree.

Builds, strictly top to bottom:
1. letterhead and report header
2. site/personnel and projector/lamp summaries
3. the checklist table (all groups, template-owned order)
4. observations, recommended parts, image evaluation
5. technical details, color measurements (side by side), screen geometry
6. air quality and the status/footer block

The template owns layout and row order; the view only supplies cell values.
"""

import logging

from reportgen.config import settings
from reportgen.models import (
    ChecklistGroup,
    FieldItem,
    Letterhead,
    NormalizedView,
    RenderedDocument,
    ReportKind,
    Section,
    Table,
)
from reportgen.pipeline.stage_normalize import SERVICE_FIELDS

logger = logging.getLogger(__name__)

# Checklist groups are printed in this order whatever the input order
CHECKLIST_ORDER = [
    "opticals",
    "electronics",
    "serialNumberVerified",
    "disposableConsumables",
    "coolant",
    "lightEngineTestPatterns",
    "mechanical",
]

FOOTER_NOTE = "Note: The ODD file number is BEFORE and EVEN file number is AFTER, PM"


def build_letterhead() -> Letterhead:
    """Company block from settings."""
    return Letterhead(
        company_name=settings.company_name,
        address=settings.company_address,
        contacts=[
            FieldItem(label="Desk", value=settings.company_desk),
            FieldItem(label="Mobile", value=settings.company_mobile),
            FieldItem(label="Website", value=settings.company_website),
            FieldItem(label="Email", value=settings.company_email),
        ],
    )


def checklist_rows(groups: list[ChecklistGroup]) -> list[list[str]]:
    """Flatten checklist groups into table rows.

    The group label appears on the first row of each group only.
    """
    by_key = {group.key: group for group in groups}
    rows = []
    for key in CHECKLIST_ORDER:
        group = by_key.get(key)
        if group is None:
            continue
        for index, item in enumerate(group.items):
            label = group.label if index == 0 else ""
            rows.append([label, item.description, item.status, item.result])
    return rows


def _summary_sections(view: NormalizedView) -> list[Section]:
    incharge = view.site_incharge_name
    if view.site_incharge_phone != SERVICE_FIELDS["site_incharge_phone"].default:
        incharge = f"{incharge} (Contact: {view.site_incharge_phone})"

    personnel = Section(
        title="SITE & PERSONNEL",
        css_class="info-box",
        fields=[
            FieldItem(label="Site", value=view.site_name),
            FieldItem(label="Address", value=view.site_address),
            FieldItem(label="Site In-charge", value=incharge),
            FieldItem(label="Ascomp Engineer", value=view.engineer_name),
            FieldItem(label="Engineer Phone", value=view.engineer_phone),
            FieldItem(label="Engineer Email", value=view.engineer_email),
        ],
    )
    projector = Section(
        title="PROJECTOR & LAMP INFORMATION",
        css_class="info-box",
        field_columns=2,
        fields=[
            FieldItem(label="Brand", value=view.brand),
            FieldItem(label="Model", value=view.projector_model),
            FieldItem(label="Serial Number", value=view.projector_serial),
            FieldItem(label="Software Version", value=view.software_version),
            FieldItem(label="Projector running hours", value=view.projector_running_hours),
            FieldItem(label="Lamp Model", value=view.lamp_model),
            FieldItem(label="Lamp running hours", value=view.lamp_running_hours),
            FieldItem(label="Current Lamp Hours", value=view.current_lamp_hours),
            FieldItem(
                label="Replacement Required",
                value="Yes" if view.replacement_required else "No",
            ),
        ],
    )
    return [personnel, projector]


def _technical_section(view: NormalizedView) -> Section:
    voltage = Table(
        title="VOLTAGE PARAMETERS",
        columns=["Parameter", "Value"],
        rows=[
            ["P vs N", view.voltage.p_vs_n],
            ["P vs E", view.voltage.p_vs_e],
            ["N vs E", view.voltage.n_vs_e],
        ],
    )
    lamp_power = Table(
        title="FL ON 100% LAMP POWER BEFORE AND AFTER",
        columns=["", "fL"],
        rows=[["Before", view.fl_before], ["After", view.fl_after]],
    )
    return Section(
        title="TECHNICAL DETAILS",
        side_by_side=True,
        tables=[voltage, lamp_power],
        fields=[
            FieldItem(label="Content Playing Server", value=view.content_server),
            FieldItem(
                label="Projector Placement, Room, Environment",
                value=view.placement_environment,
            ),
        ],
    )


def render(view: NormalizedView) -> RenderedDocument:
    """Lay out a normalized service report.

    Args:
        view: Complete view produced by the normalizer

    Returns:
        RenderedDocument ready for HTML conversion

    Raises:
        TypeError: if view is None
    """
    if view is None:
        raise TypeError("view must not be None")

    sections = _summary_sections(view)

    sections.append(
        Section(
            title="SECTIONS",
            tables=[
                Table(
                    title="CHECKLIST",
                    columns=["SECTIONS", "DESCRIPTION", "STATUS", "YES/NO - OK"],
                    rows=checklist_rows(view.checklist),
                    group_column=True,
                    css_class="sections-table",
                )
            ],
        )
    )

    sections.append(
        Section(
            title="OBSERVATIONS AND REMARKS",
            tables=[
                Table(
                    title="OBSERVATIONS",
                    columns=["#", "Observation"],
                    rows=[[str(i), text] for i, text in enumerate(view.observations, start=1)],
                )
            ],
        )
    )

    sections.append(
        Section(
            title="RECOMMENDED PARTS TO CHANGE",
            tables=[
                Table(
                    title="RECOMMENDED PARTS",
                    columns=["S. No.", "Part Name", "Part Number", "Qty", "Notes"],
                    rows=[
                        [f"{i}.", p.part_name, p.part_number, p.quantity, p.notes]
                        for i, p in enumerate(view.recommended_parts, start=1)
                    ],
                )
            ],
        )
    )

    sections.append(
        Section(
            title="IMAGE EVALUATION",
            tables=[
                Table(
                    title="IMAGE EVALUATION",
                    columns=["Image Evaluation", "OK - Yes/No"],
                    rows=[[row.label, row.value] for row in view.image_evaluation],
                )
            ],
        )
    )

    sections.append(_technical_section(view))

    sections.append(
        Section(
            title="COLOR MEASUREMENTS",
            side_by_side=True,
            tables=[
                Table(
                    title="MEASURED COLOR COORDINATES (MCGD)",
                    columns=["Test Pattern", "fL", "x", "y"],
                    rows=[[c.test_pattern, c.fl, c.x, c.y] for c in view.measured_color],
                ),
                Table(
                    title="CIE XYZ COLOR ACCURACY",
                    columns=["Test Pattern", "x", "y", "fL"],
                    rows=[[c.test_pattern, c.x, c.y, c.fl] for c in view.cie_color],
                ),
            ],
        )
    )

    screen = view.screen
    sections.append(
        Section(
            title="SCREEN INFORMATION IN METRES",
            tables=[
                Table(
                    title="SCREEN INFORMATION",
                    columns=["", "Height", "Width", "Gain"],
                    rows=[
                        [g.label, g.height, g.width, g.gain] for g in (screen.scope, screen.flat)
                    ],
                )
            ],
            fields=[
                FieldItem(label="Screen Make", value=screen.screen_make),
                FieldItem(label="Throw Distance", value=screen.throw_distance),
            ],
            field_columns=2,
        )
    )

    air = view.air_quality
    sections.append(
        Section(
            title="AIR POLLUTION LEVEL",
            tables=[
                Table(
                    title="AIR POLLUTION LEVEL",
                    columns=[
                        "Air Pollution Level",
                        "HCHO",
                        "TVOC",
                        "PM 1.0",
                        "PM 2.5",
                        "PM 10",
                        "Temperature C",
                        "Humidity %",
                    ],
                    rows=[
                        [
                            air.overall,
                            air.hcho,
                            air.tvoc,
                            air.pm1,
                            air.pm25,
                            air.pm10,
                            air.temperature,
                            air.humidity,
                        ]
                    ],
                )
            ],
        )
    )

    sections.append(
        Section(
            title="STATUS",
            css_class="status-section",
            fields=[
                FieldItem(label="LE Status During PM", value=view.le_status),
                FieldItem(label="AC Status", value=view.ac_status),
                FieldItem(label="Photos Before", value=view.photos_before),
                FieldItem(label="Photos After", value=view.photos_after),
            ],
        )
    )

    document = RenderedDocument(
        kind=ReportKind.SERVICE,
        title="Service Report",
        subtitle=(
            f"Projector Service Report - {view.report_type} done on Date - {view.report_date}"
        ),
        identifier=view.report_number,
        letterhead=build_letterhead(),
        header_fields=[
            FieldItem(label="Report", value=view.report_number),
            FieldItem(label="Type", value=view.report_type),
            FieldItem(label="Date", value=view.report_date),
        ],
        sections=sections,
        footer_notes=[FOOTER_NOTE],
    )
    logger.debug(
        "Rendered service report %s with %d sections", view.report_number, len(sections)
    )
    return document
