"""Site Template Stage - Lay out the aggregate site report.

Shares the letterhead with the service report template, but its section set
(site statistics, projector analysis, RMA analysis, service history,
recommendations) has nothing in common with the service report layout.
"""

import logging
from datetime import date
from typing import Optional

from reportgen.models import (
    FieldItem,
    RenderedDocument,
    ReportKind,
    Section,
    SiteView,
    Table,
)
from reportgen.pipeline.stage_template import build_letterhead

logger = logging.getLogger(__name__)

FOOTER_NOTES = [
    "This report was generated automatically by the ASCOMP Site Management System",
    "For questions or support, contact: support@ascomp.com",
]


def rma_case_status(cases: int) -> str:
    if cases == 0:
        return "No Issues"
    return "Low" if cases < 5 else "High"


def resolution_status(days: float) -> str:
    if days < 7:
        return "Fast"
    return "Moderate" if days < 14 else "Slow"


def cost_status(cost: float) -> str:
    if cost < 1000:
        return "Low"
    return "Moderate" if cost < 5000 else "High"


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


def render_site(view: SiteView, generated_on: Optional[date] = None) -> RenderedDocument:
    """Lay out a site report.

    Args:
        view: Normalized site view
        generated_on: Report date (default: today)

    Raises:
        TypeError: if view is None
    """
    if view is None:
        raise TypeError("view must not be None")
    generated_on = generated_on or date.today()
    report_date = generated_on.isoformat()
    report_number = f"SITE-{view.site_code}-{generated_on:%Y%m%d}"

    all_active = view.active_projectors == view.total_projectors
    utilization = f"{view.utilization_percent:.1f}%"

    info = Section(
        title="SITE INFORMATION",
        css_class="info-box",
        fields=[
            FieldItem(label="Site Name", value=view.site_name),
            FieldItem(label="Site Code", value=view.site_code),
            FieldItem(label="Region", value=view.region),
            FieldItem(label="State", value=view.state),
            FieldItem(label="City", value=view.city),
            FieldItem(label="Address", value=view.address),
        ],
    )
    contact = Section(
        title="CONTACT DETAILS",
        css_class="info-box",
        fields=[
            FieldItem(label="Contact Person", value=view.contact_person),
            FieldItem(label="Phone", value=view.contact_phone),
            FieldItem(label="Email", value=view.contact_email),
            FieldItem(label="Report Date", value=report_date),
        ],
    )

    statistics = Section(
        title="SITE STATISTICS",
        tables=[
            Table(
                title="SITE STATISTICS",
                columns=["Metric", "Value", "Status", "Notes"],
                css_class="sections-table",
                rows=[
                    ["Total Projectors", str(view.total_projectors), "Active", "All projectors accounted for"],
                    [
                        "Active Projectors",
                        str(view.active_projectors),
                        "All Active" if all_active else "Some Inactive",
                        f"{utilization} utilization",
                    ],
                    ["Total Auditoriums", str(len(view.auditoriums)), "Operational", "All auditoriums functional"],
                    [
                        "RMA Cases",
                        str(view.rma_cases),
                        rma_case_status(view.rma_cases),
                        f"Average resolution: {_format_number(view.avg_resolution_days)} days",
                    ],
                    ["Service Visits", str(view.service_visits), "Regular", f"Last visit: {view.last_service_date}"],
                ],
            )
        ],
    )

    auditorium_rows = [[a.name, str(a.projector_count), a.status] for a in view.auditoriums]
    if not auditorium_rows:
        auditorium_rows = [["No auditorium data available", "-", "-"]]
    analysis = Section(
        title="PROJECTOR ANALYSIS",
        side_by_side=True,
        tables=[
            Table(
                title="AUDITORIUMS",
                columns=["Auditorium", "Projectors", "Status"],
                rows=auditorium_rows,
            ),
            Table(
                title="PROJECTOR METRICS",
                columns=["Metric", "Value"],
                rows=[
                    ["Total Projectors", str(view.total_projectors)],
                    ["Active Projectors", str(view.active_projectors)],
                    ["Utilization Rate", utilization],
                    ["Average per Auditorium", f"{view.projectors_per_auditorium:.1f}"],
                ],
            ),
        ],
    )

    rma = Section(
        title="RMA ANALYSIS",
        tables=[
            Table(
                title="RMA ANALYSIS",
                columns=["Metric", "Value", "Status", "Trend"],
                css_class="sections-table",
                rows=[
                    ["Total RMA Cases", str(view.rma_cases), rma_case_status(view.rma_cases), "Stable"],
                    [
                        "Average Resolution Time",
                        f"{_format_number(view.avg_resolution_days)} days",
                        resolution_status(view.avg_resolution_days),
                        "Improving",
                    ],
                    ["Total RMA Cost", f"${view.rma_cost:,.2f}", cost_status(view.rma_cost), "Controlled"],
                ],
            )
        ],
    )

    history = Section(
        title="SERVICE HISTORY",
        tables=[
            Table(
                title="SERVICE HISTORY",
                columns=["Service Type", "Date", "Engineer", "Status", "Notes"],
                css_class="sections-table",
                rows=[
                    ["Routine Maintenance", view.last_service_date, "FSE Engineer", "Completed", "All systems operational"],
                    ["Total Visits", str(view.service_visits), "Multiple", "Regular", "Consistent service schedule"],
                ],
            )
        ],
    )

    recommendations = Section(
        title="RECOMMENDATIONS",
        css_class="info-box",
        paragraphs=[f"• {text}" for text in view.recommendations],
    )

    document = RenderedDocument(
        kind=ReportKind.SITE,
        title="SITE ANALYSIS REPORT",
        subtitle="Comprehensive Site Performance and Analytics Report",
        identifier=view.site_code,
        letterhead=build_letterhead(),
        header_fields=[
            FieldItem(label="Report No", value=report_number),
            FieldItem(label="Report Type", value="Site Analysis"),
            FieldItem(label="Date", value=report_date),
        ],
        sections=[info, contact, statistics, analysis, rma, history, recommendations],
        footer_notes=list(FOOTER_NOTES),
    )
    logger.debug("Rendered site report %s", view.site_code)
    return document
