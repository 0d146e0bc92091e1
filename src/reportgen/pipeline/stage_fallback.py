"""Fallback Stage - Printable document for when rasterization fails.

Rebuilds the same laid-out document as standalone HTML (inline styles, an
auto-print script, no external references) and hands it to the platform's
print facility. No oversampled raster is produced, so the host paginates at
print time.
"""

import logging
import tempfile
import webbrowser
from datetime import date
from pathlib import Path
from typing import Optional, Protocol, Union

from reportgen.models import NormalizedView, RenderedDocument, SiteView
from reportgen.pipeline.stage_html import to_html
from reportgen.pipeline.stage_site_template import render_site
from reportgen.pipeline.stage_template import render

logger = logging.getLogger(__name__)


class PrintFacility(Protocol):
    """Native print facility of the host platform."""

    def print_document(self, html: str, title: str) -> None: ...


class BrowserPrintFacility:
    """Opens the printable document in the system browser.

    The document's inline script raises the print dialog on load. The file
    stays on disk for the browser to read; it is removed only when no browser
    could be started.
    """

    def __init__(self, directory: Union[str, Path, None] = None):
        self.directory = Path(directory) if directory else None

    def print_document(self, html: str, title: str) -> Path:
        if self.directory:
            self.directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            suffix=".html",
            prefix="report-",
            dir=self.directory,
            delete=False,
        ) as handle:
            handle.write(html)
            path = Path(handle.name)
        logger.info("Opening printable document %s (%s)", title, path)
        if not webbrowser.open(path.as_uri()):
            path.unlink(missing_ok=True)
            raise OSError(f"No browser available to print {title}")
        return path


def build_printable(
    source: Union[NormalizedView, SiteView, RenderedDocument],
    generated_on: Optional[date] = None,
) -> RenderedDocument:
    """Lay out a view for printing, reusing the document templates."""
    if source is None:
        raise TypeError("source must not be None")
    if isinstance(source, RenderedDocument):
        return source
    if isinstance(source, SiteView):
        return render_site(source, generated_on=generated_on)
    return render(source)


def render_printable(
    source: Union[NormalizedView, SiteView, RenderedDocument],
    print_facility: PrintFacility,
    generated_on: Optional[date] = None,
) -> str:
    """Build the printable document and hand it to the print facility.

    Returns:
        The standalone HTML that was printed
    """
    document = build_printable(source, generated_on)
    html = to_html(document, printable=True)
    title = f"{document.title} - {document.identifier}"
    print_facility.print_document(html, title)
    logger.debug("Printable fallback sent for %s (%d chars)", document.identifier, len(html))
    return html
