"""HTML Stage - Serialize a document tree to self-contained HTML.

One Jinja2 template serves both the rasterizer (plain HTML) and the printable
fallback (same markup plus an auto-print script). Styles are inlined so the
output has no external references.
"""

import logging
from functools import lru_cache

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from reportgen.models import RenderedDocument

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "document.html.j2"


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    """Shared template environment with HTML autoescaping."""
    return Environment(
        loader=PackageLoader("reportgen", "templates"),
        autoescape=select_autoescape(["html", "j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def to_html(document: RenderedDocument, printable: bool = False) -> str:
    """Render a document tree to an HTML string.

    Args:
        document: Laid-out document
        printable: Append a script that opens the print dialog on load

    Returns:
        Complete HTML document
    """
    if document is None:
        raise TypeError("document must not be None")
    template = get_environment().get_template(TEMPLATE_NAME)
    html = template.render(document=document, printable=printable)
    logger.debug(
        "Serialized %s (%d chars, printable=%s)", document.identifier, len(html), printable
    )
    return html
