"""Report export pipeline stages.

Stages run strictly in order, each consuming the previous stage's output:
1. Normalize: loosely-typed record -> NormalizedView / SiteView
2. Template: view -> RenderedDocument (service and site variants)
3. HTML: RenderedDocument -> self-contained HTML
4. Raster: HTML -> full-height RasterImage
5. Paginate: RasterImage -> PaginatedArtifact (multi-page PDF)
6. Fallback: view -> printable HTML for the native print dialog
"""

from .stage_fallback import BrowserPrintFacility, PrintFacility, render_printable
from .stage_html import to_html
from .stage_normalize import normalize, normalize_site
from .stage_paginate import Paginator, build_filename, plan_pages
from .stage_raster import Rasterizer, RenderSurface, render_surface
from .stage_site_template import render_site
from .stage_template import render

__all__ = [
    "normalize",
    "normalize_site",
    "render",
    "render_site",
    "to_html",
    "Rasterizer",
    "RenderSurface",
    "render_surface",
    "Paginator",
    "build_filename",
    "plan_pages",
    "BrowserPrintFacility",
    "PrintFacility",
    "render_printable",
]
