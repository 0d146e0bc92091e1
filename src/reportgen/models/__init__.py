"""Models for the report export pipeline.

This module defines the Pydantic models that flow between the pipeline
stages:

- NormalizedView / SiteView: default-filled views of a loosely-typed record
- RenderedDocument: the laid-out document tree (sections, tables)
- RasterImage: the full-height bitmap of a rendered document
- PaginatedArtifact: the multi-page output file

Model Hierarchy:
- RenderedDocument → Sections → Tables / Fields
- PaginatedArtifact → PageSlices
"""

from .artifact import (
    PageSlice,
    PaginatedArtifact,
    RasterImage,
)
from .base import (
    BaseViewModel,
    ExportChoice,
    ExportOutcome,
    ReportKind,
)
from .document import (
    FieldItem,
    Letterhead,
    RenderedDocument,
    Section,
    Table,
)
from .view import (
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

__all__ = [
    # Base types
    "BaseViewModel",
    "ExportChoice",
    "ExportOutcome",
    "ReportKind",
    # Views
    "AirQuality",
    "Auditorium",
    "ChecklistGroup",
    "ChecklistItem",
    "ColorMeasurement",
    "EvaluationRow",
    "NormalizedView",
    "RecommendedPart",
    "ScreenGeometry",
    "ScreenInfo",
    "SiteView",
    "VoltageParameters",
    # Document
    "FieldItem",
    "Letterhead",
    "RenderedDocument",
    "Section",
    "Table",
    # Artifacts
    "PageSlice",
    "PaginatedArtifact",
    "RasterImage",
]
