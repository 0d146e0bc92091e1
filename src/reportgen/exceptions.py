"""
Exception hierarchy for the report export pipeline.

Error classes:
- MissingDataError: declared for completeness; the normalizer absorbs missing data
- RasterizationError: the off-screen capture failed (layout, memory, encoding)
- AssemblyError: slicing the raster into pages failed (e.g. zero-size image)
- SaveError: handing the finished artifact to the save target failed
- ExportAborted: the user declined the printable fallback after a primary-path failure

Only SaveError and ExportAborted leave ReportExporter; rasterization and
assembly failures are converted into the fallback decision one layer up.
"""

from typing import Any, Dict, Optional

__all__ = [
    "ReportExportError",
    "MissingDataError",
    "RasterizationError",
    "AssemblyError",
    "SaveError",
    "ExportAborted",
]


class ReportExportError(Exception):
    """
    Base exception for all export pipeline errors.

    Carries a stable ``code`` plus a human-readable message and a details
    dictionary so the CLI and notifiers can report failures uniformly.
    """

    code: str = "EXPORT_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a dictionary."""
        return {"code": self.code, "message": self.message, "details": self.details}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class MissingDataError(ReportExportError):
    """Report data is missing. Never raised: the normalizer falls back instead."""

    code = "MISSING_DATA"


class RasterizationError(ReportExportError):
    """The rendered document could not be captured as a bitmap."""

    code = "RASTERIZATION_FAILED"


class AssemblyError(ReportExportError):
    """The raster could not be sliced and assembled into pages."""

    code = "ASSEMBLY_FAILED"


class SaveError(ReportExportError):
    """The artifact could not be handed to the save target."""

    code = "SAVE_FAILED"


class ExportAborted(ReportExportError):
    """The primary path failed and the user declined the printable fallback."""

    code = "EXPORT_ABORTED"
