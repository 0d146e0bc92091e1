"""Export orchestration.

ReportExporter runs one report through the pipeline:

    normalize -> template -> html -> rasterize -> paginate -> save

A RasterizationError or AssemblyError on the primary path is turned into a
user decision (retry, printable fallback, or abort). The fallback is never
taken without asking. Only SaveError, ExportAborted and programmer errors
(a None record) leave the exporter.

Exports are serialized: the rasterizer owns one render surface at a time, so
concurrent callers on the same exporter wait their turn.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Protocol, Union

from reportgen.config import settings
from reportgen.exceptions import (
    AssemblyError,
    ExportAborted,
    RasterizationError,
    ReportExportError,
    SaveError,
)
from reportgen.models import (
    ExportChoice,
    ExportOutcome,
    NormalizedView,
    PaginatedArtifact,
    RenderedDocument,
    SiteView,
)
from reportgen.pipeline import (
    BrowserPrintFacility,
    Paginator,
    PrintFacility,
    Rasterizer,
    normalize,
    normalize_site,
    render,
    render_printable,
    render_site,
    to_html,
)

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """User-facing status messages (toasts, console lines)."""

    def notify(self, message: str, level: str = "info") -> None: ...


class ChoicePrompt(Protocol):
    """Asks the user what to do after a primary-path failure."""

    def choose(self, error: ReportExportError) -> ExportChoice: ...


class SaveTarget(Protocol):
    """Receives the finished artifact. Returns where it was stored."""

    def save(self, filename: str, data: bytes) -> str: ...


class LoggingNotifier:
    """Notifier that writes to the log."""

    LEVELS = {
        "info": logging.INFO,
        "success": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def notify(self, message: str, level: str = "info") -> None:
        logger.log(self.LEVELS.get(level, logging.INFO), message)


class FixedChoicePrompt:
    """Prompt with a preset answer, for non-interactive runs."""

    def __init__(self, choice: ExportChoice):
        self.choice = choice

    def choose(self, error: ReportExportError) -> ExportChoice:
        return self.choice


class DirectorySaveTarget:
    """Writes artifacts into a directory. Same name overwrites."""

    def __init__(self, output_dir: Union[str, Path] = None):
        self.output_dir = Path(output_dir or settings.output_dir)

    def save(self, filename: str, data: bytes) -> str:
        path = self.output_dir / filename
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise SaveError(
                f"Could not write {filename}: {exc}", {"path": str(path)}
            ) from exc
        return str(path)


@dataclass
class ExportResult:
    """Outcome of one export call."""

    outcome: ExportOutcome
    identifier: str
    filename: Optional[str] = None
    location: Optional[str] = None
    page_count: int = 0


class ReportExporter:
    """Runs reports through the export pipeline with a printable fallback.

    Exports on one instance run one at a time. PyMuPDF work from any instance
    is further serialized by the process-wide ``FITZ_LOCK``.
    """

    def __init__(
        self,
        prompt: ChoicePrompt = None,
        notifier: Notifier = None,
        save_target: SaveTarget = None,
        print_facility: PrintFacility = None,
        rasterizer: Rasterizer = None,
        paginator: Paginator = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize exporter.

        Args:
            prompt: Retry/fallback/abort decision maker (default: always abort)
            notifier: User-facing messages (default: log them)
            save_target: Artifact destination (default: settings.output_dir)
            print_facility: Native print dialog (default: system browser)
            rasterizer: Document capture stage
            paginator: Page slicing stage
            today: Date source for filenames and site report dates
        """
        self.prompt = prompt or FixedChoicePrompt(ExportChoice.ABORT)
        self.notifier = notifier or LoggingNotifier()
        self.save_target = save_target or DirectorySaveTarget()
        self.print_facility = print_facility or BrowserPrintFacility()
        self.rasterizer = rasterizer or Rasterizer()
        self.paginator = paginator or Paginator(today=today)
        self.today = today
        self._lock = asyncio.Lock()

    async def export_report(self, record: Any) -> ExportResult:
        """Export one service report record."""
        view = normalize(record, observation_rows=settings.observation_rows)
        return await self._export(render(view), view)

    async def export_site_report(self, site: Any, analytics: Any = None) -> ExportResult:
        """Export one site report."""
        view = normalize_site(site, analytics)
        return await self._export(render_site(view, generated_on=self.today()), view)

    async def export_many(self, records: Iterable[Any]) -> list[ExportResult]:
        """Export service reports one after another.

        Stops at the first SaveError or ExportAborted.
        """
        results = []
        for record in records:
            results.append(await self.export_report(record))
        return results

    async def _export(
        self, document: RenderedDocument, view: Union[NormalizedView, SiteView]
    ) -> ExportResult:
        async with self._lock:
            logger.info("Exporting %s report %s", document.kind.value, document.identifier)
            while True:
                try:
                    artifact = await self._primary(document)
                except (RasterizationError, AssemblyError) as exc:
                    logger.warning(
                        "Primary export of %s failed: %s", document.identifier, exc.message
                    )
                    choice = self.prompt.choose(exc)
                    if choice == ExportChoice.RETRY:
                        logger.info("Retrying export of %s", document.identifier)
                        continue
                    if choice == ExportChoice.FALLBACK:
                        return self._fallback(view, document)
                    logger.error("Export of %s aborted by user", document.identifier)
                    self.notifier.notify(
                        f"Failed to generate PDF for {document.identifier}", "error"
                    )
                    raise ExportAborted(
                        f"Export of {document.identifier} aborted",
                        {"identifier": document.identifier, "cause": exc.code},
                    ) from exc
                return await self._save(artifact, document)

    async def _primary(self, document: RenderedDocument) -> PaginatedArtifact:
        image = await self.rasterizer.rasterize(to_html(document))
        return await asyncio.to_thread(
            self.paginator.paginate,
            image,
            settings.page_width_mm,
            settings.page_height_mm,
            document.kind,
            document.identifier,
        )

    async def _save(self, artifact: PaginatedArtifact, document: RenderedDocument) -> ExportResult:
        try:
            location = await asyncio.to_thread(
                self.save_target.save, artifact.filename, artifact.pdf_bytes
            )
        except SaveError as exc:
            logger.error("Saving %s failed: %s", artifact.filename, exc.message)
            self.notifier.notify(f"Could not save {artifact.filename}", "error")
            raise

        logger.info("Saved %s (%d pages)", artifact.filename, artifact.page_count)
        self.notifier.notify(f"PDF exported: {artifact.filename}", "success")
        return ExportResult(
            outcome=ExportOutcome.SAVED,
            identifier=document.identifier,
            filename=artifact.filename,
            location=location,
            page_count=artifact.page_count,
        )

    def _fallback(
        self, view: Union[NormalizedView, SiteView], document: RenderedDocument
    ) -> ExportResult:
        try:
            render_printable(view, self.print_facility, generated_on=self.today())
        except Exception as exc:
            logger.error("Printable fallback for %s failed: %s", document.identifier, exc)
            self.notifier.notify(f"Could not open print dialog for {document.identifier}", "error")
            raise SaveError(
                f"Print hand-off failed: {exc}", {"identifier": document.identifier}
            ) from exc

        logger.info("Printable fallback opened for %s", document.identifier)
        self.notifier.notify(
            f"Opened printable report for {document.identifier}", "info"
        )
        return ExportResult(outcome=ExportOutcome.PRINTED, identifier=document.identifier)
