"""Print export - paginated PDF from a live, laid-out display surface.

Unlike :mod:`mdpress.exporter`, printing cannot work from the AST: it needs
the final computed layout of an already rendered view.  That view is hidden
behind the :class:`DisplaySurface` protocol so the rest of the pipeline stays
testable without a browser.  :class:`BrowserSurface` adapts a Playwright page.

Printing is the one operation in the package that fails hard: every problem
is reported as :class:`PrintExportError`, never as an empty artifact.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Protocol, runtime_checkable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from mdpress.exporter import ExportArtifact

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PDF_FILENAME = "markdown-content.pdf"
PREVIEW_SELECTOR = ".markdown-preview"


class PrintExportError(RuntimeError):
    """The display surface could not be measured or printed."""


@dataclass(frozen=True)
class SurfaceLayout:
    """Size of the laid-out preview, in CSS pixels."""

    width: float
    height: float


@runtime_checkable
class DisplaySurface(Protocol):
    """A rendered view that can report its layout and print itself."""

    @property
    def is_open(self) -> bool: ...

    async def measure(self) -> SurfaceLayout: ...

    async def print_pdf(self) -> bytes: ...


# ---------------------------------------------------------------------------
# PrintExporter
# ---------------------------------------------------------------------------

class PrintExporter:
    """Turn a display surface into a PDF :class:`ExportArtifact`.

    One print may be in flight per surface; a second concurrent call for the
    same surface is rejected rather than queued.
    """

    def __init__(self) -> None:
        self._in_flight: set[int] = set()

    async def export(self, surface: DisplaySurface) -> ExportArtifact:
        if surface is None or not isinstance(surface, DisplaySurface):
            raise PrintExportError(f"invalid display surface handle: {surface!r}")
        key = id(surface)
        if key in self._in_flight:
            raise PrintExportError("a print is already in progress for this surface")
        self._in_flight.add(key)
        try:
            return await self._export(surface)
        finally:
            self._in_flight.discard(key)

    async def _export(self, surface: DisplaySurface) -> ExportArtifact:
        if not surface.is_open:
            raise PrintExportError("display surface is closed")

        try:
            layout = await surface.measure()
        except PrintExportError:
            raise
        except Exception as exc:
            raise PrintExportError(f"layout measurement failed: {exc}") from exc
        if layout.width <= 0:
            raise PrintExportError("display surface has no laid-out content")
        logger.debug("Surface laid out at %.0fx%.0f", layout.width, layout.height)

        try:
            data = await surface.print_pdf()
        except PrintExportError:
            raise
        except Exception as exc:
            raise PrintExportError(f"printing failed: {exc}") from exc
        if not data or not data.startswith(b"%PDF"):
            raise PrintExportError("display surface did not produce a PDF")

        logger.info("Exported PDF (%d bytes)", len(data))
        return ExportArtifact(data=data, filename=PDF_FILENAME, media_type=PDF_MEDIA_TYPE)


# ---------------------------------------------------------------------------
# Playwright surface
# ---------------------------------------------------------------------------

class BrowserSurface:
    """A :class:`DisplaySurface` backed by a Playwright page."""

    def __init__(
        self,
        page: Page,
        *,
        selector: str = PREVIEW_SELECTOR,
        page_format: str = "A4",
    ) -> None:
        self.page = page
        self.selector = selector
        self.page_format = page_format

    @property
    def is_open(self) -> bool:
        return not self.page.is_closed()

    async def measure(self) -> SurfaceLayout:
        await self.page.wait_for_load_state("load")
        handle = await self.page.query_selector(self.selector)
        if handle is None:
            raise PrintExportError(f"no element matches {self.selector!r}")
        box = await handle.bounding_box()
        if box is None:
            raise PrintExportError(f"{self.selector!r} is not displayed")
        return SurfaceLayout(width=box["width"], height=box["height"])

    async def print_pdf(self) -> bytes:
        return await self.page.pdf(
            format=self.page_format,
            print_background=True,
        )


@asynccontextmanager
async def open_browser_surface(
    document_html: str,
    *,
    selector: str = PREVIEW_SELECTOR,
) -> AsyncIterator[BrowserSurface]:
    """Load *document_html* into headless Chromium and yield its surface."""
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch()
        except PlaywrightError as exc:
            raise PrintExportError(f"could not launch browser: {exc}") from exc
        try:
            try:
                page = await browser.new_page()
                await page.set_content(document_html, wait_until="load")
            except PlaywrightError as exc:
                raise PrintExportError(f"could not load document: {exc}") from exc
            yield BrowserSurface(page, selector=selector)
        finally:
            await browser.close()
