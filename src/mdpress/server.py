"""FastAPI web service for Markdown rendering and export.

Endpoints::

    GET  /              Web UI (single-page editor with live preview).
    GET  /health        Health check.
    GET  /styles        List available style presets.
    GET  /snippets      The Markdown snippet catalog.
    POST /render        Send raw Markdown, receive the rendered fragment.
    POST /export/html   Send raw Markdown, receive a standalone HTML file.
    POST /export/pdf    Send raw Markdown, receive a PDF printed by a browser.
    POST /convert       Upload a .md file and receive HTML or PDF back.

Run::

    uvicorn mdpress.server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any
from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, Response

from mdpress import __version__
from mdpress.converter import Converter
from mdpress.exporter import ExportArtifact
from mdpress.printing import PrintExportError
from mdpress.snippets import SNIPPETS
from mdpress.style_manager import StyleManager

logger = logging.getLogger(__name__)

app = FastAPI(
    title="mdpress",
    description="Markdown rendering and export service",
    version=__version__,
)


def _content_disposition(filename: str) -> str:
    """Build Content-Disposition header, RFC 5987 for non-ASCII names."""
    try:
        filename.encode("ascii")
        return f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        encoded = quote(filename)
        return f"attachment; filename*=UTF-8''{encoded}"


def _converter(style: str) -> Converter:
    try:
        return Converter(style_preset=style)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _artifact_response(artifact: ExportArtifact, filename: str | None = None) -> Response:
    return Response(
        content=artifact.data,
        media_type=artifact.media_type,
        headers={"Content-Disposition": _content_disposition(filename or artifact.filename)},
    )


async def _export(converter: Converter, markdown: str, fmt: str) -> ExportArtifact:
    if fmt == "html":
        return converter.export_html(markdown)
    if fmt == "pdf":
        try:
            return await converter.export_pdf(markdown)
        except PrintExportError as exc:
            logger.exception("PDF export failed")
            raise HTTPException(status_code=500, detail=f"PDF export failed: {exc}") from exc
    raise HTTPException(
        status_code=400,
        detail=f"Unknown format {fmt!r}. Choose from: {', '.join(Converter.FORMATS)}",
    )


_STATIC_DIR = Path(__file__).parent / "static"
try:
    _INDEX_HTML = (_STATIC_DIR / "index.html").read_text(encoding="utf-8")
except FileNotFoundError:
    _INDEX_HTML = "<html><body><h1>mdpress</h1><p>Web UI not found.</p></body></html>"


@app.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Serve the web UI."""
    return HTMLResponse(content=_INDEX_HTML)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.get("/styles")
async def list_styles() -> dict[str, list[str]]:
    """List available style presets."""
    return {"presets": StyleManager.PRESETS}


@app.get("/snippets")
async def list_snippets() -> dict[str, list[dict[str, Any]]]:
    """Return the snippet catalog."""
    return {"snippets": [asdict(s) for s in SNIPPETS]}


@app.post("/render", response_class=HTMLResponse)
async def render(markdown: str = Form("")) -> HTMLResponse:
    """Render Markdown to the sanitized preview fragment."""
    return HTMLResponse(content=_converter("default").render_html(markdown))


@app.post("/export/html")
async def export_html(
    markdown: str = Form(""),
    style: str = Form("default"),
) -> Response:
    """Send raw Markdown and receive a standalone HTML document.

    - **markdown**: Markdown source text
    - **style**: Style preset name
    """
    converter = _converter(style)
    return _artifact_response(await _export(converter, markdown, "html"))


@app.post("/export/pdf")
async def export_pdf(
    markdown: str = Form(""),
    style: str = Form("print"),
) -> Response:
    """Send raw Markdown and receive a PDF printed from the laid-out page.

    - **markdown**: Markdown source text
    - **style**: Style preset name
    """
    converter = _converter(style)
    return _artifact_response(await _export(converter, markdown, "pdf"))


@app.post("/convert")
async def convert_file(
    file: UploadFile = File(...),
    format: str = Form("html"),
    style: str = Form("default"),
    encoding: str = Form("utf-8"),
) -> Response:
    """Upload a Markdown file and receive the exported document back.

    - **file**: Markdown file (.md)
    - **format**: ``html`` or ``pdf``
    - **style**: Style preset name (default, preview, print)
    - **encoding**: Source file encoding
    """
    raw = await file.read()
    try:
        md_text = raw.decode(encoding)
    except (LookupError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=400, detail=f"Cannot decode upload: {exc}") from exc

    converter = _converter(style)
    artifact = await _export(converter, md_text, format)
    filename = (file.filename or "document.md").rsplit(".", 1)[0] + f".{format}"
    return _artifact_response(artifact, filename)
