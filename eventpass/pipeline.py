"""Registration record -> QR + card image -> 58mm x 40mm PDF.

The logo download is the only impure step and is kept apart from rendering:
:func:`render_pass` is deterministic given the logo bytes, while
:func:`generate_pass` fetches the logo and runs the whole chain.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

import requests

from .config import DEFAULT_LOGO_URL
from .document import PASS_HEIGHT_MM, PASS_WIDTH_MM, package_as_document
from .exceptions import PassError
from .layout import CARD_TEMPLATE, TemplateConstants, compute_layout
from .models import PassArtifacts, PassInput, RenderedArtifact
from .pending_queue import append_pending
from .qr_tools import DEFAULT_MARGIN, encode_qr
from .render import RENDER_SCALE, build_scene, load_logo, render, scene_to_svg

logger = logging.getLogger(__name__)

DEFAULT_LOGO_TIMEOUT = 5.0

LogoFetcher = Callable[[str, float], Optional[bytes]]


def fetch_logo(url: str, timeout: float = DEFAULT_LOGO_TIMEOUT) -> Optional[bytes]:
    """Download the organiser logo. Any failure returns None; the pass renders without it."""
    if not url:
        return None
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Logo fetch failed (%s): %s", url, e)
        return None
    return resp.content or None


def render_pass(data: PassInput,
                template: TemplateConstants = CARD_TEMPLATE,
                logo_bytes: Optional[bytes] = None) -> RenderedArtifact:
    layout = compute_layout(data, template)
    if layout.title_truncated:
        logger.info("Event name truncated to %d lines on pass %s", len(layout.title_lines), data.unique_code)
    barcode = encode_qr(data.unique_code, template.qr_size * RENDER_SCALE, DEFAULT_MARGIN)
    return render(data, layout, template, barcode, load_logo(logo_bytes))


def preview_svg(data: PassInput,
                template: TemplateConstants = CARD_TEMPLATE,
                logo_bytes: Optional[bytes] = None) -> str:
    """The same pass as :func:`render_pass`, as SVG text with embedded images."""
    layout = compute_layout(data, template)
    images = {"barcode": encode_qr(data.unique_code, template.qr_size * RENDER_SCALE, DEFAULT_MARGIN)}
    logo = load_logo(logo_bytes)
    if logo is not None:
        images["logo"] = logo
    return scene_to_svg(build_scene(data, layout, template), images)


def generate_pass(data: PassInput,
                  template: TemplateConstants = CARD_TEMPLATE,
                  logo_url: str = DEFAULT_LOGO_URL,
                  logo_timeout: float = DEFAULT_LOGO_TIMEOUT,
                  page_mm: Tuple[float, float] = (PASS_WIDTH_MM, PASS_HEIGHT_MM),
                  fetch: LogoFetcher = fetch_logo) -> PassArtifacts:
    """Render and package one pass.

    Encoding and rendering errors propagate. A packaging error only costs the
    PDF: the PNG is still returned so it can be delivered instead.
    """
    artifact = render_pass(data, template, fetch(logo_url, logo_timeout))
    try:
        document = package_as_document(artifact, *page_mm)
    except PassError as e:
        logger.warning("PDF packaging failed for %s, falling back to PNG: %s", data.unique_code, e)
        document = None
    return PassArtifacts(code=data.unique_code, artifact=artifact, document=document)


def pass_filename(code: str, ext: str) -> str:
    return f"event-pass-{code}.{ext}"


def attachments_for(artifacts: PassArtifacts) -> List[Tuple[str, bytes, str]]:
    """(filename, content, mimetype) tuples for the delivery collaborator."""
    if artifacts.document is not None:
        return [(pass_filename(artifacts.code, "pdf"), artifacts.document.pdf, "application/pdf")]
    return [(pass_filename(artifacts.code, "png"), artifacts.artifact.png, "image/png")]


def safe_generate_pass(data: PassInput,
                       queue_path: Optional[Path] = None,
                       **kwargs) -> Optional[PassArtifacts]:
    """Like :func:`generate_pass` but never raises.

    Used after the registration is stored: a failed pass must not undo it, so
    the failure is logged and the registration is queued for a later retry.
    """
    try:
        return generate_pass(data, **kwargs)
    except Exception as e:
        logger.exception("Pass generation failed for %s", data.unique_code)
        try:
            append_pending(data, error=str(e), path=queue_path)
        except OSError as qe:
            logger.error("Could not queue %s for retry: %s", data.unique_code, qe)
        return None


def write_artifacts(artifacts: PassArtifacts, out_dir: str | Path) -> List[Path]:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    written = []
    png_path = out / pass_filename(artifacts.code, "png")
    png_path.write_bytes(artifacts.artifact.png)
    written.append(png_path)
    if artifacts.document is not None:
        pdf_path = out / pass_filename(artifacts.code, "pdf")
        pdf_path.write_bytes(artifacts.document.pdf)
        written.append(pdf_path)
    return written


def generate_passes(inputs: Iterable[PassInput],
                    out_dir: str | Path,
                    template: TemplateConstants = CARD_TEMPLATE,
                    logo_url: str = DEFAULT_LOGO_URL,
                    logo_timeout: float = DEFAULT_LOGO_TIMEOUT,
                    page_mm: Tuple[float, float] = (PASS_WIDTH_MM, PASS_HEIGHT_MM),
                    fetch: LogoFetcher = fetch_logo,
                    queue_path: Optional[Path] = None,
                    svg: bool = False) -> int:
    """Render every registration into ``out_dir``; returns how many passes were written.

    With ``svg`` an ``event-pass-<code>.svg`` preview is written next to each pass.
    """
    # One download for the whole batch
    logo_bytes = fetch(logo_url, logo_timeout)
    count = 0
    for data in inputs:
        result = safe_generate_pass(data, queue_path=queue_path, template=template,
                                    page_mm=page_mm, fetch=lambda _u, _t: logo_bytes)
        if result is None:
            continue
        written = write_artifacts(result, out_dir)
        if svg:
            svg_path = written[0].with_name(pass_filename(result.code, "svg"))
            svg_path.write_text(preview_svg(data, template, logo_bytes), encoding="utf-8")
        count += 1
    return count
