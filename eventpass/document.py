from __future__ import annotations

import io
import logging
from typing import Tuple

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .exceptions import PackagingError
from .models import PackagedDocument, RenderedArtifact

logger = logging.getLogger(__name__)

PASS_WIDTH_MM = 58
PASS_HEIGHT_MM = 40
BORDER_WIDTH = 1  # points


def flatten_alpha(img: Image.Image, background: Tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """Composite over a solid background and drop the alpha channel.

    Some PDF viewers tint transparent image regions, so packaged passes never
    carry transparency.
    """
    if img.mode == "RGB":
        return img.copy()
    rgba = img.convert("RGBA")
    base = Image.new("RGBA", rgba.size, background + (255,))
    return Image.alpha_composite(base, rgba).convert("RGB")


def fit_centered(src_w: float, src_h: float, box_w: float, box_h: float) -> Tuple[float, float, float, float]:
    """Return (x, y, w, h) of the source scaled to fit the box, aspect kept, centred."""
    ratio = min(box_w / src_w, box_h / src_h)
    w, h = src_w * ratio, src_h * ratio
    return (box_w - w) / 2, (box_h - h) / 2, w, h


def package_as_document(artifact: RenderedArtifact,
                        width_mm: float = PASS_WIDTH_MM,
                        height_mm: float = PASS_HEIGHT_MM) -> PackagedDocument:
    """Place the pass on a single page of exactly ``width_mm`` x ``height_mm``."""
    if width_mm <= 0 or height_mm <= 0:
        raise PackagingError(f"invalid page size {width_mm}x{height_mm}mm")
    width_pt = width_mm * mm
    height_pt = height_mm * mm
    try:
        img = flatten_alpha(artifact.image())
        buf = io.BytesIO()
        # invariant: no timestamps or random document ids, so output is reproducible
        pdf = canvas.Canvas(buf, pagesize=(width_pt, height_pt), invariant=1)
        pdf.setTitle(f"Event pass {artifact.width}x{artifact.height}")
        x, y, w, h = fit_centered(img.width, img.height, width_pt, height_pt)
        pdf.drawImage(ImageReader(img), x, y, width=w, height=h)
        # Border at the exact page edge
        pdf.setLineWidth(BORDER_WIDTH)
        pdf.setStrokeColorRGB(0, 0, 0)
        pdf.rect(0, 0, width_pt, height_pt, stroke=1, fill=0)
        pdf.showPage()
        pdf.save()
    except (OSError, ValueError) as e:
        raise PackagingError(str(e)) from e
    logger.debug("Packaged %sx%s pass into %.2fx%.2fpt page", artifact.width, artifact.height, width_pt, height_pt)
    return PackagedDocument(pdf=buf.getvalue(), width_pt=width_pt, height_pt=height_pt)
