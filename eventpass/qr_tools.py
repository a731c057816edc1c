from __future__ import annotations

import io
import logging
from typing import Dict, Optional, Tuple

import cv2
import numpy as np
import qrcode
from qrcode.exceptions import DataOverflowError
from PIL import Image

from .codes import normalize_code
from .exceptions import BarcodeEncodingError

logger = logging.getLogger(__name__)

DISPLAY_QR_SIZE = 256
DEFAULT_MARGIN = 2
QR_CONTENT_TYPE = "image/png"
# A code's QR never changes, so the display image may be cached for a year
QR_CACHE_CONTROL = "public, max-age=31536000"


def encode_qr(payload: str, pixel_size: int, margin: int = DEFAULT_MARGIN) -> Image.Image:
    """Encode ``payload`` as a square RGB QR image of side ``pixel_size``.

    ``margin`` is the quiet zone in modules. Error correction level M keeps
    the symbol readable after light print or scan damage.
    """
    if not payload:
        raise BarcodeEncodingError(payload, "empty payload")
    if pixel_size <= 0:
        raise BarcodeEncodingError(payload, f"invalid size {pixel_size}")
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, box_size=1, border=margin)
    try:
        qr.add_data(payload)
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        raise BarcodeEncodingError(payload, str(e)) from e
    modules = qr.modules_count + 2 * margin
    if modules > pixel_size:
        raise BarcodeEncodingError(payload, f"{modules} modules do not fit in {pixel_size}px")
    # Render at the largest whole box size, then snap to the exact side
    qr.box_size = pixel_size // modules
    img = qr.make_image(fill_color="#000000", back_color="#FFFFFF").convert("RGB")
    if img.size != (pixel_size, pixel_size):
        img = img.resize((pixel_size, pixel_size), Image.Resampling.NEAREST)
    return img


def display_qr_png(code: str, size: int = DISPLAY_QR_SIZE, margin: int = DEFAULT_MARGIN) -> bytes:
    """PNG bytes of the standalone QR shown on the pass page."""
    img = encode_qr(code, size, margin)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def display_qr_response(code: str, size: int = DISPLAY_QR_SIZE, margin: int = DEFAULT_MARGIN) -> Tuple[bytes, Dict[str, str]]:
    """Body and headers for serving the display QR of ``code``."""
    headers = {"Content-Type": QR_CONTENT_TYPE, "Cache-Control": QR_CACHE_CONTROL}
    return display_qr_png(code, size, margin), headers


def decode_qr(image: Image.Image) -> Optional[str]:
    """Decode the first QR symbol found in ``image``; None when nothing is readable."""
    rgb = np.array(image.convert("RGB"))
    bgr = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
    detector = cv2.QRCodeDetector()
    data, points, _ = detector.detectAndDecode(bgr)
    if not data:
        logger.debug("No QR found in %sx%s image", image.width, image.height)
        return None
    return data


def scan_pass_code(image: Image.Image) -> Optional[str]:
    """Check-in scan: decode and normalise a pass code from a photo or pass image."""
    return normalize_code(decode_qr(image))
