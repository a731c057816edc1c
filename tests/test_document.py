import io

import pytest
from PIL import Image
from reportlab.lib.units import mm

from eventpass.document import fit_centered, flatten_alpha, package_as_document
from eventpass.exceptions import PackagingError
from eventpass.models import RenderedArtifact


def _artifact(img: Image.Image) -> RenderedArtifact:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return RenderedArtifact(png=buf.getvalue(), width=img.width, height=img.height)


def test_flatten_alpha_matches_white_backdrop() -> None:
    img = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
    img.putpixel((1, 1), (255, 0, 0, 128))
    img.putpixel((2, 2), (0, 0, 255, 255))
    flat = flatten_alpha(img)
    assert flat.mode == "RGB"
    expected = Image.alpha_composite(Image.new("RGBA", img.size, (255, 255, 255, 255)), img).convert("RGB")
    assert flat.tobytes() == expected.tobytes()
    assert flat.getpixel((0, 0)) == (255, 255, 255)
    assert flat.getpixel((2, 2)) == (0, 0, 255)


def test_flatten_alpha_handles_palette_and_rgb() -> None:
    rgb = Image.new("RGB", (2, 2), (1, 2, 3))
    assert flatten_alpha(rgb).tobytes() == rgb.tobytes()
    assert flatten_alpha(rgb.convert("P")).mode == "RGB"


@pytest.mark.parametrize(
    "src,box,expected",
    [
        ((1160, 800), (100.0, 50.0), (13.75, 0.0, 72.5, 50.0)),
        ((100, 100), (200.0, 100.0), (50.0, 0.0, 100.0, 100.0)),
        ((400, 100), (100.0, 100.0), (0.0, 37.5, 100.0, 25.0)),
    ],
)
def test_fit_centered(src, box, expected) -> None:
    assert fit_centered(*src, *box) == pytest.approx(expected)


def test_page_size_is_exact() -> None:
    doc = package_as_document(_artifact(Image.new("RGBA", (1160, 800), (255, 255, 255, 255))))
    assert doc.width_pt == 58 * mm
    assert doc.height_pt == 40 * mm
    assert doc.pdf.startswith(b"%PDF")
    assert b"/MediaBox" in doc.pdf


def test_packaging_is_deterministic() -> None:
    art = _artifact(Image.new("RGBA", (300, 200), (10, 20, 30, 200)))
    assert package_as_document(art).pdf == package_as_document(art).pdf


def test_transparent_artifact_has_no_soft_mask() -> None:
    doc = package_as_document(_artifact(Image.new("RGBA", (300, 200), (0, 0, 0, 0))))
    assert b"/SMask" not in doc.pdf


def test_custom_page_size() -> None:
    doc = package_as_document(_artifact(Image.new("RGB", (100, 100))), 85.6, 54)
    assert doc.width_pt == 85.6 * mm
    assert doc.height_pt == 54 * mm


def test_invalid_page_size() -> None:
    with pytest.raises(PackagingError):
        package_as_document(_artifact(Image.new("RGB", (10, 10))), 0, 40)


def test_corrupt_artifact_raises_packaging_error() -> None:
    with pytest.raises(PackagingError):
        package_as_document(RenderedArtifact(png=b"garbage", width=1, height=1))
