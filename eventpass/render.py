from __future__ import annotations

import base64
import html
import io
import logging
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from .exceptions import RenderError
from .formatting import format_event_datetime, format_registered, or_placeholder
from .layout import Box, LayoutGeometry, TemplateConstants
from .models import PassInput, RenderedArtifact

logger = logging.getLogger(__name__)

# Output pixels per logical template unit; fixed so prints stay sharp
RENDER_SCALE = 2


# ===== Drawing primitives =====
@dataclass(frozen=True)
class RectOp:
    box: Box
    stroke: Optional[str]
    stroke_width: int = 1
    fill: Optional[str] = None
    radius: int = 0


@dataclass(frozen=True)
class TextOp:
    x: int
    y: int  # baseline
    text: str
    size: int
    color: str
    bold: bool = False
    mono: bool = False
    anchor: str = "start"  # start, middle, end


@dataclass(frozen=True)
class ClipOp:
    box: Box
    children: Tuple[TextOp, ...]


@dataclass(frozen=True)
class ImageSlot:
    box: Box
    role: str  # "logo" or "barcode"


Op = Union[RectOp, TextOp, ClipOp, ImageSlot]


@dataclass(frozen=True)
class Scene:
    width: int
    height: int
    ops: Tuple[Op, ...]


_WS = re.compile(r"\s+")


def clean_text(s: str) -> str:
    """Collapse whitespace and drop control characters so a field stays on one line."""
    s = "".join(ch for ch in s if ch.isprintable() or ch.isspace())
    return _WS.sub(" ", s).strip()


def escape_markup(s: str) -> str:
    """Escape a user-supplied string for embedding in SVG/XML text or attributes."""
    return html.escape(s, quote=True)


def build_scene(data: PassInput, layout: LayoutGeometry, template: TemplateConstants) -> Scene:
    t = template
    c = t.colors
    text = c["text"]
    ops: List[Op] = [
        RectOp(Box(0, 0, layout.width, layout.height), stroke=c["border"], fill=c["background"]),
        ImageSlot(layout.logo_box, "logo"),
        TextOp(layout.label_x, layout.welcome_y, "Welcome,", t.font_welcome, text),
        TextOp(layout.label_x, layout.name_y, clean_text(data.full_name), t.font_name, text, bold=True),
        TextOp(layout.label_x, layout.mobile_y, or_placeholder(clean_text(data.mobile_number)), t.font_sm, text),
        TextOp(layout.label_x, layout.email_y, clean_text(data.email), t.font_sm, text),
        RectOp(layout.qr_box, stroke=c["accent"], stroke_width=t.qr_border, radius=t.qr_radius),
        ImageSlot(layout.qr_image_box, "barcode"),
        TextOp(layout.code_x, layout.code_y, data.unique_code, t.font_xs, text,
               bold=True, mono=True, anchor="middle"),
    ]

    title_runs = tuple(
        TextOp(layout.title_x, layout.title_baseline + i * layout.title_line_height, line,
               t.font_title, text, bold=True)
        for i, line in enumerate(layout.title_lines)
    )
    ops.append(ClipOp(layout.title_clip, title_runs))

    rows = [
        ("Start Date", format_event_datetime(data.event_start)),
        ("End Date", format_event_datetime(data.event_end)),
        ("Venue", or_placeholder(clean_text(data.venue))),
    ]
    for (label, value), y in zip(rows, layout.row_baselines):
        ops.append(TextOp(layout.label_x, y, label, t.font_sm, text))
        ops.append(TextOp(layout.value_x, y, value, t.font_sm, text, anchor="end"))

    ops.append(TextOp(layout.label_x, layout.registered_baseline,
                      f"Registered Date – {format_registered(data.registered_at)}", t.font_xs, c["muted"]))
    return Scene(layout.width, layout.height, tuple(ops))


# ===== SVG backend =====
def _svg_text(op: TextOp) -> str:
    family = "Courier, monospace" if op.mono else "Arial, sans-serif"
    weight = ' font-weight="bold"' if op.bold else ""
    anchor = f' text-anchor="{op.anchor}"' if op.anchor != "start" else ""
    return (f'<text x="{op.x}" y="{op.y}" font-family="{family}" font-size="{op.size}"{weight}'
            f' fill="{op.color}"{anchor}>{escape_markup(op.text)}</text>')


def _data_uri(img: Image.Image) -> str:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def scene_to_svg(scene: Scene, images: Optional[Dict[str, Image.Image]] = None) -> str:
    """Serialise a scene as standalone SVG, e.g. for a browser preview of the pass."""
    images = images or {}
    defs: List[str] = []
    body: List[str] = []
    for op in scene.ops:
        if isinstance(op, RectOp):
            b = op.box
            rx = f' rx="{op.radius}" ry="{op.radius}"' if op.radius else ""
            body.append(f'<rect x="{b.x}" y="{b.y}" width="{b.w}" height="{b.h}"{rx}'
                        f' fill="{op.fill or "none"}" stroke="{op.stroke or "none"}"'
                        f' stroke-width="{op.stroke_width}"/>')
        elif isinstance(op, TextOp):
            body.append(_svg_text(op))
        elif isinstance(op, ClipOp):
            cid = f"clip{len(defs)}"
            b = op.box
            defs.append(f'<clipPath id="{cid}"><rect x="{b.x}" y="{b.y}" width="{b.w}" height="{b.h}"/></clipPath>')
            inner = "".join(_svg_text(ch) for ch in op.children)
            body.append(f'<g clip-path="url(#{cid})">{inner}</g>')
        elif isinstance(op, ImageSlot):
            img = images.get(op.role)
            if img is None:
                continue
            b = op.box
            body.append(f'<image x="{b.x}" y="{b.y}" width="{b.w}" height="{b.h}"'
                        f' preserveAspectRatio="xMinYMin meet" href="{_data_uri(img)}"/>')
    return (f'<svg xmlns="http://www.w3.org/2000/svg" width="{scene.width}" height="{scene.height}"'
            f' viewBox="0 0 {scene.width} {scene.height}"><defs>{"".join(defs)}</defs>{"".join(body)}</svg>')


# ===== Raster backend (Pillow) =====
_FONT_FILES: Dict[Tuple[bool, bool], List[str]] = {
    # (mono, bold)
    (False, False): ["DejaVuSans.ttf", "Arial.ttf", "arial.ttf", "LiberationSans-Regular.ttf"],
    (False, True): ["DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf", "LiberationSans-Bold.ttf"],
    (True, False): ["DejaVuSansMono.ttf", "Courier New.ttf", "cour.ttf", "LiberationMono-Regular.ttf"],
    (True, True): ["DejaVuSansMono-Bold.ttf", "Courier New Bold.ttf", "courbd.ttf", "LiberationMono-Bold.ttf"],
}


def _font_dirs() -> List[Path]:
    if os.name == 'nt':
        return [Path(os.environ.get('WINDIR', 'C:/Windows')) / 'Fonts']
    return [
        Path('/usr/share/fonts'),
        Path('/usr/local/share/fonts'),
        Path.home() / '.fonts',
        Path('/Library/Fonts'),
        Path('/System/Library/Fonts'),
    ]


@lru_cache(maxsize=None)
def _find_font_file(mono: bool, bold: bool) -> Optional[str]:
    wanted = _FONT_FILES[(mono, bold)]
    for root in _font_dirs():
        if not root.exists():
            continue
        for name in wanted:
            hits = sorted(root.rglob(name))
            if hits:
                return str(hits[0])
    return None


@lru_cache(maxsize=None)
def get_font(size: int, bold: bool = False, mono: bool = False) -> ImageFont.FreeTypeFont:
    path = _find_font_file(mono, bold)
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError as e:
            logger.warning("Failed to load font %s: %s", path, e)
    # Pillow's bundled scalable font
    return ImageFont.load_default(size=size)


_ANCHORS = {"start": "ls", "middle": "ms", "end": "rs"}


def _draw_text(draw: ImageDraw.ImageDraw, op: TextOp, scale: int, dx: int = 0, dy: int = 0) -> None:
    font = get_font(op.size * scale, bold=op.bold, mono=op.mono)
    draw.text((op.x * scale - dx, op.y * scale - dy), op.text, font=font,
              fill=op.color, anchor=_ANCHORS[op.anchor])


def _scaled(b: Box, scale: int) -> Box:
    return Box(b.x * scale, b.y * scale, b.w * scale, b.h * scale)


def _place_logo(canvas: Image.Image, logo: Image.Image, box: Box) -> None:
    # Fit to the box height, never wider than the left column
    ratio = min(box.h / logo.height, box.w / logo.width)
    size = (max(1, round(logo.width * ratio)), max(1, round(logo.height * ratio)))
    resized = logo.convert("RGBA").resize(size, Image.Resampling.LANCZOS)
    canvas.alpha_composite(resized, dest=(box.x, box.y))


def rasterize(scene: Scene, images: Dict[str, Optional[Image.Image]], scale: int = RENDER_SCALE) -> Image.Image:
    canvas = Image.new("RGBA", (scene.width * scale, scene.height * scale), (255, 255, 255, 0))
    draw = ImageDraw.Draw(canvas)
    for op in scene.ops:
        if isinstance(op, RectOp):
            b = _scaled(op.box, scale)
            xy = (b.x, b.y, b.right - 1, b.bottom - 1)
            width = op.stroke_width * scale if op.stroke else 0
            if op.radius:
                draw.rounded_rectangle(xy, radius=op.radius * scale, fill=op.fill,
                                       outline=op.stroke, width=width)
            else:
                draw.rectangle(xy, fill=op.fill, outline=op.stroke, width=width)
        elif isinstance(op, TextOp):
            _draw_text(draw, op, scale)
        elif isinstance(op, ClipOp):
            b = _scaled(op.box, scale)
            if b.w <= 0 or b.h <= 0:
                continue
            # Text is drawn on a layer the size of the clip, so overflow is cut off
            layer = Image.new("RGBA", (b.w, b.h), (0, 0, 0, 0))
            layer_draw = ImageDraw.Draw(layer)
            for child in op.children:
                _draw_text(layer_draw, child, scale, dx=b.x, dy=b.y)
            canvas.alpha_composite(layer, dest=(b.x, b.y))
        elif isinstance(op, ImageSlot):
            img = images.get(op.role)
            if img is None:
                continue
            b = _scaled(op.box, scale)
            if op.role == "logo":
                _place_logo(canvas, img, b)
            else:
                sub = img.convert("RGBA")
                if sub.size != (b.w, b.h):
                    sub = sub.resize((b.w, b.h), Image.Resampling.NEAREST)
                canvas.alpha_composite(sub, dest=(b.x, b.y))
    return canvas


def load_logo(data: Optional[bytes]) -> Optional[Image.Image]:
    """Decode logo bytes; undecodable data is dropped so the pass still renders."""
    if not data:
        return None
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        return img
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable logo (%d bytes): %s", len(data), e)
        return None


def render(data: PassInput,
           layout: LayoutGeometry,
           template: TemplateConstants,
           barcode: Image.Image,
           logo: Optional[Image.Image] = None) -> RenderedArtifact:
    """Compose the pass as a PNG. Pure: output depends only on the arguments."""
    scene = build_scene(data, layout, template)
    try:
        img = rasterize(scene, {"logo": logo, "barcode": barcode})
        buf = io.BytesIO()
        img.save(buf, format="PNG", compress_level=6)
    except (OSError, ValueError) as e:
        raise RenderError(f"failed to rasterize pass {data.unique_code}: {e}") from e
    return RenderedArtifact(png=buf.getvalue(), width=img.width, height=img.height)
