"""Card template constants and the deterministic text-wrap / vertical-flow layout.

All measurements here are logical units. The renderer multiplies them by its
resolution scale; nothing in this module depends on fonts actually installed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import TemplateError
from .models import PassInput

ELLIPSIS = "…"


@dataclass(frozen=True)
class Box:
    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h


@dataclass(frozen=True)
class TemplateConstants:
    name: str
    width: int
    height: Optional[int]  # None: canvas grows with content, no redistribution
    padding: int
    # left column
    logo_height: int
    logo_gap: int
    name_gap: int
    contact_gap: int
    # barcode box (top right)
    qr_size: int
    qr_border: int
    qr_padding: int
    qr_radius: int
    code_gap: int
    # title and detail rows
    title_gap: int
    title_line_height: int
    title_row_gap: int
    title_right_reserve: int
    row_gap: int
    footer_gap: int
    # font sizes
    font_welcome: int
    font_name: int
    font_sm: int
    font_xs: int
    font_title: int
    # average glyph width of the bold title font, relative to its size
    char_width_ratio: float = 0.62
    title_chars_per_line: Optional[int] = None
    title_max_lines: int = 6
    colors: Dict[str, str] = field(default_factory=lambda: {
        "background": "#ffffff",
        "border": "#e4e4e7",
        "text": "#18181b",
        "muted": "#52525b",
        "accent": "#ea580c",
    }, compare=False)

    def __post_init__(self) -> None:
        for f in fields(self):
            v = getattr(self, f.name)
            if isinstance(v, int) and not isinstance(v, bool) and v < 0:
                raise TemplateError(f"{f.name} must not be negative (got {v})")
        if self.width <= 0 or (self.height is not None and self.height <= 0):
            raise TemplateError("canvas size must be positive")
        if self.qr_size <= 0 or self.title_line_height <= 0:
            raise TemplateError("qr_size and title_line_height must be positive")
        if self.font_title <= 0 or self.char_width_ratio <= 0:
            raise TemplateError("font_title and char_width_ratio must be positive")
        if self.title_max_lines < 1:
            raise TemplateError("title_max_lines must be at least 1")
        if self.chars_per_line < 1:
            raise TemplateError("title area is too narrow for a single character")
        if self.height is not None and self.natural_height(1) > self.height:
            raise TemplateError(
                f"{self.name}: content needs {self.natural_height(1)} units, canvas is {self.height}")

    @property
    def qr_box_size(self) -> int:
        return self.qr_size + 2 * self.qr_padding + 2 * self.qr_border

    @property
    def title_max_width(self) -> int:
        return self.width - 2 * self.padding - self.title_right_reserve

    @property
    def chars_per_line(self) -> int:
        if self.title_chars_per_line:
            return self.title_chars_per_line
        return int(self.title_max_width / (self.font_title * self.char_width_ratio))

    @property
    def code_baseline(self) -> int:
        return self.padding + self.qr_box_size + self.code_gap + self.font_xs

    @property
    def title_baseline(self) -> int:
        return self.code_baseline + self.title_gap + self.font_title

    def natural_height(self, title_lines: int) -> int:
        """Height of the content with no redistributed space."""
        row1 = self.title_baseline + title_lines * self.title_line_height + self.title_row_gap
        row3 = row1 + 2 * (self.row_gap + self.font_sm)
        return row3 + self.footer_gap + self.font_xs + self.padding

    @property
    def max_title_lines(self) -> int:
        """Most wrapped title lines that still fit the fixed canvas."""
        if self.height is None:
            return self.title_max_lines
        fit = 1 + (self.height - self.natural_height(1)) // self.title_line_height
        return max(1, min(self.title_max_lines, fit))

    def with_overrides(self, overrides: Dict[str, Any]) -> "TemplateConstants":
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TemplateError(f"unknown template keys: {', '.join(sorted(unknown))}")
        return replace(self, **overrides)


# Canonical print card: 58mm x 40mm at one unit per 0.1mm
CARD_TEMPLATE = TemplateConstants(
    name="card",
    width=580,
    height=400,
    padding=16,
    logo_height=36,
    logo_gap=10,
    name_gap=4,
    contact_gap=8,
    qr_size=116,
    qr_border=2,
    qr_padding=4,
    qr_radius=4,
    code_gap=6,
    title_gap=14,
    title_line_height=20,
    title_row_gap=6,
    title_right_reserve=0,
    row_gap=6,
    footer_gap=12,
    font_welcome=14,
    font_name=18,
    font_sm=13,
    font_xs=11,
    font_title=16,
    title_max_lines=4,
)

# Legacy on-screen preview, as wide as the pass page; height follows content
SCREEN_TEMPLATE = TemplateConstants(
    name="screen",
    width=672,
    height=None,
    padding=20,
    logo_height=56,
    logo_gap=12,
    name_gap=4,
    contact_gap=8,
    qr_size=140,
    qr_border=2,
    qr_padding=4,
    qr_radius=4,
    code_gap=8,
    title_gap=38,
    title_line_height=20,
    title_row_gap=8,
    title_right_reserve=168,
    row_gap=8,
    footer_gap=16,
    font_welcome=16,
    font_name=20,
    font_sm=14,
    font_xs=12,
    font_title=16,
    title_chars_per_line=48,
    title_max_lines=6,
)

PRESETS: Dict[str, TemplateConstants] = {
    CARD_TEMPLATE.name: CARD_TEMPLATE,
    SCREEN_TEMPLATE.name: SCREEN_TEMPLATE,
}


def wrap_text(text: str, max_chars: int) -> List[str]:
    """Greedy whitespace wrap; words longer than ``max_chars`` are hard-split.

    Always returns at least one line (``[""]`` for blank input).
    """
    if max_chars < 1:
        raise ValueError("max_chars must be at least 1")
    words = text.split()
    if not words:
        return [""]
    lines: List[str] = []
    current = ""
    for word in words:
        if len(word) > max_chars:
            if current:
                lines.append(current)
                current = ""
            for i in range(0, len(word), max_chars):
                lines.append(word[i:i + max_chars])
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_chars:
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def truncate_lines(lines: List[str], max_lines: int, max_chars: int) -> Tuple[List[str], bool]:
    """Keep at most ``max_lines``; mark the cut with an ellipsis on the last kept line."""
    if len(lines) <= max_lines:
        return list(lines), False
    kept = list(lines[:max_lines])
    last = kept[-1].rstrip()
    if len(last) + len(ELLIPSIS) > max_chars:
        last = last[:max_chars - len(ELLIPSIS)].rstrip()
    kept[-1] = last + ELLIPSIS
    return kept, True


@dataclass(frozen=True)
class LayoutGeometry:
    width: int
    height: int
    title_lines: Tuple[str, ...]
    title_truncated: bool
    logo_box: Box
    welcome_y: int
    name_y: int
    mobile_y: int
    email_y: int
    qr_box: Box
    qr_image_box: Box
    code_x: int
    code_y: int
    title_x: int
    title_baseline: int
    title_line_height: int
    title_clip: Box
    label_x: int
    value_x: int
    row_baselines: Tuple[int, int, int]
    registered_baseline: int
    extra_space: int


def compute_layout(data: PassInput, template: TemplateConstants) -> LayoutGeometry:
    t = template
    lines, truncated = truncate_lines(wrap_text(data.event_name, t.chars_per_line),
                                      t.max_title_lines, t.chars_per_line)

    natural = t.natural_height(len(lines))
    if t.height is None:
        height, extra = natural, 0
    else:
        height, extra = t.height, t.height - natural
    # Spare height goes half after the title block, half before the footer
    after_title = extra // 2
    before_footer = extra - after_title

    box_w = t.qr_box_size
    qr_box = Box(t.width - t.padding - box_w, t.padding, box_w, box_w)
    inset = t.qr_padding + t.qr_border
    qr_image_box = Box(qr_box.x + inset, qr_box.y + inset, t.qr_size, t.qr_size)

    welcome_y = t.padding + t.logo_height + t.logo_gap + t.font_welcome
    name_y = welcome_y + t.name_gap + t.font_name
    mobile_y = name_y + t.contact_gap + t.font_sm
    email_y = mobile_y + t.font_sm

    title_block = len(lines) * t.title_line_height
    title_clip = Box(t.padding, t.title_baseline - t.font_title, t.title_max_width,
                     title_block + t.title_row_gap)

    row1 = t.title_baseline + title_block + t.title_row_gap + after_title
    row2 = row1 + t.row_gap + t.font_sm
    row3 = row2 + t.row_gap + t.font_sm
    registered = row3 + t.footer_gap + t.font_xs + before_footer

    return LayoutGeometry(
        width=t.width,
        height=height,
        title_lines=tuple(lines),
        title_truncated=truncated,
        logo_box=Box(t.padding, t.padding, qr_box.x - 2 * t.padding, t.logo_height),
        welcome_y=welcome_y,
        name_y=name_y,
        mobile_y=mobile_y,
        email_y=email_y,
        qr_box=qr_box,
        qr_image_box=qr_image_box,
        code_x=qr_box.x + box_w // 2,
        code_y=t.code_baseline,
        title_x=t.padding,
        title_baseline=t.title_baseline,
        title_line_height=t.title_line_height,
        title_clip=title_clip,
        label_x=t.padding,
        value_x=t.width - t.padding,
        row_baselines=(row1, row2, row3),
        registered_baseline=registered,
        extra_space=extra,
    )
