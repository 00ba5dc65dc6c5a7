from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, NamedTuple

ALIGNMENTS = ("left", "center", "right")

# Preferred wrap points for emails, names and URLs.
BREAK_CHARS = frozenset(" /-_@.")

RIGHT_ALIGN_HINTS = ("sales", "amount")
CENTER_ALIGN_HINTS = ("country", "status")


@dataclass(frozen=True)
class PageLayout:
    """Geometry and typography constants for a table document.

    Sizes are in PDF points. The glyph width factor and wrap ratio are
    calibrated approximations for Helvetica without real font metrics.
    """

    page_width: float = 595
    page_height: float = 842
    margin_x: float = 40
    margin_top: float = 46
    margin_bottom: float = 40
    title_font_size: float = 16
    font_size: float = 10
    header_font_size: float = 11
    line_height: float = 14
    cell_padding: float = 5
    border_width: float = 0.5
    header_fill: float = 0.92
    glyph_width_factor: float = 0.52
    wrap_ratio: float = 1.8
    min_wrap_chars: int = 8
    break_search_floor: float = 0.55
    bold_offset: float = 0.35
    min_weight: float = 0.1

    @property
    def usable_width(self) -> float:
        return self.page_width - self.margin_x * 2

    @property
    def usable_height(self) -> float:
        return self.page_height - self.margin_top - self.margin_bottom

    def validate(self) -> None:
        if self.page_width <= 0 or self.page_height <= 0:
            raise ValueError("Page dimensions must be greater than 0.")
        if min(self.margin_x, self.margin_top, self.margin_bottom) < 0:
            raise ValueError("Page margins cannot be negative.")
        if self.usable_width <= 0 or self.usable_height <= 0:
            raise ValueError("Margins leave no usable page area.")
        if self.font_size <= 0 or self.header_font_size <= 0 or self.title_font_size <= 0:
            raise ValueError("Font sizes must be greater than 0.")
        if self.line_height <= 0:
            raise ValueError("Line height must be greater than 0.")
        if self.min_weight <= 0:
            raise ValueError("Minimum column weight must be greater than 0.")


DEFAULT_LAYOUT = PageLayout()


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    header: str
    weight: float | None = None
    align: str | None = None


class ColumnBox(NamedTuple):
    left: float
    width: float

    @property
    def right(self) -> float:
        return self.left + self.width


def infer_alignment(key: str, header: str) -> str:
    """Pick an alignment from well-known column names."""
    key = key.lower()
    header = header.lower()
    if any(hint in key or hint in header for hint in RIGHT_ALIGN_HINTS):
        return "right"
    if any(hint in key or hint in header for hint in CENTER_ALIGN_HINTS):
        return "center"
    return "left"


def normalize_column(column: ColumnSpec | Mapping[str, Any]) -> ColumnSpec:
    if isinstance(column, Mapping):
        if "key" not in column:
            raise ValueError("Column is missing a key.")
        key = str(column["key"])
        column = ColumnSpec(
            key=key,
            header=str(column.get("header") or key),
            weight=column.get("weight"),
            align=column.get("align"),
        )

    weight = 1.0 if column.weight is None else float(column.weight)
    if not math.isfinite(weight):
        raise ValueError(f"Column '{column.key}' has a non-finite weight.")

    align = column.align
    if align is None:
        align = infer_alignment(str(column.key), column.header)
    elif align not in ALIGNMENTS:
        raise ValueError(f"Column '{column.key}' has unknown alignment '{align}'.")

    return ColumnSpec(key=column.key, header=column.header, weight=weight, align=align)


def normalize_columns(columns: Iterable[ColumnSpec | Mapping[str, Any]]) -> list[ColumnSpec]:
    normalized = [normalize_column(column) for column in columns]
    if not normalized:
        raise ValueError("At least one column is required.")
    return normalized


def estimate_text_width(text: str, font_size: float, factor: float = 0.52) -> float:
    return len(text) * font_size * factor


def allocate_columns(
    weights: list[float],
    usable_width: float,
    origin: float = 0.0,
    min_weight: float = 0.1,
) -> list[ColumnBox]:
    """Split usable_width proportionally to weights, left to right from origin."""
    if not weights:
        raise ValueError("At least one column is required.")
    if usable_width <= 0:
        raise ValueError("Usable width must be greater than 0.")

    clamped = [max(min_weight, weight) for weight in weights]
    total = sum(clamped)
    boxes = []
    left = origin
    for weight in clamped:
        width = usable_width * weight / total
        boxes.append(ColumnBox(left, width))
        left += width
    return boxes


def wrap_budget(column_width: float, font_size: float, layout: PageLayout = DEFAULT_LAYOUT) -> int:
    """Maximum characters per line that fit a column at font_size."""
    return max(layout.min_wrap_chars, math.floor(column_width / font_size * layout.wrap_ratio))


def wrap_cell_text(text: str, max_chars: int, search_floor: float = 0.55) -> list[str]:
    """Greedy wrap of text into lines of at most max_chars characters.

    Cuts after the last break character found between max_chars and
    search_floor * max_chars, else hard-cuts at max_chars. A space the cut
    lands on is dropped from the end of the line; nothing else is removed.
    """
    if max_chars < 1:
        raise ValueError("Line budget must be at least 1 character.")
    if len(text) <= max_chars:
        return [text]

    lines = []
    rest = text
    lowest = max(1, math.floor(max_chars * search_floor))
    while len(rest) > max_chars:
        cut = max_chars
        for end in range(max_chars, lowest - 1, -1):
            char = rest[end - 1]
            if char in BREAK_CHARS and not (char == " " and end == 1):
                cut = end
                break

        head, rest = rest[:cut], rest[cut:]
        if head.endswith(" "):
            head = head[:-1]
        lines.append(head)

    if rest:
        lines.append(rest)
    return lines


def aligned_text_x(
    box: ColumnBox,
    text: str,
    font_size: float,
    align: str,
    layout: PageLayout = DEFAULT_LAYOUT,
) -> float:
    """Left x for text inside box, never closer than the cell padding to the left edge."""
    padded_left = box.left + layout.cell_padding
    if align == "left":
        return padded_left
    text_width = estimate_text_width(text, font_size, layout.glyph_width_factor)
    if align == "center":
        x = box.left + (box.width - text_width) / 2
    else:
        x = box.right - layout.cell_padding - text_width
    return max(padded_left, x)
