from __future__ import annotations

import io
import math
from enum import Enum
from typing import Any, Iterable, Mapping, NamedTuple

from loguru import logger

from pdf_layout import (
    DEFAULT_LAYOUT,
    ColumnBox,
    ColumnSpec,
    PageLayout,
    aligned_text_x,
    allocate_columns,
    normalize_columns,
    wrap_budget,
    wrap_cell_text,
)
from utils import encode_pdf_text, format_number, pdf_escape, to_text

PDF_HEADER = b"%PDF-1.3\n"
FONT_RESOURCE = "F1"

CATALOG_OBJ_NUM = 1
PAGES_OBJ_NUM = 2
FONT_OBJ_NUM = 3
FIRST_PAGE_OBJ_NUM = 4


class ContentStream:
    """Drawing instructions for a single page.

    Text operators open a text object on demand and graphics operators close
    it, so callers never emit BT/ET themselves. Text is positioned with an
    absolute text matrix for every string.
    """

    def __init__(self, layout: PageLayout = DEFAULT_LAYOUT) -> None:
        self._layout = layout
        self._ops: list[str] = []
        self._in_text = False
        self._font_size: float | None = None
        self._closed = False
        self._push(f"{format_number(layout.border_width)} w")
        self._push("0 0 0 RG")
        self._push("0 0 0 rg")

    def _push(self, op: str) -> None:
        if self._closed:
            raise RuntimeError("Content stream is already finalized.")
        self._ops.append(op)

    def _begin_text(self) -> None:
        if not self._in_text:
            self._push("BT")
            self._in_text = True

    def _end_text(self) -> None:
        if self._in_text:
            self._push("ET")
            self._in_text = False

    def set_font(self, size: float) -> None:
        self._begin_text()
        if size != self._font_size:
            self._push(f"/{FONT_RESOURCE} {format_number(size)} Tf")
            self._font_size = size

    def text(self, x: float, y: float, text: str, size: float) -> None:
        self.set_font(size)
        self._push(f"1 0 0 1 {format_number(x)} {format_number(y)} Tm ({pdf_escape(text)}) Tj")

    def bold_text(self, x: float, y: float, text: str, size: float) -> None:
        # Double strike stands in for a bold face; only Helvetica is embedded by reference.
        self.text(x, y, text, size)
        self.text(x + self._layout.bold_offset, y, text, size)

    def rect(self, x: float, y: float, width: float, height: float, fill: float | None = None) -> None:
        self._end_text()
        box = " ".join(format_number(v) for v in (x, y, width, height))
        if fill is not None:
            gray = format_number(fill)
            self._push(f"{gray} {gray} {gray} rg")
            self._push(f"{box} re f")
            self._push("0 0 0 rg")
        self._push(f"{box} re S")

    def vline(self, x: float, y_bottom: float, y_top: float) -> None:
        self._end_text()
        x_text = format_number(x)
        self._push(f"{x_text} {format_number(y_bottom)} m {x_text} {format_number(y_top)} l S")

    @property
    def operations(self) -> list[str]:
        return list(self._ops)

    def finalize(self) -> bytes:
        if not self._closed:
            self._end_text()
            self._closed = True
        return encode_pdf_text("\n".join(self._ops))


class PageState(Enum):
    OPEN = "open"
    CLOSED = "closed"


class TablePaginator:
    """Lays out table rows over as many pages as they need.

    Two states: OPEN while a page accepts drawing, CLOSED once its stream is
    finalized. Every page opened gets the header row; only the first gets
    the title.
    """

    def __init__(
        self,
        title: str,
        columns: list[ColumnSpec],
        boxes: list[ColumnBox],
        layout: PageLayout = DEFAULT_LAYOUT,
    ) -> None:
        self.title = title
        self.columns = columns
        self.boxes = boxes
        self.layout = layout
        self.budgets = [wrap_budget(box.width, layout.font_size, layout) for box in boxes]
        self.pages: list[bytes] = []
        self.state = PageState.CLOSED
        self._stream: ContentStream | None = None
        self._y = 0.0
        self._rows_on_page = 0

    @property
    def cursor_y(self) -> float:
        return self._y

    def start_page(self) -> None:
        if self.state is PageState.OPEN:
            raise RuntimeError("Cannot start a page while another is open.")
        layout = self.layout
        self._stream = ContentStream(layout)
        self._y = layout.page_height - layout.margin_top
        self._rows_on_page = 0
        if not self.pages:
            self._stream.text(layout.margin_x, self._y, to_text(self.title), layout.title_font_size)
            self._y -= layout.line_height * 2.2
        self.state = PageState.OPEN
        self._draw_header()

    def close_page(self) -> None:
        if self.state is not PageState.OPEN:
            raise RuntimeError("No open page to close.")
        self.pages.append(self._stream.finalize())
        self._stream = None
        self.state = PageState.CLOSED

    def ensure_room(self, row_height: float) -> None:
        if self.state is not PageState.OPEN:
            raise RuntimeError("No open page to draw on.")
        layout = self.layout
        lines_needed = math.ceil(row_height / layout.line_height) + 1
        min_y = layout.margin_bottom + lines_needed * layout.line_height
        # A row that does not fit an empty page is drawn anyway rather than looping.
        if self._y < min_y and self._rows_on_page:
            self.close_page()
            self.start_page()

    def _draw_separators(self, y_bottom: float, height: float) -> None:
        for box in self.boxes[1:]:
            self._stream.vline(box.left, y_bottom, y_bottom + height)

    def _draw_header(self) -> None:
        layout = self.layout
        stream = self._stream
        height = layout.line_height + layout.cell_padding * 2
        header_y = self._y - height

        stream.rect(layout.margin_x, header_y, layout.usable_width, height, fill=layout.header_fill)
        self._draw_separators(header_y, height)

        text_y = header_y + layout.cell_padding + layout.header_font_size
        for column, box in zip(self.columns, self.boxes):
            x = aligned_text_x(box, column.header, layout.header_font_size, column.align, layout)
            stream.bold_text(x, text_y, column.header, layout.header_font_size)
        self._y = header_y

    def wrap_row(self, row: Mapping[str, Any]) -> list[list[str]]:
        return [
            wrap_cell_text(to_text(row.get(column.key)), budget, self.layout.break_search_floor)
            for column, budget in zip(self.columns, self.budgets)
        ]

    def add_row(self, row: Mapping[str, Any]) -> None:
        layout = self.layout
        wrapped = self.wrap_row(row)
        row_lines = max(1, *(len(lines) for lines in wrapped))
        row_height = row_lines * layout.line_height + layout.cell_padding * 2

        self.ensure_room(row_height)

        stream = self._stream
        row_y = self._y - row_height
        stream.rect(layout.margin_x, row_y, layout.usable_width, row_height)
        self._draw_separators(row_y, row_height)

        for line_idx in range(row_lines):
            text_y = row_y + layout.cell_padding + layout.font_size + (row_lines - 1 - line_idx) * layout.line_height
            for column, box, lines in zip(self.columns, self.boxes, wrapped):
                if line_idx >= len(lines) or not lines[line_idx]:
                    continue
                text = lines[line_idx]
                x = aligned_text_x(box, text, layout.font_size, column.align, layout)
                stream.text(x, text_y, text, layout.font_size)

        self._y = row_y
        self._rows_on_page += 1

    def finish(self) -> list[bytes]:
        if self.state is PageState.OPEN:
            self.close_page()
        return self.pages


class PdfObject(NamedTuple):
    number: int
    body: bytes


def page_object_numbers(page_index: int) -> tuple[int, int]:
    """(page object, content object) numbers for a zero-based page index."""
    page_num = FIRST_PAGE_OBJ_NUM + page_index * 2
    return page_num, page_num + 1


def build_objects(page_streams: list[bytes], layout: PageLayout = DEFAULT_LAYOUT) -> list[PdfObject]:
    if not page_streams:
        raise ValueError("A document needs at least one page.")

    page_refs = " ".join(f"{page_object_numbers(i)[0]} 0 R" for i in range(len(page_streams)))
    objects = [
        PdfObject(CATALOG_OBJ_NUM, f"<< /Type /Catalog /Pages {PAGES_OBJ_NUM} 0 R >>".encode("ascii")),
        PdfObject(
            PAGES_OBJ_NUM,
            f"<< /Type /Pages /Count {len(page_streams)} /Kids [ {page_refs} ] >>".encode("ascii"),
        ),
        PdfObject(
            FONT_OBJ_NUM,
            b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
        ),
    ]

    media_box = f"[0 0 {format_number(layout.page_width)} {format_number(layout.page_height)}]"
    for i, stream in enumerate(page_streams):
        page_num, content_num = page_object_numbers(i)
        objects.append(
            PdfObject(
                page_num,
                (
                    f"<< /Type /Page /Parent {PAGES_OBJ_NUM} 0 R /MediaBox {media_box} "
                    f"/Resources << /Font << /{FONT_RESOURCE} {FONT_OBJ_NUM} 0 R >> >> "
                    f"/Contents {content_num} 0 R >>"
                ).encode("ascii"),
            )
        )
        objects.append(
            PdfObject(
                content_num,
                b"<< /Length %d >>\nstream\n%s\nendstream" % (len(stream), stream),
            )
        )
    return objects


def serialize_objects(objects: list[PdfObject]) -> bytes:
    """Write objects, xref table and trailer in one linear pass."""
    for expected, obj in enumerate(objects, start=1):
        if obj.number != expected:
            raise ValueError(f"Object {obj.number} is out of order; expected {expected}.")

    xref_positions = []
    output = io.BytesIO()
    output.write(PDF_HEADER)
    for obj in objects:
        xref_positions.append(output.tell())
        output.write(f"{obj.number} 0 obj\n".encode("ascii"))
        output.write(obj.body)
        output.write(b"\nendobj\n")
    xref_start = output.tell()
    output.write(b"xref\n")
    output.write(f"0 {len(objects) + 1}\n".encode("ascii"))
    output.write(b"0000000000 65535 f \n")
    for pos in xref_positions:
        output.write(f"{pos:010d} 00000 n \n".encode("ascii"))
    output.write(b"trailer\n")
    output.write(f"<< /Size {len(objects) + 1} /Root {CATALOG_OBJ_NUM} 0 R >>\n".encode("ascii"))
    output.write(b"startxref\n")
    output.write(f"{xref_start}\n".encode("ascii"))
    output.write(b"%%EOF\n")
    return output.getvalue()


def build_table_pdf(
    title: str,
    columns: Iterable[ColumnSpec | Mapping[str, Any]],
    rows: Iterable[Mapping[str, Any]],
    layout: PageLayout | None = None,
) -> bytes:
    """Render a titled, ruled table into a complete PDF document.

    Raises ValueError for an empty column list or an invalid layout.
    Cell values of any type are rendered via to_text.
    """
    layout = layout or DEFAULT_LAYOUT
    layout.validate()
    specs = normalize_columns(columns)
    boxes = allocate_columns(
        [spec.weight for spec in specs],
        layout.usable_width,
        origin=layout.margin_x,
        min_weight=layout.min_weight,
    )

    paginator = TablePaginator(title, specs, boxes, layout)
    paginator.start_page()
    row_count = 0
    for row in rows:
        paginator.add_row(row)
        row_count += 1
    pages = paginator.finish()

    data = serialize_objects(build_objects(pages, layout))
    logger.debug(
        f"Built table PDF '{title}': {row_count} rows, {len(pages)} page(s), {len(data)} bytes"
    )
    return data
