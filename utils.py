from __future__ import annotations

import re
from datetime import date, datetime

PDF_TEXT_ENCODING = "cp1252"

_CONTROL_CHARS = re.compile(r"[\r\n\t]")
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def to_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        text = value
    elif isinstance(value, (datetime, date)):
        text = value.isoformat()
    else:
        text = str(value)
    return _CONTROL_CHARS.sub(" ", text)


def pdf_escape(text: str) -> str:
    return text.replace("\\", r"\\").replace("(", r"\(").replace(")", r"\)")


def encode_pdf_text(text: str) -> bytes:
    """Encode for the WinAnsi-encoded Helvetica font; unmappable characters become '?'."""
    return text.encode(PDF_TEXT_ENCODING, errors="replace")


def format_number(value: float) -> str:
    """Format a PDF operand: two decimals, trailing zeros stripped."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def export_filename(title: str, extension: str = ".pdf") -> str:
    slug = _NON_SLUG_CHARS.sub("_", (title or "").lower()).strip("_")
    if not extension.startswith("."):
        extension = f".{extension}"
    return f"{slug or 'table'}{extension}"
