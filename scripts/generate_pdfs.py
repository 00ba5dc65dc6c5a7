#!/usr/bin/env python3
"""Render a JSON table description to a PDF file.

Usage:
    python scripts/generate_pdfs.py <table.json> [output.pdf]

The JSON file holds "title", "columns" (key, header, optional weight and
align) and "rows" (objects keyed by column key). Without an output path the
PDF is written next to the input, named after the title.
"""

import json
import os
import sys
from pathlib import Path

from loguru import logger

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from table_pdf import build_table_pdf  # noqa: E402
from utils import export_filename  # noqa: E402


def configure_logging() -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=os.environ.get("TABLE_PDF_LOG_LEVEL", "INFO").upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
    )


def load_table_spec(json_path: Path) -> dict:
    data = json.loads(json_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Table file must contain a JSON object.")
    return {
        "title": data.get("title") or json_path.stem,
        "columns": data.get("columns") or [],
        "rows": data.get("rows") or [],
    }


def generate_pdf(json_path: Path, pdf_path: Path | None = None) -> Path:
    table = load_table_spec(json_path)
    pdf_bytes = build_table_pdf(table["title"], table["columns"], table["rows"])
    if pdf_path is None:
        pdf_path = json_path.with_name(export_filename(table["title"], ".pdf"))
    pdf_path.write_bytes(pdf_bytes)
    pages = pdf_bytes.count(b"/Type /Page ")
    logger.info(f"Generated {pdf_path.name} ({pages} page{'s' if pages > 1 else ''})")
    return pdf_path


def main(argv: list[str]) -> int:
    configure_logging()
    if len(argv) not in (2, 3):
        print("Usage: python scripts/generate_pdfs.py <table.json> [output.pdf]")
        return 1

    json_path = Path(argv[1])
    pdf_path = Path(argv[2]) if len(argv) == 3 else None
    try:
        generate_pdf(json_path, pdf_path)
    except ValueError as exc:
        logger.error(f"Cannot render {json_path.name}: {exc}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
