from __future__ import annotations

from pdf_layout import ColumnSpec


def clean_headers(headers: list[str]) -> list[tuple[int, str]]:
    """Indices and names of non-empty, first-seen headers."""
    seen = set()
    valid = []
    for i, header in enumerate(headers):
        header = (header or "").strip()
        if header and header not in seen:
            seen.add(header)
            valid.append((i, header))
    return valid


def records_from_values(values: list[list[str]]) -> list[dict]:
    if not values:
        return []
    headers = clean_headers(values[0])
    records = []
    for row in values[1:]:
        records.append({header: row[idx] if idx < len(row) else "" for idx, header in headers})
    return records


def columns_from_headers(headers: list[str]) -> list[ColumnSpec]:
    return [ColumnSpec(key=header, header=header) for _, header in clean_headers(headers)]


def load_table(sheet, tab_name: str) -> tuple[list[ColumnSpec], list[dict]]:
    """Read a worksheet tab as (columns, rows).

    `sheet` is a gspread Spreadsheet; the first row of the tab is the header row.
    """
    worksheet = sheet.worksheet(tab_name)
    values = worksheet.get_all_values()
    if not values:
        return [], []
    return columns_from_headers(values[0]), records_from_values(values)
