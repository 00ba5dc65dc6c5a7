import math

import pytest

from pdf_layout import (
    DEFAULT_LAYOUT,
    ColumnBox,
    ColumnSpec,
    PageLayout,
    aligned_text_x,
    allocate_columns,
    estimate_text_width,
    infer_alignment,
    normalize_column,
    normalize_columns,
    wrap_budget,
    wrap_cell_text,
)


def rejoin(lines: list[str], original: str) -> str:
    text = lines[0]
    for line in lines[1:]:
        text += line if original.startswith(text + line) else " " + line
    return text


def test_estimate_text_width():
    assert estimate_text_width("", 10) == 0
    assert pytest.approx(estimate_text_width("abc", 10), 0.001) == 15.6
    assert estimate_text_width("abcd", 10) > estimate_text_width("abc", 10)
    assert estimate_text_width("abc", 12) > estimate_text_width("abc", 10)


def test_allocate_columns_sums_to_usable_width():
    for weights in ([1], [2, 3, 1], [0.5, 0.5, 7, 1.25], [1] * 12):
        boxes = allocate_columns(weights, 515, origin=40)
        assert pytest.approx(sum(box.width for box in boxes), 1e-9) == 515
        assert boxes[0].left == 40
        for left_box, right_box in zip(boxes, boxes[1:]):
            assert pytest.approx(right_box.left, 1e-9) == left_box.left + left_box.width
            assert right_box.left > left_box.left
        assert pytest.approx(boxes[-1].right, 1e-9) == 555


def test_allocate_columns_is_proportional():
    boxes = allocate_columns([2, 3, 1], 600)
    assert [box.width for box in boxes] == pytest.approx([200, 300, 100])
    assert [box.left for box in boxes] == pytest.approx([0, 200, 500])


def test_allocate_columns_clamps_non_positive_weights():
    boxes = allocate_columns([0, -4, 1], 100)
    assert all(box.width > 0 for box in boxes)
    assert pytest.approx(boxes[0].width) == boxes[1].width
    assert pytest.approx(sum(box.width for box in boxes)) == 100


def test_allocate_columns_rejects_empty():
    with pytest.raises(ValueError):
        allocate_columns([], 100)
    with pytest.raises(ValueError):
        allocate_columns([1], 0)


def test_wrap_budget():
    assert wrap_budget(257.5, 10) == 46
    assert wrap_budget(20, 10) == 8
    assert wrap_budget(20, 10, PageLayout(min_wrap_chars=2)) == 3


def test_wrap_short_and_empty_text():
    assert wrap_cell_text("", 8) == [""]
    assert wrap_cell_text("12345678", 8) == ["12345678"]


def test_wrap_prefers_spaces_and_drops_them():
    assert wrap_cell_text("hello world foo", 8) == ["hello", "world", "foo"]


def test_wrap_prefers_email_break_chars():
    lines = wrap_cell_text("jane.doe@example.com", 8)
    assert lines == ["jane.", "doe@", "example.", "com"]
    assert "".join(lines) == "jane.doe@example.com"


def test_wrap_hard_cuts_without_break_chars():
    assert wrap_cell_text("abcdefghijklmnopqrst", 8) == ["abcdefgh", "ijklmnop", "qrst"]


def test_wrap_ignores_break_chars_below_search_floor():
    # The only break is at position 2, below 55% of the budget.
    assert wrap_cell_text("ab-cdefghijkl", 8) == ["ab-cdefg", "hijkl"]


def test_wrap_round_trip_and_budget():
    samples = [
        "Quarterly revenue for the northern region was above forecast",
        "firstname.lastname.with.many.parts@subdomain.example-company.co.uk",
        "https://example.com/reports/2026/q3/summary_final-v2.pdf",
        "nospacesatallinthisverylongidentifiervaluethatmustbehardcut",
        "a b c d e f g h i j k l m n o p q r s t u v w x y z",
        "Zoë Müller-Lüdenscheidt, Straße 12",
    ]
    for text in samples:
        for budget in range(8, 31):
            lines = wrap_cell_text(text, budget)
            assert all(0 < len(line) <= budget for line in lines)
            assert rejoin(lines, text) == text


def test_wrap_rejects_zero_budget():
    with pytest.raises(ValueError):
        wrap_cell_text("abc", 0)


def test_infer_alignment():
    assert infer_alignment("sales", "Sales") == "right"
    assert infer_alignment("total", "Amount due") == "right"
    assert infer_alignment("country", "Country") == "center"
    assert infer_alignment("state", "Status") == "center"
    assert infer_alignment("name", "Name") == "left"


def test_normalize_column_defaults():
    column = normalize_column(ColumnSpec(key="email", header="Email"))
    assert column.weight == 1.0
    assert column.align == "left"


def test_normalize_column_from_mapping():
    column = normalize_column({"key": "sales", "weight": 2})
    assert column == ColumnSpec(key="sales", header="sales", weight=2.0, align="right")


def test_normalize_column_keeps_explicit_alignment():
    column = normalize_column(ColumnSpec(key="sales", header="Sales", align="left"))
    assert column.align == "left"


def test_normalize_column_rejects_bad_input():
    with pytest.raises(ValueError):
        normalize_column(ColumnSpec(key="a", header="A", align="justify"))
    with pytest.raises(ValueError):
        normalize_column(ColumnSpec(key="a", header="A", weight=math.inf))
    with pytest.raises(ValueError):
        normalize_column({"header": "No key"})


def test_normalize_columns_requires_one_column():
    with pytest.raises(ValueError):
        normalize_columns([])


def test_aligned_text_x():
    box = ColumnBox(40, 100)
    assert aligned_text_x(box, "123", 10, "left") == 45
    assert pytest.approx(aligned_text_x(box, "123", 10, "center"), 0.001) == 82.2
    assert pytest.approx(aligned_text_x(box, "123", 10, "right"), 0.001) == 119.4
    assert aligned_text_x(box, "x" * 40, 10, "right") == 45


def test_page_layout_defaults():
    assert DEFAULT_LAYOUT.usable_width == 515
    assert DEFAULT_LAYOUT.usable_height == 756
    DEFAULT_LAYOUT.validate()


def test_page_layout_validation():
    with pytest.raises(ValueError):
        PageLayout(page_width=-595).validate()
    with pytest.raises(ValueError):
        PageLayout(margin_x=300).validate()
    with pytest.raises(ValueError):
        PageLayout(margin_top=-1).validate()
    with pytest.raises(ValueError):
        PageLayout(line_height=0).validate()
