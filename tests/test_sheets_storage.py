from pdf_layout import ColumnSpec
from sheets_storage import clean_headers, columns_from_headers, load_table, records_from_values


class FakeWorksheet:
    def __init__(self, values):
        self.values = values

    def get_all_values(self):
        return self.values


class FakeSheet:
    def __init__(self, tabs):
        self.tabs = tabs

    def worksheet(self, name):
        return FakeWorksheet(self.tabs[name])


def test_clean_headers_skips_empty_and_duplicates():
    assert clean_headers(["Name", "", "Email", "Name", " Sales "]) == [
        (0, "Name"),
        (2, "Email"),
        (4, "Sales"),
    ]


def test_records_from_values():
    values = [
        ["Name", "", "Email", "Name"],
        ["Ada", "ignored", "ada@example.com", "dup"],
        ["Grace"],
    ]
    records = records_from_values(values)
    assert records == [
        {"Name": "Ada", "Email": "ada@example.com"},
        {"Name": "Grace", "Email": ""},
    ]


def test_records_from_empty_values():
    assert records_from_values([]) == []


def test_columns_from_headers():
    assert columns_from_headers(["Name", "Sales", ""]) == [
        ColumnSpec(key="Name", header="Name"),
        ColumnSpec(key="Sales", header="Sales"),
    ]


def test_load_table():
    sheet = FakeSheet(
        {
            "Customers": [["Name", "Sales"], ["Ada", "1200"], ["Grace", "900"]],
            "Empty": [],
        }
    )
    columns, rows = load_table(sheet, "Customers")
    assert [column.key for column in columns] == ["Name", "Sales"]
    assert rows[1] == {"Name": "Grace", "Sales": "900"}
    assert load_table(sheet, "Empty") == ([], [])
