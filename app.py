import json
import os
from dataclasses import asdict
from pathlib import Path

import gspread
import streamlit as st
from google.oauth2.service_account import Credentials
from loguru import logger
from streamlit.runtime.secrets import StreamlitSecretNotFoundError

from pdf_layout import ColumnSpec
from sheets_storage import columns_from_headers, load_table
from table_pdf import build_table_pdf
from utils import export_filename


def load_service_account_info():
    try:
        if "gcp_service_account" in st.secrets:
            return dict(st.secrets["gcp_service_account"])
        if "service_account" in st.secrets:
            return json.loads(st.secrets["service_account"])
    except StreamlitSecretNotFoundError:
        pass
    file_path = os.environ.get("SERVICE_ACCOUNT_FILE")
    if file_path and Path(file_path).exists():
        return json.loads(Path(file_path).read_text(encoding="utf-8"))
    return None


@st.cache_resource(ttl=600, show_spinner=False)  # Cache connection for 10 minutes
def get_sheet():
    try:
        sheet_id = st.secrets.get("SHEET_ID")
    except StreamlitSecretNotFoundError:
        sheet_id = None
    service_info = load_service_account_info()
    if not sheet_id or not service_info:
        return None
    scopes = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
    creds = Credentials.from_service_account_info(service_info, scopes=scopes)
    client = gspread.authorize(creds)
    return client.open_by_key(sheet_id)


@st.cache_data(ttl=300, show_spinner=False)  # Cache for 5 minutes
def get_table(tab_name: str) -> tuple[list[dict], list[dict]]:
    sheet = get_sheet()
    if sheet is None:
        return [], []
    try:
        columns, rows = load_table(sheet, tab_name)
    except gspread.exceptions.GSpreadException as e:
        logger.warning(f"Error reading {tab_name}: {e}")
        st.warning(f"Error reading {tab_name}: {e}")
        return [], []
    # Plain dicts keep the cached value picklable.
    return [asdict(column) for column in columns], rows


def table_from_upload(uploaded) -> tuple[list, list[dict], str | None]:
    data = json.loads(uploaded.getvalue().decode("utf-8"))
    rows = data.get("rows") or []
    columns = data.get("columns")
    if not columns and rows:
        columns = columns_from_headers(list(rows[0].keys()))
    return columns or [], rows, data.get("title")


st.set_page_config(page_title="Table PDF Export", layout="wide")

st.title("Table PDF Export")

source = st.sidebar.radio("Data source", ["Google Sheets", "JSON file"])

columns: list[ColumnSpec | dict] = []
rows: list[dict] = []
default_title = "Table export"

if source == "Google Sheets":
    if get_sheet() is None:
        st.info("Google Sheets is not configured. Set SHEET_ID and a service account in secrets.")
    else:
        tab_name = st.sidebar.text_input("Worksheet tab", value="Sheet1")
        if tab_name:
            columns, rows = get_table(tab_name)
            default_title = tab_name
else:
    uploaded = st.sidebar.file_uploader("Table JSON", type=["json"])
    if uploaded is not None:
        try:
            columns, rows, uploaded_title = table_from_upload(uploaded)
        except (ValueError, AttributeError) as exc:
            st.error(f"Cannot read {uploaded.name}: {exc}")
        else:
            default_title = uploaded_title or Path(uploaded.name).stem

title = st.text_input("Document title", value=default_title)

if not columns:
    st.caption("No columns loaded yet.")
    st.stop()

st.dataframe(rows, width="stretch")
st.caption(f"{len(rows)} row{'s' if len(rows) != 1 else ''}")

try:
    pdf_data = build_table_pdf(title, columns, rows)
except ValueError as exc:
    st.error(str(exc))
else:
    st.download_button(
        "Download table as PDF",
        data=pdf_data,
        file_name=export_filename(title, ".pdf"),
        mime="application/pdf",
    )
