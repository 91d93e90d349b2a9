# interface/app.py
"""
Invoice Reconciler - Main Application

Streamlit interface: upload nomenclature, upload invoices, review and edit the
extracted lines, configure the export, download CSV / Excel.

Run with:  streamlit run interface/app.py
"""

import logging

import streamlit as st

from domain.invoice import UNKNOWN
from domain.plans import PLANS, remaining
from domain.schemas import AGGREGATE_ONLY_KEYS
from editing.session import ProcessingSession
from export import columns as export_columns
from export.exporter import export_aggregated_xlsx, export_line_items_csv
from export.inventory_update import export_inventory_update
from extraction.llm_client import has_api_key
from config.settings import SUPPORTED_INVOICE_TYPES, SUPPORTED_NOMENCLATURE_TYPES
from interface.processor import (
    apply_table_edits,
    items_to_dataframe,
    load_nomenclature_file,
    process_uploaded_files,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# ============================================================================
# PAGE CONFIG
# ============================================================================
st.set_page_config(
    page_title="Invoice Reconciler",
    page_icon="🧾",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ============================================================================
# SESSION STATE INITIALIZATION
# ============================================================================
if "session" not in st.session_state:
    try:
        config = export_columns.load_export_config()
    except export_columns.ExportConfigError as e:
        logging.getLogger(__name__).warning("Using default export config: %s", e)
        config = export_columns.default_export_config()
    st.session_state.session = ProcessingSession(export_config=config)
if "invoice_count" not in st.session_state:
    st.session_state.invoice_count = 0
if "plan_id" not in st.session_state:
    st.session_state.plan_id = "free"
if "uploads" not in st.session_state:
    st.session_state.uploads = {}

session: ProcessingSession = st.session_state.session
plan = PLANS[st.session_state.plan_id]

# ============================================================================
# SIDEBAR: PLAN + EXPORT CONFIG
# ============================================================================
with st.sidebar:
    st.header("Plan")
    st.session_state.plan_id = st.selectbox(
        "Current plan", list(PLANS), format_func=lambda p: PLANS[p].name, index=list(PLANS).index(plan.id)
    )
    st.caption(
        f"Usage: {st.session_state.invoice_count} / {plan.invoice_limit} invoices "
        f"({remaining(plan, st.session_state.invoice_count)} left)"
    )
    if not has_api_key():
        st.warning("No `OPENAI_API_KEY` found. Invoice extraction will fail.")

    st.divider()
    st.header("Export columns")
    cfg = export_columns.sorted_columns(session.export_config)
    for idx, col in enumerate(cfg):
        c1, c2, c3, c4 = st.columns([1, 4, 1, 1])
        enabled = c1.checkbox(" ", value=col["enabled"], key=f"en_{col['key']}", label_visibility="collapsed")
        header = c2.text_input(" ", value=col["header"], key=f"hd_{col['key']}", label_visibility="collapsed")
        if enabled != col["enabled"]:
            cfg = export_columns.set_enabled(cfg, col["key"], enabled)
        if header != col["header"]:
            cfg = export_columns.rename(cfg, col["key"], header)
        if c3.button("↑", key=f"up_{col['key']}", disabled=idx == 0):
            cfg = export_columns.move(cfg, idx, idx - 1)
        if c4.button("↓", key=f"down_{col['key']}", disabled=idx == len(cfg) - 1):
            cfg = export_columns.move(cfg, idx, idx + 1)
    if cfg != export_columns.sorted_columns(session.export_config):
        session.export_config = cfg
        export_columns.save_export_config(cfg)
        st.rerun()
    missing = [k for k in AGGREGATE_ONLY_KEYS if k not in {c["key"] for c in cfg}]
    extra = st.selectbox("Add aggregate column", [""] + missing, disabled=not missing)
    if extra:
        session.export_config = export_columns.add_column(cfg, extra, extra)
        export_columns.save_export_config(session.export_config)
        st.rerun()
    if st.button("Reset to default"):
        session.export_config = export_columns.reset_to_default()
        export_columns.save_export_config(session.export_config)
        st.rerun()

# ============================================================================
# STEP 1: NOMENCLATURE
# ============================================================================
st.title("Invoice Reconciler")
st.subheader("1. Upload nomenclature")

nomenclature_file = st.file_uploader(
    "CSV or Excel file with 'name' and 'sku' columns",
    type=list(SUPPORTED_NOMENCLATURE_TYPES),
    key="nomenclature_file",
)
if nomenclature_file is not None and st.session_state.get("nomenclature_name") != nomenclature_file.name:
    table, warning = load_nomenclature_file(session, nomenclature_file)
    st.session_state.nomenclature_name = nomenclature_file.name
    st.session_state.nomenclature_warning = warning

if st.session_state.get("nomenclature_warning"):
    st.warning(st.session_state.nomenclature_warning)
elif session.can_process:
    st.success(
        f"Successfully loaded {len(session.nomenclature.products)} products from "
        f"**{st.session_state.get('nomenclature_name')}**."
    )

# ============================================================================
# STEP 2: INVOICES
# ============================================================================
st.subheader("2. Process invoice(s)")

if not session.can_process:
    st.info("Please upload your nomenclature in step 1 to enable this section.")
    st.stop()

uploaded = st.file_uploader(
    "Upload clear photos or PDFs of your invoices",
    type=list(SUPPORTED_INVOICE_TYPES),
    accept_multiple_files=True,
    key="invoice_files",
)

col_a, col_b = st.columns([1, 1])
with col_a:
    process_btn = st.button(
        f"Process {len(uploaded or [])} invoice(s)", type="primary", disabled=not uploaded
    )
with col_b:
    if st.button("Process more invoices"):
        session.reset()
        st.rerun()

if process_btn and uploaded:
    with st.spinner("🔄 Processing invoices..."):
        success, error = process_uploaded_files(
            session, uploaded, plan=plan, used_invoices=st.session_state.invoice_count
        )
    if success and session.last_batch is not None:
        processed = session.last_batch.submitted - session.last_batch.failure_count
        st.session_state.invoice_count += processed
        st.session_state.uploads = {f.name: f.getvalue() for f in uploaded}
    if error:
        st.error(f"❌ {error}")

# ============================================================================
# RESULTS SECTION
# ============================================================================
if not session.has_results:
    st.stop()

ws = session.working_set
file_names = ws.file_names()
st.success(f"Found {len(ws)} items across {len(file_names)} invoice(s).")

c1, c2, c3 = st.columns(3)
with c1:
    result = export_line_items_csv(ws, session.export_config)
    if result.ok:
        st.download_button("📥 Download as CSV", data=result.data, file_name=result.file_name, mime=result.mime_type)
    else:
        st.error("Failed to generate the CSV file.")
with c2:
    result = export_aggregated_xlsx(ws, session.export_config)
    if result.ok:
        st.download_button(
            "📊 Export Aggregated (Excel)", data=result.data, file_name=result.file_name, mime=result.mime_type
        )
    else:
        st.error("Failed to generate the Excel file.")
with c3:
    result = export_inventory_update(session.nomenclature, ws)
    if result.ok:
        st.download_button(
            "🗂 Inventory update (Excel)", data=result.data, file_name=result.file_name, mime=result.mime_type
        )
    else:
        st.error("Failed to generate the Excel file. Please check the nomenclature format.")

product_options = [UNKNOWN] + session.nomenclature.product_names()

for tab, name in zip(st.tabs(file_names), file_names):
    with tab:
        left, right = st.columns([1, 2])
        with left:
            data = st.session_state.uploads.get(name)
            if data and not name.lower().endswith(".pdf"):
                st.image(data, use_container_width=True)
            else:
                st.caption("No image preview available.")
        with right:
            before = items_to_dataframe(ws.items_for(name))
            after = st.data_editor(
                before,
                key=f"table_{name}_{session.generation}",
                hide_index=True,
                disabled=["id", "sku"],
                column_config={
                    "id": None,
                    "matchedProductName": st.column_config.SelectboxColumn(
                        "Matched Product", options=sorted(set(product_options) | set(before["matchedProductName"]))
                    ),
                },
            )
            if apply_table_edits(session, before, after):
                st.rerun()
