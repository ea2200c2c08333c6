from typing import Any

import pandas as pd
import streamlit as st

from jewellery_catalog.export import read_export
from jewellery_catalog.pipeline import BatchInputs, run_batch

UPLOADS = [
    ("input_text", "Master input CSV", True),
    ("natural_text", "Natural rules CSV", True),
    ("lab_grown_text", "Lab grown rules CSV", True),
    ("no_stones_text", "No stones rules CSV", True),
    ("weight_lookup_text", "Weight lookup CSV (optional)", False),
]


def _decode(upload) -> str | None:
    if upload is None:
        return None
    return upload.getvalue().decode("utf-8-sig", errors="replace")


def render(settings: dict[str, Any]) -> None:
    st.subheader("Generate Catalog")
    st.caption("Upload the master input and the three rule tables, then build the export CSV.")

    texts: dict[str, str | None] = {}
    col1, col2 = st.columns(2)
    for index, (key, label, _) in enumerate(UPLOADS):
        with col1 if index % 2 == 0 else col2:
            texts[key] = _decode(st.file_uploader(label, type=["csv"], key=f"upload_{key}"))

    missing = [label for key, label, required in UPLOADS if required and not texts[key]]
    if missing:
        st.info(f"Waiting for: {', '.join(missing)}")

    if st.button("Build catalog", type="primary", disabled=bool(missing)):
        inputs = BatchInputs(
            input_text=texts["input_text"] or "",
            natural_text=texts["natural_text"] or "",
            lab_grown_text=texts["lab_grown_text"] or "",
            no_stones_text=texts["no_stones_text"] or "",
            weight_lookup_text=texts["weight_lookup_text"],
        )
        try:
            with st.spinner("Expanding and pricing variants..."):
                st.session_state["batch_result"] = run_batch(inputs, settings)
        except ValueError as exc:
            st.error(f"Could not read uploads: {exc}")
            return

    result = st.session_state.get("batch_result")
    if result is None:
        return

    summary = result.summary()
    metric_cols = st.columns(4)
    metric_cols[0].metric("Rows", summary["rows"])
    metric_cols[1].metric("Handles", summary["handles"])
    metric_cols[2].metric("Failed variants", summary["failures"])
    metric_cols[3].metric("Warnings", summary["warning_events"])

    if result.report.is_valid:
        st.success("Export passed validation.")
    else:
        st.error(f"Export has {len(result.report.errors)} validation errors. See Run Log.")

    st.download_button(
        "Download catalog CSV",
        data=result.csv_text.encode("utf-8"),
        file_name="catalog_export.csv",
        mime="text/csv",
        type="primary",
    )

    if result.rows:
        preview = read_export(result.csv_text)
        st.dataframe(preview.head(200), width="stretch", hide_index=True)
    else:
        st.dataframe(pd.DataFrame(), width="stretch")
