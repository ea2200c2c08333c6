import pandas as pd
import streamlit as st

from jewellery_catalog.events import LEVELS, STAGES
from jewellery_catalog.export import handle_structure, read_export
from jewellery_catalog.pipeline import BatchResult


def render(result: BatchResult | None) -> None:
    st.subheader("Run Log")
    if result is None:
        st.info("No catalog built yet.")
        return

    counts = result.log.counts()
    st.caption(" · ".join(f"{level}: {counts[level]}" for level in LEVELS))

    col1, col2 = st.columns(2)
    with col1:
        level_filter = st.selectbox("Level", options=["All", *LEVELS])
    with col2:
        stage_filter = st.selectbox("Stage", options=["All", *STAGES])

    logs_df = pd.DataFrame(result.log.to_records(), columns=["created_at", "level", "stage", "message"])
    if level_filter != "All":
        logs_df = logs_df[logs_df["level"] == level_filter]
    if stage_filter != "All":
        logs_df = logs_df[logs_df["stage"] == stage_filter]
    st.dataframe(logs_df, width="stretch", hide_index=True)

    st.markdown("#### Validation")
    report = result.report
    st.write(
        {
            "Valid": report.is_valid,
            "Rows": report.total_rows,
            "Handles": report.total_handles,
            "Parent rows": report.parent_rows,
            "Child rows": report.child_rows,
        }
    )
    for error in report.errors:
        st.error(error)

    if result.rows:
        structure = handle_structure(read_export(result.csv_text))
        structure_df = pd.DataFrame(
            [{"Handle": handle, "Parents": parents, "Children": children} for handle, (parents, children) in structure.items()]
        )
        st.caption("Handle structure re-read from the exported CSV")
        st.dataframe(structure_df, width="stretch", hide_index=True)

    if result.failures:
        st.markdown("#### Failed variants")
        st.dataframe(pd.DataFrame(list(result.failures)), width="stretch", hide_index=True)
