from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

from jewellery_catalog.config import get_all_settings
from jewellery_catalog.ui import batch_details, generate, run_log, settings


# Load environment variables from local .env file.
load_dotenv(dotenv_path=Path(__file__).parent / ".env")


st.set_page_config(page_title="Jewellery Catalog", page_icon="💍", layout="wide")


def main() -> None:
    st.title("💍 Jewellery Catalog Builder")
    st.caption("Expand, cost and price catalog variants from rule tables")

    current_settings = get_all_settings(st.session_state.get("settings_overrides"))
    result = st.session_state.get("batch_result")

    if result is not None:
        st.sidebar.caption(f"Last run: {result.report.total_rows} rows, {len(result.failures)} failed variants")
        if st.sidebar.button("Clear results"):
            st.session_state["batch_result"] = None
            st.rerun()

    page = st.sidebar.radio(
        "Navigate",
        [
            "Generate",
            "Run Log",
            "Batch Details",
            "Settings",
        ],
    )

    if page == "Generate":
        generate.render(current_settings)
    elif page == "Run Log":
        run_log.render(result)
    elif page == "Batch Details":
        batch_details.render(result)
    elif page == "Settings":
        settings.render(current_settings)


if __name__ == "__main__":
    main()
