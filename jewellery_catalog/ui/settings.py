from typing import Any

import streamlit as st

MONEY_FIELDS = [
    ("default_metal_price_per_gram", "Default metal price (per gram)"),
    ("per_side_stone_labor", "Labor per side stone"),
    ("per_center_labor", "Center setting labor"),
    ("polish", "Polish"),
    ("polish_bridal", "Polish (bridal)"),
    ("bracelet_fee", "Bracelet fee"),
    ("pendant_fee", "Pendant fee"),
    ("cad_fee", "CAD creation"),
    ("fixed_fee", "Fixed fee"),
    ("natural_side_price_per_carat", "Natural side stones (per carat, fallback)"),
    ("lab_side_price_per_carat", "Lab grown side stones (per carat, fallback)"),
]


def render(current: dict[str, Any]) -> None:
    st.subheader("Settings")
    st.caption("Defaults used when a rule table has no matching labor or price entry. Applies to this session.")

    with st.form("settings_form"):
        col1, col2 = st.columns(2)
        with col1:
            vendor = st.text_input("Vendor", value=str(current["vendor"]))
            default_base_grams = st.number_input(
                "Default base grams",
                min_value=0.1,
                value=float(current["default_base_grams"]),
                step=0.5,
            )
            fallback_multiplier = st.number_input(
                "Fallback price multiplier",
                min_value=0.0,
                value=float(current["fallback_multiplier"]),
                step=0.1,
            )
            compare_at_multiplier = st.number_input(
                "Compare-at multiplier",
                min_value=0.0,
                value=float(current["compare_at_multiplier"]),
                step=0.1,
            )
            log_level = st.selectbox(
                "Log level",
                options=["DEBUG", "INFO", "WARNING", "ERROR"],
                index=["DEBUG", "INFO", "WARNING", "ERROR"].index(current["log_level"])
                if current["log_level"] in ("DEBUG", "INFO", "WARNING", "ERROR")
                else 1,
            )

        money: dict[str, float] = {}
        with col2:
            for key, label in MONEY_FIELDS:
                money[key] = st.number_input(label, min_value=0.0, value=float(current[key]), step=1.0)

        submitted = st.form_submit_button("Save settings", type="primary")

    if submitted:
        st.session_state["settings_overrides"] = {
            "vendor": vendor,
            "default_base_grams": default_base_grams,
            "fallback_multiplier": fallback_multiplier,
            "compare_at_multiplier": compare_at_multiplier,
            "log_level": log_level,
            **money,
        }
        st.success("Settings saved for this session.")
