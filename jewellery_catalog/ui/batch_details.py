import pandas as pd
import streamlit as st

from jewellery_catalog.expansion import expected_variant_count
from jewellery_catalog.pipeline import BatchResult
from jewellery_catalog.rules import describe_rule_set


def _cost_rows(result: BatchResult) -> list[dict]:
    rows = []
    for variant in result.priced:
        seed, cost, pricing = variant.seed, variant.cost, variant.pricing
        rows.append(
            {
                "Handle": seed.handle,
                "Scenario": seed.scenario.value,
                "Metal": seed.metal_code,
                "Center": seed.center_size or "",
                "Quality": seed.quality or "",
                "Grams": cost.variant_grams,
                "Weight source": cost.details.weight_source,
                "Center diamond": cost.center_diamond,
                "Side diamond": cost.side_diamond,
                "Side price source": cost.details.side_price_source,
                "Metal cost": cost.metal,
                "Labor & fees": round(cost.total_cost - cost.center_diamond - cost.side_diamond - cost.metal, 2),
                "Total cost": cost.total_cost,
                "Multiplier": pricing.multiplier,
                "Margin source": pricing.source.value,
                "Price": pricing.sell_price,
                "Compare at": pricing.compare_at_price,
            }
        )
    return rows


def render(result: BatchResult | None) -> None:
    st.subheader("Batch Details")
    if result is None:
        st.info("No catalog built yet.")
        return

    rule_books = result.context.rule_books
    st.markdown("#### Rule tables")
    summaries = [describe_rule_set(rule_set) for rule_set in (rule_books.natural, rule_books.lab_grown, rule_books.no_stones) if rule_set]
    st.dataframe(pd.DataFrame(summaries).fillna(""), width="stretch", hide_index=True)

    st.markdown("#### Core groups")
    st.write(result.context.group_stats)
    groups_df = pd.DataFrame(
        [
            {
                "Core": group.core_id,
                "Scenario": group.scenario.value,
                "Rulebook": group.rulebook_name,
                "Rows": len(group.records),
                "Expected variants": expected_variant_count(group, rule_books.for_rulebook(group.rulebook)),
            }
            for group in result.context.groups
        ]
    )
    st.dataframe(groups_df, width="stretch", hide_index=True)

    st.markdown("#### Variant costs")
    st.dataframe(pd.DataFrame(_cost_rows(result)), width="stretch", hide_index=True)
