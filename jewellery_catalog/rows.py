import re
from collections.abc import Sequence
from typing import Any

from . import templates
from .models import ExportRow, PricedVariant, Scenario, ValidationReport
from .tables import to_fixed2

OPTION_NAMES = ("Metal/Color", "Total Carat", "Diamond Quality")
NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")

INVENTORY_TRACKER = "shopify"
INVENTORY_QTY = "10"
INVENTORY_POLICY = "deny"
FULFILLMENT_SERVICE = "manual"


def make_sku(core_id: str, index: int) -> str:
    """SKU of the variant at `index` within its handle; the first physical row ends in -2."""
    return f"{NON_ALPHANUMERIC.sub('', core_id)}-{index + 2}"


def group_by_handle(priced: Sequence[PricedVariant]) -> dict[str, list[PricedVariant]]:
    by_handle: dict[str, list[PricedVariant]] = {}
    for variant in priced:
        by_handle.setdefault(variant.seed.handle, []).append(variant)
    return by_handle


def _product_fields(variants: list[PricedVariant], settings: dict[str, Any]) -> dict[str, str]:
    seeds = [variant.seed for variant in variants]
    record = seeds[0].record
    no_stones = seeds[0].scenario is Scenario.NO_STONES
    category = record.category or "Jewelry"
    subcategory = record.subcategory or "Piece"
    product_type = f"{category}_{subcategory}"

    title = templates.build_title(seeds)
    body = templates.build_body_html(seeds, title)
    seo_title, seo_description = templates.build_seo(title, body)

    return {
        "Title": title,
        "Body (HTML)": body,
        "Vendor": settings["vendor"],
        "Type": product_type,
        "Tags": ", ".join(templates.build_tags(seeds)),
        "Option1 Name": OPTION_NAMES[0],
        "Option2 Name": "" if no_stones else OPTION_NAMES[1],
        "Option3 Name": "" if no_stones else OPTION_NAMES[2],
        "Image Position": "1",
        "Image Alt Text": title,
        "Gift Card": "FALSE",
        "SEO Title": seo_title,
        "SEO Description": seo_description,
        "Google Shopping / Google Product Category": templates.google_category(category),
        "Google Shopping / Gender": "Female",
        "Google Shopping / Age Group": "Adult",
        "Google Shopping / AdWords Grouping": product_type,
        "Google Shopping / Condition": "new",
        "Google Shopping / Custom Product": "FALSE",
        "Title (duplicate)": title,
        "Description (duplicate)": body,
    }


def _variant_fields(variant: PricedVariant, sku: str, product_type: str) -> dict[str, str]:
    seed, cost, pricing = variant.seed, variant.cost, variant.pricing
    no_stones = seed.scenario is Scenario.NO_STONES
    return {
        "Handle": seed.handle,
        "Published": "TRUE",
        "Option1 Value": templates.translate_metal(seed.metal_code),
        "Option2 Value": "" if no_stones else templates.total_carat_label(seed),
        "Option3 Value": "" if no_stones or not seed.quality else templates.translate_quality(seed.quality),
        "Variant SKU": sku,
        "Variant Grams": to_fixed2(cost.variant_grams),
        "Variant Inventory Tracker": INVENTORY_TRACKER,
        "Variant Inventory Qty": INVENTORY_QTY,
        "Variant Inventory Policy": INVENTORY_POLICY,
        "Variant Fulfillment Service": FULFILLMENT_SERVICE,
        "Variant Price": to_fixed2(pricing.sell_price),
        "Variant Compare At Price": to_fixed2(pricing.compare_at_price),
        "Variant Requires Shipping": "TRUE",
        "Variant Taxable": "TRUE",
        "Variant Weight Unit": "g",
        "Cost per item": to_fixed2(cost.total_cost),
        "Product Type": product_type,
        "Core Number": seed.core_id,
        "Category": seed.record.category or "Jewelry",
        "Diamond Cost": to_fixed2(cost.diamond_cost),
        "Metal Cost": to_fixed2(cost.metal),
        "Side Stone": to_fixed2(cost.side_labor),
        "Center Stone": to_fixed2(cost.center_labor),
        "Polish": to_fixed2(cost.polish),
        "Bracelets": to_fixed2(cost.bracelet_fee + cost.pendant_fee),
        "CAD Creation": to_fixed2(cost.cad_fee),
        "25$": to_fixed2(cost.fixed_fee),
    }


def assemble_rows(priced: Sequence[PricedVariant], *, settings: dict[str, Any]) -> list[ExportRow]:
    """One row per priced variant; the first variant of each handle carries the product fields."""
    rows = []
    for handle, variants in group_by_handle(priced).items():
        product = _product_fields(variants, settings)
        for index, variant in enumerate(variants):
            sku = make_sku(variant.seed.core_id, index)
            values = _variant_fields(variant, sku, product["Type"])
            is_parent = index == 0
            if is_parent:
                values.update(product)
                values["Google Shopping / MPN"] = sku
            rows.append(ExportRow(handle=handle, sku=sku, is_parent=is_parent, values=values))
    return rows


def validate_rows(rows: Sequence[ExportRow] | Sequence[dict[str, str]]) -> ValidationReport:
    errors: list[str] = []
    handles: set[str] = set()
    parents_seen: set[str] = set()
    skus_seen: set[str] = set()
    parent_rows = child_rows = 0

    for position, row in enumerate(rows, start=1):
        values = row.values if isinstance(row, ExportRow) else row
        handle = values.get("Handle", "")
        sku = values.get("Variant SKU", "")
        handles.add(handle)

        if not handle:
            errors.append(f"Row {position}: missing Handle")
        if not sku:
            errors.append(f"Row {position}: missing Variant SKU for handle {handle}")
        elif sku in skus_seen:
            errors.append(f"Row {position}: duplicate Variant SKU {sku}")
        skus_seen.add(sku)

        if values.get("Title"):
            parent_rows += 1
            if handle in parents_seen:
                errors.append(f"Multiple parent rows found for handle: {handle}")
            parents_seen.add(handle)
        else:
            child_rows += 1
            if handle not in parents_seen:
                errors.append(f"Child row without parent for handle: {handle}")

    return ValidationReport(
        is_valid=not errors,
        errors=tuple(errors),
        total_rows=len(rows),
        total_handles=len(handles),
        parent_rows=parent_rows,
        child_rows=child_rows,
    )
