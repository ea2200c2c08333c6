import io
from collections.abc import Sequence

import pandas as pd

from .models import ExportRow

EXPORT_HEADERS = [
    "Handle",
    "Title",
    "Body (HTML)",
    "Vendor",
    "Type",
    "Tags",
    "Published",
    "Option1 Name",
    "Option1 Value",
    "Option2 Name",
    "Option2 Value",
    "Option3 Name",
    "Option3 Value",
    "Variant SKU",
    "Variant Grams",
    "Variant Inventory Tracker",
    "Variant Inventory Qty",
    "Variant Inventory Policy",
    "Variant Fulfillment Service",
    "Variant Price",
    "Variant Compare At Price",
    "Variant Requires Shipping",
    "Variant Taxable",
    "Variant Barcode",
    "Image Src",
    "Image Position",
    "Image Alt Text",
    "Gift Card",
    "SEO Title",
    "SEO Description",
    "Google Shopping / Google Product Category",
    "Google Shopping / Gender",
    "Google Shopping / Age Group",
    "Google Shopping / MPN",
    "Google Shopping / AdWords Grouping",
    "Google Shopping / AdWords Labels",
    "Google Shopping / Condition",
    "Google Shopping / Custom Product",
    "Google Shopping / Custom Label 0",
    "Google Shopping / Custom Label 1",
    "Google Shopping / Custom Label 2",
    "Google Shopping / Custom Label 3",
    "Google Shopping / Custom Label 4",
    "Variant Image",
    "Variant Weight Unit",
    "Variant Tax Code",
    "Cost per item",
    "Product Type",
    "Core Number",
    "Category",
    "Diamond Cost",
    "Metal Cost",
    "Side Stone",
    "Center Stone",
    "Polish",
    "Bracelets",
    "CAD Creation",
    "25$",
    "Title (duplicate)",
    "Description (duplicate)",
]


def rows_to_frame(rows: Sequence[ExportRow]) -> pd.DataFrame:
    records = [[row.values.get(header, "") for header in EXPORT_HEADERS] for row in rows]
    return pd.DataFrame(records, columns=EXPORT_HEADERS, dtype=str)


def serialize_rows(rows: Sequence[ExportRow]) -> str:
    """Header line plus one line per row, in the given order, without a trailing newline."""
    text = rows_to_frame(rows).to_csv(index=False, lineterminator="\n")
    return text[:-1] if text.endswith("\n") else text


def read_export(text: str) -> pd.DataFrame:
    return pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)


def handle_structure(frame: pd.DataFrame) -> dict[str, tuple[int, int]]:
    """Per handle: (parent rows, child rows), a parent being a row with a Title."""
    structure: dict[str, tuple[int, int]] = {}
    for handle, title in zip(frame["Handle"], frame["Title"]):
        parents, children = structure.get(handle, (0, 0))
        structure[handle] = (parents + 1, children) if title else (parents, children + 1)
    return structure
