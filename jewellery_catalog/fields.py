"""
Header aliases for master input rows.

Spreadsheets exported by different teams spell the same column several ways. Each concept below
lists its accepted headers in priority order; `first_value` returns the first non-empty match.
"""

from collections.abc import Mapping, Sequence

from .tables import to_num, trim_all

CORE_NUMBER = ("Core Number", "CoreNumber", "Core", "SKU", "Item Number")
DIAMONDS_TYPE = ("Diamonds Type", "DiamondsType", "Diamond Type", "Type")
CATEGORY = ("Category", "Type")
SUBCATEGORY = ("Subcategory", "Sub Category", "SubCategory")
HANDLE_SUBCATEGORY = ("Subcategory", "Sub Category", "SubCategory", "Category", "Type")
CENTER_CARAT = ("Center ct", "Center Ct", "CenterCt", "Center Carat", "Center")
CENTER_SHAPE = ("Center shape", "Center Shape", "CenterShape", "Shape")
CENTER_TYPE = ("Center Type", "Center type", "CenterType")
TOTAL_CARAT = ("Total Ct Weight", "Total ct", "Total Ct", "TotalCt", "Total Carat")
SUM_SIDE_CARAT = ("Sum Side Ct", "SumSideCt", "Sum Side Carat", "Side ct", "Side Ct", "SideCt", "Side Carat")
SIDE_SHAPES = ("Side shapes", "Side Shapes", "Side shape", "Side Shape", "SideShapes", "SideShape")
SIDE_STONE_COUNT = ("Side Stone Count", "SideStoneCount", "Side Stones")
BASE_GRAMS = ("Grams Weight", "Grams Weight 14kt", "GramsWeight14kt", "Base Grams", "BaseGrams", "Weight", "Grams")
TAGS = ("Tags", "Keywords")
BAND_WIDTH = (
    "Unique Characteristics (width mm)",
    "Unique Charcteristic/ Width for plain wedding bands",
    "Width",
    "Width mm",
)

DEFAULT_SUBCATEGORY = "Product"
DEFAULT_BASE_GRAMS = 5.0
SIDE_POSITIONS = range(1, 11)


def side_carat(position: int) -> tuple[str, ...]:
    return (f"Side {position} Ct", f"Side {position} ct", f"Side{position} Ct", f"Side{position} ct")


def side_stones(position: int) -> tuple[str, ...]:
    return (f"Side {position} Stones", f"Side {position} stones", f"Side{position} Stones")


def side_shape(position: int) -> tuple[str, ...]:
    return (f"Side {position} shape", f"Side {position} Shape", f"Side{position} Shape")


def side_type(position: int) -> tuple[str, ...]:
    return (f"Side {position} Type", f"Side {position} type", f"Side{position} Type")


def first_value(record: Mapping[str, str], aliases: Sequence[str], default: str = "") -> str:
    for alias in aliases:
        value = trim_all(record.get(alias, ""))
        if value:
            return value
    return default


def first_number(record: Mapping[str, str], aliases: Sequence[str]) -> float | None:
    return to_num(first_value(record, aliases))
