import csv
import io
import re
from dataclasses import dataclass
from typing import Any

import pandas as pd

CODE_SEPARATORS = re.compile(r"[ ,|]+")
WHITESPACE = re.compile(r"\s+")
METAL_FAMILY = re.compile(r"^(\d+|[A-Z]+)")
DEFAULT_METAL_FAMILY = "14"


@dataclass(frozen=True)
class RawTable:
    """
    A CSV file kept positionally.

    Rule tables repeat header names (several "Quality" columns) and leave headers blank, so rows
    are stored as cell lists in header order. `records()` gives the keyed view used for master
    input rows, where the first column with a given header wins.
    """

    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]

    @property
    def width(self) -> int:
        return len(self.headers)

    def records(self) -> list[dict[str, str]]:
        records: list[dict[str, str]] = []
        for cells in self.rows:
            record: dict[str, str] = {}
            for index, header in enumerate(self.headers):
                if header and header not in record:
                    record[header] = cell(cells, index)
            records.append(record)
        return records


def trim_all(value: Any) -> str:
    if value is None:
        return ""
    return WHITESPACE.sub(" ", str(value).strip())


def to_num(value: Any) -> float | None:
    """Parses '1,250.50', ' 2.5 ' or '$80' into a float; returns None when it is not a number."""
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = trim_all(value).replace(",", "").lstrip("$")
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def to_fixed2(value: Any) -> str:
    number = to_num(value)
    if number is None:
        return "0.00"
    return f"{number:.2f}"


def ct_str(total: float, center: float | None = None) -> str:
    label = f"{to_fixed2(total)}CT Total"
    if center is not None and center > 0:
        return f"{label} ({to_fixed2(center)}CT Center)"
    return label


def split_codes(value: Any) -> list[str]:
    """Splits a rule cell such as '14W 14Y, 18W|PLT' into its codes."""
    cleaned = trim_all(value)
    if not cleaned:
        return []
    return [code for code in CODE_SEPARATORS.split(cleaned) if code]


def title_case(value: str) -> str:
    cleaned = trim_all(value)
    return cleaned[:1].upper() + cleaned[1:].lower()


def metal_family_key(metal_code: str) -> str:
    """Reduces a metal code to the key used by weight and price tables: '14W' -> '14', 'PLT' -> 'PLT'."""
    match = METAL_FAMILY.match(trim_all(metal_code).upper())
    return match.group(1) if match else DEFAULT_METAL_FAMILY


def cell(cells: tuple[str, ...] | list[str], index: int) -> str:
    if 0 <= index < len(cells):
        return cells[index]
    return ""


def read_table(text: str) -> RawTable:
    """
    Reads CSV text into a RawTable.

    Truly empty lines are dropped, but delimiter-only lines (',,,,') are kept: rule tables use them
    to end a lookup block.
    """
    cleaned = (text or "").lstrip("\ufeff")
    if not cleaned.strip():
        return RawTable(headers=(), rows=())

    try:
        width = max((len(fields) for fields in csv.reader(io.StringIO(cleaned))), default=0)
        frame = pd.read_csv(
            io.StringIO(cleaned),
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (csv.Error, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise ValueError(f"Could not read CSV: {exc}") from exc

    frame = frame.fillna("")
    grid = [tuple(trim_all(value) for value in row) for row in frame.itertuples(index=False, name=None)]
    if not grid:
        return RawTable(headers=(), rows=())
    return RawTable(headers=grid[0], rows=tuple(grid[1:]))
