"""
Rule table parsing.

Natural and lab-grown rule tables share one positional layout. The top rows carry the
combinatorial axes in columns G-K:

    G: center metals   H: center sizes   I: center qualities
    J: no-center metals                  K: no-center qualities

Below them, lookup tables sit in the first columns, each introduced by a header row and closed by
an empty row: metal weight index, metal price per gram, labor, margin brackets and diamond prices.

No-stones tables are a flat metal list in column A with an optional price-per-gram column.
"""

import itertools
import re
from enum import Enum

from .events import RunLog
from .models import (
    CenterCombination,
    DiamondPrice,
    MarginBracket,
    NoCenterCombination,
    NoStonesRuleSet,
    RuleSet,
)
from .tables import RawTable, cell, metal_family_key, split_codes, title_case, to_num

STAGE = "rules"

CENTER_METAL_COLUMN = 6
CENTER_SIZE_COLUMN = 7
CENTER_QUALITY_COLUMN = 8
NO_CENTER_METAL_COLUMN = 9
NO_CENTER_QUALITY_COLUMN = 10

SHAPE_TOKENS = frozenset(
    {
        "round",
        "princess",
        "oval",
        "cushion",
        "emerald",
        "pear",
        "marquise",
        "radiant",
        "asscher",
        "heart",
        "baguette",
        "trillion",
    }
)

BRACKET = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*(?:[-–]\s*(\d+(?:\.\d+)?|\.\d+))?\s*$")
MAX_PLAUSIBLE_PRICE_PER_GRAM = 1000.0


class ParserState(str, Enum):
    READING_AXES = "reading_axes"
    SCANNING = "scanning"
    READING_WEIGHT_TABLE = "weight index"
    READING_PRICE_TABLE = "metal price"
    READING_LABOR_TABLE = "labor"
    READING_MARGIN_TABLE = "margin"
    READING_DIAMOND_TABLE = "diamond price"
    DONE = "done"


LOOKUP_STATES = (
    ParserState.READING_WEIGHT_TABLE,
    ParserState.READING_PRICE_TABLE,
    ParserState.READING_LABOR_TABLE,
    ParserState.READING_MARGIN_TABLE,
    ParserState.READING_DIAMOND_TABLE,
)


def detect_table_header(cells: tuple[str, ...]) -> ParserState | None:
    first = cell(cells, 0).lower()
    second = cell(cells, 1).lower()
    if not first:
        return None
    if "metal" in first and "weight" in second:
        return ParserState.READING_WEIGHT_TABLE
    if "metal" in first and "price" in second:
        return ParserState.READING_PRICE_TABLE
    if any(word in first for word in ("labor", "labour", "label")):
        return ParserState.READING_LABOR_TABLE
    if "begin" in first and any("multiplier" in value.lower() for value in cells):
        return ParserState.READING_MARGIN_TABLE
    if "shape" in first:
        return ParserState.READING_DIAMOND_TABLE
    return None


def is_header_row(cells: tuple[str, ...]) -> bool:
    """A header names its value column; a data row such as 'Labor per stone, 2' carries a number there."""
    return detect_table_header(cells) is not None and to_num(cell(cells, 1)) is None


def is_shape_row(cells: tuple[str, ...]) -> bool:
    return cell(cells, 0).lower() in SHAPE_TOKENS


def parse_bracket(value: str) -> tuple[float, float] | None:
    """'0.50-0.99' -> (0.5, 0.99); '1' -> (1.0, 1.0)."""
    match = BRACKET.match(value or "")
    if not match:
        return None
    low = float(match.group(1))
    high = float(match.group(2)) if match.group(2) else low
    if high < low:
        low, high = high, low
    return low, high


def _unique(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


class RuleTableParser:
    """Single-use parser turning one natural or lab-grown RawTable into a RuleSet."""

    def __init__(self, name: str, log: RunLog | None = None):
        self.name = name
        self.log = log or RunLog()
        self.state = ParserState.READING_AXES

        self.center_metals: list[str] = []
        self.center_sizes: list[str] = []
        self.center_qualities: list[str] = []
        self.no_center_metals: list[str] = []
        self.no_center_qualities: list[str] = []
        self.center_combinations: list[CenterCombination] = []
        self.no_center_combinations: list[NoCenterCombination] = []

        self.weight_index: dict[str, float] = {}
        self.metal_prices: dict[str, float] = {}
        self.labor: dict[str, float] = {}
        self.margins: list[MarginBracket] = []
        self.diamond_prices: list[DiamondPrice] = []

    def parse(self, table: RawTable) -> RuleSet:
        if self.state is ParserState.DONE:
            raise RuntimeError("RuleTableParser instances are single-use.")

        for row_number, cells in enumerate(table.rows, start=2):
            self.feed(cells, row_number)
        self.state = ParserState.DONE
        self._report_gaps()

        return RuleSet(
            name=self.name,
            center_metals=_unique(self.center_metals),
            center_sizes=_unique(self.center_sizes),
            center_qualities=_unique(self.center_qualities),
            no_center_metals=_unique(self.no_center_metals),
            no_center_qualities=_unique(self.no_center_qualities),
            center_combinations=tuple(self.center_combinations),
            no_center_combinations=tuple(self.no_center_combinations),
            weight_index=dict(self.weight_index),
            metal_prices=dict(self.metal_prices),
            labor=dict(self.labor),
            margins=tuple(self.margins),
            diamond_prices=tuple(self.diamond_prices),
        )

    def feed(self, cells: tuple[str, ...], row_number: int) -> None:
        if self.state is ParserState.READING_AXES:
            if not is_header_row(cells):
                self._read_axes(cells)
                return
            self.state = ParserState.SCANNING

        if is_header_row(cells):
            self.state = detect_table_header(cells)
            return

        if self.state is ParserState.SCANNING:
            if not is_shape_row(cells):
                return
            self.state = ParserState.READING_DIAMOND_TABLE

        if self._is_blank_entry(cells):
            self.state = ParserState.SCANNING
            return

        if self.state is ParserState.READING_DIAMOND_TABLE:
            self._read_diamond_row(cells, row_number)
        elif self.state is ParserState.READING_MARGIN_TABLE:
            self._read_margin_row(cells, row_number)
        else:
            self._read_key_value(cells, row_number)

    def _is_blank_entry(self, cells: tuple[str, ...]) -> bool:
        if self.state is ParserState.READING_MARGIN_TABLE:
            return not cell(cells, 0) and not cell(cells, 1) and not cell(cells, 2)
        return not cell(cells, 0) and not cell(cells, 1)

    def _read_axes(self, cells: tuple[str, ...]) -> None:
        metals = split_codes(cell(cells, CENTER_METAL_COLUMN))
        sizes = split_codes(cell(cells, CENTER_SIZE_COLUMN))
        qualities = split_codes(cell(cells, CENTER_QUALITY_COLUMN))
        self.center_metals.extend(metals)
        self.center_sizes.extend(sizes)
        self.center_qualities.extend(qualities)
        if metals and sizes and qualities:
            for metal, size, quality in itertools.product(metals, sizes, qualities):
                self.center_combinations.append(CenterCombination(metal=metal, center_size=size, quality=quality))

        no_center_metals = split_codes(cell(cells, NO_CENTER_METAL_COLUMN))
        no_center_qualities = split_codes(cell(cells, NO_CENTER_QUALITY_COLUMN))
        self.no_center_metals.extend(no_center_metals)
        self.no_center_qualities.extend(no_center_qualities)
        if no_center_metals and no_center_qualities:
            for metal, quality in itertools.product(no_center_metals, no_center_qualities):
                self.no_center_combinations.append(NoCenterCombination(metal=metal, quality=quality))

    def _read_key_value(self, cells: tuple[str, ...], row_number: int) -> None:
        key = cell(cells, 0)
        value = to_num(cell(cells, 1))
        if not key or value is None:
            self._skip(row_number, cells)
            return

        if self.state is ParserState.READING_WEIGHT_TABLE:
            self.weight_index[metal_family_key(key)] = value
        elif self.state is ParserState.READING_PRICE_TABLE:
            self.metal_prices[key.upper()] = value
            self.metal_prices.setdefault(metal_family_key(key), value)
        elif self.state is ParserState.READING_LABOR_TABLE:
            self.labor[key] = value

    def _read_margin_row(self, cells: tuple[str, ...], row_number: int) -> None:
        begin = to_num(cell(cells, 0))
        end = to_num(cell(cells, 1))
        multiplier = to_num(cell(cells, 2))
        if begin is None or multiplier is None or (cell(cells, 1) and end is None):
            self._skip(row_number, cells)
            return
        self.margins.append(MarginBracket(begin=begin, end=end, multiplier=multiplier))

    def _read_diamond_row(self, cells: tuple[str, ...], row_number: int) -> None:
        shape = title_case(cell(cells, 0))
        bracket = parse_bracket(cell(cells, 1))
        if not shape or bracket is None:
            self._skip(row_number, cells)
            return

        min_carat, max_carat = bracket
        added = 0
        for index in range(2, len(cells), 2):
            price = to_num(cell(cells, index + 1))
            if price is None:
                continue
            self.diamond_prices.append(
                DiamondPrice(
                    shape=shape,
                    min_carat=min_carat,
                    max_carat=max_carat,
                    quality=cell(cells, index).upper(),
                    price_per_carat=price,
                )
            )
            added += 1
        if not added:
            self._skip(row_number, cells)

    def _skip(self, row_number: int, cells: tuple[str, ...]) -> None:
        self.log.warning(
            STAGE,
            f"{self.name}: skipped unreadable {self.state.value} row {row_number}",
            table=self.name,
            region=self.state.value,
            row=row_number,
            cells=[value for value in cells if value],
        )

    def _report_gaps(self) -> None:
        if not self.center_combinations:
            self._gap("center combinations (columns G-I)")
        if not self.no_center_combinations:
            self._gap("no-center combinations (columns J-K)")
        filled = {
            ParserState.READING_WEIGHT_TABLE: self.weight_index,
            ParserState.READING_PRICE_TABLE: self.metal_prices,
            ParserState.READING_LABOR_TABLE: self.labor,
            ParserState.READING_MARGIN_TABLE: self.margins,
            ParserState.READING_DIAMOND_TABLE: self.diamond_prices,
        }
        for state in LOOKUP_STATES:
            if not filled[state]:
                self._gap(f"{state.value} table")

    def _gap(self, region: str) -> None:
        self.log.warning(STAGE, f"{self.name}: no {region} found; using an empty table", table=self.name, region=region)


def parse_rule_table(table: RawTable, name: str, log: RunLog | None = None) -> RuleSet:
    log = log or RunLog()
    rule_set = RuleTableParser(name, log).parse(table)
    log.info(STAGE, summary_line(rule_set), **describe_rule_set(rule_set))
    return rule_set


def _guess_price_column(table: RawTable) -> int | None:
    for index in range(1, table.width):
        values = [cell(cells, index) for cells in table.rows if cell(cells, index)]
        numbers = [to_num(value) for value in values]
        if values and all(n is not None and 0 < n <= MAX_PLAUSIBLE_PRICE_PER_GRAM for n in numbers):
            return index
    return None


def parse_no_stones_table(table: RawTable, name: str = "No Stones", log: RunLog | None = None) -> NoStonesRuleSet:
    log = log or RunLog()

    metals: list[str] = []
    for cells in table.rows:
        metal = cell(cells, 0)
        if metal and "metal" not in metal.lower():
            metals.append(metal)

    price_columns = [index for index, header in enumerate(table.headers) if index > 0 and "price" in header.lower()]
    price_column = price_columns[0] if len(price_columns) == 1 else _guess_price_column(table)

    prices: dict[str, float] = {}
    if price_column is None:
        log.warning(STAGE, f"{name}: no metal price column found; using default metal prices", table=name, region="metal price")
    else:
        for cells in table.rows:
            metal = cell(cells, 0)
            price = to_num(cell(cells, price_column))
            if metal and price is not None:
                prices[metal.upper()] = price

    if not metals:
        log.warning(STAGE, f"{name}: no metals found in column A", table=name, region="metals")

    rule_set = NoStonesRuleSet(name=name, metals=_unique(metals), metal_prices=prices)
    log.info(STAGE, f"{name}: metals={len(rule_set.metals)}, prices={len(prices)}", **describe_rule_set(rule_set))
    return rule_set


def describe_rule_set(rule_set: RuleSet | NoStonesRuleSet) -> dict[str, int | str]:
    if isinstance(rule_set, NoStonesRuleSet):
        return {"name": rule_set.name, "metals": len(rule_set.metals), "metal_prices": len(rule_set.metal_prices)}
    return {
        "name": rule_set.name,
        "center_metals": len(rule_set.center_metals),
        "center_sizes": len(rule_set.center_sizes),
        "center_qualities": len(rule_set.center_qualities),
        "no_center_metals": len(rule_set.no_center_metals),
        "no_center_qualities": len(rule_set.no_center_qualities),
        "center_combinations": len(rule_set.center_combinations),
        "no_center_combinations": len(rule_set.no_center_combinations),
        "weight_index": len(rule_set.weight_index),
        "metal_prices": len(rule_set.metal_prices),
        "labor": len(rule_set.labor),
        "margins": len(rule_set.margins),
        "diamond_prices": len(rule_set.diamond_prices),
    }


def summary_line(rule_set: RuleSet) -> str:
    return (
        f"{rule_set.name} rules: G={len(rule_set.center_metals)}, H={len(rule_set.center_sizes)}, "
        f"I={len(rule_set.center_qualities)}, J={len(rule_set.no_center_metals)}, "
        f"K={len(rule_set.no_center_qualities)}, center combos={len(rule_set.center_combinations)}, "
        f"no-center combos={len(rule_set.no_center_combinations)}"
    )
