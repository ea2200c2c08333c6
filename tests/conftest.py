import csv
import io

import pytest

from jewellery_catalog.config import get_all_settings
from jewellery_catalog.events import RunLog
from jewellery_catalog.grouping import analyze_input
from jewellery_catalog.models import RuleBooks
from jewellery_catalog.pipeline import BatchInputs, run_batch
from jewellery_catalog.rules import parse_no_stones_table, parse_rule_table
from jewellery_catalog.tables import read_table

RULE_HEADER = [
    "Label",
    "Value",
    "Extra",
    "Notes",
    "",
    "",
    "Center Metal",
    "Center Size",
    "Center Quality",
    "No Center Metal",
    "No Center Quality",
]

INPUT_HEADER = [
    "Core Number",
    "Diamonds Type",
    "Category",
    "Subcategory",
    "Grams Weight",
    "Center ct",
    "Center shape",
    "Total Ct Weight",
    "Side 1 Ct",
    "Side 1 Stones",
    "Side 1 shape",
    "Side 1 Type",
    "Tags",
    "Unique Charcteristic/ Width for plain wedding bands",
]


def to_csv(rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def axes(center: tuple[str, str, str] = ("", "", ""), no_center: tuple[str, str] = ("", "")) -> list[str]:
    return ["", "", "", "", "", "", *center, *no_center]


BLANK = [""] * 2


@pytest.fixture
def natural_csv() -> str:
    return to_csv(
        [
            RULE_HEADER,
            axes(("14W 18W", "1.00", "GH"), ("14W|PLT", "GH")),
            axes(("PLT", "0.50", "FG")),
            ["Metal", "Weight Index"],
            ["14", "1.0"],
            ["18", "1.2"],
            ["PLT", "1.5"],
            BLANK,
            ["Metal", "Price per gram"],
            ["14", "30"],
            ["18", "45"],
            ["PLT", "50"],
            BLANK,
            ["Labor", "Cost"],
            ["Per side stone", "2"],
            ["Per Center", "10"],
            ["CAD Creation", "20"],
            BLANK,
            ["Range Begin", "Range End", "Multiplier"],
            ["0", "500", "2.5"],
            ["500", "2000", "2.2"],
            ["2000", "", "2.0"],
            BLANK,
            ["Shape", "Size", "Quality", "Price", "Quality", "Price"],
            ["Round", "0.50-0.99", "GH", "1000", "FG", "1200"],
            ["Round", "1.00-1.49", "GH", "3000", "FG", "3600"],
            ["Round", "0.01-0.10", "GH", "400", "FG", "500"],
        ]
    )


@pytest.fixture
def lab_grown_csv() -> str:
    return to_csv(
        [
            RULE_HEADER,
            axes(("14W", "1.00", "GH"), ("14W", "GH")),
            ["Metal", "Weight Index"],
            ["14", "1.0"],
            BLANK,
            ["Metal", "Price per gram"],
            ["14", "28"],
            BLANK,
            ["Shape", "Size", "Quality", "Price"],
            ["Round", "0.01-0.10", "", "300"],
            ["Round", "0.50-0.99", "", "600"],
            ["Round", "1.00-1.49", "", "1800"],
        ]
    )


@pytest.fixture
def no_stones_csv() -> str:
    return to_csv(
        [
            ["Metal", "Description", "Price per gram"],
            ["14W", "White", "30"],
            ["14Y", "Yellow", "30"],
            ["PLT", "Platinum", "50"],
        ]
    )


@pytest.fixture
def input_csv() -> str:
    return to_csv(
        [
            INPUT_HEADER,
            ["R100", "Natural", "Rings", "Engagement", "4", "1.00", "Round", "1.20", "0.20", "10", "Round", "Diamond", "shape_round, Bestseller", ""],
            ["B200", "Natural", "Bracelets", "Tennis", "10", "", "", "2.00", "2.00", "40", "Round", "Diamond", "", ""],
            ["B200", "Natural", "Bracelets", "Tennis", "12", "", "", "3.00", "3.00", "50", "Round", "Diamond", "", ""],
            ["P300", "Lab Grown", "Pendants", "Solitaire", "3", "", "", "0.50", "0.50", "5", "Round", "Diamond", "", ""],
            ["W400", "No Stones", "Rings", "Wedding Bands", "5", "", "", "", "", "", "", "", "", "4"],
            ["X500", "Moissanite", "Rings", "Other", "5", "", "", "", "", "", "", "", "", ""],
        ]
    )


@pytest.fixture
def weight_csv() -> str:
    return to_csv(
        [
            ["Core Number", "14KT", "18KT", "PLT"],
            ["R100", "6.3", "7.9", "9.2"],
        ]
    )


@pytest.fixture
def settings() -> dict:
    return get_all_settings(use_env=False)


@pytest.fixture
def log() -> RunLog:
    return RunLog()


@pytest.fixture
def rule_books(natural_csv, lab_grown_csv, no_stones_csv, log) -> RuleBooks:
    return RuleBooks(
        natural=parse_rule_table(read_table(natural_csv), "Natural", log),
        lab_grown=parse_rule_table(read_table(lab_grown_csv), "Lab Grown", log),
        no_stones=parse_no_stones_table(read_table(no_stones_csv), "No Stones", log),
    )


@pytest.fixture
def groups(input_csv, log):
    groups, _ = analyze_input(read_table(input_csv), log)
    return {group.core_id: group for group in groups}


@pytest.fixture
def batch(input_csv, natural_csv, lab_grown_csv, no_stones_csv, settings):
    return run_batch(
        BatchInputs(
            input_text=input_csv,
            natural_text=natural_csv,
            lab_grown_text=lab_grown_csv,
            no_stones_text=no_stones_csv,
        ),
        settings,
    )
