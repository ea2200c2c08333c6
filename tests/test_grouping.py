import pytest

from jewellery_catalog.events import RunLog
from jewellery_catalog.grouping import analyze_input, build_records, classify_diamond_type, group_records
from jewellery_catalog.models import Rulebook, Scenario
from jewellery_catalog.tables import read_table

from .conftest import to_csv


@pytest.mark.parametrize(
    ("value", "rulebook"),
    [
        ("Natural", Rulebook.NATURAL),
        ("natural diamonds", Rulebook.NATURAL),
        ("Lab Grown", Rulebook.LAB_GROWN),
        ("LabGrown", Rulebook.LAB_GROWN),
        ("lab-grown", Rulebook.LAB_GROWN),
        ("No Stones", Rulebook.NO_STONES),
        ("", Rulebook.NO_STONES),
        ("Moissanite", Rulebook.UNKNOWN),
    ],
)
def test_classify_diamond_type(value, rulebook):
    assert classify_diamond_type(value) is rulebook


def test_groups_keep_first_seen_order_and_scenarios(groups):
    assert list(groups) == ["R100", "B200", "P300", "W400", "X500"]
    assert groups["R100"].scenario is Scenario.UNIQUE_CENTER
    assert groups["B200"].scenario is Scenario.REPEATING
    assert len(groups["B200"].records) == 2
    assert groups["P300"].scenario is Scenario.UNIQUE_NO_CENTER
    assert groups["P300"].rulebook is Rulebook.LAB_GROWN
    assert groups["W400"].scenario is Scenario.NO_STONES
    assert groups["X500"].rulebook is Rulebook.UNKNOWN
    assert groups["X500"].rulebook_name == "Unknown (Moissanite)"


def test_record_accessors(groups):
    record = groups["R100"].representative

    assert record.category == "Rings"
    assert record.handle_subcategory == "Engagement"
    assert record.center_carat == 1.0
    assert record.base_grams == 4.0
    assert record.side_carat_sum() == 0.2
    assert record.side_stone_count() == 10
    assert record.primary_side_shape() == "Round"


def test_base_grams_default_when_missing():
    table = read_table(to_csv([["Core Number", "Diamonds Type"], ["A1", "Natural"]]))
    (record,) = build_records(table)

    assert record.base_grams == 5.0
    assert record.handle_subcategory == "Product"
    assert record.side_groups() == []


def test_rows_without_core_number_are_skipped_with_warning():
    log = RunLog()
    table = read_table(to_csv([["Core Number", "Category"], ["", "Rings"], ["", ""], ["A1", "Rings"]]))
    records = build_records(table, log)

    assert [record.core_id for record in records] == ["A1"]
    warnings = log.filter(level="warning", stage="grouping")
    assert len(warnings) == 1
    assert warnings[0].payload["row"] == 2


def test_mixed_diamond_types_use_first_row():
    log = RunLog()
    table = read_table(
        to_csv([["Core Number", "Diamonds Type"], ["M1", "Natural"], ["M1", "Lab Grown"]])
    )
    (group,) = group_records(build_records(table), log)

    assert group.rulebook is Rulebook.NATURAL
    assert group.scenario is Scenario.REPEATING
    assert "mixes diamond types" in log.filter(level="warning")[0].message


def test_side_shape_falls_back_to_shape_list():
    table = read_table(
        to_csv(
            [
                ["Core Number", "Side 1 Ct", "Side 2 Ct", "Side shapes"],
                ["S1", "0.3", "0.2", "Princess, Oval"],
            ]
        )
    )
    (record,) = build_records(table)

    assert [group.shape for group in record.side_groups()] == ["Princess", "Oval"]
    assert record.side_carat_sum() == 0.5


def test_analyze_input_stats(input_csv):
    groups, stats = analyze_input(read_table(input_csv))

    assert len(groups) == 5
    assert stats == {
        "total_rows": 6,
        "total_groups": 5,
        "unique_groups": 3,
        "repeating_groups": 1,
        "natural_groups": 2,
        "lab_grown_groups": 1,
        "no_stones_groups": 1,
        "unknown_groups": 1,
    }
