from jewellery_catalog.events import RunLog
from jewellery_catalog.expansion import expand_all, expand_group, expected_variant_count, make_handle
from jewellery_catalog.models import RuleBooks


def test_unique_center_uses_per_row_combinations(groups, rule_books):
    seeds = expand_group(groups["R100"], rule_books.natural)

    assert [(s.metal_code, s.center_size, s.quality) for s in seeds] == [
        ("14W", "1.00", "GH"),
        ("18W", "1.00", "GH"),
        ("PLT", "0.50", "FG"),
    ]
    assert {s.handle for s in seeds} == {"Engagement-R100"}


def test_repeating_expands_each_row(groups, rule_books):
    seeds = expand_group(groups["B200"], rule_books.natural)

    assert len(seeds) == 4
    assert [(s.record.base_grams, s.metal_code) for s in seeds] == [
        (10.0, "14W"),
        (10.0, "PLT"),
        (12.0, "14W"),
        (12.0, "PLT"),
    ]
    assert all(s.center_size is None and s.quality == "GH" for s in seeds)


def test_unique_no_center_and_no_stones(groups, rule_books):
    lab = expand_group(groups["P300"], rule_books.lab_grown)
    bands = expand_group(groups["W400"], rule_books.no_stones)

    assert [(s.metal_code, s.quality) for s in lab] == [("14W", "GH")]
    assert [s.metal_code for s in bands] == ["14W", "14Y", "PLT"]
    assert all(s.quality is None for s in bands)
    assert make_handle(bands[0].record) == "Wedding Bands-W400"


def test_expected_counts(groups, rule_books):
    assert expected_variant_count(groups["R100"], rule_books.natural) == 3
    assert expected_variant_count(groups["B200"], rule_books.natural) == 4
    assert expected_variant_count(groups["W400"], rule_books.no_stones) == 3
    assert expected_variant_count(groups["X500"], None) == 0


def test_expand_all(groups, rule_books, log):
    result = expand_all(list(groups.values()), rule_books, log)

    assert len(result.seeds) == 11
    assert result.mismatches == {}
    assert result.actual == {
        "Engagement-R100": 3,
        "Tennis-B200": 4,
        "Solitaire-P300": 1,
        "Wedding Bands-W400": 3,
    }
    assert result.stats == {
        "total_variants": 11,
        "skipped_groups": 1,
        "UniqueCenter": 3,
        "UniqueNoCenter": 1,
        "Repeating": 4,
        "NoStones": 3,
    }


def test_missing_rule_table_skips_group_with_warning(groups, rule_books):
    log = RunLog()
    books = RuleBooks(natural=rule_books.natural, lab_grown=None, no_stones=rule_books.no_stones)
    result = expand_all([groups["P300"], groups["X500"]], books, log)

    assert result.seeds == ()
    assert result.stats["skipped_groups"] == 2
    warnings = log.filter(level="warning", stage="expansion")
    assert [w.payload["rulebook"] for w in warnings] == ["Lab Grown (missing)"]
