import pytest

from jewellery_catalog.costing import (
    LookupFailure,
    calculate_cost_breakdown,
    compute_variant_grams,
    find_center_price_per_carat,
    find_side_price_per_carat,
    round_to_half_gram,
)
from jewellery_catalog.expansion import expand_group
from jewellery_catalog.grouping import analyze_input
from jewellery_catalog.models import DiamondPrice, InputRecord, Rulebook, RuleSet, Scenario, VariantSeed
from jewellery_catalog.tables import read_table
from jewellery_catalog.weights import parse_weight_lookup

PRICES = (
    DiamondPrice("Round", 0.01, 0.10, "GH", 400.0),
    DiamondPrice("Round", 0.01, 0.10, "FG", 500.0),
    DiamondPrice("Round", 1.00, 1.49, "GH", 3000.0),
    DiamondPrice("Oval", 1.00, 1.49, "GH", 3200.0),
)


@pytest.mark.parametrize(("grams", "rounded"), [(4.8, 5.0), (4.74, 4.5), (4.75, 5.0), (6.0, 6.0), (0.2, 0.0)])
def test_round_to_half_gram(grams, rounded):
    assert round_to_half_gram(grams) == rounded


def test_unique_center_cost(groups, rule_books, settings):
    seed = expand_group(groups["R100"], rule_books.natural)[0]
    cost = calculate_cost_breakdown(seed, rule_books.natural, settings=settings)

    assert cost.variant_grams == 4.0
    assert cost.center_diamond == 3000.0
    assert cost.side_diamond == 80.0
    assert cost.details.side_price_source == "exact"
    assert cost.metal == 120.0
    assert cost.side_labor == 20.0
    assert cost.center_labor == 10.0
    assert cost.polish == 25.0
    assert cost.cad_fee == 20.0
    assert cost.fixed_fee == 25.0
    assert cost.bracelet_fee == cost.pendant_fee == 0.0
    assert cost.total_cost == 3300.0
    assert cost.diamond_cost == 3080.0


def test_weight_multiplier_rounds_to_half_gram(groups, rule_books, settings):
    seeds = expand_group(groups["R100"], rule_books.natural)
    eighteen = calculate_cost_breakdown(seeds[1], rule_books.natural, settings=settings)
    platinum = calculate_cost_breakdown(seeds[2], rule_books.natural, settings=settings)

    assert eighteen.variant_grams == 5.0
    assert eighteen.details.weight_multiplier == 1.2
    assert eighteen.metal == 225.0
    assert eighteen.total_cost == 3405.0

    assert platinum.variant_grams == 6.0
    assert platinum.center_diamond == 600.0
    assert platinum.side_diamond == 100.0
    assert platinum.total_cost == 1100.0


def test_repeating_bracelet_cost(groups, rule_books, settings):
    seeds = expand_group(groups["B200"], rule_books.natural)
    first = calculate_cost_breakdown(seeds[0], rule_books.natural, settings=settings)
    platinum = calculate_cost_breakdown(seeds[1], rule_books.natural, settings=settings)

    assert first.center_diamond == 0.0
    assert first.center_labor == 0.0
    assert first.side_diamond == 800.0
    assert first.side_labor == 80.0
    assert first.bracelet_fee == 125.0
    assert first.details.is_bracelet
    assert first.total_cost == 1375.0
    assert platinum.metal == 750.0
    assert platinum.total_cost == 1825.0


def test_lab_grown_uses_settings_for_missing_labor(groups, rule_books, settings):
    seed = expand_group(groups["P300"], rule_books.lab_grown)[0]
    cost = calculate_cost_breakdown(seed, rule_books.lab_grown, settings=settings)

    assert cost.metal == 84.0
    assert cost.side_diamond == 150.0
    assert cost.side_labor == 5.0
    assert cost.pendant_fee == 80.0
    assert cost.total_cost == 389.0


def test_no_stones_cost(groups, rule_books, settings):
    seeds = expand_group(groups["W400"], rule_books.no_stones)
    white = calculate_cost_breakdown(seeds[0], rule_books.no_stones, settings=settings)
    platinum = calculate_cost_breakdown(seeds[2], rule_books.no_stones, settings=settings)

    assert white.variant_grams == 5.0
    assert white.details.weight_source == "base"
    assert white.diamond_cost == 0.0
    assert white.total_cost == 220.0
    assert platinum.total_cost == 320.0


def test_weight_lookup_overrides_multiplier(groups, rule_books, weight_csv):
    lookup = parse_weight_lookup(read_table(weight_csv))
    seeds = expand_group(groups["R100"], rule_books.natural)

    assert compute_variant_grams(seeds[0], rule_books.natural, weight_lookup=lookup) == (6.5, 1.0, "lookup")
    assert compute_variant_grams(seeds[2], rule_books.natural, weight_lookup=lookup) == (9.0, 1.0, "lookup")
    other = expand_group(groups["B200"], rule_books.natural)[0]
    assert compute_variant_grams(other, rule_books.natural, weight_lookup=lookup) == (10.0, 1.0, "multiplier")


def test_center_price_matches_shape_bracket_and_quality():
    assert find_center_price_per_carat(
        PRICES, shape="round", carats=1.2, quality="GH", natural=True, product_id="R1"
    ) == 3000.0
    assert find_center_price_per_carat(
        PRICES, shape="Oval", carats=1.0, quality=None, natural=False, product_id="R1"
    ) == 3200.0


@pytest.mark.parametrize(
    ("shape", "carats", "quality", "kind"),
    [
        ("", 1.0, "GH", "center_shape"),
        ("Round", 1.0, None, "center_quality"),
        ("Round", 2.0, "GH", "center_bracket"),
        ("Pear", 1.0, "GH", "center_bracket"),
    ],
)
def test_center_price_failures(shape, carats, quality, kind):
    with pytest.raises(LookupFailure) as info:
        find_center_price_per_carat(PRICES, shape=shape, carats=carats, quality=quality, natural=True, product_id="R1")

    assert info.value.kind == kind
    assert info.value.context()["product_id"] == "R1"


def test_center_failure_propagates_from_breakdown(groups, rule_books, settings):
    seed = expand_group(groups["R100"], rule_books.lab_grown)[0]

    with pytest.raises(LookupFailure) as info:
        calculate_cost_breakdown(seed, rule_books.lab_grown, settings=settings)
    assert info.value.kind == "center_bracket"


def test_side_price_tiers():
    assert find_side_price_per_carat(
        PRICES, shape="Round", carats_per_stone=0.05, quality="FG", natural=True, default=150.0
    ) == (500.0, "exact")
    assert find_side_price_per_carat(
        PRICES, shape="Round", carats_per_stone=0.5, quality="GH", natural=True, default=150.0
    ) == (400.0, "shape")
    assert find_side_price_per_carat(
        PRICES, shape="Round", carats_per_stone=0.05, quality=None, natural=True, default=150.0
    ) == (400.0, "shape")
    assert find_side_price_per_carat(
        PRICES, shape="Pear", carats_per_stone=0.05, quality="GH", natural=True, default=150.0
    ) == (150.0, "default")
    assert find_side_price_per_carat(
        PRICES, shape="Oval", carats_per_stone=1.1, quality=None, natural=False, default=100.0
    ) == (3200.0, "exact")


def test_missing_grams_use_settings_default(rule_books, settings):
    groups, _ = analyze_input(read_table("Core Number,Diamonds Type,Category\nN1,No Stones,Rings\n"))
    seed = expand_group(groups[0], rule_books.no_stones)[0]
    cost = calculate_cost_breakdown(seed, rule_books.no_stones, settings={**settings, "default_base_grams": 7.0})

    assert cost.variant_grams == 7.0
    assert cost.metal == 210.0


def _side_stone_seed(values: dict[str, str], quality: str = "GH") -> VariantSeed:
    record = InputRecord(core_id="S1", diamond_type="Natural", values=values)
    return VariantSeed(
        handle="Halo-S1",
        core_id="S1",
        scenario=Scenario.UNIQUE_NO_CENTER,
        rulebook=Rulebook.NATURAL,
        metal_code="14W",
        record=record,
        quality=quality,
    )


def test_each_side_group_priced_on_its_own_shape_and_size(settings):
    rules = RuleSet(
        name="Natural",
        diamond_prices=(
            DiamondPrice("Round", 0.01, 0.05, "GH", 400.0),
            DiamondPrice("Baguette", 0.10, 0.20, "GH", 2000.0),
        ),
    )
    seed = _side_stone_seed(
        {
            "Side 1 Ct": "0.20",
            "Side 1 Stones": "10",
            "Side 1 shape": "Round",
            "Side 2 Ct": "0.60",
            "Side 2 Stones": "4",
            "Side 2 shape": "Baguette",
        }
    )
    cost = calculate_cost_breakdown(seed, rules, settings=settings)

    assert cost.side_diamond == 1280.0
    assert cost.details.side_carats == 0.8
    assert cost.details.side_stone_count == 14
    assert cost.details.side_price_per_carat == 1600.0
    assert cost.details.side_price_source == "exact"
    assert [(g.shape, g.price_per_carat, g.source) for g in cost.details.side_groups] == [
        ("Round", 400.0, "exact"),
        ("Baguette", 2000.0, "exact"),
    ]


def test_side_groups_can_fall_back_to_different_tiers(settings):
    rules = RuleSet(name="Natural", diamond_prices=(DiamondPrice("Round", 0.01, 0.05, "GH", 400.0),))
    seed = _side_stone_seed(
        {
            "Side 1 Ct": "0.20",
            "Side 1 Stones": "10",
            "Side 1 shape": "Round",
            "Side 2 Ct": "0.50",
            "Side 2 Stones": "2",
            "Side 2 shape": "Pear",
        }
    )
    cost = calculate_cost_breakdown(seed, rules, settings=settings)

    assert cost.side_diamond == 80.0 + 0.5 * settings["natural_side_price_per_carat"]
    assert cost.details.side_price_source == "mixed"
    assert [g.source for g in cost.details.side_groups] == ["exact", "default"]


def test_side_carats_without_numbered_groups_use_total_minus_center(settings):
    rules = RuleSet(
        name="Natural",
        diamond_prices=(
            DiamondPrice("Round", 0.01, 0.10, "GH", 400.0),
            DiamondPrice("Round", 1.00, 1.49, "GH", 3000.0),
        ),
    )
    seed = _side_stone_seed(
        {"Total Ct Weight": "1.30", "Center ct": "1.00", "Center shape": "Round", "Side Stone Count": "6"}
    )

    cost = calculate_cost_breakdown(seed, rules, settings=settings)

    assert cost.side_diamond == 120.0
    assert cost.details.side_carats == 0.3
    assert [(g.position, g.shape) for g in cost.details.side_groups] == [(0, "Round")]
