import math
from typing import Any

from . import fields
from .models import (
    CostBreakdown,
    CostDetails,
    DiamondPrice,
    NoStonesRuleSet,
    Rulebook,
    RuleSet,
    Scenario,
    SideGroupPrice,
    VariantSeed,
)
from .pricing import round_money
from .weights import WeightLookup, get_variant_weight

LABOR_LABELS = {
    "per_side_stone_labor": "Per side stone",
    "per_center_labor": "Per Center",
    "polish": "Polish",
    "polish_bridal": "Bridal Polish",
    "bracelet_fee": "Bracelets",
    "pendant_fee": "Pendants",
    "cad_fee": "CAD Creation",
    "fixed_fee": "Additional",
}


class LookupFailure(Exception):
    """A required diamond price could not be resolved for one variant."""

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        shape: str = "",
        weight: float | None = None,
        quality: str | None = None,
        product_id: str = "unknown",
    ):
        super().__init__(message)
        self.kind = kind
        self.shape = shape
        self.weight = weight
        self.quality = quality
        self.product_id = product_id

    def context(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "shape": self.shape,
            "weight": self.weight,
            "quality": self.quality,
            "product_id": self.product_id,
        }


def round_to_half_gram(grams: float) -> float:
    return math.floor(grams / 0.5 + 0.5) * 0.5


def is_natural(seed: VariantSeed) -> bool:
    return seed.rulebook is Rulebook.NATURAL


def labor_rate(rule_set: RuleSet | NoStonesRuleSet, settings: dict[str, Any], key: str) -> float:
    return rule_set.labor_rate(LABOR_LABELS[key], settings[key])


def compute_variant_grams(
    seed: VariantSeed,
    rule_set: RuleSet | NoStonesRuleSet,
    *,
    weight_lookup: WeightLookup | None = None,
    default_grams: float = fields.DEFAULT_BASE_GRAMS,
) -> tuple[float, float, str]:
    """Returns (grams, weight multiplier, weight source)."""
    stone_bearing = isinstance(rule_set, RuleSet)
    looked_up = get_variant_weight(weight_lookup, seed.core_id, seed.metal_code) if weight_lookup else None
    if looked_up is not None:
        grams = round_to_half_gram(looked_up) if stone_bearing else looked_up
        return grams, 1.0, "lookup"

    base = seed.record.grams(default_grams)
    if not stone_bearing:
        return base, 1.0, "base"
    multiplier = rule_set.weight_multiplier(seed.metal_code)
    return round_to_half_gram(base * multiplier), multiplier, "multiplier"


def find_center_price_per_carat(
    prices: tuple[DiamondPrice, ...],
    *,
    shape: str,
    carats: float,
    quality: str | None,
    natural: bool,
    product_id: str,
) -> float:
    if not shape:
        raise LookupFailure(
            f"{product_id}: center stone has no shape",
            kind="center_shape",
            weight=carats,
            quality=quality,
            product_id=product_id,
        )
    if natural and not quality:
        raise LookupFailure(
            f"{product_id}: natural center stone has no quality",
            kind="center_quality",
            shape=shape,
            weight=carats,
            product_id=product_id,
        )

    wanted_shape = shape.strip().lower()
    wanted_quality = (quality or "").strip().upper()
    for entry in prices:
        if entry.shape.lower() != wanted_shape or not entry.covers(carats):
            continue
        if natural and entry.quality != wanted_quality:
            continue
        return entry.price_per_carat

    raise LookupFailure(
        f"{product_id}: no diamond price for {shape} {carats}ct {wanted_quality or 'any quality'}",
        kind="center_bracket",
        shape=shape,
        weight=carats,
        quality=quality,
        product_id=product_id,
    )


def find_side_price_per_carat(
    prices: tuple[DiamondPrice, ...],
    *,
    shape: str,
    carats_per_stone: float,
    quality: str | None,
    natural: bool,
    default: float,
) -> tuple[float, str]:
    """Exact (shape, bracket, quality) match, then any bracket of the same shape, then the default rate."""
    wanted_shape = shape.strip().lower()
    wanted_quality = (quality or "").strip().upper()
    same_shape = [entry for entry in prices if entry.shape.lower() == wanted_shape]

    if not natural or wanted_quality:
        for entry in same_shape:
            if entry.covers(carats_per_stone) and (not natural or entry.quality == wanted_quality):
                return entry.price_per_carat, "exact"

    if same_shape:
        matching = [entry for entry in same_shape if entry.quality == wanted_quality]
        return (matching or same_shape)[0].price_per_carat, "shape"

    return default, "default"


def compute_center_diamond(seed: VariantSeed, rule_set: RuleSet) -> tuple[float, float, float]:
    """Returns (cost, carats, price per carat)."""
    carats = seed.center_carats
    if carats is None:
        carats = seed.record.center_carat
    if carats is None or carats <= 0:
        return 0.0, 0.0, 0.0

    price_per_carat = find_center_price_per_carat(
        rule_set.diamond_prices,
        shape=seed.record.center_shape,
        carats=carats,
        quality=seed.quality,
        natural=is_natural(seed),
        product_id=seed.core_id,
    )
    return round_money(carats * price_per_carat), carats, price_per_carat


def side_carats(seed: VariantSeed) -> float:
    """Side carats for a record without numbered side groups: total minus center, else the summary column."""
    total = seed.record.number(fields.TOTAL_CARAT)
    center = seed.record.center_carat
    if total is not None and center is not None and total > 0 and center > 0 and total - center > 0:
        return round(total - center, 4)
    return seed.record.side_carat_sum()


def _side_group_price(
    seed: VariantSeed,
    rule_set: RuleSet,
    default: float,
    *,
    position: int,
    shape: str,
    carats: float,
    stones: int,
) -> SideGroupPrice:
    price_per_carat, source = find_side_price_per_carat(
        rule_set.diamond_prices,
        shape=shape,
        carats_per_stone=carats / stones if stones > 0 else carats,
        quality=seed.quality,
        natural=is_natural(seed),
        default=default,
    )
    return SideGroupPrice(
        position=position,
        shape=shape,
        carats=carats,
        stones=stones,
        price_per_carat=price_per_carat,
        source=source,
    )


def compute_side_diamond(
    seed: VariantSeed,
    rule_set: RuleSet,
    settings: dict[str, Any],
) -> tuple[float, float, int, float, str, tuple[SideGroupPrice, ...]]:
    """
    Prices every numbered side group on its own shape and per-stone size.

    Returns (cost, carats, stone count, carat-weighted price per carat, price source, group prices).
    The source is the groups' shared tier, or "mixed" when they differ.
    """
    record = seed.record
    count = record.side_stone_count()
    default = settings["natural_side_price_per_carat"] if is_natural(seed) else settings["lab_side_price_per_carat"]

    groups = [group for group in record.side_groups() if group.carats > 0]
    if groups:
        priced = tuple(
            _side_group_price(
                seed,
                rule_set,
                default,
                position=group.position,
                shape=group.shape,
                carats=group.carats,
                stones=group.stones,
            )
            for group in groups
        )
    else:
        carats = side_carats(seed)
        if carats <= 0:
            return 0.0, 0.0, count, 0.0, "none", ()
        priced = (
            _side_group_price(
                seed,
                rule_set,
                default,
                position=0,
                shape=record.primary_side_shape(),
                carats=carats,
                stones=count,
            ),
        )

    total_carats = round(sum(group.carats for group in priced), 4)
    cost = sum(group.carats * group.price_per_carat for group in priced)
    sources = {group.source for group in priced}
    source = sources.pop() if len(sources) == 1 else "mixed"
    return round_money(cost), total_carats, count, round_money(cost / total_carats), source, priced


def calculate_cost_breakdown(
    seed: VariantSeed,
    rule_set: RuleSet | NoStonesRuleSet,
    *,
    settings: dict[str, Any],
    weight_lookup: WeightLookup | None = None,
) -> CostBreakdown:
    record = seed.record
    grams, multiplier, weight_source = compute_variant_grams(
        seed,
        rule_set,
        weight_lookup=weight_lookup,
        default_grams=settings["default_base_grams"],
    )

    center_cost = center_carats = center_ppc = 0.0
    side_cost = side_total = side_ppc = 0.0
    side_source = "none"
    side_groups: tuple[SideGroupPrice, ...] = ()
    stone_count = 0
    if isinstance(rule_set, RuleSet):
        center_cost, center_carats, center_ppc = compute_center_diamond(seed, rule_set)
        side_cost, side_total, stone_count, side_ppc, side_source, side_groups = compute_side_diamond(
            seed, rule_set, settings
        )

    price_per_gram = rule_set.metal_price_per_gram(seed.metal_code, settings["default_metal_price_per_gram"])
    metal_cost = round_money(grams * price_per_gram)

    category = record.category.lower()
    is_bracelet = "bracelet" in category
    is_pendant = "pendant" in category
    is_bridal = "bridal" in record.subcategory.lower()

    side_labor = round_money(stone_count * labor_rate(rule_set, settings, "per_side_stone_labor"))
    center_labor = (
        round_money(labor_rate(rule_set, settings, "per_center_labor"))
        if seed.scenario is Scenario.UNIQUE_CENTER
        else 0.0
    )
    polish = round_money(labor_rate(rule_set, settings, "polish_bridal" if is_bridal else "polish"))
    bracelet_fee = round_money(labor_rate(rule_set, settings, "bracelet_fee")) if is_bracelet else 0.0
    pendant_fee = round_money(labor_rate(rule_set, settings, "pendant_fee")) if is_pendant else 0.0
    cad_fee = round_money(labor_rate(rule_set, settings, "cad_fee"))
    fixed_fee = round_money(labor_rate(rule_set, settings, "fixed_fee"))

    total_cost = round_money(
        center_cost
        + side_cost
        + metal_cost
        + center_labor
        + side_labor
        + polish
        + bracelet_fee
        + pendant_fee
        + cad_fee
        + fixed_fee
    )

    return CostBreakdown(
        center_diamond=center_cost,
        side_diamond=side_cost,
        metal=metal_cost,
        center_labor=center_labor,
        side_labor=side_labor,
        polish=polish,
        bracelet_fee=bracelet_fee,
        pendant_fee=pendant_fee,
        cad_fee=cad_fee,
        fixed_fee=fixed_fee,
        total_cost=total_cost,
        variant_grams=grams,
        details=CostDetails(
            base_grams=record.grams(settings["default_base_grams"]),
            weight_multiplier=multiplier,
            weight_source=weight_source,
            metal_price_per_gram=price_per_gram,
            center_carats=center_carats,
            center_price_per_carat=center_ppc,
            side_carats=side_total,
            side_stone_count=stone_count,
            side_price_per_carat=side_ppc,
            side_price_source=side_source,
            side_groups=side_groups,
            is_bracelet=is_bracelet,
            is_pendant=is_pendant,
            is_bridal=is_bridal,
        ),
    )
