from typing import Any

from .models import MarginBracket, MarginSource, NoStonesRuleSet, PricingResult, RuleSet

TYPE_DEFAULT_MULTIPLIERS = (
    ("ring", 2.0),
    ("bracelet", 2.0),
    ("pendant", 2.5),
)
UNRECOGNIZED_TYPE_MULTIPLIER = 2.5


def round_money(value: float) -> float:
    return round(value, 2)


def find_margin_multiplier(cost: float, margins: tuple[MarginBracket, ...]) -> float | None:
    for bracket in margins:
        if bracket.contains(cost):
            return bracket.multiplier
    return None


def type_default_multiplier(product_type: str) -> float:
    lowered = product_type.strip().lower()
    for key, multiplier in TYPE_DEFAULT_MULTIPLIERS:
        if key in lowered:
            return multiplier
    return UNRECOGNIZED_TYPE_MULTIPLIER


def resolve_multiplier(
    *,
    cost: float,
    product_type: str,
    rule_set: RuleSet | NoStonesRuleSet | None,
    fallback_multiplier: float,
) -> tuple[float, MarginSource]:
    if rule_set is None:
        return fallback_multiplier, MarginSource.FALLBACK
    multiplier = find_margin_multiplier(cost, rule_set.margins)
    if multiplier is not None:
        return multiplier, MarginSource.MARGIN_TABLE
    return type_default_multiplier(product_type), MarginSource.TYPE_DEFAULT


def calculate_pricing(
    *,
    cost: float,
    product_type: str,
    rule_set: RuleSet | NoStonesRuleSet | None,
    settings: dict[str, Any],
) -> PricingResult:
    multiplier, source = resolve_multiplier(
        cost=cost,
        product_type=product_type,
        rule_set=rule_set,
        fallback_multiplier=settings["fallback_multiplier"],
    )
    sell_price = max(0.0, cost * multiplier - 0.01)
    compare_at_price = cost * settings["compare_at_multiplier"]
    return PricingResult(
        cost=round_money(cost),
        multiplier=multiplier,
        sell_price=round_money(sell_price),
        compare_at_price=round_money(compare_at_price),
        source=source,
    )
