from dataclasses import dataclass, field
from typing import Any

from .events import RunLog
from .models import CoreGroup, InputRecord, NoStonesRuleSet, RuleBooks, Rulebook, RuleSet, Scenario, VariantSeed

STAGE = "expansion"


@dataclass(frozen=True)
class ExpansionResult:
    seeds: tuple[VariantSeed, ...]
    expected: dict[str, int] = field(default_factory=dict)
    actual: dict[str, int] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)

    @property
    def mismatches(self) -> dict[str, tuple[int, int]]:
        return {
            handle: (count, self.actual.get(handle, 0))
            for handle, count in self.expected.items()
            if count != self.actual.get(handle, 0)
        }


def make_handle(record: InputRecord) -> str:
    return f"{record.handle_subcategory}-{record.core_id}"


def expected_variant_count(group: CoreGroup, rule_set: RuleSet | NoStonesRuleSet | None) -> int:
    if rule_set is None:
        return 0
    if group.scenario is Scenario.NO_STONES:
        return len(rule_set.metals) if isinstance(rule_set, NoStonesRuleSet) else 0
    if not isinstance(rule_set, RuleSet):
        return 0
    if group.scenario is Scenario.UNIQUE_CENTER:
        return len(rule_set.center_combinations)
    if group.scenario is Scenario.UNIQUE_NO_CENTER:
        return len(rule_set.no_center_combinations)
    return len(group.records) * len(rule_set.no_center_combinations)


def _expected_by_handle(group: CoreGroup, rule_set: RuleSet | NoStonesRuleSet) -> dict[str, int]:
    if group.scenario is not Scenario.REPEATING:
        return {make_handle(group.representative): expected_variant_count(group, rule_set)}
    per_record = len(rule_set.no_center_combinations) if isinstance(rule_set, RuleSet) else 0
    counts: dict[str, int] = {}
    for record in group.records:
        handle = make_handle(record)
        counts[handle] = counts.get(handle, 0) + per_record
    return counts


def expand_group(group: CoreGroup, rule_set: RuleSet | NoStonesRuleSet) -> list[VariantSeed]:
    """Builds the variant seeds of one core group from the per-row combinations of its rule set."""
    if group.scenario is Scenario.NO_STONES:
        record = group.representative
        return [_seed(group, record, metal) for metal in rule_set.metals]

    if group.scenario is Scenario.UNIQUE_CENTER:
        record = group.representative
        return [
            _seed(group, record, combo.metal, center_size=combo.center_size, quality=combo.quality)
            for combo in rule_set.center_combinations
        ]

    records = (group.representative,) if group.scenario is Scenario.UNIQUE_NO_CENTER else group.records
    return [
        _seed(group, record, combo.metal, quality=combo.quality)
        for record in records
        for combo in rule_set.no_center_combinations
    ]


def _seed(
    group: CoreGroup,
    record: InputRecord,
    metal: str,
    *,
    center_size: str | None = None,
    quality: str | None = None,
) -> VariantSeed:
    return VariantSeed(
        handle=make_handle(record),
        core_id=group.core_id,
        scenario=group.scenario,
        rulebook=group.rulebook,
        metal_code=metal,
        record=record,
        center_size=center_size,
        quality=quality,
    )


def expand_all(groups: list[CoreGroup], rule_books: RuleBooks, log: RunLog | None = None) -> ExpansionResult:
    log = log or RunLog()
    seeds: list[VariantSeed] = []
    expected: dict[str, int] = {}
    actual: dict[str, int] = {}
    by_scenario = {scenario.value: 0 for scenario in Scenario}
    skipped = 0

    for group in groups:
        rule_set = rule_books.for_rulebook(group.rulebook)
        if rule_set is None:
            skipped += 1
            if group.rulebook is not Rulebook.UNKNOWN:
                log.warning(
                    STAGE,
                    f"Core {group.core_id}: {group.rulebook_name} (missing) rule table; no variants",
                    core=group.core_id,
                    rulebook=f"{group.rulebook_name} (missing)",
                )
            continue

        group_seeds = expand_group(group, rule_set)
        for handle, count in _expected_by_handle(group, rule_set).items():
            expected[handle] = expected.get(handle, 0) + count
        for seed in group_seeds:
            actual[seed.handle] = actual.get(seed.handle, 0) + 1
        by_scenario[group.scenario.value] += len(group_seeds)
        seeds.extend(group_seeds)

        if not group_seeds:
            log.warning(STAGE, f"Core {group.core_id}: {group.scenario.value} produced no variants", core=group.core_id)

    result = ExpansionResult(
        seeds=tuple(seeds),
        expected=expected,
        actual=actual,
        stats={"total_variants": len(seeds), "skipped_groups": skipped, **by_scenario},
    )
    for handle, (wanted, got) in result.mismatches.items():
        log.warning(STAGE, f"{handle}: expected {wanted} variants, built {got}", handle=handle, expected=wanted, actual=got)
    log.info(STAGE, f"Expanded {len(seeds)} variants", **result.stats)
    return result
