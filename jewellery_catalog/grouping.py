from typing import Any

from . import fields
from .events import RunLog
from .models import CoreGroup, InputRecord, Rulebook, Scenario
from .tables import RawTable

STAGE = "grouping"

NATURAL_MARKERS = ("natural",)
LAB_GROWN_MARKERS = ("labgrown", "lab grown", "lab-grown")
NO_STONES_MARKERS = ("no stones", "nostones", "no stone", "nostone")


def classify_diamond_type(value: str) -> Rulebook:
    lowered = value.strip().lower()
    if not lowered or any(marker in lowered for marker in NO_STONES_MARKERS):
        return Rulebook.NO_STONES
    if any(marker in lowered for marker in LAB_GROWN_MARKERS):
        return Rulebook.LAB_GROWN
    if any(marker in lowered for marker in NATURAL_MARKERS):
        return Rulebook.NATURAL
    return Rulebook.UNKNOWN


def resolve_scenario(records: tuple[InputRecord, ...], rulebook: Rulebook) -> Scenario:
    if rulebook is Rulebook.NO_STONES:
        return Scenario.NO_STONES
    if len(records) > 1:
        return Scenario.REPEATING
    center = records[0].center_carat
    if center is not None:
        return Scenario.UNIQUE_CENTER
    return Scenario.UNIQUE_NO_CENTER


def build_records(table: RawTable, log: RunLog | None = None) -> list[InputRecord]:
    log = log or RunLog()
    records = []
    for row_number, values in enumerate(table.records(), start=2):
        core_id = fields.first_value(values, fields.CORE_NUMBER)
        if not core_id:
            if any(values.values()):
                log.warning(STAGE, f"Row {row_number} has no core number; skipped", row=row_number)
            continue
        records.append(
            InputRecord(
                core_id=core_id,
                diamond_type=fields.first_value(values, fields.DIAMONDS_TYPE),
                values=values,
                row_number=row_number,
            )
        )
    return records


def group_records(records: list[InputRecord], log: RunLog | None = None) -> list[CoreGroup]:
    """Groups records by core number in first-seen order and resolves each group's scenario and rulebook."""
    log = log or RunLog()
    by_core: dict[str, list[InputRecord]] = {}
    for record in records:
        by_core.setdefault(record.core_id, []).append(record)

    groups = []
    for core_id, members in by_core.items():
        ordered = tuple(members)
        diamond_type = ordered[0].diamond_type
        rulebook = classify_diamond_type(diamond_type)
        mixed = {classify_diamond_type(record.diamond_type) for record in ordered}
        if len(mixed) > 1:
            log.warning(
                STAGE,
                f"Core {core_id} mixes diamond types; using '{diamond_type}' from its first row",
                core=core_id,
                types=sorted(rulebook.value for rulebook in mixed),
            )
        group = CoreGroup(
            core_id=core_id,
            scenario=resolve_scenario(ordered, rulebook),
            rulebook=rulebook,
            diamond_type=diamond_type,
            records=ordered,
        )
        if rulebook is Rulebook.UNKNOWN:
            log.warning(
                STAGE,
                f"Core {core_id}: diamond type '{diamond_type}' matches no rulebook; no variants",
                core=core_id,
                rulebook=group.rulebook_name,
            )
        groups.append(group)
    return groups


def group_stats(records: list[InputRecord], groups: list[CoreGroup]) -> dict[str, Any]:
    return {
        "total_rows": len(records),
        "total_groups": len(groups),
        "unique_groups": sum(1 for g in groups if g.scenario in (Scenario.UNIQUE_CENTER, Scenario.UNIQUE_NO_CENTER)),
        "repeating_groups": sum(1 for g in groups if g.scenario is Scenario.REPEATING),
        "natural_groups": sum(1 for g in groups if g.rulebook is Rulebook.NATURAL),
        "lab_grown_groups": sum(1 for g in groups if g.rulebook is Rulebook.LAB_GROWN),
        "no_stones_groups": sum(1 for g in groups if g.rulebook is Rulebook.NO_STONES),
        "unknown_groups": sum(1 for g in groups if g.rulebook is Rulebook.UNKNOWN),
    }


def analyze_input(table: RawTable, log: RunLog | None = None) -> tuple[list[CoreGroup], dict[str, Any]]:
    log = log or RunLog()
    records = build_records(table, log)
    groups = group_records(records, log)
    stats = group_stats(records, groups)
    log.info(STAGE, f"Grouped {stats['total_rows']} rows into {stats['total_groups']} core groups", **stats)
    return groups, stats
