from dataclasses import dataclass, field
from typing import Any

from .config import get_all_settings
from .costing import LookupFailure, calculate_cost_breakdown
from .events import RunLog, configure_logging
from .expansion import ExpansionResult, expand_all
from .export import serialize_rows
from .grouping import analyze_input
from .models import CoreGroup, ExportRow, PricedVariant, RuleBooks, ValidationReport, VariantSeed
from .pricing import calculate_pricing
from .rows import assemble_rows, validate_rows
from .rules import parse_no_stones_table, parse_rule_table
from .tables import RawTable, read_table
from .weights import WeightLookup, parse_weight_lookup


@dataclass(frozen=True)
class BatchInputs:
    input_text: str
    natural_text: str
    lab_grown_text: str
    no_stones_text: str
    weight_lookup_text: str | None = None


@dataclass(frozen=True)
class PipelineContext:
    rule_books: RuleBooks
    groups: tuple[CoreGroup, ...]
    group_stats: dict[str, Any]
    weight_lookup: WeightLookup
    settings: dict[str, Any]
    log: RunLog


@dataclass(frozen=True)
class BatchResult:
    csv_text: str
    report: ValidationReport
    context: PipelineContext
    expansion: ExpansionResult
    priced: tuple[PricedVariant, ...]
    rows: tuple[ExportRow, ...]
    failures: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def log(self) -> RunLog:
        return self.context.log

    def summary(self) -> dict[str, Any]:
        return {
            "is_valid": self.report.is_valid,
            "rows": self.report.total_rows,
            "handles": self.report.total_handles,
            "variants": len(self.expansion.seeds),
            "failures": len(self.failures),
            **{f"{level}_events": count for level, count in self.log.counts().items()},
        }


def _read(text: str, label: str, stage: str, log: RunLog) -> RawTable:
    try:
        return read_table(text)
    except ValueError as exc:
        log.error(stage, f"{label}: {exc}", table=label)
        raise


def build_context(inputs: BatchInputs, settings: dict[str, Any] | None = None, log: RunLog | None = None) -> PipelineContext:
    settings = settings or get_all_settings()
    log = log or RunLog()

    rule_books = RuleBooks(
        natural=parse_rule_table(_read(inputs.natural_text, "Natural", "rules", log), "Natural", log),
        lab_grown=parse_rule_table(_read(inputs.lab_grown_text, "Lab Grown", "rules", log), "Lab Grown", log),
        no_stones=parse_no_stones_table(_read(inputs.no_stones_text, "No Stones", "rules", log), "No Stones", log),
    )
    weight_lookup: WeightLookup = {}
    if inputs.weight_lookup_text and inputs.weight_lookup_text.strip():
        weight_lookup = parse_weight_lookup(_read(inputs.weight_lookup_text, "Weight lookup", "costing", log), log)

    groups, stats = analyze_input(_read(inputs.input_text, "Input", "grouping", log), log)
    return PipelineContext(
        rule_books=rule_books,
        groups=tuple(groups),
        group_stats=stats,
        weight_lookup=weight_lookup,
        settings=settings,
        log=log,
    )


def price_variant(seed: VariantSeed, context: PipelineContext) -> PricedVariant:
    rule_set = context.rule_books.for_rulebook(seed.rulebook)
    cost = calculate_cost_breakdown(
        seed,
        rule_set,
        settings=context.settings,
        weight_lookup=context.weight_lookup,
    )
    record = seed.record
    pricing = calculate_pricing(
        cost=cost.total_cost,
        product_type=f"{record.category}_{record.subcategory}",
        rule_set=rule_set,
        settings=context.settings,
    )
    return PricedVariant(seed=seed, cost=cost, pricing=pricing)


def price_variants(
    seeds: tuple[VariantSeed, ...],
    context: PipelineContext,
) -> tuple[list[PricedVariant], list[dict[str, Any]]]:
    """Costs and prices every seed in order; a LookupFailure drops only that seed."""
    priced: list[PricedVariant] = []
    failures: list[dict[str, Any]] = []
    for seed in seeds:
        try:
            priced.append(price_variant(seed, context))
        except LookupFailure as exc:
            failure = {"handle": seed.handle, "metal": seed.metal_code, "reason": str(exc), **exc.context()}
            failures.append(failure)
            context.log.error("costing", str(exc), **failure)
    context.log.info("costing", f"Priced {len(priced)} of {len(seeds)} variants", priced=len(priced), failed=len(failures))
    return priced, failures


def run_batch(inputs: BatchInputs, settings: dict[str, Any] | None = None) -> BatchResult:
    settings = settings or get_all_settings()
    configure_logging(settings["log_level"])
    context = build_context(inputs, settings)
    log = context.log

    expansion = expand_all(list(context.groups), context.rule_books, log)
    priced, failures = price_variants(expansion.seeds, context)

    rows = assemble_rows(priced, settings=settings)
    report = validate_rows(rows)
    for error in report.errors:
        log.error("assembly", error)
    log.info(
        "assembly",
        f"Assembled {report.total_rows} rows across {report.total_handles} handles",
        parents=report.parent_rows,
        children=report.child_rows,
    )

    csv_text = serialize_rows(rows)
    if report.is_valid and not failures:
        log.success("export", f"Exported {report.total_rows} rows", rows=report.total_rows)
    else:
        log.warning(
            "export",
            f"Exported {report.total_rows} rows with {len(failures)} failed variants and {len(report.errors)} validation errors",
            rows=report.total_rows,
            failures=len(failures),
            errors=len(report.errors),
        )

    return BatchResult(
        csv_text=csv_text,
        report=report,
        context=context,
        expansion=expansion,
        priced=tuple(priced),
        rows=tuple(rows),
        failures=tuple(failures),
    )
