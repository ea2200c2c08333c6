"""
Optional per-core weight lookup.

A CSV with a core number column and one column per metal, giving finished grams:

    Core Number,14KT,18KT,PLT
    15686LB,6.5,8.0,11.5
"""

from .events import RunLog
from .tables import RawTable, cell, to_num, trim_all

STAGE = "costing"

WeightLookup = dict[str, dict[str, float]]

METAL_ALIASES = {
    "14W": "14KT",
    "14Y": "14KT",
    "14R": "14KT",
    "18W": "18KT",
    "18Y": "18KT",
    "18R": "18KT",
    "PLT": "PLATINUM",
    "PLAT": "PLATINUM",
}


def normalize_metal(metal_code: str) -> str:
    code = trim_all(metal_code).upper()
    return METAL_ALIASES.get(code, code)


def parse_weight_lookup(table: RawTable, log: RunLog | None = None) -> WeightLookup:
    log = log or RunLog()
    core_index = next(
        (index for index, header in enumerate(table.headers) if "core" in header.lower() or "number" in header.lower()),
        None,
    )
    if core_index is None:
        log.warning(STAGE, "Weight lookup has no core number column; ignored", table="weight lookup", region="core number")
        return {}

    metal_columns = [
        (index, header.upper())
        for index, header in enumerate(table.headers)
        if index != core_index and header
    ]

    lookup: WeightLookup = {}
    for cells in table.rows:
        core = cell(cells, core_index)
        if not core:
            continue
        weights = {}
        for index, metal in metal_columns:
            grams = to_num(cell(cells, index))
            if grams is not None and grams > 0:
                weights[metal] = grams
        if weights:
            lookup[core] = weights

    log.info(STAGE, f"Weight lookup loaded for {len(lookup)} cores", cores=len(lookup), metals=[m for _, m in metal_columns])
    return lookup


def get_variant_weight(lookup: WeightLookup, core_id: str, metal_code: str) -> float | None:
    weights = lookup.get(core_id)
    if not weights:
        return None
    code = trim_all(metal_code).upper()
    if code in weights:
        return weights[code]
    wanted = normalize_metal(code)
    for metal, grams in weights.items():
        if normalize_metal(metal) == wanted:
            return grams
    return None
