"""
Builds the catalog export CSV from files on disk, without the streamlit front end.

    python scripts/build_catalog.py input.csv natural.csv labgrown.csv nostones.csv -o export.csv
"""

import argparse
import logging
import sys
from pathlib import Path

from jewellery_catalog.pipeline import BatchInputs, run_batch


def _read(path: Path | None) -> str | None:
    if path is None:
        return None
    return path.read_text(encoding="utf-8-sig")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build the catalog export CSV.")
    parser.add_argument("input", type=Path)
    parser.add_argument("natural", type=Path)
    parser.add_argument("lab_grown", type=Path)
    parser.add_argument("no_stones", type=Path)
    parser.add_argument("--weights", type=Path, default=None, help="Optional per-core weight lookup CSV")
    parser.add_argument("-o", "--output", type=Path, default=Path("catalog_export.csv"))
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    result = run_batch(
        BatchInputs(
            input_text=_read(args.input),
            natural_text=_read(args.natural),
            lab_grown_text=_read(args.lab_grown),
            no_stones_text=_read(args.no_stones),
            weight_lookup_text=_read(args.weights),
        )
    )
    args.output.write_text(result.csv_text + "\n", encoding="utf-8")

    summary = result.summary()
    print(f"Wrote {summary['rows']} rows ({summary['handles']} handles) to {args.output}")
    for error in result.report.errors:
        print(f"  error: {error}")
    if summary["failures"]:
        print(f"  {summary['failures']} variants failed costing; see the log above.")
    return 0 if result.report.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())
