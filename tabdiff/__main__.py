"""
Command line interface for tabdiff

Usage:
    python -m tabdiff before.csv after.csv --key id
    python -m tabdiff before.csv after.csv --key id --export-dir out/
    python -m tabdiff before.csv after.csv --json result.json --excel result.xlsx
    python -m tabdiff before.csv after.csv --validate -v
"""

import argparse
import logging
import sys
from typing import List, Optional

from .comparator import DatasetComparator, compare_datasets
from .errors import TabDiffError
from .export import export_category
from .loader import load_datasets
from .models import CATEGORIES, ComparisonResult
from .validation import validate_dataset

logger = logging.getLogger("tabdiff")

# Suggestions shown on the terminal; exports always contain all of them
_SHOWN_SUGGESTIONS = 10


def setup_logging(verbose: bool = False):
    """Configure logging based on verbosity"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )


def print_summary(result: ComparisonResult, name_a: str, name_b: str) -> None:
    """Print a human-readable summary of a comparison"""
    summary = result.summary
    print(f"Comparing {name_a!r} with {name_b!r} on key {summary['key_column']!r}")
    print("=" * 40)
    print(f"Identical rows: {summary['identical_rows']}")
    print(f"Modified rows:  {summary['modified_rows']}")
    print(f"Added rows:     {summary['added_rows']}")
    print(f"Deleted rows:   {summary['deleted_rows']}")
    print(f"Datasets identical: {summary['identical']}")

    if result.suggestions:
        print(f"\nMerge suggestions ({len(result.suggestions)}):")
        for suggestion in result.suggestions[:_SHOWN_SUGGESTIONS]:
            print(f"  [{suggestion.confidence:.0%} {suggestion.level.value}] {suggestion.description}")
        if len(result.suggestions) > _SHOWN_SUGGESTIONS:
            print(f"  ... {len(result.suggestions) - _SHOWN_SUGGESTIONS} more")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser"""
    parser = argparse.ArgumentParser(
        prog="tabdiff",
        description="Compare two CSV files by a key column and suggest merges"
    )
    parser.add_argument("file_a", help="Original CSV file")
    parser.add_argument("file_b", help="CSV file to compare against the original")
    parser.add_argument("--key", "-k", default=None,
                        help="Key column (default: first column of the original file)")
    parser.add_argument("--export-dir", default=None,
                        help="Write one CSV per non-empty category to this directory")
    parser.add_argument("--json", default=None, help="Write the full result as JSON")
    parser.add_argument("--excel", default=None, help="Write the full result as an Excel workbook")
    parser.add_argument("--validate", action="store_true",
                        help="Report data-quality issues in both files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        dataset_a, dataset_b = load_datasets([args.file_a, args.file_b])

        if args.validate:
            key = DatasetComparator.resolve_key_column(dataset_a, dataset_b, args.key)
            for dataset in (dataset_a, dataset_b):
                issues = list(dataset.issues) + validate_dataset(dataset, key)
                print(f"{dataset.name}: {len(issues)} issue(s)")
                for issue in issues:
                    print(f"  {issue}")

        result = compare_datasets(dataset_a, dataset_b, key_column=args.key)
        print_summary(result, dataset_a.name, dataset_b.name)

        if args.export_dir:
            for category in CATEGORIES:
                export_category(result, category, args.export_dir)
        if args.json:
            with open(args.json, 'w', encoding='utf-8') as f:
                f.write(result.to_json())
            logger.info("Wrote %s", args.json)
        if args.excel:
            result.export_to_excel(args.excel)
            logger.info("Wrote %s", args.excel)

    except TabDiffError as exc:
        logger.error("%s", exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
