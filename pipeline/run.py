#!/usr/bin/env python3
"""
CLI entry point for the segmentation pipeline.

Usage:
    # Run with a config
    python -m pipeline.run configs/default.yaml

    # Load a CSV extract first, into a specific database
    python -m pipeline.run configs/default.yaml --input customers.csv \
        --database-url sqlite:///retainx.db

    # List past runs
    python -m pipeline.run --list
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import PipelineConfig
from .runner import PipelineRunner


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Customer retention segmentation pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m pipeline.run configs/default.yaml
  python -m pipeline.run configs/default.yaml configs/lenient_salary.yaml
  python -m pipeline.run configs/default.yaml --input data/customers.csv
  python -m pipeline.run --list
        """,
    )

    parser.add_argument(
        "configs",
        nargs="*",
        help="Path(s) to YAML config file(s)",
    )
    parser.add_argument(
        "--input",
        help="CSV extract to load into the raw table before deriving",
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (overrides the config)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List all past runs",
    )
    parser.add_argument(
        "--stop-on-failure",
        action="store_true",
        help="Stop batch run if any run errors",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    runner = PipelineRunner()

    # List runs
    if args.list:
        df = runner.list_runs()
        if df.empty:
            print("No runs found.")
        else:
            print(df.to_string(index=False))
        return 0

    if not args.configs:
        parser.print_help()
        return 1

    # Resolve config paths relative to pipeline/ directory
    pipeline_dir = Path(__file__).parent

    results = []
    failures = 0
    for config_path in args.configs:
        path = Path(config_path)

        if not path.is_absolute() and not path.exists():
            path = pipeline_dir / path

        if not path.exists():
            print(f"Config not found: {config_path}")
            failures += 1
            if args.stop_on_failure:
                return 1
            continue

        try:
            print(f"\n{'=' * 60}")
            print(f"Running: {path.name}")
            print("=" * 60)

            config = PipelineConfig.from_yaml(path)
            if args.input:
                config.input_path = str(Path(args.input).resolve())
            if args.database_url:
                config.database_url = args.database_url

            result = runner.run(config)
            results.append(result)

            print(result.summary())

            if config.save_artifacts:
                print(f"\nArtifacts saved to: artifacts/{result.run_id}/")

        except Exception as e:
            print(f"ERROR: {e}")
            failures += 1
            if args.stop_on_failure:
                return 1

    # Summary
    if len(args.configs) > 1:
        print(f"\n{'=' * 60}")
        print("BATCH SUMMARY")
        print("=" * 60)
        print(f"Total: {len(args.configs)}, Passed: {len(results)}, Failed: {failures}")

        print("\nResults:")
        for r in results:
            print(f"  [PASS] {r.config.name}: {r.row_counts.get('raw', 0)} customers, "
                  f"{r.churn_rate:.2f}% churn")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
