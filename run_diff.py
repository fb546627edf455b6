#!/usr/bin/env python
"""Compare two API spec versions from the command line."""

import argparse
import json
import logging
import sys
from pathlib import Path

from specdiff import SpecDiffRunner, ViewMode, load_config
from specdiff.exceptions import ValidationError


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Compare two versions of an OpenAPI/Swagger spec",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_diff.py v1.yaml v2.yaml
  python run_diff.py v1.yaml v2.yaml -m split --search userId
  python run_diff.py v1.yaml v2.yaml --collapse components --collapse info
  python run_diff.py v1.json v2.json --changes-only -r report.json

Exit codes: 0 = no breaking changes, 1 = breaking changes, 2 = error
        """
    )

    parser.add_argument("previous", help="Path to the older YAML/JSON spec")
    parser.add_argument("current", help="Path to the newer YAML/JSON spec")
    parser.add_argument(
        "-m", "--mode",
        choices=[m.value for m in ViewMode],
        default=ViewMode.UNIFIED.value,
        help="Diff layout (default: unified)"
    )
    parser.add_argument("--search", default="", help="Highlight occurrences of this text")
    parser.add_argument(
        "--collapse",
        action="append",
        default=[],
        metavar="NAME",
        help="Collapse a top-level section (repeatable)"
    )
    parser.add_argument("--changes-only", action="store_true", help="Print only classified changes")
    parser.add_argument("-r", "--report", help="Path to output JSON report file")
    parser.add_argument("-c", "--config", help="Path to YAML engine config")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress console output")

    args = parser.parse_args(argv)

    for path in (args.previous, args.current):
        if not Path(path).exists():
            print(f"Error: Spec file not found: {path}", file=sys.stderr)
            return 2

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=config.log_level.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    runner = SpecDiffRunner(args.previous, args.current, config)
    report = runner.run()

    if args.report:
        with open(args.report, 'w') as f:
            json.dump(report.to_dict(), indent=2, fp=f)

    if not args.quiet:
        print(runner.render(
            report,
            mode=ViewMode(args.mode),
            query=args.search,
            collapsed=args.collapse,
            changes_only=args.changes_only,
        ))
        if args.report:
            print(f"\nReport saved to: {args.report}")

    if not hasattr(report, 'is_identical'):
        print(f"Error: {report.error['message']}", file=sys.stderr)
        return 2

    # Return exit code
    if report.classification is not None and report.classification.is_breaking:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
