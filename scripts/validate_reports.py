"""
validate_reports.py

Validation entry point for an exported report directory.

Reads every <name>/part-00000.csv under the directory and checks that the
reports agree with each other (sums, ordering, row limit, threshold). Exits
with a non-zero status code if any check fails.
"""

from __future__ import annotations

import argparse

from logpulse.evals.report_check import check_reports
from logpulse.export.report_writer import read_exported_reports


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("reports_dir", nargs="?", default="artifacts/reports")
    ap.add_argument("--top-n", type=int, default=3)
    ap.add_argument("--min-failures", type=int, default=3)
    args = ap.parse_args()

    reports = read_exported_reports(args.reports_dir)
    res = check_reports(reports, top_n=args.top_n, min_failures=args.min_failures)
    if not res.ok:
        print("REPORT CHECK FAILED:")
        for e in res.errors:
            print("-", e)
        return 1

    print(f"Report validation passed ({len(reports)} reports)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
