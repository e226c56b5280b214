"""
run_pipeline.py

Command-line entry point for one batch run over an access log file.

Parses the log, builds the status-partitioned store, computes the six named
reports concurrently and writes each one to <out>/<report_name>/part-00000.csv.
Optionally writes the partitioned storage layout and a Markdown summary.

Example:
  python scripts/run_pipeline.py examples/access.log \
    --out artifacts/reports \
    --partitions artifacts/partitions \
    --summary-md artifacts/summary.md

Exit codes:
  0  all reports exported and consistent
  1  a report or the partition layout failed to write, or a consistency check failed
  2  configuration error, unreadable input, or empty dataset
"""

from __future__ import annotations

import argparse
import logging
import sys

from logpulse.config import PipelineConfig, parse_status_list
from logpulse.errors import EmptyDatasetError, InvalidThresholdError
from logpulse.pipeline import run_file
from logpulse.reporting.summary import write_summary


def main() -> int:
    ap = argparse.ArgumentParser(description="Aggregate reports over a delimited access log.")
    ap.add_argument("log", help="Input log file (ip,timestamp,url,user_agent,status per line)")
    ap.add_argument("--out", default="artifacts/reports", help="Report output directory")
    ap.add_argument("--partitions", default=None, help="Also write the status-partitioned layout here")
    ap.add_argument("--summary-md", default=None, help="Also write a Markdown summary to this path")
    ap.add_argument("--top-n", type=str, default=None, help="Rows in most_visited_pages (default: 3)")
    ap.add_argument("--min-failures", type=str, default=None, help="Suspicious IP threshold (default: 3)")
    ap.add_argument("--failure-statuses", default=None, help="Comma-separated failing statuses (default: 404,500)")
    ap.add_argument("--workers", type=str, default=None, help="Query thread pool size (default: 4)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        overrides = {}
        if args.top_n is not None:
            overrides["top_n"] = _int_arg("--top-n", args.top_n)
        if args.min_failures is not None:
            overrides["min_failures"] = _int_arg("--min-failures", args.min_failures)
        if args.workers is not None:
            overrides["max_workers"] = _int_arg("--workers", args.workers)
        if args.failure_statuses is not None:
            overrides["failure_statuses"] = parse_status_list(args.failure_statuses)
        cfg = PipelineConfig.from_env(**overrides)
    except InvalidThresholdError as e:
        print(f"ERROR: invalid configuration: {e}", file=sys.stderr)
        return 2

    try:
        summary = run_file(args.log, args.out, config=cfg, partitions_dir=args.partitions)
    except (OSError, EmptyDatasetError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print("=== Run Summary ===")
    for line in summary.lines():
        print(line)

    if args.summary_md:
        print("Wrote", write_summary(summary, args.summary_md))

    return 0 if summary.ok else 1


def _int_arg(flag: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InvalidThresholdError(f"{flag} must be an integer, got {raw!r}") from None


if __name__ == "__main__":
    raise SystemExit(main())
