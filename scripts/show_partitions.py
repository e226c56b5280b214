"""
show_partitions.py

Prints the status-code partitions of a dataset and their record counts.

Accepts either a raw log file (parsed and partitioned on the fly) or a
directory previously written with --partitions.

Usage:
  python scripts/show_partitions.py examples/access.log
  python scripts/show_partitions.py artifacts/partitions
"""

from __future__ import annotations

import argparse
from pathlib import Path

from logpulse.ingest.csv_parser import parse_lines, read_log_lines
from logpulse.ingest.store import PartitionedStore


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("source", help="Log file or partition directory")
    args = ap.parse_args()

    source = Path(args.source)
    if source.is_dir():
        store = PartitionedStore.read_partitions(source)
    else:
        records, rep = parse_lines(read_log_lines(source))
        print(f"parsed: {rep.parsed}  skipped: {rep.skipped}")
        store = PartitionedStore.load(records)

    listing = store.partitions()
    for status, count in listing.itertuples(index=False, name=None):
        print(f"status={status}\t{count}")
    print(f"total: {len(store)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
