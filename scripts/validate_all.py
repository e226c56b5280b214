"""
validate_all.py

One-command end-to-end validation runner.

This script executes the full workflow in a fixed order:
1) Generate a synthetic log
2) Run the pipeline (reports + partition layout + Markdown summary)
3) List the written partitions
4) Validate the exported reports

It is designed to be CI-friendly (exits non-zero on failure) and prints
clear step-by-step output.

Usage:
  python scripts/validate_all.py
  python scripts/validate_all.py --lines 5000
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from dataclasses import dataclass
from typing import List


@dataclass
class Step:
    name: str
    cmd: List[str]


def run_step(step: Step) -> None:
    print(f"\n=== {step.name} ===")
    print("$ " + " ".join(step.cmd))
    res = subprocess.run(step.cmd)
    if res.returncode != 0:
        raise RuntimeError(f"Step failed: {step.name} (exit code {res.returncode})")


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--lines", type=int, default=1000, help="Synthetic log size.")
    parser.add_argument("--workdir", default="artifacts", help="Where to put generated files.")
    args = parser.parse_args()

    log_path = f"{args.workdir}/access.log"
    reports = f"{args.workdir}/reports"
    partitions = f"{args.workdir}/partitions"
    py = sys.executable

    steps: List[Step] = [
        Step("Generate sample log", [
            py, "scripts/generate_sample_log.py", "--out", log_path, "--lines", str(args.lines),
            "--attacker", "203.0.113.9", "--attack-requests", "12", "--malformed", "5",
        ]),
        Step("Run pipeline", [
            py, "scripts/run_pipeline.py", log_path, "--out", reports,
            "--partitions", partitions, "--summary-md", f"{args.workdir}/summary.md",
        ]),
        Step("Show partitions", [py, "scripts/show_partitions.py", partitions]),
        Step("Report validation", [py, "scripts/validate_reports.py", reports]),
    ]

    failures: List[str] = []

    for step in steps:
        try:
            run_step(step)
            print("PASS")
        except Exception as e:
            print("FAIL")
            print(str(e), file=sys.stderr)
            failures.append(step.name)
            break  # fail fast

    print("\n=== Summary ===")
    if not failures:
        print("All validations passed")
        return 0

    print("Failed step(s):")
    for name in failures:
        print(f"- {name}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
