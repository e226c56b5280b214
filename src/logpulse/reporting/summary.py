"""
summary.py

Renders a run summary as Markdown.

The document has a fixed set of sections, always in the same order:

    ## Run Summary
    ## Partitions
    ## Reports
    ## Consistency Checks

followed by one section per exported report table. Every number in it comes
straight from the RunSummary; nothing is recomputed here.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Union

import pandas as pd

from logpulse.pipeline import RunSummary


SECTION_HEADINGS = [
    "Run Summary",
    "Partitions",
    "Reports",
    "Consistency Checks",
]

# long tables are cut in the Markdown view only; the CSV export is complete
MAX_TABLE_ROWS = 20


def _md_table(header: Sequence[str], rows: Sequence[Sequence[object]]) -> List[str]:
    out = [
        "| " + " | ".join(str(h) for h in header) + " |",
        "|" + "|".join("---" for _ in header) + "|",
    ]
    for row in rows:
        out.append("| " + " | ".join(str(v) for v in row) + " |")
    return out


def _frame_table(frame: pd.DataFrame) -> List[str]:
    rows = list(frame.head(MAX_TABLE_ROWS).itertuples(index=False, name=None))
    out = _md_table(list(frame.columns), rows)
    if len(frame) > MAX_TABLE_ROWS:
        out.append(f"\n_{len(frame) - MAX_TABLE_ROWS} more rows not shown._")
    return out


def render_summary(summary: RunSummary) -> str:
    lines: List[str] = ["# Access Log Report", ""]

    lines += ["## Run Summary", ""]
    lines.append(f"- Records processed: {summary.records_processed}")
    lines.append(f"- Records skipped: {summary.records_skipped}")
    for reason, n in sorted(summary.parse.skipped_reasons.items()):
        lines.append(f"  - {reason}: {n}")
    lines.append("")

    lines += ["## Partitions", ""]
    lines += _md_table(["status", "records"], list(summary.partitions.items()))
    if summary.partitions_error is not None:
        lines += ["", f"Partition layout write failed: {summary.partitions_error}"]
    elif summary.partitions_dir is not None:
        lines += ["", f"Partition layout written to `{summary.partitions_dir}`."]
    lines.append("")

    lines += ["## Reports", ""]
    lines += _md_table(
        ["report", "rows", "result"],
        [
            (o.name, o.rows, "ok" if o.ok else f"failed: {o.error}")
            for o in summary.export.outcomes
        ],
    )
    lines.append("")

    lines += ["## Consistency Checks", ""]
    if summary.check.ok:
        lines.append("All checks passed.")
    else:
        lines += [f"- {e}" for e in summary.check.errors]
    lines.append("")

    for name, result in summary.reports.items():
        lines += [f"### {name}", ""]
        lines += _frame_table(result.frame)
        lines.append("")

    return "\n".join(lines)


def write_summary(summary: RunSummary, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_summary(summary), encoding="utf-8")
    return path
