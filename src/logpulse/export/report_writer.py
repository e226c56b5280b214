"""
report_writer.py

Writes named report tables to disk, one output directory per report:

    <out_dir>/<report_name>/part-00000.csv

Each report is written independently. A write that raises OSError is retried
a bounded number of times; a report that still cannot be written is recorded
as failed (SinkWriteError) and logged, and the remaining reports are still
exported.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Union

import pandas as pd

from logpulse.errors import SinkWriteError
from logpulse.tools.metrics import AggregationResult


logger = logging.getLogger(__name__)

PART_FILE = "part-00000.csv"

# everything else (ip, url, user_agent, minute) stays a string on read-back
COUNT_COLUMNS = {"total", "status", "count", "visits", "failed_requests"}


@dataclass(frozen=True)
class SinkOutcome:
    name: str
    ok: bool
    rows: int
    path: Optional[Path] = None
    error: Optional[SinkWriteError] = None


@dataclass
class ExportReport:
    outcomes: List[SinkOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failed(self) -> List[str]:
        return [o.name for o in self.outcomes if not o.ok]

    @property
    def succeeded(self) -> List[str]:
        return [o.name for o in self.outcomes if o.ok]


def _write_csv(frame: pd.DataFrame, sink_dir: Path) -> Path:
    sink_dir.mkdir(parents=True, exist_ok=True)
    path = sink_dir / PART_FILE
    tmp = sink_dir / f".{PART_FILE}.tmp"
    frame.to_csv(tmp, index=False)
    tmp.replace(path)
    return path


def write_report(
    name: str,
    frame: pd.DataFrame,
    out_dir: Union[str, Path],
    *,
    retries: int = 3,
    backoff_seconds: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> Path:
    """
    Write one report, retrying on OSError.
    Raises SinkWriteError once all attempts are used up.
    """
    sink_dir = Path(out_dir) / name
    for attempt in range(1, retries + 1):
        try:
            return _write_csv(frame, sink_dir)
        except OSError as e:
            if attempt < retries:
                logger.warning(
                    "writing %s failed, retrying in %.1fs (attempt %d/%d): %s",
                    name, backoff_seconds * attempt, attempt, retries, e,
                )
                sleep(backoff_seconds * attempt)
            else:
                raise SinkWriteError(name, f"giving up after {retries} attempts: {e}") from e
    # retries < 1
    raise SinkWriteError(name, "no write attempts configured")


def export_reports(
    reports: Mapping[str, Union[AggregationResult, pd.DataFrame]],
    out_dir: Union[str, Path],
    *,
    retries: int = 3,
    backoff_seconds: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> ExportReport:
    """Export every report; failures are collected per report, never raised."""
    export = ExportReport()

    for name, report in reports.items():
        frame = report.frame if isinstance(report, AggregationResult) else report
        try:
            path = write_report(
                name, frame, out_dir,
                retries=retries, backoff_seconds=backoff_seconds, sleep=sleep,
            )
        except SinkWriteError as e:
            logger.error("export failed for %s: %s", name, e)
            export.outcomes.append(SinkOutcome(name=name, ok=False, rows=len(frame), error=e))
            continue

        logger.info("wrote %d rows -> %s", len(frame), path)
        export.outcomes.append(SinkOutcome(name=name, ok=True, rows=len(frame), path=path))

    return export


def read_exported_reports(out_dir: Union[str, Path]) -> Dict[str, pd.DataFrame]:
    """
    Load every <name>/part-00000.csv under out_dir, keyed by report name.
    Key columns are read as strings so numeric-looking IPs or URLs survive.
    """
    out_dir = Path(out_dir)
    if not out_dir.is_dir():
        raise FileNotFoundError(f"Report directory not found: {out_dir}")

    reports: Dict[str, pd.DataFrame] = {}
    for sink_dir in sorted(out_dir.iterdir()):
        path = sink_dir / PART_FILE
        if sink_dir.is_dir() and path.exists():
            frame = pd.read_csv(path, dtype=str, keep_default_na=False)
            counts = {c: "int64" for c in frame.columns if c in COUNT_COLUMNS}
            reports[sink_dir.name] = frame.astype(counts)
    return reports
