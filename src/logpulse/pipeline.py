"""
pipeline.py

End-to-end batch run over one access log dataset:

    validate config -> parse lines -> load partitioned store
    -> (optional) write partition layout -> compute reports concurrently
    -> consistency check -> export -> summary

Configuration errors abort before any line is read. Malformed lines are
skipped and counted. An empty dataset aborts the run. Export failures are
reported per report in the summary and never stop the other reports; a
failed partition layout write is reported the same way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from logpulse.config import PipelineConfig
from logpulse.errors import EmptyDatasetError
from logpulse.evals.report_check import ReportCheckResult, check_reports
from logpulse.export.report_writer import ExportReport, export_reports
from logpulse.ingest.csv_parser import ParseReport, parse_lines, read_log_lines
from logpulse.ingest.store import PartitionedStore, write_partitions
from logpulse.tools.metrics import AggregationResult, compute_reports


logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    records_processed: int
    records_skipped: int
    parse: ParseReport
    partitions: Dict[int, int]
    export: ExportReport
    check: ReportCheckResult
    reports: Dict[str, AggregationResult] = field(default_factory=dict)
    partitions_dir: Optional[Path] = None
    partitions_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.export.ok and self.check.ok and self.partitions_error is None

    def report_status(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for o in self.export.outcomes:
            out[o.name] = "ok" if o.ok else f"failed: {o.error}"
        return out

    def lines(self) -> List[str]:
        """Plain-text summary, one fact per line."""
        lines = [
            f"records processed: {self.records_processed}",
            f"records skipped: {self.records_skipped}",
        ]
        if self.parse.skipped_reasons:
            reasons = ", ".join(f"{k}={v}" for k, v in sorted(self.parse.skipped_reasons.items()))
            lines.append(f"skip reasons: {reasons}")
        lines.append("partitions: " + ", ".join(f"{s}={n}" for s, n in self.partitions.items()))
        if self.partitions_error is not None:
            lines.append(f"partition layout: failed: {self.partitions_error}")
        for name, status in self.report_status().items():
            lines.append(f"{name}: {status}")
        for e in self.check.errors:
            lines.append(f"check: {e}")
        return lines


def run_pipeline(
    lines: Iterable[str],
    out_dir: Union[str, Path],
    *,
    config: Optional[PipelineConfig] = None,
    partitions_dir: Optional[Union[str, Path]] = None,
) -> RunSummary:
    cfg = (config or PipelineConfig()).validate()

    records, parse_report = parse_lines(
        lines,
        delimiter=cfg.delimiter,
        max_bad_lines=cfg.max_bad_lines,
    )
    if not records:
        raise EmptyDatasetError(
            f"No valid records after parsing ({parse_report.input_lines} lines, "
            f"{parse_report.skipped} skipped)"
        )

    store = PartitionedStore.load(records)

    written_to = None
    partitions_error = None
    if partitions_dir is not None:
        try:
            written_to = write_partitions(store, partitions_dir)
        except OSError as e:
            partitions_error = str(e)
            logger.error("writing partition layout to %s failed: %s", partitions_dir, e)

    reports = compute_reports(store, cfg)

    check = check_reports(reports, total=len(store), top_n=cfg.top_n, min_failures=cfg.min_failures)
    for e in check.errors:
        logger.error("report check: %s", e)

    export = export_reports(
        reports,
        out_dir,
        retries=cfg.export_retries,
        backoff_seconds=cfg.export_backoff_seconds,
    )

    summary = RunSummary(
        records_processed=len(store),
        records_skipped=parse_report.skipped,
        parse=parse_report,
        partitions={int(s): int(n) for s, n in store.partitions().itertuples(index=False, name=None)},
        export=export,
        check=check,
        reports=reports,
        partitions_dir=written_to,
        partitions_error=partitions_error,
    )
    logger.info(
        "run finished: %d processed, %d skipped, %d/%d reports exported",
        summary.records_processed, summary.records_skipped,
        len(export.succeeded), len(export.outcomes),
    )
    return summary


def run_file(
    path: Union[str, Path],
    out_dir: Union[str, Path],
    *,
    config: Optional[PipelineConfig] = None,
    partitions_dir: Optional[Union[str, Path]] = None,
) -> RunSummary:
    return run_pipeline(read_log_lines(path), out_dir, config=config, partitions_dir=partitions_dir)
