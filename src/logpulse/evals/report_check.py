"""
report_check.py

Validates that a set of report tables is internally consistent:
- all six named reports are present with their expected columns
- status counts, source counts and trend counts each sum to the total
- rankings are non-increasing and the top pages respect the row limit
- the trend is ordered by minute
- no suspicious IP sits at or below the failure threshold

This does not recompute anything from the raw log; it only checks that the
reports agree with each other. Works on freshly computed reports and on
tables read back from an export directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Union

import pandas as pd

from logpulse.tools.metrics import (
    MOST_VISITED_PAGES,
    STATUS_CODE_ANALYSIS,
    SUSPICIOUS_IP_ADDRESSES,
    TOTAL_WEB_REQUESTS,
    TRAFFIC_SOURCE_ANALYSIS,
    TRAFFIC_TREND_OVER_TIME,
    AggregationResult,
)


@dataclass(frozen=True)
class ReportCheckResult:
    ok: bool
    errors: List[str]


EXPECTED_COLUMNS: Dict[str, List[str]] = {
    TOTAL_WEB_REQUESTS: ["total"],
    STATUS_CODE_ANALYSIS: ["status", "count"],
    MOST_VISITED_PAGES: ["url", "visits"],
    TRAFFIC_SOURCE_ANALYSIS: ["user_agent", "count"],
    SUSPICIOUS_IP_ADDRESSES: ["ip", "failed_requests"],
    TRAFFIC_TREND_OVER_TIME: ["minute", "count"],
}


def _frames(reports: Mapping[str, Union[AggregationResult, pd.DataFrame]]) -> Dict[str, pd.DataFrame]:
    return {
        name: (r.frame if isinstance(r, AggregationResult) else r)
        for name, r in reports.items()
    }


def _non_increasing(values: pd.Series) -> bool:
    # non-strict: equal neighbours are fine
    return values.is_monotonic_decreasing


def check_reports(
    reports: Mapping[str, Union[AggregationResult, pd.DataFrame]],
    *,
    total: Optional[int] = None,
    top_n: Optional[int] = None,
    min_failures: Optional[int] = None,
) -> ReportCheckResult:
    errors: List[str] = []
    frames = _frames(reports)

    for name, cols in EXPECTED_COLUMNS.items():
        if name not in frames:
            errors.append(f"Missing report: {name}")
        elif list(frames[name].columns) != cols:
            errors.append(f"{name}: expected columns {cols}, found {list(frames[name].columns)}")

    # column checks below assume the layout is right
    if errors:
        return ReportCheckResult(ok=False, errors=errors)

    reported_total = int(frames[TOTAL_WEB_REQUESTS]["total"].iloc[0])
    if total is not None and reported_total != total:
        errors.append(f"{TOTAL_WEB_REQUESTS}: expected {total}, found {reported_total}")

    for name, col in [
        (STATUS_CODE_ANALYSIS, "count"),
        (TRAFFIC_SOURCE_ANALYSIS, "count"),
        (TRAFFIC_TREND_OVER_TIME, "count"),
    ]:
        s = int(frames[name][col].sum())
        if s != reported_total:
            errors.append(f"{name}: counts sum to {s}, total is {reported_total}")

    pages = frames[MOST_VISITED_PAGES]
    if top_n is not None and len(pages) > top_n:
        errors.append(f"{MOST_VISITED_PAGES}: {len(pages)} rows exceeds limit {top_n}")
    if not _non_increasing(pages["visits"]):
        errors.append(f"{MOST_VISITED_PAGES}: visits are not in descending order")

    if not _non_increasing(frames[TRAFFIC_SOURCE_ANALYSIS]["count"]):
        errors.append(f"{TRAFFIC_SOURCE_ANALYSIS}: counts are not in descending order")

    minutes = frames[TRAFFIC_TREND_OVER_TIME]["minute"].astype(str).tolist()
    if minutes != sorted(minutes):
        errors.append(f"{TRAFFIC_TREND_OVER_TIME}: minutes are not in ascending order")

    if min_failures is not None:
        low = frames[SUSPICIOUS_IP_ADDRESSES]
        low = low[low["failed_requests"] <= min_failures]
        for ip in low["ip"]:
            errors.append(f"{SUSPICIOUS_IP_ADDRESSES}: {ip} is at or below threshold {min_failures}")

    return ReportCheckResult(ok=(len(errors) == 0), errors=errors)
