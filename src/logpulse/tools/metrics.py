"""
metrics.py

Computes deterministic aggregate reports from a partitioned access log store.

This module answers the fixed set of questions the pipeline reports on:
- how many requests were served
- how responses are distributed over status codes
- which pages are visited most
- which user agents the traffic comes from
- how traffic evolves minute by minute

Every query is a pure function of the store. Rankings are stable: when two keys
have the same count, the one seen first in the input comes first. The store
hands back its records in input order, so grouping with sort=False followed by
a stable sort is enough to guarantee that.

compute_reports() runs all queries (and the suspicious IP detector) on a thread
pool. The store is never mutated after load, so no locking is needed.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from logpulse.config import PipelineConfig
from logpulse.errors import InvalidThresholdError
from logpulse.ingest.store import PartitionedStore


logger = logging.getLogger(__name__)

TOTAL_WEB_REQUESTS = "total_web_requests"
STATUS_CODE_ANALYSIS = "status_code_analysis"
MOST_VISITED_PAGES = "most_visited_pages"
TRAFFIC_SOURCE_ANALYSIS = "traffic_source_analysis"
SUSPICIOUS_IP_ADDRESSES = "suspicious_ip_addresses"
TRAFFIC_TREND_OVER_TIME = "traffic_trend_over_time"

# fixed export order
REPORT_NAMES = [
    TOTAL_WEB_REQUESTS,
    STATUS_CODE_ANALYSIS,
    MOST_VISITED_PAGES,
    TRAFFIC_SOURCE_ANALYSIS,
    SUSPICIOUS_IP_ADDRESSES,
    TRAFFIC_TREND_OVER_TIME,
]

MINUTE_PREFIX_LEN = len("YYYY-MM-DD HH:MM")


@dataclass(frozen=True)
class AggregationResult:
    """One named, ordered report table."""
    name: str
    frame: pd.DataFrame

    @property
    def columns(self) -> List[str]:
        return list(self.frame.columns)

    def rows(self) -> List[Tuple[Any, ...]]:
        """Rows as plain Python tuples (numpy scalars unwrapped)."""
        return [
            tuple(v.item() if hasattr(v, "item") else v for v in row)
            for row in self.frame.itertuples(index=False, name=None)
        ]

    def __len__(self) -> int:
        return len(self.frame)


def _ranked_counts(df: pd.DataFrame, col: str, value_name: str) -> pd.DataFrame:
    """
    Count rows per distinct value of `col`, highest count first.
    Ties keep first-appearance order: groupby(sort=False) emits groups in
    encounter order and the stable sort never swaps equal counts.
    """
    counts = df.groupby(col, sort=False).size()
    counts = counts.sort_values(ascending=False, kind="stable")
    return counts.rename(value_name).reset_index().astype({value_name: "int64"})


def truncate_minute(ts: str) -> str:
    """'2025-02-25 12:34:56' -> '2025-02-25 12:34'. Idempotent."""
    return ts[:MINUTE_PREFIX_LEN]


def total_count(store: PartitionedStore) -> int:
    return len(store)


def count_by_status(store: PartitionedStore) -> pd.DataFrame:
    """(status, count), status ascending. Read off the partition listing, no row scan."""
    return store.partitions().rename(columns={"records": "count"})


def top_pages(store: PartitionedStore, n: int = 3) -> pd.DataFrame:
    """(url, visits), visits descending, at most n rows."""
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise InvalidThresholdError(f"n must be a positive integer, got {n!r}")
    return _ranked_counts(store.frame(), "url", "visits").head(n).reset_index(drop=True)


def traffic_by_source(store: PartitionedStore) -> pd.DataFrame:
    """(user_agent, count), count descending."""
    return _ranked_counts(store.frame(), "user_agent", "count")


def traffic_trend(store: PartitionedStore) -> pd.DataFrame:
    """
    (minute, count) per minute, ascending.
    Minutes are timestamp string prefixes, so string order is time order.
    """
    df = store.frame()
    minutes = df["timestamp"].map(truncate_minute).rename("minute")
    counts = df.groupby(minutes, sort=True).size()
    return counts.rename("count").reset_index().astype({"count": "int64"})


def total_frame(store: PartitionedStore) -> pd.DataFrame:
    return pd.DataFrame({"total": [total_count(store)]}, dtype="int64")


def compute_reports(
    store: PartitionedStore,
    config: Optional[PipelineConfig] = None,
) -> Dict[str, AggregationResult]:
    """
    Compute all six named reports concurrently.
    The returned dict follows REPORT_NAMES order.
    """
    # imported here so anomaly can import AggregationResult from this module
    from logpulse.tools.anomaly import suspicious_ips_frame

    cfg = (config or PipelineConfig()).validate()

    queries: Dict[str, Callable[[], pd.DataFrame]] = {
        TOTAL_WEB_REQUESTS: lambda: total_frame(store),
        STATUS_CODE_ANALYSIS: lambda: count_by_status(store),
        MOST_VISITED_PAGES: lambda: top_pages(store, n=cfg.top_n),
        TRAFFIC_SOURCE_ANALYSIS: lambda: traffic_by_source(store),
        SUSPICIOUS_IP_ADDRESSES: lambda: suspicious_ips_frame(
            store,
            status_set=cfg.failure_statuses,
            min_failures=cfg.min_failures,
        ).frame,
        TRAFFIC_TREND_OVER_TIME: lambda: traffic_trend(store),
    }

    with ThreadPoolExecutor(max_workers=cfg.max_workers, thread_name_prefix="logpulse-query") as pool:
        futures = {name: pool.submit(fn) for name, fn in queries.items()}
        reports = {name: AggregationResult(name, futures[name].result()) for name in REPORT_NAMES}

    for name, result in reports.items():
        logger.info("report %s: %d rows", name, len(result))
    return reports
