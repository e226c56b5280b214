"""
anomaly.py

Flags client IPs with too many failed requests.

A request counts as failed when its status is in the configured status set
(404 and 500 by default). An IP is suspicious when its failure count is
strictly greater than min_failures. Both are parameters so the same detector
can be reused for other definitions of "failing".

Only the partitions named by the status set are scanned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from logpulse.config import DEFAULT_FAILURE_STATUSES, require_int, validate_status_set
from logpulse.ingest.store import PartitionedStore
from logpulse.tools.metrics import SUSPICIOUS_IP_ADDRESSES, AggregationResult


@dataclass(frozen=True)
class SuspiciousIP:
    ip: str
    failed_requests: int


def _failure_counts(
    store: PartitionedStore,
    status_set: Iterable[int],
    min_failures: int,
) -> pd.Series:
    statuses = validate_status_set(status_set)
    require_int("min_failures", min_failures, minimum=0)

    failing = store.frame(statuses)
    # group, count and threshold in one pass over the grouped sizes
    counts = failing.groupby("ip", sort=False).size()
    return counts[counts > min_failures]


def suspicious_ips(
    store: PartitionedStore,
    status_set: Iterable[int] = DEFAULT_FAILURE_STATUSES,
    min_failures: int = 3,
) -> List[SuspiciousIP]:
    """IPs whose failing-request count exceeds min_failures, in first-seen order."""
    counts = _failure_counts(store, status_set, min_failures)
    return [SuspiciousIP(ip=ip, failed_requests=int(n)) for ip, n in counts.items()]


def suspicious_ips_frame(
    store: PartitionedStore,
    status_set: Iterable[int] = DEFAULT_FAILURE_STATUSES,
    min_failures: int = 3,
) -> AggregationResult:
    counts = _failure_counts(store, status_set, min_failures)
    frame = counts.rename("failed_requests").rename_axis("ip").reset_index()
    return AggregationResult(SUSPICIOUS_IP_ADDRESSES, frame.astype({"failed_requests": "int64"}))
