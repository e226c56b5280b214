"""
store.py

Holds parsed access log records partitioned by HTTP status code.

The store is built once by a single bulk load and is read-only afterwards.
Partition keys are inferred from the data during that load (the same idea as a
dynamic-partition insert), so no status code has to be declared up front.

Each partition is a pandas DataFrame (one column per field) plus a `seq`
column holding the record's position in the original input. Status-filtered
scans only look up the requested partitions, and `seq` lets any combination of
partitions be put back into input-encounter order, which the ranking queries
rely on for their tie-breaks.

Partitions can also be written to and read back from a Hive-style directory
layout (status=<code>/part-00000.parquet) for repeated querying across runs.
"""

from __future__ import annotations

import heapq
import logging
import re
import shutil
import tempfile
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, List, Mapping, Optional, Set, Union

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from logpulse.ingest.csv_parser import FIELDS, LogRecord


logger = logging.getLogger(__name__)

COLUMNS = ["seq", *FIELDS]
PARTITION_DIR_RE = re.compile(r"^status=(?P<status>\d+)$")
PART_FILE = "part-00000.parquet"

# a collection of status codes, or a predicate on the status code
StatusFilter = Union[Iterable[int], Callable[[int], bool]]


def _empty_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "seq": pd.Series(dtype="int64"),
            "ip": pd.Series(dtype="object"),
            "timestamp": pd.Series(dtype="object"),
            "url": pd.Series(dtype="object"),
            "user_agent": pd.Series(dtype="object"),
            "status": pd.Series(dtype="int64"),
        }
    )


class PartitionedStore:
    """
    Status-partitioned, read-only record store.

    Build with PartitionedStore.load(records) or
    PartitionedStore.read_partitions(root). The constructor takes an
    already-partitioned mapping and is mostly useful for tests.
    """

    def __init__(self, partitions: Mapping[int, pd.DataFrame]):
        self._partitions = MappingProxyType(dict(sorted(partitions.items())))
        self._size = sum(len(p) for p in self._partitions.values())

    @classmethod
    def load(cls, records: Iterable[LogRecord]) -> "PartitionedStore":
        """Bulk-load records, grouping them by status in one pass."""
        rows = [(r.ip, r.timestamp, r.url, r.user_agent, r.status) for r in records]
        df = pd.DataFrame(rows, columns=list(FIELDS))
        df.insert(0, "seq", range(len(df)))
        df = df.astype({"seq": "int64", "status": "int64"})

        partitions = {
            int(status): group.reset_index(drop=True)
            for status, group in df.groupby("status", sort=True)
        }
        store = cls(partitions)
        logger.info("loaded %d records into %d partitions", len(store), len(partitions))
        return store

    def __len__(self) -> int:
        return self._size

    def partition_keys(self) -> Set[int]:
        return set(self._partitions)

    def partitions(self) -> pd.DataFrame:
        """Partition directory listing: one row per status with its record count."""
        return pd.DataFrame(
            [(status, len(part)) for status, part in self._partitions.items()],
            columns=["status", "records"],
        ).astype("int64")

    def partition(self, status: int) -> pd.DataFrame:
        """Copy of a single partition (empty frame if the status is absent)."""
        part = self._partitions.get(status)
        return _empty_frame() if part is None else part.copy()

    def _select(self, statuses: Optional[StatusFilter]):
        # pruning: only the partition keys are inspected, never the rows
        return [self._partitions[s] for s in _matching_keys(self._partitions, statuses)]

    def frame(self, statuses: Optional[StatusFilter] = None) -> pd.DataFrame:
        """
        Columnar scan: records from the selected partitions as one DataFrame,
        in input-encounter order. Always returns a copy.

        `statuses` is either a collection of status codes or a predicate on
        the status code, e.g. lambda s: s >= 500.
        """
        parts = self._select(statuses)
        if not parts:
            return _empty_frame()
        df = pd.concat(parts, ignore_index=True)
        return df.sort_values("seq", kind="stable").reset_index(drop=True)

    def scan(self, statuses: Optional[StatusFilter] = None) -> Iterator[LogRecord]:
        """
        Lazily yield records from the selected partitions in input-encounter order.
        Each partition is already ordered by seq, so a k-way merge is enough.
        """
        streams = [part.itertuples(index=False, name=None) for part in self._select(statuses)]
        for row in heapq.merge(*streams, key=lambda row: row[0]):
            _, ip, timestamp, url, user_agent, status = row
            yield LogRecord(ip=ip, timestamp=timestamp, url=url, user_agent=user_agent, status=int(status))

    @classmethod
    def read_partitions(
        cls,
        root: Union[str, Path],
        statuses: Optional[StatusFilter] = None,
    ) -> "PartitionedStore":
        """
        Load a store from a status=<code>/ directory layout.
        With `statuses`, only the matching partition directories are read.
        """
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"Partition directory not found: {root}")

        dirs = {}
        for part_dir in root.iterdir():
            m = PARTITION_DIR_RE.match(part_dir.name)
            if m and part_dir.is_dir():
                dirs[int(m.group("status"))] = part_dir

        partitions = {}
        for status in _matching_keys(dirs, statuses):
            df = pq.read_table(dirs[status] / PART_FILE).to_pandas()
            partitions[status] = df[COLUMNS].astype({"seq": "int64", "status": "int64"})

        store = cls(partitions)
        logger.info("read %d partitions (%d records) from %s", len(partitions), len(store), root)
        return store


def _matching_keys(keys: Iterable[int], statuses: Optional[StatusFilter]) -> List[int]:
    if statuses is None:
        return sorted(keys)
    if callable(statuses):
        return sorted(k for k in keys if statuses(k))
    present = set(keys)
    return sorted(s for s in set(statuses) if s in present)


def write_partitions(store: PartitionedStore, root: Union[str, Path]) -> Path:
    """
    Write every partition to root/status=<code>/part-00000.parquet.

    The new layout is written to a staging directory under root first. Only
    once every partition is on disk are the old status=<code> directories
    replaced, so a failed write leaves the previous layout untouched.
    """
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=".staging-", dir=root))

    try:
        for status in sorted(store.partition_keys()):
            part_dir = staging / f"status={status}"
            part_dir.mkdir()
            table = pa.Table.from_pandas(store.partition(status), preserve_index=False)
            pq.write_table(table, part_dir / PART_FILE)
            logger.debug("staged partition status=%d (%d rows)", status, table.num_rows)

        for old in root.iterdir():
            if old.is_dir() and PARTITION_DIR_RE.match(old.name):
                shutil.rmtree(old)
        for new in staging.iterdir():
            new.rename(root / new.name)
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    return root
