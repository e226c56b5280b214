import pytest

from logpulse.errors import InvalidThresholdError
from logpulse.ingest.store import PartitionedStore
from logpulse.tools.anomaly import SuspiciousIP, suspicious_ips, suspicious_ips_frame


def test_sample_has_no_suspicious_ips(sample_store):
    assert suspicious_ips(sample_store, min_failures=3) == []


def test_default_threshold_is_strictly_greater(mixed_store):
    # 10.0.0.8 has exactly 3 failures and is not flagged
    assert suspicious_ips(mixed_store) == [SuspiciousIP(ip="10.0.0.9", failed_requests=4)]


def test_lower_threshold_keeps_first_seen_order(mixed_store):
    assert suspicious_ips(mixed_store, min_failures=2) == [
        SuspiciousIP("10.0.0.9", 4),
        SuspiciousIP("10.0.0.8", 3),
    ]


def test_only_given_statuses_are_counted(mixed_store):
    # the 403 from 10.0.0.9 counts only when 403 is in the status set
    assert suspicious_ips(mixed_store, status_set={403, 404, 500}, min_failures=4) == [
        SuspiciousIP("10.0.0.9", 5),
    ]
    assert suspicious_ips(mixed_store, status_set={403}, min_failures=0) == [SuspiciousIP("10.0.0.9", 1)]


def test_results_never_at_or_below_threshold(mixed_store):
    for threshold in range(0, 6):
        for entry in suspicious_ips(mixed_store, min_failures=threshold):
            assert entry.failed_requests > threshold


def test_only_failure_partitions_are_read(mixed_store):
    class Untouchable:
        def __len__(self):
            return 1

        def __getattr__(self, name):
            raise AssertionError(f"partition touched via .{name}")

    store = PartitionedStore({
        200: Untouchable(),
        404: mixed_store.partition(404),
        500: mixed_store.partition(500),
    })
    assert suspicious_ips(store) == [SuspiciousIP("10.0.0.9", 4)]


def test_frame_variant(mixed_store):
    result = suspicious_ips_frame(mixed_store)
    assert result.name == "suspicious_ip_addresses"
    assert result.columns == ["ip", "failed_requests"]
    assert result.rows() == [("10.0.0.9", 4)]


def test_frame_variant_empty(sample_store):
    result = suspicious_ips_frame(sample_store)
    assert result.columns == ["ip", "failed_requests"]
    assert len(result) == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_failures": -1},
        {"min_failures": "3"},
        {"min_failures": 2.5},
        {"status_set": []},
        {"status_set": ["404"]},
        {"status_set": [0]},
    ],
)
def test_invalid_configuration(sample_store, kwargs):
    with pytest.raises(InvalidThresholdError):
        suspicious_ips(sample_store, **kwargs)
