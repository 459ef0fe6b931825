"""
Unit tests for metric naming helpers and bundle flattening.
"""
import pytest

from sysmetrics.services.metrics.provider import (
    Gauge,
    MetricProvider,
    MetricSet,
    flatten_metrics,
    join,
    sanitize,
)


class _Bundle(MetricSet):
    def __init__(self, metrics):
        self._metrics = metrics

    def get_metrics(self):
        return self._metrics


class TestSanitize:
    """Tests for sanitize function"""

    def test_safe_name_unchanged(self):
        assert sanitize("eth0") == "eth0"

    @pytest.mark.parametrize("raw,expected", [
        ("eth0:1", "eth0_1"),
        ("Wi-Fi 2", "Wi-Fi_2"),
        ("vlan.100", "vlan_100"),
    ])
    def test_unsafe_characters_replaced(self, raw, expected):
        assert sanitize(raw) == expected


class TestJoin:
    """Tests for join function"""

    def test_join_sanitizes_extra_parts_only(self):
        assert join("networkInterfaces", "eth0:1", "receivedBytesPerSecond") == \
            "networkInterfaces.eth0_1.receivedBytesPerSecond"

    def test_join_keeps_dotted_namespace(self):
        assert join("physicalMemory.total", "inBytes") == "physicalMemory.total.inBytes"


class TestGauge:
    """Tests for Gauge reads"""

    def test_gauge_reads_supplier_every_time(self):
        readings = iter([1, 2, 3])
        gauge = Gauge(lambda: next(readings))

        assert [gauge.value, gauge.value, gauge.value] == [1, 2, 3]


class TestFlattenMetrics:
    """Tests for flatten_metrics function"""

    def test_nested_bundles_flatten_to_dotted_names(self):
        used = Gauge(lambda: 10)
        count = Gauge(lambda: 3)
        bundle = _Bundle({
            "memory": _Bundle({"heap.used": used}),
            "threads": _Bundle({"current": count}),
        })

        flat = flatten_metrics(bundle)

        assert flat == {"memory.heap.used": used, "threads.current": count}

    def test_prefix_prepended(self):
        gauge = Gauge(lambda: 1)

        flat = flatten_metrics(_Bundle({"uptimeInMillis": gauge}), "system")

        assert list(flat) == ["system.uptimeInMillis"]

    def test_metric_set_satisfies_provider_protocol(self):
        assert isinstance(_Bundle({}), MetricProvider)

    def test_duck_typed_provider_flattens_when_nested(self):
        """Test that a bundle which only has get_metrics() is walked like a MetricSet"""
        class PlainProvider:
            def get_metrics(self):
                return {"pool.size": Gauge(lambda: 8)}

            def shutdown(self):
                pass

        plain = PlainProvider()
        flat = flatten_metrics(_Bundle({"db": plain}), "app")

        assert isinstance(plain, MetricProvider)
        assert not isinstance(plain, MetricSet)
        assert list(flat) == ["app.db.pool.size"]
        assert flat["app.db.pool.size"].value == 8
