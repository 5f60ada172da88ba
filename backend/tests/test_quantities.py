"""Kubernetes quantity parsing."""
import pytest

from clustermetrics.services.quantities import parse_cpu_to_mcores, parse_memory_to_bytes


class TestParseCpu:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("250m", 250),
            ("2", 2000),
            ("0.5", 500),
            ("1500000n", 2),
            ("999999n", 1),
            ("2500u", 3),
            ("1e3", 1000000),
            ("1k", 1000000),
            ("1Ki", 1024000),
            ("0.001k", 1000),
            (4, 4000),
        ],
    )
    def test_parses_units(self, value, expected):
        assert parse_cpu_to_mcores(value) == expected

    def test_fractions_round_up(self):
        # 0.1m of a core still reports as 1 millicore
        assert parse_cpu_to_mcores("100000n") == 1

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "m"])
    def test_invalid_is_zero(self, value):
        assert parse_cpu_to_mcores(value) == 0


class TestParseMemory:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("8Gi", 8 * 1024**3),
            ("512Mi", 512 * 1024**2),
            ("1024Ki", 1024 * 1024),
            ("1G", 10**9),
            ("1k", 1000),
            ("1073741824", 1073741824),
            ("1500m", 2),
            ("2000000u", 2),
            ("1e3", 1000),
            (2048, 2048),
        ],
    )
    def test_parses_units(self, value, expected):
        assert parse_memory_to_bytes(value) == expected

    @pytest.mark.parametrize("value", [None, "", "lots", "Gi"])
    def test_invalid_is_zero(self, value):
        assert parse_memory_to_bytes(value) == 0
