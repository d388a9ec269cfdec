"""Unit tests for index presence and fingerprint staleness."""

from pathlib import Path

import pytest

from index_bootstrap.staleness import (
    StalenessDetector,
    fingerprint_changed,
    is_index_valid,
)


def write_index(path: Path, size: int) -> Path:
    path.write_bytes(b"\0" * size)
    return path


class TestIsIndexValid:
    """Tests for the index size heuristic."""

    def test_missing_file_is_invalid(self, tmp_path):
        assert not is_index_valid(tmp_path / "missing.db")

    def test_exactly_threshold_is_invalid(self, tmp_path):
        assert not is_index_valid(write_index(tmp_path / "index.db", 50000))

    def test_one_byte_over_threshold_is_valid(self, tmp_path):
        assert is_index_valid(write_index(tmp_path / "index.db", 50001))

    def test_empty_file_is_invalid(self, tmp_path):
        assert not is_index_valid(write_index(tmp_path / "index.db", 0))

    def test_directory_is_invalid(self, tmp_path):
        index_dir = tmp_path / "index.db"
        index_dir.mkdir()
        assert not is_index_valid(index_dir)

    def test_custom_threshold(self, tmp_path):
        index = write_index(tmp_path / "index.db", 11)
        assert is_index_valid(index, min_size=10)
        assert not is_index_valid(index, min_size=11)


class TestFingerprintChanged:
    """Tests for the fingerprint comparison rule."""

    @pytest.mark.parametrize(
        "current,stored,expected",
        [
            ("def", "abc", True),
            ("abc", "abc", False),
            ("abc", None, True),
            (None, "abc", False),
            (None, None, False),
        ],
    )
    def test_rule(self, current, stored, expected):
        assert fingerprint_changed(current, stored) is expected


class TestStalenessDetector:
    """Tests for the combined staleness report."""

    def test_report_combines_index_and_fingerprint(self, tmp_path):
        seen = []

        def provider(root):
            seen.append(root)
            return "def"

        detector = StalenessDetector(fingerprint_provider=provider)
        index = write_index(tmp_path / "index.db", 60000)

        report = detector.evaluate(tmp_path, index, stored_fingerprint="abc")

        assert report.index_valid
        assert report.current_fingerprint == "def"
        assert report.fingerprint_changed
        assert seen == [tmp_path]

    def test_unavailable_fingerprint_is_not_a_change(self, tmp_path):
        detector = StalenessDetector(fingerprint_provider=lambda root: None)

        report = detector.evaluate(tmp_path, tmp_path / "missing.db", stored_fingerprint="abc")

        assert not report.index_valid
        assert not report.fingerprint_changed

    def test_min_index_size_is_configurable(self, tmp_path):
        detector = StalenessDetector(min_index_size=5, fingerprint_provider=lambda root: None)
        index = write_index(tmp_path / "index.db", 6)

        assert detector.evaluate(tmp_path, index, None).index_valid
