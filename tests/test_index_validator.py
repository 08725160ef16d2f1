"""Tests for IndexValidator."""

import pytest

from mboxindex.models.index_anomaly import AnomalyType
from mboxindex.services.indexing.index_validator import IndexValidator


def entry(index, offset, size, deleted=False):
    return {"index": index, "offset": offset, "size": size, "deleted": deleted}


class TestIndexValidator:
    """Test saved index validation and anomaly records."""

    @pytest.fixture
    def validator(self):
        """Create an IndexValidator without repo."""
        return IndexValidator(anomaly_repo=None)

    @pytest.fixture
    def validator_with_repo(self, tmp_path):
        """Create an IndexValidator with a temporary database."""
        from mboxindex.storage.database import DatabaseConnection, IndexAnomalyRepository

        db = DatabaseConnection(tmp_path / "test.db")
        db.execute_schema()
        return IndexValidator(anomaly_repo=IndexAnomalyRepository(db))

    def test_valid_index(self, validator):
        """Test a contiguous, in-bounds index passes."""
        result = validator.validate_saved_index([entry(0, 0, 10), entry(1, 10, 5)], 15)

        assert result.is_valid is True
        assert result.anomaly_type is None

    def test_empty_index(self, validator):
        """Test an empty index is valid."""
        assert validator.validate_saved_index([], 0).is_valid is True

    def test_gap_allowed(self, validator):
        """Test leading bytes before the first message are allowed."""
        assert validator.validate_saved_index([entry(0, 12, 13)], 25).is_valid is True

    def test_non_contiguous(self, validator):
        """Test entries must be numbered by position."""
        result = validator.validate_saved_index([entry(0, 0, 5), entry(2, 5, 5)], 10)

        assert result.is_valid is False
        assert result.anomaly_type == "non_contiguous_index"
        assert result.message_index == 1

    def test_overlap(self, validator):
        """Test overlapping ranges are rejected."""
        result = validator.validate_saved_index([entry(0, 0, 10), entry(1, 5, 5)], 10)

        assert result.anomaly_type == "offset_out_of_order"

    def test_repeated_offset_after_empty_entry(self, validator):
        """Test an empty entry cannot share its offset with the next one."""
        result = validator.validate_saved_index([entry(0, 4, 0), entry(1, 4, 6)], 10)

        assert not result.is_valid
        assert result.anomaly_type == "offset_out_of_order"
        assert result.message_index == 1

    def test_out_of_bounds(self, validator):
        """Test ranges past the end of file are rejected."""
        result = validator.validate_saved_index([entry(0, 0, 11)], 10)

        assert result.anomaly_type == "range_out_of_bounds"
        assert "10 bytes" in result.error_details

    @pytest.mark.parametrize(
        "bad_entry",
        [
            {"index": 0, "offset": 0},
            {"index": 0, "offset": -1, "size": 1},
            {"index": "x", "offset": 0, "size": 1},
        ],
    )
    def test_malformed(self, validator, bad_entry):
        """Test entries that cannot be read are rejected."""
        result = validator.validate_saved_index([bad_entry], 10)

        assert result.anomaly_type == "malformed_entry"

    def test_validate_mbox_file(self, validator, tmp_path):
        """Test file existence checks."""
        path = tmp_path / "a.mbox"
        path.write_bytes(b"From x\n")

        assert validator.validate_mbox_file(path).is_valid is True
        assert validator.validate_mbox_file(tmp_path / "missing").anomaly_type == "file_not_found"
        assert validator.validate_mbox_file(tmp_path).is_valid is False

    def test_create_anomaly_without_repo(self, validator, tmp_path):
        """Test an id is returned even without storage."""
        anomaly_id = validator.create_anomaly_record(
            "range_out_of_bounds", tmp_path / "a.mbox", 0, "too long"
        )

        assert len(anomaly_id) == 36

    def test_anomaly_summary(self, validator_with_repo, tmp_path):
        """Test recorded anomalies are summarized by type."""
        path = tmp_path / "a.mbox"
        validator_with_repo.create_anomaly_record("range_out_of_bounds", path, 1, "x")
        validator_with_repo.create_anomaly_record("range_out_of_bounds", path, 2, "y")
        validator_with_repo.create_anomaly_record("something_else", path, None, "z")

        summary = validator_with_repo.get_anomalies_summary(path)

        assert summary["total_anomalies"] == 3
        assert summary["unresolved"] == 3
        assert summary["by_type"] == {
            AnomalyType.RANGE_OUT_OF_BOUNDS.value: 2,
            AnomalyType.MALFORMED_ENTRY.value: 1,
        }

    def test_summary_without_repo(self, validator):
        """Test the summary is empty without storage."""
        assert validator.get_anomalies_summary()["total_anomalies"] == 0
