import logging

import numpy as np
import pytest

from gestkit.config import settings
from gestkit.exceptions import DatasetError, DimensionMismatchError
from gestkit.objects import ClassificationData, ClassificationSample
from gestkit.objects.classification_data import FILE_FORMAT


def _sample_set(data):
    return {(sample.class_label, tuple(sample.sample)) for sample in data}


class TestClassificationSample:

    def test_converts_sample_to_float_vector(self):
        sample = ClassificationSample(2, [1, 2, 3])
        assert sample.sample.dtype == float
        assert sample.num_dimensions == 3

    @pytest.mark.parametrize("label", [-1, 1.5])
    def test_rejects_invalid_labels(self, label):
        with pytest.raises(DatasetError):
            ClassificationSample(label, [1.0])


class TestClassificationData:

    def test_first_sample_fixes_dimensions(self):
        data = ClassificationData()
        data.add_sample(1, [0.1, 0.2])
        assert data.num_dimensions == 2
        with pytest.raises(DimensionMismatchError):
            data.add_sample(1, [0.1, 0.2, 0.3])
        assert data.num_samples == 1

    def test_declared_dimensions_are_enforced(self):
        data = ClassificationData(num_dimensions=3)
        with pytest.raises(DimensionMismatchError):
            data.add_sample(1, [0.1, 0.2])

    def test_class_tracker(self, classification_data):
        assert classification_data.class_tracker == {1: 30, 2: 30, 3: 30}
        assert classification_data.class_labels == [1, 2, 3]
        assert classification_data.num_classes == 3
        assert len(classification_data) == 90

    def test_get_data_as_matrix(self, classification_data):
        X, y = classification_data.get_data_as_matrix()
        assert X.shape == (90, 3)
        assert y.shape == (90,)
        np.testing.assert_array_equal(X[0], classification_data[0].sample)

    def test_get_data_as_matrix_empty(self):
        X, y = ClassificationData(num_dimensions=4).get_data_as_matrix()
        assert X.shape == (0, 4)
        assert y.shape == (0,)

    def test_remove_sample_and_clear(self, classification_data):
        removed = classification_data.remove_sample(0)
        assert removed.class_label == 1
        assert classification_data.class_tracker[1] == 29
        classification_data.clear()
        assert classification_data.num_samples == 0

    def test_slicing_returns_a_dataset(self, classification_data):
        head = classification_data[:10]
        assert isinstance(head, ClassificationData)
        assert head.num_samples == 10
        assert head.num_dimensions == classification_data.num_dimensions

    def test_subset_copies_samples(self, classification_data):
        subset = classification_data.subset([0, 1])
        subset[0].sample[0] = 1000.0
        assert classification_data[0].sample[0] != 1000.0

    def test_class_data_does_not_share_memory(self, classification_data):
        class_data = classification_data.get_class_data(1)
        class_data[0].sample[0] = 1000.0
        assert classification_data[0].sample[0] != 1000.0

    def test_add_sample_copies_the_vector(self):
        vector = np.array([1.0, 2.0])
        data = ClassificationData()
        data.add_sample(1, vector)
        vector[0] = 1000.0
        assert data[0].sample[0] == 1.0

    def test_get_class_data(self, classification_data):
        class_data = classification_data.get_class_data(2)
        assert class_data.num_samples == 30
        assert class_data.class_labels == [2]

    def test_get_ranges(self):
        data = ClassificationData()
        data.add_sample(1, [0.0, 10.0])
        data.add_sample(2, [4.0, -2.0])
        np.testing.assert_array_equal(data.get_ranges(), [[0.0, 4.0], [-2.0, 10.0]])

    def test_scale(self, classification_data):
        classification_data.scale(0.0, 1.0)
        X, _ = classification_data.get_data_as_matrix()
        np.testing.assert_allclose(X.min(axis=0), 0.0)
        np.testing.assert_allclose(X.max(axis=0), 1.0)

    def test_merge(self, classification_data):
        other = ClassificationData()
        other.add_sample(4, [1.0, 1.0, 1.0])
        classification_data.merge(other)
        assert classification_data.num_samples == 91
        assert 4 in classification_data.class_tracker

    def test_merge_dimension_mismatch(self, classification_data):
        other = ClassificationData()
        other.add_sample(4, [1.0, 1.0])
        with pytest.raises(DimensionMismatchError):
            classification_data.merge(other)


class TestPartition:

    def test_partition_preserves_total_count(self, classification_data):
        test_data = classification_data.partition(80, seed=3)
        assert classification_data.num_samples == 72
        assert test_data.num_samples == 18

    def test_partition_sets_are_disjoint(self, classification_data):
        original = _sample_set(classification_data)
        test_data = classification_data.partition(80, seed=3)
        train_set, test_set = _sample_set(classification_data), _sample_set(test_data)
        assert train_set.isdisjoint(test_set)
        assert train_set | test_set == original

    def test_stratified_partition_keeps_class_proportions(self, classification_data):
        test_data = classification_data.partition(80, use_stratified_sampling=True, seed=3)
        assert classification_data.class_tracker == {1: 24, 2: 24, 3: 24}
        assert test_data.class_tracker == {1: 6, 2: 6, 3: 6}

    def test_partition_is_reproducible_with_a_seed(self, classification_data):
        copy = classification_data.subset(range(classification_data.num_samples))
        first = classification_data.partition(50, seed=11)
        second = copy.partition(50, seed=11)
        assert _sample_set(first) == _sample_set(second)

    def test_partition_uses_the_configured_seed(self, classification_data, monkeypatch):
        monkeypatch.setattr(settings, "random_seed", 5)
        copy = classification_data.subset(range(classification_data.num_samples))
        assert _sample_set(classification_data.partition(70)) == _sample_set(copy.partition(70, seed=5))

    @pytest.mark.parametrize("percentage", [-1, 101])
    def test_partition_rejects_invalid_percentages(self, classification_data, percentage):
        with pytest.raises(DatasetError):
            classification_data.partition(percentage)

    def test_partition_empty_dataset(self):
        with pytest.raises(DatasetError):
            ClassificationData().partition(80)


class TestClassificationDataFiles:

    def test_save_and_load_native_format(self, classification_data, tmp_path):
        path = tmp_path / "data.txt"
        classification_data.save_dataset_to_file(path)
        assert path.read_text().splitlines()[0] == FILE_FORMAT

        loaded = ClassificationData()
        loaded.load_dataset_from_file(path)
        assert loaded.dataset_name == "blobs"
        assert loaded.info_text == "synthetic test data"
        assert loaded.num_dimensions == 3
        assert loaded.class_tracker == classification_data.class_tracker
        np.testing.assert_array_equal(loaded.get_data_as_matrix()[0], classification_data.get_data_as_matrix()[0])

    def test_save_and_load_csv(self, classification_data, tmp_path):
        path = tmp_path / "data.csv"
        classification_data.save_dataset_to_file(path)
        loaded = ClassificationData()
        loaded.load_dataset_from_file(path)
        assert loaded.num_samples == 90
        X, y = loaded.get_data_as_matrix()
        np.testing.assert_array_equal(y, classification_data.get_data_as_matrix()[1])
        np.testing.assert_array_equal(X, classification_data.get_data_as_matrix()[0])

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ClassificationData().load_dataset_from_file(tmp_path / "missing.txt")

    def test_load_wrong_header(self, tmp_path):
        path = tmp_path / "data.txt"
        path.write_text("SOMETHING_ELSE\nDatasetName: x\n")
        with pytest.raises(DatasetError):
            ClassificationData().load_dataset_from_file(path)

    def test_load_wrong_sample_count(self, classification_data, tmp_path):
        path = tmp_path / "data.txt"
        classification_data.save_dataset_to_file(path)
        lines = path.read_text().splitlines()[:-1]
        path.write_text("\n".join(lines) + "\n")
        with pytest.raises(DatasetError, match="declares 90 samples"):
            ClassificationData().load_dataset_from_file(path)

    def test_load_malformed_row(self, classification_data, tmp_path):
        path = tmp_path / "data.txt"
        classification_data.save_dataset_to_file(path)
        lines = path.read_text().splitlines()
        lines[-1] = "1\t0.5"
        path.write_text("\n".join(lines) + "\n")
        with pytest.raises(DatasetError, match="Malformed data line"):
            ClassificationData().load_dataset_from_file(path)

    def test_error_line_numbers_count_blank_lines(self, classification_data, tmp_path):
        path = tmp_path / "data.txt"
        classification_data.save_dataset_to_file(path)
        lines = path.read_text().splitlines()
        lines.insert(1, "")
        lines.insert(3, "")
        lines[-1] = "1\t0.5"
        path.write_text("\n".join(lines) + "\n")
        with pytest.raises(DatasetError, match=f"Malformed data line at {len(lines)} of"):
            ClassificationData().load_dataset_from_file(path)

    def test_header_error_line_number(self, classification_data, tmp_path):
        path = tmp_path / "data.txt"
        classification_data.save_dataset_to_file(path)
        lines = path.read_text().splitlines()
        lines.insert(1, "")
        lines[4] = "NumDimensions: three"
        path.write_text("\n".join(lines) + "\n")
        with pytest.raises(DatasetError, match="'NumDimensions' at line 5 of"):
            ClassificationData().load_dataset_from_file(path)

    def test_failed_load_keeps_existing_samples(self, classification_data, tmp_path):
        path = tmp_path / "data.txt"
        path.write_text("garbage\n")
        with pytest.raises(DatasetError):
            classification_data.load_dataset_from_file(path)
        assert classification_data.num_samples == 90


def test_print_stats_logs_summary(classification_data, caplog):
    with caplog.at_level(logging.INFO, logger="gestkit.objects.classification_data"):
        classification_data.print_stats()
    assert "DatasetName: blobs" in caplog.text
    assert "Number of Classes: 3" in caplog.text
    assert "ClassLabel: 2 Number of Samples: 30" in caplog.text
