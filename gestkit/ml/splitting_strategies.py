from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Tuple
import numpy as np

from gestkit.exceptions import DatasetError


@dataclass
class TrainTestSplit:
    """A container for train and test datasets."""
    train: Any
    test: Any


class DatasetSplitter(ABC):
    """
    Abstract base class for dataset splitting strategies.

    Splitters work on any dataset exposing num_samples and subset(indices).
    """

    def __init__(self, train_ratio: float = 0.8, seed: Optional[int] = None):
        """
        Initialize the splitter.

        Args:
            train_ratio: Proportion of samples kept for training, in [0, 1].
            seed: Seed for the shuffle. None draws fresh entropy.

        Raises:
            DatasetError: If train_ratio is outside [0, 1]
        """
        if not 0.0 <= train_ratio <= 1.0:
            raise DatasetError(f"train_ratio must be in [0, 1], got {train_ratio}")
        self.train_ratio = train_ratio
        self.seed = seed

    def split(self, dataset) -> TrainTestSplit:
        """
        Splits a dataset into training and test sets.

        Args:
            dataset: The dataset to split. It is not modified.

        Returns:
            TrainTestSplit: Disjoint train and test datasets that together
            hold every sample of the input.
        """
        if dataset.num_samples == 0:
            raise DatasetError("Cannot split an empty dataset")
        train_indices, test_indices = self.split_indices(dataset)
        return TrainTestSplit(train=dataset.subset(train_indices), test=dataset.subset(test_indices))

    @abstractmethod
    def split_indices(self, dataset) -> Tuple[np.ndarray, np.ndarray]:
        """
        Returns:
            (train_indices, test_indices) as integer arrays.
        """
        pass

    def _num_train(self, n_samples: int) -> int:
        return int(np.floor(n_samples * self.train_ratio + 1e-9))


class RandomSplitter(DatasetSplitter):
    """
    Shuffles all samples and keeps the first train_ratio proportion for training.
    """

    def split_indices(self, dataset) -> Tuple[np.ndarray, np.ndarray]:
        rng = np.random.default_rng(self.seed)
        indices = rng.permutation(dataset.num_samples)
        n_train = self._num_train(dataset.num_samples)
        return np.sort(indices[:n_train]), np.sort(indices[n_train:])


class StratifiedSplitter(DatasetSplitter):
    """
    Splits each class separately so every class keeps its proportion in both
    the training and the test set.

    Only works on datasets with class labels (ClassificationData).
    """

    def split_indices(self, dataset) -> Tuple[np.ndarray, np.ndarray]:
        labels = np.array([sample.class_label for sample in dataset])
        rng = np.random.default_rng(self.seed)
        train_parts, test_parts = [], []

        for label in np.unique(labels):
            class_indices = rng.permutation(np.flatnonzero(labels == label))
            n_train = self._num_train(len(class_indices))
            train_parts.append(class_indices[:n_train])
            test_parts.append(class_indices[n_train:])

        train_indices = np.sort(np.concatenate(train_parts)).astype(int)
        test_indices = np.sort(np.concatenate(test_parts)).astype(int)
        return train_indices, test_indices
