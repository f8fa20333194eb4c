import logging
import math
from dataclasses import dataclass
from typing import NamedTuple, Optional

import pandas as pd

from ..errors import ConfigError, ShapeError
from ..utils.backend import default_rng, xp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchSize:
    """How many samples are grouped per gradient update.

    ``BatchSize.ONE`` is stochastic, ``BatchSize.FULL`` uses the whole split,
    ``BatchSize.of(n)`` builds mini-batches of ``n`` samples.
    """

    kind: str
    size: Optional[int] = None

    def __post_init__(self):
        if self.kind not in ("one", "full", "number"):
            raise ConfigError(f"Unknown batch size policy {self.kind!r}")
        if self.kind == "number":
            if isinstance(self.size, bool) or not isinstance(self.size, int) or self.size <= 0:
                raise ConfigError(f"Batch size must be a positive integer, got {self.size!r}")

    @classmethod
    def of(cls, size):
        return cls("number", size)

    @classmethod
    def coerce(cls, value):
        if isinstance(value, BatchSize):
            return value
        if isinstance(value, str):
            return cls(value.lower())
        return cls.of(value)

    def resolve(self, rows):
        if self.kind == "one":
            return 1
        if self.kind == "full":
            return max(rows, 1)
        return self.size


BatchSize.ONE = BatchSize("one")
BatchSize.FULL = BatchSize("full")


class Batch(NamedTuple):
    inputs: xp.ndarray
    labels: xp.ndarray


class BatchCursor:
    """Restartable cursor over one split of a dataset.

    ``next_batch`` hands out batches in order and returns ``None`` once the
    split is exhausted; ``reset`` rewinds. A final partial batch is yielded
    short. Iterating the cursor always starts from the beginning.
    """

    def __init__(self, inputs, labels, batch_size: int):
        self.inputs = inputs
        self.labels = labels
        self.batch_size = batch_size
        self.num_batches = math.ceil(len(inputs) / batch_size)
        self.position = 0

    @property
    def num_samples(self):
        return len(self.inputs)

    def __len__(self):
        return self.num_batches

    def reset(self):
        self.position = 0

    def next_batch(self) -> Optional[Batch]:
        if self.position >= self.num_samples:
            return None
        end = min(self.position + self.batch_size, self.num_samples)
        batch = Batch(self.inputs[self.position:end], self.labels[self.position:end])
        self.position = end
        return batch

    def __iter__(self):
        self.reset()
        while (batch := self.next_batch()) is not None:
            yield batch


class Dataset:
    def __init__(self, inputs, labels, train_fraction: float = 1.0, batch_size=BatchSize.ONE, shuffle=False, seed=None):
        inputs = xp.array(inputs, dtype=xp.float64)
        labels = xp.array(labels, dtype=xp.float64)
        if labels.ndim == 1:
            labels = labels.reshape(-1, 1)

        if inputs.ndim != 2:
            raise ShapeError(f"Inputs must be a 2-d (rows, features) array, got shape {inputs.shape}")
        if labels.ndim != 2:
            raise ShapeError(f"Labels must be a 1-d or 2-d array, got shape {labels.shape}")
        if inputs.shape[0] != labels.shape[0]:
            raise ShapeError(f"Inputs have {inputs.shape[0]} rows but labels have {labels.shape[0]}")
        try:
            fraction = float(train_fraction)
        except (TypeError, ValueError):
            raise ConfigError(f"train_fraction must be a number, got {train_fraction!r}") from None
        if not 0.0 < fraction <= 1.0:
            raise ConfigError(f"train_fraction must be in (0, 1], got {train_fraction}")
        train_fraction = fraction
        if inputs.shape[0] == 0:
            raise ConfigError("Dataset is empty")

        self.batch_size = BatchSize.coerce(batch_size)
        self.train_fraction = train_fraction

        if shuffle:
            order = default_rng(seed).permutation(inputs.shape[0])
            inputs, labels = inputs[order], labels[order]
        self.inputs = inputs
        self.labels = labels

        rows = inputs.shape[0]
        self.num_train = max(1, int(math.floor(rows * train_fraction + 1e-9)))
        logger.debug("Dataset split: %d train rows, %d test rows", self.num_train, rows - self.num_train)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, label_columns, feature_columns=None, **kwargs):
        if isinstance(label_columns, str):
            label_columns = [label_columns]
        missing = [c for c in label_columns if c not in frame.columns]
        if missing:
            raise ConfigError(f"Label columns {missing} not found in frame")

        if feature_columns is None:
            features = frame.drop(columns=label_columns)
        else:
            features = frame[list(feature_columns)]
        return cls(
            features.to_numpy(dtype=xp.float64),
            frame[label_columns].to_numpy(dtype=xp.float64),
            **kwargs,
        )

    @classmethod
    def from_csv(cls, path, label_columns, feature_columns=None, **kwargs):
        frame = pd.read_csv(path)
        return cls.from_frame(frame, label_columns, feature_columns=feature_columns, **kwargs)

    def __len__(self):
        return self.inputs.shape[0]

    @property
    def num_features(self):
        return self.inputs.shape[1]

    @property
    def num_outputs(self):
        return self.labels.shape[1]

    @property
    def num_test(self):
        return len(self) - self.num_train

    @property
    def train_inputs(self):
        return self.inputs[:self.num_train]

    @property
    def train_labels(self):
        return self.labels[:self.num_train]

    @property
    def test_inputs(self):
        return self.inputs[self.num_train:]

    @property
    def test_labels(self):
        return self.labels[self.num_train:]

    def _cursor(self, inputs, labels, batch_size):
        policy = self.batch_size if batch_size is None else BatchSize.coerce(batch_size)
        return BatchCursor(inputs, labels, policy.resolve(len(inputs)))

    def iter_train(self, batch_size=None) -> BatchCursor:
        return self._cursor(self.train_inputs, self.train_labels, batch_size)

    def iter_test(self, batch_size=None) -> BatchCursor:
        return self._cursor(self.test_inputs, self.test_labels, batch_size)
