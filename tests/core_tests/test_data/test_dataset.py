import os
import tempfile
import unittest

import numpy as np
import pandas as pd

from deep_thought.data.dataset import Batch, BatchSize, Dataset
from deep_thought.errors import ConfigError, ShapeError


def make_data(rows=10, features=3):
    inputs = np.arange(rows * features, dtype=float).reshape(rows, features)
    labels = np.arange(rows, dtype=float).reshape(rows, 1)
    return inputs, labels


class TestDatasetValidation(unittest.TestCase):
    def test_mismatched_rows(self):
        inputs, labels = make_data()
        with self.assertRaises(ShapeError):
            Dataset(inputs, labels[:-1])

    def test_train_fraction_zero(self):
        inputs, labels = make_data()
        with self.assertRaises(ConfigError):
            Dataset(inputs, labels, train_fraction=0.0)

    def test_train_fraction_above_one(self):
        inputs, labels = make_data()
        with self.assertRaises(ConfigError):
            Dataset(inputs, labels, train_fraction=1.5)

    def test_train_fraction_nan(self):
        inputs, labels = make_data()
        with self.assertRaises(ConfigError):
            Dataset(inputs, labels, train_fraction=float("nan"))

    def test_train_fraction_not_a_number(self):
        inputs, labels = make_data()
        for fraction in (None, "most", [0.5]):
            with self.subTest(fraction=fraction):
                with self.assertRaises(ConfigError):
                    Dataset(inputs, labels, train_fraction=fraction)
        self.assertEqual(Dataset(inputs, labels, train_fraction="0.5").train_fraction, 0.5)

    def test_zero_batch_size(self):
        inputs, labels = make_data()
        with self.assertRaises(ConfigError):
            Dataset(inputs, labels, batch_size=BatchSize.of(0))
        with self.assertRaises(ConfigError):
            Dataset(inputs, labels, batch_size=0)

    def test_inputs_must_be_2d(self):
        with self.assertRaises(ShapeError):
            Dataset(np.zeros(4), np.zeros(4))

    def test_empty(self):
        with self.assertRaises(ConfigError):
            Dataset(np.zeros((0, 2)), np.zeros((0, 1)))

    def test_1d_labels_become_a_column(self):
        inputs, labels = make_data()
        dataset = Dataset(inputs, labels.ravel())
        self.assertEqual(dataset.labels.shape, (10, 1))
        self.assertEqual(dataset.num_outputs, 1)
        self.assertEqual(dataset.num_features, 3)


class TestBatching(unittest.TestCase):
    def test_split(self):
        inputs, labels = make_data()
        dataset = Dataset(inputs, labels, train_fraction=0.7)
        self.assertEqual(dataset.num_train, 7)
        self.assertEqual(dataset.num_test, 3)
        np.testing.assert_array_equal(dataset.test_labels.ravel(), [7.0, 8.0, 9.0])

    def test_small_fraction_keeps_one_train_row(self):
        inputs, labels = make_data(rows=4)
        dataset = Dataset(inputs, labels, train_fraction=0.1)
        self.assertEqual(dataset.num_train, 1)

    def test_batch_size_one(self):
        inputs, labels = make_data()
        cursor = Dataset(inputs, labels, train_fraction=0.5, batch_size=BatchSize.ONE).iter_train()
        batches = list(cursor)
        self.assertEqual(len(batches), 5)
        self.assertEqual(cursor.num_batches, 5)
        self.assertTrue(all(b.inputs.shape == (1, 3) for b in batches))

    def test_full_batch(self):
        inputs, labels = make_data()
        cursor = Dataset(inputs, labels, train_fraction=0.8, batch_size=BatchSize.FULL).iter_train()
        batches = list(cursor)
        self.assertEqual(len(batches), 1)
        self.assertEqual(batches[0].inputs.shape, (8, 3))

    def test_mini_batch_yields_short_final_batch(self):
        inputs, labels = make_data()
        cursor = Dataset(inputs, labels, batch_size=BatchSize.of(4)).iter_train()
        sizes = [len(samples) for samples, _ in cursor]
        self.assertEqual(sizes, [4, 4, 2])
        self.assertEqual(len(cursor), 3)
        self.assertEqual(cursor.batch_size, 4)

    def test_cursor_next_batch_and_reset(self):
        inputs, labels = make_data(rows=3)
        cursor = Dataset(inputs, labels, batch_size=2).iter_train()

        first = cursor.next_batch()
        self.assertIsInstance(first, Batch)
        self.assertEqual(len(first.inputs), 2)
        self.assertEqual(len(cursor.next_batch().inputs), 1)
        self.assertIsNone(cursor.next_batch())

        cursor.reset()
        np.testing.assert_array_equal(cursor.next_batch().inputs, first.inputs)

    def test_iteration_is_restartable(self):
        inputs, labels = make_data()
        cursor = Dataset(inputs, labels, batch_size=3).iter_train()
        first_pass = [b.labels.tolist() for b in cursor]
        second_pass = [b.labels.tolist() for b in cursor]
        self.assertEqual(first_pass, second_pass)

    def test_batch_size_override(self):
        inputs, labels = make_data()
        dataset = Dataset(inputs, labels, batch_size=BatchSize.ONE)
        self.assertEqual(len(dataset.iter_train(batch_size="full")), 1)

    def test_empty_test_split(self):
        inputs, labels = make_data()
        cursor = Dataset(inputs, labels, train_fraction=1.0).iter_test()
        self.assertEqual(cursor.num_batches, 0)
        self.assertIsNone(cursor.next_batch())
        self.assertEqual(list(cursor), [])

    def test_shuffle_is_seeded(self):
        inputs, labels = make_data()
        a = Dataset(inputs, labels, shuffle=True, seed=3)
        b = Dataset(inputs, labels, shuffle=True, seed=3)
        np.testing.assert_array_equal(a.inputs, b.inputs)
        # rows stay paired with their labels
        np.testing.assert_array_equal(a.inputs[:, 0] / 3, a.labels.ravel())


class TestDatasetFromCsv(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "records.csv")
        pd.DataFrame({
            "age": [50.0, 60.0, 70.0, 80.0],
            "smoking": [0, 1, 0, 1],
            "DEATH_EVENT": [0, 1, 1, 0],
        }).to_csv(self.path, index=False)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_from_csv(self):
        dataset = Dataset.from_csv(self.path, label_columns="DEATH_EVENT", train_fraction=0.5)
        self.assertEqual(dataset.inputs.shape, (4, 2))
        self.assertEqual(dataset.labels.shape, (4, 1))
        self.assertEqual(dataset.num_train, 2)
        np.testing.assert_array_equal(dataset.labels.ravel(), [0, 1, 1, 0])

    def test_feature_columns(self):
        frame = pd.read_csv(self.path)
        dataset = Dataset.from_frame(frame, ["DEATH_EVENT"], feature_columns=["age"])
        self.assertEqual(dataset.num_features, 1)

    def test_missing_label_column(self):
        with self.assertRaises(ConfigError):
            Dataset.from_csv(self.path, label_columns="outcome")


if __name__ == "__main__":
    unittest.main()
