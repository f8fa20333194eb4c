import unittest

import numpy as np

from deep_thought.modules.layer import Layer
from deep_thought.modules.network import NetworkBuilder
from deep_thought.utils.backend import default_rng, set_seed


class TestSetSeed(unittest.TestCase):
    def test_unseeded_layers_are_reproducible(self):
        set_seed(0)
        first = Layer(2, 3)
        set_seed(0)
        second = Layer(2, 3)
        np.testing.assert_array_equal(first.weight, second.weight)
        np.testing.assert_array_equal(first.bias, second.bias)

    def test_unseeded_networks_are_reproducible(self):
        builder = NetworkBuilder().add_layer(2, 4).add_layer(4, 1)
        set_seed(11)
        a = builder.build()
        set_seed(11)
        b = builder.build()
        for left, right in zip(a.layers, b.layers):
            np.testing.assert_array_equal(left.weight, right.weight)

    def test_explicit_seed_ignores_global_state(self):
        set_seed(1)
        a = default_rng(5).uniform(size=3)
        set_seed(2)
        b = default_rng(5).uniform(size=3)
        np.testing.assert_array_equal(a, b)

    def test_stream_advances_between_builds(self):
        set_seed(0)
        first = Layer(2, 3)
        second = Layer(2, 3)
        self.assertFalse(np.array_equal(first.weight, second.weight))


if __name__ == "__main__":
    unittest.main()
