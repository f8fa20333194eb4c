import unittest

import numpy as np
import torch

from deep_thought.nn.activation import Activation
from deep_thought.nn.dual import Dual
from deep_thought.utils.backend import xp


class TestSigmoid(unittest.TestCase):
    def assert_close(self, a, b, atol=1e-6):
        self.assertTrue(xp.allclose(a, b, atol=atol))

    def test_sigmoid_at_zero(self):
        out = Activation.sigmoid()(Dual(0.0, 1.0))
        self.assertAlmostEqual(float(out.value), 0.5)
        self.assertAlmostEqual(float(out.derivative), 0.25)

    def test_sigmoid_tensor(self):
        shapes = [
            (1,),
            (2, 3),
            (3, 4, 5),
        ]

        for shape in shapes:
            data = xp.random.randn(*shape)
            a_my = Dual(data, np.ones_like(data))
            a_pt = torch.tensor(data, requires_grad=True)

            b_my = Activation.sigmoid()(a_my)
            b_pt = torch.sigmoid(a_pt)
            b_pt.sum().backward()

            self.assert_close(b_my.value, b_pt.detach().numpy())
            self.assert_close(b_my.derivative, a_pt.grad.numpy())

    def test_tanh_tensor(self):
        data = xp.random.randn(4, 3)
        a_my = Dual(data, np.ones_like(data))
        a_pt = torch.tensor(data, requires_grad=True)

        b_my = Activation.tanh()(a_my)
        b_pt = torch.tanh(a_pt)
        b_pt.sum().backward()

        self.assert_close(b_my.value, b_pt.detach().numpy())
        self.assert_close(b_my.derivative, a_pt.grad.numpy())

    def test_identity(self):
        d = Dual(np.array([-1.0, 2.0]), np.ones(2))
        for name in ("identity", "linear"):
            out = Activation(name)(d)
            self.assert_close(out.value, [-1.0, 2.0])
            self.assert_close(out.derivative, [1.0, 1.0])

    def test_plain_array_in_plain_array_out(self):
        out = Activation.sigmoid()(np.array([0.0, 0.0]))
        self.assertIsInstance(out, np.ndarray)
        self.assert_close(out, [0.5, 0.5])


if __name__ == "__main__":
    unittest.main()
