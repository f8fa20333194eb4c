import unittest

import numpy as np
import torch
from torch.autograd.functional import jacobian

from deep_thought.errors import DomainError, ShapeError
from deep_thought.nn.dual import Dual, Tape
from deep_thought.utils.backend import xp


class TestShaping(unittest.TestCase):
    def assert_close(self, a, b, atol=1e-8):
        self.assertTrue(xp.allclose(a, b, atol=atol))

    def check_against_torch(self, fn_my, fn_pt, data):
        tape = Tape(data.size)
        x = tape.variable(data, name="x")
        out = fn_my(x)
        expected = fn_pt(torch.tensor(data))
        jac = jacobian(fn_pt, torch.tensor(data))

        self.assert_close(out.value, expected.numpy())
        self.assertEqual(out.shape, tuple(expected.shape))
        self.assert_close(tape.gradient(out, "x"), jac.numpy())

    def test_sum(self):
        data = xp.random.randn(3, 4)
        self.check_against_torch(lambda x: x.sum(), lambda t: t.sum(), data)
        self.check_against_torch(lambda x: x.sum(axis=0), lambda t: t.sum(dim=0), data)
        self.check_against_torch(lambda x: x.sum(axis=-1, keepdims=True), lambda t: t.sum(dim=-1, keepdim=True), data)

    def test_mean(self):
        data = xp.random.randn(2, 3, 4)
        self.check_against_torch(lambda x: x.mean(), lambda t: t.mean(), data)
        self.check_against_torch(lambda x: x.mean(axis=(0, 2)), lambda t: t.mean(dim=(0, 2)), data)
        self.check_against_torch(lambda x: x.mean(axis=1, keepdims=True), lambda t: t.mean(dim=1, keepdim=True), data)

    def test_reshape(self):
        data = xp.random.randn(2, 6)
        self.check_against_torch(lambda x: x.reshape(3, 4), lambda t: t.reshape(3, 4), data)
        self.check_against_torch(lambda x: x.reshape((12,)), lambda t: t.reshape(12), data)

    def test_getitem(self):
        data = xp.random.randn(3, 4)
        self.check_against_torch(lambda x: x[1], lambda t: t[1], data)
        self.check_against_torch(lambda x: x[:, 2], lambda t: t[:, 2], data)
        self.check_against_torch(lambda x: x[..., 1:3], lambda t: t[..., 1:3], data)
        self.check_against_torch(lambda x: x[0, 3], lambda t: t[0, 3], data)

    def test_broadcast_add(self):
        tape = Tape(3)
        bias = tape.variable(np.array([1.0, 2.0, 3.0]), name="bias")
        out = np.zeros((4, 3)) + bias
        self.assertEqual(out.shape, (4, 3))
        self.assertEqual(out.grad.shape, (4, 3, 3))
        self.assert_close(tape.gradient(out.sum(), "bias"), [4.0, 4.0, 4.0])

    def test_bad_axis(self):
        with self.assertRaises(ShapeError):
            Dual(np.zeros((2, 3))).sum(axis=2)

    def test_mean_of_empty(self):
        with self.assertRaises(DomainError):
            Dual(np.zeros((0, 3))).mean(axis=0)


if __name__ == "__main__":
    unittest.main()
