"""
Core building blocks for deep_thought.

This module contains the dual-number engine, activation functions, losses,
the module base class and optimizers.
"""

from .dual import Dual, Tape
from .module import Module
from .activation import Activation, register_activation, available_activations
from .losses import Loss, MeanSquaredError, BinaryCrossEntropy, MSE, BCE
from .optim import Optimizer, SGD

__all__ = [
    "Dual",
    "Tape",
    "Module",
    "Activation",
    "register_activation",
    "available_activations",
    "Loss",
    "MeanSquaredError",
    "BinaryCrossEntropy",
    "MSE",
    "BCE",
    "Optimizer",
    "SGD",
]
