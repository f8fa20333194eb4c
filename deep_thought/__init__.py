"""
deep_thought - feedforward neural networks trained with forward-mode autodiff

Gradients come from dual numbers evaluated alongside the forward pass instead
of a separate backpropagation pass.
"""

__version__ = "0.1.0"

# Import main components for easy access
from .errors import DeepThoughtError, ShapeError, ConfigError, DomainError, TapeError
from .nn.dual import Dual, Tape
from .nn.module import Module
from .nn.activation import Activation, register_activation
from .nn.losses import Loss, MeanSquaredError, BinaryCrossEntropy, MSE, BCE
from .nn.optim import Optimizer, SGD
from .modules.layer import Layer
from .modules.network import Network, NetworkBuilder, NetworkConfig, LayerConfig, GradientMode
from .data.dataset import Dataset, BatchSize, Batch, BatchCursor
from .utils.backend import xp, set_seed

__all__ = [
    "DeepThoughtError",
    "ShapeError",
    "ConfigError",
    "DomainError",
    "TapeError",
    "Dual",
    "Tape",
    "Module",
    "Activation",
    "register_activation",
    "Loss",
    "MeanSquaredError",
    "BinaryCrossEntropy",
    "MSE",
    "BCE",
    "Optimizer",
    "SGD",
    "Layer",
    "Network",
    "NetworkBuilder",
    "NetworkConfig",
    "LayerConfig",
    "GradientMode",
    "Dataset",
    "BatchSize",
    "Batch",
    "BatchCursor",
    "xp",
    "set_seed",
]
