"""
Network modules for deep_thought.

This module contains the fully connected layer and the network that
composes layers, together with its configuration and builder.
"""

from .layer import Layer
from .network import Network, NetworkBuilder, NetworkConfig, LayerConfig, GradientMode

__all__ = [
    "Layer",
    "Network",
    "NetworkBuilder",
    "NetworkConfig",
    "LayerConfig",
    "GradientMode",
]
