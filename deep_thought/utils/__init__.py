"""
Utility functions and helpers for deep_thought.

This module contains the numeric backend, logging setup and plotting
helpers.
"""

from .backend import xp, set_seed, default_rng
from .logger import setup_logger, train_logger, val_logger
from .plotting import plot_history

__all__ = [
    "xp",
    "set_seed",
    "default_rng",
    "setup_logger",
    "train_logger",
    "val_logger",
    "plot_history",
]
