"""
Error types raised by deep_thought.

Construction-time validation (datasets, network configs) and numeric
problems during training are reported through these classes rather than
silently corrected.
"""


class DeepThoughtError(Exception):
    """Base class for every error raised by this package."""


class ShapeError(DeepThoughtError, ValueError):
    """Dimensions of layers, batches, parameters or input/label pairs disagree."""


class ConfigError(DeepThoughtError, ValueError):
    """A hyperparameter or configuration value is out of range."""


class DomainError(DeepThoughtError, ArithmeticError):
    """A math operation is undefined for its input (division by zero, log(0), ...)."""


class TapeError(DomainError):
    """Two dual numbers seeded on different tapes were combined."""
