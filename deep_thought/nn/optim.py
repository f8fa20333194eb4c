import logging

from ..errors import ConfigError, DomainError, ShapeError
from ..utils.backend import xp

logger = logging.getLogger(__name__)


class Optimizer:
    def __init__(self, layers, lr: float = 1e-2, clip_norm=None):
        if lr <= 0:
            raise ConfigError(f"Learning rate must be positive, got {lr}")
        if clip_norm is not None and clip_norm <= 0:
            raise ConfigError(f"clip_norm must be positive, got {clip_norm}")

        # accept a Network as well as a plain list of layers
        self.layers = list(getattr(layers, "layers", layers))
        self.lr = lr
        self.clip_norm = clip_norm
        self.t = 0

    def _check_gradients(self, gradients):
        if len(gradients) != len(self.layers):
            raise ShapeError(f"Got gradients for {len(gradients)} layers, optimizer holds {len(self.layers)}")
        for index, (d_weight, d_bias) in enumerate(gradients):
            if not (xp.isfinite(d_weight).all() and xp.isfinite(d_bias).all()):
                raise DomainError(f"Non-finite gradient for layer {index}")

    def _get_total_norm(self, gradients):
        total_norm = 0.0
        for d_weight, d_bias in gradients:
            total_norm += float(xp.sum(d_weight ** 2) + xp.sum(d_bias ** 2))
        return xp.sqrt(total_norm)

    def _clip_norm(self, gradients):
        if self.clip_norm is None:
            return gradients
        total_norm = self._get_total_norm(gradients)
        if total_norm <= self.clip_norm:
            return gradients
        scale = self.clip_norm / total_norm
        logger.debug("Clipping gradient norm %.4f to %.4f", total_norm, self.clip_norm)
        return [(d_weight * scale, d_bias * scale) for d_weight, d_bias in gradients]

    def step(self, gradients):
        raise NotImplementedError("Child class must implement step()")


class SGD(Optimizer):
    def __init__(self, layers, lr: float = 1e-2, momentum: float = 0.0, clip_norm=None):
        super().__init__(layers, lr=lr, clip_norm=clip_norm)
        if not 0.0 <= momentum < 1.0:
            raise ConfigError(f"Momentum must be in [0, 1), got {momentum}")
        self.momentum = momentum

    def step(self, gradients):
        """SGD with momentum, applied layer by layer.

        ``gradients`` holds one ``(d_weight, d_bias)`` pair per layer. Every
        gradient is validated before any layer is touched, so a bad batch
        never leaves the network half updated.
        """
        self._check_gradients(gradients)
        gradients = self._clip_norm(gradients)
        self.t += 1

        for layer, layer_gradients in zip(self.layers, gradients):
            layer.update(layer_gradients, self.lr, self.momentum)
