from ..errors import ConfigError, ShapeError
from ..utils.backend import xp
from .dual import Dual


class Loss:
    """Scalar-reducing comparison between network output and labels.

    ``compute`` returns one error per sample (the last axis holds a sample's
    outputs), as an ndarray for plain inputs or a ``Dual`` when the
    predictions carry derivatives. Both support ``.mean()`` and ``.sum()``.
    """

    name = None

    def elementwise(self, predictions: Dual, labels):
        raise NotImplementedError("Child class must implement elementwise()")

    def compute(self, predictions, labels):
        is_dual = isinstance(predictions, Dual)
        predictions = Dual.lift(predictions)
        labels = xp.asarray(labels.value if isinstance(labels, Dual) else labels, dtype=xp.float64)
        if predictions.shape != labels.shape:
            raise ShapeError(f"Predictions {predictions.shape} and labels {labels.shape} differ in shape")

        errors = self.elementwise(predictions, labels)
        if errors.ndim >= 1:
            errors = errors.mean(axis=-1)
        return errors if is_dual else errors.value

    def __call__(self, predictions, labels):
        return self.compute(predictions, labels).mean()

    def derivative(self, predictions, labels):
        """How sensitive each sample's loss is to each of its outputs."""
        values = xp.asarray(predictions.value if isinstance(predictions, Dual) else predictions, dtype=xp.float64)
        if values.ndim < 1:
            raise ShapeError("Loss derivative needs at least one output per sample")
        n_out = values.shape[-1]
        seeds = xp.broadcast_to(xp.eye(n_out), values.shape + (n_out,))
        per_sample = self.compute(Dual(values, seeds), labels)
        return xp.array(per_sample.grad)

    @staticmethod
    def from_name(name):
        losses = {
            "mse": MeanSquaredError,
            "mean_squared_error": MeanSquaredError,
            "bce": BinaryCrossEntropy,
            "binary_cross_entropy": BinaryCrossEntropy,
        }
        try:
            return losses[name.lower()]()
        except KeyError:
            raise ConfigError(f"Unknown loss {name!r}") from None

    def __repr__(self):
        return f"{type(self).__name__}()"


class MeanSquaredError(Loss):
    name = "mse"

    def elementwise(self, predictions, labels):
        return (predictions - labels) ** 2


class BinaryCrossEntropy(Loss):
    name = "bce"

    def __init__(self, eps=1e-7):
        self.eps = eps

    def elementwise(self, predictions, labels):
        p = predictions.clip(self.eps, 1.0 - self.eps)
        return -(labels * p.log() + (1.0 - labels) * (1.0 - p).log())


MSE = MeanSquaredError
BCE = BinaryCrossEntropy
