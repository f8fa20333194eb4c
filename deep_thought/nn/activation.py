"""
Activation functions applied to a layer's pre-activation values.

Each variant is written only with ``Dual`` operations so derivatives flow
through it without a hand-coded derivative. New variants can be added with
``register_activation``.
"""
from ..errors import ConfigError
from .dual import Dual

_ACTIVATIONS = {}


def register_activation(name):
    def decorator(fn):
        if name in _ACTIVATIONS:
            raise ConfigError(f"Activation {name!r} already registered")
        _ACTIVATIONS[name] = fn
        return fn
    return decorator


def available_activations():
    return sorted(_ACTIVATIONS)


@register_activation("identity")
def identity(x):
    return x


@register_activation("sigmoid")
def sigmoid(x):
    return x.sigmoid()


@register_activation("relu")
def relu(x):
    # derivative at exactly zero is 0 (sub-gradient convention)
    return Dual.where(x > 0, x, 0.0)


@register_activation("leaky_relu")
def leaky_relu(x, slope=0.01):
    return Dual.where(x > 0, x, x * slope)


@register_activation("tanh")
def tanh(x):
    return x.tanh()


@register_activation("softmax")
def softmax(x, axis=-1):
    # shifting by a constant leaves both value and derivative unchanged
    shifted = x - x.value.max(axis=axis, keepdims=True)
    exps = shifted.exp()
    return exps / exps.sum(axis=axis, keepdims=True)


class Activation:
    ALIASES = {"linear": "identity"}

    def __init__(self, name="identity", **params):
        name = self.ALIASES.get(name, name)
        if name not in _ACTIVATIONS:
            raise ConfigError(f"Unknown activation {name!r}, expected one of {available_activations()}")
        self.name = name
        self.params = params

    @classmethod
    def identity(cls):
        return cls("identity")

    @classmethod
    def linear(cls):
        return cls("identity")

    @classmethod
    def sigmoid(cls):
        return cls("sigmoid")

    @classmethod
    def relu(cls):
        return cls("relu")

    @classmethod
    def leaky_relu(cls, slope=0.01):
        return cls("leaky_relu", slope=slope)

    @classmethod
    def tanh(cls):
        return cls("tanh")

    @classmethod
    def softmax(cls):
        return cls("softmax")

    def __call__(self, x):
        fn = _ACTIVATIONS[self.name]
        if isinstance(x, Dual):
            return fn(x, **self.params)
        return fn(Dual(x), **self.params).value

    def to_dict(self):
        return {"name": self.name, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, str):
            return cls(data)
        return cls(data["name"], **data.get("params", {}))

    def __eq__(self, other):
        if not isinstance(other, Activation):
            return NotImplemented
        return self.name == other.name and self.params == other.params

    def __hash__(self):
        return hash((self.name, tuple(sorted(self.params.items()))))

    def __repr__(self):
        params = ", ".join(f"{k}={v!r}" for k, v in self.params.items())
        return f"Activation({self.name!r}{', ' + params if params else ''})"
