from ..errors import ConfigError, ShapeError
from ..nn.activation import Activation
from ..nn.dual import Dual
from ..nn.module import Module
from ..utils.backend import default_rng, xp

INIT_SCHEMES = ("uniform", "xavier")


class Layer(Module):
    """Fully connected layer computing ``activation(x @ W.T + b)``.

    ``W`` has shape ``(out_dim, in_dim)`` and ``b`` shape ``(out_dim,)``.
    Velocity buffers hold the momentum state used by ``update``.
    """

    def __init__(self, in_dim, out_dim, activation=None, init="uniform", rng=None):
        super().__init__()
        if in_dim <= 0 or out_dim <= 0:
            raise ConfigError(f"Layer dimensions must be positive, got {in_dim} -> {out_dim}")
        if init not in INIT_SCHEMES:
            raise ConfigError(f"Unknown init scheme {init!r}, expected one of {INIT_SCHEMES}")

        self.in_dim = in_dim
        self.out_dim = out_dim
        if activation is None:
            activation = Activation.identity()
        elif isinstance(activation, str):
            activation = Activation(activation)
        self.activation = activation

        rng = rng if rng is not None else default_rng()
        if init == "xavier":
            self.weight = self.xavier_uniform((out_dim, in_dim), rng)
            self.bias = xp.zeros(out_dim)
        else:
            self.weight = rng.uniform(-1.0, 1.0, size=(out_dim, in_dim))
            self.bias = rng.uniform(-1.0, 1.0, size=out_dim)

        self.weight_velocity = xp.zeros_like(self.weight)
        self.bias_velocity = xp.zeros_like(self.bias)

        self.register_parameter("weight")
        self.register_parameter("bias")

    @classmethod
    def from_parameters(cls, weight, bias, activation=None):
        weight = xp.array(weight, dtype=xp.float64)
        bias = xp.array(bias, dtype=xp.float64)
        if weight.ndim != 2:
            raise ShapeError(f"Weight must be 2-d, got shape {weight.shape}")
        if bias.shape != (weight.shape[0],):
            raise ShapeError(f"Bias shape {bias.shape} does not match weight rows {weight.shape[0]}")
        layer = cls(weight.shape[1], weight.shape[0], activation=activation)
        layer.weight = weight
        layer.bias = bias
        return layer

    @staticmethod
    def xavier_uniform(shape, rng):
        fan_out, fan_in = shape
        limit = xp.sqrt(6 / (fan_in + fan_out))
        return rng.uniform(-limit, limit, size=shape)

    def describe(self):
        return f"{self.in_dim} -> {self.out_dim}, {self.activation.name}"

    @property
    def shape(self):
        return self.weight.shape

    @property
    def slot_count(self):
        return self.weight.size + self.bias.size

    def get_parameters(self):
        return self.weight.copy(), self.bias.copy()

    def set_parameters(self, weight, bias):
        weight = xp.array(weight, dtype=xp.float64)
        bias = xp.array(bias, dtype=xp.float64)
        # make sure the dimensions match before replacing the old ones
        if weight.shape != self.weight.shape:
            raise ShapeError(f"Expected weight shape {self.weight.shape}, found {weight.shape}")
        if bias.shape != self.bias.shape:
            raise ShapeError(f"Expected bias shape {self.bias.shape}, found {bias.shape}")
        self.weight = weight
        self.bias = bias

    def get_velocities(self):
        return self.weight_velocity.copy(), self.bias_velocity.copy()

    def set_velocities(self, weight_velocity, bias_velocity):
        weight_velocity = xp.array(weight_velocity, dtype=xp.float64)
        bias_velocity = xp.array(bias_velocity, dtype=xp.float64)
        if weight_velocity.shape != self.weight.shape or bias_velocity.shape != self.bias.shape:
            raise ShapeError("Velocity shapes must match the layer's parameters")
        self.weight_velocity = weight_velocity
        self.bias_velocity = bias_velocity

    def forward(self, inputs, tape=None, name=None):
        """Forward-pass a single input vector or a batch of row vectors.

        With a ``tape`` the weight and bias are seeded on it (as
        ``<name>_weight`` / ``<name>_bias``), so the output's derivative slots
        cover every parameter of this layer as well as anything already
        seeded on ``inputs``.
        """
        x = inputs if isinstance(inputs, Dual) else Dual(inputs)
        if x.ndim not in (1, 2) or x.shape[-1] != self.in_dim:
            raise ShapeError(f"Layer expects {self.in_dim} input features, got input of shape {x.shape}")

        if tape is not None:
            prefix = f"{name}_" if name is not None else ""
            weight = tape.variable(self.weight, name=f"{prefix}weight")
            bias = tape.variable(self.bias, name=f"{prefix}bias")
        else:
            weight = Dual(self.weight)
            bias = Dual(self.bias)

        z = x @ weight.T + bias
        return self.activation(z)

    def update(self, gradients, learning_rate, momentum=0.0):
        """Gradient descent with momentum, applied in place.

        velocity = momentum * velocity + learning_rate * gradient
        param -= velocity
        """
        d_weight, d_bias = (xp.asarray(g, dtype=xp.float64) for g in gradients)
        if d_weight.shape != self.weight.shape:
            raise ShapeError(f"Weight gradient shape {d_weight.shape} does not match {self.weight.shape}")
        if d_bias.shape != self.bias.shape:
            raise ShapeError(f"Bias gradient shape {d_bias.shape} does not match {self.bias.shape}")

        self.weight_velocity = momentum * self.weight_velocity + learning_rate * d_weight
        self.bias_velocity = momentum * self.bias_velocity + learning_rate * d_bias
        self.weight -= self.weight_velocity
        self.bias -= self.bias_velocity
