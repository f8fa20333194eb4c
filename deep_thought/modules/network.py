import dataclasses
import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..errors import ConfigError, DomainError, ShapeError
from ..nn.activation import Activation
from ..nn.dual import Tape
from ..nn.losses import Loss
from ..nn.module import Module
from ..nn.optim import SGD
from ..utils.backend import default_rng, xp
from ..utils.logger import train_logger, val_logger
from .layer import INIT_SCHEMES, Layer

logger = logging.getLogger(__name__)

FORMAT = "deep_thought.network"
FORMAT_VERSION = 1


class GradientMode(str, Enum):
    """Which parameters share a forward pass.

    ``ALL`` seeds every weight and bias in one pass; ``LAYER`` runs one pass
    per layer seeding only that layer, which keeps each pass's derivative
    slots narrow at the cost of more passes.
    """

    ALL = "all"
    LAYER = "layer"


@dataclass
class LayerConfig:
    in_dim: int
    out_dim: int
    activation: Activation = field(default_factory=Activation.identity)

    def __post_init__(self):
        if not isinstance(self.activation, Activation):
            self.activation = Activation.from_dict(self.activation)

    @classmethod
    def from_layer(cls, layer):
        return cls(layer.in_dim, layer.out_dim, layer.activation)

    def to_dict(self):
        return {"in_dim": self.in_dim, "out_dim": self.out_dim, "activation": self.activation.to_dict()}

    @classmethod
    def from_dict(cls, data):
        return cls(int(data["in_dim"]), int(data["out_dim"]), Activation.from_dict(data.get("activation", "identity")))


@dataclass
class NetworkConfig:
    """Everything needed to build a network; ``build`` validates it first."""

    layers: List[LayerConfig] = field(default_factory=list)
    learning_rate: float = 0.01
    momentum: float = 0.0
    gradient_mode: GradientMode = GradientMode.ALL
    seed: Optional[int] = None
    init: str = "uniform"

    def validate(self):
        if not self.layers:
            raise ConfigError("A network needs at least one layer")
        for index, layer in enumerate(self.layers):
            if layer.in_dim <= 0 or layer.out_dim <= 0:
                raise ConfigError(f"Layer {index} has non-positive dimensions {layer.in_dim} -> {layer.out_dim}")
        for index, (prev, nxt) in enumerate(zip(self.layers, self.layers[1:])):
            if prev.out_dim != nxt.in_dim:
                raise ShapeError(
                    f"Layer {index} outputs {prev.out_dim} features but layer {index + 1} expects {nxt.in_dim}"
                )
        if not (math.isfinite(self.learning_rate) and self.learning_rate > 0):
            raise ConfigError(f"Learning rate must be positive, got {self.learning_rate}")
        if not 0.0 <= self.momentum < 1.0:
            raise ConfigError(f"Momentum must be in [0, 1), got {self.momentum}")
        try:
            self.gradient_mode = GradientMode(self.gradient_mode)
        except ValueError:
            raise ConfigError(f"Unknown gradient mode {self.gradient_mode!r}") from None
        if self.init not in INIT_SCHEMES:
            raise ConfigError(f"Unknown init scheme {self.init!r}, expected one of {INIT_SCHEMES}")
        return self

    def build(self):
        self.validate()
        rng = default_rng(self.seed)
        layers = [Layer(c.in_dim, c.out_dim, c.activation, init=self.init, rng=rng) for c in self.layers]
        return Network(
            layers,
            learning_rate=self.learning_rate,
            momentum=self.momentum,
            gradient_mode=self.gradient_mode,
            seed=self.seed,
            init=self.init,
        )

    def to_dict(self):
        return {
            "layers": [layer.to_dict() for layer in self.layers],
            "learning_rate": self.learning_rate,
            "momentum": self.momentum,
            "gradient_mode": GradientMode(self.gradient_mode).value,
            "seed": self.seed,
            "init": self.init,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            layers=[LayerConfig.from_dict(layer) for layer in data["layers"]],
            learning_rate=data.get("learning_rate", 0.01),
            momentum=data.get("momentum", 0.0),
            gradient_mode=data.get("gradient_mode", GradientMode.ALL.value),
            seed=data.get("seed"),
            init=data.get("init", "uniform"),
        )


class NetworkBuilder:
    """Fluent front end over ``NetworkConfig``.

    Every call returns a new builder, so a half-configured builder can be
    reused without the changes of one chain leaking into another.
    """

    def __init__(self, config: Optional[NetworkConfig] = None):
        self._config = config if config is not None else NetworkConfig()

    def _with(self, **changes):
        return NetworkBuilder(dataclasses.replace(self._config, **changes))

    @property
    def config(self):
        return self._config

    def learning_rate(self, lr):
        return self._with(learning_rate=lr)

    def momentum(self, momentum):
        return self._with(momentum=momentum)

    def add_layer(self, in_dim, out_dim, activation=None):
        if activation is None:
            activation = Activation.identity()
        return self._with(layers=[*self._config.layers, LayerConfig(in_dim, out_dim, activation)])

    def gradient_mode(self, mode):
        return self._with(gradient_mode=mode)

    def seed(self, seed):
        return self._with(seed=seed)

    def init(self, scheme):
        return self._with(init=scheme)

    def build(self):
        return self._config.build()


class Network(Module):
    def __init__(self, layers, learning_rate=0.01, momentum=0.0, gradient_mode=GradientMode.ALL, seed=None, init="uniform"):
        super().__init__()
        self.config = NetworkConfig(
            layers=[LayerConfig.from_layer(layer) for layer in layers],
            learning_rate=learning_rate,
            momentum=momentum,
            gradient_mode=gradient_mode,
            seed=seed,
            init=init,
        ).validate()

        self.layers = tuple(layers)
        for index, layer in enumerate(self.layers):
            self.register_module(f"layer_{index}", layer)

        self.optimizer = SGD(self.layers, lr=learning_rate, momentum=momentum)

    @property
    def learning_rate(self):
        return self.config.learning_rate

    @property
    def momentum(self):
        return self.config.momentum

    @property
    def gradient_mode(self):
        return self.config.gradient_mode

    @property
    def input_dim(self):
        return self.layers[0].in_dim

    @property
    def output_dim(self):
        return self.layers[-1].out_dim

    def _seeded_indices(self, seed_layers):
        if seed_layers is None:
            return ()
        if isinstance(seed_layers, str):
            if seed_layers != "all":
                raise ConfigError(f"seed_layers must be 'all', an index or None, got {seed_layers!r}")
            return tuple(range(len(self.layers)))
        if isinstance(seed_layers, int):
            seed_layers = (seed_layers,)
        indices = tuple(sorted(set(seed_layers)))
        for index in indices:
            if not 0 <= index < len(self.layers):
                raise ConfigError(f"Layer index {index} out of range for {len(self.layers)} layers")
        return indices

    def forward(self, inputs, seed_layers="all"):
        """Thread ``inputs`` through every layer.

        ``seed_layers`` picks the layers whose weights and biases get
        derivative slots (``"all"``, an index, a collection of indices or
        ``None``). The returned ``Dual`` carries the slots on ``.tape``.
        """
        seeded = self._seeded_indices(seed_layers)
        tape = None
        if seeded:
            tape = Tape(sum(self.layers[i].slot_count for i in seeded), name=f"layers{list(seeded)}")

        out = inputs
        for index, layer in enumerate(self.layers):
            out = layer.forward(out, tape=tape if index in seeded else None, name=f"layer_{index}")
        return out

    def predict(self, inputs):
        return self.forward(inputs, seed_layers=None).value

    def _passes(self):
        if self.gradient_mode is GradientMode.ALL:
            return [tuple(range(len(self.layers)))]
        return [(index,) for index in range(len(self.layers))]

    def gradients(self, inputs, labels, loss):
        """Mean batch loss and one ``(d_weight, d_bias)`` pair per layer.

        Gradients are read straight off the derivative slots of the loss, no
        backward pass is involved.
        """
        loss = Loss.from_name(loss) if isinstance(loss, str) else loss
        grads = [None] * len(self.layers)
        batch_loss = None

        for seeded in self._passes():
            out = self.forward(inputs, seed_layers=seeded)
            loss_value = loss.compute(out, labels).mean()
            if not xp.isfinite(loss_value.value):
                raise DomainError(f"Non-finite loss {float(loss_value.value)} during forward pass")

            tape = out.tape
            for index in seeded:
                grads[index] = (
                    tape.gradient(loss_value, f"layer_{index}_weight"),
                    tape.gradient(loss_value, f"layer_{index}_bias"),
                )
            batch_loss = float(loss_value.value)
        return batch_loss, grads

    def backprop(self, inputs, labels, loss, optimizer=None):
        """Compute gradients for one batch and apply them.

        The name follows the usual training-loop vocabulary; the gradients
        themselves come from the forward pass.
        """
        batch_loss, grads = self.gradients(inputs, labels, loss)
        optimizer = optimizer if optimizer is not None else self.optimizer
        optimizer.step(grads)
        return batch_loss

    def fit(self, dataset, loss, epochs, log_every=100, optimizer=None):
        if epochs <= 0:
            raise ConfigError(f"epochs must be positive, got {epochs}")
        loss = Loss.from_name(loss) if isinstance(loss, str) else loss

        history = []
        cursor = dataset.iter_train()
        for epoch in range(epochs):
            total, count = 0.0, 0
            for samples, labels in cursor:
                batch_loss = self.backprop(samples, labels, loss, optimizer=optimizer)
                total += batch_loss * len(samples)
                count += len(samples)
            epoch_loss = total / count
            history.append(epoch_loss)

            if log_every and (epoch % log_every == 0 or epoch == epochs - 1):
                train_logger.info(f"Epoch {epoch}, Loss: {epoch_loss:.6f}")
        return history

    def evaluate(self, dataset, loss, split="test"):
        loss = Loss.from_name(loss) if isinstance(loss, str) else loss
        if split == "test":
            cursor = dataset.iter_test()
        elif split == "train":
            cursor = dataset.iter_train()
        else:
            raise ConfigError(f"split must be 'train' or 'test', got {split!r}")
        if cursor.num_samples == 0:
            raise ConfigError(f"The {split} split has no samples")

        total = 0.0
        for samples, labels in cursor:
            total += float(loss.compute(self.predict(samples), labels).sum())
        mean_loss = total / cursor.num_samples
        val_logger.info(f"Mean loss over {cursor.num_samples} {split} samples: {mean_loss:.6f}")
        return mean_loss

    # Persistence ------------------------------------------------------------
    def state_dict(self):
        arrays = {}
        for index, layer in enumerate(self.layers):
            weight, bias = layer.get_parameters()
            weight_velocity, bias_velocity = layer.get_velocities()
            arrays[f"layer_{index}_weight"] = weight
            arrays[f"layer_{index}_bias"] = bias
            arrays[f"layer_{index}_weight_velocity"] = weight_velocity
            arrays[f"layer_{index}_bias_velocity"] = bias_velocity
        return arrays

    def save(self, path):
        meta = {
            "format": FORMAT,
            "version": FORMAT_VERSION,
            "config": self.config.to_dict(),
            "optimizer": {"t": self.optimizer.t},
        }
        with open(path, "wb") as f:
            xp.savez(f, __meta__=xp.array(json.dumps(meta)), **self.state_dict())
        logger.debug("Saved network with %d parameters to %s", self.num_parameters, path)

    @classmethod
    def load(cls, path):
        with xp.load(path, allow_pickle=False) as archive:
            if "__meta__" not in archive.files:
                raise ConfigError(f"{path} is not a saved network (no metadata)")
            meta = json.loads(str(archive["__meta__"]))
            if meta.get("format") != FORMAT:
                raise ConfigError(f"Unknown format {meta.get('format')!r}")
            if meta.get("version") != FORMAT_VERSION:
                raise ConfigError(f"Unsupported format version {meta.get('version')!r}")

            network = NetworkConfig.from_dict(meta["config"]).build()
            for index, layer in enumerate(network.layers):
                prefix = f"layer_{index}"
                try:
                    layer.set_parameters(archive[f"{prefix}_weight"], archive[f"{prefix}_bias"])
                except KeyError:
                    raise ConfigError(f"Parameters for {prefix} missing from {path}") from None
                velocities = [f"{prefix}_weight_velocity", f"{prefix}_bias_velocity"]
                present = [key in archive.files for key in velocities]
                if all(present):
                    layer.set_velocities(archive[velocities[0]], archive[velocities[1]])
                elif any(present):
                    raise ConfigError(f"Momentum state for {prefix} is incomplete in {path}")

        network.optimizer.t = meta.get("optimizer", {}).get("t", 0)
        return network
