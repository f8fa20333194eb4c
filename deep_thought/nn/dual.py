"""
Dual numbers for forward-mode automatic differentiation.

A ``Dual`` is an array of dual numbers: ``value`` has shape ``S`` and ``grad``
has shape ``S + (N,)``, one derivative slot per seeded independent variable.
Constants carry ``grad = None``. Every operation returns a new ``Dual`` whose
derivative follows from the sum, product, quotient and chain rules, so a
single evaluation yields both the result and its derivatives.
"""
import math
import numbers

from ..errors import DomainError, ShapeError, TapeError
from ..utils.backend import xp


class Tape:
    """Fixed-capacity layout of derivative slots.

    ``variable`` hands out consecutive slots and remembers them by name so the
    derivative of a result with respect to a seeded array can be read back.
    """

    def __init__(self, size, name=None):
        if size < 0:
            raise ShapeError(f"Tape size must be non-negative, got {size}")
        self.size = int(size)
        self.name = name
        self.offset = 0
        self.slots = {}

    def __repr__(self):
        return f"Tape(name={self.name!r}, used={self.offset}/{self.size})"

    @property
    def remaining(self):
        return self.size - self.offset

    def variable(self, value, name=None):
        value = xp.array(value, dtype=xp.float64)
        n = value.size
        if n > self.remaining:
            raise ShapeError(f"Tape {self.name!r} has {self.remaining} free slots, cannot seed {n}")
        if name is not None and name in self.slots:
            raise TapeError(f"Variable {name!r} already seeded on tape {self.name!r}")

        grad = xp.zeros(value.shape + (self.size,))
        flat = grad.reshape(n, self.size)
        flat[xp.arange(n), self.offset + xp.arange(n)] = 1.0

        if name is not None:
            self.slots[name] = (slice(self.offset, self.offset + n), value.shape)
        self.offset += n
        return Dual(value, grad, tape=self)

    def gradient(self, result, name):
        """Derivative of ``result`` with respect to the variable seeded as ``name``.

        The returned array has shape ``result.shape + variable.shape``.
        """
        if result.tape is not None and result.tape is not self:
            raise TapeError(f"Result was computed on tape {result.tape.name!r}, not {self.name!r}")
        slots, shape = self.slots[name]
        if result.grad is None:
            return xp.zeros(result.shape + shape)
        return result.grad[..., slots].reshape(result.shape + shape)


def _scale(grad, factor):
    if grad is None:
        return None
    factor = xp.asarray(factor)
    return grad * factor[..., None]


def _add(a, b):
    if a is None:
        return b
    if b is None:
        return a
    return a + b


def _normalize_axes(axis, ndim):
    if axis is None:
        return tuple(range(ndim))
    axes = axis if isinstance(axis, tuple) else (axis,)
    out = []
    for ax in axes:
        if not -ndim <= ax < ndim:
            raise ShapeError(f"Axis {ax} is out of range for {ndim}-d dual")
        out.append(ax if ax >= 0 else ndim + ax)
    return tuple(out)


class Dual:
    # numpy defers to our reflected operators instead of building object arrays
    __array_ufunc__ = None

    def __init__(self, value, derivative=None, tape=None):
        value = xp.asarray(value, dtype=xp.float64)
        grad = None
        if derivative is not None:
            derivative = xp.asarray(derivative, dtype=xp.float64)
            if derivative.shape == value.shape:
                # univariate: one slot
                grad = derivative[..., None]
            elif derivative.ndim >= 1 and derivative.shape[:-1] == value.shape:
                grad = derivative
            else:
                raise ShapeError(
                    f"Derivative shape {derivative.shape} does not fit value shape {value.shape}"
                )
        if tape is not None and grad is not None and grad.shape[-1] != tape.size:
            raise ShapeError(f"Derivative has {grad.shape[-1]} slots but tape holds {tape.size}")

        self.value = value
        self.grad = grad
        self.tape = tape

    @classmethod
    def constant(cls, value):
        return cls(value)

    @classmethod
    def _make(cls, value, grad, tape):
        out = cls.__new__(cls)
        value = xp.asarray(value, dtype=xp.float64)
        if grad is not None and grad.shape[:-1] != value.shape:
            grad = xp.broadcast_to(grad, value.shape + grad.shape[-1:])
        out.value = value
        out.grad = grad
        out.tape = tape if grad is not None else None
        return out

    @staticmethod
    def lift(other):
        if isinstance(other, Dual):
            return other
        return Dual(other)

    # Properties -------------------------------------------------------------
    @property
    def shape(self):
        return self.value.shape

    @property
    def ndim(self):
        return self.value.ndim

    @property
    def size(self):
        return self.value.size

    @property
    def width(self):
        return 0 if self.grad is None else self.grad.shape[-1]

    @property
    def is_constant(self):
        return self.grad is None

    @property
    def derivative(self):
        """Derivative component; the slot axis is dropped for univariate duals."""
        if self.grad is None:
            return xp.zeros(self.shape)
        if self.width == 1:
            return self.grad[..., 0]
        return self.grad

    @property
    def T(self):
        if self.ndim < 2:
            return self
        if self.ndim != 2:
            raise ShapeError("T is only defined for 1-d and 2-d duals")
        grad = None if self.grad is None else self.grad.transpose(1, 0, 2)
        return Dual._make(self.value.T, grad, self.tape)

    def __len__(self):
        return len(self.value)

    def __float__(self):
        return float(self.value)

    def item(self):
        return self.value.item()

    def __repr__(self):
        return f"Dual(value={self.value}, derivative={self.derivative})"

    def __str__(self):
        return f"Dual(shape={self.shape}, slots={self.width})"

    def detach(self):
        return Dual(self.value.copy())

    def _join(self, other):
        if self.tape is not None and other.tape is not None and self.tape is not other.tape:
            raise TapeError(
                f"Cannot combine duals seeded on different tapes ({self.tape.name!r}, {other.tape.name!r})"
            )
        if self.grad is not None and other.grad is not None and self.width != other.width:
            raise ShapeError(f"Derivative slot counts differ: {self.width} vs {other.width}")
        return self.tape if self.tape is not None else other.tape

    # Arithmetic -------------------------------------------------------------
    def __neg__(self):
        grad = None if self.grad is None else -self.grad
        return Dual._make(-self.value, grad, self.tape)

    def __pos__(self):
        return self

    def __add__(self, other):
        other = Dual.lift(other)
        tape = self._join(other)
        return Dual._make(self.value + other.value, _add(self.grad, other.grad), tape)

    def __radd__(self, other):
        return Dual.lift(other) + self

    def __sub__(self, other):
        other = Dual.lift(other)
        tape = self._join(other)
        other_grad = None if other.grad is None else -other.grad
        return Dual._make(self.value - other.value, _add(self.grad, other_grad), tape)

    def __rsub__(self, other):
        return Dual.lift(other) - self

    def __mul__(self, other):
        other = Dual.lift(other)
        tape = self._join(other)
        grad = _add(_scale(self.grad, other.value), _scale(other.grad, self.value))
        return Dual._make(self.value * other.value, grad, tape)

    def __rmul__(self, other):
        return Dual.lift(other) * self

    def __truediv__(self, other):
        other = Dual.lift(other)
        tape = self._join(other)
        if xp.any(other.value == 0):
            raise DomainError("Division by a dual number whose value is zero")
        inv = 1.0 / other.value
        grad = _add(_scale(self.grad, inv), _scale(other.grad, -self.value * inv * inv))
        return Dual._make(self.value * inv, grad, tape)

    def __rtruediv__(self, other):
        return Dual.lift(other) / self

    def __pow__(self, exponent):
        if isinstance(exponent, Dual):
            return (exponent * self.log()).exp()
        if not isinstance(exponent, numbers.Real):
            raise NotImplementedError("Power must be a real scalar or a Dual")

        if exponent == 0:
            return Dual._make(xp.ones_like(self.value), _scale(self.grad, 0.0), self.tape)
        if not float(exponent).is_integer() and xp.any(self.value < 0):
            raise DomainError(f"Negative base raised to non-integer power {exponent}")
        if xp.any(self.value == 0):
            if exponent < 0:
                raise DomainError(f"Zero raised to negative power {exponent}")
            if exponent < 1 and self.grad is not None:
                raise DomainError(f"Power {exponent} is not differentiable at zero")
        grad = None
        if self.grad is not None:
            grad = _scale(self.grad, exponent * xp.power(self.value, exponent - 1))
        return Dual._make(xp.power(self.value, exponent), grad, self.tape)

    def __rpow__(self, base):
        return Dual.lift(base) ** self

    def pow(self, exponent):
        return self ** exponent

    def __matmul__(self, other):
        other = Dual.lift(other)
        tape = self._join(other)
        if self.ndim not in (1, 2) or other.ndim not in (1, 2):
            raise ShapeError(f"Matmul supports 1-d and 2-d duals, got {self.shape} @ {other.shape}")
        if self.shape[-1] != other.shape[0]:
            raise ShapeError(f"Matmul shapes do not align: {self.shape} @ {other.shape}")

        value = self.value @ other.value
        grad = None
        if self.grad is not None:
            # slots to the front so each slot is an ordinary matmul
            grad = xp.moveaxis(xp.moveaxis(self.grad, -1, 0) @ other.value, 0, -1)
        if other.grad is not None:
            if other.ndim == 1:
                term = self.value @ other.grad
            else:
                term = xp.moveaxis(self.value @ xp.moveaxis(other.grad, -1, 0), 0, -1)
            grad = _add(grad, term)
        return Dual._make(value, grad, tape)

    def __rmatmul__(self, other):
        return Dual.lift(other) @ self

    def __iadd__(self, other):
        raise NotImplementedError("Duals are immutable")

    def __isub__(self, other):
        raise NotImplementedError("Duals are immutable")

    def __imul__(self, other):
        raise NotImplementedError("Duals are immutable")

    def __itruediv__(self, other):
        raise NotImplementedError("Duals are immutable")

    # Comparisons act on the value only
    def __gt__(self, other):
        return self.value > Dual.lift(other).value

    def __ge__(self, other):
        return self.value >= Dual.lift(other).value

    def __lt__(self, other):
        return self.value < Dual.lift(other).value

    def __le__(self, other):
        return self.value <= Dual.lift(other).value

    # Shaping ----------------------------------------------------------------
    def reshape(self, *shape):
        if len(shape) == 1 and isinstance(shape[0], tuple):
            shape = shape[0]
        value = self.value.reshape(shape)
        grad = None if self.grad is None else self.grad.reshape(value.shape + (self.width,))
        return Dual._make(value, grad, self.tape)

    def __getitem__(self, key):
        value = self.value[key]
        grad = None
        if self.grad is not None:
            index = key if isinstance(key, tuple) else (key,)
            grad = self.grad[index + (slice(None),)]
        return Dual._make(value, grad, self.tape)

    # Reductions -------------------------------------------------------------
    def sum(self, axis=None, keepdims=False):
        axes = _normalize_axes(axis, self.ndim)
        value = self.value.sum(axis=axes, keepdims=keepdims)
        grad = None if self.grad is None else self.grad.sum(axis=axes, keepdims=keepdims)
        return Dual._make(value, grad, self.tape)

    def mean(self, axis=None, keepdims=False):
        axes = _normalize_axes(axis, self.ndim)
        count = math.prod(self.shape[ax] for ax in axes)
        if count == 0:
            raise DomainError("Mean of an empty dual")
        return self.sum(axis=axes, keepdims=keepdims) * (1.0 / count)

    # Elementary functions ---------------------------------------------------
    def _chain(self, value, local_derivative):
        return Dual._make(value, _scale(self.grad, local_derivative), self.tape)

    def exp(self):
        out = xp.exp(self.value)
        return self._chain(out, out)

    def log(self):
        if xp.any(self.value <= 0):
            raise DomainError("Logarithm of a non-positive dual number")
        return self._chain(xp.log(self.value), 1.0 / self.value)

    def sqrt(self):
        if xp.any(self.value < 0):
            raise DomainError("Square root of a negative dual number")
        if self.grad is not None and xp.any(self.value == 0):
            raise DomainError("Square root is not differentiable at zero")
        out = xp.sqrt(self.value)
        with xp.errstate(divide="ignore"):
            local = 0.5 / out
        return self._chain(out, local)

    def tanh(self):
        out = xp.tanh(self.value)
        return self._chain(out, 1.0 - out * out)

    def sigmoid(self):
        # 1 / (1 + exp(-x)) without overflow for large negative x
        out = xp.exp(-xp.logaddexp(0.0, -self.value))
        return self._chain(out, out * (1.0 - out))

    def abs(self):
        return self._chain(xp.abs(self.value), xp.sign(self.value))

    def __abs__(self):
        return self.abs()

    def clip(self, low, high):
        inside = (self.value >= low) & (self.value <= high)
        return self._chain(xp.clip(self.value, low, high), inside.astype(xp.float64))

    @staticmethod
    def where(condition, a, b):
        a, b = Dual.lift(a), Dual.lift(b)
        tape = a._join(b)
        condition = xp.asarray(condition, dtype=bool)
        value = xp.where(condition, a.value, b.value)
        grad = None
        if a.grad is not None or b.grad is not None:
            grad_a = 0.0 if a.grad is None else a.grad
            grad_b = 0.0 if b.grad is None else b.grad
            grad = xp.where(condition[..., None], grad_a, grad_b)
        return Dual._make(value, grad, tape)

    @staticmethod
    def maximum(a, b):
        a, b = Dual.lift(a), Dual.lift(b)
        return Dual.where(a > b, a, b)
