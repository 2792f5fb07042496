"""
Clock Frequency Error Models

A node's instantaneous frequency deviation from nominal, as a function of
wall-clock time. Three explicit variants share one contract:

- ConstantError: fixed deviation
- PiecewiseLinearError: linear interpolation between breakpoints, holding
  the boundary value outside the breakpoint range
- PerNodeErrors: one model per node, evaluated together

Models are immutable once built.
"""

from dataclasses import dataclass
from numbers import Real
from typing import Mapping, Sequence, Tuple, Union

import numpy as np
from scipy.integrate import trapezoid

from ..exceptions import PreconditionError


@dataclass(frozen=True)
class ConstantError:
    """Frequency error that does not change over time"""
    value: float

    def evaluate(self, t) -> float:
        return self.value

    def definite_integral(self, a: float, b: float) -> float:
        return self.value * (b - a)

    def initial(self) -> float:
        return self.value


@dataclass(frozen=True, init=False)
class PiecewiseLinearError:
    """
    Piecewise-linear frequency error

    Linear between consecutive breakpoints. Outside [breakpoints[0],
    breakpoints[-1]] the nearest boundary value is held (clamped), so the
    model is continuous everywhere and bounded by its extreme values.
    """
    breakpoints: Tuple[float, ...]
    values: Tuple[float, ...]

    def __init__(self, breakpoints: Sequence[float], values: Sequence[float]):
        bp = np.asarray(breakpoints, dtype=float)
        vals = np.asarray(values, dtype=float)
        if bp.ndim != 1 or bp.size == 0:
            raise PreconditionError("Piecewise-linear error needs at least one breakpoint")
        if bp.shape != vals.shape:
            raise PreconditionError(
                f"Breakpoints ({bp.size}) and values ({vals.size}) differ in length")
        if np.any(np.diff(bp) <= 0):
            raise PreconditionError("Breakpoints must be strictly increasing")
        if not (np.all(np.isfinite(bp)) and np.all(np.isfinite(vals))):
            raise PreconditionError("Breakpoints and values must be finite")
        object.__setattr__(self, 'breakpoints', tuple(bp.tolist()))
        object.__setattr__(self, 'values', tuple(vals.tolist()))

    def evaluate(self, t):
        # np.interp holds the end values outside the range
        result = np.interp(t, self.breakpoints, self.values)
        return float(result) if np.ndim(result) == 0 else result

    def definite_integral(self, a: float, b: float) -> float:
        """
        Exact integral over [a, b]

        Trapezoid rule over the interval ends plus every breakpoint strictly
        inside is exact for a piecewise-linear integrand. Swapped limits give
        the negated integral.
        """
        if a == b:
            return 0.0
        if a > b:
            return -self.definite_integral(b, a)

        bp = np.asarray(self.breakpoints)
        inner = bp[(bp > a) & (bp < b)]
        grid = np.concatenate(([a], inner, [b]))
        return float(trapezoid(np.interp(grid, bp, self.values), grid))

    def initial(self) -> float:
        return self.evaluate(0.0)


@dataclass(frozen=True)
class PerNodeErrors:
    """One error model per node; evaluation returns one value per node"""
    models: Tuple[Union[ConstantError, PiecewiseLinearError], ...]

    def __post_init__(self):
        object.__setattr__(self, 'models', tuple(self.models))
        for model in self.models:
            if isinstance(model, PerNodeErrors):
                raise PreconditionError("Per-node error vectors cannot be nested")

    def __len__(self) -> int:
        return len(self.models)

    def __getitem__(self, node: int):
        return self.models[node]

    def __iter__(self):
        return iter(self.models)

    def evaluate(self, t) -> np.ndarray:
        return np.array([m.evaluate(t) for m in self.models])

    def definite_integral(self, a: float, b: float) -> np.ndarray:
        return np.array([m.definite_integral(a, b) for m in self.models])

    def initial(self) -> np.ndarray:
        return np.array([m.initial() for m in self.models])


ErrorModel = Union[ConstantError, PiecewiseLinearError, PerNodeErrors]


def _single_error(desc) -> Union[ConstantError, PiecewiseLinearError]:
    if isinstance(desc, (ConstantError, PiecewiseLinearError)):
        return desc
    if isinstance(desc, Real):
        return ConstantError(float(desc))
    if isinstance(desc, Mapping):
        if 'value' in desc:
            return ConstantError(float(desc['value']))
        try:
            return PiecewiseLinearError(desc['breakpoints'], desc['values'])
        except KeyError as e:
            raise PreconditionError(f"Error model mapping missing key {e}") from None
    raise PreconditionError(f"Cannot build a clock error model from {desc!r}")


def make_error(desc) -> ErrorModel:
    """
    Build an error model from a loose description

    Accepted forms:
        3e-6                                      -> ConstantError
        {'breakpoints': [...], 'values': [...]}   -> PiecewiseLinearError
        ([t0, t1, ...], [v0, v1, ...])            -> PiecewiseLinearError
        [desc_node0, desc_node1, ...]             -> PerNodeErrors

    A two-element tuple whose members are both sequences is read as
    (breakpoints, values); use the mapping form for per-node lists of
    piecewise models.
    """
    if isinstance(desc, (ConstantError, PiecewiseLinearError, PerNodeErrors)):
        return desc
    if isinstance(desc, tuple) and len(desc) == 2 and all(
            isinstance(s, (Sequence, np.ndarray)) for s in desc):
        return PiecewiseLinearError(desc[0], desc[1])
    if isinstance(desc, (list, tuple, np.ndarray)):
        return PerNodeErrors(tuple(_single_error(s) for s in desc))
    return _single_error(desc)


def error_at(model, t):
    """Evaluate any error model (or a bare number) at time t"""
    if isinstance(model, Real):
        return float(model)
    return model.evaluate(t)


def initial_error(model):
    """Error at t = 0"""
    if isinstance(model, Real):
        return float(model)
    return model.initial()
