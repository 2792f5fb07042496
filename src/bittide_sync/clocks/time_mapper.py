"""
Local Time <-> Wall-Clock Time Mapping

A node with frequency correction c and frequency error e(t) advances its
local clock at rate c + e(t) ticks per unit of wall-clock time. Converting a
local duration p starting at wall-clock time s means solving

    int_s^{s+ds} (c + e(t)) dt = p

for ds. Constant errors have a closed form; piecewise-linear errors are
solved by bisection on the bracket [s, s + p/wmin], which must contain the
root when c + e(t) >= wmin > 0 everywhere on it.
"""

from numbers import Real
import logging

import numpy as np
from scipy.optimize import bisect

from ..exceptions import PreconditionError, ConvergenceError
from .error_model import ConstantError, PiecewiseLinearError, PerNodeErrors

logger = logging.getLogger(__name__)

BISECTION_XTOL = 1e-12
BISECTION_RTOL = 4 * np.finfo(float).eps
BISECTION_MAXITER = 200


def _as_single_model(model):
    if isinstance(model, Real):
        return ConstantError(float(model))
    if isinstance(model, PerNodeErrors):
        raise PreconditionError(
            "Time mapping is per node; index the per-node error vector first")
    if not isinstance(model, (ConstantError, PiecewiseLinearError)):
        raise PreconditionError(f"Unsupported clock error model {type(model).__name__}")
    return model


def _min_frequency(model: PiecewiseLinearError, c: float, lo: float, hi: float) -> float:
    """Smallest c + e(t) on [lo, hi]; attained at an end or a breakpoint"""
    bp = np.asarray(model.breakpoints)
    grid = np.concatenate(([lo, hi], bp[(bp > lo) & (bp < hi)]))
    return c + float(np.min(np.interp(grid, bp, model.values)))


def local_to_realtime(model, p: float, c: float, s: float, wmin: float,
                      xtol: float = BISECTION_XTOL,
                      maxiter: int = BISECTION_MAXITER) -> float:
    """
    Wall-clock duration ds needed for p local ticks starting at time s

    Args:
        model: ConstantError, PiecewiseLinearError or a bare number
        p: Local duration in ticks (>= 0)
        c: Constant frequency correction
        s: Starting wall-clock time
        wmin: Lower bound on c + e(t), must be > 0
        xtol: Absolute bisection tolerance on the end time; a relative
            tolerance of 4 eps is applied on top for large start times
        maxiter: Bisection iteration budget

    Returns:
        Wall-clock duration ds

    Raises:
        PreconditionError: wmin <= 0, p < 0, or c + e(t) < wmin on the bracket
        ConvergenceError: bisection did not converge within maxiter
    """
    model = _as_single_model(model)
    if wmin <= 0:
        raise PreconditionError(f"wmin must be positive, got {wmin}")
    if p < 0:
        raise PreconditionError(f"Local duration must be non-negative, got {p}")
    if p == 0:
        return 0.0

    if isinstance(model, ConstantError):
        omega = c + model.value
        if omega < wmin:
            raise PreconditionError(
                f"Effective frequency {omega} is below wmin={wmin}")
        return p / omega

    hi = s + p / wmin
    omega_min = _min_frequency(model, c, s, hi)
    if omega_min < wmin:
        raise PreconditionError(
            f"Effective frequency drops to {omega_min} on [{s}, {hi}], below wmin={wmin}")

    def residual(s2):
        return c * (s2 - s) + model.definite_integral(s, s2) - p

    # residual(hi) >= 0 up to rounding once c + e >= wmin holds
    if residual(hi) <= 0:
        return hi - s

    root, result = bisect(residual, s, hi, xtol=xtol, rtol=BISECTION_RTOL,
                          maxiter=maxiter, full_output=True, disp=False)
    if not result.converged:
        raise ConvergenceError(
            f"Bisection did not converge in {maxiter} iterations "
            f"(bracket [{s}, {hi}], last estimate {root})")

    logger.debug(f"local_to_realtime: p={p} from s={s} -> ds={root - s} "
                 f"({result.iterations} iterations)")
    return root - s


def realtime_to_local(model, c: float, ds: float) -> float:
    """
    Local ticks elapsed during a wall-clock duration ds

    Only defined for constant errors. A piecewise-linear inverse would need
    the start time and is intentionally not provided.
    """
    if isinstance(model, PiecewiseLinearError):
        raise NotImplementedError(
            "realtime_to_local is only defined for constant clock errors")
    model = _as_single_model(model)
    return ds * (c + model.value)
