"""
Optional per-step checks injected by the simulation driver

A checker inspects the effective frequency of a node and reports (but never
raises) when it is non-positive. A stopper decides whether a node's
simulation is done. Passing None for either means "no-op".
"""

from typing import Callable, Optional
import logging

from .error_model import error_at

logger = logging.getLogger(__name__)


class FrequencyChecker:
    """Warn when c + e_i(s) <= 0 at a node"""

    def __init__(self, log_level: int = logging.WARNING):
        self.log_level = log_level
        self.violations = 0

    def __call__(self, correction: float, errors, node: int, s: float) -> bool:
        omega = correction + error_at(errors[node], s)
        if omega <= 0:
            self.violations += 1
            logger.log(self.log_level,
                       f"Frequency at node {node} has become non-positive: "
                       f"omega = {omega} at time s = {s}")
            return False
        return True


def check_freq_is_positive(checker: Optional[Callable], correction: float,
                           errors, node: int, s: float) -> None:
    if checker is None:
        return
    checker(correction, errors, node, s)


class TimeLimitStopper:
    """Stop once wall-clock time reaches tmax"""

    def __init__(self, tmax: float):
        self.tmax = tmax

    def __call__(self, errors, node: int, p: float, c: float, s: float) -> bool:
        return s >= self.tmax


def sim_is_done(stopper: Optional[Callable], errors, node: int,
                p: float, c: float, s: float) -> bool:
    if stopper is None:
        return False
    return bool(stopper(errors, node, p, c, s))
