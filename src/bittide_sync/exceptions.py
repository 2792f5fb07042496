"""
Error taxonomy for the synchronization core

All failures are raised at the call that triggered them. Nothing here is
retried: a numerically invalid computation stays invalid until the input
changes.
"""

import numpy as np


class BittideError(Exception):
    """Base class for errors raised by bittide_sync"""


class PreconditionError(BittideError, ValueError):
    """Input violates a documented precondition (non-Metzler matrix,
    frequency below wmin, mismatched port counts, ...)"""


class ConvergenceError(BittideError, RuntimeError):
    """Iterative solver exhausted its iteration budget"""


class IllConditionedError(BittideError, np.linalg.LinAlgError):
    """Matrix is singular or too ill-conditioned for the requested operation"""
