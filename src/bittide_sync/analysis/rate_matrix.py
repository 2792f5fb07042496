"""
Rate Matrix Spectral Analysis

The linearized bittide dynamics are approximately d(theta)/dt = k Q theta + v
where Q is a rate matrix (continuous-time Markov generator): non-negative
off-diagonal entries and zero row sums. exp(tQ) is then row-stochastic and,
for a network with a single zero mode, tends to 1 z^T as t grows. z is the
consensus vector: the weighting every node's state converges to.
"""

from typing import NamedTuple, Sequence, Union
from numbers import Real
import logging

import numpy as np
import scipy.linalg as la

from ..exceptions import PreconditionError, IllConditionedError
from ..topology import Topology

logger = logging.getLogger(__name__)

# Row sums must be within this fraction of the largest entry magnitude
RATE_MATRIX_TOLERANCE = 1e-10

# Eigenvector bases worse than this are treated as non-diagonalizable
MAX_EIGENBASIS_CONDITION = 1e12


class SpectralDecomposition(NamedTuple):
    """
    A = T diag(L) T^-1 with eigenvalues sorted by ascending magnitude

    T: eigenvectors as columns, scaled so T[0, 0] == 1
    L: diagonal eigenvalue matrix
    z: consensus vector, real part of the first row of T^-1
    """
    T: np.ndarray
    L: np.ndarray
    z: np.ndarray

    @property
    def eigenvalues(self) -> np.ndarray:
        return np.diag(self.L)


def _check_square(A: np.ndarray) -> np.ndarray:
    A = np.asarray(A, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise PreconditionError(f"Expected a square matrix, got shape {A.shape}")
    return A


def is_metzler(A) -> bool:
    """True if every off-diagonal entry is non-negative"""
    A = _check_square(A)
    off_diagonal = A[~np.eye(A.shape[0], dtype=bool)]
    return bool(np.all(off_diagonal >= 0))


def is_rate_matrix(Q, tol: float = RATE_MATRIX_TOLERANCE) -> bool:
    """
    True if Q is a rate matrix

    Off-diagonal entries must be non-negative and the largest absolute row
    sum must not exceed tol times the largest absolute entry.
    """
    Q = _check_square(Q)
    if not is_metzler(Q):
        return False
    max_entry = np.max(np.abs(Q)) if Q.size else 0.0
    max_row_sum = np.max(np.abs(Q.sum(axis=1))) if Q.size else 0.0
    return bool(max_row_sum <= tol * max_entry)


def _eigendecompose(A: np.ndarray, max_cond: float) -> SpectralDecomposition:
    eigenvalues, vectors = la.eig(A)
    order = np.argsort(np.abs(eigenvalues), kind='stable')
    eigenvalues = eigenvalues[order]
    T = vectors[:, order]

    cond = np.linalg.cond(T)
    if not np.isfinite(cond) or cond > max_cond:
        raise IllConditionedError(
            f"Eigenvector basis is ill-conditioned (cond={cond:.3e}); "
            f"matrix is not numerically diagonalizable")

    pivot = T[0, 0]
    if abs(pivot) <= np.finfo(float).eps * np.max(np.abs(T[:, 0])):
        raise IllConditionedError(
            "First component of the slowest eigenvector is zero; cannot normalize")
    T = T / pivot

    try:
        T_inv = la.inv(T)
    except la.LinAlgError as e:
        raise IllConditionedError(f"Eigenvector basis is singular: {e}") from e

    z = np.real(T_inv[0, :])
    return SpectralDecomposition(T, np.diag(eigenvalues), z)


def eigendecompose_metzler(A, max_cond: float = MAX_EIGENBASIS_CONDITION) -> SpectralDecomposition:
    """
    Eigendecomposition of a Metzler matrix, slowest mode first

    Args:
        A: Metzler matrix (off-diagonal entries >= 0)
        max_cond: Largest acceptable condition number of the eigenvector basis

    Returns:
        SpectralDecomposition(T, L, z)

    Raises:
        PreconditionError: A is not Metzler
        IllConditionedError: eigenvector basis cannot be inverted reliably
    """
    A = _check_square(A)
    if not is_metzler(A):
        raise PreconditionError("Matrix is not Metzler")
    decomposition = _eigendecompose(A, max_cond)
    logger.debug(f"Eigendecomposition of {A.shape[0]}x{A.shape[0]} Metzler matrix, "
                 f"slowest eigenvalue {decomposition.eigenvalues[0]:.3e}")
    return decomposition


def spec_inv(L, max_cond: float = MAX_EIGENBASIS_CONDITION) -> np.ndarray:
    """
    Group (Drazin) inverse of a generator with a single zero eigenvalue

    Inverts every eigenvalue except the slowest one, which is set to 0, and
    recombines as real(T diag(1/lambda) T^-1). The product spec_inv(L) @ L is
    the projector onto the non-null eigenspace.

    Raises:
        IllConditionedError: basis not diagonalizable, or more than one
            eigenvalue is numerically zero
    """
    L = _check_square(L)
    T, D, _ = _eigendecompose(L, max_cond)
    eigenvalues = np.diag(D)

    scale = np.max(np.abs(eigenvalues)) if eigenvalues.size else 0.0
    zero_tol = RATE_MATRIX_TOLERANCE * scale
    if abs(eigenvalues[0]) > zero_tol:
        logger.warning(f"spec_inv: slowest eigenvalue {eigenvalues[0]:.3e} is not zero; "
                       f"its mode is dropped anyway")
    if eigenvalues.size > 1 and abs(eigenvalues[1]) <= zero_tol:
        raise IllConditionedError(
            "More than one zero eigenvalue; null space is not one-dimensional")

    inverted = np.zeros_like(eigenvalues)
    inverted[1:] = 1.0 / eigenvalues[1:]
    return np.real(T @ np.diag(inverted) @ la.inv(T))


def rate_matrix_from_topology(topology: Topology,
                              gains: Union[float, Sequence[float]] = 1.0) -> np.ndarray:
    """
    Rate matrix of the linearized network

    Q[i, j] accumulates the gain of every edge j -> i (node i measures the
    buffer fed by j) and the diagonal makes each row sum to zero.
    """
    if isinstance(gains, Real):
        gains = np.full(topology.m, float(gains))
    gains = np.asarray(gains, dtype=float)
    if gains.shape != (topology.m,):
        raise PreconditionError(f"Expected {topology.m} edge gains, got shape {gains.shape}")
    if np.any(gains < 0):
        raise PreconditionError("Edge gains must be non-negative")

    Q = np.zeros((topology.n, topology.n))
    for edge_id, edge in enumerate(topology.edges):
        if edge.src != edge.dst:
            Q[edge.dst, edge.src] += gains[edge_id]
    Q -= np.diag(Q.sum(axis=1))
    return Q


def consensus_projector(decomposition: SpectralDecomposition) -> np.ndarray:
    """Limit of exp(tA) as t grows: 1 z^T"""
    z = decomposition.z
    return np.outer(np.ones(z.shape[0]), z)


def transition_matrix(A, t: float) -> np.ndarray:
    """exp(tA)"""
    A = _check_square(A)
    return la.expm(t * A)
