"""Spectral analysis of bittide rate matrices"""

from .rate_matrix import (
    RATE_MATRIX_TOLERANCE,
    MAX_EIGENBASIS_CONDITION,
    SpectralDecomposition,
    is_metzler,
    is_rate_matrix,
    eigendecompose_metzler,
    spec_inv,
    rate_matrix_from_topology,
    consensus_projector,
    transition_matrix,
)

__all__ = [
    'RATE_MATRIX_TOLERANCE',
    'MAX_EIGENBASIS_CONDITION',
    'SpectralDecomposition',
    'is_metzler',
    'is_rate_matrix',
    'eigendecompose_metzler',
    'spec_inv',
    'rate_matrix_from_topology',
    'consensus_projector',
    'transition_matrix',
]
