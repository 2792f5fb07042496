"""
Bittide Clock Synchronization Tools

Clock time mapping, composable frequency controllers and rate-matrix
spectral analysis for networks of independently clocked nodes that
synchronize through elastic buffer occupancy.
"""

__version__ = "1.0.0"

from .exceptions import (
    BittideError,
    PreconditionError,
    ConvergenceError,
    IllConditionedError,
)
from .topology import Topology, Edge, inport_id_from_edge_id
from .clocks import (
    ConstantError,
    PiecewiseLinearError,
    PerNodeErrors,
    make_error,
    error_at,
    initial_error,
    local_to_realtime,
    realtime_to_local,
    FrequencyChecker,
    TimeLimitStopper,
    check_freq_is_positive,
    sim_is_done,
)
from .control import (
    Measurement,
    StateSystem,
    PIStateSystem,
    OutputSystem,
    OneEdgeOutputSystem,
    ComposedSystem,
    compose,
    composed_controller,
    make_controllers,
    local_offsets,
)
from .analysis import (
    RATE_MATRIX_TOLERANCE,
    SpectralDecomposition,
    is_metzler,
    is_rate_matrix,
    eigendecompose_metzler,
    spec_inv,
    rate_matrix_from_topology,
    consensus_projector,
    transition_matrix,
)
from .config import BittideConfig

__all__ = [
    'BittideError', 'PreconditionError', 'ConvergenceError', 'IllConditionedError',
    'Topology', 'Edge', 'inport_id_from_edge_id',
    'ConstantError', 'PiecewiseLinearError', 'PerNodeErrors', 'make_error',
    'error_at', 'initial_error', 'local_to_realtime', 'realtime_to_local',
    'FrequencyChecker', 'TimeLimitStopper', 'check_freq_is_positive', 'sim_is_done',
    'Measurement', 'StateSystem', 'PIStateSystem', 'OutputSystem',
    'OneEdgeOutputSystem', 'ComposedSystem', 'compose', 'composed_controller',
    'make_controllers', 'local_offsets',
    'RATE_MATRIX_TOLERANCE', 'SpectralDecomposition', 'is_metzler', 'is_rate_matrix',
    'eigendecompose_metzler', 'spec_inv', 'rate_matrix_from_topology',
    'consensus_projector', 'transition_matrix',
    'BittideConfig',
]
