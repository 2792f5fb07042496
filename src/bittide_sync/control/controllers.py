"""
Per-node controller construction

A controller is a reducer scoped to the node's incoming ports followed by a
PI controller. The integral gain is rescaled by poll_period / base_freq so
that the closed-loop integral action does not depend on how often the node
polls or on the reference tick rate.
"""

from numbers import Real
from typing import List, Optional, Sequence, Union
import logging

import numpy as np

from ..exceptions import PreconditionError
from ..topology import Topology
from .state_systems import StateSystem, PIStateSystem, OutputSystem, ComposedSystem

logger = logging.getLogger(__name__)


def local_offsets(topology: Topology, node: int,
                  offsets: Union[float, Sequence[float]] = 0.0) -> np.ndarray:
    """
    Occupancy offsets of the node's incoming edges, in in-port order

    Args:
        topology: Network topology
        node: Destination node
        offsets: Scalar applied to every edge, or one offset per edge id
    """
    incoming = topology.incoming_edges(node)
    if isinstance(offsets, Real):
        return np.full(len(incoming), float(offsets))
    offsets = np.asarray(offsets, dtype=float)
    if offsets.shape != (topology.m,):
        raise PreconditionError(
            f"Expected {topology.m} per-edge offsets, got shape {offsets.shape}")
    return offsets[incoming]


def composed_controller(node: int, topology: Topology, kp: float, ki: float,
                        poll_period: float, base_freq: float,
                        output_system: Optional[StateSystem] = None,
                        offsets: Union[float, Sequence[float]] = 0.0) -> ComposedSystem:
    """
    Build the controller for one node

    Args:
        node: Node index
        topology: Network topology
        kp: Proportional gain
        ki: Integral gain before normalization
        poll_period: Local ticks between controller invocations
        base_freq: Reference tick rate
        output_system: Reducer to use; defaults to an OutputSystem over all
            incoming ports with the given offsets
        offsets: Per-edge (or scalar) occupancy offsets for the default reducer

    Returns:
        ComposedSystem(PIStateSystem(kp, ki * poll_period / base_freq), reducer)
    """
    if poll_period <= 0:
        raise PreconditionError(f"poll_period must be positive, got {poll_period}")
    if base_freq <= 0:
        raise PreconditionError(f"base_freq must be positive, got {base_freq}")

    if output_system is None:
        output_system = OutputSystem(local_offsets(topology, node, offsets))

    pi = PIStateSystem(kp, ki * poll_period / base_freq)
    logger.debug(f"Controller for node {node}: kp={kp}, ki_eff={pi.ki}, reducer={output_system!r}")
    return ComposedSystem(pi, output_system)


def make_controllers(topology: Topology, kp: float, ki: float,
                     poll_period: float, base_freq: float,
                     offsets: Union[float, Sequence[float]] = 0.0) -> List[ComposedSystem]:
    """One independent controller per node, in node order"""
    controllers = [composed_controller(i, topology, kp, ki, poll_period, base_freq,
                                       offsets=offsets)
                   for i in range(topology.n)]
    logger.info(f"Built {len(controllers)} controllers (kp={kp}, ki={ki}, "
                f"poll_period={poll_period}, base_freq={base_freq})")
    return controllers
