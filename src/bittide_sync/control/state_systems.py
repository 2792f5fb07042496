"""
Discrete-time State Systems

A state system maps an input to an output at each step and may update
internal state while doing so. Node controllers are built by chaining an
occupancy reducer (Measurement -> scalar error) into a PI controller
(scalar error -> frequency correction).
"""

from abc import ABC, abstractmethod
from functools import reduce
from typing import Sequence

import numpy as np

from ..exceptions import PreconditionError
from ..topology import Topology
from .measurement import Measurement


class StateSystem(ABC):
    """Stateful discrete-time transform"""

    @abstractmethod
    def next(self, x):
        """Advance one step on input x and return the output"""

    def reset(self):
        """Return to the state right after construction"""


class PIStateSystem(StateSystem):
    """
    Proportional-integral controller

    The integral accumulates every input with no clamping or anti-windup.
    """

    def __init__(self, kp: float, ki: float):
        self.kp = kp
        self.ki = ki
        self.integral = 0.0

    def next(self, x: float) -> float:
        self.integral += x
        return self.kp * x + self.ki * self.integral

    def reset(self):
        self.integral = 0.0

    def __repr__(self):
        return f"PIStateSystem(kp={self.kp}, ki={self.ki}, integral={self.integral})"


class OutputSystem(StateSystem):
    """
    Sum of occupancy errors over the node's up links

    Down links are masked out completely: they contribute neither their
    occupancy nor their offset.
    """

    def __init__(self, local_offsets: Sequence[float]):
        self.local_offsets = np.asarray(local_offsets, dtype=float)

    def next(self, measurement: Measurement) -> float:
        if measurement.in_degree != self.local_offsets.shape[0]:
            raise PreconditionError(
                f"Measurement has {measurement.in_degree} ports, "
                f"reducer expects {self.local_offsets.shape[0]}")
        up = measurement.incoming_link_status == 1
        return float(np.sum(measurement.occupancies[up] - self.local_offsets[up]))

    def __repr__(self):
        return f"OutputSystem(local_offsets={self.local_offsets.tolist()})"


class OneEdgeOutputSystem(StateSystem):
    """
    Occupancy error of a single incoming port

    Only meaningful as the reducer of the edge's destination node.
    """

    def __init__(self, portnum: int, offset: float):
        self.portnum = int(portnum)
        self.offset = float(offset)

    @classmethod
    def from_edge(cls, topology: Topology, offset: float, edge_id: int) -> 'OneEdgeOutputSystem':
        """Reducer for edge_id, to be used at the edge's destination node"""
        node = topology.edge(edge_id).dst
        return cls(topology.inport(node, edge_id), offset)

    @classmethod
    def from_config(cls, config, edge_id: int) -> 'OneEdgeOutputSystem':
        """Reducer for edge_id with the edge's offset taken from a run configuration"""
        return cls.from_edge(config.topology(), config.get_offset()[edge_id], edge_id)

    def next(self, measurement: Measurement) -> float:
        return float(measurement.occupancies[self.portnum] - self.offset)

    def __repr__(self):
        return f"OneEdgeOutputSystem(portnum={self.portnum}, offset={self.offset})"


class ComposedSystem(StateSystem):
    """outer(inner(x)); both children keep their own state"""

    def __init__(self, outer: StateSystem, inner: StateSystem):
        self.outer = outer
        self.inner = inner

    def next(self, x):
        return self.outer.next(self.inner.next(x))

    def reset(self):
        self.outer.reset()
        self.inner.reset()

    def __repr__(self):
        return f"ComposedSystem(outer={self.outer!r}, inner={self.inner!r})"


def compose(*systems: StateSystem) -> StateSystem:
    """compose(a, b, c) applies c first, then b, then a"""
    if not systems:
        raise PreconditionError("compose needs at least one system")
    return reduce(ComposedSystem, systems)
