"""Measurements, state systems and controller construction"""

from .measurement import Measurement
from .state_systems import (
    StateSystem,
    PIStateSystem,
    OutputSystem,
    OneEdgeOutputSystem,
    ComposedSystem,
    compose,
)
from .controllers import composed_controller, make_controllers, local_offsets

__all__ = [
    'Measurement',
    'StateSystem',
    'PIStateSystem',
    'OutputSystem',
    'OneEdgeOutputSystem',
    'ComposedSystem',
    'compose',
    'composed_controller',
    'make_controllers',
    'local_offsets',
]
