"""Configuration management for bittide synchronization runs"""

from .yaml_config import (
    BittideConfig,
    TopologyConfig,
    ClockConfig,
    LinkConfig,
    ControlConfig,
    SimulationConfig,
    at_index,
    make_frequencies,
    create_example_config
)

__all__ = [
    'BittideConfig',
    'TopologyConfig',
    'ClockConfig',
    'LinkConfig',
    'ControlConfig',
    'SimulationConfig',
    'at_index',
    'make_frequencies',
    'create_example_config'
]
