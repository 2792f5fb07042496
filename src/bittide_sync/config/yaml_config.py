"""
YAML Configuration for bittide synchronization runs
Loads the per-run parameters the simulation driver hands to the core:
topology, link latencies and offsets, clock errors, controller gains
"""

from dataclasses import dataclass, field, asdict
from numbers import Real
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

import numpy as np
import yaml

from ..clocks.error_model import make_error, PerNodeErrors
from ..control.controllers import make_controllers
from ..exceptions import PreconditionError
from ..topology import Topology

logger = logging.getLogger(__name__)


def at_index(value, i: int):
    """A scalar applies to every index; a sequence is indexed"""
    if isinstance(value, Real):
        return value
    return value[i]


def make_frequencies(seed: int, num_nodes: int) -> np.ndarray:
    """
    Random frequency errors k*1e-9 with k uniform in 1..10^5

    Deviations from nominal, like every other form of clocks.errors; the
    effective rate is c + error with c around 1.
    """
    rng = np.random.default_rng(seed)
    return rng.integers(1, 10**5, size=num_nodes, endpoint=True) * 1e-9


@dataclass
class TopologyConfig:
    """Network topology: node count and directed edges"""
    n: int = 2
    edges: List[List[int]] = field(default_factory=lambda: [[0, 1], [1, 0]])

    @classmethod
    def from_dict(cls, d: dict) -> 'TopologyConfig':
        return cls(**{k: v for k, v in d.items() if k in cls.__annotations__})


@dataclass
class ClockConfig:
    """Clock errors and initial phases"""
    errors: Any = 0.0  # deviation from nominal: number, "random", or per-node list
    theta0: Any = 0.0  # scalar or per-node
    wmin: float = 0.5  # minimum effective frequency for time conversion
    seed: int = 1

    @classmethod
    def from_dict(cls, d: dict) -> 'ClockConfig':
        return cls(**{k: v for k, v in d.items() if k in cls.__annotations__})


@dataclass
class LinkConfig:
    """Per-edge latency and occupancy offset (scalar or one per edge)"""
    latency: Any = 1.0
    offset: Any = 0.0

    @classmethod
    def from_dict(cls, d: dict) -> 'LinkConfig':
        return cls(**{k: v for k, v in d.items() if k in cls.__annotations__})


@dataclass
class ControlConfig:
    """PI controller gains and polling"""
    kp: float = 2e-8
    ki: float = 1e-15
    poll_period: float = 1000.0  # local ticks between polls
    base_freq: float = 1.0

    @classmethod
    def from_dict(cls, d: dict) -> 'ControlConfig':
        return cls(**{k: v for k, v in d.items() if k in cls.__annotations__})


@dataclass
class SimulationConfig:
    """Driver-side settings"""
    tmax: float = 1e6
    check_frequency: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> 'SimulationConfig':
        return cls(**{k: v for k, v in d.items() if k in cls.__annotations__})


class BittideConfig:
    """Main configuration manager for a synchronization run"""

    SECTIONS = {
        'topology': TopologyConfig,
        'clocks': ClockConfig,
        'links': LinkConfig,
        'control': ControlConfig,
        'simulation': SimulationConfig,
    }

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration

        Args:
            config_path: Path to YAML config file
        """
        self.config_path = config_path
        self.raw_config = {}

        self.topology_config = TopologyConfig()
        self.clocks = ClockConfig()
        self.links = LinkConfig()
        self.control = ControlConfig()
        self.simulation = SimulationConfig()

        if config_path:
            self.load(config_path)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'BittideConfig':
        config = cls()
        config._apply(d)
        return config

    def _apply(self, raw: Dict[str, Any]):
        self.raw_config = raw or {}
        if 'topology' in self.raw_config:
            self.topology_config = TopologyConfig.from_dict(self.raw_config['topology'])
        if 'clocks' in self.raw_config:
            self.clocks = ClockConfig.from_dict(self.raw_config['clocks'])
        if 'links' in self.raw_config:
            self.links = LinkConfig.from_dict(self.raw_config['links'])
        if 'control' in self.raw_config:
            self.control = ControlConfig.from_dict(self.raw_config['control'])
        if 'simulation' in self.raw_config:
            self.simulation = SimulationConfig.from_dict(self.raw_config['simulation'])

    def load(self, config_path: Union[str, Path]):
        """
        Load configuration from YAML file

        Args:
            config_path: Path to YAML file
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r') as f:
            self._apply(yaml.safe_load(f))

        self.config_path = config_path
        logger.info(f"Loaded configuration from {config_path}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'topology': asdict(self.topology_config),
            'clocks': asdict(self.clocks),
            'links': asdict(self.links),
            'control': asdict(self.control),
            'simulation': asdict(self.simulation),
        }

    def save(self, output_path: Optional[Union[str, Path]] = None):
        """
        Save configuration to YAML file

        Args:
            output_path: Path to save to (uses original path if not specified)
        """
        if output_path is None and self.config_path is None:
            raise ValueError("No output path specified")

        output_path = Path(output_path or self.config_path)
        with open(output_path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
        logger.info(f"Configuration saved to {output_path}")

    def topology(self) -> Topology:
        return Topology.from_edges(self.topology_config.n,
                                   [tuple(e) for e in self.topology_config.edges])

    def get_frequencies(self):
        """Clock error description, expanding "random" to seeded deviations"""
        if self.clocks.errors == 'random':
            return make_frequencies(self.clocks.seed, self.topology_config.n)
        return self.clocks.errors

    def error_models(self) -> PerNodeErrors:
        """One error model per node"""
        n = self.topology_config.n
        errors = self.get_frequencies()
        if isinstance(errors, Real):
            errors = [errors] * n
        models = make_error(list(errors))
        if len(models) != n:
            raise PreconditionError(f"Expected {n} clock errors, got {len(models)}")
        return models

    def get_latency(self) -> List[float]:
        return [at_index(self.links.latency, e) for e in range(self.topology().m)]

    def get_offset(self) -> List[float]:
        return [at_index(self.links.offset, e) for e in range(self.topology().m)]

    def get_theta0(self) -> List[float]:
        return [at_index(self.clocks.theta0, i) for i in range(self.topology_config.n)]

    def controllers(self):
        """Fresh per-node controllers built from the control section"""
        c = self.control
        return make_controllers(self.topology(), c.kp, c.ki, c.poll_period, c.base_freq,
                                offsets=self.get_offset())


def create_example_config(output_path: str = "bittide_example.yaml") -> BittideConfig:
    """Write a small three-node ring configuration"""
    config = BittideConfig.from_dict({
        'topology': {'n': 3, 'edges': [[0, 1], [1, 0], [1, 2], [2, 1], [2, 0], [0, 2]]},
        'clocks': {
            'errors': [1e-6, -2e-6, {'breakpoints': [0.0, 1e6], 'values': [0.0, 3e-6]}],
            'theta0': 0.0,
            'wmin': 0.5,
        },
        'links': {'latency': 100.0, 'offset': 20.0},
        'control': {'kp': 2e-8, 'ki': 1e-15, 'poll_period': 1000.0, 'base_freq': 1.0},
        'simulation': {'tmax': 1e6, 'check_frequency': True},
    })
    config.save(output_path)
    return config
