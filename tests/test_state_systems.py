"""
Unit tests for measurements and state systems
"""

import numpy as np
import pytest

from bittide_sync.control import (
    Measurement,
    PIStateSystem,
    OutputSystem,
    OneEdgeOutputSystem,
    ComposedSystem,
    compose,
)
from bittide_sync.config import BittideConfig
from bittide_sync.exceptions import PreconditionError
from bittide_sync.topology import Topology


class TestMeasurement:
    """Test the per-node measurement buffer"""

    def test_for_node(self):
        """Preallocated zeros with every link up"""
        m = Measurement.for_node(3)
        assert m.in_degree == 3
        np.testing.assert_array_equal(m.occupancies, np.zeros(3))
        np.testing.assert_array_equal(m.incoming_link_status, np.ones(3))

    def test_update_in_place(self):
        """The buffer is refilled, not reallocated"""
        m = Measurement.for_node(2)
        buffer = m.occupancies
        m.update([4.0, 5.0], theta_at_iofc=1.5, physical_time_at_iom=10.0)
        assert m.occupancies is buffer
        np.testing.assert_array_equal(buffer, [4.0, 5.0])
        assert m.theta_at_iofc == 1.5
        assert m.physical_time_at_iom == 10.0

    def test_length_mismatch(self):
        with pytest.raises(PreconditionError):
            Measurement(occupancies=[1.0, 2.0], incoming_link_status=[1])
        with pytest.raises(PreconditionError):
            Measurement.for_node(2).update([1.0], 0.0, 0.0)

    def test_link_status_values(self):
        m = Measurement.for_node(2)
        m.set_link_status(1, 0)
        np.testing.assert_array_equal(m.incoming_link_status, [1, 0])
        with pytest.raises(PreconditionError):
            m.set_link_status(0, 2)


class TestPIStateSystem:
    """Test the PI controller"""

    def test_pure_integrator(self):
        """kp=0, ki=1 yields the running sum"""
        pi = PIStateSystem(kp=0, ki=1)
        assert pi.next(3) == 3
        assert pi.next(4) == 7

    def test_proportional_and_integral(self):
        pi = PIStateSystem(kp=2.0, ki=0.5)
        assert pi.next(1.0) == pytest.approx(2.5)
        assert pi.next(-1.0) == pytest.approx(-2.0)
        assert pi.integral == 0.0

    def test_no_anti_windup(self):
        """The integral grows without bound"""
        pi = PIStateSystem(kp=0.0, ki=1.0)
        for _ in range(1000):
            pi.next(1e6)
        assert pi.integral == pytest.approx(1e9)

    def test_reset(self):
        pi = PIStateSystem(kp=0.0, ki=1.0)
        pi.next(5.0)
        pi.reset()
        assert pi.next(1.0) == 1.0


class TestOutputSystem:
    """Test whole-node occupancy reduction"""

    def test_down_link_is_masked(self):
        """Down port contributes neither occupancy nor offset"""
        reducer = OutputSystem(local_offsets=[1, 2])
        m = Measurement(occupancies=[5, 10], incoming_link_status=[1, 0])
        assert reducer.next(m) == 4

    def test_all_up(self):
        reducer = OutputSystem(local_offsets=[1, 2])
        m = Measurement(occupancies=[5, 10])
        assert reducer.next(m) == 12

    def test_port_count_mismatch(self):
        with pytest.raises(PreconditionError):
            OutputSystem([0.0]).next(Measurement.for_node(2))


class TestOneEdgeOutputSystem:
    """Test single-edge occupancy reduction"""

    def test_single_port(self):
        reducer = OneEdgeOutputSystem(portnum=1, offset=2.0)
        m = Measurement(occupancies=[100.0, 7.0])
        assert reducer.next(m) == 5.0

    def test_from_edge(self):
        """Port is resolved at the edge's destination"""
        topo = Topology.from_edges(3, [(0, 1), (1, 0), (2, 1), (0, 2)])
        reducer = OneEdgeOutputSystem.from_edge(topo, 5.0, 2)
        assert reducer.portnum == 1
        assert reducer.offset == 5.0

    def test_from_config(self):
        """Offset comes from the run configuration's links section"""
        config = BittideConfig.from_dict({
            'topology': {'n': 3, 'edges': [[0, 1], [1, 0], [2, 1], [0, 2]]},
            'links': {'latency': 1.0, 'offset': [10.0, 11.0, 12.0, 13.0]},
        })
        reducer = OneEdgeOutputSystem.from_config(config, 2)
        assert reducer.portnum == 1
        assert reducer.offset == 12.0
        m = Measurement(occupancies=[0.0, 20.0])
        assert reducer.next(m) == 8.0


class TestComposedSystem:
    """Test chaining of state systems"""

    def test_proportional_over_one_edge(self):
        """Stateless reducer and ki=0 give the same output on repeat"""
        controller = ComposedSystem(PIStateSystem(kp=1, ki=0), OneEdgeOutputSystem(0, 5))
        m = Measurement(occupancies=[8])
        assert controller.next(m) == 3
        assert controller.next(m) == 3

    def test_inner_applied_first(self):
        controller = ComposedSystem(PIStateSystem(kp=0, ki=1), OutputSystem([0.0, 0.0]))
        m = Measurement(occupancies=[1.0, 2.0])
        assert controller.next(m) == 3.0
        assert controller.next(m) == 6.0
        controller.reset()
        assert controller.outer.integral == 0.0

    def test_compose_chain(self):
        """compose(a, b, c) applies c, then b, then a"""
        chain = compose(PIStateSystem(kp=2, ki=0), PIStateSystem(kp=3, ki=0),
                        OneEdgeOutputSystem(0, 1))
        assert chain.next(Measurement(occupancies=[2.0])) == 6.0

    def test_compose_empty(self):
        with pytest.raises(PreconditionError):
            compose()
