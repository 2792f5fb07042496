"""
Unit tests for rate matrix spectral analysis
"""

import numpy as np
import pytest

from bittide_sync.analysis import (
    RATE_MATRIX_TOLERANCE,
    is_metzler,
    is_rate_matrix,
    eigendecompose_metzler,
    spec_inv,
    rate_matrix_from_topology,
    consensus_projector,
    transition_matrix,
)
from bittide_sync.exceptions import PreconditionError, IllConditionedError
from bittide_sync.topology import Topology


def complete_graph_rate_matrix(n):
    """Off-diagonal ones, rows summing to zero"""
    return np.ones((n, n)) - n * np.eye(n)


# eigenvalues 0 and -3, left null vector [2/3, 1/3]
TWO_NODE = np.array([[-1.0, 1.0],
                     [2.0, -2.0]])


class TestIsRateMatrix:
    """Test rate matrix validation"""

    def test_valid(self):
        assert is_rate_matrix(complete_graph_rate_matrix(4))
        assert is_rate_matrix(TWO_NODE)

    def test_negative_off_diagonal(self):
        Q = complete_graph_rate_matrix(3)
        Q[0, 1] = -0.5
        Q[0, 0] = 0.5 - 1.0  # keep the row sum zero
        assert not is_metzler(Q)
        assert not is_rate_matrix(Q)

    def test_row_sum_tolerance_is_relative(self):
        """Perturbations are judged against the largest entry"""
        Q = 1e6 * complete_graph_rate_matrix(3)
        Q[1, 1] += 1e6 * 1e-12
        assert is_rate_matrix(Q)
        Q[1, 1] += 1e6 * 1e-6
        assert not is_rate_matrix(Q)

    def test_custom_tolerance(self):
        Q = TWO_NODE.copy()
        Q[0, 0] -= 1e-6
        assert not is_rate_matrix(Q)
        assert is_rate_matrix(Q, tol=1e-5)
        assert RATE_MATRIX_TOLERANCE == 1e-10

    def test_not_square(self):
        with pytest.raises(PreconditionError):
            is_rate_matrix(np.zeros((2, 3)))


class TestEigendecomposeMetzler:
    """Test spectral decomposition and the consensus vector"""

    def test_consensus_vector_two_nodes(self):
        T, L, z = eigendecompose_metzler(TWO_NODE)
        np.testing.assert_allclose(z, [2 / 3, 1 / 3], atol=1e-12)
        np.testing.assert_allclose(np.diag(L), [0.0, -3.0], atol=1e-12)

    def test_left_null_vector(self):
        """z A = 0 and z sums to one"""
        Q = rate_matrix_from_topology(Topology.from_edges(3, [(0, 1), (1, 2), (2, 0), (0, 2)]),
                                      gains=[1.0, 2.0, 3.0, 4.0])
        decomposition = eigendecompose_metzler(Q)
        np.testing.assert_allclose(decomposition.z @ Q, np.zeros(3), atol=1e-10)
        assert decomposition.z.sum() == pytest.approx(1.0)
        assert abs(decomposition.eigenvalues[0]) < 1e-10

    def test_sorted_by_magnitude(self):
        Q = rate_matrix_from_topology(Topology.bidirectional(4, [(0, 1), (1, 2), (2, 3)]))
        eigenvalues = eigendecompose_metzler(Q).eigenvalues
        magnitudes = np.abs(eigenvalues)
        assert np.all(np.diff(magnitudes) >= -1e-12)

    def test_canonical_scaling(self):
        """T[0, 0] == 1 and the basis reconstructs A"""
        Q = rate_matrix_from_topology(Topology.from_edges(3, [(0, 1), (1, 2), (2, 0)]))
        T, L, _ = eigendecompose_metzler(Q)
        assert T[0, 0] == pytest.approx(1.0)
        np.testing.assert_allclose(np.real(T @ L @ np.linalg.inv(T)), Q, atol=1e-10)

    def test_deterministic(self):
        """Repeated runs give identical ordering and scaling"""
        Q = rate_matrix_from_topology(Topology.bidirectional(4, [(0, 1), (1, 2), (2, 3), (3, 0)]),
                                      gains=[1.0, 2.0, 0.5, 1.5, 3.0, 1.0, 2.5, 0.7])
        first = eigendecompose_metzler(Q)
        second = eigendecompose_metzler(Q)
        np.testing.assert_array_equal(first.T, second.T)
        np.testing.assert_array_equal(first.L, second.L)
        np.testing.assert_array_equal(first.z, second.z)

    def test_exponential_converges_to_consensus(self):
        """exp(tA) -> 1 z^T"""
        decomposition = eigendecompose_metzler(TWO_NODE)
        np.testing.assert_allclose(transition_matrix(TWO_NODE, 50.0),
                                   consensus_projector(decomposition), atol=1e-12)

    def test_rejects_non_metzler(self):
        with pytest.raises(PreconditionError):
            eigendecompose_metzler(np.array([[-1.0, -1.0], [1.0, -1.0]]))

    def test_defective_matrix(self):
        """A Jordan block has no eigenbasis"""
        with pytest.raises(IllConditionedError):
            eigendecompose_metzler(np.array([[0.0, 1.0], [0.0, 0.0]]))


class TestSpecInv:
    """Test the group inverse with the null mode removed"""

    def test_complete_graph_closed_form(self):
        """Q = -n P, so the group inverse is -P / n"""
        n = 4
        Q = complete_graph_rate_matrix(n)
        P = np.eye(n) - np.ones((n, n)) / n
        np.testing.assert_allclose(spec_inv(Q), -P / n, atol=1e-12)

    def test_two_node_closed_form(self):
        z = np.array([2 / 3, 1 / 3])
        P = np.eye(2) - np.outer(np.ones(2), z)
        np.testing.assert_allclose(spec_inv(TWO_NODE), -P / 3, atol=1e-12)

    def test_product_is_projector(self):
        """spec_inv(L) L projects onto the non-null eigenspace"""
        Q = rate_matrix_from_topology(Topology.from_edges(3, [(0, 1), (1, 2), (2, 0), (1, 0)]),
                                      gains=[2.0, 1.0, 1.0, 3.0])
        z = eigendecompose_metzler(Q).z
        projector = np.eye(3) - np.outer(np.ones(3), z)
        product = spec_inv(Q) @ Q
        np.testing.assert_allclose(product, projector, atol=1e-10)
        assert not np.allclose(product, np.eye(3))
        np.testing.assert_allclose(product @ product, product, atol=1e-10)

    def test_small_gain_ring(self):
        """The zero-eigenvalue test scales with the matrix"""
        Q = 1e-11 * rate_matrix_from_topology(Topology.bidirectional(3, [(0, 1), (1, 2), (2, 0)]))
        assert is_rate_matrix(Q)
        n = 3
        P = np.eye(n) - np.ones((n, n)) / n
        # Q = -3e-11 P on the complete graph
        np.testing.assert_allclose(spec_inv(Q), -P / 3e-11, rtol=1e-8)

    def test_disconnected_network(self):
        """Two zero eigenvalues cannot be removed by dropping one mode"""
        with pytest.raises(IllConditionedError):
            spec_inv(np.zeros((2, 2)))


class TestRateMatrixFromTopology:
    """Test building the linearized network generator"""

    def test_ring(self):
        Q = rate_matrix_from_topology(Topology.bidirectional(3, [(0, 1), (1, 2), (2, 0)]))
        expected = np.array([[-2.0, 1.0, 1.0],
                             [1.0, -2.0, 1.0],
                             [1.0, 1.0, -2.0]])
        np.testing.assert_array_equal(Q, expected)
        assert is_rate_matrix(Q)

    def test_direction_and_gains(self):
        """Edge j -> i lands in row i"""
        Q = rate_matrix_from_topology(Topology.from_edges(2, [(0, 1)]), gains=[3.0])
        np.testing.assert_array_equal(Q, [[0.0, 0.0], [3.0, -3.0]])

    def test_negative_gain(self):
        with pytest.raises(PreconditionError):
            rate_matrix_from_topology(Topology.from_edges(2, [(0, 1)]), gains=[-1.0])
