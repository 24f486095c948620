"""
Test Suite: Dense Operator Primitives
=====================================

Checks the matrix helpers and the two superoperators against results that
can be worked out by hand for a single qubit.

Basis convention: |0⟩ = (1, 0)ᵀ, |1⟩ = (0, 1)ᵀ.
"""

import numpy as np
import pytest
from qutip import qeye, sigmax, sigmaz, tensor

from zeno_simulator import (
    DimensionError,
    anticommutator,
    as_operator,
    commutator,
    dag,
    expect,
    hermitize,
    is_density_matrix,
    is_hermitian,
    ket2dm,
    kron,
    lindblad_dissipator,
    measurement_superoperator,
    trace,
    unitary_evolution,
)


SX = np.array([[0, 1], [1, 0]], dtype=complex)
SY = np.array([[0, -1j], [1j, 0]], dtype=complex)
SZ = np.array([[1, 0], [0, -1]], dtype=complex)
SM = np.array([[0, 1], [0, 0]], dtype=complex)  # |0⟩⟨1|
I2 = np.eye(2, dtype=complex)


# =============================================================================
# BASIC ALGEBRA
# =============================================================================

class TestBasicAlgebra:
    """Pauli identities and conversions."""

    def test_dag_is_conjugate_transpose(self):
        A = np.array([[1, 2j], [3, 4 - 1j]])
        np.testing.assert_allclose(dag(A), np.array([[1, 3], [-2j, 4 + 1j]]))

    def test_pauli_commutator(self):
        np.testing.assert_allclose(commutator(SX, SY), 2j * SZ)

    def test_pauli_anticommutator(self):
        np.testing.assert_allclose(anticommutator(SX, SY), np.zeros((2, 2)), atol=1e-15)
        np.testing.assert_allclose(anticommutator(SX, SX), 2 * I2)

    def test_expect_and_trace(self):
        rho = np.diag([0.25, 0.75]).astype(complex)
        assert trace(rho) == pytest.approx(1.0)
        assert expect(SZ, rho).real == pytest.approx(-0.5)
        assert expect(SX, rho) == pytest.approx(0.0)

    def test_kron_matches_qutip_tensor_ordering(self):
        ours = kron(SX, I2, SZ)
        theirs = tensor(sigmax(), qeye(2), sigmaz()).full()
        np.testing.assert_allclose(ours, theirs)

    def test_kron_requires_operands(self):
        with pytest.raises(DimensionError):
            kron()

    def test_hermitize_removes_antihermitian_part(self):
        A = np.array([[1, 1 + 1j], [0, 2]])
        H = hermitize(A)
        assert is_hermitian(H)
        np.testing.assert_allclose(np.diag(H), [1, 2])

    def test_as_operator_accepts_lists_and_qobj(self):
        assert as_operator([[0, 1], [1, 0]]).dtype == np.complex128
        np.testing.assert_allclose(as_operator(sigmaz()), SZ)

    def test_as_operator_rejects_non_square(self):
        with pytest.raises(DimensionError):
            as_operator(np.ones((2, 3)))
        with pytest.raises(DimensionError):
            as_operator(np.ones(4))

    def test_ket2dm_normalises(self):
        rho = ket2dm([1, 1])
        np.testing.assert_allclose(rho, 0.5 * np.ones((2, 2)))
        with pytest.raises(ValueError):
            ket2dm([0, 0])


# =============================================================================
# SUPEROPERATORS
# =============================================================================

class TestSuperoperators:
    """Dissipator and homodyne back-action."""

    def test_decay_of_excited_state(self):
        """D[σ₋]|1⟩⟨1| moves population from |1⟩ to |0⟩ at unit rate."""
        rho_excited = np.diag([0, 1]).astype(complex)
        np.testing.assert_allclose(
            lindblad_dissipator(SM, rho_excited), np.diag([1, -1])
        )

    def test_dissipator_accepts_precomputed_adjoint(self):
        rho = ket2dm([1, 1j])
        np.testing.assert_allclose(
            lindblad_dissipator(SM, rho, dag(SM)), lindblad_dissipator(SM, rho)
        )

    def test_dephasing_kills_coherences_only(self):
        rho = ket2dm([1, 1])
        out = lindblad_dissipator(SZ, rho)
        np.testing.assert_allclose(np.diag(out), [0, 0], atol=1e-15)
        np.testing.assert_allclose(out[0, 1], -1.0)

    @pytest.mark.parametrize("c", [SM, SZ, SX + 0.3j * SY])
    def test_superoperators_are_traceless(self, c):
        rho = ket2dm([0.6, 0.8j])
        assert abs(trace(lindblad_dissipator(c, rho))) < 1e-14
        assert abs(trace(measurement_superoperator(c, rho))) < 1e-14

    def test_measurement_vanishes_on_eigenstate(self):
        """An eigenstate of a Hermitian c gains no information: H[c]ρ = 0."""
        rho = ket2dm([1, 0])
        np.testing.assert_allclose(measurement_superoperator(SZ, rho), 0, atol=1e-15)

    def test_measurement_on_superposition(self):
        rho = ket2dm([1, 1])
        # ⟨σz⟩ = 0, so H[σz]ρ = σz ρ + ρ σz = diag(1, -1)
        np.testing.assert_allclose(
            measurement_superoperator(SZ, rho), np.diag([1, -1]), atol=1e-15
        )


# =============================================================================
# CHECKS AND REFERENCES
# =============================================================================

class TestChecksAndReferences:

    def test_density_matrix_checks(self):
        assert is_density_matrix(np.diag([0.3, 0.7]))
        assert not is_density_matrix(np.diag([0.3, 0.3]))      # trace
        assert not is_density_matrix(np.diag([1.2, -0.2]))     # negative
        assert not is_density_matrix(np.array([[0.5, 1], [0, 0.5]]))  # not Hermitian

    def test_unitary_evolution_pi_pulse(self):
        """exp(-iσx π/2) = -iσx flips |0⟩ to |1⟩."""
        rho = unitary_evolution(SX, ket2dm([1, 0]), np.pi / 2)
        np.testing.assert_allclose(rho, np.diag([0, 1]), atol=1e-12)

    def test_unitary_evolution_rejects_mismatched_shapes(self):
        with pytest.raises(DimensionError):
            unitary_evolution(SX, np.eye(3) / 3, 1.0)
