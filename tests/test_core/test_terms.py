"""
Test Suite: Operator Suppliers
==============================

The suppliers hand operators to the solvers at every sub-step. These tests
pin down their return shapes, rate handling and the homodyne shift.
"""

import numpy as np
import pytest

from zeno_simulator import (
    ConfigurationError,
    DeterministicTerms,
    DimensionError,
    StochasticTerms,
    as_supplier,
    dynamic_terms,
    homodyne_terms,
    ket2dm,
    measurement_superoperator,
    static_terms,
)


SX = np.array([[0, 1], [1, 0]], dtype=complex)
SZ = np.array([[1, 0], [0, -1]], dtype=complex)
SM = np.array([[0, 1], [0, 0]], dtype=complex)


# =============================================================================
# DETERMINISTIC SUPPLIERS
# =============================================================================

class TestStaticTerms:

    def test_returns_named_terms_with_adjoints(self):
        terms = static_terms(SX, [SM])(0.0, np.eye(2))
        assert isinstance(terms, DeterministicTerms)
        H, J, Jdagger, rates = terms
        np.testing.assert_allclose(H, SX)
        np.testing.assert_allclose(Jdagger[0], SM.conj().T)
        np.testing.assert_allclose(rates, [1.0])

    def test_scalar_rate_is_broadcast(self):
        terms = static_terms(SX, [SM, SZ], rates=0.5)(0.0, np.eye(2))
        np.testing.assert_allclose(terms.rates, [0.5, 0.5])

    def test_no_jump_operators(self):
        terms = static_terms(SX)(1.0, np.eye(2))
        assert len(terms.J) == 0
        assert terms.rates.shape == (0,)

    def test_rate_count_mismatch(self):
        with pytest.raises(ConfigurationError):
            static_terms(SX, [SM, SZ], rates=[1.0, 2.0, 3.0])

    def test_negative_rate(self):
        with pytest.raises(ConfigurationError):
            static_terms(SX, [SM], rates=[-0.1])


class TestDynamicTerms:

    def test_hamiltonian_follows_time(self):
        fdeterm = dynamic_terms(lambda t: np.cos(t) * SX, [SM], rates=[0.2])
        np.testing.assert_allclose(fdeterm(0.0, np.eye(2)).H, SX)
        np.testing.assert_allclose(fdeterm(np.pi, np.eye(2)).H, -SX, atol=1e-15)
        np.testing.assert_allclose(fdeterm(np.pi, np.eye(2)).rates, [0.2])


# =============================================================================
# HOMODYNE SUPPLIER
# =============================================================================

class TestHomodyneTerms:

    def test_shift_uses_current_expectation(self):
        rho = ket2dm([1, 0])  # ⟨σz + σz†⟩ = 2
        terms = homodyne_terms([SZ], rates=[3.0])(0.0, rho)
        assert isinstance(terms, StochasticTerms)
        np.testing.assert_allclose(terms.Jdagger[0], SZ - 2 * np.eye(2))
        np.testing.assert_allclose(terms.rates, [3.0])

    @pytest.mark.parametrize("c", [SZ, SM, 1j * SM])
    def test_shifted_form_equals_backaction(self, c):
        rho = ket2dm([0.6, 0.8 * np.exp(0.3j)])
        J, Jdagger, _ = homodyne_terms([c])(0.0, rho)
        np.testing.assert_allclose(
            J[0] @ rho + rho @ Jdagger[0],
            measurement_superoperator(c, rho),
            atol=1e-14,
        )

    def test_state_dimension_mismatch(self):
        fstoch = homodyne_terms([SZ])
        with pytest.raises(DimensionError):
            fstoch(0.0, np.eye(3) / 3)

    def test_mixed_operator_shapes(self):
        with pytest.raises(DimensionError):
            homodyne_terms([SZ, np.eye(3)])


# =============================================================================
# SUPPLIER NORMALISATION
# =============================================================================

class TestAsSupplier:

    def test_plain_callable_passes_through(self):
        f = static_terms(SX)
        assert as_supplier(f) is f

    def test_object_with_evaluate(self):
        class Drive:
            def evaluate(self, t, rho):
                return DeterministicTerms(t * SX, [], [], np.zeros(0))

        supplier = as_supplier(Drive())
        np.testing.assert_allclose(supplier(2.0, np.eye(2)).H, 2 * SX)

    def test_rejects_non_callables(self):
        with pytest.raises(ConfigurationError):
            as_supplier(42)
