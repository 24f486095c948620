"""
Test Suite: Cavity-Ensemble Model and Configuration
===================================================

Checks the operators built for the Zeno model and the validation done by
the parameter dataclasses.

Conventions checked here:
- Dicke basis ordered m = j, …, -j, so |j, -j⟩ is the last spin index
- Operators act on spin ⊗ cavity in that order
"""

import numpy as np
import pytest

from zeno_simulator import (
    CavityEnsembleParameters,
    ConfigurationError,
    DeterministicTerms,
    SolverSettings,
    StochasticTerms,
    build_operators,
    commutator,
    default_regimes,
    default_solver_settings,
    deterministic_supplier,
    expect,
    high_zeno_parameters,
    initial_state,
    is_density_matrix,
    is_hermitian,
    low_zeno_parameters,
    no_zeno_parameters,
    stochastic_supplier,
)


@pytest.fixture
def params():
    return CavityEnsembleParameters(n_atoms=2, n_photons=5, g=1.58, kappa=20.0)


@pytest.fixture
def ops(params):
    return build_operators(params)


# =============================================================================
# OPERATORS
# =============================================================================

class TestOperators:
    """Structure of the spin ⊗ cavity operators."""

    def test_dimension(self, params, ops):
        assert params.dimension == 18
        for name in ("H", "Jx", "Jy", "Jz", "Jminus", "a", "measured",
                     "population", "photon_number"):
            assert getattr(ops, name).shape == (18, 18), name

    def test_hamiltonian_is_hermitian(self, ops):
        assert is_hermitian(ops.H)

    def test_spin_commutation_relations(self, ops):
        np.testing.assert_allclose(commutator(ops.Jx, ops.Jy), 1j * ops.Jz, atol=1e-12)
        np.testing.assert_allclose(commutator(ops.Jz, ops.Jminus), -ops.Jminus, atol=1e-12)

    def test_spin_and_cavity_commute(self, ops):
        np.testing.assert_allclose(commutator(ops.a, ops.Jz), 0, atol=1e-12)

    def test_measured_operator_carries_phase(self, ops):
        """φ = π/2 gives c = i·a."""
        np.testing.assert_allclose(ops.measured, 1j * ops.a, atol=1e-15)

    def test_uncoupled_hamiltonian_is_pure_drive(self):
        ops = build_operators(no_zeno_parameters())
        np.testing.assert_allclose(ops.H, ops.Jx)

    def test_population_is_projector(self, ops):
        P = ops.population
        np.testing.assert_allclose(P @ P, P, atol=1e-15)
        assert np.trace(P).real == pytest.approx(6)  # one spin level × 6 Fock states


class TestInitialState:

    def test_all_atoms_down_cavity_empty(self, params, ops):
        rho0 = initial_state(params)
        assert is_density_matrix(rho0)
        assert expect(ops.population, rho0).real == pytest.approx(1.0)
        assert expect(ops.Jz, rho0).real == pytest.approx(-params.spin)
        assert expect(ops.photon_number, rho0).real == pytest.approx(0.0)

    @pytest.mark.parametrize("n_atoms", [1, 3, 4])
    def test_other_ensemble_sizes(self, n_atoms):
        p = CavityEnsembleParameters(n_atoms=n_atoms, n_photons=3)
        ops = build_operators(p)
        rho0 = initial_state(p)
        assert rho0.shape == (p.dimension, p.dimension)
        assert expect(ops.Jz, rho0).real == pytest.approx(-n_atoms / 2)


# =============================================================================
# SUPPLIERS
# =============================================================================

class TestSuppliers:

    def test_deterministic_supplier_without_spin_decay(self, params, ops):
        terms = deterministic_supplier(params, ops)(0.0, initial_state(params))
        assert isinstance(terms, DeterministicTerms)
        assert len(terms.J) == 1
        np.testing.assert_allclose(terms.J[0], ops.a)
        np.testing.assert_allclose(terms.rates, [params.kappa])

    def test_deterministic_supplier_with_spin_decay(self):
        params = CavityEnsembleParameters(gamma=0.5)
        ops = build_operators(params)
        terms = deterministic_supplier(params, ops)(0.0, initial_state(params))
        assert len(terms.J) == 2
        np.testing.assert_allclose(terms.J[1], ops.Jminus)
        np.testing.assert_allclose(terms.rates, [params.kappa, 0.5])

    def test_stochastic_supplier_uses_detected_rate(self):
        params = CavityEnsembleParameters(efficiency=0.5)
        ops = build_operators(params)
        terms = stochastic_supplier(params, ops)(0.0, initial_state(params))
        assert isinstance(terms, StochasticTerms)
        np.testing.assert_allclose(terms.J[0], ops.measured)
        np.testing.assert_allclose(terms.rates, [0.5 * params.kappa])

    def test_homodyne_shift_vanishes_in_vacuum(self, params, ops):
        """⟨c + c†⟩ = 0 for the empty cavity, so J̃† = c†."""
        terms = stochastic_supplier(params, ops)(0.0, initial_state(params))
        np.testing.assert_allclose(terms.Jdagger[0], ops.measured.conj().T, atol=1e-15)


# =============================================================================
# PARAMETERS AND PRESETS
# =============================================================================

class TestParameters:

    def test_measurement_rate(self):
        assert CavityEnsembleParameters(g=7.0, kappa=20.0).measurement_rate == pytest.approx(9.8)

    def test_presets_span_the_regimes(self):
        assert no_zeno_parameters().measurement_rate == 0.0
        assert low_zeno_parameters().measurement_rate == pytest.approx(0.5, abs=0.01)
        assert high_zeno_parameters().measurement_rate == pytest.approx(10.0, abs=0.01)
        assert list(default_regimes()) == ["low", "high", "no"]

    def test_preset_overrides(self):
        p = high_zeno_parameters(n_atoms=4, efficiency=0.8)
        assert p.n_atoms == 4
        assert p.efficiency == 0.8
        assert p.g == 7.07

    def test_summary(self):
        summary = low_zeno_parameters().summary()
        assert summary["measurement_over_omega"] == pytest.approx(0.5, abs=0.01)

    def test_undriven_ratio_is_infinite(self):
        p = CavityEnsembleParameters(omega=0.0)
        assert p.measurement_over_omega == np.inf
        assert p.summary()["measurement_over_omega"] == np.inf

    @pytest.mark.parametrize("overrides", [
        dict(n_atoms=0),
        dict(n_atoms=1.5),
        dict(n_photons=0),
        dict(kappa=0.0),
        dict(gamma=-1.0),
        dict(efficiency=1.5),
        dict(g=np.nan),
        dict(omega=np.inf),
    ])
    def test_invalid_parameters(self, overrides):
        with pytest.raises(ConfigurationError):
            CavityEnsembleParameters(**overrides)

    def test_parameters_are_frozen(self, params):
        with pytest.raises(AttributeError):
            params.g = 0.0


class TestSolverSettings:

    def test_grid_and_step(self):
        s = SolverSettings(t_final=2.0, n_points=21, substeps=10)
        np.testing.assert_allclose(s.tlist, np.linspace(0, 2, 21))
        assert s.dt == pytest.approx(0.01)

    def test_defaults(self):
        s = default_solver_settings()
        assert s.tlist[-1] == pytest.approx(10.0)
        assert s.dt == pytest.approx(1e-3)

    @pytest.mark.parametrize("overrides", [
        dict(t_final=0.0),
        dict(t_final=np.inf),
        dict(n_points=1),
        dict(substeps=0),
        dict(substeps=2.5),
    ])
    def test_invalid_settings(self, overrides):
        with pytest.raises(ConfigurationError):
            SolverSettings(**overrides)
