"""
Zeno Simulator: Stochastic Master Equation Demonstration of the Quantum Zeno Effect
===================================================================================

A continuously measured cavity-coupled atomic ensemble, simulated with a
fixed-step stochastic master equation (SME) integrator.

MODULE STRUCTURE
----------------

Numerical core:
    - operators: dense matrix primitives, dissipator, measurement term
    - terms: supplier pattern for drift and noise operators
    - solvers: mesolve (Lindblad baseline), smesolve, ensembles
    - exceptions: DimensionError, ConfigurationError, NumericalInstabilityError

Zeno demonstration:
    - configurations: parameter dataclasses and the low/high/no presets
    - cavity_ensemble: collective spin ⊗ cavity operators (built with QuTiP)
    - simulation: regime runs and amplitude analysis
    - visualization: matplotlib plots of the comparison

Quick Start
-----------
>>> from zeno_simulator import simulate_zeno_comparison, SolverSettings
>>> results = simulate_zeno_comparison(settings=SolverSettings(seed=1))
>>> {label: round(r.amplitude, 2) for label, r in results.items()}
"""

from .exceptions import (
    ZenoSimulatorError,
    DimensionError,
    ConfigurationError,
    NumericalInstabilityError,
)

from .operators import (
    as_operator,
    dag,
    commutator,
    anticommutator,
    trace,
    expect,
    kron,
    hermitize,
    ket2dm,
    lindblad_dissipator,
    measurement_superoperator,
    is_hermitian,
    is_density_matrix,
    unitary_evolution,
)

from .terms import (
    DeterministicTerms,
    StochasticTerms,
    as_supplier,
    static_terms,
    dynamic_terms,
    homodyne_terms,
)

from .solvers import (
    Trajectory,
    mesolve,
    smesolve,
    smesolve_ensemble,
    average_states,
)

from .configurations import (
    CavityEnsembleParameters,
    SolverSettings,
    no_zeno_parameters,
    low_zeno_parameters,
    high_zeno_parameters,
    default_regimes,
    default_solver_settings,
)

from .cavity_ensemble import (
    CavityEnsembleOperators,
    build_operators,
    initial_state,
    deterministic_supplier,
    stochastic_supplier,
)

from .simulation import (
    ZenoResult,
    simulate_zeno_regime,
    simulate_zeno_comparison,
    oscillation_amplitude,
)

from .visualization import (
    plot_population,
    plot_zeno_comparison,
    plot_amplitudes,
)

__version__ = "0.1.0"
__all__ = [
    # Errors
    "ZenoSimulatorError", "DimensionError", "ConfigurationError",
    "NumericalInstabilityError",
    # Operators
    "as_operator", "dag", "commutator", "anticommutator", "trace", "expect",
    "kron", "hermitize", "ket2dm", "lindblad_dissipator",
    "measurement_superoperator", "is_hermitian", "is_density_matrix",
    "unitary_evolution",
    # Suppliers
    "DeterministicTerms", "StochasticTerms", "as_supplier",
    "static_terms", "dynamic_terms", "homodyne_terms",
    # Solvers
    "Trajectory", "mesolve", "smesolve", "smesolve_ensemble", "average_states",
    # Configuration
    "CavityEnsembleParameters", "SolverSettings",
    "no_zeno_parameters", "low_zeno_parameters", "high_zeno_parameters",
    "default_regimes", "default_solver_settings",
    # Model
    "CavityEnsembleOperators", "build_operators", "initial_state",
    "deterministic_supplier", "stochastic_supplier",
    # Simulation
    "ZenoResult", "simulate_zeno_regime", "simulate_zeno_comparison",
    "oscillation_amplitude",
    # Plots
    "plot_population", "plot_zeno_comparison", "plot_amplitudes",
]
