"""
Quantum Zeno Simulation
=======================

Runs the cavity-ensemble model in the three measurement regimes and
collects the quantities needed to see the Zeno effect.

High-Level Overview
-------------------
1. **Setup**: build operators and the initial state |j, -j⟩ ⊗ |0⟩ from a
   ``CavityEnsembleParameters`` object.
2. **Evolution**: integrate the stochastic master equation (one or more
   homodyne trajectories) or, when nothing is measured, the plain Lindblad
   equation.
3. **Analysis**: extract the tracked population P(t) = ⟨|j,-j⟩⟨j,-j|⟩,
   ⟨Jz⟩(t), the mean photon number and the peak-to-trough amplitude of P.

What to Expect
--------------
Without measurement P(t) swings between 1 and 0 at the Rabi frequency.
Weak measurement barely changes this. Strong measurement freezes P near 1
and the swing collapses: the Quantum Zeno effect. Comparing
``oscillation_amplitude`` across the regimes makes this quantitative:

    amplitude(no) > amplitude(low) > amplitude(high)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .cavity_ensemble import (
    build_operators,
    deterministic_supplier,
    initial_state,
    stochastic_supplier,
)
from .configurations import (
    CavityEnsembleParameters,
    SolverSettings,
    default_regimes,
    default_solver_settings,
)
from .exceptions import ConfigurationError
from .solvers import Trajectory, average_states, mesolve, smesolve, smesolve_ensemble


# =============================================================================
# RESULT CONTAINER
# =============================================================================

@dataclass
class ZenoResult:
    """
    Output of one regime.

    Attributes
    ----------
    label : str
        Regime name ("low", "high", "no", or user-defined)
    params : CavityEnsembleParameters
        Physical parameters used
    settings : SolverSettings
        Time grid and step size used
    trajectory : Trajectory
        Conditioned trajectory, or the ensemble average when ntraj > 1,
        or the Lindblad solution when the regime is unmeasured
    measured : bool
        Whether a stochastic measurement term was integrated
    times : np.ndarray
        Sampling times
    population : np.ndarray
        Tracked population P(t) of |j, -j⟩
    jz : np.ndarray
        ⟨Jz⟩(t)
    photon_number : np.ndarray
        ⟨a†a⟩(t)
    trajectories : List[Trajectory]
        Individual trajectories when ntraj > 1, otherwise empty
    """
    label: str
    params: CavityEnsembleParameters
    settings: SolverSettings
    trajectory: Trajectory
    measured: bool
    times: np.ndarray
    population: np.ndarray
    jz: np.ndarray
    photon_number: np.ndarray
    trajectories: List[Trajectory] = field(default_factory=list)

    @property
    def amplitude(self) -> float:
        """Peak-to-trough swing of the tracked population."""
        return oscillation_amplitude(self.population)

    def print_summary(self):
        print(f"{self.label:>6s} | Γ/Ω = {self.params.measurement_over_omega:7.3f}"
              f" | amplitude = {self.amplitude:.4f}"
              f" | final P = {self.population[-1]:.4f}"
              f" | max ⟨n⟩ = {self.photon_number.max():.3f}")


def oscillation_amplitude(series: np.ndarray) -> float:
    """Peak-to-trough amplitude max(series) - min(series)."""
    series = np.asarray(series, dtype=float)
    if series.size == 0:
        raise ConfigurationError("Cannot take the amplitude of an empty series")
    return float(series.max() - series.min())


# =============================================================================
# SINGLE REGIME
# =============================================================================

def simulate_zeno_regime(
    params: CavityEnsembleParameters,
    settings: Optional[SolverSettings] = None,
    label: str = "custom",
    ntraj: int = 1,
    rng: Optional[np.random.Generator] = None,
    verbose: bool = False,
) -> ZenoResult:
    """
    Simulate the cavity-ensemble model for one parameter set.

    Parameters
    ----------
    params : CavityEnsembleParameters
        Physical parameters
    settings : SolverSettings, optional
        Time grid and step size. Defaults to ``default_solver_settings()``.
    label : str
        Name stored on the result
    ntraj : int
        Number of homodyne trajectories. With ntraj > 1 the stored
        trajectory is their average.
    rng : np.random.Generator, optional
        Noise source. Defaults to ``default_rng(settings.seed)``.
    verbose : bool
        Print the parameter block and a completion line

    Returns
    -------
    ZenoResult

    Notes
    -----
    A regime with g = 0 or η = 0 has no measurement record; it is solved
    with ``mesolve`` and serves as the no-noise reference.
    """
    if settings is None:
        settings = default_solver_settings()
    if ntraj < 1:
        raise ConfigurationError(f"ntraj must be at least 1, got {ntraj}")

    ops = build_operators(params)
    rho0 = initial_state(params)
    fdeterm = deterministic_supplier(params, ops)
    measured = params.g != 0 and params.detected_rate > 0
    tlist = settings.tlist
    dt = settings.dt

    if verbose:
        print(f"\n{'='*70}")
        print(f"QUANTUM ZENO SIMULATION: {label.upper()}")
        print(f"{'='*70}")
        print(f"Atoms:             N = {params.n_atoms} (j = {params.spin:g})")
        print(f"Hilbert space:     {params.spin_dimension} × {params.cavity_dimension}"
              f" = {params.dimension}")
        print(f"Rabi drive:        Ω = {params.omega:.4f}")
        print(f"Coupling:          g = {params.g:.4f}")
        print(f"Cavity decay:      κ = {params.kappa:.4f}")
        print(f"Measurement rate:  Γ = 4g²/κ = {params.measurement_rate:.4f}"
              f" (Γ/Ω = {params.measurement_over_omega:.3f})")
        print(f"Efficiency:        η = {params.efficiency:.3f}")
        print(f"Time grid:         {settings.n_points} points on [0, {settings.t_final:g}],"
              f" dt = {dt:.3e}")
        print(f"Trajectories:      {ntraj if measured else 'deterministic'}")
        print(f"{'='*70}")

    trajectories: List[Trajectory] = []
    if not measured:
        trajectory = mesolve(rho0, tlist, fdeterm, dt)
    else:
        fstoch = stochastic_supplier(params, ops)
        if ntraj == 1:
            if rng is None:
                rng = np.random.default_rng(settings.seed)
            trajectory = smesolve(rho0, tlist, fdeterm, fstoch, dt, rng=rng)
        else:
            # Seed the ensemble from the supplied generator so runs stay reproducible
            seed = settings.seed if rng is None else int(rng.integers(2**63))
            trajectories = smesolve_ensemble(rho0, tlist, fdeterm, fstoch, dt, ntraj, seed=seed)
            trajectory = average_states(trajectories)

    result = ZenoResult(
        label=label,
        params=params,
        settings=settings,
        trajectory=trajectory,
        measured=measured,
        times=trajectory.times,
        population=trajectory.expect(ops.population),
        jz=trajectory.expect(ops.Jz),
        photon_number=trajectory.expect(ops.photon_number),
        trajectories=trajectories,
    )

    if verbose:
        print(f"\nEvolution complete!")
        print(f"Population amplitude: {result.amplitude:.4f}")
        print(f"Final population:     {result.population[-1]:.4f}")
        print(f"Final trace:          {trajectory.traces()[-1]:.8f}")

    return result


# =============================================================================
# REGIME COMPARISON
# =============================================================================

def simulate_zeno_comparison(
    regimes: Optional[Dict[str, CavityEnsembleParameters]] = None,
    settings: Optional[SolverSettings] = None,
    ntraj: int = 1,
    verbose: bool = False,
) -> Dict[str, ZenoResult]:
    """
    Run several regimes on the same time grid.

    Each regime gets its own generator spawned from ``settings.seed``, so
    adding or reordering regimes does not change the noise of the others
    beyond their position in the spawn order.

    Parameters
    ----------
    regimes : dict, optional
        Label -> parameters. Defaults to ``default_regimes()``
        ("low", "high", "no").
    settings : SolverSettings, optional
        Shared time grid and step size
    ntraj : int
        Trajectories per measured regime
    verbose : bool
        Print per-regime progress and a summary table

    Returns
    -------
    Dict[str, ZenoResult]
        Results in the same order as ``regimes``
    """
    if regimes is None:
        regimes = default_regimes()
    if settings is None:
        settings = default_solver_settings()
    if not regimes:
        raise ConfigurationError("No regimes to simulate")

    children = np.random.SeedSequence(settings.seed).spawn(len(regimes))
    results = {}
    for (label, params), child in zip(regimes.items(), children):
        results[label] = simulate_zeno_regime(
            params,
            settings,
            label=label,
            ntraj=ntraj,
            rng=np.random.default_rng(child),
            verbose=verbose,
        )

    if verbose:
        print(f"\n{'ZENO COMPARISON':^70}")
        print("-" * 70)
        for result in results.values():
            result.print_summary()

    return results
