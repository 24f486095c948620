"""
Master Equation Solvers
=======================

Fixed-step integrators for the Lindblad master equation and for the
stochastic master equation (SME) of a continuously monitored system.

The Stochastic Master Equation
------------------------------
Under homodyne detection of the operators c_m the conditioned state obeys

    dρ = -i[H, ρ] dt + Σ_n γ_n D[J_n]ρ dt + Σ_m H[c_m]ρ dW_m

with D[·] the Lindblad dissipator, H[·] the measurement back-action and
dW_m independent Wiener increments of variance κ_m dt. Setting every κ_m to
zero leaves the ordinary Lindblad equation, which ``mesolve`` integrates as
the noise-free baseline.

Integration Scheme (Euler-Maruyama)
-----------------------------------
For each sub-step of size dt:

1. Ask the deterministic supplier for (H, J, J†, γ) and form
       dρ_det = (-i[H, ρ] + Σ_n γ_n D[J_n]ρ) dt
2. Ask the stochastic supplier for (c, c̃†, κ) and form
       dρ_stoch = Σ_m (c_m ρ + ρ c̃†_m) · √(κ_m dt) · N(0, 1)
3. ρ ← ρ + dρ_det + dρ_stoch
4. ρ ← (ρ + ρ†)/2

There is no renormalisation step. The trace is held at one by the shifted
adjoint c̃† = c† - ⟨c + c†⟩·1 that the stochastic supplier returns.

A copy of ρ is recorded at each point of ``tlist``. The step ``dt`` has to
divide every spacing of ``tlist`` exactly so grid points are hit without
interpolation.

The scheme has weak order one and strong order one half. It needs a step
small compared with 1/‖H‖ and 1/γ; blow-ups are reported, not hidden.

Concurrency
-----------
The solvers keep no module state. Independent trajectories can be run in
separate workers as long as each one gets its own copy of ρ₀ and its own
random generator; ``smesolve_ensemble`` spawns such generators from one seed.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .exceptions import ConfigurationError, DimensionError, NumericalInstabilityError
from .operators import ArrayLike, as_operator, hermitize, lindblad_dissipator
from .terms import DeterministicTerms, StochasticTerms, as_supplier


# Relative slack when checking that dt divides a grid spacing
_DIVISIBILITY_RTOL = 1e-9


# =============================================================================
# TRAJECTORY CONTAINER
# =============================================================================

@dataclass(frozen=True)
class Trajectory:
    """
    States of one run, sampled on the requested time grid.

    Attributes
    ----------
    times : np.ndarray
        Sampling times, shape (n,)
    states : np.ndarray
        Density matrices, shape (n, d, d). ``states[k]`` is the state at
        ``times[k]``.

    Both arrays are stored read-only.

    Examples
    --------
    >>> traj = mesolve(rho0, [0, 1, 2], static_terms(H), dt=0.01)
    >>> for t, rho in traj:
    ...     print(t, rho[0, 0].real)
    >>> traj.expect(sz)   # ⟨σz⟩ at every sampled time
    """
    times: np.ndarray
    states: np.ndarray

    def __post_init__(self):
        times = np.array(self.times, dtype=float)
        states = np.array(self.states, dtype=np.complex128)
        if states.ndim != 3 or states.shape[0] != times.shape[0]:
            raise DimensionError(
                f"Need one (d, d) state per time, got times {times.shape} "
                f"and states {states.shape}"
            )
        times.setflags(write=False)
        states.setflags(write=False)
        object.__setattr__(self, "times", times)
        object.__setattr__(self, "states", states)

    def __len__(self) -> int:
        return len(self.times)

    def __iter__(self) -> Iterator[Tuple[float, np.ndarray]]:
        return zip(self.times, self.states)

    @property
    def dimension(self) -> int:
        return self.states.shape[1]

    @property
    def final_state(self) -> np.ndarray:
        return self.states[-1]

    def expect(self, op: ArrayLike) -> np.ndarray:
        """Real part of Tr(O ρ(t)) at every sampled time."""
        op = as_operator(op)
        if op.shape != self.states.shape[1:]:
            raise DimensionError(
                f"Operator shape {op.shape} does not match state shape {self.states.shape[1:]}"
            )
        return np.einsum("ij,tji->t", op, self.states).real

    def traces(self) -> np.ndarray:
        return np.trace(self.states, axis1=1, axis2=2).real


def average_states(trajectories: Sequence[Trajectory]) -> Trajectory:
    """
    Ensemble average of several trajectories on the same grid.

    Averaging conditioned SME trajectories recovers the unconditioned
    Lindblad evolution as the number of trajectories grows.
    """
    if not trajectories:
        raise ConfigurationError("Cannot average an empty list of trajectories")
    times = trajectories[0].times
    for traj in trajectories[1:]:
        if traj.times.shape != times.shape or not np.allclose(traj.times, times):
            raise ConfigurationError("Trajectories are sampled on different time grids")
    mean = np.mean([traj.states for traj in trajectories], axis=0)
    return Trajectory(times, mean)


# =============================================================================
# INPUT VALIDATION
# =============================================================================

def _check_grid(tlist: Sequence[float], dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Validate the time grid and step size.

    Returns
    -------
    tlist : np.ndarray
        Grid as a float array
    substeps : np.ndarray
        Number of dt-steps in each grid interval
    """
    tlist = np.asarray(tlist, dtype=float)
    if tlist.ndim != 1 or tlist.size < 2:
        raise ConfigurationError(
            f"Time grid needs at least two points, got shape {tlist.shape}"
        )
    if not np.all(np.isfinite(tlist)):
        raise ConfigurationError("Time grid contains NaN or Inf")
    spacings = np.diff(tlist)
    if np.any(spacings <= 0):
        raise ConfigurationError("Time grid must be strictly increasing")

    if not np.isfinite(dt) or dt <= 0:
        raise ConfigurationError(f"Step size must be positive and finite, got dt={dt}")
    ratios = spacings / dt
    substeps = np.rint(ratios)
    if np.any(substeps < 1):
        raise ConfigurationError(
            f"Step size dt={dt} exceeds the smallest grid spacing {spacings.min()}"
        )
    if np.any(np.abs(ratios - substeps) > _DIVISIBILITY_RTOL * ratios):
        bad = int(np.argmax(np.abs(ratios - substeps)))
        raise ConfigurationError(
            f"Step size dt={dt} does not evenly divide grid spacing "
            f"{spacings[bad]} (between t={tlist[bad]} and t={tlist[bad + 1]})"
        )
    return tlist, substeps.astype(int)


def _check_operators(ops, label: str, shape: Tuple[int, int]) -> None:
    for k, op in enumerate(ops):
        if np.shape(op) != shape:
            raise DimensionError(
                f"{label}[{k}] has shape {np.shape(op)}, state has shape {shape}"
            )


def _check_rates(rates, n_ops: int, label: str) -> np.ndarray:
    rates = np.asarray(rates, dtype=float).reshape(-1)
    if rates.size != n_ops:
        raise ConfigurationError(f"{label}: {rates.size} rates for {n_ops} operators")
    if np.any(rates < 0) or not np.all(np.isfinite(rates)):
        raise ConfigurationError(f"{label}: rates must be finite and non-negative, got {rates}")
    return rates


def _as_operators(ops) -> List[np.ndarray]:
    return [as_operator(op) for op in ops]


def _deterministic_terms(fdeterm, t: float, rho: np.ndarray) -> DeterministicTerms:
    H, J, Jdagger, rates = fdeterm(t, rho)
    # Suppliers may hand back Qobj or nested lists
    H = as_operator(H)
    J, Jdagger = _as_operators(J), _as_operators(Jdagger)
    if np.shape(H) != rho.shape:
        raise DimensionError(
            f"Hamiltonian has shape {np.shape(H)}, state has shape {rho.shape}"
        )
    if len(J) != len(Jdagger):
        raise ConfigurationError(
            f"Got {len(J)} jump operators but {len(Jdagger)} adjoints"
        )
    _check_operators(J, "J", rho.shape)
    _check_operators(Jdagger, "Jdagger", rho.shape)
    return DeterministicTerms(H, J, Jdagger, _check_rates(rates, len(J), "damping"))


def _stochastic_terms(fstoch, t: float, rho: np.ndarray) -> StochasticTerms:
    J, Jdagger, rates = fstoch(t, rho)
    J, Jdagger = _as_operators(J), _as_operators(Jdagger)
    if len(J) != len(Jdagger):
        raise ConfigurationError(
            f"Got {len(J)} measurement operators but {len(Jdagger)} adjoints"
        )
    _check_operators(J, "Js", rho.shape)
    _check_operators(Jdagger, "Jsdagger", rho.shape)
    return StochasticTerms(J, Jdagger, _check_rates(rates, len(J), "measurement"))


# =============================================================================
# INCREMENTS
# =============================================================================

def _drift(terms: DeterministicTerms, rho: np.ndarray) -> np.ndarray:
    """-i[H, ρ] + Σ_n γ_n D[J_n]ρ"""
    H, J, Jdagger, rates = terms
    out = -1j * (H @ rho - rho @ H)
    for c, cd, gamma in zip(J, Jdagger, rates):
        if gamma:
            out += gamma * lindblad_dissipator(c, rho, cd)
    return out


def _diffusion(terms: StochasticTerms, rho: np.ndarray, dW: np.ndarray) -> np.ndarray:
    """Σ_m (c_m ρ + ρ c̃†_m) dW_m"""
    out = np.zeros_like(rho)
    for c, cd_shifted, dw in zip(terms.J, terms.Jdagger, dW):
        if dw:
            out += (c @ rho + rho @ cd_shifted) * dw
    return out


# =============================================================================
# MAIN LOOP
# =============================================================================

def _integrate(
    rho0: ArrayLike,
    tlist: Sequence[float],
    fdeterm,
    fstoch,
    dt: float,
    rng: Optional[np.random.Generator],
    trace_tolerance: float,
) -> Trajectory:
    rho = as_operator(rho0).copy()
    tlist, substeps = _check_grid(tlist, dt)
    fdeterm = as_supplier(fdeterm)
    fstoch = as_supplier(fstoch) if fstoch is not None else None

    # Shape and rate checks on the initial operators, before any stepping
    _deterministic_terms(fdeterm, tlist[0], rho)
    if fstoch is not None:
        _stochastic_terms(fstoch, tlist[0], rho)

    d = rho.shape[0]
    states = np.empty((tlist.size, d, d), dtype=np.complex128)
    states[0] = rho
    warned = abs(np.trace(rho).real - 1.0) > trace_tolerance
    if warned:
        warnings.warn(
            f"Initial state has trace {np.trace(rho).real:.6f}; the solvers "
            "preserve the trace but do not normalise it",
            RuntimeWarning,
            stacklevel=3,
        )

    with np.errstate(over="ignore", invalid="ignore"):
        for i in range(tlist.size - 1):
            # Step that lands exactly on tlist[i + 1]; equal to dt within rounding
            h = (tlist[i + 1] - tlist[i]) / substeps[i]
            for k in range(substeps[i]):
                t = tlist[i] + k * h
                drho = _drift(_deterministic_terms(fdeterm, t, rho), rho) * h
                if fstoch is not None:
                    sterms = _stochastic_terms(fstoch, t, rho)
                    dW = np.sqrt(sterms.rates * h) * rng.standard_normal(len(sterms.rates))
                    drho += _diffusion(sterms, rho, dW)
                rho = rho + drho
                rho = hermitize(rho)

                if not np.all(np.isfinite(rho)):
                    partial = Trajectory(tlist[: i + 1], states[: i + 1])
                    raise NumericalInstabilityError(
                        f"State became non-finite at t={t + h:.6g} "
                        f"(step {k + 1}/{substeps[i]} after t={tlist[i]:.6g}); "
                        f"reduce dt={dt}",
                        trajectory=partial,
                        time=t + h,
                    )
            states[i + 1] = rho

            if not warned:
                tr = np.trace(rho).real
                if abs(tr - 1.0) > trace_tolerance:
                    warned = True
                    warnings.warn(
                        f"Trace drifted to {tr:.6f} at t={tlist[i + 1]:.6g}; "
                        f"consider a smaller step than dt={dt}",
                        RuntimeWarning,
                        stacklevel=3,
                    )

    return Trajectory(tlist, states)


def mesolve(
    rho0: ArrayLike,
    tlist: Sequence[float],
    fdeterm,
    dt: float,
    trace_tolerance: float = 1e-3,
) -> Trajectory:
    """
    Integrate the Lindblad master equation with a fixed Euler step.

    This is the deterministic baseline: the same drift as ``smesolve`` with
    no measurement noise. It gives the ensemble-averaged (unconditioned)
    evolution.

    Parameters
    ----------
    rho0 : array-like
        Initial density matrix (d×d, Hermitian, unit trace)
    tlist : sequence of float
        Strictly increasing sampling times, at least two
    fdeterm : supplier
        ``f(t, rho) -> (H, J, Jdagger, rates)``, see ``terms.static_terms``
    dt : float
        Integration step. Must divide every spacing of ``tlist``.
    trace_tolerance : float
        A ``RuntimeWarning`` is issued once if a recorded trace leaves
        1 ± trace_tolerance.

    Returns
    -------
    Trajectory
        One state per entry of ``tlist``

    Raises
    ------
    DimensionError
        An operator does not match the shape of ``rho0``
    ConfigurationError
        Bad time grid, step size or rates
    NumericalInstabilityError
        NaN/Inf in the state; ``err.trajectory`` holds the states recorded
        before the failure
    """
    return _integrate(rho0, tlist, fdeterm, None, dt, None, trace_tolerance)


def smesolve(
    rho0: ArrayLike,
    tlist: Sequence[float],
    fdeterm,
    fstoch,
    dt: float,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    trace_tolerance: float = 1e-3,
) -> Trajectory:
    """
    Integrate one realisation of the stochastic master equation.

    Parameters
    ----------
    rho0 : array-like
        Initial density matrix (d×d, Hermitian, unit trace)
    tlist : sequence of float
        Strictly increasing sampling times, at least two
    fdeterm : supplier
        ``f(t, rho) -> (H, J, Jdagger, rates)`` for the drift
    fstoch : supplier
        ``f(t, rho) -> (Js, Jsdagger_shifted, rates_s)`` for the noise,
        see ``terms.homodyne_terms``
    dt : float
        Integration step. Must divide every spacing of ``tlist``.
    seed : int, optional
        Seed for a fresh ``numpy.random.default_rng``. Same seed, same
        inputs and same ``dt`` give bit-identical trajectories.
    rng : np.random.Generator, optional
        Generator to draw from instead of ``seed``. Advanced in place.
    trace_tolerance : float
        A ``RuntimeWarning`` is issued once if a recorded trace leaves
        1 ± trace_tolerance.

    Returns
    -------
    Trajectory
        One state per entry of ``tlist``

    Raises
    ------
    DimensionError, ConfigurationError, NumericalInstabilityError
        As for ``mesolve``
    """
    if rng is not None and seed is not None:
        raise ConfigurationError("Pass either seed or rng, not both")
    if rng is None:
        rng = np.random.default_rng(seed)
    return _integrate(rho0, tlist, fdeterm, fstoch, dt, rng, trace_tolerance)


def smesolve_ensemble(
    rho0: ArrayLike,
    tlist: Sequence[float],
    fdeterm,
    fstoch,
    dt: float,
    ntraj: int,
    seed: Optional[int] = None,
    trace_tolerance: float = 1e-3,
) -> List[Trajectory]:
    """
    Run ``ntraj`` independent SME realisations.

    Each trajectory draws from its own generator spawned from
    ``np.random.SeedSequence(seed)``, so results do not depend on the order
    in which trajectories are computed.
    """
    if ntraj < 1:
        raise ConfigurationError(f"ntraj must be at least 1, got {ntraj}")
    children = np.random.SeedSequence(seed).spawn(ntraj)
    return [
        smesolve(
            rho0, tlist, fdeterm, fstoch, dt,
            rng=np.random.default_rng(child),
            trace_tolerance=trace_tolerance,
        )
        for child in children
    ]
