"""
Configuration Dataclasses for Zeno Simulations
==============================================

This module groups the physical and numerical parameters of a Zeno
simulation into immutable dataclasses. They are passed explicitly into the
model builders and solvers; nothing here is a module-level global.

THE PHYSICAL SETUP
------------------

An ensemble of N two-level atoms sits in an optical cavity. The atoms are
described by a collective spin of length j = N/2, so the ensemble lives in
an (N+1)-dimensional space instead of 2ᴺ.

    H = Ω Jx + g (a + a†) Jz

- Ω Jx is a resonant drive that Rabi-rotates the collective spin.
- g (a + a†) Jz displaces the cavity field by an amount that depends on Jz.
  The leaking field therefore carries information about Jz.

The cavity decays at rate κ and its output is homodyne-detected (phase
quadrature) with efficiency η. In the bad-cavity limit (κ ≫ g) the cavity
can be eliminated, leaving a continuous measurement of Jz with strength

    Γ_meas = 4 g² / κ

THE THREE REGIMES
-----------------

- **no Zeno** (g = 0): nothing is learned about Jz, the spin Rabi-oscillates
  freely.
- **low Zeno** (Γ_meas ≪ Ω): weak measurement only slightly perturbs the
  oscillation.
- **high Zeno** (Γ_meas ≫ Ω): strong measurement pins the spin near its
  initial Jz eigenstate; the oscillation is suppressed and transitions
  happen only at the slow rate ~ Ω²/Γ_meas.

PRESET CONFIGURATIONS
---------------------

- `no_zeno_parameters()`
- `low_zeno_parameters()`
- `high_zeno_parameters()`
- `default_solver_settings()`

Units: all rates and frequencies are in units of the drive Ω = 1 unless
overridden, and times in units of 1/Ω.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from .exceptions import ConfigurationError


# =============================================================================
# PHYSICAL PARAMETERS
# =============================================================================

@dataclass(frozen=True)
class CavityEnsembleParameters:
    """
    Physical parameters of the atom-ensemble + cavity system.

    Attributes
    ----------
    n_atoms : int
        Number of two-level atoms. Sets the collective spin j = n_atoms/2.

    n_photons : int
        Fock-space cutoff for the cavity mode (states |0⟩ … |n_photons⟩).
        Must be large enough to hold the Jz-dependent displacement
        |α| ≈ 2 g j / κ with a few photons to spare.

    omega : float
        Rabi drive strength Ω on the collective spin.

    g : float
        Dispersive atom-cavity coupling. g = 0 switches the measurement off.

    kappa : float
        Cavity field decay rate κ. Also the rate at which the output field
        is homodyne-detected before the efficiency cut.

    gamma : float
        Collective spontaneous decay rate (J₋ jump operator). 0 disables it.

    efficiency : float
        Homodyne detection efficiency η in [0, 1]. The stochastic term
        uses rate η κ while the dissipator always uses κ.

    homodyne_phase : float
        Local oscillator phase φ; the measured operator is exp(iφ)·a.
        φ = π/2 picks the quadrature that carries Jz.

    Example
    -------
    >>> params = CavityEnsembleParameters(n_atoms=2, g=7.0, kappa=20.0)
    >>> params.measurement_rate
    9.8
    """
    n_atoms: int = 2
    n_photons: int = 5
    omega: float = 1.0
    g: float = 1.58
    kappa: float = 20.0
    gamma: float = 0.0
    efficiency: float = 1.0
    homodyne_phase: float = np.pi / 2

    def __post_init__(self):
        if int(self.n_atoms) != self.n_atoms or self.n_atoms < 1:
            raise ConfigurationError(f"n_atoms must be a positive integer, got {self.n_atoms}")
        if int(self.n_photons) != self.n_photons or self.n_photons < 1:
            raise ConfigurationError(f"n_photons must be a positive integer, got {self.n_photons}")
        for name in ("omega", "g", "kappa", "gamma", "homodyne_phase"):
            value = getattr(self, name)
            if not np.isfinite(value):
                raise ConfigurationError(f"{name} must be finite, got {value}")
        if self.kappa <= 0:
            raise ConfigurationError(f"kappa must be positive, got {self.kappa}")
        if self.gamma < 0:
            raise ConfigurationError(f"gamma must be non-negative, got {self.gamma}")
        if not 0.0 <= self.efficiency <= 1.0:
            raise ConfigurationError(f"efficiency must lie in [0, 1], got {self.efficiency}")

    @property
    def spin(self) -> float:
        """Collective spin length j = N/2."""
        return self.n_atoms / 2

    @property
    def spin_dimension(self) -> int:
        return self.n_atoms + 1

    @property
    def cavity_dimension(self) -> int:
        return self.n_photons + 1

    @property
    def dimension(self) -> int:
        """Total Hilbert space dimension (spin ⊗ cavity)."""
        return self.spin_dimension * self.cavity_dimension

    @property
    def measurement_rate(self) -> float:
        """Bad-cavity Jz measurement strength Γ_meas = 4 g² / κ."""
        return 4 * self.g ** 2 / self.kappa

    @property
    def detected_rate(self) -> float:
        """Rate η κ used for the Wiener increments."""
        return self.efficiency * self.kappa

    @property
    def measurement_over_omega(self) -> float:
        """Γ_meas / Ω, infinite for an undriven ensemble (Ω = 0)."""
        if self.omega == 0:
            return np.inf
        return self.measurement_rate / self.omega

    def summary(self) -> Dict[str, float]:
        return {
            "n_atoms": self.n_atoms,
            "n_photons": self.n_photons,
            "omega": self.omega,
            "g": self.g,
            "kappa": self.kappa,
            "gamma": self.gamma,
            "efficiency": self.efficiency,
            "measurement_rate": self.measurement_rate,
            "measurement_over_omega": self.measurement_over_omega,
        }


# =============================================================================
# NUMERICAL PARAMETERS
# =============================================================================

@dataclass(frozen=True)
class SolverSettings:
    """
    Time grid and step size for a run.

    The output grid is ``n_points`` equally spaced times on [0, t_final].
    Each interval is split into ``substeps`` Euler steps, so the step size
    dt = t_final / ((n_points - 1) · substeps) divides the grid spacing
    exactly.

    Attributes
    ----------
    t_final : float
        End time (units of 1/Ω)
    n_points : int
        Number of sampled times, including t = 0
    substeps : int
        Euler steps per sampling interval
    seed : int, optional
        Root seed for the noise. None draws fresh entropy.
    """
    t_final: float = 10.0
    n_points: int = 201
    substeps: int = 50
    seed: Optional[int] = None

    def __post_init__(self):
        if not np.isfinite(self.t_final) or self.t_final <= 0:
            raise ConfigurationError(f"t_final must be positive, got {self.t_final}")
        if int(self.n_points) != self.n_points or self.n_points < 2:
            raise ConfigurationError(f"n_points must be an integer >= 2, got {self.n_points}")
        if int(self.substeps) != self.substeps or self.substeps < 1:
            raise ConfigurationError(f"substeps must be a positive integer, got {self.substeps}")

    @property
    def tlist(self) -> np.ndarray:
        return np.linspace(0.0, self.t_final, int(self.n_points))

    @property
    def dt(self) -> float:
        return self.t_final / ((self.n_points - 1) * self.substeps)


# =============================================================================
# PRESETS
# =============================================================================

def no_zeno_parameters(**overrides) -> CavityEnsembleParameters:
    """Cavity decoupled (g = 0): free Rabi oscillation."""
    values = dict(g=0.0)
    values.update(overrides)
    return CavityEnsembleParameters(**values)


def low_zeno_parameters(**overrides) -> CavityEnsembleParameters:
    """Weak measurement, Γ_meas ≈ 0.5 Ω."""
    values = dict(g=1.58, kappa=20.0)
    values.update(overrides)
    return CavityEnsembleParameters(**values)


def high_zeno_parameters(**overrides) -> CavityEnsembleParameters:
    """Strong measurement, Γ_meas ≈ 10 Ω."""
    values = dict(g=7.07, kappa=20.0)
    values.update(overrides)
    return CavityEnsembleParameters(**values)


def default_regimes() -> Dict[str, CavityEnsembleParameters]:
    """The three regimes compared in the Zeno demonstration."""
    return {
        "low": low_zeno_parameters(),
        "high": high_zeno_parameters(),
        "no": no_zeno_parameters(),
    }


def default_solver_settings(**overrides) -> SolverSettings:
    """t ∈ [0, 10], 201 samples, dt = 0.001."""
    values = dict(t_final=10.0, n_points=201, substeps=50)
    values.update(overrides)
    return SolverSettings(**values)
