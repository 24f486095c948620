"""
Cavity-Coupled Atomic Ensemble
==============================

Operators, initial state and suppliers for the Zeno demonstration model:
a collective spin (N two-level atoms) coupled dispersively to a leaky
cavity whose output is homodyne-detected.

Hilbert Space
-------------
    H_total = H_spin ⊗ H_cavity,   dim = (N + 1) · (n_photons + 1)

The spin factor uses the Dicke basis |j, m⟩ ordered m = j, j-1, …, -j
(QuTiP's ``jmat`` convention), so the "all atoms down" state |j, -j⟩ is
the LAST basis vector. The cavity factor is the truncated Fock basis.

QuTiP builds the composite operators (``jmat``, ``destroy``, ``tensor``);
everything is then converted to dense numpy arrays for the solvers.

Dynamics
--------
    H = Ω Jx + g (a + a†) Jz

    damping:      D[a] at rate κ,   D[J₋] at rate γ (if γ > 0)
    measurement:  H[e^{iφ} a] with dW of variance η κ dt

The cavity relaxes to a coherent state α ≈ -2i g ⟨Jz⟩ / κ, so with φ = π/2
the homodyne current ⟨c + c†⟩ = 4 g ⟨Jz⟩ / κ reads out Jz directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

# QuTiP imports (version 5 compatible)
try:
    from qutip import basis, destroy, jmat, qeye, tensor
except ImportError:
    raise ImportError(
        "QuTiP is required to build the cavity-ensemble model. "
        "Install with: pip install qutip"
    )

from .configurations import CavityEnsembleParameters
from .operators import as_operator, ket2dm
from .terms import Supplier, homodyne_terms, static_terms


# =============================================================================
# OPERATOR CONTAINER
# =============================================================================

@dataclass(frozen=True)
class CavityEnsembleOperators:
    """
    Dense operators on the full spin ⊗ cavity space.

    Attributes
    ----------
    H : np.ndarray
        System Hamiltonian Ω Jx + g (a + a†) Jz
    Jx, Jy, Jz, Jminus : np.ndarray
        Collective spin operators (identity on the cavity)
    a : np.ndarray
        Cavity annihilation operator (identity on the spin)
    measured : np.ndarray
        Homodyne-detected operator e^{iφ} a
    population : np.ndarray
        Projector onto |j, -j⟩ ⊗ 1_cavity, the population tracked to
        show the Zeno effect
    photon_number : np.ndarray
        a† a
    """
    H: np.ndarray
    Jx: np.ndarray
    Jy: np.ndarray
    Jz: np.ndarray
    Jminus: np.ndarray
    a: np.ndarray
    measured: np.ndarray
    population: np.ndarray
    photon_number: np.ndarray


def build_operators(params: CavityEnsembleParameters) -> CavityEnsembleOperators:
    """
    Build all model operators for ``params``.

    Parameters
    ----------
    params : CavityEnsembleParameters
        Physical parameters

    Returns
    -------
    CavityEnsembleOperators
        Dense ``complex128`` operators of dimension ``params.dimension``
    """
    j = params.spin
    n_spin = params.spin_dimension
    n_cav = params.cavity_dimension

    id_spin = qeye(n_spin)
    id_cav = qeye(n_cav)

    def on_spin(op):
        return as_operator(tensor(op, id_cav))

    Jx = on_spin(jmat(j, "x"))
    Jy = on_spin(jmat(j, "y"))
    Jz = on_spin(jmat(j, "z"))
    Jminus = on_spin(jmat(j, "-"))
    a = as_operator(tensor(id_spin, destroy(n_cav)))
    ad = a.conj().T

    H = params.omega * Jx + params.g * (a + ad) @ Jz

    down = basis(n_spin, n_spin - 1)
    population = on_spin(down * down.dag())

    return CavityEnsembleOperators(
        H=H,
        Jx=Jx,
        Jy=Jy,
        Jz=Jz,
        Jminus=Jminus,
        a=a,
        measured=np.exp(1j * params.homodyne_phase) * a,
        population=population,
        photon_number=ad @ a,
    )


def initial_state(params: CavityEnsembleParameters) -> np.ndarray:
    """All atoms down, cavity in vacuum: |j, -j⟩⟨j, -j| ⊗ |0⟩⟨0|."""
    n_spin = params.spin_dimension
    psi0 = tensor(basis(n_spin, n_spin - 1), basis(params.cavity_dimension, 0))
    return ket2dm(psi0)


# =============================================================================
# SUPPLIERS
# =============================================================================

def deterministic_supplier(
    params: CavityEnsembleParameters,
    ops: Optional[CavityEnsembleOperators] = None,
) -> Supplier:
    """
    Drift supplier: H, cavity loss D[a] at κ and, if γ > 0, collective
    decay D[J₋] at γ.
    """
    if ops is None:
        ops = build_operators(params)
    jumps = [ops.a]
    rates = [params.kappa]
    if params.gamma > 0:
        jumps.append(ops.Jminus)
        rates.append(params.gamma)
    return static_terms(ops.H, jumps, rates)


def stochastic_supplier(
    params: CavityEnsembleParameters,
    ops: Optional[CavityEnsembleOperators] = None,
) -> Supplier:
    """Homodyne back-action on e^{iφ} a with rate η κ."""
    if ops is None:
        ops = build_operators(params)
    return homodyne_terms([ops.measured], [params.detected_rate])
