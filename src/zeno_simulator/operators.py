"""
Dense Operator Primitives
=========================

Linear-algebra building blocks used by the master equation solvers.

Every operator and density matrix is a plain ``complex128`` numpy array of
shape (d, d). There is no basis bookkeeping: composite spaces are built with
Kronecker products, and the dimension of an array is the only thing checked.

Superoperators
--------------
The two generators that drive a continuously monitored open system are

    D[c]ρ = c ρ c† - ½ (c†c ρ + ρ c†c)         (Lindblad dissipator)

    H[c]ρ = c ρ + ρ c† - ⟨c + c†⟩ ρ            (measurement back-action)

D[c] is trace-preserving and describes the average (unconditioned) loss of
information to the environment. H[c] is the innovation term of homodyne
detection; its ⟨c + c†⟩ ρ subtraction keeps the trace fixed at first order.

References
----------
- Wiseman & Milburn, "Quantum Measurement and Control" (CUP, 2010), Ch. 4
- Jacobs & Steck, Contemp. Phys. 47, 279 (2006)
"""

from __future__ import annotations

from functools import reduce
from typing import Any, Optional

import numpy as np
from scipy.linalg import expm

from .exceptions import DimensionError


# ndarray, nested list or qutip.Qobj
ArrayLike = Any


# =============================================================================
# CONVERSION
# =============================================================================

def as_operator(op: ArrayLike) -> np.ndarray:
    """
    Convert ``op`` to a square ``complex128`` array.

    Accepts numpy arrays, nested lists and anything with a ``full()``
    method (QuTiP ``Qobj``).

    Raises
    ------
    DimensionError
        If the result is not a square 2D matrix.
    """
    if hasattr(op, "full"):
        op = op.full()
    arr = np.asarray(op, dtype=np.complex128)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise DimensionError(f"Expected a square matrix, got shape {arr.shape}")
    return arr


# =============================================================================
# BASIC ALGEBRA
# =============================================================================

def dag(op: np.ndarray) -> np.ndarray:
    """Conjugate transpose."""
    return op.conj().T


def commutator(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """[A, B] = AB - BA"""
    return a @ b - b @ a


def anticommutator(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """{A, B} = AB + BA"""
    return a @ b + b @ a


def trace(rho: np.ndarray) -> complex:
    return complex(np.trace(rho))


def expect(op: np.ndarray, rho: np.ndarray) -> complex:
    """
    Expectation value ⟨O⟩ = Tr(O ρ).

    Returned as a complex number; take ``.real`` for Hermitian ``op``.
    """
    # Tr(AB) without forming the product
    return complex(np.einsum("ij,ji->", op, rho))


def kron(*ops: np.ndarray) -> np.ndarray:
    """
    Kronecker product of any number of operators.

    ``kron(A, B, C)`` acts as A on the first factor, B on the second and
    C on the third, matching the ordering of ``qutip.tensor``.
    """
    if not ops:
        raise DimensionError("kron() needs at least one operator")
    return reduce(np.kron, (np.asarray(op, dtype=np.complex128) for op in ops))


def hermitize(rho: np.ndarray) -> np.ndarray:
    """(ρ + ρ†)/2, removes the anti-Hermitian part left by round-off."""
    return 0.5 * (rho + dag(rho))


def ket2dm(psi: ArrayLike) -> np.ndarray:
    """Density matrix |ψ⟩⟨ψ| for a (not necessarily normalised) ket."""
    if hasattr(psi, "full"):
        psi = psi.full()
    vec = np.asarray(psi, dtype=np.complex128).reshape(-1, 1)
    norm = np.vdot(vec, vec).real
    if norm == 0:
        raise ValueError("Cannot build a density matrix from a zero vector")
    return (vec @ vec.conj().T) / norm


# =============================================================================
# SUPEROPERATORS
# =============================================================================

def lindblad_dissipator(
    c: np.ndarray,
    rho: np.ndarray,
    cd: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Lindblad dissipator D[c]ρ = c ρ c† - ½ (c†c ρ + ρ c†c).

    Parameters
    ----------
    c : np.ndarray
        Jump operator
    rho : np.ndarray
        Density matrix
    cd : np.ndarray, optional
        Precomputed c†, computed here if omitted

    Returns
    -------
    np.ndarray
        D[c]ρ, a traceless Hermitian matrix for Hermitian ρ
    """
    if cd is None:
        cd = dag(c)
    cdc = cd @ c
    return c @ rho @ cd - 0.5 * (cdc @ rho + rho @ cdc)


def measurement_superoperator(c: np.ndarray, rho: np.ndarray) -> np.ndarray:
    """
    Homodyne back-action H[c]ρ = c ρ + ρ c† - ⟨c + c†⟩ ρ.

    The solvers never call this directly: they receive the shifted adjoint
    c† - ⟨c + c†⟩·1 from the stochastic supplier and evaluate c ρ + ρ c̃†,
    which is the same quantity. It is kept here as the reference form.
    """
    cd = dag(c)
    return c @ rho + rho @ cd - expect(c + cd, rho).real * rho


# =============================================================================
# CHECKS AND REFERENCES
# =============================================================================

def is_hermitian(op: np.ndarray, atol: float = 1e-10) -> bool:
    return bool(np.allclose(op, dag(op), atol=atol, rtol=0.0))


def is_density_matrix(rho: np.ndarray, atol: float = 1e-8) -> bool:
    """
    Check the three density matrix conditions up to ``atol``:
    Hermitian, unit trace, no eigenvalue below -atol.
    """
    if not is_hermitian(rho, atol=atol):
        return False
    if abs(trace(rho) - 1.0) > atol:
        return False
    return bool(np.linalg.eigvalsh(hermitize(rho)).min() >= -atol)


def unitary_evolution(H: ArrayLike, rho0: ArrayLike, t: float) -> np.ndarray:
    """
    Exact closed-system evolution ρ(t) = exp(-iHt) ρ₀ exp(iHt).

    Used as the reference against which the Euler solvers are checked when
    every rate is zero.
    """
    H = as_operator(H)
    rho0 = as_operator(rho0)
    if H.shape != rho0.shape:
        raise DimensionError(
            f"Hamiltonian shape {H.shape} does not match state shape {rho0.shape}"
        )
    U = expm(-1j * H * t)
    return U @ rho0 @ dag(U)
