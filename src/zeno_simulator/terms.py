"""
Operator Suppliers
==================

The solvers do not receive operators directly. They receive *suppliers*:
callables that are asked, at every sub-step, for the operators to use given
the current time and state.

    fdeterm(t, ρ) -> DeterministicTerms(H, J, Jdagger, rates)
    fstoch(t, ρ)  -> StochasticTerms(J, Jdagger, rates)

A supplier may be a plain function (or closure), or any object exposing an
``evaluate(t, rho)`` method. Plain tuples in the same field order are
accepted as return values, so existing ``(H, J, Jdagger, rates)`` style
functions plug straight in.

Why a supplier for the stochastic part?
---------------------------------------
Homodyne back-action is H[c]ρ = c ρ + ρ c† - ⟨c + c†⟩ ρ. The last piece
depends on the current state, so it cannot be precomputed. The stochastic
supplier folds it into the adjoint it returns:

    c̃† = c† - ⟨c + c†⟩ · 1     ⟹     c ρ + ρ c̃† = H[c]ρ

The expectation is taken on the state at the start of the sub-step. That is
the usual Euler approximation for a quantity that really depends on the
noise path within the step, and it is kept as is.
"""

from __future__ import annotations

from typing import Callable, NamedTuple, Optional, Sequence, Union

import numpy as np

from .exceptions import ConfigurationError, DimensionError
from .operators import ArrayLike, as_operator, dag, expect


# =============================================================================
# OPERATOR SETS
# =============================================================================

class DeterministicTerms(NamedTuple):
    """
    Operators for the drift -i[H, ρ] + Σ_n γ_n D[J_n]ρ.

    Attributes
    ----------
    H : np.ndarray
        Hamiltonian (d×d, Hermitian)
    J : Sequence[np.ndarray]
        Jump operators
    Jdagger : Sequence[np.ndarray]
        Their adjoints, in the same order
    rates : np.ndarray
        Non-negative rate γ_n for each jump operator
    """
    H: np.ndarray
    J: Sequence[np.ndarray]
    Jdagger: Sequence[np.ndarray]
    rates: np.ndarray


class StochasticTerms(NamedTuple):
    """
    Operators for the diffusion Σ_m (J_m ρ + ρ Jdagger_m) dW_m.

    ``Jdagger`` holds the *shifted* adjoints c† - ⟨c + c†⟩·1, and each
    Wiener increment has variance ``rates[m] * dt``.
    """
    J: Sequence[np.ndarray]
    Jdagger: Sequence[np.ndarray]
    rates: np.ndarray


Supplier = Callable[[float, np.ndarray], tuple]


def as_supplier(supplier) -> Supplier:
    """
    Return a plain ``f(t, rho)`` callable for ``supplier``.

    Objects with an ``evaluate`` method are unwrapped to that bound method,
    plain callables are returned unchanged.
    """
    evaluate = getattr(supplier, "evaluate", None)
    if callable(evaluate):
        return evaluate
    if callable(supplier):
        return supplier
    raise ConfigurationError(
        f"Supplier must be callable or expose evaluate(t, rho), got {type(supplier).__name__}"
    )


def _rates_vector(rates: Optional[Union[float, Sequence[float]]], n_ops: int) -> np.ndarray:
    """Broadcast ``rates`` to one non-negative float per operator."""
    if rates is None:
        vec = np.ones(n_ops)
    else:
        vec = np.atleast_1d(np.asarray(rates, dtype=float))
        if vec.size == 1 and n_ops != 1:
            vec = np.full(n_ops, vec[0])
    if vec.shape != (n_ops,):
        raise ConfigurationError(
            f"Got {vec.size} rates for {n_ops} operators"
        )
    if np.any(vec < 0) or not np.all(np.isfinite(vec)):
        raise ConfigurationError(f"Rates must be finite and non-negative, got {vec}")
    return vec


# =============================================================================
# SUPPLIER FACTORIES
# =============================================================================

def static_terms(
    H: ArrayLike,
    J: Sequence[ArrayLike] = (),
    rates: Optional[Union[float, Sequence[float]]] = None,
) -> Supplier:
    """
    Deterministic supplier with a constant Hamiltonian and jump operators.

    Parameters
    ----------
    H : array-like
        Hamiltonian
    J : sequence of array-like
        Jump operators (may be empty for closed evolution)
    rates : float or sequence, optional
        Rate for each jump operator. Defaults to 1 for all.

    Returns
    -------
    Supplier
        ``f(t, rho) -> DeterministicTerms``, ignoring both arguments
    """
    H = as_operator(H)
    J = [as_operator(c) for c in J]
    terms = DeterministicTerms(H, J, [dag(c) for c in J], _rates_vector(rates, len(J)))

    def fdeterm(t, rho):
        return terms

    return fdeterm


def dynamic_terms(
    H_func: Callable[[float], ArrayLike],
    J: Sequence[ArrayLike] = (),
    rates: Optional[Union[float, Sequence[float]]] = None,
) -> Supplier:
    """
    Deterministic supplier with a time-dependent Hamiltonian ``H_func(t)``.

    Jump operators and rates stay constant.
    """
    J = [as_operator(c) for c in J]
    Jdagger = [dag(c) for c in J]
    rate_vec = _rates_vector(rates, len(J))

    def fdeterm(t, rho):
        return DeterministicTerms(as_operator(H_func(t)), J, Jdagger, rate_vec)

    return fdeterm


def homodyne_terms(
    C: Sequence[ArrayLike],
    rates: Optional[Union[float, Sequence[float]]] = None,
) -> Supplier:
    """
    Stochastic supplier for homodyne detection of the operators ``C``.

    At each call the adjoints are shifted by the current ⟨c + c†⟩ so the
    solver's c ρ + ρ c̃† equals H[c]ρ.

    Parameters
    ----------
    C : sequence of array-like
        Measured operators, e.g. exp(iφ)·a for a cavity mode
    rates : float or sequence, optional
        Measurement rate for each operator (variance of dW per unit time).
        Defaults to 1 for all.

    Notes
    -----
    For an unconditioned description the same operators must also appear
    in the deterministic damping set with matching rates; the stochastic
    term alone only adds the conditioning.
    """
    C = [as_operator(c) for c in C]
    shapes = {c.shape for c in C}
    if len(shapes) > 1:
        raise DimensionError(f"Measured operators have mixed shapes: {sorted(shapes)}")
    Cdagger = [dag(c) for c in C]
    rate_vec = _rates_vector(rates, len(C))
    identity = np.eye(C[0].shape[0], dtype=np.complex128) if C else None

    def fstoch(t, rho):
        if C and rho.shape != C[0].shape:
            raise DimensionError(
                f"Measured operator shape {C[0].shape} does not match state shape {rho.shape}"
            )
        shifted = [
            cd - expect(c + cd, rho).real * identity
            for c, cd in zip(C, Cdagger)
        ]
        return StochasticTerms(C, shifted, rate_vec)

    return fstoch
