"""
Simulation Errors
=================

Exception types raised by the master equation solvers.

All of them derive from ``ZenoSimulatorError`` so callers can catch every
simulator failure in one place, and from the matching builtin type so that
code written against plain ``ValueError`` keeps working.

Error Kinds
-----------
- DimensionError: an operator does not match the state dimension.
  Raised before any time step is taken.
- ConfigurationError: invalid time grid, step size, rates or parameters.
  Raised before any time step is taken.
- NumericalInstabilityError: NaN or Inf appeared in the state mid-run.
  The trajectory recorded up to the failure travels with the exception.

There are no retries. Instability is a property of the chosen parameters
and step size, so the caller must pick a smaller ``dt`` and run again.
"""

from __future__ import annotations

from typing import Optional


class ZenoSimulatorError(Exception):
    """Base class for all simulator errors."""


class DimensionError(ZenoSimulatorError, ValueError):
    """Operator and state dimensions disagree."""


class ConfigurationError(ZenoSimulatorError, ValueError):
    """Invalid time grid, step size, rates or model parameters."""


class NumericalInstabilityError(ZenoSimulatorError, ArithmeticError):
    """
    NaN or Inf detected in the state after an integration step.

    Attributes
    ----------
    trajectory : Trajectory or None
        States recorded at the grid points reached before the failure.
    time : float or None
        Time at the end of the sub-step that produced the bad state.
    """

    def __init__(self, message: str, trajectory=None, time: Optional[float] = None):
        super().__init__(message)
        self.trajectory = trajectory
        self.time = time
