"""
Zeno Visualization Tools
========================

Plots for the regime comparison produced by ``simulate_zeno_comparison``.

Key Functions
-------------
- plot_population(): tracked population P(t) for one regime
- plot_zeno_comparison(): P(t) for every regime on shared axes
- plot_amplitudes(): bar chart of oscillation amplitude vs measurement rate
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import matplotlib.pyplot as plt

from .simulation import ZenoResult


# Fixed colours so the regimes look the same across figures
REGIME_COLORS = {
    "no": "black",
    "low": "tab:blue",
    "high": "tab:red",
}


def plot_population(
    result: ZenoResult,
    ax: Optional[plt.Axes] = None,
    show_jz: bool = False,
    figsize: Tuple[float, float] = (8, 4),
) -> plt.Axes:
    """
    Plot the tracked population of a single regime.

    Parameters
    ----------
    result : ZenoResult
        Output of ``simulate_zeno_regime``
    ax : plt.Axes, optional
        Axes to plot on. If None, creates new figure.
    show_jz : bool
        Also plot ⟨Jz⟩/j on the same axes
    figsize : tuple
        Figure size when a new figure is created

    Returns
    -------
    plt.Axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    color = REGIME_COLORS.get(result.label)
    ax.plot(result.times, result.population, color=color, linewidth=1.5,
            label=f"{result.label} (Γ/Ω = {result.params.measurement_over_omega:.2f})")
    if show_jz:
        ax.plot(result.times, result.jz / result.params.spin, color=color,
                linestyle="--", linewidth=1.0, label=f"{result.label}: ⟨Jz⟩/j")

    ax.set_xlabel("Time (1/Ω)", fontsize=12)
    ax.set_ylabel("Population of |j, -j⟩", fontsize=12)
    ax.set_ylim(-0.05, 1.05)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best")
    return ax


def plot_zeno_comparison(
    results: Dict[str, ZenoResult],
    ax: Optional[plt.Axes] = None,
    title: Optional[str] = None,
    figsize: Tuple[float, float] = (10, 5),
) -> plt.Axes:
    """
    Overlay the tracked population of every regime.

    Parameters
    ----------
    results : dict
        Label -> ZenoResult, as returned by ``simulate_zeno_comparison``
    ax : plt.Axes, optional
        Axes to plot on. If None, creates new figure.
    title : str, optional
        Plot title. Defaults to "Quantum Zeno effect".
    figsize : tuple
        Figure size when a new figure is created

    Returns
    -------
    plt.Axes
    """
    if not results:
        print("No results to plot!")
        return None

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    for result in results.values():
        plot_population(result, ax=ax)

    ax.set_title(title or "Quantum Zeno effect", fontsize=14)
    return ax


def plot_amplitudes(
    results: Dict[str, ZenoResult],
    ax: Optional[plt.Axes] = None,
    figsize: Tuple[float, float] = (6, 4),
) -> plt.Axes:
    """Bar chart of peak-to-trough amplitude, one bar per regime."""
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    labels = list(results)
    amplitudes = [results[label].amplitude for label in labels]
    colors = [REGIME_COLORS.get(label, "tab:gray") for label in labels]
    ax.bar(labels, amplitudes, color=colors)
    ax.set_ylabel("Oscillation amplitude", fontsize=12)
    ax.set_ylim(0, 1.05)
    return ax
