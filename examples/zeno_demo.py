#!/usr/bin/env python3
"""
Quantum Zeno Demonstration
==========================

Runs the cavity-ensemble model in the three standard regimes and sweeps the
measurement strength Γ = 4g²/κ to show how continuous homodyne measurement
freezes the collective spin.

The window is half a Rabi period, t ∈ [0, π/Ω]: without measurement the
ensemble leaves |j, -j⟩ completely. Single measured trajectories make
sudden quantum jumps, so one realisation swings through the full range
just like the free evolution, only later. The suppression shows up in the
ensemble average, which is what figures 1 and 3 plot.

Generates:
1. Ensemble-averaged population P(t) of |j, -j⟩ for the no / low / high
   regimes, with the amplitude of each as a bar chart
2. Individual high-Zeno trajectories (quantum jumps)
3. Averaged amplitude vs Γ/Ω sweep
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path

# Import simulation components
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from zeno_simulator import (
    CavityEnsembleParameters,
    SolverSettings,
    build_operators,
    plot_amplitudes,
    plot_zeno_comparison,
    simulate_zeno_comparison,
    simulate_zeno_regime,
)


# Half a Rabi period, dt ≈ 1e-3
SETTINGS = SolverSettings(t_final=np.pi, n_points=41, substeps=75, seed=2024)
NTRAJ = 16


def run_measurement_sweep(g_values: np.ndarray, kappa: float = 20.0):
    """Amplitude of the ensemble-averaged population for every coupling g."""
    n = len(g_values)
    rates = 4 * g_values ** 2 / kappa
    amplitudes = np.zeros(n)
    final_population = np.zeros(n)

    children = np.random.SeedSequence(SETTINGS.seed).spawn(n)
    print(f"\nSweeping g ({n} points, {NTRAJ} trajectories each)...")

    for i, (g, child) in enumerate(zip(g_values, children)):
        params = CavityEnsembleParameters(g=g, kappa=kappa)
        result = simulate_zeno_regime(
            params, SETTINGS, label=f"g={g:.2f}", ntraj=NTRAJ,
            rng=np.random.default_rng(child),
        )
        amplitudes[i] = result.amplitude
        final_population[i] = result.population[-1]
        print(f"  [{i+1}/{n}] Γ/Ω = {rates[i]:.3f}: amplitude = {amplitudes[i]:.3f},"
              f" P(π) = {final_population[i]:.3f}")

    return rates, amplitudes, final_population


def plot_sweep(rates, amplitudes, final_population, output_path: Path):
    fig, ax = plt.subplots(figsize=(7, 4))
    ax.plot(rates, amplitudes, "o-", color="tab:purple", linewidth=1.5,
            label="amplitude of ⟨P⟩")
    ax.plot(rates, final_population, "s--", color="tab:green", linewidth=1.0,
            label="⟨P⟩ at t = π/Ω")
    ax.set_xscale("symlog", linthresh=0.1)
    ax.set_xlabel("Measurement strength Γ/Ω", fontsize=12)
    ax.set_ylabel("Population", fontsize=12)
    ax.set_ylim(-0.05, 1.05)
    ax.set_title("Zeno suppression vs measurement strength", fontsize=14)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best")
    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"  Saved: {output_path}")


def plot_high_zeno_trajectories(result, output_path: Path, n_show: int = 6):
    population = build_operators(result.params).population
    fig, ax = plt.subplots(figsize=(8, 4))
    for traj in result.trajectories[:n_show]:
        ax.plot(traj.times, traj.expect(population), color="tab:red", alpha=0.4, linewidth=1.0)
    ax.plot(result.times, result.population, color="black", linewidth=2.0,
            label=f"average of {len(result.trajectories)}")
    ax.set_xlabel("Time (1/Ω)", fontsize=12)
    ax.set_ylabel("Population of |j, -j⟩", fontsize=12)
    ax.set_ylim(-0.05, 1.05)
    ax.set_title("High Zeno regime: single trajectories jump", fontsize=14)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best")
    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"  Saved: {output_path}")


def main():
    """Run the regime comparison and the measurement sweep, save figures"""

    output_dir = Path(__file__).parent.parent / "figures" / "zeno"
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("Quantum Zeno Effect in a Cavity-Coupled Atomic Ensemble")
    print("=" * 60)

    # 1. Three regimes, ensemble averaged
    print("\n" + "=" * 40)
    print(f"1. Regime Comparison ({NTRAJ}-trajectory average)")
    print("=" * 40)
    results = simulate_zeno_comparison(settings=SETTINGS, ntraj=NTRAJ, verbose=True)

    fig, axes = plt.subplots(1, 2, figsize=(14, 5), gridspec_kw={"width_ratios": [2, 1]})
    plot_zeno_comparison(results, ax=axes[0],
                         title=f"Quantum Zeno effect ({NTRAJ}-trajectory average)")
    plot_amplitudes(results, ax=axes[1])
    plt.tight_layout()
    output_path = output_dir / "01_regime_comparison.png"
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"  Saved: {output_path}")

    # 2. What the average is made of
    print("\n" + "=" * 40)
    print("2. High Zeno Trajectories")
    print("=" * 40)
    plot_high_zeno_trajectories(results["high"], output_dir / "02_high_zeno_trajectories.png")

    # 3. Measurement strength sweep
    print("\n" + "=" * 40)
    print("3. Measurement Strength Sweep")
    print("=" * 40)
    g_values = np.array([0.0, 0.5, 1.0, 1.58, 2.5, 4.0, 5.5, 7.07, 10.0])
    rates, amplitudes, final_population = run_measurement_sweep(g_values)
    plot_sweep(rates, amplitudes, final_population, output_dir / "03_measurement_sweep.png")

    print("\n" + "=" * 60)
    print("All figures saved to:", output_dir)
    print("=" * 60)


if __name__ == "__main__":
    main()
