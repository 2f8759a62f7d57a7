"""
===========================================================
figures.py
Author: Veronica Scerra
Last Updated: 2026-10-19
===========================================================
Visualization functions for sweep and sensitivity results.

Every plot takes a tidy DataFrame (one row per run, or the
long frames from sensitivity.py) and maps columns onto axes,
hue and facets. Functions return the Axes or Figure and only
call plt.show() when show=True.
"""
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from typing import Dict, Optional, Sequence
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from ..experiments import pivot_for_plot

COMPARTMENT_COLORS = {
    'S': '#1f77b4',  # Blue
    'E': '#ff7f0e',  # Orange
    'I': '#d62728',  # Red
    'R': '#2ca02c',  # Green
}


def _label(name: str) -> str:
    return name.replace("_", " ").title() if len(name) > 5 else name


def _finish(fig: Figure, save_path: Optional[str], show: bool):
    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')
        print(f"Figure saved to {save_path}")
    if show:
        plt.show()


def plot_trajectories(outputs: Dict[str, np.ndarray],
                      as_fraction: bool = True,
                      ax: Optional[Axes] = None,
                      title: Optional[str] = None,
                      save_path: Optional[str] = None,
                      show: bool = False) -> Axes:
    """
    Plot compartments of one simulation over time.

    Parameters
    ----------
    outputs : dict
        Result of SEIRModel.simulate / SEmIRModel.simulate
    as_fraction : bool
        Divide by the initial population size
    ax : matplotlib.axes.Axes, optional
        Axes to plot on. If None, creates new figure

    Returns
    -------
    ax : matplotlib.axes.Axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 6))
    t = outputs["t"]
    N0 = outputs["S"][0] + outputs["E"][0] + outputs["I"][0] + outputs["R"][0]
    scale = N0 if as_fraction else 1.0
    for comp, color in COMPARTMENT_COLORS.items():
        ax.plot(t, outputs[comp] / scale, color=color, linewidth=2, label=comp)
    ax.set_xlabel('Time (days)', fontsize=12)
    ax.set_ylabel('Fraction of population' if as_fraction else 'Number of individuals', fontsize=12)
    ax.set_title(title or 'Compartment dynamics', fontsize=14)
    ax.legend(fontsize=11)
    ax.grid(True, alpha=0.3)
    _finish(ax.figure, save_path, show)
    return ax


def plot_trajectory_bundle(traj: pd.DataFrame, hue: Optional[str] = None,
                           ax: Optional[Axes] = None,
                           save_path: Optional[str] = None,
                           show: bool = False) -> Axes:
    """Overlay infected-fraction curves from peak_fraction_trajectories(), optionally coloured by a parameter."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 6))
    sns.lineplot(data=traj, x="t", y="I_frac", units="run_id", estimator=None,
                 hue=hue, linewidth=0.8, alpha=0.6, legend="auto" if hue else False, ax=ax)
    ax.set_xlabel('Time (days)', fontsize=12)
    ax.set_ylabel('Infected fraction', fontsize=12)
    _finish(ax.figure, save_path, show)
    return ax


def plot_peak_scatter(df: pd.DataFrame,
                      inputs: Sequence[str],
                      output: str = "peak_prevalence",
                      hue: Optional[str] = None,
                      col_wrap: int = 3,
                      save_path: Optional[str] = None,
                      show: bool = False) -> Figure:
    """One facet per input parameter: output against the parameter's sampled value."""
    data = df
    hue_col = hue
    if hue is not None and hue in inputs:
        # melting removes the input columns, so colour by a copy
        hue_col = f"{hue}_hue"
        data = df.assign(**{hue_col: df[hue]})
    long = data.melt(id_vars=[c for c in data.columns if c not in inputs],
                     value_vars=list(inputs), var_name="parameter", value_name="value")
    g = sns.relplot(data=long, x="value", y=output, col="parameter", hue=hue_col,
                    col_wrap=min(col_wrap, len(inputs)), kind="scatter",
                    facet_kws={"sharex": False}, s=15, alpha=0.7, height=3.2)
    g.set_axis_labels("Parameter value", _label(output))
    g.set_titles("{col_name}")
    if hue_col != hue and g.legend is not None:
        g.legend.set_title(hue)
    _finish(g.figure, save_path, show)
    return g.figure


def plot_heatmap(df: pd.DataFrame, x: str, y: str, value: str = "peak_prevalence",
                 ax: Optional[Axes] = None, title: Optional[str] = None,
                 save_path: Optional[str] = None, show: bool = False) -> Axes:
    """Heatmap of a summary metric over a complete 2D grid"""
    X, Y, Z = pivot_for_plot(df, x=x, y=y, value=value)
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))
    # imshow expects [rows, cols] -> (y, x)
    extent = [X.min(), X.max(), Y.min(), Y.max()]
    im = ax.imshow(Z, origin='lower', aspect='auto', extent=extent)
    cbar = ax.figure.colorbar(im, ax=ax)
    cbar.set_label(_label(value))
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    if title:
        ax.set_title(title)
    _finish(ax.figure, save_path, show)
    return ax


def plot_contour(df: pd.DataFrame, x: str, y: str, value: str = "peak_prevalence",
                 levels=10, ax: Optional[Axes] = None, title: Optional[str] = None,
                 save_path: Optional[str] = None, show: bool = False) -> Axes:
    """Plot contour lines of a summary statistic"""
    X, Y, Z = pivot_for_plot(df, x=x, y=y, value=value)
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))
    CS = ax.contour(X, Y, Z, levels=levels)
    ax.clabel(CS, inline=True, fontsize=8)
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    if title:
        ax.set_title(title)
    _finish(ax.figure, save_path, show)
    return ax


def plot_prcc(prcc_df: pd.DataFrame, alpha: float = 0.05, ax: Optional[Axes] = None,
              save_path: Optional[str] = None, show: bool = False) -> Axes:
    """Horizontal bars of PRCC per parameter; bars with p >= alpha are drawn faded."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(7, 0.6 * len(prcc_df) + 1.5))
    colors = ['#d62728' if v > 0 else '#1f77b4' for v in prcc_df["prcc"]]
    bars = ax.barh(prcc_df["parameter"], prcc_df["prcc"], color=colors)
    for bar, p in zip(bars, prcc_df["p_value"]):
        if not p < alpha:
            bar.set_alpha(0.35)
    ax.axvline(0, color='black', linewidth=0.8)
    ax.set_xlim(-1, 1)
    ax.set_xlabel('PRCC', fontsize=12)
    ax.invert_yaxis()
    ax.grid(True, axis='x', alpha=0.3)
    _finish(ax.figure, save_path, show)
    return ax


def plot_sobol(indices: pd.DataFrame, ax: Optional[Axes] = None,
               save_path: Optional[str] = None, show: bool = False) -> Axes:
    """Grouped bars of first-order and total Sobol indices with confidence whiskers."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 5))
    x = np.arange(len(indices))
    width = 0.38
    ax.bar(x - width / 2, indices["S1"], width, yerr=indices["S1_conf"], capsize=4, label='First order (S1)')
    ax.bar(x + width / 2, indices["ST"], width, yerr=indices["ST_conf"], capsize=4, label='Total (ST)')
    ax.set_xticks(x)
    ax.set_xticklabels(indices["parameter"])
    ax.set_ylabel('Sobol index', fontsize=12)
    ax.legend()
    ax.grid(True, axis='y', alpha=0.3)
    _finish(ax.figure, save_path, show)
    return ax


def plot_oat(oat_df: pd.DataFrame, output: str = "peak_prevalence",
             save_path: Optional[str] = None, show: bool = False) -> Figure:
    """One panel per parameter, each showing the output along that parameter's range."""
    g = sns.relplot(data=oat_df, x="value", y=output, col="parameter", kind="line",
                    marker="o", facet_kws={"sharex": False}, height=3.2)
    g.set_axis_labels("Parameter value", _label(output))
    g.set_titles("{col_name}")
    _finish(g.figure, save_path, show)
    return g.figure
