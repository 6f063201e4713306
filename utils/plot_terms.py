import argparse
import logging
import os

import matplotlib.pyplot as plt
import numpy as np

from flc.config import load_engine
from flc.operation import is_finite

plot_log = logging.getLogger("main")


def _grid(variable, points, fallback=(-1.0, 1.0)):
    lower, upper = variable.minimum, variable.maximum
    if not (is_finite(lower) and is_finite(upper)):
        lower, upper = fallback
    return np.linspace(lower, upper, points)


def plot_variable_terms(variable, value=None, points=400, save=False, output_dir="plots", show=True):
    """
    Plot every term of a variable over its range.
    Optionally mark a crisp value as a vertical line.
    Args:
        variable (Variable): Input or output variable to plot
        value (float): Crisp value to mark (optional)
        points (int): Number of samples over the range
        save (bool): Whether to save the plot as a PNG
        output_dir (str): Directory to save the plot
        show (bool): Whether to open a window
    Returns:
        matplotlib.figure.Figure
    """
    x = _grid(variable, points)
    fig, ax = plt.subplots(figsize=(8, 4))
    for term in variable.terms:
        y = np.array([term.membership(float(xi)) for xi in x])
        ax.plot(x, y, label=term.name)
        ax.fill_between(x, y, alpha=0.1)

    if value is not None:
        ax.axvline(value, color="red", linestyle="--", label=f"{variable.name} = {value:.3f}")

    ax.set_title(f"Membership Functions – {variable.name}")
    ax.set_xlabel(variable.name)
    ax.set_ylabel("Membership Degree")
    ax.grid(True)
    ax.legend()
    fig.tight_layout()

    if save:
        _save(fig, f"{variable.name.lower()}_terms.png", output_dir)
    if show:
        plt.show()
    return fig


def plot_fuzzy_output(variable, points=400, save=False, output_dir="plots", show=True):
    """
    Plot the aggregated fuzzy output of an output variable after process(),
    with the defuzzified value marked.
    """
    x = _grid(variable, points)
    fig, ax = plt.subplots(figsize=(8, 4))
    for activated in variable.fuzzy_output.terms:
        y = np.array([activated.membership(float(xi)) for xi in x])
        ax.plot(x, y, linestyle=":", label=str(activated))

    y = np.array([variable.fuzzy_output.membership(float(xi)) for xi in x])
    ax.plot(x, y, color="black", label="aggregated")
    ax.fill_between(x, y, alpha=0.2, color="gray")
    if is_finite(variable.value):
        ax.axvline(variable.value, color="red", linestyle="--", label=f"{variable.name} = {variable.value:.3f}")

    ax.set_title(f"Fuzzy Output – {variable.name}")
    ax.set_xlabel(variable.name)
    ax.set_ylabel("Membership Degree")
    ax.grid(True)
    ax.legend()
    fig.tight_layout()

    if save:
        _save(fig, f"{variable.name.lower()}_fuzzy_output.png", output_dir)
    if show:
        plt.show()
    return fig


def _save(fig, filename, output_dir):
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, filename)
    fig.savefig(path)
    plot_log.info("Saved plot to: %s", path)
    return path


def main():
    parser = argparse.ArgumentParser(description="Plot the terms of every variable of an engine.")
    parser.add_argument("--config", default=os.path.join("config", "flc_config.toml"),
                        help="Engine configuration file.")
    parser.add_argument("--save", action="store_true",
                        help="Save plots as PNG files in the 'plots/' directory.")
    args = parser.parse_args()

    engine = load_engine(args.config)
    for variable in engine.variables():
        plot_variable_terms(variable, save=args.save)


if __name__ == "__main__":
    main()
