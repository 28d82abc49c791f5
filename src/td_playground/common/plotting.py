from __future__ import annotations
from pathlib import Path
from typing import Mapping, Sequence
import matplotlib

matplotlib.use("Agg")  # we only ever save figures to disk

import matplotlib.pyplot as plt
import numpy as np


def moving_average(x: np.ndarray, window: int) -> np.ndarray:
    """
    Trailing moving average for smoothing reward curves.

    The first window-1 points average over what is available so far (edge padding), so the output keeps the
    input length and lines up with episode indices.

    :param x: 1D array to smooth.
        :type x: np.ndarray
    :param window: Window size (>= 1). If 1, returns x unchanged.
        :type window: int

    :return: Smoothed array (same length as x).
        :rtype: np.ndarray
    """
    x = np.asarray(x, dtype=np.float64)
    if window <= 1 or x.size == 0:
        return x

    pad = window - 1
    x_pad = np.pad(x, (pad, 0), mode="edge")
    kernel = np.ones(window, dtype=np.float64) / window
    return np.convolve(x_pad, kernel, mode="valid")


def save_training_curves(
    *,
    rewards: Mapping[str, Sequence[float]],
    out_path: str | Path,
    title: str,
    stable_starts: Mapping[str, int | None] | None = None,
    smooth_window: int = 1,
) -> Path:
    """
    Save one reward-per-episode curve per learner, marking where each policy became stable.

    :param rewards: {label: per-episode rewards}.
        :type rewards: Mapping[str, Sequence[float]]
    :param out_path: Output image path (parent folders are created).
        :type out_path: str | Path
    :param title: Plot title.
        :type title: str
    :param stable_starts: {label: episode at which the stable streak began, or None}. A dashed vertical line is
        drawn for every non-None entry.
        :type stable_starts: Mapping[str, int | None] | None
    :param smooth_window: Moving average window (1 means no smoothing).
        :type smooth_window: int

    :return: The path written.
        :rtype: Path
    """
    if not rewards:
        raise ValueError("rewards must contain at least one curve")

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    stable_starts = stable_starts or {}

    fig, ax = plt.subplots()
    for label, ys in rewards.items():
        ys = np.asarray(ys, dtype=np.float64)
        episodes = np.arange(1, ys.size + 1)
        line, = ax.plot(episodes, moving_average(ys, smooth_window), label=label)

        start = stable_starts.get(label)
        if start is not None:
            ax.axvline(x=start, linestyle="--", color=line.get_color(), alpha=0.6)

    ax.set_title(title)
    ax.set_xlabel("Episode")
    ax.set_ylabel("Episode reward")
    ax.grid(True)
    ax.legend()
    fig.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)
    return out_path
