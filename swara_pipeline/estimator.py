"""
Fundamental frequency estimation for a single analysis window.

The pipeline treats the estimator as a plain callable:

    estimator(window, sample_rate, pitch_threshold, probability_threshold) -> Optional[float]

so file and live-input analysis differ only in the parameters they pass.
`yin_estimate` is the default implementation (YIN with absolute threshold,
local-minimum descent and parabolic interpolation).
"""

from typing import Callable, Optional
import numpy as np
from scipy import signal

FrequencyEstimator = Callable[[np.ndarray, int, float, float], Optional[float]]

MIN_WINDOW_SAMPLES = 4


def _difference_function(window: np.ndarray, half: int) -> np.ndarray:
    """d(tau) = sum_{i<half} (x[i] - x[i+tau])^2 for tau in [0, half)."""
    head = window[:half]
    # Cross term sum x[i] * x[i+tau]; 'valid' yields lags 0..len-half.
    cross = signal.correlate(window, head, mode="valid")[:half]

    squares = np.concatenate(([0.0], np.cumsum(window * window)))
    taus = np.arange(half)
    shifted_energy = squares[taus + half] - squares[taus]
    head_energy = squares[half]

    diff = head_energy + shifted_energy - 2.0 * cross
    # Rounding can leave tiny negatives on exact repeats.
    return np.maximum(diff, 0.0)


def _cumulative_mean_normalized(diff: np.ndarray) -> np.ndarray:
    cmnd = np.ones_like(diff)
    if len(diff) < 2:
        return cmnd
    running = np.cumsum(diff[1:])
    taus = np.arange(1, len(diff))
    with np.errstate(divide="ignore", invalid="ignore"):
        cmnd[1:] = np.where(running > 0, diff[1:] * taus / running, 1.0)
    return cmnd


def _parabolic_tau(cmnd: np.ndarray, tau: int) -> float:
    """Refine an integer lag with a parabola through its neighbours."""
    x0 = tau - 1 if tau >= 1 else tau
    x2 = tau + 1 if tau + 1 < len(cmnd) else tau

    if x0 == tau:
        return float(tau if cmnd[tau] <= cmnd[x2] else x2)
    if x2 == tau:
        return float(tau if cmnd[tau] <= cmnd[x0] else x0)

    s0, s1, s2 = cmnd[x0], cmnd[tau], cmnd[x2]
    denom = 2.0 * (2.0 * s1 - s2 - s0)
    if denom == 0:
        return float(tau)
    return tau + (s2 - s0) / denom


def yin_estimate(
    window: np.ndarray,
    sample_rate: int,
    pitch_threshold: float = 0.1,
    probability_threshold: float = 0.1,
) -> Optional[float]:
    """
    Estimate the fundamental frequency of one window with YIN.

    Args:
        window: Samples (may be shorter than the configured window at buffer end)
        sample_rate: Sample rate in Hz
        pitch_threshold: CMND threshold; higher values accept weaker periodicity
        probability_threshold: Minimum voicing probability (1 - CMND at the chosen lag)

    Returns:
        Frequency in Hz, or None when no pitch is found
    """
    x = np.asarray(window, dtype=float)
    if len(x) < MIN_WINDOW_SAMPLES or not np.all(np.isfinite(x)):
        return None

    half = len(x) // 2
    diff = _difference_function(x, half)
    cmnd = _cumulative_mean_normalized(diff)

    below = np.nonzero(cmnd[2:] < pitch_threshold)[0]
    if below.size == 0:
        return None

    tau = int(below[0]) + 2
    while tau + 1 < half and cmnd[tau + 1] < cmnd[tau]:
        tau += 1

    probability = 1.0 - cmnd[tau]
    if probability < probability_threshold:
        return None

    better_tau = _parabolic_tau(cmnd, tau)
    if better_tau <= 0:
        return None
    return sample_rate / better_tau


def get_default_estimator() -> FrequencyEstimator:
    """Estimator used when the caller does not inject one."""
    return yin_estimate
