"""
Segments module: framing, noise gating, median smoothing and gap filling.

Provides:
- FrequencyFrame, PitchSegment: Data containers
- estimate_frames: Run an estimator over a buffer window by window
- build_segments: Noise-gate frames into time-stamped pitch segments
- median_smooth: 3-tap positional median over segment frequencies
- fill_gaps: Bridge short dropouts with interpolated synthetic segments
"""

from dataclasses import dataclass, replace
from typing import Iterable, Iterator, List, Optional
import math
import numpy as np
from scipy import ndimage

from .audio import SampleBuffer
from .estimator import FrequencyEstimator


@dataclass(frozen=True)
class FrequencyFrame:
    """One estimator result; consumed immediately by build_segments."""
    index: int
    time: float                   # Window start (seconds)
    frequency: Optional[float]    # Hz, None for "no pitch"


@dataclass(frozen=True)
class PitchSegment:
    """A gated pitch estimate covering one frame period."""
    start_time: float
    end_time: float
    frequency: float
    synthetic: bool = False       # True when created by fill_gaps

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (JS Math.round semantics)."""
    return int(math.floor(value + 0.5))


# =============================================================================
# FRAMING
# =============================================================================

def estimate_frames(
    buffer: SampleBuffer,
    window_size: int,
    hop_size: int,
    estimator: FrequencyEstimator,
    pitch_threshold: float,
    probability_threshold: float,
) -> Iterator[FrequencyFrame]:
    """
    Yield one FrequencyFrame per hop.

    Windows start at every multiple of `hop_size` inside the buffer; windows
    running past the end are truncated to the remaining samples.
    """
    samples = buffer.samples
    sr = buffer.sample_rate
    for index, start in enumerate(range(0, len(samples), hop_size)):
        window = samples[start:start + window_size]
        frequency = estimator(window, sr, pitch_threshold, probability_threshold)
        if frequency is not None and not (math.isfinite(frequency) and frequency > 0):
            frequency = None
        yield FrequencyFrame(index=index, time=start / float(sr), frequency=frequency)


# =============================================================================
# NOISE GATE
# =============================================================================

def passes_noise_gate(frequency: Optional[float], gate_min_hz: float, gate_max_hz: float) -> bool:
    """True when a frame's estimate lies inside the inclusive gate range."""
    if frequency is None:
        return False
    return gate_min_hz <= frequency <= gate_max_hz


def build_segments(
    frames: Iterable[FrequencyFrame],
    frame_period: float,
    gate_min_hz: float,
    gate_max_hz: float,
) -> List[PitchSegment]:
    """
    Convert a frame stream into pitch segments.

    Gated-out frames produce nothing, so silences show up as gaps between
    segments rather than zero-frequency placeholders.
    """
    segments = []
    for frame in frames:
        if not passes_noise_gate(frame.frequency, gate_min_hz, gate_max_hz):
            continue
        segments.append(PitchSegment(
            start_time=frame.index * frame_period,
            end_time=(frame.index + 1) * frame_period,
            frequency=float(frame.frequency),
        ))
    return segments


# =============================================================================
# SMOOTHING & GAP FILLING (live input)
# =============================================================================

def median_smooth(segments: List[PitchSegment]) -> List[PitchSegment]:
    """
    Replace each frequency with the median of itself and its list neighbours.

    The first and last segments use themselves in place of the missing
    neighbour. Operates on list position, not time, so a gap between two
    segments does not stop them from smoothing each other.
    """
    if len(segments) < 2:
        return list(segments)
    freqs = np.array([seg.frequency for seg in segments], dtype=float)
    # mode="nearest" repeats the edge value, i.e. (self, self, next) at the start.
    smoothed = ndimage.median_filter(freqs, size=3, mode="nearest")
    return [
        replace(seg, frequency=float(f)) if f != seg.frequency else seg
        for seg, f in zip(segments, smoothed)
    ]


def fill_gaps(
    segments: List[PitchSegment],
    frame_period: float,
    max_gap_seconds: float = 1.5,
) -> List[PitchSegment]:
    """
    Bridge short silences between adjacent segments.

    For a gap strictly between 0 and `max_gap_seconds`, insert
    max(1, round(gap / frame_period)) synthetic segments whose frequencies
    interpolate linearly between the bounding segments. Longer gaps are
    breaths or phrase boundaries and stay open.

    Args:
        segments: Time-ordered segments
        frame_period: Duration of one synthetic segment (seconds)
        max_gap_seconds: Gaps at or above this are preserved

    Returns:
        New list with synthetic segments inserted in time order
    """
    if frame_period <= 0:
        raise ValueError(f"frame_period must be positive, got {frame_period}")
    if len(segments) < 2:
        return list(segments)

    filled = []
    for current, nxt in zip(segments, segments[1:]):
        filled.append(current)
        gap = nxt.start_time - current.end_time
        if not 0 < gap < max_gap_seconds:
            continue

        steps = max(1, round_half_up(gap / frame_period))
        for step in range(1, steps + 1):
            fraction = step / (steps + 1)
            start = current.end_time + (step - 1) * frame_period
            filled.append(PitchSegment(
                start_time=start,
                end_time=start + frame_period,
                frequency=current.frequency + (nxt.frequency - current.frequency) * fraction,
                synthetic=True,
            ))
    filled.append(segments[-1])
    return filled
