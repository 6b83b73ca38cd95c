"""
Pipeline module: runs the analysis stages over one buffer.

File analysis:  estimate -> gate -> aggregate
Live input:     normalize -> estimate -> gate -> median smooth -> gap fill -> aggregate

The optional stages are picked from AnalysisConfig flags, so both variants
share one code path. Diagnostics go through an optional observer callback
`observer(stage, info)`; nothing is printed from here.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
import numpy as np

from .audio import SampleBuffer, as_sample_buffer, normalize_buffer
from .config import AnalysisConfig, ConfigurationError, LabelConfig
from .estimator import FrequencyEstimator, get_default_estimator
from .labels import label_events
from .notes import StableNoteEvent, aggregate_stable_notes
from .segments import PitchSegment, build_segments, estimate_frames, fill_gaps, median_smooth

Observer = Callable[[str, Dict[str, Any]], None]
SegmentStage = Callable[[List[PitchSegment]], List[PitchSegment]]
Samples = Union[SampleBuffer, np.ndarray, Sequence[float]]


def _notify(observer: Optional[Observer], stage: str, **info: Any) -> None:
    if observer is not None:
        observer(stage, info)


def build_segment_stages(config: AnalysisConfig, frame_period: float) -> List[Tuple[str, SegmentStage]]:
    """Ordered post-gate stages enabled by the config."""
    stages: List[Tuple[str, SegmentStage]] = []
    if config.enable_smoothing:
        stages.append(("smooth", median_smooth))
    if config.enable_gap_fill:
        stages.append((
            "gap_fill",
            lambda segs: fill_gaps(segs, frame_period, config.max_gap_seconds),
        ))
    return stages


def _prepare_buffer(
    samples: Optional[Samples],
    sample_rate: int,
    config: AnalysisConfig,
    observer: Optional[Observer],
) -> SampleBuffer:
    if samples is None:
        raise ValueError("No audio buffer available for analysis")
    if sample_rate is None or sample_rate <= 0:
        raise ConfigurationError(f"sample_rate must be positive, got {sample_rate}")
    if not isinstance(config, AnalysisConfig):
        raise ConfigurationError(f"Expected AnalysisConfig, got {type(config).__name__}")

    buffer = as_sample_buffer(samples, sample_rate)
    if isinstance(samples, SampleBuffer) and samples.sample_rate != sample_rate:
        raise ConfigurationError(
            f"sample_rate {sample_rate} does not match buffer sample rate {samples.sample_rate}"
        )

    if config.enable_normalization:
        peak_before = buffer.peak
        buffer = normalize_buffer(buffer, config.normalization_target, config.normalization_epsilon)
        _notify(observer, "normalize", peak_before=peak_before, peak_after=buffer.peak)
    return buffer


def extract_segments(
    samples: Optional[Samples],
    sample_rate: int,
    config: AnalysisConfig,
    estimator: Optional[FrequencyEstimator] = None,
    observer: Optional[Observer] = None,
) -> List[PitchSegment]:
    """
    Run every stage up to (not including) note aggregation.

    Returns:
        Gated pitch segments after the optional smoothing and gap filling
    """
    buffer = _prepare_buffer(samples, sample_rate, config, observer)
    if estimator is None:
        estimator = get_default_estimator()

    frame_period = config.frame_period(buffer.sample_rate)
    counts = {"count": 0, "voiced": 0}

    def counted(frames):
        for frame in frames:
            counts["count"] += 1
            if frame.frequency is not None:
                counts["voiced"] += 1
            yield frame

    frames = estimate_frames(
        buffer,
        config.window_size,
        config.hop_size,
        estimator,
        config.pitch_threshold,
        config.probability_threshold,
    )
    segments = build_segments(counted(frames), frame_period, config.noise_gate_min_hz, config.noise_gate_max_hz)
    _notify(observer, "frames", frame_period=frame_period, **counts)
    _notify(observer, "segments", count=len(segments),
            gate=(config.noise_gate_min_hz, config.noise_gate_max_hz))

    for name, stage in build_segment_stages(config, frame_period):
        segments = stage(segments)
        _notify(observer, name, count=len(segments))

    return segments


def analyze(
    samples: Optional[Samples],
    sample_rate: int,
    config: AnalysisConfig,
    estimator: Optional[FrequencyEstimator] = None,
    observer: Optional[Observer] = None,
) -> List[StableNoteEvent]:
    """
    Analyze a whole buffer into stable note events.

    Args:
        samples: Mono samples (SampleBuffer, numpy array or float sequence)
        sample_rate: Sample rate in Hz
        config: Analysis preset (see file_analysis_config / live_input_config)
        estimator: Frequency estimator callable; defaults to YIN
        observer: Optional diagnostics callback `observer(stage, info)`

    Returns:
        Time-ordered StableNoteEvent list (unlabelled); empty for silence

    Raises:
        ConfigurationError: Invalid sample rate or config, before any estimation
        ValueError: No buffer was supplied
    """
    segments = extract_segments(samples, sample_rate, config, estimator, observer)
    events = aggregate_stable_notes(segments, config.min_note_duration, config.max_join_gap)
    _notify(observer, "notes", count=len(events))
    return events


def analyze_buffer(
    buffer: SampleBuffer,
    config: AnalysisConfig,
    label_config: Optional[LabelConfig] = None,
    estimator: Optional[FrequencyEstimator] = None,
    observer: Optional[Observer] = None,
) -> List[StableNoteEvent]:
    """Analyze a SampleBuffer and attach sargam / note-name labels."""
    events = analyze(buffer, buffer.sample_rate, config, estimator, observer)
    return label_events(events, label_config)


def print_observer(stage: str, info: Dict[str, Any]) -> None:
    """Observer that prints tagged progress lines."""
    if stage == "normalize":
        print(f"[NORMALIZE] Peak {info['peak_before']:.4f} -> {info['peak_after']:.4f}")
    elif stage == "frames":
        print(f"[FRAMES] {info['voiced']}/{info['count']} windows voiced "
              f"(frame period {info['frame_period'] * 1000:.1f} ms)")
    elif stage == "segments":
        gate_min, gate_max = info["gate"]
        print(f"[SEGMENTS] {info['count']} segments inside {gate_min:.0f}-{gate_max:.0f} Hz gate")
    elif stage == "notes":
        print(f"[NOTES] {info['count']} stable notes")
    else:
        print(f"[{stage.upper()}] {info.get('count', 0)} segments")
