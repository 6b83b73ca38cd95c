# Swara Pipeline Package
"""
Stable note detection for vocal practice recordings.

Modules:
- config: Analysis presets, label settings and CLI argument handling
- audio: Sample buffers, peak normalization, file loading
- estimator: Per-window fundamental frequency estimation (YIN)
- segments: Framing, noise gate, median smoothing, gap filling
- notes: Stable note aggregation and playback-time lookup
- labels: Note names and sargam labels relative to a root key
- pipeline: Stage orchestration (analyze)
- output: CSV export/import and console tables
"""

from .config import (
    AnalysisConfig,
    ConfigurationError,
    FileAnalysisConfig,
    LabelConfig,
    LiveInputAnalysisConfig,
    PipelineConfig,
    build_cli_parser,
    create_config,
    file_analysis_config,
    live_input_config,
    load_config_from_cli,
    parse_config_from_argv,
)
from .audio import SampleBuffer, load_audio, normalize_buffer
from .estimator import FrequencyEstimator, yin_estimate
from .segments import FrequencyFrame, PitchSegment, build_segments, fill_gaps, median_smooth
from .notes import (
    StableNoteEvent,
    aggregate_stable_notes,
    find_active_note,
    frequency_to_midi,
    midi_to_frequency,
    note_end_times,
)
from .labels import SARGAM_LABELS, label_events, label_for, scale_degree_label
from .pipeline import analyze, analyze_buffer, extract_segments

__version__ = "0.1.0"

__all__ = [
    # Config
    "AnalysisConfig",
    "ConfigurationError",
    "FileAnalysisConfig",
    "LabelConfig",
    "LiveInputAnalysisConfig",
    "PipelineConfig",
    "build_cli_parser",
    "create_config",
    "file_analysis_config",
    "live_input_config",
    "load_config_from_cli",
    "parse_config_from_argv",
    # Audio / estimation
    "SampleBuffer",
    "load_audio",
    "normalize_buffer",
    "FrequencyEstimator",
    "yin_estimate",
    # Segments
    "FrequencyFrame",
    "PitchSegment",
    "build_segments",
    "fill_gaps",
    "median_smooth",
    # Notes
    "StableNoteEvent",
    "aggregate_stable_notes",
    "find_active_note",
    "frequency_to_midi",
    "midi_to_frequency",
    "note_end_times",
    "SARGAM_LABELS",
    "label_events",
    "label_for",
    "scale_degree_label",
    # Pipeline
    "analyze",
    "analyze_buffer",
    "extract_segments",
]
