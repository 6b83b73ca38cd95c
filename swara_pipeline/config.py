"""
Configuration module for the swara note pipeline.

Provides:
- AnalysisConfig: Immutable parameter set for one analysis call
- file_analysis_config / live_input_config: The two standard presets
- LabelConfig: Root key and sargam-vs-note-name presentation settings
- PipelineConfig: Dataclass describing one CLI run
- build_cli_parser / load_config_from_cli: CLI argument handling
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional
import argparse
import os


class ConfigurationError(ValueError):
    """Raised when analysis parameters are inconsistent."""


# Tuned empirically against real recordings; keep as named defaults.
DEFAULT_MIN_NOTE_DURATION = 0.15   # seconds a run must exceed to become a note
DEFAULT_MAX_JOIN_GAP = 0.1         # max silence (s) inside a single note run
DEFAULT_MAX_GAP_SECONDS = 1.5      # longer silences are phrase breaks, not dropouts
DEFAULT_NORMALIZATION_TARGET = 0.9
DEFAULT_NORMALIZATION_EPSILON = 0.001

SOURCE_TYPES: List[str] = ["file", "live"]


@dataclass(frozen=True)
class AnalysisConfig:
    """parameters for a single analysis pass"""

    # framing
    window_size: int = 2048
    hop_size: int = 2048

    # noise gate (Hz, inclusive)
    noise_gate_min_hz: float = 60.0
    noise_gate_max_hz: float = 1100.0

    # detector thresholds (YIN cmnd threshold, voicing probability)
    pitch_threshold: float = 0.1
    probability_threshold: float = 0.1

    # optional stages
    enable_normalization: bool = False
    enable_smoothing: bool = False
    enable_gap_fill: bool = False

    max_gap_seconds: float = DEFAULT_MAX_GAP_SECONDS
    min_note_duration: float = DEFAULT_MIN_NOTE_DURATION
    max_join_gap: float = DEFAULT_MAX_JOIN_GAP
    normalization_target: float = DEFAULT_NORMALIZATION_TARGET
    normalization_epsilon: float = DEFAULT_NORMALIZATION_EPSILON

    name: str = "custom"

    def __post_init__(self):
        """Fail fast on parameter combinations the pipeline cannot honour."""
        if self.window_size <= 0:
            raise ConfigurationError(f"window_size must be positive, got {self.window_size}")
        if self.hop_size <= 0:
            raise ConfigurationError(f"hop_size must be positive, got {self.hop_size}")
        if self.hop_size > self.window_size:
            raise ConfigurationError(
                f"hop_size ({self.hop_size}) must not exceed window_size ({self.window_size})"
            )
        if self.noise_gate_min_hz >= self.noise_gate_max_hz:
            raise ConfigurationError(
                f"noise gate min ({self.noise_gate_min_hz} Hz) must be below max ({self.noise_gate_max_hz} Hz)"
            )
        for label, value in (
            ("pitch_threshold", self.pitch_threshold),
            ("probability_threshold", self.probability_threshold),
            ("normalization_target", self.normalization_target),
        ):
            if not 0.0 < value <= 1.0:
                raise ConfigurationError(f"{label} must be in (0, 1], got {value}")
        if self.max_gap_seconds <= 0:
            raise ConfigurationError(f"max_gap_seconds must be positive, got {self.max_gap_seconds}")
        if self.min_note_duration <= 0:
            raise ConfigurationError(f"min_note_duration must be positive, got {self.min_note_duration}")
        if self.max_join_gap <= 0:
            raise ConfigurationError(f"max_join_gap must be positive, got {self.max_join_gap}")
        if self.normalization_epsilon < 0:
            raise ConfigurationError(
                f"normalization_epsilon must be non-negative, got {self.normalization_epsilon}"
            )

    def frame_period(self, sample_rate: int) -> float:
        """Seconds between consecutive frames at the given sample rate."""
        return self.hop_size / float(sample_rate)

    def with_overrides(self, **overrides) -> "AnalysisConfig":
        """Return a copy with the given fields replaced (None values are ignored)."""
        clean = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **clean) if clean else self


def file_analysis_config(**overrides) -> AnalysisConfig:
    """
    Preset for studio/file input.

    No overlap between windows, tight noise gate, default detector thresholds,
    no normalization, smoothing or gap filling.
    """
    base = AnalysisConfig(
        window_size=2048,
        hop_size=2048,
        noise_gate_min_hz=60.0,
        noise_gate_max_hz=1100.0,
        pitch_threshold=0.1,
        probability_threshold=0.1,
        enable_normalization=False,
        enable_smoothing=False,
        enable_gap_fill=False,
        name="file",
    )
    return base.with_overrides(**overrides)


def live_input_config(**overrides) -> AnalysisConfig:
    """
    Preset for microphone recordings.

    4x overlap for denser data, a wider gate (normalization lifts the noise
    floor), looser voicing acceptance and all three optional stages enabled.
    """
    base = AnalysisConfig(
        window_size=2048,
        hop_size=512,
        noise_gate_min_hz=50.0,
        noise_gate_max_hz=1200.0,
        pitch_threshold=0.2,
        probability_threshold=0.05,
        enable_normalization=True,
        enable_smoothing=True,
        enable_gap_fill=True,
        name="live",
    )
    return base.with_overrides(**overrides)


# Names used by callers that think of the presets as types.
FileAnalysisConfig = file_analysis_config
LiveInputAnalysisConfig = live_input_config


def preset_for_source(source_type: str, **overrides) -> AnalysisConfig:
    """Pick the preset matching a source type ('file' or 'live')."""
    if source_type == "file":
        return file_analysis_config(**overrides)
    if source_type == "live":
        return live_input_config(**overrides)
    raise ConfigurationError(f"Unknown source type '{source_type}'. Expected one of: {', '.join(SOURCE_TYPES)}")


@dataclass
class LabelConfig:
    """Presentation settings consumed by the note labeler."""
    root_key: Optional[str] = "C"   # Sa
    use_sargam: bool = True


@dataclass
class PipelineConfig:
    """config for one driver run"""

    mode: str = "analyze"  # "analyze", "segments" or "lookup"

    # inputs
    audio_path: Optional[str] = None
    notes_csv: Optional[str] = None
    output_dir: str = "results"

    # source type - picks the analysis preset
    source_type: str = "file"

    # labelling
    root_key: Optional[str] = "C"
    use_sargam: bool = True

    # playback-time queries (seconds)
    query_times: List[float] = field(default_factory=list)

    # detector / aggregation overrides (None keeps the preset value)
    pitch_threshold: Optional[float] = None
    probability_threshold: Optional[float] = None
    min_note_duration: Optional[float] = None
    max_gap_seconds: Optional[float] = None

    save_csv: bool = True

    def __post_init__(self):
        """Validate inputs and normalize paths."""
        if self.mode not in ("analyze", "segments", "lookup"):
            raise ValueError(f"Unknown mode: {self.mode}")
        if self.source_type not in SOURCE_TYPES:
            raise ValueError(f"Unknown source type: {self.source_type}")

        self.output_dir = os.path.abspath(self.output_dir)

        if self.mode == "lookup":
            if not self.notes_csv:
                raise ValueError("Lookup mode requires --notes")
            self.notes_csv = os.path.abspath(self.notes_csv)
            if not os.path.isfile(self.notes_csv):
                raise FileNotFoundError(f"Notes CSV not found: {self.notes_csv}")
            if not self.query_times:
                raise ValueError("Lookup mode requires at least one --at time")
        else:
            if not self.audio_path:
                raise ValueError(f"{self.mode.capitalize()} mode requires --audio/-a")
            self.audio_path = os.path.abspath(self.audio_path)
            if not os.path.isfile(self.audio_path):
                raise FileNotFoundError(f"Audio file not found: {self.audio_path}")

    @property
    def filename(self) -> str:
        """Input filename without extension."""
        source = self.audio_path or self.notes_csv
        if source:
            return os.path.splitext(os.path.basename(source))[0]
        return "unknown_audio"

    @property
    def notes_output_path(self) -> str:
        return os.path.join(self.output_dir, f"{self.filename}_notes.csv")

    @property
    def segments_output_path(self) -> str:
        return os.path.join(self.output_dir, f"{self.filename}_segments.csv")

    def analysis_config(self) -> AnalysisConfig:
        """Build the analysis preset for this run with CLI overrides applied."""
        return preset_for_source(
            self.source_type,
            pitch_threshold=self.pitch_threshold,
            probability_threshold=self.probability_threshold,
            min_note_duration=self.min_note_duration,
            max_gap_seconds=self.max_gap_seconds,
        )

    @property
    def label_config(self) -> LabelConfig:
        return LabelConfig(root_key=self.root_key, use_sargam=self.use_sargam)


def build_cli_parser() -> argparse.ArgumentParser:
    """Build the argparse parser shared by the driver and tests."""
    parser = argparse.ArgumentParser(
        description="Swara note pipeline: stable note detection with sargam labels",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Pipeline mode")

    # --- Common arguments function ---
    def add_audio_args(p):
        p.add_argument("--audio", "-a", required=True, help="Input audio file (relative or absolute path)")
        p.add_argument("--output", "-o", default="results", help="Directory for CSV output")
        p.add_argument("--source", choices=SOURCE_TYPES, default="file",
                       help="'file' for studio recordings, 'live' for microphone takes (normalize, smooth, gap-fill)")
        p.add_argument("--pitch-threshold", type=float,
                       help="YIN threshold override (higher accepts weaker voicing)")
        p.add_argument("--probability-threshold", type=float,
                       help="Minimum voicing probability override")
        p.add_argument("--max-gap", type=float,
                       help="Longest silence (seconds) bridged by gap filling")

    def add_label_args(p):
        p.add_argument("--root-key", default="C", help="Root key (Sa), e.g. C, D#, Bb")
        p.add_argument("--no-sargam", action="store_true", help="Label notes with absolute note names")

    # --- Analyze Mode ---
    analyze_parser = subparsers.add_parser("analyze", help="Detect stable notes and export them to CSV")
    add_audio_args(analyze_parser)
    add_label_args(analyze_parser)
    analyze_parser.add_argument("--min-note-duration", type=float,
                                help="Minimum note duration (seconds) override")
    analyze_parser.add_argument("--at", type=float, nargs="+", default=[],
                                help="Print the active note at these times (seconds)")
    analyze_parser.add_argument("--no-csv", action="store_true", help="Do not write the notes CSV")

    # --- Segments Mode ---
    segments_parser = subparsers.add_parser("segments", help="Export intermediate pitch segments to CSV")
    add_audio_args(segments_parser)

    # --- Lookup Mode ---
    lookup_parser = subparsers.add_parser("lookup", help="Find the active note at given times in a notes CSV")
    lookup_parser.add_argument("--notes", "-n", required=True, help="Notes CSV written by analyze mode")
    lookup_parser.add_argument("--at", type=float, nargs="+", required=True,
                               help="Query times (seconds)")
    add_label_args(lookup_parser)

    return parser


def _config_from_args(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        mode=args.command,
        audio_path=getattr(args, "audio", None),
        notes_csv=getattr(args, "notes", None),
        output_dir=getattr(args, "output", "results"),
        source_type=getattr(args, "source", "file"),
        root_key=getattr(args, "root_key", "C"),
        use_sargam=not getattr(args, "no_sargam", False),
        query_times=list(getattr(args, "at", []) or []),
        pitch_threshold=getattr(args, "pitch_threshold", None),
        probability_threshold=getattr(args, "probability_threshold", None),
        min_note_duration=getattr(args, "min_note_duration", None),
        max_gap_seconds=getattr(args, "max_gap", None),
        save_csv=not getattr(args, "no_csv", False),
    )


def parse_config_from_argv(argv: List[str]) -> PipelineConfig:
    """Parse an explicit argv list (without the program name)."""
    parser = build_cli_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.error("a mode is required: analyze, segments or lookup")
    return _config_from_args(args)


def load_config_from_cli() -> PipelineConfig:
    """Parse command-line arguments and return configuration."""
    parser = build_cli_parser()
    args = parser.parse_args()
    if args.command is None:
        parser.error("a mode is required: analyze, segments or lookup")
    return _config_from_args(args)


def create_config(audio_path: str, output_dir: str, **kwargs) -> PipelineConfig:
    """
    Convenience function to create configuration programmatically.

    Args:
        audio_path: Path to input audio file
        output_dir: Output directory for results
        **kwargs: Override any default configuration values

    Returns:
        PipelineConfig instance
    """
    return PipelineConfig(audio_path=audio_path, output_dir=output_dir, **kwargs)
