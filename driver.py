#!/usr/bin/env python3
"""
driver file for the swara note pipeline

modes:
    analyze  - detect stable notes in an audio file, print them and export CSV
    segments - export the intermediate pitch segments (after smoothing / gap fill)
    lookup   - find the note sounding at given times in a previously exported CSV
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

# add package to path if running directly
if __name__ == "__main__":
    package_dir = Path(__file__).parent
    if str(package_dir) not in sys.path:
        sys.path.insert(0, str(package_dir))

from swara_pipeline.config import PipelineConfig, load_config_from_cli
from swara_pipeline.audio import load_audio
from swara_pipeline.labels import label_events, label_for
from swara_pipeline.notes import StableNoteEvent, find_active_note, note_end_times
from swara_pipeline.pipeline import analyze, extract_segments, print_observer
from swara_pipeline.segments import PitchSegment
from swara_pipeline.output import (
    format_note_table,
    load_notes_from_csv,
    save_notes_to_csv,
    save_segments_to_csv,
)


@dataclass
class RunResults:
    """What a driver run produced."""
    config: PipelineConfig
    events: List[StableNoteEvent] = field(default_factory=list)
    segments: List[PitchSegment] = field(default_factory=list)
    lookups: List[tuple] = field(default_factory=list)  # (time, event or None)
    output_path: Optional[str] = None


def run_pipeline(config: PipelineConfig) -> RunResults:
    """
    run the pipeline in the configured mode

    args:
        config: pipeline configuration

    outputs:
        RunResults with computed data
    """
    results = RunResults(config=config)

    print("=" * 60)
    print("SWARA NOTE PIPELINE")
    print(f"MODE: {config.mode.upper()}")
    print("=" * 60)
    print(f"Input: {config.filename}")
    if config.mode != "lookup":
        print(f"Source: {config.source_type}")
        print(f"Output: {config.output_dir}")
    print()

    if config.mode == "lookup":
        print(f"[LOAD] Reading notes from: {config.notes_csv}")
        events = load_notes_from_csv(config.notes_csv)
        results.events = label_events(events, config.label_config)
        _report_lookups(results)
        return results

    analysis_config = config.analysis_config()

    print(f"[AUDIO] Loading: {config.audio_path}")
    buffer = load_audio(config.audio_path)
    print(f"[AUDIO] sr={buffer.sample_rate}, duration={buffer.duration:.2f}s, peak={buffer.peak:.4f}")

    if config.mode == "segments":
        results.segments = extract_segments(
            buffer, buffer.sample_rate, analysis_config, observer=print_observer
        )
        results.output_path = save_segments_to_csv(results.segments, config.segments_output_path)
        print(f"[WRITE] Exported segments CSV: {results.output_path}")
        return results

    events = analyze(buffer, buffer.sample_rate, analysis_config, observer=print_observer)
    results.events = label_events(events, config.label_config)

    print()
    print(format_note_table(results.events))
    print()

    if config.save_csv:
        results.output_path = save_notes_to_csv(results.events, config.notes_output_path)
        print(f"[WRITE] Exported notes CSV: {results.output_path}")

    if config.query_times:
        _report_lookups(results)

    print("\n" + "=" * 60)
    print("ANALYSIS COMPLETE")
    print("=" * 60)
    return results


def _report_lookups(results: RunResults) -> None:
    config = results.config
    end_times = note_end_times(results.events)
    for t in config.query_times:
        event = find_active_note(results.events, t, end_times)
        results.lookups.append((t, event))
        if event is None:
            print(f"[LOOKUP] t={t:.3f}s: --")
            continue
        label = label_for(event.midi_number, event.note_name, config.root_key, config.use_sargam)
        print(
            f"[LOOKUP] t={t:.3f}s: {label} ({event.note_name} / {round(event.average_frequency)} Hz, "
            f"{event.start_time:.3f}-{event.end_time:.3f}s)"
        )


def main():
    """Main entry point for CLI."""
    config = load_config_from_cli()
    run_pipeline(config)


if __name__ == "__main__":
    main()
