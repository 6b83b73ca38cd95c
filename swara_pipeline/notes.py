"""
Notes module: stable note aggregation and playback-time lookup.

This module owns the StableNoteEvent contract that the rest of the project
(labels, output, driver) consumes.

Provides:
- StableNoteEvent: Terminal note event
- frequency_to_midi, midi_to_frequency, note_name_for_midi: Pitch helpers
- aggregate_stable_notes: Merge same-pitch segment runs into note events
- note_end_times: Precomputed search keys for repeated lookups
- find_active_note: Binary search for the event sounding at a given time
"""

from bisect import bisect_left
from dataclasses import dataclass
from typing import List, Optional, Sequence
import math
import librosa

from .config import DEFAULT_MAX_JOIN_GAP, DEFAULT_MIN_NOTE_DURATION
from .segments import PitchSegment, round_half_up


NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


@dataclass(frozen=True)
class StableNoteEvent:
    """A sustained note: a run of same-pitch segments longer than the minimum duration."""
    start_time: float          # seconds
    end_time: float            # seconds
    average_frequency: float   # Hz, unweighted mean of the run
    midi_number: int
    note_name: str             # e.g. "A4"
    label: Optional[str] = None  # sargam or note name, filled by the labeler

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def pitch_class(self) -> int:
        return self.midi_number % 12

    @property
    def display_label(self) -> str:
        return self.label if self.label else self.note_name

    def contains(self, time_seconds: float) -> bool:
        return self.start_time <= time_seconds <= self.end_time


# =============================================================================
# PITCH HELPERS
# =============================================================================

def frequency_to_midi(frequency: float) -> int:
    """Nearest MIDI note: round(69 + 12 * log2(f / 440))."""
    if frequency is None or not frequency > 0:
        raise ValueError(f"frequency must be positive, got {frequency}")
    return round_half_up(69.0 + 12.0 * math.log2(frequency / 440.0))


def midi_to_frequency(midi_number: float) -> float:
    """Equal-tempered frequency (Hz) of a MIDI note."""
    return float(librosa.midi_to_hz(midi_number))


def note_name_for_midi(midi_number: int) -> str:
    """Pitch-class name plus octave, e.g. 69 -> 'A4', 60 -> 'C4'."""
    octave = midi_number // 12 - 1
    return f"{NOTE_NAMES[midi_number % 12]}{octave}"


# =============================================================================
# AGGREGATION
# =============================================================================

def _close_run(run: List[PitchSegment], min_duration: float) -> Optional[StableNoteEvent]:
    if not run:
        return None
    start_time = run[0].start_time
    end_time = run[-1].end_time
    if end_time - start_time <= min_duration:
        return None

    avg_freq = sum(seg.frequency for seg in run) / len(run)
    midi = frequency_to_midi(avg_freq)
    return StableNoteEvent(
        start_time=start_time,
        end_time=end_time,
        average_frequency=avg_freq,
        midi_number=midi,
        note_name=note_name_for_midi(midi),
    )


def aggregate_stable_notes(
    segments: Sequence[PitchSegment],
    min_duration: float = DEFAULT_MIN_NOTE_DURATION,
    max_join_gap: float = DEFAULT_MAX_JOIN_GAP,
) -> List[StableNoteEvent]:
    """
    Merge runs of adjacent same-MIDI segments into stable note events.

    A segment joins the current run when its MIDI number equals that of the
    run's last segment and it starts less than `max_join_gap` seconds after
    that segment ends. Runs spanning `min_duration` seconds or less are
    dropped, which is what removes one-frame glitches.

    Args:
        segments: Time-ordered pitch segments
        min_duration: Run span (s) that must be exceeded to emit an event
        max_join_gap: Largest gap (s, exclusive) allowed inside a run

    Returns:
        Time-ordered, non-overlapping StableNoteEvent list
    """
    events = []
    run: List[PitchSegment] = []
    run_midi = None

    for seg in segments:
        midi = frequency_to_midi(seg.frequency)
        if run and midi == run_midi and (seg.start_time - run[-1].end_time) < max_join_gap:
            run.append(seg)
            continue

        event = _close_run(run, min_duration)
        if event is not None:
            events.append(event)
        run = [seg]
        run_midi = midi

    event = _close_run(run, min_duration)
    if event is not None:
        events.append(event)
    return events


# =============================================================================
# LOOKUP
# =============================================================================

def note_end_times(events: Sequence[StableNoteEvent]) -> List[float]:
    """End times in event order, for callers that look up the same list repeatedly."""
    return [evt.end_time for evt in events]


def find_active_note(
    events: Sequence[StableNoteEvent],
    time_seconds: float,
    end_times: Optional[Sequence[float]] = None,
) -> Optional[StableNoteEvent]:
    """
    Return the first event whose [start_time, end_time] contains `time_seconds`.

    Events are time-ordered and non-overlapping, so the first event ending at
    or after `time_seconds` is the only candidate. Where two events touch, the
    earlier one wins the shared instant.

    Args:
        events: Time-ordered note events
        time_seconds: Playback position
        end_times: Optional result of note_end_times(events); building it costs
            O(n), so pass it when polling the same list many times

    Returns:
        The active event, or None between/outside notes
    """
    if not events:
        return None
    if end_times is None:
        end_times = note_end_times(events)
    idx = bisect_left(end_times, time_seconds)
    if idx >= len(events):
        return None
    candidate = events[idx]
    return candidate if candidate.contains(time_seconds) else None
