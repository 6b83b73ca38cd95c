"""
Output module: CSV export/import of note events and segments, console tables.
"""

from typing import List, Sequence
import os
import pandas as pd

from .notes import StableNoteEvent
from .segments import PitchSegment

NOTE_COLUMNS = [
    "start", "end", "duration",
    "frequency_hz", "midi", "note", "label",
]

SEGMENT_COLUMNS = ["start", "end", "frequency_hz", "synthetic"]


def notes_to_dataframe(events: Sequence[StableNoteEvent]) -> pd.DataFrame:
    """One row per note event."""
    rows = [
        {
            "start": evt.start_time,
            "end": evt.end_time,
            "duration": evt.duration,
            "frequency_hz": evt.average_frequency,
            "midi": evt.midi_number,
            "note": evt.note_name,
            "label": evt.label if evt.label is not None else "",
        }
        for evt in events
    ]
    return pd.DataFrame(rows, columns=NOTE_COLUMNS)


def save_notes_to_csv(events: Sequence[StableNoteEvent], output_path: str) -> str:
    """
    Save note events to CSV (header is written even for an empty list).

    Returns:
        The path written
    """
    out_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(out_dir, exist_ok=True)
    df = notes_to_dataframe(events)
    # Full precision: lookups on a reloaded file must match the in-memory events.
    df.to_csv(output_path, index=False)
    return output_path


def load_notes_from_csv(csv_path: str) -> List[StableNoteEvent]:
    """Read a CSV written by save_notes_to_csv back into events, sorted by start."""
    df = pd.read_csv(csv_path, keep_default_na=False, float_precision="round_trip")
    missing = [c for c in ("start", "end", "frequency_hz", "midi", "note") if c not in df.columns]
    if missing:
        raise ValueError(f"Notes CSV {csv_path} is missing columns: {', '.join(missing)}")

    df = df.sort_values("start", kind="stable")
    events = []
    for row in df.itertuples(index=False):
        label = getattr(row, "label", "")
        events.append(StableNoteEvent(
            start_time=float(row.start),
            end_time=float(row.end),
            average_frequency=float(row.frequency_hz),
            midi_number=int(row.midi),
            note_name=str(row.note),
            label=str(label) if label != "" else None,
        ))
    return events


def save_segments_to_csv(segments: Sequence[PitchSegment], output_path: str) -> str:
    """Save pitch segments (including synthetic gap-fill segments) to CSV."""
    out_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(out_dir, exist_ok=True)
    df = pd.DataFrame(
        [
            {
                "start": seg.start_time,
                "end": seg.end_time,
                "frequency_hz": seg.frequency,
                "synthetic": seg.synthetic,
            }
            for seg in segments
        ],
        columns=SEGMENT_COLUMNS,
    )
    df.to_csv(output_path, index=False, float_format="%.4f")
    return output_path


def format_note_table(events: Sequence[StableNoteEvent]) -> str:
    """Fixed-width text table for console output."""
    if not events:
        return "(no stable notes)"
    df = notes_to_dataframe(events)
    df["frequency_hz"] = df["frequency_hz"].round(1)
    for col in ("start", "end", "duration"):
        df[col] = df[col].round(3)
    return df.to_string(index=False)
