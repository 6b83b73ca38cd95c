"""
Labels module: note names and movable-Sa (sargam) scale-degree labels.

Labels depend only on the pitch class and the root key, never on octave or
on neighbouring notes.
"""

from dataclasses import replace
from typing import List, Optional, Sequence, Union
import librosa
from librosa.util.exceptions import ParameterError

from .config import LabelConfig
from .notes import NOTE_NAMES, StableNoteEvent


# Semitone offset from Sa (0-11) -> sargam. Lowercase = komal, "MA" = tivra Ma.
SARGAM_LABELS = ["Sa", "re", "Re", "ga", "Ga", "Ma", "MA", "Pa", "dha", "Dha", "ni", "Ni"]


def root_key_to_pitch_class(root_key: Union[str, int, None]) -> Optional[int]:
    """
    Resolve a root key to a pitch class (0-11).

    Accepts the chromatic table names ("C", "F#"), other spellings librosa can
    parse ("Db", "c#4") and integer pitch classes. Returns None when the key
    cannot be resolved.
    """
    if root_key is None:
        return None
    if isinstance(root_key, int) and not isinstance(root_key, bool):
        return root_key % 12

    key = str(root_key).strip()
    if not key:
        return None
    if key in NOTE_NAMES:
        return NOTE_NAMES.index(key)

    for candidate in (key, key + "4"):
        try:
            return int(librosa.note_to_midi(candidate)) % 12
        except ParameterError:
            continue
    return None


def scale_degree_label(midi_number: int, root_key: Union[str, int, None]) -> Optional[str]:
    """Sargam label of a MIDI note relative to `root_key`, or None for an unknown key."""
    root_pc = root_key_to_pitch_class(root_key)
    if root_pc is None:
        return None
    interval = (midi_number % 12 - root_pc + 12) % 12
    return SARGAM_LABELS[interval]


def label_for(
    midi_number: int,
    note_name: str,
    root_key: Union[str, int, None],
    use_sargam: bool = True,
) -> str:
    """Label shown for a note: sargam when enabled and the key resolves, else the note name."""
    if use_sargam:
        sargam = scale_degree_label(midi_number, root_key)
        if sargam is not None:
            return sargam
    return note_name


def label_events(
    events: Sequence[StableNoteEvent],
    label_config: Optional[LabelConfig] = None,
) -> List[StableNoteEvent]:
    """Return copies of `events` with their label filled in."""
    if label_config is None:
        label_config = LabelConfig()
    return [
        replace(
            evt,
            label=label_for(evt.midi_number, evt.note_name, label_config.root_key, label_config.use_sargam),
        )
        for evt in events
    ]
