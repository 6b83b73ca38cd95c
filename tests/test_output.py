import os
import tempfile
import unittest

try:
    import pandas as pd

    from swara_pipeline.notes import StableNoteEvent, find_active_note
    from swara_pipeline.output import (
        format_note_table,
        load_notes_from_csv,
        notes_to_dataframe,
        save_notes_to_csv,
        save_segments_to_csv,
    )
    from swara_pipeline.segments import PitchSegment

    IMPORT_OK = True
except Exception:
    IMPORT_OK = False


@unittest.skipUnless(IMPORT_OK, "output module unavailable in current environment")
class NotesCsvTests(unittest.TestCase):
    def setUp(self) -> None:
        self.events = [
            StableNoteEvent(0.0, 0.325, 440.2, 69, "A4", "Dha"),
            StableNoteEvent(0.5, 0.9, 523.3, 72, "C5", None),
        ]

    def test_dataframe_columns(self) -> None:
        df = notes_to_dataframe(self.events)
        self.assertEqual(list(df.columns), ["start", "end", "duration", "frequency_hz", "midi", "note", "label"])
        self.assertEqual(df["label"].tolist(), ["Dha", ""])
        self.assertEqual(len(notes_to_dataframe([])), 0)

    def test_saved_notes_can_be_looked_up(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "nested", "take_notes.csv")
            save_notes_to_csv(self.events, path)
            loaded = load_notes_from_csv(path)

        self.assertEqual([e.note_name for e in loaded], ["A4", "C5"])
        self.assertEqual([e.midi_number for e in loaded], [69, 72])
        self.assertEqual(loaded[0].label, "Dha")
        self.assertIsNone(loaded[1].label)
        self.assertAlmostEqual(loaded[0].end_time, 0.325)
        self.assertEqual(find_active_note(loaded, 0.7).note_name, "C5")

    def test_reloaded_times_keep_full_precision(self) -> None:
        boundary = 14336 / 44100
        events = [
            StableNoteEvent(0.0, boundary, 440.0, 69, "A4", "Dha"),
            StableNoteEvent(boundary, 0.6037188208616781, 880.0, 81, "A5", "Dha"),
        ]
        with tempfile.TemporaryDirectory() as tmpdir:
            path = save_notes_to_csv(events, os.path.join(tmpdir, "take_notes.csv"))
            loaded = load_notes_from_csv(path)

        self.assertEqual([e.start_time for e in loaded], [e.start_time for e in events])
        self.assertEqual([e.end_time for e in loaded], [e.end_time for e in events])
        for t in (boundary, boundary + 1e-6, 0.6037188208616781):
            self.assertEqual(
                find_active_note(loaded, t).note_name,
                find_active_note(events, t).note_name,
            )
        self.assertEqual(find_active_note(loaded, boundary).note_name, "A4")

    def test_empty_list_writes_header(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "empty.csv")
            save_notes_to_csv([], path)
            self.assertEqual(load_notes_from_csv(path), [])

    def test_missing_columns_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "bad.csv")
            pd.DataFrame({"start": [0.0], "end": [1.0]}).to_csv(path, index=False)
            with self.assertRaises(ValueError):
                load_notes_from_csv(path)


@unittest.skipUnless(IMPORT_OK, "output module unavailable in current environment")
class SegmentsCsvAndTableTests(unittest.TestCase):
    def test_segments_csv(self) -> None:
        segments = [
            PitchSegment(0.0, 0.0116, 440.0),
            PitchSegment(0.0116, 0.0232, 441.0, synthetic=True),
        ]
        with tempfile.TemporaryDirectory() as tmpdir:
            path = save_segments_to_csv(segments, os.path.join(tmpdir, "segments.csv"))
            df = pd.read_csv(path)
        self.assertEqual(list(df.columns), ["start", "end", "frequency_hz", "synthetic"])
        self.assertEqual(df["synthetic"].tolist(), [False, True])

    def test_format_note_table(self) -> None:
        self.assertEqual(format_note_table([]), "(no stable notes)")
        table = format_note_table([StableNoteEvent(0.0, 0.5, 440.04, 69, "A4", "Dha")])
        self.assertIn("A4", table)
        self.assertIn("Dha", table)
        self.assertIn("440.0", table)


if __name__ == "__main__":
    unittest.main()
