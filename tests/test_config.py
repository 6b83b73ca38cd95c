import tempfile
import unittest
from pathlib import Path

try:
    from swara_pipeline.config import (
        AnalysisConfig,
        ConfigurationError,
        FileAnalysisConfig,
        LiveInputAnalysisConfig,
        PipelineConfig,
        build_cli_parser,
        create_config,
        file_analysis_config,
        live_input_config,
        parse_config_from_argv,
        preset_for_source,
    )

    IMPORT_OK = True
except Exception:
    IMPORT_OK = False


@unittest.skipUnless(IMPORT_OK, "swara_pipeline imports unavailable in current environment")
class AnalysisConfigTests(unittest.TestCase):
    def test_file_preset(self) -> None:
        cfg = file_analysis_config()
        self.assertEqual((cfg.window_size, cfg.hop_size), (2048, 2048))
        self.assertEqual((cfg.noise_gate_min_hz, cfg.noise_gate_max_hz), (60.0, 1100.0))
        self.assertFalse(cfg.enable_normalization or cfg.enable_smoothing or cfg.enable_gap_fill)
        self.assertEqual(cfg.min_note_duration, 0.15)
        self.assertEqual(cfg.max_gap_seconds, 1.5)
        self.assertEqual(cfg.name, "file")

    def test_live_preset(self) -> None:
        cfg = live_input_config()
        self.assertEqual((cfg.window_size, cfg.hop_size), (2048, 512))
        self.assertEqual((cfg.noise_gate_min_hz, cfg.noise_gate_max_hz), (50.0, 1200.0))
        self.assertTrue(cfg.enable_normalization and cfg.enable_smoothing and cfg.enable_gap_fill)
        self.assertGreater(cfg.pitch_threshold, file_analysis_config().pitch_threshold)
        self.assertAlmostEqual(cfg.frame_period(44100), 512 / 44100)

    def test_preset_aliases_and_overrides(self) -> None:
        self.assertEqual(FileAnalysisConfig(), file_analysis_config())
        self.assertEqual(LiveInputAnalysisConfig(), live_input_config())
        cfg = live_input_config(max_gap_seconds=0.5, pitch_threshold=None)
        self.assertEqual(cfg.max_gap_seconds, 0.5)
        self.assertEqual(cfg.pitch_threshold, live_input_config().pitch_threshold)
        self.assertEqual(preset_for_source("live").name, "live")
        with self.assertRaises(ConfigurationError):
            preset_for_source("radio")

    def test_invalid_configs_fail_fast(self) -> None:
        bad = [
            dict(window_size=1024, hop_size=2048),
            dict(hop_size=0),
            dict(window_size=0, hop_size=0),
            dict(noise_gate_min_hz=1100.0, noise_gate_max_hz=60.0),
            dict(noise_gate_min_hz=300.0, noise_gate_max_hz=300.0),
            dict(pitch_threshold=0.0),
            dict(probability_threshold=1.5),
            dict(max_gap_seconds=0.0),
            dict(max_join_gap=-0.1),
            dict(min_note_duration=0.0),
            dict(min_note_duration=-0.15),
        ]
        for kwargs in bad:
            with self.assertRaises(ConfigurationError, msg=str(kwargs)):
                AnalysisConfig(**kwargs)

    def test_configuration_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            file_analysis_config(hop_size=4096)

    def test_config_is_immutable(self) -> None:
        cfg = file_analysis_config()
        with self.assertRaises(Exception):
            cfg.hop_size = 512


@unittest.skipUnless(IMPORT_OK, "swara_pipeline imports unavailable in current environment")
class CliConfigTests(unittest.TestCase):
    def test_build_cli_parser_has_subcommands(self) -> None:
        parser = build_cli_parser()
        subparser_actions = [a for a in parser._actions if a.dest == "command"]
        self.assertTrue(subparser_actions)
        choices = subparser_actions[0].choices
        for mode in ("analyze", "segments", "lookup"):
            self.assertIn(mode, choices)

    def test_parse_analyze(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            audio_path = Path(tmpdir) / "take.wav"
            audio_path.write_bytes(b"RIFF")
            config = parse_config_from_argv(
                [
                    "analyze",
                    "--audio", str(audio_path),
                    "--output", tmpdir,
                    "--source", "live",
                    "--root-key", "D",
                    "--no-sargam",
                    "--max-gap", "0.75",
                    "--at", "0.5", "1.25",
                ]
            )
            self.assertEqual(config.mode, "analyze")
            self.assertEqual(config.audio_path, str(audio_path.absolute()))
            self.assertEqual(config.output_dir, str(Path(tmpdir).absolute()))
            self.assertEqual(config.root_key, "D")
            self.assertFalse(config.use_sargam)
            self.assertEqual(config.query_times, [0.5, 1.25])
            self.assertEqual(config.filename, "take")
            self.assertTrue(config.notes_output_path.endswith("take_notes.csv"))

            analysis = config.analysis_config()
            self.assertEqual(analysis.name, "live")
            self.assertEqual(analysis.hop_size, 512)
            self.assertEqual(analysis.max_gap_seconds, 0.75)
            self.assertEqual(config.label_config.root_key, "D")

    def test_missing_audio_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(FileNotFoundError):
                create_config(str(Path(tmpdir) / "missing.wav"), tmpdir)

    def test_lookup_requires_notes_and_times(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            notes_path = Path(tmpdir) / "take_notes.csv"
            notes_path.write_text("start,end,duration,frequency_hz,midi,note,label\n")
            with self.assertRaises(ValueError):
                PipelineConfig(mode="lookup", notes_csv=str(notes_path), output_dir=tmpdir)
            with self.assertRaises(ValueError):
                PipelineConfig(mode="lookup", output_dir=tmpdir, query_times=[1.0])
            config = parse_config_from_argv(["lookup", "--notes", str(notes_path), "--at", "2"])
            self.assertEqual(config.query_times, [2.0])
            self.assertEqual(config.filename, "take_notes")


if __name__ == "__main__":
    unittest.main()
