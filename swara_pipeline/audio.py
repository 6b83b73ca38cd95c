"""
Audio module: sample buffers, amplitude normalization and file loading.

Provides:
- SampleBuffer: Decoded mono samples plus sample rate
- normalize_buffer: Peak normalization for quiet microphone takes
- load_audio: Decode a file into a SampleBuffer (thin librosa adapter)
"""

from dataclasses import dataclass
from typing import Sequence, Union
import os
import numpy as np
import librosa

from .config import DEFAULT_NORMALIZATION_EPSILON, DEFAULT_NORMALIZATION_TARGET


@dataclass(frozen=True)
class SampleBuffer:
    """Decoded mono audio owned by a single analysis call."""
    samples: np.ndarray   # float samples, mono
    sample_rate: int      # Hz

    @property
    def duration(self) -> float:
        """Total duration in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / float(self.sample_rate)

    @property
    def peak(self) -> float:
        """Maximum absolute sample amplitude (0 for an empty buffer)."""
        if len(self.samples) == 0:
            return 0.0
        return float(np.max(np.abs(self.samples)))

    def __len__(self) -> int:
        return len(self.samples)


def as_sample_buffer(
    samples: Union[SampleBuffer, np.ndarray, Sequence[float]],
    sample_rate: int,
) -> SampleBuffer:
    """Wrap raw samples in a SampleBuffer (mono float64 copy)."""
    if isinstance(samples, SampleBuffer):
        return samples
    data = np.asarray(samples, dtype=float)
    if data.ndim > 1:
        # Downmix (channels, samples) like librosa.to_mono.
        data = librosa.to_mono(data)
    return SampleBuffer(samples=np.array(data, dtype=float, copy=True), sample_rate=int(sample_rate))


def normalize_buffer(
    buffer: SampleBuffer,
    target: float = DEFAULT_NORMALIZATION_TARGET,
    epsilon: float = DEFAULT_NORMALIZATION_EPSILON,
) -> SampleBuffer:
    """
    Scale a buffer so its peak reaches `target`.

    Buffers whose peak is at or below `epsilon` (silence, noise floor) are
    returned unchanged. The caller hands the buffer over and must use the
    returned one afterwards.

    Args:
        buffer: Input samples
        target: Peak amplitude after scaling (fraction of full scale)
        epsilon: Minimum peak considered a real signal

    Returns:
        The normalized buffer (the input object itself when left unchanged)
    """
    peak = buffer.peak
    if peak <= epsilon:
        return buffer
    gain = target / peak
    return SampleBuffer(samples=buffer.samples * gain, sample_rate=buffer.sample_rate)


def load_audio(audio_path: str, sample_rate: Union[int, None] = None) -> SampleBuffer:
    """
    Decode an audio file to a mono SampleBuffer.

    Args:
        audio_path: Path to any format librosa/soundfile can read
        sample_rate: Resample target; None keeps the native rate

    Raises:
        FileNotFoundError: If the path does not exist
        RuntimeError: If decoding fails (no buffer available)
    """
    if not os.path.isfile(audio_path):
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    try:
        y, sr = librosa.load(audio_path, sr=sample_rate, mono=True)
    except Exception as exc:
        raise RuntimeError(f"Failed to decode audio: {audio_path}") from exc

    return SampleBuffer(samples=np.asarray(y, dtype=float), sample_rate=int(sr))
