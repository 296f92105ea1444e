"""Audio normalization and decoding."""

from .decoder import SampleDecoder
from .normalizer import AudioNormalizer
from .transcoder import FfmpegTranscoder, Transcoder
from .types import AudioMetadata

__all__ = [
    "AudioMetadata",
    "AudioNormalizer",
    "FfmpegTranscoder",
    "SampleDecoder",
    "Transcoder",
]
