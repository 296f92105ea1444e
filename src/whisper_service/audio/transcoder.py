"""Transcoders turn arbitrary audio bytes into canonical WAV bytes."""

from __future__ import annotations

import abc
import logging
import os
import subprocess
import tempfile
from typing import List, Optional

from ..errors import AudioIoError, ConversionFailed
from .types import CANONICAL_SAMPLE_RATE

logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES = 5


class Transcoder(abc.ABC):
    """Converts audio in any container or codec into mono 16 kHz WAV."""

    name: str

    @abc.abstractmethod
    def transcode(self, data: bytes) -> bytes:
        """Return canonical WAV bytes for ``data``."""
        raise NotImplementedError


class FfmpegTranscoder(Transcoder):
    """Runs the ffmpeg binary once per call against two scoped temp files."""

    name = "ffmpeg"

    def __init__(
        self,
        *,
        binary: str = "ffmpeg",
        sample_rate: int = CANONICAL_SAMPLE_RATE,
        channels: int = 1,
        timeout: Optional[float] = None,
    ) -> None:
        self._binary = binary
        self._sample_rate = sample_rate
        self._channels = channels
        self._timeout = timeout if timeout and timeout > 0 else None

    def command(self, input_path: str, output_path: str) -> List[str]:
        return [
            self._binary,
            "-y",
            "-i",
            input_path,
            "-ac",
            str(self._channels),
            "-ar",
            str(self._sample_rate),
            "-f",
            "wav",
            output_path,
        ]

    def transcode(self, data: bytes) -> bytes:
        paths: List[str] = []
        try:
            try:
                with tempfile.NamedTemporaryFile(prefix="whisper-in-", delete=False) as input_file:
                    paths.append(input_file.name)
                    input_file.write(data)
                    input_file.flush()
                with tempfile.NamedTemporaryFile(prefix="whisper-out-", suffix=".wav", delete=False) as output_file:
                    paths.append(output_file.name)
            except OSError as exc:
                raise AudioIoError(f"failed to prepare temporary audio files: {exc}") from exc

            input_path, output_path = paths
            self._run(self.command(input_path, output_path))

            try:
                with open(output_path, "rb") as fh:
                    return fh.read()
            except OSError as exc:
                raise AudioIoError(f"failed to read converted audio: {exc}") from exc
        finally:
            for path in paths:
                _unlink_quietly(path)

    def _run(self, command: List[str]) -> None:
        try:
            completed = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ConversionFailed(f"{self._binary} timed out after {self._timeout}s") from exc
        except OSError as exc:
            raise ConversionFailed(f"failed to start {self._binary}: {exc}") from exc

        if completed.returncode != 0:
            stderr = _tail(completed.stderr)
            logger.warning(
                "transcode.ffmpeg.failed",
                extra={"returncode": completed.returncode, "stderr": stderr},
            )
            raise ConversionFailed(
                f"{self._binary} command failed with exit status {completed.returncode}",
                returncode=completed.returncode,
                stderr=stderr,
            )


def _tail(raw: bytes | None) -> str:
    if not raw:
        return ""
    lines = raw.decode("utf-8", errors="replace").strip().splitlines()
    return "\n".join(lines[-_STDERR_TAIL_LINES:])


def _unlink_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("transcode.tempfile.cleanup_failed", extra={"path": path})


__all__ = ["Transcoder", "FfmpegTranscoder"]
