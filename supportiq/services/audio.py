"""Audio acquisition: validated uploads and microphone recordings."""

import base64
import binascii
import logging
from collections.abc import Callable
from dataclasses import dataclass

from supportiq.config import MAX_AUDIO_BYTES
from supportiq.errors import AudioValidationError, DeviceError

logger = logging.getLogger(__name__)

RECORDING_MIME_TYPE = "audio/webm"
RECORDING_FILENAME = "recording.webm"


@dataclass(frozen=True)
class AudioAsset:
    data: bytes
    mime_type: str
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


def is_audio_type(content_type: str | None) -> bool:
    return bool(content_type) and content_type.strip().lower().startswith("audio/")


def validate_audio_upload(
    filename: str | None,
    content_type: str | None,
    data: bytes,
    max_bytes: int = MAX_AUDIO_BYTES,
) -> AudioAsset:
    """Turn an uploaded file into an AudioAsset, or raise AudioValidationError.

    Only the declared MIME type is checked; the bytes are not sniffed.
    """
    if not is_audio_type(content_type):
        logger.info("Rejected upload %r with type %r", filename, content_type)
        raise AudioValidationError("Please upload an audio file.")
    if not data:
        raise AudioValidationError("The uploaded audio file is empty.")
    if len(data) > max_bytes:
        raise AudioValidationError(
            f"The audio file is too large ({len(data) // (1024 * 1024)} MB). "
            f"The limit is {max_bytes // (1024 * 1024)} MB."
        )
    return AudioAsset(data=data, mime_type=content_type.strip().lower(), filename=filename or "")


class AudioRecorder:
    """Collects streamed microphone chunks into one audio asset.

    Use as a context manager: ``release()`` runs exactly once whichever way
    the block exits, and no chunk is accepted afterwards.
    """

    def __init__(
        self,
        on_release: Callable[[], None] | None = None,
        mime_type: str = RECORDING_MIME_TYPE,
        max_bytes: int = MAX_AUDIO_BYTES,
    ):
        self.mime_type = mime_type
        self.max_bytes = max_bytes
        self._on_release = on_release
        self._chunks: list[bytes] = []
        self._size = 0
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def size(self) -> int:
        return self._size

    def add_chunk(self, data: bytes) -> None:
        if self._released:
            raise DeviceError("Recording has already stopped.")
        if not data:
            return
        if self._size + len(data) > self.max_bytes:
            raise AudioValidationError("The recording exceeds the maximum audio size.")
        self._chunks.append(data)
        self._size += len(data)

    def add_base64_chunk(self, encoded: str) -> None:
        if not isinstance(encoded, str):
            raise AudioValidationError("Received an audio chunk that is not valid base64.")
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise AudioValidationError("Received an audio chunk that is not valid base64.") from exc
        self.add_chunk(data)

    def stop(self) -> AudioAsset:
        """Concatenate the captured chunks and release the recorder."""
        if self._released:
            raise DeviceError("Recording has already stopped.")
        data = b"".join(self._chunks)
        self.release()
        if not data:
            raise DeviceError("No audio was captured. Please check your microphone and try again.")
        logger.info("Recording stopped: %d bytes captured", len(data))
        return AudioAsset(data=data, mime_type=self.mime_type, filename=RECORDING_FILENAME)

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._chunks.clear()
        self._size = 0
        if self._on_release is not None:
            self._on_release()

    def __enter__(self) -> "AudioRecorder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
