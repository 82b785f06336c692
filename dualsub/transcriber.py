"""Handles Speech-to-Text transcription using Whisper."""

import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional

from .models import TranscriptionResult, Segment
from .exceptions import TranscriptionError

logger = logging.getLogger(__name__)

def resolve_device(device: str) -> str:
    """Validates the requested torch device, falling back to CPU when CUDA is missing."""
    import torch

    if device == "cuda" and not torch.cuda.is_available():
        logger.warning("CUDA device requested but not available. Falling back to CPU.")
        return "cpu"
    if device not in ["cuda", "cpu"]:
        raise ValueError(f"Invalid device specified: {device}. Choose 'cuda' or 'cpu'.")
    return device

class Transcriber(ABC):
    """Abstract base class for transcription services."""

    @abstractmethod
    def transcribe(self, audio_path: str) -> TranscriptionResult:
        """
        Transcribes the given audio file.

        Args:
            audio_path: Path to the audio file.

        Returns:
            A TranscriptionResult object containing segments and language.

        Raises:
            TranscriptionError: If transcription fails.
            FileNotFoundError: If the audio file doesn't exist.
        """
        pass

class WhisperTranscriber(Transcriber):
    """Implements transcription using OpenAI's Whisper model."""

    def __init__(self, model_name: str = "medium", device: str = "cuda", fp16: bool = True, language: Optional[str] = "en"):
        """
        Initializes the WhisperTranscriber.

        Args:
            model_name: The name of the Whisper model to use (e.g., "base", "medium.en").
            device: The device to run the model on ("cuda" or "cpu").
            fp16: Whether to use float16 precision (faster on compatible GPUs).
            language: Spoken language of the source audio; None lets Whisper detect it.

        Raises:
            ValueError: If the specified device is invalid.
            TranscriptionError: If the model fails to load.
        """
        import whisper

        self.model_name = model_name
        self.device = resolve_device(device)
        self.fp16 = fp16 and self.device == "cuda"
        self.language = language

        logger.info(f"Initializing WhisperTranscriber with model '{self.model_name}' on device '{self.device}' (FP16: {self.fp16})")
        try:
            self.model = whisper.load_model(self.model_name, device=self.device)
            logger.info(f"Whisper model '{self.model_name}' loaded successfully.")
        except Exception as e:
            logger.error(f"Failed to load Whisper model '{self.model_name}': {e}", exc_info=True)
            raise TranscriptionError(f"Failed to load Whisper model '{self.model_name}': {e}") from e

    def transcribe(self, audio_path: str) -> TranscriptionResult:
        """
        Transcribes the audio file using the loaded Whisper model.

        Args:
            audio_path: Path to the audio file (WAV format recommended).

        Returns:
            A TranscriptionResult object.

        Raises:
            FileNotFoundError: If the audio file doesn't exist.
            TranscriptionError: If transcription fails during processing.
        """
        logger.info(f"Starting transcription for: {audio_path}")
        if not os.path.exists(audio_path):
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        try:
            result = self.model.transcribe(
                audio_path,
                language=self.language,
                fp16=self.fp16,
                verbose=None
            )
        except Exception as e:
            logger.error(f"Error during Whisper transcription process for {audio_path}: {e}", exc_info=True)
            raise TranscriptionError(f"Whisper transcription failed for {audio_path}: {e}") from e

        logger.info(f"Transcription completed. Detected language: {result.get('language', 'N/A')}")
        segments = segments_from_whisper(result.get('segments', []))
        logger.info(f"Kept {len(segments)} speech segments.")
        return TranscriptionResult(
            language=result.get('language'),
            segments=segments,
            original_audio_path=audio_path
        )

def segments_from_whisper(raw_segments: List[dict]) -> List[Segment]:
    """
    Converts Whisper's segment dicts into Segments.

    Incomplete entries and entries whose text is blank after stripping are
    skipped; Whisper emits those for music and silence.
    """
    segments = []
    for seg_data in raw_segments:
        if not {'start', 'end', 'text'} <= seg_data.keys():
            logger.warning(f"Skipping incomplete segment data: {seg_data}")
            continue
        text = seg_data['text'].strip()
        if not text:
            continue
        segments.append(Segment(start_time=float(seg_data['start']), end_time=float(seg_data['end']), text=text))
    return segments
