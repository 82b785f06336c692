"""Extracts the audio track of a video for transcription, using ffmpeg."""

import logging
import os
from typing import Optional

import ffmpeg

from .exceptions import AudioExtractionError, FileSystemError
from .utils import ensure_dir_exists, remove_quietly

logger = logging.getLogger(__name__)

class AudioExtractor:
    """Extracts a mono PCM WAV track from video files."""

    def __init__(self, ffmpeg_path: Optional[str] = None, sample_rate: int = 16000):
        """
        Args:
            ffmpeg_path: Optional path to the ffmpeg executable.
                         If None, assumes ffmpeg is in the system PATH.
            sample_rate: Output sample rate; 16 kHz is what speech models expect.
        """
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        self.sample_rate = sample_rate
        logger.info(f"Using ffmpeg command: {self.ffmpeg_cmd}")

    def extract_audio(self, video_filepath: str, output_audio_dir: str, output_filename: Optional[str] = None) -> str:
        """
        Extracts the audio stream from a video file to a WAV file.

        Args:
            video_filepath: Path to the input video file.
            output_audio_dir: Directory to save the extracted audio file.
            output_filename: Optional base name for the output audio file.
                             If None, uses the video filename.

        Returns:
            The full path to the extracted audio file.

        Raises:
            FileNotFoundError: If the input video file does not exist.
            AudioExtractionError: If ffmpeg fails to extract the audio.
            FileSystemError: If the output directory cannot be created/accessed.
        """
        logger.info(f"Starting audio extraction for: {video_filepath}")
        if not os.path.exists(video_filepath):
            raise FileNotFoundError(f"Input video file not found: {video_filepath}")

        ensure_dir_exists(output_audio_dir)
        base_name = os.path.splitext(output_filename or os.path.basename(video_filepath))[0]
        output_audio_path = os.path.join(output_audio_dir, f"{base_name}.wav")

        if os.path.exists(output_audio_path):
            logger.warning(f"Output audio file already exists, overwriting: {output_audio_path}")
            try:
                os.remove(output_audio_path)
            except OSError as e:
                raise FileSystemError(f"Could not remove existing audio file {output_audio_path}: {e}") from e

        try:
            logger.info(f"Running ffmpeg to extract audio to {output_audio_path}...")
            (
                ffmpeg
                .input(video_filepath)
                .output(output_audio_path, vn=None, acodec='pcm_s16le', ar=self.sample_rate, ac=1)
                .overwrite_output()
                .run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
            )
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            logger.error(f"ffmpeg error during audio extraction for {video_filepath}: {stderr_output}")
            remove_quietly(output_audio_path)
            raise AudioExtractionError(f"ffmpeg failed: {stderr_output}") from e

        logger.info(f"Successfully extracted audio to: {output_audio_path}")
        return output_audio_path
