"""Orchestrates the bilingual subtitle pipeline."""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .ai_response import load_ai_response
from .audio_extractor import AudioExtractor
from .burn_in import BurnInRenderer
from .config_loader import mode_suffixes
from .exceptions import DualSubError, FileSystemError
from .models import SRTMode, Subtitle, VideoMetadata
from .segment_source import BilingualSegmentSource
from .srt_codec import SRTFormatter, SubtitleFormatter, export_filename, read_srt_file
from .timeline import SubtitleTrack, ingest
from .utils import ensure_dir_exists, remove_quietly

logger = logging.getLogger(__name__)

@dataclass
class GenerationResult:
    """What one run of the pipeline produced."""
    video: VideoMetadata
    subtitles: List[Subtitle]
    srt_paths: Dict[SRTMode, str] = field(default_factory=dict)
    burned_video_path: Optional[str] = None

def _records_from_subtitles(subtitles: Sequence[Subtitle]) -> List[dict]:
    return [
        {
            "index": sub.index,
            "startTime": sub.start_time,
            "endTime": sub.end_time,
            "originalText": sub.original_text,
            "translatedText": sub.translated_text,
        }
        for sub in subtitles
    ]

class SubtitleGenerator:
    """
    Manages the end-to-end process of producing bilingual subtitles for a video file.
    """

    def __init__(
        self,
        config: dict,
        audio_extractor: Optional[AudioExtractor] = None,
        segment_source: Optional[BilingualSegmentSource] = None,
        renderer: Optional[BurnInRenderer] = None,
        formatter: Optional[SubtitleFormatter] = None,
    ):
        """
        Initializes the SubtitleGenerator.

        Args:
            config: A dictionary containing configuration settings.
            audio_extractor: Needed only when transcribing locally.
            segment_source: Transcription + translation backend; None when
                            segments always come from a file.
            renderer: Burn-in renderer; None disables burn-in.
            formatter: Subtitle file writer; defaults to SRTFormatter.

        Raises:
            DualSubError: If the temporary directory is missing or not writable.
        """
        self.config = config
        self.audio_extractor = audio_extractor
        self.segment_source = segment_source
        self.renderer = renderer
        self.subtitle_formatter = formatter or SRTFormatter()
        self.suffixes = mode_suffixes(config)
        self.strict_intervals = bool(config.get('strict_intervals', False))

        self.temp_dir = config.get('temp_dir')
        if not self.temp_dir:
            raise DualSubError("Configuration missing 'temp_dir'.")
        try:
            ensure_dir_exists(self.temp_dir)
            test_file = os.path.join(self.temp_dir, f".dualsub_write_test_{int(time.time())}")
            with open(test_file, "w") as f:
                f.write("test")
            os.remove(test_file)
        except (FileSystemError, OSError, ValueError) as e:
            raise DualSubError(f"Temporary directory '{self.temp_dir}' is invalid or not writable: {e}") from e

    def _collect_records(self, video_path: str, segments_json: Optional[str], srt_input: Optional[str]) -> tuple:
        """Returns (raw records, temporary audio path or None)."""
        if srt_input:
            logger.info(f"Loading subtitles from existing SRT: {srt_input}")
            return _records_from_subtitles(read_srt_file(srt_input)), None
        if segments_json:
            logger.info(f"Loading segments from service response: {segments_json}")
            return load_ai_response(segments_json), None

        if self.segment_source is None or self.audio_extractor is None:
            raise DualSubError("No transcription backend configured; pass a segments JSON or SRT file instead.")
        temp_name = f"{os.path.splitext(os.path.basename(video_path))[0]}_{int(time.time())}"
        audio_path = self.audio_extractor.extract_audio(video_path, self.temp_dir, temp_name)
        try:
            return self.segment_source.produce(audio_path), audio_path
        except Exception:
            remove_quietly(audio_path)
            raise

    def write_subtitles(self, subtitles: Sequence[Subtitle], basename: str, output_dir: str, modes: Sequence[SRTMode]) -> Dict[SRTMode, str]:
        """Writes one subtitle file per mode and returns their paths."""
        paths = {}
        for mode in modes:
            path = os.path.join(output_dir, export_filename(basename, mode, self.suffixes))
            self.subtitle_formatter.format_subtitles(subtitles, path, mode)
            paths[mode] = path
        return paths

    def generate(
        self,
        video_path: str,
        output_dir: str,
        segments_json: Optional[str] = None,
        srt_input: Optional[str] = None,
        burn_in: bool = False,
        modes: Optional[Sequence[SRTMode]] = None,
    ) -> GenerationResult:
        """
        Executes the full pipeline for a single video.

        Args:
            video_path: Path to the input video file.
            output_dir: Directory to save the subtitle files (and burned video).
            segments_json: Saved service response to use instead of transcribing.
            srt_input: Existing bilingual SRT to use instead of transcribing.
            burn_in: Also write a video with the subtitles burned in.
            modes: Subtitle files to write; defaults to the configured modes.

        Returns:
            A GenerationResult describing the outputs.

        Raises:
            DualSubError: For any configuration or processing errors in the pipeline.
            FileNotFoundError: If the input video is not found.
        """
        start_time = time.time()
        logger.info(f"--- Starting DualSub process for: {video_path} ---")
        if not os.path.isfile(video_path):
            raise FileNotFoundError(f"Input video file not found: {video_path}")
        if burn_in and self.renderer is None:
            raise DualSubError("Burn-in requested but no renderer is configured.")
        ensure_dir_exists(output_dir)

        video = VideoMetadata.from_path(video_path)
        modes = list(modes) if modes is not None else [SRTMode(m) for m in self.config.get('modes', ['bilingual'])]
        audio_path = None

        try:
            logger.info("Step 1: Collecting time-stamped segments...")
            records, audio_path = self._collect_records(video_path, segments_json, srt_input)

            logger.info("Step 2: Building the subtitle timeline...")
            subtitles = ingest(records, strict=self.strict_intervals)
            if not subtitles:
                raise DualSubError("No subtitle segments were produced. Cannot proceed.")
            result = GenerationResult(video=video, subtitles=subtitles)

            logger.info(f"Step 3: Writing {len(modes)} subtitle file(s)...")
            result.srt_paths = self.write_subtitles(subtitles, video.basename, output_dir, modes)

            if burn_in:
                logger.info("Step 4: Burning subtitles into the video...")
                extension = self.config.get('burn_in_extension', 'mp4')
                output_video = os.path.join(output_dir, f"{video.basename}_{self.suffixes[SRTMode.BILINGUAL]}.{extension}")
                result.burned_video_path = self.renderer.render(video_path, SubtitleTrack(subtitles), output_video)

            logger.info(f"--- DualSub process completed successfully in {time.time() - start_time:.2f} seconds ---")
            return result

        except (DualSubError, FileNotFoundError) as e:
            logger.error(f"DualSub process failed: {e}", exc_info=False)
            raise
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred during subtitle generation: {e}", exc_info=True)
            raise DualSubError(f"An unexpected critical error occurred: {e}") from e
        finally:
            if remove_quietly(audio_path):
                logger.info(f"Cleaned up temporary file: {audio_path}")
