"""Command-Line Interface handler for DualSub."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .config_loader import ConfigLoader
from .log_setup import setup_logging
from .audio_extractor import AudioExtractor
from .burn_in import BurnInRenderer
from .overlay import OverlayLayout
from .painter import OverlayPainter
from .segment_source import BilingualSegmentSource
from .subtitle_generator import SubtitleGenerator
from .exceptions import DualSubError, ConfigurationError
from .models import SRTMode

logger = logging.getLogger(__name__)

class CLIHandler:
    """Parses arguments and orchestrates the DualSub process."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="DualSub: Generate bilingual subtitles for a local video and optionally burn them in.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        parser.add_argument(
            "-v", "--video",
            required=True,
            help="Path to the input video file."
        )
        parser.add_argument(
            "-o", "--output-dir",
            required=True,
            help="Directory to save the generated subtitle files (.srt) and burned video."
        )
        parser.add_argument(
            "-c", "--config",
            default="config.yaml",
            help="Path to the configuration YAML file."
        )
        parser.add_argument(
            "--temp-dir",
            default=None,
            help="Override the temporary directory specified in the config file."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        parser.add_argument(
            "--device",
            default=None,
            choices=["cuda", "cpu"],
            help="Override the processing device (cuda or cpu) specified in config."
        )
        source = parser.add_mutually_exclusive_group()
        source.add_argument(
            "--segments-json",
            default=None,
            help="Use a saved JSON response from a transcription/translation service instead of transcribing locally."
        )
        source.add_argument(
            "--srt-input",
            default=None,
            help="Use an existing bilingual SRT file instead of transcribing (e.g. to burn it in)."
        )
        parser.add_argument(
            "--modes",
            nargs="+",
            default=None,
            choices=[mode.value for mode in SRTMode],
            help="Subtitle files to write. Defaults to the 'modes' list in the config."
        )
        parser.add_argument(
            "--burn-in",
            action="store_true",
            help="Also write a copy of the video with bilingual subtitles burned in."
        )
        return parser

    def _build_generator(self, config: dict, needs_transcription: bool, burn_in: bool) -> SubtitleGenerator:
        audio_extractor = None
        segment_source = None
        if needs_transcription:
            # Model libraries are heavy; import them only when transcribing.
            from .transcriber import WhisperTranscriber
            from .translator import HuggingFaceTranslator

            device = config['device']
            batch_size = config.get('translation_batch_size', 16)
            audio_extractor = AudioExtractor(ffmpeg_path=config.get('ffmpeg_path'))
            transcriber = WhisperTranscriber(
                model_name=config['whisper_model'],
                device=device,
                fp16=config.get('whisper_fp16', True) if device == 'cuda' else False,
                language=config.get('source_language')
            )
            translator = HuggingFaceTranslator(
                model_name=config['translation_model'],
                device=device,
                batch_size=batch_size
            )
            segment_source = BilingualSegmentSource(
                transcriber,
                translator,
                batch_size=batch_size
            )

        renderer = None
        if burn_in:
            fonts = config.get('fonts') or {}
            renderer = BurnInRenderer(
                painter=OverlayPainter(fonts.get('regular'), fonts.get('bold')),
                layout=OverlayLayout.from_config(config.get('overlay')),
                ffmpeg_path=config.get('ffmpeg_path'),
                ffprobe_path=config.get('ffprobe_path'),
                vcodec=config.get('burn_in_codec', 'libx264'),
                acodec=config.get('burn_in_audio_codec', 'aac'),
            )

        return SubtitleGenerator(
            config=config,
            audio_extractor=audio_extractor,
            segment_source=segment_source,
            renderer=renderer
        )

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and runs the generator."""
        args = self.parser.parse_args(argv)

        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        # Bootstrap logging so configuration errors are recorded.
        setup_logging(log_level=log_level, log_dir='logs', log_file='dualsub_init.log')

        try:
            config = ConfigLoader().load_config(args.config)
        except ConfigurationError as e:
            logger.critical(f"Failed to load configuration from {args.config}: {e}")
            sys.exit(1)
        except FileNotFoundError:
            logger.critical(f"Configuration file not found: {args.config}")
            sys.exit(1)

        setup_logging(log_level=log_level, log_dir=config.get('log_dir', 'logs'), log_file=config.get('log_file', 'dualsub.log'))
        logger.info("Logging re-configured with settings from config file.")

        if args.temp_dir:
            logger.info(f"Overriding temp_dir from config with CLI argument: {args.temp_dir}")
            config['temp_dir'] = args.temp_dir
        if args.device:
            logger.info(f"Overriding device from config with CLI argument: {args.device}")
            config['device'] = args.device

        if not os.path.isfile(args.video):
            logger.critical(f"Input video file not found or is not a file: {args.video}")
            sys.exit(1)

        try:
            logger.info("Initializing DualSub components...")
            needs_transcription = not (args.segments_json or args.srt_input)
            generator = self._build_generator(config, needs_transcription, args.burn_in)
            logger.info("Components initialized successfully.")

            modes = [SRTMode(m) for m in args.modes] if args.modes else None
            result = generator.generate(
                args.video,
                args.output_dir,
                segments_json=args.segments_json,
                srt_input=args.srt_input,
                burn_in=args.burn_in,
                modes=modes
            )
            for mode, path in result.srt_paths.items():
                logger.info(f"{mode.value} subtitles: {path}")
            if result.burned_video_path:
                logger.info(f"Burned-in video: {result.burned_video_path}")
            logger.info("DualSub finished successfully.")
            sys.exit(0)

        except DualSubError as e:
            logger.error(f"A DualSub error occurred: {e}")
            sys.exit(1)
        except FileNotFoundError as e:
            logger.error(str(e))
            sys.exit(1)
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            sys.exit(1)
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            sys.exit(2)

def main() -> None:
    CLIHandler().run()
