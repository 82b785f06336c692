"""Burns bilingual subtitles into a video by re-encoding it frame by frame with ffmpeg."""

import logging
import os
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import ffmpeg
from PIL import Image
from tqdm import tqdm

from .exceptions import RenderError
from .overlay import OverlayLayout, compose_overlay
from .painter import OverlayPainter
from .timeline import SubtitleTrack
from .utils import remove_quietly

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]  # 0.0 - 1.0

@dataclass
class VideoInfo:
    width: int
    height: int
    fps: float
    duration: float
    has_audio: bool

def _parse_frame_rate(raw: str) -> float:
    try:
        num, _, den = raw.partition("/")
        fps = float(num) / float(den or 1)
    except (ValueError, ZeroDivisionError):
        return 0.0
    return fps

def probe_video(video_path: str, ffprobe_path: Optional[str] = None) -> VideoInfo:
    """
    Reads frame size, frame rate, duration and audio presence with ffprobe.

    Raises:
        FileNotFoundError: If the video does not exist.
        RenderError: If probing fails or the file has no video stream.
    """
    if not os.path.exists(video_path):
        raise FileNotFoundError(f"Input video file not found: {video_path}")
    try:
        info = ffmpeg.probe(video_path, cmd=ffprobe_path or 'ffprobe')
    except ffmpeg.Error as e:
        stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
        logger.error(f"ffprobe failed for {video_path}: {stderr_output}")
        raise RenderError(f"ffprobe failed: {stderr_output}") from e

    streams = info.get("streams", [])
    vstream = next((s for s in streams if s.get("codec_type") == "video"), None)
    if vstream is None:
        raise RenderError(f"No video stream found in {video_path}")

    fps = _parse_frame_rate(vstream.get("avg_frame_rate", "0/0")) or _parse_frame_rate(vstream.get("r_frame_rate", "25/1")) or 25.0
    duration = float(info.get("format", {}).get("duration") or vstream.get("duration") or 0.0)
    return VideoInfo(
        width=int(vstream["width"]),
        height=int(vstream["height"]),
        fps=fps,
        duration=duration,
        has_audio=any(s.get("codec_type") == "audio" for s in streams),
    )

class BurnInRenderer:
    """
    Decodes a video to raw RGB frames, paints the active subtitle on each
    frame and encodes the result together with the original audio.
    """

    def __init__(
        self,
        painter: OverlayPainter,
        layout: Optional[OverlayLayout] = None,
        ffmpeg_path: Optional[str] = None,
        ffprobe_path: Optional[str] = None,
        vcodec: str = "libx264",
        acodec: str = "aac",
        show_progress: bool = True,
    ):
        self.painter = painter
        self.layout = layout or OverlayLayout()
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        self.ffprobe_cmd = ffprobe_path or 'ffprobe'
        self.vcodec = vcodec
        self.acodec = acodec
        self.show_progress = show_progress

    def render(
        self,
        video_path: str,
        track: SubtitleTrack,
        output_path: str,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Writes a copy of the video with the subtitles burned in.

        Args:
            video_path: Source video.
            track: Subtitles to burn in.
            output_path: Destination file; its extension selects the container.
            progress: Optional callback receiving the completed fraction.
            cancel_event: Set it from another thread to abort the render.

        Returns:
            output_path.

        Raises:
            RenderError: If ffmpeg fails or the render was cancelled.
        """
        info = probe_video(video_path, self.ffprobe_cmd)
        width, height = info.width, info.height
        frame_size = width * height * 3
        expected_frames = int(info.duration * info.fps) if info.duration else None
        logger.info(f"Burning {len(track)} subtitles into {video_path} ({width}x{height} @ {info.fps:.3f} fps, audio={info.has_audio})")

        decoder = (
            ffmpeg
            .input(video_path)
            .output('pipe:', format='rawvideo', pix_fmt='rgb24')
            .global_args('-loglevel', 'error')
            .run_async(cmd=self.ffmpeg_cmd, pipe_stdout=True)
        )
        streams = [ffmpeg.input('pipe:', format='rawvideo', pix_fmt='rgb24', s=f'{width}x{height}', r=info.fps).video]
        output_kwargs = {'vcodec': self.vcodec, 'pix_fmt': 'yuv420p'}
        if info.has_audio:
            streams.append(ffmpeg.input(video_path).audio)
            output_kwargs['acodec'] = self.acodec
        encoder = (
            ffmpeg
            .output(*streams, output_path, **output_kwargs)
            .overwrite_output()
            .global_args('-loglevel', 'error')
            .run_async(cmd=self.ffmpeg_cmd, pipe_stdin=True, pipe_stderr=True)
        )

        frame_index = 0
        cancelled = False
        bar = tqdm(total=expected_frames, unit='frame', desc='Burning subtitles', disable=not self.show_progress)
        try:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break
                raw = decoder.stdout.read(frame_size)
                if len(raw) < frame_size:
                    break

                t = frame_index / info.fps
                instruction = compose_overlay(track.find_active(t), width, height, self.layout, self.painter.measure)
                if instruction is not None:
                    frame = Image.frombytes('RGB', (width, height), raw)
                    raw = self.painter.paint(frame, instruction).tobytes()
                encoder.stdin.write(raw)

                frame_index += 1
                bar.update(1)
                if progress and expected_frames:
                    progress(min(1.0, frame_index / expected_frames))
        except BaseException as e:
            stderr_output = self._abort(decoder, encoder, output_path)
            if isinstance(e, BrokenPipeError):
                raise RenderError(f"ffmpeg encoder stopped accepting frames after {frame_index} frames: {stderr_output}") from e
            raise
        finally:
            bar.close()

        if cancelled:
            logger.warning(f"Burn-in cancelled after {frame_index} frames.")
            self._abort(decoder, encoder, output_path)
            raise RenderError("Burn-in was cancelled.")

        decoder.stdout.close()
        _close_quietly(encoder.stdin)
        stderr_output = _read_stderr(encoder)
        decoder_code = decoder.wait()
        encoder_code = encoder.wait()
        if decoder_code != 0 or encoder_code != 0:
            self._remove_partial(output_path)
            raise RenderError(f"ffmpeg failed (decoder exit {decoder_code}, encoder exit {encoder_code}): {stderr_output}")

        if progress:
            progress(1.0)
        logger.info(f"Burned subtitles into {frame_index} frames: {output_path}")
        return output_path

    def _abort(self, decoder, encoder, output_path: str) -> str:
        """Stops both ffmpeg processes, removes the partial output and returns the encoder's stderr."""
        decoder.kill()
        encoder.kill()
        _close_quietly(decoder.stdout)
        _close_quietly(encoder.stdin)
        stderr_output = _read_stderr(encoder)
        decoder.wait()
        encoder.wait()
        self._remove_partial(output_path)
        return stderr_output

    def _remove_partial(self, output_path: str) -> None:
        if remove_quietly(output_path):
            logger.info(f"Removed partially written video: {output_path}")

def _close_quietly(pipe) -> None:
    # Closing the encoder's stdin flushes it, which fails once ffmpeg has exited.
    try:
        pipe.close()
    except OSError:
        pass

def _read_stderr(process) -> str:
    data = process.stderr.read() if process.stderr else b""
    return data.decode('utf-8', errors='replace').strip() or "No stderr output"
