"""Data models for DualSub."""

import mimetypes
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

RGBA = Tuple[int, int, int, int]

@dataclass
class Segment:
    """Represents a single timed chunk of recognised speech."""
    start_time: float
    end_time: float
    text: str

@dataclass
class TranscriptionResult:
    """Holds the structured output from the ASR process."""
    language: Optional[str]
    segments: List[Segment] = field(default_factory=list)
    original_audio_path: Optional[str] = None

@dataclass(frozen=True)
class Subtitle:
    """
    One timed bilingual text segment.

    The textual timestamps are the export representation; the float seconds
    are derived from them once at ingestion and used for all comparisons.
    """
    index: int
    start_time: str
    end_time: str
    original_text: str
    translated_text: str
    start_seconds: float
    end_seconds: float

    @property
    def duration(self) -> float:
        return self.end_seconds - self.start_seconds

class SRTMode(Enum):
    """Which text an exported SRT file carries."""
    SOURCE_ONLY = "source"
    TARGET_ONLY = "target"
    BILINGUAL = "bilingual"

@dataclass
class VideoMetadata:
    """Describes the video a subtitle session belongs to."""
    name: str
    url: str
    size: int
    type: str

    @classmethod
    def from_path(cls, path: str) -> "VideoMetadata":
        content_type, _ = mimetypes.guess_type(path)
        return cls(
            name=os.path.basename(path),
            url=os.path.abspath(path),
            size=os.path.getsize(path),
            type=content_type or "application/octet-stream",
        )

    @property
    def basename(self) -> str:
        """File name without its final extension, used for export filenames."""
        base = os.path.splitext(self.name)[0]
        return base or "subtitles"

@dataclass(frozen=True)
class OverlayLine:
    """A single centred line of overlay text, positioned by its baseline."""
    text: str
    font_size: float
    bold: bool
    color: RGBA
    x: float
    y: float
    width: float

@dataclass(frozen=True)
class OverlayPanel:
    """Rounded background rectangle behind the overlay text."""
    x: float
    y: float
    width: float
    height: float
    radius: float
    color: RGBA

@dataclass(frozen=True)
class OverlayInstruction:
    """Everything a consumer needs to draw the active subtitle on one frame."""
    frame_width: int
    frame_height: int
    panel: OverlayPanel
    lines: Tuple[OverlayLine, ...] = field(default_factory=tuple)
    subtitle: Optional[Subtitle] = None
