"""
Maps a playback time to the subtitle on screen and describes how to draw it.

The same OverlayInstruction feeds the live preview and the burn-in renderer,
so exported frames look like the preview. All geometry is derived from
ratios of the frame size.
"""

import logging
import unicodedata
from dataclasses import dataclass, fields
from typing import Callable, Optional, Sequence, Union

from .exceptions import ConfigurationError
from .models import RGBA, OverlayInstruction, OverlayLine, OverlayPanel, Subtitle
from .timeline import SubtitleTrack

logger = logging.getLogger(__name__)

# (text, font_size_px, bold) -> width in pixels
TextMeasurer = Callable[[str, float, bool], float]

@dataclass(frozen=True)
class OverlayLayout:
    """Ratio-based overlay layout. Sizes are fractions of the frame height."""
    source_font_ratio: float = 0.04
    target_font_ratio: float = 0.035
    padding_ratio: float = 0.0185
    bottom_offset_ratio: float = 0.08
    corner_radius_ratio: float = 0.0075
    panel_color: RGBA = (0, 0, 0, 178)
    source_color: RGBA = (250, 204, 21, 255)
    target_color: RGBA = (255, 255, 255, 255)

    @classmethod
    def from_config(cls, section: Optional[dict]) -> "OverlayLayout":
        """
        Builds a layout from the ``overlay`` section of the configuration.

        Raises:
            ConfigurationError: On unknown keys, or ratios outside (0, 1].
        """
        if not section:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ConfigurationError(f"Unknown overlay settings: {', '.join(sorted(unknown))}")

        values = {}
        for key, value in section.items():
            if key.endswith("_ratio"):
                if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 < value <= 1:
                    raise ConfigurationError(f"Overlay setting '{key}' must be a number in (0, 1], got {value!r}")
                values[key] = float(value)
            else:
                values[key] = _parse_color(key, value)
        return cls(**values)

def _parse_color(key: str, value) -> RGBA:
    if isinstance(value, str):
        hex_value = value.lstrip("#")
        if len(hex_value) in (6, 8):
            try:
                channels = [int(hex_value[i:i + 2], 16) for i in range(0, len(hex_value), 2)]
            except ValueError as e:
                raise ConfigurationError(f"Overlay colour '{key}' is not valid hex: {value!r}") from e
            if len(channels) == 3:
                channels.append(255)
            return tuple(channels)
    elif isinstance(value, (list, tuple)) and len(value) in (3, 4):
        channels = list(value) + ([255] if len(value) == 3 else [])
        if all(isinstance(c, int) and 0 <= c <= 255 for c in channels):
            return tuple(channels)
    raise ConfigurationError(f"Overlay colour '{key}' must be '#rrggbb[aa]' or an RGB(A) list, got {value!r}")

def approximate_text_width(text: str, font_size: float, bold: bool = False) -> float:
    """Estimates rendered width without a font: wide East Asian glyphs take 1 em, others ~0.55 em."""
    if not text:
        return 0.0
    narrow = 0.58 if bold else 0.55
    em = 0.0
    for char in text:
        em += 1.0 if unicodedata.east_asian_width(char) in ("W", "F") else narrow
    return em * font_size

def find_active(subtitles: Union[Sequence[Subtitle], SubtitleTrack], t: float) -> Optional[Subtitle]:
    """
    Returns the first subtitle (in start order) whose interval contains t.

    Both ends of the interval are inclusive. When segments overlap, the
    earliest-starting one wins. Returns None in silence gaps, outside the
    timeline, or for an empty list.
    """
    if isinstance(subtitles, SubtitleTrack):
        return subtitles.find_active(t)
    for sub in subtitles:
        if sub.start_seconds <= t <= sub.end_seconds:
            return sub
    return None

def compose_overlay(
    active: Optional[Subtitle],
    frame_width: int,
    frame_height: int,
    layout: Optional[OverlayLayout] = None,
    measure: Optional[TextMeasurer] = None,
) -> Optional[OverlayInstruction]:
    """
    Describes the stacked bilingual overlay for one frame.

    Args:
        active: The subtitle on screen, or None.
        frame_width: Frame width in pixels.
        frame_height: Frame height in pixels.
        layout: Ratio-based layout; defaults to OverlayLayout().
        measure: Text measurer; defaults to approximate_text_width. Pass the
                 painter's measurer to size the panel from real font metrics.

    Returns:
        None when nothing is active, otherwise an OverlayInstruction with a
        bottom-anchored, horizontally centred panel and two lines.
    """
    if active is None:
        return None
    layout = layout or OverlayLayout()
    measure = measure or approximate_text_width

    source_size = frame_height * layout.source_font_ratio
    target_size = frame_height * layout.target_font_ratio
    padding = frame_height * layout.padding_ratio
    bottom_offset = frame_height * layout.bottom_offset_ratio

    source_width = measure(active.original_text, source_size, True) if active.original_text else 0.0
    target_width = measure(active.translated_text, target_size, False) if active.translated_text else 0.0

    panel_width = max(source_width, target_width) + padding * 2
    panel_height = source_size + target_size + padding * 2
    panel = OverlayPanel(
        x=(frame_width - panel_width) / 2,
        y=frame_height - panel_height - bottom_offset,
        width=panel_width,
        height=panel_height,
        radius=frame_height * layout.corner_radius_ratio,
        color=layout.panel_color,
    )

    center_x = frame_width / 2
    lines = (
        OverlayLine(
            text=active.original_text,
            font_size=source_size,
            bold=True,
            color=layout.source_color,
            x=center_x,
            y=panel.y + padding + source_size * 0.8,
            width=source_width,
        ),
        OverlayLine(
            text=active.translated_text,
            font_size=target_size,
            bold=False,
            color=layout.target_color,
            x=center_x,
            y=panel.y + padding + source_size + target_size,
            width=target_width,
        ),
    )
    if panel_width > frame_width:
        logger.debug(f"Overlay panel for subtitle {active.index} is wider than the frame ({panel_width:.0f}px > {frame_width}px).")
    return OverlayInstruction(
        frame_width=frame_width,
        frame_height=frame_height,
        panel=panel,
        lines=lines,
        subtitle=active,
    )
