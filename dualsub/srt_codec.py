"""Converts subtitles to and from the SubRip (SRT) text format."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Sequence

from .exceptions import FormattingError, MalformedTimestampError, SRTParseError
from .models import SRTMode, Subtitle
from .timeline import format_seconds, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_MODE_SUFFIXES: Dict[SRTMode, str] = {
    SRTMode.SOURCE_ONLY: "en",
    SRTMode.TARGET_ONLY: "zh",
    SRTMode.BILINGUAL: "bilingual",
}

_NUMBER_RE = re.compile(r"[0-9]+")

def _block_text(sub: Subtitle, mode: SRTMode) -> str:
    if mode is SRTMode.SOURCE_ONLY:
        return sub.original_text
    if mode is SRTMode.TARGET_ONLY:
        return sub.translated_text
    return f"{sub.original_text}\n{sub.translated_text}"

def serialize(subtitles: Sequence[Subtitle], mode: SRTMode) -> str:
    """
    Renders subtitles as SRT text.

    Blocks are emitted in the given order and numbered 1, 2, 3, ...
    regardless of the stored index values. Every block ends with a blank
    line, so consecutive blocks are separated by exactly one.

    Args:
        subtitles: Subtitles, already in display order.
        mode: Which text each block carries.

    Returns:
        The SRT document; an empty string for no subtitles.
    """
    return "".join(
        f"{number}\n{sub.start_time} --> {sub.end_time}\n{_block_text(sub, mode)}\n\n"
        for number, sub in enumerate(subtitles, start=1)
    )

def _starts_block(lines: List[str], i: int) -> bool:
    if i >= len(lines):
        return True
    return (
        _NUMBER_RE.fullmatch(lines[i].strip()) is not None
        and i + 1 < len(lines)
        and "-->" in lines[i + 1]
    )

def _split_blocks(lines: List[str]) -> Iterator[List[str]]:
    block: List[str] = []
    for i, line in enumerate(lines):
        if line.strip():
            block.append(line)
        elif block:
            # A blank line straight after the timing line is an empty
            # first text line, unless another block starts right after it.
            if len(block) == 2 and not _starts_block(lines, i + 1):
                block.append("")
            else:
                yield block
                block = []
    if block:
        yield block

def _parse_block(block: List[str]) -> Subtitle:
    number = block[0].strip()
    if not _NUMBER_RE.fullmatch(number):
        raise SRTParseError(f"Sequence number is not numeric: {number!r}")
    if len(block) < 2 or "-->" not in block[1]:
        raise SRTParseError(f"Block {number} has no '-->' timing line")

    start_raw, _, end_raw = block[1].partition("-->")
    start_time = start_raw.strip()
    end_parts = end_raw.split()
    end_time = end_parts[0] if end_parts else ""
    try:
        start_seconds = parse_timestamp(start_time)
        end_seconds = parse_timestamp(end_time)
    except MalformedTimestampError as e:
        raise SRTParseError(f"Block {number}: {e}") from e
    if end_seconds < start_seconds:
        raise SRTParseError(f"Block {number} ends before it starts ({start_time} --> {end_time})")

    text_lines = block[2:]
    return Subtitle(
        index=int(number),
        start_time=format_seconds(start_seconds),
        end_time=format_seconds(end_seconds),
        original_text=text_lines[0] if text_lines else "",
        translated_text="\n".join(text_lines[1:]),
        start_seconds=start_seconds,
        end_seconds=end_seconds,
    )

def deserialize(text: str) -> List[Subtitle]:
    """
    Parses SRT text back into subtitles.

    The first text line of each block becomes the original text and the rest
    the translated text. Malformed blocks are skipped with a warning.
    Subtitles are returned in file order.
    """
    text = text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    lines = text.split("\n")

    subtitles: List[Subtitle] = []
    skipped = 0
    for block in _split_blocks(lines):
        try:
            subtitles.append(_parse_block(block))
        except SRTParseError as e:
            skipped += 1
            logger.warning(f"Skipping malformed SRT block: {e}")
    logger.debug(f"Parsed {len(subtitles)} SRT blocks ({skipped} skipped).")
    return subtitles

def read_srt_file(path: str) -> List[Subtitle]:
    """
    Reads and parses an SRT file.

    Raises:
        FileNotFoundError: If the file does not exist.
        FormattingError: If the file cannot be read or decoded.
    """
    logger.info(f"Reading SRT file: {path}")
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            content = f.read()
    except FileNotFoundError:
        raise
    except (IOError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read SRT file {path}: {e}", exc_info=True)
        raise FormattingError(f"Could not read SRT file {path}: {e}") from e
    return deserialize(content)

def export_filename(basename: str, mode: SRTMode, suffixes: Optional[Dict[SRTMode, str]] = None) -> str:
    """Returns ``<basename>_<suffix>.srt`` for the given mode."""
    suffix = (suffixes or DEFAULT_MODE_SUFFIXES)[mode]
    return f"{basename or 'subtitles'}_{suffix}.srt"

class SubtitleFormatter(ABC):
    """Abstract base class for subtitle formatters."""

    @abstractmethod
    def format_subtitles(self, subtitles: Sequence[Subtitle], output_path: str, mode: SRTMode) -> None:
        """
        Writes the subtitles to a subtitle file.

        Args:
            subtitles: Subtitles in display order.
            output_path: The path to save the formatted subtitle file.
            mode: Which text to emit.

        Raises:
            FormattingError: If formatting or writing fails.
        """
        pass

class SRTFormatter(SubtitleFormatter):
    """Formats subtitles into the SRT (SubRip Text) format."""

    def format_subtitles(self, subtitles: Sequence[Subtitle], output_path: str, mode: SRTMode) -> None:
        logger.info(f"Formatting {mode.value} subtitles to SRT: {output_path}")
        content = serialize(subtitles, mode)
        try:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(content)
            logger.info(f"Successfully wrote {len(subtitles)} subtitle blocks to {output_path}")
        except IOError as e:
            logger.error(f"Failed to write SRT file to {output_path}: {e}", exc_info=True)
            raise FormattingError(f"Could not write SRT file: {e}") from e
